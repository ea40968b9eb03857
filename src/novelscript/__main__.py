"""
novelscript CLI entrypoint.

Executed via:
  python -m novelscript
"""

from novelscript.cli.app import app

if __name__ == "__main__":
    app()
