"""
`novelscript init` command.

Writes a default `.novelscript/config.yml` in the target directory.
"""

from pathlib import Path

import typer

from novelscript.config import config_path, write_default_config


def register(app: typer.Typer) -> None:
    @app.command()
    def init(
        path: Path = typer.Argument(Path("."), help="Directory to initialize"),
        force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
    ):
        """Create .novelscript/config.yml with default settings."""
        path = path.resolve()
        if config_path(path).exists() and not force:
            print(f"Already initialized: {config_path(path)}")
            raise typer.Exit(1)

        path.mkdir(parents=True, exist_ok=True)
        written = write_default_config(path)
        print(f"✓ Wrote {written}")
