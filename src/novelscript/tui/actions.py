"""Script file reads and writes.

All file access lives here. App.py action methods stay thin
orchestrators: guard → call actions.py → dispatch state → render.
"""

from __future__ import annotations

from pathlib import Path

from novelscript.errors import ScriptFileError


def read_script(path: Path) -> str:
    """Read a script as UTF-8. A missing file reads as empty (new script)."""
    if not path.exists():
        return ""
    if path.is_dir():
        raise ScriptFileError(f"Not a script file: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ScriptFileError(f"Cannot read {path}: {e}") from e


def write_script(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ScriptFileError(f"Cannot write {path}: {e}") from e
