"""Helpers shared by the CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path

import typer

from novelscript.config import Config, load_config
from novelscript.errors import NovelScriptError, ScriptFileError
from novelscript.outcome import Failure
from novelscript.script.parser import parse_document
from novelscript.script.types import NovelDocument
from novelscript.tui.actions import read_script


def settings(ctx: typer.Context) -> Config:
    """Config for this invocation; exits 1 on a bad config file."""
    path = (ctx.obj or {}).get("config_path")
    try:
        return load_config(path)
    except NovelScriptError as e:
        print(str(e))
        raise typer.Exit(1)


def read_source(file: Path) -> str:
    """Read a script file, or stdin for `-`."""
    if str(file) == "-":
        return sys.stdin.read()
    if not file.exists():
        raise ScriptFileError(f"File not found: {file}")
    return read_script(file)


def load_document(file: Path) -> tuple[str, NovelDocument]:
    """Read and parse a script; exits 1 when it cannot be read."""
    try:
        text = read_source(file)
    except NovelScriptError as e:
        print(str(e))
        raise typer.Exit(1)

    result = parse_document(text)
    if isinstance(result, Failure):
        print(f"Parse failed: {result.diagnostic}")
        raise typer.Exit(1)
    return text, result.value
