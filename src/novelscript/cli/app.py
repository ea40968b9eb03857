"""Main CLI application wiring for novelscript.

  novelscript init
  novelscript parse script.novel --json
  novelscript query script.novel 'doc.cues("BGM")'
  novelscript tui script.novel
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(add_completion=False, help="novelscript — screenplays in plain text")


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
):
    """novelscript CLI."""
    if verbose:
        logging.basicConfig(
            stream=sys.stderr,
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    ctx.obj = {"config_path": config}


# =============================================================================
# Commands
# =============================================================================

from novelscript.cli import init as init_cmd
from novelscript.cli import parse as parse_cmd
from novelscript.cli import cues as cues_cmd
from novelscript.cli import query as query_cmd
from novelscript.cli import preview as preview_cmd
from novelscript.cli import stats as stats_cmd

init_cmd.register(app)
parse_cmd.register(app)
cues_cmd.register(app)
query_cmd.register(app)
preview_cmd.register(app)
stats_cmd.register(app)


@app.command()
def tui(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Script file to edit (created on first save)"),
):
    """Launch the novelscript TUI."""
    from novelscript.cli.common import settings
    from novelscript.tui.app import NovelScriptApp

    NovelScriptApp(path=file, config=settings(ctx)).run()
