"""Decorated preview: novelscript preview FILE [--line N] [--lines K]

Prints the lines as the editor shows them in read mode, with the cursor
line left raw.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from novelscript.cli.common import load_document, settings
from novelscript.editor.decorations import SelectionRange, build_decorations
from novelscript.editor.overlay import merge_theme, render_overlay
from novelscript.script.lines import line_count, line_number


def register(app: typer.Typer) -> None:
    @app.command()
    def preview(
        ctx: typer.Context,
        file: Path = typer.Argument(..., help="Script file, or - for stdin"),
        line: int = typer.Option(0, "--line", help="Cursor line (1-based, 0 = none)"),
        start: int = typer.Option(1, "--from", help="First line to show"),
        lines: int = typer.Option(40, "--lines", help="Number of lines to show"),
    ):
        """Print a window of the script with decorations applied."""
        cfg = settings(ctx)
        text, _ = load_document(file)

        total = line_count(text)
        if not 1 <= start <= total:
            print(f"Invalid line: {start} (script has {total} lines)")
            raise typer.Exit(1)
        if line and not 1 <= line <= total:
            print(f"Invalid line: {line} (script has {total} lines)")
            raise typer.Exit(1)

        first = line_number(text, start)
        last = line_number(text, min(total, start + max(lines, 1) - 1))

        selection = []
        if line:
            cursor = line_number(text, line)
            selection.append(SelectionRange(cursor.start, cursor.start))

        decorations = build_decorations(
            text,
            [(first.start, last.end)],
            selection=selection,
            playable_tags=cfg.editor.playable_tags,
        )
        overlay = render_overlay(
            text, decorations, merge_theme(cfg.theme), start=first.start, end=last.end
        )
        Console().print(overlay)
