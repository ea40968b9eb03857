"""Query console: novelscript query FILE EXPRESSION [--text]"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from novelscript.cli.common import load_document, settings
from novelscript.editor.overlay import merge_theme
from novelscript.outcome import Failure
from novelscript.query.context import build_context
from novelscript.query.evaluator import EvaluationLimits, evaluate
from novelscript.query.render import render, render_text, to_rich_tree


def register(app: typer.Typer) -> None:
    @app.command()
    def query(
        ctx: typer.Context,
        file: Path = typer.Argument(..., help="Script file, or - for stdin"),
        expression: str = typer.Argument(..., help='Expression, e.g. doc.cues("BGM")'),
        text: bool = typer.Option(False, "--text", help="Plain indented text instead of a tree"),
    ):
        """Evaluate an expression against the parsed script."""
        cfg = settings(ctx)
        _, document = load_document(file)

        limits = EvaluationLimits(
            max_steps=cfg.query.max_steps,
            timeout_seconds=cfg.query.timeout_seconds,
        )
        result = evaluate(expression, build_context(document), limits)
        if isinstance(result, Failure):
            print(result.diagnostic)
            raise typer.Exit(1)

        if text:
            print(render_text(result.value))
            return
        Console().print(to_rich_tree(render(result.value), merge_theme(cfg.theme)))
