"""Script statistics: novelscript stats FILE"""

from __future__ import annotations

from pathlib import Path

import typer

from novelscript.cli.common import load_document, settings
from novelscript.script.estimates import estimate


def register(app: typer.Typer) -> None:
    @app.command()
    def stats(
        ctx: typer.Context,
        file: Path = typer.Argument(..., help="Script file, or - for stdin"),
    ):
        """Line count and runtime estimate."""
        cfg = settings(ctx)
        _, document = load_document(file)

        est = estimate(document, cfg.estimates.seconds_per_line)
        speakers = sorted({s.display for s in document.speakers() if not s.continued})

        print(f"Title: {document.title or '(untitled)'}")
        print(f"  • Scenes:   {est.scene_count}")
        print(f"  • Lines:    {est.line_count}")
        print(f"  • Cues:     {len(document.cues())}")
        print(f"  • Speakers: {', '.join(speakers) if speakers else '-'}")
        print(f"\n{est.summary()}")
