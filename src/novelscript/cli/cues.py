"""Cue listing: novelscript cues FILE [--tag TAG]

Cues (`@TAG text` lines) grouped by scene, then by tag.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from novelscript.cli.common import load_document, settings


def register(app: typer.Typer) -> None:
    @app.command()
    def cues(
        ctx: typer.Context,
        file: Path = typer.Argument(..., help="Script file, or - for stdin"),
        tag: Optional[str] = typer.Option(None, "--tag", help="Only this cue tag (e.g. BGM)"),
    ):
        """List cues grouped by scene."""
        cfg = settings(ctx)
        _, document = load_document(file)

        tags = [tag] if tag else list(cfg.cue_tags)
        found = False
        for scene in document.scenes:
            groups = [(t, scene.cues(t)) for t in tags]
            groups = [(t, c) for t, c in groups if c]
            if not groups:
                continue
            found = True
            print(scene.name)
            for t, group in groups:
                print(f"  {t}")
                for cue in group:
                    print(f"    {cue.content.as_text()}")

        if not found:
            print("No cues.")
