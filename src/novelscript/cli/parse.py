"""Outline and JSON export: novelscript parse FILE [--json]"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from novelscript.cli.common import load_document
from novelscript.script.types import (
    NovelDocument,
    NovelScene,
    SceneItem,
    Speaker,
    TaggedAction,
)


# =========================================================================
# Shared export logic (used by `parse --json` and tests)
# =========================================================================


def item_to_dict(item: SceneItem) -> dict:
    data = {
        "type": type(item).__name__,
        "from": item.from_,
        "to": item.to,
        "text": item.as_text(),
    }
    if isinstance(item, TaggedAction):
        data["tag"] = item.tag
        data["text"] = item.content.as_text()
    elif isinstance(item, Speaker):
        data["referent"] = item.referent
        data["alias"] = item.alias
        data["continued"] = item.continued
    if not isinstance(item, Speaker):
        refs = item.content.references()
        if refs:
            data["references"] = [
                {"referent": r.referent, "alias": r.alias, "from": r.from_, "to": r.to}
                for r in refs
            ]
    return data


def scene_to_dict(scene: NovelScene) -> dict:
    return {
        "name": scene.name,
        "from": scene.from_,
        "to": scene.to,
        "metadata": dict(scene.metadata),
        "items": [item_to_dict(item) for item in scene.items],
    }


def document_to_dict(document: NovelDocument) -> dict:
    return {
        "metadata": dict(document.metadata),
        "scenes": [scene_to_dict(scene) for scene in document.scenes],
        "orphans": [item_to_dict(item) for item in document.orphans],
    }


def register(app: typer.Typer) -> None:
    @app.command()
    def parse(
        file: Path = typer.Argument(..., help="Script file, or - for stdin"),
        as_json: bool = typer.Option(False, "--json", help="Print the parsed document as JSON"),
    ):
        """Parse a script and print its outline."""
        _, document = load_document(file)

        if as_json:
            print(json.dumps(document_to_dict(document), indent=2, ensure_ascii=False))
            return

        for key, value in document.metadata.items():
            print(f"{key}: {value}")
        if document.metadata:
            print()

        if not document.scenes:
            print("No scenes.")
        else:
            print(f"Scenes ({len(document.scenes)}):")
            for idx, scene in enumerate(document.scenes, 1):
                summary = f" — {scene.summary}" if scene.summary else ""
                print(f"[{idx}] {scene.name}{summary} ({len(scene.items)} items)")

        if document.orphans:
            print(f"\nOrphaned lines: {len(document.orphans)}")
            for item in document.orphans:
                print(f"  {item.as_text()}")
