from rich.text import Text
from textual.containers import Horizontal, Vertical
from textual.widgets import ListItem, ListView, Static

from novelscript.tui.state import AppState, SceneRow
from novelscript.tui.views.base import View


def scene_item_id(index: int) -> str:
    # Textual ids can't start with a digit.
    return f"scene-{index}"


def scene_index(item_id: str) -> int | None:
    prefix, _, rest = item_id.partition("-")
    if prefix != "scene" or not rest.isdigit():
        return None
    return int(rest)


class ScenesView(View):
    name = "scenes"

    HINTS = "Enter:jump  F4:filter cues  F3:query  Esc:editor"

    def detail(self, row: SceneRow | None) -> Text:
        if row is None:
            return Text("No scene selected", style="dim")
        out = Text()
        out.append(row.name, style="bold")
        if row.summary:
            out.append(f"\n{row.summary}", style="italic")
        if row.tags:
            out.append("\nTags: ")
            out.append(", ".join(row.tags), style="magenta")
        for group in row.cues:
            out.append(f"\n\n{group.tag}", style="bold yellow")
            for line in group.lines:
                out.append(f"\n  {line}")
        return out

    def render(self, state: AppState):
        rows = state.scenes.rows
        items = []
        for index, row in enumerate(rows):
            label = Text(row.name)
            if row.summary:
                label.append(f"  {row.summary}", style="dim")
            items.append(ListItem(Static(label), id=scene_item_id(index)))

        selected = next((r for r in rows if r.name == state.scenes.selected), None)
        if selected is None and rows:
            selected = rows[0]

        cue_filter = state.scenes.cue_filter or "all cues"
        header = f"Scenes ({len(rows)})  ·  {cue_filter}"

        if not rows:
            body = Static("No scenes." if state.scenes.cue_filter is None else "No matching cues.", id="nav-empty")
        else:
            body = ListView(*items, id="nav")

        return [
            Vertical(
                Static(header, id="breadcrumb"),
                Horizontal(body, Static(self.detail(selected), id="detail")),
                Static(self.HINTS, id="hint-bar"),
                id="scenes_layout",
            )
        ]

    def focus_id(self, state: AppState) -> str | None:
        return "nav" if state.scenes.rows else None
