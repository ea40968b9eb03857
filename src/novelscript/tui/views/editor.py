from textual.containers import Horizontal, Vertical
from textual.widgets import Static, TextArea

from novelscript.tui.state import AppState
from novelscript.tui.views.base import View


class EditorView(View):
    name = "editor"

    HINTS = "Ctrl+S:save  F2:scenes  F3:query  Ctrl+O:open  Ctrl+Q:quit"

    def render(self, state: AppState):
        preview = state.editor.preview if state.editor.preview is not None else ""
        return [
            Vertical(
                Static(state.title, id="breadcrumb"),
                Horizontal(
                    TextArea(state.editor.text, id="editor"),
                    Static(preview, id="preview"),
                    id="editor_panes",
                ),
                Static(state.editor.status, id="status-bar"),
                Static(self.HINTS, id="hint-bar"),
                id="editor_layout",
            )
        ]

    def focus_id(self, state: AppState) -> str | None:
        return "editor"
