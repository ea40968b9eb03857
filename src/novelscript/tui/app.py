"""novelscript TUI application with Elm-inspired architecture.

- Views are pure functions of state
- Document reads in queries.py, file writes in actions.py
- Edits schedule a debounced reparse; the parsed document is swapped
  into state in one step (DocumentParsed)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.css.query import NoMatches
from textual.widgets import Footer, Header, Input, ListView, Static, TextArea, Tree

from novelscript.config import Config
from novelscript.editor.decorations import Widget as ReadModeWidget
from novelscript.editor.scheduler import ReparseScheduler
from novelscript.errors import NovelScriptError
from novelscript.script.lines import location_to_offset
from novelscript.script.types import NovelDocument
from novelscript.tui import actions, queries
from novelscript.tui.decorators import safe_action
from novelscript.tui.state import (
    AppState,
    CursorMoved,
    DocumentParsed,
    GotoEditor,
    GotoQuery,
    GotoScenes,
    QuerySubmitted,
    Saved,
    SelectScene,
    SetCueFilter,
    TextEdited,
)
from novelscript.tui.views.editor import EditorView
from novelscript.tui.views.query import QueryView
from novelscript.tui.views.scenes import ScenesView, scene_index


logger = logging.getLogger(__name__)

ActivateHandler = Callable[[ReadModeWidget, int], None]


def offset_to_location(text: str, offset: int) -> tuple[int, int]:
    """Map a character offset to a 0-based (row, column) editor location."""
    row = text.count("\n", 0, offset)
    return row, offset - (text.rfind("\n", 0, offset) + 1)


class NovelScriptApp(App):
    CSS = """
    #editor_panes { height: 1fr; }
    #editor { width: 1fr; }
    #preview { width: 1fr; padding: 0 1; }
    #breadcrumb, #status-bar, #hint-bar { height: 1; }
    #hint-bar { text-style: dim; }
    #detail { width: 1fr; padding: 0 1; }
    #nav { width: 1fr; }
    #query-error { padding: 1; }
    """

    BINDINGS = [
        ("ctrl+s", "save", "Save"),
        ("f2", "scenes", "Scenes"),
        ("f3", "query", "Query"),
        ("escape", "back", "Back"),
        ("f4", "cycle_filter", "Filter Cues"),
        ("ctrl+o", "activate", "Open"),
    ]

    def __init__(
        self,
        path: Optional[Path] = None,
        config: Optional[Config] = None,
        on_activate: Optional[ActivateHandler] = None,
        *args,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.path = path
        self.config = config or Config()
        self.state: AppState | None = None
        self.views = {
            "editor": EditorView(),
            "scenes": ScenesView(),
            "query": QueryView(),
        }
        self.scheduler: ReparseScheduler | None = None
        self._on_activate = on_activate
        self._jump_to: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(id="main")
        yield Footer()

    def on_mount(self) -> None:
        log_dir = self.config.config_dir
        if log_dir is not None and log_dir.exists():
            logging.basicConfig(
                filename=log_dir / self.config.logging.file,
                level=getattr(logging, self.config.logging.level, logging.INFO),
                format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            )

        try:
            text = actions.read_script(self.path) if self.path is not None else ""
        except NovelScriptError as e:
            logging.exception("Failed to open script")
            self.notify(str(e), severity="error")
            text = ""

        self.state = AppState(path=self.path, config=self.config)
        self.state.dispatch(TextEdited(text))
        self.state.dispatch(Saved(text))

        self.scheduler = ReparseScheduler(
            on_parsed=self._on_parsed,
            start_timer=self.set_timer,
            delay=self.config.editor.reparse_delay,
        )
        self.scheduler.parse_now(text)
        self._render_view()

    def on_unmount(self) -> None:
        if self.scheduler is not None:
            self.scheduler.cancel()

    # =====================
    # Parsing
    # =====================

    def _on_parsed(self, document: NovelDocument) -> None:
        if self.state is None:
            return
        self.state.dispatch(DocumentParsed(document))
        logger.debug("Document swapped: %d scene(s)", len(document.scenes))
        if self.state.view == "editor":
            self._update_editor_panes()

    def _flush_reparse(self) -> None:
        if self.scheduler is not None:
            self.scheduler.flush()

    # =====================
    # View switching
    # =====================

    @safe_action
    def action_scenes(self) -> None:
        self._flush_reparse()
        self.state.dispatch(GotoScenes())
        self._render_view()

    @safe_action
    def action_query(self) -> None:
        self._flush_reparse()
        self.state.dispatch(GotoQuery())
        self._render_view()

    @safe_action
    def action_back(self) -> None:
        if self.state.view == "editor":
            return
        self._jump(self.state.editor.cursor)

    @safe_action
    def action_cycle_filter(self) -> None:
        if self.state.view != "scenes":
            return
        self.state.dispatch(SetCueFilter(queries.next_cue_filter(self.state)))
        self._render_view()

    # =====================
    # Editing
    # =====================

    @safe_action
    def action_save(self) -> None:
        if self.state.path is None:
            self.notify("No file to save to", severity="warning")
            return
        self._flush_reparse()
        text = self.state.editor.text
        actions.write_script(self.state.path, text)
        self.state.dispatch(Saved(text))
        self._update_title()
        self.notify(f"Saved {self.state.path.name}")

    @safe_action
    def action_activate(self) -> None:
        if self.state.view != "editor":
            return
        hit = queries.widget_at(self.state)
        if hit is None:
            return
        widget, offset = hit
        if self._on_activate is not None:
            self._on_activate(widget, offset)
        else:
            self.notify(widget.label(), title=type(widget).__name__)

    def _jump(self, offset: int) -> None:
        self._jump_to = offset
        self.state.dispatch(GotoEditor())
        self._render_view()

    # =====================
    # Rendering
    # =====================

    def _render_view(self) -> None:
        """Schedule a view re-render.

        Textual's `remove_children()` / `mount()` are async; doing them
        synchronously can briefly leave duplicate ids in the DOM.
        """
        if self.state is None:
            return

        self.run_worker(
            self._render_view_async(),
            group="render",
            exclusive=True,
            exit_on_error=False,
        )

    def _refresh_data(self) -> None:
        if self.state.view == "editor":
            queries.refresh_editor(self.state)
        elif self.state.view == "scenes":
            queries.refresh_scenes(self.state)

    async def _render_view_async(self) -> None:
        if self.state is None:
            return

        self._refresh_data()

        try:
            container = self.screen.query_one("#main")
        except NoMatches:
            return

        await container.remove_children()

        view = self.views[self.state.view]
        await container.mount_all(view.render(self.state))

        focus_id = view.focus_id(self.state)
        if focus_id is not None:
            try:
                self.screen.query_one(f"#{focus_id}").focus()
            except NoMatches:
                pass

        if self._jump_to is not None and self.state.view == "editor":
            offset, self._jump_to = self._jump_to, None
            try:
                editor = self.screen.query_one("#editor", TextArea)
            except NoMatches:
                return
            editor.move_cursor(offset_to_location(self.state.editor.text, offset), center=True)

    def _update_editor_panes(self) -> None:
        """Refresh preview and status in place; the TextArea stays mounted."""
        queries.refresh_editor(self.state)
        try:
            self.screen.query_one("#preview", Static).update(self.state.editor.preview)
            self.screen.query_one("#status-bar", Static).update(self.state.editor.status)
        except NoMatches:
            pass

    def _update_title(self) -> None:
        try:
            self.screen.query_one("#breadcrumb", Static).update(self.state.title)
        except NoMatches:
            pass

    # =====================
    # Event handlers
    # =====================

    @safe_action
    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if event.text_area.id != "editor":
            return
        text = event.text_area.text
        if text == self.state.editor.text:
            return
        self.state.dispatch(TextEdited(text))
        self.scheduler.request(text)
        self._update_editor_panes()
        self._update_title()

    @safe_action
    def on_text_area_selection_changed(self, event: TextArea.SelectionChanged) -> None:
        if event.text_area.id != "editor":
            return
        text = event.text_area.text
        start = location_to_offset(text, *event.selection.start)
        end = location_to_offset(text, *event.selection.end)
        self.state.dispatch(CursorMoved(cursor=end, selection=(start, end)))
        self._update_editor_panes()

    @safe_action
    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "query-input":
            return
        result = queries.run_query(self.state, event.value)
        self.state.dispatch(QuerySubmitted(event.value, result))
        self._render_view()

    @safe_action
    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        if event.item is None or event.item.id is None:
            return
        index = scene_index(event.item.id)
        if index is None or index >= len(self.state.scenes.rows):
            return
        row = self.state.scenes.rows[index]
        self.state.dispatch(SelectScene(row.name))
        try:
            detail = self.screen.query_one("#detail", Static)
        except NoMatches:
            return
        detail.update(self.views["scenes"].detail(row))

    @safe_action
    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.item.id is None:
            return
        index = scene_index(event.item.id)
        if index is None or index >= len(self.state.scenes.rows):
            return
        self._jump(self.state.scenes.rows[index].offset)

    @safe_action
    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        offset = event.node.data
        if isinstance(offset, int):
            self._jump(offset)
