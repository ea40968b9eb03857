"""
TUI state management and actions.

Architecture:
- Actions are frozen dataclasses representing state transitions
- reduce(state, action) applies a transition to the state
- AppState.dispatch(action) mutates self by applying reduce
- Computed properties provide convenient access to derived state

The parsed document is only ever replaced whole (DocumentParsed), so
views never see a half-updated tree.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, Union

from novelscript.config import Config
from novelscript.outcome import Outcome
from novelscript.script.types import NovelDocument


# =============================================================================
# Data Types
# =============================================================================

ViewName = Literal["editor", "scenes", "query"]


@dataclass(frozen=True)
class CueGroup:
    """Cues of one tag inside a scene."""
    tag: str
    lines: tuple[str, ...]


@dataclass(frozen=True)
class SceneRow:
    """One entry of the scenes list."""
    name: str
    summary: str
    tags: tuple[str, ...]
    offset: int
    cues: tuple[CueGroup, ...] = ()


# =============================================================================
# View States
# =============================================================================

@dataclass
class EditorState:
    """Buffer text and cursor as last reported by the TextArea."""
    text: str = ""
    saved_text: str = ""
    cursor: int = 0
    selection: tuple[int, int] = (0, 0)
    preview: Any = None  # rich Text, filled by queries.refresh_editor
    status: str = ""


@dataclass
class ScenesState:
    rows: list[SceneRow] = field(default_factory=list)
    cue_filter: Optional[str] = None
    selected: Optional[str] = None


@dataclass
class QueryState:
    expression: str = ""
    result: Optional[Outcome] = None
    history: list[str] = field(default_factory=list)


# =============================================================================
# Actions
# =============================================================================

@dataclass(frozen=True)
class GotoEditor:
    """Switch to the editor view."""
    pass


@dataclass(frozen=True)
class GotoScenes:
    """Switch to the scenes view."""
    pass


@dataclass(frozen=True)
class GotoQuery:
    """Switch to the query view."""
    pass


@dataclass(frozen=True)
class TextEdited:
    """The buffer changed (reparse is scheduled separately)."""
    text: str


@dataclass(frozen=True)
class CursorMoved:
    cursor: int
    selection: tuple[int, int]


@dataclass(frozen=True)
class DocumentParsed:
    """Swap in a freshly parsed document."""
    document: NovelDocument


@dataclass(frozen=True)
class Saved:
    text: str


@dataclass(frozen=True)
class SetCueFilter:
    tag: Optional[str]


@dataclass(frozen=True)
class SelectScene:
    name: Optional[str]


@dataclass(frozen=True)
class QuerySubmitted:
    expression: str
    result: Outcome


Action = Union[
    GotoEditor,
    GotoScenes,
    GotoQuery,
    TextEdited,
    CursorMoved,
    DocumentParsed,
    Saved,
    SetCueFilter,
    SelectScene,
    QuerySubmitted,
]


# =============================================================================
# Reducer
# =============================================================================

def reduce(state: "AppState", action: Action) -> None:
    """
    Apply an action to mutate state.

    All state changes flow through here. The function mutates state in
    place (Textual works better with mutable state).
    """
    match action:
        case GotoEditor():
            state.view = "editor"

        case GotoScenes():
            state.view = "scenes"

        case GotoQuery():
            state.view = "query"

        case TextEdited(text=text):
            state.editor.text = text

        case CursorMoved(cursor=cursor, selection=selection):
            state.editor.cursor = cursor
            state.editor.selection = selection

        case DocumentParsed(document=document):
            state.document = document

        case Saved(text=text):
            state.editor.saved_text = text

        case SetCueFilter(tag=tag):
            state.scenes.cue_filter = tag

        case SelectScene(name=name):
            state.scenes.selected = name

        case QuerySubmitted(expression=expression, result=result):
            state.query.expression = expression
            state.query.result = result
            if expression and expression not in state.query.history:
                state.query.history.append(expression)


# =============================================================================
# App State
# =============================================================================

@dataclass
class AppState:
    """
    Central application state.

    Mutable; state changes happen via dispatch(action), which calls the
    reduce function to apply transitions.
    """

    view: ViewName = "editor"

    # Script file being edited (None for an unsaved buffer)
    path: Optional[Path] = None

    document: NovelDocument = field(default_factory=NovelDocument)

    editor: EditorState = field(default_factory=EditorState)
    scenes: ScenesState = field(default_factory=ScenesState)
    query: QueryState = field(default_factory=QueryState)

    config: Config = field(default_factory=Config)

    def dispatch(self, action: Action) -> None:
        """Apply an action to update state."""
        reduce(self, action)

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def dirty(self) -> bool:
        return self.editor.text != self.editor.saved_text

    @property
    def title(self) -> str:
        name = self.path.name if self.path else "untitled"
        return f"{name} *" if self.dirty else name

    @property
    def current_scene(self):
        """Scene containing the cursor, if any."""
        return self.document.scene_at(self.editor.cursor)
