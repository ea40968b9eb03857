"""Shared fixtures for TUI tests.

Views are pure functions of state: tests call queries.refresh_editor()
or queries.refresh_scenes() before view.render(), as the app does.
"""

from pathlib import Path

import pytest

from novelscript.script.parser import parse_document
from novelscript.tui.state import AppState, DocumentParsed, Saved, TextEdited


SCRIPT = """Title: Harbor

== Docks ==
Summary: Night at the docks
Tags: night
@BGM [[Rain Theme]]
[Alice]
Hi.
@SFX [[Foghorn]]

== Roof ==
@SFX [[Wind]]
Stars.
"""


@pytest.fixture
def script_text():
    return SCRIPT


@pytest.fixture
def make_state():
    """Factory: state with `text` loaded, saved and parsed."""

    def _make(text: str = SCRIPT, path: Path | None = None) -> AppState:
        state = AppState(path=path)
        state.dispatch(TextEdited(text))
        state.dispatch(Saved(text))
        state.dispatch(DocumentParsed(parse_document(text).value))
        return state

    return _make


@pytest.fixture
def state(make_state):
    return make_state(path=Path("harbor.novel"))
