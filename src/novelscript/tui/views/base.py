from abc import ABC, abstractmethod
from typing import Iterable

from textual.widget import Widget

from novelscript.tui.state import AppState


class View(ABC):
    name: str

    @abstractmethod
    def render(self, state: AppState) -> Iterable[Widget]: ...

    def focus_id(self, state: AppState) -> str | None:
        """Id of the widget to focus after mounting."""
        return None
