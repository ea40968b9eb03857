"""Neutral visual tree.

Renderers build `VisualNode` trees; hosts turn them into whatever they
display (a rich `Tree` in the CLI, a Textual `Tree` in the TUI).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class VisualNode:
    label: str = ""
    text: str = ""
    children: tuple["VisualNode", ...] = ()
    collapsible: bool = False
    classes: tuple[str, ...] = ()
    offset: Optional[int] = None  # scroll target in the source text

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def caption(self) -> str:
        """One-line description: `label: text`, or whichever is set."""
        if self.label and self.text:
            return f"{self.label}: {self.text}"
        return self.label or self.text

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()


class Renderable(ABC):
    """Something that knows how to show itself as text and as a visual node."""

    @abstractmethod
    def as_text(self) -> str: ...

    @abstractmethod
    def as_visual(self) -> VisualNode: ...
