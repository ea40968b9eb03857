"""Script document model.

Structure:
- NovelDocument owns its scenes (plus orphaned items that belong to no scene)
- NovelScene owns its items, ordered by source position
- Items own their RichText

Every node is a frozen dataclass; a parse pass builds a fresh tree and the
next pass replaces it wholesale.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from novelscript.script.visual import Renderable, VisualNode


# =============================================================================
# Positions and metadata
# =============================================================================

@dataclass(frozen=True)
class DocumentTextRange:
    """Half-open `[from_, to)` span of the source text."""
    from_: int
    to: int

    def __post_init__(self) -> None:
        if self.from_ > self.to:
            raise ValueError(f"Invalid range: {self.from_} > {self.to}")

    def contains(self, position: int) -> bool:
        return self.from_ <= position < self.to

    def slice(self, source: str) -> str:
        return source[self.from_:self.to]


class Metadata(Mapping[str, str], Renderable):
    """Immutable, ordered property block (`key: value` lines)."""

    def __init__(self, pairs: Iterable[tuple[str, str]] | Mapping[str, str] = ()):
        if isinstance(pairs, Mapping):
            pairs = pairs.items()
        data: dict[str, str] = {}
        for key, value in pairs:
            data[key] = value  # last write wins, first position kept
        self._data = data

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __hash__(self) -> int:
        return hash(tuple(self._data.items()))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Metadata):
            return list(self._data.items()) == list(other._data.items())
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Metadata({self._data!r})"

    def list_value(self, key: str) -> list[str]:
        """Split a comma-separated value (e.g. `Tags: a, b`)."""
        raw = self._data.get(key, "")
        return [part.strip() for part in raw.split(",") if part.strip()]

    def to_block(self) -> str:
        """Serialize back to property lines, in insertion order."""
        return "\n".join(f"{key}: {value}" for key, value in self._data.items())

    def as_text(self) -> str:
        return self.to_block()

    def as_visual(self) -> VisualNode:
        return VisualNode(
            label="Metadata",
            children=tuple(VisualNode(label=k, text=v) for k, v in self._data.items()),
            collapsible=True,
            classes=("novel-property",),
        )


# =============================================================================
# Rich text
# =============================================================================

@dataclass(frozen=True)
class Reference(DocumentTextRange, Renderable):
    """A named pointer to another note or concept."""
    referent: str
    alias: Optional[str] = None

    @property
    def display(self) -> str:
        return self.alias if self.alias is not None else self.referent

    def as_text(self) -> str:
        return self.display

    def as_visual(self) -> VisualNode:
        return VisualNode(
            label=self.display,
            text=self.referent if self.alias is not None else "",
            classes=("novel-wikilink",),
            offset=self.from_,
        )


@dataclass(frozen=True)
class Text(Renderable):
    content: str

    def as_text(self) -> str:
        return self.content

    def as_visual(self) -> VisualNode:
        return VisualNode(text=self.content)


@dataclass(frozen=True)
class Formatting(Renderable):
    marker: str  # "**" or "*"
    content: "RichText"

    @property
    def style(self) -> str:
        return "bold" if self.marker == "**" else "italic"

    def as_text(self) -> str:
        return self.content.as_text()

    def as_visual(self) -> VisualNode:
        return VisualNode(text=self.as_text(), classes=(f"novel-{self.style}",))


@dataclass(frozen=True)
class ReferencePart(Renderable):
    reference: Reference

    def as_text(self) -> str:
        return self.reference.as_text()

    def as_visual(self) -> VisualNode:
        return self.reference.as_visual()


RichTextPart = Union[Text, Formatting, ReferencePart]


@dataclass(frozen=True)
class RichText(Renderable):
    parts: tuple[RichTextPart, ...] = ()

    @classmethod
    def plain(cls, text: str) -> "RichText":
        return cls(parts=(Text(text),) if text else ())

    def as_text(self) -> str:
        return "".join(part.as_text() for part in self.parts)

    def references(self) -> list[Reference]:
        """All references, including those nested inside formatting."""
        found: list[Reference] = []
        for part in self.parts:
            if isinstance(part, ReferencePart):
                found.append(part.reference)
            elif isinstance(part, Formatting):
                found.extend(part.content.references())
        return found

    def as_visual(self) -> VisualNode:
        return VisualNode(text=self.as_text(), classes=("novel-rich-text",))


# =============================================================================
# Scene items
# =============================================================================

@dataclass(frozen=True)
class ActionLine(DocumentTextRange, Renderable):
    """Plain action line."""
    content: RichText = field(default_factory=RichText)

    def as_text(self) -> str:
        return self.content.as_text()

    def as_visual(self) -> VisualNode:
        return VisualNode(text=self.as_text(), classes=("novel-action-line",), offset=self.from_)


@dataclass(frozen=True)
class DialogueLine(DocumentTextRange, Renderable):
    """Line spoken by the current speaker."""
    content: RichText = field(default_factory=RichText)

    def as_text(self) -> str:
        return self.content.as_text()

    def as_visual(self) -> VisualNode:
        return VisualNode(text=self.as_text(), classes=("novel-dialogue",), offset=self.from_)


@dataclass(frozen=True)
class TaggedAction(DocumentTextRange, Renderable):
    """A cue in the form `@TAG free text`."""
    tag: str
    content: RichText = field(default_factory=RichText)

    def as_text(self) -> str:
        return f"@{self.tag} {self.content.as_text()}"

    def as_visual(self) -> VisualNode:
        return VisualNode(
            label=self.tag,
            text=self.content.as_text(),
            classes=("novel-tagged-action", f"tag-{self.tag.lower()}"),
            offset=self.from_,
        )


@dataclass(frozen=True)
class Speaker(Reference):
    """A new speaker for the dialogue lines that follow."""
    continued: bool = False

    @property
    def label(self) -> str:
        name = self.display.upper()
        return f"{name} (CONT'D)" if self.continued else name

    def as_text(self) -> str:
        return self.label

    def as_visual(self) -> VisualNode:
        return VisualNode(label=self.label, classes=("novel-speaker",), offset=self.from_)


SceneItem = Union[ActionLine, DialogueLine, TaggedAction, Speaker]


# =============================================================================
# Scenes and documents
# =============================================================================

@dataclass(frozen=True)
class NovelScene(DocumentTextRange, Renderable):
    name: str
    metadata: Metadata = field(default_factory=Metadata)
    items: tuple[SceneItem, ...] = ()

    @property
    def summary(self) -> str:
        return self.metadata.get("Summary", "")

    @property
    def tags(self) -> list[str]:
        return self.metadata.list_value("Tags")

    def cues(self, tag: str | None = None) -> tuple[TaggedAction, ...]:
        return tuple(
            item for item in self.items
            if isinstance(item, TaggedAction) and (tag is None or item.tag == tag)
        )

    def as_text(self) -> str:
        lines = [f"== {self.name} =="]
        if self.metadata:
            lines.append(self.metadata.to_block())
        lines.extend(item.as_text() for item in self.items)
        return "\n".join(lines)

    def as_visual(self) -> VisualNode:
        return VisualNode(
            label=self.name,
            text=self.summary,
            children=tuple(item.as_visual() for item in self.items),
            collapsible=True,
            classes=("scene",) + tuple(f"scene-tagged-{t.lower()}" for t in self.tags),
            offset=self.from_,
        )


@dataclass(frozen=True)
class NovelDocument(Renderable):
    metadata: Metadata = field(default_factory=Metadata)
    scenes: tuple[NovelScene, ...] = ()
    orphans: tuple[SceneItem, ...] = ()

    @property
    def title(self) -> str:
        return self.metadata.get("Title", "")

    def items(self) -> tuple[SceneItem, ...]:
        return tuple(item for scene in self.scenes for item in scene.items)

    def cues(self, tag: str | None = None) -> tuple[TaggedAction, ...]:
        return tuple(cue for scene in self.scenes for cue in scene.cues(tag))

    def speakers(self) -> tuple[Speaker, ...]:
        return tuple(item for item in self.items() if isinstance(item, Speaker))

    def dialogue(self) -> tuple[DialogueLine, ...]:
        return tuple(item for item in self.items() if isinstance(item, DialogueLine))

    def scene_at(self, position: int) -> Optional[NovelScene]:
        for scene in self.scenes:
            if scene.contains(position):
                return scene
        return None

    def scene_named(self, name: str) -> Optional[NovelScene]:
        for scene in self.scenes:
            if scene.name == name:
                return scene
        return None

    def as_text(self) -> str:
        chunks = []
        if self.metadata:
            chunks.append(self.metadata.to_block())
        chunks.extend(scene.as_text() for scene in self.scenes)
        return "\n\n".join(chunks)

    def as_visual(self) -> VisualNode:
        children = []
        if self.metadata:
            children.append(self.metadata.as_visual())
        children.extend(scene.as_visual() for scene in self.scenes)
        return VisualNode(
            label=self.title or "Document",
            children=tuple(children),
            collapsible=True,
            classes=("novel-document",),
        )
