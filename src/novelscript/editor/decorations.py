"""Decoration engine: visible text + selection -> style marks and widgets.

Runs the same line classifier as the document parser, but only over the
visible ranges, threading parse state within each range. A line touched
by the selection keeps its raw text (marks only) so it stays editable;
any other line may be replaced by a read-mode widget.

Speaker continuation (`[&]`) is resolved from speakers seen earlier in the
same visible range only. When the previous speaker is off-screen the
widget shows a placeholder name.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Union

from novelscript.script.classifier import (
    INITIAL_STATE,
    Comment,
    Prompt,
    Property,
    SceneHeader,
    SpeakerLine,
    TaggedActionLine,
    TextLine,
    classify,
)
from novelscript.script.lines import LineSpan, iter_lines
from novelscript.script.rich_text import find_inline_spans, parse_rich_text


UNKNOWN_SPEAKER = "Unknown speaker"
DEFAULT_PLAYABLE_TAGS = ("BGM", "SFX", "VS")


# =============================================================================
# Widgets
# =============================================================================

class Widget(ABC):
    css_class: str = "novel-widget"

    @abstractmethod
    def label(self) -> str: ...


@dataclass(frozen=True)
class SpeakerWidget(Widget):
    referent: Optional[str]
    alias: Optional[str] = None
    continued: bool = False
    css_class = "novel-speaker"

    def label(self) -> str:
        name = self.alias or self.referent or UNKNOWN_SPEAKER
        name = name.upper()
        return f"{name} (CONT'D)" if self.continued else name


@dataclass(frozen=True)
class ReferenceWidget(Widget):
    referent: str
    alias: Optional[str] = None
    css_class = "novel-wikilink"

    def label(self) -> str:
        return self.alias or self.referent


@dataclass(frozen=True)
class PromptWidget(Widget):
    options: tuple[str, ...]
    css_class = "novel-prompt"

    def label(self) -> str:
        return "  ".join(f"{i}. {option}" for i, option in enumerate(self.options, 1))


@dataclass(frozen=True)
class PlaybackWidget(Widget):
    tag: str
    referent: str
    alias: Optional[str] = None
    css_class = "novel-playback"

    def label(self) -> str:
        return f"▶ {self.tag} {self.alias or self.referent}"


@dataclass(frozen=True)
class FormattingWidget(Widget):
    text: str
    style: str  # "bold" or "italic"

    @property
    def css_class(self) -> str:  # type: ignore[override]
        return f"novel-{self.style}"

    def label(self) -> str:
        return self.text


# =============================================================================
# Decoration set
# =============================================================================

@dataclass(frozen=True)
class Mark:
    from_: int
    to: int
    classes: tuple[str, ...]


@dataclass(frozen=True)
class Replace:
    from_: int
    to: int
    widget: Widget


Decoration = Union[Mark, Replace]


@dataclass(frozen=True)
class SelectionRange:
    from_: int
    to: int

    def touches(self, line: LineSpan) -> bool:
        return not (self.to < line.start or self.from_ > line.end)


@dataclass(frozen=True)
class DecorationSet:
    marks: tuple[Mark, ...] = ()
    replacements: tuple[Replace, ...] = ()

    def widgets(self) -> list[Widget]:
        return [r.widget for r in self.replacements]

    def classes_at(self, offset: int) -> set[str]:
        found: set[str] = set()
        for mark in self.marks:
            if mark.from_ <= offset < mark.to:
                found.update(mark.classes)
        return found

    def replacement_at(self, offset: int) -> Optional[Replace]:
        for replace in self.replacements:
            if replace.from_ <= offset < replace.to:
                return replace
        return None


@dataclass
class _Builder:
    marks: list[Mark] = field(default_factory=list)
    replacements: list[Replace] = field(default_factory=list)

    def mark(self, from_: int, to: int, *classes: str) -> None:
        if from_ < to:
            self.marks.append(Mark(from_, to, tuple(c for c in classes if c)))

    def replace(self, from_: int, to: int, widget: Widget) -> None:
        self.replacements.append(Replace(from_, to, widget))

    def finish(self) -> DecorationSet:
        return DecorationSet(
            marks=tuple(sorted(self.marks, key=lambda m: (m.from_, -m.to))),
            replacements=tuple(sorted(self.replacements, key=lambda r: r.from_)),
        )


# =============================================================================
# Engine
# =============================================================================

def build_decorations(
    text: str,
    visible_ranges: Iterable[tuple[int, int]],
    selection: Sequence[SelectionRange | tuple[int, int]] = (),
    playable_tags: Iterable[str] = DEFAULT_PLAYABLE_TAGS,
) -> DecorationSet:
    ranges = [r if isinstance(r, SelectionRange) else SelectionRange(*r) for r in selection]
    playable = frozenset(playable_tags)
    builder = _Builder()

    for from_, to in visible_ranges:
        state = INITIAL_STATE
        for line in iter_lines(text, from_, to):
            selected = any(r.touches(line) for r in ranges)
            construct, next_state = classify(line.text, state)
            _decorate_line(builder, line, construct, selected, playable)
            state = next_state

    return builder.finish()


def _decorate_line(builder: _Builder, line: LineSpan, construct, selected: bool, playable: frozenset[str]) -> None:
    start = line.start
    end = line.start + len(line.text)
    sel = "selected" if selected else ""

    match construct:
        case SceneHeader(name_start=name_start, name_end=name_end):
            builder.mark(start, end, "novel-scene-header", sel)
            builder.mark(start, start + name_start, "hide")
            builder.mark(start + name_end, end, "hide")

        case Comment(marker_len=marker_len):
            builder.mark(start, end, "novel-comment", sel)
            builder.mark(start, start + marker_len, "hide")

        case Property(key=key):
            builder.mark(start, end, "novel-property")
            builder.mark(start, start + len(key) + 1, "novel-property-key")
            if key == "Tags":
                _decorate_tags(builder, line, key)

        case TaggedActionLine(tag=tag, text=content, text_start=text_start):
            spans = find_inline_spans(content)
            if not selected and tag in playable and _is_single_wikilink(content, spans):
                link = spans[0]
                builder.replace(start, end, PlaybackWidget(tag, link.target or "", link.alias))
                return
            builder.mark(start, end, "novel-tagged-action", f"tag-{tag.lower()}", sel)
            builder.mark(start, start + 1 + len(tag), "novel-tagged-action-tag")
            builder.mark(start + text_start, end, "novel-tagged-action-text")
            _decorate_inline(builder, content, start + text_start, selected)

        case Prompt(options=options):
            if selected:
                builder.mark(start, end, "novel-prompt")
            else:
                builder.replace(start, end, PromptWidget(options))

        case SpeakerLine(continued=continued, resolved=resolved, referent=referent, alias=alias):
            if selected:
                builder.mark(start, end, "novel-speaker")
            elif resolved is not None:
                builder.replace(start, end, SpeakerWidget(resolved.referent, resolved.alias, continued))
            elif continued:
                builder.replace(start, end, SpeakerWidget(None, None, True))
            else:
                builder.replace(start, end, SpeakerWidget(referent, alias, False))

        case TextLine(text=content, dialogue=dialogue, parenthetical=parenthetical):
            if dialogue:
                builder.mark(start, end, "novel-dialogue", "parenthetical" if parenthetical else "")
            else:
                builder.mark(start, end, "novel-action-line")
            _decorate_inline(builder, content, start, selected)


def _decorate_inline(builder: _Builder, content: str, base: int, selected: bool) -> None:
    for span in find_inline_spans(content):
        a, b = base + span.start, base + span.end
        if span.is_reference:
            if selected:
                builder.mark(a, b, f"novel-{span.kind}")
            else:
                builder.replace(a, b, ReferenceWidget(span.target or "", span.alias))
            continue

        style = span.kind
        if selected:
            builder.mark(a, b, f"novel-{style}")
            builder.mark(a, base + span.inner_start, "hide")
            builder.mark(base + span.inner_end, b, "hide")
        else:
            inner = parse_rich_text(content[span.inner_start:span.inner_end])
            builder.replace(a, b, FormattingWidget(inner.as_text(), style))


def _decorate_tags(builder: _Builder, line: LineSpan, key: str) -> None:
    rest = line.text[len(key) + 1:]
    value_start = len(key) + 1 + (len(rest) - len(rest.lstrip()))
    column = value_start
    for tag in line.text[value_start:].split(","):
        stripped = tag.strip()
        if stripped:
            offset = column + tag.index(stripped)
            builder.mark(line.start + offset, line.start + offset + len(stripped), "novel-tag")
        column += len(tag) + 1


def _is_single_wikilink(content: str, spans) -> bool:
    return (
        len(spans) == 1
        and spans[0].kind == "wikilink"
        and spans[0].start == 0
        and spans[0].end == len(content.rstrip())
    )
