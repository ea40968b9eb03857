"""Inline markup inside a line: references, links, bold and italic.

Each pattern is matched independently over the whole span. Matches are
merged in pattern order; a later match that overlaps an earlier one
replaces it. Overlaps are not resolved by nesting.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional

from novelscript.script.types import Formatting, Reference, ReferencePart, RichText, RichTextPart, Text


SpanKind = Literal["wikilink", "link", "bold", "italic"]

# Insertion order matters: see module docstring.
INLINE_PATTERNS: tuple[tuple[SpanKind, re.Pattern[str]], ...] = (
    ("wikilink", re.compile(r"\[\[(?P<target>.+?)(?:\|(?P<alias>.+?))?\]\]")),
    ("link", re.compile(r"\[(?P<alias>[^\[\]]+)\]\((?P<target>[^()\s]+)\)")),
    ("bold", re.compile(r"\*\*(?P<inner>.+?)\*\*")),
    ("italic", re.compile(r"(?<!\*)\*(?!\*)(?P<inner>.+?)(?<!\*)\*(?!\*)")),
)


@dataclass(frozen=True)
class InlineSpan:
    kind: SpanKind
    start: int
    end: int
    inner_start: int  # for bold/italic: content without delimiters
    inner_end: int
    target: Optional[str] = None
    alias: Optional[str] = None

    @property
    def is_reference(self) -> bool:
        return self.kind in ("wikilink", "link")

    def overlaps(self, other: "InlineSpan") -> bool:
        return self.start < other.end and other.start < self.end


def find_inline_spans(text: str) -> list[InlineSpan]:
    """Return the merged inline spans of `text`, ordered by start offset."""
    accepted: list[InlineSpan] = []
    for kind, pattern in INLINE_PATTERNS:
        for m in pattern.finditer(text):
            span = _span_from_match(kind, m)
            accepted = [s for s in accepted if not s.overlaps(span)]
            accepted.append(span)
    accepted.sort(key=lambda s: s.start)
    return accepted


def parse_rich_text(text: str, offset: int = 0) -> RichText:
    """Parse `text` into a RichText. `offset` is where `text` starts in the buffer."""
    parts: list[RichTextPart] = []
    cursor = 0
    for span in find_inline_spans(text):
        if span.start > cursor:
            parts.append(Text(text[cursor:span.start]))
        parts.append(_part_for(span, text, offset))
        cursor = span.end
    if cursor < len(text):
        parts.append(Text(text[cursor:]))
    return RichText(parts=tuple(parts))


def _span_from_match(kind: SpanKind, m: re.Match[str]) -> InlineSpan:
    if kind in ("wikilink", "link"):
        return InlineSpan(
            kind=kind,
            start=m.start(),
            end=m.end(),
            inner_start=m.start("target"),
            inner_end=m.end("target"),
            target=m.group("target"),
            alias=m.group("alias"),
        )
    return InlineSpan(
        kind=kind,
        start=m.start(),
        end=m.end(),
        inner_start=m.start("inner"),
        inner_end=m.end("inner"),
    )


def _part_for(span: InlineSpan, text: str, offset: int) -> RichTextPart:
    if span.is_reference:
        reference = Reference(
            from_=offset + span.start,
            to=offset + span.end,
            referent=span.target or "",
            alias=span.alias,
        )
        return ReferencePart(reference)
    marker = "**" if span.kind == "bold" else "*"
    inner = parse_rich_text(text[span.inner_start:span.inner_end], offset + span.inner_start)
    return Formatting(marker=marker, content=inner)
