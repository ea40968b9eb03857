"""Line addressing over a plain string buffer.

Offsets are character offsets. A line's `end` excludes its newline, so
`text[line.start:line.end] == line.text` except for a stripped `\\r`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class LineSpan:
    number: int  # 1-based
    start: int
    end: int
    text: str

    @property
    def next_start(self) -> int:
        """Offset of the first character of the following line."""
        return self.end + 1


def iter_lines(text: str, start: int = 0, stop: int | None = None) -> Iterator[LineSpan]:
    """Yield the lines intersecting `[start, stop]`.

    `start` may point anywhere inside a line; iteration begins at that
    line's first character.
    """
    if stop is None:
        stop = len(text)
    line = line_at(text, start)
    while True:
        yield line
        if line.end >= len(text) or line.next_start > stop:
            return
        line = _line_from(text, line.next_start, line.number + 1)


def line_at(text: str, offset: int) -> LineSpan:
    """Return the line containing `offset` (clamped to the buffer)."""
    offset = max(0, min(offset, len(text)))
    line_start = text.rfind("\n", 0, offset) + 1
    number = text.count("\n", 0, line_start) + 1
    return _line_from(text, line_start, number)


def line_number(text: str, number: int) -> LineSpan:
    """Return the 1-based line `number`."""
    if number < 1:
        raise IndexError(f"Line {number} out of range")
    start = 0
    for _ in range(number - 1):
        nl = text.find("\n", start)
        if nl < 0:
            raise IndexError(f"Line {number} out of range")
        start = nl + 1
    return _line_from(text, start, number)


def line_count(text: str) -> int:
    return text.count("\n") + 1


def location_to_offset(text: str, row: int, column: int) -> int:
    """Map a 0-based (row, column) editor location to a character offset."""
    line = line_number(text, row + 1)
    return min(line.start + column, line.end)


def _line_from(text: str, start: int, number: int) -> LineSpan:
    end = text.find("\n", start)
    if end < 0:
        end = len(text)
    content = text[start:end]
    if content.endswith("\r"):
        content = content[:-1]
    return LineSpan(number=number, start=start, end=end, text=content)
