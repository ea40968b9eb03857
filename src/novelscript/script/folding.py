"""Foldable regions: scene bodies and property runs."""

from __future__ import annotations

import re
from typing import Iterator, Optional

from novelscript.script.classifier import match_header
from novelscript.script.lines import iter_lines, line_count, line_number


FOLD_PROPERTY_RE = re.compile(r"^[A-Za-z][\w-]*:\s+")
# Neighbouring lines only join a run when capitalised.
FOLD_NEIGHBOUR_RE = re.compile(r"^[A-Z][\w-]*:\s+")

FoldRange = tuple[int, int]


def scene_fold(text: str, number: int) -> Optional[FoldRange]:
    """Fold from the end of header line `number` to the end of its scene."""
    line = line_number(text, number)
    if match_header(line.text) is None:
        return None

    start, end = line.end, len(text)
    for following in iter_lines(text, line.next_start):
        if following.start <= line.start:
            break
        if match_header(following.text) is not None:
            end = following.start - 1
            break
    if start >= end:
        return None
    return start, end


def property_fold(text: str, number: int) -> Optional[FoldRange]:
    """Fold a run of property lines, anchored at its first line."""
    line = line_number(text, number)
    if not FOLD_PROPERTY_RE.match(line.text):
        return None
    if number > 1 and FOLD_NEIGHBOUR_RE.match(line_number(text, number - 1).text):
        return None

    start, end = line.start, line.end
    for following in iter_lines(text, line.next_start):
        if following.start <= line.start or not FOLD_NEIGHBOUR_RE.match(following.text):
            break
        end = following.end
    if start == end or end == line.end:
        return None
    return start, end


def fold_ranges(text: str) -> Iterator[tuple[int, FoldRange]]:
    """Yield (line number, range) for every foldable region, in source order."""
    for number in range(1, line_count(text) + 1):
        fold = scene_fold(text, number) or property_fold(text, number)
        if fold is not None:
            yield number, fold
