"""Runtime estimates for a parsed script."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import inflect

from novelscript.script.types import ActionLine, DialogueLine, NovelDocument, TaggedAction

_engine = inflect.engine()

# Rule of thumb: one page per minute, about 55 lines per page.
DEFAULT_SECONDS_PER_LINE = 60 / 55

COUNTED_ITEMS = (ActionLine, DialogueLine, TaggedAction)


@dataclass(frozen=True)
class Estimate:
    line_count: int
    duration: timedelta
    scene_count: int = 0

    @property
    def minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    def summary(self) -> str:
        """e.g. `12 lines for 3 min runtime`"""
        return f"{_engine.no('line', self.line_count)} for {self.minutes} min runtime"


def estimate(document: NovelDocument, seconds_per_line: float = DEFAULT_SECONDS_PER_LINE) -> Estimate:
    count = sum(1 for item in document.items() if isinstance(item, COUNTED_ITEMS))
    return Estimate(
        line_count=count,
        duration=timedelta(seconds=count * seconds_per_line),
        scene_count=len(document.scenes),
    )
