"""Debounced reparse scheduling.

Each edit requests a reparse; a request made while another is still
pending cancels it, so at most one reparse is ever waiting. When the
timer fires the whole buffer is parsed and the result handed over in one
call, so readers only ever see a complete document.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol

from novelscript.script.parser import parse_document
from novelscript.script.types import NovelDocument


logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def stop(self) -> Any: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


class ReparseScheduler:
    def __init__(
        self,
        on_parsed: Callable[[NovelDocument], None],
        start_timer: TimerFactory,
        delay: float = 2.0,
        parse: Callable[[str], Any] = parse_document,
    ) -> None:
        self._on_parsed = on_parsed
        self._start_timer = start_timer
        self._parse = parse
        self.delay = delay
        self._timer: Optional[TimerHandle] = None
        self._pending_text: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def request(self, text: str) -> None:
        """Schedule a reparse of `text`, replacing any pending request."""
        if self._timer is not None:
            logger.debug("Reparse request superseded")
            self._timer.stop()
        self._pending_text = text
        self._timer = self._start_timer(self.delay, self._fire)

    def flush(self) -> None:
        """Run the pending reparse now, if any."""
        if self._timer is None:
            return
        self._timer.stop()
        self._fire()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.stop()
        self._timer = None
        self._pending_text = None

    def parse_now(self, text: str) -> None:
        """Parse immediately (initial load), dropping any pending request."""
        self.cancel()
        self._pending_text = text
        self._fire()

    def _fire(self) -> None:
        text = self._pending_text
        self._timer = None
        self._pending_text = None
        if text is None:
            return
        result = self._parse(text)
        if result.success:
            self._on_parsed(result.value)
