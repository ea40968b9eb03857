"""
TUI decorators for safe action handling.
"""

import logging
from functools import wraps
from typing import Any, Callable

from novelscript.errors import NovelScriptError


def safe_action(action_func: Callable[..., Any]) -> Callable[..., Any]:
    """Skip the action until state exists; report failures as notifications."""

    @wraps(action_func)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        if getattr(self, "state", None) is None:
            return None

        try:
            return action_func(self, *args, **kwargs)
        except NovelScriptError as e:
            logging.warning("%s: %s", action_func.__name__, e)
            self.notify(str(e), severity="error")
        except Exception as e:
            logging.exception("Action %s failed", action_func.__name__)
            self.notify(f"{action_func.__name__} failed: {e}", severity="error")
        return None

    return wrapper
