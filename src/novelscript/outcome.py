"""Success/Failure outcome values.

Parsing and query evaluation report their result as a value instead of
raising, so callers in the UI layer can branch on `.success` without a
try/except around every call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union


T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    success: bool = True


@dataclass(frozen=True)
class Failure:
    diagnostic: Any = None
    success: bool = False


Outcome = Union[Success[T], Failure]
