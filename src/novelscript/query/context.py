"""Names visible to query expressions."""

from __future__ import annotations

import functools
from typing import Any, Callable, Union

from novelscript.script.types import (
    ActionLine,
    DialogueLine,
    NovelDocument,
    NovelScene,
    Reference,
    RichText,
    SceneItem,
    Speaker,
    TaggedAction,
)
from novelscript.script.visual import Renderable


CONSTRUCTORS: dict[str, type] = {
    "ActionLine": ActionLine,
    "DialogueLine": DialogueLine,
    "TaggedAction": TaggedAction,
    "Speaker": Speaker,
    "Reference": Reference,
    "RichText": RichText,
    "NovelScene": NovelScene,
}


def safe_sum(iterable, start=0):
    """`sum` over numbers; sequence starts are refused (quadratic concatenation)."""
    if isinstance(start, (str, bytes, list, tuple)):
        raise TypeError("sum() cannot add sequences, use a comprehension")
    return sum(iterable, start)


SAFE_BUILTINS: dict[str, Any] = {
    fn.__name__: fn
    for fn in (
        len, sorted, list, tuple, set, dict, str, int, min, max,
        any, all, enumerate, zip, reversed, filter, map,
    )
}
SAFE_BUILTINS["sum"] = safe_sum


def to_items(scene: NovelScene) -> tuple[SceneItem, ...]:
    return scene.items


def is_(kind: Union[type, str]) -> Callable[[Any], bool]:
    """Type predicate, e.g. `filter(is_(Speaker), doc.items())`.

    `kind` may also be given by name: `is_("Speaker")`.
    """
    if isinstance(kind, str):
        name = kind
        return lambda what: any(cls.__name__ == name for cls in type(what).__mro__)
    return lambda what: isinstance(what, kind)


def _sort_text(value: Any) -> str:
    if isinstance(value, Renderable):
        return value.as_text()
    return str(value)


def alphabetic(a: Any, b: Any) -> int:
    """Case-insensitive three-way comparison."""
    left, right = _sort_text(a).casefold(), _sort_text(b).casefold()
    return (left > right) - (left < right)


def by(comparator: Callable[[Any, Any], int]):
    """Turn a three-way comparator into a sort key: `sorted(xs, key=by(alphabetic))`."""
    return functools.cmp_to_key(comparator)


def build_context(document: NovelDocument) -> dict[str, Any]:
    context: dict[str, Any] = dict(SAFE_BUILTINS)
    context.update(CONSTRUCTORS)
    context.update(
        doc=document,
        to_items=to_items,
        is_=is_,
        alphabetic=alphabetic,
        by=by,
    )
    return context
