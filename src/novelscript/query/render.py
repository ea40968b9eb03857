"""Generic tree renderer for query results.

Any value a query can produce is sorted into one of a closed set of
kinds and rendered into a VisualNode:

    RENDERABLE  script nodes render themselves (as_visual)
    SEQUENCE    lists, tuples, iterators -> group of children
    SET         sorted by text, then rendered as a sequence
    MAPPING     dicts, dataclass records, named tuples -> one subgroup per key
    CALLABLE    query lambdas show their source
    SCALAR      everything else, as a JSON dump
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Iterable, Mapping, Set
from enum import Enum
from typing import Any, Iterator

from rich.text import Text as RichLabel
from rich.tree import Tree

from novelscript.editor.overlay import DEFAULT_THEME, style_for
from novelscript.outcome import Failure, Outcome
from novelscript.query.evaluator import QueryFunction
from novelscript.script.visual import Renderable, VisualNode


CYCLE = "<cycle>"


class ValueKind(Enum):
    RENDERABLE = "renderable"
    SEQUENCE = "sequence"
    SET = "set"
    MAPPING = "mapping"
    CALLABLE = "callable"
    SCALAR = "scalar"


def _is_record(value: Any) -> bool:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return True
    return isinstance(value, tuple) and hasattr(value, "_fields")


def classify_value(value: Any) -> ValueKind:
    if isinstance(value, Renderable):
        return ValueKind.RENDERABLE
    if isinstance(value, (str, bytes)):
        return ValueKind.SCALAR
    if _is_record(value):
        return ValueKind.MAPPING
    if isinstance(value, (Set, Mapping)):
        return ValueKind.SET if isinstance(value, Set) else ValueKind.MAPPING
    if isinstance(value, Iterable):
        return ValueKind.SEQUENCE
    if callable(value):
        return ValueKind.CALLABLE
    return ValueKind.SCALAR


def render(value: Any) -> VisualNode:
    return _render(value, 0, frozenset())


def render_outcome(outcome: Outcome) -> VisualNode:
    if isinstance(outcome, Failure):
        return VisualNode(label="Error", text=outcome.diagnostic or "", classes=("query-error",))
    return render(outcome.value)


def _render(value: Any, depth: int, path: frozenset[int]) -> VisualNode:
    kind = classify_value(value)

    if kind in (ValueKind.SEQUENCE, ValueKind.SET, ValueKind.MAPPING):
        if id(value) in path:
            return VisualNode(text=CYCLE, classes=("query-cycle",))
        path = path | {id(value)}

    match kind:
        case ValueKind.RENDERABLE:
            return value.as_visual()

        case ValueKind.SEQUENCE:
            return _group(list(value), depth, path)

        case ValueKind.SET:
            return _group(sorted(value, key=_sort_key), depth, path)

        case ValueKind.MAPPING:
            children = tuple(
                VisualNode(
                    label=str(key),
                    children=(_render(item, depth + 1, path),),
                    collapsible=True,
                )
                for key, item in _entries(value)
            )
            label = type(value).__name__ if _is_record(value) else ""
            return VisualNode(label=label, children=children, collapsible=depth > 0)

        case ValueKind.CALLABLE:
            if isinstance(value, QueryFunction):
                source = value.source
            else:
                source = f"<{getattr(value, '__name__', type(value).__name__)}>"
            return VisualNode(text=source, classes=("query-callable",))

    return VisualNode(text=_dump(value), classes=("query-scalar",))


def _group(items: list, depth: int, path: frozenset[int]) -> VisualNode:
    return VisualNode(
        children=tuple(_render(item, depth + 1, path) for item in items),
        collapsible=depth > 0,
        classes=("query-group",),
    )


def _entries(value: Any) -> Iterator[tuple[Any, Any]]:
    if isinstance(value, Mapping):
        yield from value.items()
    elif isinstance(value, tuple):
        yield from zip(value._fields, value)
    else:
        for f in dataclasses.fields(value):
            yield f.name, getattr(value, f.name)


def _sort_key(value: Any) -> str:
    if isinstance(value, Renderable):
        return value.as_text()
    if isinstance(value, str):
        return value
    return _dump(value)


def _dump(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


# =============================================================================
# Hosts
# =============================================================================

def node_lines(node: VisualNode, indent: int = 0) -> Iterator[str]:
    caption = node.caption()
    if caption:
        yield "  " * indent + caption
        indent += 1
    for child in node.children:
        yield from node_lines(child, indent)


def render_text(value: Any) -> str:
    """Indented plain-text rendering of a value."""
    return "\n".join(node_lines(render(value)))


def _label(node: VisualNode, theme: Mapping[str, str]) -> RichLabel:
    style = style_for(node.classes, theme)
    return RichLabel(node.caption() or "·", style=style or "")


def to_rich_tree(node: VisualNode, theme: Mapping[str, str] | None = None) -> Tree:
    theme = theme if theme is not None else DEFAULT_THEME
    tree = Tree(_label(node, theme))
    _add_children(tree, node, theme)
    return tree


def _add_children(tree: Tree, node: VisualNode, theme: Mapping[str, str]) -> None:
    for child in node.children:
        branch = tree.add(_label(child, theme))
        _add_children(branch, child, theme)
