"""Query evaluator: a restricted expression interpreter.

Expressions use Python syntax but are never handed to eval(). The source
is parsed with `ast` in eval mode, checked against a whitelist of node
types, and walked by a small interpreter whose only names are the
bindings of the query context. Private attributes (leading underscore)
are unreachable.

Execution is bounded by a step budget and a wall-clock deadline. Every
fault (syntax, disallowed construct, runtime error, budget exceeded) is
returned as a Failure carrying the diagnostic text; evaluate() never
raises.

    evaluate('doc.cues("BGM")', build_context(document))
"""

from __future__ import annotations

import ast
import logging
import operator
import time
from collections import ChainMap
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from novelscript.outcome import Failure, Success


logger = logging.getLogger(__name__)


# =============================================================================
# Errors and limits
# =============================================================================

class QueryError(Exception):
    """Base for faults raised by the interpreter itself."""


class QuerySyntaxError(QueryError):
    pass


class QueryLimitExceeded(QueryError):
    pass


@dataclass(frozen=True)
class EvaluationLimits:
    max_steps: int = 100_000
    timeout_seconds: Optional[float] = 2.0
    max_sequence: int = 100_000  # largest str/list built by * or **


DEFAULT_LIMITS = EvaluationLimits()
MAX_INT_BITS = 1_000_000


# =============================================================================
# Whitelist
# =============================================================================

ALLOWED_NODES: tuple[type, ...] = (
    ast.Expression, ast.Constant, ast.Name, ast.Load, ast.Store,
    ast.Attribute, ast.Call, ast.keyword, ast.Starred,
    ast.Subscript, ast.Slice,
    ast.List, ast.Tuple, ast.Set, ast.Dict,
    ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp, ast.comprehension,
    ast.Lambda, ast.arguments, ast.arg,
    ast.Compare, ast.BoolOp, ast.BinOp, ast.UnaryOp, ast.IfExp,
    ast.JoinedStr, ast.FormattedValue,
    ast.boolop, ast.operator, ast.unaryop, ast.cmpop,
)

# Class-level mutators (ABCMeta.register) and format-string attribute walks.
FORBIDDEN_ATTRIBUTES = frozenset({"format", "format_map", "mro", "register"})

BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
    ast.BitAnd: operator.and_,
    ast.BitOr: operator.or_,
    ast.BitXor: operator.xor,
}

UNARY_OPS = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Invert: operator.invert,
}

COMPARE_OPS = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}


def compile_query(expression: str) -> ast.Expression:
    """Parse and validate an expression. Raises SyntaxError or QuerySyntaxError."""
    if not expression.strip():
        raise QuerySyntaxError("empty expression")
    tree = ast.parse(expression.strip(), mode="eval")
    for node in ast.walk(tree):
        if not isinstance(node, ALLOWED_NODES):
            raise QuerySyntaxError(f"{type(node).__name__} is not allowed in queries")
        if isinstance(node, ast.Attribute):
            if node.attr.startswith("_") or node.attr in FORBIDDEN_ATTRIBUTES:
                raise QuerySyntaxError(f"attribute '{node.attr}' is not accessible")
        if isinstance(node, ast.Name) and node.id.startswith("_"):
            raise QuerySyntaxError(f"name '{node.id}' is not accessible")
        if isinstance(node, ast.arguments) and (node.vararg or node.kwarg or node.kwonlyargs):
            raise QuerySyntaxError("lambdas take positional parameters only")
        if isinstance(node, ast.operator) and type(node) not in BINARY_OPS:
            raise QuerySyntaxError(f"operator {type(node).__name__} is not allowed in queries")
        if isinstance(node, ast.comprehension) and node.is_async:
            raise QuerySyntaxError("async comprehensions are not allowed in queries")
    return tree


# =============================================================================
# Lambdas
# =============================================================================

class QueryFunction:
    """A lambda defined inside a query. Keeps its source text for display."""

    def __init__(self, node: ast.Lambda, scope: ChainMap, interpreter: "_Interpreter", defaults: list):
        self._node = node
        self._scope = scope
        self._interpreter = interpreter
        self._params = [a.arg for a in node.args.posonlyargs + node.args.args]
        self._defaults = defaults
        self.source = ast.get_source_segment(interpreter.source, node) or ast.unparse(node)

    def __call__(self, *args: Any) -> Any:
        params = self._params
        if len(args) > len(params):
            raise TypeError(f"lambda takes {len(params)} argument(s) but {len(args)} were given")
        missing = len(params) - len(args)
        if missing > len(self._defaults):
            raise TypeError(f"lambda missing {missing - len(self._defaults)} required argument(s)")
        values = list(args) + (self._defaults[len(self._defaults) - missing:] if missing else [])
        self._interpreter.tick()
        local = dict(zip(params, values))
        return self._interpreter.eval(self._node.body, self._scope.new_child(local))

    def __repr__(self) -> str:
        return self.source


# =============================================================================
# Interpreter
# =============================================================================

class _Interpreter:
    def __init__(self, source: str, bindings: Mapping[str, Any], limits: EvaluationLimits):
        self.source = source.strip()
        self.globals = ChainMap(dict(bindings))
        self.limits = limits
        self.steps = 0
        self.deadline = (
            time.monotonic() + limits.timeout_seconds if limits.timeout_seconds else None
        )

    def tick(self) -> None:
        self.steps += 1
        if self.steps > self.limits.max_steps:
            raise QueryLimitExceeded(f"evaluation exceeded {self.limits.max_steps} steps")
        if self.steps % 128 == 0:
            self.check_deadline()

    def check_deadline(self) -> None:
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise QueryLimitExceeded(
                f"evaluation exceeded {self.limits.timeout_seconds:g} second(s)"
            )

    def run(self, tree: ast.Expression) -> Any:
        return self.materialize(self.eval(tree.body, self.globals))

    def materialize(self, value: Any, path: frozenset[int] = frozenset()) -> Any:
        """Drain lazy iterators (map, filter, zip...) while still under budget.

        Iterators nested in lists, tuples, sets and dict values are drained
        too, so no query code runs after evaluate() returns.
        """
        if isinstance(value, Iterator):
            items = []
            for item in value:
                self.tick()
                items.append(item)
            value = items
        if not isinstance(value, (list, tuple, set, frozenset, dict)) or id(value) in path:
            return value
        path = path | {id(value)}

        if isinstance(value, dict):
            return {key: self._drained(item, path) for key, item in value.items()}
        items = [self._drained(item, path) for item in value]
        if isinstance(value, list):
            return items
        if isinstance(value, (set, frozenset)):
            return type(value)(tuple(i) if isinstance(i, list) else i for i in items)
        if hasattr(value, "_fields"):
            return type(value)(*items)
        return tuple(items)

    def _drained(self, item: Any, path: frozenset[int]) -> Any:
        self.tick()
        return self.materialize(item, path)

    def eval(self, node: ast.AST, scope: ChainMap) -> Any:
        self.tick()
        method = getattr(self, f"_eval_{type(node).__name__}", None)
        if method is None:
            raise QuerySyntaxError(f"{type(node).__name__} is not allowed in queries")
        return method(node, scope)

    # -- leaves ---------------------------------------------------------------

    def _eval_Constant(self, node: ast.Constant, scope: ChainMap) -> Any:
        return node.value

    def _eval_Name(self, node: ast.Name, scope: ChainMap) -> Any:
        try:
            return scope[node.id]
        except KeyError:
            raise NameError(f"name '{node.id}' is not defined") from None

    def _eval_Attribute(self, node: ast.Attribute, scope: ChainMap) -> Any:
        return getattr(self.eval(node.value, scope), node.attr)

    # -- calls and subscripts -------------------------------------------------

    def _eval_Call(self, node: ast.Call, scope: ChainMap) -> Any:
        func = self.eval(node.func, scope)
        if not callable(func):
            raise TypeError(f"'{type(func).__name__}' object is not callable")
        args: list[Any] = []
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                args.extend(self.materialize(iter(self.eval(arg.value, scope))))
            else:
                args.append(self.eval(arg, scope))
        kwargs: dict[str, Any] = {}
        for kw in node.keywords:
            if kw.arg is None:
                kwargs.update(self.eval(kw.value, scope))
            else:
                kwargs[kw.arg] = self.eval(kw.value, scope)
        result = func(*args, **kwargs)
        # A single builtin call is not preempted; an overrun is reported once it returns.
        self.check_deadline()
        return result

    def _eval_Subscript(self, node: ast.Subscript, scope: ChainMap) -> Any:
        return self.eval(node.value, scope)[self.eval(node.slice, scope)]

    def _eval_Slice(self, node: ast.Slice, scope: ChainMap) -> slice:
        def part(n):
            return self.eval(n, scope) if n is not None else None
        return slice(part(node.lower), part(node.upper), part(node.step))

    # -- displays -------------------------------------------------------------

    def _elements(self, nodes, scope: ChainMap) -> list:
        out: list[Any] = []
        for n in nodes:
            if isinstance(n, ast.Starred):
                out.extend(self.materialize(iter(self.eval(n.value, scope))))
            else:
                out.append(self.eval(n, scope))
        return out

    def _eval_List(self, node: ast.List, scope: ChainMap) -> list:
        return self._elements(node.elts, scope)

    def _eval_Tuple(self, node: ast.Tuple, scope: ChainMap) -> tuple:
        return tuple(self._elements(node.elts, scope))

    def _eval_Set(self, node: ast.Set, scope: ChainMap) -> set:
        return set(self._elements(node.elts, scope))

    def _eval_Dict(self, node: ast.Dict, scope: ChainMap) -> dict:
        result: dict[Any, Any] = {}
        for key, value in zip(node.keys, node.values):
            if key is None:
                result.update(self.eval(value, scope))
            else:
                result[self.eval(key, scope)] = self.eval(value, scope)
        return result

    # -- comprehensions -------------------------------------------------------

    def _iterate(self, generators: list[ast.comprehension], scope: ChainMap):
        """Yield a scope for every combination produced by the `for` clauses."""
        if not generators:
            yield scope
            return
        first, rest = generators[0], generators[1:]
        for value in self.eval(first.iter, scope):
            self.tick()
            inner = scope.new_child({})
            self._bind(first.target, value, inner)
            if all(self.eval(cond, inner) for cond in first.ifs):
                yield from self._iterate(rest, inner)

    def _bind(self, target: ast.AST, value: Any, scope: ChainMap) -> None:
        if isinstance(target, ast.Name):
            scope[target.id] = value
        elif isinstance(target, (ast.Tuple, ast.List)):
            values = list(value)
            if len(values) != len(target.elts):
                raise ValueError(f"cannot unpack {len(values)} values into {len(target.elts)} names")
            for sub, v in zip(target.elts, values):
                self._bind(sub, v, scope)
        else:
            raise QuerySyntaxError(f"cannot assign to {type(target).__name__}")

    def _eval_ListComp(self, node: ast.ListComp, scope: ChainMap) -> list:
        return [self.eval(node.elt, s) for s in self._iterate(node.generators, scope)]

    def _eval_GeneratorExp(self, node: ast.GeneratorExp, scope: ChainMap) -> list:
        # Evaluated eagerly so faults surface inside evaluate().
        return self._eval_ListComp(node, scope)  # type: ignore[arg-type]

    def _eval_SetComp(self, node: ast.SetComp, scope: ChainMap) -> set:
        return {self.eval(node.elt, s) for s in self._iterate(node.generators, scope)}

    def _eval_DictComp(self, node: ast.DictComp, scope: ChainMap) -> dict:
        return {
            self.eval(node.key, s): self.eval(node.value, s)
            for s in self._iterate(node.generators, scope)
        }

    def _eval_Lambda(self, node: ast.Lambda, scope: ChainMap) -> QueryFunction:
        defaults = [self.eval(d, scope) for d in node.args.defaults]
        return QueryFunction(node, scope, self, defaults)

    # -- operators ------------------------------------------------------------

    def _eval_BoolOp(self, node: ast.BoolOp, scope: ChainMap) -> Any:
        value: Any = None
        for operand in node.values:
            value = self.eval(operand, scope)
            if isinstance(node.op, ast.And) and not value:
                return value
            if isinstance(node.op, ast.Or) and value:
                return value
        return value

    def _eval_BinOp(self, node: ast.BinOp, scope: ChainMap) -> Any:
        left = self.eval(node.left, scope)
        right = self.eval(node.right, scope)
        self._check_size(node.op, left, right)
        return BINARY_OPS[type(node.op)](left, right)

    def _check_size(self, op: ast.operator, left: Any, right: Any) -> None:
        limit = self.limits.max_sequence
        sequences = (str, bytes, list, tuple)
        if isinstance(op, ast.Add) and isinstance(left, sequences) and isinstance(right, sequences):
            if len(left) + len(right) > limit:
                raise QueryLimitExceeded(f"result larger than {limit} elements")
        if isinstance(op, ast.Mult):
            for seq, count in ((left, right), (right, left)):
                if isinstance(seq, (str, bytes, list, tuple)) and isinstance(count, int):
                    if len(seq) * count > limit:
                        raise QueryLimitExceeded(f"result larger than {limit} elements")
        if isinstance(op, ast.Pow) and isinstance(right, int):
            if abs(right) > 1000:
                raise QueryLimitExceeded("exponent too large")
            if isinstance(left, int) and left.bit_length() * right > MAX_INT_BITS:
                raise QueryLimitExceeded("result too large")

    def _eval_UnaryOp(self, node: ast.UnaryOp, scope: ChainMap) -> Any:
        return UNARY_OPS[type(node.op)](self.eval(node.operand, scope))

    def _eval_Compare(self, node: ast.Compare, scope: ChainMap) -> bool:
        left = self.eval(node.left, scope)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.eval(comparator, scope)
            if not COMPARE_OPS[type(op)](left, right):
                return False
            left = right
        return True

    def _eval_IfExp(self, node: ast.IfExp, scope: ChainMap) -> Any:
        if self.eval(node.test, scope):
            return self.eval(node.body, scope)
        return self.eval(node.orelse, scope)

    # -- f-strings ------------------------------------------------------------

    def _eval_JoinedStr(self, node: ast.JoinedStr, scope: ChainMap) -> str:
        return "".join(str(self.eval(value, scope)) for value in node.values)

    def _eval_FormattedValue(self, node: ast.FormattedValue, scope: ChainMap) -> str:
        value = self.eval(node.value, scope)
        if node.conversion == ord("r"):
            value = repr(value)
        elif node.conversion == ord("a"):
            value = ascii(value)
        elif node.conversion == ord("s"):
            value = str(value)
        spec = self.eval(node.format_spec, scope) if node.format_spec is not None else ""
        return format(value, spec)


# =============================================================================
# Entry point
# =============================================================================

def evaluate(
    expression: str,
    context: Mapping[str, Any],
    limits: Optional[EvaluationLimits] = None,
) -> Success[Any] | Failure:
    """Evaluate `expression` against `context`. Never raises."""
    try:
        tree = compile_query(expression)
        value = _Interpreter(expression, context, limits or DEFAULT_LIMITS).run(tree)
    except SyntaxError as e:
        logger.debug("Query failed to compile: %s", e)
        return Failure(f"SyntaxError: {e.msg} (column {e.offset})")
    except Exception as e:
        # Query faults must never reach the caller's control flow.
        logger.debug("Query failed: %r", e)
        return Failure(f"{type(e).__name__}: {e}")
    return Success(value)
