"""Query evaluator: restricted expressions against a parsed document."""

import pytest

from novelscript.outcome import Failure, Success
from novelscript.query.context import alphabetic, build_context, is_
from novelscript.query.evaluator import EvaluationLimits, QueryFunction, evaluate
from novelscript.query.render import ValueKind, classify_value, render
from novelscript.script.parser import parse_document
from novelscript.script.types import Speaker, TaggedAction


SCENARIO_A = "Title: A\n\n== Scene 1 ==\nHello.\n\n@BGM Song\n"

SCRIPT = """Title: Night Shift

== Lobby ==
Summary: Quiet
@BGM [[Hum]]
[bob]
Evening.
[Alice]
Hi.

== Roof ==
@SFX [[Wind]]
@BGM [[Storm]]
"""


@pytest.fixture
def scenario_a():
    return build_context(parse_document(SCENARIO_A).value)


@pytest.fixture
def ctx():
    return build_context(parse_document(SCRIPT).value)


def value_of(expression, context, **limits):
    result = evaluate(expression, context, EvaluationLimits(**limits) if limits else None)
    assert isinstance(result, Success), result
    return result.value


def diagnostic_of(expression, context, **limits):
    result = evaluate(expression, context, EvaluationLimits(**limits) if limits else None)
    assert isinstance(result, Failure)
    assert not result.success
    return result.diagnostic


# ── Expressions ──────────────────────────────────────────────────────────────


class TestExpressions:
    def test_scenario_d(self, scenario_a):
        cues = value_of('doc.cues("BGM")', scenario_a)
        assert len(cues) == 1
        assert isinstance(cues[0], TaggedAction)
        assert cues[0].content.as_text() == "Song"

    def test_arithmetic(self, ctx):
        assert value_of("1 + 2 * 3", ctx) == 7

    def test_comparisons_and_boolean_ops(self, ctx):
        assert value_of("1 < 2 < 3 and not (2 > 3)", ctx) is True
        assert value_of("'' or 'fallback'", ctx) == "fallback"

    def test_conditional_expression(self, ctx):
        assert value_of("'many' if len(doc.scenes) > 1 else 'one'", ctx) == "many"

    def test_comprehension(self, ctx):
        assert value_of("[c.tag for c in doc.cues()]", ctx) == ["BGM", "SFX", "BGM"]

    def test_nested_comprehension_with_filter(self, ctx):
        expr = "[(s.name, c.tag) for s in doc.scenes for c in s.cues() if c.tag != 'SFX']"
        assert value_of(expr, ctx) == [("Lobby", "BGM"), ("Roof", "BGM")]

    def test_dict_and_set_comprehensions(self, ctx):
        assert value_of("{s.name: len(s.items) for s in doc.scenes}", ctx) == {"Lobby": 5, "Roof": 2}
        assert value_of("{c.tag for c in doc.cues()}", ctx) == {"BGM", "SFX"}

    def test_generator_expression(self, ctx):
        assert value_of("any(c.tag == 'SFX' for c in doc.cues())", ctx) is True

    def test_subscript_and_slice(self, ctx):
        assert value_of("doc.scenes[-1].name", ctx) == "Roof"
        assert value_of("[s.name for s in doc.scenes][:1]", ctx) == ["Lobby"]

    def test_f_string(self, ctx):
        assert value_of('f"{len(doc.scenes)} scenes in {doc.title!r}"', ctx) == "2 scenes in 'Night Shift'"

    def test_starred_arguments(self, ctx):
        assert value_of("max(*[3, 1, 2])", ctx) == 3

    def test_lazy_results_are_materialized(self, ctx):
        assert value_of("map(lambda s: s.display, doc.speakers())", ctx) == ["bob", "Alice"]

    def test_nested_lazy_results_are_materialized(self, ctx):
        assert value_of("[map(lambda s: s.name, doc.scenes)]", ctx) == [["Lobby", "Roof"]]
        assert value_of("{'n': filter(None, [0, 1])}", ctx) == {"n": [1]}
        assert value_of("(zip([1], [2]),)", ctx) == ([(1, 2)],)

    def test_lambda_keeps_source(self, ctx):
        fn = value_of("lambda s:  s.name", ctx)
        assert isinstance(fn, QueryFunction)
        assert fn.source == "lambda s:  s.name"

    def test_lambda_defaults(self, ctx):
        assert value_of("(lambda a, b=10: a + b)(1)", ctx) == 11


# ── Context bindings ─────────────────────────────────────────────────────────


class TestContext:
    def test_is_predicate(self, ctx):
        speakers = value_of("filter(is_(Speaker), doc.items())", ctx)
        assert [s.referent for s in speakers] == ["bob", "Alice"]

    def test_is_by_name(self, ctx):
        assert value_of("len(list(filter(is_('TaggedAction'), doc.items())))", ctx) == 3

    def test_to_items(self, ctx):
        assert value_of("len(to_items(doc.scenes[1]))", ctx) == 2

    def test_alphabetic_sort(self, ctx):
        names = value_of("[s.display for s in sorted(doc.speakers(), key=by(alphabetic))]", ctx)
        assert names == ["Alice", "bob"]

    def test_constructors(self, ctx):
        assert value_of('RichText.plain("x").as_text()', ctx) == "x"

    def test_alphabetic_is_case_insensitive(self):
        assert alphabetic("apple", "Banana") == -1
        assert alphabetic("B", "b") == 0
        assert alphabetic("c", "A") == 1

    def test_is_matches_subclasses(self):
        speaker = Speaker(from_=0, to=1, referent="x")
        assert is_(Speaker)(speaker)
        assert is_("Reference")(speaker)
        assert not is_("TaggedAction")(speaker)


# ── Faults ───────────────────────────────────────────────────────────────────


class TestFaults:
    def test_syntax_error(self, ctx):
        assert diagnostic_of("doc.(", ctx).startswith("SyntaxError:")

    def test_statements_are_rejected(self, ctx):
        assert diagnostic_of("x = 1", ctx).startswith("SyntaxError:")

    def test_empty_expression(self, ctx):
        assert diagnostic_of("   ", ctx) == "QuerySyntaxError: empty expression"

    def test_unknown_name(self, ctx):
        assert diagnostic_of("nope", ctx) == "NameError: name 'nope' is not defined"

    def test_runtime_error(self, ctx):
        assert diagnostic_of("1 / 0", ctx) == "ZeroDivisionError: division by zero"

    def test_lambda_arity(self, ctx):
        assert diagnostic_of("(lambda a: a)(1, 2)", ctx).startswith("TypeError:")

    def test_document_is_immutable(self, ctx):
        assert diagnostic_of("doc.scenes.append(1)", ctx).startswith("AttributeError:")

    @pytest.mark.parametrize(
        "expression",
        [
            "__import__('os')",
            "doc.__class__",
            "doc.metadata._data",
            "'{0.__class__}'.format(doc)",
            "(x := 1)",
            "[x async for x in doc.scenes]",
            "RichText.register(dict)",
            "ActionLine.register(dict) and is_(ActionLine)(dict())",
        ],
    )
    def test_escape_hatches_are_closed(self, ctx, expression):
        diagnostic = diagnostic_of(expression, ctx)
        assert diagnostic.startswith(("QuerySyntaxError:", "SyntaxError:"))

    def test_runaway_recursion_is_contained(self, ctx):
        result = evaluate("(lambda f: f(f))(lambda f: f(f))", ctx)
        assert not result.success

    def test_nested_lazy_fault_is_captured(self, ctx):
        assert diagnostic_of("[map(lambda x: 1 / 0, [1])]", ctx) == "ZeroDivisionError: division by zero"
        assert diagnostic_of("{'k': (filter(lambda x: x.nope, [1]),)}", ctx).startswith("AttributeError:")

    def test_abstract_classes_stay_untouched(self, ctx):
        evaluate("RichText.register(dict)", ctx)
        assert classify_value({"a": 1}) is ValueKind.MAPPING
        assert render(value_of("{'a': 1}", ctx)).children[0].label == "a"


class TestLimits:
    def test_step_limit(self, ctx):
        diagnostic = diagnostic_of("[a for a in 'x' * 1000]", ctx, max_steps=50)
        assert diagnostic == "QueryLimitExceeded: evaluation exceeded 50 steps"

    def test_time_limit(self, ctx):
        diagnostic = diagnostic_of(
            "[a for a in 'x' * 5000]", ctx, max_steps=10**9, timeout_seconds=1e-9
        )
        assert diagnostic.startswith("QueryLimitExceeded:")
        assert "second" in diagnostic

    def test_sequence_size_limit(self, ctx):
        diagnostic = diagnostic_of("'x' * 10**9", ctx)
        assert diagnostic.startswith("QueryLimitExceeded:")

    def test_default_limits_allow_normal_queries(self, ctx):
        assert len(value_of("[a for a in 'x' * 1000]", ctx)) == 1000

    def test_deadline_checked_after_each_call(self, ctx):
        diagnostic = diagnostic_of(
            "len(sorted('x' * 50000))", ctx, max_steps=10**9, timeout_seconds=1e-9
        )
        assert diagnostic.startswith("QueryLimitExceeded:")
        assert "second" in diagnostic

    def test_concatenation_size_limit(self, ctx):
        diagnostic = diagnostic_of("'x' * 60000 + 'x' * 60000", ctx)
        assert diagnostic == "QueryLimitExceeded: result larger than 100000 elements"

    def test_integer_power_size_limit(self, ctx):
        assert diagnostic_of("(10 ** 1000) ** 1000", ctx) == "QueryLimitExceeded: result too large"

    def test_sum_refuses_sequences(self, ctx):
        diagnostic = diagnostic_of("len(sum([[0] * 1500] * 1500, []))", ctx)
        assert diagnostic.startswith("TypeError: sum() cannot add sequences")
        assert value_of("sum([1, 2, 3])", ctx) == 6
        assert value_of("sum([len(s.items) for s in doc.scenes], 10)", ctx) == 17
