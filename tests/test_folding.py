"""Fold ranges for scenes and property runs."""

from novelscript.script.folding import fold_ranges, property_fold, scene_fold


TEXT = """Title: T
Author: A

== One ==
Summary: s
Tags: a, b
Line.
== Two ==
Last.
"""


class TestSceneFold:
    def test_folds_to_next_header(self):
        start, end = scene_fold(TEXT, 4)
        assert TEXT[start:end] == "\nSummary: s\nTags: a, b\nLine."

    def test_last_scene_folds_to_end(self):
        start, end = scene_fold(TEXT, 8)
        assert TEXT[start:end] == "\nLast.\n"

    def test_not_a_header(self):
        assert scene_fold(TEXT, 7) is None

    def test_empty_scene_has_no_fold(self):
        assert scene_fold("== A ==", 1) is None


class TestPropertyFold:
    def test_run_is_anchored_on_first_line(self):
        start, end = property_fold(TEXT, 1)
        assert TEXT[start:end] == "Title: T\nAuthor: A"
        assert property_fold(TEXT, 2) is None

    def test_single_property_does_not_fold(self):
        assert property_fold("Title: T\n\nx", 1) is None


def test_fold_ranges_in_source_order():
    numbers = [number for number, _ in fold_ranges(TEXT)]
    assert numbers == [1, 4, 5, 8]


class TestPropertyFoldCase:
    def test_lowercase_line_may_start_a_run(self):
        text = "note: x\nKey: y\n"
        start, end = property_fold(text, 1)
        assert text[start:end] == "note: x\nKey: y"

    def test_lowercase_neighbour_does_not_join(self):
        assert property_fold("Key: y\nnote: x\n", 1) is None

    def test_lowercase_previous_line_does_not_suppress(self):
        text = "note: a\nKey: b\nMore: c\n"
        start, end = property_fold(text, 2)
        assert text[start:end] == "Key: b\nMore: c"
