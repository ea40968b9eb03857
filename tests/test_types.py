"""Data model: ranges, metadata, references."""

import pytest

from novelscript.script.types import DocumentTextRange, Metadata, Reference


class TestRange:
    def test_inverted_range_is_rejected(self):
        with pytest.raises(ValueError):
            DocumentTextRange(from_=5, to=2)

    def test_empty_range(self):
        r = DocumentTextRange(from_=3, to=3)
        assert r.slice("abcdef") == ""
        assert not r.contains(3)

    def test_contains_is_half_open(self):
        r = DocumentTextRange(from_=1, to=3)
        assert r.contains(1)
        assert r.contains(2)
        assert not r.contains(3)


class TestMetadata:
    def test_last_write_wins_first_position_kept(self):
        meta = Metadata([("Title", "A"), ("Author", "B"), ("Title", "C")])
        assert list(meta) == ["Title", "Author"]
        assert meta["Title"] == "C"

    def test_to_block_round_trip(self):
        meta = Metadata([("Title", "A"), ("Author", "B")])
        assert meta.to_block() == "Title: A\nAuthor: B"

    def test_hashable_and_comparable(self):
        a = Metadata({"k": "v"})
        b = Metadata([("k", "v")])
        assert a == b
        assert hash(a) == hash(b)
        assert a == {"k": "v"}

    def test_order_matters_for_equality(self):
        assert Metadata([("a", "1"), ("b", "2")]) != Metadata([("b", "2"), ("a", "1")])

    def test_list_value(self):
        meta = Metadata({"Tags": "night,  rain , "})
        assert meta.list_value("Tags") == ["night", "rain"]
        assert meta.list_value("Missing") == []


class TestReference:
    def test_display_prefers_alias(self):
        assert Reference(from_=0, to=1, referent="Alice Liddell", alias="Alice").display == "Alice"
        assert Reference(from_=0, to=1, referent="Alice").display == "Alice"
