"""Line addressing helpers."""

import pytest

from novelscript.script.lines import (
    iter_lines,
    line_at,
    line_count,
    line_number,
    location_to_offset,
)


TEXT = "one\ntwo\r\nthree"


class TestLines:
    def test_iter_all(self):
        assert [line.text for line in iter_lines(TEXT)] == ["one", "two", "three"]

    def test_crlf_is_stripped_from_text(self):
        two = line_number(TEXT, 2)
        assert two.text == "two"
        assert TEXT[two.start:two.end] == "two\r"

    def test_iter_from_middle_of_line(self):
        assert [line.number for line in iter_lines(TEXT, 5, 5)] == [2]

    def test_trailing_newline_yields_empty_line(self):
        assert [line.text for line in iter_lines("a\n")] == ["a", ""]

    def test_line_at(self):
        assert line_at(TEXT, 0).number == 1
        assert line_at(TEXT, 4).number == 2
        assert line_at(TEXT, 999).number == 3

    def test_line_number_out_of_range(self):
        with pytest.raises(IndexError):
            line_number(TEXT, 4)
        with pytest.raises(IndexError):
            line_number(TEXT, 0)

    def test_line_count(self):
        assert line_count(TEXT) == 3
        assert line_count("") == 1

    def test_location_to_offset(self):
        assert location_to_offset(TEXT, 1, 2) == 6
        assert location_to_offset(TEXT, 0, 99) == 3
