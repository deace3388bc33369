"""
Unit tests for column selection expressions.
"""

import pytest

from profiling_framework.core.exceptions import UsageError
from profiling_framework.utils.selection import parse_selection, tokenize, unique_indices

HEADERS = ["id", "first name", "last name", "city", "zip-code"]


@pytest.mark.unit
class TestParseSelection:
    """Test resolution of selection expressions to column indices."""

    @pytest.mark.parametrize("expression,expected", [
        ("1", [0]),
        ("1,3", [0, 2]),
        ("2-4", [1, 2, 3]),
        ("4-2", [3, 2, 1]),
        ("4-", [3, 4]),
        ("-2", [0, 1]),
        ("city", [3]),
        ("zip-code", [4]),
        ('"last name",1', [2, 0]),
        (" 1 , city ", [0, 3]),
    ])
    def test_expressions(self, expression, expected):
        assert parse_selection(expression, HEADERS) == expected

    @pytest.mark.parametrize("expression", [None, "", "   "])
    def test_empty_selects_nothing(self, expression):
        assert parse_selection(expression, HEADERS) == []

    def test_quoted_name_with_comma(self):
        headers = ["a", "b, c"]

        assert parse_selection('"b, c"', headers) == [1]

    def test_unknown_name(self):
        with pytest.raises(UsageError) as exc_info:
            parse_selection("country", HEADERS, option="--pattern-columns")

        assert exc_info.value.option == "--pattern-columns"
        assert "does not exist" in exc_info.value.message

    @pytest.mark.parametrize("expression", ["0", "6", "2-9"])
    def test_out_of_range(self, expression):
        with pytest.raises(UsageError, match="out of bounds"):
            parse_selection(expression, HEADERS)

    @pytest.mark.parametrize("expression", ["\u00b2", "1-\u00b2", "\u0663"])
    def test_non_ascii_digits_are_names(self, expression):
        with pytest.raises(UsageError, match="does not exist"):
            parse_selection(expression, HEADERS)

    def test_non_ascii_digit_header(self):
        assert parse_selection("\u00b2", ["x", "\u00b2"]) == [1]

    def test_empty_item(self):
        with pytest.raises(UsageError, match="Empty item"):
            parse_selection("1,,2", HEADERS)

    def test_unterminated_quote(self):
        with pytest.raises(UsageError, match="Unterminated quote"):
            parse_selection('"city', HEADERS)


@pytest.mark.unit
class TestTokenize:

    def test_doubled_quote_inside_quotes(self):
        assert tokenize('"say ""hi""",2') == [('say "hi"', True), ("2", False)]


@pytest.mark.unit
class TestUniqueIndices:

    def test_keeps_first_occurrence_order(self):
        assert unique_indices([3, 1, 3, 2, 1]) == [3, 1, 2]
