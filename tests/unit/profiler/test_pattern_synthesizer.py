"""
Unit tests for pattern synthesis.
"""

import re

import pytest

from profiling_framework.core.config import SchemaOptions
from profiling_framework.core.exceptions import UsageError
from profiling_framework.profiler.pattern_synthesizer import (
    PatternSynthesizer,
    fold_repetitions,
    should_emit_pattern_constraint,
    synthesize_pattern,
)


@pytest.fixture
def accounts_csv(tmp_path):
    path = tmp_path / "accounts.csv"
    path.write_text(
        "id,code,region\n"
        "1,AB-123,north\n"
        "2,AB-456,south\n"
        "3,XY-9,north\n"
        "4,AB-123,east\n"
    )
    return str(path)


STRING_PROPERTIES = {
    "id": {"type": ["integer"]},
    "code": {"type": ["string"]},
    "region": {"type": ["string"]},
}


@pytest.mark.unit
class TestFoldRepetitions:
    """Test repetition folding of a single value."""

    @pytest.mark.parametrize("value,expected", [
        ("abc", ["a", "b", "c"]),
        ("aaa", ["a{3}"]),
        ("abab", ["(?:ab){2}"]),
        ("xaay", ["x", "a{2}", "y"]),
        ("a.b", ["a", "\\.", "b"]),
        ("", []),
    ])
    def test_tokens(self, value, expected):
        assert fold_repetitions(value) == expected

    def test_tie_prefers_shortest_unit(self):
        assert fold_repetitions("aaaa") == ["a{4}"]

    def test_nested_repetition(self):
        assert fold_repetitions("aabaab") == ["(?:a{2}b){2}"]


@pytest.mark.unit
class TestSynthesizePattern:
    """Test regex synthesis over value sets."""

    def test_matches_every_value(self):
        values = ["AB-123", "AB-456", "XY-9", "a.b", "(x)", "1000"]

        pattern = synthesize_pattern(values)

        for value in values:
            assert re.fullmatch(pattern, value), value

    def test_rejects_unseen_value(self):
        pattern = synthesize_pattern(["AB-123", "AB-456"])

        assert not re.fullmatch(pattern, "AB-789")
        assert not re.fullmatch(pattern, "AB-12")

    def test_prefix_value_makes_rest_optional(self):
        assert synthesize_pattern(["a", "ab"]) == "^a(?:b)?$"

    def test_deterministic(self):
        assert synthesize_pattern(["x1", "y2", "x3"]) == synthesize_pattern(["x3", "y2", "x1", "x1"])

    def test_anchored(self):
        pattern = synthesize_pattern(["abc"])

        assert pattern == "^abc$"

    def test_empty_value_allowed(self):
        pattern = synthesize_pattern(["", "x"])

        assert re.fullmatch(pattern, "")
        assert re.fullmatch(pattern, "x")


@pytest.mark.unit
class TestPatternEligibility:

    def test_string_without_enum(self):
        assert should_emit_pattern_constraint({"type": ["string", "null"]})

    def test_enum_blocks_pattern(self):
        assert not should_emit_pattern_constraint({"type": ["string"], "enum": ["a"]})

    def test_non_string(self):
        assert not should_emit_pattern_constraint({"type": ["integer"]})


@pytest.mark.unit
class TestPatternSynthesizer:
    """Test the selection guard and the file scan."""

    @pytest.mark.parametrize("selection", ["", "1,2,3", "1-", "3,2,1,2", None])
    def test_empty_or_full_selection_yields_nothing(self, accounts_csv, selection):
        synthesizer = PatternSynthesizer(SchemaOptions(pattern_columns=selection))

        assert synthesizer.synthesize(accounts_csv, STRING_PROPERTIES) == {}

    def test_partial_selection(self, accounts_csv):
        synthesizer = PatternSynthesizer(SchemaOptions(pattern_columns="code"))

        patterns = synthesizer.synthesize(accounts_csv, STRING_PROPERTIES)

        assert list(patterns) == ["code"]
        for value in ("AB-123", "AB-456", "XY-9"):
            assert re.fullmatch(patterns["code"], value)

    def test_explicit_selection_argument(self, accounts_csv):
        patterns = PatternSynthesizer().synthesize(accounts_csv, STRING_PROPERTIES, "2,3")

        assert sorted(patterns) == ["code", "region"]

    def test_non_string_columns_skipped(self, accounts_csv):
        patterns = PatternSynthesizer().synthesize(accounts_csv, STRING_PROPERTIES, "1,2")

        assert list(patterns) == ["code"]

    def test_enum_columns_skipped(self, accounts_csv):
        properties = dict(STRING_PROPERTIES, region={"type": ["string"], "enum": ["east", "north", "south"]})

        patterns = PatternSynthesizer().synthesize(accounts_csv, properties, "3")

        assert patterns == {}

    def test_unknown_column(self, accounts_csv):
        with pytest.raises(UsageError) as exc_info:
            PatternSynthesizer().synthesize(accounts_csv, STRING_PROPERTIES, "country")

        assert exc_info.value.option == "--pattern-columns"
