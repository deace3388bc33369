"""
Unit tests for the frequency engine, sequential and index-sharded.
"""

from collections import Counter

import pytest

from profiling_framework.core.config import FrequencyOptions
from profiling_framework.core.exceptions import UsageError
from profiling_framework.loaders.index import RecordIndex
from profiling_framework.profiler.frequency import FrequencyEngine, FrequencyTable, njobs


@pytest.fixture
def colors_csv(tmp_path):
    path = tmp_path / "colors.csv"
    path.write_text(
        "color,size\n"
        "red,S\n"
        "blue,M\n"
        "red,L\n"
        " Red ,S\n"
        ",M\n"
        "green,S\n"
    )
    return str(path)


@pytest.mark.unit
class TestFrequencyTable:

    def test_ranking_breaks_ties_by_value(self):
        table = FrequencyTable("c", Counter({"b": 2, "a": 2, "z": 5, "c": 1}))

        assert table.most_frequent() == [("z", 5), ("a", 2), ("b", 2), ("c", 1)]
        assert table.most_frequent(2) == [("z", 5), ("a", 2)]


@pytest.mark.unit
class TestFrequencyEngine:
    """Test value counting over a selection."""

    def test_trims_and_skips_empty(self, colors_csv):
        names, tables = FrequencyEngine(FrequencyOptions(select="1")).tables(colors_csv)

        assert names == ["color"]
        assert dict(tables[0].counts) == {"red": 2, "blue": 1, "Red": 1, "green": 1}

    def test_ignore_case(self, colors_csv):
        _, tables = FrequencyEngine(FrequencyOptions(select="color", ignore_case=True)).tables(colors_csv)

        assert tables[0].most_frequent() == [("red", 3), ("blue", 1), ("green", 1)]

    def test_no_trim(self, colors_csv):
        _, tables = FrequencyEngine(FrequencyOptions(select="1", no_trim=True)).tables(colors_csv)

        assert " Red " in tables[0].counts

    def test_multiple_columns(self, colors_csv):
        names, tables = FrequencyEngine(FrequencyOptions(select="2,1")).tables(colors_csv)

        assert names == ["size", "color"]
        assert tables[0].counts["S"] == 3

    def test_empty_selection(self, colors_csv):
        assert FrequencyEngine(FrequencyOptions(select="")).tables(colors_csv) == ([], [])

    def test_invalid_selection(self, colors_csv):
        with pytest.raises(UsageError):
            FrequencyEngine(FrequencyOptions(select="weight")).tables(colors_csv)

    def test_no_headers(self, tmp_path):
        path = tmp_path / "raw.csv"
        path.write_text("x,1\ny,2\nx,3\n")

        names, tables = FrequencyEngine(FrequencyOptions(select="1", no_headers=True)).tables(str(path))

        assert names == ["1"]
        assert dict(tables[0].counts) == {"x": 2, "y": 1}


@pytest.mark.unit
class TestParallelFrequency:
    """Test that the index-sharded pass matches the sequential pass."""

    @pytest.mark.parametrize("jobs", [1, 2, 3, 16])
    def test_matches_sequential(self, colors_csv, jobs):
        options = FrequencyOptions(select="1,2", jobs=jobs)
        engine = FrequencyEngine(options)
        sequential = engine.sequential_counts(colors_csv, [0, 1])

        RecordIndex.create(colors_csv)
        _, tables = engine.tables(colors_csv)

        assert [table.counts for table in tables] == sequential

    def test_quoted_newlines_in_shards(self, tmp_path):
        path = tmp_path / "notes.csv"
        path.write_text('id,note\n1,"a\nb"\n2,plain\n3,"a\nb"\n4,plain\n')
        RecordIndex.create(str(path))

        _, tables = FrequencyEngine(FrequencyOptions(select="2", jobs=4)).tables(str(path))

        assert dict(tables[0].counts) == {"a\nb": 2, "plain": 2}

    def test_parallel_no_headers_includes_first_row(self, tmp_path):
        path = tmp_path / "raw.csv"
        path.write_text("x\ny\nx\n")
        RecordIndex.create(str(path))

        _, tables = FrequencyEngine(FrequencyOptions(select="1", no_headers=True, jobs=2)).tables(str(path))

        assert dict(tables[0].counts) == {"x": 2, "y": 1}

    @pytest.mark.parametrize("jobs", [2, 3])
    def test_blank_and_hash_lines_match_sequential(self, tmp_path, jobs):
        path = tmp_path / "tags.csv"
        path.write_text("id,tag\n1,a\n#note,b\n\n2,a\n\n\n3,c\n4,a\n")
        engine = FrequencyEngine(FrequencyOptions(select="1,2", jobs=jobs))
        sequential = engine.sequential_counts(str(path), [0, 1])

        RecordIndex.create(str(path))
        _, tables = engine.tables(str(path))

        assert [table.counts for table in tables] == sequential
        assert dict(tables[1].counts) == {"a": 3, "b": 1, "c": 1}


@pytest.mark.unit
class TestNjobs:

    def test_explicit(self):
        assert njobs(3) == 3

    def test_default_is_positive(self):
        assert njobs(None) >= 1
        assert njobs(0) >= 1
