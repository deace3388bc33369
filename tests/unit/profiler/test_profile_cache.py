"""
Unit tests for profile cache orchestration and the cache codec.

Modification times are set explicitly so the tests do not depend on the
filesystem's timestamp resolution.
"""

import gzip
import os

import msgpack
import pytest

from profiling_framework.core.config import StatsOptions
from profiling_framework.core.exceptions import CacheCorruptionError, ProfileCacheError
from profiling_framework.profiler.cache_codec import (
    decode_records,
    encode_records,
    read_stats_options,
    stats_cache_path,
    stats_csv_path,
    stats_options_path,
)
from profiling_framework.profiler.column_profile import build_stat_index
from profiling_framework.profiler.profile_cache import ProfileCacheOrchestrator
from profiling_framework.profiler.statistics_engine import StatisticsEngine, StatsRun


@pytest.fixture
def data_csv(tmp_path):
    path = tmp_path / "data.csv"
    path.write_text("code,qty\nA,1\nB,2\nA,3\n")
    return str(path)


def age_input(input_path, seconds=10):
    """Make the input older than its cache."""
    cache_mtime = os.stat(stats_cache_path(input_path)).st_mtime
    os.utime(input_path, (cache_mtime - seconds, cache_mtime - seconds))


def touch_input(input_path, seconds=10):
    """Make the input newer than its cache."""
    cache_mtime = os.stat(stats_cache_path(input_path)).st_mtime
    os.utime(input_path, (cache_mtime + seconds, cache_mtime + seconds))


class CountingEngine(StatisticsEngine):
    """Statistics engine that records how often it ran."""

    def __init__(self, options=None):
        super().__init__(options)
        self.runs = 0

    def run(self, input_path):
        self.runs += 1
        return super().run(input_path)


class GarbageEngine(StatisticsEngine):
    """Statistics engine whose cache is never decodable."""

    def run(self, input_path):
        cache_path = stats_cache_path(input_path)
        cache_path.write_bytes(b"not a cache")
        return StatsRun(input_path, [], stats_csv_path(input_path), cache_path, 0.0)


@pytest.mark.unit
class TestCacheCodec:

    def test_paths_replace_extension(self, tmp_path):
        assert stats_cache_path(tmp_path / "data.csv") == tmp_path.resolve() / "data.stats.csv.bin.sz"
        assert stats_csv_path(tmp_path / "data.csv") == tmp_path.resolve() / "data.stats.csv"
        assert stats_options_path(tmp_path / "data.csv") == tmp_path.resolve() / "data.stats.csv.json"

    def test_unreadable_options_record(self, tmp_path):
        path = tmp_path / "data.stats.csv.json"
        assert read_stats_options(path) is None

        path.write_text("[1, 2")
        assert read_stats_options(path) is None

        path.write_text("[1, 2]")
        assert read_stats_options(path) is None

    def test_decode_encoded_records(self):
        records = [["Integer", "1", "3", None], ["String", "a", "b", "2"]]

        assert decode_records(encode_records(records)) == records

    def test_garbage_is_corruption(self):
        with pytest.raises(CacheCorruptionError):
            decode_records(b"garbage")

    def test_wrong_layout_is_corruption(self):
        payload = gzip.compress(msgpack.packb({"type": "Integer"}))

        with pytest.raises(CacheCorruptionError, match="Unexpected profile cache layout"):
            decode_records(payload)

    def test_stat_index_skips_field_column(self):
        index = build_stat_index(["field", "type", "min", "cardinality"])

        assert index == {"type": 0, "min": 1, "cardinality": 2}


@pytest.mark.unit
class TestProfileCacheOrchestrator:
    """Test cache reuse, staleness and recovery."""

    def test_first_load_regenerates(self, data_csv):
        profiles = ProfileCacheOrchestrator().load(data_csv)

        assert profiles.regenerated
        assert profiles.headers == ["code", "qty"]
        assert profiles.cardinality(0) == 2
        assert profiles.stat(1, "type") == "Integer"
        assert stats_cache_path(data_csv).exists()

    def test_current_cache_reused(self, data_csv):
        engine = CountingEngine()
        ProfileCacheOrchestrator(engine=engine).load(data_csv)
        age_input(data_csv)

        profiles = ProfileCacheOrchestrator(engine=engine).load(data_csv)

        assert not profiles.regenerated
        assert engine.runs == 1
        assert profiles.stat(0, "min") == "A"

    def test_touched_input_forces_regeneration(self, data_csv):
        engine = CountingEngine()
        ProfileCacheOrchestrator(engine=engine).load(data_csv)
        touch_input(data_csv)

        profiles = ProfileCacheOrchestrator(engine=engine).load(data_csv)

        assert profiles.regenerated
        assert engine.runs == 2

    def test_equal_mtimes_are_stale(self, data_csv):
        ProfileCacheOrchestrator().load(data_csv)
        cache_mtime_ns = os.stat(stats_cache_path(data_csv)).st_mtime_ns
        os.utime(data_csv, ns=(cache_mtime_ns, cache_mtime_ns))

        assert not ProfileCacheOrchestrator.cache_is_current(data_csv)

    def test_force_regenerates(self, data_csv):
        engine = CountingEngine(StatsOptions(force=True))
        ProfileCacheOrchestrator(engine.options, engine).load(data_csv)
        age_input(data_csv)

        profiles = ProfileCacheOrchestrator(engine.options, engine).load(data_csv)

        assert profiles.regenerated
        assert engine.runs == 2

    def test_corrupt_cache_regenerated(self, data_csv):
        ProfileCacheOrchestrator().load(data_csv)
        stats_cache_path(data_csv).write_bytes(b"\x00corrupt")
        age_input(data_csv)

        profiles = ProfileCacheOrchestrator().load(data_csv)

        assert profiles.regenerated
        assert profiles.cardinality(0) == 2

    def test_missing_stats_table_regenerated(self, data_csv):
        ProfileCacheOrchestrator().load(data_csv)
        stats_csv_path(data_csv).unlink()
        age_input(data_csv)

        profiles = ProfileCacheOrchestrator().load(data_csv)

        assert profiles.regenerated
        assert stats_csv_path(data_csv).exists()

    def test_options_recorded_next_to_cache(self, data_csv):
        options = StatsOptions(prefer_dmy=True, dates_whitelist="all")

        ProfileCacheOrchestrator(options).load(data_csv)

        assert read_stats_options(stats_options_path(data_csv)) == options.cache_key()

    @pytest.mark.parametrize("changed", [
        {"infer_dates": False},
        {"dates_whitelist": "all"},
        {"prefer_dmy": True},
        {"cardinality": False},
    ])
    def test_cache_from_other_options_regenerated(self, data_csv, changed):
        ProfileCacheOrchestrator(StatsOptions(**changed)).load(data_csv)
        age_input(data_csv)
        engine = CountingEngine()

        profiles = ProfileCacheOrchestrator(engine=engine).load(data_csv)

        assert profiles.regenerated
        assert engine.runs == 1
        assert read_stats_options(stats_options_path(data_csv)) == StatsOptions().cache_key()

    def test_missing_options_record_regenerated(self, data_csv):
        ProfileCacheOrchestrator().load(data_csv)
        stats_options_path(data_csv).unlink()
        age_input(data_csv)

        profiles = ProfileCacheOrchestrator().load(data_csv)

        assert profiles.regenerated

    def test_force_is_not_an_option_mismatch(self, data_csv):
        ProfileCacheOrchestrator(StatsOptions(force=True)).load(data_csv)
        age_input(data_csv)

        assert not ProfileCacheOrchestrator().load(data_csv).regenerated

    def test_undecodable_regeneration_is_fatal(self, data_csv):
        orchestrator = ProfileCacheOrchestrator(engine=GarbageEngine())

        with pytest.raises(ProfileCacheError):
            orchestrator.load(data_csv)

    def test_missing_input(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ProfileCacheOrchestrator().load(str(tmp_path / "missing.csv"))
