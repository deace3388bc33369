"""
Profile cache orchestration.

Returns the column profiles of an input, either from the persisted profile
cache or by regenerating it:

1. The cache lives at a path derived from the input (extension replaced by
   `.stats.csv.bin.sz`) and is current only if it was modified strictly
   after the input and was computed with the same profiling options
   (recorded in `.stats.csv.json`).
2. A current cache is decoded unless a forced recompute was requested.
   Decode failures, a missing/unreadable stats table or a record count that
   no longer matches the header all count as corruption and trigger
   regeneration instead of an error.
3. Regeneration runs the statistics engine, which always writes a fresh
   cache, and the cache is loaded back from disk. Failing to decode that
   fresh cache is fatal.
4. The statistic-name -> record-offset map comes from the companion stats
   table when the cache was loaded from disk, or from the engine's own
   header when it was just regenerated.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from profiling_framework.core.config import StatsOptions
from profiling_framework.core.exceptions import CacheCorruptionError, ProfileCacheError
from profiling_framework.loaders.csv_reader import read_headers
from profiling_framework.profiler.cache_codec import (
    read_cache,
    read_stats_headers,
    read_stats_options,
    stats_cache_path,
    stats_csv_path,
    stats_options_path,
)
from profiling_framework.profiler.column_profile import ProfileRecord, ProfileSet, build_stat_index
from profiling_framework.profiler.statistics_engine import StatisticsEngine

logger = logging.getLogger(__name__)

REQUIRED_STATS = ("type", "min", "max", "min_length", "max_length", "nullcount", "cardinality")


class ProfileCacheOrchestrator:
    """
    Obtain a ProfileSet for an input, from cache or by regeneration.

    Example:
        >>> orchestrator = ProfileCacheOrchestrator(StatsOptions(prefer_dmy=True))
        >>> profiles = orchestrator.load("data.csv")
        >>> profiles.cardinality(0)
        12
    """

    def __init__(self, options: Optional[StatsOptions] = None, engine: Optional[StatisticsEngine] = None):
        self.options = options or StatsOptions()
        self.engine = engine or StatisticsEngine(self.options)

    @staticmethod
    def cache_is_current(input_path: str) -> bool:
        """True if the cache exists and is strictly newer than the input."""
        cache_path = stats_cache_path(input_path)
        if not cache_path.exists():
            logger.info(f"Stats cache does not exist: {cache_path}")
            return False

        if os.stat(cache_path).st_mtime_ns > os.stat(input_path).st_mtime_ns:
            logger.info("Valid stats cache found")
            return True

        logger.info("Stats cache is older than input file. Regenerating stats cache.")
        return False

    def options_match(self, input_path: str) -> bool:
        """True if the cache was computed with this orchestrator's options."""
        if read_stats_options(stats_options_path(input_path)) == self.options.cache_key():
            return True
        logger.info("Stats cache was computed with different options. Regenerating stats cache.")
        return False

    def _load_from_disk(self, input_path: str, column_count: int) -> Tuple[List[ProfileRecord], List[str]]:
        records = read_cache(stats_cache_path(input_path))
        stats_headers = read_stats_headers(stats_csv_path(input_path))
        self._check_layout(input_path, records, stats_headers, column_count)
        return records, stats_headers

    @staticmethod
    def _check_layout(input_path: str, records: List[ProfileRecord], stats_headers: List[str], column_count: int) -> None:
        cache_path = str(stats_cache_path(input_path))
        missing = [name for name in REQUIRED_STATS if name not in stats_headers]
        if missing:
            raise CacheCorruptionError(f"Stats table lacks statistics: {', '.join(missing)}", cache_path)
        if len(records) != column_count:
            raise CacheCorruptionError(
                f"Profile cache has {len(records)} records but input has {column_count} columns", cache_path
            )
        width = len(stats_headers) - 1
        if any(len(record) != width for record in records):
            raise CacheCorruptionError(f"Profile records do not match the {width} stats columns", cache_path)

    def _regenerate(self, input_path: str, column_count: int) -> Tuple[List[ProfileRecord], List[str]]:
        run = self.engine.run(input_path)
        try:
            records = read_cache(run.cache_path)
            stats_headers = self.engine.stat_headers()
            self._check_layout(input_path, records, stats_headers, column_count)
        except CacheCorruptionError as e:
            raise ProfileCacheError(
                f"Error reading regenerated stats cache: {e.message}. Schema generation aborted.",
                str(run.cache_path),
                original_exception=e,
            )
        return records, stats_headers

    def load(self, input_path: str) -> ProfileSet:
        """
        Return profiles aligned to the input's header.

        Raises:
            ProfileCacheError: If regeneration does not yield a decodable cache
            DataLoadError: If the input itself cannot be read
        """
        input_path = str(input_path)
        if not Path(input_path).exists():
            raise FileNotFoundError(f"CSV file not found: {input_path}")

        headers = read_headers(input_path, self.options.delimiter, self.options.no_headers)

        loaded = None
        if not self.options.force and self.cache_is_current(input_path) and self.options_match(input_path):
            try:
                loaded = self._load_from_disk(input_path, len(headers))
            except CacheCorruptionError as e:
                logger.warning(f"Error reading stats cache: {e.message}. Regenerating stats cache.")

        regenerated = loaded is None
        records, stats_headers = loaded if loaded is not None else self._regenerate(input_path, len(headers))

        stat_index = build_stat_index(stats_headers)
        if logger.isEnabledFor(logging.DEBUG):
            for name, record in zip(headers, records):
                logger.debug(f"stats[{name}]: {record}")

        return ProfileSet(headers, records, stat_index, regenerated=regenerated)
