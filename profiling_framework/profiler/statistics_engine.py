"""
Polars-based column statistics engine.

Reads every column as text with the multithreaded Polars CSV reader and
computes, per column, the inferred type, min/max, min/max length, null count
and cardinality using vectorized casts instead of per-value Python loops.

Type inference order (first match wins):
    NULL      - every value is empty
    Integer   - every non-empty value casts to Int64
    Float     - every non-empty value casts to a finite Float64
    Date      - every value parses with one date format (shortlisted columns only)
    DateTime  - every value parses with one datetime format (shortlisted columns only)
    String    - everything else

A run always writes a fresh stats table, options record and profile cache,
which callers then load back from disk.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import polars as pl

from profiling_framework.core.config import StatsOptions, resolve_delimiter
from profiling_framework.core.constants import (
    DATES_WHITELIST_ALL,
    STATS_HEADERS,
    TYPE_DATE,
    TYPE_DATETIME,
    TYPE_FLOAT,
    TYPE_INTEGER,
    TYPE_NULL,
    TYPE_STRING,
)
from profiling_framework.core.exceptions import DataLoadError
from profiling_framework.loaders.csv_reader import CSVRecordReader, to_text
from profiling_framework.loaders.input_source import has_blank_lines
from profiling_framework.profiler.cache_codec import (
    stats_cache_path,
    stats_csv_path,
    stats_options_path,
    write_cache,
    write_stats_csv,
    write_stats_options,
)
from profiling_framework.profiler.column_profile import ColumnProfile

logger = logging.getLogger(__name__)

ISO_DATE_FORMATS = ["%Y-%m-%d", "%Y/%m/%d"]
MDY_DATE_FORMATS = ["%m/%d/%Y", "%m-%d-%Y"]
DMY_DATE_FORMATS = ["%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y"]

ISO_DATETIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S%.f",
    "%Y-%m-%d %H:%M:%S%.f",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S%.fZ",
]
MDY_DATETIME_FORMATS = ["%m/%d/%Y %H:%M:%S", "%m/%d/%Y %H:%M"]
DMY_DATETIME_FORMATS = ["%d/%m/%Y %H:%M:%S", "%d/%m/%Y %H:%M"]


@dataclass
class StatsRun:
    """Outcome of one statistics run: the profiles and where they were written."""
    input_path: str
    profiles: List[ColumnProfile]
    stats_csv_path: Path
    cache_path: Path
    elapsed_seconds: float


class StatisticsEngine:
    """
    Compute column profiles for a CSV file.

    Args:
        options: Statistics options (cardinality, date inference, locale, ...)
    """

    def __init__(self, options: Optional[StatsOptions] = None):
        self.options = options or StatsOptions()
        self._date_patterns = self._parse_whitelist(self.options.dates_whitelist)

        if self.options.prefer_dmy:
            self.date_formats = ISO_DATE_FORMATS + DMY_DATE_FORMATS + MDY_DATE_FORMATS
            self.datetime_formats = ISO_DATETIME_FORMATS + DMY_DATETIME_FORMATS + MDY_DATETIME_FORMATS
        else:
            self.date_formats = ISO_DATE_FORMATS + MDY_DATE_FORMATS + DMY_DATE_FORMATS
            self.datetime_formats = ISO_DATETIME_FORMATS + MDY_DATETIME_FORMATS + DMY_DATETIME_FORMATS

    @staticmethod
    def stat_headers() -> List[str]:
        """Header row of the stats table this engine writes."""
        return list(STATS_HEADERS)

    @staticmethod
    def _parse_whitelist(whitelist: str) -> Optional[List[str]]:
        # None means every column is a date candidate
        if whitelist.strip().lower() == DATES_WHITELIST_ALL:
            return None
        return [p.strip().lower() for p in whitelist.split(",") if p.strip()]

    def is_date_candidate(self, column: str) -> bool:
        if not self.options.infer_dates:
            return False
        if self._date_patterns is None:
            return True
        name = column.lower()
        return any(pattern in name for pattern in self._date_patterns)

    def _read(self, input_path: str) -> pl.DataFrame:
        delimiter = resolve_delimiter(self.options.delimiter, input_path)
        try:
            df = pl.read_csv(
                input_path,
                separator=delimiter,
                has_header=not self.options.no_headers,
                infer_schema_length=0,  # every column as text
                encoding="utf8",
            )
        except FileNotFoundError:
            raise FileNotFoundError(f"CSV file not found: {input_path}")
        except pl.exceptions.NoDataError:
            return pl.DataFrame()
        except pl.exceptions.PolarsError as e:
            if "utf-8" in str(e).lower() or "utf8" in str(e).lower():
                self._locate_encoding_error(input_path)
            raise DataLoadError(f"Error reading {input_path} for statistics: {e}", str(input_path), original_exception=e)

        if df.width and has_blank_lines(input_path):
            # empty lines come back as all-null rows; the csv reader skips them
            df = df.filter(~pl.all_horizontal(pl.all().is_null()))

        if self.options.no_headers:
            df = df.rename({old: str(i + 1) for i, old in enumerate(df.columns)})
        return df

    def _locate_encoding_error(self, input_path: str) -> None:
        """Rescan with the csv reader so the error carries the offending bytes."""
        with CSVRecordReader(input_path, self.options.delimiter, self.options.no_headers) as reader:
            for name in reader.headers:
                to_text(name, reader.display_path, 1)
            for record in reader:
                for value in record:
                    to_text(value, reader.display_path, reader.line_number)

    def _infer(self, name: str, values: pl.Series) -> Tuple[str, Optional[str], Optional[str]]:
        """Return (type, min, max) for the non-null values of a column."""
        ints = values.cast(pl.Int64, strict=False)
        if ints.null_count() == 0:
            return TYPE_INTEGER, str(ints.min()), str(ints.max())

        floats = values.cast(pl.Float64, strict=False)
        if floats.null_count() == 0 and floats.is_finite().all():
            return TYPE_FLOAT, repr(float(floats.min())), repr(float(floats.max()))

        if self.is_date_candidate(name):
            for dtype, formats, type_name in ((pl.Date, self.date_formats, TYPE_DATE),
                                              (pl.Datetime, self.datetime_formats, TYPE_DATETIME)):
                for fmt in formats:
                    try:
                        parsed = values.str.strptime(dtype, fmt, strict=False)
                    except pl.exceptions.PolarsError:
                        continue
                    if parsed.null_count() == 0:
                        logger.debug(f"{name}: {type_name} with format {fmt}")
                        return type_name, values[parsed.arg_min()], values[parsed.arg_max()]

        return TYPE_STRING, values.min(), values.max()

    def profile_series(self, name: str, series: pl.Series) -> ColumnProfile:
        null_count = series.null_count()
        cardinality = series.n_unique() if self.options.cardinality else 0
        values = series.drop_nulls()

        if values.len() == 0:
            return ColumnProfile(name=name, type=TYPE_NULL, null_count=null_count, cardinality=cardinality)

        lengths = values.str.len_chars()
        col_type, min_value, max_value = self._infer(name, values)

        return ColumnProfile(
            name=name,
            type=col_type,
            min_value=min_value,
            max_value=max_value,
            min_length=str(lengths.min()),
            max_length=str(lengths.max()),
            null_count=null_count,
            cardinality=cardinality,
        )

    def compute(self, input_path: str) -> List[ColumnProfile]:
        """Profile every column of `input_path`, in header order."""
        df = self._read(input_path)
        return [self.profile_series(name, df.get_column(name)) for name in df.columns]

    def run(self, input_path: str) -> StatsRun:
        """Compute profiles and write a fresh stats table and profile cache."""
        start_time = time.time()
        logger.info(f"Computing statistics for {input_path}")

        profiles = self.compute(input_path)
        csv_path = stats_csv_path(input_path)
        cache_path = stats_cache_path(input_path)

        write_stats_csv(csv_path, self.stat_headers(), profiles)
        write_stats_options(stats_options_path(input_path), self.options.cache_key())
        write_cache(cache_path, [profile.to_record() for profile in profiles])

        elapsed = time.time() - start_time
        logger.info(f"Statistics for {len(profiles)} columns written in {elapsed:.2f} seconds")
        return StatsRun(str(input_path), profiles, csv_path, cache_path, round(elapsed, 2))
