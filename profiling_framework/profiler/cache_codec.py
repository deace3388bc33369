"""
Binary layout and file I/O for the profile cache.

The cache is a msgpack array of profile records (each an array of
nullable strings) compressed with gzip. The options the profiles were
computed with are kept beside it as JSON. Every artifact is written to a
sibling temp file and atomically renamed into place, so concurrent
regenerations never leave a torn file behind.
"""

import csv
import gzip
import io
import json
import logging
import os
import tempfile
import zlib
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import msgpack

from profiling_framework.core.constants import STATS_CACHE_SUFFIX, STATS_CSV_SUFFIX, STATS_OPTIONS_SUFFIX
from profiling_framework.core.exceptions import CacheCorruptionError
from profiling_framework.profiler.column_profile import ColumnProfile, ProfileRecord

logger = logging.getLogger(__name__)

DECODE_ERRORS = (OSError, EOFError, zlib.error, ValueError, TypeError, msgpack.exceptions.UnpackException)


def stats_cache_path(input_path) -> Path:
    """data.csv -> /abs/path/data.stats.csv.bin.sz"""
    return Path(input_path).resolve().with_suffix(STATS_CACHE_SUFFIX)


def stats_csv_path(input_path) -> Path:
    """data.csv -> /abs/path/data.stats.csv"""
    return Path(input_path).resolve().with_suffix(STATS_CSV_SUFFIX)


def stats_options_path(input_path) -> Path:
    """data.csv -> /abs/path/data.stats.csv.json"""
    return Path(input_path).resolve().with_suffix(STATS_OPTIONS_SUFFIX)


def encode_records(records: Sequence[ProfileRecord]) -> bytes:
    return gzip.compress(msgpack.packb([list(r) for r in records], use_bin_type=True))


def decode_records(data: bytes, cache_path: str = "<memory>") -> List[ProfileRecord]:
    """
    Decode a cache payload.

    Raises:
        CacheCorruptionError: On decompression/unpacking failure or when the
            payload is not an array of string arrays
    """
    try:
        payload = msgpack.unpackb(gzip.decompress(data), raw=False)
    except DECODE_ERRORS as e:
        raise CacheCorruptionError(f"Cannot decode profile cache {cache_path}: {e}", str(cache_path), e)

    if not isinstance(payload, list) or not all(
        isinstance(record, list) and all(value is None or isinstance(value, str) for value in record)
        for record in payload
    ):
        raise CacheCorruptionError(f"Unexpected profile cache layout in {cache_path}", str(cache_path))
    return payload


def _atomic_write(path: Path, data: bytes) -> None:
    fd, temp_path = tempfile.mkstemp(dir=str(path.parent), prefix=path.name + ".", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise


def write_cache(path: Path, records: Sequence[ProfileRecord]) -> None:
    _atomic_write(Path(path), encode_records(records))
    logger.debug(f"Profile cache written: {path}")


def read_cache(path: Path) -> List[ProfileRecord]:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise CacheCorruptionError(f"Cannot read profile cache {path}: {e}", str(path), e)
    return decode_records(data, str(path))


def write_stats_csv(path: Path, stats_headers: Sequence[str], profiles: Sequence[ColumnProfile]) -> None:
    """Write the textual stats table (header row, then one row per column)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(stats_headers)
    for profile in profiles:
        writer.writerow(profile.to_row())
    _atomic_write(Path(path), buffer.getvalue().encode("utf-8"))


def read_stats_headers(path: Path) -> List[str]:
    """
    Header row of the textual stats table.

    Raises:
        CacheCorruptionError: If the table is missing, unreadable or empty
    """
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            header = next(csv.reader(f), None)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise CacheCorruptionError(f"Cannot read stats table {path}: {e}", str(path), e)
    if not header:
        raise CacheCorruptionError(f"Stats table {path} has no header row", str(path))
    return header


def write_stats_options(path: Path, options: Dict[str, Any]) -> None:
    _atomic_write(Path(path), json.dumps(options, sort_keys=True).encode("utf-8"))


def read_stats_options(path: Path) -> Optional[Dict[str, Any]]:
    """Options recorded for the cache, or None if missing or unreadable."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            options = json.load(f)
    except (OSError, ValueError) as e:
        logger.debug(f"Cannot read stats options {path}: {e}")
        return None
    return options if isinstance(options, dict) else None
