"""
On-disk record index.

`<input>.idx` stores the byte offset of every row start (header row
included) as big-endian uint64 values, followed by the total row count.
A fresh index answers record counts in O(1) and lets the frequency engine
split the input into shards that are read in parallel.
"""

import logging
import os
from typing import List, Optional, Tuple

import numpy as np

from profiling_framework.core.constants import INDEX_FILE_SUFFIX
from profiling_framework.loaders.input_source import is_compressed, is_stdin

logger = logging.getLogger(__name__)

INDEX_DTYPE = ">u8"


class RecordIndex:
    """
    Row offsets of a CSV file.

    Attributes:
        input_path: Path of the indexed CSV file
        offsets: Byte offset of each row start, header row first
    """

    def __init__(self, input_path: str, offsets: np.ndarray):
        self.input_path = str(input_path)
        self.offsets = offsets

    @staticmethod
    def index_path(input_path: str) -> str:
        return str(input_path) + INDEX_FILE_SUFFIX

    @property
    def row_count(self) -> int:
        return int(self.offsets.size)

    def count(self, no_headers: bool = False) -> int:
        """Number of data records (the header row is excluded unless `no_headers`)."""
        if no_headers:
            return self.row_count
        return max(self.row_count - 1, 0)

    def data_offsets(self, no_headers: bool = False) -> np.ndarray:
        """Byte offsets of the data records."""
        return self.offsets if no_headers else self.offsets[1:]

    @classmethod
    def build(cls, input_path: str) -> "RecordIndex":
        """
        Scan `input_path` once and record where every row starts.

        A row starts on a line that begins outside a quoted field. Blank
        lines are not rows; every other line is, like in a streaming scan
        without a comment prefix.
        """
        offsets: List[int] = []
        offset = 0
        in_quotes = False

        with open(input_path, "rb") as f:
            for line in f:
                if not in_quotes:
                    if line.rstrip(b"\r\n") == b"":
                        offset += len(line)
                        continue
                    offsets.append(offset)
                # a doubled quote inside a field toggles twice, leaving state unchanged
                if line.count(b'"') % 2 == 1:
                    in_quotes = not in_quotes
                offset += len(line)

        logger.info(f"Indexed {len(offsets):,} rows of {input_path}")
        return cls(input_path, np.asarray(offsets, dtype=INDEX_DTYPE))

    def write(self) -> str:
        """Write the index next to its input and return the index path."""
        path = self.index_path(self.input_path)
        data = np.append(self.offsets, np.asarray([self.row_count], dtype=INDEX_DTYPE)).astype(INDEX_DTYPE)
        temp_path = f"{path}.{os.getpid()}.tmp"
        data.tofile(temp_path)
        os.replace(temp_path, path)
        return path

    @classmethod
    def create(cls, input_path: str) -> "RecordIndex":
        index = cls.build(input_path)
        index.write()
        return index

    @classmethod
    def load(cls, input_path: Optional[str]) -> Optional["RecordIndex"]:
        """
        Return the input's index if it exists, is fresh and is well-formed.

        A missing index is normal; a stale or corrupt one is logged and
        ignored, never raised.
        """
        if is_stdin(input_path) or is_compressed(input_path):
            return None

        path = cls.index_path(input_path)
        if not os.path.exists(path):
            return None

        if os.path.getmtime(input_path) > os.path.getmtime(path):
            logger.info("index is stale")
            return None

        data = np.fromfile(path, dtype=INDEX_DTYPE) if os.path.getsize(path) % 8 == 0 else None
        if data is None or data.size == 0 or int(data[-1]) != data.size - 1:
            logger.warning(f"Ignoring malformed index file: {path}")
            return None

        return cls(input_path, data[:-1])


def shard_bounds(record_count: int, jobs: int) -> List[Tuple[int, int]]:
    """
    Split `record_count` records into at most `jobs` contiguous [start, end) ranges.

    Example:
        >>> shard_bounds(10, 3)
        [(0, 4), (4, 8), (8, 10)]
    """
    if record_count <= 0:
        return []
    jobs = max(1, min(jobs, record_count))
    chunk = -(-record_count // jobs)
    return [(start, min(start + chunk, record_count)) for start in range(0, record_count, chunk)]
