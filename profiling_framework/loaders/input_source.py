"""
Input source helpers: standard-input materialization and compression checks.

The schema pipeline opens its input several times (stats, frequency, pattern
scan), so stdin is copied into a fixed, predictable `stdin.csv`. The count
pipeline only needs a seekable file for the accelerated engine and uses a
temporary copy that is removed afterwards.
"""

import gzip
import logging
import os
import shutil
import sys
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from profiling_framework.core.constants import COMPRESSED_EXTENSIONS, COPY_BUFFER_SIZE, STDIN_CSV

logger = logging.getLogger(__name__)


def is_stdin(path: Optional[str]) -> bool:
    """An absent path or "-" means standard input."""
    return path is None or path == "-"


def is_compressed(path: Optional[str]) -> bool:
    """True for inputs that can only be read as a non-seekable stream."""
    if is_stdin(path):
        return False
    return Path(path).suffix.lower() in COMPRESSED_EXTENSIONS


def _stdin_buffer(stream: Optional[BinaryIO]) -> BinaryIO:
    return stream if stream is not None else sys.stdin.buffer


def materialize_stdin(target: str = STDIN_CSV, stream: Optional[BinaryIO] = None) -> str:
    """
    Copy standard input into `target`, overwriting it.

    Args:
        target: Destination path (default: stdin.csv in the working directory)
        stream: Binary stream to copy (default: sys.stdin.buffer)

    Returns:
        The destination path
    """
    source = _stdin_buffer(stream)
    with open(target, "wb") as out:
        shutil.copyfileobj(source, out, COPY_BUFFER_SIZE)
    logger.info(f"Standard input written to {target}")
    return target


@contextmanager
def temporary_stdin_copy(stream: Optional[BinaryIO] = None) -> Iterator[str]:
    """
    Copy standard input into a temporary .csv file for the query's duration.

    The file is deleted when the context exits, whether or not the query
    succeeded.
    """
    source = _stdin_buffer(stream)
    fd, temp_path = tempfile.mkstemp(suffix=".csv")
    try:
        with os.fdopen(fd, "wb") as out:
            shutil.copyfileobj(source, out, COPY_BUFFER_SIZE)
        yield temp_path
    finally:
        try:
            os.remove(temp_path)
        except FileNotFoundError:
            pass


def has_blank_lines(path: str) -> bool:
    """
    True if `path` holds an empty line, a leading one included.

    The csv reader skips empty lines while Polars reads them as all-null
    rows, so a file with any of them must not be counted or profiled as
    if the two readers agreed. An empty line inside a quoted field also
    matches.
    """
    opener = gzip.open if is_compressed(path) else open
    tail = b"\n"
    with opener(path, "rb") as f:
        while True:
            chunk = f.read(COPY_BUFFER_SIZE)
            if not chunk:
                return False
            data = tail + chunk
            if b"\n\n" in data or b"\n\r\n" in data:
                return True
            tail = data[-2:]
