"""
Streaming CSV record reader.

Single-threaded, constant-memory reader used by the streaming counter, the
frequency engine and the pattern scan. Files are decoded as UTF-8 with
surrogate escapes so that invalid bytes survive until a field is actually
converted to text, at which point they are reported with the raw bytes.
"""

import csv
import gzip
import io
import logging
import sys
from typing import BinaryIO, Iterator, List, Optional, TextIO

from profiling_framework.core.config import resolve_delimiter
from profiling_framework.core.constants import DEFAULT_ENCODING
from profiling_framework.core.exceptions import DataLoadError, EncodingError, UnequalLengthsError
from profiling_framework.loaders.input_source import is_compressed, is_stdin

logger = logging.getLogger(__name__)

# Allow very wide fields (the default limit is 128KB)
csv.field_size_limit(2 ** 31 - 1)

SURROGATE_ERRORS = "surrogateescape"


def to_text(value: str, file_path: str = "<unknown>", line_number: Optional[int] = None) -> str:
    """
    Return `value` if it decoded cleanly from UTF-8.

    Raises:
        EncodingError: If the field contains bytes that are not valid UTF-8
    """
    try:
        value.encode(DEFAULT_ENCODING)
    except UnicodeEncodeError:
        raise EncodingError(
            value.encode(DEFAULT_ENCODING, SURROGATE_ERRORS),
            file_path=file_path,
            line_number=line_number,
        )
    return value


def field_byte_length(record: List[str]) -> int:
    """Total byte length of a record's field data, delimiters excluded."""
    return sum(len(value.encode(DEFAULT_ENCODING, SURROGATE_ERRORS)) for value in record)


def open_text(path: Optional[str], stream: Optional[BinaryIO] = None) -> TextIO:
    """
    Open an input for CSV reading.

    Args:
        path: File path, "-" or None for standard input
        stream: Binary stream used in place of stdin (tests, pipelines)
    """
    if is_stdin(path):
        source = stream if stream is not None else sys.stdin.buffer
        return io.TextIOWrapper(source, encoding=DEFAULT_ENCODING, errors=SURROGATE_ERRORS, newline="")
    try:
        if is_compressed(path):
            return gzip.open(path, "rt", encoding=DEFAULT_ENCODING, errors=SURROGATE_ERRORS, newline="")
        return open(path, "r", encoding=DEFAULT_ENCODING, errors=SURROGATE_ERRORS, newline="")
    except FileNotFoundError:
        raise FileNotFoundError(f"CSV file not found: {path}")


class CSVRecordReader:
    """
    Iterate over CSV records one at a time.

    Blank lines are skipped. With `no_headers`, column names are the 1-based
    column numbers and the first row is returned as data. In strict mode
    (`flexible=False`) every record must have as many fields as the first
    one, header included.

    Example:
        >>> with CSVRecordReader("data.csv") as reader:
        ...     print(reader.headers)
        ...     for record in reader:
        ...         process(record)
    """

    def __init__(
        self,
        path: Optional[str],
        delimiter: Optional[str] = None,
        no_headers: bool = False,
        quoting: bool = True,
        flexible: bool = True,
        comment: Optional[str] = None,
        stream: Optional[BinaryIO] = None,
        handle: Optional[TextIO] = None,
    ):
        self.path = path
        self.display_path = "<stdin>" if is_stdin(path) else str(path)
        self.delimiter = resolve_delimiter(delimiter, None if is_stdin(path) else path)
        self.no_headers = no_headers
        self.flexible = flexible
        self.comment = comment

        self._handle = handle if handle is not None else open_text(path, stream)
        lines = self._handle
        if comment:
            lines = (line for line in self._handle if not line.startswith(comment))
        self._reader = csv.reader(
            lines,
            delimiter=self.delimiter,
            quoting=csv.QUOTE_MINIMAL if quoting else csv.QUOTE_NONE,
        )
        self._headers: Optional[List[str]] = None
        self._pending: Optional[List[str]] = None
        self._expected_len: Optional[int] = None

    def __enter__(self) -> "CSVRecordReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._handle.close()

    @property
    def line_number(self) -> int:
        return self._reader.line_num

    def _next_row(self) -> Optional[List[str]]:
        try:
            for row in self._reader:
                if row:
                    return row
        except csv.Error as e:
            raise DataLoadError(
                f"CSV parsing error in {self.display_path}: {e}",
                self.display_path,
                self._reader.line_num,
                original_exception=e,
            )
        return None

    def _check_length(self, row: List[str]) -> None:
        if self._expected_len is None:
            self._expected_len = len(row)
        elif not self.flexible and len(row) != self._expected_len:
            raise UnequalLengthsError(self.display_path, self._reader.line_num, self._expected_len, len(row))

    @property
    def headers(self) -> List[str]:
        """Raw header values (may carry surrogate escapes, see to_text)."""
        if self._headers is None:
            first = self._next_row()
            if first is None:
                self._headers = []
            elif self.no_headers:
                self._headers = [str(i + 1) for i in range(len(first))]
                self._pending = first
            else:
                self._headers = first
                self._check_length(first)
        return self._headers

    def __iter__(self) -> Iterator[List[str]]:
        _ = self.headers
        if self._pending is not None:
            row, self._pending = self._pending, None
            self._check_length(row)
            yield row
        while True:
            row = self._next_row()
            if row is None:
                return
            self._check_length(row)
            yield row


def read_headers(path: str, delimiter: Optional[str] = None, no_headers: bool = False) -> List[str]:
    """Return the input's column names as text."""
    with CSVRecordReader(path, delimiter=delimiter, no_headers=no_headers) as reader:
        return [to_text(name, reader.display_path, 1) for name in reader.headers]
