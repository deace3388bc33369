"""
Adaptive record counter.

Strategies are tried in strict priority order; the first applicable one
answers:

1. Full scan: width requested or flexible field counts. Only the streaming
   scanner can measure width, and an index count cannot be trusted against
   ragged rows.
2. Index: a fresh `<input>.idx` holds the count, no row I/O. Skipped when a
   comment prefix is set, since indexed rows include comment lines.
3. Polars: the accelerated engine, unless disabled, unavailable or the input
   is a compressed stream. Standard input is copied to a temporary file
   first. Inputs with empty lines go to step 4, since Polars reads those as
   records and the other strategies skip them. Any engine failure falls
   back to step 4.
4. Streaming scan.

All strategies report the same count for the same file.
"""

import logging
from dataclasses import dataclass
from typing import BinaryIO, Optional

from profiling_framework.core.backend import CountStrategy, polars_available
from profiling_framework.core.config import CountOptions
from profiling_framework.counting.polars_counter import EngineOutcome, PolarsCounter
from profiling_framework.loaders.csv_reader import CSVRecordReader, field_byte_length
from profiling_framework.loaders.index import RecordIndex
from profiling_framework.loaders.input_source import has_blank_lines, is_compressed, is_stdin, temporary_stdin_copy

logger = logging.getLogger(__name__)


@dataclass
class CountResult:
    """
    Attributes:
        count: Number of data records
        width: Longest record in bytes, delimiters included (width runs only)
        strategy: Strategy that produced the count
        engine_outcome: Outcome of the accelerated attempt, if one was made
    """
    count: int
    width: Optional[int] = None
    strategy: CountStrategy = CountStrategy.STREAMING
    engine_outcome: Optional[EngineOutcome] = None

    def format(self, human_readable: bool = False) -> str:
        """"1234" / "1234;80", or "1,234;80" when human readable."""
        if human_readable:
            text = f"{self.count:,}"
            if self.width is not None:
                text += f";{self.width:,}"
            return text
        if self.width is not None:
            return f"{self.count};{self.width}"
        return str(self.count)


class RecordCounter:
    """
    Count data records of a CSV input.

    Example:
        >>> RecordCounter(CountOptions(width=True)).count("data.csv").format()
        '1000;48'
    """

    def __init__(self, options: Optional[CountOptions] = None, stdin: Optional[BinaryIO] = None):
        self.options = options or CountOptions()
        self.stdin = stdin

    def count(self, input_path: Optional[str]) -> CountResult:
        """
        Raises:
            UnequalLengthsError: Ragged rows in a strict streaming scan
            DataLoadError: If the input cannot be parsed
        """
        options = self.options

        if options.width or options.flexible:
            return self.scan(input_path)

        index = None if options.comment else RecordIndex.load(input_path)
        if index is not None:
            logger.info("index used")
            return CountResult(index.count(options.no_headers), strategy=CountStrategy.INDEX)

        if not options.no_polars and not is_compressed(input_path) and polars_available():
            if is_stdin(input_path):
                with temporary_stdin_copy(self.stdin) as temp_path:
                    return self._count_with_engine(temp_path)
            return self._count_with_engine(input_path)

        return self.scan(input_path)

    def _count_with_engine(self, file_path: str) -> CountResult:
        if has_blank_lines(file_path):
            logger.info("empty lines present, using streaming reader")
            return self.scan(file_path)

        counter = PolarsCounter(
            delimiter=self.options.delimiter,
            comment=self.options.comment,
            low_memory=self.options.low_memory,
            no_headers=self.options.no_headers,
        )
        outcome = counter.count(file_path)
        if outcome.ok:
            return CountResult(outcome.count, strategy=CountStrategy.POLARS, engine_outcome=outcome)

        logger.warning(f"Accelerated count failed ({outcome.kind.value}), using streaming reader")
        result = self.scan(file_path)
        result.engine_outcome = outcome
        return result

    def scan(self, input_path: Optional[str]) -> CountResult:
        """
        Single streaming pass. Width disables quote handling and is the
        largest (field bytes + delimiters) over all records.
        """
        options = self.options
        measure_width = options.width
        count = 0
        max_width = 0

        with CSVRecordReader(
            input_path,
            delimiter=options.delimiter,
            no_headers=options.no_headers,
            quoting=not measure_width,
            flexible=options.flexible or measure_width,
            comment=options.comment,
            stream=self.stdin,
        ) as reader:
            for record in reader:
                count += 1
                if measure_width:
                    max_width = max(max_width, field_byte_length(record) + len(record) - 1)

        return CountResult(count, width=max_width if measure_width else None, strategy=CountStrategy.STREAMING)
