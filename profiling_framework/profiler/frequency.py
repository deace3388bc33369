"""
Frequency tables over a column selection.

Two modes with identical results:

- sequential: one streaming pass over the whole input
- parallel: when a fresh record index exists, the data records are split
  into one contiguous shard per job, each shard is counted by a worker
  thread reading from its own file handle, and the per-shard counters are
  merged in shard order
"""

import io
import logging
import os
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from profiling_framework.core.config import FrequencyOptions
from profiling_framework.core.constants import DEFAULT_ENCODING
from profiling_framework.loaders.csv_reader import SURROGATE_ERRORS, CSVRecordReader, to_text
from profiling_framework.loaders.index import RecordIndex, shard_bounds
from profiling_framework.utils.selection import parse_selection

logger = logging.getLogger(__name__)


def njobs(jobs: Optional[int]) -> int:
    """Requested job count, or the number of available CPUs."""
    if jobs is not None and jobs > 0:
        return jobs
    return os.cpu_count() or 1


@dataclass
class FrequencyTable:
    """Value counts of one column."""
    column: str
    counts: Counter = field(default_factory=Counter)

    def most_frequent(self, limit: Optional[int] = None) -> List[Tuple[str, int]]:
        """Top values by descending count, ties broken by value."""
        ranked = sorted(self.counts.items(), key=lambda item: (-item[1], item[0]))
        return ranked if limit is None else ranked[:limit]


class FrequencyEngine:
    """
    Count distinct values of the selected columns.

    Example:
        >>> engine = FrequencyEngine(FrequencyOptions(select="2,4", limit=10))
        >>> headers, tables = engine.tables("data.csv")
        >>> tables[0].most_frequent(3)
        [('red', 40), ('blue', 31), ('green', 2)]
    """

    def __init__(self, options: Optional[FrequencyOptions] = None):
        self.options = options or FrequencyOptions()

    def normalize(self, value: str) -> Optional[str]:
        """Apply trimming and case folding; None means the value is skipped."""
        if not self.options.no_trim:
            value = value.strip()
        if not value:
            return None
        if self.options.ignore_case:
            value = value.lower()
        return value

    def _count_records(self, records, selection: Sequence[int], counters: List[Counter], limit: Optional[int] = None) -> None:
        for n, record in enumerate(records):
            if limit is not None and n >= limit:
                break
            for counter, column in zip(counters, selection):
                if column >= len(record):
                    continue
                value = self.normalize(record[column])
                if value is not None:
                    counter[value] += 1

    def sequential_counts(self, input_path: str, selection: Sequence[int]) -> List[Counter]:
        counters = [Counter() for _ in selection]
        with CSVRecordReader(input_path, self.options.delimiter, self.options.no_headers) as reader:
            self._count_records(reader, selection, counters)
        return counters

    def _count_shard(self, input_path: str, selection: Sequence[int], start_offset: int, record_count: int) -> List[Counter]:
        counters = [Counter() for _ in selection]
        raw = open(input_path, "rb")
        raw.seek(start_offset)
        handle = io.TextIOWrapper(raw, encoding=DEFAULT_ENCODING, errors=SURROGATE_ERRORS, newline="")
        # no_headers: the shard starts on a data record
        with CSVRecordReader(input_path, self.options.delimiter, no_headers=True, handle=handle) as reader:
            self._count_records(reader, selection, counters, limit=record_count)
        return counters

    def parallel_counts(self, input_path: str, selection: Sequence[int], index: RecordIndex) -> List[Counter]:
        offsets = index.data_offsets(self.options.no_headers)
        shards = shard_bounds(int(offsets.size), njobs(self.options.jobs))
        logger.info(f"Counting frequencies in {len(shards)} shard(s) using the index")

        if not shards:
            return [Counter() for _ in selection]

        with ThreadPoolExecutor(max_workers=len(shards)) as executor:
            futures = [
                executor.submit(self._count_shard, input_path, selection, int(offsets[start]), end - start)
                for start, end in shards
            ]
            shard_counters = [future.result() for future in futures]

        merged = [Counter() for _ in selection]
        for counters in shard_counters:
            for total, partial in zip(merged, counters):
                total.update(partial)
        return merged

    def tables(self, input_path: str) -> Tuple[List[str], List[FrequencyTable]]:
        """
        Build one frequency table per selected column.

        Returns:
            Tuple of (selected column names, frequency tables)

        Raises:
            UsageError: If the selection is invalid for this input
            EncodingError: If a header or counted value is not valid UTF-8
        """
        with CSVRecordReader(input_path, self.options.delimiter, self.options.no_headers) as reader:
            headers = [to_text(name, reader.display_path, 1) for name in reader.headers]

        selection = parse_selection(self.options.select, headers)
        if not selection:
            return [], []

        index = RecordIndex.load(input_path)
        if index is not None:
            counters = self.parallel_counts(input_path, selection, index)
        else:
            counters = self.sequential_counts(input_path, selection)

        names = [headers[column] for column in selection]
        tables = []
        for name, counter in zip(names, counters):
            table = FrequencyTable(name)
            for value, count in counter.items():
                table.counts[to_text(value, str(input_path))] += count
            tables.append(table)
        return names, tables
