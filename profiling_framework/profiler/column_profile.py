"""
Data structures for per-column statistical profiles.

A ColumnProfile is produced once per (input, option set) by the statistics
engine. It is persisted as a serialized record: the values of the stats
table row in header order, without the leading column-name ("field") value.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from profiling_framework.core.constants import STATS_FIELD_COLUMN, STATS_HEADERS

ProfileRecord = List[Optional[str]]


@dataclass(frozen=True)
class ColumnProfile:
    """
    Statistical profile of one column.

    Attributes:
        name: Column name
        type: Inferred type (String, Integer, Float, NULL, Date, DateTime)
        min_value: Minimum as text, parsed according to type by consumers
        max_value: Maximum as text
        min_length: Shortest non-null value length
        max_length: Longest non-null value length
        null_count: Number of empty values
        cardinality: Number of distinct values
    """
    name: str
    type: str
    min_value: Optional[str] = None
    max_value: Optional[str] = None
    min_length: Optional[str] = None
    max_length: Optional[str] = None
    null_count: int = 0
    cardinality: int = 0

    def to_record(self) -> ProfileRecord:
        """Serialized form: stats values in header order, name omitted."""
        values = {
            "type": self.type,
            "min": self.min_value,
            "max": self.max_value,
            "min_length": self.min_length,
            "max_length": self.max_length,
            "nullcount": str(self.null_count),
            "cardinality": str(self.cardinality),
        }
        return [values[header] for header in STATS_HEADERS if header != STATS_FIELD_COLUMN]

    def to_row(self) -> List[str]:
        """Textual stats-table row, name first."""
        return [self.name] + ["" if value is None else value for value in self.to_record()]


def build_stat_index(stats_headers: Sequence[str]) -> Dict[str, int]:
    """
    Map each statistic name to its offset inside a serialized record.

    The textual table has a leading "field" column that serialized records
    omit, so every offset shifts down by one.

    Example:
        >>> build_stat_index(["field", "type", "min"])
        {'type': 0, 'min': 1}
    """
    index = {}
    for i, column in enumerate(stats_headers):
        if column != STATS_FIELD_COLUMN:
            index[column] = i - 1
    return index


def _parse_count(value: Optional[str]) -> int:
    # unparsable counts mean "no reliable data"
    try:
        return int(value) if value not in (None, "") else 0
    except ValueError:
        return 0


class ProfileSet:
    """
    Column profiles of one input, aligned to its header by ordinal position.

    Attributes:
        headers: Column names in header order
        records: Serialized profile records, one per column
        stat_index: Statistic name -> offset inside a record
        regenerated: True when the profiles were just recomputed
    """

    def __init__(
        self,
        headers: List[str],
        records: List[ProfileRecord],
        stat_index: Dict[str, int],
        regenerated: bool = False,
    ):
        self.headers = headers
        self.records = records
        self.stat_index = stat_index
        self.regenerated = regenerated

    def __len__(self) -> int:
        return len(self.records)

    def stat(self, column: int, name: str) -> Optional[str]:
        """Raw text of statistic `name` for the column at ordinal `column`."""
        offset = self.stat_index.get(name)
        record = self.records[column]
        if offset is None or offset >= len(record):
            return None
        value = record[offset]
        return None if value == "" else value

    def cardinality(self, column: int) -> int:
        return _parse_count(self.stat(column, "cardinality"))

    def null_count(self, column: int) -> int:
        return _parse_count(self.stat(column, "nullcount"))

    def profile(self, column: int) -> ColumnProfile:
        return ColumnProfile(
            name=self.headers[column],
            type=self.stat(column, "type") or "",
            min_value=self.stat(column, "min"),
            max_value=self.stat(column, "max"),
            min_length=self.stat(column, "min_length"),
            max_length=self.stat(column, "max_length"),
            null_count=self.null_count(column),
            cardinality=self.cardinality(column),
        )

    def profiles(self) -> List[ColumnProfile]:
        return [self.profile(i) for i in range(len(self.records))]
