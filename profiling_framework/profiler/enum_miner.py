"""
Enum candidate mining for low-cardinality columns.
"""

import logging
from typing import Dict, List, Optional

from profiling_framework.core.config import SchemaOptions
from profiling_framework.profiler.column_profile import ProfileSet
from profiling_framework.profiler.frequency import FrequencyEngine

logger = logging.getLogger(__name__)


class EnumMiner:
    """
    Produce sorted distinct values for columns whose cardinality is in
    (0, enum_threshold].

    A reported cardinality of 0 means "no reliable cardinality data" and
    never makes a column eligible.
    """

    def __init__(self, options: Optional[SchemaOptions] = None):
        self.options = options or SchemaOptions()

    def low_cardinality_columns(self, profiles: ProfileSet) -> List[int]:
        """1-based ordinals of enum-eligible columns."""
        threshold = self.options.enum_threshold
        return [
            i + 1
            for i in range(len(profiles))
            if 0 < profiles.cardinality(i) <= threshold
        ]

    @staticmethod
    def build_selector(ordinals: List[int]) -> str:
        """[1, 3] -> "1,3" """
        return ",".join(str(ordinal) for ordinal in ordinals)

    def mine(self, input_path: str, profiles: ProfileSet) -> Dict[str, List[str]]:
        """
        Map column name -> enum candidate values, sorted as strings.

        No frequency pass runs when no column is eligible.
        """
        ordinals = self.low_cardinality_columns(profiles)
        selector = self.build_selector(ordinals)
        logger.debug(f"Low cardinality columns: {selector or '(none)'}")
        if not ordinals:
            return {}

        engine = FrequencyEngine(self.options.frequency_options(selector))
        names, tables = engine.tables(input_path)

        enums = {}
        for name, table in zip(names, tables):
            values = [value for value, _ in table.most_frequent(self.options.enum_threshold)]
            enums[name] = sorted(values)
        return enums
