"""
Record counting through the Polars SQL engine.

Two query shapes:

- direct: ``SELECT COUNT(*) FROM read_csv('<path>')`` when the input uses the
  default delimiter and neither a comment prefix nor low-memory mode is set
- lazy: the file is registered as a ``scan_csv`` LazyFrame and counted
  through the SQL context, so the optimizer can prune every column

Every failure is reported as a typed EngineOutcome instead of an
exception; the caller decides how to fall back.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from profiling_framework.core.backend import HAS_POLARS, pl
from profiling_framework.core.config import resolve_delimiter
from profiling_framework.core.constants import DEFAULT_DELIMITER
from profiling_framework.core.exceptions import EngineFailure

logger = logging.getLogger(__name__)

if HAS_POLARS:
    ENGINE_ERRORS = (pl.exceptions.PolarsError, pl.exceptions.PanicException, OSError, ValueError, RuntimeError)
else:
    ENGINE_ERRORS = (OSError, ValueError, RuntimeError)


class EngineOutcomeKind(Enum):
    SUCCESS = "success"
    UNAVAILABLE = "unavailable"
    LOAD_FAILED = "load_failed"
    QUERY_FAILED = "query_failed"
    BAD_RESULT = "bad_result"


@dataclass
class EngineOutcome:
    """
    Result of one accelerated count attempt.

    Attributes:
        kind: SUCCESS or the specific failure kind
        count: Record count (SUCCESS only)
        failure: The failure, for logging (failures only)
    """
    kind: EngineOutcomeKind
    count: Optional[int] = None
    failure: Optional[EngineFailure] = None

    @property
    def ok(self) -> bool:
        return self.kind is EngineOutcomeKind.SUCCESS

    @classmethod
    def failed(cls, kind: EngineOutcomeKind, message: str, original: Optional[BaseException] = None) -> "EngineOutcome":
        return cls(kind, failure=EngineFailure(message, kind.value, original_exception=original))


def _sql_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class PolarsCounter:
    """
    Count records of a seekable CSV file with Polars.

    Polars always treats the first row as a header, so with `no_headers`
    the count is incremented by one.
    """

    def __init__(self, delimiter: Optional[str] = None, comment: Optional[str] = None,
                 low_memory: bool = False, no_headers: bool = False):
        self.delimiter = delimiter
        self.comment = comment
        self.low_memory = low_memory
        self.no_headers = no_headers

    def uses_direct_sql(self, file_path: str) -> bool:
        return (
            resolve_delimiter(self.delimiter, file_path) == DEFAULT_DELIMITER
            and not self.comment
            and not self.low_memory
        )

    @staticmethod
    def _extract_count(result) -> Optional[int]:
        if result.shape != (1, 1):
            return None
        value = result.item()
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return None
        return value

    def count(self, file_path: str) -> EngineOutcome:
        if not HAS_POLARS:
            return EngineOutcome.failed(EngineOutcomeKind.UNAVAILABLE, "Polars is not installed")

        logger.info("using polars")
        ctx = pl.SQLContext()
        if self.uses_direct_sql(file_path):
            query = f"SELECT COUNT(*) FROM read_csv({_sql_string(str(file_path))})"
        else:
            try:
                lazy_df = pl.scan_csv(
                    file_path,
                    separator=resolve_delimiter(self.delimiter, file_path),
                    comment_prefix=self.comment,
                    low_memory=self.low_memory,
                    infer_schema_length=0,
                )
                ctx.register("sql_lf", lazy_df)
            except ENGINE_ERRORS as e:
                logger.warning(f"polars error loading CSV: {e}")
                return EngineOutcome.failed(EngineOutcomeKind.LOAD_FAILED, f"Cannot load {file_path}: {e}", e)
            query = "SELECT COUNT(*) FROM sql_lf"

        try:
            # collect() applies the default optimizer: projection, predicate
            # and slice pushdown plus common subplan elimination
            result = ctx.execute(query).collect()
        except ENGINE_ERRORS as e:
            logger.warning(f"polars error executing count query: {e}")
            return EngineOutcome.failed(EngineOutcomeKind.QUERY_FAILED, f"Count query failed: {e}", e)

        count = self._extract_count(result)
        if count is None:
            logger.warning(f"polars returned an unexpected count result with shape {result.shape}")
            return EngineOutcome.failed(EngineOutcomeKind.BAD_RESULT, f"Unexpected result shape {result.shape}")

        if self.no_headers:
            count += 1
        return EngineOutcome(EngineOutcomeKind.SUCCESS, count=count)
