"""
Accelerated columnar engine availability.

Polars is the multithreaded, memory-mapped engine used for profiling and as
the fast counting path. The counter checks availability here before taking
the accelerated branch; when Polars cannot be imported, counting falls back
to the streaming scanner.

Performance Characteristics:
    - Polars: multithreaded, mem-mapped CSV reader, fastest for large files
    - Streaming scanner: single-threaded, constant memory, reads any valid CSV
"""

from enum import Enum
import logging

logger = logging.getLogger(__name__)

try:
    import polars as pl
    HAS_POLARS = True
except ImportError:
    HAS_POLARS = False
    pl = None


class CountStrategy(Enum):
    """
    Record counting strategies, in the order the counter considers them.

    INDEX: stored count from a fresh record index, O(1)
    POLARS: accelerated columnar engine
    STREAMING: single-pass streaming scan
    """
    INDEX = "index"
    POLARS = "polars"
    STREAMING = "streaming"


def polars_available() -> bool:
    """Return True when the accelerated engine can be used."""
    if not HAS_POLARS:
        logger.info("Polars not installed, accelerated counting disabled")
    return HAS_POLARS
