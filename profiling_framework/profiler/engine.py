"""
Schema generation pipeline.

Chains the stages that turn a CSV file into a JSON Schema document:

    ProfileCacheOrchestrator -> EnumMiner -> SchemaAssembler
        -> PatternSynthesizer -> SchemaAssembler.assemble

Each stage receives structured options and returns a plain value; the only
side effects are the persisted profile cache and, when requested, the
schema file.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from profiling_framework.core.config import SchemaOptions
from profiling_framework.core.constants import SCHEMA_FILE_SUFFIX
from profiling_framework.profiler.column_profile import ProfileSet
from profiling_framework.profiler.enum_miner import EnumMiner
from profiling_framework.profiler.pattern_synthesizer import PatternSynthesizer
from profiling_framework.profiler.profile_cache import ProfileCacheOrchestrator
from profiling_framework.profiler.schema_assembler import SchemaAssembler

logger = logging.getLogger(__name__)


@dataclass
class SchemaResult:
    """Schema document plus the intermediate results it was built from."""
    document: Dict[str, Any]
    profiles: ProfileSet
    enums: Dict[str, List[str]] = field(default_factory=dict)
    patterns: Dict[str, str] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    def to_json(self) -> str:
        return SchemaAssembler.to_json(self.document)


class SchemaEngine:
    """
    Generate a JSON Schema for a CSV file.

    Example:
        >>> engine = SchemaEngine(SchemaOptions(enum_threshold=20, strict_dates=True))
        >>> result = engine.generate("orders.csv")
        >>> engine.write(result, "orders.csv")
        'orders.csv.schema.json'
    """

    def __init__(self, options: Optional[SchemaOptions] = None):
        self.options = options or SchemaOptions()

    @staticmethod
    def output_path(input_path: str) -> str:
        return str(input_path) + SCHEMA_FILE_SUFFIX

    def generate(self, input_path: str, input_filename: Optional[str] = None) -> SchemaResult:
        """
        Run the full pipeline.

        Args:
            input_path: CSV file (standard input must already be materialized)
            input_filename: Name used in the title and descriptions
                (default: the input's file name)

        Raises:
            ProfileCacheError: If profiles cannot be produced
            ProfileInconsistencyError: If a profile does not match its type
            UsageError: If the pattern column selection is invalid
            DataLoadError: If the input cannot be read
        """
        start_time = time.time()
        input_path = str(input_path)
        filename = input_filename or Path(input_path).name

        profiles = ProfileCacheOrchestrator(self.options.stats_options()).load(input_path)
        enums = EnumMiner(self.options).mine(input_path, profiles)

        assembler = SchemaAssembler(self.options, filename)
        properties = assembler.build_properties(profiles, enums)

        patterns = PatternSynthesizer(self.options).synthesize(input_path, properties)
        assembler.attach_patterns(properties, patterns)

        document = assembler.assemble(properties)
        elapsed = round(time.time() - start_time, 2)
        logger.info(f"Schema for {len(properties)} columns generated in {elapsed:.2f} seconds")
        return SchemaResult(document, profiles, enums, patterns, elapsed)

    def write(self, result: SchemaResult, input_path: str) -> str:
        """Write the schema next to the input and return its path."""
        path = self.output_path(input_path)
        with open(path, "w", encoding="utf-8") as f:
            f.write(result.to_json())
        logger.info(f"Schema written to {path}")
        return path
