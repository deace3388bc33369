"""
Option sets for the profiling pipelines and YAML configuration loading.

Every component receives a structured options object; nothing in the
framework rebuilds a command line to pass settings between stages.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from pathlib import Path

import yaml

from profiling_framework.core.constants import (
    DEFAULT_DATES_WHITELIST,
    DEFAULT_DELIMITER,
    DEFAULT_ENUM_THRESHOLD,
    MAX_YAML_FILE_SIZE,
    PREFER_DMY_ENV_VAR,
    TAB_DELIMITED_EXTENSIONS,
)
from profiling_framework.core.exceptions import ConfigError, UsageError, YAMLSizeError


@dataclass
class StatsOptions:
    """
    Options for one statistics-engine run.

    Attributes:
        cardinality: Compute per-column cardinality
        infer_dates: Run date/datetime inference on shortlisted columns
        dates_whitelist: Comma-separated name patterns shortlisting date columns, or "all"
        prefer_dmy: Parse ambiguous dates day-first
        force: Recompute even when a current cache exists
        delimiter: Field delimiter
        no_headers: First row is data, not a header
    """
    cardinality: bool = True
    infer_dates: bool = True
    dates_whitelist: str = DEFAULT_DATES_WHITELIST
    prefer_dmy: bool = False
    force: bool = False
    delimiter: Optional[str] = None
    no_headers: bool = False

    def cache_key(self) -> Dict[str, Any]:
        """Options that shape the profiles. A cache computed under other values is stale."""
        return {
            "cardinality": self.cardinality,
            "infer_dates": self.infer_dates,
            "dates_whitelist": self.dates_whitelist,
            "prefer_dmy": self.prefer_dmy,
            "delimiter": self.delimiter,
            "no_headers": self.no_headers,
        }


@dataclass
class FrequencyOptions:
    """Options for a frequency-table run over a column selection."""
    select: str = ""
    limit: int = DEFAULT_ENUM_THRESHOLD
    ignore_case: bool = False
    no_trim: bool = False
    delimiter: Optional[str] = None
    no_headers: bool = False
    jobs: Optional[int] = None


@dataclass
class SchemaOptions:
    """Options for the schema command."""
    enum_threshold: int = DEFAULT_ENUM_THRESHOLD
    ignore_case: bool = False
    strict_dates: bool = False
    pattern_columns: Optional[str] = None
    dates_whitelist: str = DEFAULT_DATES_WHITELIST
    prefer_dmy: bool = False
    force: bool = False
    stdout: bool = False
    jobs: Optional[int] = None
    no_headers: bool = False
    delimiter: Optional[str] = None

    def stats_options(self) -> StatsOptions:
        """Statistics run forced to compute cardinality and infer dates."""
        return StatsOptions(
            cardinality=True,
            infer_dates=True,
            dates_whitelist=self.dates_whitelist,
            prefer_dmy=self.prefer_dmy,
            force=self.force,
            delimiter=self.delimiter,
            no_headers=self.no_headers,
        )

    def frequency_options(self, select: str) -> FrequencyOptions:
        """Frequency run over `select`, limited to the enum threshold."""
        return FrequencyOptions(
            select=select,
            limit=self.enum_threshold,
            ignore_case=self.ignore_case,
            delimiter=self.delimiter,
            no_headers=self.no_headers,
            jobs=self.jobs,
        )


@dataclass
class CountOptions:
    """Options for the count command."""
    human_readable: bool = False
    width: bool = False
    no_polars: bool = False
    low_memory: bool = False
    flexible: bool = False
    no_headers: bool = False
    delimiter: Optional[str] = None
    comment: Optional[str] = None


def normalize_delimiter(delimiter: Optional[str]) -> Optional[str]:
    """
    Decode escapes such as "\\t" and check the delimiter is one character.

    Raises:
        UsageError: If the delimiter is not a single character
    """
    if delimiter is None:
        return None
    delim_char = delimiter.encode().decode('unicode_escape')
    if len(delim_char) != 1:
        raise UsageError(
            f"Could not convert '{delimiter}' to a single character delimiter.",
            option="--delimiter",
            value=delimiter,
        )
    return delim_char


def resolve_delimiter(delimiter: Optional[str], path: Optional[str] = None) -> str:
    """Explicit delimiter, else tab for .tsv/.tab inputs, else comma."""
    if delimiter:
        return delimiter
    if path:
        suffixes = [s.lower() for s in Path(path).suffixes]
        if any(s in TAB_DELIMITED_EXTENSIONS for s in suffixes):
            return "\t"
    return DEFAULT_DELIMITER


def prefer_dmy_from_env() -> bool:
    """True when the day-first environment flag is set to a truthy value."""
    value = os.environ.get(PREFER_DMY_ENV_VAR, "")
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ProfilingConfig:
    """
    Defaults loaded from a YAML configuration file.

    Example file:

        profiling:
          enum_threshold: 20
          dates_whitelist: "date,created"
          prefer_dmy: true
          delimiter: ";"
          jobs: 4
        counting:
          no_polars: false
          low_memory: true
    """
    profiling: Dict[str, Any] = field(default_factory=dict)
    counting: Dict[str, Any] = field(default_factory=dict)

    ALLOWED_PROFILING_KEYS = ("enum_threshold", "dates_whitelist", "prefer_dmy", "delimiter", "jobs")
    ALLOWED_COUNTING_KEYS = ("no_polars", "low_memory", "delimiter")

    @classmethod
    def from_yaml(cls, config_path: str) -> "ProfilingConfig":
        """
        Load configuration from a YAML file.

        Raises:
            ConfigError: If the file is missing, unparsable or malformed
            YAMLSizeError: If the file exceeds the size limit
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        file_size = os.path.getsize(config_file)
        if file_size > MAX_YAML_FILE_SIZE:
            raise YAMLSizeError(
                f"Configuration file too large: {file_size:,} bytes. "
                f"Maximum allowed: {MAX_YAML_FILE_SIZE:,} bytes",
                file_size=file_size,
                max_size=MAX_YAML_FILE_SIZE,
            )

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML file: {str(e)}")
        except UnicodeDecodeError as e:
            raise ConfigError(f"Invalid file encoding (expected UTF-8): {str(e)}")

        return cls.from_dict(raw or {})

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ProfilingConfig":
        if not isinstance(raw, dict):
            raise ConfigError("Configuration root must be a mapping")

        sections = {}
        for name, allowed in (("profiling", cls.ALLOWED_PROFILING_KEYS),
                              ("counting", cls.ALLOWED_COUNTING_KEYS)):
            section = raw.get(name) or {}
            if not isinstance(section, dict):
                raise ConfigError(f"'{name}' section must be a mapping", field=name)
            unknown = sorted(set(section) - set(allowed))
            if unknown:
                raise ConfigError(
                    f"Unknown key(s) in '{name}' section: {', '.join(unknown)}",
                    field=f"{name}.{unknown[0]}"
                )
            sections[name] = section

        enum_threshold = sections["profiling"].get("enum_threshold")
        if enum_threshold is not None and (not isinstance(enum_threshold, int) or enum_threshold < 0):
            raise ConfigError("enum_threshold must be a non-negative integer", field="profiling.enum_threshold")

        jobs = sections["profiling"].get("jobs")
        if jobs is not None and (not isinstance(jobs, int) or jobs < 1):
            raise ConfigError("jobs must be a positive integer", field="profiling.jobs")

        return cls(profiling=sections["profiling"], counting=sections["counting"])
