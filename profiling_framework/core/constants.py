"""
Profiling Framework Constants.

This module defines the defaults, artifact suffixes and fixed values used
throughout the profiling framework.
"""

# ============================================================================
# Schema Generation Defaults
# ============================================================================

# Columns with cardinality in (0, threshold] get an enum constraint
DEFAULT_ENUM_THRESHOLD: int = 50

# Case-insensitive substrings that shortlist a column for date inference.
# "all" inspects every column.
DEFAULT_DATES_WHITELIST: str = "date,time,due,open,close,created"
DATES_WHITELIST_ALL: str = "all"

# JSON Schema validation dialect emitted in "$schema"
JSON_SCHEMA_DIALECT: str = "https://json-schema.org/draft-07/schema"

SCHEMA_DESCRIPTION: str = "Inferred JSON Schema from data-profile schema command"

# Environment variable that turns on day-first date parsing
PREFER_DMY_ENV_VAR: str = "DATA_PROFILE_PREFER_DMY"


# ============================================================================
# Persisted Artifact Names
# ============================================================================

# Replaces the input extension: data.csv -> data.stats.csv.bin.sz
STATS_CACHE_SUFFIX: str = ".stats.csv.bin.sz"
STATS_CSV_SUFFIX: str = ".stats.csv"

# Options the cache was computed with: data.csv -> data.stats.csv.json
STATS_OPTIONS_SUFFIX: str = ".stats.csv.json"

# Appended to the input path: data.csv -> data.csv.schema.json
SCHEMA_FILE_SUFFIX: str = ".schema.json"

# Appended to the input path: data.csv -> data.csv.idx
INDEX_FILE_SUFFIX: str = ".idx"

# Fixed name used to materialize standard input for the schema pipeline
STDIN_CSV: str = "stdin.csv"


# ============================================================================
# Statistics Table Layout
# ============================================================================

# Header of the textual stats table. Serialized cache records omit "field".
STATS_FIELD_COLUMN: str = "field"
STATS_HEADERS: tuple = (
    "field",
    "type",
    "min",
    "max",
    "min_length",
    "max_length",
    "nullcount",
    "cardinality",
)

# Inferred type names produced by the statistics engine
TYPE_STRING: str = "String"
TYPE_INTEGER: str = "Integer"
TYPE_FLOAT: str = "Float"
TYPE_NULL: str = "NULL"
TYPE_DATE: str = "Date"
TYPE_DATETIME: str = "DateTime"


# ============================================================================
# CSV Reading
# ============================================================================

DEFAULT_DELIMITER: str = ","
TAB_DELIMITED_EXTENSIONS: tuple = (".tsv", ".tab")

# Inputs treated as non-seekable compressed streams
COMPRESSED_EXTENSIONS: tuple = (".gz",)

DEFAULT_ENCODING: str = "utf-8"

# Read buffer for stdin materialization (1MB)
COPY_BUFFER_SIZE: int = 1024 * 1024


# ============================================================================
# Configuration Security Limits
# ============================================================================

# Maximum YAML configuration file size (10MB)
MAX_YAML_FILE_SIZE: int = 10 * 1024 * 1024
