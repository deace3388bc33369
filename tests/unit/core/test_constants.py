"""
Unit tests for constants module.

Tests that all constants are properly defined and have sensible values.
"""

import pytest
from profiling_framework.core.constants import (
    # Schema generation
    DEFAULT_ENUM_THRESHOLD,
    DEFAULT_DATES_WHITELIST,
    JSON_SCHEMA_DIALECT,
    # Artifacts
    STATS_CACHE_SUFFIX,
    STATS_CSV_SUFFIX,
    SCHEMA_FILE_SUFFIX,
    INDEX_FILE_SUFFIX,
    STDIN_CSV,
    # Stats table
    STATS_FIELD_COLUMN,
    STATS_HEADERS,
    # Reading
    DEFAULT_DELIMITER,
    COMPRESSED_EXTENSIONS,
    MAX_YAML_FILE_SIZE,
)


@pytest.mark.unit
class TestSchemaConstants:
    """Test schema generation defaults."""

    def test_enum_threshold_positive(self):
        assert DEFAULT_ENUM_THRESHOLD > 0

    def test_dates_whitelist_patterns(self):
        patterns = DEFAULT_DATES_WHITELIST.split(",")
        assert "date" in patterns
        assert all(p == p.strip().lower() for p in patterns)

    def test_dialect(self):
        assert JSON_SCHEMA_DIALECT == "https://json-schema.org/draft-07/schema"


@pytest.mark.unit
class TestArtifactConstants:
    """Test persisted artifact naming."""

    def test_suffixes(self):
        assert STATS_CACHE_SUFFIX == ".stats.csv.bin.sz"
        assert STATS_CSV_SUFFIX == ".stats.csv"
        assert SCHEMA_FILE_SUFFIX == ".schema.json"
        assert INDEX_FILE_SUFFIX == ".idx"
        assert STDIN_CSV == "stdin.csv"

    def test_stats_headers_start_with_field(self):
        assert STATS_HEADERS[0] == STATS_FIELD_COLUMN
        assert len(STATS_HEADERS) == len(set(STATS_HEADERS))
        assert "cardinality" in STATS_HEADERS
        assert "nullcount" in STATS_HEADERS


@pytest.mark.unit
class TestReadingConstants:

    def test_default_delimiter(self):
        assert DEFAULT_DELIMITER == ","

    def test_gzip_is_compressed(self):
        assert ".gz" in COMPRESSED_EXTENSIONS

    def test_yaml_size_limit(self):
        assert MAX_YAML_FILE_SIZE == 10 * 1024 * 1024
