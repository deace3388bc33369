"""
Unit tests for option sets and YAML configuration loading.
"""

import pytest

from profiling_framework.core.config import (
    ProfilingConfig,
    SchemaOptions,
    normalize_delimiter,
    prefer_dmy_from_env,
    resolve_delimiter,
)
from profiling_framework.core.constants import PREFER_DMY_ENV_VAR
from profiling_framework.core.exceptions import ConfigError, UsageError


@pytest.mark.unit
class TestSchemaOptions:
    """Test derived option sets."""

    def test_stats_options_force_cardinality_and_dates(self):
        options = SchemaOptions(prefer_dmy=True, force=True, delimiter=";", no_headers=True)

        stats = options.stats_options()

        assert stats.cardinality is True
        assert stats.infer_dates is True
        assert stats.prefer_dmy is True
        assert stats.force is True
        assert stats.delimiter == ";"
        assert stats.no_headers is True

    def test_frequency_options_use_threshold_as_limit(self):
        options = SchemaOptions(enum_threshold=7, ignore_case=True, jobs=3)

        frequency = options.frequency_options("1,3")

        assert frequency.select == "1,3"
        assert frequency.limit == 7
        assert frequency.ignore_case is True
        assert frequency.jobs == 3


@pytest.mark.unit
class TestDelimiters:
    """Test delimiter normalization and defaults."""

    def test_escaped_tab(self):
        assert normalize_delimiter("\\t") == "\t"

    def test_none_passes_through(self):
        assert normalize_delimiter(None) is None

    def test_multi_character_rejected(self):
        with pytest.raises(UsageError):
            normalize_delimiter(";;")

    @pytest.mark.parametrize("path,expected", [
        ("data.csv", ","),
        ("data.tsv", "\t"),
        ("DATA.TAB", "\t"),
        ("data.tsv.gz", "\t"),
        (None, ","),
    ])
    def test_resolve_by_extension(self, path, expected):
        assert resolve_delimiter(None, path) == expected

    def test_explicit_delimiter_wins(self):
        assert resolve_delimiter("|", "data.tsv") == "|"


@pytest.mark.unit
class TestPreferDmyEnv:
    """Test the day-first environment flag."""

    def test_truthy(self, monkeypatch):
        monkeypatch.setenv(PREFER_DMY_ENV_VAR, "true")
        assert prefer_dmy_from_env() is True

    def test_unset(self, monkeypatch):
        monkeypatch.delenv(PREFER_DMY_ENV_VAR, raising=False)
        assert prefer_dmy_from_env() is False


@pytest.mark.unit
class TestProfilingConfig:
    """Test YAML configuration loading."""

    def test_load_yaml(self, tmp_path):
        config_file = tmp_path / "profile.yaml"
        config_file.write_text(
            "profiling:\n"
            "  enum_threshold: 20\n"
            "  prefer_dmy: true\n"
            "counting:\n"
            "  no_polars: true\n"
        )

        config = ProfilingConfig.from_yaml(str(config_file))

        assert config.profiling == {'enum_threshold': 20, 'prefer_dmy': True}
        assert config.counting == {'no_polars': True}

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        config = ProfilingConfig.from_yaml(str(config_file))

        assert config.profiling == {}
        assert config.counting == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            ProfilingConfig.from_yaml(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("profiling: [unclosed\n")

        with pytest.raises(ConfigError, match="Failed to parse YAML"):
            ProfilingConfig.from_yaml(str(config_file))

    def test_unknown_key(self):
        with pytest.raises(ConfigError) as exc_info:
            ProfilingConfig.from_dict({'profiling': {'enum_treshold': 5}})

        assert exc_info.value.field == "profiling.enum_treshold"

    def test_negative_threshold(self):
        with pytest.raises(ConfigError):
            ProfilingConfig.from_dict({'profiling': {'enum_threshold': -1}})

    def test_zero_jobs(self):
        with pytest.raises(ConfigError):
            ProfilingConfig.from_dict({'profiling': {'jobs': 0}})
