"""
Command-line interface for the Profiling Framework.

Provides commands for:
- Inferring a JSON Schema from a CSV file
- Counting records
- Computing and caching column statistics
- Building a record index
"""

import csv
import io
import sys
from pathlib import Path

import click

from profiling_framework.core.config import (
    CountOptions,
    ProfilingConfig,
    SchemaOptions,
    StatsOptions,
    normalize_delimiter,
    prefer_dmy_from_env,
)
from profiling_framework.core.constants import DEFAULT_DATES_WHITELIST, DEFAULT_ENUM_THRESHOLD, STDIN_CSV
from profiling_framework.core.exceptions import ProfilingException, UsageError
from profiling_framework.core.logging_config import get_logger, setup_logging
from profiling_framework.core.pretty_output import PrettyOutput as po
from profiling_framework.counting.record_counter import RecordCounter
from profiling_framework.loaders.index import RecordIndex
from profiling_framework.loaders.input_source import is_compressed, is_stdin, materialize_stdin
from profiling_framework.profiler.engine import SchemaEngine
from profiling_framework.profiler.profile_cache import ProfileCacheOrchestrator

logger = get_logger(__name__)

LOG_LEVELS = click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False)


def load_config(config_path):
    """Configuration defaults from a YAML file, or empty defaults."""
    if config_path:
        return ProfilingConfig.from_yaml(config_path)
    return ProfilingConfig()


def pick(cli_value, section, key, default):
    """Explicit CLI value, else the config file's value, else the default."""
    if cli_value is not None:
        return cli_value
    return section.get(key, default)


def materialize_input(input_path):
    """Return (path, display name); standard input is copied to stdin.csv first."""
    if is_stdin(input_path):
        path = materialize_stdin(STDIN_CSV)
        return path, STDIN_CSV
    return input_path, Path(input_path).name


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """
    Profiling Framework - CSV statistics, record counts and JSON Schema inference.

    Profiles are cached next to the input and reused until the input
    changes, so repeated schema runs over a large file stay fast.
    """
    pass


@cli.command()
@click.argument('input_path', required=False)
@click.option('--enum-threshold', type=int, default=None,
              help=f'Cardinality threshold for adding enum constraints (default: {DEFAULT_ENUM_THRESHOLD})')
@click.option('--ignore-case', '-i', is_flag=True, help='Ignore case when compiling unique values for enums')
@click.option('--strict-dates', is_flag=True, help='Add "date"/"date-time" format markers to inferred date columns')
@click.option('--pattern-columns', default=None, help='Columns to add a pattern constraint to (selection syntax, e.g. "2,4-")')
@click.option('--dates-whitelist', default=None,
              help=f'Name patterns shortlisting date columns, or "all" (default: {DEFAULT_DATES_WHITELIST})')
@click.option('--prefer-dmy', is_flag=True, help='Prefer day-first dates when parsing ambiguous values')
@click.option('--force', is_flag=True, help='Recompute statistics even when a current cache exists')
@click.option('--stdout', 'to_stdout', is_flag=True, help='Write the schema to stdout instead of <input>.schema.json')
@click.option('--jobs', '-j', type=int, default=None, help='Number of jobs for indexed frequency counting (default: CPU count)')
@click.option('--no-headers', '-n', is_flag=True, help='First row is data, not a header')
@click.option('--delimiter', '-d', default=None, help='Field delimiter (default: comma, tab for .tsv/.tab). Use "\\t" for tab.')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), help='YAML file with default options')
@click.option('--log-level', type=LOG_LEVELS, default='WARNING', help='Logging level')
@click.option('--log-file', type=click.Path(), help='Optional log file path')
def schema(input_path, enum_threshold, ignore_case, strict_dates, pattern_columns, dates_whitelist, prefer_dmy,
           force, to_stdout, jobs, no_headers, delimiter, config_path, log_level, log_file):
    """
    Infer a JSON Schema from a CSV file.

    INPUT_PATH: CSV file to profile (default: standard input)

    Examples:

    \b
    # Write data.csv.schema.json
    data-profile schema data.csv

    \b
    # Enums up to 20 values, patterns for columns 2 and 5
    data-profile schema data.csv --enum-threshold 20 --pattern-columns 2,5

    \b
    # From standard input, to stdout
    cat data.csv | data-profile schema --stdout
    """
    setup_logging(level=log_level, log_file=log_file)
    display_name = input_path or STDIN_CSV

    try:
        defaults = load_config(config_path).profiling
        options = SchemaOptions(
            enum_threshold=pick(enum_threshold, defaults, 'enum_threshold', DEFAULT_ENUM_THRESHOLD),
            ignore_case=ignore_case,
            strict_dates=strict_dates,
            pattern_columns=pattern_columns,
            dates_whitelist=pick(dates_whitelist, defaults, 'dates_whitelist', DEFAULT_DATES_WHITELIST),
            prefer_dmy=prefer_dmy or prefer_dmy_from_env() or bool(defaults.get('prefer_dmy', False)),
            force=force,
            stdout=to_stdout,
            jobs=pick(jobs, defaults, 'jobs', None),
            no_headers=no_headers,
            delimiter=normalize_delimiter(pick(delimiter, defaults, 'delimiter', None)),
        )
        if options.enum_threshold < 0:
            raise UsageError("--enum-threshold must not be negative", option="--enum-threshold",
                             value=options.enum_threshold)
        if options.prefer_dmy:
            po.info("Prefer DMY set.")

        input_path, display_name = materialize_input(input_path)
        logger.info(f"Generating schema for {input_path}")

        engine = SchemaEngine(options)
        result = engine.generate(input_path, display_name)

        if options.stdout:
            click.echo(result.to_json())
        else:
            output_path = engine.write(result, input_path)
            po.success(f"Schema written to {output_path}")

    except FileNotFoundError as e:
        po.error(f"File not found: {str(e)}")
        sys.exit(1)

    except UsageError as e:
        po.error(f"Usage error: {e.message}")
        sys.exit(1)

    except ProfilingException as e:
        po.error(f"Failed to infer schema via stats and frequency from {display_name}: {e.message}")
        sys.exit(1)


@cli.command()
@click.argument('input_path', required=False)
@click.option('--human-readable', '-H', is_flag=True, help='Comma-separate thousands')
@click.option('--width', is_flag=True, help='Also report the longest record in bytes, as "count;width"')
@click.option('--no-polars', is_flag=True, help='Never use the Polars engine')
@click.option('--low-memory', is_flag=True, help='Use the Polars low-memory reader')
@click.option('--flexible', '-f', is_flag=True, help='Allow records with varying field counts')
@click.option('--no-headers', '-n', is_flag=True, help='First row is data, not a header')
@click.option('--delimiter', '-d', default=None, help='Field delimiter (default: comma, tab for .tsv/.tab). Use "\\t" for tab.')
@click.option('--comment', default=None, help='Skip lines starting with this character')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), help='YAML file with default options')
@click.option('--log-level', type=LOG_LEVELS, default='WARNING', help='Logging level')
@click.option('--log-file', type=click.Path(), help='Optional log file path')
def count(input_path, human_readable, width, no_polars, low_memory, flexible, no_headers, delimiter, comment,
          config_path, log_level, log_file):
    """
    Count the data records of a CSV file.

    INPUT_PATH: CSV file (default: standard input)

    Uses a fresh index when one exists, then the Polars engine, then a
    streaming scan. All three report the same count.
    """
    setup_logging(level=log_level, log_file=log_file)

    try:
        defaults = load_config(config_path).counting
        options = CountOptions(
            human_readable=human_readable,
            width=width,
            no_polars=bool(pick(no_polars or None, defaults, 'no_polars', False)),
            low_memory=bool(pick(low_memory or None, defaults, 'low_memory', False)),
            flexible=flexible,
            no_headers=no_headers,
            delimiter=normalize_delimiter(pick(delimiter, defaults, 'delimiter', None)),
            comment=comment,
        )
        if options.comment is not None and len(options.comment) != 1:
            raise UsageError("--comment must be a single character", option="--comment", value=comment)

        result = RecordCounter(options).count(input_path)
        logger.info(f"Counted {result.count} records using {result.strategy.value}")
        click.echo(result.format(options.human_readable))

    except FileNotFoundError as e:
        po.error(f"File not found: {str(e)}")
        sys.exit(1)

    except ProfilingException as e:
        po.error(f"Error: {e.message}")
        sys.exit(1)


@cli.command()
@click.argument('input_path', required=False)
@click.option('--dates-whitelist', default=None,
              help=f'Name patterns shortlisting date columns, or "all" (default: {DEFAULT_DATES_WHITELIST})')
@click.option('--no-infer-dates', is_flag=True, help='Skip date/datetime inference')
@click.option('--prefer-dmy', is_flag=True, help='Prefer day-first dates when parsing ambiguous values')
@click.option('--force', is_flag=True, help='Recompute statistics even when a current cache exists')
@click.option('--no-headers', '-n', is_flag=True, help='First row is data, not a header')
@click.option('--delimiter', '-d', default=None, help='Field delimiter (default: comma, tab for .tsv/.tab). Use "\\t" for tab.')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), help='YAML file with default options')
@click.option('--log-level', type=LOG_LEVELS, default='WARNING', help='Logging level')
@click.option('--log-file', type=click.Path(), help='Optional log file path')
def stats(input_path, dates_whitelist, no_infer_dates, prefer_dmy, force, no_headers, delimiter, config_path,
          log_level, log_file):
    """
    Compute column statistics and print the stats table.

    INPUT_PATH: CSV file (default: standard input)

    The table and its compressed cache are written next to the input as
    <stem>.stats.csv and <stem>.stats.csv.bin.sz and reused until the input
    changes.
    """
    setup_logging(level=log_level, log_file=log_file)

    try:
        defaults = load_config(config_path).profiling
        options = StatsOptions(
            cardinality=True,
            infer_dates=not no_infer_dates,
            dates_whitelist=pick(dates_whitelist, defaults, 'dates_whitelist', DEFAULT_DATES_WHITELIST),
            prefer_dmy=prefer_dmy or prefer_dmy_from_env() or bool(defaults.get('prefer_dmy', False)),
            force=force,
            delimiter=normalize_delimiter(pick(delimiter, defaults, 'delimiter', None)),
            no_headers=no_headers,
        )
        input_path, _ = materialize_input(input_path)
        profiles = ProfileCacheOrchestrator(options).load(input_path)

        stat_names = sorted(profiles.stat_index, key=profiles.stat_index.get)
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["field"] + stat_names)
        for column, name in enumerate(profiles.headers):
            writer.writerow([name] + [profiles.stat(column, stat) or "" for stat in stat_names])
        click.echo(buffer.getvalue(), nl=False)

    except FileNotFoundError as e:
        po.error(f"File not found: {str(e)}")
        sys.exit(1)

    except ProfilingException as e:
        po.error(f"Error: {e.message}")
        sys.exit(1)


@cli.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--log-level', type=LOG_LEVELS, default='WARNING', help='Logging level')
@click.option('--log-file', type=click.Path(), help='Optional log file path')
def index(input_path, log_level, log_file):
    """
    Build <input>.idx for O(1) counts and parallel frequency passes.

    INPUT_PATH: CSV file to index (compressed files cannot be indexed)
    """
    setup_logging(level=log_level, log_file=log_file)

    if is_compressed(input_path):
        po.error(f"Compressed input cannot be indexed: {input_path}")
        sys.exit(1)

    if RecordIndex.load(input_path) is not None:
        logger.info(f"Replacing fresh index for {input_path}")

    try:
        record_index = RecordIndex.create(input_path)
    except OSError as e:
        po.error(f"Cannot write index for {input_path}: {str(e)}")
        sys.exit(1)

    po.success(f"Index written to {RecordIndex.index_path(input_path)} ({record_index.row_count:,} rows)")


if __name__ == '__main__':
    cli()
