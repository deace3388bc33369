"""
Pretty output formatting for CLI.

Provides consistent terminal status output for every command. Status lines
are written to stderr so that stdout carries only command results (record
counts, schema JSON, stats tables) and can be piped safely.
"""

from colorama import Fore, Style
import sys


class PrettyOutput:
    """
    Pretty status-line formatter for the data-profile CLI.

    Used by the schema, count, stats and index commands for a unified look.
    """

    # Color scheme
    SUCCESS = Fore.GREEN
    ERROR = Fore.RED
    INFO = Fore.BLUE
    RESET = Style.RESET_ALL

    # Symbols
    CHECK = "✓"
    CROSS = "✗"
    INFO_SYMBOL = "ℹ"

    @staticmethod
    def _emit(line):
        print(line, file=sys.stderr)

    @staticmethod
    def success(message):
        """Print a success message with checkmark."""
        PrettyOutput._emit(f"{PrettyOutput.SUCCESS}{PrettyOutput.CHECK}{PrettyOutput.RESET} {message}")

    @staticmethod
    def error(message):
        """Print an error message with cross."""
        PrettyOutput._emit(f"{PrettyOutput.ERROR}{PrettyOutput.CROSS}{PrettyOutput.RESET} {message}")

    @staticmethod
    def info(message):
        """Print an info message."""
        PrettyOutput._emit(f"{PrettyOutput.INFO}{PrettyOutput.INFO_SYMBOL}{PrettyOutput.RESET} {message}")
