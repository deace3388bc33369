"""
Profiling Framework Exception Hierarchy.

This module defines the exception hierarchy for the profiling framework,
providing clear categorization of errors and standardized error handling
across the schema and count pipelines.

Exception Severity Levels:
    - FATAL: Stop all processing immediately
    - CRITICAL: Stop processing the current input
    - RECOVERABLE: Handled locally by a fallback path, processing continues
    - WARNING: Log warning, processing continues
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorSeverity(Enum):
    """
    Classify error severity for handling decisions.

    Attributes:
        FATAL: Unrecoverable error, stop all processing
        CRITICAL: Input-level error, stop processing this input
        RECOVERABLE: Stage-level error, the calling stage falls back
        WARNING: Non-critical issue, log and continue
    """
    FATAL = "fatal"
    CRITICAL = "critical"
    RECOVERABLE = "recoverable"
    WARNING = "warning"


class ProfilingException(Exception):
    """
    Base exception for all profiling framework errors.

    Provides:
    - Severity classification for handling decisions
    - Structured details dictionary for logging/reporting
    - Original exception preservation for debugging
    - Serialization support for JSON/dict output

    Attributes:
        message (str): Human-readable error message
        severity (ErrorSeverity): Error severity level
        details (Dict[str, Any]): Additional context (file path, column, etc.)
        original_exception (Optional[Exception]): Original exception if wrapping

    Example:
        >>> try:
        ...     profiles = load_profiles()
        ... except OSError as e:
        ...     raise ProfilingException(
        ...         "Profile loading failed",
        ...         severity=ErrorSeverity.CRITICAL,
        ...         details={'file': 'customers.csv'},
        ...         original_exception=e
        ...     )
    """

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.RECOVERABLE,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        """
        Initialize profiling exception.

        Args:
            message: Human-readable error description
            severity: Error severity level (default: RECOVERABLE)
            details: Additional context dictionary
            original_exception: Original exception if this wraps another error
        """
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.details = details or {}
        self.original_exception = original_exception

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for logging/reporting.

        Returns:
            Dictionary containing exception details suitable for JSON serialization
        """
        return {
            'type': self.__class__.__name__,
            'message': self.message,
            'severity': self.severity.value,
            'details': self.details,
            'original_error': str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Configuration / Usage Errors (Fatal)
# ============================================================================

class ConfigError(ProfilingException):
    """
    Configuration file errors (fatal - stop all processing).

    Raised when:
    - Configuration file not found
    - Invalid YAML syntax
    - Invalid configuration structure or value types

    Attributes:
        field (Optional[str]): Specific config field that caused error
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            severity=ErrorSeverity.FATAL,
            details={'field': field} if field else {}
        )
        self.field = field


class YAMLSizeError(ConfigError):
    """YAML configuration file exceeds the maximum allowed size."""

    def __init__(self, message: str, file_size: Optional[int] = None, max_size: Optional[int] = None):
        super().__init__(message)
        self.details.update({
            'file_size': file_size,
            'max_size': max_size
        })


class UsageError(ProfilingException):
    """
    Malformed option or option combination (fatal, no retry).

    Raised when:
    - A column selection expression cannot be parsed
    - A selected column name or index does not exist
    - A delimiter is not a single character

    Example:
        >>> raise UsageError(
        ...     "Selector name 'emial' does not exist as a named header",
        ...     option="--pattern-columns",
        ...     value="emial"
        ... )
    """

    def __init__(self, message: str, option: Optional[str] = None, value: Any = None):
        details = {}
        if option:
            details['option'] = option
        if value is not None:
            details['value'] = value
        super().__init__(message, severity=ErrorSeverity.FATAL, details=details)
        self.option = option
        self.value = value


# ============================================================================
# Data Loading Errors (Critical)
# ============================================================================

class DataLoadError(ProfilingException):
    """
    Input data loading errors (critical - stop processing this input).

    Raised when:
    - Input file cannot be read
    - CSV parsing fails

    Attributes:
        file_path (str): Path to input that failed to load
        line_number (Optional[int]): Line number where error occurred
    """

    def __init__(
        self,
        message: str,
        file_path: str,
        line_number: Optional[int] = None,
        original_exception: Optional[Exception] = None
    ):
        details = {'file_path': file_path}
        if line_number is not None:
            details['line_number'] = line_number

        super().__init__(
            message,
            severity=ErrorSeverity.CRITICAL,
            details=details,
            original_exception=original_exception
        )
        self.file_path = file_path
        self.line_number = line_number


class EncodingError(DataLoadError):
    """
    Header or value bytes are not valid UTF-8 text.

    The offending byte sequence is kept so the bad field can be located.

    Example:
        >>> raise EncodingError(b'caf\\xe9', file_path="menu.csv", line_number=7)
    """

    def __init__(self, byte_slice: bytes, file_path: str = "<unknown>", line_number: Optional[int] = None):
        lossy = byte_slice.decode('utf-8', errors='replace')
        super().__init__(
            f"Can't convert byte slice to utf8 string. slice={list(byte_slice)!r}: {lossy}",
            file_path,
            line_number
        )
        self.byte_slice = byte_slice
        self.details['byte_slice'] = list(byte_slice)


class UnequalLengthsError(DataLoadError):
    """Record field count differs from the first record (strict mode only)."""

    def __init__(self, file_path: str, line_number: int, expected: int, actual: int):
        super().__init__(
            f"CSV error: record on line {line_number} has {actual} fields, "
            f"but the previous record has {expected} fields",
            file_path,
            line_number
        )
        self.expected = expected
        self.actual = actual
        self.details.update({'expected': expected, 'actual': actual})


# ============================================================================
# Profile Cache Errors
# ============================================================================

class CacheCorruptionError(ProfilingException):
    """
    Profile cache could not be decoded (recoverable - regenerate it).

    Attributes:
        cache_path (str): Path of the cache file that failed to decode
    """

    def __init__(self, message: str, cache_path: str, original_exception: Optional[Exception] = None):
        super().__init__(
            message,
            severity=ErrorSeverity.RECOVERABLE,
            details={'cache_path': cache_path},
            original_exception=original_exception
        )
        self.cache_path = cache_path


class ProfileCacheError(ProfilingException):
    """Regeneration did not produce a decodable profile cache (fatal)."""

    def __init__(self, message: str, cache_path: str, original_exception: Optional[Exception] = None):
        super().__init__(
            message,
            severity=ErrorSeverity.FATAL,
            details={'cache_path': cache_path},
            original_exception=original_exception
        )
        self.cache_path = cache_path


class ProfileInconsistencyError(ProfilingException):
    """
    A profile statistic failed to parse during schema assembly (fatal).

    Profiles are produced by the statistics engine and assumed well-formed,
    so this indicates a bug upstream rather than bad user input.

    Example:
        >>> raise ProfileInconsistencyError("age", "min", "twelve")
    """

    def __init__(self, column: str, statistic: str, value: Any, original_exception: Optional[Exception] = None):
        super().__init__(
            f"Column '{column}': cannot parse {statistic} value {value!r} from profile",
            severity=ErrorSeverity.FATAL,
            details={'column': column, 'statistic': statistic, 'value': value},
            original_exception=original_exception
        )
        self.column = column
        self.statistic = statistic
        self.value = value


# ============================================================================
# Accelerated Engine Errors (Recoverable)
# ============================================================================

class EngineFailure(ProfilingException):
    """
    The accelerated columnar engine could not produce a count.

    Never surfaced to the user: the counter records it in its outcome and
    falls back to the streaming scanner.

    Attributes:
        kind (str): Failure kind ('unavailable', 'load_failed',
            'query_failed', 'bad_result')
    """

    def __init__(self, message: str, kind: str, original_exception: Optional[Exception] = None):
        super().__init__(
            message,
            severity=ErrorSeverity.RECOVERABLE,
            details={'kind': kind},
            original_exception=original_exception
        )
        self.kind = kind
