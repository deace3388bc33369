"""
Column selection expressions.

A selection is a comma-separated list of items, each one of:

    3           1-based column index
    2-4         inclusive index range (descending when start > end)
    3-          open-ended range, to the last column
    -2          range from the first column
    name        column name
    "a, b"      double-quoted column name (may contain commas or dashes)

Example:
    >>> parse_selection('1,"last name",4-', ["id", "first name", "last name", "city", "zip"])
    [0, 2, 3, 4]
"""

import re
from typing import List, Optional, Sequence, Tuple

from profiling_framework.core.exceptions import UsageError

RANGE_PATTERN = re.compile(r"^([0-9]*)-([0-9]*)$")


def tokenize(expression: str, option: str = "--select") -> List[Tuple[str, bool]]:
    """Split an expression into (item, was_quoted) pairs."""
    tokens: List[Tuple[str, bool]] = []
    current: List[str] = []
    quoted = False
    in_quotes = False
    i = 0

    while i < len(expression):
        ch = expression[i]
        if in_quotes:
            if ch == '"':
                if expression[i + 1:i + 2] == '"':
                    current.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                current.append(ch)
        elif ch == '"':
            if current and "".join(current).strip():
                raise UsageError(f"Unexpected quote in selection '{expression}'", option=option, value=expression)
            current = []
            in_quotes = True
            quoted = True
        elif ch == ",":
            tokens.append(_finish(current, quoted, expression, option))
            current, quoted = [], False
        else:
            current.append(ch)
        i += 1

    if in_quotes:
        raise UsageError(f"Unterminated quote in selection '{expression}'", option=option, value=expression)
    tokens.append(_finish(current, quoted, expression, option))
    return tokens


def _finish(chars: List[str], quoted: bool, expression: str, option: str) -> Tuple[str, bool]:
    text = "".join(chars)
    if not quoted:
        text = text.strip()
    if not text:
        raise UsageError(f"Empty item in selection '{expression}'", option=option, value=expression)
    return text, quoted


def _column_number(text: str, column_count: int, option: str) -> int:
    number = int(text)
    if number < 1 or number > column_count:
        raise UsageError(
            f"Selector index {number} is out of bounds: index must be >= 1 and <= {column_count}",
            option=option,
            value=text,
        )
    return number - 1


def _column_name(name: str, headers: Sequence[str], option: str) -> int:
    try:
        return list(headers).index(name)
    except ValueError:
        raise UsageError(f"Selector name '{name}' does not exist as a named header", option=option, value=name)


def parse_selection(expression: Optional[str], headers: Sequence[str], option: str = "--select") -> List[int]:
    """
    Resolve a selection expression to 0-based column indices, in selection order.

    An empty or missing expression selects nothing.

    Raises:
        UsageError: On invalid syntax, unknown names or out-of-range indices
    """
    if expression is None or not expression.strip():
        return []

    column_count = len(headers)
    indices: List[int] = []
    for text, quoted in tokenize(expression, option):
        if quoted:
            indices.append(_column_name(text, headers, option))
            continue

        if text.isascii() and text.isdigit():
            indices.append(_column_number(text, column_count, option))
            continue

        match = RANGE_PATTERN.match(text)
        if match and (match.group(1) or match.group(2)):
            start = _column_number(match.group(1), column_count, option) if match.group(1) else 0
            end = _column_number(match.group(2), column_count, option) if match.group(2) else column_count - 1
            step = 1 if start <= end else -1
            indices.extend(range(start, end + step, step))
            continue

        indices.append(_column_name(text, headers, option))

    return indices


def unique_indices(indices: Sequence[int]) -> List[int]:
    """Drop repeated indices, keeping first occurrences in order."""
    seen = set()
    result = []
    for index in indices:
        if index not in seen:
            seen.add(index)
            result.append(index)
    return result
