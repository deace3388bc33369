"""
Regular-expression synthesis for string columns.

For each eligible column the distinct raw values are collected in one pass
over the input and turned into a single anchored expression that matches
exactly that set:

1. Each value is split into tokens, folding consecutive repetitions of a
   substring (two or more copies) into a quantified token: "aaa" -> "a{3}",
   "abab" -> "(?:ab){2}". At every position the fold covering the most
   characters wins; ties go to the shortest unit.
2. Token sequences are merged into a prefix trie whose children are kept in
   sorted order, and the trie is rendered as nested non-capturing
   alternations. A value that is a prefix of another makes the remainder
   optional.

The construction depends only on the set of values, so equal inputs always
yield byte-identical patterns.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from profiling_framework.core.config import SchemaOptions
from profiling_framework.loaders.csv_reader import CSVRecordReader, to_text
from profiling_framework.utils.selection import parse_selection, unique_indices

logger = logging.getLogger(__name__)

MIN_REPETITIONS = 2

# Longest substring considered as a repeating unit
MAX_UNIT_LENGTH = 64

REGEX_METACHARACTERS = frozenset("\\^$.|?*+()[]{}")
ESCAPED_WHITESPACE = {"\n": "\\n", "\r": "\\r", "\t": "\\t", "\f": "\\f", "\v": "\\v"}


def escape_char(ch: str) -> str:
    if ch in REGEX_METACHARACTERS:
        return "\\" + ch
    return ESCAPED_WHITESPACE.get(ch, ch)


def fold_repetitions(value: str, min_repetitions: int = MIN_REPETITIONS) -> List[str]:
    """
    Tokenize `value`, folding repeated substrings.

    Example:
        >>> fold_repetitions("ab-ab-x")
        ['(?:ab-){2}', 'x']
    """
    tokens: List[str] = []
    length = len(value)
    i = 0
    while i < length:
        best_unit, best_reps = 0, 0
        max_unit = min(MAX_UNIT_LENGTH, (length - i) // min_repetitions)
        for unit_len in range(1, max_unit + 1):
            unit = value[i:i + unit_len]
            reps = 1
            while value.startswith(unit, i + reps * unit_len):
                reps += 1
            if reps >= min_repetitions and unit_len * reps > best_unit * best_reps:
                best_unit, best_reps = unit_len, reps

        if best_reps:
            unit = value[i:i + best_unit]
            tokens.append(_quantified(unit, best_reps, min_repetitions))
            i += best_unit * best_reps
        else:
            tokens.append(escape_char(value[i]))
            i += 1
    return tokens


def _quantified(unit: str, reps: int, min_repetitions: int) -> str:
    inner = "".join(fold_repetitions(unit, min_repetitions))
    if len(unit) == 1:
        return f"{inner}{{{reps}}}"
    return f"(?:{inner}){{{reps}}}"


class _TrieNode:
    __slots__ = ("children", "terminal")

    def __init__(self):
        self.children: Dict[str, "_TrieNode"] = {}
        self.terminal = False


def _render(node: _TrieNode) -> str:
    branches = [token + _render(child) for token, child in sorted(node.children.items())]
    if not branches:
        return ""
    if len(branches) == 1 and not node.terminal:
        return branches[0]
    body = "|".join(branches)
    if node.terminal:
        return f"(?:{body})?"
    return f"(?:{body})"


def synthesize_pattern(values: Iterable[str], min_repetitions: int = MIN_REPETITIONS) -> str:
    """
    Anchored regular expression matching every value in `values`.

    Example:
        >>> synthesize_pattern(["aaa", "aab"])
        '^(?:a{2}b|a{3})$'
    """
    root = _TrieNode()
    for value in sorted(set(values)):
        node = root
        for token in fold_repetitions(value, min_repetitions):
            node = node.children.setdefault(token, _TrieNode())
        node.terminal = True
    return f"^{_render(root)}$"


def should_emit_pattern_constraint(field_def: Dict) -> bool:
    """A pattern applies only to string-typed fields without an enum."""
    return "string" in field_def.get("type", []) and "enum" not in field_def


class PatternSynthesizer:
    """
    Synthesize patterns for an explicit, partial column selection.

    Selecting no columns or every column yields no patterns at all.
    """

    def __init__(self, options: Optional[SchemaOptions] = None):
        self.options = options or SchemaOptions()

    @staticmethod
    def is_partial_selection(selection: Sequence[int], column_count: int) -> bool:
        distinct = set(selection)
        return bool(distinct) and len(distinct) < column_count

    def synthesize(self, input_path: str, properties: Dict[str, Dict],
                   selection_expr: Optional[str] = None) -> Dict[str, str]:
        """
        Map column name -> pattern.

        Args:
            input_path: CSV input
            properties: In-progress field definitions keyed by column name
            selection_expr: Column selection; defaults to the option's
                pattern columns, and to every column when neither is set

        Raises:
            UsageError: If the selection is invalid for this input
            EncodingError: If a selected value is not valid UTF-8
        """
        if selection_expr is None:
            selection_expr = self.options.pattern_columns

        with CSVRecordReader(input_path, self.options.delimiter, self.options.no_headers) as reader:
            headers = [to_text(name, reader.display_path, 1) for name in reader.headers]
            if selection_expr is None:
                selection = list(range(len(headers)))
            else:
                selection = unique_indices(parse_selection(selection_expr, headers, option="--pattern-columns"))

            if not self.is_partial_selection(selection, len(headers)):
                logger.debug("Pattern selection is empty or covers every column, no patterns generated")
                return {}

            eligible = [
                column for column in selection
                if should_emit_pattern_constraint(properties.get(headers[column], {}))
            ]
            if not eligible:
                return {}

            distinct_values = {column: set() for column in eligible}
            for record in reader:
                for column in eligible:
                    value = record[column] if column < len(record) else ""
                    distinct_values[column].add(to_text(value, reader.display_path, reader.line_number))

        patterns = {}
        for column in eligible:
            patterns[headers[column]] = synthesize_pattern(distinct_values[column])
            logger.info(f"Pattern generated for field {headers[column]}")
        return patterns
