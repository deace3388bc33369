"""
JSON Schema assembly from column profiles, enum candidates and patterns.
"""

import json
import logging
import math
from typing import Any, Callable, Dict, List, Optional

from profiling_framework.core.config import SchemaOptions
from profiling_framework.core.constants import (
    JSON_SCHEMA_DIALECT,
    SCHEMA_DESCRIPTION,
    TYPE_DATE,
    TYPE_DATETIME,
    TYPE_FLOAT,
    TYPE_INTEGER,
    TYPE_NULL,
    TYPE_STRING,
)
from profiling_framework.core.exceptions import ProfileInconsistencyError
from profiling_framework.profiler.column_profile import ColumnProfile, ProfileSet
from profiling_framework.profiler.pattern_synthesizer import should_emit_pattern_constraint

logger = logging.getLogger(__name__)

# Inferred type -> JSON Schema type token
SCHEMA_TYPES = {
    TYPE_STRING: "string",
    TYPE_INTEGER: "integer",
    TYPE_FLOAT: "number",
    TYPE_NULL: "null",
    TYPE_DATE: "string",
    TYPE_DATETIME: "string",
}

DATE_FORMATS = {
    TYPE_DATE: "date",
    TYPE_DATETIME: "date-time",
}


def _parse_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"non-finite value {text!r}")
    return value


def _parse(column: str, statistic: str, text: str, parser: Callable[[str], Any]) -> Any:
    try:
        return parser(text)
    except (TypeError, ValueError) as e:
        raise ProfileInconsistencyError(column, statistic, text, original_exception=e)


class SchemaAssembler:
    """
    Fuse profiles, enum candidates and patterns into a Schema Document.

    Per column, in order: map the type; add length bounds or numeric bounds;
    attach enums; add a date format marker under strict dates; append "null"
    when the column has empty values; describe the column. Patterns are
    attached afterwards, once the enum decision is final.
    """

    def __init__(self, options: Optional[SchemaOptions] = None, input_filename: str = "stdin.csv"):
        self.options = options or SchemaOptions()
        self.input_filename = input_filename

    @staticmethod
    def schema_type(inferred_type: str, column: str = "") -> str:
        schema_type = SCHEMA_TYPES.get(inferred_type)
        if schema_type is None:
            logger.warning(f"Unrecognized type '{inferred_type}' for column '{column}', defaulting to string")
            return "string"
        return schema_type

    def field_definition(self, profile: ColumnProfile, enum_values: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Field definition of one column.

        Raises:
            ProfileInconsistencyError: If a numeric bound or enum value does
                not parse as its column's type
        """
        column = profile.name
        schema_type = self.schema_type(profile.type, column)
        field_def: Dict[str, Any] = {
            "description": f"{column} column from {self.input_filename}",
            "type": [schema_type],
        }

        if profile.type == TYPE_STRING:
            if profile.min_length is not None:
                field_def["minLength"] = _parse(column, "min_length", profile.min_length, int)
            if profile.max_length is not None:
                field_def["maxLength"] = _parse(column, "max_length", profile.max_length, int)
            if enum_values:
                field_def["enum"] = list(enum_values)

        elif profile.type in (TYPE_INTEGER, TYPE_FLOAT):
            parser = int if profile.type == TYPE_INTEGER else _parse_float
            if profile.min_value is not None:
                field_def["minimum"] = _parse(column, "min", profile.min_value, parser)
            if profile.max_value is not None:
                field_def["maximum"] = _parse(column, "max", profile.max_value, parser)
            if enum_values:
                parsed = [_parse(column, "enum", value, parser) for value in enum_values]
                # "1.0" and "1.00" are one number
                field_def["enum"] = list(dict.fromkeys(parsed))

        elif profile.type in DATE_FORMATS and self.options.strict_dates:
            field_def["format"] = DATE_FORMATS[profile.type]

        if enum_values and "enum" in field_def:
            logger.info(f"Enum list generated for field {column}")

        self.apply_null_rules(field_def, profile.null_count)
        return field_def

    @staticmethod
    def apply_null_rules(field_def: Dict[str, Any], null_count: int) -> Dict[str, Any]:
        """Allow null in type and enum when the column has empty values. Idempotent."""
        if null_count <= 0:
            return field_def
        if "null" not in field_def["type"]:
            field_def["type"].append("null")
        enum = field_def.get("enum")
        if enum and None not in enum:
            enum.append(None)
        return field_def

    def build_properties(self, profiles: ProfileSet, enums: Optional[Dict[str, List[str]]] = None) -> Dict[str, Dict[str, Any]]:
        """Field definitions keyed by column name, in header order."""
        enums = enums or {}
        properties = {}
        for profile in profiles.profiles():
            properties[profile.name] = self.field_definition(profile, enums.get(profile.name))
        return properties

    @staticmethod
    def attach_patterns(properties: Dict[str, Dict[str, Any]], patterns: Dict[str, str]) -> None:
        for column, pattern in patterns.items():
            field_def = properties.get(column)
            if field_def is not None and should_emit_pattern_constraint(field_def):
                field_def["pattern"] = pattern

    def assemble(self, properties: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """Wrap field definitions into the Schema Document; every column is required."""
        return {
            "$schema": JSON_SCHEMA_DIALECT,
            "title": f"JSON Schema for {self.input_filename}",
            "description": SCHEMA_DESCRIPTION,
            "type": "object",
            "properties": properties,
            "required": list(properties),
        }

    @staticmethod
    def to_json(document: Dict[str, Any]) -> str:
        return json.dumps(document, indent=2, ensure_ascii=False)
