"""
Schema Validation Utilities

Validates question definitions against ``question.schema.json`` before any
part is built, so malformed definitions fail at load time with a path to
the offending field.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

from marking_toolkit.errors import DefinitionValidationError

logger = logging.getLogger(__name__)

# v1: initial definition format
QUESTION_SCHEMA_VERSION = 1


_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


def _format_path(path: Any) -> str:
    out = ""
    for item in path:
        out += f"[{item}]" if isinstance(item, int) else (f".{item}" if out else str(item))
    return out


def validate_question_definition(data: dict[str, Any]) -> None:
    """
    Validate a question definition.

    Args:
        data: Question definition mapping

    Raises:
        DefinitionValidationError: If data is invalid. ``errors`` lists every
            schema violation, ``path`` points at the first one.
    """
    if not isinstance(data, dict):
        raise DefinitionValidationError("Question definition must be an object")

    version = data.get("schema_version")
    if version is not None and version != QUESTION_SCHEMA_VERSION:
        raise DefinitionValidationError(
            f"Unsupported question schema version: {version} (expected {QUESTION_SCHEMA_VERSION})",
            path="schema_version",
        )

    validator = jsonschema.Draft7Validator(_load_schema("question"))
    violations = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    if violations:
        first = violations[0]
        path = _format_path(first.absolute_path)
        logger.debug("Question definition has %d schema violations", len(violations))
        raise DefinitionValidationError(
            f"Schema validation failed at {path or '<root>'}: {first.message}",
            path=path,
            errors=[f"{_format_path(e.absolute_path) or '<root>'}: {e.message}" for e in violations],
        )
