"""Shared schema validation utilities.

Schemas are stored as YAML files (JSON Schema expressed in YAML) under
``relaunch/data/schemas/`` and loaded in a single, consistent way.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

import jsonschema
from jsonschema import Draft202012Validator

from relaunch.core.utils.io import read_yaml
from relaunch.data import get_data_path


class SchemaValidationError(ValueError):
    """Raised when schema validation fails."""


def _normalize_name(schema_name: str) -> str:
    lowered = schema_name.lower()
    if not (lowered.endswith(".yaml") or lowered.endswith(".yml")):
        return f"{schema_name}.yaml"
    return schema_name


@lru_cache(maxsize=32)
def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema dict; ``.yaml`` is appended when missing.

    Raises:
        FileNotFoundError: If schema file doesn't exist.
        ValueError: If schema is not a YAML mapping.
    """
    path = get_data_path("schemas", _normalize_name(schema_name))
    if not path.exists():
        raise FileNotFoundError(f"Schema not found: {path}")
    schema = read_yaml(path, default=None, raise_on_error=True)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


def validate_payload(payload: Any, schema_name: str) -> None:
    """Validate a payload against a bundled JSON schema.

    Raises:
        SchemaValidationError: If validation fails.
    """
    schema = load_schema(schema_name)
    try:
        jsonschema.validate(instance=payload, schema=schema, cls=Draft202012Validator)
    except jsonschema.ValidationError as exc:
        raise SchemaValidationError(
            f"Validation failed against schema '{schema_name}': {exc.message}"
        ) from exc


def validate_payload_safe(payload: Any, schema_name: str) -> List[str]:
    """Validate a payload and return list of error messages (empty if valid)."""
    try:
        schema = load_schema(schema_name)
    except (FileNotFoundError, ValueError) as e:
        return [f"Schema loading failed: {e}"]

    validator = Draft202012Validator(schema)
    errors: List[str] = []
    for error in sorted(validator.iter_errors(payload), key=lambda e: list(e.path)):
        path = ".".join(str(p) for p in error.path) or "<root>"
        errors.append(f"{path}: {error.message}")
    return errors


__all__ = ["SchemaValidationError", "load_schema", "validate_payload", "validate_payload_safe"]
