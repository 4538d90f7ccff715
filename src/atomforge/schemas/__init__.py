"""AtomForge JSON Schema definitions and validation utilities.

Schemas:
    - manifest.schema.json: Persisted solution manifest
    - settings.schema.json: CLI settings file (atomforge.json)

Usage:
    from atomforge.schemas import validate_manifest

    with open("solution_manifest.json") as f:
        data = json.load(f)
    validate_manifest(data)  # Raises jsonschema.ValidationError if invalid
"""

from __future__ import annotations

import json
from functools import cache
from importlib.resources import files
from typing import Any

import jsonschema


@cache
def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'manifest.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("atomforge.schemas").joinpath(name).read_text()
    result: dict[str, Any] = json.loads(schema_text)
    return result


def get_manifest_schema() -> dict[str, Any]:
    return _load_schema("manifest.schema.json")


def get_settings_schema() -> dict[str, Any]:
    return _load_schema("settings.schema.json")


def validate_manifest(data: dict[str, Any]) -> None:
    """Validate a serialized manifest against the schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_manifest_schema())


def validate_settings(data: dict[str, Any]) -> None:
    """Validate a settings document against the schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_settings_schema())


__all__ = [
    "get_manifest_schema",
    "get_settings_schema",
    "validate_manifest",
    "validate_settings",
]
