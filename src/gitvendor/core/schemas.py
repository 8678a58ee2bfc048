"""Schema validation for persisted gitvendor documents.

Schemas are stored as YAML files under ``gitvendor/data/schemas`` and applied
with ``jsonschema`` (Draft 2020-12) before any document is turned into
models.
"""
from __future__ import annotations

from typing import Any, List

from jsonschema import Draft202012Validator

from gitvendor.data import read_yaml


class SchemaValidationError(ValueError):
    """Raised when a document does not match its schema."""

    def __init__(self, schema_name: str, errors: List[str]) -> None:
        self.schema_name = schema_name
        self.errors = errors
        super().__init__(f"{schema_name}: " + "; ".join(errors))


def _format_error_path(path: Any) -> str:
    parts = [str(p) for p in path]
    return ".".join(parts) if parts else "<root>"


def validate_document(document: Any, schema_name: str) -> None:
    """Validate ``document`` against the bundled schema ``schema_name``.

    Args:
        document: Parsed YAML document
        schema_name: File name under ``data/schemas`` (e.g. ``lock.schema.yaml``)

    Raises:
        SchemaValidationError: With every violation, sorted by location
    """
    schema = read_yaml("schemas", schema_name)
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(document), key=lambda e: [str(p) for p in e.absolute_path])
    if errors:
        raise SchemaValidationError(
            schema_name,
            [f"{_format_error_path(e.absolute_path)}: {e.message}" for e in errors],
        )


__all__ = ["SchemaValidationError", "validate_document"]
