"""Custom exceptions and diagnostic records for type generation."""

from __future__ import annotations

from dataclasses import dataclass


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    def __init__(self, message: str, schema_path: str | None = None) -> None:
        self.schema_path = schema_path
        full_message = f"{message}" if not schema_path else f"[{schema_path}] {message}"
        super().__init__(full_message)


class SchemaValidationError(SchemaError):
    """Raised when top-level input is not something we can convert."""

    def __init__(
        self,
        message: str,
        schema_path: str | None = None,
        field: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        super().__init__(message, schema_path)


class NameCollisionError(SchemaError):
    """Raised when no unique declaration name can be derived."""

    def __init__(
        self,
        name: str,
        attempts: int,
        schema_path: str | None = None,
    ) -> None:
        self.name = name
        self.attempts = attempts
        super().__init__(
            f"Could not find a free name for '{name}' after {attempts} suffixes",
            schema_path,
        )


class TypeMappingError(SchemaError):
    """Raised when a type mapping is missing or invalid."""

    def __init__(
        self,
        type_name: str,
        context: str,
        schema_path: str | None = None,
    ) -> None:
        self.type_name = type_name
        super().__init__(f"No type mapping for '{type_name}' ({context})", schema_path)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A non-fatal problem found while converting a schema.

    The offending node is replaced by a permissive type and conversion
    carries on; the record keeps the location and the reason.
    """

    path: str
    reason: str

    def __str__(self) -> str:
        return f"[{self.path}] {self.reason}"
