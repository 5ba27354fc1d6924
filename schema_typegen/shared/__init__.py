"""Shared utilities for schema_typegen."""

from .schema_loader import (
    SCHEMA_SUFFIXES,
    load_schema,
    collect_schema_paths,
)
from .naming import (
    to_pascal_case,
    to_type_name,
    singularize,
    is_identifier,
    component_name,
    format_property_name,
    TS_RESERVED_WORDS,
    TS_GLOBAL_TYPES,
)
from .errors import (
    Diagnostic,
    SchemaError,
    SchemaValidationError,
    NameCollisionError,
    TypeMappingError,
)

__all__ = [
    # Schema loading
    "SCHEMA_SUFFIXES",
    "load_schema",
    "collect_schema_paths",
    # Naming utilities
    "to_pascal_case",
    "to_type_name",
    "singularize",
    "is_identifier",
    "component_name",
    "format_property_name",
    "TS_RESERVED_WORDS",
    "TS_GLOBAL_TYPES",
    # Errors
    "Diagnostic",
    "SchemaError",
    "SchemaValidationError",
    "NameCollisionError",
    "TypeMappingError",
]
