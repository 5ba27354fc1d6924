"""Generate TypeScript type declarations from JSON Schema and OpenAPI documents."""

from .shared import (
    Diagnostic,
    NameCollisionError,
    SchemaError,
    SchemaValidationError,
    TypeMappingError,
)
from .ts_codegen import (
    OpenApiComponent,
    OpenApiOutput,
    OpenApiPath,
    OpenApiResponse,
    SchemaTypeOptions,
    TypeDeclaration,
    openapi_to_types,
    schema_to_type,
    schema_to_type_result,
)

__all__ = [
    "Diagnostic",
    "NameCollisionError",
    "SchemaError",
    "SchemaValidationError",
    "TypeMappingError",
    "OpenApiComponent",
    "OpenApiOutput",
    "OpenApiPath",
    "OpenApiResponse",
    "SchemaTypeOptions",
    "TypeDeclaration",
    "openapi_to_types",
    "schema_to_type",
    "schema_to_type_result",
]
