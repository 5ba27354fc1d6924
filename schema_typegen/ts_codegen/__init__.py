"""TypeScript Code Generator - Converts JSON Schema and OpenAPI documents into TypeScript types."""

from .main import (
    TypeDeclaration,
    GeneratorContext,
    schema_to_type,
    schema_to_type_result,
    openapi_to_types,
    render_module,
    main_schema,
    main_openapi,
)
from .emitter import SchemaTypeOptions, TypeEmitter
from .openapi import (
    OpenApiComponent,
    OpenApiOutput,
    OpenApiPath,
    OpenApiResponse,
)
from .registry import ShapeRegistry

__all__ = [
    "TypeDeclaration",
    "GeneratorContext",
    "schema_to_type",
    "schema_to_type_result",
    "openapi_to_types",
    "render_module",
    "main_schema",
    "main_openapi",
    "SchemaTypeOptions",
    "TypeEmitter",
    "OpenApiComponent",
    "OpenApiOutput",
    "OpenApiPath",
    "OpenApiResponse",
    "ShapeRegistry",
]
