"""Render shapes as TypeScript type expressions and declarations."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Final

from ..shared import SchemaValidationError, TypeMappingError, format_property_name
from .shapes import (
    Array,
    EnumValues,
    Field,
    LiteralValue,
    Object,
    Primitive,
    Reference,
    SchemaShape,
    Union,
    Unknown,
)

INDENT: Final = "  "

# Body type of a response that declares no content
NO_CONTENT_TYPE: Final = "void"

PRIMITIVE_TYPES: Final[dict[str, str]] = {
    "string": "string",
    "number": "number",
    "integer": "number",
    "boolean": "boolean",
    "null": "null",
}

# Binding-style option names accepted by SchemaTypeOptions.from_mapping
_OPTION_ALIASES: Final[dict[str, str]] = {
    "preferUnknownOverAny": "prefer_unknown_over_any",
    "preferInterfaceOverType": "prefer_interface_over_type",
}


@dataclass(frozen=True, slots=True)
class SchemaTypeOptions:
    """Rendering options.

    Attributes:
        prefer_unknown_over_any: Render the permissive sentinel as ``unknown``
            instead of ``any``.
        prefer_interface_over_type: Declare top-level objects with
            ``export interface`` instead of ``export type``.
    """

    prefer_unknown_over_any: bool = False
    prefer_interface_over_type: bool = False

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> SchemaTypeOptions:
        """Build options from camelCase or snake_case keys.

        Raises:
            SchemaValidationError: On an unknown key or a non-boolean value.
        """
        if not options:
            return cls()
        known = {f.name for f in fields(cls)}
        values: dict[str, bool] = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise SchemaValidationError("unknown option", field=str(key))
            if not isinstance(value, bool):
                raise SchemaValidationError("option value must be a boolean", field=str(key))
            values[name] = value
        return cls(**values)


def coerce_options(options: SchemaTypeOptions | Mapping[str, Any] | None) -> SchemaTypeOptions:
    if isinstance(options, SchemaTypeOptions):
        return options
    if options is None or isinstance(options, Mapping):
        return SchemaTypeOptions.from_mapping(options)
    raise SchemaValidationError(
        f"options must be a mapping or SchemaTypeOptions, got {type(options).__name__}",
        field="options",
    )


class TypeEmitter:
    """Turns shapes into TypeScript source text.

    Output depends only on the shape and the options, so the same input
    always renders byte-for-byte the same.
    """

    __slots__ = ("options",)

    def __init__(self, options: SchemaTypeOptions | None = None) -> None:
        self.options = options or SchemaTypeOptions()

    @property
    def sentinel(self) -> str:
        return "unknown" if self.options.prefer_unknown_over_any else "any"

    def no_content(self) -> str:
        return NO_CONTENT_TYPE

    def declaration(self, name: str, shape: SchemaShape) -> str:
        if self.options.prefer_interface_over_type and isinstance(shape, Object):
            return f"export interface {name} {self.expression(shape)};"
        return f"export type {name} = {self.expression(shape)};"

    def expression(self, shape: SchemaShape, depth: int = 1) -> str:
        """Render ``shape`` as a type expression.

        ``depth`` is the indentation level that object fields are written at;
        the closing brace goes one level up.
        """
        if isinstance(shape, Union):
            return " | ".join(self._alternatives(shape, depth))
        if isinstance(shape, EnumValues):
            return " | ".join(self._alternatives(shape, depth))
        if isinstance(shape, Array):
            parts = self._alternatives(shape.element, depth)
            if len(parts) > 1:
                return f"({' | '.join(parts)})[]"
            return f"{parts[0]}[]"
        if isinstance(shape, Object):
            return self._object(shape, depth)
        if isinstance(shape, Primitive):
            try:
                return PRIMITIVE_TYPES[shape.kind]
            except KeyError:
                raise TypeMappingError(shape.kind, "primitive kind") from None
        if isinstance(shape, LiteralValue):
            return shape.token
        if isinstance(shape, Reference):
            return shape.name
        if isinstance(shape, Unknown):
            return self.sentinel
        raise TypeMappingError(type(shape).__name__, "shape")

    def _alternatives(self, shape: SchemaShape, depth: int) -> list[str]:
        """Rendered alternatives of ``shape`` with duplicate renderings dropped."""
        if isinstance(shape, Union):
            rendered = [self.expression(alternative, depth) for alternative in shape.alternatives]
        elif isinstance(shape, EnumValues):
            rendered = [value.token for value in shape.values]
        else:
            return [self.expression(shape, depth)]
        return list(dict.fromkeys(rendered))

    def _object(self, shape: Object, depth: int) -> str:
        if shape.is_empty:
            return "{}"
        indent = INDENT * depth
        lines: list[str] = []
        for item in shape.fields:
            lines.extend(self._doc_comment(item, indent))
            marker = "" if item.required else "?"
            lines.append(
                f"{indent}{format_property_name(item.name)}{marker}: "
                f"{self.expression(item.shape, depth + 1)};"
            )
        if shape.additional is not None:
            lines.append(f"{indent}[key: string]: {self.expression(shape.additional, depth + 1)};")
        return "{\n" + "\n".join(lines) + "\n" + INDENT * (depth - 1) + "}"

    @staticmethod
    def _doc_comment(item: Field, indent: str) -> list[str]:
        if not item.description and not item.deprecated:
            return []
        text = item.description or ""
        if item.deprecated:
            text = f"@deprecated {text}".rstrip()
        lines = [f"{indent}/**"]
        for line in text.replace("*/", "*\\/").splitlines() or [""]:
            lines.append(f"{indent} * {line}".rstrip())
        lines.append(f"{indent} */")
        return lines
