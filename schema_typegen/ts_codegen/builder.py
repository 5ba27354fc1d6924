"""Normalize raw schema values into ``SchemaShape`` trees.

The builder is the only place that looks at untyped schema input. Anything
it cannot make sense of becomes ``Unknown`` and is reported as a diagnostic
instead of aborting the whole conversion.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Sequence

from ..shared import Diagnostic, component_name
from .registry import ShapeRegistry
from .shapes import (
    ITEM_SEGMENT,
    NULL,
    PRIMITIVE_KINDS,
    UNKNOWN,
    VALUES_SEGMENT,
    Array,
    EnumValues,
    Field,
    LiteralValue,
    Object,
    Primitive,
    Reference,
    SchemaShape,
    format_path,
    is_literal,
    make_union,
)

logger = logging.getLogger(__name__)


def split_pointer(pointer: str) -> list[str]:
    """Split an internal ``#/a/b`` reference into unescaped segments."""
    if pointer in ("#", ""):
        return []
    if not pointer.startswith("#/"):
        raise ValueError(f"Not an internal reference: {pointer!r}")
    return [
        segment.replace("~1", "/").replace("~0", "~")
        for segment in pointer[2:].split("/")
    ]


def escape_pointer_segment(segment: str) -> str:
    return segment.replace("~", "~0").replace("/", "~1")


def resolve_pointer(document: Any, pointer: str) -> Any:
    """Follow an internal JSON pointer through ``document``.

    Raises:
        LookupError: If any segment is missing.
        ValueError: If ``pointer`` is not an internal reference.
    """
    node = document
    for segment in split_pointer(pointer):
        if isinstance(node, Mapping):
            if segment not in node:
                raise KeyError(segment)
            node = node[segment]
        elif isinstance(node, list):
            try:
                node = node[int(segment)]
            except ValueError as e:
                raise LookupError(segment) from e
        else:
            raise LookupError(segment)
    return node


class SchemaBuilder:
    """Turns schema mappings into shapes, registering referenced components.

    Args:
        registry: Registry for the current call.
        document: Root value that internal ``$ref`` pointers resolve against.
        diagnostics: List that non-fatal problems are appended to.
        hoist_nested: When set, every nested object is promoted into a
            named component as soon as it is built.
    """

    def __init__(
        self,
        registry: ShapeRegistry,
        document: Any,
        diagnostics: list[Diagnostic],
        *,
        hoist_nested: bool = False,
    ) -> None:
        self.registry = registry
        self.document = document
        self.diagnostics = diagnostics
        self.hoist_nested = hoist_nested
        self._building: set[str] = set()

    # -- entry points ---------------------------------------------------

    def build(self, schema: Any, path: Sequence[str]) -> SchemaShape:
        """Build the root of a fragment; the result itself is never hoisted."""
        return self._build(schema, tuple(path))

    def build_nested(self, schema: Any, path: Sequence[str]) -> SchemaShape:
        shape = self._build(schema, tuple(path))
        if self.hoist_nested:
            return self.registry.promote(shape, path)
        return shape

    def build_component(self, name: str) -> None:
        """Build a component that was reserved with a pointer but not defined yet."""
        if self.registry.resolve(name) is not None or name in self._building:
            return
        pointer = self.registry.pointer_for(name)
        if pointer is None:
            return
        target = resolve_pointer(self.document, pointer)
        self._building.add(name)
        try:
            shape = self._build(target, (name,))
        finally:
            self._building.discard(name)
        self.registry.define(name, shape)

    def report(self, path: Sequence[str], reason: str) -> None:
        diagnostic = Diagnostic(format_path(path), reason)
        logger.debug("%s", diagnostic)
        self.diagnostics.append(diagnostic)

    def _unknown(self, path: Sequence[str], reason: str) -> SchemaShape:
        self.report(path, reason)
        return UNKNOWN

    # -- dispatch -------------------------------------------------------

    def _build(self, schema: Any, path: tuple[str, ...]) -> SchemaShape:
        if isinstance(schema, bool):
            if schema:
                return UNKNOWN
            return self._unknown(path, "schema 'false' admits no values")
        if not isinstance(schema, Mapping):
            return self._unknown(path, f"expected a schema object, got {type(schema).__name__}")
        if "$ref" in schema:
            return self._build_reference(schema["$ref"], path)

        shape = self._build_keywords(schema, path)
        if schema.get("nullable") is True:
            shape = make_union((shape, NULL))
        return shape

    def _build_keywords(self, schema: Mapping[str, Any], path: tuple[str, ...]) -> SchemaShape:
        if "const" in schema:
            return self._build_literal(schema["const"], path)
        if "enum" in schema:
            return self._build_enum(schema["enum"], path)
        if "allOf" in schema:
            return self._build_all_of(schema, path)
        if "oneOf" in schema and "anyOf" in schema:
            return self._unknown(path, "'oneOf' and 'anyOf' cannot be combined")
        for keyword in ("oneOf", "anyOf"):
            if keyword in schema:
                return self._build_union(schema[keyword], keyword, path)

        schema_type = schema.get("type")
        if isinstance(schema_type, list):
            return self._build_type_list(schema, schema_type, path)
        if schema_type == "object" or (
            schema_type is None
            and ("properties" in schema or isinstance(schema.get("additionalProperties"), Mapping))
        ):
            return self._build_object(schema, path)
        if schema_type == "array" or (schema_type is None and "items" in schema):
            return self._build_array(schema, path)
        if schema_type in PRIMITIVE_KINDS:
            return Primitive(schema_type)
        if schema_type is None:
            return UNKNOWN
        return self._unknown(path, f"unsupported type {schema_type!r}")

    # -- references -----------------------------------------------------

    def _build_reference(self, ref: Any, path: tuple[str, ...]) -> SchemaShape:
        if not isinstance(ref, str):
            return self._unknown(path, "'$ref' must be a string")
        name = self.registry.name_for_pointer(ref)
        if name is not None:
            return Reference(name)
        if not ref.startswith("#/"):
            return self._unknown(path, f"unsupported reference '{ref}'")
        try:
            resolve_pointer(self.document, ref)
        except LookupError:
            return self._unknown(path, f"unresolvable reference '{ref}'")

        name = self.registry.reserve(exact=component_name(split_pointer(ref)[-1]), pointer=ref)
        self.build_component(name)
        return Reference(name)

    def _component_object(self, shape: SchemaShape) -> Object | None:
        """Resolve ``shape`` through references to an object, building on demand."""
        seen: set[str] = set()
        while isinstance(shape, Reference):
            if shape.name in seen:
                return None
            seen.add(shape.name)
            self.build_component(shape.name)
            target = self.registry.resolve(shape.name)
            if target is None:
                return None
            shape = target
        return shape if isinstance(shape, Object) else None

    # -- scalars --------------------------------------------------------

    def _build_literal(self, value: Any, path: tuple[str, ...]) -> SchemaShape:
        if not is_literal(value):
            return self._unknown(path, f"constant {value!r} is not a scalar")
        return LiteralValue.of(value)

    def _build_enum(self, values: Any, path: tuple[str, ...]) -> SchemaShape:
        if not isinstance(values, list) or not values:
            return self._unknown(path, "'enum' must be a non-empty list")
        literals: list[LiteralValue] = []
        for value in values:
            if not is_literal(value):
                self.report(path, f"enum value {value!r} is not a scalar; skipped")
                continue
            literal = LiteralValue.of(value)
            if literal not in literals:
                literals.append(literal)
        if not literals:
            return UNKNOWN
        if len(literals) == 1:
            return literals[0]
        return EnumValues(tuple(literals))

    # -- combinators ----------------------------------------------------

    def _build_union(self, options: Any, keyword: str, path: tuple[str, ...]) -> SchemaShape:
        if not isinstance(options, list) or not options:
            return self._unknown(path, f"'{keyword}' must be a non-empty list")
        return make_union([self.build_nested(option, path) for option in options])

    def _build_type_list(
        self,
        schema: Mapping[str, Any],
        types: list[Any],
        path: tuple[str, ...],
    ) -> SchemaShape:
        variants: list[SchemaShape] = []
        for schema_type in types:
            if not isinstance(schema_type, str):
                self.report(path, f"type entry {schema_type!r} is not a string; skipped")
                continue
            variants.append(self._build_keywords({**schema, "type": schema_type}, path))
        if not variants:
            return self._unknown(path, "'type' list has no usable entries")
        return make_union(variants)

    def _build_all_of(self, schema: Mapping[str, Any], path: tuple[str, ...]) -> SchemaShape:
        members = schema["allOf"]
        if not isinstance(members, list) or not members:
            return self._unknown(path, "'allOf' must be a non-empty list")

        sources = list(members)
        if "properties" in schema or isinstance(schema.get("additionalProperties"), Mapping):
            sources.append({
                key: schema[key]
                for key in ("type", "properties", "additionalProperties", "title")
                if key in schema
            })
        extra_required = self._required_names(schema, path)

        if len(sources) == 1 and not extra_required:
            return self._build(sources[0], path)

        objects: list[Object] = []
        for index, member in enumerate(sources):
            resolved = self._component_object(self._build(member, path))
            if resolved is None:
                return self._unknown(path, f"'allOf' member {index} does not resolve to an object")
            objects.append(resolved)
        merged = self._merge_objects(objects, path)
        if extra_required:
            merged = replace(merged, fields=tuple(
                replace(item, required=True) if item.name in extra_required else item
                for item in merged.fields
            ))
        title = schema.get("title")
        return replace(merged, title=title if isinstance(title, str) else merged.title)

    def _merge_objects(self, objects: Sequence[Object], path: tuple[str, ...]) -> Object:
        merged: dict[str, Field] = {}
        for obj in objects:
            for item in obj.fields:
                existing = merged.get(item.name)
                if existing is None:
                    merged[item.name] = item
                    continue
                if not self.registry.equivalent(existing.shape, item.shape):
                    self.report(
                        path + (item.name,),
                        "conflicting definitions in 'allOf'; keeping the first",
                    )
                if item.required and not existing.required:
                    merged[item.name] = replace(existing, required=True)
        additional = next((o.additional for o in objects if o.additional is not None), None)
        return Object(tuple(merged.values()), additional, origin=path, title=objects[0].title)

    # -- containers -----------------------------------------------------

    def _required_names(self, schema: Mapping[str, Any], path: tuple[str, ...]) -> set[str]:
        required = schema.get("required")
        if required is None:
            return set()
        if not isinstance(required, list):
            self.report(path, "'required' must be a list of property names")
            return set()
        return {name for name in required if isinstance(name, str)}

    def _build_object(self, schema: Mapping[str, Any], path: tuple[str, ...]) -> SchemaShape:
        properties = schema.get("properties") or {}
        if not isinstance(properties, Mapping):
            self.report(path, "'properties' must be a mapping")
            properties = {}
        required = self._required_names(schema, path)

        fields: list[Field] = []
        for raw_name, prop in properties.items():
            name = str(raw_name)
            fields.append(Field(
                name=name,
                shape=self.build_nested(prop, path + (name,)),
                required=name in required,
                description=_text(prop, "description"),
                deprecated=isinstance(prop, Mapping) and prop.get("deprecated") is True,
            ))

        additional = schema.get("additionalProperties")
        additional_shape = None
        if isinstance(additional, Mapping):
            additional_shape = self.build_nested(additional, path + (VALUES_SEGMENT,))

        title = schema.get("title")
        return Object(
            dedupe_fields(fields, path, self.report),
            additional_shape,
            origin=path,
            title=title if isinstance(title, str) else None,
        )

    def _build_array(self, schema: Mapping[str, Any], path: tuple[str, ...]) -> SchemaShape:
        items = schema.get("items")
        item_path = path + (ITEM_SEGMENT,)
        if items is None:
            return Array(UNKNOWN)
        if isinstance(items, list):
            # Tuple-form items; the element type is any of the positions
            return Array(make_union([self.build_nested(item, item_path) for item in items]))
        return Array(self.build_nested(items, item_path))


def dedupe_fields(fields: Sequence[Field], path: Sequence[str], report) -> tuple[Field, ...]:
    """Keep the first field of each name, reporting the ones dropped."""
    seen: dict[str, Field] = {}
    for item in fields:
        if item.name in seen:
            report(tuple(path) + (item.name,), "duplicate field; keeping the first")
            continue
        seen[item.name] = item
    return tuple(seen.values())


def _text(value: Any, key: str) -> str | None:
    if isinstance(value, Mapping):
        text = value.get(key)
        if isinstance(text, str) and text:
            return text
    return None
