"""Intermediate representation of schema type shapes.

Every schema is normalized into one of a closed set of frozen dataclasses
before any naming or rendering happens. Metadata that does not affect the
type (descriptions, deprecation flags, where an object was declared) is
excluded from equality so that structurally identical shapes compare equal.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Final, Iterable, Iterator, Sequence

PRIMITIVE_KINDS: Final[frozenset[str]] = frozenset({
    "string", "number", "integer", "boolean", "null"
})

# Path markers for array items and index-signature values
ITEM_SEGMENT: Final = "[]"
VALUES_SEGMENT: Final = "{}"


@dataclass(frozen=True, slots=True)
class Primitive:
    kind: str


@dataclass(frozen=True, slots=True)
class LiteralValue:
    """A single constant; ``token`` is its TypeScript literal text."""

    token: str
    value: Any = field(default=None, compare=False)

    @classmethod
    def of(cls, value: Any) -> LiteralValue:
        return cls(literal_token(value), value)


@dataclass(frozen=True, slots=True)
class EnumValues:
    values: tuple[LiteralValue, ...]


@dataclass(frozen=True, slots=True)
class Array:
    element: SchemaShape


@dataclass(frozen=True, slots=True)
class Field:
    name: str
    shape: SchemaShape
    required: bool = False
    description: str | None = field(default=None, compare=False)
    deprecated: bool = field(default=False, compare=False)


@dataclass(frozen=True, slots=True)
class Object:
    fields: tuple[Field, ...] = ()
    additional: SchemaShape | None = None
    origin: tuple[str, ...] = field(default=(), compare=False)
    title: str | None = field(default=None, compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.fields and self.additional is None

    def get_field(self, name: str) -> Field | None:
        for item in self.fields:
            if item.name == name:
                return item
        return None


@dataclass(frozen=True, slots=True)
class Union:
    alternatives: tuple[SchemaShape, ...]


@dataclass(frozen=True, slots=True)
class Reference:
    name: str


@dataclass(frozen=True, slots=True)
class Unknown:
    pass


SchemaShape = Primitive | LiteralValue | EnumValues | Array | Object | Union | Reference | Unknown

NULL: Final = Primitive("null")
UNKNOWN: Final = Unknown()


def is_literal(value: Any) -> bool:
    """Return True if ``value`` can be written as a TypeScript literal type."""
    if value is None or isinstance(value, (bool, int, str)):
        return True
    return isinstance(value, float) and math.isfinite(value)


def literal_token(value: Any) -> str:
    """Canonical TypeScript literal text for a scalar JSON value.

    Integral floats collapse to integers so ``1`` and ``1.0`` are one literal,
    while ``True`` and ``1`` stay distinct.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Non-finite number {value!r} has no literal form")
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    raise TypeError(f"Unsupported literal value of type {type(value).__name__}")


def make_union(alternatives: Iterable[SchemaShape]) -> SchemaShape:
    """Build a union, flattening nested unions one level and dropping duplicates.

    A single surviving alternative is returned as-is; no alternatives at all
    degrade to ``Unknown``.
    """
    flat: list[SchemaShape] = []
    for alternative in alternatives:
        members = alternative.alternatives if isinstance(alternative, Union) else (alternative,)
        for member in members:
            if member not in flat:
                flat.append(member)
    if not flat:
        return UNKNOWN
    if len(flat) == 1:
        return flat[0]
    return Union(tuple(flat))


def children(shape: SchemaShape) -> Iterator[SchemaShape]:
    """Yield the directly nested shapes of ``shape``."""
    if isinstance(shape, Object):
        for item in shape.fields:
            yield item.shape
        if shape.additional is not None:
            yield shape.additional
    elif isinstance(shape, Array):
        yield shape.element
    elif isinstance(shape, Union):
        yield from shape.alternatives


def node_count(shape: SchemaShape) -> int:
    return 1 + sum(node_count(child) for child in children(shape))


def format_path(path: Sequence[str]) -> str:
    """Render a declaration path as ``Root.field[].nested``."""
    text = ""
    for segment in path:
        if segment in (ITEM_SEGMENT, VALUES_SEGMENT) or not text:
            text += segment
        else:
            text += f".{segment}"
    return text or "<root>"
