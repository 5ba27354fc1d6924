"""Shape registry: naming, hoisting and structural deduplication."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Final, Iterator, Sequence

from ..shared import (
    NameCollisionError,
    SchemaError,
    TS_GLOBAL_TYPES,
    singularize,
    to_pascal_case,
    to_type_name,
)
from .shapes import (
    ITEM_SEGMENT,
    VALUES_SEGMENT,
    Array,
    EnumValues,
    LiteralValue,
    Object,
    Primitive,
    Reference,
    SchemaShape,
    Union,
    Unknown,
    children,
    format_path,
    make_union,
    node_count,
)

# Highest numeric suffix tried before giving up on a name
MAX_NAME_SUFFIX: Final[int] = 10_000

# How many node levels fingerprints unfold; references do not count
FINGERPRINT_DEPTH: Final[int] = 6

FALLBACK_NAME: Final = "Schema"


@dataclass(slots=True)
class NamedComponent:
    """A registry entry. ``shape`` is None while the name is only reserved."""

    name: str
    shape: SchemaShape | None = None
    pointer: str | None = None


@dataclass(slots=True)
class _OccurrenceClass:
    representative: Object
    origin: tuple[str, ...] = ()
    count: int = 0
    root_names: list[str] = field(default_factory=list)


def path_words(path: Sequence[str]) -> list[str]:
    """Collapse path markers into plain words used for naming.

    ``("Org", "teams", "[]")`` becomes ``["Org", "team"]``; an item of a word
    that is already singular becomes ``<word>_item`` and an index-signature
    value becomes ``<word>_value``.
    """
    words: list[str] = []
    for segment in path:
        if segment == ITEM_SEGMENT and words:
            previous = words.pop()
            single = singularize(previous)
            words.append(single if single != previous else f"{previous}_item")
        elif segment == VALUES_SEGMENT and words:
            words.append(f"{words.pop()}_value")
        elif segment not in (ITEM_SEGMENT, VALUES_SEGMENT):
            words.append(segment)
    return words


def candidate_names(path: Sequence[str], hint: str | None = None) -> list[str]:
    """Names to try for a hoisted shape, most specific last.

    The hint (a schema ``title``) comes first, then the last path word, then
    progressively longer tails of the path up to the root.
    """
    candidates: list[str] = []
    if hint:
        candidates.append(to_type_name(hint))
    parts = [to_pascal_case(word) for word in path_words(path)]
    parts = [part for part in parts if part]
    for start in range(len(parts) - 1, -1, -1):
        name = to_type_name("".join(parts[start:]))
        if name not in candidates:
            candidates.append(name)
    return candidates or [FALLBACK_NAME]


class ShapeRegistry:
    """Maps declaration names to shapes for a single conversion call.

    Names are reserved before their shapes are built so that recursive
    references terminate. Lookups for structural duplicates go through
    fingerprint buckets first, so the full equivalence check only runs
    against plausible candidates.
    """

    __slots__ = ("_components", "_by_pointer", "_buckets")

    def __init__(self) -> None:
        self._components: dict[str, NamedComponent] = {}
        self._by_pointer: dict[str, str] = {}
        self._buckets: dict[int, list[str]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def __len__(self) -> int:
        return len(self._components)

    def __iter__(self) -> Iterator[NamedComponent]:
        return iter(self.components())

    # -- naming ---------------------------------------------------------

    def reserve(
        self,
        path: Sequence[str] = (),
        *,
        exact: str | None = None,
        hint: str | None = None,
        pointer: str | None = None,
    ) -> str:
        """Reserve a unique name and return it.

        An ``exact`` name is used as given when free. Derived names walk the
        candidates from ``candidate_names`` and skip TypeScript global types.
        When every candidate is taken a numeric suffix starting at 2 is
        appended to the first one.
        """
        if exact is not None:
            candidates = [exact]
            usable = candidates
        else:
            candidates = candidate_names(path, hint)
            usable = [name for name in candidates if name not in TS_GLOBAL_TYPES]

        name = next((c for c in usable if c not in self._components), None)
        if name is None:
            name = self._suffixed(candidates[0], path)

        self._components[name] = NamedComponent(name=name, pointer=pointer)
        if pointer is not None:
            self._by_pointer[pointer] = name
        return name

    def _suffixed(self, base: str, path: Sequence[str]) -> str:
        for suffix in range(2, MAX_NAME_SUFFIX + 1):
            name = f"{base}{suffix}"
            if name not in self._components:
                return name
        raise NameCollisionError(base, MAX_NAME_SUFFIX - 1, format_path(path) if path else None)

    def name_for_pointer(self, pointer: str) -> str | None:
        return self._by_pointer.get(pointer)

    def pointer_for(self, name: str) -> str | None:
        component = self._components.get(name)
        return component.pointer if component is not None else None

    # -- definitions ----------------------------------------------------

    def define(self, name: str, shape: SchemaShape) -> None:
        component = self._components.get(name)
        if component is None:
            raise SchemaError(f"Cannot define unreserved component '{name}'")
        component.shape = shape
        self._buckets.setdefault(self.fingerprint(shape), []).append(name)

    def resolve(self, name: str) -> SchemaShape | None:
        """Return the shape registered under ``name``, or None while pending."""
        component = self._components.get(name)
        return component.shape if component is not None else None

    def components(self) -> list[NamedComponent]:
        """All components in registration order.

        Raises:
            SchemaError: If a reserved name was never given a shape, which
                would leave references to it dangling.
        """
        pending = [c.name for c in self._components.values() if c.shape is None]
        if pending:
            raise SchemaError(f"Components reserved but never defined: {', '.join(pending)}")
        return list(self._components.values())

    # -- structural comparison -----------------------------------------

    def fingerprint(self, shape: SchemaShape, depth: int = FINGERPRINT_DEPTH) -> int:
        """Order-independent structural hash of the first ``depth`` node levels.

        References are followed without consuming depth, so a reference and
        an inline copy of its target hash alike. Every other node consumes one
        level, which bounds cycles through arrays and unions as well as
        through object fields.
        """
        return self._fingerprint(shape, depth, frozenset())

    def _fingerprint(self, shape: SchemaShape, depth: int, following: frozenset[str]) -> int:
        # ``following`` holds the references unfolded since the last real node
        if depth <= 0:
            return 0
        if isinstance(shape, Reference):
            if shape.name in following:
                return hash(("ref-cycle",))
            target = self.resolve(shape.name)
            if target is None:
                return hash(("ref", shape.name))
            return self._fingerprint(target, depth, following | {shape.name})
        nested = depth - 1
        if isinstance(shape, Primitive):
            return hash(("primitive", shape.kind))
        if isinstance(shape, LiteralValue):
            return hash(("literal", shape.token))
        if isinstance(shape, EnumValues):
            return hash(("enum", tuple(sorted(v.token for v in shape.values))))
        if isinstance(shape, Array):
            return hash(("array", self._fingerprint(shape.element, nested, frozenset())))
        if isinstance(shape, Union):
            return hash(("union", tuple(sorted(
                self._fingerprint(a, nested, frozenset()) for a in shape.alternatives
            ))))
        if isinstance(shape, Object):
            fields = tuple(sorted(
                (f.name, f.required, self._fingerprint(f.shape, nested, frozenset()))
                for f in shape.fields
            ))
            additional = None
            if shape.additional is not None:
                additional = self._fingerprint(shape.additional, nested, frozenset())
            return hash(("object", fields, additional))
        return hash("unknown")

    def equivalent(self, left: SchemaShape, right: SchemaShape) -> bool:
        """Structural equivalence, resolving references and tolerating cycles."""
        return self._equivalent(left, right, set())

    def _equivalent(
        self,
        left: SchemaShape,
        right: SchemaShape,
        visited: set[tuple[object, object]],
    ) -> bool:
        if left is right:
            return True
        if isinstance(left, Reference) or isinstance(right, Reference):
            pair = (_identity(left), _identity(right))
            if pair in visited:
                return True
            visited.add(pair)
            if isinstance(left, Reference) and isinstance(right, Reference) and left.name == right.name:
                return True
            left_target = self._unwrap(left)
            right_target = self._unwrap(right)
            if left_target is None or right_target is None:
                return False
            return self._equivalent(left_target, right_target, visited)

        if type(left) is not type(right):
            return False
        if isinstance(left, (Primitive, LiteralValue, Unknown)):
            return left == right
        if isinstance(left, EnumValues):
            return {v.token for v in left.values} == {v.token for v in right.values}
        if isinstance(left, Array):
            return self._equivalent(left.element, right.element, visited)
        if isinstance(left, Union):
            if len(left.alternatives) != len(right.alternatives):
                return False
            return all(
                any(self._equivalent(a, b, visited) for b in right.alternatives)
                for a in left.alternatives
            ) and all(
                any(self._equivalent(a, b, visited) for a in left.alternatives)
                for b in right.alternatives
            )
        if isinstance(left, Object):
            if len(left.fields) != len(right.fields):
                return False
            for item in left.fields:
                other = right.get_field(item.name)
                if other is None or other.required != item.required:
                    return False
                if not self._equivalent(item.shape, other.shape, visited):
                    return False
            if (left.additional is None) != (right.additional is None):
                return False
            if left.additional is not None:
                return self._equivalent(left.additional, right.additional, visited)
            return True
        return False

    def _unwrap(self, shape: SchemaShape) -> SchemaShape | None:
        seen: set[str] = set()
        while isinstance(shape, Reference):
            if shape.name in seen:
                return None
            seen.add(shape.name)
            target = self.resolve(shape.name)
            if target is None:
                return None
            shape = target
        return shape

    def find_equivalent(self, shape: SchemaShape) -> str | None:
        """Name of a defined component structurally equivalent to ``shape``."""
        for name in self._buckets.get(self.fingerprint(shape), ()):
            candidate = self._components[name].shape
            if candidate is not None and self.equivalent(candidate, shape):
                return name
        return None

    # -- hoisting -------------------------------------------------------

    def promote(self, shape: SchemaShape, path: Sequence[str]) -> SchemaShape:
        """Hoist a nested object into a component and return a reference to it.

        An equivalent existing component is reused instead of declaring a new
        one. Anything other than a non-empty object is returned unchanged.
        """
        if not isinstance(shape, Object) or shape.is_empty:
            return shape
        name = self.find_equivalent(shape)
        if name is None:
            name = self.reserve(path, hint=shape.title)
            self.define(name, shape)
        return Reference(name)

    def share_repeated(self) -> None:
        """Hoist nested objects that occur more than once across all components.

        The largest repeated shape is hoisted first so that an object nested
        inside a repeated parent is not hoisted on its own. A nested object
        equivalent to an existing component root is replaced by a reference
        to that component.
        """
        while True:
            group = self._largest_repeated_class()
            if group is None:
                break
            if group.root_names:
                name = group.root_names[0]
            else:
                name = self.reserve(group.origin, hint=group.representative.title)
                self.define(name, group.representative)
            target = group.representative
            target_print = self.fingerprint(target)
            for component in self._components.values():
                if component.shape is not None:
                    component.shape = self._replace(component.shape, target, target_print, name, True)
        self._reindex()

    def _largest_repeated_class(self) -> _OccurrenceClass | None:
        classes: list[_OccurrenceClass] = []
        buckets: dict[int, list[_OccurrenceClass]] = {}
        for component in self._components.values():
            if component.shape is None:
                continue
            for node, is_root in _walk_objects(component.shape, True):
                if node.is_empty:
                    continue
                bucket = buckets.setdefault(self.fingerprint(node), [])
                match = next(
                    (c for c in bucket if self.equivalent(c.representative, node)),
                    None,
                )
                if match is None:
                    match = _OccurrenceClass(representative=node)
                    bucket.append(match)
                    classes.append(match)
                if is_root:
                    match.root_names.append(component.name)
                else:
                    if match.count == 0 and not match.root_names:
                        match.representative = node
                        match.origin = node.origin
                    match.count += 1

        candidates = [
            c for c in classes
            if c.count >= 2 or (c.count >= 1 and c.root_names)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda c: node_count(c.representative))

    def _replace(
        self,
        shape: SchemaShape,
        target: Object,
        target_print: int,
        name: str,
        is_root: bool = False,
    ) -> SchemaShape:
        if isinstance(shape, Object):
            if (
                not is_root
                and not shape.is_empty
                and self.fingerprint(shape) == target_print
                and self.equivalent(shape, target)
            ):
                return Reference(name)
            fields = tuple(
                replace(item, shape=self._replace(item.shape, target, target_print, name))
                for item in shape.fields
            )
            additional = shape.additional
            if additional is not None:
                additional = self._replace(additional, target, target_print, name)
            return replace(shape, fields=fields, additional=additional)
        if isinstance(shape, Array):
            return replace(shape, element=self._replace(shape.element, target, target_print, name))
        if isinstance(shape, Union):
            return make_union(
                self._replace(a, target, target_print, name) for a in shape.alternatives
            )
        return shape

    def _reindex(self) -> None:
        self._buckets.clear()
        for component in self._components.values():
            if component.shape is not None:
                self._buckets.setdefault(self.fingerprint(component.shape), []).append(component.name)


def _identity(shape: SchemaShape) -> object:
    if isinstance(shape, Reference):
        return shape.name
    return id(shape)


def _walk_objects(shape: SchemaShape, is_root: bool = False) -> Iterator[tuple[Object, bool]]:
    """Pre-order walk over the objects of a tree; references are not followed."""
    if isinstance(shape, Object):
        yield shape, is_root
    for child in children(shape):
        yield from _walk_objects(child)
