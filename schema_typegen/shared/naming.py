"""Naming utilities for TypeScript code generation."""

from __future__ import annotations

import json
import re
from functools import lru_cache

TS_RESERVED_WORDS: frozenset[str] = frozenset({
    "any",
    "bigint",
    "boolean",
    "break",
    "case",
    "catch",
    "class",
    "const",
    "continue",
    "debugger",
    "default",
    "delete",
    "do",
    "else",
    "enum",
    "export",
    "extends",
    "false",
    "finally",
    "for",
    "function",
    "if",
    "implements",
    "import",
    "in",
    "instanceof",
    "interface",
    "let",
    "never",
    "new",
    "null",
    "number",
    "object",
    "package",
    "private",
    "protected",
    "public",
    "return",
    "static",
    "string",
    "super",
    "switch",
    "symbol",
    "this",
    "throw",
    "true",
    "try",
    "type",
    "typeof",
    "undefined",
    "unknown",
    "var",
    "void",
    "while",
    "with",
    "yield",
})

# Built-in global types a derived declaration name must not shadow
TS_GLOBAL_TYPES: frozenset[str] = frozenset({
    "Array",
    "ArrayBuffer",
    "BigInt",
    "Blob",
    "Boolean",
    "DataView",
    "Date",
    "Error",
    "Exclude",
    "Extract",
    "File",
    "Function",
    "Headers",
    "JSON",
    "Map",
    "Math",
    "Number",
    "Object",
    "Omit",
    "Partial",
    "Pick",
    "Promise",
    "Readonly",
    "Record",
    "RegExp",
    "Request",
    "Required",
    "Response",
    "Set",
    "String",
    "Symbol",
    "URL",
    "WeakMap",
    "WeakSet",
})

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# Common irregular plurals
_IRREGULAR_PLURALS: dict[str, str] = {
    "children": "child",
    "people": "person",
    "men": "man",
    "women": "woman",
    "mice": "mouse",
    "geese": "goose",
    "teeth": "tooth",
    "feet": "foot",
    "criteria": "criterion",
    "analyses": "analysis",
    "indices": "index",
    "appendices": "appendix",
    "matrices": "matrix",
    "vertices": "vertex",
}

# Words that look plural but name a single thing
_UNCOUNTABLE: frozenset[str] = frozenset({
    "data",
    "metadata",
    "news",
    "series",
    "species",
})


@lru_cache(maxsize=1024)
def singularize(name: str) -> str:
    """Convert a plural word to singular form.

    Uses caching for repeated calls with the same input.
    """
    lower = name.lower()
    if lower in _UNCOUNTABLE:
        return name
    if lower in _IRREGULAR_PLURALS:
        # Preserve original case pattern
        singular = _IRREGULAR_PLURALS[lower]
        if name[0].isupper():
            return singular.capitalize()
        return singular

    # Apply rules in order of specificity
    if name.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if name.endswith("ses") and len(name) > 3:
        return name[:-2]
    if name.endswith("xes") and len(name) > 3:
        return name[:-2]
    if name.endswith("zes") and len(name) > 3:
        return name[:-2]
    if name.endswith("ches") and len(name) > 4:
        return name[:-2]
    if name.endswith("shes") and len(name) > 4:
        return name[:-2]
    if name.endswith(("ss", "us", "is")):
        return name
    if name.endswith("s") and len(name) > 1:
        return name[:-1]
    return name


@lru_cache(maxsize=1024)
def to_pascal_case(value: str) -> str:
    """Convert a string to PascalCase.

    Any run of characters that cannot appear in an identifier acts as a
    word separator, so path segments such as ``{userId}`` convert cleanly.

    Examples:
        >>> to_pascal_case("hello_world")
        'HelloWorld'
        >>> to_pascal_case("hello-world")
        'HelloWorld'
        >>> to_pascal_case("helloWorld")
        'HelloWorld'
        >>> to_pascal_case("{userId}")
        'UserId'
    """
    # Handle already camelCase/PascalCase by inserting underscores before caps
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", value)

    parts = [part for part in re.split(r"[^A-Za-z0-9]+", value) if part]
    return "".join(part.capitalize() for part in parts)


@lru_cache(maxsize=1024)
def to_type_name(value: str, fallback: str = "Schema") -> str:
    """Convert an arbitrary string into a PascalCase type identifier."""
    name = to_pascal_case(value)
    if not name:
        return fallback
    if name[0].isdigit():
        return f"T{name}"
    return name


@lru_cache(maxsize=1024)
def is_identifier(value: str) -> bool:
    """Return True if ``value`` can be used unquoted as a TypeScript identifier."""
    return bool(_IDENTIFIER_RE.match(value))


@lru_cache(maxsize=1024)
def component_name(value: str) -> str:
    """Name for a declared component; kept verbatim when already usable."""
    if is_identifier(value) and value not in TS_RESERVED_WORDS:
        return value
    return to_type_name(value)


@lru_cache(maxsize=4096)
def format_property_name(name: str) -> str:
    """Render an object key, quoting it when it is not a plain identifier."""
    if is_identifier(name):
        return name
    return json.dumps(name, ensure_ascii=False)
