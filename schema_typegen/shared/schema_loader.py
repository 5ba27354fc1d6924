"""Schema document loading for the command line tools."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Final, Iterator, Sequence

import yaml

from .errors import SchemaError

SCHEMA_SUFFIXES: Final[tuple[str, ...]] = (".json", ".yaml", ".yml")


def load_schema(schema_path: Path) -> dict[str, Any]:
    """Load a schema or OpenAPI document from a YAML or JSON file.

    Args:
        schema_path: Path to the document.

    Returns:
        The parsed document.

    Raises:
        SchemaError: If the file cannot be read or parsed, or its root
            is not a mapping.
    """
    try:
        content = schema_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Failed to read schema file: {e}", str(schema_path)) from e

    if schema_path.suffix.lower() == ".json":
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise SchemaError(f"Invalid JSON: {e}", str(schema_path)) from e
    else:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise SchemaError(f"Invalid YAML: {e}", str(schema_path)) from e

    if not isinstance(data, dict):
        raise SchemaError("Schema root must be a mapping", str(schema_path))

    return data


def collect_schema_paths(inputs: Sequence[Path]) -> list[Path]:
    """Collect all schema files from the given inputs.

    Args:
        inputs: Paths to schema files or directories.

    Returns:
        List of unique, resolved schema file paths.

    Raises:
        FileNotFoundError: If any input path doesn't exist.
    """

    def _iter_paths() -> Iterator[Path]:
        for raw in inputs:
            path = raw.resolve()
            if not path.exists():
                raise FileNotFoundError(f"Schema path '{raw}' does not exist")
            if path.is_dir():
                yield from sorted(
                    p
                    for p in path.iterdir()
                    if p.is_file() and p.suffix.lower() in SCHEMA_SUFFIXES
                )
            else:
                yield path

    # Use dict to preserve order while deduplicating
    seen: dict[Path, None] = {}
    for path in _iter_paths():
        seen.setdefault(path, None)

    return list(seen.keys())
