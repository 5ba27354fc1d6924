"""
TypeScript Code Generator - Generates TypeScript types from JSON Schema and OpenAPI documents.

This module provides:
- schema_to_type for a single named schema
- openapi_to_types for a whole OpenAPI document
- Template-based rendering of complete .ts modules for the command line
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..shared import (
    Diagnostic,
    SchemaError,
    SchemaValidationError,
    collect_schema_paths,
    is_identifier,
    load_schema,
    to_pascal_case,
    to_type_name,
    TS_RESERVED_WORDS,
)
from .builder import SchemaBuilder
from .emitter import SchemaTypeOptions, TypeEmitter, coerce_options
from .openapi import OpenApiOrchestrator, OpenApiOutput, OpenApiPath
from .registry import ShapeRegistry

logger = logging.getLogger(__name__)

TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"


@dataclass(frozen=True, slots=True)
class TypeDeclaration:
    """Declarations produced for one named schema."""

    name: str
    text: str
    diagnostics: tuple[Diagnostic, ...] = ()


def schema_to_type_result(
    name: str,
    schema: Mapping[str, Any],
    options: SchemaTypeOptions | Mapping[str, Any] | None = None,
) -> TypeDeclaration:
    """Convert one schema into a declaration named ``name``.

    The named declaration comes first, followed by every component it needs:
    referenced ``$defs``/``definitions`` entries and nested objects that
    occur more than once.

    Raises:
        SchemaValidationError: If ``name`` is not a usable identifier or
            ``schema`` is not a mapping.
        NameCollisionError: If no unique name can be found for a component.
    """
    if not isinstance(name, str) or not is_identifier(name) or name in TS_RESERVED_WORDS:
        raise SchemaValidationError(f"{name!r} is not a valid type name", field="name")
    if not isinstance(schema, Mapping):
        raise SchemaValidationError(
            f"schema must be a mapping, got {type(schema).__name__}", field="schema"
        )
    emitter = TypeEmitter(coerce_options(options))

    registry = ShapeRegistry()
    diagnostics: list[Diagnostic] = []
    root = registry.reserve(exact=name, pointer="#")
    builder = SchemaBuilder(registry, schema, diagnostics)
    builder.build_component(root)
    registry.share_repeated()

    text = "\n\n".join(emitter.declaration(c.name, c.shape) for c in registry.components())
    return TypeDeclaration(name=root, text=text, diagnostics=tuple(diagnostics))


def schema_to_type(
    name: str,
    schema: Mapping[str, Any],
    options: SchemaTypeOptions | Mapping[str, Any] | None = None,
) -> str:
    """Convert one schema into TypeScript declaration text.

    Diagnostics are logged as warnings; use ``schema_to_type_result`` to get
    them back as data.
    """
    result = schema_to_type_result(name, schema, options)
    for diagnostic in result.diagnostics:
        logger.warning("%s: %s", name, diagnostic)
    return result.text


def openapi_to_types(
    document: Mapping[str, Any],
    options: SchemaTypeOptions | Mapping[str, Any] | None = None,
) -> OpenApiOutput:
    """Convert an OpenAPI document into per-operation types and shared components.

    Raises:
        SchemaValidationError: If the document is missing its version or paths.
    """
    return OpenApiOrchestrator(document, coerce_options(options)).run()


@dataclass
class GeneratorContext:
    """Context for code generation with cached resources."""
    template_env: Environment = field(init=False)
    _module_template: Any = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,  # Disable auto-reload for performance
        )
        self.template_env.filters["pascal"] = to_pascal_case
        self.template_env.filters["comment"] = _comment_text
        # Pre-compile templates
        self._module_template = self.template_env.get_template("types.ts.jinja")

    @property
    def module_template(self):
        return self._module_template


def _comment_text(value: str) -> str:
    return " ".join(value.replace("*/", "*\\/").split())


def render_module(
    ctx: GeneratorContext,
    *,
    declarations: Sequence[str] = (),
    operations: Sequence[OpenApiPath] = (),
    source: str | None = None,
) -> str:
    """Render a complete TypeScript module."""
    return ctx.module_template.render(
        declarations=list(declarations),
        operations=list(operations),
        source=source,
    )


def _add_option_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--prefer-unknown", action="store_true", help="Use 'unknown' instead of 'any' for unconstrained values")
    parser.add_argument("--prefer-interface", action="store_true", help="Declare object types with 'export interface'")
    parser.add_argument("--verbose", action="store_true", help="Log conversion details")


def _options_from_args(args: argparse.Namespace) -> SchemaTypeOptions:
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    return SchemaTypeOptions(
        prefer_unknown_over_any=args.prefer_unknown,
        prefer_interface_over_type=args.prefer_interface,
    )


def _print_diagnostics(diagnostics: Sequence[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        print(f"Warning: {diagnostic}", file=sys.stderr)


def main_schema(argv: Sequence[str] | None = None) -> int:
    """Convert JSON Schema files into TypeScript modules."""
    parser = argparse.ArgumentParser(description="Generate TypeScript types from JSON Schema files")
    parser.add_argument("inputs", nargs="+", type=Path, help="Schema files or directories (JSON or YAML)")
    parser.add_argument("--name", help="Type name to declare (single input only); defaults to the file name")
    parser.add_argument("--out-dir", type=Path, help="Directory to write one .ts file per schema into")
    _add_option_flags(parser)
    args = parser.parse_args(argv)
    options = _options_from_args(args)

    try:
        paths = collect_schema_paths(args.inputs)
    except FileNotFoundError as e:
        raise SystemExit(str(e)) from e
    if not paths:
        raise SystemExit("No schema files found")
    if args.name and len(paths) > 1:
        raise SystemExit("--name can only be used with a single schema file")

    ctx = GeneratorContext()
    for path in paths:
        name = args.name or to_type_name(path.stem)
        try:
            result = schema_to_type_result(name, load_schema(path), options)
        except SchemaError as e:
            raise SystemExit(f"Error: {e}") from e
        _print_diagnostics(result.diagnostics)
        module = render_module(ctx, declarations=[result.text], source=path.name)
        if args.out_dir is None:
            sys.stdout.write(module)
            continue
        out_path = args.out_dir / f"{path.stem}.ts"
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(module, encoding="utf-8")
        print(f"Generated types -> {out_path}")
    return 0


def main_openapi(argv: Sequence[str] | None = None) -> int:
    """Convert an OpenAPI document into a TypeScript module."""
    parser = argparse.ArgumentParser(description="Generate TypeScript types from an OpenAPI document")
    parser.add_argument("spec", type=Path, help="Path to the OpenAPI specification (JSON or YAML)")
    parser.add_argument("--output", type=Path, help="Output path for the generated .ts module; defaults to stdout")
    parser.add_argument("--json", action="store_true", help="Print the conversion result as JSON instead of TypeScript")
    _add_option_flags(parser)
    args = parser.parse_args(argv)
    options = _options_from_args(args)

    try:
        output = openapi_to_types(load_schema(args.spec), options)
    except SchemaError as e:
        raise SystemExit(f"Error: {e}") from e
    _print_diagnostics(output.diagnostics)

    if args.json:
        text = json.dumps(output.to_dict(), indent=2) + "\n"
    else:
        text = render_module(
            GeneratorContext(),
            declarations=[c.ts_type for c in output.components],
            operations=output.paths,
            source=args.spec.name,
        )

    if args.output is None:
        sys.stdout.write(text)
        return 0
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(text, encoding="utf-8")
    print(f"Generated types -> {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main_openapi())
