#!/usr/bin/env python3
"""
Command line interface for schema_typegen.

Usage:
    python -m schema_typegen <command> [options]

Commands:
    schema      Convert JSON Schema files to TypeScript declarations
    openapi     Convert an OpenAPI document to TypeScript types

Examples:
    python -m schema_typegen schema schemas/user.json
    python -m schema_typegen schema schemas/ --out-dir src/types --prefer-unknown
    python -m schema_typegen openapi openapi.yaml --output src/api/types.ts
    python -m schema_typegen openapi openapi.yaml --json
"""

from __future__ import annotations

import sys


def _exit_code(e: SystemExit) -> int:
    if isinstance(e.code, int):
        return e.code
    if e.code is not None:
        print(e.code, file=sys.stderr)
        return 1
    return 0


def cmd_schema(args: list[str]) -> int:
    """Convert JSON Schema files."""
    from schema_typegen.ts_codegen import main as codegen
    try:
        return codegen.main_schema(args)
    except SystemExit as e:
        return _exit_code(e)


def cmd_openapi(args: list[str]) -> int:
    """Convert an OpenAPI document."""
    from schema_typegen.ts_codegen import main as codegen
    try:
        return codegen.main_openapi(args)
    except SystemExit as e:
        return _exit_code(e)


COMMANDS = {
    "schema": (cmd_schema, "Convert JSON Schema files to TypeScript declarations"),
    "openapi": (cmd_openapi, "Convert an OpenAPI document to TypeScript types"),
}


def main() -> int:
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help"):
        print(__doc__)
        print("Available commands:")
        for name, (_, desc) in COMMANDS.items():
            print(f"  {name:12} {desc}")
        print("\nUse '<command> --help' for command-specific options.")
        return 0

    command = sys.argv[1]
    args = sys.argv[2:]

    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(COMMANDS.keys())}")
        return 1

    handler, _ = COMMANDS[command]
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
