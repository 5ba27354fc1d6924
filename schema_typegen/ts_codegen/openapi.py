"""Convert OpenAPI documents into per-operation type bundles.

Components are declared first, in document order, so inline shapes found
while walking the paths can reuse them. Every nested object is hoisted into
the shared component table; the root of each operation fragment (path
parameters, query parameters, request body, each response) is rendered
inline unless it matches an existing component.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Final, Iterator

from ..shared import (
    Diagnostic,
    SchemaValidationError,
    component_name,
    to_pascal_case,
    to_type_name,
)
from .builder import SchemaBuilder, dedupe_fields, escape_pointer_segment, resolve_pointer
from .emitter import SchemaTypeOptions, TypeEmitter
from .registry import ShapeRegistry
from .shapes import Field, Object, Reference, SchemaShape

logger = logging.getLogger(__name__)

# HTTP methods recognized as operations on a path item
HTTP_METHODS: Final[frozenset[str]] = frozenset({
    "get", "put", "post", "delete", "options", "head", "patch", "trace"
})

JSON_MEDIA_TYPE: Final = "application/json"

# Parameter keys that describe the parameter rather than its value (Swagger 2.0)
_PARAMETER_META_KEYS: Final[frozenset[str]] = frozenset({
    "name", "in", "required", "description", "deprecated", "allowEmptyValue",
    "collectionFormat", "style", "explode", "example", "examples",
})


@dataclass(slots=True)
class OpenApiResponse:
    description: str
    ts_type: str

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "tsType": self.ts_type}


@dataclass(slots=True)
class OpenApiPath:
    """Types for one operation (a path and an HTTP method)."""

    path: str
    method: str
    type_name: str
    summary: str | None = None
    description: str | None = None
    query_ts_type: str | None = None
    path_ts_type: str | None = None
    request_body: str | None = None
    responses: dict[str, OpenApiResponse] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path, "method": self.method}
        optional = {
            "summary": self.summary,
            "description": self.description,
            "queryTsType": self.query_ts_type,
            "pathTsType": self.path_ts_type,
            "requestBody": self.request_body,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        data["responses"] = {code: r.to_dict() for code, r in self.responses.items()}
        return data


@dataclass(slots=True)
class OpenApiComponent:
    name: str
    ts_type: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "tsType": self.ts_type}


@dataclass(slots=True)
class OpenApiOutput:
    paths: list[OpenApiPath] = field(default_factory=list)
    components: list[OpenApiComponent] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "paths": [p.to_dict() for p in self.paths],
            "components": [c.to_dict() for c in self.components],
            "diagnostics": [{"path": d.path, "reason": d.reason} for d in self.diagnostics],
        }


def validate_document(document: Any) -> None:
    """Check the top level of an OpenAPI document.

    Raises:
        SchemaValidationError: If the document cannot be processed at all.
    """
    if not isinstance(document, Mapping):
        raise SchemaValidationError(
            f"OpenAPI document must be a mapping, got {type(document).__name__}", "#"
        )
    if "openapi" not in document and "swagger" not in document:
        raise SchemaValidationError("missing OpenAPI version", "#", field="openapi")
    if not isinstance(document.get("paths"), Mapping):
        raise SchemaValidationError("'paths' must be a mapping", "#", field="paths")


class OpenApiOrchestrator:
    """Walks an OpenAPI document and collects typed operation bundles.

    Instances are single use: create one per document and call ``run``.
    """

    def __init__(
        self,
        document: Mapping[str, Any],
        options: SchemaTypeOptions | None = None,
    ) -> None:
        validate_document(document)
        self.document = document
        self.registry = ShapeRegistry()
        self.diagnostics: list[Diagnostic] = []
        self.builder = SchemaBuilder(
            self.registry, document, self.diagnostics, hoist_nested=True
        )
        self.emitter = TypeEmitter(options)
        self._operation_names: dict[str, int] = {}

    @property
    def is_swagger(self) -> bool:
        return "swagger" in self.document and "openapi" not in self.document

    def run(self) -> OpenApiOutput:
        self._declare_components()
        paths = list(self._iter_operations())
        components = [
            OpenApiComponent(c.name, self.emitter.declaration(c.name, c.shape))
            for c in self.registry.components()
        ]
        logger.debug(
            "Converted %d operations into %d components (%d diagnostics)",
            len(paths), len(components), len(self.diagnostics),
        )
        return OpenApiOutput(paths, components, list(self.diagnostics))

    # -- components -----------------------------------------------------

    def _component_table(self) -> tuple[str, Any]:
        if self.is_swagger:
            return "#/definitions/", self.document.get("definitions")
        components = self.document.get("components")
        if components is None:
            return "#/components/schemas/", None
        if not isinstance(components, Mapping):
            self.builder.report(("components",), "'components' must be a mapping")
            return "#/components/schemas/", None
        return "#/components/schemas/", components.get("schemas")

    def _declare_components(self) -> None:
        prefix, schemas = self._component_table()
        if schemas is None:
            return
        if not isinstance(schemas, Mapping):
            self.builder.report(("components",), "component schemas must be a mapping")
            return
        names = [
            self.registry.reserve(
                exact=component_name(str(key)),
                pointer=prefix + escape_pointer_segment(str(key)),
            )
            for key in schemas
        ]
        for name in names:
            self.builder.build_component(name)

    # -- paths ----------------------------------------------------------

    def _iter_operations(self) -> Iterator[OpenApiPath]:
        for path, raw_item in self.document["paths"].items():
            path = str(path)
            path_item = self._dereference(raw_item, (path,))
            if not isinstance(path_item, Mapping):
                self.builder.report((path,), "path item must be a mapping; skipped")
                continue
            shared_params = path_item.get("parameters")
            for method, operation in path_item.items():
                if method not in HTTP_METHODS:
                    continue
                if not isinstance(operation, Mapping):
                    self.builder.report((path, method), "operation must be a mapping; skipped")
                    continue
                yield self._build_operation(path, method, operation, shared_params)

    def _operation_type_name(self, path: str, method: str, operation: Mapping[str, Any]) -> str:
        operation_id = operation.get("operationId")
        if isinstance(operation_id, str) and to_pascal_case(operation_id):
            base = to_type_name(operation_id)
        else:
            base = method.capitalize() + "".join(
                to_pascal_case(segment) for segment in path.split("/") if segment
            )
        return _ensure_unique(base, self._operation_names)

    def _build_operation(
        self,
        path: str,
        method: str,
        operation: Mapping[str, Any],
        shared_params: Any,
    ) -> OpenApiPath:
        type_name = self._operation_type_name(path, method, operation)
        parameters = self._collect_parameters(operation.get("parameters"), shared_params, type_name)
        entry = OpenApiPath(
            path=path,
            method=method,
            type_name=type_name,
            summary=_text(operation.get("summary")),
            description=_text(operation.get("description")),
        )
        entry.path_ts_type = self._parameters_type(parameters, "path", f"{type_name}Path")
        entry.query_ts_type = self._parameters_type(parameters, "query", f"{type_name}Query")
        entry.request_body = self._request_body_type(operation, parameters, type_name)
        entry.responses = self._responses(operation.get("responses"), type_name)
        return entry

    # -- parameters -----------------------------------------------------

    def _collect_parameters(
        self,
        operation_params: Any,
        shared_params: Any,
        context: str,
    ) -> list[Mapping[str, Any]]:
        """Merge operation and path-level parameters.

        Operation parameters come first and override path-level ones with the
        same name and location. A repeat within one list is reported and dropped.
        """
        merged: dict[tuple[str, str], Mapping[str, Any]] = {}
        for raw_list in (operation_params, shared_params):
            if raw_list is None:
                continue
            if not isinstance(raw_list, list):
                self.builder.report((context,), "'parameters' must be a list")
                continue
            level: set[tuple[str, str]] = set()
            for raw in raw_list:
                param = self._dereference(raw, (context,))
                if (
                    not isinstance(param, Mapping)
                    or not isinstance(param.get("name"), str)
                    or not isinstance(param.get("in"), str)
                ):
                    self.builder.report((context,), "parameter needs a 'name' and 'in'; skipped")
                    continue
                key = (param["in"], param["name"])
                if key in level:
                    self.builder.report(
                        (context, param["name"]), "duplicate parameter; keeping the first"
                    )
                    continue
                level.add(key)
                merged.setdefault(key, param)
        return list(merged.values())

    def _parameter_schema(self, param: Mapping[str, Any]) -> Any:
        if "schema" in param:
            return param["schema"]
        content_schema = _media_schema(param.get("content"))
        if content_schema is not None:
            return content_schema
        return {key: value for key, value in param.items() if key not in _PARAMETER_META_KEYS}

    def _parameters_type(
        self,
        parameters: list[Mapping[str, Any]],
        location: str,
        root: str,
    ) -> str | None:
        selected = [p for p in parameters if p["in"] == location]
        if not selected:
            return None
        fields = [
            Field(
                name=p["name"],
                shape=self.builder.build_nested(self._parameter_schema(p), (root, p["name"])),
                required=location == "path" or p.get("required") is True,
                description=_text(p.get("description")),
                deprecated=p.get("deprecated") is True,
            )
            for p in selected
        ]
        shape = Object(dedupe_fields(fields, (root,), self.builder.report), origin=(root,))
        return self._fragment(shape)

    # -- bodies ---------------------------------------------------------

    def _request_body_type(
        self,
        operation: Mapping[str, Any],
        parameters: list[Mapping[str, Any]],
        type_name: str,
    ) -> str | None:
        root = f"{type_name}Body"
        schema = None
        if "requestBody" in operation:
            body = self._dereference(operation["requestBody"], (root,))
            if isinstance(body, Mapping):
                schema = _media_schema(body.get("content"))
            else:
                self.builder.report((root,), "request body must be a mapping; skipped")
        else:
            body_param = next((p for p in parameters if p["in"] == "body"), None)
            if body_param is not None:
                schema = body_param.get("schema")
        if schema is None:
            return None
        return self._fragment(self.builder.build(schema, (root,)))

    def _responses(self, responses: Any, type_name: str) -> dict[str, OpenApiResponse]:
        if responses is None:
            return {}
        if not isinstance(responses, Mapping):
            self.builder.report((type_name,), "'responses' must be a mapping")
            return {}
        result: dict[str, OpenApiResponse] = {}
        for raw_code, raw_response in responses.items():
            code = str(raw_code)
            root = f"{type_name}Response{to_pascal_case(code)}"
            response = self._dereference(raw_response, (root,))
            if not isinstance(response, Mapping):
                self.builder.report((root,), "response must be a mapping; skipped")
                continue
            if "content" in response:
                schema = _media_schema(response["content"])
            else:
                schema = response.get("schema")
            if schema is None:
                ts_type = self.emitter.no_content()
            else:
                ts_type = self._fragment(self.builder.build(schema, (root,)))
            result[code] = OpenApiResponse(_text(response.get("description")) or "", ts_type)
        return result

    # -- helpers --------------------------------------------------------

    def _fragment(self, shape: SchemaShape) -> str:
        """Render a fragment root, reusing an equivalent component if there is one."""
        if isinstance(shape, Object) and not shape.is_empty:
            name = self.registry.find_equivalent(shape)
            if name is not None:
                shape = Reference(name)
        return self.emitter.expression(shape)

    def _dereference(self, value: Any, path: tuple[str, ...]) -> Any:
        """Follow ``$ref`` chains to non-schema objects (parameters, responses...)."""
        seen: set[str] = set()
        while isinstance(value, Mapping) and "$ref" in value:
            ref = value["$ref"]
            if not isinstance(ref, str) or not ref.startswith("#/"):
                self.builder.report(path, f"unsupported reference {ref!r}")
                return None
            if ref in seen:
                self.builder.report(path, f"circular reference '{ref}'")
                return None
            seen.add(ref)
            try:
                value = resolve_pointer(self.document, ref)
            except LookupError:
                self.builder.report(path, f"unresolvable reference '{ref}'")
                return None
        return value


def _ensure_unique(base: str, used: dict[str, int]) -> str:
    """Ensure an operation name is unique by appending a suffix if needed.

    Suffixed names are recorded too, so a later base that happens to equal
    one of them is suffixed in turn.
    """
    if base not in used:
        used[base] = 1
        return base
    while True:
        used[base] += 1
        candidate = f"{base}{used[base]}"
        if candidate not in used:
            used[candidate] = 1
            return candidate


def _media_schema(content: Any) -> Any:
    """Pick the schema of the best media type: JSON first, then the first with a schema."""
    if not isinstance(content, Mapping):
        return None
    media_types = [str(m) for m in content]
    ordered = sorted(
        media_types,
        key=lambda m: (m != JSON_MEDIA_TYPE, "json" not in m.lower()),
    )
    for media_type in ordered:
        media = content[media_type] if media_type in content else None
        if isinstance(media, Mapping) and "schema" in media:
            return media["schema"]
    return None


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
