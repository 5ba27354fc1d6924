import pytest

from schema_typegen.shared.errors import SchemaValidationError
from schema_typegen.ts_codegen.main import openapi_to_types
from schema_typegen.ts_codegen.openapi import (
    HTTP_METHODS,
    OpenApiComponent,
    OpenApiOrchestrator,
    OpenApiOutput,
    OpenApiPath,
    OpenApiResponse,
    validate_document,
)

USER = {
    "type": "object",
    "properties": {"id": {"type": "string"}},
    "required": ["id"],
}


def _json(schema):
    return {"application/json": {"schema": schema}}


def _document(paths, schemas=None):
    document = {"openapi": "3.0.3", "info": {"title": "Test", "version": "1"}, "paths": paths}
    if schemas is not None:
        document["components"] = {"schemas": schemas}
    return document


class TestValidateDocument:
    def test_not_a_mapping(self):
        with pytest.raises(SchemaValidationError):
            validate_document(["openapi"])

    def test_missing_version(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_document({"paths": {}})
        assert exc_info.value.field == "openapi"

    @pytest.mark.parametrize("paths", [None, [], "paths"])
    def test_paths_must_be_mapping(self, paths):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_document({"openapi": "3.1.0", "paths": paths})
        assert exc_info.value.field == "paths"

    def test_swagger_version_is_accepted(self):
        validate_document({"swagger": "2.0", "paths": {}})

    def test_orchestrator_validates_on_init(self):
        with pytest.raises(SchemaValidationError):
            OpenApiOrchestrator({"openapi": "3.0.0"})


class TestListUsersScenario:
    def test_list_users(self):
        document = _document(
            {
                "/users": {
                    "get": {
                        "responses": {
                            "200": {
                                "description": "OK",
                                "content": _json({
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/User"},
                                }),
                            }
                        }
                    }
                }
            },
            {"User": USER},
        )
        output = openapi_to_types(document)

        assert len(output.paths) == 1
        path = output.paths[0]
        assert path.path == "/users"
        assert path.method == "get"
        assert path.type_name == "GetUsers"
        assert path.query_ts_type is None
        assert path.path_ts_type is None
        assert path.request_body is None
        assert path.responses == {"200": OpenApiResponse("OK", "User[]")}
        assert output.components == [
            OpenApiComponent("User", "export type User = {\n  id: string;\n};")
        ]
        assert output.diagnostics == []


class TestComponents:
    def test_forward_references_keep_document_order(self):
        schemas = {
            "Order": {
                "type": "object",
                "properties": {"customer": {"$ref": "#/components/schemas/Customer"}},
            },
            "Customer": {"type": "object", "properties": {"name": {"type": "string"}}},
        }
        output = openapi_to_types(_document({}, schemas))

        assert [c.name for c in output.components] == ["Order", "Customer"]
        assert output.components[0].ts_type == (
            "export type Order = {\n  customer?: Customer;\n};"
        )

    def test_nested_objects_are_hoisted(self):
        schemas = {
            "Pet": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "owner": {"type": "object", "properties": {"email": {"type": "string"}}},
                },
            }
        }
        output = openapi_to_types(_document({}, schemas))

        assert output.components == [
            OpenApiComponent("Pet", "export type Pet = {\n  name?: string;\n  owner?: Owner;\n};"),
            OpenApiComponent("Owner", "export type Owner = {\n  email?: string;\n};"),
        ]

    def test_equivalent_nested_objects_share_one_component(self):
        address = {"type": "object", "properties": {"street": {"type": "string"}}}
        schemas = {
            "Order": {
                "type": "object",
                "properties": {"shipping": address, "billing": dict(address)},
            }
        }
        output = openapi_to_types(_document({}, schemas))

        assert output.components[0].ts_type == (
            "export type Order = {\n  shipping?: Shipping;\n  billing?: Shipping;\n};"
        )
        assert [c.name for c in output.components] == ["Order", "Shipping"]

    def test_nested_object_matching_a_component_reuses_it(self):
        schemas = {
            "User": USER,
            "Team": {"type": "object", "properties": {"lead": dict(USER)}},
        }
        output = openapi_to_types(_document({}, schemas))

        assert output.components[1].ts_type == "export type Team = {\n  lead?: User;\n};"
        assert len(output.components) == 2

    def test_recursive_component(self):
        schemas = {
            "Category": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "children": {
                        "type": "array",
                        "items": {"$ref": "#/components/schemas/Category"},
                    },
                },
            }
        }
        output = openapi_to_types(_document({}, schemas))

        assert output.components == [
            OpenApiComponent(
                "Category",
                "export type Category = {\n  name?: string;\n  children?: Category[];\n};",
            )
        ]

    def test_component_cycle_through_union_and_array(self):
        schemas = {
            "Json": {
                "oneOf": [
                    {"type": "string"},
                    {"type": "array", "items": {"$ref": "#/components/schemas/Json"}},
                ]
            },
            "Envelope": {
                "type": "object",
                "properties": {"payload": {"$ref": "#/components/schemas/Json"}},
            },
        }
        output = openapi_to_types(_document({}, schemas))

        assert output.components == [
            OpenApiComponent("Json", "export type Json = string | Json[];"),
            OpenApiComponent("Envelope", "export type Envelope = {\n  payload?: Json;\n};"),
        ]
        assert output.diagnostics == []

    def test_component_names_are_sanitized(self):
        schemas = {
            "user-profile": {"type": "object", "properties": {"bio": {"type": "string"}}},
            "Holder": {
                "type": "object",
                "properties": {"profile": {"$ref": "#/components/schemas/user-profile"}},
            },
        }
        output = openapi_to_types(_document({}, schemas))

        assert [c.name for c in output.components] == ["UserProfile", "Holder"]
        assert "profile?: UserProfile;" in output.components[1].ts_type

    def test_prefer_interface(self):
        output = openapi_to_types(_document({}, {"User": USER}), {"preferInterfaceOverType": True})
        assert output.components[0].ts_type == "export interface User {\n  id: string;\n};"


class TestOperations:
    def test_operation_id_names_the_bundle(self):
        document = _document({"/users": {"get": {"operationId": "list_users", "responses": {}}}})
        output = openapi_to_types(document)
        assert output.paths[0].type_name == "ListUsers"

    def test_repeated_operation_names_are_made_unique(self):
        document = _document({
            "/a": {"get": {"operationId": "list"}},
            "/b": {"get": {"operationId": "list"}},
        })
        output = openapi_to_types(document)
        assert [p.type_name for p in output.paths] == ["List", "List2"]

    def test_suffixed_names_are_not_reused(self):
        document = _document({
            "/users": {"get": {}},
            "/a": {"get": {"operationId": "getUsers"}},
            "/b": {"get": {"operationId": "getUsers2"}},
            "/c": {"get": {"operationId": "getUsers"}},
        })
        names = [p.type_name for p in openapi_to_types(document).paths]

        assert names == ["GetUsers", "GetUsers2", "GetUsers22", "GetUsers3"]
        assert len(set(names)) == len(names)

    def test_non_method_keys_are_ignored(self):
        document = _document({
            "/users": {
                "summary": "Users",
                "x-internal": True,
                "parameters": [],
                "post": {"responses": {"201": {"description": "Created"}}},
            }
        })
        output = openapi_to_types(document)
        assert [(p.method, p.type_name) for p in output.paths] == [("post", "PostUsers")]

    def test_summary_and_description(self):
        document = _document({
            "/health": {
                "get": {"summary": "  Health check ", "description": "Returns OK.", "responses": {}}
            }
        })
        path = openapi_to_types(document).paths[0]
        assert path.summary == "Health check"
        assert path.description == "Returns OK."

    def test_parameters(self):
        document = _document({
            "/users/{id}": {
                "parameters": [
                    {"name": "id", "in": "path", "schema": {"type": "string"}},
                    {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                ],
                "get": {
                    "operationId": "getUser",
                    "parameters": [
                        {
                            "name": "limit",
                            "in": "query",
                            "required": True,
                            "description": "Page size",
                            "schema": {"type": "integer", "maximum": 10},
                        },
                        {"name": "X-Trace", "in": "header", "schema": {"type": "string"}},
                    ],
                    "responses": {},
                },
            }
        })
        path = openapi_to_types(document).paths[0]

        assert path.type_name == "GetUser"
        assert path.path_ts_type == "{\n  id: string;\n}"
        assert path.query_ts_type == (
            "{\n"
            "  /**\n"
            "   * Page size\n"
            "   */\n"
            "  limit: number;\n"
            "}"
        )

    def test_duplicate_parameter_is_reported(self):
        document = _document({
            "/search": {
                "get": {
                    "operationId": "search",
                    "parameters": [
                        {"name": "q", "in": "query", "schema": {"type": "string"}},
                        {"name": "q", "in": "query", "schema": {"type": "integer"}},
                    ],
                }
            }
        })
        output = openapi_to_types(document)

        assert output.paths[0].query_ts_type == "{\n  q?: string;\n}"
        assert [str(d) for d in output.diagnostics] == [
            "[Search.q] duplicate parameter; keeping the first"
        ]

    def test_parameter_reference(self):
        document = _document({
            "/items": {
                "get": {
                    "operationId": "listItems",
                    "parameters": [{"$ref": "#/components/parameters/Page"}],
                }
            }
        })
        document["components"] = {
            "parameters": {"Page": {"name": "page", "in": "query", "schema": {"type": "integer"}}}
        }
        path = openapi_to_types(document).paths[0]
        assert path.query_ts_type == "{\n  page?: number;\n}"

    def test_request_body_prefers_json(self):
        document = _document(
            {
                "/users": {
                    "post": {
                        "operationId": "createUser",
                        "requestBody": {
                            "content": {
                                "application/xml": {"schema": {"type": "string"}},
                                "application/json": {"schema": {"$ref": "#/components/schemas/User"}},
                            }
                        },
                    }
                }
            },
            {"User": USER},
        )
        assert openapi_to_types(document).paths[0].request_body == "User"

    def test_inline_fragment_root_stays_inline(self):
        document = _document({
            "/stats": {
                "get": {
                    "operationId": "stats",
                    "responses": {
                        "200": {
                            "description": "Stats",
                            "content": _json({
                                "type": "object",
                                "properties": {
                                    "count": {"type": "integer"},
                                    "page": {
                                        "type": "object",
                                        "properties": {"next": {"type": "string"}},
                                    },
                                },
                            }),
                        }
                    },
                }
            }
        })
        output = openapi_to_types(document)

        assert output.paths[0].responses["200"].ts_type == (
            "{\n  count?: number;\n  page?: Page;\n}"
        )
        assert output.components == [
            OpenApiComponent("Page", "export type Page = {\n  next?: string;\n};")
        ]

    def test_fragment_equivalent_to_component_is_referenced(self):
        document = _document(
            {"/me": {"get": {"operationId": "me", "responses": {"200": {
                "description": "Me",
                "content": _json(dict(USER)),
            }}}}},
            {"User": USER},
        )
        assert openapi_to_types(document).paths[0].responses["200"].ts_type == "User"

    def test_responses_without_content_are_void(self):
        document = _document({
            "/users/{id}": {
                "delete": {
                    "operationId": "deleteUser",
                    "responses": {
                        "204": {"description": "Deleted"},
                        "default": {"description": "Error", "content": _json({"type": "string"})},
                    },
                }
            }
        })
        responses = openapi_to_types(document).paths[0].responses
        assert responses == {
            "204": OpenApiResponse("Deleted", "void"),
            "default": OpenApiResponse("Error", "string"),
        }

    def test_response_reference(self):
        document = _document({"/x": {"get": {"operationId": "x", "responses": {
            "404": {"$ref": "#/components/responses/NotFound"},
        }}}})
        document["components"] = {
            "responses": {"NotFound": {"description": "Missing", "content": _json({"type": "string"})}}
        }
        responses = openapi_to_types(document).paths[0].responses
        assert responses == {"404": OpenApiResponse("Missing", "string")}


class TestDiagnostics:
    def test_unresolvable_reference(self):
        document = _document({"/things": {"get": {"responses": {"200": {
            "description": "OK",
            "content": _json({"$ref": "#/components/schemas/Missing"}),
        }}}}})
        output = openapi_to_types(document)

        assert output.paths[0].responses["200"].ts_type == "any"
        assert len(output.diagnostics) == 1
        assert output.diagnostics[0].path == "GetThingsResponse200"
        assert "Missing" in output.diagnostics[0].reason

    def test_prefer_unknown(self):
        document = _document({"/things": {"get": {"responses": {"200": {
            "description": "OK",
            "content": _json({}),
        }}}}})
        output = openapi_to_types(document, {"preferUnknownOverAny": True})
        assert output.paths[0].responses["200"].ts_type == "unknown"

    def test_other_operations_still_convert(self):
        document = _document({
            "/broken": {"get": "not an operation"},
            "/ok": {"get": {"responses": {"200": {"description": "OK", "content": _json({"type": "string"})}}}},
        })
        output = openapi_to_types(document)

        assert [p.path for p in output.paths] == ["/ok"]
        assert [d.path for d in output.diagnostics] == ["/broken.get"]


class TestSwagger:
    def test_swagger_body_and_definitions(self):
        document = {
            "swagger": "2.0",
            "paths": {
                "/pets": {
                    "post": {
                        "operationId": "createPet",
                        "parameters": [
                            {"name": "body", "in": "body", "schema": {"$ref": "#/definitions/Pet"}},
                            {"name": "dryRun", "in": "query", "type": "boolean"},
                        ],
                        "responses": {
                            "201": {"description": "Created", "schema": {"$ref": "#/definitions/Pet"}},
                        },
                    }
                }
            },
            "definitions": {
                "Pet": {"type": "object", "properties": {"name": {"type": "string"}}},
            },
        }
        output = openapi_to_types(document)
        path = output.paths[0]

        assert path.request_body == "Pet"
        assert path.query_ts_type == "{\n  dryRun?: boolean;\n}"
        assert path.responses == {"201": OpenApiResponse("Created", "Pet")}
        assert [c.name for c in output.components] == ["Pet"]


class TestSerialization:
    def test_to_dict_omits_missing_fields(self):
        output = OpenApiOutput(
            paths=[
                OpenApiPath(
                    path="/a",
                    method="get",
                    type_name="GetA",
                    query_ts_type="{\n  q?: string;\n}",
                    responses={"200": OpenApiResponse("OK", "string")},
                )
            ],
            components=[OpenApiComponent("A", "export type A = string;")],
        )
        assert output.to_dict() == {
            "paths": [
                {
                    "path": "/a",
                    "method": "get",
                    "queryTsType": "{\n  q?: string;\n}",
                    "responses": {"200": {"description": "OK", "tsType": "string"}},
                }
            ],
            "components": [{"name": "A", "tsType": "export type A = string;"}],
            "diagnostics": [],
        }

    def test_http_methods(self):
        assert HTTP_METHODS == {"get", "put", "post", "delete", "options", "head", "patch", "trace"}
