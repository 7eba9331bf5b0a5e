"""Tests for the operations module."""

import pytest

from clientgen.errors import MissingOperationIdWarning, PathParameterMismatchError
from clientgen.naming import DEFAULT_NAMESPACE
from clientgen.operations import (
    collect_operations,
    group_by_namespace,
    select_success_status,
)
from clientgen.resolver import SchemaResolver
from clientgen.schema import Array, Primitive, Reference, Unknown

from conftest import json_response, make_spec

_SCHEMAS = {
    "User": {
        "type": "object",
        "required": ["id"],
        "properties": {"id": {"type": "string"}, "name": {"type": "string"}},
    },
}


def _collect(paths, schemas=None, **extra):
    spec = make_spec(paths=paths, schemas=schemas or _SCHEMAS, **extra)
    resolver = SchemaResolver(spec)
    return collect_operations(spec, resolver), resolver.registry


class TestNamespaces:
    """Test operation id splitting and grouping."""

    def test_grouping(self, example_spec):
        operations = collect_operations(example_spec, SchemaResolver(example_spec))
        groups = group_by_namespace(operations)
        assert list(groups) == ["Users", "Pets"]
        assert [op.method_name for op in groups["Users"]] == ["getAll", "getById"]
        assert [op.python_name for op in groups["Pets"]] == ["get_all"]

    def test_default_namespace(self):
        operations, _ = _collect({"/health": {"get": {"operationId": "healthCheck", "responses": {}}}})
        assert operations[0].namespace == DEFAULT_NAMESPACE
        assert operations[0].method_name == "healthCheck"
        assert operations[0].python_name == "health_check"

    def test_missing_operation_id_skipped(self):
        paths = {
            "/a": {"get": {"responses": {}}},
            "/b": {"get": {"operationId": "B_get", "responses": {}}},
        }
        with pytest.warns(MissingOperationIdWarning, match="GET /a"):
            operations, _ = _collect(paths)
        assert [op.operation_id for op in operations] == ["B_get"]

    def test_method_order_and_non_operation_keys(self):
        paths = {
            "/items": {
                "summary": "ignored",
                "post": {"operationId": "Items_create", "responses": {}},
                "get": {"operationId": "Items_list", "responses": {}},
            },
        }
        operations, _ = _collect(paths)
        assert [op.http_method for op in operations] == ["get", "post"]

    def test_duplicate_method_names_made_unique(self):
        paths = {
            "/a": {"get": {"operationId": "Things_fetch", "responses": {}}},
            "/b": {"post": {"operationId": "Things_fetch", "responses": {}}},
        }
        operations, _ = _collect(paths)
        assert [op.python_name for op in operations] == ["fetch", "fetch_post"]


class TestResponses:
    """Test success response selection."""

    def test_lowest_2xx_wins(self):
        assert select_success_status({"404": {}, "201": {}, "200": {}, "default": {}}) == "200"

    def test_no_2xx(self):
        assert select_success_status({"404": {}, "default": {}}) is None

    def test_wildcard_codes_ignored(self):
        assert select_success_status({"2XX": {}, "204": {}}) == "204"

    def test_success_schema(self):
        paths = {"/users": {"get": {
            "operationId": "Users_list",
            "responses": {
                "201": json_response({"type": "string"}),
                "200": json_response({"type": "array", "items": {"$ref": "#/components/schemas/User"}}),
            },
        }}}
        operations, _ = _collect(paths)
        assert operations[0].success_status == "200"
        assert operations[0].success_schema == Array(Reference("User"))

    def test_only_error_response_is_untyped(self):
        paths = {"/x": {"get": {"operationId": "X_get", "responses": {"404": {"description": "nope"}}}}}
        operations, _ = _collect(paths)
        assert operations[0].success_status is None
        assert operations[0].success_schema is None

    def test_no_content_success(self):
        paths = {"/x": {"delete": {"operationId": "X_delete", "responses": {"204": {"description": "gone"}}}}}
        operations, _ = _collect(paths)
        assert operations[0].success_status == "204"
        assert operations[0].responses == {"204": None}

    def test_inline_response_hoisted(self):
        paths = {"/x": {"get": {
            "operationId": "X_get",
            "responses": {"200": json_response({"type": "object", "properties": {"ok": {"type": "boolean"}}})},
        }}}
        operations, registry = _collect(paths)
        assert operations[0].success_schema == Reference("XGet200Response")
        assert "XGet200Response" in registry

    def test_response_ref(self):
        spec_responses = {"UserResponse": json_response({"$ref": "#/components/schemas/User"})}
        paths = {"/u": {"get": {
            "operationId": "U_get",
            "responses": {"200": {"$ref": "#/components/responses/UserResponse"}},
        }}}
        spec = make_spec(paths=paths, schemas=_SCHEMAS)
        spec["components"]["responses"] = spec_responses
        operations = collect_operations(spec, SchemaResolver(spec))
        assert operations[0].success_schema == Reference("User")


class TestParameters:
    """Test parameter collection and path placeholder validation."""

    def test_path_and_query(self, example_spec):
        operations = collect_operations(example_spec, SchemaResolver(example_spec))
        by_id = {op.operation_id: op for op in operations}
        get_by_id = by_id["Users_getById"]
        assert [p.name for p in get_by_id.path_parameters] == ["id"]
        assert get_by_id.query_parameters == []
        pets = by_id["Pets_getAll"]
        assert pets.path_parameters == []
        assert pets.query_parameters[0].name == "limit"
        assert pets.query_parameters[0].required is False
        assert pets.query_parameters[0].schema == Primitive("integer")

    def test_path_level_parameters_merged(self):
        paths = {"/users/{id}": {
            "parameters": [
                {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}},
                {"name": "verbose", "in": "query", "schema": {"type": "boolean"}},
            ],
            "get": {
                "operationId": "Users_get",
                "parameters": [{"name": "verbose", "in": "query", "required": True, "schema": {"type": "integer"}}],
                "responses": {},
            },
        }}
        operations, _ = _collect(paths)
        params = operations[0].parameters
        assert [(p.name, p.location) for p in params] == [("id", "path"), ("verbose", "query")]
        assert params[1].required is True
        assert params[1].schema == Primitive("integer")

    def test_parameter_ref(self):
        paths = {"/items": {"get": {
            "operationId": "Items_list",
            "parameters": [{"$ref": "#/components/parameters/Limit"}],
            "responses": {},
        }}}
        spec = make_spec(paths=paths)
        spec["components"]["parameters"] = {"Limit": {"name": "limit", "in": "query", "schema": {"type": "integer"}}}
        operations = collect_operations(spec, SchemaResolver(spec))
        assert operations[0].query_parameters[0].name == "limit"

    def test_parameter_without_schema(self):
        paths = {"/items": {"get": {
            "operationId": "Items_list",
            "parameters": [{"name": "filter", "in": "query"}],
            "responses": {},
        }}}
        operations, _ = _collect(paths)
        assert operations[0].parameters[0].schema == Unknown()

    def test_path_parameter_without_placeholder(self):
        paths = {"/users": {"get": {
            "operationId": "Users_get",
            "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}],
            "responses": {},
        }}}
        with pytest.raises(PathParameterMismatchError) as excinfo:
            _collect(paths)
        assert excinfo.value.operation_id == "Users_get"
        assert excinfo.value.missing_placeholders == ["id"]

    def test_placeholder_without_parameter(self):
        paths = {"/users/{userId}": {"get": {"operationId": "Users_get", "responses": {}}}}
        with pytest.raises(PathParameterMismatchError) as excinfo:
            _collect(paths)
        assert excinfo.value.undeclared_placeholders == ["userId"]
        assert "Users_get" in str(excinfo.value)


class TestRequestBody:
    """Test request body extraction."""

    def test_json_body_preferred(self):
        paths = {"/users": {"post": {
            "operationId": "Users_create",
            "requestBody": {
                "required": True,
                "content": {
                    "text/plain": {"schema": {"type": "string"}},
                    "application/json": {"schema": {"$ref": "#/components/schemas/User"}},
                },
            },
            "responses": {},
        }}}
        operations, _ = _collect(paths)
        assert operations[0].request_body == Reference("User")
        assert operations[0].body_required is True

    def test_inline_body_hoisted(self):
        paths = {"/users": {"post": {
            "operationId": "Users_create",
            "requestBody": {"content": {"application/json": {"schema": {
                "type": "object", "properties": {"name": {"type": "string"}},
            }}}},
            "responses": {},
        }}}
        operations, registry = _collect(paths)
        assert operations[0].request_body == Reference("UsersCreateBody")
        assert operations[0].body_required is False
        assert registry.names() == ["User", "UsersCreateBody"]

    def test_no_body(self, example_spec):
        operations = collect_operations(example_spec, SchemaResolver(example_spec))
        assert all(op.request_body is None for op in operations)
