"""Collect operations from the OpenAPI path/method matrix.

Each operation with an operationId becomes an Operation whose parameter,
request body and response schemas are resolved through the SchemaResolver.
Operations are grouped into namespaces by their operationId prefix.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import warnings
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import MissingOperationIdWarning, PathParameterMismatchError
from .loader import deref, get_paths
from .naming import method_identifier, split_operation_id
from .resolver import SchemaResolver
from .schema import SchemaNode

logger = logging.getLogger(__name__)

# Path item keys that are operations, in OpenAPI declaration order
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")

_JSON_MEDIA_TYPE = "application/json"


@dataclass(frozen=True)
class Parameter:
    name: str
    location: str  # path / query / header / cookie
    required: bool
    schema: SchemaNode
    description: str = ""


@dataclass(frozen=True)
class Operation:
    """One path + HTTP method entry of the document."""

    operation_id: str
    namespace: str
    method_name: str
    http_method: str
    url_template: str
    parameters: tuple[Parameter, ...] = ()
    request_body: SchemaNode | None = None
    body_required: bool = False
    # status code -> schema, None when the response declares no content
    responses: Mapping[str, SchemaNode | None] = field(default_factory=dict)
    summary: str = ""
    description: str = ""
    python_name: str = ""

    def parameters_in(self, location: str) -> list[Parameter]:
        return [p for p in self.parameters if p.location == location]

    @property
    def path_parameters(self) -> list[Parameter]:
        return self.parameters_in("path")

    @property
    def query_parameters(self) -> list[Parameter]:
        return self.parameters_in("query")

    @property
    def header_parameters(self) -> list[Parameter]:
        return self.parameters_in("header")

    @property
    def success_status(self) -> str | None:
        """Lowest declared 2xx status code, if any."""
        return select_success_status(self.responses)

    @property
    def success_schema(self) -> SchemaNode | None:
        """Schema of the selected success response (None when it has no content)."""
        status = self.success_status
        if status is None:
            return None
        return self.responses[status]


def select_success_status(responses: Mapping[str, Any]) -> str | None:
    """Return the first 2xx status code in ascending numeric order."""
    codes = sorted(
        (int(code), code)
        for code in (str(c) for c in responses)
        if code.isdigit() and 200 <= int(code) < 300
    )
    return codes[0][1] if codes else None


def _media_schema(content: Any) -> Any:
    """Pick the schema of the JSON media type, or of the first one declaring a schema."""
    if not isinstance(content, dict):
        return None
    media = content.get(_JSON_MEDIA_TYPE)
    if isinstance(media, dict) and "schema" in media:
        return media["schema"]
    for media in content.values():
        if isinstance(media, dict) and "schema" in media:
            return media["schema"]
    return None


def _merge_parameters(
    spec: dict[str, Any], path_level: Any, operation_level: Any, location: str,
) -> list[dict[str, Any]]:
    """Merge path item parameters with operation parameters.

    An operation parameter replaces the path parameter with the same
    (name, in) pair and keeps its position.
    """
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for raw in list(path_level or []) + list(operation_level or []):
        param = deref(spec, raw, location)
        if "name" not in param:
            continue
        merged[(str(param["name"]), str(param.get("in", "query")))] = param
    return list(merged.values())


def check_path_parameters(operation_id: str, url_template: str, parameters: list[Parameter]) -> None:
    """Every path parameter needs a placeholder and every placeholder a parameter."""
    placeholders = PLACEHOLDER_RE.findall(url_template)
    declared = [p.name for p in parameters if p.location == "path"]
    missing = [name for name in declared if name not in placeholders]
    undeclared = [name for name in placeholders if name not in declared]
    if missing or undeclared:
        raise PathParameterMismatchError(operation_id, missing, undeclared)


def _build_operation(
    spec: dict[str, Any],
    resolver: SchemaResolver,
    path: str,
    method: str,
    raw_op: dict[str, Any],
    path_level_params: Any,
) -> Operation:
    operation_id = str(raw_op["operationId"])
    namespace, method_name = split_operation_id(operation_id)
    site = (namespace, method_name)
    location = f"operation {operation_id!r}"

    parameters: list[Parameter] = []
    for param in _merge_parameters(spec, path_level_params, raw_op.get("parameters"), location):
        name = str(param["name"])
        param_in = str(param.get("in", "query"))
        schema = resolver.resolve_inline(
            param.get("schema", {}), site + (name, "Param"), f"{location} parameter {name!r}",
        )
        parameters.append(Parameter(
            name=name,
            location=param_in,
            required=param_in == "path" or bool(param.get("required", False)),
            schema=schema,
            description=str(param.get("description", "")),
        ))
    check_path_parameters(operation_id, path, parameters)

    request_body = None
    body_required = False
    if "requestBody" in raw_op:
        body = deref(spec, raw_op["requestBody"], location)
        raw_schema = _media_schema(body.get("content"))
        if raw_schema is not None:
            request_body = resolver.resolve_inline(
                raw_schema, site + ("Body",), f"{location} request body",
            )
            body_required = bool(body.get("required", False))

    responses: dict[str, SchemaNode | None] = {}
    for status, raw_response in (raw_op.get("responses") or {}).items():
        status = str(status)
        response = deref(spec, raw_response, location)
        raw_schema = _media_schema(response.get("content"))
        if raw_schema is None:
            responses[status] = None
        else:
            responses[status] = resolver.resolve_inline(
                raw_schema, site + (status, "Response"), f"{location} response {status}",
            )

    return Operation(
        operation_id=operation_id,
        namespace=namespace,
        method_name=method_name,
        http_method=method,
        url_template=path,
        parameters=tuple(parameters),
        request_body=request_body,
        body_required=body_required,
        responses=responses,
        summary=str(raw_op.get("summary", "")),
        description=str(raw_op.get("description", "")),
        python_name=method_identifier(method_name),
    )


def _deduplicate_method_names(operations: list[Operation]) -> list[Operation]:
    """Ensure method names are unique inside each namespace."""
    seen: set[tuple[str, str]] = set()
    result = []
    for op in operations:
        name = op.python_name
        if (op.namespace, name) in seen:
            name = f"{op.python_name}_{op.http_method}"
        index = 2
        candidate = name
        while (op.namespace, candidate) in seen:
            candidate = f"{name}_{index}"
            index += 1
        seen.add((op.namespace, candidate))
        if candidate != op.python_name:
            logger.info("Renamed %s to %s to avoid a collision", op.operation_id, candidate)
            op = dataclasses.replace(op, python_name=candidate)
        result.append(op)
    return result


def collect_operations(spec: dict[str, Any], resolver: SchemaResolver) -> list[Operation]:
    """Collect every operation of the document in path/method order."""
    resolver.resolve_components()
    operations: list[Operation] = []

    for path, path_item in get_paths(spec).items():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            raw_op = path_item.get(method)
            if not isinstance(raw_op, dict):
                continue
            if not raw_op.get("operationId"):
                warnings.warn(
                    f"{method.upper()} {path} has no operationId; skipped",
                    MissingOperationIdWarning,
                    stacklevel=2,
                )
                continue
            operations.append(_build_operation(
                spec, resolver, str(path), method, raw_op, path_item.get("parameters"),
            ))

    logger.debug("Collected %d operations", len(operations))
    return _deduplicate_method_names(operations)


def group_by_namespace(operations: list[Operation]) -> dict[str, list[Operation]]:
    """Group operations by namespace, keeping first-seen order."""
    namespaces: dict[str, list[Operation]] = {}
    for op in operations:
        namespaces.setdefault(op.namespace, []).append(op)
    return namespaces
