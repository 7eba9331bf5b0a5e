"""Build Jinja2 template contexts from the resolved model.

build_contracts_context turns the SchemaRegistry into one declaration per
entry. build_client_context turns the collected operations into namespace
classes, their methods and the query/header records they take.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from typing import Any

from .config import NamingConfig
from .naming import argument_identifier, is_field_name, pascal_case, snake_identifier
from .operations import PLACEHOLDER_RE, Operation, Parameter, group_by_namespace
from .schema import Object, SchemaRegistry
from .type_mapper import ANY, FieldExpression, TypeExpression, TypeMapper

logger = logging.getLogger(__name__)

CLIENT_CLASS = "ApiClient"

_ANY_RE = re.compile(r"\bAny\b")


def _strip_html(text: str) -> str:
    """Strip HTML tags and trailing whitespace of every line."""
    text = re.sub(r"<[^>]+>", "", text)
    return "\n".join(line.rstrip() for line in text.strip().splitlines())


def _literal(value: str) -> str:
    """Python string literal for value."""
    return json.dumps(value)


def docstring(text: str, indent: int) -> str:
    """Render text as a triple-quoted docstring at the given indentation."""
    text = _strip_html(text).replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if not text:
        return ""
    if text.endswith('"') and not text.endswith('\\"'):
        text = text[:-1] + '\\"'
    lines = text.splitlines()
    if len(lines) == 1:
        return f'"""{lines[0]}"""'
    pad = " " * indent
    body = "\n".join(pad + line if line else "" for line in lines[1:])
    return f'"""{lines[0]}\n{body}\n{pad}"""'


def _unique(name: str, taken: set[str]) -> str:
    candidate = name
    index = 2
    while candidate in taken:
        candidate = f"{name}{index}"
        index += 1
    taken.add(candidate)
    return candidate


def _uses_any(texts: Iterable[str]) -> bool:
    return any(_ANY_RE.search(text) for text in texts)


def record_declaration(
    name: str, fields: list[FieldExpression], description: str = "",
) -> dict[str, Any]:
    """Context for one TypedDict declaration.

    Class syntax is used when every key is a usable identifier, otherwise
    the functional form with string forward references.
    """
    functional = not all(is_field_name(f.name) for f in fields)
    rendered = []
    for f in fields:
        type_text = _literal(f.type.text) if functional else f.type.text
        annotation = type_text if f.required else f"NotRequired[{type_text}]"
        rendered.append({
            "name": f.name,
            "key_literal": _literal(f.name),
            "type": f.type.text,
            "required": f.required,
            "annotation": annotation,
        })
    return {
        "kind": "record",
        "name": name,
        "name_literal": _literal(name),
        "functional": functional,
        "docstring": "" if functional else docstring(description, 4),
        "fields": rendered,
    }


def _typing_imports(names: dict[str, bool]) -> list[str]:
    return sorted(name for name, used in names.items() if used)


def build_contracts_context(
    registry: SchemaRegistry, title: str = "API", version: str = "unknown",
) -> dict[str, Any]:
    """Build the context for contracts.py.j2, one declaration per registry entry."""
    mapper = TypeMapper(registry)
    declarations: list[dict[str, Any]] = []
    texts: list[str] = []

    for name, node in registry.items():
        if isinstance(node, Object) and node.properties:
            fields = mapper.map_fields(node)
            declarations.append(record_declaration(name, fields, node.description))
            texts.extend(f.type.text for f in fields)
        else:
            expression = mapper.map_type(node)
            declarations.append({
                "kind": "alias",
                "name": name,
                "type": expression.text,
                "type_literal": _literal(expression.text),
            })
            texts.append(expression.text)

    records = [d for d in declarations if d["kind"] == "record"]
    typing_imports = _typing_imports({
        "Any": _uses_any(texts),
        "NotRequired": any(not f["required"] for d in records for f in d["fields"]),
        "TypeAlias": len(records) < len(declarations),
        "TypedDict": bool(records),
    })
    return {
        "title": title,
        "version": version,
        "typing_imports": typing_imports,
        "declarations": declarations,
    }


def _url_expression(template: str, arguments: dict[str, str]) -> str:
    """f-string building the URL; only declared placeholders are substituted."""
    def escape(text: str) -> str:
        return (
            text.replace("\\", "\\\\").replace('"', '\\"')
            .replace("{", "{{").replace("}", "}}")
        )

    parts = ["{self._base_url}"]
    position = 0
    for match in PLACEHOLDER_RE.finditer(template):
        parts.append(escape(template[position:match.start()]))
        parts.append("{quote(str(%s), safe='')}" % arguments[match.group(1)])
        position = match.end()
    parts.append(escape(template[position:]))
    return 'f"' + "".join(parts) + '"'


def _method_docstring(op: Operation) -> str:
    summary = op.summary.strip()
    if not summary and op.description.strip():
        summary = _strip_html(op.description).split("\n\n")[0]
    lines = [summary] if summary else []
    if lines:
        lines.append("")
    lines.append(f"{op.http_method.upper()} {op.url_template}")
    return docstring("\n".join(lines), 8)


class _ClientBuilder:
    """Accumulates the records and dependencies of the client module."""

    def __init__(self, registry: SchemaRegistry) -> None:
        self.mapper = TypeMapper(registry)
        self.taken: set[str] = set(registry.names()) | registry.reserved
        self.records: list[dict[str, Any]] = []
        self.dependencies: set[str] = set()
        self.texts: list[str] = []
        self.needs_quote = False

    def map(self, expression: TypeExpression) -> str:
        self.dependencies |= expression.dependencies
        self.texts.append(expression.text)
        return expression.text

    def parameter_record(self, op: Operation, params: list[Parameter], suffix: str) -> str:
        """Declare a TypedDict for a group of parameters and return its name."""
        name = _unique(pascal_case(op.namespace, op.method_name, suffix), self.taken)
        fields = []
        for p in params:
            expression = self.mapper.map_type(p.schema)
            self.map(expression)
            fields.append(FieldExpression(p.name, expression, p.required))
        self.records.append(record_declaration(name, fields))
        return name

    def method(self, op: Operation) -> dict[str, Any]:
        required: list[str] = ["self"]
        optional: list[str] = []
        request_items = [f'"method": "{op.http_method.upper()}"']

        arg_names: set[str] = set()
        arguments: dict[str, str] = {}
        for p in op.path_parameters:
            arg = _unique(argument_identifier(p.name), arg_names)
            arguments[p.name] = arg
            required.append(f"{arg}: {self.map(self.mapper.map_type(p.schema))}")
        if arguments:
            self.needs_quote = True

        if op.request_body is not None:
            body_type = self.map(self.mapper.map_type(op.request_body))
            if op.body_required:
                required.append(f"body: {body_type}")
            else:
                optional.append(f"body: {body_type} | None = None")
            request_items.append('"body": body')

        cookies = op.parameters_in("cookie")
        if cookies:
            logger.warning(
                "Operation %s: cookie parameters are not supported, dropping %s",
                op.operation_id,
                ", ".join(p.name for p in cookies),
            )

        params_argument = None
        for group, suffix, argument in (
            (op.query_parameters, "Query", "query"),
            (op.header_parameters, "Headers", "headers"),
        ):
            if not group:
                continue
            record = self.parameter_record(op, group, suffix)
            if any(p.required for p in group):
                required.append(f"{argument}: {record}")
            else:
                optional.append(f"{argument}: {record} | None = None")
            if argument == "query":
                params_argument = "query"
            else:
                request_items.append('"headers": headers')

        if op.success_status is None:
            return_type = ANY
            self.texts.append(ANY)
        elif op.success_schema is None:
            return_type = "None"
        else:
            return_type = self.map(self.mapper.map_type(op.success_schema))

        send_arguments = ["url", "{" + ", ".join(request_items) + "}"]
        if params_argument:
            send_arguments.append(params_argument)

        return {
            "name": op.python_name,
            "operation_id": op.operation_id,
            "http_method": op.http_method.upper(),
            "url_template": op.url_template,
            "signature": ", ".join(required + optional),
            "return_type": return_type,
            "docstring": _method_docstring(op),
            "url_expression": _url_expression(op.url_template, arguments),
            "send_arguments": ", ".join(send_arguments),
        }


def build_client_context(
    operations: list[Operation],
    registry: SchemaRegistry,
    config: NamingConfig | None = None,
    base_url: str = "",
    title: str = "API",
    version: str = "unknown",
) -> dict[str, Any]:
    """Build the context for client.py.j2."""
    config = config or NamingConfig()
    builder = _ClientBuilder(registry)
    attributes: set[str] = set()
    namespaces = []

    for namespace, ops in group_by_namespace(operations).items():
        namespaces.append({
            "name": namespace,
            "class_name": _unique(pascal_case(namespace) + "Api", builder.taken),
            "attribute": _unique(snake_identifier(namespace), attributes),
            "methods": [builder.method(op) for op in ops],
        })

    records = builder.records
    typing_imports = _typing_imports({
        "Any": _uses_any(builder.texts),
        "NotRequired": any(not f["required"] for d in records for f in d["fields"]),
        "TypedDict": bool(records),
    })
    stdlib_imports = []
    if typing_imports:
        stdlib_imports.append("from typing import " + ", ".join(typing_imports))
    if builder.needs_quote:
        stdlib_imports.append("from urllib.parse import quote")

    return {
        "title": title,
        "version": version,
        "stdlib_imports": stdlib_imports,
        "transport_module": config.transport_module,
        "contracts_module": config.contracts_module,
        "contract_imports": sorted(builder.dependencies),
        "base_url_name": config.base_url_name,
        "base_url_literal": _literal(base_url),
        "query_types": records,
        "namespaces": namespaces,
        "client_class": _unique(CLIENT_CLASS, builder.taken),
        "operation_count": len(operations),
    }
