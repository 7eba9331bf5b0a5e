"""Turn OpenAPI names into Python identifiers.

Examples:
  Users_getAll              -> namespace Users, method get_all
  ("Users", "getById", "200", "Response") -> UsersGetById200Response
  ("User", "address")       -> UserAddress
  "user-id"                 -> user_id
  "class"                   -> class_
  "Order.Line"              -> Order_Line
"""

from __future__ import annotations

import keyword
import re

# Separator between namespace and method name in an operationId
NAMESPACE_SEPARATOR = "_"

# Namespace for operation ids without a separator
DEFAULT_NAMESPACE = "Default"

# Argument names the generated methods already use
_RESERVED_ARGS = {"self", "body", "query", "headers", "url", "quote", "str"}

# Module-level names the generated contracts and client import themselves
GENERATED_MODULE_NAMES = frozenset({
    "annotations",
    "Any",
    "NotRequired",
    "TypeAlias",
    "TypedDict",
    "ApiResult",
    "Transport",
    "quote",
})


def camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _sanitize_segment(segment: str) -> str:
    """Sanitize a name for use in a snake_case Python identifier."""
    name = camel_to_snake(segment)
    name = re.sub(r"[^a-z0-9_]", "_", name)
    name = re.sub(r"_+", "_", name)
    return name.strip("_")


def snake_identifier(name: str, reserved: set[str] | frozenset[str] = frozenset()) -> str:
    """Build a snake_case identifier that is not a keyword or a reserved name."""
    ident = _sanitize_segment(name) or "value"
    if ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident) or ident in reserved:
        ident = f"{ident}_"
    return ident


def method_identifier(name: str) -> str:
    """Python method name for an operation."""
    return snake_identifier(name)


def argument_identifier(name: str) -> str:
    """Python argument name for a path parameter."""
    return snake_identifier(name, _RESERVED_ARGS)


def pascal_case(*segments: str) -> str:
    """Join name segments into a PascalCase identifier.

    Existing capitals inside a segment are kept, so "getById" stays readable.
    """
    words: list[str] = []
    for segment in segments:
        for word in re.split(r"[^0-9A-Za-z]+", str(segment)):
            if word:
                words.append(word[0].upper() + word[1:])
    name = "".join(words) or "Schema"
    if name[0].isdigit():
        name = f"Schema{name}"
    return name


def type_identifier(name: str) -> str:
    """Name under which a declared component schema is emitted."""
    if name.isidentifier() and not keyword.iskeyword(name):
        return name
    ident = re.sub(r"\W", "_", name, flags=re.ASCII).strip("_") or "Schema"
    if ident[0].isdigit():
        ident = f"Schema{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident


def is_field_name(name: str) -> bool:
    """Whether a property can be declared with TypedDict class syntax."""
    return name.isidentifier() and not keyword.iskeyword(name)


def split_operation_id(operation_id: str) -> tuple[str, str]:
    """Split an operationId into (namespace, method name).

    The id is split on the first separator. Without one, or when either
    side would be empty, the whole id is the method name of the default
    namespace.
    """
    namespace, sep, method = operation_id.partition(NAMESPACE_SEPARATOR)
    if not sep or not namespace or not method:
        return DEFAULT_NAMESPACE, operation_id
    return namespace, method
