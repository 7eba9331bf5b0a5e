"""Map schema nodes to Python type expressions."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import UnsupportedReferenceError
from .schema import (
    Array,
    Object,
    Primitive,
    Reference,
    SchemaNode,
    SchemaRegistry,
    Union,
    Unknown,
)

_PRIMITIVE_TYPES: dict[str, str] = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "null": "None",
}

ANY = "Any"
FREE_FORM_OBJECT = "dict[str, Any]"


@dataclass(frozen=True)
class TypeExpression:
    """A Python type expression and the registry names it refers to."""

    text: str
    dependencies: frozenset[str] = frozenset()


@dataclass(frozen=True)
class FieldExpression:
    name: str
    type: TypeExpression
    required: bool


class TypeMapper:
    """Convert schema nodes to type expressions.

    References are never inlined: a Reference maps to the bare registered
    name, which keeps cyclic schemas finite.
    """

    def __init__(self, registry: SchemaRegistry) -> None:
        self.registry = registry

    def map_type(self, node: SchemaNode) -> TypeExpression:
        if isinstance(node, Primitive):
            return TypeExpression(_PRIMITIVE_TYPES.get(node.kind, ANY))
        if isinstance(node, Array):
            item = self.map_type(node.item)
            return TypeExpression(f"list[{item.text}]", item.dependencies)
        if isinstance(node, Object):
            return TypeExpression(FREE_FORM_OBJECT)
        if isinstance(node, Union):
            variants = [self.map_type(v) for v in node.variants]
            if not variants:
                return TypeExpression(ANY)
            return TypeExpression(
                " | ".join(v.text for v in variants),
                frozenset().union(*(v.dependencies for v in variants)),
            )
        if isinstance(node, Reference):
            if node.name not in self.registry:
                raise UnsupportedReferenceError(node.name, "type mapping")
            return TypeExpression(node.name, frozenset([node.name]))
        if isinstance(node, Unknown):
            return TypeExpression(ANY)
        raise TypeError(f"Not a schema node: {node!r}")

    def map_fields(self, node: Object) -> list[FieldExpression]:
        """Map each property of an object to a record field."""
        return [
            FieldExpression(prop.name, self.map_type(prop.schema), prop.required)
            for prop in node.properties
        ]
