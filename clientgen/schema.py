"""Internal schema graph built from an OpenAPI document.

SchemaNode is a closed set of frozen dataclasses. References are kept by
name and looked up in the SchemaRegistry when needed, so cyclic schemas
never have to be copied or expanded.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Union as _Union

PRIMITIVE_KINDS = ("string", "integer", "number", "boolean", "null")


@dataclass(frozen=True)
class Primitive:
    kind: str


@dataclass(frozen=True)
class Array:
    item: SchemaNode


@dataclass(frozen=True)
class Property:
    name: str
    schema: SchemaNode
    required: bool = False


@dataclass(frozen=True)
class Object:
    properties: tuple[Property, ...] = ()
    description: str = field(default="", compare=False)


@dataclass(frozen=True)
class Union:
    variants: tuple[SchemaNode, ...]


@dataclass(frozen=True)
class Reference:
    name: str


@dataclass(frozen=True)
class Unknown:
    pass


SchemaNode = _Union[Primitive, Array, Object, Union, Reference, Unknown]


class SchemaRegistry:
    """Insertion-ordered mapping of canonical name to schema node.

    Reserved names are never handed out by unique_name; they belong to the
    names the generated modules import or define themselves.
    """

    def __init__(self, reserved: Iterable[str] = ()) -> None:
        self._schemas: dict[str, SchemaNode] = {}
        self.reserved = frozenset(reserved)

    def register(self, name: str, node: SchemaNode) -> None:
        """Add or replace the node registered under name."""
        self._schemas[name] = node

    def get(self, name: str) -> SchemaNode | None:
        return self._schemas.get(name)

    def unique_name(self, name: str) -> str:
        """Return name, or name with the first free numeric suffix."""
        if not self.is_taken(name):
            return name
        index = 2
        while self.is_taken(f"{name}{index}"):
            index += 1
        return f"{name}{index}"

    def is_taken(self, name: str) -> bool:
        return name in self._schemas or name in self.reserved

    def names(self) -> list[str]:
        return list(self._schemas)

    def items(self) -> list[tuple[str, SchemaNode]]:
        return list(self._schemas.items())

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)
