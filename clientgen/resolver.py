"""Resolve OpenAPI schemas into the internal schema graph.

Handles:
- component schemas registered under their declared names
- forward references between components (placeholders first)
- $ref to #/components/schemas/<Name> -> Reference
- oneOf/anyOf -> Union, nullable -> Union with null
- inline objects hoisted under names synthesized from their site
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Iterable
from typing import Any

from .errors import UnparseableSchemaWarning, UnsupportedReferenceError
from .loader import get_schemas
from .naming import pascal_case, type_identifier
from .schema import (
    PRIMITIVE_KINDS,
    Array,
    Object,
    Primitive,
    Property,
    Reference,
    SchemaNode,
    SchemaRegistry,
    Union,
    Unknown,
)

logger = logging.getLogger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"


class SchemaResolver:
    """Build a SchemaRegistry from a document and resolve inline schemas.

    Inline schemas are resolved relative to a site: a tuple of name segments
    such as ("Users", "create", "Body") or ("User", "address"). The name of
    a hoisted schema depends only on its site, so output is stable across
    runs on the same document.
    """

    def __init__(self, spec: dict[str, Any], reserved: Iterable[str] = ()) -> None:
        self.spec = spec
        self.registry = SchemaRegistry(reserved)
        self._component_names: dict[str, str] = {}
        self._resolved = False

    def resolve_components(self) -> SchemaRegistry:
        """Register and convert every schema under components.schemas."""
        if self._resolved:
            return self.registry
        schemas = get_schemas(self.spec)
        self._component_names = self._assign_names(schemas)

        # Placeholders first so any component can reference any other
        for declared in schemas:
            self.registry.register(self._component_names[declared], Unknown())

        for declared, raw in schemas.items():
            name = self._component_names[declared]
            node = self._convert(raw, (name,), f"schema {declared!r}", hoist=False)
            if isinstance(node, Union):
                node = Union(tuple(self._record_variant(name, v) for v in node.variants))
            self.registry.register(name, node)

        self._resolved = True
        logger.debug("Resolved %d component schemas", len(schemas))
        return self.registry

    def _assign_names(self, declared_names: Iterable[Any]) -> dict[Any, str]:
        """Map declared names to emitted names.

        Declared names that are already identifiers are assigned first, so
        a sanitized name never takes one of them.
        """
        names: dict[Any, str] = {}
        taken = set(self.registry.reserved)
        ordered = sorted(declared_names, key=lambda d: type_identifier(str(d)) != str(d))
        for declared in ordered:
            base = candidate = type_identifier(str(declared))
            index = 2
            while candidate in taken:
                candidate = f"{base}{index}"
                index += 1
            taken.add(candidate)
            names[declared] = candidate
        return names

    def _record_variant(self, name: str, variant: SchemaNode) -> SchemaNode:
        # A nullable component object is declared as <Name>Record
        if not (isinstance(variant, Object) and variant.properties):
            return variant
        record = self.registry.unique_name(f"{name}Record")
        self.registry.register(record, variant)
        return Reference(record)

    def resolve_inline(self, raw: Any, site: tuple[str, ...], location: str) -> SchemaNode:
        """Convert a schema found at an operation site.

        A bare $ref stays a Reference to the component. Objects with
        properties are registered under pascal_case(*site).
        """
        self.resolve_components()
        return self._convert(raw, site, location, hoist=True)

    def component_name(self, declared: str) -> str | None:
        """Registered name of a declared component schema."""
        return self._component_names.get(declared)

    def _ref_name(self, ref: Any, location: str) -> str:
        if not isinstance(ref, str) or not ref.startswith(SCHEMA_REF_PREFIX):
            raise UnsupportedReferenceError(str(ref), location)
        token = ref[len(SCHEMA_REF_PREFIX):]
        if not token or "/" in token:
            raise UnsupportedReferenceError(ref, location)
        declared = token.replace("~1", "/").replace("~0", "~")
        name = self._component_names.get(declared)
        if name is None:
            raise UnsupportedReferenceError(ref, location)
        return name

    def _convert(
        self, raw: Any, site: tuple[str, ...], location: str, hoist: bool
    ) -> SchemaNode:
        if not isinstance(raw, dict):
            return self._unparseable(location)
        if "$ref" in raw:
            # Siblings of $ref are ignored in OpenAPI 3.0
            return Reference(self._ref_name(raw["$ref"], location))

        node = self._convert_shape(raw, site, location, hoist)
        if raw.get("nullable") is True and node != Primitive("null"):
            node = Union((node, Primitive("null")))
        return node

    def _convert_shape(
        self, raw: dict[str, Any], site: tuple[str, ...], location: str, hoist: bool
    ) -> SchemaNode:
        for key in ("oneOf", "anyOf"):
            if isinstance(raw.get(key), list):
                variants = tuple(
                    self._convert(sub, site + (f"Variant{i}",), location, hoist=True)
                    for i, sub in enumerate(raw[key], start=1)
                )
                if not variants:
                    return self._unparseable(location)
                if len(variants) == 1:
                    return variants[0]
                return Union(variants)

        schema_type = raw.get("type")
        if isinstance(schema_type, list):
            members = tuple(
                Primitive(t) if t in PRIMITIVE_KINDS else self._unparseable(location)
                for t in schema_type
                if t not in ("array", "object")
            )
            if len(members) == len(schema_type) and members:
                return members[0] if len(members) == 1 else Union(members)
            return self._unparseable(location)

        if schema_type == "array":
            items = raw.get("items")
            if items is None:
                return Array(Unknown())
            return Array(self._convert(items, site + ("Item",), location, hoist=True))

        if schema_type == "object" or "properties" in raw:
            return self._object(raw, site, location, hoist)

        if schema_type in PRIMITIVE_KINDS:
            return Primitive(schema_type)

        if not raw:
            # {} is the "any value" schema
            return Unknown()
        return self._unparseable(location)

    def _object(
        self, raw: dict[str, Any], site: tuple[str, ...], location: str, hoist: bool
    ) -> SchemaNode:
        properties = raw.get("properties") or {}
        if not isinstance(properties, dict) or not properties:
            return Object(description=str(raw.get("description", "")))

        name = None
        if hoist:
            # Reserve the name before the children so parents are declared first
            name = self.registry.unique_name(pascal_case(*site))
            self.registry.register(name, Unknown())

        listed = raw.get("required")
        # Swagger 2 style `required: true` on a property is not a list
        required = {r for r in listed if isinstance(r, str)} if isinstance(listed, list) else set()
        props = tuple(
            Property(
                name=str(prop_name),
                schema=self._convert(prop_raw, site + (str(prop_name),), location, hoist=True),
                required=prop_name in required,
            )
            for prop_name, prop_raw in properties.items()
        )
        obj = Object(props, description=str(raw.get("description", "")))
        if name is None:
            return obj
        self.registry.register(name, obj)
        return Reference(name)

    @staticmethod
    def _unparseable(location: str) -> SchemaNode:
        warnings.warn(
            f"Schema in {location} has no recognizable type; mapped to Any",
            UnparseableSchemaWarning,
            stacklevel=4,
        )
        return Unknown()
