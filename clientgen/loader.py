"""Load and read an OpenAPI document.

JSON files are parsed with json, everything else with PyYAML.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .errors import DocumentError, UnsupportedReferenceError

SPEC_PATH = Path(__file__).parent.parent / "spec" / "openapi.json"

# Component sections whose objects may be referenced with a local $ref
_LOCAL_REF_SECTIONS = ("parameters", "requestBodies", "responses")


def load_spec(path: Path | str | None = None) -> dict[str, Any]:
    """Load an OpenAPI document from disk."""
    spec_file = Path(path) if path is not None else SPEC_PATH
    with open(spec_file, encoding="utf-8") as f:
        if spec_file.suffix.lower() == ".json":
            document = json.load(f)
        else:
            document = yaml.safe_load(f)
    if not isinstance(document, dict):
        raise DocumentError(f"{spec_file} does not contain an OpenAPI document")
    return document


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the spec."""
    return spec.get("paths") or {}


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the spec."""
    return (spec.get("components") or {}).get("schemas") or {}


def get_base_url(spec: dict[str, Any]) -> str:
    """Return the first declared server URL, or an empty string."""
    for server in spec.get("servers") or []:
        if isinstance(server, dict) and server.get("url"):
            return str(server["url"]).rstrip("/")
    return ""


def get_info(spec: dict[str, Any]) -> tuple[str, str]:
    """Return the document title and version."""
    info = spec.get("info") or {}
    return str(info.get("title", "API")), str(info.get("version", "unknown"))


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def resolve_local_ref(spec: dict[str, Any], ref: str, location: str) -> dict[str, Any]:
    """Resolve a local $ref to a parameter, request body or response object."""
    parts = [_unescape(p) for p in ref.split("/")]
    if (
        len(parts) != 4
        or parts[0] != "#"
        or parts[1] != "components"
        or parts[2] not in _LOCAL_REF_SECTIONS
    ):
        raise UnsupportedReferenceError(ref, location)
    node = (spec.get("components") or {}).get(parts[2]) or {}
    target = node.get(parts[3])
    if not isinstance(target, dict):
        raise UnsupportedReferenceError(ref, location)
    return target


def deref(spec: dict[str, Any], obj: Any, location: str) -> dict[str, Any]:
    """Follow a $ref on a parameter, request body or response object."""
    seen: set[str] = set()
    while isinstance(obj, dict) and "$ref" in obj:
        ref = obj["$ref"]
        if ref in seen:
            raise UnsupportedReferenceError(ref, location)
        seen.add(ref)
        obj = resolve_local_ref(spec, ref, location)
    return obj if isinstance(obj, dict) else {}
