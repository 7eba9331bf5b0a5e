"""Shared fixtures for clientgen tests.

Documents are built in memory; generated packages are written to tmp_path
and imported under a per-test package name so tests can call the generated
client against a recording transport.
"""

from __future__ import annotations

import importlib
import re
import sys
from types import ModuleType
from typing import Any, Callable

import pytest

from clientgen.codegen import generate_sources, write_sources
from clientgen.config import NamingConfig
from clientgen.loader import load_spec
from clientgen.runtime import Success


def make_spec(
    paths: dict[str, Any] | None = None,
    schemas: dict[str, Any] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build a minimal OpenAPI document."""
    spec: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test API", "version": "0.0.1"},
        "paths": paths or {},
        "components": {"schemas": schemas or {}},
    }
    spec.update(extra)
    return spec


def json_response(schema: dict[str, Any], description: str = "OK") -> dict[str, Any]:
    return {"description": description, "content": {"application/json": {"schema": schema}}}


@pytest.fixture
def example_spec() -> dict[str, Any]:
    """The example document shipped in spec/openapi.json."""
    return load_spec()


class RecordingTransport:
    """Transport double that records every send call."""

    def __init__(self, result: Any = None) -> None:
        self.calls: list[tuple[str, dict[str, Any], Any]] = []
        self.result = result if result is not None else Success([], 200)

    def send(self, url, request, params=None):
        self.calls.append((url, request, params))
        return self.result


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


# ---------------------------------------------------------------------------
# Generated package import: write to tmp_path, import under a unique name
# ---------------------------------------------------------------------------

@pytest.fixture
def import_generated(
    tmp_path, monkeypatch, request,
) -> Callable[..., tuple[ModuleType, ModuleType]]:
    """Return a callable generating a document and importing the result.

    Usage in tests::

        client, contracts = import_generated(spec)
    """
    base = re.sub(r"\W", "_", request.node.name).lower()
    monkeypatch.syspath_prepend(str(tmp_path))
    imported: list[str] = []

    def _import(spec: dict[str, Any], **naming: Any) -> tuple[ModuleType, ModuleType]:
        package = f"gen_{base}_{len(imported)}"
        config = NamingConfig(output_dir=tmp_path / package, **naming)
        write_sources(generate_sources(spec, config), config)
        imported.append(package)
        importlib.invalidate_caches()
        client = importlib.import_module(f"{package}.{config.client_module}")
        contracts = importlib.import_module(f"{package}.{config.contracts_module}")
        return client, contracts

    yield _import

    for name in list(sys.modules):
        if name.split(".")[0] in imported:
            del sys.modules[name]
