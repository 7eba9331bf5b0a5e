"""Render templates and write generated output.

Every artifact is rendered in memory first; files are written only after
the whole document has been processed, so a fatal error leaves the output
directory untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jinja2

from .config import NamingConfig
from .context_builder import build_client_context, build_contracts_context
from .loader import get_base_url, get_info
from .naming import GENERATED_MODULE_NAMES
from .operations import Operation, collect_operations
from .resolver import SchemaResolver
from .schema import SchemaRegistry

logger = logging.getLogger(__name__)

PACKAGE_INIT = '"""Generated API client package."""\n'


@dataclass(frozen=True)
class GeneratedSources:
    contracts: str
    client: str
    transport: str
    schema_count: int
    operation_count: int


def _environment() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.PackageLoader("clientgen", "templates"),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def build_model(
    spec: dict[str, Any], config: NamingConfig | None = None,
) -> tuple[SchemaRegistry, list[Operation]]:
    """Resolve component schemas, then collect operations and their inline schemas.

    Schema names never shadow what the generated modules import, nor the
    base URL constant.
    """
    config = config or NamingConfig()
    resolver = SchemaResolver(spec, reserved=GENERATED_MODULE_NAMES | {config.base_url_name})
    registry = resolver.resolve_components()
    operations = collect_operations(spec, resolver)
    return registry, operations


def generate_sources(spec: dict[str, Any], config: NamingConfig | None = None) -> GeneratedSources:
    """Generate the contracts, client and transport module texts."""
    config = config or NamingConfig()
    registry, operations = build_model(spec, config)
    title, version = get_info(spec)
    env = _environment()

    contracts = env.get_template("contracts.py.j2").render(
        **build_contracts_context(registry, title=title, version=version)
    )
    client = env.get_template("client.py.j2").render(
        **build_client_context(
            operations,
            registry,
            config,
            base_url=get_base_url(spec),
            title=title,
            version=version,
        )
    )
    transport = env.get_template("transport.py.j2").render(client_module=config.client_module)
    return GeneratedSources(
        contracts=contracts,
        client=client,
        transport=transport,
        schema_count=len(registry),
        operation_count=len(operations),
    )


def write_sources(sources: GeneratedSources, config: NamingConfig | None = None) -> list[Path]:
    """Write generated sources; the transport wrapper and __init__.py only when missing."""
    config = config or NamingConfig()
    output_dir = config.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []

    for filename, text in (
        (config.contracts_filename, sources.contracts),
        (config.client_filename, sources.client),
    ):
        path = output_dir / filename
        path.write_text(text, encoding="utf-8")
        written.append(path)

    for filename, text in (
        (config.transport_filename, sources.transport),
        ("__init__.py", PACKAGE_INIT),
    ):
        path = output_dir / filename
        if path.exists():
            logger.debug("Keeping existing %s", path)
            continue
        path.write_text(text, encoding="utf-8")
        written.append(path)

    return written


def generate(spec: dict[str, Any], config: NamingConfig | None = None) -> list[Path]:
    """Generate and write the client package for a document."""
    config = config or NamingConfig()
    sources = generate_sources(spec, config)
    written = write_sources(sources, config)
    logger.info(
        "Generated %s (%d schemas, %d operations)",
        config.output_dir, sources.schema_count, sources.operation_count,
    )
    return written
