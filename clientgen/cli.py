"""Command line entry point for clientgen."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from .codegen import generate_sources, write_sources
from .config import NamingConfig
from .errors import GenerationError
from .loader import load_spec


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@click.group()
def main():
    """clientgen: generate typed Python clients from OpenAPI 3.0 documents."""
    pass


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", default=Path("generated"), show_default=True, type=click.Path(file_okay=False, path_type=Path), help="Output directory (a Python package).")
@click.option("--client-file", default="client.py", show_default=True, help="Filename of the client module.")
@click.option("--contracts-file", default="contracts.py", show_default=True, help="Filename of the contracts module.")
@click.option("--transport-file", default="transport.py", show_default=True, help="Filename of the transport wrapper module.")
@click.option("--base-url-name", default="BASE_URL", show_default=True, help="Name of the base URL constant.")
@click.option("--log-level", default="WARNING", show_default=True, type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]), help="Logging level.")
def generate(
    doc_path: Path,
    output: Path,
    client_file: str,
    contracts_file: str,
    transport_file: str,
    base_url_name: str,
    log_level: str,
):
    """Generate contracts and client modules from an OpenAPI document."""
    configure_logging(log_level)
    try:
        config = NamingConfig(
            output_dir=output,
            client_filename=client_file,
            contracts_filename=contracts_file,
            base_url_name=base_url_name,
            transport_filename=transport_file,
        )
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc

    click.echo(f"Parsing {doc_path}...")
    try:
        spec = load_spec(doc_path)
        sources = generate_sources(spec, config)
    except GenerationError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Found {sources.schema_count} schemas and {sources.operation_count} operations.")
    for path in write_sources(sources, config):
        click.echo(f"  Created {path}")
    click.echo(f"Generated client in {output}")
