"""Hybrid connection CLI (hcop).

Usage:
    hcop validate spec.yaml                 # Validate a spec without calling Azure
    hcop apply spec.yaml                    # Create a new connection
    hcop apply spec.yaml --id RESOURCE_ID   # Update a managed connection
    hcop show RESOURCE_ID                   # Read a connection
    hcop import RESOURCE_ID                 # Adopt an existing connection
    hcop destroy RESOURCE_ID                # Delete a connection

Azure settings are read from the environment (see Config.from_env).
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, TypeVar

import click

from .clients import build_clients
from .config import Config, ConfigurationError
from .errors import HybridConnectionError
from .resource import HybridConnectionResource, ReadResult
from .security import SecretlessViolationError
from .spec_loader import SpecLoadError, load_spec

T = TypeVar("T")


def make_resource() -> HybridConnectionResource:
    """Build a resource handler from environment configuration.

    Raises:
        click.ClickException: If configuration or credentials are invalid.
    """
    try:
        config = Config.from_env()
        clients = build_clients(config)
    except (ConfigurationError, SecretlessViolationError) as e:
        raise click.ClickException(str(e)) from e
    return HybridConnectionResource(clients.web, clients.servicebus, config)


def run_operation(operation: Coroutine[Any, Any, T]) -> T:
    """Run an operation coroutine, turning domain errors into CLI errors."""
    try:
        return asyncio.run(operation)
    except HybridConnectionError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}") from e


def echo_result(result: ReadResult, show_secret: bool) -> None:
    if result.state is None:
        click.echo(json.dumps({"id": None, "exists": False}, indent=2))
        return
    click.echo(json.dumps(result.state.to_dict(include_secret=show_secret), indent=2))
    if result.secret_error is not None:
        click.secho(
            f"warning: send key value unavailable: {result.secret_error}",
            fg="yellow",
            err=True,
        )


@click.group()
@click.version_option(version="0.1.0", prog_name="hcop")
@click.option("--verbose", "-v", is_flag=True, help="Log Azure operations to stderr")
def cli(verbose: bool) -> None:
    """Manage App Service hybrid connections."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("azure").setLevel(logging.WARNING)


@cli.command()
@click.argument("spec_file", type=click.Path(path_type=Path))
def validate(spec_file: Path) -> None:
    """Validate SPEC_FILE without calling Azure."""
    try:
        spec = load_spec(spec_file)
    except SpecLoadError as e:
        raise click.ClickException(str(e)) from e
    click.secho(f"✓ {spec_file} is valid (app service {spec.app_service_name})", fg="green")


@cli.command()
@click.argument("spec_file", type=click.Path(path_type=Path))
@click.option("--id", "resource_id", default=None, help="ID of the managed connection to update")
@click.option("--show-secret", is_flag=True, help="Print the send key value")
def apply(spec_file: Path, resource_id: str | None, show_secret: bool) -> None:
    """Create or update the connection declared in SPEC_FILE."""
    try:
        spec = load_spec(spec_file)
    except SpecLoadError as e:
        raise click.ClickException(str(e)) from e

    resource = make_resource()
    result = run_operation(resource.create_or_update(spec, resource_id))
    echo_result(result, show_secret)


@cli.command()
@click.argument("resource_id")
@click.option("--show-secret", is_flag=True, help="Print the send key value")
def show(resource_id: str, show_secret: bool) -> None:
    """Read the connection RESOURCE_ID."""
    resource = make_resource()
    result = run_operation(resource.read(resource_id))
    echo_result(result, show_secret)


@cli.command("import")
@click.argument("resource_id")
@click.option("--show-secret", is_flag=True, help="Print the send key value")
def import_(resource_id: str, show_secret: bool) -> None:
    """Adopt the existing connection RESOURCE_ID."""
    resource = make_resource()
    result = run_operation(resource.import_existing(resource_id))
    echo_result(result, show_secret)


@cli.command()
@click.argument("resource_id")
def destroy(resource_id: str) -> None:
    """Delete the connection RESOURCE_ID."""
    resource = make_resource()
    run_operation(resource.delete(resource_id))
    click.secho(f"✓ Deleted {resource_id}", fg="green")


if __name__ == "__main__":
    cli()
