"""CLI commands for wirefetch."""

import asyncio
import json
import sys
import uuid
from pathlib import Path

import click
import structlog

from wirefetch import __version__
from wirefetch.fetch.client import Fetcher
from wirefetch.fetch.config import FetchConfig
from wirefetch.fetch.constants import COMPONENT_CLI
from wirefetch.fetch.errors import ErrorRecord, FetchError
from wirefetch.fetch.models import FetchResult
from wirefetch.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    parse_level,
)
from wirefetch.settings import get_settings


logger = structlog.get_logger()


def parse_header_options(values: tuple[str, ...]) -> dict[str, str]:
    """Parse ``Name: value`` pairs given on the command line.

    Args:
        values: Raw option values.

    Returns:
        Header mapping.

    Raises:
        click.BadParameter: If a value has no ``:`` separator or no name.
    """
    headers: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            msg = f"Expected 'Name: value', got '{raw}'"
            raise click.BadParameter(msg, param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


async def _fetch(uri: str, config: FetchConfig) -> FetchResult:
    async with Fetcher(config) as fetcher:
        return await fetcher.get(uri)


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Fetch resources and report exactly what was transmitted."""


@cli.command()
@click.argument("uri")
@click.option(
    "--header",
    "-H",
    "headers",
    multiple=True,
    help="Extra request header as 'Name: value' (repeatable).",
)
@click.option(
    "--max-redirects",
    type=click.IntRange(0, 100),
    default=None,
    help="Maximum number of redirects to follow.",
)
@click.option(
    "--timeout",
    "timeout_seconds",
    type=click.FloatRange(min=0.1, max=300.0),
    default=None,
    help="Per-request timeout in seconds.",
)
@click.option(
    "--body-out",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write the decompressed body to this file.",
)
@click.option(
    "--wire-out",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write the body bytes as received on the wire to this file.",
)
@click.option("--json-logs", is_flag=True, default=None, help="Emit JSON logs.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def get(  # noqa: PLR0913
    uri: str,
    headers: tuple[str, ...],
    max_redirects: int | None,
    timeout_seconds: float | None,
    body_out: Path | None,
    wire_out: Path | None,
    json_logs: bool | None,
    verbose: bool,
) -> None:
    """Fetch URI and print a JSON summary of the result."""
    settings = get_settings()
    overrides: dict[str, object] = {"headers": parse_header_options(headers)}
    if max_redirects is not None:
        overrides["max_redirects"] = max_redirects
    if timeout_seconds is not None:
        overrides["timeout_seconds"] = timeout_seconds
    config = FetchConfig.from_settings(settings, **overrides)

    level = parse_level("DEBUG" if verbose else settings.log_level)
    configure_logging(
        level=level,
        json_format=settings.json_logs if json_logs is None else json_logs,
    )
    request_id = uuid.uuid4().hex[:12]
    bind_request_context(request_id)
    log = logger.bind(component=COMPONENT_CLI, command="get")

    try:
        result = asyncio.run(_fetch(uri, config))
    except FetchError as e:
        click.echo(ErrorRecord.from_exception(e).model_dump_json(indent=2))
        log.error("get_failed", error_class=e.error_class.value)
        sys.exit(1)
    finally:
        clear_request_context()

    if body_out is not None and result.raw_content is not None:
        body_out.write_bytes(result.raw_content)
    if wire_out is not None:
        wire_out.write_bytes(result.raw_wire_bytes)

    click.echo(json.dumps(result.summary(), indent=2))


def main() -> None:
    """Entry point for the ``wirefetch`` console script."""
    cli()
