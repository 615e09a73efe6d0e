"""Command line entry point: fetch one URL and print status and body."""

import sys

import click

from src.fetch.client import HttpFetcher
from src.fetch.config import FetchConfig
from src.fetch.constants import DEFAULT_TIMEOUT_MS, MAX_TIMEOUT_MS
from src.fetch.models import FetchRequest, HttpMethod
from src.observability.logging import LOG_LEVELS, configure_logging


def parse_header(value: str) -> tuple[str, str]:
    """Split a ``Name: value`` header argument.

    Args:
        value: Raw command line value.

    Returns:
        Tuple of header name and value.

    Raises:
        click.BadParameter: If there is no colon or the name is empty.
    """
    name, sep, header_value = value.partition(":")
    name = name.strip()
    if not sep or not name:
        msg = f"Expected 'Name: value', got {value!r}"
        raise click.BadParameter(msg)
    return name, header_value.strip()


def _parse_headers(
    ctx: click.Context,  # noqa: ARG001
    param: click.Parameter,  # noqa: ARG001
    values: tuple[str, ...],
) -> list[tuple[str, str]]:
    return [parse_header(v) for v in values]


@click.command()
@click.version_option(version="0.1.0")
@click.argument("url")
@click.option(
    "--method",
    "-X",
    type=click.Choice([m.value for m in HttpMethod], case_sensitive=False),
    default=HttpMethod.GET.value,
    show_default=True,
    help="HTTP method.",
)
@click.option(
    "--header",
    "-H",
    "headers",
    multiple=True,
    callback=_parse_headers,
    help="Request header as 'Name: value'. Repeatable; later values win.",
)
@click.option(
    "--data",
    "-d",
    default=None,
    help="Request body, sent as UTF-8.",
)
@click.option(
    "--timeout-ms",
    type=click.IntRange(min=1, max=MAX_TIMEOUT_MS),
    default=DEFAULT_TIMEOUT_MS,
    show_default=True,
    help="Timeout for the whole exchange in milliseconds.",
)
@click.option(
    "--no-http2",
    is_flag=True,
    default=False,
    help="Only speak HTTP/1.1.",
)
@click.option(
    "--insecure",
    is_flag=True,
    default=False,
    help="Skip TLS certificate verification.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for diagnostics on stderr.",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "console"]),
    default="json",
    show_default=True,
    help="Log output format.",
)
def cli(  # noqa: PLR0913
    url: str,
    method: str,
    headers: list[tuple[str, str]],
    data: str | None,
    timeout_ms: int,
    no_http2: bool,
    insecure: bool,
    log_level: str,
    log_format: str,
) -> None:
    """Fetch URL once and print the status code and body."""
    configure_logging(
        level=log_level,
        output=sys.stderr,
        json_format=log_format == "json",
    )

    config = FetchConfig(
        default_timeout_ms=timeout_ms,
        http2=not no_http2,
        verify_tls=not insecure,
    )
    request = FetchRequest(
        method=method,
        url=url,
        headers=headers,
        body=data.encode("utf-8") if data is not None else None,
    )

    result = HttpFetcher(config).fetch(request)

    if result.error is not None:
        click.echo(f"Error: {result.error.describe()}", err=True)
        sys.exit(1)

    response = result.unwrap()
    click.echo(f"Status code: {response.status_code}")
    click.echo(f"Body: {response.text}")


if __name__ == "__main__":
    cli()
