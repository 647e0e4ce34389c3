"""Typer application and CLI entry point for fetches.

The ``fetches`` console script sends one request through the full
:class:`~fetches.client.Fetches` pipeline and prints the result: the body on
stdout, the status line (and with ``--include`` the headers) on stderr.

Example::

    fetches --base-url https://api.example.com get /users --param page=2
    fetches request POST /users --data '{"name": "Ada"}' --retries 2
    fetches get https://api.example.com/users/1 --schema user.schema.json
    fetches get /report --output report.json

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~fetches.exceptions.FetchesError` instances exit
with the error's ``exit_code``.

See Also:
    :mod:`fetches.config`: Configuration precedence resolution.
    :mod:`fetches.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from fetches import __version__
from fetches.exit_codes import EXIT_CANCELLED, EXIT_INVALID_USAGE
from fetches.models import BackoffStrategy, FetchesConfig, RetryConfig, ValidatorType

app = typer.Typer(
    name="fetches",
    help="Send HTTP requests with caching, retries, and response validation.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"fetches {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="JSON or YAML config file."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Base URL for relative request paths."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Per-attempt timeout in milliseconds."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~fetches.output.OutputManager` and stores the
    configuration overrides in ``ctx.obj`` for the request commands.
    """
    from fetches.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["base_url"] = base_url
    ctx.obj["timeout"] = timeout


# ------------------------------------------------------------------ #
# Request commands
# ------------------------------------------------------------------ #


@app.command("request")
def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method (GET, POST, PUT, PATCH, DELETE, HEAD)."),
    url: str = typer.Argument(help="Absolute URL or path relative to --base-url."),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body; sent as JSON when it parses as JSON."
    ),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header as 'Name: value'. Repeatable."
    ),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-p", help="Query parameter as 'key=value'. Repeatable."
    ),
    retries: int = typer.Option(0, "--retries", min=0, help="Extra attempts after the first."),
    backoff: BackoffStrategy = typer.Option(
        BackoffStrategy.EXPONENTIAL, "--backoff", help="Delay growth between attempts."
    ),
    initial_delay: float = typer.Option(
        1000, "--initial-delay", min=0, help="First retry delay in milliseconds."
    ),
    max_delay: Optional[float] = typer.Option(
        None, "--max-delay", min=0, help="Upper bound for any retry delay in milliseconds."
    ),
    schema: Optional[Path] = typer.Option(
        None, "--schema", help="JSON Schema file the response body must match."
    ),
    include: bool = typer.Option(
        False, "--include", "-i", help="Print the response headers to stderr."
    ),
    output_file: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the response body to FILE instead of stdout."
    ),
) -> None:
    """Send a request and print the response body.

    Example::

        fetches request PUT /items/1 --data '{"done": true}' -H 'X-Trace: 1'
    """
    options: dict[str, Any] = {
        "method": method.upper(),
        "url": url,
        "data": _parse_body(data),
        "headers": _parse_pairs(header, ":", "--header") or None,
        "params": _parse_pairs(param, "=", "--param") or None,
    }
    if schema is not None:
        options["validator_schema"] = _load_schema(schema)
        options["validator_type"] = ValidatorType.JSONSCHEMA.value

    retry: Optional[RetryConfig] = None
    if retries:
        retry = RetryConfig(
            attempts=retries + 1,
            backoff=backoff,
            initial_delay=initial_delay,
            max_delay=max_delay,
        )

    _execute(ctx, options, retry, include, output_file)


@app.command("get")
def get_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute URL or path relative to --base-url."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Request header as 'Name: value'. Repeatable."
    ),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-p", help="Query parameter as 'key=value'. Repeatable."
    ),
    schema: Optional[Path] = typer.Option(
        None, "--schema", help="JSON Schema file the response body must match."
    ),
    include: bool = typer.Option(
        False, "--include", "-i", help="Print the response headers to stderr."
    ),
    output_file: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the response body to FILE instead of stdout."
    ),
) -> None:
    """Shortcut for ``fetches request GET URL``."""
    options: dict[str, Any] = {
        "method": "GET",
        "url": url,
        "headers": _parse_pairs(header, ":", "--header") or None,
        "params": _parse_pairs(param, "=", "--param") or None,
    }
    if schema is not None:
        options["validator_schema"] = _load_schema(schema)
        options["validator_type"] = ValidatorType.JSONSCHEMA.value

    _execute(ctx, options, None, include, output_file)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _build_client(config: FetchesConfig) -> Any:
    """Create the client used by the request commands."""
    from fetches.client import Fetches

    return Fetches(config)


def _execute(
    ctx: typer.Context,
    options: dict[str, Any],
    retry: Optional[RetryConfig],
    include: bool,
    output_file: Optional[Path] = None,
) -> None:
    """Resolve configuration, send one request, and print the response."""
    from fetches.client.response import format_api_response
    from fetches.config import resolve_config
    from fetches.exceptions import FetchesError, FetchesResponseError
    from fetches.output import debug, error, get_output

    obj = ctx.obj or {}
    try:
        config = resolve_config(
            config_path=obj.get("config_path"),
            cli_base_url=obj.get("base_url"),
            cli_timeout=obj.get("timeout"),
        )
        if retry is not None:
            config = config.model_copy(update={"retry": retry})
        debug(f"{options['method']} {options['url']} (timeout {config.timeout:g}ms)")

        async def _send() -> Any:
            async with _build_client(config) as client:
                return await client.request(**options)

        response = asyncio.run(_send())
    except FetchesResponseError as exc:
        error(str(exc))
        if exc.data is not None:
            content_type = (
                exc.response.headers.get("content-type", "") if exc.response is not None else ""
            )
            get_output().print_body(exc.data, content_type)
        raise typer.Exit(code=exc.exit_code)
    except FetchesError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    if output_file is not None:
        get_output().output_file = output_file
    format_api_response(response, include_headers=include)


def _parse_body(body: Optional[str]) -> Any:
    """Parse *body* as JSON if possible, returning the raw string on failure."""
    if body is None:
        return None
    try:
        return json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return body


def _parse_pairs(values: Optional[list[str]], sep: str, option: str) -> dict[str, str]:
    """Split ``key<sep>value`` strings into a dict, rejecting malformed entries."""
    from fetches.output import error

    pairs: dict[str, str] = {}
    for item in values or []:
        key, found, value = item.partition(sep)
        if not found or not key.strip():
            error(f"Invalid {option} value {item!r}: expected 'key{sep}value'")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        pairs[key.strip()] = value.strip()
    return pairs


def _load_schema(path: Path) -> Any:
    """Read a JSON Schema document from *path*."""
    from fetches.output import error

    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        error(f"Cannot load schema {path}: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)


def main() -> None:
    """CLI entry point invoked by the ``fetches`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from fetches.exceptions import FetchesError
        from fetches.output import error

        if isinstance(exc, FetchesError):
            error(str(exc))
            sys.exit(exc.exit_code)
        raise
