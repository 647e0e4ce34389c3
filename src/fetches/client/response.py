"""Response decoding and the bridge to the output system.

:func:`decode_body` turns an :class:`httpx.Response` into the payload placed
on a :class:`~fetches.models.FetchesResponse`. :func:`format_api_response`
prints an envelope through :mod:`fetches.output` for the command line: the
status line goes to stderr, the body to stdout.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel

from fetches.models import FetchesResponse
from fetches.output import OutputFormat, get_output


def decode_body(response: httpx.Response) -> Any:
    """Decode the body of *response* according to its content type.

    * ``application/json`` (and ``+json`` types) -- parsed JSON, falling
      back to text when the body is not valid JSON.
    * ``application/x-www-form-urlencoded`` -- a ``dict`` of fields.
    * anything else -- the body text.

    Returns ``None`` for an empty body.
    """
    if not response.content:
        return None

    content_type = response.headers.get("content-type", "").lower()

    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text

    if "application/x-www-form-urlencoded" in content_type:
        return dict(httpx.QueryParams(response.text))

    return response.text


def format_api_response(response: FetchesResponse, include_headers: bool = False) -> None:
    """Print an envelope using the global output system.

    The status line (and with *include_headers* the headers) go to stderr,
    the body to stdout. In JSON format with *include_headers*, the whole
    envelope is printed to stdout as one JSON document instead.

    Args:
        response: The envelope to display.
        include_headers: Also show the response headers.
    """
    output = get_output()

    data = response.data
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")

    if include_headers and output.format == OutputFormat.JSON:
        output.print_body(
            {
                "status": response.status,
                "status_text": response.status_text,
                "headers": dict(response.headers.items()),
                "data": data,
            },
            "application/json",
        )
        return

    output.print_status(response.status, response.status_text or "")
    if include_headers:
        output.print_headers(response.headers)
    if data is not None:
        output.print_body(data, response.headers.get("content-type", ""))
