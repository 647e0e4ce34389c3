"""Outgoing request helpers: URL resolution and body encoding.

These are the boundary collaborators of the orchestrator. They are kept
deliberately small: :func:`build_url` joins a base URL, an endpoint, and
query parameters; :func:`prepare_body` turns a request payload into bytes or
text plus the content type implied by its shape.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
from pydantic import BaseModel


def build_url(
    endpoint: str,
    base_url: Optional[str] = None,
    params: Optional[dict[str, Any]] = None,
) -> str:
    """Resolve *endpoint* against *base_url* and append *params*.

    Absolute ``http://``/``https://`` endpoints ignore the base URL. List
    values expand into repeated keys and ``None`` values are dropped.

    Example::

        build_url("/items", "https://api.example.com", {"tag": ["a", "b"]})
        # 'https://api.example.com/items?tag=a&tag=b'
    """
    if endpoint.startswith(("http://", "https://")):
        url = endpoint
    else:
        base = base_url or ""
        if not endpoint:
            url = base
        elif not base:
            url = endpoint
        else:
            url = f"{base.rstrip('/')}/{endpoint.lstrip('/')}"

    if params:
        items: list[tuple[str, Any]] = []
        for key, value in params.items():
            if isinstance(value, (list, tuple)):
                items.extend((key, v) for v in value if v is not None)
            elif value is not None:
                items.append((key, value))
        query = str(httpx.QueryParams(items))
        if query:
            url += ("&" if "?" in url else "?") + query

    return url


def prepare_body(data: Any) -> tuple[Optional[bytes | str], Optional[str]]:
    """Encode a request payload and infer its content type.

    Returns:
        A ``(content, content_type)`` tuple. ``content_type`` is ``None``
        when nothing should be set (no body).
    """
    if data is None:
        return None, None
    if isinstance(data, httpx.QueryParams):
        return str(data), "application/x-www-form-urlencoded"
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data), "application/octet-stream"
    if isinstance(data, str):
        return data, "text/plain"
    if isinstance(data, BaseModel):
        return data.model_dump_json(), "application/json"
    if isinstance(data, (dict, list, tuple)):
        return json.dumps(data, default=str), "application/json"
    return json.dumps(data, default=str), "text/plain"


def merge_headers(*layers: Optional[dict[str, str]]) -> dict[str, str]:
    """Merge header dicts left to right, matching names case-insensitively.

    A later layer replaces an earlier value even if the casing differs; the
    later layer's spelling of the name is kept.
    """
    merged: dict[str, str] = {}
    for layer in layers:
        for name, value in (layer or {}).items():
            for existing in [k for k in merged if k.lower() == name.lower()]:
                del merged[existing]
            merged[name] = value
    return merged
