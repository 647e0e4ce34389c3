"""HTTP client module for fetches.

Provides the :class:`Fetches` orchestrator, which wraps
:class:`httpx.AsyncClient` with interceptors, response caching, retry with
backoff, per-attempt timeouts, cancellation, and response validation, and
:class:`BoundClient`, the schema-bound verb set returned by
:meth:`Fetches.create`.

Example::

    from fetches.client import Fetches

    async with Fetches(base_url="https://api.example.com") as api:
        resp = await api.get("/users")
"""

from fetches.client.async_client import Fetches, create_fetches
from fetches.client.bound import BoundClient

__all__ = ["BoundClient", "Fetches", "create_fetches"]
