"""Schema-bound verb set returned by :meth:`fetches.client.Fetches.create`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from fetches.models import FetchesResponse

if TYPE_CHECKING:
    from fetches.client.async_client import Fetches


class BoundClient:
    """The verbs of a :class:`~fetches.client.Fetches` client with a fixed schema.

    Every call forwards to the parent client with ``validator_schema`` set
    to the bound schema (and ``validator_type`` when one was given), so the
    parent's cache, retry policy, interceptors, and cancellation registry
    all apply unchanged.

    Example::

        users = api.create(list[User], validator_type="type-adapter")
        resp = await users.get("/users")   # resp.data is list[User]
    """

    def __init__(self, client: Fetches, schema: Any, validator_type: Optional[str] = None) -> None:
        self._client = client
        self._schema = schema
        self._validator_type = validator_type

    @property
    def schema(self) -> Any:
        """The schema applied to every call."""
        return self._schema

    def _bind(self, options: dict[str, Any]) -> dict[str, Any]:
        bound = {**options, "validator_schema": self._schema}
        if self._validator_type is not None:
            bound["validator_type"] = self._validator_type
        return bound

    async def get(self, url: str, **options: Any) -> FetchesResponse:
        return await self._client.get(url, **self._bind(options))

    async def head(self, url: str, **options: Any) -> FetchesResponse:
        return await self._client.head(url, **self._bind(options))

    async def post(self, url: str, data: Any = None, **options: Any) -> FetchesResponse:
        return await self._client.post(url, data, **self._bind(options))

    async def put(self, url: str, data: Any = None, **options: Any) -> FetchesResponse:
        return await self._client.put(url, data, **self._bind(options))

    async def patch(self, url: str, data: Any = None, **options: Any) -> FetchesResponse:
        return await self._client.patch(url, data, **self._bind(options))

    async def delete(self, url: str, **options: Any) -> FetchesResponse:
        return await self._client.delete(url, **self._bind(options))
