"""The request orchestrator: one logical call in, zero or more attempts out.

This module provides :class:`Fetches`, the public client. It wraps
:class:`httpx.AsyncClient` and layers on:

- **Interceptors** -- ordered, ejectable request and response hook chains
  (:mod:`fetches.interceptors`).
- **Response caching** -- GET/HEAD envelopes are kept in an in-memory
  TTL + LRU store (:mod:`fetches.cache`); successful mutating calls
  invalidate cached entries for the same URL.
- **Retry with backoff** -- failed attempts are retried according to a
  :class:`~fetches.models.RetryConfig` (:mod:`fetches.retry`).
- **Timeouts and cancellation** -- every attempt races the transport call
  against its own timeout and the request's cancellation handle
  (:mod:`fetches.cancellation`).
- **Validation** -- successful bodies are checked against a per-call schema
  through a validator adapter (:mod:`fetches.validators`).

The lifecycle of one call is::

    build -> request interceptors -> cache check
          -> register handle -> attempt loop {transformers -> send -> decode -> check}
          -> cache store / invalidate -> response interceptors -> deregister

See Also:
    :class:`~fetches.client.bound.BoundClient` for the schema-bound verb set
    returned by :meth:`Fetches.create`.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import re
import uuid
from typing import TYPE_CHECKING, Any, Callable, Optional

import httpx

from fetches.cache import RequestCache, make_cache_key
from fetches.cancellation import CancellationHandle, CancellationRegistry
from fetches.client.request import build_url, merge_headers, prepare_body
from fetches.client.response import decode_body
from fetches.exceptions import (
    FetchesCancelledError,
    FetchesError,
    FetchesNetworkError,
    FetchesResponseError,
    FetchesTimeoutError,
)
from fetches.interceptors import Interceptors, maybe_await
from fetches.models import FetchesConfig, FetchesResponse, RequestConfig
from fetches.retry import RetryController
from fetches.validators import ValidatorAdapter, create_validator

if TYPE_CHECKING:
    from fetches.client.bound import BoundClient

logger = logging.getLogger(__name__)

_CACHEABLE_METHODS = frozenset({"GET", "HEAD"})
_MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def _new_request_id() -> str:
    return uuid.uuid4().hex


def _copy_body(data: Any) -> Any:
    if isinstance(data, (dict, list)):
        return copy.deepcopy(data)
    return data


def _hook_pair(entry: Any) -> tuple[Optional[Callable[..., Any]], Optional[Callable[..., Any]]]:
    """Normalize an interceptor config entry into ``(on_fulfilled, on_rejected)``."""
    if callable(entry):
        return entry, None
    if isinstance(entry, dict):
        return entry.get("on_fulfilled"), entry.get("on_rejected")
    fulfilled, *rest = entry
    return fulfilled, (rest[0] if rest else None)


class Fetches:
    """Asynchronous HTTP client with caching, retries, and validation.

    Use as an async context manager so the underlying
    :class:`httpx.AsyncClient` is closed, or call :meth:`aclose` when done.

    Args:
        config: Instance-wide defaults. Keyword *options* are applied on top
            (``Fetches(base_url=...)`` is shorthand for
            ``Fetches(FetchesConfig(base_url=...))``).
        transport: The httpx transport that performs the network I/O.
            Defaults to httpx's own; tests pass :class:`httpx.MockTransport`.
        clock: Millisecond clock for cache expiry.
        id_factory: Generator for request ids when the caller supplies none.

    Raises:
        FetchesConfigurationError: If ``validator_type`` is unsupported.

    Example::

        async with Fetches(base_url="https://api.example.com", timeout=5000) as api:
            resp = await api.get("/users", params={"page": 2})
    """

    def __init__(
        self,
        config: Optional[FetchesConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Callable[[], float]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        **options: Any,
    ) -> None:
        if config is None:
            config = FetchesConfig(**options)
        elif options:
            config = FetchesConfig.model_validate({**dict(config), **options})

        self._config = config
        self._validator = create_validator(config.validator_type)
        self._cache = RequestCache(config.cache.max_size, clock=clock)
        self._retry = RetryController(config.retry)
        self._registry = CancellationRegistry()
        self._id_factory = id_factory or _new_request_id
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        self.interceptors = Interceptors()
        for entry in config.interceptors.request:
            self.interceptors.request.use(*_hook_pair(entry))
        for entry in config.interceptors.response:
            self.interceptors.response.use(*_hook_pair(entry))

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> Fetches:
        self._get_client()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel in-flight requests and close the underlying httpx client."""
        self.cancel_all_requests()
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> FetchesConfig:
        """The instance-wide defaults."""
        return self._config

    @property
    def cache(self) -> RequestCache:
        """The response cache shared by every call on this client."""
        return self._cache

    def active_request_ids(self) -> list[str]:
        """Ids of the requests currently in flight."""
        return self._registry.ids()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(self, config: Optional[RequestConfig] = None, **options: Any) -> FetchesResponse:
        """Run one logical request through the full pipeline.

        Args:
            config: Per-call options. Keyword *options* are
                :class:`~fetches.models.RequestConfig` fields applied on top.

        Returns:
            The :class:`~fetches.models.FetchesResponse` envelope.

        Raises:
            FetchesTimeoutError: An attempt exceeded its timeout and no
                retry remained.
            FetchesNetworkError: The transport failed and no retry remained.
            FetchesResponseError: The server answered with a non-2xx status.
            FetchesValidationError: The body did not match the schema.
            FetchesConfigurationError: The validator kind is unsupported.
            FetchesCancelledError: The request was cancelled by id.
        """
        call = self._build_call(config, options)

        # 1. Building
        merged = self._merge(call)
        self._validator_for(merged.validator_type)

        # 2. Request interceptors
        final = await self.interceptors.request.run(merged)

        request_id = final.request_id or self._id_factory()
        method = (final.method or "GET").upper()
        url = build_url(final.url or "", final.base_url, final.params)

        # 3. Cache lookup
        cacheable = (
            self._config.cache.enabled
            and method in _CACHEABLE_METHODS
            and not final.skip_cache
        )
        cache_key = make_cache_key(method, url, final.data) if cacheable else ""
        if cacheable:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("Cache hit: %s %s", method, url)
                return cached

        # 4. Attempts
        handle = self._registry.register(request_id)
        try:
            response = await self._execute(final, method, url, handle)

            # 5. Cache store / invalidation
            if cacheable:
                ttl = final.cache_time if final.cache_time is not None else self._config.cache.ttl
                self._cache.set(cache_key, response, ttl)
            elif method in _MUTATING_METHODS:
                self._invalidate(url)

            # 6. Response interceptors
            return await self.interceptors.response.run(response)
        finally:
            # 7. Cleanup
            self._registry.remove(request_id, handle)

    async def get(self, url: str, **options: Any) -> FetchesResponse:
        """Send a GET request. *options* are :class:`RequestConfig` fields."""
        return await self.request(**{**options, "method": "GET", "url": url})

    async def head(self, url: str, **options: Any) -> FetchesResponse:
        """Send a HEAD request."""
        return await self.request(**{**options, "method": "HEAD", "url": url})

    async def post(self, url: str, data: Any = None, **options: Any) -> FetchesResponse:
        """Send a POST request with *data* as the body."""
        return await self.request(**{**options, "method": "POST", "url": url, "data": data})

    async def put(self, url: str, data: Any = None, **options: Any) -> FetchesResponse:
        """Send a PUT request with *data* as the body."""
        return await self.request(**{**options, "method": "PUT", "url": url, "data": data})

    async def patch(self, url: str, data: Any = None, **options: Any) -> FetchesResponse:
        """Send a PATCH request with *data* as the body."""
        return await self.request(**{**options, "method": "PATCH", "url": url, "data": data})

    async def delete(self, url: str, **options: Any) -> FetchesResponse:
        """Send a DELETE request."""
        return await self.request(**{**options, "method": "DELETE", "url": url})

    def create(self, schema: Any = None, validator_type: Optional[str] = None) -> BoundClient:
        """Return a verb set that validates every response against *schema*.

        Args:
            schema: The schema passed as ``validator_schema`` on every call.
            validator_type: Optional validator kind for the bound calls.

        Raises:
            FetchesConfigurationError: If *validator_type* is unsupported.
        """
        from fetches.client.bound import BoundClient

        if validator_type is not None:
            self._validator_for(validator_type)
        return BoundClient(self, schema, validator_type)

    # ------------------------------------------------------------------ #
    # Cancellation
    # ------------------------------------------------------------------ #

    def cancel_request(self, request_id: str) -> bool:
        """Cancel one in-flight request. Unknown ids are a no-op (``False``)."""
        return self._registry.cancel(request_id)

    def cancel_all_requests(self) -> int:
        """Cancel every in-flight request and return how many were signalled."""
        return self._registry.cancel_all()

    def clear_cache(self) -> None:
        """Drop every cached response."""
        self._cache.clear()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # Deadlines are enforced per attempt by send_with_deadline.
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=None,
                follow_redirects=True,
            )
        return self._client

    @staticmethod
    def _build_call(config: Optional[RequestConfig], options: dict[str, Any]) -> RequestConfig:
        if config is None:
            return RequestConfig(**options)
        if not options:
            return config
        return RequestConfig.model_validate({**dict(config), **options})

    def _merge(self, call: RequestConfig) -> RequestConfig:
        """Apply instance defaults under the call's own options.

        Precedence per field: call site, then instance config, then library
        defaults. Headers merge by name with call-site values winning.
        """
        defaults = self._config
        return call.model_copy(
            update={
                "method": (call.method or "GET").upper(),
                "base_url": call.base_url if call.base_url is not None else defaults.base_url,
                "headers": merge_headers(defaults.default_headers, call.headers),
                "timeout": call.timeout if call.timeout is not None else defaults.timeout,
                "validate_response": (
                    call.validate_response
                    if call.validate_response is not None
                    else defaults.validate_response
                ),
                "validator_type": call.validator_type or defaults.validator_type,
                "skip_cache": bool(call.skip_cache),
            }
        )

    def _validator_for(self, validator_type: Optional[str]) -> ValidatorAdapter:
        if validator_type is None or validator_type == self._validator.kind:
            return self._validator
        return create_validator(validator_type)

    async def _execute(
        self,
        config: RequestConfig,
        method: str,
        url: str,
        handle: CancellationHandle,
    ) -> FetchesResponse:
        """Run the attempt loop until success or a non-retryable failure."""
        validator = self._validator_for(config.validator_type)
        max_attempts = self._retry.max_attempts

        for attempt in range(max_attempts):
            try:
                attempt_config = await self._apply_request_transformers(config)
                return await self._attempt(attempt_config, method, url, handle, validator)
            except FetchesError as exc:
                if not self._retry.should_retry(exc, attempt, max_attempts):
                    raise
                delay = self._retry.delay_for(attempt)
                logger.debug(
                    "%s %s failed with %s (attempt %d/%d), retrying in %gms",
                    method, url, exc.kind.value, attempt + 1, max_attempts, delay,
                )
                await handle.sleep(delay)

        raise RuntimeError("retry loop exited without a response or an error")  # pragma: no cover

    async def _apply_request_transformers(self, config: RequestConfig) -> RequestConfig:
        # Fresh containers per attempt; in-place edits must not accumulate.
        result = config.model_copy(
            update={
                "headers": dict(config.headers) if config.headers is not None else None,
                "params": dict(config.params) if config.params is not None else None,
                "data": _copy_body(config.data),
            }
        )
        for transformer in self._config.transform_request:
            returned = await maybe_await(transformer(result))
            if returned is not None:
                result = returned
        return result

    async def _attempt(
        self,
        config: RequestConfig,
        method: str,
        url: str,
        handle: CancellationHandle,
        validator: ValidatorAdapter,
    ) -> FetchesResponse:
        """Perform one transport call and turn its outcome into an envelope."""
        handle.raise_if_cancelled()

        content, content_type = prepare_body(config.data)
        headers = httpx.Headers(config.headers or {})
        if content_type and "content-type" not in headers:
            headers["Content-Type"] = content_type

        client = self._get_client()
        request = client.build_request(method, url, headers=headers, content=content)
        timeout = config.timeout if config.timeout is not None else self._config.timeout

        response = await send_with_deadline(client, request, timeout, handle)

        data = decode_body(response)
        for transformer in self._config.transform_response:
            data = await maybe_await(transformer(response, data))

        if not response.is_success:
            raise FetchesResponseError(
                response.status_code, response.reason_phrase, data, response
            )

        if config.validator_schema is not None and config.validate_response:
            data = validator.validate(data, config.validator_schema)

        return FetchesResponse(
            data=data,
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=response.headers,
            config=config,
            request=request,
        )

    def _invalidate(self, url: str) -> None:
        base = url.split("?", 1)[0]
        removed = self._cache.invalidate(re.compile(rf"^(GET|HEAD):{re.escape(base)}"))
        if removed:
            logger.debug("Invalidated %d cached response(s) under %s", removed, base)


def create_fetches(config: Optional[FetchesConfig] = None, **kwargs: Any) -> Fetches:
    """Create a :class:`Fetches` client; see its constructor for arguments."""
    return Fetches(config, **kwargs)


async def send_with_deadline(
    client: httpx.AsyncClient,
    request: httpx.Request,
    timeout_ms: float,
    handle: CancellationHandle,
) -> httpx.Response:
    """Race one transport call against a timeout and a cancellation handle.

    Raises:
        FetchesCancelledError: The handle was signalled first.
        FetchesTimeoutError: *timeout_ms* elapsed first, or httpx timed out.
        FetchesNetworkError: The transport raised anything else.
    """
    send_task = asyncio.ensure_future(client.send(request))
    cancel_task = asyncio.ensure_future(handle.wait())
    try:
        done, _ = await asyncio.wait(
            {send_task, cancel_task},
            timeout=timeout_ms / 1000,
            return_when=asyncio.FIRST_COMPLETED,
        )
    except BaseException:
        send_task.cancel()
        cancel_task.cancel()
        raise
    cancel_task.cancel()

    if send_task in done:
        try:
            return send_task.result()
        except httpx.TimeoutException as exc:
            raise FetchesTimeoutError(f"Request timed out: {exc}") from exc
        except Exception as exc:
            raise FetchesNetworkError(str(exc) or type(exc).__name__) from exc

    send_task.cancel()
    await asyncio.gather(send_task, return_exceptions=True)

    if handle.cancelled:
        raise FetchesCancelledError(f"Request {handle.request_id} was cancelled")
    raise FetchesTimeoutError(f"Request timed out after {timeout_ms:g}ms")
