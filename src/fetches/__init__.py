"""fetches -- an async HTTP client with caching, retries, and validation.

fetches wraps :mod:`httpx` with a request orchestration pipeline: every call
passes through request interceptors, an in-memory TTL/LRU response cache, a
retry loop with linear or exponential backoff, response transformers,
status checks, and pluggable schema validation, before the response
interceptors see the final envelope. In-flight requests can be cancelled by
id.

Typical usage::

    from fetches import create_fetches

    async with create_fetches(base_url="https://api.example.com") as api:
        resp = await api.get("/users", params={"page": 2})
        print(resp.status, resp.data)

A module-level client, ``fetches.fetches``, is ready for one-off calls.

Modules:
    client: The :class:`Fetches` orchestrator and its schema-bound client.
    cache: The in-memory TTL + LRU response cache.
    retry: Retry decisions and backoff delays.
    interceptors: Ordered, ejectable request/response hook chains.
    cancellation: Per-request cancellation handles and their registry.
    validators: Validator adapters and the kind-keyed factory.
    models: Pydantic configuration models and the response envelope.
    exceptions: The tagged error taxonomy.
    upload: Multipart uploads with progress and cancellation.
    config: Configuration file and environment loading.
    app: Typer command-line entry point.
"""

from fetches.client import BoundClient, Fetches, create_fetches
from fetches.exceptions import (
    ErrorKind,
    FetchesCancelledError,
    FetchesConfigurationError,
    FetchesError,
    FetchesNetworkError,
    FetchesResponseError,
    FetchesTimeoutError,
    FetchesValidationError,
)
from fetches.models import (
    BackoffStrategy,
    CacheConfig,
    FetchesConfig,
    FetchesResponse,
    RequestConfig,
    RetryConfig,
    ValidatorType,
)
from fetches.upload import Uploader, create_uploader, upload_file

__version__ = "0.1.0"

#: Shared client with default configuration. It opens its httpx client
#: lazily inside the running event loop; call ``await fetches.aclose()``
#: before that loop ends.
fetches = create_fetches()

__all__ = [
    "BackoffStrategy",
    "BoundClient",
    "CacheConfig",
    "ErrorKind",
    "Fetches",
    "FetchesCancelledError",
    "FetchesConfig",
    "FetchesConfigurationError",
    "FetchesError",
    "FetchesNetworkError",
    "FetchesResponse",
    "FetchesResponseError",
    "FetchesTimeoutError",
    "FetchesValidationError",
    "RequestConfig",
    "RetryConfig",
    "Uploader",
    "ValidatorType",
    "create_fetches",
    "create_uploader",
    "fetches",
    "upload_file",
]
