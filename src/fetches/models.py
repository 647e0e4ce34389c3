"""Canonical models shared across all fetches modules.

The models fall into two groups:

**Configuration models** -- pydantic v2 models describing how a client
behaves. They can be built in code or loaded from JSON/YAML by
:mod:`fetches.config`:
    :class:`CacheConfig`, :class:`RetryConfig`, :class:`InterceptorsConfig`,
    and :class:`FetchesConfig`.

**Per-call models** -- produced for every logical request:
    :class:`RequestConfig` (the merged request options) and
    :class:`FetchesResponse` (the envelope handed back to callers).

All time values are expressed in **milliseconds**.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field


class ValidatorType(str, enum.Enum):
    """Supported response validation mechanisms.

    Each member is served by exactly one adapter in
    :mod:`fetches.validators`.
    """

    PYDANTIC = "pydantic"
    TYPE_ADAPTER = "type-adapter"
    JSONSCHEMA = "jsonschema"
    DATACLASS = "dataclass"
    CALLABLE = "callable"


class BackoffStrategy(str, enum.Enum):
    """Shape of the delay between retry attempts."""

    LINEAR = "linear"
    EXPONENTIAL = "exponential"


# --- Configuration models ---


class CacheConfig(BaseModel):
    """In-memory response cache settings."""

    enabled: bool = Field(default=True, description="Cache GET/HEAD responses")
    ttl: float = Field(
        default=300_000, gt=0, description="Default entry lifetime in milliseconds"
    )
    max_size: int = Field(default=100, ge=1, description="Maximum number of entries")


class RetryConfig(BaseModel):
    """Retry budget and backoff shape.

    ``attempts`` counts the first attempt, so ``attempts=1`` disables
    retries. When ``should_retry`` is set it replaces the default rule
    (retry network and timeout failures only).
    """

    attempts: int = Field(default=1, ge=1, description="Total attempt budget")
    backoff: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    initial_delay: float = Field(
        default=1000, ge=0, description="First backoff delay in milliseconds"
    )
    max_delay: Optional[float] = Field(
        default=None, ge=0, description="Upper bound for any single delay"
    )
    should_retry: Optional[Callable[[Exception], bool]] = None


class InterceptorsConfig(BaseModel):
    """Initial interceptor chain contents.

    Each entry is either a fulfillment callable or an
    ``(on_fulfilled, on_rejected)`` pair.
    """

    request: list[Any] = Field(default_factory=list)
    response: list[Any] = Field(default_factory=list)


class FetchesConfig(BaseModel):
    """Instance-wide defaults for a :class:`~fetches.client.Fetches` client.

    Per-call :class:`RequestConfig` values take precedence over these
    field-by-field; these take precedence over the library defaults
    declared here.

    Example::

        FetchesConfig(
            base_url="https://api.example.com",
            timeout=5000,
            retry=RetryConfig(attempts=3, backoff="linear", initial_delay=50),
        )
    """

    base_url: Optional[str] = None
    default_headers: dict[str, str] = Field(default_factory=dict)
    timeout: float = Field(default=30_000, gt=0, description="Per-attempt timeout in ms")
    validate_response: bool = True
    validator_type: str = ValidatorType.PYDANTIC.value
    cache: CacheConfig = Field(default_factory=CacheConfig)
    retry: Optional[RetryConfig] = None
    transform_request: list[Callable[..., Any]] = Field(default_factory=list)
    transform_response: list[Callable[..., Any]] = Field(default_factory=list)
    interceptors: InterceptorsConfig = Field(default_factory=InterceptorsConfig)


class RequestConfig(BaseModel):
    """Options for one logical request.

    Every field defaults to ``None``, meaning "inherit from the client".
    Interceptors and transformers receive and return instances of this
    model; use :meth:`~pydantic.BaseModel.model_copy` with ``update=`` to
    derive a modified copy.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    url: Optional[str] = None
    method: Optional[str] = None
    base_url: Optional[str] = None
    data: Any = None
    params: Optional[dict[str, Any]] = None
    headers: Optional[dict[str, str]] = None
    timeout: Optional[float] = Field(default=None, description="Timeout in ms")
    validate_response: Optional[bool] = None
    validator_schema: Any = None
    validator_type: Optional[str] = None
    request_id: Optional[str] = None
    skip_cache: Optional[bool] = None
    cache_time: Optional[float] = Field(default=None, description="Cache lifetime in ms")


# --- Response envelope ---


@dataclass
class FetchesResponse:
    """The envelope returned by every successful call.

    Attributes:
        data: The decoded, transformed, and (optionally) validated body.
        status: HTTP status code.
        status_text: HTTP reason phrase.
        headers: Response headers.
        config: The resolved :class:`RequestConfig` that produced this
            response.
        request: The :class:`httpx.Request` that was sent, if any.
    """

    data: Any
    status: int
    status_text: str
    headers: httpx.Headers
    config: RequestConfig
    request: Optional[httpx.Request] = None

    @property
    def ok(self) -> bool:
        """Whether ``status`` is in the 2xx success range."""
        return 200 <= self.status < 300
