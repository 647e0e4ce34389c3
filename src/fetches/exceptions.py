"""Error taxonomy for fetches.

Every error the orchestrator raises on its own behalf inherits from
:class:`FetchesError`, which carries a class-level ``kind`` tag (an
:class:`ErrorKind` member) and an ``exit_code`` used by the command line.
Callers can branch on ``exc.kind`` instead of chains of ``isinstance``
checks.

Subclass hierarchy::

    FetchesError
    +-- FetchesTimeoutError        (kind=timeout)
    +-- FetchesNetworkError        (kind=network)
    +-- FetchesValidationError     (kind=validation)
    +-- FetchesResponseError       (kind=response_status)
    +-- FetchesConfigurationError  (kind=configuration)
    +-- FetchesCancelledError      (kind=cancelled)

Errors raised by user hooks (interceptors, transformers) are never wrapped;
they reach the caller unchanged.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Optional

from fetches.exit_codes import (
    EXIT_CANCELLED,
    EXIT_CONFIGURATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NETWORK_ERROR,
    EXIT_RESPONSE_STATUS,
    EXIT_TIMEOUT,
    EXIT_VALIDATION_ERROR,
)

if TYPE_CHECKING:
    import httpx


class ErrorKind(str, enum.Enum):
    """Tag identifying which branch of the taxonomy an error belongs to."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    VALIDATION = "validation"
    RESPONSE_STATUS = "response_status"
    CONFIGURATION = "configuration"
    CANCELLED = "cancelled"


class FetchesError(Exception):
    """Base exception for all fetches errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    kind: ErrorKind = ErrorKind.NETWORK
    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class FetchesTimeoutError(FetchesError):
    """Raised when a single attempt exceeds its deadline."""

    kind = ErrorKind.TIMEOUT
    exit_code = EXIT_TIMEOUT


class FetchesNetworkError(FetchesError):
    """Raised on transport failures that are not otherwise classified."""

    kind = ErrorKind.NETWORK
    exit_code = EXIT_NETWORK_ERROR


class FetchesValidationError(FetchesError):
    """Raised when a response body does not match the configured schema."""

    kind = ErrorKind.VALIDATION
    exit_code = EXIT_VALIDATION_ERROR


class FetchesConfigurationError(FetchesError):
    """Raised for unsupported validator kinds and unreadable configuration."""

    kind = ErrorKind.CONFIGURATION
    exit_code = EXIT_CONFIGURATION_ERROR


class FetchesCancelledError(FetchesError):
    """Raised when the caller cancels an in-flight request or its backoff."""

    kind = ErrorKind.CANCELLED
    exit_code = EXIT_CANCELLED


class FetchesResponseError(FetchesError):
    """Raised when the server answers with a status outside 200-299.

    Attributes:
        status: The HTTP status code.
        status_text: The reason phrase (may be empty).
        data: The decoded (and transformed) response body.
        response: The underlying :class:`httpx.Response`, when available.
    """

    kind = ErrorKind.RESPONSE_STATUS
    exit_code = EXIT_RESPONSE_STATUS

    def __init__(
        self,
        status: int,
        status_text: str = "",
        data: Any = None,
        response: Optional[httpx.Response] = None,
    ):
        super().__init__(f"HTTP Error: {status} {status_text}".rstrip())
        self.status = status
        self.status_text = status_text
        self.data = data
        self.response = response
