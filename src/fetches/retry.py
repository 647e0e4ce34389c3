"""Retry decisions and backoff delays for failed attempts.

:class:`RetryController` answers two questions for the orchestrator's retry
loop: *may this failed attempt be retried?* and *how long to wait first?*
The wait itself is performed by the orchestrator through the request's
:class:`~fetches.cancellation.CancellationHandle`, so a pending backoff is
cancellable along with the request.
"""

from __future__ import annotations

from typing import Optional

from fetches.exceptions import ErrorKind, FetchesError
from fetches.models import BackoffStrategy, RetryConfig

_RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.TIMEOUT})


class RetryController:
    """Applies a :class:`~fetches.models.RetryConfig` to failed attempts.

    Attempt indices are zero-based and the budget counts the first attempt,
    so with ``attempts=3`` the indices are 0, 1, and 2 and no retry is
    allowed after index 2.

    Args:
        config: The retry policy. ``None`` means a single attempt and no
            retries.

    Example::

        controller = RetryController(RetryConfig(attempts=5, initial_delay=100, max_delay=1000))
        [controller.delay_for(i) for i in range(5)]  # [100, 200, 400, 800, 1000]
    """

    def __init__(self, config: Optional[RetryConfig] = None) -> None:
        self._config = config or RetryConfig(attempts=1)

    @property
    def max_attempts(self) -> int:
        """Total number of attempts allowed, including the first."""
        return self._config.attempts

    def should_retry(self, error: Exception, attempt: int, max_attempts: Optional[int] = None) -> bool:
        """Decide whether the attempt at index *attempt* may be retried.

        Caller cancellation is never retried. Otherwise a configured
        ``should_retry`` predicate has the final word; without one, only
        network and timeout failures are retryable.
        """
        budget = self.max_attempts if max_attempts is None else max_attempts
        if attempt >= budget - 1:
            return False
        if isinstance(error, FetchesError) and error.kind is ErrorKind.CANCELLED:
            return False
        if self._config.should_retry is not None:
            return bool(self._config.should_retry(error))
        return isinstance(error, FetchesError) and error.kind in _RETRYABLE_KINDS

    def delay_for(self, attempt: int) -> float:
        """Backoff in milliseconds to wait after the attempt at index *attempt*."""
        initial = self._config.initial_delay
        if self._config.backoff == BackoffStrategy.EXPONENTIAL:
            delay = initial * 2 ** attempt
        else:
            delay = initial * (attempt + 1)
        if self._config.max_delay is not None:
            delay = min(delay, self._config.max_delay)
        return delay
