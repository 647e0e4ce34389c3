"""Tests for retry decisions and backoff delays."""

from __future__ import annotations

from fetches.exceptions import (
    FetchesCancelledError,
    FetchesNetworkError,
    FetchesResponseError,
    FetchesTimeoutError,
    FetchesValidationError,
)
from fetches.models import BackoffStrategy, RetryConfig
from fetches.retry import RetryController


# ------------------------------------------------------------------ #
# Backoff delays
# ------------------------------------------------------------------ #


class TestDelay:
    def test_exponential_with_cap(self) -> None:
        controller = RetryController(
            RetryConfig(attempts=5, backoff="exponential", initial_delay=100, max_delay=1000)
        )
        assert [controller.delay_for(i) for i in range(5)] == [100, 200, 400, 800, 1000]

    def test_linear(self) -> None:
        controller = RetryController(
            RetryConfig(attempts=4, backoff=BackoffStrategy.LINEAR, initial_delay=50)
        )
        assert [controller.delay_for(i) for i in range(4)] == [50, 100, 150, 200]

    def test_linear_with_cap(self) -> None:
        controller = RetryController(
            RetryConfig(attempts=4, backoff="linear", initial_delay=50, max_delay=120)
        )
        assert [controller.delay_for(i) for i in range(4)] == [50, 100, 120, 120]

    def test_uncapped_exponential(self) -> None:
        controller = RetryController(RetryConfig(attempts=3, initial_delay=10))
        assert controller.delay_for(6) == 640


# ------------------------------------------------------------------ #
# Retry decisions
# ------------------------------------------------------------------ #


class TestShouldRetry:
    def test_no_config_means_single_attempt(self) -> None:
        controller = RetryController()
        assert controller.max_attempts == 1
        assert not controller.should_retry(FetchesNetworkError("down"), 0)

    def test_network_and_timeout_retried_by_default(self) -> None:
        controller = RetryController(RetryConfig(attempts=3))
        assert controller.should_retry(FetchesNetworkError("down"), 0)
        assert controller.should_retry(FetchesTimeoutError("slow"), 1)

    def test_budget_exhausted(self) -> None:
        controller = RetryController(RetryConfig(attempts=3))
        assert not controller.should_retry(FetchesNetworkError("down"), 2)

    def test_explicit_budget_overrides_config(self) -> None:
        controller = RetryController(RetryConfig(attempts=3))
        assert not controller.should_retry(FetchesNetworkError("down"), 0, max_attempts=1)

    def test_status_and_validation_not_retried_by_default(self) -> None:
        controller = RetryController(RetryConfig(attempts=3))
        assert not controller.should_retry(FetchesResponseError(503, "Service Unavailable"), 0)
        assert not controller.should_retry(FetchesValidationError("bad"), 0)

    def test_custom_predicate_wins(self) -> None:
        controller = RetryController(
            RetryConfig(
                attempts=3,
                should_retry=lambda e: isinstance(e, FetchesResponseError) and e.status >= 500,
            )
        )
        assert controller.should_retry(FetchesResponseError(503), 0)
        assert not controller.should_retry(FetchesResponseError(404), 0)
        assert not controller.should_retry(FetchesNetworkError("down"), 0)

    def test_cancellation_never_retried(self) -> None:
        controller = RetryController(RetryConfig(attempts=3, should_retry=lambda e: True))
        assert not controller.should_retry(FetchesCancelledError("stop"), 0)

    def test_predicate_not_consulted_when_budget_spent(self) -> None:
        calls = []
        controller = RetryController(
            RetryConfig(attempts=2, should_retry=lambda e: calls.append(e) or True)
        )
        assert not controller.should_retry(FetchesNetworkError("down"), 1)
        assert calls == []
