"""Cooperative cancellation for in-flight requests.

Each logical request owns one :class:`CancellationHandle`. The orchestrator
races the transport call against :meth:`CancellationHandle.wait` and waits
out retry backoff through :meth:`CancellationHandle.sleep`, so signalling a
handle makes either suspension point fail promptly with
:class:`~fetches.exceptions.FetchesCancelledError`.

:class:`CancellationRegistry` maps request ids to handles for as long as the
request is in flight. Registering an id that is already present overwrites
the old handle: the superseded request keeps running but can no longer be
cancelled through the registry. Removal is conditional on handle identity,
so a superseded request finishing never removes its successor's handle.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fetches.exceptions import FetchesCancelledError

logger = logging.getLogger(__name__)


class CancellationHandle:
    """A one-shot cancellation signal bound to a single request id."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether :meth:`cancel` has been called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Signal cancellation. Idempotent."""
        self._event.set()

    async def wait(self) -> None:
        """Block until the handle is cancelled."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`FetchesCancelledError` if the handle was signalled."""
        if self._event.is_set():
            raise FetchesCancelledError(f"Request {self.request_id} was cancelled")

    async def sleep(self, delay_ms: float) -> None:
        """Sleep for *delay_ms* milliseconds unless cancelled first.

        Raises:
            FetchesCancelledError: If the handle is signalled before or
                during the sleep.
        """
        self.raise_if_cancelled()
        if delay_ms > 0:
            try:
                await asyncio.wait_for(self._event.wait(), timeout=delay_ms / 1000)
            except asyncio.TimeoutError:
                return
        self.raise_if_cancelled()


class CancellationRegistry:
    """Tracks the cancellation handle of every in-flight request id."""

    def __init__(self) -> None:
        self._handles: dict[str, CancellationHandle] = {}

    def register(self, request_id: str) -> CancellationHandle:
        """Create and store a handle for *request_id*, replacing any existing one."""
        handle = CancellationHandle(request_id)
        if request_id in self._handles:
            logger.debug("Request id %s already in flight; overwriting its handle", request_id)
        self._handles[request_id] = handle
        return handle

    def get(self, request_id: str) -> Optional[CancellationHandle]:
        """Return the current handle for *request_id*, if any."""
        return self._handles.get(request_id)

    def remove(self, request_id: str, handle: Optional[CancellationHandle] = None) -> None:
        """Forget *request_id*.

        When *handle* is given, the entry is only removed if it still refers
        to that exact handle.
        """
        current = self._handles.get(request_id)
        if current is None:
            return
        if handle is not None and current is not handle:
            return
        del self._handles[request_id]

    def cancel(self, request_id: str) -> bool:
        """Signal and deregister one request. Returns ``False`` if unknown."""
        handle = self._handles.pop(request_id, None)
        if handle is None:
            return False
        logger.debug("Cancelling request %s", request_id)
        handle.cancel()
        return True

    def cancel_all(self) -> int:
        """Signal and deregister every in-flight request. Returns the count."""
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            handle.cancel()
        if handles:
            logger.debug("Cancelled %d in-flight request(s)", len(handles))
        return len(handles)

    def ids(self) -> list[str]:
        """Ids of all requests currently registered."""
        return list(self._handles)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)
