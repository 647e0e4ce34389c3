"""Interceptor slots and the chain that runs them.

This module provides two core components:

* :class:`InterceptorSlot` -- one registration: a fulfillment hook, an
  optional rejection hook, and an ``active`` flag.
* :class:`InterceptorChain` -- an append-only list of slots. The id returned
  by :meth:`InterceptorChain.use` is the slot's index and stays valid
  forever; :meth:`InterceptorChain.eject` makes a slot inert without
  removing or renumbering it.

The chain follows a pipeline pattern: each hook receives the value returned
by the previous hook. Hooks may be plain functions or coroutines.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

FulfilledHook = Callable[[Any], Union[Any, Awaitable[Any]]]
RejectedHook = Callable[[BaseException], Union[Any, Awaitable[Any]]]


async def maybe_await(value: Any) -> Any:
    """Await *value* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def _passthrough(value: Any) -> Any:
    return value


def _ignore(error: BaseException) -> None:
    return None


@dataclass
class InterceptorSlot:
    """A single registration in an :class:`InterceptorChain`."""

    on_fulfilled: FulfilledHook = _passthrough
    on_rejected: Optional[RejectedHook] = None
    active: bool = True


class InterceptorChain(Generic[T]):
    """Ordered, ejectable pipeline of hooks over values of type ``T``.

    One chain processes outgoing :class:`~fetches.models.RequestConfig`
    objects and another processes :class:`~fetches.models.FetchesResponse`
    envelopes.

    Args:
        name: Label used in log messages (``"request"`` or ``"response"``).
    """

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._slots: list[InterceptorSlot] = []

    def use(
        self,
        on_fulfilled: Optional[FulfilledHook] = None,
        on_rejected: Optional[RejectedHook] = None,
    ) -> int:
        """Append a slot and return its id (its index in the chain)."""
        slot_id = len(self._slots)
        self._slots.append(
            InterceptorSlot(on_fulfilled=on_fulfilled or _passthrough, on_rejected=on_rejected)
        )
        return slot_id

    def eject(self, slot_id: int) -> None:
        """Make the slot inert. Unknown ids are ignored; ids are never reused."""
        if 0 <= slot_id < len(self._slots):
            self._slots[slot_id] = InterceptorSlot(
                on_fulfilled=_passthrough, on_rejected=_ignore, active=False
            )

    def is_active(self, slot_id: int) -> bool:
        """Whether *slot_id* refers to a registered, non-ejected slot."""
        return 0 <= slot_id < len(self._slots) and self._slots[slot_id].active

    def __len__(self) -> int:
        return len(self._slots)

    async def run(self, value: T) -> T:
        """Thread *value* through every active slot in registration order.

        A hook returning ``None`` leaves the value unchanged. When a hook
        raises, its rejection hook (if any) is invoked with the error for
        side effects only, then the original error is re-raised.
        """
        result = value
        for slot in list(self._slots):
            if not slot.active:
                continue
            try:
                returned = await maybe_await(slot.on_fulfilled(result))
            except Exception as exc:
                if slot.on_rejected is not None:
                    try:
                        await maybe_await(slot.on_rejected(exc))
                    except Exception as hook_exc:
                        logger.warning(
                            "%s interceptor rejection hook failed: %s", self._name, hook_exc
                        )
                raise
            if returned is not None:
                result = returned
        return result


class Interceptors:
    """The ``client.interceptors`` namespace: one request and one response chain."""

    def __init__(self) -> None:
        self.request: InterceptorChain[Any] = InterceptorChain("request")
        self.response: InterceptorChain[Any] = InterceptorChain("response")
