"""In-memory TTL + LRU cache for completed responses.

Entries carry their own time-to-live and are dropped lazily: an expired
entry is evicted when it is read, and every :meth:`RequestCache.set` sweeps
all expired entries before inserting. When the store is full, the least
recently used entry is evicted first, where both writes and successful reads
count as a use.

Keys are opaque strings built by :func:`make_cache_key` from the HTTP
method, the fully resolved URL, and a serialized body, so that logically
identical requests always share one entry.

See Also:
    :class:`~fetches.models.CacheConfig` -- controls ``enabled``, ``ttl``,
    and ``max_size``.
"""

from __future__ import annotations

import json
import re
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional, Pattern, Union


def monotonic_ms() -> float:
    """Return a monotonic timestamp in milliseconds."""
    return time.monotonic() * 1000


@dataclass
class CacheEntry:
    """A stored value together with its creation time and lifetime (ms)."""

    data: Any
    timestamp: float
    ttl: float


def serialize_body(data: Any) -> str:
    """Serialize a request body for use inside a cache key.

    Mappings are serialized with sorted keys so that key order does not
    matter. Mappings whose keys cannot be ordered against each other keep
    their insertion order, and anything JSON cannot encode falls back to
    its ``repr``.
    """
    if data is None or data == "" or data == b"":
        return ""
    if isinstance(data, str):
        return data
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace")
    for sort_keys in (True, False):
        try:
            return json.dumps(data, sort_keys=sort_keys, separators=(",", ":"), default=str)
        except TypeError:
            continue
    return repr(data)


def make_cache_key(method: str, url: str, data: Any = None) -> str:
    """Build the cache key ``METHOD:URL:BODY`` for a request."""
    return f"{method.upper()}:{url}:{serialize_body(data)}"


class RequestCache:
    """Bounded in-memory cache with per-entry TTL and LRU eviction.

    All mutations (including the promotion performed by :meth:`get`) run
    under a single re-entrant lock, so the size bound and the LRU order hold
    even when one cache is shared between threads.

    Args:
        max_size: Maximum number of entries held at once.
        clock: Callable returning the current time in milliseconds.
            Defaults to a monotonic clock; tests inject a fake.

    Example::

        cache = RequestCache(max_size=10)
        cache.set("GET:https://api.example.com/users:", payload, ttl=60_000)
        cache.get("GET:https://api.example.com/users:")
    """

    def __init__(
        self,
        max_size: int = 100,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._max_size = max(1, max_size)
        self._clock = clock or monotonic_ms
        # Iteration order is LRU -> MRU.
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()

    @property
    def max_size(self) -> int:
        """The configured capacity."""
        return self._max_size

    def get(self, key: str) -> Any:
        """Return the value stored under *key*, or ``None``.

        Expired entries are evicted and reported as a miss. A hit moves the
        key to the most-recently-used position.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry):
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.data

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store *value* under *key* for *ttl* milliseconds.

        Expired entries are purged first. If the key is new and the cache is
        full, the least recently used entry is evicted.
        """
        with self._lock:
            self._remove_expired()

            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self._max_size:
                self._entries.popitem(last=False)

            self._entries[key] = CacheEntry(data=value, timestamp=self._clock(), ttl=ttl)

    def has(self, key: str) -> bool:
        """Whether *key* holds an unexpired entry. Does not affect LRU order."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._is_expired(entry)

    def invalidate(self, pattern: Union[str, Pattern[str]]) -> int:
        """Remove every key matching *pattern*.

        A plain string is matched literally anywhere in the key; a compiled
        regular expression is applied with :meth:`re.Pattern.search`.

        Returns:
            The number of entries removed.
        """
        regex = re.compile(re.escape(pattern)) if isinstance(pattern, str) else pattern
        with self._lock:
            doomed = [key for key in self._entries if regex.search(key)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        """Number of stored entries (expired ones count until purged)."""
        with self._lock:
            return len(self._entries)

    def keys(self) -> list[str]:
        """Stored keys, least recently used first."""
        with self._lock:
            return list(self._entries)

    def stats(self) -> dict[str, Any]:
        """Return ``size`` and ``max_size`` for diagnostics."""
        with self._lock:
            return {"size": len(self._entries), "max_size": self._max_size}

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp > entry.ttl

    def _remove_expired(self) -> None:
        for key in [k for k, e in self._entries.items() if self._is_expired(e)]:
            del self._entries[key]
