"""In-memory response caching for fetches.

This package provides :class:`RequestCache`, a bounded TTL + LRU store that
the :class:`~fetches.client.Fetches` orchestrator uses to short-circuit
repeated GET/HEAD requests, and :func:`make_cache_key`, which derives the
request fingerprint used as the cache key.

The cache is controlled by the ``cache`` section of
:class:`~fetches.models.FetchesConfig` (:class:`~fetches.models.CacheConfig`).
"""

from fetches.cache.cache import CacheEntry, RequestCache, make_cache_key, monotonic_ms

__all__ = ["CacheEntry", "RequestCache", "make_cache_key", "monotonic_ms"]
