"""In-memory response caching for feedclient.

This package provides :class:`ResponseCache`, a TTL cache for successful
idempotent reads with prefix-based invalidation. Entries are keyed by HTTP
method, path, and sorted query parameters (see
:func:`feedclient.models.cache_key`).

The cache is consumed by :class:`~feedclient.client.pipeline.RequestPipeline`
and is controlled by :class:`~feedclient.models.CacheConfig`.
"""

from feedclient.cache.cache import CacheEntry, ResponseCache

__all__ = ["CacheEntry", "ResponseCache"]
