"""In-memory read-through cache for idempotent backend reads.

Entries are keyed by the string produced by :func:`feedclient.models.cache_key`
(``"GET /posts?limit=10&page=1"``) and carry their own TTL. Expiry is lazy:
an entry whose age has reached its TTL is treated as absent and dropped the
next time it is looked up. There is no background sweeper.

Mutations invalidate by key prefix (:meth:`ResponseCache.invalidate`), which
lets a single post update drop its detail entry and every cached feed page
without knowing which pages were cached.

Every invalidation bumps :attr:`ResponseCache.generation`. A read that was
dispatched at generation *n* passes *n* to :meth:`ResponseCache.store`, and the
store is skipped when a matching prefix was invalidated since then, so a
response fetched before a mutation never lands in the cache after it.

The cache lives only as long as the process. Only
:class:`~feedclient.client.pipeline.RequestPipeline` writes to it.

See Also:
    :class:`~feedclient.models.CacheConfig` -- ``enabled`` and default TTLs.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Optional

from feedclient.models import CacheConfig

logger = logging.getLogger(__name__)

_INVALIDATION_LOG_SIZE = 256


@dataclass(frozen=True)
class CacheEntry:
    """A cached value with the time it was stored and its TTL (seconds)."""

    value: Any
    stored_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        """An entry is expired once its age reaches the TTL."""
        return now - self.stored_at >= self.ttl


class ResponseCache:
    """Memory-only TTL cache with prefix invalidation.

    Args:
        config: Cache configuration (``enabled`` flag and default TTL).
        clock: Monotonic time source in seconds; injectable for tests.

    Example::

        cache = ResponseCache(CacheConfig(ttl_seconds=300))
        cache.store("GET /posts/1?", {"status_code": 200})
        assert cache.lookup("GET /posts/1?") is not None
        cache.invalidate("GET /posts/")
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or CacheConfig()
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._generation = 0
        self._invalidations: deque[tuple[int, str]] = deque(maxlen=_INVALIDATION_LOG_SIZE)

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def generation(self) -> int:
        """Counter bumped by every :meth:`invalidate` and :meth:`clear`."""
        return self._generation

    @property
    def default_ttl(self) -> float:
        """TTL in seconds used when :meth:`store` gets none."""
        return self._config.ttl_seconds

    def lookup(self, key: str) -> Optional[CacheEntry]:
        """Return the live entry for *key*, or ``None`` on a miss.

        Expired entries count as misses and are removed.
        """
        if not self._config.enabled:
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def store(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        since: Optional[int] = None,
    ) -> bool:
        """Store *value* under *key* for *ttl* seconds (default: :attr:`default_ttl`).

        Args:
            since: The :attr:`generation` observed before *value* was fetched.
                When given, the store is skipped if *key* was invalidated
                after that point.

        Returns:
            Whether the entry was stored. ``False`` when caching is disabled
            or *value* is older than an invalidation of *key*.

        Raises:
            ValueError: If *ttl* is not positive.
        """
        if not self._config.enabled:
            return False
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if since is not None and self._invalidated_since(key, since):
            logger.debug("Skipping store of %s: invalidated while in flight", key)
            return False
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock(), ttl=ttl)
        return True

    def invalidate(self, prefix: str) -> int:
        """Remove every entry whose key equals or starts with *prefix*.

        An empty prefix removes everything.

        Returns:
            The number of entries removed.
        """
        self._bump(prefix)
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug("Invalidated %d cache entries under %r", len(doomed), prefix)
        return len(doomed)

    def clear(self) -> None:
        """Remove all entries from the cache."""
        self._bump("")
        self._entries.clear()

    def _bump(self, prefix: str) -> None:
        self._generation += 1
        self._invalidations.append((self._generation, prefix))

    def _invalidated_since(self, key: str, since: int) -> bool:
        if since >= self._generation:
            return False
        # The log has rolled past *since*; assume the worst.
        if self._invalidations and self._invalidations[0][0] > since + 1:
            return True
        return any(
            generation > since and key.startswith(prefix)
            for generation, prefix in self._invalidations
        )

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``enabled`` (bool), and when enabled: ``size``
            (number of stored entries, expired ones included until they are
            looked up) and ``ttl_seconds``.
        """
        if not self._config.enabled:
            return {"enabled": False}
        return {
            "enabled": True,
            "size": len(self._entries),
            "ttl_seconds": self._config.ttl_seconds,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.lookup(key) is not None
