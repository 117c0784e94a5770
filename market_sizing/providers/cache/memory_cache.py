"""In-memory outcome-aware cache using cachetools.TLRUCache.

Each key's lifetime comes from the outcome of the call that produced it,
so the cache needs per-item expiry rather than one uniform TTL.
``TLRUCache`` asks a *time-to-use* function for every inserted item; ours
returns the entry's own ``expires_at``.  The timer is injectable so tests
can step a fake clock across expiry boundaries.

An optional :class:`ICachePersistence` collaborator (see
``sqlite_persistence.py``) receives a copy of every write.  On a memory
miss the persisted row is loaded, checked for expiry, and re-hydrated.
"""

from __future__ import annotations

import fnmatch
import math
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

import structlog
from cachetools import TLRUCache

from market_sizing.interfaces.cache_provider import ICachePersistence, ICacheProvider
from market_sizing.models.cache import CacheEntry, CacheStats, Outcome, OutcomeTtlPolicy

logger = structlog.get_logger(logger_name=__name__)


def _entry_expiry(_key: str, entry: CacheEntry, _now: float) -> float:
    # TLRUCache drops an item once now >= expiry; entries stay live through expires_at.
    return math.nextafter(entry.expires_at, math.inf)


class MemoryCacheProvider(ICacheProvider):
    """Process-local cache of :class:`CacheEntry` objects.

    Parameters
    ----------
    ttl_policy:
        Outcome-to-TTL mapping.  Defaults to :class:`OutcomeTtlPolicy`.
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    clock:
        Returns the current time in epoch seconds.  Defaults to
        :func:`time.time`.
    persistence:
        Optional durable store written through on every ``set``.
    """

    def __init__(
        self,
        ttl_policy: OutcomeTtlPolicy | None = None,
        max_size: int = 2048,
        clock: Callable[[], float] = time.time,
        persistence: ICachePersistence | None = None,
    ) -> None:
        self._policy = ttl_policy or OutcomeTtlPolicy()
        self._clock = clock
        self._persistence = persistence
        self._cache: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=max_size, ttu=_entry_expiry, timer=clock
        )
        self._hits = 0
        self._misses = 0
        self._last_refreshed: datetime | None = None

    @property
    def ttl_policy(self) -> OutcomeTtlPolicy:
        return self._policy

    def clock(self) -> float:
        return self._clock()

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Retrieve the cached value for *key*, or ``None`` if missing/expired."""
        entry = await self.get_entry(key)
        return entry.value if entry is not None else None

    async def get_entry(self, key: str) -> CacheEntry | None:
        now = self._clock()
        entry = self._cache.get(key)
        if entry is None and self._persistence is not None:
            entry = await self._load_persisted(key, now)

        if entry is None or entry.is_expired(now):
            self._misses += 1
            logger.debug("cache_miss", key=key)
            return None

        self._hits += 1
        logger.debug("cache_hit", key=key, outcome=entry.outcome.value)
        return entry

    async def set(self, key: str, value: Any, outcome: Outcome) -> CacheEntry | None:
        ttl_ms = self._policy.ttl_for(outcome)
        if ttl_ms <= 0:
            logger.debug("cache_set_skipped", key=key, outcome=outcome.value)
            return None

        entry = CacheEntry(
            key=key,
            value=value,
            stored_at=self._clock(),
            ttl_ms=ttl_ms,
            outcome=outcome,
        )
        self._cache[key] = entry
        self._last_refreshed = entry.stored_at_datetime
        logger.debug("cache_set", key=key, outcome=outcome.value, ttl_ms=ttl_ms)

        if self._persistence is not None:
            await self._persistence.save(entry)
        return entry

    async def invalidate(self, pattern: str) -> int:
        self._cache.expire()
        removed = {key for key in list(self._cache.keys()) if fnmatch.fnmatchcase(key, pattern)}
        for key in removed:
            self._cache.pop(key, None)
        if self._persistence is not None:
            removed.update(await self._persistence.remove_matching(pattern))
        logger.info("cache_invalidated", pattern=pattern, removed=len(removed))
        return len(removed)

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (no-op if absent)."""
        self._cache.pop(key, None)
        if self._persistence is not None:
            await self._persistence.remove(key)
        logger.debug("cache_delete", key=key)

    async def clear(self) -> None:
        self._cache.clear()
        if self._persistence is not None:
            await self._persistence.clear()
        logger.info("cache_cleared")

    async def get_stats(self) -> CacheStats:
        self._cache.expire()
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            size=len(self._cache),
            last_refreshed=self._last_refreshed,
        )

    def get_backend_name(self) -> str:
        return "memory"

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def purge_expired(self) -> int:
        """Drop expired entries from memory and persistence.

        Lookups already expire lazily; this sweep only reclaims space.
        """
        now = self._clock()
        # expire() returns the evicted pairs; len() would expire them first.
        removed = len(self._cache.expire())
        if self._persistence is not None:
            removed += await self._persistence.purge_expired(now)
        return removed

    async def _load_persisted(self, key: str, now: float) -> CacheEntry | None:
        assert self._persistence is not None
        entry = await self._persistence.load(key)
        if entry is None:
            return None
        if entry.is_expired(now):
            await self._persistence.remove(key)
            logger.debug("cache_persisted_expired", key=key)
            return None
        self._cache[key] = entry
        logger.debug("cache_rehydrated", key=key, outcome=entry.outcome.value)
        return entry
