"""Redis-fronted cache with an in-memory fallback.

Redis is the primary store so several worker processes can share fetched
data.  Every Redis call is bounded by ``fallback_timeout``; when Redis is
slow or unreachable the same operation is served by the wrapped
:class:`MemoryCacheProvider` instead, and the failure is logged.  Writes
go to both stores so the memory copy stays warm for those fallbacks.

Entries are stored in Redis as JSON with a ``PX`` expiry equal to the
entry TTL; the entry's own ``stored_at + ttl_ms`` is still checked on read.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from market_sizing.interfaces.cache_provider import ICacheProvider
from market_sizing.models.cache import CacheEntry, CacheStats, Outcome
from market_sizing.providers.cache.memory_cache import MemoryCacheProvider

logger = structlog.get_logger(logger_name=__name__)

T = TypeVar("T")

# Failures that send an operation to the memory fallback.
_REDIS_FAILURES = (asyncio.TimeoutError, RedisError, OSError, ValueError)

_SCAN_BATCH = 500


class HybridCacheProvider(ICacheProvider):
    """Redis primary, :class:`MemoryCacheProvider` fallback.

    Parameters
    ----------
    client:
        A ``redis.asyncio.Redis`` client (``decode_responses=True``).
    memory:
        The fallback cache.  Its TTL policy and clock are reused for
        entries written to Redis, so both stores agree on expiry.
    fallback_timeout:
        Seconds to wait for any single Redis call before falling back.
    """

    def __init__(
        self,
        client: redis.Redis,
        memory: MemoryCacheProvider,
        fallback_timeout: float = 1.0,
    ) -> None:
        self._redis = client
        self._memory = memory
        self._fallback_timeout = fallback_timeout
        self._hits = 0
        self._misses = 0

    @classmethod
    def from_url(
        cls,
        redis_url: str,
        memory: MemoryCacheProvider,
        fallback_timeout: float = 1.0,
    ) -> HybridCacheProvider:
        client = redis.Redis.from_url(redis_url, decode_responses=True)
        return cls(client, memory, fallback_timeout=fallback_timeout)

    @property
    def memory(self) -> MemoryCacheProvider:
        return self._memory

    async def _with_fallback(
        self,
        operation: str,
        primary: Callable[[], Awaitable[T]],
        fallback: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await asyncio.wait_for(primary(), timeout=self._fallback_timeout)
        except _REDIS_FAILURES as exc:
            logger.warning("redis_fallback", operation=operation, error=str(exc) or type(exc).__name__)
            return await fallback()

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        entry = await self.get_entry(key)
        return entry.value if entry is not None else None

    async def get_entry(self, key: str) -> CacheEntry | None:
        return await self._with_fallback(
            "get_entry",
            lambda: self._redis_get_entry(key),
            lambda: self._memory.get_entry(key),
        )

    async def set(self, key: str, value: Any, outcome: Outcome) -> CacheEntry | None:
        # Memory first: it stamps the entry and applies the TTL policy.
        entry = await self._memory.set(key, value, outcome)
        if entry is None:
            return None
        try:
            await asyncio.wait_for(
                self._redis.set(key, entry.model_dump_json(), px=entry.ttl_ms),
                timeout=self._fallback_timeout,
            )
        except _REDIS_FAILURES as exc:
            logger.warning("redis_set_failed", key=key, error=str(exc) or type(exc).__name__)
        return entry

    async def invalidate(self, pattern: str) -> int:
        removed = await self._with_fallback(
            "invalidate",
            lambda: self._redis_invalidate(pattern),
            lambda: asyncio.sleep(0, result=0),
        )
        memory_removed = await self._memory.invalidate(pattern)
        return max(removed, memory_removed)

    async def delete(self, key: str) -> None:
        try:
            await asyncio.wait_for(self._redis.delete(key), timeout=self._fallback_timeout)
        except _REDIS_FAILURES as exc:
            logger.warning("redis_delete_failed", key=key, error=str(exc) or type(exc).__name__)
        await self._memory.delete(key)

    async def clear(self) -> None:
        try:
            await asyncio.wait_for(self._redis.flushdb(), timeout=self._fallback_timeout)
        except _REDIS_FAILURES as exc:
            logger.warning("redis_clear_failed", error=str(exc) or type(exc).__name__)
        await self._memory.clear()

    async def get_stats(self) -> CacheStats:
        memory_stats = await self._memory.get_stats()
        size = await self._with_fallback(
            "dbsize",
            self._redis.dbsize,
            lambda: asyncio.sleep(0, result=memory_stats.size),
        )
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            size=size,
            last_refreshed=memory_stats.last_refreshed,
        )

    async def health_check(self) -> dict[str, Any]:
        try:
            redis_healthy = bool(
                await asyncio.wait_for(self._redis.ping(), timeout=self._fallback_timeout)
            )
        except _REDIS_FAILURES as exc:
            logger.warning("redis_health_check_failed", error=str(exc) or type(exc).__name__)
            redis_healthy = False
        memory_health = await self._memory.health_check()
        return {
            # Memory keeps serving, so a Redis outage only degrades.
            "healthy": True,
            "status": "healthy" if redis_healthy else "degraded",
            "backend": self.get_backend_name(),
            "redis": redis_healthy,
            "memory": memory_health,
        }

    async def close(self) -> None:
        await self._redis.aclose()
        await self._memory.close()

    def get_backend_name(self) -> str:
        return "hybrid"

    # ------------------------------------------------------------------
    # Redis helpers
    # ------------------------------------------------------------------

    async def _redis_get_entry(self, key: str) -> CacheEntry | None:
        raw = await self._redis.get(key)
        if raw is None:
            self._misses += 1
            logger.debug("cache_miss", key=key, backend="redis")
            return None
        entry = CacheEntry.model_validate(json.loads(raw))
        if entry.is_expired(self._memory.clock()):
            self._misses += 1
            logger.debug("cache_miss", key=key, backend="redis", reason="expired")
            return None
        self._hits += 1
        logger.debug("cache_hit", key=key, backend="redis", outcome=entry.outcome.value)
        return entry

    async def _redis_invalidate(self, pattern: str) -> int:
        removed = 0
        async for key in self._redis.scan_iter(match=pattern, count=_SCAN_BATCH):
            removed += await self._redis.delete(key)
        logger.info("redis_invalidated", pattern=pattern, removed=removed)
        return removed
