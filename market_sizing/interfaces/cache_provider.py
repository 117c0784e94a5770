"""Abstract base class for outcome-aware cache providers.

The cache stores one entry per (provider, query) key.  Callers never pick
a TTL: they pass the :class:`~market_sizing.models.cache.Outcome` of the
call that produced the value, and the implementation derives the TTL from
its :class:`~market_sizing.models.cache.OutcomeTtlPolicy`.  Implementations
may keep entries in memory, persist them to SQLite, or front them with
Redis; the orchestrator only sees this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from market_sizing.models.cache import CacheEntry, CacheStats, Outcome


class ICacheProvider(ABC):
    """Contract for outcome-aware key-value caches.

    All operations are async so network-backed stores (e.g. Redis) never
    block the event loop.  ``set`` is last-write-wins; concurrent ``get`` and
    ``set`` calls from independent resolutions must be safe.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under *key*.

        Returns ``None`` when the key is absent or its entry has expired
        (``now > stored_at + ttl``).  A live negative entry also yields
        ``None`` because its stored value is ``None``; use :meth:`get_entry`
        to tell the two apart.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, outcome: Outcome) -> CacheEntry | None:
        """Store *value* under *key* with the TTL assigned to *outcome*.

        Overwrites any existing entry.  Outcomes whose TTL is zero
        (``TRANSIENT_ERROR`` under the default policy) are not stored and
        ``None`` is returned.

        Returns
        -------
        CacheEntry or None
            The entry that was written.
        """

    @abstractmethod
    async def get_entry(self, key: str) -> CacheEntry | None:
        """Return the live raw entry for *key*, including ``stored_at`` and outcome."""

    @abstractmethod
    async def invalidate(self, pattern: str) -> int:
        """Delete every key matching the glob *pattern* (e.g. ``"fred:*"``).

        Returns
        -------
        int
            Number of keys removed.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*; a no-op if it does not exist."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""

    @abstractmethod
    async def get_stats(self) -> CacheStats:
        """Return hit/miss counters and the current number of entries."""

    async def health_check(self) -> dict[str, Any]:
        """Report backend health.  The default reports healthy with stats."""
        stats = await self.get_stats()
        return {"healthy": True, "backend": self.get_backend_name(), "size": stats.size}

    async def close(self) -> None:  # noqa: B027 - optional hook
        """Release backend resources.  Default is a no-op."""

    @abstractmethod
    def get_backend_name(self) -> str:
        """Return a short identifier for the backend (e.g. ``"memory"``)."""


class ICachePersistence(ABC):
    """Durable backing store consulted by an in-memory cache on a miss.

    Persistence is best-effort: implementations log their own failures and
    never raise, so a broken disk never breaks a cache read or write.
    """

    @abstractmethod
    async def save(self, entry: CacheEntry) -> bool:
        """Persist *entry*, replacing any row for the same key.  Returns success."""

    @abstractmethod
    async def load(self, key: str) -> CacheEntry | None:
        """Return the persisted entry for *key* (possibly expired), or ``None``."""

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete the row for *key*, if any."""

    @abstractmethod
    async def remove_matching(self, pattern: str) -> list[str]:
        """Delete every row whose key matches the glob *pattern*; return the keys."""

    @abstractmethod
    async def clear(self) -> None:
        """Delete every persisted row."""

    @abstractmethod
    async def purge_expired(self, now: float) -> int:
        """Delete rows that expired before *now*; return how many were removed."""
