"""Cache providers.

MemoryCacheProvider keeps entries in a per-item-expiry ``TLRUCache`` and
can write through to SQLite.  HybridCacheProvider fronts it with Redis so
several processes share fetched data, falling back to memory whenever
Redis is slow or down.  Pick one with ``create_cache_provider(settings)``.
"""

from market_sizing.providers.cache.factory import create_cache_provider
from market_sizing.providers.cache.hybrid_cache import HybridCacheProvider
from market_sizing.providers.cache.memory_cache import MemoryCacheProvider
from market_sizing.providers.cache.sqlite_persistence import SQLiteCachePersistence

__all__ = [
    "HybridCacheProvider",
    "MemoryCacheProvider",
    "SQLiteCachePersistence",
    "create_cache_provider",
]
