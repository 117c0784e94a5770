"""Build the configured cache provider from :class:`Settings`.

``CACHE_TYPE=memory`` (default) gives a process-local
:class:`MemoryCacheProvider`; ``CACHE_TYPE=hybrid`` wraps that same memory
cache behind Redis.  ``CACHE_PERSIST_PATH`` adds SQLite persistence to the
memory layer in either mode.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from market_sizing.config.settings import Settings
from market_sizing.interfaces.cache_provider import ICacheProvider
from market_sizing.models.cache import OutcomeTtlPolicy
from market_sizing.providers.cache.hybrid_cache import HybridCacheProvider
from market_sizing.providers.cache.memory_cache import MemoryCacheProvider
from market_sizing.providers.cache.sqlite_persistence import SQLiteCachePersistence
from market_sizing.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

CACHE_TYPES = ("memory", "hybrid")


def build_ttl_policy(settings: Settings) -> OutcomeTtlPolicy:
    try:
        return OutcomeTtlPolicy(
            success_ms=settings.cache_ttl_success_ms,
            confirmed_no_data_ms=settings.cache_ttl_no_data_ms,
            rate_limited_ms=settings.cache_ttl_rate_limited_ms,
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid cache TTL settings: {exc}") from exc


def create_cache_provider(
    settings: Settings,
    clock: Callable[[], float] = time.time,
) -> ICacheProvider:
    """Return the cache provider selected by ``settings.cache_type``.

    Raises
    ------
    ConfigurationError
        If the cache type is unknown or the TTL settings violate the
        outcome ordering.
    """
    cache_type = settings.cache_type.strip().lower()
    if cache_type not in CACHE_TYPES:
        raise ConfigurationError(
            f"Unsupported cache type {settings.cache_type!r}; expected one of {', '.join(CACHE_TYPES)}"
        )

    persistence = None
    if settings.cache_persist_path:
        persistence = SQLiteCachePersistence(settings.cache_persist_path)

    memory = MemoryCacheProvider(
        ttl_policy=build_ttl_policy(settings),
        max_size=settings.cache_max_size,
        clock=clock,
        persistence=persistence,
    )
    if cache_type == "memory":
        logger.info("cache_provider_created", type="memory", persistent=persistence is not None)
        return memory

    logger.info("cache_provider_created", type="hybrid", persistent=persistence is not None)
    return HybridCacheProvider.from_url(
        settings.redis_url,
        memory,
        fallback_timeout=settings.cache_fallback_timeout_ms / 1000.0,
    )
