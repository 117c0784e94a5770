"""Unit tests for MemoryCacheProvider and the outcome TTL policy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from market_sizing.models.cache import CacheEntry, Outcome, OutcomeTtlPolicy
from market_sizing.providers.cache.memory_cache import MemoryCacheProvider
from market_sizing.providers.cache.sqlite_persistence import SQLiteCachePersistence
from tests.fakes import FakeClock


# ======================================================================
# OutcomeTtlPolicy
# ======================================================================


class TestOutcomeTtlPolicy:
    def test_defaults_are_ordered(self) -> None:
        policy = OutcomeTtlPolicy()
        assert policy.ttl_for(Outcome.SUCCESS) == 3_600_000
        assert policy.ttl_for(Outcome.CONFIRMED_NO_DATA) == 300_000
        assert policy.ttl_for(Outcome.RATE_LIMITED) == 60_000
        assert policy.ttl_for(Outcome.TRANSIENT_ERROR) == 0

    def test_rejects_rate_limited_longer_than_no_data(self) -> None:
        with pytest.raises(ValidationError):
            OutcomeTtlPolicy(success_ms=10_000, confirmed_no_data_ms=1_000, rate_limited_ms=5_000)

    def test_rejects_no_data_equal_to_success(self) -> None:
        with pytest.raises(ValidationError):
            OutcomeTtlPolicy(success_ms=5_000, confirmed_no_data_ms=5_000, rate_limited_ms=1_000)

    def test_rejects_zero_success_ttl(self) -> None:
        with pytest.raises(ValidationError):
            OutcomeTtlPolicy(success_ms=0)


class TestCacheEntry:
    def test_live_through_expiry_instant(self) -> None:
        entry = CacheEntry(key="k", value=1, stored_at=100.0, ttl_ms=1_000, outcome=Outcome.SUCCESS)
        assert entry.expires_at == 101.0
        assert entry.is_expired(101.0) is False
        assert entry.is_expired(101.001) is True


# ======================================================================
# MemoryCacheProvider
# ======================================================================


class TestMemoryCacheProvider:
    @pytest.mark.asyncio
    async def test_get_missing_key_returns_none(self, memory_cache: MemoryCacheProvider) -> None:
        assert await memory_cache.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_set_and_get(self, memory_cache: MemoryCacheProvider) -> None:
        entry = await memory_cache.set("key1", {"value": 42}, Outcome.SUCCESS)
        assert entry is not None
        assert entry.ttl_ms == 10_000
        assert await memory_cache.get("key1") == {"value": 42}

    @pytest.mark.asyncio
    async def test_set_overwrites_with_new_outcome(self, memory_cache: MemoryCacheProvider) -> None:
        await memory_cache.set("key1", None, Outcome.RATE_LIMITED)
        await memory_cache.set("key1", {"value": 7}, Outcome.SUCCESS)
        entry = await memory_cache.get_entry("key1")
        assert entry is not None
        assert entry.outcome == Outcome.SUCCESS
        assert entry.value == {"value": 7}

    @pytest.mark.asyncio
    async def test_transient_error_is_not_stored(self, memory_cache: MemoryCacheProvider) -> None:
        assert await memory_cache.set("key1", None, Outcome.TRANSIENT_ERROR) is None
        assert await memory_cache.get_entry("key1") is None
        assert (await memory_cache.get_stats()).size == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("outcome", "ttl_ms"),
        [
            (Outcome.SUCCESS, 10_000),
            (Outcome.CONFIRMED_NO_DATA, 5_000),
            (Outcome.RATE_LIMITED, 1_000),
        ],
    )
    async def test_expiry_boundary_per_outcome(
        self,
        memory_cache: MemoryCacheProvider,
        clock: FakeClock,
        outcome: Outcome,
        ttl_ms: int,
    ) -> None:
        await memory_cache.set("key1", None, outcome)

        clock.advance_ms(ttl_ms - 1)
        assert await memory_cache.get_entry("key1") is not None

        clock.advance_ms(2)
        assert await memory_cache.get_entry("key1") is None

    @pytest.mark.asyncio
    async def test_entry_stamped_with_clock(
        self, memory_cache: MemoryCacheProvider, clock: FakeClock
    ) -> None:
        entry = await memory_cache.set("key1", 1.0, Outcome.SUCCESS)
        assert entry is not None
        assert entry.stored_at == clock.now

    @pytest.mark.asyncio
    async def test_delete_removes_key(self, memory_cache: MemoryCacheProvider) -> None:
        await memory_cache.set("key1", 1.0, Outcome.SUCCESS)
        await memory_cache.delete("key1")
        assert await memory_cache.get("key1") is None

    @pytest.mark.asyncio
    async def test_delete_nonexistent_is_noop(self, memory_cache: MemoryCacheProvider) -> None:
        await memory_cache.delete("nonexistent")  # should not raise

    @pytest.mark.asyncio
    async def test_invalidate_by_glob(self, memory_cache: MemoryCacheProvider) -> None:
        await memory_cache.set("fred:market_size:a", 1.0, Outcome.SUCCESS)
        await memory_cache.set("fred:market_size:b", None, Outcome.CONFIRMED_NO_DATA)
        await memory_cache.set("census:market_size:a", 2.0, Outcome.SUCCESS)

        removed = await memory_cache.invalidate("fred:*")

        assert removed == 2
        assert await memory_cache.get("fred:market_size:a") is None
        assert await memory_cache.get("census:market_size:a") == 2.0

    @pytest.mark.asyncio
    async def test_clear(self, memory_cache: MemoryCacheProvider) -> None:
        await memory_cache.set("a", 1.0, Outcome.SUCCESS)
        await memory_cache.set("b", 2.0, Outcome.SUCCESS)
        await memory_cache.clear()
        assert (await memory_cache.get_stats()).size == 0

    @pytest.mark.asyncio
    async def test_stats_track_hits_and_misses(self, memory_cache: MemoryCacheProvider) -> None:
        await memory_cache.set("a", 1.0, Outcome.SUCCESS)
        await memory_cache.get("a")
        await memory_cache.get("a")
        await memory_cache.get("missing")

        stats = await memory_cache.get_stats()
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.size == 1
        assert stats.last_refreshed is not None

    @pytest.mark.asyncio
    async def test_stats_exclude_expired_entries(
        self, memory_cache: MemoryCacheProvider, clock: FakeClock
    ) -> None:
        await memory_cache.set("short", None, Outcome.RATE_LIMITED)
        await memory_cache.set("long", 1.0, Outcome.SUCCESS)
        clock.advance(2)
        assert (await memory_cache.get_stats()).size == 1

    @pytest.mark.asyncio
    async def test_max_size_evicts(self, clock: FakeClock) -> None:
        cache = MemoryCacheProvider(max_size=2, clock=clock)
        await cache.set("a", 1.0, Outcome.SUCCESS)
        await cache.set("b", 2.0, Outcome.SUCCESS)
        await cache.set("c", 3.0, Outcome.SUCCESS)
        assert (await cache.get_stats()).size == 2
        assert await cache.get("c") == 3.0

    @pytest.mark.asyncio
    async def test_health_check(self, memory_cache: MemoryCacheProvider) -> None:
        health = await memory_cache.health_check()
        assert health["healthy"] is True
        assert health["backend"] == "memory"


# ======================================================================
# MemoryCacheProvider with SQLite persistence
# ======================================================================


class TestMemoryCacheWithPersistence:
    @pytest.mark.asyncio
    async def test_rehydrates_after_restart(self, tmp_path, clock: FakeClock, ttl_policy) -> None:
        db_path = tmp_path / "cache.db"
        first = MemoryCacheProvider(
            ttl_policy=ttl_policy, clock=clock, persistence=SQLiteCachePersistence(db_path)
        )
        await first.set("fred:gdp", {"value": 27.0}, Outcome.SUCCESS)

        second = MemoryCacheProvider(
            ttl_policy=ttl_policy, clock=clock, persistence=SQLiteCachePersistence(db_path)
        )
        entry = await second.get_entry("fred:gdp")
        assert entry is not None
        assert entry.value == {"value": 27.0}
        assert entry.outcome == Outcome.SUCCESS

    @pytest.mark.asyncio
    async def test_expired_persisted_entry_is_dropped(
        self, tmp_path, clock: FakeClock, ttl_policy
    ) -> None:
        persistence = SQLiteCachePersistence(tmp_path / "cache.db")
        first = MemoryCacheProvider(ttl_policy=ttl_policy, clock=clock, persistence=persistence)
        await first.set("fred:gdp", None, Outcome.RATE_LIMITED)

        clock.advance(5)
        second = MemoryCacheProvider(ttl_policy=ttl_policy, clock=clock, persistence=persistence)
        assert await second.get_entry("fred:gdp") is None
        assert await persistence.load("fred:gdp") is None

    @pytest.mark.asyncio
    async def test_purge_expired_sweeps_both_layers(
        self, tmp_path, clock: FakeClock, ttl_policy
    ) -> None:
        persistence = SQLiteCachePersistence(tmp_path / "cache.db")
        cache = MemoryCacheProvider(ttl_policy=ttl_policy, clock=clock, persistence=persistence)
        await cache.set("a", None, Outcome.RATE_LIMITED)
        await cache.set("b", 1.0, Outcome.SUCCESS)

        clock.advance(2)
        removed = await cache.purge_expired()

        # One from memory, one row from SQLite.
        assert removed == 2
        assert await persistence.load("b") is not None

    @pytest.mark.asyncio
    async def test_failed_disk_write_keeps_memory_entry(
        self, tmp_path, clock: FakeClock, ttl_policy
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        cache = MemoryCacheProvider(
            ttl_policy=ttl_policy,
            clock=clock,
            persistence=SQLiteCachePersistence(blocker / "cache.db"),
        )

        stored = await cache.set("fred:gdp", {"value": 27.0}, Outcome.SUCCESS)
        entry = await cache.get_entry("fred:gdp")

        assert stored is not None
        assert entry is not None
        assert entry.value == {"value": 27.0}

    @pytest.mark.asyncio
    async def test_purge_expired_counts_memory_evictions(
        self, memory_cache: MemoryCacheProvider, clock: FakeClock
    ) -> None:
        await memory_cache.set("a", None, Outcome.RATE_LIMITED)
        await memory_cache.set("b", None, Outcome.RATE_LIMITED)
        await memory_cache.set("c", 1.0, Outcome.SUCCESS)

        clock.advance(2)

        assert await memory_cache.purge_expired() == 2
        assert (await memory_cache.get_stats()).size == 1
