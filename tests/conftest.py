"""Shared pytest fixtures for the market sizing test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from market_sizing.models.cache import OutcomeTtlPolicy
from market_sizing.models.market import MarketQuery, QueryKind
from market_sizing.providers.cache.memory_cache import MemoryCacheProvider
from tests.fakes import FakeClock


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ttl_policy() -> OutcomeTtlPolicy:
    """Short, distinct TTLs: success 10s, no-data 5s, rate-limited 1s."""
    return OutcomeTtlPolicy(success_ms=10_000, confirmed_no_data_ms=5_000, rate_limited_ms=1_000)


@pytest.fixture
def memory_cache(clock: FakeClock, ttl_policy: OutcomeTtlPolicy) -> MemoryCacheProvider:
    return MemoryCacheProvider(ttl_policy=ttl_policy, max_size=100, clock=clock)


@pytest.fixture
def market_query() -> MarketQuery:
    return MarketQuery(kind=QueryKind.MARKET_SIZE, industry_id="tech-saas", region="US")
