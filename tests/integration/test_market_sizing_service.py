"""Integration tests: wired components resolving queries end to end.

The real adapters run against ``httpx.MockTransport`` routes, the real
memory cache runs on a fake clock, and the service facade feeds resolved
values into the calculators.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest

from market_sizing.config.settings import Settings
from market_sizing.main import build_components, build_providers, close_components
from market_sizing.models.market import FetchResult, MarketQuery, QueryKind
from market_sizing.pipeline.orchestrator import MOCK_SOURCE, DataSourceOrchestrator
from market_sizing.providers.cache.memory_cache import MemoryCacheProvider
from market_sizing.services.market_sizing_service import MarketSizingService
from market_sizing.utils.errors import AggregateFailureError, CalculationError, ConfigurationError
from tests.fakes import FakeClock, FakeProvider, success


def _routes(request: httpx.Request) -> httpx.Response:
    host = request.url.host
    if host == "api.stlouisfed.org":
        return httpx.Response(429, json={"error_code": 429, "error_message": "Too Many Requests"})
    if host == "api.worldbank.org":
        return httpx.Response(
            200,
            json=[{"page": 1}, [{"date": "2023", "value": 1.2e12, "country": {"value": "United States"}}]],
        )
    if host == "api.census.gov":
        return httpx.Response(200, json=[["PAYANN", "NAICS2017", "us"]])
    return httpx.Response(404)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        fred_api_key="test-key",
        provider_priority="census,fred,world_bank",
    )


@pytest.fixture()
def components(settings: Settings, project_root: Path, clock: FakeClock, ttl_policy):
    return build_components(
        settings,
        config_path=str(project_root / "config" / "config.yaml"),
        cache=MemoryCacheProvider(ttl_policy=ttl_policy, clock=clock),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_routes)),
    )


class TestWiredService:
    @pytest.mark.asyncio
    async def test_resolve_falls_through_to_world_bank(self, components) -> None:
        service: MarketSizingService = components["service"]

        result = await service.resolve({"industry_id": "NY.GDP.MKTP.CD", "region": "US"})

        assert result.source == "world_bank"
        assert result.value == 1.2e12
        assert [a.provider for a in result.attempts] == ["census", "fred", "world_bank"]
        assert [a.outcome.value for a in result.attempts] == [
            "confirmed_no_data",
            "rate_limited",
            "success",
        ]
        await close_components(components)

    @pytest.mark.asyncio
    async def test_tam_for_query_uses_resolved_base(self, components) -> None:
        service: MarketSizingService = components["service"]

        resolved = await service.calculate_tam_for_query(
            {"industry_id": "NY.GDP.MKTP.CD"},
            annual_growth_rate=0.1,
            projection_years=2,
            segmentation={"factor": 0.5, "rationale": "enterprise only"},
        )

        assert resolved.market.source == "world_bank"
        assert resolved.tam.calculated_tam == pytest.approx(1.2e12 * 1.21 * 0.5)
        assert resolved.tam.assumptions[-1] == "Base market size from world_bank"
        await close_components(components)

    @pytest.mark.asyncio
    async def test_validate_against_second_resolve_hits_cache(self, components) -> None:
        service: MarketSizingService = components["service"]
        query = MarketQuery(industry_id="NY.GDP.MKTP.CD")
        await service.resolve(query)

        checked = await service.validate_against(1.3e12, query)

        assert checked.reference.from_cache is True
        assert checked.validation.is_valid is True
        await close_components(components)

    @pytest.mark.asyncio
    async def test_close_components_releases_client_and_cache(self, components) -> None:
        cache = components["cache"]
        cache.close = AsyncMock()

        await close_components(components)

        assert components["http_client"].is_closed is True
        cache.close.assert_awaited_once()

    def test_calculators_use_configured_factors(self, components) -> None:
        service: MarketSizingService = components["service"]
        sam = service.calculate_sam({"tam_value": 1000.0, "regulatory_barriers": ["FDA"]})
        forecast = service.forecast({"base_value": 100.0, "base_year": 2024, "years": 1, "scenario": "optimistic"})
        assert sam.sam_value == pytest.approx(800.0)
        assert forecast.final_value == pytest.approx(112.0)

    def test_unknown_priority_rejected(self, settings: Settings) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(_routes))
        with pytest.raises(ConfigurationError):
            build_providers(settings, client, ["fred", "bloomberg"])

    def test_unconfigured_adapters_reported(self, settings: Settings) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(_routes))
        providers = build_providers(Settings(_env_file=None), client)
        available = {p.get_provider_name(): p.is_available() for p in providers}
        assert available["fred"] is False
        assert available["world_bank"] is True


class TestCompareSources:
    @pytest.fixture()
    def service(self, memory_cache: MemoryCacheProvider) -> MarketSizingService:
        providers = [
            FakeProvider("fred", [success(100.0, "fred")], kinds=[QueryKind.ECONOMIC_SERIES]),
            FakeProvider("imf", [success(95.0, "imf")], kinds=[QueryKind.EMPLOYMENT]),
        ]
        orchestrator = DataSourceOrchestrator(providers, memory_cache, reference_table=None)
        return MarketSizingService(orchestrator)

    @pytest.mark.asyncio
    async def test_scores_resolved_queries_and_skips_unresolved(self, service: MarketSizingService) -> None:
        consensus = await service.compare_sources(
            [
                {"kind": "economic_series", "industry_id": "GDP"},
                {"kind": "employment", "industry_id": "GDP"},
                {"kind": "company_overview", "industry_id": "GDP"},
            ]
        )

        assert consensus.sources == ["fred", "imf"]
        assert consensus.mean_value == pytest.approx(97.5)
        assert consensus.is_consistent is True

    @pytest.mark.asyncio
    async def test_nothing_resolved_raises(self, service: MarketSizingService) -> None:
        with pytest.raises(CalculationError):
            await service.compare_sources([{"kind": "company_overview", "industry_id": "GDP"}])

    @pytest.mark.asyncio
    async def test_resolve_propagates_aggregate_failure(self, service: MarketSizingService) -> None:
        with pytest.raises(AggregateFailureError):
            await service.resolve({"kind": "market_size", "industry_id": "unknown"})


class TestReferenceFallbackWiring:
    @pytest.mark.asyncio
    async def test_fallback_enabled_by_default(self, project_root: Path, clock: FakeClock, ttl_policy) -> None:
        components = build_components(
            Settings(_env_file=None, provider_priority="census"),
            config_path=str(project_root / "config" / "config.yaml"),
            cache=MemoryCacheProvider(ttl_policy=ttl_policy, clock=clock),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(_routes)),
        )

        result = await components["service"].resolve({"industry_id": "tech-software"})

        assert result.source == MOCK_SOURCE
        await close_components(components)

    @pytest.mark.asyncio
    async def test_fallback_disabled(self, project_root: Path, clock: FakeClock, ttl_policy) -> None:
        components = build_components(
            Settings(_env_file=None, provider_priority="census", enable_reference_fallback=False),
            config_path=str(project_root / "config" / "config.yaml"),
            cache=MemoryCacheProvider(ttl_policy=ttl_policy, clock=clock),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(_routes)),
        )

        with pytest.raises(AggregateFailureError):
            await components["service"].resolve({"industry_id": "tech-software"})
        await close_components(components)


class KeyedProvider(FakeProvider):
    """Answers by industry id; unknown industries have no data."""

    def __init__(self, name: str, sizes: dict[str, float]) -> None:
        super().__init__(name, [FetchResult.no_data()])
        self._sizes = sizes

    async def fetch(self, query: MarketQuery) -> FetchResult:
        self.calls.append(query)
        if query.industry_id in self._sizes:
            return success(self._sizes[query.industry_id], self._name)
        return FetchResult.no_data()


class TestMarketsAndCatalogue:
    @pytest.fixture()
    def service(self, memory_cache: MemoryCacheProvider) -> MarketSizingService:
        provider = KeyedProvider("census", {"tech-software": 800e9, "tech-ai": 400e9, "retail": 0.0})
        orchestrator = DataSourceOrchestrator([provider], memory_cache, reference_table=None)
        return MarketSizingService(orchestrator)

    @pytest.mark.asyncio
    async def test_compare_markets(self, service: MarketSizingService) -> None:
        comparison = await service.compare_markets(
            {"industry_id": "tech-software"}, {"industry_id": "tech-ai"}
        )

        assert comparison.market_a is not None and comparison.market_a.value == 800e9
        assert comparison.market_b is not None and comparison.market_b.value == 400e9
        assert comparison.difference == pytest.approx(400e9)
        assert comparison.ratio == pytest.approx(2.0)
        assert comparison.larger == "market_a"

    @pytest.mark.asyncio
    async def test_compare_markets_with_unresolved_side(self, service: MarketSizingService) -> None:
        comparison = await service.compare_markets({"industry_id": "tech-ai"}, {"industry_id": "unknown"})

        assert comparison.market_a is not None
        assert comparison.market_b is None
        assert comparison.difference is None
        assert comparison.ratio is None
        assert comparison.larger is None

    @pytest.mark.asyncio
    async def test_compare_markets_against_zero_has_no_ratio(self, service: MarketSizingService) -> None:
        comparison = await service.compare_markets({"industry_id": "tech-ai"}, {"industry_id": "retail"})
        assert comparison.difference == pytest.approx(400e9)
        assert comparison.ratio is None
        assert comparison.larger == "market_a"

    @pytest.mark.asyncio
    async def test_market_segments_split_resolved_size(self, service: MarketSizingService) -> None:
        breakdown = await service.market_segments("tech-software", "US")

        assert breakdown is not None
        assert breakdown.market is not None and breakdown.market.source == "census"
        assert [s.name for s in breakdown.segments] == ["Enterprise", "SMB", "Consumer"]
        assert [s.value for s in breakdown.segments] == pytest.approx([360e9, 280e9, 160e9])
        assert sum(s.percentage for s in breakdown.segments) == pytest.approx(100.0)

    @pytest.mark.asyncio
    async def test_market_segments_without_resolved_size(self, memory_cache: MemoryCacheProvider) -> None:
        orchestrator = DataSourceOrchestrator(
            [KeyedProvider("census", {})], memory_cache, reference_table=None
        )
        breakdown = await MarketSizingService(orchestrator).market_segments("tech-ai", "US")

        assert breakdown is not None
        assert breakdown.market is None
        assert all(s.value is None for s in breakdown.segments)

    @pytest.mark.asyncio
    async def test_market_segments_unknown_industry(self, service: MarketSizingService) -> None:
        assert await service.market_segments("retail", "US") is None

    def test_search_industries_is_case_insensitive(self, service: MarketSizingService) -> None:
        found = service.search_industries("TECHNOLOGY")
        assert [industry.id for industry in found] == ["tech-software", "tech-ai"]
        assert [industry.id for industry in service.search_industries("ai tech")] == ["tech-ai"]
        assert service.search_industries("biotech") == []

    def test_get_industry(self, service: MarketSizingService) -> None:
        industry = service.get_industry("tech-ai")
        assert industry is not None
        assert industry.name == "AI Technology"
        assert industry.market_size == 328e9
        assert service.get_industry("missing") is None
