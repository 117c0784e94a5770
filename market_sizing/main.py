"""Wiring for the market sizing core.

Builds every provider, the cache, the orchestrator, and the service
facade from ``.env`` / environment settings plus ``config/config.yaml``.
Nothing is constructed at import time: callers (a tool server, a script,
a test) call :func:`build_components`, own the returned objects, and
release the shared ``httpx.AsyncClient`` and cache with
:func:`close_components`.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from market_sizing.config.loader import DEFAULT_PROVIDER_PRIORITY, load_config
from market_sizing.config.reference_data import REFERENCE_MARKET_SIZES
from market_sizing.config.settings import Settings
from market_sizing.interfaces.cache_provider import ICacheProvider
from market_sizing.interfaces.data_source_provider import IDataSourceProvider
from market_sizing.models.metrics import SamFactors, ScenarioRates
from market_sizing.pipeline.orchestrator import DataSourceOrchestrator
from market_sizing.providers.cache.factory import create_cache_provider
from market_sizing.providers.data_source import ADAPTER_CLASSES
from market_sizing.services.market_sizing_service import MarketSizingService
from market_sizing.utils.errors import ConfigurationError
from market_sizing.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


def _api_key_for(name: str, app_settings: Settings) -> str:
    return {
        "alpha_vantage": app_settings.alpha_vantage_api_key,
        "fred": app_settings.fred_api_key,
        "bls": app_settings.bls_api_key,
        "census": app_settings.census_api_key,
        "nasdaq": app_settings.nasdaq_api_key,
    }.get(name, "")


def build_providers(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
    priority: list[str] | None = None,
) -> list[IDataSourceProvider]:
    """Instantiate the data-source adapters in *priority* order.

    Every known adapter is built, configured or not; unconfigured ones
    report ``is_available() == False`` and are skipped at resolve time so
    the attempt list still shows them.

    Raises
    ------
    ConfigurationError
        If *priority* names an unknown adapter.
    """
    order = priority or list(DEFAULT_PROVIDER_PRIORITY)
    unknown = [name for name in order if name not in ADAPTER_CLASSES]
    if unknown:
        raise ConfigurationError(f"Unknown data source(s) in provider priority: {', '.join(unknown)}")

    providers: list[IDataSourceProvider] = []
    for name in order:
        adapter_cls = ADAPTER_CLASSES[name]
        providers.append(
            adapter_cls(
                http_client=http_client,
                api_key=_api_key_for(name, app_settings),
                timeout=app_settings.request_timeout_seconds,
            )
        )
    return providers


def build_components(
    custom_settings: Settings | None = None,
    config_path: str = "config/config.yaml",
    cache: ICacheProvider | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Construct and return all components with injected dependencies.

    Parameters
    ----------
    custom_settings:
        Application settings.  Read from the environment if not provided.
    config_path:
        YAML file with provider order and calculator factors.
    cache:
        Pre-built cache (tests inject one with a fake clock).
    http_client:
        Pre-built client (tests inject one with a mock transport).

    Returns
    -------
    dict
        Component instances keyed by role name.
    """
    s = custom_settings or Settings()
    config = load_config(config_path, settings=s)
    configure_logging(
        log_level=config.get("logging", {}).get("level", "INFO"),
        json_output=s.app_env == "production",
    )

    client = http_client or httpx.AsyncClient(timeout=s.request_timeout_seconds)
    cache = cache or create_cache_provider(s)
    providers = build_providers(s, client, config["providers"].get("priority"))

    calculators = config.get("calculators", {})
    sam_factors = SamFactors(**calculators.get("sam", {}))
    scenario_rates = ScenarioRates(**calculators.get("forecast", {}))
    threshold = float(calculators.get("validation", {}).get("threshold", 0.2))

    orchestrator = DataSourceOrchestrator(
        providers=providers,
        cache=cache,
        call_timeout=s.request_timeout_seconds,
        deadline_seconds=s.resolve_deadline_seconds,
        reference_table=REFERENCE_MARKET_SIZES if s.enable_reference_fallback else None,
    )
    service = MarketSizingService(
        orchestrator=orchestrator,
        sam_factors=sam_factors,
        scenario_rates=scenario_rates,
        validation_threshold=threshold,
    )

    _logger.info(
        "market_sizing_ready",
        environment=s.app_env,
        cache=cache.get_backend_name(),
        providers=orchestrator.provider_names,
        available=[p.get_provider_name() for p in providers if p.is_available()],
    )
    return {
        "settings": s,
        "config": config,
        "http_client": client,
        "cache": cache,
        "providers": providers,
        "orchestrator": orchestrator,
        "service": service,
    }


async def close_components(components: dict[str, Any]) -> None:
    """Close the shared HTTP client and the cache backend."""
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    cache: ICacheProvider = components["cache"]
    await cache.close()
    _logger.info("market_sizing_shutdown", message="HTTP client and cache closed")
