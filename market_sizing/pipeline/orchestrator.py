"""Provider orchestrator: resolve one query across many data sources.

For each adapter in preference order the orchestrator:

    1. skips it silently if it cannot serve the query kind,
    2. consults the cache:
         live SUCCESS entry         -> answer from cache, done
         live NO_DATA/RATE_LIMITED  -> record the attempt, move on
    3. skips it (recorded as transient) once the deadline has passed,
       or (recorded as unavailable) when not configured,
    4. calls it under a timeout and caches the outcome,
    5. returns the first non-null success.

When every adapter is exhausted it either answers from the static
reference table (always labelled ``source="mock"``) or raises
:class:`AggregateFailureError` listing every attempt.  There is no
averaging across sources and no retrying inside a resolve: a rate-limited
adapter is simply skipped until its cache entry expires.

The cache is the only state shared between concurrent resolves and it is
injected, never created here.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

import structlog

from market_sizing.config.reference_data import REFERENCE_MARKET_SIZES, lookup_reference_market_size
from market_sizing.interfaces.cache_provider import ICacheProvider
from market_sizing.interfaces.data_source_provider import IDataSourceProvider
from market_sizing.models.cache import CacheEntry, Outcome
from market_sizing.models.market import (
    FetchResult,
    MarketQuery,
    MarketSizeResult,
    ProviderAttempt,
    QueryKind,
)
from market_sizing.utils.errors import AggregateFailureError, ConfigurationError
from market_sizing.utils.logging import get_logger

MOCK_SOURCE = "mock"
DEFAULT_CALL_TIMEOUT = 30.0

_NEGATIVE_OUTCOMES = frozenset({Outcome.CONFIRMED_NO_DATA, Outcome.RATE_LIMITED})


class DataSourceOrchestrator:
    """Resolves :class:`MarketQuery` objects against an ordered provider list.

    Parameters
    ----------
    providers:
        Adapters in preference order.  Names must be unique; they prefix
        every cache key.
    cache:
        The shared outcome-aware cache.
    call_timeout:
        Upper bound in seconds on a single adapter call.
    deadline_seconds:
        Overall budget for one :meth:`resolve`.  ``None`` or ``0`` disables
        it.  After the deadline the cache is still consulted, but adapters
        that would need a live call are recorded as transient failures
        without being called.
    reference_table:
        Static figures for the ``"mock"`` fallback.  ``None`` disables the
        fallback entirely.
    clock:
        Monotonic clock used for the deadline.
    """

    def __init__(
        self,
        providers: Sequence[IDataSourceProvider],
        cache: ICacheProvider,
        call_timeout: float = DEFAULT_CALL_TIMEOUT,
        deadline_seconds: float | None = None,
        reference_table: dict[str, dict[str, Any]] | None = REFERENCE_MARKET_SIZES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        names = [provider.get_provider_name() for provider in providers]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate provider names: {', '.join(duplicates)}")

        self._providers = list(providers)
        self._cache = cache
        self._call_timeout = call_timeout
        self._deadline = deadline_seconds if deadline_seconds and deadline_seconds > 0 else None
        self._reference_table = reference_table
        self._clock = clock
        self._logger: structlog.BoundLogger = get_logger(__name__)

        # Typed dispatch table: query kind -> adapters that declare it, in order.
        self._handlers: dict[QueryKind, list[IDataSourceProvider]] = {
            kind: [p for p in self._providers if kind in p.supported_kinds] for kind in QueryKind
        }

    @property
    def provider_names(self) -> list[str]:
        return [provider.get_provider_name() for provider in self._providers]

    def providers_for(self, query: MarketQuery) -> list[IDataSourceProvider]:
        """Return the adapters eligible for *query*, in preference order."""
        return [p for p in self._handlers[query.kind] if p.supports(query)]

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, query: MarketQuery) -> MarketSizeResult:
        """Return the first successful answer to *query*.

        Raises
        ------
        AggregateFailureError
            If no adapter succeeded and no reference figure matches.
        """
        attempts: list[ProviderAttempt] = []
        started = self._clock()
        self._logger.debug("resolve_started", query=query.describe())

        for provider in self.providers_for(query):
            name = provider.get_provider_name()
            key = query.cache_key(name)
            entry = await self._cache.get_entry(key)
            if entry is not None:
                if entry.outcome == Outcome.SUCCESS and entry.value is not None:
                    return self._from_cache(entry, name, attempts)
                if entry.outcome in _NEGATIVE_OUTCOMES:
                    self._logger.debug("provider_skipped_cached", provider=name, outcome=entry.outcome.value)
                    attempts.append(
                        ProviderAttempt(
                            provider=name,
                            outcome=entry.outcome,
                            message="cached outcome still live",
                            from_cache=True,
                        )
                    )
                    continue

            # The deadline only stops new calls; cached answers above are still served.
            if self._deadline is not None and self._clock() - started >= self._deadline:
                attempts.append(
                    ProviderAttempt(
                        provider=name,
                        outcome=Outcome.TRANSIENT_ERROR,
                        message="deadline exceeded",
                    )
                )
                continue

            if not provider.is_available():
                self._logger.debug("provider_unavailable", provider=name)
                attempts.append(ProviderAttempt(provider=name, message="not configured"))
                continue

            fetched = await self._call_provider(provider, query, started)
            payload = fetched.result.model_dump(mode="json") if fetched.result is not None else None
            await self._cache.set(key, payload, fetched.outcome)
            attempts.append(
                ProviderAttempt(provider=name, outcome=fetched.outcome, message=fetched.message)
            )

            if fetched.outcome == Outcome.SUCCESS and fetched.result is not None:
                self._logger.info("resolve_succeeded", provider=name, query=query.describe())
                return MarketSizeResult(
                    value=fetched.result.value,
                    source=name,
                    details=fetched.result.details,
                    confidence=fetched.result.confidence,
                    from_cache=False,
                    attempts=attempts,
                )

        fallback = self._reference_fallback(query, attempts)
        if fallback is not None:
            return fallback

        self._logger.warning(
            "resolve_exhausted",
            query=query.describe(),
            attempts=[attempt.describe() for attempt in attempts],
        )
        raise AggregateFailureError(query.describe(), attempts)

    async def _call_provider(
        self,
        provider: IDataSourceProvider,
        query: MarketQuery,
        started: float,
    ) -> FetchResult:
        name = provider.get_provider_name()
        timeout = self._call_timeout
        if self._deadline is not None:
            timeout = max(0.0, min(timeout, self._deadline - (self._clock() - started)))
        try:
            return await asyncio.wait_for(provider.fetch(query), timeout=timeout)
        except asyncio.TimeoutError:
            self._logger.warning("provider_call_timeout", provider=name, timeout=timeout)
            return FetchResult.transient(f"timed out after {timeout:.1f}s")
        except Exception as exc:  # noqa: BLE001 - anything escaping an adapter is transient
            self._logger.warning("provider_call_failed", provider=name, error=str(exc))
            return FetchResult.transient(str(exc) or type(exc).__name__)

    def _from_cache(
        self,
        entry: CacheEntry,
        provider_name: str,
        attempts: list[ProviderAttempt],
    ) -> MarketSizeResult:
        payload = entry.value if isinstance(entry.value, dict) and "value" in entry.value else {"value": entry.value}
        attempts.append(
            ProviderAttempt(provider=provider_name, outcome=Outcome.SUCCESS, from_cache=True)
        )
        self._logger.info("resolve_cache_hit", provider=provider_name, key=entry.key)
        return MarketSizeResult(
            value=payload["value"],
            source=provider_name,
            details=payload.get("details", {}),
            confidence=payload.get("confidence", 0.8),
            from_cache=True,
            attempts=attempts,
        )

    def _reference_fallback(
        self,
        query: MarketQuery,
        attempts: list[ProviderAttempt],
    ) -> MarketSizeResult | None:
        if self._reference_table is None or query.kind != QueryKind.MARKET_SIZE:
            return None
        reference = lookup_reference_market_size(
            query.industry_id, query.region, table=self._reference_table
        )
        if reference is None:
            return None
        self._logger.warning(
            "reference_fallback_used",
            query=query.describe(),
            attempts=[attempt.describe() for attempt in attempts],
        )
        return MarketSizeResult(
            value=float(reference["market_size"]),
            source=MOCK_SOURCE,
            details={
                "name": reference.get("name"),
                "country": reference.get("country"),
                "year": reference.get("year"),
                "note": "static reference figure; no live data source answered",
            },
            confidence=0.3,
            from_cache=False,
            attempts=attempts,
        )

    # ------------------------------------------------------------------
    # Introspection and maintenance
    # ------------------------------------------------------------------

    async def get_data_freshness(self, provider_name: str, query: MarketQuery) -> datetime | None:
        """Return when *provider_name*'s answer to *query* was cached, without fetching."""
        entry = await self._cache.get_entry(query.cache_key(provider_name))
        return entry.stored_at_datetime if entry is not None else None

    async def invalidate_provider(self, provider_name: str) -> int:
        """Drop every cached entry for *provider_name*; returns the number removed."""
        removed = await self._cache.invalidate(f"{provider_name}:*")
        self._logger.info("provider_cache_invalidated", provider=provider_name, removed=removed)
        return removed

    async def health_check(self) -> dict[str, Any]:
        providers = {
            provider.get_provider_name(): {
                "available": provider.is_available(),
                "kinds": sorted(kind.value for kind in provider.supported_kinds),
            }
            for provider in self._providers
        }
        return {"providers": providers, "cache": await self._cache.health_check()}
