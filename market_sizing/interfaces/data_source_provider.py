"""Abstract base class for external data-source providers.

Each concrete adapter wraps one external API (Alpha Vantage, FRED, the
World Bank, ...) and translates a :class:`MarketQuery` into a single call.
Adapters classify their own failures: an expected condition (rate limit,
empty answer, network error) comes back as a :class:`FetchResult` with the
matching :class:`Outcome`, never as an exception.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from market_sizing.models.market import FetchResult, MarketQuery, QueryKind


class IDataSourceProvider(ABC):
    """Contract for market and economic data sources.

    ``supported_kinds`` lets the orchestrator build its dispatch table up
    front; :meth:`supports` refines that per query (e.g. an adapter that
    needs extra parameters).
    """

    supported_kinds: frozenset[QueryKind] = frozenset()

    @abstractmethod
    async def fetch(self, query: MarketQuery) -> FetchResult:
        """Perform one provider call for *query*.

        Returns
        -------
        FetchResult
            ``SUCCESS`` with a normalized result, or one of the negative
            outcomes with a short reason.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a stable identifier (e.g. ``"fred"``); used as the cache-key prefix."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credential check only)."""

    def supports(self, query: MarketQuery) -> bool:
        return query.kind in self.supported_kinds
