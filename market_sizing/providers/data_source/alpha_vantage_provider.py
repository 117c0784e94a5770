"""Alpha Vantage provider implementing IDataSourceProvider.

Uses the ``OVERVIEW`` function to look up a listed company.  Market
capitalisation stands in for "market size" when the query is a
``MARKET_SIZE`` query; ``COMPANY_OVERVIEW`` returns the whole overview.

Alpha Vantage answers HTTP 200 even when throttling: the body carries a
``Note`` (or ``Information``) mentioning the API call frequency instead of
data.  Unknown symbols come back as an empty object.
"""

from __future__ import annotations

from typing import Any

from market_sizing.models.market import MarketQuery, NormalizedResult, QueryKind
from market_sizing.providers.data_source.http_base import HttpDataSourceProvider, parse_number
from market_sizing.utils.errors import DataSourceError, RateLimitError

_RATE_LIMIT_MARKERS = ("call frequency", "rate limit", "requests per day")

# Overview fields copied into the normalized details, keyed by output name.
_OVERVIEW_FIELDS = {
    "symbol": "Symbol",
    "name": "Name",
    "exchange": "Exchange",
    "currency": "Currency",
    "country": "Country",
    "sector": "Sector",
    "industry": "Industry",
    "pe_ratio": "PERatio",
    "eps": "EPS",
}


class AlphaVantageProvider(HttpDataSourceProvider):
    """Company overview data from Alpha Vantage.  Requires an API key."""

    provider_name = "alpha_vantage"
    base_url = "https://www.alphavantage.co/query"
    requires_api_key = True
    confidence = 0.75
    supported_kinds = frozenset({QueryKind.COMPANY_OVERVIEW, QueryKind.MARKET_SIZE})

    async def _fetch(self, query: MarketQuery) -> NormalizedResult | None:
        symbol = str(query.param("symbol", query.industry_id)).upper()
        data = await self._get_json(
            "",
            params={"function": "OVERVIEW", "symbol": symbol, "apikey": self._api_key},
        )
        if data is None:
            return None
        if not isinstance(data, dict):
            raise DataSourceError("unexpected OVERVIEW payload", provider_name=self.provider_name)

        notice = data.get("Note") or data.get("Information")
        if notice:
            if any(marker in notice.lower() for marker in _RATE_LIMIT_MARKERS):
                raise RateLimitError(notice, provider_name=self.provider_name)
            raise DataSourceError(notice, provider_name=self.provider_name)
        if "Error Message" in data:
            raise DataSourceError(data["Error Message"], provider_name=self.provider_name)

        # An empty object is Alpha Vantage's answer for an unknown symbol.
        if not data.get("Symbol"):
            return None
        market_cap = parse_number(data.get("MarketCapitalization"), zero_is_missing=True)
        if market_cap is None:
            return None

        overview: dict[str, Any] = {
            out: data.get(field) for out, field in _OVERVIEW_FIELDS.items()
        }
        overview["market_capitalization"] = market_cap
        if query.kind == QueryKind.COMPANY_OVERVIEW:
            return self._result(overview, symbol=symbol)
        return self._result(market_cap, metric="market_capitalization", **overview)
