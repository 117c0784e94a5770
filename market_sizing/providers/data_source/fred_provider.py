"""FRED (Federal Reserve Economic Data) provider.

Fetches the most recent observation of a series via
``/series/observations?sort_order=desc&limit=1``.  FRED marks a missing
observation with the value ``"."``.
"""

from __future__ import annotations

from market_sizing.models.market import MarketQuery, NormalizedResult, QueryKind
from market_sizing.providers.data_source.http_base import HttpDataSourceProvider, parse_number
from market_sizing.utils.errors import DataSourceError, RateLimitError


class FredProvider(HttpDataSourceProvider):
    """Latest value of a FRED series.  Requires an API key."""

    provider_name = "fred"
    base_url = "https://api.stlouisfed.org/fred"
    requires_api_key = True
    confidence = 0.9
    supported_kinds = frozenset({QueryKind.ECONOMIC_SERIES, QueryKind.MARKET_SIZE})

    async def _fetch(self, query: MarketQuery) -> NormalizedResult | None:
        series_id = str(query.param("series_id", query.industry_id))
        data = await self._get_json(
            "series/observations",
            params={
                "series_id": series_id,
                "api_key": self._api_key,
                "file_type": "json",
                "sort_order": "desc",
                "limit": 1,
            },
        )
        if data is None:
            return None
        if "error_code" in data:
            message = data.get("error_message", "FRED API error")
            if int(data["error_code"]) == 429:
                raise RateLimitError(message, provider_name=self.provider_name)
            raise DataSourceError(message, provider_name=self.provider_name)

        observations = data["observations"]
        if not observations:
            return None
        latest = observations[0]
        value = parse_number(latest.get("value"))
        if value is None:
            return None
        return self._result(
            value,
            series_id=series_id,
            date=latest.get("date"),
            realtime_start=latest.get("realtime_start"),
            realtime_end=latest.get("realtime_end"),
        )
