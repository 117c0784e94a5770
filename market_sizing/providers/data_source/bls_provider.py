"""Bureau of Labor Statistics provider (public data API v2).

Employment is used as a proxy for industry size.  Unless a ``series_id``
param is given, the Current Employment Statistics "all employees" series
``CES{industry:8}01`` is requested: the industry code is right-padded with
zeros to the eight-digit CES industry field (``"50"`` and ``"50000000"``
both mean Information) and data type ``01`` is appended.  A registration
key raises the daily quota but is optional.

BLS reports problems in the body: ``status`` is ``REQUEST_NOT_PROCESSED``
and ``message`` explains why (the daily threshold, for a rate limit).
"""

from __future__ import annotations

from market_sizing.models.market import MarketQuery, NormalizedResult, QueryKind
from market_sizing.providers.data_source.http_base import HttpDataSourceProvider, parse_number
from market_sizing.utils.errors import DataSourceError, RateLimitError

_US_REGIONS = frozenset({"US", "USA", "UNITED STATES"})
_RATE_LIMIT_MARKERS = ("threshold", "daily limit", "too many")
_CES_INDUSTRY_DIGITS = 8
_ALL_EMPLOYEES = "01"


def ces_industry_code(industry_id: str) -> str | None:
    """Normalize *industry_id* to the eight-digit CES industry field, or ``None``."""
    code = industry_id.strip()
    if not code.isdigit() or len(code) > _CES_INDUSTRY_DIGITS:
        return None
    return code.ljust(_CES_INDUSTRY_DIGITS, "0")


class BlsProvider(HttpDataSourceProvider):
    provider_name = "bls"
    base_url = "https://api.bls.gov/publicAPI/v2/timeseries/data"
    confidence = 0.85
    supported_kinds = frozenset({QueryKind.EMPLOYMENT, QueryKind.ECONOMIC_SERIES})

    def supports(self, query: MarketQuery) -> bool:
        if not super().supports(query) or query.region.upper() not in _US_REGIONS:
            return False
        return query.param("series_id") is not None or ces_industry_code(query.industry_id) is not None

    def series_id_for(self, query: MarketQuery) -> str:
        explicit = query.param("series_id")
        if explicit is not None:
            return str(explicit)
        return f"CES{ces_industry_code(query.industry_id)}{_ALL_EMPLOYEES}"

    async def _fetch(self, query: MarketQuery) -> NormalizedResult | None:
        series_id = self.series_id_for(query)
        payload: dict = {"seriesid": [series_id], "latest": True}
        if self._api_key:
            payload["registrationkey"] = self._api_key
        data = await self._post_json("", payload)
        if data is None:
            return None

        messages = [str(m) for m in data.get("message", [])]
        if data.get("status") == "REQUEST_NOT_PROCESSED":
            reason = "; ".join(messages) or "request not processed"
            if any(marker in reason.lower() for marker in _RATE_LIMIT_MARKERS):
                raise RateLimitError(reason, provider_name=self.provider_name)
            raise DataSourceError(reason, provider_name=self.provider_name)

        series = data.get("Results", {}).get("series", [])
        if not series or not series[0].get("data"):
            return None
        latest = series[0]["data"][0]
        value = parse_number(latest.get("value"))
        if value is None:
            return None
        return self._result(
            value,
            series_id=series_id,
            year=latest.get("year"),
            period=latest.get("period"),
            period_name=latest.get("periodName"),
            unit="thousands of employees" if series_id.startswith("CES") else "",
            region=query.region,
        )
