"""World Bank Indicators API provider.

``/country/{code}/indicator/{indicator}?format=json&mrv=1`` returns a
two-element array ``[paging metadata, rows]``.  No credential is needed.
Errors come back as a one-element array holding a ``message`` list.
"""

from __future__ import annotations

from market_sizing.models.market import MarketQuery, NormalizedResult, QueryKind
from market_sizing.providers.data_source.http_base import HttpDataSourceProvider, parse_number
from market_sizing.utils.errors import DataSourceError


class WorldBankProvider(HttpDataSourceProvider):
    provider_name = "world_bank"
    base_url = "https://api.worldbank.org/v2"
    confidence = 0.85
    supported_kinds = frozenset({QueryKind.ECONOMIC_SERIES, QueryKind.MARKET_SIZE})

    async def _fetch(self, query: MarketQuery) -> NormalizedResult | None:
        country = str(query.param("country", query.region))
        indicator = str(query.param("indicator", query.industry_id))
        payload = await self._get_json(
            f"country/{country}/indicator/{indicator}",
            params={"format": "json", "mrv": 1},
        )
        if payload is None:
            return None
        if not isinstance(payload, list) or not payload:
            raise DataSourceError("unexpected indicator payload", provider_name=self.provider_name)
        if len(payload) == 1:
            messages = payload[0].get("message", []) if isinstance(payload[0], dict) else []
            reason = "; ".join(str(m.get("value", m)) for m in messages) or "empty response"
            raise DataSourceError(reason, provider_name=self.provider_name)

        rows = payload[1]
        if not rows:
            return None
        latest = rows[0]
        value = parse_number(latest.get("value"))
        if value is None:
            return None
        return self._result(
            value,
            country=(latest.get("country") or {}).get("value"),
            country_iso3=latest.get("countryiso3code"),
            indicator=(latest.get("indicator") or {}).get("value", indicator),
            date=latest.get("date"),
            unit=latest.get("unit") or "",
        )
