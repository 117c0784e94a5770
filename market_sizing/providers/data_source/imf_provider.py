"""IMF SDMX CompactData provider.

``CompactData/{dataflow}/{key}`` with key ``{frequency}.{region}.{indicator}``
(annual IFS by default).  A single series or observation comes back as an
object rather than a one-element list, so both shapes are accepted.
"""

from __future__ import annotations

from typing import Any

from market_sizing.models.market import MarketQuery, NormalizedResult, QueryKind
from market_sizing.providers.data_source.http_base import HttpDataSourceProvider, parse_number


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


class ImfProvider(HttpDataSourceProvider):
    provider_name = "imf"
    base_url = "http://dataservices.imf.org/REST/SDMX_JSON.svc"
    confidence = 0.85
    supported_kinds = frozenset({QueryKind.ECONOMIC_SERIES})

    def key_for(self, query: MarketQuery) -> str:
        frequency = query.param("frequency", "A")
        return str(query.param("key", f"{frequency}.{query.region.upper()}.{query.industry_id}"))

    async def _fetch(self, query: MarketQuery) -> NormalizedResult | None:
        dataflow = str(query.param("dataflow_id", "IFS"))
        key = self.key_for(query)
        params: dict[str, Any] = {}
        if query.param("start_period"):
            params["startPeriod"] = query.param("start_period")
        if query.param("end_period"):
            params["endPeriod"] = query.param("end_period")

        data = await self._get_json(f"CompactData/{dataflow}/{key}", params=params or None)
        if data is None:
            return None

        data_set = data["CompactData"].get("DataSet") or {}
        series = _as_list(data_set.get("Series"))
        if not series:
            return None
        observations = [obs for obs in _as_list(series[0].get("Obs")) if "@TIME_PERIOD" in obs]
        if not observations:
            return None

        latest = max(observations, key=lambda obs: obs["@TIME_PERIOD"])
        value = parse_number(latest.get("@OBS_VALUE"))
        if value is None:
            return None
        return self._result(
            value,
            dataflow_id=dataflow,
            key=key,
            period=latest["@TIME_PERIOD"],
            unit_mult=series[0].get("@UNIT_MULT"),
        )
