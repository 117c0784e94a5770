"""OECD SDMX-JSON provider.

``/{agency},{dataset}/{filter}`` returns an SDMX-JSON message.  The value
is the latest observation of the first series in the first data set;
observation keys index into the time dimension listed under
``structure.dimensions.observation``.
"""

from __future__ import annotations

from typing import Any

from market_sizing.models.market import MarketQuery, NormalizedResult, QueryKind
from market_sizing.providers.data_source.http_base import HttpDataSourceProvider, parse_number


class OecdProvider(HttpDataSourceProvider):
    provider_name = "oecd"
    base_url = "https://stats.oecd.org/SDMX-JSON/data"
    confidence = 0.85
    supported_kinds = frozenset({QueryKind.ECONOMIC_SERIES})

    async def _fetch(self, query: MarketQuery) -> NormalizedResult | None:
        agency = str(query.param("agency_id", "OECD"))
        dataset_id = str(query.param("dataset_id", query.industry_id))
        filter_expression = str(query.param("filter", "all"))
        params: dict[str, Any] = {}
        if query.param("start_time"):
            params["startTime"] = query.param("start_time")
        if query.param("end_time"):
            params["endTime"] = query.param("end_time")

        message = await self._get_json(
            f"{agency},{dataset_id}/{filter_expression}", params=params or None
        )
        if message is None:
            return None

        data_sets = message.get("dataSets") or []
        series = data_sets[0].get("series") if data_sets else None
        if not series:
            return None
        series_key = sorted(series)[0]
        observations = series[series_key].get("observations") or {}
        if not observations:
            return None

        latest_index = max(observations, key=int)
        value = parse_number(observations[latest_index][0])
        if value is None:
            return None
        return self._result(
            value,
            dataset_id=dataset_id,
            agency_id=agency,
            series_key=series_key,
            period=_time_period(message, int(latest_index)),
        )


def _time_period(message: dict[str, Any], index: int) -> str | None:
    dimensions = message.get("structure", {}).get("dimensions", {}).get("observation", [])
    if not dimensions:
        return None
    values = dimensions[0].get("values", [])
    if index >= len(values):
        return None
    return values[index].get("id")
