"""US Census Bureau provider (County Business Patterns).

Queries ``/{year}/cbp`` for one measure of a NAICS industry:

    EMP     employees            (default for EMPLOYMENT queries)
    PAYANN  annual payroll, $1k  (default for MARKET_SIZE queries)
    ESTAB   establishments

The response is a JSON table whose first row is the header.  A header
with no data rows (or an empty 204 body) means the industry has no
published figure for that geography.
"""

from __future__ import annotations

from market_sizing.models.market import MarketQuery, NormalizedResult, QueryKind
from market_sizing.providers.data_source.http_base import HttpDataSourceProvider, parse_number
from market_sizing.utils.errors import DataSourceError

DEFAULT_YEAR = "2021"

_DEFAULT_MEASURE = {
    QueryKind.EMPLOYMENT: "EMP",
    QueryKind.MARKET_SIZE: "PAYANN",
}
_UNITS = {"EMP": "employees", "PAYANN": "thousands of USD", "ESTAB": "establishments"}
_US_REGIONS = frozenset({"US", "USA", "UNITED STATES"})


class CensusProvider(HttpDataSourceProvider):
    provider_name = "census"
    base_url = "https://api.census.gov/data"
    confidence = 0.9
    supported_kinds = frozenset({QueryKind.MARKET_SIZE, QueryKind.EMPLOYMENT})

    def supports(self, query: MarketQuery) -> bool:
        return super().supports(query) and query.region.upper() in _US_REGIONS

    async def _fetch(self, query: MarketQuery) -> NormalizedResult | None:
        naics = str(query.param("naics", query.industry_id))
        measure = str(query.param("measure", _DEFAULT_MEASURE[query.kind])).upper()
        year = str(query.param("year", DEFAULT_YEAR))
        geography = str(query.param("geography", "us:*"))

        params = {"get": measure, "for": geography, "NAICS2017": naics}
        if self._api_key:
            params["key"] = self._api_key
        table = await self._get_json(f"{year}/cbp", params=params)
        if table is None:
            return None
        if not isinstance(table, list) or not table or not isinstance(table[0], list):
            raise DataSourceError("unexpected CBP payload", provider_name=self.provider_name)

        header, rows = table[0], table[1:]
        if not rows:
            return None
        column = header.index(measure)
        values = [parse_number(row[column]) for row in rows]
        values = [value for value in values if value is not None]
        if not values:
            return None

        return self._result(
            sum(values),
            naics=naics,
            measure=measure,
            unit=_UNITS.get(measure, ""),
            year=year,
            geography=geography,
            rows=len(rows),
        )
