"""Nasdaq Data Link (formerly Quandl) provider.

Datasets are addressed by ``database_code``/``dataset_code`` params; a
query without both is not supported.  ``/datasets/{db}/{ds}/data.json``
returns ``dataset_data`` with parallel ``column_names`` and ``data`` rows,
newest first.  The value is read from ``value_column`` (default
``"Value"``).
"""

from __future__ import annotations

import structlog

from market_sizing.models.market import MarketQuery, NormalizedResult, QueryKind
from market_sizing.providers.data_source.http_base import HttpDataSourceProvider, parse_number
from market_sizing.utils.errors import DataSourceError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

# Quandl error codes for exceeded call limits.
_RATE_LIMIT_CODES = frozenset({"QELx01", "QELx02", "QELx03", "QELx04"})


class NasdaqDataLinkProvider(HttpDataSourceProvider):
    """Latest row of a Nasdaq Data Link dataset.  Requires an API key."""

    provider_name = "nasdaq"
    base_url = "https://data.nasdaq.com/api/v3"
    requires_api_key = True
    confidence = 0.8
    supported_kinds = frozenset({QueryKind.ECONOMIC_SERIES, QueryKind.MARKET_SIZE})

    def supports(self, query: MarketQuery) -> bool:
        return (
            super().supports(query)
            and bool(query.param("database_code"))
            and bool(query.param("dataset_code"))
        )

    async def _fetch(self, query: MarketQuery) -> NormalizedResult | None:
        database_code = query.param("database_code")
        dataset_code = query.param("dataset_code")
        value_column = str(query.param("value_column", "Value"))
        data = await self._get_json(
            f"datasets/{database_code}/{dataset_code}/data.json",
            params={"api_key": self._api_key, "limit": 1},
        )
        if data is None:
            return None

        error = data.get("quandl_error")
        if error:
            code = error.get("code", "")
            message = error.get("message", "Nasdaq Data Link error")
            if code in _RATE_LIMIT_CODES:
                raise RateLimitError(message, provider_name=self.provider_name)
            raise DataSourceError(f"{code}: {message}", provider_name=self.provider_name)

        dataset = data["dataset_data"]
        columns = dataset.get("column_names", [])
        rows = dataset.get("data") or []
        if not rows:
            return None
        if value_column not in columns:
            logger.warning("nasdaq_column_missing", column=value_column, available=columns)
            return None
        latest = dict(zip(columns, rows[0], strict=False))
        value = parse_number(latest[value_column])
        if value is None:
            return None
        return self._result(
            value,
            database_code=database_code,
            dataset_code=dataset_code,
            column=value_column,
            date=latest.get(columns[0]) if columns else None,
        )
