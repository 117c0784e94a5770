"""Deterministic scenario forecasts.

A scenario selects one fixed annual growth rate from
:class:`ScenarioRates`; the forecast compounds ``base_value`` from
``base_year + 1`` onwards and brackets every point with a symmetric
band (``value * (1 - band)``, ``value * (1 + band)``).
"""

from __future__ import annotations

from market_sizing.models.metrics import (
    ForecastParams,
    ForecastPoint,
    ForecastResult,
    ScenarioRates,
)


def forecast_market(params: ForecastParams, rates: ScenarioRates | None = None) -> ForecastResult:
    rates = rates or ScenarioRates()
    growth_rate = rates.rate_for(params.scenario)
    band = rates.confidence_band

    points: list[ForecastPoint] = []
    value = params.base_value
    for offset in range(1, params.years + 1):
        value *= 1 + growth_rate
        points.append(
            ForecastPoint(
                year=params.base_year + offset,
                value=value,
                lower=value * (1 - band),
                upper=value * (1 + band),
            )
        )
    return ForecastResult(scenario=params.scenario, growth_rate=growth_rate, points=points)
