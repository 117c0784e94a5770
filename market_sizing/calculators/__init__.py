"""Derived market-metric calculators.

Pure functions over the models in ``market_sizing.models.metrics``; they
never call providers or the cache themselves.
"""

from market_sizing.calculators.forecast import forecast_market
from market_sizing.calculators.sam import calculate_sam
from market_sizing.calculators.tam import calculate_tam
from market_sizing.calculators.validation import score_estimates, validate_estimate

__all__ = [
    "calculate_sam",
    "calculate_tam",
    "forecast_market",
    "score_estimates",
    "validate_estimate",
]
