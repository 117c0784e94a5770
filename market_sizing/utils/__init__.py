"""Utility modules for the market sizing core.

Available utility modules (all re-exported here for convenience):

- **confidence** -- Weighted scoring math, agreement scoring, and
  human-readable level mapping used by adapters and the validation
  calculator.
- **errors** -- Domain-specific exception hierarchy rooted at
  MarketSizingError; adapters classify their own failures into outcomes
  and only AggregateFailureError / CalculationError reach callers.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from market_sizing.utils.confidence import (
    ConfidenceLevel,
    agreement_score,
    calculate_confidence,
    confidence_to_level,
)
from market_sizing.utils.errors import (
    AggregateFailureError,
    CacheError,
    CalculationError,
    ConfigurationError,
    DataSourceError,
    MarketSizingError,
    ProviderUnavailableError,
    RateLimitError,
)
from market_sizing.utils.logging import configure_logging, get_logger

__all__ = [
    "AggregateFailureError",
    "CacheError",
    "CalculationError",
    "ConfidenceLevel",
    "ConfigurationError",
    "DataSourceError",
    "MarketSizingError",
    "ProviderUnavailableError",
    "RateLimitError",
    "agreement_score",
    "calculate_confidence",
    "confidence_to_level",
    "configure_logging",
    "get_logger",
]
