"""Market sizing domain models, re-exported from their submodules.

    - cache.py    -- outcome tags, TTL policy, cache entries and stats
    - market.py   -- queries, adapter results, resolve() results
    - metrics.py  -- calculator inputs and outputs (TAM, SAM/SOM, forecast,
                     cross-source validation)

Import from ``market_sizing.models`` rather than the individual files.
"""

from __future__ import annotations

from market_sizing.models.cache import CacheEntry, CacheStats, Outcome, OutcomeTtlPolicy
from market_sizing.models.market import (
    FetchResult,
    MarketQuery,
    MarketSizeResult,
    NormalizedResult,
    ProviderAttempt,
    QueryKind,
)
from market_sizing.models.metrics import (
    ConsensusResult,
    ConstraintApplication,
    ConstraintType,
    ForecastParams,
    ForecastPoint,
    ForecastResult,
    IndustryInfo,
    MarketComparison,
    MarketSegment,
    MarketSegments,
    ProjectionPoint,
    ResolvedTam,
    ResolvedValidation,
    SamFactors,
    SamParams,
    SamResult,
    Scenario,
    ScenarioRates,
    SegmentationAdjustment,
    TamParams,
    TamResult,
    ValidationResult,
)

__all__ = [
    "CacheEntry",
    "CacheStats",
    "ConsensusResult",
    "ConstraintApplication",
    "ConstraintType",
    "FetchResult",
    "ForecastParams",
    "ForecastPoint",
    "ForecastResult",
    "IndustryInfo",
    "MarketComparison",
    "MarketQuery",
    "MarketSegment",
    "MarketSegments",
    "MarketSizeResult",
    "NormalizedResult",
    "Outcome",
    "OutcomeTtlPolicy",
    "ProjectionPoint",
    "ProviderAttempt",
    "ResolvedTam",
    "ResolvedValidation",
    "QueryKind",
    "SamFactors",
    "SamParams",
    "SamResult",
    "Scenario",
    "ScenarioRates",
    "SegmentationAdjustment",
    "TamParams",
    "TamResult",
    "ValidationResult",
]
