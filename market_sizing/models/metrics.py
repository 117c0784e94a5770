"""Input and output models for the derived market-metric calculators.

Calculators are pure functions over these models: they never touch the
cache or the providers directly.  Parameter models validate their own
ranges, so a bad input surfaces as a ``pydantic.ValidationError`` before any
arithmetic runs.  All models are frozen.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from market_sizing.models.market import MarketSizeResult
from market_sizing.utils.confidence import ConfidenceLevel


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class ProjectionPoint(BaseModel):
    """One year of a compound-growth projection.  Never cached."""

    model_config = ConfigDict(frozen=True)

    year: int
    value: float


# ---------------------------------------------------------------------------
# TAM
# ---------------------------------------------------------------------------
class SegmentationAdjustment(BaseModel):
    """A single multiplicative narrowing applied to the projected TAM."""

    model_config = ConfigDict(frozen=True)

    # Fraction of the projected market that remains addressable.
    factor: float = Field(gt=0.0, le=1.0)
    # Free-text reason, echoed into TamResult.assumptions.
    rationale: str = ""


class TamParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_market_size: float = Field(gt=0.0)
    annual_growth_rate: float = Field(gt=-1.0)
    projection_years: int = Field(ge=1)
    segmentation_adjustment: SegmentationAdjustment | None = None


class TamResult(BaseModel):
    """Output of :func:`market_sizing.calculators.tam.calculate_tam`."""

    model_config = ConfigDict(frozen=True)

    calculated_tam: float
    # One point per projected year, before segmentation.
    projection: list[ProjectionPoint] = Field(default_factory=list)
    # Human-readable statements of the inputs the figure depends on.
    assumptions: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# SAM / SOM
# ---------------------------------------------------------------------------
class ConstraintType(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    GEOGRAPHIC = "geographic"
    REGULATORY = "regulatory"
    COMPETITIVE = "competitive"


class SamFactors(BaseModel):
    """Reduction factors for each constraint category.

    The defaults are illustrative planning ratios, not empirical constants.
    Override them from ``calculators.sam`` in config.yaml.
    """

    model_config = ConfigDict(frozen=True)

    geographic: float = Field(default=0.6, gt=0.0, le=1.0)
    regulatory: float = Field(default=0.8, gt=0.0, le=1.0)
    competitive: float = Field(default=0.7, gt=0.0, le=1.0)
    som_fraction: float = Field(default=0.10, gt=0.0, le=1.0)

    def factor_for(self, constraint_type: ConstraintType) -> float:
        return {
            ConstraintType.GEOGRAPHIC: self.geographic,
            ConstraintType.REGULATORY: self.regulatory,
            ConstraintType.COMPETITIVE: self.competitive,
        }[constraint_type]


class SamParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    tam_value: float = Field(gt=0.0)
    # A category applies when its list is non-empty.
    geographic_constraints: list[str] = Field(default_factory=list)
    regulatory_barriers: list[str] = Field(default_factory=list)
    competitive_exclusions: list[str] = Field(default_factory=list)

    def constraints_for(self, constraint_type: ConstraintType) -> list[str]:
        return {
            ConstraintType.GEOGRAPHIC: self.geographic_constraints,
            ConstraintType.REGULATORY: self.regulatory_barriers,
            ConstraintType.COMPETITIVE: self.competitive_exclusions,
        }[constraint_type]


class ConstraintApplication(BaseModel):
    """Record of one reduction step applied while narrowing TAM to SAM."""

    model_config = ConfigDict(frozen=True)

    constraint_type: ConstraintType
    impact_factor: float
    description: str


class SamResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    sam_value: float
    som_value: float
    constraints_applied: list[ConstraintApplication] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Forecast
# ---------------------------------------------------------------------------
class Scenario(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    CONSERVATIVE = "conservative"
    OPTIMISTIC = "optimistic"
    PESSIMISTIC = "pessimistic"


class ScenarioRates(BaseModel):
    """Fixed annual growth rate per scenario, plus the symmetric band width."""

    model_config = ConfigDict(frozen=True)

    conservative: float = Field(default=0.05, gt=-1.0)
    optimistic: float = Field(default=0.12, gt=-1.0)
    pessimistic: float = Field(default=0.02, gt=-1.0)
    confidence_band: float = Field(default=0.10, ge=0.0, lt=1.0)

    @model_validator(mode="after")
    def _check_ordering(self) -> ScenarioRates:
        if not self.pessimistic <= self.conservative <= self.optimistic:
            raise ValueError("scenario rates must satisfy pessimistic <= conservative <= optimistic")
        return self

    def rate_for(self, scenario: Scenario) -> float:
        return {
            Scenario.CONSERVATIVE: self.conservative,
            Scenario.OPTIMISTIC: self.optimistic,
            Scenario.PESSIMISTIC: self.pessimistic,
        }[scenario]


class ForecastParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_value: float = Field(gt=0.0)
    base_year: int
    years: int = Field(ge=1)
    scenario: Scenario = Scenario.CONSERVATIVE


class ForecastPoint(BaseModel):
    """A projected year with its confidence band."""

    model_config = ConfigDict(frozen=True)

    year: int
    value: float
    lower: float
    upper: float


class ForecastResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    scenario: Scenario
    growth_rate: float
    points: list[ForecastPoint] = Field(default_factory=list)

    @property
    def final_value(self) -> float:
        return self.points[-1].value if self.points else 0.0


# ---------------------------------------------------------------------------
# Cross-source validation
# ---------------------------------------------------------------------------
class ValidationResult(BaseModel):
    """Agreement between a candidate estimate and a reference estimate."""

    model_config = ConfigDict(frozen=True)

    candidate: float
    reference: float
    # |candidate - reference| / reference
    variance: float
    threshold: float
    is_valid: bool
    confidence: float = Field(ge=0.0, le=1.0)
    confidence_level: ConfidenceLevel


class ConsensusResult(BaseModel):
    """Summary of several independently resolved estimates of one quantity."""

    model_config = ConfigDict(frozen=True)

    mean_value: float
    # Largest relative deviation of any estimate from the mean.
    max_spread: float
    confidence: float = Field(ge=0.0, le=1.0)
    confidence_level: ConfidenceLevel
    sources: list[str] = Field(default_factory=list)
    is_consistent: bool


# ---------------------------------------------------------------------------
# Resolve + calculate
# ---------------------------------------------------------------------------
class ResolvedTam(BaseModel):
    """A TAM projected from a freshly resolved base market size."""

    model_config = ConfigDict(frozen=True)

    market: MarketSizeResult
    tam: TamResult


class ResolvedValidation(BaseModel):
    """A candidate figure checked against a resolved reference figure."""

    model_config = ConfigDict(frozen=True)

    reference: MarketSizeResult
    validation: ValidationResult


# ---------------------------------------------------------------------------
# Industry catalogue, segments and comparisons
# ---------------------------------------------------------------------------
class IndustryInfo(BaseModel):
    """One entry of the static industry catalogue."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    country: str
    market_size: float
    year: int


class MarketSegment(BaseModel):
    """A customer segment's share of a market.

    ``value`` is ``None`` when the market size could not be resolved.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    percentage: float = Field(ge=0.0, le=100.0)
    value: float | None = None


class MarketSegments(BaseModel):
    model_config = ConfigDict(frozen=True)

    industry_id: str
    region: str
    market: MarketSizeResult | None = None
    segments: list[MarketSegment] = Field(default_factory=list)


class MarketComparison(BaseModel):
    """Two markets resolved side by side.

    A market that could not be resolved is ``None``; the derived figures
    are only filled in when both sides have a numeric value.
    """

    model_config = ConfigDict(frozen=True)

    market_a: MarketSizeResult | None = None
    market_b: MarketSizeResult | None = None
    # market_a - market_b
    difference: float | None = None
    # market_a / market_b
    ratio: float | None = None
    larger: str | None = None
