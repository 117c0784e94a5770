"""Consumer-facing facade over the orchestrator and the calculators.

Callers (a tool server, a notebook, a batch job) talk to this one object.
It accepts either the pydantic parameter models or plain mappings, and
wires resolved market sizes into the calculators:

    resolve                  -> MarketSizeResult
    calculate_tam / _sam     -> TamResult / SamResult
    forecast                 -> ForecastResult
    validate                 -> ValidationResult
    calculate_tam_for_query  -> resolve, then TAM from the resolved value
    validate_against         -> resolve a reference, then validate
    compare_sources          -> resolve several queries concurrently, then
                                score their agreement
    compare_markets          -> resolve two markets side by side
    market_segments          -> split a resolved market by customer segment
    search_industries / get_industry -> the static industry catalogue

Configuration-driven factors (SAM/SOM ratios, scenario rates, the
validation threshold) are injected at construction so one service
instance applies them consistently.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from market_sizing.calculators.forecast import forecast_market
from market_sizing.calculators.sam import calculate_sam
from market_sizing.calculators.tam import calculate_tam
from market_sizing.calculators.validation import (
    DEFAULT_THRESHOLD,
    score_estimates,
    validate_estimate,
)
from market_sizing.config.reference_data import (
    REFERENCE_MARKET_SIZES,
    REFERENCE_SEGMENT_SHARES,
    get_reference_industry,
    search_reference_industries,
)
from market_sizing.models.market import MarketQuery, MarketSizeResult, NormalizedResult
from market_sizing.models.metrics import (
    ConsensusResult,
    ForecastParams,
    ForecastResult,
    IndustryInfo,
    MarketComparison,
    MarketSegment,
    MarketSegments,
    ResolvedTam,
    ResolvedValidation,
    SamFactors,
    SamParams,
    SamResult,
    ScenarioRates,
    SegmentationAdjustment,
    TamParams,
    TamResult,
    ValidationResult,
)
from market_sizing.pipeline.orchestrator import DataSourceOrchestrator
from market_sizing.utils.errors import AggregateFailureError, CalculationError
from market_sizing.utils.logging import get_logger


class MarketSizingService:
    """Facade combining provider orchestration with the derived metrics."""

    def __init__(
        self,
        orchestrator: DataSourceOrchestrator,
        sam_factors: SamFactors | None = None,
        scenario_rates: ScenarioRates | None = None,
        validation_threshold: float = DEFAULT_THRESHOLD,
        industry_catalogue: dict[str, dict[str, Any]] | None = None,
        segment_shares: dict[str, list[tuple[str, float]]] | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._catalogue = REFERENCE_MARKET_SIZES if industry_catalogue is None else industry_catalogue
        self._segment_shares = REFERENCE_SEGMENT_SHARES if segment_shares is None else segment_shares
        self._sam_factors = sam_factors or SamFactors()
        self._scenario_rates = scenario_rates or ScenarioRates()
        self._validation_threshold = validation_threshold
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def orchestrator(self) -> DataSourceOrchestrator:
        return self._orchestrator

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    async def resolve(self, query: MarketQuery | Mapping[str, Any]) -> MarketSizeResult:
        """Resolve *query* through the provider chain.

        Raises
        ------
        AggregateFailureError
            If every eligible provider failed and no reference figure matched.
        """
        return await self._orchestrator.resolve(MarketQuery.model_validate(query))

    # ------------------------------------------------------------------
    # Calculators
    # ------------------------------------------------------------------

    def calculate_tam(self, params: TamParams | Mapping[str, Any]) -> TamResult:
        return calculate_tam(TamParams.model_validate(params))

    def calculate_sam(self, params: SamParams | Mapping[str, Any]) -> SamResult:
        return calculate_sam(SamParams.model_validate(params), self._sam_factors)

    def forecast(self, params: ForecastParams | Mapping[str, Any]) -> ForecastResult:
        return forecast_market(ForecastParams.model_validate(params), self._scenario_rates)

    def validate(
        self,
        candidate: float,
        reference: float,
        threshold: float | None = None,
    ) -> ValidationResult:
        return validate_estimate(
            candidate,
            reference,
            threshold if threshold is not None else self._validation_threshold,
        )

    # ------------------------------------------------------------------
    # Resolve + calculate
    # ------------------------------------------------------------------

    async def calculate_tam_for_query(
        self,
        query: MarketQuery | Mapping[str, Any],
        annual_growth_rate: float,
        projection_years: int,
        segmentation: SegmentationAdjustment | Mapping[str, Any] | None = None,
    ) -> ResolvedTam:
        """Resolve a base market size for *query* and project its TAM."""
        market = await self.resolve(query)
        base = _require_number(market)
        tam = self.calculate_tam(
            TamParams(
                base_market_size=base,
                annual_growth_rate=annual_growth_rate,
                projection_years=projection_years,
                segmentation_adjustment=(
                    SegmentationAdjustment.model_validate(segmentation)
                    if segmentation is not None
                    else None
                ),
            )
        )
        tam = tam.model_copy(
            update={"assumptions": [*tam.assumptions, f"Base market size from {market.source}"]}
        )
        self._logger.info("tam_for_query", source=market.source, tam=tam.calculated_tam)
        return ResolvedTam(market=market, tam=tam)

    async def validate_against(
        self,
        candidate: float,
        reference_query: MarketQuery | Mapping[str, Any],
        threshold: float | None = None,
    ) -> ResolvedValidation:
        """Resolve *reference_query* independently and validate *candidate* against it."""
        reference = await self.resolve(reference_query)
        validation = self.validate(candidate, _require_number(reference), threshold)
        self._logger.info(
            "estimate_validated",
            reference_source=reference.source,
            variance=validation.variance,
            is_valid=validation.is_valid,
        )
        return ResolvedValidation(reference=reference, validation=validation)

    async def compare_sources(
        self,
        queries: Sequence[MarketQuery | Mapping[str, Any]],
    ) -> ConsensusResult:
        """Resolve several queries for the same quantity and score their agreement.

        Queries that cannot be answered are logged and left out.  Each
        resolve runs its own provider chain; they share only the cache.
        """
        results = await asyncio.gather(
            *(self.resolve(query) for query in queries),
            return_exceptions=True,
        )
        estimates: list[NormalizedResult] = []
        for result in results:
            if isinstance(result, AggregateFailureError):
                self._logger.warning("compare_sources_unresolved", error=str(result))
                continue
            if isinstance(result, BaseException):
                raise result
            estimates.append(
                NormalizedResult(
                    value=_require_number(result),
                    source=result.source,
                    details=result.details,
                    confidence=result.confidence,
                )
            )
        if not estimates:
            raise CalculationError("None of the queries could be resolved")
        return score_estimates(estimates, self._validation_threshold)

    async def compare_markets(
        self,
        market_a: MarketQuery | Mapping[str, Any],
        market_b: MarketQuery | Mapping[str, Any],
    ) -> MarketComparison:
        """Resolve two markets concurrently and compare their sizes.

        A side that cannot be resolved is reported as ``None`` rather than
        failing the whole comparison.
        """
        resolved_a, resolved_b = await asyncio.gather(
            self._resolve_or_none(market_a),
            self._resolve_or_none(market_b),
        )
        value_a = resolved_a.numeric_value if resolved_a is not None else None
        value_b = resolved_b.numeric_value if resolved_b is not None else None
        if value_a is None or value_b is None:
            return MarketComparison(market_a=resolved_a, market_b=resolved_b)

        if value_a == value_b:
            larger = None
        else:
            larger = "market_a" if value_a > value_b else "market_b"
        return MarketComparison(
            market_a=resolved_a,
            market_b=resolved_b,
            difference=value_a - value_b,
            ratio=value_a / value_b if value_b != 0 else None,
            larger=larger,
        )

    async def market_segments(self, industry_id: str, region: str = "US") -> MarketSegments | None:
        """Split the market for *industry_id* by customer segment.

        Returns ``None`` for an industry without a known segment split.
        Segment values are filled in only when the market size resolves.
        """
        shares = self._segment_shares.get(industry_id)
        if shares is None:
            return None
        market = await self._resolve_or_none(MarketQuery(industry_id=industry_id, region=region))
        total = market.numeric_value if market is not None else None
        segments = [
            MarketSegment(
                name=name,
                percentage=percentage,
                value=total * percentage / 100.0 if total is not None else None,
            )
            for name, percentage in shares
        ]
        return MarketSegments(industry_id=industry_id, region=region, market=market, segments=segments)

    # ------------------------------------------------------------------
    # Industry catalogue
    # ------------------------------------------------------------------

    def search_industries(self, text: str) -> list[IndustryInfo]:
        return [
            IndustryInfo.model_validate(entry)
            for entry in search_reference_industries(text, table=self._catalogue)
        ]

    def get_industry(self, industry_id: str) -> IndustryInfo | None:
        entry = get_reference_industry(industry_id, table=self._catalogue)
        return IndustryInfo.model_validate(entry) if entry is not None else None

    async def _resolve_or_none(self, query: MarketQuery | Mapping[str, Any]) -> MarketSizeResult | None:
        try:
            return await self.resolve(query)
        except AggregateFailureError as exc:
            self._logger.warning("market_unresolved", error=str(exc))
            return None


def _require_number(result: MarketSizeResult) -> float:
    value = result.numeric_value
    if value is None:
        raise CalculationError(
            f"Resolved value from {result.source} is not a number",
            provider_name=result.source,
        )
    return value
