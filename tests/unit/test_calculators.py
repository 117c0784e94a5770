"""Unit tests for the TAM, SAM/SOM, forecast, and validation calculators."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from market_sizing.calculators.forecast import forecast_market
from market_sizing.calculators.sam import calculate_sam
from market_sizing.calculators.tam import calculate_tam
from market_sizing.calculators.validation import score_estimates, validate_estimate
from market_sizing.models.market import NormalizedResult
from market_sizing.models.metrics import (
    ConstraintType,
    ForecastParams,
    SamFactors,
    SamParams,
    Scenario,
    ScenarioRates,
    SegmentationAdjustment,
    TamParams,
)
from market_sizing.utils.confidence import ConfidenceLevel
from market_sizing.utils.errors import CalculationError


# ======================================================================
# TAM
# ======================================================================


class TestCalculateTam:
    def test_compound_growth_with_segmentation(self) -> None:
        result = calculate_tam(
            TamParams(
                base_market_size=10e9,
                annual_growth_rate=0.15,
                projection_years=5,
                segmentation_adjustment=SegmentationAdjustment(factor=0.8, rationale="B2B only"),
            )
        )

        assert result.calculated_tam == pytest.approx(16.0909e9, rel=1e-4)
        assert [point.year for point in result.projection] == [1, 2, 3, 4, 5]
        values = [point.value for point in result.projection]
        assert values == sorted(values)
        assert values[-1] == pytest.approx(10e9 * 1.15**5)
        assert any("15%" in line for line in result.assumptions)
        assert any("B2B only" in line for line in result.assumptions)

    def test_without_segmentation(self) -> None:
        result = calculate_tam(
            TamParams(base_market_size=100.0, annual_growth_rate=0.1, projection_years=2)
        )
        assert result.calculated_tam == pytest.approx(121.0)
        assert len(result.assumptions) == 1

    def test_negative_growth_shrinks(self) -> None:
        result = calculate_tam(
            TamParams(base_market_size=100.0, annual_growth_rate=-0.5, projection_years=1)
        )
        assert result.calculated_tam == pytest.approx(50.0)

    def test_missing_rationale_is_labelled(self) -> None:
        result = calculate_tam(
            TamParams(
                base_market_size=100.0,
                annual_growth_rate=0.0,
                projection_years=1,
                segmentation_adjustment=SegmentationAdjustment(factor=0.5),
            )
        )
        assert result.assumptions[-1].endswith("Not specified")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"base_market_size": 0, "annual_growth_rate": 0.1, "projection_years": 1},
            {"base_market_size": 1e9, "annual_growth_rate": -1.0, "projection_years": 1},
            {"base_market_size": 1e9, "annual_growth_rate": 0.1, "projection_years": 0},
        ],
    )
    def test_invalid_params_rejected(self, kwargs) -> None:
        with pytest.raises(ValidationError):
            TamParams(**kwargs)

    def test_segmentation_factor_bounds(self) -> None:
        with pytest.raises(ValidationError):
            SegmentationAdjustment(factor=1.5)
        with pytest.raises(ValidationError):
            SegmentationAdjustment(factor=0.0)

    def test_overflow_raises(self) -> None:
        with pytest.raises(CalculationError):
            calculate_tam(
                TamParams(base_market_size=1e300, annual_growth_rate=100.0, projection_years=50)
            )


# ======================================================================
# SAM / SOM
# ======================================================================


class TestCalculateSam:
    def test_geographic_only(self) -> None:
        result = calculate_sam(SamParams(tam_value=1e9, geographic_constraints=["North America"]))

        assert result.sam_value == pytest.approx(6e8)
        assert result.som_value == pytest.approx(6e7)
        assert len(result.constraints_applied) == 1
        assert result.constraints_applied[0].constraint_type == ConstraintType.GEOGRAPHIC
        assert result.constraints_applied[0].description == "Geographic constraints: North America"

    def test_all_constraints_apply_in_order(self) -> None:
        result = calculate_sam(
            SamParams(
                tam_value=1000.0,
                competitive_exclusions=["incumbent lock-in"],
                regulatory_barriers=["HIPAA"],
                geographic_constraints=["EU", "UK"],
            )
        )

        assert result.sam_value == pytest.approx(1000.0 * 0.6 * 0.8 * 0.7)
        assert [c.constraint_type for c in result.constraints_applied] == [
            ConstraintType.GEOGRAPHIC,
            ConstraintType.REGULATORY,
            ConstraintType.COMPETITIVE,
        ]
        assert result.constraints_applied[0].description == "Geographic constraints: EU, UK"

    def test_no_constraints_keeps_tam(self) -> None:
        result = calculate_sam(SamParams(tam_value=500.0))
        assert result.sam_value == 500.0
        assert result.constraints_applied == []

    def test_custom_factors(self) -> None:
        factors = SamFactors(geographic=0.5, som_fraction=0.2)
        result = calculate_sam(SamParams(tam_value=100.0, geographic_constraints=["US"]), factors)
        assert result.sam_value == pytest.approx(50.0)
        assert result.som_value == pytest.approx(10.0)


# ======================================================================
# Forecast
# ======================================================================


class TestForecastMarket:
    def test_conservative_default(self) -> None:
        result = forecast_market(ForecastParams(base_value=100.0, base_year=2024, years=3))

        assert result.scenario == Scenario.CONSERVATIVE
        assert result.growth_rate == 0.05
        assert [point.year for point in result.points] == [2025, 2026, 2027]
        assert result.final_value == pytest.approx(100.0 * 1.05**3)
        first = result.points[0]
        assert first.lower == pytest.approx(first.value * 0.9)
        assert first.upper == pytest.approx(first.value * 1.1)

    def test_scenarios_are_ordered(self) -> None:
        finals = {
            scenario: forecast_market(
                ForecastParams(base_value=100.0, base_year=2024, years=5, scenario=scenario)
            ).final_value
            for scenario in Scenario
        }
        assert finals[Scenario.PESSIMISTIC] < finals[Scenario.CONSERVATIVE] < finals[Scenario.OPTIMISTIC]

    def test_rates_must_be_ordered(self) -> None:
        with pytest.raises(ValidationError):
            ScenarioRates(conservative=0.2, optimistic=0.1, pessimistic=0.0)


# ======================================================================
# Cross-source validation
# ======================================================================


class TestValidateEstimate:
    def test_within_threshold(self) -> None:
        result = validate_estimate(110.0, 100.0)
        assert result.variance == pytest.approx(0.1)
        assert result.is_valid is True
        assert result.confidence == pytest.approx(0.75)
        assert result.confidence_level == ConfidenceLevel.HIGH

    def test_exactly_on_threshold_is_invalid(self) -> None:
        result = validate_estimate(120.0, 100.0, threshold=0.2)
        assert result.is_valid is False
        assert result.confidence == pytest.approx(0.5)

    def test_far_apart(self) -> None:
        result = validate_estimate(300.0, 100.0)
        assert result.is_valid is False
        assert result.confidence == 0.0
        assert result.confidence_level == ConfidenceLevel.VERY_LOW

    @pytest.mark.parametrize(
        ("candidate", "reference", "threshold"),
        [(1.0, 0.0, 0.2), (1.0, -5.0, 0.2), (float("nan"), 1.0, 0.2), (1.0, 1.0, 0.0)],
    )
    def test_invalid_input(self, candidate, reference, threshold) -> None:
        with pytest.raises(CalculationError):
            validate_estimate(candidate, reference, threshold)


class TestScoreEstimates:
    def test_consistent_estimates(self) -> None:
        estimates = [
            NormalizedResult(value=100.0, source="fred", confidence=0.9),
            NormalizedResult(value=104.0, source="world_bank", confidence=0.8),
        ]

        result = score_estimates(estimates)

        assert result.mean_value == pytest.approx(102.0)
        assert result.max_spread == pytest.approx(2.0 / 102.0)
        assert result.is_consistent is True
        assert result.sources == ["fred", "world_bank"]
        assert 0.0 < result.confidence < 0.85

    def test_empty_rejected(self) -> None:
        with pytest.raises(CalculationError):
            score_estimates([])

    def test_mapping_value_rejected(self) -> None:
        with pytest.raises(CalculationError):
            score_estimates([NormalizedResult(value={"name": "x"}, source="alpha_vantage")])
