"""Total Addressable Market projection.

Compounds ``base_market_size`` at a constant annual rate for
``projection_years`` years, then narrows the final figure once by an
optional segmentation factor.  The year-by-year projection is reported
before segmentation.
"""

from __future__ import annotations

import math

import structlog

from market_sizing.models.metrics import ProjectionPoint, TamParams, TamResult
from market_sizing.utils.errors import CalculationError

logger = structlog.get_logger(logger_name=__name__)


def calculate_tam(params: TamParams) -> TamResult:
    """Project the TAM described by *params*.

    Example: 10e9 growing 15% a year for 5 years with a 0.8 segmentation
    factor gives roughly 16.09e9.

    Raises
    ------
    CalculationError
        If the projection overflows to a non-finite value.
    """
    size = params.base_market_size
    projection: list[ProjectionPoint] = []
    for year in range(1, params.projection_years + 1):
        size *= 1 + params.annual_growth_rate
        projection.append(ProjectionPoint(year=year, value=size))

    assumptions = [
        f"Constant annual growth rate of {params.annual_growth_rate * 100:g}% "
        f"over {params.projection_years} year(s)"
    ]

    adjustment = params.segmentation_adjustment
    if adjustment is not None:
        size *= adjustment.factor
        assumptions.append(
            f"Applied segmentation adjustment factor of {adjustment.factor:g}. "
            f"Rationale: {adjustment.rationale or 'Not specified'}"
        )

    if not math.isfinite(size):
        raise CalculationError("TAM projection overflowed; check growth rate and horizon")

    logger.debug("tam_calculated", tam=size, years=params.projection_years)
    return TamResult(calculated_tam=size, projection=projection, assumptions=assumptions)
