"""Serviceable Available / Obtainable Market.

Each non-empty constraint category narrows the TAM by its factor, always
in the order geographic, regulatory, competitive.  SOM is a fixed share of
the resulting SAM.  The factors are planning ratios supplied through
:class:`SamFactors`, not derived from data.
"""

from __future__ import annotations

import structlog

from market_sizing.models.metrics import (
    ConstraintApplication,
    ConstraintType,
    SamFactors,
    SamParams,
    SamResult,
)

logger = structlog.get_logger(logger_name=__name__)

_APPLICATION_ORDER = (
    ConstraintType.GEOGRAPHIC,
    ConstraintType.REGULATORY,
    ConstraintType.COMPETITIVE,
)


def calculate_sam(params: SamParams, factors: SamFactors | None = None) -> SamResult:
    factors = factors or SamFactors()
    sam = params.tam_value
    applied: list[ConstraintApplication] = []

    for constraint_type in _APPLICATION_ORDER:
        constraints = params.constraints_for(constraint_type)
        if not constraints:
            continue
        impact = factors.factor_for(constraint_type)
        sam *= impact
        applied.append(
            ConstraintApplication(
                constraint_type=constraint_type,
                impact_factor=impact,
                description=f"{constraint_type.value.capitalize()} constraints: {', '.join(constraints)}",
            )
        )

    som = sam * factors.som_fraction
    logger.debug("sam_calculated", sam=sam, som=som, constraints=len(applied))
    return SamResult(sam_value=sam, som_value=som, constraints_applied=applied)
