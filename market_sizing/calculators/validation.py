"""Cross-source validation of market estimates.

:func:`validate_estimate` compares one candidate figure with a reference
figure: ``variance = |candidate - reference| / reference`` and the pair
agrees when the variance is strictly below the threshold (20% by
default).  :func:`score_estimates` summarises several independently
resolved figures of the same quantity.
"""

from __future__ import annotations

import math

import structlog

from market_sizing.models.market import NormalizedResult
from market_sizing.models.metrics import ConsensusResult, ValidationResult
from market_sizing.utils.confidence import (
    agreement_score,
    calculate_confidence,
    confidence_to_level,
)
from market_sizing.utils.errors import CalculationError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_THRESHOLD = 0.2


def validate_estimate(
    candidate: float,
    reference: float,
    threshold: float = DEFAULT_THRESHOLD,
) -> ValidationResult:
    """Check whether *candidate* lies within *threshold* of *reference*.

    Raises
    ------
    CalculationError
        If the reference is not a positive finite number, the candidate is
        not finite, or the threshold is not positive.
    """
    if not math.isfinite(reference) or reference <= 0:
        raise CalculationError(f"Reference value must be a positive number, got {reference}")
    if not math.isfinite(candidate):
        raise CalculationError(f"Candidate value must be finite, got {candidate}")
    if threshold <= 0:
        raise CalculationError(f"Threshold must be positive, got {threshold}")

    variance = abs(candidate - reference) / reference
    confidence = agreement_score(variance, threshold)
    return ValidationResult(
        candidate=candidate,
        reference=reference,
        variance=variance,
        threshold=threshold,
        is_valid=variance < threshold,
        confidence=confidence,
        confidence_level=confidence_to_level(confidence),
    )


def score_estimates(
    estimates: list[NormalizedResult],
    threshold: float = DEFAULT_THRESHOLD,
) -> ConsensusResult:
    """Summarise several estimates of one quantity.

    The consensus confidence is the mean of the adapters' own confidences,
    weighted equally, scaled by how tightly the estimates agree.
    """
    if not estimates:
        raise CalculationError("At least one estimate is required")
    values: list[float] = []
    for estimate in estimates:
        if not isinstance(estimate.value, (int, float)) or not math.isfinite(estimate.value):
            raise CalculationError(
                f"Estimate from {estimate.source} is not a finite number",
                provider_name=estimate.source,
            )
        values.append(float(estimate.value))

    mean = sum(values) / len(values)
    if mean <= 0:
        raise CalculationError("Estimates must average to a positive value")
    spread = max(abs(value - mean) / mean for value in values)

    source_confidence = calculate_confidence([e.confidence for e in estimates])
    confidence = source_confidence * agreement_score(spread, threshold)
    logger.debug("estimates_scored", count=len(values), spread=spread, confidence=confidence)
    return ConsensusResult(
        mean_value=mean,
        max_spread=spread,
        confidence=confidence,
        confidence_level=confidence_to_level(confidence),
        sources=[e.source for e in estimates],
        is_consistent=spread < threshold,
    )
