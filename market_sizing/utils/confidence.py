"""Confidence scoring utilities for resolved market figures.

Provider adapters attach a confidence score (0.0--1.0) to every normalized
result, and the cross-source validation calculator turns agreement between
independent estimates into a score of its own.  This module provides:

1. **calculate_confidence** -- Weighted average of multiple score signals.
   Used when several estimates (each with its own provider confidence)
   are combined into one consensus score.
2. **confidence_to_level** -- Maps a numeric score to a human-readable
   tier (VERY_LOW through VERY_HIGH) for reports and logging.
3. **agreement_score** -- Converts a relative variance between two
   figures into a 0.0--1.0 agreement score.
"""

from enum import Enum


class ConfidenceLevel(Enum):
    """Human-readable confidence tiers."""

    VERY_LOW = "very_low"    # < 0.2
    LOW = "low"              # 0.2 - 0.4
    MEDIUM = "medium"        # 0.4 - 0.6
    HIGH = "high"            # 0.6 - 0.8
    VERY_HIGH = "very_high"  # >= 0.8


def calculate_confidence(
    scores: list[float],
    weights: list[float] | None = None,
) -> float:
    """Compute a weighted average confidence score.

    Args:
        scores: Individual confidence scores, each in [0.0, 1.0].
        weights: Optional weights for each score. Defaults to equal weighting.

    Returns:
        Weighted average clamped to [0.0, 1.0].

    Raises:
        ValueError: If scores is empty or lengths of scores and weights differ.
    """
    if not scores:
        raise ValueError("scores must not be empty")

    if weights is None:
        weights = [1.0] * len(scores)

    if len(scores) != len(weights):
        raise ValueError("scores and weights must have the same length")

    total_weight = sum(weights)
    if total_weight == 0:
        return 0.0

    weighted_sum = sum(s * w for s, w in zip(scores, weights, strict=True))
    # Clamp to guard against floating-point drift.
    return max(0.0, min(1.0, weighted_sum / total_weight))


def confidence_to_level(score: float) -> ConfidenceLevel:
    """Map a numeric confidence score to a human-readable level.

    The thresholds are evenly spaced at 0.2 intervals.

    Args:
        score: Confidence score in [0.0, 1.0].

    Returns:
        Corresponding ConfidenceLevel enum member.
    """
    if score < 0.2:
        return ConfidenceLevel.VERY_LOW
    if score < 0.4:
        return ConfidenceLevel.LOW
    if score < 0.6:
        return ConfidenceLevel.MEDIUM
    if score < 0.8:
        return ConfidenceLevel.HIGH
    return ConfidenceLevel.VERY_HIGH


def agreement_score(variance: float, threshold: float) -> float:
    """Turn a relative variance into an agreement score.

    A variance of 0 scores 1.0; a variance of twice the validity
    threshold (or more) scores 0.0.  Scores fall linearly in between, so a
    figure sitting exactly on the threshold scores 0.5.

    Args:
        variance: ``|candidate - reference| / reference``, non-negative.
        threshold: The validity threshold used by the caller (> 0).

    Returns:
        Agreement score in [0.0, 1.0].
    """
    if threshold <= 0:
        raise ValueError("threshold must be positive")
    return max(0.0, min(1.0, 1.0 - variance / (2.0 * threshold)))
