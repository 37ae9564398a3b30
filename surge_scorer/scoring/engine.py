"""
Daily scoring: factor vectors × weights → scores and threshold verdicts.

Score formula
-------------
    score(day) = Σ weight(f) for every factor f whose value is exactly True

``False`` and ``None`` contribute nothing and the score is never
renormalised over the known factors, so ``0 <= score <= Σ weights`` always
holds. Factors are summed in canonical order and the total is rounded to
``SCORE_PRECISION`` decimal places, so 0.1 + 0.2 compares equal to 0.3.

Verdict
-------
    above_threshold = score >= threshold AND factor_count >= min_factors_required

Adaptive threshold (per batch, never per day)
---------------------------------------------
After scoring every day against the configured threshold:

  1. No day qualifies and max score > 0:
         candidate = max(0.75 × max_score, 0.15)
  2. Otherwise, fewer than 5% of days qualify and max score > 0.2:
         candidate = max(0.60 × max_score, 0.20)

The applied threshold is ``min(configured, candidate)``: relaxation can only
lower the bar. When it does, every day's verdict is recomputed against the
applied threshold and ``ScoringResult.adjustment`` names the rule that fired.
"""

from __future__ import annotations

import datetime
import logging
from typing import Optional, Sequence

from surge_scorer.models.factors import FactorVector
from surge_scorer.models.scoring import (
    DailyScore,
    FactorContribution,
    ScoreConfig,
    ScoringResult,
    ScoringStatus,
    ThresholdAdjustment,
)
from surge_scorer.models.series import IndicatorRow
from surge_scorer.taxonomy.factor_taxonomy import ALL_FACTORS, Factor
from surge_scorer.utils.logging import log_context

logger = logging.getLogger(__name__)

SCORE_PRECISION = 10

NO_QUALIFYING_MULTIPLIER = 0.75
NO_QUALIFYING_FLOOR = 0.15
SPARSE_QUALIFYING_RATIO = 0.05
SPARSE_MIN_MAX_SCORE = 0.20
SPARSE_MULTIPLIER = 0.60
SPARSE_FLOOR = 0.20


def score_vector(
    vector: FactorVector, config: ScoreConfig
) -> tuple[float, dict[Factor, FactorContribution]]:
    """Return ``(score, breakdown)`` for one factor vector.

    ``breakdown`` holds a ``FactorContribution`` for all 10 factors, in
    canonical order; factors without a configured weight carry weight 0.0.
    """
    total = 0.0
    breakdown: dict[Factor, FactorContribution] = {}
    for factor in ALL_FACTORS:
        weight = config.weight(factor)
        active = vector.get(factor) is True
        contribution = weight if active else 0.0
        total += contribution
        breakdown[factor] = FactorContribution(
            active=active, weight=weight, contribution=contribution
        )
    return round(total, SCORE_PRECISION), breakdown


def is_above_threshold(
    score: float, factor_count: int, threshold: float, min_factors_required: int
) -> bool:
    return score >= threshold and factor_count >= min_factors_required


def score_day(
    vector: FactorVector,
    day: datetime.date,
    config: ScoreConfig,
    threshold: Optional[float] = None,
) -> DailyScore:
    """Score a single day.

    Args:
        vector:    The day's factor vector.
        day:       Trading date the score belongs to.
        config:    Weights, threshold and minimum factor count.
        threshold: Override for ``config.threshold`` (used when an adaptive
                   threshold has been applied to the batch).
    """
    score, breakdown = score_vector(vector, config)
    active = vector.active_factors()
    applied = config.threshold if threshold is None else threshold
    return DailyScore(
        date=day,
        score=score,
        factor_count=len(active),
        above_threshold=is_above_threshold(
            score, len(active), applied, config.min_factors_required
        ),
        active_factors=active,
        breakdown=breakdown,
    )


def adaptive_threshold(
    scores: Sequence[DailyScore], configured: float
) -> tuple[float, ThresholdAdjustment]:
    """Decide the threshold to apply to a batch already scored at ``configured``.

    Returns:
        ``(applied_threshold, adjustment)``. ``adjustment`` is
        ``ThresholdAdjustment.NONE`` whenever the applied threshold equals the
        configured one.
    """
    if not scores:
        return configured, ThresholdAdjustment.NONE

    max_score = max(s.score for s in scores)
    qualifying = sum(1 for s in scores if s.above_threshold)

    if qualifying == 0 and max_score > 0:
        candidate = max(NO_QUALIFYING_MULTIPLIER * max_score, NO_QUALIFYING_FLOOR)
        rule = ThresholdAdjustment.NO_QUALIFYING_DAYS
    elif qualifying / len(scores) < SPARSE_QUALIFYING_RATIO and max_score > SPARSE_MIN_MAX_SCORE:
        candidate = max(SPARSE_MULTIPLIER * max_score, SPARSE_FLOOR)
        rule = ThresholdAdjustment.SPARSE_QUALIFYING_DAYS
    else:
        return configured, ThresholdAdjustment.NONE

    candidate = round(candidate, SCORE_PRECISION)
    if candidate >= configured:
        return configured, ThresholdAdjustment.NONE
    return candidate, rule


def score_days(
    pairs: Sequence[tuple[IndicatorRow, FactorVector]],
    config: ScoreConfig,
    adaptive: bool = True,
) -> ScoringResult:
    """Score a batch of days and apply the adaptive threshold once.

    Args:
        pairs:    ``(indicator_row, factor_vector)`` per day, in date order.
        config:   Validated scoring configuration.
        adaptive: When ``False`` the configured threshold is always applied.

    Returns:
        ``ScoringResult`` with one ``DailyScore`` per input pair. Empty input
        yields ``status = no_data`` and no scores.
    """
    if not pairs:
        logger.info("No rows to score", extra=log_context(stage="score"))
        return ScoringResult(
            scores=[],
            configured_threshold=config.threshold,
            applied_threshold=config.threshold,
            min_factors_required=config.min_factors_required,
            status=ScoringStatus.NO_DATA,
        )

    scores = [score_day(vector, row.date, config) for row, vector in pairs]

    applied, adjustment = config.threshold, ThresholdAdjustment.NONE
    if adaptive:
        applied, adjustment = adaptive_threshold(scores, config.threshold)

    if adjustment != ThresholdAdjustment.NONE:
        logger.info(
            "Threshold relaxed from %.4f to %.4f (%s)",
            config.threshold, applied, adjustment.value,
            extra=log_context(stage="score"),
        )
        scores = [
            s.model_copy(update={"above_threshold": is_above_threshold(
                s.score, s.factor_count, applied, config.min_factors_required
            )})
            for s in scores
        ]

    qualifying = sum(1 for s in scores if s.above_threshold)
    status = ScoringStatus.OK if qualifying else ScoringStatus.NO_QUALIFYING_DAYS
    logger.info(
        "Scored %d days: %d above threshold %.4f", len(scores), qualifying, applied,
        extra=log_context(stage="score"),
    )

    return ScoringResult(
        scores=scores,
        configured_threshold=config.threshold,
        applied_threshold=applied,
        adjustment=adjustment,
        min_factors_required=config.min_factors_required,
        max_score=max(s.score for s in scores),
        qualifying_days=qualifying,
        status=status,
    )
