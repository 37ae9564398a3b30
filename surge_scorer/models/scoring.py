"""
Scoring configuration and daily score models.

``ScoreConfig`` is validated at construction: an unknown factor name, a
negative weight, a threshold outside (0, 1) or an out-of-range
``min_factors_required`` raises ``pydantic.ValidationError`` immediately,
before any series is scored.

``DailyScore`` carries a full per-factor ``breakdown`` so a stored score can
be audited (and re-parsed from JSON) without re-running the engine.

``ScoringResult`` wraps a batch of daily scores together with the threshold
that was actually applied, which may differ from the configured one when
adaptive relaxation kicked in (see ``scoring.engine``).
"""

from __future__ import annotations

import datetime
import math
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from surge_scorer.taxonomy.factor_taxonomy import ALL_FACTORS, Factor, parse_factor


class ScoreConfig(BaseModel):
    """Weights, threshold, and minimum active-factor count for scoring.

    Attributes:
        weights: Factor → non-negative weight. Factors absent from the map
            weigh 0.0.
        threshold: Score a day must reach to qualify; in (0.0, 1.0).
        min_factors_required: Minimum number of ``True`` factors a day needs
            to qualify, regardless of score.
    """

    model_config = ConfigDict(frozen=True)

    weights: dict[Factor, float]
    threshold: float = 0.30
    min_factors_required: int = 2

    @field_validator("weights", mode="before")
    @classmethod
    def validate_weight_names(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        return {parse_factor(str(name)): weight for name, weight in v.items()}

    @field_validator("weights")
    @classmethod
    def validate_weight_values(cls, v: dict[Factor, float]) -> dict[Factor, float]:
        for factor, weight in v.items():
            if not math.isfinite(weight) or weight < 0:
                raise ValueError(
                    f"Weight for '{factor.value}' must be a non-negative number, got {weight}."
                )
        return v

    @field_validator("threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError(f"threshold must be in (0.0, 1.0), got {v}.")
        return v

    @field_validator("min_factors_required")
    @classmethod
    def validate_min_factors(cls, v: int) -> int:
        if not 0 <= v <= len(ALL_FACTORS):
            raise ValueError(
                f"min_factors_required must be in [0, {len(ALL_FACTORS)}], got {v}."
            )
        return v

    def weight(self, factor: Factor) -> float:
        return self.weights.get(factor, 0.0)

    @property
    def total_weight(self) -> float:
        """Sum of all weights; the upper bound of any daily score."""
        total = 0.0
        for factor in ALL_FACTORS:
            total += self.weight(factor)
        return total


# Technical factors outweigh the unproven sentiment/macro ones.
DEFAULT_SCORE_CONFIG = ScoreConfig(
    weights={
        Factor.VOLUME_SPIKE:    0.20,
        Factor.MARKET_UP:       0.15,
        Factor.EARNINGS_WINDOW: 0.15,
        Factor.BREAK_MA50:      0.15,
        Factor.RSI_OVER_60:     0.10,
        Factor.SECTOR_UP:       0.10,
        Factor.BREAK_MA200:     0.05,
        Factor.NEWS_POSITIVE:   0.05,
        Factor.SHORT_COVERING:  0.03,
        Factor.MACRO_TAILWIND:  0.02,
    },
    threshold=0.30,
    min_factors_required=2,
)


class FactorContribution(BaseModel):
    """One factor's share of a daily score."""

    model_config = ConfigDict(frozen=True)

    active: bool
    weight: float
    contribution: float


class DailyScore(BaseModel):
    """Weighted score and threshold verdict for one trading day.

    Attributes:
        date: Trading date.
        score: Σ weight over active factors; within [0, Σ weights].
        factor_count: Number of factors that are exactly ``True``.
        above_threshold: ``score >= applied threshold`` and
            ``factor_count >= min_factors_required``.
        active_factors: The ``True`` factors, in canonical order.
        breakdown: Per-factor ``{active, weight, contribution}`` for all 10 factors.
    """

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    score: float
    factor_count: int
    above_threshold: bool
    active_factors: list[Factor]
    breakdown: dict[Factor, FactorContribution]


class ThresholdAdjustment(StrEnum):
    """Which rule (if any) replaced the configured threshold for a batch."""

    NONE = "none"
    """The configured threshold was applied unchanged."""

    NO_QUALIFYING_DAYS = "no_qualifying_days"
    """No day qualified; threshold relaxed to max(0.75 × max score, 0.15)."""

    SPARSE_QUALIFYING_DAYS = "sparse_qualifying_days"
    """Under 5% of days qualified; threshold relaxed to max(0.60 × max score, 0.20)."""


class ScoringStatus(StrEnum):
    """Outcome of scoring a batch."""

    NO_DATA = "no_data"
    """The batch was empty; nothing was scored."""

    NO_QUALIFYING_DAYS = "no_qualifying_days"
    """Days were scored but none qualified, even after relaxation."""

    OK = "ok"
    """At least one day qualified."""


class ScoringResult(BaseModel):
    """A scored batch plus the threshold actually applied to it."""

    model_config = ConfigDict(frozen=True)

    scores: list[DailyScore]
    configured_threshold: float
    applied_threshold: float
    adjustment: ThresholdAdjustment = ThresholdAdjustment.NONE
    min_factors_required: int
    max_score: Optional[float] = None
    qualifying_days: int = 0
    status: ScoringStatus

    @property
    def threshold_adjusted(self) -> bool:
        return self.adjustment != ThresholdAdjustment.NONE
