"""
Single-shot prediction output.

A ``Prediction`` scores one hypothetical factor vector, not a stored day.
It is frozen like every other output model.
"""

from __future__ import annotations

import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from surge_scorer.taxonomy.factor_taxonomy import Factor, FactorCategory


class PredictionCategory(StrEnum):
    """Probability band a prediction falls into."""

    HIGH_PROBABILITY = "HIGH_PROBABILITY"
    """Score reached the threshold."""

    MODERATE = "MODERATE"
    """Score reached 70% of the threshold."""

    LOW_PROBABILITY = "LOW_PROBABILITY"
    """Everything below 70% of the threshold."""


class ActiveFactor(BaseModel):
    """A factor that is ``True`` in the predicted vector."""

    model_config = ConfigDict(frozen=True)

    factor: Factor
    name: str
    description: str
    category: FactorCategory
    weight: float


class Prediction(BaseModel):
    """Score, category, confidence and advice for one hypothetical day.

    Attributes:
        symbol: Instrument symbol the prediction is for.
        as_of: Optional date label supplied by the caller.
        score: Σ weight over active factors.
        threshold: Configured threshold the score was compared against.
        factor_count: Number of ``True`` factors.
        above_threshold: Same verdict rule as a daily score.
        category: Probability band.
        confidence: 0–100, monotonic in score and factor count.
        active_factors: Catalogue entries for the ``True`` factors.
        recommendations: Rule-based advice lines.
        interpretation: One-sentence summary.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    as_of: Optional[datetime.date] = None
    score: float
    threshold: float
    factor_count: int
    above_threshold: bool
    category: PredictionCategory
    confidence: float
    active_factors: list[ActiveFactor]
    recommendations: list[str]
    interpretation: str

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"confidence must be within [0, 100], got {v}.")
        return v
