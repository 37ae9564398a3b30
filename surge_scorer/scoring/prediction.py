"""
Single-shot prediction for a hypothetical factor vector.

Runs the same score and verdict arithmetic as ``scoring.engine.score_day``
on one vector that need not belong to any stored series, then adds a
category, a confidence figure and rule-based advice.

Category
--------
    score >= threshold          → HIGH_PROBABILITY
    score >= 0.7 × threshold    → MODERATE
    otherwise                   → LOW_PROBABILITY

Confidence (0–100)
------------------
    confidence = min(100, 100 × score / Σ weights + 5 × max(0, factor_count − 1))

0 when every weight is zero. Non-decreasing in both score and factor count,
so switching an extra factor on never lowers it. Rounded to 2 decimals.

Recommendations
---------------
One fixed line per active factor, taken from ``RECOMMENDATION_CATALOG`` in
canonical factor order. ``NO_SIGNAL_RECOMMENDATION`` is returned alone when
no factor is active. No network or model call is involved.
"""

from __future__ import annotations

import datetime
import logging
from typing import Mapping, Optional, Union

from surge_scorer.models.factors import FactorVector
from surge_scorer.models.prediction import ActiveFactor, Prediction, PredictionCategory
from surge_scorer.models.scoring import DEFAULT_SCORE_CONFIG, ScoreConfig
from surge_scorer.scoring.engine import is_above_threshold, score_vector
from surge_scorer.taxonomy.factor_taxonomy import FACTOR_DESCRIPTIONS, Factor

logger = logging.getLogger(__name__)

MODERATE_RATIO = 0.7
FACTOR_COUNT_BONUS = 5.0

RECOMMENDATION_CATALOG: dict[Factor, str] = {
    Factor.MARKET_UP:       "Watch market momentum for confirmation",
    Factor.SECTOR_UP:       "Compare against sector peers before entering",
    Factor.EARNINGS_WINDOW: "Be cautious of earnings-related volatility",
    Factor.VOLUME_SPIKE:    "Monitor for continued volume support",
    Factor.BREAK_MA50:      "Monitor for sustained MA50 breakout",
    Factor.BREAK_MA200:     "Confirm the long-term trend holds above MA200",
    Factor.RSI_OVER_60:     "Watch for potential overbought conditions",
    Factor.NEWS_POSITIVE:   "Verify the news catalyst is not already priced in",
    Factor.SHORT_COVERING:  "Expect sharp reversals once short covering fades",
    Factor.MACRO_TAILWIND:  "Track upcoming CPI / Fed releases for a change in tone",
}

NO_SIGNAL_RECOMMENDATION = "No active factors; no signal to act on"

_INTERPRETATIONS: dict[PredictionCategory, str] = {
    PredictionCategory.HIGH_PROBABILITY: (
        "{symbol} shows high probability of strong upward movement based on current factors"
    ),
    PredictionCategory.MODERATE: "{symbol} shows moderate potential for price movement",
    PredictionCategory.LOW_PROBABILITY: (
        "{symbol} shows low probability of significant movement today"
    ),
}


def categorize(score: float, threshold: float) -> PredictionCategory:
    if score >= threshold:
        return PredictionCategory.HIGH_PROBABILITY
    if score >= MODERATE_RATIO * threshold:
        return PredictionCategory.MODERATE
    return PredictionCategory.LOW_PROBABILITY


def compute_confidence(score: float, factor_count: int, total_weight: float) -> float:
    """Confidence in [0, 100]; see module docstring for the formula."""
    if total_weight <= 0:
        return 0.0
    raw = 100.0 * score / total_weight + FACTOR_COUNT_BONUS * max(0, factor_count - 1)
    return round(min(100.0, max(0.0, raw)), 2)


def recommendations_for(active: list[Factor]) -> list[str]:
    if not active:
        return [NO_SIGNAL_RECOMMENDATION]
    return [RECOMMENDATION_CATALOG[f] for f in active]


def predict(
    symbol: str,
    factors: Union[FactorVector, Mapping[str, Optional[bool]]],
    config: ScoreConfig = DEFAULT_SCORE_CONFIG,
    as_of: Optional[datetime.date] = None,
) -> Prediction:
    """Score one hypothetical day and describe it.

    Args:
        symbol:  Instrument symbol, echoed into the output.
        factors: A ``FactorVector`` or a ``{factor_name: bool | None}`` mapping.
                 Missing factors are unknown (``None``).
        config:  Weights, threshold and minimum factor count.
        as_of:   Optional date label for the prediction.

    Raises:
        ValueError: On an empty symbol, an unknown factor name, or a
            non-boolean factor value.
    """
    if not symbol or not symbol.strip():
        raise ValueError("symbol must be a non-empty string.")

    vector = factors if isinstance(factors, FactorVector) else FactorVector.from_mapping(factors)
    score, _ = score_vector(vector, config)
    active = vector.active_factors()
    category = categorize(score, config.threshold)

    prediction = Prediction(
        symbol=symbol.strip().upper(),
        as_of=as_of,
        score=score,
        threshold=config.threshold,
        factor_count=len(active),
        above_threshold=is_above_threshold(
            score, len(active), config.threshold, config.min_factors_required
        ),
        category=category,
        confidence=compute_confidence(score, len(active), config.total_weight),
        active_factors=[
            ActiveFactor(
                factor=f,
                name=FACTOR_DESCRIPTIONS[f].name,
                description=FACTOR_DESCRIPTIONS[f].description,
                category=FACTOR_DESCRIPTIONS[f].category,
                weight=config.weight(f),
            )
            for f in active
        ],
        recommendations=recommendations_for(active),
        interpretation=_INTERPRETATIONS[category].format(symbol=symbol.strip().upper()),
    )
    logger.debug(
        "Prediction for %s: score=%.4f category=%s", prediction.symbol, score, category.value
    )
    return prediction
