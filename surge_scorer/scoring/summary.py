"""
Descriptive statistics over a scored batch.

Three summaries:
  - ``summarize_factors``  - how often each factor fired across all days.
  - ``correlate_factors``  - per factor: occurrences, frequency, average
    return and hit rate on the days it fired, with a direction sign versus
    the overall average return.
  - ``summarize_scores``   - qualifying-day counts and score min/avg/max, plus
    factor frequency among qualifying days.

These are descriptive counts and averages only. There is no significance
testing; a positive direction on a handful of days means very little.

Not-available values
--------------------
Any ratio or average over an empty subset is ``None``, never 0. A caller can
tell "no qualifying days" apart from "qualifying days where the factor never
fired" (``None`` vs ``0.0``).

Returns
-------
"Return" for a day is its ``pct_change``. With ``horizon="next_day"`` it is
the following day's ``pct_change`` instead; the last day then has no return.
Days without a defined return are left out of return statistics but still
count towards occurrences and frequency.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

from surge_scorer.models.factors import FactorVector
from surge_scorer.models.scoring import ScoringResult
from surge_scorer.models.series import IndicatorRow
from surge_scorer.taxonomy.factor_taxonomy import ALL_FACTORS, Factor

logger = logging.getLogger(__name__)

ReturnHorizon = Literal["same_day", "next_day"]


@dataclass
class FactorSummary:
    """Factor activity across every day of a series.

    Attributes:
        total_days:              Number of factor vectors summarised.
        factor_counts:           Days each factor was ``True``.
        factor_frequency:        ``factor_counts`` as a % of ``total_days``;
                                 ``None`` per factor when ``total_days`` is 0.
        average_factors_per_day: Mean ``factor_count``; ``None`` when empty.
    """

    total_days: int
    factor_counts: dict[Factor, int] = field(default_factory=dict)
    factor_frequency: dict[Factor, Optional[float]] = field(default_factory=dict)
    average_factors_per_day: Optional[float] = None


@dataclass
class FactorStats:
    """Return association for one factor.

    Attributes:
        factor:       The factor.
        occurrences:  Considered days on which the factor was ``True``.
        frequency:    ``occurrences`` as a % of considered days, or ``None``.
        avg_return:   Mean return on active days with a defined return, or ``None``.
        hit_rate:     Fraction (0–1) of those days with a positive return, or ``None``.
        direction:    +1 if ``avg_return`` beats the overall average return,
                      -1 if it does not, 0 if there is nothing to compare.
    """

    factor: Factor
    occurrences: int
    frequency: Optional[float]
    avg_return: Optional[float]
    hit_rate: Optional[float]
    direction: int


@dataclass
class FactorCorrelation:
    """Per-factor return statistics over a (possibly filtered) set of days."""

    days_considered: int
    only_qualifying: bool
    horizon: str
    overall_avg_return: Optional[float]
    stats: dict[Factor, FactorStats] = field(default_factory=dict)


@dataclass
class ScoreSummary:
    """Counts and score range for a scored batch.

    Attributes:
        total_days:                   Days scored.
        qualifying_days:              Days with ``above_threshold``.
        qualifying_pct:               ``qualifying_days`` as a % of total, or ``None``.
        average_score:                Mean score, or ``None`` when empty.
        max_score:                    Highest score, or ``None``.
        min_score:                    Lowest score, or ``None``.
        applied_threshold:            Threshold the verdicts were computed against.
        qualifying_factor_frequency:  Per-factor % of qualifying days the
                                      factor was active; ``None`` when no day
                                      qualified.
    """

    total_days: int
    qualifying_days: int
    qualifying_pct: Optional[float]
    average_score: Optional[float]
    max_score: Optional[float]
    min_score: Optional[float]
    applied_threshold: float
    qualifying_factor_frequency: Optional[dict[Factor, float]] = None


def summarize_factors(vectors: Sequence[FactorVector]) -> FactorSummary:
    """Count how often each factor fired."""
    total = len(vectors)
    counts = {f: 0 for f in ALL_FACTORS}
    active_total = 0
    for vector in vectors:
        active = vector.active_factors()
        active_total += len(active)
        for f in active:
            counts[f] += 1

    return FactorSummary(
        total_days=total,
        factor_counts=counts,
        factor_frequency={f: _pct(counts[f], total) for f in ALL_FACTORS},
        average_factors_per_day=active_total / total if total else None,
    )


def correlate_factors(
    rows: Sequence[IndicatorRow],
    vectors: Sequence[FactorVector],
    scores: Optional[ScoringResult] = None,
    only_qualifying: bool = False,
    horizon: ReturnHorizon = "same_day",
) -> FactorCorrelation:
    """Relate each factor to the returns of the days it fired on.

    Args:
        rows:            Indicator rows (source of ``pct_change``), in date order.
        vectors:         Factor vector per row.
        scores:          Scored batch; required when ``only_qualifying`` is set.
        only_qualifying: Restrict to days with ``above_threshold``.
        horizon:         ``"same_day"`` or ``"next_day"`` return.

    Raises:
        ValueError: On length mismatches, an unknown horizon, or
            ``only_qualifying`` without ``scores``.
    """
    if len(rows) != len(vectors):
        raise ValueError(f"rows ({len(rows)}) and vectors ({len(vectors)}) differ in length.")
    if horizon not in ("same_day", "next_day"):
        raise ValueError(f"horizon must be 'same_day' or 'next_day', got '{horizon}'.")
    if only_qualifying:
        if scores is None:
            raise ValueError("only_qualifying requires a ScoringResult.")
        if len(scores.scores) != len(rows):
            raise ValueError(
                f"scores ({len(scores.scores)}) and rows ({len(rows)}) differ in length."
            )

    indices = [
        i for i in range(len(rows))
        if not only_qualifying or scores.scores[i].above_threshold  # type: ignore[union-attr]
    ]
    returns = {i: _day_return(rows, i, horizon) for i in indices}
    overall = _mean([r for r in returns.values() if r is not None])

    stats: dict[Factor, FactorStats] = {}
    for f in ALL_FACTORS:
        active_days = [i for i in indices if vectors[i].get(f) is True]
        active_returns = [returns[i] for i in active_days if returns[i] is not None]
        avg = _mean(active_returns)
        stats[f] = FactorStats(
            factor=f,
            occurrences=len(active_days),
            frequency=_pct(len(active_days), len(indices)),
            avg_return=avg,
            hit_rate=(
                sum(1 for r in active_returns if r > 0) / len(active_returns)
                if active_returns else None
            ),
            direction=_direction(avg, overall),
        )

    logger.debug(
        "Correlated %d factors over %d days (only_qualifying=%s, horizon=%s)",
        len(stats), len(indices), only_qualifying, horizon,
    )
    return FactorCorrelation(
        days_considered=len(indices),
        only_qualifying=only_qualifying,
        horizon=horizon,
        overall_avg_return=overall,
        stats=stats,
    )


def summarize_scores(result: ScoringResult) -> ScoreSummary:
    """Qualifying-day counts, score range, and qualifying-day factor mix."""
    scores = result.scores
    total = len(scores)
    qualifying = [s for s in scores if s.above_threshold]
    values = [s.score for s in scores]

    frequency: Optional[dict[Factor, float]] = None
    if qualifying:
        frequency = {
            f: 100.0 * sum(1 for s in qualifying if f in s.active_factors) / len(qualifying)
            for f in ALL_FACTORS
        }

    return ScoreSummary(
        total_days=total,
        qualifying_days=len(qualifying),
        qualifying_pct=_pct(len(qualifying), total),
        average_score=_mean(values),
        max_score=max(values) if values else None,
        min_score=min(values) if values else None,
        applied_threshold=result.applied_threshold,
        qualifying_factor_frequency=frequency,
    )


# ── Internal helpers ───────────────────────────────────────────────────────────


def _pct(count: int, total: int) -> Optional[float]:
    return 100.0 * count / total if total else None


def _mean(values: Sequence[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def _day_return(rows: Sequence[IndicatorRow], i: int, horizon: str) -> Optional[float]:
    if horizon == "next_day":
        return rows[i + 1].pct_change if i + 1 < len(rows) else None
    return rows[i].pct_change


def _direction(avg: Optional[float], overall: Optional[float]) -> int:
    if avg is None or overall is None:
        return 0
    return 1 if avg > overall else -1
