"""
Builders for the persistence-shaped output records.

Every builder is pure: it takes already-computed rows/vectors/scores and
returns frozen record models keyed so that re-running an analysis produces
the same keys (idempotent upserts on the persistence side).

Factor table
------------
``build_factor_table`` keeps only days whose ``pct_change`` is defined
(optionally also ``>= min_pct_change``) and numbers them 1..n in date order
as ``transaction_id``. ``factor_data`` holds 1/0 for the deterministic
factors and ``None`` for any factor whose value is unknown.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from surge_scorer.models.factors import FactorVector
from surge_scorer.models.records import DailyScoreRow, FactorRow, FactorTableRow
from surge_scorer.models.scoring import DailyScore
from surge_scorer.models.series import IndicatorRow
from surge_scorer.taxonomy.factor_taxonomy import ALL_FACTORS
from surge_scorer.utils.logging import log_context

logger = logging.getLogger(__name__)


def _check_lengths(rows: Sequence, vectors: Sequence) -> None:
    if len(rows) != len(vectors):
        raise ValueError(f"rows ({len(rows)}) and vectors ({len(vectors)}) differ in length.")


def build_factor_rows(
    analysis_id: str,
    rows: Sequence[IndicatorRow],
    vectors: Sequence[FactorVector],
) -> list[FactorRow]:
    """One ``FactorRow`` per day: indicators plus all 10 tri-state flags."""
    _check_lengths(rows, vectors)
    return [
        FactorRow(
            analysis_id=analysis_id,
            date=row.date,
            close=row.close,
            open=row.open,
            high=row.high,
            low=row.low,
            volume=row.volume,
            pct_change=row.pct_change,
            ma20=row.ma20,
            ma50=row.ma50,
            ma200=row.ma200,
            rsi=row.rsi,
            volume_avg=row.volume_avg,
            **vector.as_dict(),
        )
        for row, vector in zip(rows, vectors)
    ]


def build_daily_score_rows(
    analysis_id: str, scores: Sequence[DailyScore]
) -> list[DailyScoreRow]:
    return [DailyScoreRow.from_daily_score(analysis_id, s) for s in scores]


def build_factor_table(
    analysis_id: str,
    rows: Sequence[IndicatorRow],
    vectors: Sequence[FactorVector],
    min_pct_change: Optional[float] = None,
) -> list[FactorTableRow]:
    """Transaction-indexed subset of days with a defined pct change.

    Args:
        analysis_id:    Symbol or analysis identifier.
        rows:           Indicator rows in date order.
        vectors:        Factor vector per row.
        min_pct_change: When set, only days with ``pct_change >= min_pct_change``.
    """
    _check_lengths(rows, vectors)
    table: list[FactorTableRow] = []
    for row, vector in zip(rows, vectors):
        if row.pct_change is None:
            continue
        if min_pct_change is not None and row.pct_change < min_pct_change:
            continue
        factor_data: dict[str, Optional[int]] = {}
        for f in ALL_FACTORS:
            value = vector.get(f)
            factor_data[f.value] = None if value is None else int(value)
        table.append(
            FactorTableRow(
                analysis_id=analysis_id,
                transaction_id=len(table) + 1,
                date=row.date,
                factor_data=factor_data,
            )
        )
    logger.debug(
        "Built factor table with %d transactions", len(table),
        extra=log_context(analysis_id, "records"),
    )
    return table
