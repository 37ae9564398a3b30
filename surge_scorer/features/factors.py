"""
Factor derivation: ``IndicatorRow`` → tri-state ``FactorVector``.

Deterministic factors
---------------------
- ``volume_spike`` = ``volume > k × volume_avg`` (``k`` = ``volume_spike_multiplier``).
- ``break_ma50``   = ``close > ma50``  (simple above test, not a crossing test).
- ``break_ma200``  = ``close > ma200`` (same rule).
- ``rsi_over_60``  = ``rsi > rsi_threshold`` (60 by default).

When the indicator a factor needs is still in warm-up (``None``), or the
volume baseline is zero, the factor is ``False``. Insufficient history never
reads as a positive signal.

External factors
----------------
The six externally-sourced factors are not computed here. The caller may
pass an ``ExternalFactors`` instance (for example values carried over from a
stored row); it is attached unchanged. Without one, every external slot is
``None``.
"""

from __future__ import annotations

import datetime
import logging
from typing import Mapping, Optional, Sequence

from surge_scorer.config import FactorConfig
from surge_scorer.models.factors import UNKNOWN_EXTERNAL, ExternalFactors, FactorVector
from surge_scorer.models.series import IndicatorRow

logger = logging.getLogger(__name__)


def derive_factors(
    row: IndicatorRow,
    config: Optional[FactorConfig] = None,
    external: ExternalFactors = UNKNOWN_EXTERNAL,
) -> FactorVector:
    """Derive the factor vector for one day.

    Args:
        row:      Indicator row for the day.
        config:   Spike multiplier and RSI threshold. Defaults to ``FactorConfig()``.
        external: Enrichment-owned factor values to attach, all ``None`` by default.

    Returns:
        A new frozen ``FactorVector``.
    """
    if config is None:
        config = FactorConfig()

    return FactorVector(
        volume_spike=_volume_spike(row, config.volume_spike_multiplier),
        break_ma50=_above(row.close, row.ma50),
        break_ma200=_above(row.close, row.ma200),
        rsi_over_60=row.rsi is not None and row.rsi > config.rsi_threshold,
        external=external,
    )


def derive_factor_vectors(
    rows: Sequence[IndicatorRow],
    config: Optional[FactorConfig] = None,
    external_by_date: Optional[Mapping[datetime.date, ExternalFactors]] = None,
) -> list[FactorVector]:
    """Derive one factor vector per indicator row, in input order.

    ``external_by_date`` supplies enrichment values for specific dates; days
    not in the mapping get all-``None`` external factors.
    """
    external_by_date = external_by_date or {}
    vectors = [
        derive_factors(row, config, external_by_date.get(row.date, UNKNOWN_EXTERNAL))
        for row in rows
    ]
    logger.debug("Derived factor vectors for %d rows", len(vectors))
    return vectors


# ── Internal helpers ───────────────────────────────────────────────────────────


def _volume_spike(row: IndicatorRow, multiplier: float) -> bool:
    if row.volume_avg is None or row.volume_avg <= 0:
        return False
    return row.volume > multiplier * row.volume_avg


def _above(close: float, average: Optional[float]) -> bool:
    return average is not None and close > average
