"""
Windowed indicators over an ordered OHLCV series.

Purpose
-------
Given the ascending ``OhlcvRow`` list produced by ``ingestion.series_csv``,
compute one ``IndicatorRow`` per input row. Every indicator only looks at the
current row and rows before it; nothing reads ahead.

Definitions
-----------
- **pct_change[i]** = ``(close[i] - close[i-1]) / close[i-1] * 100`` for i > 0.
  ``None`` on the first row. A ``None`` pct_change never feeds factor or score
  arithmetic.
- **SMA(w)[i]** = mean of ``close[i-w+1 .. i]`` (current day included).
  ``None`` while ``i < w - 1``. Windows are 20, 50 and 200.
- **RSI(n)[i]** uses the *simple rolling average* variant (not Wilder
  smoothing): over the last ``n`` close-to-close changes ending at ``i``,

      avg_gain = Σ max(change, 0) / n
      avg_loss = Σ max(-change, 0) / n
      RSI      = 100 - 100 / (1 + avg_gain / avg_loss)

  Edge cases:
    - ``avg_loss == 0`` and ``avg_gain > 0`` → 100.0
    - ``avg_loss == 0`` and ``avg_gain == 0`` (flat window) → ``None``; a flat
      series has no momentum and must not read as overbought.
  ``None`` while fewer than ``n + 1`` rows are available, i.e. for ``i < n``.
- **volume_avg(w)[i]** = mean of ``volume[i-w+1 .. i]``, built exactly like the
  price SMA (current day included). ``None`` while ``i < w - 1``.

Determinism
-----------
Sums are taken over explicit slices in index order, so identical inputs and
window sizes always produce identical floats.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from surge_scorer.config import IndicatorConfig
from surge_scorer.models.series import IndicatorRow, OhlcvRow

logger = logging.getLogger(__name__)

MA_WINDOWS: tuple[int, ...] = (20, 50, 200)


def pct_changes(closes: Sequence[float]) -> list[Optional[float]]:
    """Close-to-close percentage change; ``None`` at index 0."""
    out: list[Optional[float]] = []
    for i, close in enumerate(closes):
        if i == 0:
            out.append(None)
            continue
        prev = closes[i - 1]
        out.append((close - prev) / prev * 100.0 if prev else None)
    return out


def sma(values: Sequence[float], window: int) -> list[Optional[float]]:
    """Trailing simple moving average including the current value.

    Raises:
        ValueError: If ``window`` is not positive.
    """
    if window <= 0:
        raise ValueError(f"window must be positive, got {window}.")
    out: list[Optional[float]] = []
    for i in range(len(values)):
        if i < window - 1:
            out.append(None)
        else:
            out.append(sum(values[i - window + 1 : i + 1]) / window)
    return out


def rsi(closes: Sequence[float], period: int = 14) -> list[Optional[float]]:
    """Simple-average RSI on a 0–100 scale (see module docstring).

    Raises:
        ValueError: If ``period`` is not positive.
    """
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}.")

    changes = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    out: list[Optional[float]] = []
    for i in range(len(closes)):
        if i < period:
            out.append(None)
            continue
        # changes[j] is the move from close[j] to close[j+1].
        window = changes[i - period : i]
        avg_gain = sum(c for c in window if c > 0) / period
        avg_loss = sum(-c for c in window if c < 0) / period
        if avg_loss == 0:
            out.append(100.0 if avg_gain > 0 else None)
            continue
        value = 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)
        out.append(min(100.0, max(0.0, value)))
    return out


def compute_indicators(
    rows: Sequence[OhlcvRow],
    config: Optional[IndicatorConfig] = None,
) -> list[IndicatorRow]:
    """Compute every indicator for an ascending OHLCV series.

    Args:
        rows:   Rows sorted ascending by date with unique dates, as returned
                by ``parse_series()``.
        config: RSI period and volume window. Defaults to ``IndicatorConfig()``.

    Returns:
        One ``IndicatorRow`` per input row, in the same order. Empty input
        yields an empty list.

    Raises:
        ValueError: If ``rows`` are not strictly ascending by date.
    """
    if config is None:
        config = IndicatorConfig()
    if not rows:
        return []

    for prev, cur in zip(rows, rows[1:]):
        if cur.date <= prev.date:
            raise ValueError(
                f"Rows must be strictly ascending by date; {cur.date} follows {prev.date}."
            )

    closes = [r.close for r in rows]
    volumes = [r.volume for r in rows]

    changes = pct_changes(closes)
    mas = {w: sma(closes, w) for w in MA_WINDOWS}
    rsis = rsi(closes, config.rsi_period)
    volume_avgs = sma(volumes, config.volume_window)

    result: list[IndicatorRow] = []
    for i, row in enumerate(rows):
        result.append(
            IndicatorRow(
                **row.model_dump(),
                pct_change=changes[i],
                ma20=mas[20][i],
                ma50=mas[50][i],
                ma200=mas[200][i],
                rsi=rsis[i],
                volume_avg=volume_avgs[i],
            )
        )

    logger.debug(
        "Computed indicators for %d rows (%s → %s)",
        len(result), rows[0].date, rows[-1].date,
    )
    return result
