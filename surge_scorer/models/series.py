"""
Price series models - parsed daily bars and their indicator-enriched form.

Two-stage design:
  1. ``OhlcvRow``      - one trading day exactly as parsed from the source text.
  2. ``IndicatorRow``  - the same day plus windowed indicators computed by
                         ``features.indicators.compute_indicators()``.

Indicator fields are ``None`` while their warm-up window is not yet filled.
``None`` is the only "undefined" representation: NaN never appears in these
models, so downstream code can test ``is None`` and nothing else.

Both models are frozen (immutable) after construction.
"""

from __future__ import annotations

import datetime
import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class OhlcvRow(BaseModel):
    """One trading day of open/high/low/close/volume.

    Attributes:
        date: Trading date. Unique within a series.
        open: Opening price (> 0).
        high: Session high (> 0).
        low: Session low (> 0).
        close: Closing price (> 0).
        volume: Shares traded (>= 0).
    """

    model_config = ConfigDict(frozen=True)

    date: datetime.date
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @field_validator("open", "high", "low", "close")
    @classmethod
    def validate_price_positive(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError(f"Prices must be positive finite numbers, got {v}.")
        return v

    @field_validator("volume")
    @classmethod
    def validate_volume_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError(f"Volume must be a non-negative finite number, got {v}.")
        return v


class IndicatorRow(OhlcvRow):
    """An ``OhlcvRow`` enriched with windowed indicators.

    Attributes:
        pct_change: Close-to-close % change; ``None`` on the first row.
        ma20: 20-day simple moving average of close, or ``None``.
        ma50: 50-day simple moving average of close, or ``None``.
        ma200: 200-day simple moving average of close, or ``None``.
        rsi: 14-day RSI on a 0–100 scale, or ``None``.
        volume_avg: Trailing simple average of volume, or ``None``.
    """

    pct_change: Optional[float] = None
    ma20: Optional[float] = None
    ma50: Optional[float] = None
    ma200: Optional[float] = None
    rsi: Optional[float] = None
    volume_avg: Optional[float] = None

    @field_validator("rsi")
    @classmethod
    def validate_rsi_range(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0.0 <= v <= 100.0:
            raise ValueError(f"RSI must be within [0, 100], got {v}.")
        return v
