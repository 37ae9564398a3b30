"""
Persistence-shaped output records.

These are the flat rows handed to a persistence collaborator. Each carries
an ``analysis_id`` (symbol or analysis identifier) and a natural key that is
stable across regenerations, so writes can be upserts:

  - ``FactorRow``      keyed by (analysis_id, date)
  - ``DailyScoreRow``  keyed by (analysis_id, date)
  - ``FactorTableRow`` keyed by (analysis_id, transaction_id)

Nothing in this module performs I/O.
"""

from __future__ import annotations

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from surge_scorer.models.factors import ExternalFactors
from surge_scorer.models.scoring import DailyScore, FactorContribution
from surge_scorer.taxonomy.factor_taxonomy import (
    EXTERNAL_FACTORS,
    Factor,
    parse_factor,
)


class FactorRow(BaseModel):
    """One day of indicators plus all 10 factor flags.

    ``open``/``high``/``low`` and ``volume_avg`` are optional so that rows
    written by older producers can still be loaded for regeneration.
    """

    model_config = ConfigDict(frozen=True)

    analysis_id: str
    date: datetime.date
    close: float
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    volume: float = 0.0
    pct_change: Optional[float] = None
    ma20: Optional[float] = None
    ma50: Optional[float] = None
    ma200: Optional[float] = None
    rsi: Optional[float] = None
    volume_avg: Optional[float] = None

    market_up: Optional[bool] = None
    sector_up: Optional[bool] = None
    earnings_window: Optional[bool] = None
    volume_spike: Optional[bool] = None
    break_ma50: Optional[bool] = None
    break_ma200: Optional[bool] = None
    rsi_over_60: Optional[bool] = None
    news_positive: Optional[bool] = None
    short_covering: Optional[bool] = None
    macro_tailwind: Optional[bool] = None

    @property
    def key(self) -> tuple[str, datetime.date]:
        return (self.analysis_id, self.date)

    def external_factors(self) -> ExternalFactors:
        return ExternalFactors(**{f.value: getattr(self, f.value) for f in EXTERNAL_FACTORS})


class DailyScoreRow(BaseModel):
    """A ``DailyScore`` flattened for storage; ``breakdown`` stays structured."""

    model_config = ConfigDict(frozen=True)

    analysis_id: str
    date: datetime.date
    score: float
    factor_count: int
    above_threshold: bool
    breakdown: dict[Factor, FactorContribution]

    @property
    def key(self) -> tuple[str, datetime.date]:
        return (self.analysis_id, self.date)

    @classmethod
    def from_daily_score(cls, analysis_id: str, score: DailyScore) -> "DailyScoreRow":
        return cls(
            analysis_id=analysis_id,
            date=score.date,
            score=score.score,
            factor_count=score.factor_count,
            above_threshold=score.above_threshold,
            breakdown=score.breakdown,
        )


class FactorTableRow(BaseModel):
    """Transaction-indexed factor subset.

    ``factor_data`` maps each factor name to 1 (fired), 0 (evaluated, did not
    fire) or ``None`` (unknown). Externally-sourced factors are always ``None``
    when the row is produced by this package.
    """

    model_config = ConfigDict(frozen=True)

    analysis_id: str
    transaction_id: int
    date: datetime.date
    factor_data: dict[str, Optional[int]]

    @field_validator("transaction_id")
    @classmethod
    def validate_transaction_id(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"transaction_id must be >= 1, got {v}.")
        return v

    @field_validator("factor_data")
    @classmethod
    def validate_factor_data(cls, v: dict[str, Optional[int]]) -> dict[str, Optional[int]]:
        for name, flag in v.items():
            parse_factor(name)
            if flag not in (0, 1, None):
                raise ValueError(f"factor_data['{name}'] must be 0, 1 or null, got {flag!r}.")
        return v

    @property
    def key(self) -> tuple[str, int]:
        return (self.analysis_id, self.transaction_id)
