"""
Shared pytest fixtures for the surge-scorer test suite.

Provides:
  - ``make_rows``: factory building an ascending ``OhlcvRow`` series from
    closes (and optionally volumes), one calendar day apart.
  - ``make_csv``: factory rendering closes/volumes as delimited text.
  - ``spike_series``: a 260-row rising series with a 3× volume spike on one day.
  - ``score_config``: the shipped default ``ScoreConfig``.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Callable, Optional

import pytest

from surge_scorer.models.scoring import DEFAULT_SCORE_CONFIG, ScoreConfig
from surge_scorer.models.series import OhlcvRow

START = date(2024, 1, 1)
SPIKE_INDEX = 240


def _rows(
    closes: list[float],
    volumes: Optional[list[float]] = None,
    start: date = START,
) -> list[OhlcvRow]:
    volumes = volumes if volumes is not None else [1_000.0] * len(closes)
    return [
        OhlcvRow(
            date=start + timedelta(days=i),
            open=close,
            high=close * 1.01,
            low=close * 0.99,
            close=close,
            volume=volumes[i],
        )
        for i, close in enumerate(closes)
    ]


# ── Series factories ──────────────────────────────────────────────────────────

@pytest.fixture
def make_rows() -> Callable[..., list[OhlcvRow]]:
    """Return ``_rows(closes, volumes=None, start=2024-01-01)``."""
    return _rows


@pytest.fixture
def make_csv() -> Callable[..., str]:
    """Return a factory rendering closes/volumes as comma-delimited text."""

    def _csv(
        closes: list[float],
        volumes: Optional[list[float]] = None,
        start: date = START,
        header: str = "Date,Open,High,Low,Close,Volume",
    ) -> str:
        lines = [header]
        for row in _rows(closes, volumes, start):
            lines.append(
                f"{row.date.isoformat()},{row.open},{row.high},{row.low},"
                f"{row.close},{row.volume}"
            )
        return "\n".join(lines) + "\n"

    return _csv


@pytest.fixture
def spike_series() -> list[OhlcvRow]:
    """260 rows, closes rising 0.5 per day, volume 3× on ``SPIKE_INDEX``.

    The trailing 20-day average on the spike day includes the spike itself:
    (19 × 1000 + 3000) / 20 = 1100, so volume is well above 1.5 × average.
    Close is above ma50 throughout a rising series.
    """
    closes = [100.0 + 0.5 * i for i in range(260)]
    volumes = [1_000.0] * 260
    volumes[SPIKE_INDEX] = 3_000.0
    return _rows(closes, volumes)


@pytest.fixture
def score_config() -> ScoreConfig:
    return DEFAULT_SCORE_CONFIG
