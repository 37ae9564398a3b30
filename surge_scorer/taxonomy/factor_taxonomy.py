"""
Factor taxonomy for daily surge scoring.

Two dimensions describe every factor:
  - ``Factor``         - the *what*: which signal is being asserted for a day?
  - ``FactorCategory`` - the *kind*: technical, fundamental, market, or sentiment.

Factors are further split by *ownership*:
  - ``DETERMINISTIC_FACTORS`` are computed from price/volume history by
    ``features.factors.derive_factors()``.
  - ``EXTERNAL_FACTORS`` need data this package never sees (index moves,
    earnings calendars, news sentiment, short interest, macro releases).
    They stay ``None`` until an enrichment step fills them.

Usage example::

    from surge_scorer.taxonomy.factor_taxonomy import Factor, FACTOR_DESCRIPTIONS

    desc = FACTOR_DESCRIPTIONS[Factor.VOLUME_SPIKE]
    print(desc.name, desc.category)

This module has NO imports from any other ``surge_scorer`` package.
"""

from dataclasses import dataclass
from enum import StrEnum


class Factor(StrEnum):
    """Canonical factor names. Declaration order is the canonical order."""

    MARKET_UP = "market_up"
    """Broad index (Nasdaq) rallied on the day."""

    SECTOR_UP = "sector_up"
    """The instrument's sector outperformed on the day."""

    EARNINGS_WINDOW = "earnings_window"
    """Within ±3 days of an earnings announcement."""

    VOLUME_SPIKE = "volume_spike"
    """Volume above a multiple of its trailing average."""

    BREAK_MA50 = "break_ma50"
    """Close above the 50-day simple moving average."""

    BREAK_MA200 = "break_ma200"
    """Close above the 200-day simple moving average."""

    RSI_OVER_60 = "rsi_over_60"
    """14-day RSI above 60."""

    NEWS_POSITIVE = "news_positive"
    """Positive news sentiment on the day."""

    SHORT_COVERING = "short_covering"
    """High short interest combined with a price increase."""

    MACRO_TAILWIND = "macro_tailwind"
    """Favourable CPI / Fed / rate environment."""


class FactorCategory(StrEnum):
    """Broad family a factor belongs to."""

    TECHNICAL = "technical"
    FUNDAMENTAL = "fundamental"
    MARKET = "market"
    SENTIMENT = "sentiment"


ALL_FACTORS: tuple[Factor, ...] = tuple(Factor)

DETERMINISTIC_FACTORS: tuple[Factor, ...] = (
    Factor.VOLUME_SPIKE,
    Factor.BREAK_MA50,
    Factor.BREAK_MA200,
    Factor.RSI_OVER_60,
)

EXTERNAL_FACTORS: tuple[Factor, ...] = (
    Factor.MARKET_UP,
    Factor.SECTOR_UP,
    Factor.EARNINGS_WINDOW,
    Factor.NEWS_POSITIVE,
    Factor.SHORT_COVERING,
    Factor.MACRO_TAILWIND,
)


@dataclass(frozen=True)
class FactorDescription:
    """Human-facing catalogue entry for a factor."""

    factor: Factor
    name: str
    description: str
    category: FactorCategory


FACTOR_DESCRIPTIONS: dict[Factor, FactorDescription] = {
    Factor.MARKET_UP: FactorDescription(
        Factor.MARKET_UP, "Market Rally",
        "Nasdaq index surged significantly on that trading day",
        FactorCategory.MARKET,
    ),
    Factor.SECTOR_UP: FactorDescription(
        Factor.SECTOR_UP, "Sector Strength",
        "The instrument's sector showed strong performance",
        FactorCategory.MARKET,
    ),
    Factor.EARNINGS_WINDOW: FactorDescription(
        Factor.EARNINGS_WINDOW, "Earnings Window",
        "Within ±3 days of earnings announcement date",
        FactorCategory.FUNDAMENTAL,
    ),
    Factor.VOLUME_SPIKE: FactorDescription(
        Factor.VOLUME_SPIKE, "Volume Spike",
        "Trading volume exceeds a multiple of the 20-day average volume",
        FactorCategory.TECHNICAL,
    ),
    Factor.BREAK_MA50: FactorDescription(
        Factor.BREAK_MA50, "Above MA50",
        "Close is above the 50-day moving average",
        FactorCategory.TECHNICAL,
    ),
    Factor.BREAK_MA200: FactorDescription(
        Factor.BREAK_MA200, "Above MA200",
        "Close is above the 200-day moving average",
        FactorCategory.TECHNICAL,
    ),
    Factor.RSI_OVER_60: FactorDescription(
        Factor.RSI_OVER_60, "Strong RSI",
        "Relative Strength Index (RSI) exceeds 60",
        FactorCategory.TECHNICAL,
    ),
    Factor.NEWS_POSITIVE: FactorDescription(
        Factor.NEWS_POSITIVE, "Positive News",
        "Positive news sentiment and announcements",
        FactorCategory.SENTIMENT,
    ),
    Factor.SHORT_COVERING: FactorDescription(
        Factor.SHORT_COVERING, "Short Covering",
        "High short interest combined with price increase (potential squeeze)",
        FactorCategory.MARKET,
    ),
    Factor.MACRO_TAILWIND: FactorDescription(
        Factor.MACRO_TAILWIND, "Macro Tailwind",
        "Favorable CPI/Fed/interest rate environment",
        FactorCategory.FUNDAMENTAL,
    ),
}


def parse_factor(name: str) -> Factor:
    """Return the ``Factor`` for ``name`` (case-insensitive).

    Raises:
        ValueError: If ``name`` is not a canonical factor name.
    """
    try:
        return Factor(name.strip().lower())
    except ValueError:
        raise ValueError(
            f"Unknown factor '{name}'. Must be one of {[f.value for f in ALL_FACTORS]}."
        ) from None
