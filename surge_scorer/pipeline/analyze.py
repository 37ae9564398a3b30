"""
End-to-end analysis of one instrument's price history.

Canonical path (shared by fresh analyses and regeneration):

    ParsedSeries → compute_indicators → derive_factor_vectors → score_days
                 → summarize_factors / correlate_factors / summarize_scores

``analyze_series`` starts from raw delimited text. ``regenerate_analysis``
starts from previously stored ``FactorRow`` records, rebuilt into a
``ParsedSeries`` by ``ParsedSeries.from_factor_rows()``; stored external
factor values are carried forward, everything else is recomputed.

Every call builds fresh objects and shares no state with any other call, so
analyses of different symbols can run side by side.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from surge_scorer.config import AppConfig
from surge_scorer.features.factors import derive_factor_vectors
from surge_scorer.features.indicators import compute_indicators
from surge_scorer.ingestion.series_csv import ParsedSeries, parse_series
from surge_scorer.models.factors import FactorVector
from surge_scorer.models.records import DailyScoreRow, FactorRow, FactorTableRow
from surge_scorer.models.scoring import ScoringResult, ScoringStatus
from surge_scorer.models.series import IndicatorRow
from surge_scorer.pipeline.records import (
    build_daily_score_rows,
    build_factor_rows,
    build_factor_table,
)
from surge_scorer.scoring.engine import score_days
from surge_scorer.scoring.summary import (
    FactorCorrelation,
    FactorSummary,
    ScoreSummary,
    correlate_factors,
    summarize_factors,
    summarize_scores,
)
from surge_scorer.utils.logging import log_context

logger = logging.getLogger(__name__)


@dataclass
class SeriesAnalysis:
    """Everything computed for one series.

    Attributes:
        symbol:                  Upper-cased instrument symbol (the analysis id).
        parsed:                  Parsed rows plus skip warnings.
        indicators:              One indicator row per parsed row.
        vectors:                 One factor vector per indicator row.
        scoring:                 Daily scores and the threshold actually applied.
        factor_summary:          Factor activity over all days.
        correlation:             Factor/return association over all days.
        qualifying_correlation:  Same, restricted to qualifying days.
        score_summary:           Qualifying-day counts and score range.
        min_pct_change:          Filter used by ``factor_table()``.
    """

    symbol: str
    parsed: ParsedSeries
    indicators: list[IndicatorRow]
    vectors: list[FactorVector]
    scoring: ScoringResult
    factor_summary: FactorSummary
    correlation: FactorCorrelation
    qualifying_correlation: FactorCorrelation
    score_summary: ScoreSummary
    min_pct_change: Optional[float] = None

    @property
    def status(self) -> ScoringStatus:
        return self.scoring.status

    def factor_rows(self) -> list[FactorRow]:
        return build_factor_rows(self.symbol, self.indicators, self.vectors)

    def score_rows(self) -> list[DailyScoreRow]:
        return build_daily_score_rows(self.symbol, self.scoring.scores)

    def factor_table(self) -> list[FactorTableRow]:
        return build_factor_table(
            self.symbol, self.indicators, self.vectors, self.min_pct_change
        )


def analyze_series(
    text: str,
    symbol: str,
    config: Optional[AppConfig] = None,
    adaptive: Optional[bool] = None,
) -> SeriesAnalysis:
    """Parse, score and summarise raw delimited price history.

    Args:
        text:     Delimited text with a header row.
        symbol:   Instrument symbol; used as the analysis id on output records.
        config:   Application config. Defaults to ``AppConfig()``.
        adaptive: Override ``config.scoring.adaptive_threshold``.

    Raises:
        ValueError: On an empty symbol or an unusable header.
    """
    symbol = _normalize_symbol(symbol)
    parsed = parse_series(text, symbol=symbol)
    return analyze_parsed(parsed, symbol, config, adaptive)


def regenerate_analysis(
    factor_rows: Iterable[FactorRow],
    symbol: Optional[str] = None,
    config: Optional[AppConfig] = None,
    adaptive: Optional[bool] = None,
) -> SeriesAnalysis:
    """Re-run the canonical path from stored factor rows.

    Used when the original source text is no longer available. ``symbol``
    defaults to the stored ``analysis_id``.

    Raises:
        ValueError: If no symbol is given and none can be read from the rows.
    """
    parsed = ParsedSeries.from_factor_rows(factor_rows)
    resolved = symbol or parsed.symbol
    if not resolved:
        raise ValueError("No symbol given and no stored analysis_id to fall back on.")
    return analyze_parsed(parsed, _normalize_symbol(resolved), config, adaptive)


def analyze_parsed(
    parsed: ParsedSeries,
    symbol: str,
    config: Optional[AppConfig] = None,
    adaptive: Optional[bool] = None,
) -> SeriesAnalysis:
    """Run indicators, factors, scoring and summaries on a parsed series."""
    if config is None:
        config = AppConfig()
    if adaptive is None:
        adaptive = config.scoring.adaptive_threshold

    if parsed.is_empty:
        logger.warning("No valid rows; nothing to score", extra=log_context(symbol, "analyze"))

    indicators = compute_indicators(parsed.rows, config.indicators)
    vectors = derive_factor_vectors(indicators, config.factors, parsed.external)
    scoring = score_days(
        list(zip(indicators, vectors)), config.scoring.to_score_config(), adaptive=adaptive
    )
    horizon = config.analysis.return_horizon

    analysis = SeriesAnalysis(
        symbol=symbol,
        parsed=parsed,
        indicators=indicators,
        vectors=vectors,
        scoring=scoring,
        factor_summary=summarize_factors(vectors),
        correlation=correlate_factors(indicators, vectors, horizon=horizon),
        qualifying_correlation=correlate_factors(
            indicators, vectors, scoring, only_qualifying=True, horizon=horizon
        ),
        score_summary=summarize_scores(scoring),
        min_pct_change=config.analysis.min_pct_change,
    )
    logger.info(
        "Analysis complete: %d rows, %d skipped, %d qualifying days, status=%s",
        len(parsed.rows),
        len(parsed.warnings),
        scoring.qualifying_days,
        scoring.status.value,
        extra=log_context(symbol, "analyze"),
    )
    return analysis


def _normalize_symbol(symbol: str) -> str:
    if not symbol or not symbol.strip():
        raise ValueError("symbol must be a non-empty string.")
    return symbol.strip().upper()
