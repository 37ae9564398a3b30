"""
ASCII terminal formatters for CLI commands.

All formatters accept already computed analysis objects and return plain
multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Not-available values (``None``) print as ``n/a`` so they are never mistaken
for a zero.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from surge_scorer.models.prediction import Prediction
from surge_scorer.models.scoring import ScoringStatus
from surge_scorer.taxonomy.factor_taxonomy import ALL_FACTORS

if TYPE_CHECKING:
    from surge_scorer.pipeline.analyze import SeriesAnalysis

_NA = "n/a"


def _fmt(value: Optional[float], spec: str = ".2f", suffix: str = "") -> str:
    return _NA if value is None else f"{value:{spec}}{suffix}"


def format_analysis_summary(analysis: "SeriesAnalysis") -> str:
    """Header block, score summary and a per-factor table.

    Example::

        AAPL  status=ok  rows=260  skipped=1
        Threshold 0.3000 (configured 0.3000, adjustment none)
        Qualifying days: 12 / 260 (4.62%)
        Score avg 0.1034  min 0.0000  max 0.4500

        Factor            Days   Freq%   AvgRet%   Hit%  Dir
        ----------------------------------------------------
        volume_spike        18    6.92      1.84  66.67   +1
    """
    scoring = analysis.scoring
    summary = analysis.score_summary
    lines = [
        f"{analysis.symbol}  status={scoring.status.value}  "
        f"rows={len(analysis.parsed.rows)}  skipped={len(analysis.parsed.warnings)}",
    ]
    if scoring.status == ScoringStatus.NO_DATA:
        lines.append("No valid rows: nothing was scored.")
        return "\n".join(lines)

    lines += [
        f"Threshold {scoring.applied_threshold:.4f} "
        f"(configured {scoring.configured_threshold:.4f}, "
        f"adjustment {scoring.adjustment.value})",
        f"Qualifying days: {summary.qualifying_days} / {summary.total_days} "
        f"({_fmt(summary.qualifying_pct, suffix='%')})",
        f"Score avg {_fmt(summary.average_score, '.4f')}  "
        f"min {_fmt(summary.min_score, '.4f')}  max {_fmt(summary.max_score, '.4f')}",
        "",
        f"{'Factor':<16}{'Days':>6}{'Freq%':>8}{'AvgRet%':>10}{'Hit%':>7}{'Dir':>5}",
        "-" * 52,
    ]
    for f in ALL_FACTORS:
        s = analysis.correlation.stats[f]
        hit = None if s.hit_rate is None else s.hit_rate * 100
        lines.append(
            f"{f.value:<16}{s.occurrences:>6}{_fmt(s.frequency):>8}"
            f"{_fmt(s.avg_return):>10}{_fmt(hit):>7}{s.direction:>+5d}"
        )
    return "\n".join(lines)


def format_prediction(prediction: Prediction) -> str:
    """Short human-readable prediction block."""
    lines = [
        f"{prediction.symbol}: {prediction.category.value}  "
        f"score={prediction.score:.4f}  threshold={prediction.threshold:.4f}  "
        f"confidence={prediction.confidence:.2f}",
        prediction.interpretation,
    ]
    if prediction.active_factors:
        lines.append("Active factors:")
        lines += [
            f"  - {a.name} ({a.factor.value}, weight {a.weight:.2f})"
            for a in prediction.active_factors
        ]
    lines.append("Recommendations:")
    lines += [f"  - {r}" for r in prediction.recommendations]
    return "\n".join(lines)
