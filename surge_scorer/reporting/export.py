"""
Export helpers for spreadsheet and manual analysis.

``export_to_csv`` / ``export_to_json`` write to disk and return the written
``Path``. They accept generic ``list[dict]`` / ``dict`` data to stay
decoupled from specific report shapes.

CSV exports are flat (no nested dicts) so they load directly in Excel or a
notebook without any pre-processing step. The ``flatten_*`` adapters turn
analysis records into such rows; ``write_analysis_outputs`` writes the full
set for one ``SeriesAnalysis``.
"""

from __future__ import annotations

import csv
import dataclasses
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from surge_scorer.models.prediction import Prediction
from surge_scorer.models.records import DailyScoreRow, FactorRow, FactorTableRow
from surge_scorer.taxonomy.factor_taxonomy import ALL_FACTORS

if TYPE_CHECKING:
    from surge_scorer.pipeline.analyze import SeriesAnalysis


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(
    data: dict | list,
    path: Path,
) -> Path:
    """Write ``data`` to a pretty-printed JSON file.

    Args:
        data: Dict or list to serialise. Dates and enums are written as strings.
        path: Destination file path (parent dirs created if missing).

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


# ── Flatteners ────────────────────────────────────────────────────────────────


def flatten_scores_for_export(rows: list[DailyScoreRow]) -> list[dict]:
    """One flat row per day with a ``c_<factor>`` contribution column per factor.

    Each row contains ``analysis_id``, ``date``, ``score``, ``factor_count``,
    ``above_threshold`` and ten ``c_<factor>`` columns (0.0 when inactive).
    """
    flat: list[dict] = []
    for r in rows:
        out: dict[str, Any] = {
            "analysis_id":     r.analysis_id,
            "date":            r.date.isoformat(),
            "score":           r.score,
            "factor_count":    r.factor_count,
            "above_threshold": r.above_threshold,
        }
        for f in ALL_FACTORS:
            contrib = r.breakdown.get(f)
            out[f"c_{f.value}"] = contrib.contribution if contrib is not None else 0.0
        flat.append(out)
    return flat


def flatten_factor_rows_for_export(rows: list[FactorRow]) -> list[dict]:
    """Factor rows as CSV-ready dicts; unknown values become empty cells."""
    return [
        {k: ("" if v is None else v) for k, v in r.model_dump(mode="json").items()}
        for r in rows
    ]


def flatten_factor_table_for_export(rows: list[FactorTableRow]) -> list[dict]:
    """One column per factor holding 1, 0 or an empty cell for unknown."""
    flat: list[dict] = []
    for r in rows:
        out: dict[str, Any] = {
            "analysis_id":    r.analysis_id,
            "transaction_id": r.transaction_id,
            "date":           r.date.isoformat(),
        }
        for f in ALL_FACTORS:
            value = r.factor_data.get(f.value)
            out[f.value] = "" if value is None else value
        flat.append(out)
    return flat


def analysis_summary_to_dict(analysis: "SeriesAnalysis") -> dict:
    """JSON-ready summary of an analysis (no per-day rows)."""
    scoring = analysis.scoring
    return {
        "symbol":               analysis.symbol,
        "status":               scoring.status.value,
        "rows_parsed":          len(analysis.parsed.rows),
        "rows_skipped":         len(analysis.parsed.warnings),
        "warnings":             [dataclasses.asdict(w) for w in analysis.parsed.warnings],
        "configured_threshold": scoring.configured_threshold,
        "applied_threshold":    scoring.applied_threshold,
        "threshold_adjustment": scoring.adjustment.value,
        "min_factors_required": scoring.min_factors_required,
        "factor_summary":       dataclasses.asdict(analysis.factor_summary),
        "score_summary":        dataclasses.asdict(analysis.score_summary),
        "correlation":          dataclasses.asdict(analysis.correlation),
        "qualifying_correlation": dataclasses.asdict(analysis.qualifying_correlation),
    }


def prediction_to_dict(prediction: Prediction) -> dict:
    return prediction.model_dump(mode="json")


def write_analysis_outputs(analysis: "SeriesAnalysis", output_dir: Path) -> list[Path]:
    """Write factor rows, scores, factor table and summary for one analysis.

    Files (``<sym>`` is the lower-cased symbol):
      - ``factors_<sym>.csv``
      - ``scores_<sym>.csv``
      - ``factor_table_<sym>.csv``
      - ``scores_<sym>.json``   (structured breakdowns)
      - ``summary_<sym>.json``

    Returns:
        The written paths, in the order above.
    """
    sym = analysis.symbol.lower()
    score_rows = analysis.score_rows()
    return [
        export_to_csv(
            flatten_factor_rows_for_export(analysis.factor_rows()),
            output_dir / f"factors_{sym}.csv",
        ),
        export_to_csv(flatten_scores_for_export(score_rows), output_dir / f"scores_{sym}.csv"),
        export_to_csv(
            flatten_factor_table_for_export(analysis.factor_table()),
            output_dir / f"factor_table_{sym}.csv",
        ),
        export_to_json(
            [r.model_dump(mode="json") for r in score_rows],
            output_dir / f"scores_{sym}.json",
        ),
        export_to_json(analysis_summary_to_dict(analysis), output_dir / f"summary_{sym}.json"),
    ]
