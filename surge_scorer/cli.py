"""
surge-scorer - CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (analyze a price file, score a hypothetical day).
  5. Report result to stdout; errors go to stderr with exit code 1.

Install and run::

    pip install -e .
    surge-scorer --help
    surge-scorer validate-config
    surge-scorer factors
    surge-scorer analyze data/raw/aapl.csv --symbol AAPL --out data/outputs
    surge-scorer analyze data/raw/aapl.csv --symbol AAPL --export
    surge-scorer predict --symbol AAPL --factor volume_spike=true --factor break_ma50=true
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="surge-scorer",
    help="Daily stock surge-signal scoring - local-first research CLI.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from surge_scorer.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except ValueError as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from surge_scorer.utils.logging import configure_logging
    configure_logging(config.logging, debug=config.debug)


def _parse_factor_flags(flags: list[str]) -> dict[str, Optional[bool]]:
    """Turn ``NAME=true|false|null`` strings into a factor mapping."""
    values: dict[str, Optional[bool]] = {}
    for flag in flags:
        name, sep, raw = flag.partition("=")
        if not sep:
            raise ValueError(f"Expected NAME=true|false, got '{flag}'.")
        raw = raw.strip().lower()
        if raw in ("true", "1", "yes"):
            values[name.strip()] = True
        elif raw in ("false", "0", "no"):
            values[name.strip()] = False
        elif raw in ("null", "none", "unknown", ""):
            values[name.strip()] = None
        else:
            raise ValueError(f"Factor '{name}' must be true, false or null, got '{raw}'.")
    return values


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    score_config = config.scoring.to_score_config()

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Threshold:          {score_config.threshold}")
    typer.echo(f"  Min factors:        {score_config.min_factors_required}")
    typer.echo(f"  Total weight:       {score_config.total_weight:.4f}")
    typer.echo(f"  Adaptive threshold: {config.scoring.adaptive_threshold}")
    typer.echo(f"  Volume spike k:     {config.factors.volume_spike_multiplier}")
    typer.echo(f"  RSI period:         {config.indicators.rsi_period}")
    typer.echo(f"  Return horizon:     {config.analysis.return_horizon}")
    typer.echo(f"  Log level:          {config.logging.level}")
    typer.echo(f"  Debug mode:         {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("factors")
def list_factors(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """List the 10 factors with their category, weight and source."""
    from surge_scorer.taxonomy.factor_taxonomy import (
        ALL_FACTORS,
        DETERMINISTIC_FACTORS,
        FACTOR_DESCRIPTIONS,
    )

    config = _load_config_or_exit(config_path)
    score_config = config.scoring.to_score_config()

    typer.echo(f"{'Factor':<16}{'Category':<13}{'Weight':>7}  {'Source':<9} Description")
    typer.echo("-" * 90)
    for f in ALL_FACTORS:
        desc = FACTOR_DESCRIPTIONS[f]
        source = "computed" if f in DETERMINISTIC_FACTORS else "external"
        typer.echo(
            f"{f.value:<16}{desc.category.value:<13}{score_config.weight(f):>7.2f}  "
            f"{source:<9} {desc.description}"
        )


@app.command("analyze")
def analyze(
    csv_path: str = typer.Argument(..., help="Delimited price history with a header row."),
    symbol: str = typer.Option(..., "--symbol", help="Instrument symbol, e.g. AAPL."),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
    out_dir: Optional[str] = typer.Option(
        None,
        "--out",
        help="Write factor rows, scores, factor table and summary to this directory.",
    ),
    export: bool = typer.Option(
        False,
        "--export/--no-export",
        help="Write outputs to [export] output_dir from config (ignored when --out is set).",
    ),
    no_adaptive: bool = typer.Option(
        False,
        "--no-adaptive",
        help="Always apply the configured threshold.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the summary as JSON instead of a table.",
    ),
) -> None:
    """Parse a price file, score every day and print a summary.

    Exits with code 1 if the file is missing or its header is unusable.
    A file with no valid rows is reported with status ``no_data``.
    """
    from surge_scorer.pipeline.analyze import analyze_series
    from surge_scorer.reporting.export import analysis_summary_to_dict, write_analysis_outputs
    from surge_scorer.reporting.formatters import format_analysis_summary

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = Path(csv_path)
    if not path.exists():
        typer.echo(f"[ERROR] Price file not found: {path}", err=True)
        raise typer.Exit(code=1)

    try:
        analysis = analyze_series(
            path.read_text(encoding="utf-8"),
            symbol,
            config,
            adaptive=False if no_adaptive else None,
        )
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(analysis_summary_to_dict(analysis), indent=2, default=str))
    else:
        typer.echo(format_analysis_summary(analysis))

    target = out_dir or (config.export.output_dir if export else None)
    if target:
        written = write_analysis_outputs(analysis, Path(target))
        typer.echo("")
        for p in written:
            typer.echo(f"  Wrote {p}")

    typer.echo("")
    typer.echo(f"[OK] {analysis.symbol}: {analysis.status.value}")


@app.command("predict")
def predict(
    symbol: str = typer.Option(..., "--symbol", help="Instrument symbol, e.g. AAPL."),
    factor: list[str] = typer.Option(
        [],
        "--factor",
        help="NAME=true|false|null; repeat for each known factor.",
    ),
    as_of: Optional[str] = typer.Option(
        None,
        "--as-of",
        help="Date label for the prediction (YYYY-MM-DD).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
    as_text: bool = typer.Option(
        False,
        "--text",
        help="Print a human-readable block instead of JSON.",
    ),
) -> None:
    """Score one hypothetical day from explicit factor values."""
    from surge_scorer.reporting.export import prediction_to_dict
    from surge_scorer.reporting.formatters import format_prediction
    from surge_scorer.scoring.prediction import predict as run_prediction

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        as_of_date = date.fromisoformat(as_of) if as_of else None
        prediction = run_prediction(
            symbol,
            _parse_factor_flags(factor),
            config.scoring.to_score_config(),
            as_of=as_of_date,
        )
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if as_text:
        typer.echo(format_prediction(prediction))
    else:
        typer.echo(json.dumps(prediction_to_dict(prediction), indent=2))


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
