"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      - committed static defaults
  2. ``config/local.toml``        - optional local overrides (gitignored)
  3. ``.env``                     - local overrides (gitignored)
  4. Environment variables        - ``SURGE_SCORER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The engine functions themselves take the narrow sub-config they need
(``IndicatorConfig``, ``FactorConfig``, ``ScoreConfig``); only the CLI and
``pipeline.analyze`` handle a whole ``AppConfig``.
"""

from __future__ import annotations

import math
import os
import tomllib
from pathlib import Path
from typing import Any, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from surge_scorer.models.scoring import DEFAULT_SCORE_CONFIG, ScoreConfig
from surge_scorer.taxonomy.factor_taxonomy import ALL_FACTORS, parse_factor

# ── Sub-config models ─────────────────────────────────────────────────────────


class IndicatorConfig(BaseModel):
    """Window sizes for the indicator engine."""

    model_config = ConfigDict(frozen=True)

    rsi_period: int = 14
    volume_window: int = 20

    @field_validator("rsi_period", "volume_window")
    @classmethod
    def validate_positive_window(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Window sizes must be positive, got {v}.")
        return v


class FactorConfig(BaseModel):
    """Thresholds for deterministic factor derivation."""

    model_config = ConfigDict(frozen=True)

    volume_spike_multiplier: float = 1.5
    rsi_threshold: float = 60.0

    @field_validator("volume_spike_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        if v < 1.0:
            raise ValueError(f"volume_spike_multiplier must be >= 1.0, got {v}.")
        return v

    @field_validator("rsi_threshold")
    @classmethod
    def validate_rsi_threshold(cls, v: float) -> float:
        if not 0.0 < v < 100.0:
            raise ValueError(f"rsi_threshold must be in (0, 100), got {v}.")
        return v


class ScoringConfig(BaseModel):
    """Scoring weights and verdict rules, as written in TOML.

    Construction also builds the ``ScoreConfig`` the engine consumes, so any
    value ``ScoreConfig`` would reject (unknown factor, NaN weight, too many
    required factors) fails here, at load time.
    """

    model_config = ConfigDict(frozen=True)

    weights: dict[str, float] = {
        f.value: w for f, w in DEFAULT_SCORE_CONFIG.weights.items()
    }
    threshold: float = DEFAULT_SCORE_CONFIG.threshold
    min_factors_required: int = DEFAULT_SCORE_CONFIG.min_factors_required
    adaptive_threshold: bool = True

    def to_score_config(self) -> ScoreConfig:
        return ScoreConfig(
            weights=self.weights,
            threshold=self.threshold,
            min_factors_required=self.min_factors_required,
        )

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: dict[str, float]) -> dict[str, float]:
        for name, weight in v.items():
            parse_factor(name)
            if not math.isfinite(weight) or weight < 0:
                raise ValueError(
                    f"Weight for '{name}' must be a non-negative number, got {weight}."
                )
        return v

    @field_validator("threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError(f"threshold must be in (0.0, 1.0), got {v}.")
        return v

    @field_validator("min_factors_required")
    @classmethod
    def validate_min_factors(cls, v: int) -> int:
        if not 0 <= v <= len(ALL_FACTORS):
            raise ValueError(
                f"min_factors_required must be in [0, {len(ALL_FACTORS)}], got {v}."
            )
        return v

    @model_validator(mode="after")
    def validate_score_config(self) -> "ScoringConfig":
        try:
            self.to_score_config()
        except ValidationError as exc:
            raise ValueError(f"Invalid scoring section: {exc}") from exc
        return self


class AnalysisConfig(BaseModel):
    """Summary and factor-table options."""

    model_config = ConfigDict(frozen=True)

    min_pct_change: Optional[float] = None
    return_horizon: Literal["same_day", "next_day"] = "same_day"


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class ExportConfig(BaseModel):
    """Where CLI exports are written."""

    model_config = ConfigDict(frozen=True)

    output_dir: str = "data/outputs"


class AppConfig(BaseModel):
    """Complete application configuration - the single source of truth.

    It is constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    indicators: IndicatorConfig = IndicatorConfig()
    factors: FactorConfig = FactorConfig()
    scoring: ScoringConfig = ScoringConfig()
    analysis: AnalysisConfig = AnalysisConfig()
    logging: LoggingConfig = LoggingConfig()
    export: ExportConfig = ExportConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply SURGE_SCORER_* env vars to the raw config dict.

    Supported overrides:
      SURGE_SCORER_LOG_LEVEL   → raw["logging"]["level"]
      SURGE_SCORER_THRESHOLD   → raw["scoring"]["threshold"]
      SURGE_SCORER_OUTPUT_DIR  → raw["export"]["output_dir"]
      SURGE_SCORER_DEBUG       → raw["debug"]
    """
    if log_level := os.environ.get("SURGE_SCORER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if threshold := os.environ.get("SURGE_SCORER_THRESHOLD"):
        raw.setdefault("scoring", {})["threshold"] = float(threshold)

    if output_dir := os.environ.get("SURGE_SCORER_OUTPUT_DIR"):
        raw.setdefault("export", {})["output_dir"] = output_dir

    if debug := os.environ.get("SURGE_SCORER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        indicators=IndicatorConfig(**raw.get("indicators", {})),
        factors=FactorConfig(**raw.get("factors", {})),
        scoring=ScoringConfig(**raw.get("scoring", {})),
        analysis=AnalysisConfig(**raw.get("analysis", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        export=ExportConfig(**raw.get("export", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
