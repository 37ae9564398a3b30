"""
Tests for single-shot predictions: category bands, confidence and advice.
"""

from __future__ import annotations

from datetime import date

import pytest

from surge_scorer.models.factors import FactorVector
from surge_scorer.models.prediction import PredictionCategory
from surge_scorer.models.scoring import ScoreConfig
from surge_scorer.scoring.prediction import (
    NO_SIGNAL_RECOMMENDATION,
    RECOMMENDATION_CATALOG,
    categorize,
    compute_confidence,
    predict,
)
from surge_scorer.taxonomy.factor_taxonomy import ALL_FACTORS, Factor


class TestCategorize:
    @pytest.mark.parametrize(
        "score, expected",
        [
            (0.30, PredictionCategory.HIGH_PROBABILITY),
            (0.50, PredictionCategory.HIGH_PROBABILITY),
            (0.22, PredictionCategory.MODERATE),
            (0.29, PredictionCategory.MODERATE),
            (0.20, PredictionCategory.LOW_PROBABILITY),
            (0.0, PredictionCategory.LOW_PROBABILITY),
        ],
    )
    def test_bands(self, score, expected):
        assert categorize(score, 0.30) == expected


class TestConfidence:
    def test_zero_total_weight(self):
        assert compute_confidence(0.0, 3, 0.0) == 0.0

    def test_formula(self):
        # 100 × 0.35 / 1.0 + 5 × (2 − 1) = 40
        assert compute_confidence(0.35, 2, 1.0) == pytest.approx(40.0)

    def test_capped_at_100(self):
        assert compute_confidence(1.0, 10, 1.0) == 100.0

    def test_monotonic_in_score_and_count(self):
        grid = [(s / 20, c) for s in range(21) for c in range(11)]
        for score, count in grid:
            base = compute_confidence(score, count, 1.0)
            assert compute_confidence(min(1.0, score + 0.05), count, 1.0) >= base
            assert compute_confidence(score, count + 1, 1.0) >= base


class TestPredict:
    def test_high_probability(self, score_config):
        p = predict("aapl", {"volume_spike": True, "break_ma50": True}, score_config)
        assert p.symbol == "AAPL"
        assert p.score == pytest.approx(0.35)
        assert p.category == PredictionCategory.HIGH_PROBABILITY
        assert p.above_threshold is True
        assert p.factor_count == 2
        assert p.interpretation.startswith("AAPL shows high probability")

    def test_moderate_band(self, score_config):
        p = predict("MSFT", {"volume_spike": True, "break_ma200": False}, score_config)
        assert p.score == pytest.approx(0.20)
        assert p.category == PredictionCategory.LOW_PROBABILITY
        p = predict("MSFT", {"market_up": True, "short_covering": True, "macro_tailwind": True},
                    score_config)
        assert p.score == pytest.approx(0.20)
        p = predict("MSFT", {"break_ma50": True, "break_ma200": True, "macro_tailwind": True},
                    score_config)
        assert p.score == pytest.approx(0.22)
        assert p.category == PredictionCategory.MODERATE
        assert "moderate potential" in p.interpretation

    def test_high_score_with_one_factor_is_not_above_threshold(self):
        cfg = ScoreConfig(weights={"volume_spike": 0.5})
        p = predict("X", {"volume_spike": True}, cfg)
        assert p.category == PredictionCategory.HIGH_PROBABILITY
        assert p.above_threshold is False

    def test_recommendations_follow_active_factors(self, score_config):
        p = predict("AAPL", {"rsi_over_60": True, "volume_spike": True}, score_config)
        assert p.recommendations == [
            RECOMMENDATION_CATALOG[Factor.VOLUME_SPIKE],
            RECOMMENDATION_CATALOG[Factor.RSI_OVER_60],
        ]
        assert [a.factor for a in p.active_factors] == [Factor.VOLUME_SPIKE, Factor.RSI_OVER_60]
        assert p.active_factors[0].weight == pytest.approx(0.20)
        assert p.active_factors[0].name == "Volume Spike"

    def test_no_active_factors(self, score_config):
        p = predict("AAPL", {}, score_config)
        assert p.score == 0.0
        assert p.confidence == 0.0
        assert p.recommendations == [NO_SIGNAL_RECOMMENDATION]
        assert p.category == PredictionCategory.LOW_PROBABILITY

    def test_catalog_covers_every_factor(self):
        assert set(RECOMMENDATION_CATALOG) == set(ALL_FACTORS)

    def test_accepts_factor_vector_and_as_of(self, score_config):
        p = predict("AAPL", FactorVector(volume_spike=True), score_config, as_of=date(2024, 5, 1))
        assert p.as_of == date(2024, 5, 1)
        assert p.factor_count == 1

    def test_unknown_factor_raises(self, score_config):
        with pytest.raises(ValueError, match="Unknown factor"):
            predict("AAPL", {"moon_phase": True}, score_config)

    def test_non_bool_value_raises(self, score_config):
        with pytest.raises(ValueError, match="true, false or null"):
            predict("AAPL", {"volume_spike": "yes"}, score_config)

    def test_empty_symbol_raises(self, score_config):
        with pytest.raises(ValueError, match="symbol"):
            predict("  ", {"volume_spike": True}, score_config)

    def test_deterministic(self, score_config):
        factors = {"volume_spike": True, "earnings_window": True}
        assert predict("A", factors, score_config) == predict("A", factors, score_config)
