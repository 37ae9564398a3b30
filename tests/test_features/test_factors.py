"""
Tests for factor derivation: deterministic factors and the external hand-off.
"""

from __future__ import annotations

from datetime import date

import pytest

from surge_scorer.config import FactorConfig
from surge_scorer.features.factors import derive_factor_vectors, derive_factors
from surge_scorer.features.indicators import compute_indicators
from surge_scorer.models.factors import ExternalFactors
from surge_scorer.models.series import IndicatorRow
from surge_scorer.taxonomy.factor_taxonomy import EXTERNAL_FACTORS


def _row(**kwargs) -> IndicatorRow:
    base = dict(date=date(2024, 6, 3), open=10.0, high=10.0, low=10.0, close=10.0, volume=100.0)
    base.update(kwargs)
    return IndicatorRow(**base)


class TestDeterministicFactors:
    def test_volume_spike_strictly_greater(self):
        assert derive_factors(_row(volume=151.0, volume_avg=100.0)).volume_spike is True
        assert derive_factors(_row(volume=150.0, volume_avg=100.0)).volume_spike is False

    def test_volume_spike_respects_multiplier(self):
        cfg = FactorConfig(volume_spike_multiplier=2.0)
        assert derive_factors(_row(volume=180.0, volume_avg=100.0), cfg).volume_spike is False

    def test_volume_spike_false_without_baseline(self):
        assert derive_factors(_row(volume=1e9, volume_avg=None)).volume_spike is False
        assert derive_factors(_row(volume=1e9, volume_avg=0.0)).volume_spike is False

    def test_break_ma_is_simple_above_test(self):
        v = derive_factors(_row(close=10.0, ma50=9.0, ma200=10.0))
        assert v.break_ma50 is True
        assert v.break_ma200 is False

    def test_break_ma_false_during_warm_up(self):
        v = derive_factors(_row(ma50=None, ma200=None))
        assert v.break_ma50 is False
        assert v.break_ma200 is False

    def test_rsi_over_60(self):
        assert derive_factors(_row(rsi=60.5)).rsi_over_60 is True
        assert derive_factors(_row(rsi=60.0)).rsi_over_60 is False
        assert derive_factors(_row(rsi=None)).rsi_over_60 is False


class TestExternalFactors:
    def test_external_are_none_by_default(self):
        v = derive_factors(_row(rsi=80.0))
        assert all(v.get(f) is None for f in EXTERNAL_FACTORS)

    def test_given_external_attached_unchanged(self):
        ext = ExternalFactors(market_up=True, news_positive=False)
        v = derive_factors(_row(), external=ext)
        assert v.external == ext
        assert v.get("market_up") is True
        assert v.get("news_positive") is False

    def test_external_by_date(self, make_rows):
        rows = compute_indicators(make_rows([10.0, 11.0, 12.0]))
        ext = {rows[1].date: ExternalFactors(sector_up=True)}
        vectors = derive_factor_vectors(rows, external_by_date=ext)
        assert vectors[0].get("sector_up") is None
        assert vectors[1].get("sector_up") is True


class TestSeriesScenarios:
    def test_short_series_has_no_rsi_signal(self, make_rows):
        rows = compute_indicators(make_rows([100.0 + i for i in range(13)]))
        vectors = derive_factor_vectors(rows)
        assert all(r.rsi is None for r in rows)
        assert all(v.rsi_over_60 is False for v in vectors)

    def test_flat_series_has_no_positive_signal(self, make_rows):
        rows = compute_indicators(make_rows([50.0] * 50))
        vectors = derive_factor_vectors(rows)
        assert all(v.break_ma50 is False and v.break_ma200 is False for v in vectors)
        assert all(v.factor_count == 0 for v in vectors)

    def test_volume_spike_above_ma50(self, spike_series):
        rows = compute_indicators(spike_series)
        vectors = derive_factor_vectors(rows)
        spike = max(range(len(rows)), key=lambda i: rows[i].volume)

        assert rows[spike].volume == pytest.approx(3 * rows[spike - 1].volume)
        assert rows[spike].close > rows[spike].ma50
        assert vectors[spike].volume_spike is True
        assert vectors[spike].break_ma50 is True
        assert vectors[spike - 1].volume_spike is False
