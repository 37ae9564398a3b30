"""Tests for persistence-shaped records and series models."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from surge_scorer.models.factors import FactorVector
from surge_scorer.models.records import DailyScoreRow, FactorRow, FactorTableRow
from surge_scorer.models.series import IndicatorRow, OhlcvRow
from surge_scorer.scoring.engine import score_day


class TestSeriesModels:
    def test_non_positive_close_rejected(self):
        with pytest.raises(ValidationError, match="positive"):
            OhlcvRow(date=date(2024, 1, 2), open=1, high=1, low=1, close=0)

    def test_negative_volume_rejected(self):
        with pytest.raises(ValidationError, match="non-negative"):
            OhlcvRow(date=date(2024, 1, 2), open=1, high=1, low=1, close=1, volume=-5)

    def test_rsi_range(self):
        with pytest.raises(ValidationError, match="RSI"):
            IndicatorRow(date=date(2024, 1, 2), open=1, high=1, low=1, close=1, rsi=101)


class TestFactorRow:
    def test_external_factors_keeps_unknowns(self):
        row = FactorRow(
            analysis_id="AAPL", date=date(2024, 1, 2), close=10.0,
            volume_spike=True, market_up=None, news_positive=True,
        )
        ext = row.external_factors()
        assert ext.market_up is None
        assert ext.news_positive is True
        assert not ext.is_empty()
        assert row.key == ("AAPL", date(2024, 1, 2))


class TestDailyScoreRow:
    def test_from_daily_score(self, score_config):
        s = score_day(FactorVector(volume_spike=True), date(2024, 1, 2), score_config)
        row = DailyScoreRow.from_daily_score("AAPL", s)
        assert row.key == ("AAPL", date(2024, 1, 2))
        assert row.breakdown == s.breakdown
        restored = DailyScoreRow.model_validate_json(row.model_dump_json())
        assert restored == row


class TestFactorTableRow:
    def test_valid(self):
        row = FactorTableRow(
            analysis_id="AAPL", transaction_id=1, date=date(2024, 1, 2),
            factor_data={"volume_spike": 1, "break_ma50": 0, "market_up": None},
        )
        assert row.key == ("AAPL", 1)

    def test_transaction_id_starts_at_one(self):
        with pytest.raises(ValidationError, match="transaction_id"):
            FactorTableRow(analysis_id="A", transaction_id=0, date=date(2024, 1, 2), factor_data={})

    def test_flag_values_restricted(self):
        with pytest.raises(ValidationError):
            FactorTableRow(
                analysis_id="A", transaction_id=1, date=date(2024, 1, 2),
                factor_data={"volume_spike": 2},
            )

    def test_unknown_factor_rejected(self):
        with pytest.raises(ValidationError, match="Unknown factor"):
            FactorTableRow(
                analysis_id="A", transaction_id=1, date=date(2024, 1, 2),
                factor_data={"tea_leaves": 1},
            )
