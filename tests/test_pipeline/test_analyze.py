"""
End-to-end tests for analyze_series / regenerate_analysis and record builders.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from surge_scorer.config import AnalysisConfig, AppConfig
from surge_scorer.features.factors import derive_factor_vectors
from surge_scorer.features.indicators import compute_indicators
from surge_scorer.models.records import FactorRow
from surge_scorer.models.scoring import ScoringStatus
from surge_scorer.pipeline.analyze import analyze_series, regenerate_analysis
from surge_scorer.pipeline.records import build_factor_rows, build_factor_table
from surge_scorer.taxonomy.factor_taxonomy import DETERMINISTIC_FACTORS, EXTERNAL_FACTORS


def _rising(n: int) -> list[float]:
    return [100.0 + 0.5 * i for i in range(n)]


class TestAnalyzeSeries:
    def test_full_run(self, make_csv):
        analysis = analyze_series(make_csv(_rising(260)), "aapl")
        assert analysis.symbol == "AAPL"
        assert len(analysis.indicators) == 260
        assert len(analysis.vectors) == 260
        assert len(analysis.scoring.scores) == 260
        assert analysis.status == ScoringStatus.OK
        assert analysis.score_summary.total_days == 260

    def test_header_only_is_no_data(self):
        analysis = analyze_series("Date,Open,High,Low,Close,Volume\n", "AAPL")
        assert analysis.status == ScoringStatus.NO_DATA
        assert analysis.scoring.scores == []
        assert analysis.score_summary.average_score is None

    def test_flat_series_is_no_qualifying_days(self, make_csv):
        analysis = analyze_series(make_csv([50.0] * 60), "FLAT")
        assert analysis.status == ScoringStatus.NO_QUALIFYING_DAYS

    def test_skipped_rows_reported(self, make_csv):
        text = make_csv(_rising(30)) + "2030-01-01,bad,bad,bad,bad,bad\n"
        analysis = analyze_series(text, "AAPL")
        assert len(analysis.parsed.rows) == 30
        assert len(analysis.parsed.warnings) == 1

    def test_empty_symbol_rejected(self, make_csv):
        with pytest.raises(ValueError, match="symbol"):
            analyze_series(make_csv(_rising(5)), " ")

    def test_idempotent(self, make_csv):
        text = make_csv(_rising(120))
        first = analyze_series(text, "AAPL")
        second = analyze_series(text, "AAPL")
        assert first.scoring.model_dump_json() == second.scoring.model_dump_json()
        assert [r.key for r in first.score_rows()] == [r.key for r in second.score_rows()]

    def test_concurrent_runs_are_independent(self, make_csv):
        texts = {
            "UP": make_csv(_rising(220)),
            "FLAT": make_csv([50.0] * 220),
        }
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = dict(zip(
                list(texts) * 2,
                pool.map(lambda s: analyze_series(texts[s], s), list(texts) * 2),
            ))
        assert results["UP"].status == ScoringStatus.OK
        assert results["FLAT"].status == ScoringStatus.NO_QUALIFYING_DAYS

    def test_adaptive_override(self, make_csv):
        analysis = analyze_series(make_csv([50.0] * 30), "FLAT", adaptive=False)
        assert analysis.scoring.applied_threshold == analysis.scoring.configured_threshold


class TestRecords:
    def test_factor_rows_carry_all_flags(self, make_csv):
        analysis = analyze_series(make_csv(_rising(60)), "AAPL")
        rows = analysis.factor_rows()
        assert len(rows) == 60
        last = rows[-1]
        assert last.analysis_id == "AAPL"
        for f in DETERMINISTIC_FACTORS:
            assert getattr(last, f.value) is not None
        for f in EXTERNAL_FACTORS:
            assert getattr(last, f.value) is None

    def test_factor_table_numbering_and_filter(self, make_rows):
        closes = [100.0, 110.0, 111.0, 99.0, 120.0]
        rows = compute_indicators(make_rows(closes))
        vectors = derive_factor_vectors(rows)

        table = build_factor_table("AAPL", rows, vectors)
        assert [t.transaction_id for t in table] == [1, 2, 3, 4]
        assert table[0].date == rows[1].date

        big_moves = build_factor_table("AAPL", rows, vectors, min_pct_change=5.0)
        assert [t.date for t in big_moves] == [rows[1].date, rows[4].date]
        assert [t.transaction_id for t in big_moves] == [1, 2]

        data = table[0].factor_data
        assert data["volume_spike"] in (0, 1)
        assert data["market_up"] is None

    def test_min_pct_change_from_config(self, make_csv):
        config = AppConfig(analysis=AnalysisConfig(min_pct_change=1000.0))
        analysis = analyze_series(make_csv(_rising(10)), "AAPL", config)
        assert analysis.factor_table() == []

    def test_length_mismatch(self, make_rows):
        rows = compute_indicators(make_rows([1.0, 2.0]))
        with pytest.raises(ValueError, match="length"):
            build_factor_rows("A", rows, derive_factor_vectors(rows[:1]))


class TestRegenerate:
    def test_regenerate_matches_original(self, make_csv):
        original = analyze_series(make_csv(_rising(230)), "AAPL")
        regenerated = regenerate_analysis(original.factor_rows())
        assert regenerated.symbol == "AAPL"
        assert regenerated.scoring.model_dump_json() == original.scoring.model_dump_json()

    def test_stored_external_flags_reach_scores(self, make_csv):
        original = analyze_series(make_csv(_rising(30)), "AAPL")
        stored = [
            r.model_copy(update={"market_up": True}) if i == 29 else r
            for i, r in enumerate(original.factor_rows())
        ]
        regenerated = regenerate_analysis(stored)
        assert regenerated.vectors[29].get("market_up") is True
        assert regenerated.vectors[28].get("market_up") is None
        assert (
            regenerated.scoring.scores[29].score
            > original.scoring.scores[29].score
        )

    def test_stored_deterministic_flags_are_recomputed(self, make_csv):
        original = analyze_series(make_csv(_rising(30)), "AAPL")
        tampered = [r.model_copy(update={"break_ma50": True}) for r in original.factor_rows()]
        regenerated = regenerate_analysis(tampered)
        assert all(v.break_ma50 is False for v in regenerated.vectors)

    def test_no_rows_no_symbol_raises(self):
        with pytest.raises(ValueError, match="symbol"):
            regenerate_analysis([])

    def test_explicit_symbol(self):
        analysis = regenerate_analysis([], symbol="msft")
        assert analysis.symbol == "MSFT"
        assert analysis.status == ScoringStatus.NO_DATA

    def test_rows_from_other_producer(self):
        rows = [
            FactorRow(analysis_id="X", date=f"2024-01-{d:02d}", close=10.0 + d)
            for d in range(1, 11)
        ]
        analysis = regenerate_analysis(rows)
        assert len(analysis.indicators) == 10
