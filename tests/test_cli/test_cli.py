"""Smoke tests for the Typer CLI."""

from __future__ import annotations

import json

from typer.testing import CliRunner

from surge_scorer.cli import app

runner = CliRunner()


class TestValidateConfig:
    def test_default_config_is_valid(self):
        result = runner.invoke(app, ["validate-config"])
        assert result.exit_code == 0
        assert "[OK] Config valid." in result.output

    def test_invalid_config_exits_1(self, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text("[scoring]\nthreshold = 5\n", encoding="utf-8")
        result = runner.invoke(app, ["validate-config", "--config", str(bad)])
        assert result.exit_code == 1

    def test_too_many_required_factors_is_reported(self, tmp_path):
        cfg = tmp_path / "c.toml"
        cfg.write_text("[scoring]\nmin_factors_required = 11\n", encoding="utf-8")
        result = runner.invoke(app, ["validate-config", "--config", str(cfg)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "[ERROR] Config validation failed" in result.output


class TestFactors:
    def test_lists_all_factors(self):
        result = runner.invoke(app, ["factors"])
        assert result.exit_code == 0
        assert "volume_spike" in result.output
        assert "macro_tailwind" in result.output

    def test_nan_weight_is_reported(self, tmp_path):
        cfg = tmp_path / "c.toml"
        cfg.write_text("[scoring.weights]\nvolume_spike = nan\n", encoding="utf-8")
        result = runner.invoke(app, ["factors", "--config", str(cfg)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "[ERROR] Config validation failed" in result.output


class TestAnalyze:
    def test_analyze_writes_outputs(self, tmp_path, make_csv):
        src = tmp_path / "aapl.csv"
        src.write_text(make_csv([100.0 + 0.5 * i for i in range(60)]), encoding="utf-8")
        out = tmp_path / "out"
        result = runner.invoke(app, ["analyze", str(src), "--symbol", "aapl", "--out", str(out)])
        assert result.exit_code == 0, result.output
        assert "[OK] AAPL: ok" in result.output
        assert (out / "summary_aapl.json").exists()

    def test_export_uses_configured_output_dir(self, tmp_path, make_csv):
        src = tmp_path / "aapl.csv"
        src.write_text(make_csv([100.0 + 0.5 * i for i in range(60)]), encoding="utf-8")
        exports = tmp_path / "exports"
        cfg = tmp_path / "c.toml"
        cfg.write_text(f"[export]\noutput_dir = \"{exports.as_posix()}\"\n", encoding="utf-8")

        result = runner.invoke(app, ["analyze", str(src), "--symbol", "AAPL", "--config", str(cfg)])
        assert result.exit_code == 0, result.output
        assert not exports.exists()

        result = runner.invoke(
            app, ["analyze", str(src), "--symbol", "AAPL", "--config", str(cfg), "--export"]
        )
        assert result.exit_code == 0, result.output
        assert (exports / "scores_aapl.csv").exists()
        assert (exports / "summary_aapl.json").exists()

    def test_out_wins_over_export(self, tmp_path, make_csv, monkeypatch):
        src = tmp_path / "aapl.csv"
        src.write_text(make_csv([100.0 + 0.5 * i for i in range(30)]), encoding="utf-8")
        monkeypatch.setenv("SURGE_SCORER_OUTPUT_DIR", str(tmp_path / "configured"))
        out = tmp_path / "explicit"
        result = runner.invoke(
            app, ["analyze", str(src), "--symbol", "AAPL", "--export", "--out", str(out)]
        )
        assert result.exit_code == 0, result.output
        assert (out / "factors_aapl.csv").exists()
        assert not (tmp_path / "configured").exists()

    def test_analyze_json(self, tmp_path, make_csv):
        src = tmp_path / "aapl.csv"
        src.write_text(make_csv([50.0] * 20), encoding="utf-8")
        result = runner.invoke(app, ["analyze", str(src), "--symbol", "FLAT", "--json"])
        assert result.exit_code == 0
        assert '"status": "no_qualifying_days"' in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "nope.csv"), "--symbol", "X"])
        assert result.exit_code == 1

    def test_bad_header(self, tmp_path):
        src = tmp_path / "bad.csv"
        src.write_text("Foo,Bar\n1,2\n", encoding="utf-8")
        result = runner.invoke(app, ["analyze", str(src), "--symbol", "X"])
        assert result.exit_code == 1


class TestPredict:
    def test_predict_json(self):
        result = runner.invoke(
            app,
            ["predict", "--symbol", "aapl",
             "--factor", "volume_spike=true", "--factor", "break_ma50=true"],
        )
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["symbol"] == "AAPL"
        assert payload["category"] == "HIGH_PROBABILITY"
        assert payload["score"] == 0.35

    def test_predict_text(self):
        result = runner.invoke(
            app, ["predict", "--symbol", "AAPL", "--factor", "rsi_over_60=true", "--text"]
        )
        assert result.exit_code == 0
        assert "Watch for potential overbought conditions" in result.output

    def test_unknown_factor_exits_1(self):
        result = runner.invoke(app, ["predict", "--symbol", "AAPL", "--factor", "tarot=true"])
        assert result.exit_code == 1

    def test_malformed_flag_exits_1(self):
        result = runner.invoke(app, ["predict", "--symbol", "AAPL", "--factor", "volume_spike"])
        assert result.exit_code == 1
