"""Tests for signalbench.main — argument helpers and CLI commands."""

import argparse
import json
import signal

import pytest

from signalbench import main as cli
from signalbench.main import build_parser, load_json_arg, main, parse_symbols

BUY = '[{"indicator": "sma", "params": {"Period": 5}, "condition": "Is Below", "value": 1000}]'


@pytest.fixture(autouse=True)
def _no_signal_handlers(monkeypatch):
    monkeypatch.setattr(signal, "signal", lambda *args: None)
    monkeypatch.setattr(cli, "_shutdown_requested", False)


@pytest.fixture
def data_dir(tmp_path):
    lines = ["date,open,high,low,close,volume"]
    for i in range(60):
        close = 100 + (i % 5)
        lines.append(f"2024-01-{1 + i % 28:02d}T{i // 28:02d}:00:00,{close},{close + 1},{close - 1},{close},1000")
    for symbol in ("TCS", "INFY"):
        (tmp_path / f"{symbol}.csv").write_text("\n".join(lines))
    return tmp_path


class TestParseSymbols:
    def test_comma_separated(self):
        assert parse_symbols("tcs, INFY,,wipro ") == ["TCS", "INFY", "WIPRO"]


class TestLoadJsonArg:
    def test_inline(self):
        assert load_json_arg('{"Period": 5}') == {"Period": 5}

    def test_from_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(BUY)
        assert load_json_arg(f"@{path}")[0]["indicator"] == "sma"

    def test_invalid(self):
        with pytest.raises(argparse.ArgumentTypeError):
            load_json_arg("{not json")

    def test_missing_file(self, tmp_path):
        with pytest.raises(argparse.ArgumentTypeError):
            load_json_arg(f"@{tmp_path / 'missing.json'}")


class TestBuildParser:
    def test_backtest_defaults(self):
        args = build_parser().parse_args(["backtest", "--csv", "x.csv", "--buy-rules", BUY])
        assert args.capital == 100_000.0
        assert args.stop_loss == 2.0
        assert args.sell_rules == []

    def test_source_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["backtest", "--buy-rules", BUY])


class TestMain:
    def test_no_command(self):
        assert main([]) == 2

    def test_backtest_csv(self, data_dir, tmp_path):
        out = tmp_path / "out.json"
        code = main(["-q", "backtest", "--csv", str(data_dir / "TCS.csv"), "--buy-rules", BUY, "-o", str(out)])
        assert code == 0
        data = json.loads(out.read_text())
        assert data["symbol"] == "TCS"
        assert data["stats"]["total_trades"] >= 1

    def test_backtest_multi_symbol(self, data_dir, tmp_path):
        out = tmp_path / "multi.json"
        code = main(
            ["-q", "--data-dir", str(data_dir), "backtest", "--symbol", "TCS,INFY,NOPE",
             "--buy-rules", BUY, "-o", str(out)]
        )
        assert code == 0
        data = json.loads(out.read_text())
        assert data["symbols"] == ["TCS", "INFY"]

    def test_backtest_unknown_indicator(self, data_dir):
        rules = '[{"indicator": "foo", "condition": "Is Above", "value": 1}]'
        assert main(["-q", "backtest", "--csv", str(data_dir / "TCS.csv"), "--buy-rules", rules]) == 1

    def test_scan(self, data_dir, tmp_path):
        out = tmp_path / "scan.json"
        code = main(
            ["-q", "--data-dir", str(data_dir), "scan", "--symbols", "TCS,NOPE",
             "--rules", BUY, "--seed", "1", "-o", str(out)]
        )
        assert code == 0
        data = json.loads(out.read_text())
        assert [s["symbol"] for s in data["signals"]] == ["TCS"]
        assert "NOPE" in data["skipped"]

    def test_indicator(self, data_dir, capsys):
        code = main(["indicator", "--csv", str(data_dir / "TCS.csv"), "--kind", "sma", "--params", '{"Period": 5}'])
        assert code == 0
        assert "SMA(5)" in capsys.readouterr().out

    def test_list_indicators(self, capsys):
        assert main(["list-indicators"]) == 0
        out = capsys.readouterr().out
        assert "SuperTrend" in out

    def test_list_symbols(self, data_dir, capsys):
        assert main(["--data-dir", str(data_dir), "list-symbols"]) == 0
        out = capsys.readouterr().out
        assert "INFY" in out
        assert "TCS" in out
