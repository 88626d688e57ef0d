"""Tests for signalbench.reporting.console_report — smoke tests against a captured console."""

from dataclasses import replace
from datetime import datetime
from io import StringIO

import pytest
from rich.console import Console

from signalbench.reporting.console_report import print_multi_report, print_report, print_signals
from signalbench.scanner.live_scanner import ScanReport, Signal


@pytest.fixture
def out():
    return Console(file=StringIO(), width=120, color_system=None)


def _text(console):
    return console.file.getvalue()


class TestPrintReport:
    def test_headline_numbers(self, sample_result, out):
        print_report(sample_result, out=out)
        text = _text(out)
        assert "Backtest Results: TCS" in text
        assert "101,020" in text
        assert "+1.02%" in text
        assert "60.00%" in text
        assert "3.04" in text

    def test_trades_hidden_by_default(self, sample_result, out):
        print_report(sample_result, out=out)
        assert "Recent Trades" not in _text(out)

    def test_show_trades(self, sample_result, out):
        print_report(sample_result, show_trades=True, trade_limit=2, out=out)
        text = _text(out)
        assert "Recent Trades" in text
        assert "(Showing last 2 of 5 trades)" in text
        assert "Exit Reasons" in text

    def test_no_losses_marked(self, sample_result, out):
        stats = replace(sample_result.stats, profit_factor=999.99, worst_trade=0.0)
        print_report(replace(sample_result, stats=stats), out=out)
        assert "(no losses)" in _text(out)

    def test_large_real_ratio_not_marked(self, sample_result, out):
        stats = replace(sample_result.stats, profit_factor=5000.0)
        print_report(replace(sample_result, stats=stats), out=out)
        text = _text(out)
        assert "5000.00" in text
        assert "(no losses)" not in text


class TestPrintSignals:
    def test_no_signals(self, out):
        print_signals(ScanReport(signals=[], scanned_count=2, skipped={"INFY": "boom"}), out=out)
        text = _text(out)
        assert "No signals." in text
        assert "INFY: boom" in text

    def test_signal_row(self, out):
        signal = Signal(
            symbol="TCS",
            name="TCS",
            price=100.0,
            direction="BUY",
            target=104.5,
            stop_loss=97.75,
            confidence=81,
            indicator="RSI",
            timestamp=datetime(2024, 1, 5),
            change_pct=1.25,
        )
        print_signals(ScanReport(signals=[signal], scanned_count=1), out=out)
        text = _text(out)
        assert "TCS" in text
        assert "104.50" in text
        assert "97.75" in text
        assert "81%" in text
        assert "+1.25%" in text


class TestPrintMultiReport:
    def test_aggregate(self, sample_result, out):
        print_multi_report({"TCS": sample_result, "INFY": sample_result}, out=out)
        text = _text(out)
        assert "Multi-Symbol Backtest Results" in text
        assert "Total Trades: 10" in text
        assert "Overall Win Rate: 60.0%" in text
