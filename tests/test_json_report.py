"""Tests for signalbench.reporting.json_report — _serialize, _sanitize, export_json."""

import json
from datetime import date, datetime

import numpy as np
import pytest

from signalbench.engine.records import ExitReason
from signalbench.reporting.json_report import _calculate_aggregate, _sanitize, _serialize, export_json
from signalbench.scanner.live_scanner import ScanReport, Signal


# ---------------------------------------------------------------------------
# _serialize
# ---------------------------------------------------------------------------


class TestSerialize:
    def test_datetime(self):
        assert _serialize(datetime(2024, 3, 15, 9, 30)) == "2024-03-15T09:30:00"

    def test_date(self):
        assert _serialize(date(2024, 3, 15)) == "2024-03-15"

    def test_enum(self):
        assert _serialize(ExitReason.STOP_LOSS) == "Stop Loss"

    def test_numpy_types(self):
        assert _serialize(np.int64(7)) == 7
        assert isinstance(_serialize(np.int64(7)), int)
        assert _serialize(np.float64(1.5)) == 1.5

    def test_unsupported_type(self):
        with pytest.raises(TypeError, match="not serializable"):
            _serialize(object())


class TestSanitize:
    def test_non_finite_floats(self):
        data = {"a": float("inf"), "b": [1.0, float("nan")], "c": {"d": float("-inf")}}
        assert _sanitize(data) == {"a": "inf", "b": [1.0, "nan"], "c": {"d": "-inf"}}

    def test_leaves_other_values(self):
        assert _sanitize({"x": 1, "y": "s", "z": None}) == {"x": 1, "y": "s", "z": None}


# ---------------------------------------------------------------------------
# export_json
# ---------------------------------------------------------------------------


class TestExportJson:
    def test_single_result(self, sample_result):
        data = json.loads(export_json(sample_result))
        assert data["symbol"] == "TCS"
        assert data["stats"]["total_trades"] == 5
        assert data["stats"]["profit_factor"] == 3.04
        assert data["trades"][0]["exit_reason"] == "Target Hit"
        assert data["trades"][0]["entry_time"] == "2024-02-20T00:00:00"
        assert len(data["equity_curve"]) == 6

    def test_writes_file(self, sample_result, tmp_path):
        path = tmp_path / "result.json"
        json_str = export_json(sample_result, str(path))
        assert path.read_text() == json_str

    def test_multi_symbol(self, sample_result):
        data = json.loads(export_json({"TCS": sample_result, "INFY": sample_result}))
        assert data["multi_symbol"] is True
        assert data["symbols"] == ["TCS", "INFY"]
        assert data["aggregate"]["total_trades"] == 10
        assert data["aggregate"]["overall_win_rate"] == 60.0
        assert data["aggregate"]["avg_return"] == 1.02

    def test_scan_report(self):
        report = ScanReport(
            signals=[
                Signal(
                    symbol="TCS",
                    name="TCS",
                    price=100.0,
                    direction="BUY",
                    target=104.0,
                    stop_loss=98.0,
                    confidence=72,
                    indicator="RSI",
                    timestamp=datetime(2024, 1, 5),
                )
            ],
            scanned_count=3,
            skipped={"INFY": "not enough data"},
            timestamp=datetime(2024, 1, 5, 15, 30),
        )
        data = json.loads(export_json(report))
        assert data["scanned_count"] == 3
        assert data["signals"][0]["target"] == 104.0
        assert data["signals"][0]["timestamp"] == "2024-01-05T00:00:00"
        assert data["skipped"] == {"INFY": "not enough data"}
        assert data["timestamp"] == "2024-01-05T15:30:00"


class TestCalculateAggregate:
    def test_empty(self):
        assert _calculate_aggregate({}) == {}

    def test_best_and_worst(self, sample_result):
        aggregate = _calculate_aggregate({"TCS": sample_result})
        assert aggregate["total_symbols"] == 1
        assert aggregate["best_symbol"] == "TCS"
        assert aggregate["worst_symbol"] == "TCS"
