"""
Signalbench - Indicator Rule Backtesting

Backtest indicator rules (SMA, EMA, RSI, MACD, Bollinger Bands, ATR,
SuperTrend, VWAP) against candle data and scan a watchlist for live signals.

Usage:
    from signalbench import load_csv, run_backtest

    result = run_backtest(
        load_csv("data/TCS.csv"),
        buy_rules=[{"indicator": "rsi", "condition": "Crosses Above", "value": 30}],
        sell_rules=[{"indicator": "rsi", "condition": "Crosses Below", "value": 70}],
    )
    print(f"Win rate: {result.stats.win_rate:.2f}%")
"""

__version__ = "0.1.0"

from .config import settings
from .errors import (
    InsufficientDataError,
    InvalidConfigError,
    InvalidInputError,
    InvalidRuleError,
    SignalBenchError,
    UnknownIndicatorKind,
)
from .data import Candle, CandleSeries, CsvCandleProvider, load_csv, normalize_candles
from .indicators import IndicatorCache, IndicatorKind, IndicatorSpec, compute_indicator
from .strategies import Condition, ConditionEvaluator, Rule, list_available_indicators, parse_rules
from .engine import BacktestConfig, BacktestResult, BacktestSimulator, ExitReason, Trade, run_backtest
from .analyzers import BacktestStats, calculate_stats
from .scanner import LiveScanner, ScanReport, Signal, scan_signals
from .reporting import export_json, print_report, print_signals

__all__ = [
    "settings",
    "SignalBenchError",
    "InvalidInputError",
    "UnknownIndicatorKind",
    "InvalidRuleError",
    "InvalidConfigError",
    "InsufficientDataError",
    "Candle",
    "CandleSeries",
    "CsvCandleProvider",
    "load_csv",
    "normalize_candles",
    "IndicatorCache",
    "IndicatorKind",
    "IndicatorSpec",
    "compute_indicator",
    "Condition",
    "ConditionEvaluator",
    "Rule",
    "list_available_indicators",
    "parse_rules",
    "BacktestConfig",
    "BacktestResult",
    "BacktestSimulator",
    "ExitReason",
    "Trade",
    "run_backtest",
    "BacktestStats",
    "calculate_stats",
    "LiveScanner",
    "ScanReport",
    "Signal",
    "scan_signals",
    "export_json",
    "print_report",
    "print_signals",
]
