"""Analyzers for backtest results."""

from .metrics import BacktestStats, calculate_stats
from .trade_logger import format_trades, format_trade_summary

__all__ = ["BacktestStats", "calculate_stats", "format_trades", "format_trade_summary"]
