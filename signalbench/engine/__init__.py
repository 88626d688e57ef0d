"""Backtest simulation engine."""

from .records import EquityPoint, ExitReason, Position, Trade
from .simulator import BacktestConfig, BacktestResult, BacktestSimulator, run_backtest

__all__ = [
    "EquityPoint",
    "ExitReason",
    "Position",
    "Trade",
    "BacktestConfig",
    "BacktestResult",
    "BacktestSimulator",
    "run_backtest",
]
