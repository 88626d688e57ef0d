"""
Performance Metrics Calculation

Summary statistics over a full trade list and equity curve.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Sequence

import numpy as np

from ..config import settings
from ..engine.records import EquityPoint, Trade, round_money

# Profit factor reported when there are wins but no losses.
PROFIT_FACTOR_CAP = 999.99


@dataclass(frozen=True)
class BacktestStats:
    """Summary of a backtest. Money in whole units, percentages to 2 decimals."""

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    net_return: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0
    initial_capital: float = 0.0
    final_capital: float = 0.0
    best_trade: float = 0.0
    worst_trade: float = 0.0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    avg_holding_bars: float = 0.0
    exit_reasons: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return asdict(self)


def _max_consecutive(condition: np.ndarray) -> int:
    """Find maximum consecutive True values in boolean array."""
    if len(condition) == 0:
        return 0

    max_count = 0
    current_count = 0

    for val in condition:
        if val:
            current_count += 1
            max_count = max(max_count, current_count)
        else:
            current_count = 0

    return max_count


def calculate_max_drawdown(equity: Sequence[float]) -> float:
    """Largest peak-to-trough decline in percent, with the peak tracked forward."""
    if len(equity) == 0:
        return 0.0

    values = np.asarray(equity, dtype=float)
    peak = np.maximum.accumulate(values)
    with np.errstate(divide="ignore", invalid="ignore"):
        drawdown = np.where(peak > 0, (peak - values) / peak * 100, 0.0)
    return float(np.max(drawdown))


def calculate_sharpe_ratio(
    equity: Sequence[float],
    periods_per_year: int = None,
) -> float:
    """
    Annualized Sharpe ratio of bar-to-bar equity returns (no risk-free rate).

    Returns 0 when there are fewer than 2 returns or the returns have zero variance.
    """
    periods_per_year = periods_per_year or settings.trading_days_per_year
    values = np.asarray(equity, dtype=float)
    if len(values) < 3:
        return 0.0

    with np.errstate(divide="ignore", invalid="ignore"):
        returns = np.diff(values) / values[:-1]
    if not np.all(np.isfinite(returns)):
        return 0.0

    std = np.std(returns, ddof=1)
    if std == 0 or not np.isfinite(std):
        return 0.0
    return float(np.mean(returns) / std * np.sqrt(periods_per_year))


def calculate_profit_factor(pnls: Sequence[float]) -> float:
    """
    |gross profit / gross loss|.

    0 with no wins and no losses; PROFIT_FACTOR_CAP with wins but no losses.
    """
    profits = np.asarray(pnls, dtype=float)
    gross_profit = float(np.sum(profits[profits > 0])) if len(profits) else 0.0
    gross_loss = abs(float(np.sum(profits[profits <= 0]))) if len(profits) else 0.0

    if gross_loss > 0:
        return gross_profit / gross_loss
    return PROFIT_FACTOR_CAP if gross_profit > 0 else 0.0


def calculate_stats(
    trades: Sequence[Trade],
    equity_curve: Sequence[EquityPoint],
    initial_capital: float,
    final_capital: float,
) -> BacktestStats:
    """
    Calculate summary statistics from the full trade list and equity curve.

    Args:
        trades: Every closed trade, in close order
        equity_curve: One point per evaluated bar plus the initial point
        initial_capital: Starting account value
        final_capital: Realized capital after the last trade

    Returns:
        BacktestStats
    """
    pnls = np.array([t.pnl for t in trades], dtype=float)
    wins = pnls[pnls > 0]
    losses = pnls[pnls <= 0]

    total_trades = len(pnls)
    equity = [point.equity for point in equity_curve]
    exit_reasons: Dict[str, int] = dict(Counter(t.exit_reason.value for t in trades))
    holding: List[int] = [t.holding_bars for t in trades]

    return BacktestStats(
        total_trades=total_trades,
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=round(len(wins) / total_trades * 100, 2) if total_trades > 0 else 0.0,
        total_pnl=round_money(float(np.sum(pnls))) if total_trades > 0 else 0.0,
        net_return=round((final_capital - initial_capital) / initial_capital * 100, 2),
        max_drawdown=round(calculate_max_drawdown(equity), 2),
        sharpe_ratio=round(calculate_sharpe_ratio(equity), 2),
        avg_win=round_money(float(np.mean(wins))) if len(wins) > 0 else 0.0,
        avg_loss=round_money(float(np.mean(losses))) if len(losses) > 0 else 0.0,
        profit_factor=round(calculate_profit_factor(pnls), 2),
        initial_capital=round_money(initial_capital),
        final_capital=round_money(final_capital),
        best_trade=round_money(float(np.max(pnls))) if total_trades > 0 else 0.0,
        worst_trade=round_money(float(np.min(pnls))) if total_trades > 0 else 0.0,
        max_consecutive_wins=_max_consecutive(pnls > 0),
        max_consecutive_losses=_max_consecutive(pnls <= 0),
        avg_holding_bars=round(float(np.mean(holding)), 2) if holding else 0.0,
        exit_reasons=exit_reasons,
    )
