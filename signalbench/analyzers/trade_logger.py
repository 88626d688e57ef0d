"""
Trade Logger

Formats trade records for display.
"""

from datetime import datetime
from typing import Dict, Sequence

from ..engine.records import Trade


def _date(value) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    return str(value) if value is not None else "N/A"


def format_trades(trades: Sequence[Trade], limit: int = 10) -> str:
    """
    Format trade records for console display.

    Args:
        trades: Closed trades, oldest first
        limit: Maximum number of trades to show (0 = all)

    Returns:
        Formatted string for console output
    """
    if not trades:
        return "No trades executed."

    lines = []
    display_trades = list(trades[-limit:]) if limit > 0 else list(trades)

    if limit > 0 and len(trades) > limit:
        lines.append(f"(Showing last {limit} of {len(trades)} trades)\n")

    for trade in display_trades:
        pnl_str = f"{trade.pnl_pct:+.2f}%"
        lines.append(
            f"{trade.id}. {_date(trade.entry_time)}: BUY {trade.quantity} @ {trade.entry_price:.2f}"
        )
        lines.append(
            f"   {_date(trade.exit_time)}: SELL @ {trade.exit_price:.2f} "
            f"({pnl_str}, P&L {trade.pnl:+,.0f}) - {trade.exit_reason.value}, "
            f"held {trade.holding_bars} bars"
        )
        lines.append("")

    return "\n".join(lines)


def format_trade_summary(trades: Sequence[Trade]) -> Dict:
    """
    Create summary statistics from the given trades, in percent terms.

    Args:
        trades: Closed trades

    Returns:
        Dict with summary statistics, empty when there are no trades
    """
    if not trades:
        return {}

    profits = [t.pnl_pct for t in trades]
    wins = [t.pnl_pct for t in trades if t.is_win]
    losses = [t.pnl_pct for t in trades if not t.is_win]

    exit_reasons: Dict[str, int] = {}
    for trade in trades:
        reason = trade.exit_reason.value
        exit_reasons[reason] = exit_reasons.get(reason, 0) + 1

    return {
        "total_trades": len(trades),
        "winners": len(wins),
        "losers": len(losses),
        "win_rate": len(wins) / len(trades),
        "avg_win_pct": sum(wins) / len(wins) if wins else 0,
        "avg_loss_pct": sum(losses) / len(losses) if losses else 0,
        "best_trade_pct": max(profits),
        "worst_trade_pct": min(profits),
        "exit_reasons": exit_reasons,
    }
