"""Shared fixtures for signalbench tests."""

from datetime import datetime, timedelta
from typing import Optional, Sequence

import pytest

from signalbench.analyzers.metrics import calculate_stats
from signalbench.config import Settings
from signalbench.data.candles import Candle, CandleSeries
from signalbench.engine.records import EquityPoint, ExitReason, Trade
from signalbench.engine.simulator import BacktestConfig, BacktestResult

START = datetime(2024, 1, 1)


def make_candles(
    closes: Sequence[float],
    spread: float = 0.0,
    volume: float = 1000.0,
    opens: Optional[Sequence[float]] = None,
    start: datetime = START,
) -> CandleSeries:
    """Daily candles with high/low ``spread`` away from the close."""
    candles = []
    for i, close in enumerate(closes):
        open_ = opens[i] if opens is not None else close
        candles.append(
            Candle(
                timestamp=start + timedelta(days=i),
                open=open_,
                high=max(open_, close) + spread,
                low=max(min(open_, close) - spread, 0.0),
                close=close,
                volume=volume,
            )
        )
    return CandleSeries(candles)


@pytest.fixture
def candle_factory():
    """Build a CandleSeries from a list of closes."""
    return make_candles


@pytest.fixture
def settings():
    """Default Settings instance (uses env defaults)."""
    return Settings()


@pytest.fixture
def constant_candles():
    """60 bars with open = high = low = close = 100 and volume 1000."""
    return make_candles([100.0] * 60)


@pytest.fixture
def rising_candles():
    """80 bars with close rising by 1 per bar from 100."""
    return make_candles([100.0 + i for i in range(80)], spread=0.5)


@pytest.fixture
def linear_closes():
    """Closes 1, 2, ..., 60."""
    return [float(i) for i in range(1, 61)]


def _trade(
    trade_id: int,
    entry_price: float,
    exit_price: float,
    reason: ExitReason,
    entry_index: int,
    exit_index: int,
    quantity: int = 100,
) -> Trade:
    pnl = (exit_price - entry_price) * quantity
    return Trade(
        id=trade_id,
        direction="long",
        entry_price=entry_price,
        exit_price=exit_price,
        entry_time=START + timedelta(days=entry_index),
        exit_time=START + timedelta(days=exit_index),
        entry_index=entry_index,
        exit_index=exit_index,
        quantity=quantity,
        pnl=float(round(pnl)),
        pnl_pct=round((exit_price - entry_price) / entry_price * 100, 2),
        exit_reason=reason,
        holding_bars=exit_index - entry_index,
    )


@pytest.fixture
def sample_trades():
    """Five closed trades: win, loss, win, loss, win (P&L +400, -200, +520, -300, +600)."""
    return [
        _trade(1, 100.0, 104.0, ExitReason.TARGET_HIT, 50, 55),
        _trade(2, 100.0, 98.0, ExitReason.STOP_LOSS, 56, 58),
        _trade(3, 130.0, 135.2, ExitReason.TARGET_HIT, 60, 70),
        _trade(4, 150.0, 147.0, ExitReason.STOP_LOSS, 71, 73),
        _trade(5, 150.0, 156.0, ExitReason.SIGNAL_EXIT, 75, 80),
    ]


@pytest.fixture
def sample_result(sample_trades):
    """A representative BacktestResult for report / serialization tests."""
    equity = [100_000.0, 100_400.0, 100_200.0, 100_720.0, 100_420.0, 101_020.0]
    curve = [EquityPoint(i, START + timedelta(days=i), value) for i, value in enumerate(equity)]
    stats = calculate_stats(sample_trades, curve, 100_000.0, 101_020.0)
    return BacktestResult(
        trades=tuple(sample_trades),
        equity_curve=tuple(curve),
        stats=stats,
        config=BacktestConfig(),
        symbol="TCS",
    )
