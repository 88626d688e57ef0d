"""
Position, trade and equity records produced by the simulator.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


def round_money(value: float) -> float:
    """Round to whole currency units."""
    return float(round(value))


class ExitReason(str, Enum):
    """Why a position was closed. Checked in this order on every bar."""

    STOP_LOSS = "Stop Loss"
    TARGET_HIT = "Target Hit"
    SIGNAL_EXIT = "Signal Exit"
    END_OF_DATA = "End of Data"


@dataclass(frozen=True)
class Position:
    """An open long position."""

    entry_price: float
    entry_time: datetime
    entry_index: int
    quantity: int
    direction: str = "long"

    def unrealized_pnl(self, price: float) -> float:
        return (price - self.entry_price) * self.quantity

    def pnl_pct(self, price: float) -> float:
        return (price - self.entry_price) / self.entry_price * 100


@dataclass(frozen=True)
class Trade:
    """A closed position. ``pnl`` is in whole currency units, ``pnl_pct`` to 2 decimals."""

    id: int
    direction: str
    entry_price: float
    exit_price: float
    entry_time: datetime
    exit_time: datetime
    entry_index: int
    exit_index: int
    quantity: int
    pnl: float
    pnl_pct: float
    exit_reason: ExitReason
    holding_bars: int

    @property
    def is_win(self) -> bool:
        return self.pnl > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "direction": self.direction,
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "entry_time": self.entry_time,
            "exit_time": self.exit_time,
            "entry_index": self.entry_index,
            "exit_index": self.exit_index,
            "quantity": self.quantity,
            "pnl": self.pnl,
            "pnl_pct": self.pnl_pct,
            "exit_reason": self.exit_reason.value,
            "holding_bars": self.holding_bars,
        }


@dataclass(frozen=True)
class EquityPoint:
    """Account value (realized capital + unrealized P&L) after a bar."""

    index: int
    timestamp: Optional[datetime]
    equity: float

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "timestamp": self.timestamp, "equity": self.equity}
