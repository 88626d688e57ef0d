"""
Backtest Simulator

Runs buy/sell rule sets over a candle series with a single long position:
Flat -> InPosition on a buy signal, back to Flat on stop loss, target,
sell signal, or end of data. Exits and entries fill at the bar's close.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..analyzers.metrics import BacktestStats, calculate_stats
from ..config import settings
from ..data.candles import Candle, CandleSeries, normalize_candles
from ..errors import InvalidConfigError
from ..indicators.cache import IndicatorCache
from ..strategies.evaluator import ConditionEvaluator
from ..strategies.rules import Rule, parse_rules
from .records import EquityPoint, ExitReason, Position, Trade, round_money

logger = logging.getLogger(__name__)

RuleInput = Union[Rule, Mapping[str, Any]]

# Wire config keys -> BacktestConfig fields
_CONFIG_ALIASES = {
    "initialcapital": "initial_capital",
    "positionsize": "position_size",
    "stoplosspercent": "stop_loss_pct",
    "stoplosspct": "stop_loss_pct",
    "targetpercent": "target_pct",
    "targetpct": "target_pct",
    "warmupbars": "warmup_bars",
    "maxresulttrades": "max_result_trades",
}


@dataclass(frozen=True)
class BacktestConfig:
    """Backtest parameters. Defaults come from settings."""

    initial_capital: float = field(default_factory=lambda: settings.default_initial_capital)
    position_size: float = field(default_factory=lambda: settings.default_position_size)
    stop_loss_pct: float = field(default_factory=lambda: settings.default_stop_loss_pct)
    target_pct: float = field(default_factory=lambda: settings.default_target_pct)
    warmup_bars: int = field(default_factory=lambda: settings.warmup_bars)
    max_result_trades: int = field(default_factory=lambda: settings.max_result_trades)

    def __post_init__(self):
        if not math.isfinite(self.initial_capital) or self.initial_capital <= 0:
            raise InvalidConfigError(f"initial_capital must be positive, got {self.initial_capital}")
        if not 0 < self.position_size <= 1:
            raise InvalidConfigError(f"position_size must be in (0, 1], got {self.position_size}")
        if self.stop_loss_pct <= 0:
            raise InvalidConfigError(f"stop_loss_pct must be positive, got {self.stop_loss_pct}")
        if self.target_pct <= 0:
            raise InvalidConfigError(f"target_pct must be positive, got {self.target_pct}")
        if self.warmup_bars < 1:
            raise InvalidConfigError(f"warmup_bars must be at least 1, got {self.warmup_bars}")
        if self.max_result_trades < 1:
            raise InvalidConfigError(
                f"max_result_trades must be at least 1, got {self.max_result_trades}"
            )

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]] = None) -> "BacktestConfig":
        """Build from wire keys (``initialCapital``, ``stopLossPercent``) or field names."""
        kwargs = {}
        for key, value in (data or {}).items():
            name = _CONFIG_ALIASES.get(str(key).replace("_", "").lower())
            if name is None or value is None or value == "":
                continue
            try:
                kwargs[name] = int(value) if name in ("warmup_bars", "max_result_trades") else float(value)
            except (TypeError, ValueError) as e:
                raise InvalidConfigError(f"{key}={value!r} is not a number") from e
        return cls(**kwargs)


@dataclass(frozen=True)
class BacktestResult:
    """Read-only snapshot of one backtest run."""

    trades: Tuple[Trade, ...]
    equity_curve: Tuple[EquityPoint, ...]
    stats: BacktestStats
    config: BacktestConfig
    symbol: Optional[str] = None

    @property
    def total_trades(self) -> int:
        return self.stats.total_trades

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "config": asdict(self.config),
            "stats": self.stats.to_dict(),
            "trades": [t.to_dict() for t in self.trades],
            "equity_curve": [p.to_dict() for p in self.equity_curve],
        }


class BacktestSimulator:
    """
    Single-position backtest over one candle series.

    Usage:
        simulator = BacktestSimulator(BacktestConfig(stop_loss_pct=3))
        result = simulator.run(candles, buy_rules=[...], sell_rules=[...])
        print(result.stats.net_return)
    """

    def __init__(self, config: Optional[BacktestConfig] = None):
        self.config = config or BacktestConfig()

    def _exit_reason(
        self,
        position: Position,
        candle: Candle,
        index: int,
        sell_rules: Sequence[Rule],
        evaluator: ConditionEvaluator,
    ) -> Optional[ExitReason]:
        """First matching exit in the fixed order stop loss -> target -> sell signal."""
        pnl_pct = position.pnl_pct(candle.close)
        if pnl_pct <= -self.config.stop_loss_pct:
            return ExitReason.STOP_LOSS
        if pnl_pct >= self.config.target_pct:
            return ExitReason.TARGET_HIT
        if evaluator.all_hold(sell_rules, index):
            return ExitReason.SIGNAL_EXIT
        return None

    def _open(self, capital: float, candle: Candle, index: int) -> Optional[Position]:
        if candle.close <= 0:
            return None
        quantity = math.floor(capital * self.config.position_size / candle.close)
        if quantity <= 0:
            logger.debug(f"Skipping entry at bar {index}: position size rounds to 0 shares")
            return None
        logger.info(f"  BUY {quantity} @ {candle.close:.2f} (bar {index}, {candle.timestamp})")
        return Position(
            entry_price=candle.close,
            entry_time=candle.timestamp,
            entry_index=index,
            quantity=quantity,
        )

    @staticmethod
    def _close(
        position: Position,
        candle: Candle,
        index: int,
        reason: ExitReason,
        trade_id: int,
    ) -> Trade:
        pnl = position.unrealized_pnl(candle.close)
        logger.info(
            f"SELL {position.quantity} @ {candle.close:.2f} (bar {index}): "
            f"{reason.value}, P&L {pnl:+.2f}"
        )
        return Trade(
            id=trade_id,
            direction=position.direction,
            entry_price=position.entry_price,
            exit_price=candle.close,
            entry_time=position.entry_time,
            exit_time=candle.timestamp,
            entry_index=position.entry_index,
            exit_index=index,
            quantity=position.quantity,
            pnl=round_money(pnl),
            pnl_pct=round(position.pnl_pct(candle.close), 2),
            exit_reason=reason,
            holding_bars=index - position.entry_index,
        )

    def run(
        self,
        candles: Union[CandleSeries, Iterable[Any]],
        buy_rules: Iterable[RuleInput],
        sell_rules: Iterable[RuleInput] = (),
        symbol: Optional[str] = None,
    ) -> BacktestResult:
        """
        Run the backtest.

        Args:
            candles: CandleSeries, or raw rows to normalize first
            buy_rules: Rules that must all hold to open a position
            sell_rules: Rules that must all hold to close it on a signal
            symbol: Optional label carried into the result

        Returns:
            BacktestResult with the most recent trades, the full equity
            curve and statistics over every trade
        """
        if not isinstance(candles, CandleSeries):
            candles = normalize_candles(candles)
        buy_rules = parse_rules(buy_rules)
        sell_rules = parse_rules(sell_rules)
        cfg = self.config

        label = symbol or "series"
        logger.info(
            f"Running backtest for {label}: {len(candles)} bars, "
            f"{len(buy_rules)} buy / {len(sell_rules)} sell rules"
        )

        cache = IndicatorCache(candles)
        cache.warm(rule.indicator for rule in (*buy_rules, *sell_rules))
        evaluator = ConditionEvaluator(cache)

        capital = cfg.initial_capital
        position: Optional[Position] = None
        trades: List[Trade] = []
        first_timestamp = candles[0].timestamp if len(candles) > 0 else None
        equity_curve: List[EquityPoint] = [EquityPoint(0, first_timestamp, round_money(capital))]

        if len(candles) <= cfg.warmup_bars:
            logger.info(f"  Only {len(candles)} bars (warm-up is {cfg.warmup_bars}), no trades possible")

        for i in range(cfg.warmup_bars, len(candles)):
            candle = candles[i]

            if position is not None:
                reason = self._exit_reason(position, candle, i, sell_rules, evaluator)
                if reason is not None:
                    capital += position.unrealized_pnl(candle.close)
                    trades.append(self._close(position, candle, i, reason, len(trades) + 1))
                    position = None
            elif evaluator.all_hold(buy_rules, i):
                position = self._open(capital, candle, i)

            unrealized = position.unrealized_pnl(candle.close) if position is not None else 0.0
            equity_curve.append(EquityPoint(i, candle.timestamp, round_money(capital + unrealized)))

        if position is not None:
            last_index = len(candles) - 1
            last = candles[last_index]
            logger.debug("Closing open position at end of data")
            capital += position.unrealized_pnl(last.close)
            trades.append(
                self._close(position, last, last_index, ExitReason.END_OF_DATA, len(trades) + 1)
            )

        stats = calculate_stats(trades, equity_curve, cfg.initial_capital, capital)
        logger.info(
            f"  Backtest complete: {stats.total_trades} trades, {stats.win_rate:.1f}% win rate, "
            f"net return {stats.net_return:+.2f}%"
        )

        return BacktestResult(
            trades=tuple(trades[-cfg.max_result_trades:]),
            equity_curve=tuple(equity_curve),
            stats=stats,
            config=cfg,
            symbol=symbol,
        )


def run_backtest(
    candles: Union[CandleSeries, Iterable[Any]],
    buy_rules: Iterable[RuleInput],
    sell_rules: Iterable[RuleInput] = (),
    config: Optional[Union[BacktestConfig, Mapping[str, Any]]] = None,
    symbol: Optional[str] = None,
) -> BacktestResult:
    """Run a backtest with a fresh simulator. ``config`` may be a BacktestConfig or wire dict."""
    if config is not None and not isinstance(config, BacktestConfig):
        config = BacktestConfig.from_dict(config)
    return BacktestSimulator(config).run(candles, buy_rules, sell_rules, symbol=symbol)
