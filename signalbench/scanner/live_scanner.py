"""
Live Scanner

Checks a rule set against the most recent bar of every symbol in a
watchlist. Symbols are independent: a symbol whose data cannot be loaded
or is too short is skipped and the scan carries on.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Union

import numpy as np

from ..config import settings
from ..data.candles import CandleSeries, normalize_candles
from ..errors import InsufficientDataError
from ..indicators.cache import IndicatorCache
from ..indicators.params import IndicatorKind, IndicatorSpec
from ..strategies.evaluator import ConditionEvaluator
from ..strategies.rules import Rule, parse_rules

logger = logging.getLogger(__name__)

BUY = "BUY"
SELL = "SELL"


class CandleProvider(Protocol):
    """Anything that can fetch a candle series for a symbol."""

    def get_candles(self, symbol: str) -> Any:
        ...


@dataclass(frozen=True)
class Signal:
    """A rule set matched on a symbol's latest bar."""

    symbol: str
    name: str
    price: float
    direction: str
    target: float
    stop_loss: float
    confidence: int
    indicator: str
    timestamp: Optional[datetime] = None
    change_pct: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScanReport:
    """Signals in watchlist order plus the symbols that were skipped and why."""

    signals: List[Signal]
    scanned_count: int
    skipped: Dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signals": [s.to_dict() for s in self.signals],
            "scanned_count": self.scanned_count,
            "skipped": dict(self.skipped),
            "timestamp": self.timestamp,
        }


class LiveScanner:
    """
    Evaluates rules at the last bar of each symbol.

    Usage:
        scanner = LiveScanner(CsvCandleProvider("data"))
        report = scanner.run(["TCS", "INFY"], rules)
        for signal in report.signals:
            print(signal.symbol, signal.direction, signal.target)
    """

    def __init__(
        self,
        provider: CandleProvider,
        rng: Optional[np.random.Generator] = None,
        min_bars: Optional[int] = None,
        atr_period: Optional[int] = None,
        fallback_stop_pct: Optional[float] = None,
    ):
        self.provider = provider
        self.rng = rng if rng is not None else np.random.default_rng()
        self.min_bars = min_bars or settings.scan_min_bars
        self.atr_period = atr_period or settings.scan_atr_period
        self.fallback_stop_pct = fallback_stop_pct or settings.scan_fallback_stop_pct

    def _confidence(self) -> int:
        """Randomized score in [60, 90), capped at 95."""
        return min(95, math.floor(60 + self.rng.random() * 30))

    def _load(self, symbol: str) -> CandleSeries:
        candles = self.provider.get_candles(symbol)
        if not isinstance(candles, CandleSeries):
            candles = normalize_candles(candles)
        if len(candles) < self.min_bars:
            raise InsufficientDataError(symbol, len(candles), self.min_bars)
        return candles

    def check_symbol(self, symbol: str, candles: CandleSeries, rules: Sequence[Rule]) -> Optional[Signal]:
        """Evaluate rules at the last bar; returns a Signal if all hold."""
        cache = IndicatorCache(candles)
        evaluator = ConditionEvaluator(cache)
        last_index = len(candles) - 1

        if not evaluator.all_hold(rules, last_index):
            return None

        last = candles[last_index]
        atr_value = cache.get(
            IndicatorSpec.of(IndicatorKind.ATR, period=self.atr_period)
        ).value_at(last_index)
        if not atr_value:
            atr_value = last.close * self.fallback_stop_pct / 100

        previous_close = candles[last_index - 1].close if last_index > 0 else None
        change_pct = (
            round((last.close - previous_close) / previous_close * 100, 2)
            if previous_close
            else 0.0
        )

        first = rules[0]
        return Signal(
            symbol=symbol,
            name=symbol,
            price=last.close,
            direction=BUY if "Above" in first.condition.value else SELL,
            target=round(last.close + 2 * atr_value, 2),
            stop_loss=round(last.close - atr_value, 2),
            confidence=self._confidence(),
            indicator=first.indicator.kind.value.upper(),
            timestamp=last.timestamp,
            change_pct=change_pct,
        )

    def run(
        self,
        symbols: Iterable[str],
        rules: Iterable[Union[Rule, Mapping[str, Any]]],
    ) -> ScanReport:
        """
        Scan every symbol in order.

        Args:
            symbols: Watchlist, scanned in the given order
            rules: Rules that must all hold at the latest bar

        Returns:
            ScanReport with signals in watchlist order
        """
        rules = parse_rules(rules)
        symbols = list(symbols)
        signals: List[Signal] = []
        skipped: Dict[str, str] = {}

        logger.info(f"Scanning {len(symbols)} symbols with {len(rules)} rules")

        for symbol in symbols:
            try:
                candles = self._load(symbol)
                signal = self.check_symbol(symbol, candles, rules)
            except InsufficientDataError as e:
                logger.warning(f"Scan skip {symbol}: {e}")
                skipped[symbol] = str(e)
                continue
            except Exception as e:
                logger.error(f"Scan failed for {symbol}: {e}")
                skipped[symbol] = str(e)
                continue

            if signal is not None:
                logger.info(
                    f"  {symbol}: {signal.direction} @ {signal.price:.2f} "
                    f"(target {signal.target:.2f}, stop {signal.stop_loss:.2f})"
                )
                signals.append(signal)

        logger.info(f"Scan complete: {len(signals)} signals, {len(skipped)} skipped")
        return ScanReport(signals=signals, scanned_count=len(symbols), skipped=skipped)


def scan_signals(
    provider: CandleProvider,
    rules: Iterable[Union[Rule, Mapping[str, Any]]],
    symbols: Optional[Iterable[str]] = None,
    rng: Optional[np.random.Generator] = None,
) -> List[Signal]:
    """Scan ``symbols`` (default: the configured watchlist) and return the signals."""
    if symbols is None:
        symbols = settings.default_watchlist
    return LiveScanner(provider, rng=rng).run(symbols, rules).signals
