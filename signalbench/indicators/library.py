"""
Technical Indicator Library

Pure functions mapping a candle series to one or more series aligned
index-for-index with the input. Bars inside an indicator's warm-up hold
``None``; absent values propagate through every derived series and are
never treated as zero. Numeric outputs are rounded to 2 decimals when
emitted, while running state keeps full precision.

Running recurrences (EMA, RSI, ATR, SuperTrend, VWAP) are written as
explicit folds: a small immutable state plus a ``*_step`` function, so the
initial condition and each transition can be checked on their own.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

from ..data.candles import Candle, CandleSeries
from ..errors import UnknownIndicatorKind
from .params import IndicatorKind, IndicatorSpec

logger = logging.getLogger(__name__)

Value = Optional[float]


class OutputShape(str, Enum):
    LINE = "line"
    OSCILLATOR = "oscillator"
    BAND = "band"


@dataclass(frozen=True)
class IndicatorOutput:
    """
    Aligned indicator series.

    ``values`` is the primary series. Extra series (MACD ``signal`` and
    ``histogram``, Bollinger ``upper``/``middle``/``lower``, SuperTrend
    ``trend``) live in ``extras``.
    """

    spec: IndicatorSpec
    shape: OutputShape
    values: Tuple[Value, ...]
    extras: Mapping[str, Tuple[Value, ...]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def primary(self) -> Tuple[Value, ...]:
        """Series used for rule evaluation; the middle line for bands."""
        if self.shape is OutputShape.BAND:
            return self.extras["middle"]
        return self.values

    def value_at(self, index: int) -> Value:
        if index < 0 or index >= len(self.values):
            return None
        return self.primary[index]

    def series(self, name: str) -> Tuple[Value, ...]:
        if name == "values":
            return self.values
        return self.extras[name]

    def to_frame(self, index: Optional[Sequence] = None) -> pd.DataFrame:
        """DataFrame of all series, absent values as NaN."""
        columns = {"values": self.values, **self.extras}
        return pd.DataFrame(
            {name: pd.Series(series, dtype="float64") for name, series in columns.items()}
        ).set_axis(index if index is not None else range(len(self.values)))


def _emit(value: Value) -> Value:
    return None if value is None else round(value, 2)


def _run(step: Callable, initial, items: Iterable) -> List:
    """Fold ``step`` over ``items`` and return every intermediate state."""
    states = []
    state = initial
    for item in items:
        state = step(state, item)
        states.append(state)
    return states


# ---------------------------------------------------------------------------
# SMA / Bollinger Bands
# ---------------------------------------------------------------------------


def _values(series: pd.Series) -> List[Value]:
    return [None if pd.isna(v) else _emit(float(v)) for v in series]


def sma(closes: Sequence[float], period: int) -> List[Value]:
    """Arithmetic mean of the trailing ``period`` closes."""
    return _values(pd.Series(closes, dtype="float64").rolling(period).mean())


def bollinger_bands(
    closes: Sequence[float],
    period: int = 20,
    std_dev: float = 2.0,
) -> Tuple[List[Value], List[Value], List[Value]]:
    """Upper, middle and lower bands using the population standard deviation."""
    window = pd.Series(closes, dtype="float64").rolling(period)
    mean = window.mean()
    half_width = std_dev * window.std(ddof=0)
    return _values(mean + half_width), _values(mean), _values(mean - half_width)


# ---------------------------------------------------------------------------
# EMA / MACD
# ---------------------------------------------------------------------------


class EmaState(NamedTuple):
    seen: int = 0
    seed_total: float = 0.0
    value: Value = None


def ema_step(state: EmaState, price: float, period: int) -> EmaState:
    """Seed with the SMA of the first ``period`` prices, then smooth with k = 2/(period+1)."""
    seen = state.seen + 1
    if state.value is None:
        total = state.seed_total + price
        return EmaState(seen, total, total / period if seen == period else None)
    k = 2 / (period + 1)
    return EmaState(seen, state.seed_total, price * k + state.value * (1 - k))


def ema(closes: Sequence[float], period: int) -> List[Value]:
    states = _run(lambda s, price: ema_step(s, price, period), EmaState(), closes)
    return [_emit(s.value) for s in states]


def _ema_of_defined(values: Sequence[Value], period: int) -> List[Value]:
    """EMA over the leading run of defined values; absent everywhere else."""
    out: List[Value] = [None] * len(values)
    start = next((i for i, v in enumerate(values) if v is not None), None)
    if start is None:
        return out

    state = EmaState()
    for i in range(start, len(values)):
        if values[i] is None:
            break
        state = ema_step(state, values[i], period)
        out[i] = _emit(state.value)
    return out


def _difference(a: Sequence[Value], b: Sequence[Value]) -> List[Value]:
    return [_emit(x - y) if x is not None and y is not None else None for x, y in zip(a, b)]


def macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> Tuple[List[Value], List[Value], List[Value]]:
    """MACD line, signal line and histogram."""
    macd_line = _difference(ema(closes, fast), ema(closes, slow))
    signal_line = _ema_of_defined(macd_line, signal)
    histogram = _difference(macd_line, signal_line)
    return macd_line, signal_line, histogram


# ---------------------------------------------------------------------------
# RSI
# ---------------------------------------------------------------------------


class RsiState(NamedTuple):
    prev_close: Value = None
    changes: int = 0
    # Raw sums until ``period`` changes are seen, Wilder averages afterwards
    avg_gain: float = 0.0
    avg_loss: float = 0.0
    value: Value = None


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100 - 100 / (1 + avg_gain / avg_loss)


def rsi_step(state: RsiState, close: float, period: int) -> RsiState:
    if state.prev_close is None:
        return state._replace(prev_close=close)

    change = close - state.prev_close
    gain = max(change, 0.0)
    loss = max(-change, 0.0)
    changes = state.changes + 1

    if changes < period:
        return RsiState(close, changes, state.avg_gain + gain, state.avg_loss + loss, None)
    if changes == period:
        avg_gain = (state.avg_gain + gain) / period
        avg_loss = (state.avg_loss + loss) / period
    else:
        avg_gain = (state.avg_gain * (period - 1) + gain) / period
        avg_loss = (state.avg_loss * (period - 1) + loss) / period
    return RsiState(close, changes, avg_gain, avg_loss, _rsi_value(avg_gain, avg_loss))


def rsi(closes: Sequence[float], period: int = 14) -> List[Value]:
    states = _run(lambda s, close: rsi_step(s, close, period), RsiState(), closes)
    return [_emit(s.value) for s in states]


# ---------------------------------------------------------------------------
# ATR / SuperTrend
# ---------------------------------------------------------------------------


def true_range(high: float, low: float, prev_close: Value) -> float:
    if prev_close is None:
        return high - low
    return max(high - low, abs(high - prev_close), abs(low - prev_close))


class AtrState(NamedTuple):
    prev_close: Value = None
    bars: int = 0
    tr_total: float = 0.0
    value: Value = None


def atr_step(state: AtrState, candle: Candle, period: int) -> AtrState:
    """Seed with the mean of the first ``period + 1`` true ranges, then Wilder smoothing."""
    tr = true_range(candle.high, candle.low, state.prev_close)
    bars = state.bars + 1
    if state.value is None:
        total = state.tr_total + tr
        value = total / (period + 1) if bars == period + 1 else None
        return AtrState(candle.close, bars, total, value)
    return AtrState(candle.close, bars, state.tr_total, (state.value * (period - 1) + tr) / period)


def _atr_raw(candles: Sequence[Candle], period: int) -> List[Value]:
    states = _run(lambda s, c: atr_step(s, c, period), AtrState(), candles)
    return [s.value for s in states]


def atr(candles: Sequence[Candle], period: int = 14) -> List[Value]:
    return [_emit(v) for v in _atr_raw(candles, period)]


class Band(Enum):
    """Which SuperTrend band is currently active."""

    UPPER = "upper"
    LOWER = "lower"


class Trend(IntEnum):
    UP = 1
    DOWN = -1


class SuperTrendState(NamedTuple):
    upper: Value = None
    lower: Value = None
    prev_close: Value = None
    tracking: Optional[Band] = None
    value: Value = None

    @property
    def trend(self) -> Optional[Trend]:
        if self.value is None:
            return None
        return Trend.UP if self.tracking is Band.LOWER else Trend.DOWN


def supertrend_step(
    state: SuperTrendState,
    candle: Candle,
    atr_value: Value,
    multiplier: float,
) -> SuperTrendState:
    """
    Advance the SuperTrend bands by one bar.

    Bands only move toward price unless the previous close crossed them.
    In an uptrend the lower band is active; the trend flips to down when the
    close falls below it, and back up when the close rises above the upper band.
    """
    if atr_value is None:
        return state._replace(value=None)

    upper = candle.midpoint + multiplier * atr_value
    lower = candle.midpoint - multiplier * atr_value

    if state.lower is not None:
        if not (lower > state.lower or state.prev_close < state.lower):
            lower = state.lower
        if not (upper < state.upper or state.prev_close > state.upper):
            upper = state.upper

    if state.tracking is None:
        trend = Trend.UP
    elif state.tracking is Band.UPPER:
        trend = Trend.UP if candle.close > upper else Trend.DOWN
    else:
        trend = Trend.DOWN if candle.close < lower else Trend.UP

    if trend is Trend.UP:
        return SuperTrendState(upper, lower, candle.close, Band.LOWER, lower)
    return SuperTrendState(upper, lower, candle.close, Band.UPPER, upper)


def supertrend(
    candles: Sequence[Candle],
    period: int = 10,
    multiplier: float = 3.0,
) -> Tuple[List[Value], List[Optional[int]]]:
    """Active band value and trend flag (+1 up, -1 down) per bar."""
    atr_values = _atr_raw(candles, period)
    states = _run(
        lambda s, pair: supertrend_step(s, pair[0], pair[1], multiplier),
        SuperTrendState(),
        zip(candles, atr_values),
    )
    values = [_emit(s.value) for s in states]
    trends = [int(s.trend) if s.trend is not None else None for s in states]
    return values, trends


# ---------------------------------------------------------------------------
# VWAP
# ---------------------------------------------------------------------------


class VwapState(NamedTuple):
    cum_price_volume: float = 0.0
    cum_volume: float = 0.0
    value: Value = None


def vwap_step(state: VwapState, candle: Candle) -> VwapState:
    price_volume = state.cum_price_volume + candle.typical_price * candle.volume
    volume = state.cum_volume + candle.volume
    return VwapState(price_volume, volume, price_volume / volume if volume > 0 else None)


def vwap(candles: Sequence[Candle]) -> List[Value]:
    return [_emit(s.value) for s in _run(vwap_step, VwapState(), candles)]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def _compute_sma(candles: CandleSeries, spec: IndicatorSpec) -> IndicatorOutput:
    return IndicatorOutput(spec, OutputShape.LINE, tuple(sma(candles.closes, spec.params.period)))


def _compute_ema(candles: CandleSeries, spec: IndicatorSpec) -> IndicatorOutput:
    return IndicatorOutput(spec, OutputShape.LINE, tuple(ema(candles.closes, spec.params.period)))


def _compute_rsi(candles: CandleSeries, spec: IndicatorSpec) -> IndicatorOutput:
    return IndicatorOutput(spec, OutputShape.OSCILLATOR, tuple(rsi(candles.closes, spec.params.period)))


def _compute_macd(candles: CandleSeries, spec: IndicatorSpec) -> IndicatorOutput:
    p = spec.params
    line, signal, histogram = macd(candles.closes, p.fast, p.slow, p.signal)
    return IndicatorOutput(
        spec,
        OutputShape.OSCILLATOR,
        tuple(line),
        {"signal": tuple(signal), "histogram": tuple(histogram)},
    )


def _compute_bollinger(candles: CandleSeries, spec: IndicatorSpec) -> IndicatorOutput:
    upper, middle, lower = bollinger_bands(candles.closes, spec.params.period, spec.params.std_dev)
    return IndicatorOutput(
        spec,
        OutputShape.BAND,
        tuple(middle),
        {"upper": tuple(upper), "middle": tuple(middle), "lower": tuple(lower)},
    )


def _compute_atr(candles: CandleSeries, spec: IndicatorSpec) -> IndicatorOutput:
    return IndicatorOutput(spec, OutputShape.OSCILLATOR, tuple(atr(candles, spec.params.period)))


def _compute_supertrend(candles: CandleSeries, spec: IndicatorSpec) -> IndicatorOutput:
    values, trends = supertrend(candles, spec.params.period, spec.params.multiplier)
    return IndicatorOutput(spec, OutputShape.LINE, tuple(values), {"trend": tuple(trends)})


def _compute_vwap(candles: CandleSeries, spec: IndicatorSpec) -> IndicatorOutput:
    return IndicatorOutput(spec, OutputShape.LINE, tuple(vwap(candles)))


INDICATOR_FUNCTIONS: Dict[IndicatorKind, Callable[[CandleSeries, IndicatorSpec], IndicatorOutput]] = {
    IndicatorKind.SMA: _compute_sma,
    IndicatorKind.EMA: _compute_ema,
    IndicatorKind.RSI: _compute_rsi,
    IndicatorKind.MACD: _compute_macd,
    IndicatorKind.BOLLINGER_BANDS: _compute_bollinger,
    IndicatorKind.ATR: _compute_atr,
    IndicatorKind.SUPERTREND: _compute_supertrend,
    IndicatorKind.VWAP: _compute_vwap,
}


def compute_indicator(candles: CandleSeries, spec: IndicatorSpec) -> IndicatorOutput:
    """
    Compute one indicator over a candle series.

    Args:
        candles: Normalized candle series
        spec: Indicator kind and parameters

    Returns:
        IndicatorOutput with series the same length as ``candles``

    Raises:
        UnknownIndicatorKind: If no computation is registered for the kind
    """
    compute = INDICATOR_FUNCTIONS.get(spec.kind)
    if compute is None:
        raise UnknownIndicatorKind(spec.kind)

    logger.debug(f"Calculating {spec.label} over {len(candles)} bars")
    return compute(candles, spec)
