"""
Candle Series

Normalized OHLCV input consumed by indicators, the simulator and the scanner.
Malformed rows are dropped here so nothing downstream ever sees a
zero-filled price.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import pandas as pd

from ..errors import InvalidInputError

logger = logging.getLogger(__name__)

TIMESTAMP_KEYS = ("timestamp", "datetime", "date", "time")
PRICE_FIELDS = ("open", "high", "low", "close")


@dataclass(frozen=True)
class Candle:
    """One OHLCV bar."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self):
        for name in PRICE_FIELDS + ("volume",):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise InvalidInputError(f"{name}={value!r} at {self.timestamp}")
        if self.high < max(self.open, self.close) or self.low > min(self.open, self.close):
            raise InvalidInputError(
                f"OHLC out of order at {self.timestamp}: "
                f"o={self.open} h={self.high} l={self.low} c={self.close}"
            )

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3

    @property
    def midpoint(self) -> float:
        return (self.high + self.low) / 2


class CandleSeries(Sequence):
    """Immutable, strictly time-ordered sequence of candles.

    Column tuples (``closes``, ``highs``, ``lows``, ``volumes``) are built once
    so indicator code can work on plain price sequences.
    """

    def __init__(self, candles: Iterable[Candle] = ()):
        self._candles: Tuple[Candle, ...] = tuple(candles)
        for prev, cur in zip(self._candles, self._candles[1:]):
            if cur.timestamp <= prev.timestamp:
                raise InvalidInputError(
                    f"Candles must be strictly increasing by timestamp: "
                    f"{prev.timestamp} then {cur.timestamp}"
                )
        self.closes: Tuple[float, ...] = tuple(c.close for c in self._candles)
        self.highs: Tuple[float, ...] = tuple(c.high for c in self._candles)
        self.lows: Tuple[float, ...] = tuple(c.low for c in self._candles)
        self.volumes: Tuple[float, ...] = tuple(c.volume for c in self._candles)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return CandleSeries(self._candles[index])
        return self._candles[index]

    def __len__(self) -> int:
        return len(self._candles)

    def __repr__(self) -> str:
        if not self._candles:
            return "CandleSeries([])"
        return (
            f"CandleSeries({len(self)} bars, "
            f"{self._candles[0].timestamp} .. {self._candles[-1].timestamp})"
        )

    @property
    def last(self) -> Optional[Candle]:
        return self._candles[-1] if self._candles else None

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "CandleSeries":
        """
        Build a series from a DataFrame.

        The timestamp is read from a DatetimeIndex or from a ``datetime``,
        ``timestamp``, ``date`` or ``time`` column. Rows are normalized with
        :func:`normalize_candles`.
        """
        frame = df
        if isinstance(df.index, pd.DatetimeIndex):
            frame = df.reset_index()
            frame = frame.rename(columns={frame.columns[0]: "timestamp"})
        frame = frame.rename(columns=str.lower)
        return normalize_candles(frame.to_dict("records"))

    def to_dataframe(self) -> pd.DataFrame:
        """DataFrame with columns open/high/low/close/volume and a datetime index."""
        df = pd.DataFrame(
            {
                "datetime": [c.timestamp for c in self._candles],
                "open": [c.open for c in self._candles],
                "high": list(self.highs),
                "low": list(self.lows),
                "close": list(self.closes),
                "volume": list(self.volumes),
            }
        )
        df.set_index("datetime", inplace=True)
        return df


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value is None or (isinstance(value, float) and math.isnan(value)):
        raise InvalidInputError("Missing timestamp")
    try:
        if isinstance(value, (int, float)):
            return pd.Timestamp(value, unit="s").to_pydatetime()
        return pd.Timestamp(value).to_pydatetime()
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"Invalid timestamp {value!r}: {e}") from e


def _parse_number(row: Mapping[str, Any], key: str) -> float:
    value = row.get(key)
    if value is None or value == "":
        raise InvalidInputError(f"Missing field '{key}'")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Field '{key}' is not numeric: {value!r}") from e


def candle_from_mapping(row: Mapping[str, Any]) -> Candle:
    """Build a Candle from a loosely-typed mapping (JSON row, CSV record)."""
    row = {str(k).lower(): v for k, v in row.items()}

    raw_ts = next((row[k] for k in TIMESTAMP_KEYS if k in row), None)
    timestamp = _parse_timestamp(raw_ts)

    prices = {name: _parse_number(row, name) for name in PRICE_FIELDS}

    # Missing volume is 0; a malformed one rejects the row
    volume = _parse_number(row, "volume") if row.get("volume") not in (None, "") else 0.0
    if math.isnan(volume):
        volume = 0.0

    return Candle(timestamp=timestamp, volume=volume, **prices)


def normalize_candles(
    rows: Iterable[Union[Candle, Mapping[str, Any]]],
) -> CandleSeries:
    """
    Normalize raw rows into a CandleSeries.

    Malformed rows are dropped (never zero-filled), the result is sorted by
    timestamp, and duplicate timestamps keep the last row seen.

    Args:
        rows: Candle instances or mappings with timestamp/open/high/low/close/volume

    Returns:
        CandleSeries ready for the core
    """
    by_timestamp: Dict[datetime, Candle] = {}
    dropped = 0

    for row in rows:
        try:
            candle = row if isinstance(row, Candle) else candle_from_mapping(row)
        except InvalidInputError as e:
            dropped += 1
            logger.debug(f"Dropping malformed candle: {e}")
            continue
        by_timestamp[candle.timestamp] = candle

    if dropped > 0:
        logger.warning(f"Dropped {dropped} malformed candles")

    return CandleSeries(sorted(by_timestamp.values(), key=lambda c: c.timestamp))
