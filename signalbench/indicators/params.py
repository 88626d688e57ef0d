"""
Indicator Kinds and Parameters

Each indicator kind has its own frozen parameter record with documented
defaults. Records are validated once, when the spec is built, and are
hashable so an IndicatorSpec can be used directly as a cache key.
"""

import logging
import math
import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from ..errors import InvalidRuleError, UnknownIndicatorKind

logger = logging.getLogger(__name__)


class IndicatorKind(str, Enum):
    """Closed set of supported indicators."""

    SMA = "SMA"
    EMA = "EMA"
    RSI = "RSI"
    MACD = "MACD"
    BOLLINGER_BANDS = "BollingerBands"
    ATR = "ATR"
    SUPERTREND = "SuperTrend"
    VWAP = "VWAP"

    @classmethod
    def parse(cls, name: Union[str, "IndicatorKind"]) -> "IndicatorKind":
        """Resolve a kind from its canonical name or a common alias (``bb``, ``sma``)."""
        if isinstance(name, IndicatorKind):
            return name
        if not isinstance(name, str):
            raise UnknownIndicatorKind(name)
        kind = _KIND_ALIASES.get(_normalize_key(name))
        if kind is None:
            raise UnknownIndicatorKind(name)
        return kind


def _normalize_key(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


_KIND_ALIASES: Dict[str, IndicatorKind] = {
    "sma": IndicatorKind.SMA,
    "ema": IndicatorKind.EMA,
    "rsi": IndicatorKind.RSI,
    "macd": IndicatorKind.MACD,
    "bb": IndicatorKind.BOLLINGER_BANDS,
    "bbands": IndicatorKind.BOLLINGER_BANDS,
    "bollinger": IndicatorKind.BOLLINGER_BANDS,
    "bollingerbands": IndicatorKind.BOLLINGER_BANDS,
    "atr": IndicatorKind.ATR,
    "supertrend": IndicatorKind.SUPERTREND,
    "vwap": IndicatorKind.VWAP,
}


def _require_positive(record, name: str):
    value = getattr(record, name)
    if not math.isfinite(value) or value <= 0:
        raise InvalidRuleError(
            f"{type(record).__name__}.{name} must be positive, got {value}"
        )


@dataclass(frozen=True)
class SmaParams:
    period: int = 20

    def __post_init__(self):
        _require_positive(self, "period")


@dataclass(frozen=True)
class EmaParams:
    period: int = 20

    def __post_init__(self):
        _require_positive(self, "period")


@dataclass(frozen=True)
class RsiParams:
    period: int = 14

    def __post_init__(self):
        _require_positive(self, "period")


@dataclass(frozen=True)
class MacdParams:
    fast: int = 12
    slow: int = 26
    signal: int = 9

    def __post_init__(self):
        for name in ("fast", "slow", "signal"):
            _require_positive(self, name)
        if self.fast >= self.slow:
            raise InvalidRuleError(
                f"MACD fast period ({self.fast}) must be below slow period ({self.slow})"
            )


@dataclass(frozen=True)
class BollingerParams:
    period: int = 20
    std_dev: float = 2.0

    def __post_init__(self):
        _require_positive(self, "period")
        _require_positive(self, "std_dev")


@dataclass(frozen=True)
class AtrParams:
    period: int = 14

    def __post_init__(self):
        _require_positive(self, "period")


@dataclass(frozen=True)
class SuperTrendParams:
    period: int = 10
    multiplier: float = 3.0

    def __post_init__(self):
        _require_positive(self, "period")
        _require_positive(self, "multiplier")


@dataclass(frozen=True)
class VwapParams:
    pass


PARAMS_BY_KIND: Dict[IndicatorKind, type] = {
    IndicatorKind.SMA: SmaParams,
    IndicatorKind.EMA: EmaParams,
    IndicatorKind.RSI: RsiParams,
    IndicatorKind.MACD: MacdParams,
    IndicatorKind.BOLLINGER_BANDS: BollingerParams,
    IndicatorKind.ATR: AtrParams,
    IndicatorKind.SUPERTREND: SuperTrendParams,
    IndicatorKind.VWAP: VwapParams,
}

# Wire parameter names ("Period", "StdDev") -> record field names
_PARAM_ALIASES: Dict[str, str] = {
    "period": "period",
    "length": "period",
    "fast": "fast",
    "slow": "slow",
    "signal": "signal",
    "stddev": "std_dev",
    "std": "std_dev",
    "multiplier": "multiplier",
}


def _coerce(value: Any, target: type, kind: IndicatorKind, name: str):
    try:
        if target is int:
            return int(float(value))
        return target(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidRuleError(f"{kind.value} parameter {name}={value!r} is not a number") from e


def build_params(kind: IndicatorKind, raw: Optional[Mapping[str, Any]] = None):
    """
    Build the parameter record for ``kind`` from a loose key/value mapping.

    Missing, ``None`` or empty-string values fall back to the record default.
    Unknown parameter names are ignored.
    """
    record_cls = PARAMS_BY_KIND[kind]
    field_types = {f.name: f.type for f in fields(record_cls)}
    kwargs = {}

    for key, value in (raw or {}).items():
        name = _PARAM_ALIASES.get(_normalize_key(str(key)))
        if name not in field_types:
            logger.debug(f"Ignoring unknown {kind.value} parameter: {key}")
            continue
        if value is None or value == "":
            continue
        kwargs[name] = _coerce(value, field_types[name], kind, name)

    return record_cls(**kwargs)


@dataclass(frozen=True)
class IndicatorSpec:
    """An indicator kind plus its validated parameter record."""

    kind: IndicatorKind
    params: Any = None

    def __post_init__(self):
        kind = IndicatorKind.parse(self.kind)
        object.__setattr__(self, "kind", kind)
        record_cls = PARAMS_BY_KIND[kind]
        if self.params is None:
            object.__setattr__(self, "params", record_cls())
        elif not isinstance(self.params, record_cls):
            raise InvalidRuleError(
                f"{kind.value} expects {record_cls.__name__}, got {type(self.params).__name__}"
            )

    @classmethod
    def of(cls, kind: Union[str, IndicatorKind], **params) -> "IndicatorSpec":
        """Build a spec from keyword parameters, e.g. ``IndicatorSpec.of("SMA", period=5)``."""
        kind = IndicatorKind.parse(kind)
        return cls(kind, build_params(kind, params))

    @classmethod
    def from_wire(
        cls,
        kind: Union[str, IndicatorKind],
        params: Optional[Mapping[str, Any]] = None,
    ) -> "IndicatorSpec":
        """Build a spec from wire names, e.g. ``("bb", {"Period": "20", "StdDev": "2"})``."""
        kind = IndicatorKind.parse(kind)
        return cls(kind, build_params(kind, params))

    @property
    def label(self) -> str:
        values = [str(getattr(self.params, f.name)) for f in fields(self.params)]
        return f"{self.kind.value}({', '.join(values)})" if values else self.kind.value
