"""Technical indicators computed from candle series."""

from .params import IndicatorKind, IndicatorSpec
from .library import IndicatorOutput, OutputShape, compute_indicator
from .cache import IndicatorCache

__all__ = [
    "IndicatorKind",
    "IndicatorSpec",
    "IndicatorOutput",
    "OutputShape",
    "compute_indicator",
    "IndicatorCache",
]
