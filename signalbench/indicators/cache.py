"""
Indicator Cache

Memoizes indicator outputs for one candle series within a single backtest
or scan. Keys are IndicatorSpec values (kind + frozen parameter record), so
two rules naming the same indicator with the same parameters share one
computation. A new cache is created per run; nothing is shared across runs.
"""

import logging
from typing import Dict, Iterable

from ..data.candles import CandleSeries
from .library import IndicatorOutput, compute_indicator
from .params import IndicatorSpec

logger = logging.getLogger(__name__)


class IndicatorCache:
    """Per-run memo of IndicatorSpec -> IndicatorOutput."""

    def __init__(self, candles: CandleSeries):
        self.candles = candles
        self._outputs: Dict[IndicatorSpec, IndicatorOutput] = {}
        self.hits = 0
        self.misses = 0

    def get(self, spec: IndicatorSpec) -> IndicatorOutput:
        output = self._outputs.get(spec)
        if output is not None:
            self.hits += 1
            return output

        self.misses += 1
        output = compute_indicator(self.candles, spec)
        self._outputs[spec] = output
        return output

    def warm(self, specs: Iterable[IndicatorSpec]) -> None:
        """Compute every spec up front."""
        for spec in specs:
            self.get(spec)
        logger.debug(f"Indicator cache warmed: {len(self._outputs)} series")

    def __contains__(self, spec: IndicatorSpec) -> bool:
        return spec in self._outputs

    def __len__(self) -> int:
        return len(self._outputs)
