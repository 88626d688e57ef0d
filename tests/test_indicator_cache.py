"""Tests for signalbench.indicators.cache — IndicatorCache."""

from unittest.mock import patch

from signalbench.indicators import cache as cache_module
from signalbench.indicators.cache import IndicatorCache
from signalbench.indicators.params import IndicatorSpec


class TestIndicatorCache:
    def test_computes_once(self, constant_candles):
        cache = IndicatorCache(constant_candles)
        spec = IndicatorSpec.of("sma", period=5)

        first = cache.get(spec)
        second = cache.get(IndicatorSpec.from_wire("SMA", {"Period": "5"}))

        assert first is second
        assert cache.misses == 1
        assert cache.hits == 1

    def test_distinct_params_distinct_entries(self, constant_candles):
        cache = IndicatorCache(constant_candles)
        cache.get(IndicatorSpec.of("sma", period=5))
        cache.get(IndicatorSpec.of("sma", period=10))
        cache.get(IndicatorSpec.of("ema", period=5))
        assert len(cache) == 3

    def test_warm(self, constant_candles):
        cache = IndicatorCache(constant_candles)
        specs = [IndicatorSpec.of("rsi"), IndicatorSpec.of("rsi"), IndicatorSpec.of("atr")]
        cache.warm(specs)
        assert len(cache) == 2
        assert IndicatorSpec.of("atr") in cache
        assert IndicatorSpec.of("vwap") not in cache

    def test_warm_then_get_is_hit(self, constant_candles):
        with patch.object(
            cache_module, "compute_indicator", wraps=cache_module.compute_indicator
        ) as compute:
            cache = IndicatorCache(constant_candles)
            cache.warm([IndicatorSpec.of("macd")])
            cache.get(IndicatorSpec.of("macd"))
            assert compute.call_count == 1

    def test_caches_are_independent(self, constant_candles, candle_factory):
        spec = IndicatorSpec.of("sma", period=5)
        a = IndicatorCache(constant_candles).get(spec)
        b = IndicatorCache(candle_factory([50.0] * 10)).get(spec)
        assert a.value_at(9) == 100.0
        assert b.value_at(9) == 50.0
