"""Tests for signalbench.indicators.params — kinds, parameter records, IndicatorSpec."""

import pytest

from signalbench.errors import InvalidRuleError, UnknownIndicatorKind
from signalbench.indicators.params import (
    BollingerParams,
    IndicatorKind,
    IndicatorSpec,
    MacdParams,
    SmaParams,
    SuperTrendParams,
    VwapParams,
    build_params,
)


# ---------------------------------------------------------------------------
# IndicatorKind.parse
# ---------------------------------------------------------------------------


class TestIndicatorKind:
    @pytest.mark.parametrize(
        "name, kind",
        [
            ("SMA", IndicatorKind.SMA),
            ("sma", IndicatorKind.SMA),
            ("ema", IndicatorKind.EMA),
            ("RSI", IndicatorKind.RSI),
            ("macd", IndicatorKind.MACD),
            ("bb", IndicatorKind.BOLLINGER_BANDS),
            ("BollingerBands", IndicatorKind.BOLLINGER_BANDS),
            ("bollinger_bands", IndicatorKind.BOLLINGER_BANDS),
            ("atr", IndicatorKind.ATR),
            ("supertrend", IndicatorKind.SUPERTREND),
            ("Super Trend", IndicatorKind.SUPERTREND),
            ("vwap", IndicatorKind.VWAP),
        ],
    )
    def test_aliases(self, name, kind):
        assert IndicatorKind.parse(name) is kind

    def test_passthrough(self):
        assert IndicatorKind.parse(IndicatorKind.ATR) is IndicatorKind.ATR

    def test_unknown_fails_loudly(self):
        with pytest.raises(UnknownIndicatorKind) as exc:
            IndicatorKind.parse("stochastic")
        assert exc.value.kind == "stochastic"

    def test_non_string_unknown(self):
        with pytest.raises(UnknownIndicatorKind):
            IndicatorKind.parse(42)


# ---------------------------------------------------------------------------
# Parameter records
# ---------------------------------------------------------------------------


class TestParamRecords:
    def test_defaults(self):
        assert SmaParams().period == 20
        assert MacdParams() == MacdParams(12, 26, 9)
        assert BollingerParams() == BollingerParams(20, 2.0)
        assert SuperTrendParams() == SuperTrendParams(10, 3.0)

    def test_zero_period_rejected(self):
        with pytest.raises(InvalidRuleError):
            SmaParams(period=0)

    def test_negative_multiplier_rejected(self):
        with pytest.raises(InvalidRuleError):
            SuperTrendParams(multiplier=-1.0)

    def test_macd_fast_must_be_below_slow(self):
        with pytest.raises(InvalidRuleError):
            MacdParams(fast=26, slow=12)

    def test_records_are_hashable(self):
        assert hash(SmaParams(5)) == hash(SmaParams(5))
        assert {VwapParams(): 1}[VwapParams()] == 1


class TestBuildParams:
    def test_wire_names(self):
        params = build_params(IndicatorKind.BOLLINGER_BANDS, {"Period": "10", "StdDev": "1.5"})
        assert params == BollingerParams(period=10, std_dev=1.5)

    def test_empty_value_uses_default(self):
        assert build_params(IndicatorKind.SMA, {"Period": ""}) == SmaParams()
        assert build_params(IndicatorKind.SMA, {"Period": None}) == SmaParams()

    def test_float_string_period_truncated(self):
        assert build_params(IndicatorKind.SMA, {"period": "5.0"}).period == 5

    def test_unknown_key_ignored(self):
        assert build_params(IndicatorKind.RSI, {"color": "red"}).period == 14

    def test_non_numeric_rejected(self):
        with pytest.raises(InvalidRuleError):
            build_params(IndicatorKind.SMA, {"Period": "five"})

    def test_infinite_rejected(self):
        with pytest.raises(InvalidRuleError):
            build_params(IndicatorKind.SMA, {"Period": "inf"})


# ---------------------------------------------------------------------------
# IndicatorSpec
# ---------------------------------------------------------------------------


class TestIndicatorSpec:
    def test_default_params(self):
        spec = IndicatorSpec(IndicatorKind.RSI)
        assert spec.params.period == 14

    def test_string_kind_parsed(self):
        assert IndicatorSpec("bb").kind is IndicatorKind.BOLLINGER_BANDS

    def test_structural_equality(self):
        a = IndicatorSpec.of("sma", period=5)
        b = IndicatorSpec.from_wire("SMA", {"Period": "5"})
        assert a == b
        assert hash(a) == hash(b)

    def test_different_params_differ(self):
        assert IndicatorSpec.of("sma", period=5) != IndicatorSpec.of("sma", period=6)

    def test_wrong_param_type_rejected(self):
        with pytest.raises(InvalidRuleError):
            IndicatorSpec(IndicatorKind.SMA, MacdParams())

    def test_label(self):
        assert IndicatorSpec.of("sma", period=5).label == "SMA(5)"
        assert IndicatorSpec.of("macd").label == "MACD(12, 26, 9)"
        assert IndicatorSpec.of("vwap").label == "VWAP"
