"""Exception types raised by signalbench."""


class SignalBenchError(Exception):
    """Base class for all signalbench errors."""


class InvalidInputError(SignalBenchError, ValueError):
    """A candle is malformed (missing or non-finite OHLC, broken high/low ordering)."""


class UnknownIndicatorKind(SignalBenchError, ValueError):
    """An indicator spec names a kind outside the supported set."""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Unknown indicator kind: {kind!r}")


class InvalidRuleError(SignalBenchError, ValueError):
    """A rule has an unparsable condition, threshold or parameter value."""


class InvalidConfigError(SignalBenchError, ValueError):
    """A backtest configuration value is out of range."""


class InsufficientDataError(SignalBenchError):
    """Fewer bars than required for a scan."""

    def __init__(self, symbol: str, bars: int, required: int):
        self.symbol = symbol
        self.bars = bars
        self.required = required
        super().__init__(f"{symbol}: {bars} bars, need at least {required}")
