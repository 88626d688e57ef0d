"""
Trading Rules

A rule pairs an indicator with a condition and a threshold. Rules are
built (and validated) once from their wire form; an unknown indicator kind
fails here instead of silently producing an empty series later.
"""

import logging
import math
import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Union

from ..errors import InvalidRuleError
from ..indicators.params import PARAMS_BY_KIND, IndicatorKind, IndicatorSpec

logger = logging.getLogger(__name__)


class Condition(str, Enum):
    CROSSES_ABOVE = "Crosses Above"
    CROSSES_BELOW = "Crosses Below"
    IS_ABOVE = "Is Above"
    IS_BELOW = "Is Below"
    EQUALS = "Equals"

    @classmethod
    def parse(cls, name: Union[str, "Condition"]) -> "Condition":
        """Accepts ``"Crosses Above"``, ``"CrossesAbove"`` or ``"crosses_above"``."""
        if isinstance(name, Condition):
            return name
        key = re.sub(r"[^a-z]", "", str(name).lower())
        for condition in cls:
            if key == re.sub(r"[^a-z]", "", condition.value.lower()):
                return condition
        raise InvalidRuleError(f"Unknown condition: {name!r}")


INDICATOR_DESCRIPTIONS: Dict[IndicatorKind, str] = {
    IndicatorKind.SMA: "Simple moving average of closes",
    IndicatorKind.EMA: "Exponential moving average of closes (SMA-seeded)",
    IndicatorKind.RSI: "Relative strength index with Wilder smoothing",
    IndicatorKind.MACD: "MACD line (fast EMA - slow EMA) with signal and histogram",
    IndicatorKind.BOLLINGER_BANDS: "Bollinger Bands; rules read the middle band",
    IndicatorKind.ATR: "Average true range with Wilder smoothing",
    IndicatorKind.SUPERTREND: "SuperTrend active band from ATR and the bar midpoint",
    IndicatorKind.VWAP: "Cumulative volume-weighted average price",
}


def list_available_indicators() -> Dict[str, Dict[str, Any]]:
    """Indicator kinds with descriptions and default parameters."""
    return {
        kind.value: {
            "description": INDICATOR_DESCRIPTIONS[kind],
            "default_params": asdict(PARAMS_BY_KIND[kind]()),
        }
        for kind in IndicatorKind
    }


@dataclass(frozen=True)
class Rule:
    """An indicator condition checked at a single bar."""

    indicator: IndicatorSpec
    condition: Condition
    threshold: float

    def __post_init__(self):
        object.__setattr__(self, "condition", Condition.parse(self.condition))
        try:
            threshold = float(self.threshold)
        except (TypeError, ValueError) as e:
            raise InvalidRuleError(f"Threshold is not a number: {self.threshold!r}") from e
        if not math.isfinite(threshold):
            raise InvalidRuleError(f"Threshold must be finite, got {threshold}")
        object.__setattr__(self, "threshold", threshold)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Rule":
        """
        Build a rule from its wire form.

        Example:
            {"indicator": "sma", "params": {"Period": "5"},
             "condition": "Is Below", "value": "200"}
        """
        kind = data.get("indicator", data.get("kind"))
        if kind is None or kind == "":
            raise InvalidRuleError(f"Rule is missing an indicator: {dict(data)}")
        condition = data.get("condition")
        if condition is None:
            raise InvalidRuleError(f"Rule is missing a condition: {dict(data)}")
        threshold = data.get("value", data.get("threshold"))
        if threshold is None or threshold == "":
            raise InvalidRuleError(f"Rule is missing a value: {dict(data)}")

        spec = IndicatorSpec.from_wire(kind, data.get("params") or {})
        return cls(spec, Condition.parse(condition), threshold)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "indicator": self.indicator.kind.value,
            "params": asdict(self.indicator.params),
            "condition": self.condition.value,
            "value": self.threshold,
        }

    def describe(self) -> str:
        return f"{self.indicator.label} {self.condition.value} {self.threshold:g}"


def parse_rules(items: Iterable[Union[Rule, Mapping[str, Any]]]) -> List[Rule]:
    """
    Build Rule instances from wire dicts (Rule instances pass through).

    Raises:
        UnknownIndicatorKind: If any rule names an unsupported indicator
        InvalidRuleError: If any rule is otherwise malformed
    """
    rules = []
    for item in items or []:
        rule = item if isinstance(item, Rule) else Rule.from_dict(item)
        logger.debug(f"Parsed rule: {rule.describe()}")
        rules.append(rule)
    return rules
