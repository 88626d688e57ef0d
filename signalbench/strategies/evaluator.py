"""
Condition Evaluator

Answers whether a rule holds at a given bar, reading the indicator value at
that bar and the one before it through the run's IndicatorCache.
"""

from typing import Optional, Sequence

from ..config import settings
from ..indicators.cache import IndicatorCache
from .rules import Condition, Rule


def condition_holds(
    condition: Condition,
    current: Optional[float],
    previous: Optional[float],
    threshold: float,
    tolerance: float = 0.01,
) -> bool:
    """Check one condition against current/previous indicator values."""
    if current is None:
        return False

    if condition is Condition.CROSSES_ABOVE:
        return previous is not None and previous <= threshold and current > threshold
    if condition is Condition.CROSSES_BELOW:
        return previous is not None and previous >= threshold and current < threshold
    if condition is Condition.IS_ABOVE:
        return current > threshold
    if condition is Condition.IS_BELOW:
        return current < threshold
    if condition is Condition.EQUALS:
        return abs(current - threshold) < tolerance
    return False


class ConditionEvaluator:
    """Evaluates rules against one candle series via a shared indicator cache."""

    def __init__(self, cache: IndicatorCache, tolerance: float = None):
        self.cache = cache
        self.tolerance = tolerance if tolerance is not None else settings.equals_tolerance

    def evaluate(self, rule: Rule, index: int) -> bool:
        output = self.cache.get(rule.indicator)
        current = output.value_at(index)
        previous = output.value_at(index - 1) if index > 0 else None
        return condition_holds(rule.condition, current, previous, rule.threshold, self.tolerance)

    def all_hold(self, rules: Sequence[Rule], index: int) -> bool:
        """True iff every rule holds at ``index``. An empty rule set never signals."""
        if not rules:
            return False
        return all(self.evaluate(rule, index) for rule in rules)
