"""Rule definitions and evaluation."""

from .rules import Condition, Rule, list_available_indicators, parse_rules
from .evaluator import ConditionEvaluator, condition_holds

__all__ = [
    "Condition",
    "Rule",
    "list_available_indicators",
    "parse_rules",
    "ConditionEvaluator",
    "condition_holds",
]
