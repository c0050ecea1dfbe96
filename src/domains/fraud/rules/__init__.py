"""Fraud scenario rules package.

Exports CASCADE_RULES (rule instances in precedence order) and the
individual rule classes for direct use.
"""

from .base import ScenarioRule
from .scenarios import HighAmountRule, SpendingAnomalyRule, TerminalCompromiseRule

# First triggered rule wins
CASCADE_RULES: list[ScenarioRule] = [
    HighAmountRule(),
    TerminalCompromiseRule(),
    SpendingAnomalyRule(),
]

__all__ = [
    "CASCADE_RULES",
    "HighAmountRule",
    "ScenarioRule",
    "SpendingAnomalyRule",
    "TerminalCompromiseRule",
]
