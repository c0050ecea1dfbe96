"""Abstract base class for fraud scenario rules."""

from abc import ABC, abstractmethod

from ..config import FraudConfig
from ..models import FraudScenario, RuleResult, Transaction
from ..stats import CustomerStats, TerminalStats


class ScenarioRule(ABC):
    """Base class for the rules of the scenario cascade.

    Rules are pure: they see one transaction plus the stats of its customer
    and terminal (None when the entity is absent from the cohort).
    """

    rule_id: str
    scenario: FraudScenario

    @abstractmethod
    def evaluate(
        self,
        transaction: Transaction,
        customer: CustomerStats | None,
        terminal: TerminalStats | None,
        config: FraudConfig,
    ) -> RuleResult:
        """Evaluate this rule and return a RuleResult."""
        ...

    def _not_triggered(self) -> RuleResult:
        return RuleResult(rule_name=self.rule_id, triggered=False)

    def _triggered(self, details: str, evidence: dict | None = None) -> RuleResult:
        return RuleResult(
            rule_name=self.rule_id,
            triggered=True,
            scenario=self.scenario,
            details=details,
            evidence=evidence or {},
        )
