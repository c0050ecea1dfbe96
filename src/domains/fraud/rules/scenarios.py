"""The three fraud scenario rules, one per FraudScenario."""

from ..config import FraudConfig
from ..models import FraudScenario, RuleResult, Transaction
from ..stats import CustomerStats, TerminalStats
from .base import ScenarioRule


class HighAmountRule(ScenarioRule):
    """Scenario 1: amount strictly above the high-amount threshold."""

    rule_id = "high_amount"
    scenario = FraudScenario.HIGH_AMOUNT

    def evaluate(
        self,
        transaction: Transaction,
        customer: CustomerStats | None,
        terminal: TerminalStats | None,
        config: FraudConfig,
    ) -> RuleResult:
        threshold = config.rules.high_amount
        if transaction.amount <= threshold:
            return self._not_triggered()

        return self._triggered(
            details=f"Amount ${transaction.amount:,.2f} above ${threshold:,.2f}",
            evidence={"amount": transaction.amount, "threshold": threshold},
        )


class TerminalCompromiseRule(ScenarioRule):
    """Scenario 2: terminal with a known fraud rate above threshold.

    An unknown rate (no labeled transactions at the terminal) never triggers.
    """

    rule_id = "terminal_compromise"
    scenario = FraudScenario.TERMINAL_COMPROMISE

    def evaluate(
        self,
        transaction: Transaction,
        customer: CustomerStats | None,
        terminal: TerminalStats | None,
        config: FraudConfig,
    ) -> RuleResult:
        if terminal is None or terminal.fraud_rate is None:
            return self._not_triggered()

        threshold = config.rules.terminal_fraud_rate
        if terminal.fraud_rate <= threshold:
            return self._not_triggered()

        return self._triggered(
            details=(
                f"Terminal {terminal.terminal_id} fraud rate "
                f"{terminal.fraud_rate:.2%} above {threshold:.2%}"
            ),
            evidence={
                "terminal_id": terminal.terminal_id,
                "fraud_rate": terminal.fraud_rate,
                "threshold": threshold,
            },
        )


class SpendingAnomalyRule(ScenarioRule):
    """Scenario 3: amount above a multiple of the customer's mean amount."""

    rule_id = "spending_anomaly"
    scenario = FraudScenario.CUSTOMER_ANOMALY

    def evaluate(
        self,
        transaction: Transaction,
        customer: CustomerStats | None,
        terminal: TerminalStats | None,
        config: FraudConfig,
    ) -> RuleResult:
        if customer is None:
            return self._not_triggered()

        multiplier = config.rules.customer_amount_multiplier
        limit = customer.mean_amount * multiplier
        if transaction.amount <= limit:
            return self._not_triggered()

        return self._triggered(
            details=(
                f"Amount ${transaction.amount:,.2f} above {multiplier:g}x "
                f"customer mean ${customer.mean_amount:,.2f}"
            ),
            evidence={
                "customer_id": customer.customer_id,
                "amount": transaction.amount,
                "mean_amount": customer.mean_amount,
                "multiplier": multiplier,
            },
        )
