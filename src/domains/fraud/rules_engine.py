"""Deterministic rule-based fraud classifier.

Evaluates an ordered cascade of scenario rules per transaction; the first
rule that triggers decides the verdict. Needs cohort stats only, no
feature vectors and no training, and exposes the same ``score`` shape as
the trained model scorer so the pipeline can swap backends.
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from .config import FraudConfig, default_config
from .models import FraudScenario, RuleResult, ScoredTransaction, Transaction
from .rules import CASCADE_RULES, ScenarioRule
from .stats import CohortStats, aggregate_cohort

logger = structlog.get_logger()


@dataclass(frozen=True)
class RuleVerdict:
    """Outcome of the cascade for one transaction."""

    transaction_id: str
    predicted_fraud: int
    scenario: FraudScenario | None
    rule_result: RuleResult | None = None

    @property
    def probability(self) -> float:
        # Rules give no graded confidence: the proxy is the label itself
        return float(self.predicted_fraud)


class RuleEngine:
    """Ordered cascade: high amount, then terminal compromise, then spending anomaly."""

    model_version = "rules-v1"

    def __init__(
        self,
        config: FraudConfig | None = None,
        rules: Sequence[ScenarioRule] | None = None,
    ) -> None:
        self._config = config or default_config
        self._rules = list(rules if rules is not None else CASCADE_RULES)
        logger.debug("rule_engine_initialized", rule_count=len(self._rules))

    @property
    def rules(self) -> list[ScenarioRule]:
        return list(self._rules)

    def evaluate(self, transaction: Transaction, cohort: CohortStats) -> RuleVerdict:
        """Run the cascade for a single transaction."""
        customer = cohort.customers.get(transaction.customer_id)
        terminal = cohort.terminals.get(transaction.terminal_id)

        for rule in self._rules:
            result = rule.evaluate(transaction, customer, terminal, self._config)
            if result.triggered:
                return RuleVerdict(
                    transaction_id=transaction.transaction_id,
                    predicted_fraud=1,
                    scenario=result.scenario,
                    rule_result=result,
                )

        return RuleVerdict(
            transaction_id=transaction.transaction_id,
            predicted_fraud=0,
            scenario=None,
        )

    def score(
        self,
        transactions: Sequence[Transaction],
        cohort: CohortStats | None = None,
    ) -> list[ScoredTransaction]:
        """Score a batch. Cohort stats default to those of the batch itself."""
        cohort = cohort if cohort is not None else aggregate_cohort(transactions)

        scored: list[ScoredTransaction] = []
        scenario_counts: Counter[str] = Counter()
        for txn in transactions:
            verdict = self.evaluate(txn, cohort)
            if verdict.scenario is not None:
                scenario_counts[verdict.scenario.name.lower()] += 1
            scored.append(
                ScoredTransaction(
                    transaction=txn,
                    predicted_fraud=verdict.predicted_fraud,
                    predicted_probability=verdict.probability,
                    predicted_scenario=verdict.scenario,
                )
            )

        logger.info(
            "rules_evaluated",
            num_transactions=len(scored),
            flagged=sum(scenario_counts.values()),
            scenarios=dict(scenario_counts),
            model_version=self.model_version,
        )
        return scored
