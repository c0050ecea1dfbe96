"""Unit tests for the rule cascade engine."""

from types import MappingProxyType

from src.domains.fraud.config import FraudConfig
from src.domains.fraud.models import FraudScenario
from src.domains.fraud.rules_engine import RuleEngine
from src.domains.fraud.stats import CohortStats, CustomerStats, TerminalStats
from tests.conftest import make_transaction

CONFIG = FraudConfig()


def _cohort(terminal_rate: float | None = None, customer_mean: float | None = None) -> CohortStats:
    terminals = {}
    if terminal_rate is not None:
        terminals["T1"] = TerminalStats(
            terminal_id="T1",
            transaction_count=10,
            mean_amount=60.0,
            fraud_count=round(terminal_rate * 10),
            labeled_count=10,
        )
    customers = {}
    if customer_mean is not None:
        customers["C1"] = CustomerStats(
            customer_id="C1", transaction_count=4, mean_amount=customer_mean, std_amount=3.0
        )
    return CohortStats(customers=MappingProxyType(customers), terminals=MappingProxyType(terminals))


class TestRuleEngine:
    engine = RuleEngine(config=CONFIG)

    def test_amount_rule_takes_precedence(self):
        verdict = self.engine.evaluate(
            make_transaction(0, "C1", "T1", 500.0), _cohort(terminal_rate=0.9)
        )
        assert verdict.predicted_fraud == 1
        assert verdict.scenario == FraudScenario.HIGH_AMOUNT

    def test_terminal_rule(self):
        verdict = self.engine.evaluate(
            make_transaction(0, "C1", "T1", 50.0), _cohort(terminal_rate=0.9, customer_mean=5.0)
        )
        assert verdict.scenario == FraudScenario.TERMINAL_COMPROMISE

    def test_customer_rule(self):
        verdict = self.engine.evaluate(
            make_transaction(0, "C1", "T1", 130.0), _cohort(terminal_rate=0.1, customer_mean=40.0)
        )
        assert verdict.scenario == FraudScenario.CUSTOMER_ANOMALY
        assert verdict.rule_result.rule_name == "spending_anomaly"

    def test_legitimate(self):
        verdict = self.engine.evaluate(
            make_transaction(0, "C1", "T1", 50.0), _cohort(terminal_rate=0.1, customer_mean=40.0)
        )
        assert verdict.predicted_fraud == 0
        assert verdict.scenario is None
        assert verdict.probability == 0.0

    def test_probability_proxy_equals_label(self):
        verdict = self.engine.evaluate(make_transaction(0, "C1", "T1", 500.0), CohortStats())
        assert verdict.probability == 1.0

    def test_unseen_entities_only_amount_rule_applies(self):
        verdict = self.engine.evaluate(make_transaction(0, "C1", "T1", 200.0), CohortStats())
        assert verdict.predicted_fraud == 0

    def test_score_batch_uses_batch_cohort(self, labeled_batch):
        scored = self.engine.score(labeled_batch)
        assert [s.predicted_fraud for s in scored] == [t.fraud for t in labeled_batch]
        assert scored[6].predicted_scenario == FraudScenario.HIGH_AMOUNT
        assert scored[4].predicted_scenario == FraudScenario.TERMINAL_COMPROMISE
        assert scored[0].predicted_scenario is None

    def test_score_preserves_original_transaction(self, labeled_batch):
        scored = self.engine.score(labeled_batch)
        for original, s in zip(labeled_batch, scored):
            assert s.transaction == original

    def test_custom_thresholds(self):
        custom = FraudConfig()
        custom.rules.high_amount = 1000.0
        engine = RuleEngine(config=custom)
        verdict = engine.evaluate(make_transaction(0, "C1", "T1", 500.0), CohortStats())
        assert verdict.predicted_fraud == 0

    def test_empty_batch(self):
        assert self.engine.score([]) == []
