"""Batch-level fraud analytics for reporting.

Summaries, ranked terminal/customer profiles and a broad anomaly screen
built on the same cohort stats the scoring engine uses.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from .config import FraudConfig, default_config
from .models import FraudScenario, Transaction
from .stats import CustomerStats, TerminalStats, aggregate_cohort

logger = structlog.get_logger()


@dataclass(frozen=True)
class FraudSummary:
    total_transactions: int = 0
    fraudulent_transactions: int = 0
    fraud_rate: float = 0.0
    average_amount: float = 0.0
    average_fraud_amount: float = 0.0
    scenario_breakdown: dict[FraudScenario, int] = field(
        default_factory=lambda: {scenario: 0 for scenario in FraudScenario}
    )


@dataclass(frozen=True)
class TerminalProfile:
    stats: TerminalStats
    suspicious_activity: bool


@dataclass(frozen=True)
class CustomerProfile:
    stats: CustomerStats
    spending_pattern_anomaly: bool


def summarize_batch(transactions: Sequence[Transaction]) -> FraudSummary:
    """Totals, fraud rate, average amounts and labeled-fraud scenario counts."""
    total = len(transactions)
    if total == 0:
        return FraudSummary()

    fraud = [t for t in transactions if t.fraud == 1]
    breakdown = {scenario: 0 for scenario in FraudScenario}
    for t in fraud:
        if t.fraud_scenario is not None:
            breakdown[t.fraud_scenario] += 1

    summary = FraudSummary(
        total_transactions=total,
        fraudulent_transactions=len(fraud),
        fraud_rate=len(fraud) / total,
        average_amount=sum(t.amount for t in transactions) / total,
        average_fraud_amount=sum(t.amount for t in fraud) / len(fraud) if fraud else 0.0,
        scenario_breakdown=breakdown,
    )
    logger.info(
        "batch_summarized",
        total_transactions=total,
        fraudulent_transactions=summary.fraudulent_transactions,
        fraud_rate=summary.fraud_rate,
    )
    return summary


def _by_fraud_rate(rate: float | None) -> tuple[int, float]:
    # Known rates descending, unknown last
    return (rate is None, -(rate or 0.0))


def rank_terminals(
    transactions: Sequence[Transaction],
    config: FraudConfig | None = None,
) -> list[TerminalProfile]:
    """Terminal profiles sorted by fraud rate, riskiest first."""
    cfg = config or default_config
    threshold = cfg.analysis.suspicious_terminal_fraud_rate
    cohort = aggregate_cohort(transactions)
    profiles = [
        TerminalProfile(
            stats=stats,
            suspicious_activity=stats.fraud_rate is not None and stats.fraud_rate > threshold,
        )
        for stats in cohort.terminals.values()
    ]
    profiles.sort(key=lambda p: _by_fraud_rate(p.stats.fraud_rate))
    return profiles


def rank_customers(
    transactions: Sequence[Transaction],
    config: FraudConfig | None = None,
) -> list[CustomerProfile]:
    """Customer profiles sorted by fraud rate, riskiest first."""
    cfg = config or default_config
    ratio = cfg.analysis.spending_variation_ratio
    cohort = aggregate_cohort(transactions)
    profiles = [
        CustomerProfile(
            stats=stats,
            spending_pattern_anomaly=stats.std_amount > stats.mean_amount * ratio,
        )
        for stats in cohort.customers.values()
    ]
    profiles.sort(key=lambda p: _by_fraud_rate(p.stats.fraud_rate))
    return profiles


def filter_by_day_range(
    transactions: Sequence[Transaction],
    start_day: int,
    end_day: int,
) -> list[Transaction]:
    """Transactions with ``start_day <= time_days <= end_day``."""
    return [t for t in transactions if start_day <= t.time_days <= end_day]


def detect_anomalies(
    transactions: Sequence[Transaction],
    config: FraudConfig | None = None,
) -> list[Transaction]:
    """Broad screen: any single signal is enough to surface a transaction.

    Unlike the rule cascade this is not a classifier; it also flags
    suspicious terminals and customers with erratic spending.
    """
    cfg = config or default_config
    terminals = {p.stats.terminal_id: p for p in rank_terminals(transactions, cfg)}
    customers = {p.stats.customer_id: p for p in rank_customers(transactions, cfg)}

    anomalies = []
    for txn in transactions:
        terminal = terminals[txn.terminal_id]
        customer = customers[txn.customer_id]
        limit = customer.stats.mean_amount * cfg.rules.customer_amount_multiplier
        if (
            txn.amount > cfg.rules.high_amount
            or terminal.suspicious_activity
            or customer.spending_pattern_anomaly
            or txn.amount > limit
        ):
            anomalies.append(txn)

    logger.info("anomalies_detected", num_transactions=len(transactions), anomalies=len(anomalies))
    return anomalies
