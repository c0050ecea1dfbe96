"""Per-customer and per-terminal behavioral statistics for a transaction batch.

Stats are value snapshots: every call aggregates the batch it is given from
scratch and returns read-only mappings. Nothing is updated incrementally.
Means and standard deviations are population statistics.
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import structlog

from .models import Transaction

logger = structlog.get_logger()


@dataclass(frozen=True)
class CustomerStats:
    customer_id: str
    transaction_count: int
    mean_amount: float
    std_amount: float
    fraud_count: int = 0
    labeled_count: int = 0

    @property
    def fraud_rate(self) -> float | None:
        """Fraction of labeled transactions that are fraud, None if none are labeled."""
        if self.labeled_count == 0:
            return None
        return self.fraud_count / self.labeled_count


@dataclass(frozen=True)
class TerminalStats:
    terminal_id: str
    transaction_count: int
    mean_amount: float
    fraud_count: int = 0
    labeled_count: int = 0

    @property
    def fraud_rate(self) -> float | None:
        """Fraction of labeled transactions that are fraud, None if none are labeled.

        None means "no signal", which is distinct from a known rate of 0.
        """
        if self.labeled_count == 0:
            return None
        return self.fraud_count / self.labeled_count


@dataclass(frozen=True)
class CohortStats:
    """Customer and terminal stats aggregated from the same batch."""

    customers: Mapping[str, CustomerStats] = field(
        default_factory=lambda: MappingProxyType({})
    )
    terminals: Mapping[str, TerminalStats] = field(
        default_factory=lambda: MappingProxyType({})
    )


class _RunningGroup:
    """Single-pass accumulator (Welford) for one grouping key."""

    __slots__ = ("count", "mean", "m2", "fraud_count", "labeled_count")

    def __init__(self) -> None:
        self.count = 0
        self.mean = 0.0
        self.m2 = 0.0
        self.fraud_count = 0
        self.labeled_count = 0

    def add(self, txn: Transaction) -> None:
        self.count += 1
        delta = txn.amount - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (txn.amount - self.mean)
        if txn.fraud is not None:
            self.labeled_count += 1
            self.fraud_count += txn.fraud

    @property
    def std(self) -> float:
        return math.sqrt(max(self.m2, 0.0) / self.count)


def _group(transactions: Iterable[Transaction], key: str) -> dict[str, _RunningGroup]:
    groups: dict[str, _RunningGroup] = {}
    for txn in transactions:
        group_id = getattr(txn, key)
        group = groups.get(group_id)
        if group is None:
            group = groups[group_id] = _RunningGroup()
        group.add(txn)
    return groups


def aggregate_by_customer(transactions: Iterable[Transaction]) -> Mapping[str, CustomerStats]:
    """Compute CustomerStats for every distinct customer in the batch."""
    groups = _group(transactions, "customer_id")
    stats = {
        customer_id: CustomerStats(
            customer_id=customer_id,
            transaction_count=g.count,
            mean_amount=g.mean,
            std_amount=g.std,
            fraud_count=g.fraud_count,
            labeled_count=g.labeled_count,
        )
        for customer_id, g in groups.items()
    }
    logger.debug("customer_stats_aggregated", num_customers=len(stats))
    return MappingProxyType(stats)


def aggregate_by_terminal(transactions: Iterable[Transaction]) -> Mapping[str, TerminalStats]:
    """Compute TerminalStats for every distinct terminal in the batch."""
    groups = _group(transactions, "terminal_id")
    stats = {
        terminal_id: TerminalStats(
            terminal_id=terminal_id,
            transaction_count=g.count,
            mean_amount=g.mean,
            fraud_count=g.fraud_count,
            labeled_count=g.labeled_count,
        )
        for terminal_id, g in groups.items()
    }
    logger.debug("terminal_stats_aggregated", num_terminals=len(stats))
    return MappingProxyType(stats)


def aggregate_cohort(transactions: Iterable[Transaction]) -> CohortStats:
    """Aggregate both groupings for one batch."""
    batch = list(transactions)
    cohort = CohortStats(
        customers=aggregate_by_customer(batch),
        terminals=aggregate_by_terminal(batch),
    )
    logger.info(
        "stats_aggregated",
        num_transactions=len(batch),
        num_customers=len(cohort.customers),
        num_terminals=len(cohort.terminals),
    )
    return cohort
