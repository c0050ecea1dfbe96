"""Shared test fixtures for the card fraud scoring tests."""

from datetime import datetime, timedelta

import pytest

from src.domains.fraud.models import Transaction

EPOCH = datetime(2018, 4, 1, 0, 0, 0)


def make_transaction(idx: int, customer: str, terminal: str, amount: float, **kwargs) -> Transaction:
    seconds = kwargs.pop("seconds", idx * 3_600)
    fields = {
        "transaction_id": f"txn-{idx}",
        "tx_datetime": EPOCH + timedelta(seconds=seconds),
        "customer_id": customer,
        "terminal_id": terminal,
        "amount": amount,
        "time_seconds": seconds,
        "time_days": seconds // 86_400,
        "fraud": 0,
    }
    fields.update(kwargs)
    return Transaction(**fields)


@pytest.fixture
def labeled_batch() -> list[Transaction]:
    """Two customers, three terminals; T3 is compromised, one high-amount fraud."""
    return [
        make_transaction(0, "C1", "T1", 40.0),
        make_transaction(1, "C1", "T1", 60.0),
        make_transaction(2, "C1", "T2", 50.0),
        make_transaction(3, "C2", "T2", 100.0),
        make_transaction(4, "C2", "T3", 120.0, fraud=1, fraud_scenario=2),
        make_transaction(5, "C2", "T3", 80.0, fraud=1, fraud_scenario=2),
        make_transaction(6, "C1", "T1", 300.0, fraud=1, fraud_scenario=1),
        make_transaction(7, "C2", "T2", 90.0),
    ]
