"""Feature engineering for the fraud classifier.

Every transaction maps to one 14-position vector, in input order. The
position order is part of the scaler serialization format, so never reorder.

Feature Schema
--------------
| #  | Feature                  | Computation                                    |
|----|--------------------------|------------------------------------------------|
| 1  | amount                   | Raw transaction amount                         |
| 2  | time_seconds             | Elapsed seconds since the reference epoch      |
| 3  | time_days                | Elapsed days since the reference epoch         |
| 4  | customer_mean_amount     | Customer mean amount (0 if unseen)             |
| 5  | customer_txn_count       | Customer transaction count (0 if unseen)       |
| 6  | customer_std_amount      | Customer amount std, population (0 if unseen)  |
| 7  | terminal_mean_amount     | Terminal mean amount (0 if unseen)             |
| 8  | terminal_txn_count       | Terminal transaction count (0 if unseen)       |
| 9  | terminal_fraud_rate      | Terminal fraud rate (0 if unseen or unknown)   |
| 10 | amount_anomaly           | abs(amount - customer mean) (0 if unseen)      |
| 11 | time_of_day_sin          | sin(2pi * (seconds mod 86400) / 86400)         |
| 12 | time_of_day_cos          | cos(2pi * (seconds mod 86400) / 86400)         |
| 13 | day_of_week_sin          | sin(2pi * (days mod 7) / 7)                    |
| 14 | day_of_week_cos          | cos(2pi * (days mod 7) / 7)                    |
"""

from collections.abc import Sequence

import numpy as np
import pandas as pd
import structlog

from ..models import Transaction
from ..stats import CohortStats

logger = structlog.get_logger()

SECONDS_PER_DAY = 86_400
DAYS_PER_WEEK = 7

FEATURE_NAMES: tuple[str, ...] = (
    "amount",
    "time_seconds",
    "time_days",
    "customer_mean_amount",
    "customer_txn_count",
    "customer_std_amount",
    "terminal_mean_amount",
    "terminal_txn_count",
    "terminal_fraud_rate",
    "amount_anomaly",
    "time_of_day_sin",
    "time_of_day_cos",
    "day_of_week_sin",
    "day_of_week_cos",
)

NUM_FEATURES = len(FEATURE_NAMES)


def get_feature_names() -> list[str]:
    """Return ordered list of feature names used by the model."""
    return list(FEATURE_NAMES)


def extract_features(transactions: Sequence[Transaction], cohort: CohortStats) -> np.ndarray:
    """Build the (n, 14) feature matrix for a batch.

    Customers or terminals missing from ``cohort`` get zero defaults for
    their behavioral columns rather than failing.
    """
    n = len(transactions)
    features = np.zeros((n, NUM_FEATURES), dtype=float)
    if n == 0:
        return features

    amounts = np.fromiter((t.amount for t in transactions), dtype=float, count=n)
    seconds = np.fromiter((t.time_seconds for t in transactions), dtype=np.int64, count=n)
    days = np.fromiter((t.time_days for t in transactions), dtype=np.int64, count=n)

    features[:, 0] = amounts
    features[:, 1] = seconds
    features[:, 2] = days

    for i, txn in enumerate(transactions):
        customer = cohort.customers.get(txn.customer_id)
        if customer is not None:
            features[i, 3] = customer.mean_amount
            features[i, 4] = customer.transaction_count
            features[i, 5] = customer.std_amount

        terminal = cohort.terminals.get(txn.terminal_id)
        if terminal is not None:
            features[i, 6] = terminal.mean_amount
            features[i, 7] = terminal.transaction_count
            features[i, 8] = terminal.fraud_rate or 0.0

    # Anomaly is 0 for unseen customers, not abs(amount - 0)
    known_customer = features[:, 4] > 0
    features[:, 9] = np.where(known_customer, np.abs(amounts - features[:, 3]), 0.0)

    # np.mod keeps the phase in [0, period) for negative offsets too
    day_phase = 2 * np.pi * np.mod(seconds, SECONDS_PER_DAY) / SECONDS_PER_DAY
    week_phase = 2 * np.pi * np.mod(days, DAYS_PER_WEEK) / DAYS_PER_WEEK
    features[:, 10] = np.sin(day_phase)
    features[:, 11] = np.cos(day_phase)
    features[:, 12] = np.sin(week_phase)
    features[:, 13] = np.cos(week_phase)

    logger.info(
        "features_extracted",
        num_rows=n,
        num_features=NUM_FEATURES,
        unseen_customers=int((~known_customer).sum()),
        unseen_terminals=int((features[:, 7] == 0).sum()),
    )

    return features


def features_to_frame(features: np.ndarray, transactions: Sequence[Transaction] | None = None) -> pd.DataFrame:
    """Label a feature matrix with column names, optionally indexed by transaction id."""
    index = [t.transaction_id for t in transactions] if transactions is not None else None
    return pd.DataFrame(features, columns=get_feature_names(), index=index)
