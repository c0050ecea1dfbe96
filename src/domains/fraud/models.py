"""Pydantic models for card transactions and their scored counterparts."""

from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import IntEnum
from typing import Any

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator


class FraudScenario(IntEnum):
    HIGH_AMOUNT = 1
    TERMINAL_COMPROMISE = 2
    CUSTOMER_ANOMALY = 3


class Transaction(BaseModel):
    """A validated payment-card transaction.

    Field aliases are the upstream record column names, so records coming
    from the parser can be validated as-is.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    transaction_id: str = Field(alias="TRANSACTION_ID")
    tx_datetime: datetime = Field(alias="TX_DATETIME")
    customer_id: str = Field(alias="CUSTOMER_ID")
    terminal_id: str = Field(alias="TERMINAL_ID")
    amount: float = Field(alias="TX_AMOUNT", ge=0)
    time_seconds: int = Field(alias="TX_TIME_SECONDS")
    time_days: int = Field(alias="TX_TIME_DAYS")
    fraud: int | None = Field(default=None, alias="TX_FRAUD", ge=0, le=1)
    fraud_scenario: FraudScenario | None = Field(default=None, alias="TX_FRAUD_SCENARIO")

    @field_validator("transaction_id", "customer_id", "terminal_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        return v

    @field_validator("tx_datetime", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        # Upstream exports use "YYYY-MM-DD HH:MM:SS"
        if isinstance(v, str):
            return datetime.fromisoformat(v.strip())
        return v

    @field_validator("fraud_scenario", mode="before")
    @classmethod
    def _normalize_scenario(cls, v: Any) -> Any:
        # Legitimate rows are exported with scenario 0
        if isinstance(v, str):
            v = v.strip() or None
            if v is not None:
                v = float(v)
        if v is None or v == 0:
            return None
        if isinstance(v, float):
            return int(v)
        return v

    @property
    def is_labeled(self) -> bool:
        return self.fraud is not None


class ScoredTransaction(BaseModel):
    """A transaction plus the predictions appended by a scoring backend.

    The original transaction is carried untouched; predictions live beside it.
    """

    model_config = ConfigDict(frozen=True)

    transaction: Transaction
    predicted_fraud: int = Field(ge=0, le=1)
    predicted_probability: float = Field(ge=0.0, le=1.0)
    predicted_scenario: FraudScenario | None = None

    def to_record(self) -> dict[str, Any]:
        """Flatten to an export record: original columns plus predictions."""
        record = self.transaction.model_dump(by_alias=True)
        if record["TX_FRAUD_SCENARIO"] is not None:
            record["TX_FRAUD_SCENARIO"] = int(record["TX_FRAUD_SCENARIO"])
        record["predicted_fraud"] = self.predicted_fraud
        record["predicted_probability"] = self.predicted_probability
        record["predicted_scenario"] = (
            int(self.predicted_scenario) if self.predicted_scenario is not None else None
        )
        return record


def transactions_from_records(records: Iterable[Mapping[str, Any]]) -> list[Transaction]:
    """Validate parsed records keyed by upstream column names."""
    return [Transaction.model_validate(dict(record)) for record in records]


def transactions_from_frame(df: pd.DataFrame) -> list[Transaction]:
    """Validate the rows of an already-parsed DataFrame."""
    # object dtype turns numpy scalars into Python ones; NaN becomes None
    clean = df.astype(object).where(df.notna(), None)
    return transactions_from_records(clean.to_dict(orient="records"))


def scored_to_frame(scored: Iterable[ScoredTransaction]) -> pd.DataFrame:
    """Build the export table handed to the reporting collaborator."""
    return pd.DataFrame([s.to_record() for s in scored])


class RuleResult(BaseModel):
    rule_name: str
    triggered: bool
    scenario: FraudScenario | None = None
    details: str = ""
    evidence: dict = Field(default_factory=dict)
