"""Card fraud scoring domain."""

from .analysis import (
    CustomerProfile,
    FraudSummary,
    TerminalProfile,
    detect_anomalies,
    filter_by_day_range,
    rank_customers,
    rank_terminals,
    summarize_batch,
)
from .errors import (
    FraudEngineError,
    InputShapeError,
    MissingLabelsError,
    TrainingTimeoutError,
    UntrainedStateError,
)
from .models import (
    FraudScenario,
    RuleResult,
    ScoredTransaction,
    Transaction,
    scored_to_frame,
    transactions_from_frame,
    transactions_from_records,
)
from .pipeline import ModelScorer, PreparedBatch, ScoringPipeline, Trained, Untrained
from .rules_engine import RuleEngine, RuleVerdict
from .stats import (
    CohortStats,
    CustomerStats,
    TerminalStats,
    aggregate_by_customer,
    aggregate_by_terminal,
    aggregate_cohort,
)

__all__ = [
    "CohortStats",
    "CustomerProfile",
    "CustomerStats",
    "FraudEngineError",
    "FraudScenario",
    "FraudSummary",
    "InputShapeError",
    "MissingLabelsError",
    "ModelScorer",
    "PreparedBatch",
    "RuleEngine",
    "RuleResult",
    "RuleVerdict",
    "ScoredTransaction",
    "ScoringPipeline",
    "TerminalProfile",
    "TerminalStats",
    "Trained",
    "TrainingTimeoutError",
    "Transaction",
    "UntrainedStateError",
    "Untrained",
    "aggregate_by_customer",
    "aggregate_by_terminal",
    "aggregate_cohort",
    "detect_anomalies",
    "filter_by_day_range",
    "rank_customers",
    "rank_terminals",
    "scored_to_frame",
    "summarize_batch",
    "transactions_from_frame",
    "transactions_from_records",
]
