"""Error taxonomy for the fraud scoring engine.

Contract violations (bad shapes, untrained state) raise immediately at the
call site. Data sparsity (unseen customers/terminals, empty batches) is not
an error and never reaches this module.
"""

from typing import Any


class FraudEngineError(Exception):
    """Base class for all scoring engine errors."""


class InputShapeError(FraudEngineError, ValueError):
    """Feature matrix or label sequences have an inconsistent shape."""


class UntrainedStateError(FraudEngineError, RuntimeError):
    """A fitted artifact (scaler or classifier) was used before fitting."""


class MissingLabelsError(FraudEngineError, ValueError):
    """Ground-truth labels are required but at least one is absent."""


class TrainingTimeoutError(FraudEngineError, TimeoutError):
    """Classifier training exceeded its time budget.

    Transient: ``prepared`` holds the stats, scaler and normalized features
    computed before the classifier was invoked, so a retry can skip them.
    """

    def __init__(self, message: str, prepared: Any = None) -> None:
        super().__init__(message)
        self.prepared = prepared
