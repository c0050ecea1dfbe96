"""Trainable classifier collaborators for the scoring pipeline.

The pipeline only relies on the narrow ``FraudClassifier`` protocol: fit on
normalized features plus labels, then return a fraud probability per row.
``MLPFraudClassifier`` is the default backend, a feed-forward network
(64-32-16 ReLU, L2-regularized, Adam) trained epoch by epoch so a running
fit can be cancelled between epochs.
"""

import threading
from typing import Any, Protocol, runtime_checkable

import numpy as np
import structlog

from ..errors import InputShapeError, UntrainedStateError

logger = structlog.get_logger()

DEFAULT_HYPERPARAMS: dict[str, Any] = {
    "hidden_layer_sizes": (64, 32, 16),
    "alpha": 0.01,
    "learning_rate_init": 0.001,
    "batch_size": 32,
    "epochs": 10,
    "random_seed": 42,
}


@runtime_checkable
class FraudClassifier(Protocol):
    def fit(self, features: np.ndarray, labels: np.ndarray) -> None:
        """Train on a normalized feature matrix and 0/1 labels."""
        ...

    def predict_probability(self, features: np.ndarray) -> np.ndarray:
        """Return the fraud probability in [0, 1] for each row."""
        ...


class MLPFraudClassifier:
    """scikit-learn MLP trained with one ``partial_fit`` pass per epoch."""

    model_version = "mlp-v1"

    def __init__(self, hyperparams: dict[str, Any] | None = None) -> None:
        self._hyperparams = {**DEFAULT_HYPERPARAMS, **(hyperparams or {})}
        if int(self._hyperparams["epochs"]) < 1:
            raise ValueError("epochs must be at least 1")
        self._model = None
        self._cancelled = threading.Event()
        self._epochs_completed = 0

    @property
    def is_fitted(self) -> bool:
        return self._model is not None

    @property
    def epochs_completed(self) -> int:
        return self._epochs_completed

    def cancel(self) -> None:
        """Stop a running fit after the current epoch."""
        self._cancelled.set()

    def fit(self, features: np.ndarray, labels: np.ndarray) -> None:
        from sklearn.neural_network import MLPClassifier

        x = np.asarray(features, dtype=float)
        y = np.asarray(labels, dtype=int)
        if x.ndim != 2 or y.ndim != 1 or x.shape[0] != y.shape[0]:
            raise InputShapeError(
                f"Cannot fit on features {x.shape} with labels {y.shape}"
            )

        hp = self._hyperparams
        model = MLPClassifier(
            hidden_layer_sizes=tuple(hp["hidden_layer_sizes"]),
            activation="relu",
            solver="adam",
            alpha=hp["alpha"],
            learning_rate_init=hp["learning_rate_init"],
            batch_size=min(int(hp["batch_size"]), x.shape[0]),
            random_state=hp["random_seed"],
        )

        for epoch in range(int(hp["epochs"])):
            if self._cancelled.is_set():
                logger.warning("classifier_fit_cancelled", epoch=epoch)
                return
            model.partial_fit(x, y, classes=np.array([0, 1]))
            self._epochs_completed = epoch + 1
            logger.debug("classifier_epoch_completed", epoch=epoch, loss=float(model.loss_))

        # Publish only a fully trained model
        self._model = model
        logger.info(
            "classifier_fit_completed",
            model_version=self.model_version,
            epochs=self._epochs_completed,
            num_rows=x.shape[0],
            final_loss=float(model.loss_),
        )

    def predict_probability(self, features: np.ndarray) -> np.ndarray:
        if self._model is None:
            raise UntrainedStateError("predict_probability called before fit")

        x = np.asarray(features, dtype=float)
        if x.shape[0] == 0:
            return np.empty(0, dtype=float)

        fraud_column = list(self._model.classes_).index(1)
        probabilities = self._model.predict_proba(x)[:, fraud_column]
        return np.clip(probabilities, 0.0, 1.0)
