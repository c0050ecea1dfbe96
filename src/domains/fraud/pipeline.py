"""Fraud scoring pipeline: stats -> features -> scaler -> classifier | rules -> metrics.

The pipeline is either ``Untrained`` or ``Trained``. A Trained state holds
the scaler fitted on the training batch, and that scaler is reused
unchanged for every prediction until the pipeline is retrained. The rule
path needs no training and bypasses features and scaling entirely.
"""

from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import numpy as np
import structlog

from .config import FraudConfig, default_config
from .errors import InputShapeError, MissingLabelsError, TrainingTimeoutError, UntrainedStateError
from .ml.classifier import FraudClassifier, MLPFraudClassifier
from .ml.evaluate import (
    ClassificationMetrics,
    ConfusionMatrix,
    compare_model_vs_rules,
    evaluate_labels,
)
from .ml.features import extract_features
from .ml.normalizer import Scaler, fit_scaler, transform
from .models import ScoredTransaction, Transaction
from .rules_engine import RuleEngine
from .stats import CohortStats, aggregate_cohort

logger = structlog.get_logger()


@dataclass(frozen=True)
class PreparedBatch:
    """Everything computed for a training batch before the classifier runs.

    Survives a timed-out training attempt, so a retry skips straight to
    the classifier fit.
    """

    transactions: tuple[Transaction, ...]
    cohort: CohortStats
    features: np.ndarray
    scaler: Scaler
    normalized: np.ndarray
    labels: np.ndarray


@dataclass(frozen=True)
class Untrained:
    pass


@dataclass(frozen=True)
class Trained:
    scaler: Scaler
    classifier: FraudClassifier
    cohort: CohortStats
    trained_at: datetime


PipelineState = Untrained | Trained


def labels_of(transactions: Sequence[Transaction]) -> np.ndarray:
    """Ground-truth labels as an int array; every transaction must be labeled."""
    missing = [t.transaction_id for t in transactions if t.fraud is None]
    if missing:
        raise MissingLabelsError(
            f"{len(missing)} transactions lack ground truth (first: {missing[0]})"
        )
    return np.fromiter((t.fraud for t in transactions), dtype=int, count=len(transactions))


class ModelScorer:
    """Scores transactions with a fitted scaler and trained classifier."""

    def __init__(self, scaler: Scaler, classifier: FraudClassifier, threshold: float) -> None:
        self._scaler = scaler
        self._classifier = classifier
        self._threshold = threshold

    def score(
        self,
        transactions: Sequence[Transaction],
        cohort: CohortStats | None = None,
    ) -> list[ScoredTransaction]:
        cohort = cohort if cohort is not None else aggregate_cohort(transactions)
        normalized = transform(extract_features(transactions, cohort), self._scaler)
        return self.score_normalized(transactions, normalized)

    def score_normalized(
        self,
        transactions: Sequence[Transaction],
        normalized: np.ndarray,
    ) -> list[ScoredTransaction]:
        if len(transactions) == 0:
            return []

        probabilities = np.asarray(self._classifier.predict_probability(normalized), dtype=float)
        if probabilities.shape != (len(transactions),):
            raise InputShapeError(
                f"Classifier returned {probabilities.shape} probabilities "
                f"for {len(transactions)} transactions"
            )
        # Clamp to [0, 1]
        probabilities = np.clip(probabilities, 0.0, 1.0)

        return [
            ScoredTransaction(
                transaction=txn,
                predicted_fraud=int(p > self._threshold),
                predicted_probability=float(p),
            )
            for txn, p in zip(transactions, probabilities)
        ]


class ScoringPipeline:
    """Orchestrates training, prediction and evaluation for both backends."""

    def __init__(
        self,
        classifier_factory: Callable[[], FraudClassifier] | None = None,
        config: FraudConfig | None = None,
        rule_engine: RuleEngine | None = None,
    ) -> None:
        self._config = config or default_config
        self._classifier_factory = classifier_factory or MLPFraudClassifier
        self._rule_engine = rule_engine or RuleEngine(config=self._config)
        self._state: PipelineState = Untrained()
        self._training_future: Future | None = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def is_trained(self) -> bool:
        return isinstance(self._state, Trained)

    @property
    def is_training(self) -> bool:
        """True while a classifier fit is running, including one abandoned after a timeout."""
        future = self._training_future
        return future is not None and not future.done()

    @property
    def training_cohort(self) -> CohortStats | None:
        """Cohort stats of the training batch, if trained."""
        if isinstance(self._state, Trained):
            return self._state.cohort
        return None

    def reset(self) -> None:
        self._state = Untrained()
        logger.info("pipeline_reset")

    # ------------------------------------------------------------------
    # Model path
    # ------------------------------------------------------------------

    def prepare(self, transactions: Sequence[Transaction]) -> PreparedBatch | None:
        """Aggregate, extract, fit the scaler and normalize a training batch.

        Returns None for an empty batch.
        """
        batch = tuple(transactions)
        labels = labels_of(batch)
        cohort = aggregate_cohort(batch)
        features = extract_features(batch, cohort)
        scaler = fit_scaler(features)
        if scaler is None:
            return None

        return PreparedBatch(
            transactions=batch,
            cohort=cohort,
            features=features,
            scaler=scaler,
            normalized=transform(features, scaler),
            labels=labels,
        )

    def fit(self, prepared: PreparedBatch) -> ClassificationMetrics:
        """Train a fresh classifier on a prepared batch and publish it.

        The fit runs in a worker thread bounded by the configured timeout.
        On timeout the current state is left untouched and
        TrainingTimeoutError carries ``prepared`` for a retry.
        """
        timeout = self._config.model.training_timeout_seconds
        classifier = self._classifier_factory()

        logger.info(
            "training_started",
            num_rows=len(prepared.transactions),
            fraud_count=int(prepared.labels.sum()),
            timeout_seconds=timeout,
        )
        start = datetime.now(UTC)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fraud-train")
        try:
            future = executor.submit(classifier.fit, prepared.normalized, prepared.labels)
            self._training_future = future
            try:
                future.result(timeout=timeout if timeout and timeout > 0 else None)
            except FuturesTimeoutError as e:
                future.cancel()
                cancel = getattr(classifier, "cancel", None)
                if callable(cancel):
                    cancel()
                logger.warning(
                    "training_timed_out",
                    timeout_seconds=timeout,
                    num_rows=len(prepared.transactions),
                )
                raise TrainingTimeoutError(
                    f"Classifier training exceeded {timeout}s", prepared=prepared
                ) from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        trained = Trained(
            scaler=prepared.scaler,
            classifier=classifier,
            cohort=prepared.cohort,
            trained_at=datetime.now(UTC),
        )

        scored = self._model_scorer(trained).score_normalized(
            prepared.transactions, prepared.normalized
        )
        metrics = evaluate_labels(prepared.labels, [s.predicted_fraud for s in scored])
        self._state = trained

        logger.info(
            "training_completed",
            duration_seconds=round((datetime.now(UTC) - start).total_seconds(), 3),
            accuracy=metrics.accuracy,
            f1_score=metrics.f1_score,
        )
        return metrics

    def train(self, transactions: Sequence[Transaction]) -> ClassificationMetrics:
        """Prepare and fit in one step; returns metrics on the training batch."""
        prepared = self.prepare(transactions)
        if prepared is None:
            logger.warning("training_skipped_empty_batch")
            return ClassificationMetrics(confusion_matrix=ConfusionMatrix())
        return self.fit(prepared)

    def predict(
        self,
        transactions: Sequence[Transaction],
        cohort: CohortStats | None = None,
    ) -> list[ScoredTransaction]:
        """Score with the trained model and the scaler fitted at training time.

        ``cohort`` defaults to stats aggregated from ``transactions``; pass
        ``training_cohort`` to score new transactions against the training
        population instead.
        """
        state = self._state
        if not isinstance(state, Trained):
            raise UntrainedStateError("Model not trained yet")
        return self._model_scorer(state).score(transactions, cohort)

    def _model_scorer(self, state: Trained) -> ModelScorer:
        return ModelScorer(
            scaler=state.scaler,
            classifier=state.classifier,
            threshold=self._config.model.prediction_threshold,
        )

    # ------------------------------------------------------------------
    # Rule path and shared reporting
    # ------------------------------------------------------------------

    def score_with_rules(
        self,
        transactions: Sequence[Transaction],
        cohort: CohortStats | None = None,
    ) -> list[ScoredTransaction]:
        return self._rule_engine.score(transactions, cohort)

    def score(
        self,
        transactions: Sequence[Transaction],
        cohort: CohortStats | None = None,
    ) -> list[ScoredTransaction]:
        """Score with the configured backend. The model backend never falls back to rules."""
        backend = self._config.model.backend
        if backend == "rules":
            return self.score_with_rules(transactions, cohort)
        if backend == "model":
            return self.predict(transactions, cohort)
        raise ValueError(f"Unknown scoring backend: {backend!r}")

    def evaluate(self, scored: Sequence[ScoredTransaction]) -> ClassificationMetrics:
        """Metrics for scored transactions against their own ground truth."""
        labels = labels_of([s.transaction for s in scored])
        return evaluate_labels(labels, [s.predicted_fraud for s in scored])

    def compare_with_rules(
        self,
        transactions: Sequence[Transaction],
        cohort: CohortStats | None = None,
    ) -> dict[str, Any]:
        """Model vs rule-cascade detections on the same labeled batch.

        Pass ``training_cohort`` for a held-out batch so neither path reads
        the labels it is being compared against.
        """
        labels = labels_of(transactions)
        cohort = cohort if cohort is not None else aggregate_cohort(transactions)
        model_scored = self.predict(transactions, cohort)
        rule_scored = self.score_with_rules(transactions, cohort)
        return compare_model_vs_rules(
            labels,
            [s.predicted_fraud for s in model_scored],
            [s.predicted_fraud for s in rule_scored],
        )
