"""Classification quality metrics for fraud predictions.

Any ratio with a zero denominator is reported as 0.0, never NaN: precision
with no positive predictions is 0, and an empty batch yields all-zero
metrics. Also compares model detections against the rule cascade to show
what each path catches that the other misses.
"""

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import structlog

from ..errors import InputShapeError

logger = structlog.get_logger()


@dataclass(frozen=True)
class ConfusionMatrix:
    true_negatives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    true_positives: int = 0

    @property
    def total(self) -> int:
        return (
            self.true_negatives + self.false_positives + self.false_negatives + self.true_positives
        )

    def as_matrix(self) -> list[list[int]]:
        """[[tn, fp], [fn, tp]] (rows actual, columns predicted)."""
        return [
            [self.true_negatives, self.false_positives],
            [self.false_negatives, self.true_positives],
        ]


@dataclass(frozen=True)
class ClassificationMetrics:
    confusion_matrix: ConfusionMatrix
    accuracy: float = 0.0
    precision: float = 0.0
    recall: float = 0.0
    f1_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["confusion_matrix"] = self.confusion_matrix.as_matrix()
        return data


def _ratio(numerator: float, denominator: float) -> float:
    return float(numerator / denominator) if denominator else 0.0


def _as_labels(values: Sequence[int] | np.ndarray, name: str) -> np.ndarray:
    labels = np.asarray(values)
    if labels.ndim != 1:
        raise InputShapeError(f"{name} must be a 1-D label sequence, got {labels.ndim}-D")
    if labels.size and not np.isin(labels, (0, 1)).all():
        raise InputShapeError(f"{name} must contain only 0/1 labels")
    return labels.astype(int)


def evaluate_labels(
    y_true: Sequence[int] | np.ndarray,
    y_pred: Sequence[int] | np.ndarray,
) -> ClassificationMetrics:
    """Compare ground truth against predicted labels.

    Args:
        y_true: Ground-truth 0/1 labels.
        y_pred: Predicted 0/1 labels, same length and order as ``y_true``.

    Returns:
        Confusion matrix with accuracy, precision, recall and F1.

    Raises:
        InputShapeError: The sequences differ in length or are not binary.
    """
    actual = _as_labels(y_true, "y_true")
    predicted = _as_labels(y_pred, "y_pred")
    if actual.shape != predicted.shape:
        raise InputShapeError(
            f"Label length mismatch: {actual.shape[0]} actual vs {predicted.shape[0]} predicted"
        )
    if actual.size == 0:
        logger.info("model_evaluated", num_rows=0)
        return ClassificationMetrics(confusion_matrix=ConfusionMatrix())

    from sklearn.metrics import (
        accuracy_score,
        confusion_matrix,
        f1_score,
        precision_score,
        recall_score,
    )

    tn, fp, fn, tp = confusion_matrix(actual, predicted, labels=[0, 1]).ravel()
    cm = ConfusionMatrix(
        true_negatives=int(tn),
        false_positives=int(fp),
        false_negatives=int(fn),
        true_positives=int(tp),
    )

    metrics = ClassificationMetrics(
        confusion_matrix=cm,
        accuracy=float(accuracy_score(actual, predicted)),
        precision=float(precision_score(actual, predicted, zero_division=0)),
        recall=float(recall_score(actual, predicted, zero_division=0)),
        f1_score=float(f1_score(actual, predicted, zero_division=0)),
    )

    logger.info(
        "model_evaluated",
        num_rows=cm.total,
        accuracy=metrics.accuracy,
        precision=metrics.precision,
        recall=metrics.recall,
        f1_score=metrics.f1_score,
        true_negatives=cm.true_negatives,
        false_positives=cm.false_positives,
        false_negatives=cm.false_negatives,
        true_positives=cm.true_positives,
    )

    return metrics


def generate_classification_report(
    y_true: Sequence[int] | np.ndarray,
    y_pred: Sequence[int] | np.ndarray,
    output_path: str | None = None,
) -> str:
    """Generate a classification report and optionally save to file.

    Returns:
        The classification report as a string.
    """
    from sklearn.metrics import classification_report

    metrics = evaluate_labels(y_true, y_pred)
    cm = metrics.confusion_matrix

    if cm.total:
        report = classification_report(
            _as_labels(y_true, "y_true"),
            _as_labels(y_pred, "y_pred"),
            labels=[0, 1],
            target_names=["legitimate", "fraud"],
            zero_division=0,
        )
    else:
        report = "No transactions evaluated.\n"

    full_report = f"Classification Report\n{'=' * 50}\n{report}\n"
    full_report += f"\nConfusion Matrix\n{'=' * 50}\n"
    full_report += f"{'':>12}{'pred 0':>10}{'pred 1':>10}\n"
    full_report += f"{'actual 0':>12}{cm.true_negatives:>10}{cm.false_positives:>10}\n"
    full_report += f"{'actual 1':>12}{cm.false_negatives:>10}{cm.true_positives:>10}\n"

    if output_path:
        with open(output_path, "w") as f:
            f.write(full_report)
        logger.info("classification_report_saved", path=output_path)

    return full_report


def compare_model_vs_rules(
    y_true: Sequence[int] | np.ndarray,
    model_pred: Sequence[int] | np.ndarray,
    rule_pred: Sequence[int] | np.ndarray,
) -> dict[str, Any]:
    """Compare model detections against rule-cascade detections.

    Identifies fraud caught by the model but missed by rules, caught by
    rules but missed by the model, caught by both, and caught by neither.

    Args:
        y_true: True labels.
        model_pred: Labels predicted by the trained model.
        rule_pred: Labels predicted by the rule cascade.

    Returns:
        Comparison report dictionary.
    """
    actual = _as_labels(y_true, "y_true").astype(bool)
    model_flags = _as_labels(model_pred, "model_pred").astype(bool)
    rule_flags = _as_labels(rule_pred, "rule_pred").astype(bool)
    if not (actual.shape == model_flags.shape == rule_flags.shape):
        raise InputShapeError("y_true, model_pred and rule_pred must have equal length")

    model_caught = model_flags & actual
    rules_caught = rule_flags & actual
    total_fraud = int(actual.sum())

    report = {
        "total_fraud_cases": total_fraud,
        "model_caught": int(model_caught.sum()),
        "rules_caught": int(rules_caught.sum()),
        "both_caught": int((model_caught & rules_caught).sum()),
        "model_only_caught": int((model_caught & ~rules_caught).sum()),
        "rules_only_caught": int((rules_caught & ~model_caught).sum()),
        "neither_caught": int((actual & ~model_caught & ~rules_caught).sum()),
        "model_detection_rate": _ratio(model_caught.sum(), total_fraud),
        "rules_detection_rate": _ratio(rules_caught.sum(), total_fraud),
        "hybrid_detection_rate": _ratio((model_caught | rules_caught).sum(), total_fraud),
    }

    logger.info("model_vs_rules_comparison", **report)

    return report
