"""Unit tests for classification metrics and model-vs-rules comparison."""

import numpy as np
import pytest

from src.domains.fraud.errors import InputShapeError
from src.domains.fraud.ml.evaluate import (
    ConfusionMatrix,
    compare_model_vs_rules,
    evaluate_labels,
    generate_classification_report,
)


class TestEvaluateLabels:
    def test_reference_case(self):
        metrics = evaluate_labels([1, 0, 1, 0], [1, 0, 0, 0])
        assert metrics.confusion_matrix == ConfusionMatrix(
            true_negatives=2, false_positives=0, false_negatives=1, true_positives=1
        )
        assert metrics.accuracy == 0.75
        assert metrics.precision == 1.0
        assert metrics.recall == 0.5
        assert metrics.f1_score == pytest.approx(2 / 3)

    def test_no_positive_predictions_gives_zero_precision(self):
        metrics = evaluate_labels([1, 0, 1], [0, 0, 0])
        assert metrics.precision == 0.0
        assert metrics.recall == 0.0
        assert metrics.f1_score == 0.0
        assert metrics.accuracy == pytest.approx(1 / 3)

    def test_empty_batch_all_zero(self):
        metrics = evaluate_labels([], [])
        assert metrics.confusion_matrix.total == 0
        assert metrics.accuracy == 0.0
        assert metrics.precision == 0.0
        assert metrics.recall == 0.0
        assert metrics.f1_score == 0.0

    def test_counts_sum_to_rows(self):
        rng = np.random.default_rng(7)
        for size in (1, 5, 50, 333):
            y_true = rng.integers(0, 2, size)
            y_pred = rng.integers(0, 2, size)
            assert evaluate_labels(y_true, y_pred).confusion_matrix.total == size

    def test_single_class_batch_keeps_two_by_two_matrix(self):
        metrics = evaluate_labels([0, 0, 0], [0, 0, 0])
        assert metrics.confusion_matrix.as_matrix() == [[3, 0], [0, 0]]
        assert metrics.accuracy == 1.0
        assert metrics.precision == 0.0
        assert metrics.f1_score == 0.0

    def test_matches_sklearn_metrics(self):
        from sklearn.metrics import confusion_matrix, f1_score, precision_score, recall_score

        rng = np.random.default_rng(11)
        y_true = rng.integers(0, 2, 200)
        y_pred = rng.integers(0, 2, 200)
        metrics = evaluate_labels(y_true, y_pred)

        assert metrics.confusion_matrix.as_matrix() == confusion_matrix(y_true, y_pred).tolist()
        assert metrics.precision == pytest.approx(precision_score(y_true, y_pred))
        assert metrics.recall == pytest.approx(recall_score(y_true, y_pred))
        assert metrics.f1_score == pytest.approx(f1_score(y_true, y_pred))

    def test_unequal_lengths_rejected(self):
        with pytest.raises(InputShapeError):
            evaluate_labels([1, 0], [1])

    def test_non_binary_rejected(self):
        with pytest.raises(InputShapeError):
            evaluate_labels([1, 2], [1, 0])

    def test_to_dict(self):
        data = evaluate_labels([1, 0, 1, 0], [1, 0, 0, 0]).to_dict()
        assert data["confusion_matrix"] == [[2, 0], [1, 1]]
        assert data["accuracy"] == 0.75


class TestClassificationReport:
    def test_report_contents(self):
        report = generate_classification_report([1, 0, 1, 0], [1, 0, 0, 0])
        assert "Classification Report" in report
        assert "fraud" in report
        assert "Confusion Matrix" in report

    def test_report_saved(self, tmp_path):
        path = tmp_path / "report.txt"
        report = generate_classification_report([1, 0], [1, 1], output_path=str(path))
        assert path.read_text() == report

    def test_empty_report(self):
        report = generate_classification_report([], [])
        assert "No transactions evaluated" in report


class TestCompareModelVsRules:
    def test_overlap_breakdown(self):
        y_true = [1, 1, 1, 1, 0]
        model = [1, 1, 0, 0, 1]
        rules = [1, 0, 1, 0, 0]
        report = compare_model_vs_rules(y_true, model, rules)

        assert report["total_fraud_cases"] == 4
        assert report["both_caught"] == 1
        assert report["model_only_caught"] == 1
        assert report["rules_only_caught"] == 1
        assert report["neither_caught"] == 1
        assert report["model_detection_rate"] == 0.5
        assert report["hybrid_detection_rate"] == 0.75

    def test_no_fraud(self):
        report = compare_model_vs_rules([0, 0], [1, 0], [0, 0])
        assert report["total_fraud_cases"] == 0
        assert report["model_detection_rate"] == 0.0

    def test_length_mismatch(self):
        with pytest.raises(InputShapeError):
            compare_model_vs_rules([1, 0], [1, 0], [1])
