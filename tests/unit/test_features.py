"""Unit tests for feature extraction."""

import math

import numpy as np
import pytest

from src.domains.fraud.ml.features import (
    FEATURE_NAMES,
    NUM_FEATURES,
    extract_features,
    features_to_frame,
    get_feature_names,
)
from src.domains.fraud.stats import CohortStats, aggregate_cohort
from tests.conftest import make_transaction


class TestExtractFeatures:
    def test_shape_and_order(self, labeled_batch):
        features = extract_features(labeled_batch, aggregate_cohort(labeled_batch))
        assert features.shape == (len(labeled_batch), 14)
        np.testing.assert_array_equal(features[:, 0], [t.amount for t in labeled_batch])

    def test_feature_values(self, labeled_batch):
        cohort = aggregate_cohort(labeled_batch)
        txn = labeled_batch[6]  # C1 at T1, amount 300, 6 hours in
        row = extract_features([txn], cohort)[0]

        assert row[0] == 300.0
        assert row[1] == 6 * 3_600
        assert row[2] == 0
        assert row[3] == pytest.approx(112.5)
        assert row[4] == 4
        assert row[5] == pytest.approx(cohort.customers["C1"].std_amount)
        assert row[6] == pytest.approx(400.0 / 3)
        assert row[7] == 3
        assert row[8] == pytest.approx(1 / 3)
        assert row[9] == pytest.approx(187.5)
        assert row[10] == pytest.approx(math.sin(2 * math.pi * 0.25))
        assert row[11] == pytest.approx(math.cos(2 * math.pi * 0.25), abs=1e-12)
        assert row[12] == pytest.approx(0.0)
        assert row[13] == pytest.approx(1.0)

    def test_day_of_week_phase(self):
        txn = make_transaction(0, "C1", "T1", 10.0, seconds=9 * 86_400)
        row = extract_features([txn], CohortStats())[0]
        assert row[2] == 9
        assert row[12] == pytest.approx(math.sin(2 * math.pi * 2 / 7))
        assert row[13] == pytest.approx(math.cos(2 * math.pi * 2 / 7))

    def test_unseen_entities_use_zero_defaults(self):
        txn = make_transaction(0, "C-new", "T-new", 55.0)
        row = extract_features([txn], CohortStats())[0]
        assert row.shape == (14,)
        np.testing.assert_array_equal(row[3:10], np.zeros(7))
        assert row[0] == 55.0

    def test_unknown_terminal_rate_maps_to_zero(self):
        txn = make_transaction(0, "C1", "T1", 55.0, fraud=None)
        row = extract_features([txn], aggregate_cohort([txn]))[0]
        assert row[7] == 1
        assert row[8] == 0.0

    def test_always_fourteen_positions(self, labeled_batch):
        cohort = aggregate_cohort(labeled_batch[:3])
        features = extract_features(labeled_batch, cohort)
        assert features.shape[1] == NUM_FEATURES == 14

    def test_empty_batch(self):
        features = extract_features([], CohortStats())
        assert features.shape == (0, 14)


class TestFeatureNames:
    def test_names_match_width(self):
        assert len(get_feature_names()) == NUM_FEATURES
        assert get_feature_names()[0] == "amount"
        assert get_feature_names()[-1] == "day_of_week_cos"

    def test_features_to_frame(self, labeled_batch):
        features = extract_features(labeled_batch, aggregate_cohort(labeled_batch))
        df = features_to_frame(features, labeled_batch)
        assert list(df.columns) == list(FEATURE_NAMES)
        assert df.index[0] == "txn-0"
        assert df.loc["txn-6", "amount"] == 300.0
