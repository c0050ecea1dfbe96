"""Fraud classifier training entrypoint.

Loads an already-exported transaction table, trains the scoring pipeline
on a stratified split, evaluates on the held-out part with the scaler
fitted at training time, and compares the model against the rule cascade.

Usage:
    python -m src.domains.fraud.ml.train --dataset data/transactions.csv
    python -m src.domains.fraud.ml.train --dataset data/transactions.csv \
        --config train.yaml --scaler-out scaler.json
"""

import argparse
import copy
import hashlib
import json
import time
from typing import Any

import pandas as pd
import structlog
import yaml

from ..config import FraudConfig
from ..models import transactions_from_frame
from ..pipeline import ScoringPipeline
from .classifier import MLPFraudClassifier
from .evaluate import generate_classification_report
from .features import get_feature_names

logger = structlog.get_logger()

DEFAULT_CONFIG: dict[str, Any] = {
    "random_seed": 42,
    "test_size": 0.2,
    "sample_size": None,  # None = use full dataset
    "prediction_threshold": 0.5,
    "training_timeout_seconds": 300.0,
    "hyperparams": {
        "hidden_layer_sizes": [64, 32, 16],
        "alpha": 0.01,
        "learning_rate_init": 0.001,
        "batch_size": 32,
        "epochs": 10,
    },
}


def load_config(config_path: str | None = None) -> dict[str, Any]:
    """Load training configuration, merging with defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path:
        with open(config_path) as f:
            overrides = yaml.safe_load(f)
        if overrides:
            _deep_merge(config, overrides)
    return config


def _deep_merge(base: dict, override: dict) -> None:
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v


def build_pipeline(config: dict[str, Any]) -> ScoringPipeline:
    """Pipeline wired with the configured classifier and thresholds."""
    fraud_config = FraudConfig.from_env()
    fraud_config.model.prediction_threshold = float(config["prediction_threshold"])
    fraud_config.model.training_timeout_seconds = float(config["training_timeout_seconds"])

    hyperparams = dict(config["hyperparams"])
    hyperparams["random_seed"] = config["random_seed"]

    return ScoringPipeline(
        classifier_factory=lambda: MLPFraudClassifier(hyperparams),
        config=fraud_config,
    )


def train_model(
    dataset_path: str,
    config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Train and evaluate the scoring pipeline end-to-end.

    Steps:
    1. Load the transaction table and validate rows
    2. Stratified train/test split
    3. Train (stats, features, scaler, classifier)
    4. Evaluate on the held-out set and compare with the rule cascade

    Returns:
        Dictionary with the trained pipeline, metrics and metadata.
    """
    from sklearn.model_selection import train_test_split

    config = config or load_config()
    seed = config["random_seed"]

    logger.info("training_run_started", dataset=dataset_path)
    start_time = time.time()

    df = pd.read_csv(dataset_path)
    sample_size = config.get("sample_size")
    if sample_size and len(df) > sample_size:
        df = df.sample(n=sample_size, random_state=seed)
        logger.info("dataset_sampled", sample_size=sample_size)

    transactions = transactions_from_frame(df)
    labels = [t.fraud for t in transactions]
    stratify = labels if len(set(labels)) > 1 else None
    train_txns, test_txns = train_test_split(
        transactions, test_size=config["test_size"], random_state=seed, stratify=stratify
    )

    logger.info("data_split", train_size=len(train_txns), test_size=len(test_txns))

    pipeline = build_pipeline(config)
    train_metrics = pipeline.train(train_txns)

    # Training stats only; held-out labels must not reach features or rules
    cohort = pipeline.training_cohort
    test_scored = pipeline.predict(test_txns, cohort)
    test_metrics = pipeline.evaluate(test_scored)
    report_text = generate_classification_report(
        [t.fraud for t in test_txns], [s.predicted_fraud for s in test_scored]
    )
    comparison = pipeline.compare_with_rules(test_txns, cohort)

    duration = time.time() - start_time
    result = {
        "pipeline": pipeline,
        "train_metrics": train_metrics.to_dict(),
        "metrics": test_metrics.to_dict(),
        "comparison": comparison,
        "report": report_text,
        "model_version": MLPFraudClassifier.model_version,
        "training_duration_seconds": round(duration, 1),
        "dataset_hash": _compute_file_hash(dataset_path),
        "feature_names": get_feature_names(),
        "config": config,
    }

    logger.info(
        "training_run_completed",
        f1=test_metrics.f1_score,
        recall=test_metrics.recall,
        duration_seconds=round(duration, 1),
    )

    return result


def _compute_file_hash(file_path: str) -> str:
    """SHA-256 hash of a file."""
    sha256 = hashlib.sha256()
    try:
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
        return sha256.hexdigest()
    except FileNotFoundError:
        return "file_not_found"


def main():
    parser = argparse.ArgumentParser(
        description="Train the card fraud scoring pipeline",
        prog="python -m src.domains.fraud.ml.train",
    )
    parser.add_argument(
        "--dataset",
        type=str,
        required=True,
        help="Path to the transaction CSV export",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to training config YAML (optional)",
    )
    parser.add_argument(
        "--sample-size",
        type=int,
        default=None,
        help="Downsample dataset to N rows for faster iteration",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--scaler-out",
        type=str,
        default=None,
        help="Write the fitted scaler as JSON to this path",
    )

    args = parser.parse_args()

    from src.config import settings
    from src.shared.logging import setup_logging

    setup_logging(settings.log_level, settings.log_format)

    config = load_config(args.config)
    if args.sample_size:
        config["sample_size"] = args.sample_size
    if args.seed is not None:
        config["random_seed"] = args.seed

    result = train_model(dataset_path=args.dataset, config=config)

    if args.scaler_out:
        result["pipeline"].state.scaler.save(args.scaler_out)

    metrics = result["metrics"]
    print(f"\nTraining Complete: {result['model_version']}")
    print(f"  Accuracy: {metrics['accuracy']:.4f}")
    print(f"  Precision: {metrics['precision']:.4f}")
    print(f"  Recall: {metrics['recall']:.4f}")
    print(f"  F1: {metrics['f1_score']:.4f}")
    print(f"  Duration: {result['training_duration_seconds']}s")
    print(result["report"])
    print(json.dumps(result["comparison"], indent=2))


if __name__ == "__main__":
    main()
