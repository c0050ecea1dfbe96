"""Fraud scoring configuration with sensible defaults."""

import os
from dataclasses import dataclass, field


@dataclass
class RuleThresholds:
    high_amount: float = 220.0
    terminal_fraud_rate: float = 0.5
    customer_amount_multiplier: float = 3.0


@dataclass
class AnalysisThresholds:
    suspicious_terminal_fraud_rate: float = 0.3
    spending_variation_ratio: float = 2.0


@dataclass
class ModelSettings:
    prediction_threshold: float = 0.5
    training_timeout_seconds: float = 300.0
    backend: str = "model"  # model / rules


@dataclass
class FraudConfig:
    rules: RuleThresholds = field(default_factory=RuleThresholds)
    analysis: AnalysisThresholds = field(default_factory=AnalysisThresholds)
    model: ModelSettings = field(default_factory=ModelSettings)

    @classmethod
    def from_env(cls) -> "FraudConfig":
        """Load config with env var overrides. Env vars use FRAUD_ prefix."""
        config = cls()

        # Rule overrides
        if v := os.getenv("FRAUD_HIGH_AMOUNT"):
            config.rules.high_amount = float(v)
        if v := os.getenv("FRAUD_TERMINAL_FRAUD_RATE"):
            config.rules.terminal_fraud_rate = float(v)
        if v := os.getenv("FRAUD_CUSTOMER_AMOUNT_MULTIPLIER"):
            config.rules.customer_amount_multiplier = float(v)

        # Analysis overrides
        if v := os.getenv("FRAUD_SUSPICIOUS_TERMINAL_RATE"):
            config.analysis.suspicious_terminal_fraud_rate = float(v)
        if v := os.getenv("FRAUD_SPENDING_VARIATION_RATIO"):
            config.analysis.spending_variation_ratio = float(v)

        # Model overrides
        if v := os.getenv("FRAUD_PREDICTION_THRESHOLD"):
            config.model.prediction_threshold = float(v)
        if v := os.getenv("FRAUD_TRAINING_TIMEOUT_SECONDS"):
            config.model.training_timeout_seconds = float(v)
        if v := os.getenv("FRAUD_SCORING_BACKEND"):
            if v not in ("model", "rules"):
                raise ValueError(f"FRAUD_SCORING_BACKEND must be 'model' or 'rules', got {v!r}")
            config.model.backend = v

        return config


# Module-level default instance
default_config = FraudConfig()
