"""Z-score normalization with an explicit fit/apply split.

``fit_scaler`` is the only place mean and std are computed. ``transform``
always applies a previously fitted Scaler and never looks at its input's
statistics, so one new transaction is scored exactly like it would be
inside the training batch.
"""

import json
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import structlog

from ..errors import InputShapeError, UntrainedStateError
from .features import NUM_FEATURES

logger = structlog.get_logger()


@dataclass(frozen=True)
class Scaler:
    """Per-feature mean and population std, in feature order.

    A std of 1.0 stands in for zero-variance columns (dead zone), so those
    columns normalize to all zeros instead of dividing by zero.
    """

    mean: tuple[float, ...]
    std: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.mean) != len(self.std):
            raise InputShapeError(
                f"Scaler mean/std length mismatch: {len(self.mean)} != {len(self.std)}"
            )
        if any(s <= 0 for s in self.std):
            raise ValueError("Scaler std values must be positive")

    @property
    def width(self) -> int:
        return len(self.mean)

    def to_dict(self) -> dict[str, list[float]]:
        return {"mean": list(self.mean), "std": list(self.std)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scaler":
        return cls(
            mean=tuple(float(m) for m in data["mean"]),
            std=tuple(float(s) for s in data["std"]),
        )

    def save(self, path: str | Path) -> None:
        Path(path).write_text(json.dumps(self.to_dict(), indent=2))
        logger.info("scaler_saved", path=str(path), width=self.width)

    @classmethod
    def load(cls, path: str | Path) -> "Scaler":
        scaler = cls.from_dict(json.loads(Path(path).read_text()))
        if scaler.width != NUM_FEATURES:
            raise InputShapeError(
                f"Scaler at {path} has {scaler.width} features, expected {NUM_FEATURES}"
            )
        return scaler


def as_feature_matrix(features: np.ndarray | Sequence[Sequence[float]]) -> np.ndarray:
    """Coerce to a 2-D float array, rejecting ragged rows."""
    if isinstance(features, np.ndarray):
        matrix = features.astype(float, copy=False)
    else:
        rows = list(features)
        widths = {len(row) for row in rows}
        if len(widths) > 1:
            raise InputShapeError(f"Feature rows have inconsistent lengths: {sorted(widths)}")
        width = widths.pop() if widths else 0
        matrix = np.array(rows, dtype=float).reshape(len(rows), width)

    if matrix.ndim != 2:
        raise InputShapeError(f"Feature matrix must be 2-D, got {matrix.ndim}-D")
    return matrix


def fit_scaler(features: np.ndarray | Sequence[Sequence[float]]) -> Scaler | None:
    """Fit per-column mean and population std with a StandardScaler.

    Returns None for an empty matrix: there is nothing to fit, and callers
    must not transform until a real fit succeeds.
    """
    from sklearn.preprocessing import StandardScaler

    matrix = as_feature_matrix(features)
    if matrix.shape[0] == 0:
        logger.warning("scaler_fit_skipped_empty_batch")
        return None

    fitted = StandardScaler().fit(matrix)
    mean = fitted.mean_.copy()
    std = fitted.scale_.copy()  # population std, 1.0 where variance is zero
    # Constant columns can pick up rounding noise in mean_; pin them exactly
    dead_zone = np.all(matrix == matrix[0], axis=0)
    mean[dead_zone] = matrix[0, dead_zone]
    std[dead_zone] = 1.0

    scaler = Scaler(mean=tuple(mean.tolist()), std=tuple(std.tolist()))
    logger.info(
        "scaler_fit",
        num_rows=matrix.shape[0],
        width=scaler.width,
        zero_variance_features=int(dead_zone.sum()),
    )
    return scaler


def transform(
    features: np.ndarray | Sequence[Sequence[float]],
    scaler: Scaler | None,
) -> np.ndarray:
    """Apply ``(x - mean) / std`` column-wise with a fitted scaler."""
    if scaler is None:
        raise UntrainedStateError("transform called before a scaler was fit")

    matrix = as_feature_matrix(features)
    if matrix.shape[0] == 0:
        return np.empty((0, scaler.width), dtype=float)
    if matrix.shape[1] != scaler.width:
        raise InputShapeError(
            f"Feature width {matrix.shape[1]} does not match scaler width {scaler.width}"
        )

    return (matrix - np.asarray(scaler.mean)) / np.asarray(scaler.std)
