"""
Accuracy and consistency metrics for tracking runs.

RMSE against ground truth:
    RMSEⱼ = √( (1/N) Σₖ (x̂ₖ,ⱼ − xₖ,ⱼ)² )

NIS consistency: for a consistent filter the NIS of an n-dimensional
measurement follows a χ² distribution with n degrees of freedom, so about
5% of samples should exceed the 95% quantile.
"""

import numpy as np
from scipy import stats
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..models.state import PX, PY, V, YAW


@dataclass
class NISStatistics:
    """Summary of a NIS sequence for one sensor."""
    count: int
    mean: float
    threshold: float
    fraction_above_threshold: float
    degrees_of_freedom: int
    confidence: float

    @property
    def is_consistent(self) -> bool:
        """True if the exceedance rate is close to the expected 1 − confidence."""
        return self.count > 0 and self.fraction_above_threshold <= 2.0 * (1.0 - self.confidence)


def nis_threshold(degrees_of_freedom: int, confidence: float = 0.95) -> float:
    """
    χ² quantile a NIS value should stay below with the given confidence.

    Args:
        degrees_of_freedom: Measurement dimension
        confidence: Quantile in (0, 1)
    """
    if degrees_of_freedom <= 0:
        raise ValueError(f"Degrees of freedom must be positive, got {degrees_of_freedom}")
    if not 0 < confidence < 1:
        raise ValueError(f"Confidence must be between 0 and 1, got {confidence}")
    return float(stats.chi2.ppf(confidence, degrees_of_freedom))


def summarize_nis(values: Iterable[float], degrees_of_freedom: int,
                  confidence: float = 0.95) -> NISStatistics:
    """Count, mean and exceedance rate of a NIS sequence."""
    values = np.asarray(list(values), dtype=float)
    threshold = nis_threshold(degrees_of_freedom, confidence)

    if values.size == 0:
        return NISStatistics(0, 0.0, threshold, 0.0, degrees_of_freedom, confidence)

    return NISStatistics(
        count=int(values.size),
        mean=float(np.mean(values)),
        threshold=threshold,
        fraction_above_threshold=float(np.mean(values > threshold)),
        degrees_of_freedom=degrees_of_freedom,
        confidence=confidence,
    )


def estimate_to_cartesian(state: np.ndarray) -> np.ndarray:
    """Convert a CTRV state to [px, py, vx, vy]."""
    state = np.asarray(state, dtype=float)
    return np.array([
        state[PX],
        state[PY],
        state[V] * np.cos(state[YAW]),
        state[V] * np.sin(state[YAW]),
    ])


def calculate_rmse(estimations: Sequence[np.ndarray],
                   ground_truth: Sequence[np.ndarray]) -> np.ndarray:
    """
    Component-wise root-mean-square error.

    Args:
        estimations: Sequence of estimate vectors
        ground_truth: Sequence of ground-truth vectors of the same size

    Returns:
        RMSE vector

    Raises:
        ValueError: If the inputs are empty or their shapes differ
    """
    if len(estimations) == 0:
        raise ValueError("Cannot compute RMSE of an empty estimation list")
    if len(estimations) != len(ground_truth):
        raise ValueError(f"Estimation and ground truth lengths differ: "
                         f"{len(estimations)} != {len(ground_truth)}")

    estimations = np.asarray(estimations, dtype=float)
    ground_truth = np.asarray(ground_truth, dtype=float)
    if estimations.shape != ground_truth.shape:
        raise ValueError(f"Estimation shape {estimations.shape} does not match "
                         f"ground truth shape {ground_truth.shape}")

    return np.sqrt(np.mean((estimations - ground_truth) ** 2, axis=0))
