"""Accuracy and filter-consistency metrics."""

from .metrics import (
    NISStatistics,
    calculate_rmse,
    estimate_to_cartesian,
    nis_threshold,
    summarize_nis,
)

__all__ = [
    "NISStatistics",
    "calculate_rmse",
    "estimate_to_cartesian",
    "nis_threshold",
    "summarize_nis"
]
