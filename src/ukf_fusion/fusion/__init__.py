"""
Sensor fusion algorithms for ukf fusion.

This module implements the Unscented Kalman Filter and the unscented
transform it is built on.
"""

from .ukf import (
    UnscentedKalmanFilter,
    NoiseParameters,
    FilterStatus,
    FilterError,
    NumericalInstabilityError,
    OutOfOrderMeasurementError,
    FilterNotInitializedError,
)
from .unscented import UnscentedTransform, normalize_angle

__all__ = [
    "UnscentedKalmanFilter",
    "NoiseParameters",
    "FilterStatus",
    "FilterError",
    "NumericalInstabilityError",
    "OutOfOrderMeasurementError",
    "FilterNotInitializedError",
    "UnscentedTransform",
    "normalize_angle"
]
