"""
UKF Fusion: Object tracking with an Unscented Kalman Filter

A scientific Python package that tracks a moving object from an asynchronous
stream of lidar and radar measurements.

This package implements:
- Unscented Kalman Filter with process-noise augmentation
- CTRV (constant turn rate and velocity) motion model
- Linear lidar and nonlinear radar measurement models
- Measurement log reading, RMSE scoring and NIS consistency analysis

The estimator itself depends only on its noise configuration; sensor
selection, file handling and reporting live in the outer layers.
"""

from .fusion.ukf import (
    UnscentedKalmanFilter,
    NoiseParameters,
    FilterStatus,
    FilterError,
    NumericalInstabilityError,
    OutOfOrderMeasurementError,
    FilterNotInitializedError,
)
from .fusion.unscented import UnscentedTransform, normalize_angle
from .models.state import StateVector
from .sensors.measurement import SensorType, MeasurementPackage, GroundTruthPackage
from .sensors.reader import read_measurements, write_estimations, EstimationRecord
from .evaluation.metrics import calculate_rmse, summarize_nis

__version__ = "1.0.0"
__author__ = "UKF Fusion Team"

__all__ = [
    "UnscentedKalmanFilter",
    "NoiseParameters",
    "FilterStatus",
    "FilterError",
    "NumericalInstabilityError",
    "OutOfOrderMeasurementError",
    "FilterNotInitializedError",
    "UnscentedTransform",
    "normalize_angle",
    "StateVector",
    "SensorType",
    "MeasurementPackage",
    "GroundTruthPackage",
    "read_measurements",
    "write_estimations",
    "EstimationRecord",
    "calculate_rmse",
    "summarize_nis",
]
