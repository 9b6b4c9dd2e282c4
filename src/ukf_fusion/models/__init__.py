"""
State and measurement models.

Pure functions describing how the tracked state evolves (CTRV) and how the
lidar and radar observe it.
"""

from .state import StateVector, STATE_DIM, AUGMENTED_DIM
from .motion import ctrv_motion, augment, predict_sigma_points, process_noise_covariance
from .measurement import (
    LIDAR_OBSERVATION_MATRIX,
    lidar_measurement,
    radar_measurement,
    radar_to_cartesian,
    lidar_noise_covariance,
    radar_noise_covariance,
)

__all__ = [
    "StateVector",
    "STATE_DIM",
    "AUGMENTED_DIM",
    "ctrv_motion",
    "augment",
    "predict_sigma_points",
    "process_noise_covariance",
    "LIDAR_OBSERVATION_MATRIX",
    "lidar_measurement",
    "radar_measurement",
    "radar_to_cartesian",
    "lidar_noise_covariance",
    "radar_noise_covariance"
]
