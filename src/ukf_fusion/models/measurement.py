"""
Sensor measurement models.

Lidar (linear):
    z = H·x + v,   H = [[1, 0, 0, 0, 0],
                        [0, 1, 0, 0, 0]]

Radar (nonlinear):
    ρ  = √(px² + py²)
    φ  = atan2(py, px)
    ρ̇  = (px·v·cos ψ + py·v·sin ψ) / ρ

Both models are pure functions of the state so they can be evaluated on
single estimates or on every predicted sigma point.
"""

import numpy as np
from typing import Tuple

from .state import STATE_DIM, PX, PY, V, YAW


LIDAR_DIM = 2
RADAR_DIM = 3

# Radar measurement indices
RHO, PHI, RHO_DOT = range(RADAR_DIM)

LIDAR_OBSERVATION_MATRIX = np.zeros((LIDAR_DIM, STATE_DIM))
LIDAR_OBSERVATION_MATRIX[0, PX] = 1.0
LIDAR_OBSERVATION_MATRIX[1, PY] = 1.0
LIDAR_OBSERVATION_MATRIX.setflags(write=False)


def lidar_noise_covariance(std_px: float, std_py: float) -> np.ndarray:
    """Diagonal 2x2 lidar measurement-noise covariance."""
    return np.diag([std_px ** 2, std_py ** 2])


def radar_noise_covariance(std_rho: float, std_phi: float, std_rho_dot: float) -> np.ndarray:
    """Diagonal 3x3 radar measurement-noise covariance."""
    return np.diag([std_rho ** 2, std_phi ** 2, std_rho_dot ** 2])


def lidar_measurement(state: np.ndarray) -> np.ndarray:
    """Expected lidar reading for a state."""
    return LIDAR_OBSERVATION_MATRIX @ state


def radar_measurement(state: np.ndarray) -> np.ndarray:
    """
    Expected radar reading [ρ, φ, ρ̇] for a state.

    A state at the origin makes ρ̇ undefined (0/0); any NaN component is
    replaced with 0 so it never reaches the filter statistics.

    Args:
        state: 5-element (or longer) state

    Returns:
        3-element radar measurement
    """
    px, py, v, yaw = state[PX], state[PY], state[V], state[YAW]

    rho = np.sqrt(px * px + py * py)
    phi = np.arctan2(py, px)
    with np.errstate(divide='ignore', invalid='ignore'):
        rho_dot = np.divide(px * v * np.cos(yaw) + py * v * np.sin(yaw), rho)

    return np.nan_to_num(np.array([rho, phi, rho_dot], dtype=float),
                         nan=0.0, posinf=np.inf, neginf=-np.inf)


def radar_sigma_points(sigma_points: np.ndarray) -> np.ndarray:
    """Map every predicted sigma point (column) into radar space."""
    return np.column_stack([radar_measurement(sigma_points[:, i])
                            for i in range(sigma_points.shape[1])])


def radar_to_cartesian(rho: float, phi: float) -> Tuple[float, float]:
    """Convert range and bearing to (x, y)."""
    return (rho * np.cos(phi), rho * np.sin(phi))
