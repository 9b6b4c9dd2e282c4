"""
CTRV process model with augmented process noise.

Deterministic part (ψ̇ ≠ 0, arc motion):
    px' = px + v/ψ̇ · (sin(ψ + ψ̇Δt) − sin ψ)
    py' = py + v/ψ̇ · (cos ψ − cos(ψ + ψ̇Δt))
    v'  = v
    ψ'  = ψ + ψ̇Δt
    ψ̇'  = ψ̇

Deterministic part (ψ̇ ≈ 0, straight line):
    px' = px + vΔt·cos ψ
    py' = py + vΔt·sin ψ

Noise contribution:
    px' += ½ν_aΔt²·cos ψ        v'  += ν_aΔt
    py' += ½ν_aΔt²·sin ψ        ψ'  += ½ν_ψ̈Δt²
                                ψ̇'  += ν_ψ̈Δt
"""

import numpy as np
from typing import Tuple

from .state import STATE_DIM, AUGMENTED_DIM, PX, PY, V, YAW, YAW_RATE, NU_A, NU_YAWDD


# Below this heading rate the arc equations divide by (almost) zero
YAW_RATE_THRESHOLD = 1e-3


def process_noise_covariance(std_a: float, std_yawdd: float) -> np.ndarray:
    """Diagonal 2x2 covariance of [ν_a, ν_ψ̈]."""
    return np.diag([std_a ** 2, std_yawdd ** 2])


def augment(state: np.ndarray, covariance: np.ndarray,
            process_noise: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the augmented mean and covariance for one prediction cycle.

    Args:
        state: 5-element state mean
        covariance: 5x5 state covariance
        process_noise: 2x2 process-noise covariance

    Returns:
        Tuple of (7-element augmented mean, 7x7 augmented covariance)
    """
    augmented_state = np.zeros(AUGMENTED_DIM)
    augmented_state[:STATE_DIM] = state

    augmented_covariance = np.zeros((AUGMENTED_DIM, AUGMENTED_DIM))
    augmented_covariance[:STATE_DIM, :STATE_DIM] = covariance
    augmented_covariance[STATE_DIM:, STATE_DIM:] = process_noise

    return augmented_state, augmented_covariance


def ctrv_motion(sigma_point: np.ndarray, dt: float) -> np.ndarray:
    """
    Propagate one (augmented) state through the CTRV model.

    A 5-element input is propagated noise-free; a 7-element input carries its
    own noise sample in the last two components.

    Args:
        sigma_point: 5- or 7-element state
        dt: Elapsed time in seconds

    Returns:
        Propagated 5-element state
    """
    px, py, v, yaw, yaw_rate = sigma_point[:STATE_DIM]
    if len(sigma_point) == AUGMENTED_DIM:
        nu_a, nu_yawdd = sigma_point[NU_A], sigma_point[NU_YAWDD]
    else:
        nu_a = nu_yawdd = 0.0

    if abs(yaw_rate) > YAW_RATE_THRESHOLD:
        px_p = px + v / yaw_rate * (np.sin(yaw + yaw_rate * dt) - np.sin(yaw))
        py_p = py + v / yaw_rate * (np.cos(yaw) - np.cos(yaw + yaw_rate * dt))
    else:
        px_p = px + v * dt * np.cos(yaw)
        py_p = py + v * dt * np.sin(yaw)

    dt2 = dt * dt
    predicted = np.empty(STATE_DIM)
    predicted[PX] = px_p + 0.5 * nu_a * dt2 * np.cos(yaw)
    predicted[PY] = py_p + 0.5 * nu_a * dt2 * np.sin(yaw)
    predicted[V] = v + nu_a * dt
    predicted[YAW] = yaw + yaw_rate * dt + 0.5 * nu_yawdd * dt2
    predicted[YAW_RATE] = yaw_rate + nu_yawdd * dt

    return predicted


def predict_sigma_points(sigma_points: np.ndarray, dt: float) -> np.ndarray:
    """
    Propagate every augmented sigma point (column) by dt.

    Returns:
        5 x N matrix of predicted sigma points
    """
    return np.column_stack([ctrv_motion(sigma_points[:, i], dt)
                            for i in range(sigma_points.shape[1])])
