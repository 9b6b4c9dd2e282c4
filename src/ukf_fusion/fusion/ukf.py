"""
Unscented Kalman Filter for single-object tracking with lidar and radar.

The filter estimates a CTRV state from an asynchronous stream of lidar
(Cartesian position) and radar (range, bearing, range-rate) readings.

Recursion:
    Prediction (unscented, augmented with process noise):
        X_aug  = sigma_points(x_aug, P_aug)
        X_pred = f(X_aug, Δt)
        x̂⁻     = Σ wᵢ·X_pred,ᵢ
        P⁻     = Σ wᵢ·(X_pred,ᵢ − x̂⁻)(X_pred,ᵢ − x̂⁻)ᵀ

    Lidar update (linear):
        S = H P⁻ Hᵀ + R_L
        K = P⁻ Hᵀ S⁻¹
        x̂ = x̂⁻ + K(z − Hx̂⁻)
        P = (I − KH) P⁻

    Radar update (unscented, reuses X_pred):
        Z   = h(X_pred)
        ẑ   = Σ wᵢ·Zᵢ
        S   = Σ wᵢ·(Zᵢ − ẑ)(Zᵢ − ẑ)ᵀ + R_R
        T   = Σ wᵢ·(X_pred,ᵢ − x̂⁻)(Zᵢ − ẑ)ᵀ
        K   = T S⁻¹
        x̂   = x̂⁻ + K(z − ẑ)
        P   = P⁻ − K S Kᵀ

    Consistency:
        NIS = (z − ẑ)ᵀ S⁻¹ (z − ẑ)

A failed Cholesky factorization or a singular innovation covariance means the
filter has diverged or is misconfigured. Both raise NumericalInstabilityError;
neither is regularized away.
"""

import numpy as np
import scipy.linalg
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional
import logging

from .unscented import UnscentedTransform, normalize_angle
from ..models.state import StateVector, STATE_DIM, AUGMENTED_DIM, PX, PY, YAW
from ..models.motion import augment, predict_sigma_points, process_noise_covariance
from ..models.measurement import (
    LIDAR_OBSERVATION_MATRIX,
    PHI,
    lidar_noise_covariance,
    radar_noise_covariance,
    radar_sigma_points,
    radar_to_cartesian,
)
from ..sensors.measurement import MeasurementPackage, SensorType
from ..evaluation.metrics import nis_threshold

logger = logging.getLogger(__name__)


MICROSECONDS_PER_SECOND = 1e6

INITIAL_COVARIANCE_DIAGONAL = (1.0, 1.0, 1000.0, 100.0, 1.0)

# Initial positions closer than this to an axis are replaced by a guess
MIN_INITIAL_POSITION = 1e-4
FALLBACK_POSITION = 1.0
FALLBACK_POSITION_VARIANCE = 1000.0

# Innovation covariances above this condition number are logged as ill-conditioned
MAX_CONDITION_NUMBER = 1e12


class FilterError(RuntimeError):
    """Base exception for estimator failures."""


class NumericalInstabilityError(FilterError):
    """A covariance lost positive definiteness or became singular."""


class OutOfOrderMeasurementError(FilterError, ValueError):
    """A measurement arrived with a timestamp earlier than the previous one."""


class FilterNotInitializedError(FilterError):
    """Prediction or update requested before the first measurement."""


class FilterStatus(Enum):
    """Lifecycle of the estimator."""
    UNINITIALIZED = "uninitialized"
    TRACKING = "tracking"


@dataclass(frozen=True)
class NoiseParameters:
    """
    Process and measurement noise standard deviations.

    Attributes:
        std_a: Longitudinal acceleration noise (m/s²)
        std_yawdd: Yaw acceleration noise (rad/s²)
        std_laspx: Lidar x position noise (m)
        std_laspy: Lidar y position noise (m)
        std_radr: Radar range noise (m)
        std_radphi: Radar bearing noise (rad)
        std_radrd: Radar range-rate noise (m/s)
    """
    std_a: float = 0.63
    std_yawdd: float = 1.2
    std_laspx: float = 0.0225
    std_laspy: float = 0.0225
    std_radr: float = 0.9
    std_radphi: float = 0.005
    std_radrd: float = 0.5

    def __post_init__(self):
        """Validate noise parameters."""
        for name, value in asdict(self).items():
            if not np.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive finite number, got {value}")


class UnscentedKalmanFilter:
    """
    CTRV Unscented Kalman Filter fusing lidar and radar measurements.

    The estimator is configured once with its noise parameters and then fed
    measurements in non-decreasing timestamp order through
    process_measurement(). The first measurement seeds the state; every later
    one runs a prediction over the elapsed time followed by the update that
    matches the sensor.

    Attributes:
        noise: Noise configuration, fixed for the life of the filter
        x: 5-element state estimate [px, py, v, yaw, yaw_rate]
        P: 5x5 state covariance
        sigma_points_pred: 5x15 predicted sigma points of the current cycle,
            cleared by every update
        nis_laser: NIS of the most recent lidar update
        nis_radar: NIS of the most recent radar update
        status: FilterStatus
    """

    def __init__(self, noise: Optional[NoiseParameters] = None):
        self.noise = noise or NoiseParameters()

        self._transform = UnscentedTransform(AUGMENTED_DIM)

        self._process_noise = process_noise_covariance(self.noise.std_a, self.noise.std_yawdd)
        self._lidar_noise = lidar_noise_covariance(self.noise.std_laspx, self.noise.std_laspy)
        self._radar_noise = radar_noise_covariance(
            self.noise.std_radr, self.noise.std_radphi, self.noise.std_radrd)

        self._nis_bounds = {
            SensorType.LASER: nis_threshold(self._lidar_noise.shape[0]),
            SensorType.RADAR: nis_threshold(self._radar_noise.shape[0]),
        }

        self._reset_state()
        logger.info(f"Unscented Kalman Filter created with {self.noise}")

    def _reset_state(self) -> None:
        self.x = np.zeros(STATE_DIM)
        self.P = np.diag(INITIAL_COVARIANCE_DIAGONAL)
        self.sigma_points_pred = None
        self.previous_timestamp = None
        self.status = FilterStatus.UNINITIALIZED

        self.nis_laser = None
        self.nis_radar = None

        self._prediction_count = 0
        self._update_counts = {SensorType.LASER: 0, SensorType.RADAR: 0}

    @property
    def is_initialized(self) -> bool:
        return self.status is FilterStatus.TRACKING

    @property
    def weights(self) -> np.ndarray:
        """Sigma-point weights (copy)."""
        return self._transform.weights.copy()

    @property
    def state(self) -> StateVector:
        """Snapshot of the current estimate."""
        return StateVector(self.x)

    def process_measurement(self, measurement: MeasurementPackage) -> StateVector:
        """
        Run one filter cycle for a measurement.

        Args:
            measurement: Lidar or radar reading

        Returns:
            State estimate after the cycle

        Raises:
            OutOfOrderMeasurementError: If the timestamp precedes the previous one
            NumericalInstabilityError: If the filter has diverged
        """
        if not self.is_initialized:
            self.initialize(measurement)
            return self.state

        dt = (measurement.timestamp - self.previous_timestamp) / MICROSECONDS_PER_SECOND
        self.predict(dt)
        self.previous_timestamp = measurement.timestamp

        if measurement.sensor_type is SensorType.RADAR:
            self.update_radar(measurement.raw_measurements)
        else:
            self.update_lidar(measurement.raw_measurements)

        return self.state

    def initialize(self, measurement: MeasurementPackage) -> None:
        """
        Seed the state from a first position fix.

        Speed, heading and heading rate are unobservable from one fix and
        start at zero under a wide prior. A position component that lies on
        an axis is replaced by a unit guess with a large variance so that the
        radar model never starts at the origin.
        """
        if measurement.sensor_type is SensorType.RADAR:
            rho, phi = measurement.raw_measurements[0], measurement.raw_measurements[1]
            px, py = radar_to_cartesian(rho, phi)
        else:
            px, py = measurement.raw_measurements[0], measurement.raw_measurements[1]

        self.P = np.diag(INITIAL_COVARIANCE_DIAGONAL)

        if abs(px) < MIN_INITIAL_POSITION:
            px = FALLBACK_POSITION
            self.P[PX, PX] = FALLBACK_POSITION_VARIANCE
        if abs(py) < MIN_INITIAL_POSITION:
            py = FALLBACK_POSITION
            self.P[PY, PY] = FALLBACK_POSITION_VARIANCE

        self.x = np.array([px, py, 0.0, 0.0, 0.0], dtype=float)
        self.previous_timestamp = measurement.timestamp
        self.status = FilterStatus.TRACKING

        logger.info(f"Filter initialized from {measurement.sensor_type.name} at "
                    f"t={measurement.timestamp}: {self.state}")

    def predict(self, dt: float) -> None:
        """
        Prediction step: propagate augmented sigma points by dt seconds.

        Args:
            dt: Elapsed time in seconds, must be non-negative

        Raises:
            FilterNotInitializedError: Before the first measurement
            OutOfOrderMeasurementError: If dt is negative
            NumericalInstabilityError: If the augmented covariance is not
                positive definite
        """
        self._require_initialized()
        if dt < 0:
            raise OutOfOrderMeasurementError(f"Time step must be non-negative, got {dt}")
        if dt == 0:
            logger.warning("Duplicate timestamp, predicting with dt=0")

        x_aug, P_aug = augment(self.x, self.P, self._process_noise)

        try:
            sigma_points = self._transform.generate_sigma_points(x_aug, P_aug)
        except (scipy.linalg.LinAlgError, ValueError) as exc:
            raise NumericalInstabilityError(
                f"Augmented covariance has no Cholesky factor: {exc}") from exc

        sigma_points_pred = predict_sigma_points(sigma_points, dt)

        x_pred = self._transform.mean(sigma_points_pred)
        P_pred = self._transform.covariance(sigma_points_pred, x_pred, angle_index=YAW)

        self.x = x_pred
        self.P = self._symmetrize(P_pred)
        self.sigma_points_pred = sigma_points_pred

        self._prediction_count += 1
        logger.debug(f"Prediction step completed, dt={dt:.3f}s")

    def update_lidar(self, z: np.ndarray) -> float:
        """
        Linear Kalman update with a lidar position reading.

        Args:
            z: Measured position [x, y]

        Returns:
            NIS of the update
        """
        self._require_initialized()
        z = self._validate_measurement(z, SensorType.LASER)

        H = LIDAR_OBSERVATION_MATRIX
        innovation = z - H @ self.x
        S = H @ self.P @ H.T + self._lidar_noise
        S_inv = self._invert_innovation_covariance(S, SensorType.LASER)

        K = self.P @ H.T @ S_inv

        self.x = self.x + K @ innovation
        self.P = self._symmetrize((np.eye(STATE_DIM) - K @ H) @ self.P)

        self.sigma_points_pred = None
        self.nis_laser = float(innovation @ S_inv @ innovation)
        self._record_update(SensorType.LASER, self.nis_laser, innovation)
        return self.nis_laser

    def update_radar(self, z: np.ndarray) -> float:
        """
        Unscented update with a radar reading.

        Reuses the sigma points of the preceding prediction step.

        Args:
            z: Measured [range, bearing, range_rate]

        Returns:
            NIS of the update
        """
        self._require_initialized()
        z = self._validate_measurement(z, SensorType.RADAR)
        if self.sigma_points_pred is None:
            raise FilterNotInitializedError("Radar update requires a preceding prediction step")

        Z_sigma = radar_sigma_points(self.sigma_points_pred)
        z_pred = self._transform.mean(Z_sigma)
        S = self._transform.covariance(Z_sigma, z_pred, angle_index=PHI) + self._radar_noise

        Tc = self._transform.cross_covariance(self.sigma_points_pred, self.x, Z_sigma, z_pred,
                                              state_angle_index=YAW,
                                              measurement_angle_index=PHI)

        S_inv = self._invert_innovation_covariance(S, SensorType.RADAR)
        K = Tc @ S_inv

        innovation = z - z_pred
        innovation[PHI] = normalize_angle(innovation[PHI])

        self.x = self.x + K @ innovation
        self.P = self._symmetrize(self.P - K @ S @ K.T)

        self.sigma_points_pred = None
        self.nis_radar = float(innovation @ S_inv @ innovation)
        self._record_update(SensorType.RADAR, self.nis_radar, innovation)
        return self.nis_radar

    def _require_initialized(self) -> None:
        if not self.is_initialized:
            raise FilterNotInitializedError("Filter has not received its first measurement")

    @staticmethod
    def _validate_measurement(z: np.ndarray, sensor_type: SensorType) -> np.ndarray:
        z = np.array(z, dtype=float).ravel()
        if z.size != sensor_type.measurement_dim:
            raise ValueError(f"{sensor_type.name} measurement must have "
                             f"{sensor_type.measurement_dim} elements, got {z.size}")
        return z

    @staticmethod
    def _symmetrize(matrix: np.ndarray) -> np.ndarray:
        return (matrix + matrix.T) * 0.5

    @staticmethod
    def _invert_innovation_covariance(S: np.ndarray, sensor_type: SensorType) -> np.ndarray:
        """
        Invert an innovation covariance, refusing singular or non-finite input.

        Ill-conditioned but invertible matrices are inverted and logged.

        Raises:
            NumericalInstabilityError: If S is non-finite or singular
        """
        if not np.all(np.isfinite(S)):
            raise NumericalInstabilityError(
                f"{sensor_type.name} innovation covariance contains non-finite values")

        try:
            S_inv = np.linalg.inv(S)
        except np.linalg.LinAlgError as exc:
            raise NumericalInstabilityError(
                f"{sensor_type.name} innovation covariance is singular: {exc}") from exc

        condition_number = np.linalg.cond(S)
        if condition_number > MAX_CONDITION_NUMBER:
            logger.warning(f"{sensor_type.name} innovation covariance is ill-conditioned: "
                           f"κ={condition_number:.2e}")
        return S_inv

    def _record_update(self, sensor_type: SensorType, nis: float, innovation: np.ndarray) -> None:
        self._update_counts[sensor_type] += 1
        if nis > self._nis_bounds[sensor_type]:
            logger.warning(f"{sensor_type.name} NIS {nis:.3f} above 95% bound "
                         f"{self._nis_bounds[sensor_type]:.3f}")
        logger.debug(f"{sensor_type.name} update applied: innovation={innovation}, NIS={nis:.3f}")

    def get_position_uncertainty(self) -> np.ndarray:
        """Position standard deviations [σx, σy] in meters."""
        return np.sqrt(np.clip(np.diag(self.P)[PX:PY + 1], 0.0, None))

    def get_state_dict(self) -> Dict[str, Any]:
        """
        Get state and diagnostic information as a dictionary.

        Returns:
            Dictionary of plain Python values
        """
        return {
            'status': self.status.value,
            'state': self.x.tolist(),
            'position_uncertainty': self.get_position_uncertainty().tolist(),
            'state_uncertainty': np.sqrt(np.clip(np.diag(self.P), 0.0, None)).tolist(),
            'covariance_trace': float(np.trace(self.P)),
            'prediction_count': self._prediction_count,
            'laser_update_count': self._update_counts[SensorType.LASER],
            'radar_update_count': self._update_counts[SensorType.RADAR],
            'nis_laser': self.nis_laser,
            'nis_radar': self.nis_radar,
            'previous_timestamp': self.previous_timestamp,
        }

    def reset_filter(self) -> None:
        """Return to the uninitialized state, keeping the noise configuration."""
        self._reset_state()
        logger.info("Unscented Kalman Filter reset")

    def __repr__(self) -> str:
        return f"UnscentedKalmanFilter(status={self.status.value}, state={self.x.tolist()})"
