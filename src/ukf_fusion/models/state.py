"""
CTRV state representation.

The tracked object is described by the Constant Turn Rate and Velocity model:

    x = [px, py, v, ψ, ψ̇]ᵀ ∈ ℝ⁵

Where:
    - [px, py]: Position in the sensor frame (m)
    - v: Speed magnitude along the heading (m/s)
    - ψ: Heading angle (rad), kept unnormalized
    - ψ̇: Heading rate (rad/s)

The augmented state appends the two process-noise variables
[ν_a, ν_ψ̈] (longitudinal and yaw acceleration noise), giving ℝ⁷.
"""

import numpy as np
from typing import Optional, Tuple


STATE_DIM = 5
AUGMENTED_DIM = STATE_DIM + 2

# State indices
PX, PY, V, YAW, YAW_RATE = range(STATE_DIM)

# Augmented noise indices
NU_A, NU_YAWDD = STATE_DIM, STATE_DIM + 1


class StateVector:
    """
    Read-only snapshot of a CTRV state estimate.

    The estimator works on plain numpy arrays; this class gives the outer
    layers (output writing, scoring, plotting) named access to a copy.
    """

    def __init__(self, values: Optional[np.ndarray] = None):
        """
        Args:
            values: Optional 5-element array. Zero state when omitted.

        Raises:
            ValueError: If values has the wrong size
        """
        if values is None:
            values = np.zeros(STATE_DIM)
        values = np.asarray(values, dtype=float)
        if values.shape != (STATE_DIM,):
            raise ValueError(f"State vector must have {STATE_DIM} elements, got {values.size}")

        self._values = values.copy()
        self._values.setflags(write=False)

    @classmethod
    def from_array(cls, state_array: np.ndarray) -> 'StateVector':
        return cls(state_array)

    def to_array(self) -> np.ndarray:
        """Return a writable copy of the 5-element state."""
        return self._values.copy()

    @property
    def position(self) -> np.ndarray:
        """Position [px, py] in meters."""
        return self._values[PX:PY + 1].copy()

    @property
    def speed(self) -> float:
        return float(self._values[V])

    @property
    def yaw(self) -> float:
        return float(self._values[YAW])

    @property
    def yaw_rate(self) -> float:
        return float(self._values[YAW_RATE])

    @property
    def velocity(self) -> np.ndarray:
        """Cartesian velocity [vx, vy] in m/s derived from speed and heading."""
        return np.array([self.speed * np.cos(self.yaw), self.speed * np.sin(self.yaw)])

    def get_pose_2d(self) -> Tuple[float, float, float]:
        """Return (x, y, yaw)."""
        return (float(self._values[PX]), float(self._values[PY]), self.yaw)

    def __eq__(self, other) -> bool:
        if not isinstance(other, StateVector):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    def __str__(self) -> str:
        return (f"StateVector(pos=[{self._values[PX]:.3f}, {self._values[PY]:.3f}], "
                f"v={self.speed:.3f}, yaw={np.degrees(self.yaw):.1f}°, "
                f"yaw_rate={self.yaw_rate:.3f})")
