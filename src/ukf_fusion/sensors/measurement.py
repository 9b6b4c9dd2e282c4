"""
Measurement records consumed by the tracker.

A record is immutable once created: the raw measurement array is stored
read-only and the dataclasses are frozen.
"""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..models.measurement import LIDAR_DIM, RADAR_DIM, RHO, PHI, radar_to_cartesian


class SensorType(Enum):
    """Enumeration of supported sensor types, valued by their log token."""
    LASER = "L"
    RADAR = "R"

    @property
    def measurement_dim(self) -> int:
        return LIDAR_DIM if self is SensorType.LASER else RADAR_DIM


def _frozen_array(values, expected_size: int, name: str) -> np.ndarray:
    array = np.array(values, dtype=float).ravel()
    if array.size != expected_size:
        raise ValueError(f"{name} must have {expected_size} elements, got {array.size}")
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class MeasurementPackage:
    """
    One sensor reading.

    Attributes:
        sensor_type: Which sensor produced the reading
        raw_measurements: [x, y] for lidar, [ρ, φ, ρ̇] for radar
        timestamp: Integer timestamp in microseconds
    """
    sensor_type: SensorType
    raw_measurements: np.ndarray
    timestamp: int

    def __post_init__(self):
        if not isinstance(self.sensor_type, SensorType):
            raise ValueError(f"Unknown sensor type {self.sensor_type!r}")
        object.__setattr__(self, 'raw_measurements',
                           _frozen_array(self.raw_measurements,
                                         self.sensor_type.measurement_dim,
                                         f"{self.sensor_type.name} measurement"))
        object.__setattr__(self, 'timestamp', int(self.timestamp))

    def to_cartesian(self) -> Tuple[float, float]:
        """Measured position in Cartesian form (radar converted, lidar passed through)."""
        if self.sensor_type is SensorType.RADAR:
            x, y = radar_to_cartesian(self.raw_measurements[RHO], self.raw_measurements[PHI])
            return (float(x), float(y))
        return (float(self.raw_measurements[0]), float(self.raw_measurements[1]))


@dataclass(frozen=True, eq=False)
class GroundTruthPackage:
    """Ground truth [x, y, vx, vy] used only for scoring."""
    values: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'values', _frozen_array(self.values, 4, "Ground truth"))

    @property
    def position(self) -> np.ndarray:
        return self.values[:2].copy()
