"""
Sensor data for ukf fusion.

This module contains the measurement records and the reader/writer for the
measurement log format.
"""

from .measurement import SensorType, MeasurementPackage, GroundTruthPackage
from .reader import (
    EstimationRecord,
    MeasurementFormatError,
    parse_line,
    parse_lines,
    read_measurements,
    write_estimations,
)

__all__ = [
    "SensorType",
    "MeasurementPackage",
    "GroundTruthPackage",
    "EstimationRecord",
    "MeasurementFormatError",
    "parse_line",
    "parse_lines",
    "read_measurements",
    "write_estimations"
]
