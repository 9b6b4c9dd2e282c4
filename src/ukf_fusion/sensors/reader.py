"""
Reading measurement logs and writing estimation output.

Input lines are whitespace separated, one message per line:

    L  x    y    timestamp  x_gt  y_gt  vx_gt  vy_gt
    R  rho  phi  rho_dot    timestamp  x_gt  y_gt  vx_gt  vy_gt

Output lines are tab separated, one per processed message:

    px  py  v  yaw  yaw_rate  meas_px  meas_py  nis
"""

import numpy as np
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union
import logging

from .measurement import GroundTruthPackage, MeasurementPackage, SensorType

logger = logging.getLogger(__name__)

GROUND_TRUTH_FIELDS = 4

PathLike = Union[str, Path]


class MeasurementFormatError(ValueError):
    """A log line does not follow the measurement format."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


@dataclass
class EstimationRecord:
    """Everything reported for one processed measurement."""
    timestamp: int
    sensor_type: SensorType
    state: np.ndarray
    measured_position: Tuple[float, float]
    nis: Optional[float] = None

    def format(self) -> str:
        values = list(self.state) + list(self.measured_position)
        fields = [f"{value:.6f}" for value in values]
        fields.append("" if self.nis is None else f"{self.nis:.6f}")
        return "\t".join(fields)


def parse_line(line: str, line_number: Optional[int] = None
               ) -> Tuple[MeasurementPackage, GroundTruthPackage]:
    """
    Parse one log line.

    Args:
        line: Raw text line
        line_number: Optional line number used in error messages

    Returns:
        Tuple of (measurement, ground truth)

    Raises:
        MeasurementFormatError: If the token or field count is wrong
    """
    tokens = line.split()
    if not tokens:
        raise MeasurementFormatError("empty line", line_number)

    try:
        sensor_type = SensorType(tokens[0])
    except ValueError:
        raise MeasurementFormatError(f"unknown sensor type {tokens[0]!r}", line_number) from None

    n_meas = sensor_type.measurement_dim
    expected = 1 + n_meas + 1 + GROUND_TRUTH_FIELDS
    if len(tokens) != expected:
        raise MeasurementFormatError(
            f"{sensor_type.name} line needs {expected} fields, got {len(tokens)}", line_number)

    try:
        raw = [float(token) for token in tokens[1:1 + n_meas]]
        timestamp = int(tokens[1 + n_meas])
        truth = [float(token) for token in tokens[2 + n_meas:]]
    except ValueError as exc:
        raise MeasurementFormatError(f"invalid number: {exc}", line_number) from exc

    return (MeasurementPackage(sensor_type, np.array(raw), timestamp),
            GroundTruthPackage(np.array(truth)))


def parse_lines(lines: Iterable[str], use_laser: bool = True, use_radar: bool = True
                ) -> List[Tuple[MeasurementPackage, GroundTruthPackage]]:
    """
    Parse log lines, dropping blank lines and excluded sensors.

    Args:
        lines: Iterable of text lines
        use_laser: Keep lidar messages
        use_radar: Keep radar messages

    Returns:
        List of (measurement, ground truth) pairs in input order
    """
    pairs = []
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        measurement, truth = parse_line(line, line_number)
        if measurement.sensor_type is SensorType.LASER and not use_laser:
            continue
        if measurement.sensor_type is SensorType.RADAR and not use_radar:
            continue
        pairs.append((measurement, truth))
    return pairs


def read_measurements(path: PathLike, use_laser: bool = True, use_radar: bool = True
                      ) -> List[Tuple[MeasurementPackage, GroundTruthPackage]]:
    """Read and parse a measurement log file."""
    with open(path, encoding='utf-8') as f:
        pairs = parse_lines(f, use_laser=use_laser, use_radar=use_radar)
    logger.info(f"Read {len(pairs)} measurements from {path}")
    return pairs


def write_estimations(path: PathLike, records: Iterable[EstimationRecord]) -> int:
    """
    Write estimation records, one tab-separated line each.

    Returns:
        Number of lines written
    """
    count = 0
    with open(path, 'w', encoding='utf-8') as f:
        for record in records:
            f.write(record.format() + "\n")
            count += 1
    logger.info(f"Wrote {count} estimations to {path}")
    return count
