"""
Trajectory and consistency plots for tracking runs.

TrajectoryPlotter draws, on one figure:
    - the estimated trajectory against the ground truth and the raw
      measurements converted to Cartesian form
    - the NIS sequence of each sensor against its 95% χ² bound
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import List, Optional, Sequence, Tuple
import logging

from ..evaluation.metrics import nis_threshold
from ..sensors.measurement import GroundTruthPackage, SensorType
from ..sensors.reader import EstimationRecord

logger = logging.getLogger(__name__)


SENSOR_COLORS = {
    SensorType.LASER: 'tab:blue',
    SensorType.RADAR: 'tab:orange',
}


class TrajectoryPlotter:
    """
    Plot a finished tracking run.

    Attributes:
        figure: Matplotlib figure, created on first use
        trajectory_axes: Axes holding the x/y trajectory
        nis_axes: Axes holding the NIS sequences
    """

    def __init__(self, figure_size: Tuple[int, int] = (14, 6)):
        self.figure_size = figure_size
        self.figure = None
        self.trajectory_axes = None
        self.nis_axes = None

    def _ensure_figure(self) -> None:
        if self.figure is None:
            self.figure, (self.trajectory_axes, self.nis_axes) = plt.subplots(
                1, 2, figsize=self.figure_size)

    def plot_trajectory(self, records: Sequence[EstimationRecord],
                        ground_truth: Optional[Sequence[GroundTruthPackage]] = None) -> None:
        """
        Draw estimated positions, measured positions and (optionally) ground truth.

        Args:
            records: Estimation records of the run
            ground_truth: Ground truth aligned with records
        """
        if not records:
            raise ValueError("No estimation records to plot")
        self._ensure_figure()
        ax = self.trajectory_axes

        estimates = np.array([record.state[:2] for record in records])
        ax.plot(estimates[:, 0], estimates[:, 1], 'r-', linewidth=2, label='UKF Estimate')

        for sensor_type, color in SENSOR_COLORS.items():
            measured = np.array([record.measured_position for record in records
                                 if record.sensor_type is sensor_type])
            if measured.size:
                ax.scatter(measured[:, 0], measured[:, 1], s=8, color=color, alpha=0.6,
                           label=f'{sensor_type.name.title()} Measurement')

        if ground_truth:
            truth = np.array([package.position for package in ground_truth])
            ax.plot(truth[:, 0], truth[:, 1], 'g--', linewidth=1.5, label='Ground Truth')

        ax.set_xlabel('X (m)')
        ax.set_ylabel('Y (m)')
        ax.set_title('Trajectory')
        ax.axis('equal')
        ax.grid(True)
        ax.legend()

    def plot_nis(self, records: Sequence[EstimationRecord], confidence: float = 0.95) -> None:
        """Draw NIS per sensor with its χ² bound."""
        self._ensure_figure()
        ax = self.nis_axes

        for sensor_type, color in SENSOR_COLORS.items():
            steps: List[int] = []
            values: List[float] = []
            for step, record in enumerate(records):
                if record.sensor_type is sensor_type and record.nis is not None:
                    steps.append(step)
                    values.append(record.nis)
            if not values:
                continue

            bound = nis_threshold(sensor_type.measurement_dim, confidence)
            ax.plot(steps, values, '-', color=color, linewidth=1,
                    label=f'{sensor_type.name.title()} NIS')
            ax.axhline(bound, color=color, linestyle='--', linewidth=1,
                       label=f'χ²({sensor_type.measurement_dim}) {confidence:.0%}')

        ax.set_xlabel('Measurement Index')
        ax.set_ylabel('NIS')
        ax.set_title('Normalized Innovation Squared')
        ax.grid(True)
        if ax.get_legend_handles_labels()[0]:
            ax.legend()

    def save(self, path: str) -> None:
        """Save the figure to a file."""
        if self.figure is None:
            raise RuntimeError("Nothing has been plotted yet")
        self.figure.tight_layout()
        self.figure.savefig(path)
        logger.info(f"Saved tracking plot to {path}")

    def close(self) -> None:
        if self.figure is not None:
            plt.close(self.figure)
            self.figure = None
            self.trajectory_axes = None
            self.nis_axes = None
