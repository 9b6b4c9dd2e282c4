#!/usr/bin/env python3
"""
Radar/lidar tracking with an Unscented Kalman Filter.

Reads a measurement log, runs the filter over every message, writes one
estimation line per message and reports accuracy (RMSE) and NIS consistency.

Run with: ukf-fusion data/input.txt output.txt [--radar | --lidar] [--plot out.png]
"""

import argparse
import logging
import sys
from dataclasses import fields
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .fusion.ukf import FilterError, NoiseParameters, UnscentedKalmanFilter
from .evaluation.metrics import calculate_rmse, estimate_to_cartesian, summarize_nis
from .sensors.measurement import GroundTruthPackage, MeasurementPackage, SensorType
from .sensors.reader import EstimationRecord, read_measurements, write_estimations

logger = logging.getLogger(__name__)


NOISE_HELP = {
    'std_a': 'longitudinal acceleration noise std (m/s^2)',
    'std_yawdd': 'yaw acceleration noise std (rad/s^2)',
    'std_laspx': 'lidar x noise std (m)',
    'std_laspy': 'lidar y noise std (m)',
    'std_radr': 'radar range noise std (m)',
    'std_radphi': 'radar bearing noise std (rad)',
    'std_radrd': 'radar range-rate noise std (m/s)',
}


def run_filter(pairs: Sequence[Tuple[MeasurementPackage, GroundTruthPackage]],
               noise: Optional[NoiseParameters] = None
               ) -> Tuple[List[EstimationRecord], UnscentedKalmanFilter]:
    """
    Feed every measurement through a fresh filter.

    Args:
        pairs: (measurement, ground truth) pairs in timestamp order
        noise: Noise configuration, defaults when omitted

    Returns:
        Tuple of (estimation records, filter after the last message)
    """
    ukf = UnscentedKalmanFilter(noise)
    records = []

    for k, (measurement, _) in enumerate(pairs, start=1):
        was_initialized = ukf.is_initialized
        state = ukf.process_measurement(measurement)

        nis = None
        if was_initialized:
            nis = ukf.nis_radar if measurement.sensor_type is SensorType.RADAR else ukf.nis_laser

        records.append(EstimationRecord(
            timestamp=measurement.timestamp,
            sensor_type=measurement.sensor_type,
            state=state.to_array(),
            measured_position=measurement.to_cartesian(),
            nis=nis,
        ))

        logger.debug(f"***** Entry: {k} *****\nx = {ukf.x}\nP =\n{ukf.P}")

    return records, ukf


def report(records: Sequence[EstimationRecord],
           ground_truth: Sequence[GroundTruthPackage]) -> np.ndarray:
    """Print RMSE and NIS summaries; return the RMSE vector."""
    estimations = [estimate_to_cartesian(record.state) for record in records]
    truths = [package.values for package in ground_truth]
    rmse = calculate_rmse(estimations, truths)

    print("=== TRACKING RESULTS ===")
    print("Accuracy - RMSE [px, py, vx, vy]:")
    print("  " + "  ".join(f"{value:.4f}" for value in rmse))

    for sensor_type in SensorType:
        values = [record.nis for record in records
                  if record.sensor_type is sensor_type and record.nis is not None]
        if not values:
            continue
        summary = summarize_nis(values, sensor_type.measurement_dim)
        print(f"{sensor_type.name.title()} NIS: mean={summary.mean:.3f}, "
              f"above {summary.threshold:.3f}: {summary.fraction_above_threshold * 100:.1f}% "
              f"of {summary.count}")

    return rmse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Unscented Kalman Filter fusing lidar and radar measurements')
    parser.add_argument('input', help='Input measurement file')
    parser.add_argument('output', help='Output estimation file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log state and covariance after every entry')

    sensors = parser.add_mutually_exclusive_group()
    sensors.add_argument('-r', '--radar', action='store_true', help='Use only radar data')
    sensors.add_argument('-l', '--lidar', action='store_true', help='Use only lidar data')

    parser.add_argument('--plot', metavar='FILE', help='Save trajectory and NIS plot to FILE')

    noise = parser.add_argument_group('noise parameters')
    defaults = NoiseParameters()
    for field in fields(NoiseParameters):
        noise.add_argument(f"--{field.name.replace('_', '-')}", dest=field.name, type=float,
                           default=getattr(defaults, field.name),
                           help=f"{NOISE_HELP[field.name]} (default: %(default)s)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        noise = NoiseParameters(**{field.name: getattr(args, field.name)
                                   for field in fields(NoiseParameters)})
        pairs = read_measurements(args.input, use_laser=not args.radar, use_radar=not args.lidar)
        if not pairs:
            logger.error(f"No usable measurements in {args.input}")
            return 1

        records, _ = run_filter(pairs, noise)
        write_estimations(args.output, records)
        report(records, [truth for _, truth in pairs])

        if args.plot:
            from .visualization.plotter import TrajectoryPlotter

            plotter = TrajectoryPlotter()
            try:
                plotter.plot_trajectory(records, [truth for _, truth in pairs])
                plotter.plot_nis(records)
                plotter.save(args.plot)
            finally:
                plotter.close()
    except (FilterError, ValueError, OSError) as e:
        logger.error(f"Tracking failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
