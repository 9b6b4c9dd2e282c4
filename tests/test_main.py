import pytest
import numpy as np
import sys
import os

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import matplotlib
matplotlib.use('Agg')

from ukf_fusion.main import main, run_filter, build_parser
from ukf_fusion.fusion import NoiseParameters
from ukf_fusion.sensors import parse_lines


TRACK_NOISE_ARGS = ['--std-laspx', '0.15', '--std-laspy', '0.15',
                    '--std-radr', '0.3', '--std-radphi', '0.03', '--std-radrd', '0.3']


class TestRunFilter:
    """Test running the filter over a parsed log"""

    def test_one_record_per_measurement(self, track_lines, track_noise):
        """Test every message produces a record and the first has no NIS"""
        pairs = parse_lines(track_lines)

        records, ukf = run_filter(pairs, track_noise)

        assert len(records) == len(pairs)
        assert records[0].nis is None
        assert all(record.nis is not None and record.nis >= 0.0 for record in records[1:])
        assert [r.sensor_type for r in records] == [m.sensor_type for m, _ in pairs]
        np.testing.assert_allclose(records[-1].state, ukf.x)

    def test_measured_position_recorded(self, track_lines):
        """Test radar records carry the converted measurement"""
        pairs = parse_lines(track_lines[:2])

        records, _ = run_filter(pairs)

        expected = pairs[1][0].to_cartesian()
        assert records[1].measured_position == pytest.approx(expected)


class TestCommandLine:
    """Test the command-line entry point"""

    def test_parser_noise_options(self):
        """Test every noise parameter has an option with its default"""
        args = build_parser().parse_args(['in.txt', 'out.txt', '--std-a', '1.5'])

        assert args.std_a == 1.5
        assert args.std_yawdd == NoiseParameters().std_yawdd
        assert not args.radar and not args.lidar

    def test_sensor_flags_are_exclusive(self):
        """Test radar-only and lidar-only cannot be combined"""
        with pytest.raises(SystemExit):
            build_parser().parse_args(['in.txt', 'out.txt', '--radar', '--lidar'])

    def test_full_run(self, track_file, tmp_path, capsys):
        """Test a run writes all estimations and prints accuracy"""
        output = tmp_path / "output.txt"

        status = main([str(track_file), str(output)] + TRACK_NOISE_ARGS)

        assert status == 0
        lines = output.read_text(encoding='utf-8').splitlines()
        assert len(lines) == 200
        assert lines[0].split("\t")[7] == ""
        out = capsys.readouterr().out
        assert "RMSE" in out
        assert "Laser NIS" in out
        assert "Radar NIS" in out

    @pytest.mark.parametrize("flag,sensor", [('--lidar', 'Laser'), ('--radar', 'Radar')])
    def test_single_sensor_run(self, track_file, tmp_path, capsys, flag, sensor):
        """Test sensor flags restrict processing to one sensor"""
        output = tmp_path / "output.txt"

        status = main([str(track_file), str(output), flag] + TRACK_NOISE_ARGS)

        assert status == 0
        assert len(output.read_text(encoding='utf-8').splitlines()) == 100
        out = capsys.readouterr().out
        assert f"{sensor} NIS" in out
        other = 'Radar' if sensor == 'Laser' else 'Laser'
        assert f"{other} NIS" not in out

    def test_missing_input(self, tmp_path):
        """Test an unreadable input file fails with status 1"""
        status = main([str(tmp_path / "missing.txt"), str(tmp_path / "out.txt")])

        assert status == 1

    def test_empty_input(self, tmp_path):
        """Test an input without measurements fails with status 1"""
        path = tmp_path / "empty.txt"
        path.write_text("\n", encoding='utf-8')

        assert main([str(path), str(tmp_path / "out.txt")]) == 1

    def test_out_of_order_input(self, track_lines, tmp_path):
        """Test a timestamp going backwards fails with status 1"""
        path = tmp_path / "input.txt"
        path.write_text("\n".join([track_lines[2], track_lines[0]]) + "\n", encoding='utf-8')

        assert main([str(path), str(tmp_path / "out.txt")]) == 1

    def test_invalid_noise(self, track_file, tmp_path):
        """Test a non-positive noise parameter fails with status 1"""
        assert main([str(track_file), str(tmp_path / "out.txt"), '--std-a', '0']) == 1

    def test_plot_output(self, track_file, tmp_path):
        """Test --plot writes an image"""
        plot_path = tmp_path / "tracking.png"

        status = main([str(track_file), str(tmp_path / "out.txt"), '--plot', str(plot_path)]
                      + TRACK_NOISE_ARGS)

        assert status == 0
        assert plot_path.exists()
        assert plot_path.stat().st_size > 0

    def test_unwritable_plot_path(self, track_file, tmp_path):
        """Test a plot that cannot be saved fails with status 1"""
        plot_path = tmp_path / "missing" / "tracking.png"

        status = main([str(track_file), str(tmp_path / "out.txt"), '--plot', str(plot_path)]
                      + TRACK_NOISE_ARGS)

        assert status == 1
        assert not plot_path.exists()
