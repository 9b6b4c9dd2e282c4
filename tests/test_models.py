import pytest
import numpy as np
import sys
import os

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from ukf_fusion.models import (
    StateVector,
    ctrv_motion,
    augment,
    predict_sigma_points,
    process_noise_covariance,
    LIDAR_OBSERVATION_MATRIX,
    lidar_measurement,
    radar_measurement,
    radar_to_cartesian,
    lidar_noise_covariance,
    radar_noise_covariance,
)


class TestStateVector:
    """Test 5D CTRV state vector [px, py, v, yaw, yaw_rate]"""

    def test_state_vector_initialization(self):
        """Test state vector defaults to the zero state"""
        state = StateVector()

        assert state.to_array().shape == (5,)
        np.testing.assert_allclose(state.to_array(), 0.0)

    def test_named_components(self):
        """Test named accessors map to the right components"""
        state = StateVector.from_array(np.array([1.0, 2.0, 3.0, np.pi / 2, 0.1]))

        np.testing.assert_allclose(state.position, [1.0, 2.0])
        assert state.speed == 3.0
        assert state.yaw == pytest.approx(np.pi / 2)
        assert state.yaw_rate == 0.1
        np.testing.assert_allclose(state.velocity, [0.0, 3.0], atol=1e-12)
        assert state.get_pose_2d() == (1.0, 2.0, pytest.approx(np.pi / 2))

    def test_snapshot_is_independent(self):
        """Test the snapshot does not alias the source array"""
        values = np.array([1.0, 2.0, 3.0, 0.0, 0.0])
        state = StateVector(values)
        values[0] = 100.0

        assert state.position[0] == 1.0
        copy = state.to_array()
        copy[1] = 50.0
        assert state.position[1] == 2.0

    def test_wrong_size_rejected(self):
        """Test state vector requires exactly five elements"""
        with pytest.raises(ValueError):
            StateVector(np.zeros(4))


class TestMotionModel:
    """Test CTRV process model"""

    def test_straight_line_motion(self):
        """Test zero yaw rate moves along the heading"""
        predicted = ctrv_motion(np.array([1.0, 2.0, 3.0, 0.0, 0.0]), 0.5)

        np.testing.assert_allclose(predicted, [2.5, 2.0, 3.0, 0.0, 0.0])

    @pytest.mark.parametrize("dt", [0.0, 0.05, 1.0, 10.0])
    @pytest.mark.parametrize("yaw", [0.0, 1.0, -2.5])
    def test_stationary_object_does_not_move(self, dt, yaw):
        """Test zero speed and zero yaw rate leave position unchanged"""
        state = np.array([4.0, -3.0, 0.0, yaw, 0.0])

        predicted = ctrv_motion(state, dt)

        np.testing.assert_allclose(predicted[:2], [4.0, -3.0])
        assert predicted[2] == 0.0

    def test_turning_motion(self):
        """Test arc equations for a quarter turn"""
        state = np.array([0.0, 0.0, 1.0, 0.0, np.pi / 2])

        predicted = ctrv_motion(state, 1.0)

        np.testing.assert_allclose(predicted, [2 / np.pi, 2 / np.pi, 1.0, np.pi / 2, np.pi / 2],
                                   atol=1e-12)

    def test_branch_continuity(self):
        """Test arc and straight-line branches agree around the threshold"""
        above = ctrv_motion(np.array([0.0, 0.0, 10.0, 0.3, 1.0001e-3]), 0.1)
        below = ctrv_motion(np.array([0.0, 0.0, 10.0, 0.3, 0.9999e-3]), 0.1)

        np.testing.assert_allclose(above[:2], below[:2], atol=1e-4)

    def test_noise_contribution(self):
        """Test augmented noise terms enter position, speed, yaw and yaw rate"""
        sigma_point = np.array([0.0, 0.0, 0.0, 0.0, 0.0, 2.0, 1.0])

        predicted = ctrv_motion(sigma_point, 0.5)

        np.testing.assert_allclose(predicted, [0.25, 0.0, 1.0, 0.125, 0.5])

    def test_noise_follows_heading(self):
        """Test acceleration noise displaces along the current heading"""
        sigma_point = np.array([0.0, 0.0, 0.0, np.pi / 2, 0.0, 2.0, 0.0])

        predicted = ctrv_motion(sigma_point, 1.0)

        np.testing.assert_allclose(predicted[:2], [0.0, 1.0], atol=1e-12)

    def test_augment(self):
        """Test augmented mean and covariance block layout"""
        state = np.arange(5, dtype=float)
        covariance = np.diag([1.0, 2.0, 3.0, 4.0, 5.0])
        Q = process_noise_covariance(0.5, 2.0)

        x_aug, P_aug = augment(state, covariance, Q)

        np.testing.assert_allclose(x_aug, [0, 1, 2, 3, 4, 0, 0])
        np.testing.assert_allclose(P_aug[:5, :5], covariance)
        np.testing.assert_allclose(P_aug[5:, 5:], np.diag([0.25, 4.0]))
        np.testing.assert_allclose(P_aug[:5, 5:], 0.0)
        np.testing.assert_allclose(P_aug[5:, :5], 0.0)

    def test_predict_sigma_points_shape(self):
        """Test every augmented column is propagated to a 5D state"""
        sigma_points = np.zeros((7, 15))
        sigma_points[2] = 1.0

        predicted = predict_sigma_points(sigma_points, 0.1)

        assert predicted.shape == (5, 15)
        np.testing.assert_allclose(predicted[0], 0.1)


class TestMeasurementModels:
    """Test lidar and radar measurement functions"""

    def test_lidar_selects_position(self):
        """Test lidar observation matrix picks px and py"""
        state = np.array([1.5, -2.5, 3.0, 0.4, 0.1])

        np.testing.assert_allclose(lidar_measurement(state), [1.5, -2.5])
        assert LIDAR_OBSERVATION_MATRIX.shape == (2, 5)

    def test_noise_covariances_are_squared(self):
        """Test noise covariances hold variances on the diagonal"""
        np.testing.assert_allclose(lidar_noise_covariance(0.1, 0.2), np.diag([0.01, 0.04]))
        np.testing.assert_allclose(radar_noise_covariance(0.3, 0.01, 0.5),
                                   np.diag([0.09, 1e-4, 0.25]))

    def test_radar_measurement(self):
        """Test range, bearing and range rate for a known state"""
        z = radar_measurement(np.array([3.0, 4.0, 5.0, 0.0, 0.0]))

        np.testing.assert_allclose(z, [5.0, np.arctan2(4.0, 3.0), 3.0])

    def test_radar_radial_motion(self):
        """Test range rate equals speed when moving straight away from the sensor"""
        yaw = np.arctan2(4.0, 3.0)

        z = radar_measurement(np.array([3.0, 4.0, 2.0, yaw, 0.0]))

        assert z[2] == pytest.approx(2.0)

    @pytest.mark.parametrize("state", [
        np.zeros(5),
        np.array([0.0, 0.0, 2.0, 0.3, 0.1]),
    ])
    def test_radar_origin_has_no_nan(self, state):
        """Test a state at the sensor origin yields zeros instead of NaN"""
        z = radar_measurement(state)

        assert np.all(np.isfinite(z))
        np.testing.assert_allclose(z, 0.0)

    def test_radar_tiny_range(self):
        """Test a range of 1e-5 keeps range rate finite"""
        z = radar_measurement(np.array([1e-5, 0.0, 0.0, 0.0, 0.0]))

        assert np.all(np.isfinite(z))
        assert z[0] == pytest.approx(1e-5)
        assert z[2] == 0.0

    @pytest.mark.parametrize("rho", [0.5, 3.0, 25.0])
    @pytest.mark.parametrize("phi", [-3.0, -1.0, 0.0, 1.2, 3.1])
    def test_radar_cartesian_round_trip(self, rho, phi):
        """Test range and bearing survive conversion to Cartesian and back"""
        x, y = radar_to_cartesian(rho, phi)

        z = radar_measurement(np.array([x, y, 0.0, 0.0, 0.0]))

        assert z[0] == pytest.approx(rho)
        assert z[1] == pytest.approx(phi)
