import numpy as np
import pytest
import sys
import os

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))


# Object on a circle of radius SPEED / YAW_RATE around the sensor, counterclockwise
SPEED = 2.0
YAW_RATE = 0.2
STEP_US = 50000

LIDAR_STD = 0.15
RADAR_STD = (0.3, 0.03, 0.3)


def true_state(t):
    """Ground truth [x, y, vx, vy] at time t seconds."""
    radius = SPEED / YAW_RATE
    angle = YAW_RATE * t
    return np.array([
        radius * np.cos(angle),
        radius * np.sin(angle),
        -SPEED * np.sin(angle),
        SPEED * np.cos(angle),
    ])


def make_track_lines(n_steps=200, seed=0, start_us=1477010443000000):
    """Alternating lidar/radar log lines for the circular track."""
    rng = np.random.default_rng(seed)
    lines = []
    for k in range(n_steps):
        timestamp = start_us + k * STEP_US
        x, y, vx, vy = truth = true_state(k * STEP_US / 1e6)
        truth_fields = " ".join(f"{value:.6f}" for value in truth)
        if k % 2 == 0:
            mx, my = np.array([x, y]) + rng.normal(0.0, LIDAR_STD, 2)
            lines.append(f"L\t{mx:.6f}\t{my:.6f}\t{timestamp}\t{truth_fields}")
        else:
            rho = np.hypot(x, y)
            phi = np.arctan2(y, x)
            rho_dot = (x * vx + y * vy) / rho
            noisy = np.array([rho, phi, rho_dot]) + rng.normal(0.0, RADAR_STD)
            lines.append("R\t" + "\t".join(f"{value:.6f}" for value in noisy)
                         + f"\t{timestamp}\t{truth_fields}")
    return lines


@pytest.fixture
def track_lines():
    return make_track_lines()


@pytest.fixture
def track_file(tmp_path, track_lines):
    path = tmp_path / "input.txt"
    path.write_text("\n".join(track_lines) + "\n", encoding='utf-8')
    return path


@pytest.fixture
def track_noise():
    from ukf_fusion.fusion.ukf import NoiseParameters
    return NoiseParameters(std_laspx=LIDAR_STD, std_laspy=LIDAR_STD,
                           std_radr=RADAR_STD[0], std_radphi=RADAR_STD[1],
                           std_radrd=RADAR_STD[2])
