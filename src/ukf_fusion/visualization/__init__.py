"""
Visualization components for ukf fusion.

This module plots estimated trajectories against measurements and ground
truth, and NIS sequences against their χ² bounds.
"""

from .plotter import TrajectoryPlotter

__all__ = [
    "TrajectoryPlotter"
]
