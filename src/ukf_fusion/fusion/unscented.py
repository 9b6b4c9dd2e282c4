"""
Unscented Transform Engine

Deterministic sampling of a Gaussian through a nonlinear function. A mean and
covariance are represented by 2L+1 weighted sigma points; after each point has
been pushed through the function, the weighted statistics of the transformed
set approximate the transformed distribution without any linearization.

Sigma Points (columns of an L x (2L+1) matrix):
    X₀     = μ
    Xᵢ     = μ + √(λ+L)·Aᵢ        i = 1..L
    Xᵢ₊ₗ   = μ − √(λ+L)·Aᵢ        i = 1..L

    where A is the lower Cholesky factor of P (P = A·Aᵀ) and Aᵢ its i-th column.

Weights:
    w₀ = λ / (λ+L)
    wᵢ = 1 / (2(λ+L))            i = 1..2L

Reduction:
    μ' = Σ wᵢ·Yᵢ
    P' = Σ wᵢ·(Yᵢ − μ')(Yᵢ − μ')ᵀ

Angular components are differenced through normalize_angle() before any outer
product so that residuals always lie in (−π, π].
"""

import numpy as np
import scipy.linalg
from typing import Optional


TWO_PI = 2.0 * np.pi


def normalize_angle(angle: float) -> float:
    """
    Wrap an angle into the half-open interval (−π, π].

    Args:
        angle: Angle in radians, any magnitude

    Returns:
        Equivalent angle in (−π, π]
    """
    return float(-((-angle + np.pi) % TWO_PI - np.pi))


def normalize_residuals(residuals: np.ndarray, angle_index: Optional[int]) -> np.ndarray:
    """Normalize one row of a residual matrix (columns are points) in place."""
    if angle_index is not None:
        row = residuals[angle_index]
        residuals[angle_index] = -((-row + np.pi) % TWO_PI - np.pi)
    return residuals


class UnscentedTransform:
    """
    Sigma-point generator and reducer for a fixed augmented dimension.

    The spread parameter defaults to λ = 3 − L, which matches the fourth
    moment of a Gaussian along each axis.

    Attributes:
        dimension: Dimension L of the distribution being sampled
        spread: Spread parameter λ
        weights: Vector of 2L+1 sigma-point weights
    """

    def __init__(self, dimension: int, spread: Optional[float] = None):
        if dimension <= 0:
            raise ValueError(f"Dimension must be positive, got {dimension}")

        self.dimension = dimension
        self.spread = float(3 - dimension) if spread is None else float(spread)

        if self.spread + dimension <= 0:
            raise ValueError(f"λ + L must be positive, got {self.spread + dimension}")

        self.weights = self._compute_weights()

    @property
    def num_sigma_points(self) -> int:
        """Number of sigma points, 2L+1."""
        return 2 * self.dimension + 1

    def _compute_weights(self) -> np.ndarray:
        weights = np.full(self.num_sigma_points, 0.5 / (self.spread + self.dimension))
        weights[0] = self.spread / (self.spread + self.dimension)
        return weights

    def generate_sigma_points(self, mean: np.ndarray, covariance: np.ndarray) -> np.ndarray:
        """
        Generate sigma points for a mean/covariance pair.

        Args:
            mean: L-element mean vector
            covariance: L x L covariance matrix, must be positive definite

        Returns:
            L x (2L+1) matrix whose columns are the sigma points

        Raises:
            ValueError: If the shapes do not match the configured dimension
            scipy.linalg.LinAlgError: If the covariance has no Cholesky factor
        """
        mean = np.asarray(mean, dtype=float)
        covariance = np.asarray(covariance, dtype=float)

        if mean.shape != (self.dimension,):
            raise ValueError(f"Mean must have shape ({self.dimension},), got {mean.shape}")
        if covariance.shape != (self.dimension, self.dimension):
            raise ValueError(f"Covariance must have shape ({self.dimension}, {self.dimension}), "
                             f"got {covariance.shape}")

        sqrt_covariance = scipy.linalg.cholesky(covariance, lower=True)
        offset = np.sqrt(self.spread + self.dimension) * sqrt_covariance

        sigma_points = np.tile(mean[:, np.newaxis], (1, self.num_sigma_points))
        sigma_points[:, 1:self.dimension + 1] += offset
        sigma_points[:, self.dimension + 1:] -= offset

        return sigma_points

    def mean(self, sigma_points: np.ndarray) -> np.ndarray:
        """Weighted mean of the sigma-point columns."""
        return sigma_points @ self.weights

    def covariance(self, sigma_points: np.ndarray, mean: np.ndarray,
                   angle_index: Optional[int] = None) -> np.ndarray:
        """
        Weighted covariance of the sigma-point columns about a mean.

        Args:
            sigma_points: n x (2L+1) matrix of transformed sigma points
            mean: n-element mean the residuals are taken against
            angle_index: Row holding an angle to normalize, if any

        Returns:
            n x n covariance matrix
        """
        residuals = normalize_residuals(sigma_points - mean[:, np.newaxis], angle_index)
        return (residuals * self.weights) @ residuals.T

    def cross_covariance(self,
                         state_points: np.ndarray, state_mean: np.ndarray,
                         measurement_points: np.ndarray, measurement_mean: np.ndarray,
                         state_angle_index: Optional[int] = None,
                         measurement_angle_index: Optional[int] = None) -> np.ndarray:
        """
        Weighted cross-covariance Tc = Σ wᵢ·(Xᵢ − x̄)(Zᵢ − z̄)ᵀ.

        Returns:
            n_x x n_z cross-covariance matrix
        """
        state_residuals = normalize_residuals(state_points - state_mean[:, np.newaxis],
                                              state_angle_index)
        measurement_residuals = normalize_residuals(
            measurement_points - measurement_mean[:, np.newaxis], measurement_angle_index)
        return (state_residuals * self.weights) @ measurement_residuals.T

    def reduce(self, sigma_points: np.ndarray, angle_index: Optional[int] = None):
        """Weighted mean and covariance of a transformed sigma-point set."""
        mean = self.mean(sigma_points)
        return mean, self.covariance(sigma_points, mean, angle_index)

    def __repr__(self) -> str:
        return f"UnscentedTransform(dimension={self.dimension}, spread={self.spread})"
