"""
Vectorized 2D smoothing kernel.

Implements the compact-support "spiky" kernel used by the density and
pressure stages:

    W(h, d)  = max(0, h - d)² / (π h⁴ / 6)
    W'(h, d) = -12 / (π h⁴) * (h - d)      for d < h, 0 otherwise

The kernel integrates to 1 over the disc of radius h and vanishes outside it.
"""

import logging
import math

import numpy as np

from ..config import ConfigurationError

logger = logging.getLogger(__name__)


def smoothing_kernel(radius: float, dst: float) -> float:
    """Scalar kernel value W(radius, dst)."""
    if dst >= radius:
        return 0.0
    volume = math.pi * radius**4 / 6.0
    v = radius - dst
    return v * v / volume


def kernel_slope(radius: float, dst: float) -> float:
    """Magnitude of the kernel's radial derivative at ``dst``.

    The kernel falls monotonically inside its support, so the signed
    derivative is the negation of this value (see ``kernel_derivative``).
    """
    if dst >= radius:
        return 0.0
    scale = 12.0 / (math.pi * radius**4)
    return (radius - dst) * scale


def kernel_derivative(radius: float, dst: float) -> float:
    """Signed radial derivative dW/dd (non-positive)."""
    return -kernel_slope(radius, dst)


class SpikyKernel2D:
    """Fully vectorized spiky kernel for a fixed smoothing radius.

    Normalisation factors are computed once per radius; build a new kernel
    when the smoothing radius changes.
    """

    def __init__(self, radius: float):
        """Initialize kernel for a smoothing radius.

        Args:
            radius: Smoothing radius h (support of the kernel), must be > 0
        """
        if not radius > 0.0:
            raise ConfigurationError(f"Smoothing radius must be positive, got {radius}")
        self.radius = float(radius)
        self.value_scale = 6.0 / (math.pi * self.radius**4)
        self.slope_scale = 12.0 / (math.pi * self.radius**4)

    def W_vectorized(self, r: np.ndarray) -> np.ndarray:
        """Vectorized kernel evaluation.

        Args:
            r: Distances, any shape

        Returns:
            Kernel values with same shape as r
        """
        v = np.maximum(0.0, self.radius - r)
        return v * v * self.value_scale

    def slope_vectorized(self, r: np.ndarray) -> np.ndarray:
        """Vectorized slope magnitude, zero outside the support."""
        return np.where(r < self.radius, (self.radius - r) * self.slope_scale, 0.0)

    def derivative_vectorized(self, r: np.ndarray) -> np.ndarray:
        """Vectorized signed radial derivative dW/dd."""
        return -self.slope_vectorized(r)

    def W_self(self) -> float:
        """Kernel value at r=0 (self-contribution and maximum)."""
        return self.radius * self.radius * self.value_scale

    def validate(self, samples: int = 2000) -> bool:
        """Check normalisation and support numerically."""
        # Midpoint rule over the disc
        dr = self.radius / samples
        r = (np.arange(samples) + 0.5) * dr
        integral = float(2.0 * np.pi * np.sum(r * self.W_vectorized(r)) * dr)
        outside = self.W_vectorized(np.array([self.radius, 1.5 * self.radius]))
        logger.debug("2D normalization integral: %.6f (should be ~1.0)", integral)
        return abs(integral - 1.0) < 1e-3 and np.all(outside == 0.0)
