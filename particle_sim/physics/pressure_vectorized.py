"""
Vectorized pressure force computation.

Pressure follows a linear equation of state around the target density:
    Pᵢ = (ρᵢ - ρ₀) * k

The force on particle i sums, over every other particle j inside the
smoothing radius, the shared pressure between the two samples along the line
joining them, weighted by the kernel's radial derivative:

    Fᵢ = Σⱼ ½(Pᵢ + Pⱼ) * dirᵢⱼ * W'(h, rᵢⱼ) * mⱼ / ρⱼ,   dirᵢⱼ = (rⱼ - rᵢ) / |rⱼ - rᵢ|
    aᵢ = Fᵢ / ρᵢ

W' is non-positive inside the support, so over-dense neighbourhoods push
particles apart and under-dense ones pull them together. Using the averaged
pressure makes the pair terms equal and opposite.
"""

from typing import Optional, Tuple

import numpy as np

from ..core.kernel_vectorized import SpikyKernel2D
from ..core.particles import ParticleArrays


def density_to_pressure(density: np.ndarray, target_density: float,
                        pressure_multiplier: float) -> np.ndarray:
    """Linear equation of state P = (ρ - ρ₀) k."""
    return (density - target_density) * pressure_multiplier


def compute_pressure_acceleration_vectorized(particles: ParticleArrays,
                                             density: np.ndarray,
                                             kernel: SpikyKernel2D,
                                             target_density: float,
                                             pressure_multiplier: float,
                                             mass: Optional[float] = None,
                                             batch_size: int = 256) -> Tuple[np.ndarray, np.ndarray]:
    """Pressure acceleration for every particle from a fixed snapshot.

    Terms with zero separation or zero neighbour density are skipped, and a
    particle whose own density is zero receives no acceleration.

    Args:
        particles: Particle arrays (read only)
        density: Density buffer from the density stage, shape (N,)
        kernel: Smoothing kernel
        target_density: Rest density ρ₀
        pressure_multiplier: Stiffness k
        mass: Uniform particle mass, or None to use each particle's own mass
        batch_size: Number of particles processed together

    Returns:
        (ax, ay) acceleration arrays
    """
    n = len(particles)
    px = particles.position_x.copy()
    py = particles.position_y.copy()
    rho = np.array(density, dtype=np.float64, copy=True)
    if mass is None:
        masses = particles.mass.astype(np.float64)
    else:
        masses = np.full(n, mass, dtype=np.float64)

    pressure = density_to_pressure(rho, target_density, pressure_multiplier)
    rho_safe = np.where(rho != 0.0, rho, 1.0)

    ax = np.zeros(n)
    ay = np.zeros(n)

    for batch_start in range(0, n, batch_size):
        batch_end = min(batch_start + batch_size, n)
        rows = slice(batch_start, batch_end)

        # Offsets from i (rows) to j (columns)
        dx = px[np.newaxis, :] - px[rows, np.newaxis]
        dy = py[np.newaxis, :] - py[rows, np.newaxis]
        dist = np.sqrt(dx * dx + dy * dy)

        # Self terms and coincident neighbours have dist == 0
        valid = (dist > 0.0) & (rho[np.newaxis, :] != 0.0)
        dist_safe = np.where(valid, dist, 1.0)

        shared_pressure = 0.5 * (pressure[rows, np.newaxis] + pressure[np.newaxis, :])
        derivative = kernel.derivative_vectorized(dist)
        weight = shared_pressure * derivative * masses[np.newaxis, :] / rho_safe[np.newaxis, :]
        weight = np.where(valid, weight / dist_safe, 0.0)

        force_x = np.sum(weight * dx, axis=1)
        force_y = np.sum(weight * dy, axis=1)

        own = rho[rows]
        has_density = own != 0.0
        ax[rows] = np.where(has_density, force_x / rho_safe[rows], 0.0)
        ay[rows] = np.where(has_density, force_y / rho_safe[rows], 0.0)

    return ax, ay


def apply_pressure_vectorized(particles: ParticleArrays, density: np.ndarray, dt: float,
                              kernel: SpikyKernel2D, target_density: float,
                              pressure_multiplier: float,
                              mass: Optional[float] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Compute pressure accelerations and apply ``velocity += a * dt``.

    Returns:
        (ax, ay) acceleration arrays that were applied
    """
    ax, ay = compute_pressure_acceleration_vectorized(
        particles, density, kernel, target_density, pressure_multiplier, mass)
    particles.velocity_x += ax * dt
    particles.velocity_y += ay * dt
    return ax, ay
