"""
Vectorized density computation.

Direct summation over every particle, the particle itself included:
ρᵢ = Σⱼ mⱼ W(h, |rᵢ - rⱼ|)
"""

from typing import Optional

import numpy as np

from ..core.kernel_vectorized import SpikyKernel2D
from ..core.particles import ParticleArrays
from ..core.spatial_hash_vectorized import SpatialGrid


def _contributing_mass(particles: ParticleArrays, mass: Optional[float]) -> np.ndarray:
    if mass is None:
        return particles.mass
    return np.full(len(particles), mass, dtype=particles.mass.dtype)


def compute_density_vectorized(particles: ParticleArrays, kernel: SpikyKernel2D,
                               mass: Optional[float] = None,
                               batch_size: int = 256) -> np.ndarray:
    """Batch-vectorized O(N²) density computation.

    Rows of the distance matrix are evaluated ``batch_size`` particles at a
    time to bound memory. The density buffer is fully overwritten.

    Args:
        particles: Particle arrays
        kernel: Smoothing kernel
        mass: Uniform particle mass, or None to use each particle's own mass
        batch_size: Number of particles processed together

    Returns:
        The density buffer (``particles.density``)
    """
    n = len(particles)
    masses = _contributing_mass(particles, mass)
    px = particles.position_x.copy()
    py = particles.position_y.copy()

    density = np.empty(n, dtype=particles.density.dtype)
    for batch_start in range(0, n, batch_size):
        batch_end = min(batch_start + batch_size, n)

        dx = px[batch_start:batch_end, np.newaxis] - px[np.newaxis, :]
        dy = py[batch_start:batch_end, np.newaxis] - py[np.newaxis, :]
        distances = np.sqrt(dx * dx + dy * dy)

        density[batch_start:batch_end] = kernel.W_vectorized(distances) @ masses

    particles.density[:] = density
    return particles.density


def compute_density_grid(particles: ParticleArrays, kernel: SpikyKernel2D,
                         mass: Optional[float] = None) -> np.ndarray:
    """Grid-accelerated density, identical result to the direct sum.

    The grid cell size equals the smoothing radius so every particle inside
    the kernel support lies in the 3x3 neighbourhood.
    """
    n = len(particles)
    masses = _contributing_mass(particles, mass)
    px = particles.position_x.copy()
    py = particles.position_y.copy()

    grid = SpatialGrid(kernel.radius)
    for i in range(n):
        grid.insert(i, px[i], py[i])

    density = np.empty(n, dtype=particles.density.dtype)
    for i in range(n):
        # The particle's own cell is in its neighbourhood, so self is included
        neighbor_ids = np.fromiter(grid.candidates(grid.cell_of(px[i], py[i])), dtype=np.int64)
        dx = px[i] - px[neighbor_ids]
        dy = py[i] - py[neighbor_ids]
        distances = np.sqrt(dx * dx + dy * dy)
        density[i] = np.sum(masses[neighbor_ids] * kernel.W_vectorized(distances))

    particles.density[:] = density
    return particles.density
