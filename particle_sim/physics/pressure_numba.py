"""
Numba-optimized pressure force computation.

Parallel over particles; accelerations go to separate output arrays and are
applied to the velocities only after the parallel loop has finished, so no
iteration ever sees another particle's updated state.
"""

from typing import Optional, Tuple

import numpy as np
import numba as nb

from ..core.particles import ParticleArrays


@nb.njit(fastmath=True, cache=True)
def spiky_derivative(dst: float, radius: float, scale: float) -> float:
    """Signed radial derivative of the spiky kernel; ``scale`` is 12 / (π h⁴)."""
    if dst < radius:
        return -(radius - dst) * scale
    return 0.0


@nb.njit(parallel=True, fastmath=True, cache=True)
def compute_pressure_numba(position_x: np.ndarray, position_y: np.ndarray,
                           mass: np.ndarray, density: np.ndarray,
                           radius: float, target_density: float,
                           pressure_multiplier: float,
                           accel_x: np.ndarray, accel_y: np.ndarray):
    """Numba-optimized pressure accelerations."""
    n = position_x.shape[0]
    scale = 12.0 / (np.pi * radius**4)

    for i in nb.prange(n):
        rho_i = density[i]
        accel_x[i] = 0.0
        accel_y[i] = 0.0
        if rho_i == 0.0:
            continue

        xi = position_x[i]
        yi = position_y[i]
        pressure_i = (rho_i - target_density) * pressure_multiplier
        force_x = 0.0
        force_y = 0.0

        for j in range(n):
            if j == i:
                continue
            rho_j = density[j]
            if rho_j == 0.0:
                continue

            dx = position_x[j] - xi
            dy = position_y[j] - yi
            dst = np.sqrt(dx * dx + dy * dy)
            if dst == 0.0:
                continue

            pressure_j = (rho_j - target_density) * pressure_multiplier
            shared_pressure = 0.5 * (pressure_i + pressure_j)
            slope = spiky_derivative(dst, radius, scale)
            weight = shared_pressure * slope * mass[j] / rho_j / dst

            force_x += weight * dx
            force_y += weight * dy

        accel_x[i] = force_x / rho_i
        accel_y[i] = force_y / rho_i


def compute_pressure_numba_wrapper(particles: ParticleArrays, density: np.ndarray,
                                   radius: float, target_density: float,
                                   pressure_multiplier: float,
                                   mass: Optional[float] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Wrapper for Numba pressure computation; returns (ax, ay)."""
    n = len(particles)
    if mass is None:
        masses = particles.mass.astype(np.float64)
    else:
        masses = np.full(n, mass, dtype=np.float64)

    accel_x = np.zeros(n)
    accel_y = np.zeros(n)
    compute_pressure_numba(
        particles.position_x.astype(np.float64), particles.position_y.astype(np.float64),
        masses, np.asarray(density, dtype=np.float64).copy(),
        float(radius), float(target_density), float(pressure_multiplier),
        accel_x, accel_y
    )
    return accel_x, accel_y
