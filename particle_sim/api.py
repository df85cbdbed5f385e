"""
Unified API for the particle simulation core with backend dispatch.

The four stages of a tick are exposed as plain functions operating on a
``ParticleArrays`` store:

    integrate -> resolve_collisions -> update_density -> apply_pressure

``step`` runs them in that fixed order. The density and pressure stages
dispatch to CPU (NumPy) or Numba implementations based on the current or
requested backend.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from .config import ConfigurationError, DomainBounds, SimulationConfig
from .core.backend import (Backend, auto_select_backend, backend_function, dispatch,
                           for_backend, get_backend, list_backends, print_backend_info,
                           resolve_backend, set_backend)
from .core.integrator_vectorized import integrate_euler_vectorized
from .core.kernel_vectorized import SpikyKernel2D
from .core.particles import ParticleArrays
from .physics import collisions
from .physics.collisions import CollisionReport
from .physics.density_numba import compute_density_numba_wrapper
from .physics.density_vectorized import compute_density_grid, compute_density_vectorized
from .physics.pressure_numba import compute_pressure_numba_wrapper
from .physics.pressure_vectorized import compute_pressure_acceleration_vectorized

logger = logging.getLogger(__name__)


# Register CPU implementations
@backend_function("update_density")
@for_backend(Backend.CPU)
def _update_density_cpu(particles: ParticleArrays, smoothing_radius: float,
                        mass: Optional[float] = None, use_grid: bool = False) -> np.ndarray:
    kernel = SpikyKernel2D(smoothing_radius)
    if use_grid:
        return compute_density_grid(particles, kernel, mass)
    return compute_density_vectorized(particles, kernel, mass)


@backend_function("pressure_acceleration")
@for_backend(Backend.CPU)
def _pressure_acceleration_cpu(particles: ParticleArrays, density: np.ndarray,
                               smoothing_radius: float, target_density: float,
                               pressure_multiplier: float, mass: Optional[float] = None):
    kernel = SpikyKernel2D(smoothing_radius)
    return compute_pressure_acceleration_vectorized(
        particles, density, kernel, target_density, pressure_multiplier, mass)


# Register Numba implementations
@backend_function("update_density")
@for_backend(Backend.NUMBA)
def _update_density_numba(particles: ParticleArrays, smoothing_radius: float,
                          mass: Optional[float] = None, use_grid: bool = False) -> np.ndarray:
    # The parallel direct sum is already faster than the Python-level grid walk
    return compute_density_numba_wrapper(particles, smoothing_radius, mass)


@backend_function("pressure_acceleration")
@for_backend(Backend.NUMBA)
def _pressure_acceleration_numba(particles: ParticleArrays, density: np.ndarray,
                                 smoothing_radius: float, target_density: float,
                                 pressure_multiplier: float, mass: Optional[float] = None):
    return compute_pressure_numba_wrapper(
        particles, density, smoothing_radius, target_density, pressure_multiplier, mass)


def _check_dt(dt: float):
    if not np.isfinite(dt) or dt < 0.0:
        raise ValueError(f"Time step must be finite and non-negative, got {dt}")


def _check_mass(mass: Optional[float]):
    if mass is not None and not mass > 0.0:
        raise ConfigurationError(f"Particle mass must be positive, got {mass}")


def _check_smoothing_radius(smoothing_radius: float):
    if not smoothing_radius > 0.0:
        raise ConfigurationError(f"smoothing_radius must be positive, got {smoothing_radius}")


# Public API functions
def integrate(particles: ParticleArrays, dt: float, domain_bounds: DomainBounds,
              gravity_factor: float, damping: float,
              gravity_direction=(0.0, -1.0)):
    """Apply gravity, advance positions and reflect off the domain walls.

    Args:
        particles: Particle arrays (modified in place)
        dt: Elapsed tick duration
        domain_bounds: Current domain half extents (may change between ticks)
        gravity_factor: Gravity magnitude, 0 disables gravity
        damping: Fraction of normal speed kept on wall contact, in [0, 1]
        gravity_direction: Unit gravity direction
    """
    _check_dt(dt)
    if not 0.0 <= damping <= 1.0:
        raise ConfigurationError(f"damping must be in [0, 1], got {damping}")
    domain_bounds.validate()

    integrate_euler_vectorized(particles, dt, domain_bounds, gravity_factor, damping,
                               gravity_direction)


def resolve_collisions(particles: ParticleArrays, restitution: float,
                       method: str = "auto", grid_threshold: int = 64) -> CollisionReport:
    """Resolve elastic collisions between touching particles.

    Args:
        particles: Particle arrays (velocities modified in place)
        restitution: Restitution coefficient in [0, 1]
        method: 'bruteforce', 'grid', or 'auto' (by population size)
        grid_threshold: Population above which 'auto' uses the grid

    Returns:
        CollisionReport
    """
    return collisions.resolve_collisions(particles, restitution, method, grid_threshold)


def update_density(particles: ParticleArrays, smoothing_radius: float,
                   mass: Optional[float] = None, backend: Optional[str] = None,
                   use_grid: bool = False) -> np.ndarray:
    """Compute the kernel-weighted density of every particle.

    Args:
        particles: Particle arrays
        smoothing_radius: Kernel support radius h
        mass: Uniform particle mass, or None to use each particle's own mass
        backend: Override backend ('cpu', 'numba', or None for current)
        use_grid: Restrict the CPU sum to grid neighbours (same result)

    Returns:
        Density buffer (``particles.density``), fully overwritten
    """
    _check_smoothing_radius(smoothing_radius)
    _check_mass(mass)
    return dispatch("update_density", particles, smoothing_radius, mass,
                    use_grid=use_grid, backend=backend)


def apply_pressure(particles: ParticleArrays, density_buffer: np.ndarray, dt: float,
                   target_density: float, pressure_multiplier: float,
                   smoothing_radius: float, mass: Optional[float] = None,
                   backend: Optional[str] = None):
    """Turn density deviation into pressure and apply it to velocities.

    Args:
        particles: Particle arrays (velocities modified in place)
        density_buffer: Output of ``update_density`` for this tick
        dt: Elapsed tick duration
        target_density: Rest density
        pressure_multiplier: Pressure stiffness
        smoothing_radius: Kernel support radius h
        mass: Uniform particle mass, or None to use each particle's own mass
        backend: Override backend

    Returns:
        (ax, ay) pressure accelerations that were applied
    """
    _check_dt(dt)
    _check_smoothing_radius(smoothing_radius)
    _check_mass(mass)
    if len(density_buffer) != len(particles):
        raise ValueError(
            f"Density buffer has {len(density_buffer)} entries for {len(particles)} particles")

    ax, ay = dispatch("pressure_acceleration", particles, density_buffer, smoothing_radius,
                      target_density, pressure_multiplier, mass, backend=backend)
    particles.velocity_x += ax * dt
    particles.velocity_y += ay * dt
    return ax, ay


@dataclass
class TickReport:
    """What one tick did, for logging and the host overlay."""
    dt: float
    collisions: Optional[CollisionReport] = None
    backend: Optional[str] = None
    mean_density: float = 0.0
    max_speed: float = 0.0
    timings: Dict[str, float] = field(default_factory=dict)


def step(particles: ParticleArrays, dt: float, domain_bounds: DomainBounds,
         config: SimulationConfig) -> TickReport:
    """Run one tick: integrate -> collide -> density -> pressure.

    Args:
        particles: Particle arrays (modified in place)
        dt: Elapsed tick duration
        domain_bounds: Current domain half extents
        config: Stage constants

    Returns:
        TickReport with per-stage timings
    """
    report = TickReport(dt=dt)
    t0 = time.perf_counter()

    # 1. Integration + wall reflection
    t_stage = time.perf_counter()
    integrate(particles, dt, domain_bounds, config.gravity_factor, config.damping,
              config.gravity_unit)
    report.timings['integrate'] = time.perf_counter() - t_stage

    # 2. Collisions
    if config.collisions:
        t_stage = time.perf_counter()
        report.collisions = resolve_collisions(particles, config.restitution,
                                               config.collision_method, config.grid_threshold)
        report.timings['collisions'] = time.perf_counter() - t_stage

    # 3-4. Density, then pressure from the fresh density field
    if config.fluid:
        backend = resolve_backend(config.backend, len(particles))
        report.backend = backend or get_backend()
        # A mixed-mass store always sums each particle's own mass
        uniform = config.uniform_mass and np.all(particles.mass == particles.mass[0])
        mass = float(particles.mass[0]) if uniform else None

        t_stage = time.perf_counter()
        density = update_density(particles, config.smoothing_radius, mass, backend=backend)
        report.timings['density'] = time.perf_counter() - t_stage
        report.mean_density = float(np.mean(density))

        t_stage = time.perf_counter()
        apply_pressure(particles, density, dt, config.target_density,
                       config.pressure_multiplier, config.smoothing_radius, mass,
                       backend=backend)
        report.timings['pressure'] = time.perf_counter() - t_stage

    report.max_speed = float(np.max(particles.speeds()))
    report.timings['total'] = time.perf_counter() - t0
    logger.debug("Tick dt=%.4f: %s", dt,
                 ", ".join(f"{name}={seconds * 1000:.2f}ms" for name, seconds in report.timings.items()))
    return report


# Re-export backend management functions
__all__ = [
    # API functions
    'integrate',
    'resolve_collisions',
    'update_density',
    'apply_pressure',
    'step',
    'TickReport',

    # Backend management
    'set_backend',
    'get_backend',
    'list_backends',
    'auto_select_backend',
    'print_backend_info',

    # Core classes
    'ParticleArrays',
    'SpikyKernel2D'
]
