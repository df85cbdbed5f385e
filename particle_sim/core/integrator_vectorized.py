"""
Vectorized time integration and wall reflection.

Includes:
- Explicit Euler step under uniform gravity
- Reflective boundaries that clamp the particle edge to the domain walls
"""

from typing import Sequence, Tuple

import numpy as np

from ..config import DomainBounds
from .particles import ParticleArrays


def integrate_euler_vectorized(particles: ParticleArrays, dt: float,
                               domain_bounds: DomainBounds,
                               gravity_factor: float,
                               damping: float,
                               gravity_direction: Tuple[float, float] = (0.0, -1.0)):
    """Advance every particle by ``dt`` and reflect it off the walls.

    velocity += gravity_direction * gravity_factor * dt
    position += velocity * dt

    Particles are independent in this stage, so updating whole arrays is the
    same as visiting each particle in turn and reflecting it immediately
    after its own position update.

    Args:
        particles: Particle arrays
        dt: Time step
        domain_bounds: Current domain half extents
        gravity_factor: Gravity magnitude (0 disables gravity)
        damping: Fraction of the normal speed kept on wall contact
        gravity_direction: Unit direction of gravity
    """
    gx, gy = gravity_direction

    # Update velocities (vectorized)
    if gravity_factor != 0.0:
        particles.velocity_x += gx * gravity_factor * dt
        particles.velocity_y += gy * gravity_factor * dt

    # Update positions (vectorized)
    particles.position_x += particles.velocity_x * dt
    particles.position_y += particles.velocity_y * dt
    particles.position_z += particles.velocity_z * dt

    apply_reflective_boundaries_vectorized(particles, domain_bounds, damping)


def apply_reflective_boundaries_vectorized(particles: ParticleArrays,
                                           domain_bounds: DomainBounds,
                                           damping: float):
    """Clamp particles into the domain and reflect the touched axis.

    Each particle's half extents are the domain's shrunk by its radius
    (radius == mass), floored at zero.

    Args:
        particles: Particle arrays
        domain_bounds: Domain half extents
        damping: Velocity reduction factor on contact
    """
    half_x = np.maximum(0.0, domain_bounds.half_width - particles.mass)
    half_y = np.maximum(0.0, domain_bounds.half_height - particles.mass)

    _reflect_axis(particles.position_x, particles.velocity_x, half_x, damping)
    _reflect_axis(particles.position_y, particles.velocity_y, half_y, damping)


def _reflect_axis(position: np.ndarray, velocity: np.ndarray,
                  half_extent: np.ndarray, damping: float):
    """Reflect one axis in place; the other axis is never touched."""
    mask = np.abs(position) > half_extent
    if not np.any(mask):
        return
    position[mask] = half_extent[mask] * np.sign(position[mask])
    velocity[mask] *= -damping


def reflect(position: np.ndarray, velocity: np.ndarray,
            half_extents: Sequence[float], damping: float) -> Tuple[bool, bool]:
    """Reflect a single particle in place.

    Args:
        position: Particle position (x, y[, z]), modified in place
        velocity: Particle velocity (x, y[, z]), modified in place
        half_extents: (half_x, half_y) already shrunk by the particle radius
        damping: Velocity reduction factor on contact

    Returns:
        (hit_x, hit_y) flags telling which walls were touched
    """
    hits = []
    for axis in range(2):
        half = half_extents[axis]
        if abs(position[axis]) > half:
            position[axis] = half * np.sign(position[axis])
            velocity[axis] = velocity[axis] * -damping
            hits.append(True)
        else:
            hits.append(False)
    return hits[0], hits[1]
