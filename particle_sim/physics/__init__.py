"""Physics stages: collisions, density, and pressure."""

from .collisions import (
    CollisionPair,
    CollisionReport,
    canonical_pair,
    compute_impulse,
    detect_collisions_bruteforce,
    detect_collisions_grid,
    resolve_collisions
)
from .density_vectorized import (
    compute_density_vectorized,
    compute_density_grid
)
from .pressure_vectorized import (
    density_to_pressure,
    compute_pressure_acceleration_vectorized,
    apply_pressure_vectorized
)

__all__ = [
    'CollisionPair',
    'CollisionReport',
    'canonical_pair',
    'compute_impulse',
    'detect_collisions_bruteforce',
    'detect_collisions_grid',
    'resolve_collisions',
    'compute_density_vectorized',
    'compute_density_grid',
    'density_to_pressure',
    'compute_pressure_acceleration_vectorized',
    'apply_pressure_vectorized'
]
