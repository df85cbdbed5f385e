"""Initial particle placement scenarios."""

from .spawn import (
    spawn_particles,
    generate_random_positions,
    generate_grid_positions
)

__all__ = [
    'spawn_particles',
    'generate_random_positions',
    'generate_grid_positions'
]
