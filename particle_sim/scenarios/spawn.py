"""
Initial particle placement.

Particles are created once at the start of a run inside a rectangular spawn
region, either uniformly at random or on a jittered lattice.
"""

import logging
import math
from typing import Tuple

import numpy as np

from ..config import SpawnConfig
from ..core.particles import ParticleArrays

logger = logging.getLogger(__name__)


def generate_random_positions(count: int, region: Tuple[float, float, float, float],
                              rng: np.random.Generator) -> np.ndarray:
    """Uniform random positions inside ``region``, shape (count, 2)."""
    min_x, min_y, max_x, max_y = region
    x = rng.uniform(min_x, max_x, count)
    y = rng.uniform(min_y, max_y, count)
    return np.column_stack((x, y))


def generate_grid_positions(count: int, region: Tuple[float, float, float, float],
                            rng: np.random.Generator, jitter: float = 0.0) -> np.ndarray:
    """Lattice positions filling ``region`` with the region's aspect ratio.

    Args:
        count: Number of positions
        region: (min_x, min_y, max_x, max_y)
        rng: Random generator for the jitter
        jitter: Maximum random displacement of each lattice point

    Returns:
        Array of (x, y) positions, shape (count, 2)
    """
    min_x, min_y, max_x, max_y = region
    width = max_x - min_x
    height = max_y - min_y

    aspect = width / height
    rows = max(1, int(math.sqrt(count / aspect)))
    cols = max(1, int(math.ceil(count / rows)))
    while rows * cols < count:
        rows += 1

    index = np.arange(count)
    tx = (index % cols) / max(cols - 1, 1)
    ty = (index // cols) / max(rows - 1, 1)
    positions = np.column_stack((min_x + tx * width, min_y + ty * height))

    if jitter > 0.0:
        angle = rng.uniform(0.0, 2.0 * np.pi, count)
        magnitude = rng.uniform(-0.5, 0.5, count) * jitter
        positions[:, 0] += np.cos(angle) * magnitude
        positions[:, 1] += np.sin(angle) * magnitude

    return positions


def spawn_particles(config: SpawnConfig) -> ParticleArrays:
    """Create the particle population described by ``config``.

    Raises:
        ConfigurationError: If the spawn configuration is invalid
    """
    config.validate()
    rng = np.random.default_rng(config.seed)

    if config.layout == "grid":
        positions = generate_grid_positions(config.count, config.region, rng, config.jitter)
    else:
        positions = generate_random_positions(config.count, config.region, rng)

    particles = ParticleArrays.allocate(config.count)
    particles.position_x[:] = positions[:, 0]
    particles.position_y[:] = positions[:, 1]
    particles.velocity_x[:] = config.initial_velocity[0]
    particles.velocity_y[:] = config.initial_velocity[1]
    particles.mass[:] = config.mass
    particles.validate()

    logger.info("Spawned %d particles (%s layout, mass %.3g) in region %s",
                config.count, config.layout, config.mass, config.region)
    return particles
