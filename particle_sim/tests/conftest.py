"""Pytest configuration for particle simulation tests."""
import os
import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure(config):
    """Configure pytest environment for headless runs."""
    # Add project root to Python path for particle_sim imports
    project_root = Path(__file__).parent.parent.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

    # Set SDL to use dummy video driver for headless operation
    os.environ['SDL_VIDEODRIVER'] = 'dummy'
    os.environ['SDL_AUDIODRIVER'] = 'dummy'


@pytest.fixture
def make_particles():
    """Build a store from position/velocity/mass lists."""
    from particle_sim.core.particles import ParticleArrays

    def _make(positions, velocities=None, mass=10.0):
        positions = np.asarray(positions, dtype=np.float64)
        n = positions.shape[0]
        particles = ParticleArrays.allocate(n)
        particles.position_x[:] = positions[:, 0]
        particles.position_y[:] = positions[:, 1]
        if velocities is not None:
            velocities = np.asarray(velocities, dtype=np.float64)
            particles.velocity_x[:] = velocities[:, 0]
            particles.velocity_y[:] = velocities[:, 1]
        particles.mass[:] = mass
        return particles

    return _make


@pytest.fixture
def restore_backend():
    """Put the global backend back after a test changes it."""
    import particle_sim
    original = particle_sim.get_backend()
    yield
    particle_sim.set_backend(original)
