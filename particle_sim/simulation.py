"""
Host-independent simulation driver.

``ParticleSimulation`` owns the particle store and the configuration, runs the
tick pipeline once per frame and keeps the spawn state for resets. Both the
pygame visualizer and the headless runner drive the core through it.
"""

import logging
from typing import Optional

from . import api
from .config import DomainBounds, SimulationConfig, SpawnConfig
from .core.particles import ParticleArrays
from .scenarios import spawn_particles

logger = logging.getLogger(__name__)


class ParticleSimulation:
    """Fixed-population particle simulation."""

    def __init__(self, config: SimulationConfig, spawn: SpawnConfig,
                 particles: Optional[ParticleArrays] = None):
        """
        Initialize simulation.

        Args:
            config: Stage constants, validated here
            spawn: Initial placement, validated here
            particles: Pre-built population; spawned from ``spawn`` if None
        """
        config.validate()
        self.config = config
        self.spawn = spawn

        if particles is None:
            particles = spawn_particles(spawn)
        else:
            particles.validate()
        self.particles = particles

        self.step_count = 0
        self.sim_time = 0.0
        self.last_report: Optional[api.TickReport] = None

        # Store initial state for reset
        self._initial_state = self.particles.copy()

    @property
    def n_particles(self) -> int:
        return len(self.particles)

    def step(self, dt: float, domain_bounds: DomainBounds) -> api.TickReport:
        """Advance the simulation by one tick of length ``dt``."""
        report = api.step(self.particles, dt, domain_bounds, self.config)
        self.step_count += 1
        self.sim_time += dt
        self.last_report = report
        return report

    def reset(self):
        """Restore the population to its spawn state."""
        self.particles.restore(self._initial_state)
        self.step_count = 0
        self.sim_time = 0.0
        self.last_report = None
        logger.info("Simulation reset (%d particles)", self.n_particles)

    def log_positions(self):
        """Log every particle position at DEBUG level."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        for x, y in zip(self.particles.position_x, self.particles.position_y):
            logger.debug("x: %s, y: %s", x, y)
