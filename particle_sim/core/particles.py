"""
Particle store using a Structure-of-Arrays (SoA) layout.

One contiguous array per component keeps every stage vectorisable with numpy
and passable straight into Numba kernels. Single-particle records
(``Particle``) are available for hosts that think in entities rather than
arrays.
"""

import numpy as np
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from ..config import ConfigurationError


@dataclass
class Particle:
    """A single particle record, copied out of (or into) the store."""
    position: np.ndarray        # shape: (3,)
    velocity: np.ndarray        # shape: (3,)
    mass: float
    density: float = 0.0


@dataclass
class ParticleArrays:
    """Structure of Arrays for the simulated population.

    The population is fixed for the lifetime of a run; ``density`` is derived
    state recomputed by the density stage every tick.
    """
    # Primary state (N particles)
    position_x: np.ndarray      # shape: (N,)
    position_y: np.ndarray      # shape: (N,)
    position_z: np.ndarray      # shape: (N,) carried, unused in 2D
    velocity_x: np.ndarray      # shape: (N,)
    velocity_y: np.ndarray      # shape: (N,)
    velocity_z: np.ndarray      # shape: (N,)

    # Particle properties
    mass: np.ndarray            # shape: (N,) doubles as collision radius
    density: np.ndarray         # shape: (N,) derived every tick

    @staticmethod
    def allocate(n_particles: int, dtype=np.float64) -> 'ParticleArrays':
        """Allocate zeroed arrays for ``n_particles`` particles.

        Mass is left at zero; callers must assign positive masses before the
        store is used (see ``validate``).
        """
        if n_particles <= 0:
            raise ConfigurationError(f"Particle count must be positive, got {n_particles}")

        def zeros():
            return np.zeros(n_particles, dtype=dtype)

        return ParticleArrays(
            position_x=zeros(),
            position_y=zeros(),
            position_z=zeros(),
            velocity_x=zeros(),
            velocity_y=zeros(),
            velocity_z=zeros(),
            mass=zeros(),
            density=zeros(),
        )

    @staticmethod
    def from_particles(particles: Sequence[Particle]) -> 'ParticleArrays':
        """Build a store from a sequence of ``Particle`` records."""
        arrays = ParticleArrays.allocate(len(particles))
        for i, particle in enumerate(particles):
            arrays[i] = particle
        arrays.validate()
        return arrays

    def __len__(self) -> int:
        return self.position_x.shape[0]

    @property
    def count(self) -> int:
        return len(self)

    def __getitem__(self, i: int) -> Particle:
        return Particle(
            position=np.array([self.position_x[i], self.position_y[i], self.position_z[i]]),
            velocity=np.array([self.velocity_x[i], self.velocity_y[i], self.velocity_z[i]]),
            mass=float(self.mass[i]),
            density=float(self.density[i]),
        )

    def __setitem__(self, i: int, particle: Particle):
        position = np.zeros(3)
        position[:len(particle.position)] = particle.position
        velocity = np.zeros(3)
        velocity[:len(particle.velocity)] = particle.velocity

        self.position_x[i], self.position_y[i], self.position_z[i] = position
        self.velocity_x[i], self.velocity_y[i], self.velocity_z[i] = velocity
        self.mass[i] = particle.mass
        self.density[i] = particle.density

    def __iter__(self) -> Iterator[Particle]:
        for i in range(len(self)):
            yield self[i]

    def validate(self):
        """Reject non-positive masses; division by mass happens every tick."""
        if np.any(~(self.mass > 0.0)):
            bad = int(np.argmax(~(self.mass > 0.0)))
            raise ConfigurationError(
                f"Particle mass must be positive, particle {bad} has mass {self.mass[bad]}")

    def get_positions(self, indices: Optional[np.ndarray] = None) -> np.ndarray:
        """Get particle positions as (N, 2) array for convenience."""
        if indices is None:
            return np.column_stack((self.position_x, self.position_y))
        else:
            return np.column_stack((self.position_x[indices], self.position_y[indices]))

    def get_velocities(self, indices: Optional[np.ndarray] = None) -> np.ndarray:
        """Get particle velocities as (N, 2) array for convenience."""
        if indices is None:
            return np.column_stack((self.velocity_x, self.velocity_y))
        else:
            return np.column_stack((self.velocity_x[indices], self.velocity_y[indices]))

    def copy(self) -> 'ParticleArrays':
        """Deep copy, used for reset state and read snapshots."""
        return ParticleArrays(
            position_x=self.position_x.copy(),
            position_y=self.position_y.copy(),
            position_z=self.position_z.copy(),
            velocity_x=self.velocity_x.copy(),
            velocity_y=self.velocity_y.copy(),
            velocity_z=self.velocity_z.copy(),
            mass=self.mass.copy(),
            density=self.density.copy(),
        )

    def restore(self, other: 'ParticleArrays'):
        """Overwrite this store in place with the contents of ``other``."""
        if len(other) != len(self):
            raise ValueError(f"Cannot restore {len(other)} particles into a store of {len(self)}")
        self.position_x[:] = other.position_x
        self.position_y[:] = other.position_y
        self.position_z[:] = other.position_z
        self.velocity_x[:] = other.velocity_x
        self.velocity_y[:] = other.velocity_y
        self.velocity_z[:] = other.velocity_z
        self.mass[:] = other.mass
        self.density[:] = other.density

    def momentum(self) -> np.ndarray:
        """Total linear momentum (px, py)."""
        return np.array([np.sum(self.mass * self.velocity_x),
                         np.sum(self.mass * self.velocity_y)])

    def kinetic_energy(self) -> float:
        return float(0.5 * np.sum(self.mass * (self.velocity_x**2 + self.velocity_y**2)))

    def speeds(self) -> np.ndarray:
        return np.sqrt(self.velocity_x**2 + self.velocity_y**2)
