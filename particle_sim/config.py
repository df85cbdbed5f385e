"""
Simulation configuration.

All tunable constants live in explicit dataclasses that are passed into each
stage rather than being read from module globals. Every dataclass validates
itself; a malformed configuration is rejected at setup with
``ConfigurationError`` and never reaches the per-tick code.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple


class ConfigurationError(ValueError):
    """Raised when a simulation or spawn configuration is invalid."""


COLLISION_METHODS = ("auto", "bruteforce", "grid")
SPAWN_LAYOUTS = ("random", "grid")


def _require_finite(name: str, value: float):
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value}")


def _require_unit_interval(name: str, value: float):
    _require_finite(name, value)
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be in [0, 1], got {value}")


@dataclass
class DomainBounds:
    """Rectangle centred at the origin, described by its half extents."""
    half_width: float
    half_height: float

    @staticmethod
    def from_surface(width: float, height: float) -> 'DomainBounds':
        """Bounds matching a render surface of ``width`` x ``height`` units."""
        bounds = DomainBounds(width / 2.0, height / 2.0)
        bounds.validate()
        return bounds

    @property
    def size(self) -> Tuple[float, float]:
        return 2.0 * self.half_width, 2.0 * self.half_height

    def validate(self):
        _require_finite("half_width", self.half_width)
        _require_finite("half_height", self.half_height)
        if self.half_width <= 0.0 or self.half_height <= 0.0:
            raise ConfigurationError(
                f"Domain bounds must have positive size, got "
                f"{self.half_width} x {self.half_height} half extents")

    def shrunk_by(self, radius: float) -> Tuple[float, float]:
        """Half extents available to the centre of a particle of ``radius``.

        Floored at zero so a particle larger than the domain is pinned to the
        centre line instead of oscillating between negative extents.
        """
        return max(0.0, self.half_width - radius), max(0.0, self.half_height - radius)


@dataclass
class SimulationConfig:
    """Per-stage constants for the tick pipeline.

    A constant of zero disables the matching effect: ``gravity_factor=0``
    turns gravity off, ``pressure_multiplier=0`` makes the pressure stage a
    no-op, ``damping=0`` kills velocity on wall contact.
    """
    # Integrator
    gravity_factor: float = 9.81
    gravity_direction: Tuple[float, float] = (0.0, -1.0)
    damping: float = 0.9

    # Collisions
    collisions: bool = True
    restitution: float = 1.0
    collision_method: str = "auto"
    grid_threshold: int = 64

    # Fluid (SPH)
    fluid: bool = False
    smoothing_radius: float = 12.0
    target_density: float = 0.01
    pressure_multiplier: float = 500.0
    uniform_mass: bool = True   # applies only while every particle has the same mass

    # Backend for density/pressure: 'cpu', 'numba' or 'auto'
    backend: str = "auto"

    def validate(self):
        _require_finite("gravity_factor", self.gravity_factor)
        if len(self.gravity_direction) != 2:
            raise ConfigurationError("gravity_direction must have two components")
        gx, gy = self.gravity_direction
        _require_finite("gravity_direction", gx)
        _require_finite("gravity_direction", gy)
        if gx == 0.0 and gy == 0.0:
            raise ConfigurationError("gravity_direction must be non-zero")

        _require_unit_interval("damping", self.damping)
        _require_unit_interval("restitution", self.restitution)

        if self.collision_method not in COLLISION_METHODS:
            raise ConfigurationError(
                f"Unknown collision method: {self.collision_method}. "
                f"Choose from: {', '.join(COLLISION_METHODS)}")
        if self.grid_threshold < 0:
            raise ConfigurationError(f"grid_threshold must be >= 0, got {self.grid_threshold}")

        _require_finite("smoothing_radius", self.smoothing_radius)
        if self.smoothing_radius <= 0.0:
            raise ConfigurationError(
                f"smoothing_radius must be positive, got {self.smoothing_radius}")
        _require_finite("target_density", self.target_density)
        _require_finite("pressure_multiplier", self.pressure_multiplier)

        if self.backend not in ("auto", "cpu", "numba"):
            raise ConfigurationError(
                f"Invalid backend: {self.backend}. Choose from: auto, cpu, numba")

    @property
    def gravity_unit(self) -> Tuple[float, float]:
        """Gravity direction normalised to unit length."""
        gx, gy = self.gravity_direction
        norm = math.hypot(gx, gy)
        return gx / norm, gy / norm


@dataclass
class SpawnConfig:
    """Initial placement of the particle population.

    ``region`` is ``(min_x, min_y, max_x, max_y)`` in world units. Layout
    ``"random"`` draws uniform positions; ``"grid"`` lays the particles on a
    jittered lattice filling the region.
    """
    count: int = 4
    mass: float = 10.0
    region: Tuple[float, float, float, float] = (-200.0, -200.0, 200.0, 200.0)
    seed: Optional[int] = None
    layout: str = "random"
    jitter: float = 0.0
    initial_velocity: Tuple[float, float] = (0.0, 0.0)

    def validate(self):
        if int(self.count) != self.count or self.count <= 0:
            raise ConfigurationError(f"Particle count must be a positive integer, got {self.count}")
        _require_finite("mass", self.mass)
        if self.mass <= 0.0:
            raise ConfigurationError(f"Particle mass must be positive, got {self.mass}")
        if len(self.region) != 4:
            raise ConfigurationError("Spawn region must be (min_x, min_y, max_x, max_y)")
        min_x, min_y, max_x, max_y = self.region
        for value in self.region:
            _require_finite("region", value)
        if max_x <= min_x or max_y <= min_y:
            raise ConfigurationError(f"Spawn region is degenerate: {self.region}")
        if self.layout not in SPAWN_LAYOUTS:
            raise ConfigurationError(
                f"Unknown spawn layout: {self.layout}. Choose from: {', '.join(SPAWN_LAYOUTS)}")
        _require_finite("jitter", self.jitter)
        if self.jitter < 0.0:
            raise ConfigurationError(f"jitter must be >= 0, got {self.jitter}")
