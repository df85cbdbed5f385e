"""
Pairwise elastic collisions between particles.

Particles are discs whose radius equals their mass. Detection runs over a
snapshot taken before any velocity is changed, using either an exhaustive
O(N²) test or a spatial grid broad-phase. Every unordered pair is resolved at
most once per tick: the grid reports each pair from both particles' scans, so
candidates are deduplicated by their canonical ``(min, max)`` key first.

Impulses for all pairs are computed from the snapshot and summed before being
written back, so a particle touching several others receives every impulse
and the result does not depend on pair order. Positions are never changed
here; overlapping particles are separated by their new velocities over the
following ticks.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..config import COLLISION_METHODS, ConfigurationError
from ..core.particles import ParticleArrays
from ..core.spatial_hash_vectorized import SpatialGrid

logger = logging.getLogger(__name__)

PairKey = Tuple[int, int]

RESOLVED = "resolved"
SEPARATING = "separating"
COINCIDENT = "coincident"


def canonical_pair(i: int, j: int) -> PairKey:
    """Order-independent key for the unordered pair {i, j}."""
    return (i, j) if i < j else (j, i)


@dataclass(frozen=True)
class CollisionPair:
    """A touching pair with its state captured at detection time."""
    a: int
    b: int
    position_a: Tuple[float, float]
    position_b: Tuple[float, float]
    velocity_a: Tuple[float, float]
    velocity_b: Tuple[float, float]
    mass_a: float
    mass_b: float

    @property
    def key(self) -> PairKey:
        return self.a, self.b


@dataclass
class CollisionReport:
    """Counters for one collision pass."""
    method: str
    candidates: int = 0          # raw detections, duplicates included
    duplicates: int = 0          # detections dropped by canonical-key dedup
    resolved: int = 0
    separating: int = 0
    coincident: int = 0
    resolved_pairs: List[PairKey] = field(default_factory=list)

    @property
    def pairs(self) -> int:
        return self.candidates - self.duplicates


def _snapshot_pair(i: int, j: int, positions: np.ndarray, velocities: np.ndarray,
                   mass: np.ndarray) -> CollisionPair:
    a, b = canonical_pair(i, j)
    return CollisionPair(
        a=a, b=b,
        position_a=(float(positions[a, 0]), float(positions[a, 1])),
        position_b=(float(positions[b, 0]), float(positions[b, 1])),
        velocity_a=(float(velocities[a, 0]), float(velocities[a, 1])),
        velocity_b=(float(velocities[b, 0]), float(velocities[b, 1])),
        mass_a=float(mass[a]),
        mass_b=float(mass[b]),
    )


def detect_collisions_bruteforce(positions: np.ndarray, velocities: np.ndarray,
                                 mass: np.ndarray) -> List[CollisionPair]:
    """Exhaustive pairwise test, each pair visited once (i < j).

    Args:
        positions: Snapshot of positions, shape (N, 2)
        velocities: Snapshot of velocities, shape (N, 2)
        mass: Masses (= radii), shape (N,)

    Returns:
        Touching pairs in canonical order
    """
    n = positions.shape[0]
    if n < 2:
        return []

    # Vectorized distance matrix
    dx = positions[:, 0][:, np.newaxis] - positions[:, 0][np.newaxis, :]
    dy = positions[:, 1][:, np.newaxis] - positions[:, 1][np.newaxis, :]
    distances = np.sqrt(dx * dx + dy * dy)
    radii_sum = mass[:, np.newaxis] + mass[np.newaxis, :]

    touching = np.triu(distances < radii_sum, k=1)
    ia, ib = np.nonzero(touching)
    return [_snapshot_pair(int(i), int(j), positions, velocities, mass) for i, j in zip(ia, ib)]


def collect_grid_candidates(positions: np.ndarray, mass: np.ndarray,
                            grid: SpatialGrid) -> List[PairKey]:
    """Raw broad-phase hits: every touching (i, j) seen from i's 3x3 scan.

    Each touching pair shows up once from each side, so the result holds
    duplicates by construction.
    """
    hits: List[PairKey] = []
    for i in range(positions.shape[0]):
        xi, yi = positions[i, 0], positions[i, 1]
        cell = grid.cell_of(xi, yi)
        for j in grid.candidates(cell):
            if j == i:
                continue
            dx = xi - positions[j, 0]
            dy = yi - positions[j, 1]
            radii_sum = mass[i] + mass[j]
            if dx * dx + dy * dy < radii_sum * radii_sum:
                hits.append((i, j))
    return hits


def deduplicate_pairs(hits: List[PairKey]) -> List[PairKey]:
    """Collapse hits onto canonical keys, keeping first-seen order."""
    unique: Dict[PairKey, None] = {}
    for i, j in hits:
        unique.setdefault(canonical_pair(i, j), None)
    return list(unique)


def detect_collisions_grid(positions: np.ndarray, velocities: np.ndarray,
                           mass: np.ndarray,
                           cell_size: Optional[float] = None) -> Tuple[List[CollisionPair], int]:
    """Grid-accelerated detection.

    Args:
        positions: Snapshot of positions, shape (N, 2)
        velocities: Snapshot of velocities, shape (N, 2)
        mass: Masses (= radii), shape (N,)
        cell_size: Grid cell size; defaults to the largest particle diameter

    Returns:
        (deduplicated touching pairs, number of raw detections)
    """
    n = positions.shape[0]
    if n < 2:
        return [], 0

    if cell_size is None:
        cell_size = 2.0 * float(np.max(mass))

    grid = SpatialGrid(cell_size)
    for i in range(n):
        grid.insert(i, positions[i, 0], positions[i, 1])

    hits = collect_grid_candidates(positions, mass, grid)
    keys = deduplicate_pairs(hits)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Collision grid: %s", grid.get_statistics())
    return [_snapshot_pair(a, b, positions, velocities, mass) for a, b in keys], len(hits)


def compute_impulse(pair: CollisionPair,
                    restitution: float) -> Tuple[str, np.ndarray, np.ndarray]:
    """Elastic impulse along the contact normal.

    Returns:
        (status, delta_velocity_a, delta_velocity_b). Status is ``RESOLVED``,
        ``SEPARATING`` (already moving apart) or ``COINCIDENT`` (normal
        undefined); the deltas are zero unless resolved.
    """
    zero = np.zeros(2)
    normal = np.subtract(pair.position_a, pair.position_b)
    dist = np.hypot(normal[0], normal[1])
    if dist == 0.0:
        return COINCIDENT, zero, zero
    normal /= dist

    v_rel = float(np.dot(np.subtract(pair.velocity_a, pair.velocity_b), normal))
    if v_rel > 0.0:
        return SEPARATING, zero, zero

    inv_mass_a = 1.0 / pair.mass_a
    inv_mass_b = 1.0 / pair.mass_b
    j = -(1.0 + restitution) * v_rel / (inv_mass_a + inv_mass_b)

    return RESOLVED, (j * inv_mass_a) * normal, -(j * inv_mass_b) * normal


def choose_method(n_particles: int, method: str = "auto", grid_threshold: int = 64) -> str:
    """Resolve ``"auto"`` to a concrete detection method by population size."""
    if method not in COLLISION_METHODS:
        raise ConfigurationError(
            f"Unknown collision method: {method}. Choose from: {', '.join(COLLISION_METHODS)}")
    if method == "auto":
        return "bruteforce" if n_particles <= grid_threshold else "grid"
    return method


def resolve_collisions(particles: ParticleArrays, restitution: float,
                       method: str = "auto", grid_threshold: int = 64,
                       cell_size: Optional[float] = None) -> CollisionReport:
    """Detect touching pairs and apply elastic impulses to their velocities.

    Args:
        particles: Particle arrays (velocities updated in place)
        restitution: Fraction of approach speed returned (1 = elastic)
        method: 'bruteforce', 'grid' or 'auto'
        grid_threshold: Population above which 'auto' uses the grid
        cell_size: Grid cell size override (grid method only)

    Returns:
        CollisionReport with detection and resolution counters
    """
    if not 0.0 <= restitution <= 1.0:
        raise ConfigurationError(f"restitution must be in [0, 1], got {restitution}")

    n = len(particles)
    method = choose_method(n, method, grid_threshold)
    report = CollisionReport(method=method)

    # Read-only snapshot for the whole pass
    positions = particles.get_positions()
    velocities = particles.get_velocities()
    mass = particles.mass.copy()

    if method == "bruteforce":
        pairs = detect_collisions_bruteforce(positions, velocities, mass)
        report.candidates = len(pairs)
    else:
        pairs, report.candidates = detect_collisions_grid(positions, velocities, mass, cell_size)
        report.duplicates = report.candidates - len(pairs)

    delta_v = np.zeros((n, 2))
    for pair in pairs:
        status, dv_a, dv_b = compute_impulse(pair, restitution)
        if status == COINCIDENT:
            report.coincident += 1
            continue
        if status == SEPARATING:
            report.separating += 1
            continue
        delta_v[pair.a] += dv_a
        delta_v[pair.b] += dv_b
        report.resolved += 1
        report.resolved_pairs.append(pair.key)

    if report.resolved:
        particles.velocity_x += delta_v[:, 0]
        particles.velocity_y += delta_v[:, 1]

    logger.debug("Collisions (%s): %d candidates, %d duplicates, %d resolved, "
                 "%d separating, %d coincident",
                 method, report.candidates, report.duplicates, report.resolved,
                 report.separating, report.coincident)
    return report
