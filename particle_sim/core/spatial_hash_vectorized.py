"""
Uniform hash grid for broad-phase neighbour searches.

Space is cut into square cells of side ``cell_size``; a particle belongs to
cell ``(floor(x / cell_size), floor(y / cell_size))``. The grid is sparse
(dict-backed) and unbounded, so negative coordinates and a changing domain
need no special handling. It is rebuilt from scratch every tick and must not
be reused once particle positions have moved.
"""

import logging
from typing import Dict, Iterator, List, Tuple

import numpy as np

from ..config import ConfigurationError
from .particles import ParticleArrays

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]

# 3x3 block centred on a cell, including the cell itself
NEIGHBOR_OFFSETS: List[Cell] = [
    (-1, 1), (0, 1), (1, 1),
    (-1, 0), (0, 0), (1, 0),
    (-1, -1), (0, -1), (1, -1),
]


class SpatialGrid:
    """Sparse cell lists keyed by integer cell coordinate.

    The cell size must be at least the largest interaction distance (particle
    diameter for collisions, smoothing radius for density) so that the 3x3
    neighbourhood of a particle's cell contains every particle it can touch.
    """

    def __init__(self, cell_size: float):
        """Initialize an empty grid.

        Args:
            cell_size: Side length of each square cell, must be > 0
        """
        if not cell_size > 0.0:
            raise ConfigurationError(f"Cell size must be positive, got {cell_size}")
        self.cell_size = float(cell_size)
        self.cells: Dict[Cell, List[int]] = {}
        self.n_indexed = 0

    @staticmethod
    def build(particles: ParticleArrays, cell_size: float) -> 'SpatialGrid':
        """Build a fresh grid holding every particle exactly once."""
        grid = SpatialGrid(cell_size)
        grid.build_vectorized(particles)
        return grid

    def cell_of(self, x: float, y: float) -> Cell:
        return int(np.floor(x / self.cell_size)), int(np.floor(y / self.cell_size))

    def insert(self, index: int, x: float, y: float) -> Cell:
        """Append particle ``index`` to the cell containing (x, y)."""
        cell = self.cell_of(x, y)
        bucket = self.cells.get(cell)
        if bucket is None:
            self.cells[cell] = [index]
        else:
            bucket.append(index)
        self.n_indexed += 1
        return cell

    def build_vectorized(self, particles: ParticleArrays):
        """Index all particles, computing cell coordinates in one pass."""
        self.cells = {}
        self.n_indexed = 0

        # Compute cell indices for all particles (vectorized)
        cell_x = np.floor(particles.position_x / self.cell_size).astype(np.int64)
        cell_y = np.floor(particles.position_y / self.cell_size).astype(np.int64)

        for i in range(len(particles)):
            cell = (int(cell_x[i]), int(cell_y[i]))
            bucket = self.cells.get(cell)
            if bucket is None:
                self.cells[cell] = [i]
            else:
                bucket.append(i)
        self.n_indexed = len(particles)

    def neighbors_of(self, cell: Cell) -> List[Cell]:
        """The 3x3 block of cells centred on ``cell`` (no bounds filtering)."""
        cx, cy = cell
        return [(cx + dx, cy + dy) for dx, dy in NEIGHBOR_OFFSETS]

    def get_cell_particles(self, cell: Cell) -> List[int]:
        """Particle indices in ``cell``; an unpopulated cell yields none."""
        return self.cells.get(cell, [])

    def candidates(self, cell: Cell) -> Iterator[int]:
        """All particle indices in the 3x3 neighbourhood of ``cell``."""
        for neighbor in self.neighbors_of(cell):
            yield from self.cells.get(neighbor, ())

    def get_statistics(self) -> dict:
        """Get grid statistics for debugging."""
        counts = np.array([len(bucket) for bucket in self.cells.values()], dtype=np.int64)
        return {
            'cell_size': self.cell_size,
            'occupied_cells': len(self.cells),
            'indexed_particles': self.n_indexed,
            'max_particles_per_cell': int(counts.max()) if counts.size else 0,
            'mean_particles_per_occupied_cell': float(counts.mean()) if counts.size else 0.0,
        }
