"""
Cartesian Grid Geometry

The geometric metadata of the grid carrying the input variable: dimensions,
cell sizes and the location of the first cell centre. The engine only reads
it to build lag distances for model surfaces, the weight map and the domain
bounds.
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np


@dataclass(frozen=True)
class GridGeometry:
    """
    Regular Cartesian grid geometry.

    Attributes:
        ni, nj, nk: Number of cells along X, Y and Z
        cell_size_i, cell_size_j, cell_size_k: Cell sizes along X, Y and Z
        origin_x, origin_y, origin_z: Location of the centre of cell (0, 0, 0)
    """
    ni: int
    nj: int
    nk: int = 1
    cell_size_i: float = 1.0
    cell_size_j: float = 1.0
    cell_size_k: float = 1.0
    origin_x: float = 0.0
    origin_y: float = 0.0
    origin_z: float = 0.0

    def __post_init__(self):
        if min(self.ni, self.nj, self.nk) < 1:
            raise ValueError("Grid dimensions must be at least 1")
        if min(self.cell_size_i, self.cell_size_j, self.cell_size_k) <= 0.0:
            raise ValueError("Cell sizes must be positive")

    @property
    def shape(self) -> Tuple[int, int, int]:
        return (self.ni, self.nj, self.nk)

    @property
    def cell_count(self) -> int:
        return self.ni * self.nj * self.nk

    @property
    def diagonal_length(self) -> float:
        """Length of the diagonal of the grid's bounding box."""
        return float(np.sqrt(
            (self.ni * self.cell_size_i) ** 2 +
            (self.nj * self.cell_size_j) ** 2 +
            (self.nk * self.cell_size_k) ** 2
        ))

    @property
    def mean_cell_size(self) -> float:
        return (self.cell_size_i + self.cell_size_j + self.cell_size_k) / 3.0

    @property
    def center_index(self) -> Tuple[int, int, int]:
        """Index of the lag-zero cell of a centred correlation map."""
        return (self.ni // 2, self.nj // 2, self.nk // 2)

    @property
    def center(self) -> Tuple[float, float, float]:
        """Location of the centre cell (the h = 0 lag of a centred map)."""
        return self.cell_location(*self.center_index)

    def cell_location(self, i: int, j: int, k: int) -> Tuple[float, float, float]:
        """Spatial location of the centre of cell (i, j, k)."""
        return (
            self.origin_x + i * self.cell_size_i,
            self.origin_y + j * self.cell_size_j,
            self.origin_z + k * self.cell_size_k,
        )

    def lag_offsets(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Offsets of every cell centre from the grid centre.

        Returns:
            (dx, dy, dz) arrays, each shaped (ni, nj, nk)
        """
        ci, cj, ck = self.center_index
        dx = (np.arange(self.ni) - ci) * self.cell_size_i
        dy = (np.arange(self.nj) - cj) * self.cell_size_j
        dz = (np.arange(self.nk) - ck) * self.cell_size_k
        return np.meshgrid(dx, dy, dz, indexing='ij')

    def distances_to_center(self) -> np.ndarray:
        """Euclidean distance of every cell centre to the grid centre."""
        dx, dy, dz = self.lag_offsets()
        return np.sqrt(dx * dx + dy * dy + dz * dz)
