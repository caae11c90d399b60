"""
Nested Variogram Structures

A variogram model is a sum of m anisotropic spherical structures. Each
structure has exactly four parameters, always in this order:

    0: range         length of the major axis (> 0)
    1: range_ratio   minor axis / major axis, in (0, 1]
    2: azimuth       direction of the major axis in radians, clockwise from
                     north (+Y), in [0, pi)
    3: contribution  partial sill (> 0)

Optimizers work on the flat parameter vector
[range0, ratio0, az0, cc0, range1, ...] and use decode_structures() /
flatten_structures() to move between the two representations.
"""

import math
from dataclasses import dataclass, replace
from typing import List, Sequence
import numpy as np

from .core.geometry import GridGeometry
from .core.surface import SpectralSurface
from .errors import ConfigurationError


NUMBER_OF_PARAMETERS = 4

PARAMETER_NAMES = ('range', 'range_ratio', 'azimuth', 'contribution')


@dataclass(frozen=True)
class VariogramStructure:
    """One nested anisotropic spherical structure."""
    range: float
    range_ratio: float
    azimuth: float
    contribution: float

    @staticmethod
    def number_of_parameters() -> int:
        return NUMBER_OF_PARAMETERS

    def get_parameter(self, index: int) -> float:
        """Get a parameter by its position in the structure's parameter block."""
        if not 0 <= index < NUMBER_OF_PARAMETERS:
            raise IndexError(f"Parameter index out of range: {index}")
        return getattr(self, PARAMETER_NAMES[index])

    def with_parameter(self, index: int, value: float) -> 'VariogramStructure':
        """Return a copy with one parameter replaced."""
        if not 0 <= index < NUMBER_OF_PARAMETERS:
            raise IndexError(f"Parameter index out of range: {index}")
        return replace(self, **{PARAMETER_NAMES[index]: float(value)})

    def to_array(self) -> np.ndarray:
        return np.array(
            [self.range, self.range_ratio, self.azimuth, self.contribution],
            dtype=np.float64
        )

    @property
    def minor_range(self) -> float:
        return self.range * self.range_ratio

    def covariance(self, dx: np.ndarray, dy: np.ndarray, dz: np.ndarray) -> np.ndarray:
        """
        Spherical covariance at the given lag offsets.

        The lag is projected onto the major axis (along the azimuth) and the
        minor axis (perpendicular to it); the vertical lag is scaled by the
        major range.

        Args:
            dx, dy, dz: Lag components (same shape)

        Returns:
            Covariance values, contribution at h = 0 and 0 beyond the range
        """
        sin_az = math.sin(self.azimuth)
        cos_az = math.cos(self.azimuth)
        u = dx * sin_az + dy * cos_az
        v = dx * cos_az - dy * sin_az
        h = np.sqrt(
            (u / self.range) ** 2 +
            (v / self.minor_range) ** 2 +
            (dz / self.range) ** 2
        )
        return np.where(
            h < 1.0,
            self.contribution * (1.0 - 1.5 * h + 0.5 * h ** 3),
            0.0
        )

    def add_contribution_to_model_grid(
        self,
        geometry: GridGeometry,
        surface: SpectralSurface
    ) -> None:
        """Add this structure's covariance surface, centred on the grid, in place."""
        dx, dy, dz = geometry.lag_offsets()
        surface += self.covariance(dx, dy, dz)

    def describe(self, index: int = 0) -> str:
        """Short human-readable label (azimuth in degrees)."""
        return (
            f"Str. {index}: Sph cc={self.contribution:.3f}; "
            f"axes={self.range:.3f} X {self.minor_range:.3f}; "
            f"az={math.degrees(self.azimuth):.3f}"
        )


def check_structure_count(m: int) -> None:
    """Reject structure counts below one."""
    if m < 1:
        raise ConfigurationError(
            f"The number of nested structures must be at least 1, got {m}"
        )


def decode_structures(vector: Sequence[float], m: int) -> List[VariogramStructure]:
    """
    Split a flat parameter vector into m structures.

    Args:
        vector: Flat vector of length 4*m
        m: Number of nested structures

    Returns:
        List of VariogramStructure, in vector order
    """
    check_structure_count(m)
    vector = np.asarray(vector, dtype=np.float64)
    if vector.size != m * NUMBER_OF_PARAMETERS:
        raise ValueError(
            f"Parameter vector has {vector.size} elements, expected "
            f"{m * NUMBER_OF_PARAMETERS} for {m} structures"
        )
    structures = []
    for i_structure in range(m):
        block = vector[i_structure * NUMBER_OF_PARAMETERS:(i_structure + 1) * NUMBER_OF_PARAMETERS]
        structures.append(VariogramStructure(*(float(value) for value in block)))
    return structures


def flatten_structures(structures: Sequence[VariogramStructure]) -> np.ndarray:
    """Concatenate the parameters of the structures into a flat vector."""
    if not structures:
        return np.zeros(0, dtype=np.float64)
    return np.concatenate([structure.to_array() for structure in structures])


def generate_model_surface(
    geometry: GridGeometry,
    vector: Sequence[float],
    m: int
) -> SpectralSurface:
    """
    Build the theoretical covariance surface of a parameter vector.

    The surface has the grid's dimensions with h = 0 at the centre cell, and
    is the sum of the contributions of the m nested structures.
    """
    surface = SpectralSurface.filled(geometry.ni, geometry.nj, geometry.nk, 0.0)
    for structure in decode_structures(vector, m):
        structure.add_contribution_to_model_grid(geometry, surface)
    return surface
