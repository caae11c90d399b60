"""
Variogram Parameter Domain

Defines the box of admissible parameter values:
- range between the smallest horizontal cell size and half the grid diagonal
- range ratio between 0.001 and 1
- azimuth over a half turn [0, pi]
- contribution between 1% of the experimental map maximum and its maximum

The domain is computed once per fitting session and is read-only afterwards.
Optimizers that shrink the search box (line search) work on copies of the
bound vectors, never on the domain itself.
"""

from dataclasses import dataclass
from typing import List
import numpy as np

from .core.geometry import GridGeometry
from .core.surface import SpectralSurface
from .structures import (
    NUMBER_OF_PARAMETERS,
    VariogramStructure,
    check_structure_count,
    flatten_structures,
)


MIN_RANGE_RATIO = 0.001
MAX_RANGE_RATIO = 1.0
MIN_AZIMUTH = 0.0
MAX_AZIMUTH = np.pi
MIN_CONTRIBUTION_FRACTION = 0.01


@dataclass
class DomainInitialization:
    """Everything an optimizer needs to start: bounds plus a centred start vector."""
    domain: 'ParameterDomain'
    vw: np.ndarray
    lower_bounds: np.ndarray
    upper_bounds: np.ndarray
    structures: List[VariogramStructure]


@dataclass(frozen=True)
class ParameterDomain:
    """
    Per-parameter-kind bounds.

    Attributes:
        min: Structure holding the lower bound of each parameter kind
        max: Structure holding the upper bound of each parameter kind
    """
    min: VariogramStructure
    max: VariogramStructure

    @classmethod
    def from_geometry(
        cls,
        geometry: GridGeometry,
        input_surface: SpectralSurface
    ) -> 'ParameterDomain':
        """Derive the bounds from grid geometry and the experimental map."""
        min_axis = min(geometry.cell_size_i, geometry.cell_size_j)
        max_axis = geometry.diagonal_length / 2.0
        max_contribution = input_surface.max()
        min_contribution = max_contribution * MIN_CONTRIBUTION_FRACTION
        return cls(
            min=VariogramStructure(min_axis, MIN_RANGE_RATIO, MIN_AZIMUTH, min_contribution),
            max=VariogramStructure(max_axis, MAX_RANGE_RATIO, MAX_AZIMUTH, max_contribution),
        )

    @classmethod
    def initialize(
        cls,
        geometry: GridGeometry,
        input_surface: SpectralSurface,
        m: int
    ) -> DomainInitialization:
        """
        Build the domain, its bound vectors and a start vector centred in it.

        Args:
            geometry: Grid geometry of the input variable
            input_surface: Experimental correlation map of the input
            m: Number of nested structures

        Returns:
            DomainInitialization(domain, vw, lower_bounds, upper_bounds, structures)

        Raises:
            ConfigurationError: If m < 1
        """
        check_structure_count(m)
        domain = cls.from_geometry(geometry, input_surface)

        # The contributions share the sill, but never drop below the lower bound.
        contribution = max(
            (domain.max.contribution - domain.min.contribution) / m,
            domain.min.contribution,
        )
        structures = [
            VariogramStructure(
                (domain.max.range + domain.min.range) / 2.0,
                (domain.max.range_ratio + domain.min.range_ratio) / 2.0,
                (domain.max.azimuth + domain.min.azimuth) / 2.0,
                contribution,
            )
            for _ in range(m)
        ]

        return DomainInitialization(
            domain=domain,
            vw=flatten_structures(structures),
            lower_bounds=domain.lower_bounds(m),
            upper_bounds=domain.upper_bounds(m),
            structures=structures,
        )

    def lower_bounds(self, m: int) -> np.ndarray:
        """Lower bound for every element of a 4*m parameter vector."""
        return np.tile(self.min.to_array(), m)

    def upper_bounds(self, m: int) -> np.ndarray:
        """Upper bound for every element of a 4*m parameter vector."""
        return np.tile(self.max.to_array(), m)

    def deltas(self, m: int) -> np.ndarray:
        """Width of the domain for every element of a 4*m parameter vector."""
        return self.upper_bounds(m) - self.lower_bounds(m)

    def contains(self, vector: np.ndarray, tol: float = 1e-12) -> bool:
        """Check that a parameter vector lies inside the domain."""
        m = len(vector) // NUMBER_OF_PARAMETERS
        return bool(
            np.all(vector >= self.lower_bounds(m) - tol) and
            np.all(vector <= self.upper_bounds(m) + tol)
        )


def random_vector(
    rng: np.random.Generator,
    lower_bounds: np.ndarray,
    upper_bounds: np.ndarray
) -> np.ndarray:
    """Draw a parameter vector uniformly within the given bounds."""
    return lower_bounds + rng.random(len(lower_bounds)) * (upper_bounds - lower_bounds)
