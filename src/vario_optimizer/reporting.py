"""
Result Reporting

Collects what a fitting run produces for the outside world:
- ObjectiveTrace: objective value per optimizer step
- ProgressCounter: advisory, monotonically increasing work counter
- FittingResult: fitted structures, final vector, trace and run fingerprint
- ResultSurfaces: the grids a result viewer shows (per-structure model
  surfaces, their Fourier-Integral maps, residuals)

The engine hands results to a ResultSink only after the optimizer has
returned; it never waits on the sink while optimizing.
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence
import numpy as np

from .core.canonical_json import canonical_hash
from .core.geometry import GridGeometry
from .core.surface import SpectralSurface
from .structures import (
    VariogramStructure,
    decode_structures,
    flatten_structures,
)


class ProgressCounter:
    """
    Monotonically increasing counter an observer may poll.

    Advisory only: nothing in the engine reads it to make decisions.
    """

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        return self._value


class ObjectiveTrace:
    """Append-only sequence of objective values, safe to append from any thread."""

    def __init__(self):
        self._values: List[float] = []
        self._lock = threading.Lock()

    def append(self, value: float):
        with self._lock:
            self._values.append(float(value))

    def values(self) -> List[float]:
        with self._lock:
            return list(self._values)

    def clear(self):
        with self._lock:
            self._values.clear()

    def __len__(self) -> int:
        return len(self._values)


@dataclass
class FittingResult:
    """Result of one fitting run."""
    structures: List[VariogramStructure]
    parameters: np.ndarray
    objective_value: float
    trace: List[float]
    algorithm: str
    seed: int
    evaluations: int = 0
    receipt_hash: str = ""

    def __post_init__(self):
        if not self.receipt_hash:
            self.receipt_hash = self._compute_hash()

    @property
    def m(self) -> int:
        return len(self.structures)

    def _compute_hash(self) -> str:
        return canonical_hash({
            "algorithm": self.algorithm,
            "seed": self.seed,
            "parameters": [repr(float(value)) for value in self.parameters],
            "trace": [repr(value) for value in self.trace],
        })

    def to_canonical(self) -> Dict:
        return {
            "algorithm": self.algorithm,
            "seed": self.seed,
            "objective_value": self.objective_value,
            "structures": [
                {
                    "range": s.range,
                    "range_ratio": s.range_ratio,
                    "azimuth": s.azimuth,
                    "contribution": s.contribution,
                }
                for s in self.structures
            ],
            "trace": list(self.trace),
            "evaluations": self.evaluations,
            "receipt_hash": self.receipt_hash,
        }

    @classmethod
    def from_vector(
        cls,
        vector: np.ndarray,
        m: int,
        objective_value: float,
        trace: Sequence[float],
        algorithm: str,
        seed: int,
        evaluations: int = 0
    ) -> 'FittingResult':
        """Decode the final vector and package it with the run's trace."""
        vector = np.array(vector, dtype=np.float64)
        return cls(
            structures=decode_structures(vector, m),
            parameters=vector,
            objective_value=float(objective_value),
            trace=list(trace),
            algorithm=algorithm,
            seed=seed,
            evaluations=evaluations,
        )


@dataclass
class ResultSurfaces:
    """Grids describing a fitted model, keyed by display title."""
    structure_surfaces: List[SpectralSurface] = field(default_factory=list)
    structure_maps: List[SpectralSurface] = field(default_factory=list)
    model_surface: Optional[SpectralSurface] = None
    experimental_map: Optional[SpectralSurface] = None
    variogram_residual: Optional[SpectralSurface] = None
    residual_map: Optional[SpectralSurface] = None
    sum_of_structure_maps: Optional[SpectralSurface] = None
    map_residual: Optional[SpectralSurface] = None

    def titled(self, structures: Sequence[VariogramStructure]) -> Dict[str, SpectralSurface]:
        """Flatten into an ordered title -> surface mapping."""
        grids = {}
        for index, (surface, fim_map) in enumerate(zip(self.structure_surfaces, self.structure_maps)):
            grids[describe_structure(structures[index], index)] = surface
            grids[f"Map {index}"] = fim_map
        grids["Variogram model surface"] = self.model_surface
        grids["Varmap of input"] = self.experimental_map
        grids["Difference (variogram)"] = self.variogram_residual
        grids["Result of the model"] = self.sum_of_structure_maps
        grids["Result of diff. varmap - model"] = self.residual_map
        grids["Difference (map)"] = self.map_residual
        return grids


class ResultSink(Protocol):
    """Receives fitted results for display or storage."""

    def receive(self, result: FittingResult, surfaces: ResultSurfaces) -> None:
        ...


def build_result_surfaces(
    geometry: GridGeometry,
    raw_data: SpectralSurface,
    structures: Sequence[VariogramStructure],
    phase_map: SpectralSurface,
    experimental_map: SpectralSurface,
    transform
) -> ResultSurfaces:
    """
    Compute the grids that show how a fitted model explains the input.

    Each structure's covariance surface is turned into a data-domain factor
    map with the Fourier-Integral reconstruction; the factor maps add up to
    the model's rendition of the input.

    Args:
        geometry: Grid geometry of the input
        raw_data: Input data
        structures: Fitted structures
        phase_map: FFT phase map of the input
        experimental_map: Experimental covariance map of the input
        transform: TransformService used for the reconstructions
    """
    surfaces = ResultSurfaces()
    model_surface = SpectralSurface.filled(geometry.ni, geometry.nj, geometry.nk, 0.0)
    sum_of_maps = SpectralSurface.filled(geometry.ni, geometry.nj, geometry.nk, 0.0)

    for structure in structures:
        one_structure = SpectralSurface.filled(geometry.ni, geometry.nj, geometry.nk, 0.0)
        structure.add_contribution_to_model_grid(geometry, one_structure)
        model_surface += one_structure
        surfaces.structure_surfaces.append(one_structure)

        factor_map = transform.reconstruct_from_surface(one_structure, phase_map)
        sum_of_maps += factor_map
        surfaces.structure_maps.append(factor_map)

    surfaces.model_surface = model_surface
    surfaces.experimental_map = experimental_map
    surfaces.variogram_residual = experimental_map - model_surface
    surfaces.residual_map = transform.reconstruct_from_surface(
        surfaces.variogram_residual, phase_map
    )
    surfaces.sum_of_structure_maps = sum_of_maps
    surfaces.map_residual = raw_data - sum_of_maps
    return surfaces


def describe_structure(structure: VariogramStructure, index: int = 0) -> str:
    return structure.describe(index)


def format_model(
    structures: Sequence[VariogramStructure],
    break_line_at_each_structure: bool = True
) -> str:
    """Tab-separated parameters of a model, one structure per line by default."""
    rows = [
        f"{s.range}\t{s.range_ratio}\t{s.azimuth}\t{s.contribution}"
        for s in structures
    ]
    if break_line_at_each_structure:
        return "\n".join(rows)
    return "\t".join(rows)


__all__ = [
    'ProgressCounter',
    'ObjectiveTrace',
    'FittingResult',
    'ResultSurfaces',
    'ResultSink',
    'build_result_surfaces',
    'describe_structure',
    'format_model',
    'decode_structures',
    'flatten_structures',
]
