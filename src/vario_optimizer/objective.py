"""
Objective Function Evaluator

Scores a variogram parameter vector against the input data. Lower is
better; the value is always non-negative.

Two strategies, selected once per session:

SURFACE_DISTANCE
    Weighted sum of squared differences between the model covariance
    surface and the experimental covariance map of the input. Weights
    decay with the squared lag distance from the map centre and are zero
    at the centre itself.

FOURIER_INTEGRAL
    The model covariance surface is turned into a data-domain field by the
    Fourier-Integral reconstruction (model amplitudes, input phases) and
    compared cell by cell with the raw input data.

The experimental map, the weight map and the input phase map are derived
from the input once and then shared read-only by every worker thread. They
live in a cache owned by the evaluator, so independent sessions never see
each other's inputs.
"""

import threading
from enum import Enum
from typing import Callable, Iterable, Optional, Sequence
import numpy as np

from .core.geometry import GridGeometry
from .core.surface import SpectralSurface
from .errors import ConfigurationError
from .reporting import ProgressCounter
from .structures import generate_model_surface
from .transform import TransformService
from .utils.logging import get_logger


logger = get_logger(__name__)

# Lags shorter than this get zero weight (the centre of the map).
MIN_WEIGHTED_DISTANCE = 0.0001


class ObjectiveType(Enum):
    """Available objective function strategies."""
    SURFACE_DISTANCE = "surface_distance"
    FOURIER_INTEGRAL = "fourier_integral"


class LazyQuantity:
    """
    A value derived from an input, computed at most once per distinct input.

    Uses double-checked locking: an unlocked identity check on the hot path,
    and a locked recheck-and-compute on a miss. The input is matched by
    identity, any extra arguments by equality. The cached entry is a
    (key, args, value) tuple replaced in one assignment, so readers never
    see a key paired with another input's value.
    """

    def __init__(self, name: str, compute: Callable, lock: threading.Lock):
        self.name = name
        self._compute = compute
        self._lock = lock
        self._entry = None
        self.computations = 0

    @staticmethod
    def _hit(entry, key, args) -> bool:
        return entry is not None and entry[0] is key and entry[1] == args

    def get(self, key, *args):
        entry = self._entry
        if not self._hit(entry, key, args):
            with self._lock:
                entry = self._entry
                if not self._hit(entry, key, args):
                    logger.info(f"Computing {self.name}.")
                    entry = (key, args, self._compute(key, *args))
                    self.computations += 1
                    self._entry = entry
        return entry[2]

    def clear(self):
        with self._lock:
            self._entry = None


class ObjectiveFunctionEvaluator:
    """
    Computes the fit-quality score of a parameter vector.

    Thread-safe: evaluate() may be called concurrently from any number of
    worker threads. Apart from the first-call cache population it holds no
    lock other than the transform lock (Fourier-Integral strategy only).
    """

    def __init__(
        self,
        objective_type: ObjectiveType = ObjectiveType.FOURIER_INTEGRAL,
        transform: Optional[TransformService] = None
    ):
        self.objective_type = ObjectiveType(objective_type)
        self.transform = transform if transform is not None else TransformService()
        self.evaluations = ProgressCounter()

        self._cache_lock = threading.Lock()
        self._experimental_map = LazyQuantity(
            "experimental covariance map", self._compute_experimental_map, self._cache_lock
        )
        self._weights = LazyQuantity(
            "experimental map weights", self._compute_weights, self._cache_lock
        )
        self._phase_map = LazyQuantity(
            "input FFT phase map", self._compute_phase_map, self._cache_lock
        )

    # Cached derived quantities

    def experimental_map(self, raw_data: SpectralSurface) -> SpectralSurface:
        return self._experimental_map.get(raw_data)

    def weight_map(self, geometry: GridGeometry, raw_data: SpectralSurface) -> SpectralSurface:
        return self._weights.get(raw_data, geometry)

    def phase_map(self, raw_data: SpectralSurface) -> SpectralSurface:
        return self._phase_map.get(raw_data)

    def _compute_experimental_map(self, raw_data: SpectralSurface) -> SpectralSurface:
        return self.transform.autocovariance_map(raw_data)

    def _compute_phase_map(self, raw_data: SpectralSurface) -> SpectralSurface:
        return self.transform.phase_map(raw_data)

    @staticmethod
    def _compute_weights(raw_data: SpectralSurface, geometry: GridGeometry) -> SpectralSurface:
        d = geometry.distances_to_center()
        mean_spacing = geometry.mean_cell_size
        weights = np.zeros_like(d)
        far = d >= MIN_WEIGHTED_DISTANCE
        weights[far] = 1.0 / d[far] / (2.0 * np.pi * d[far] / mean_spacing)
        return SpectralSurface(weights)

    def clear_cache(self):
        """Forget all derived quantities (next evaluation recomputes them)."""
        self._experimental_map.clear()
        self._weights.clear()
        self._phase_map.clear()

    # Objective

    def evaluate(
        self,
        geometry: GridGeometry,
        raw_data: SpectralSurface,
        vector: Sequence[float],
        m: int
    ) -> float:
        """
        Objective function value of a parameter vector.

        Args:
            geometry: Grid geometry of the input
            raw_data: Input data (its identity keys the derived-quantity cache)
            vector: Flat parameter vector of length 4*m
            m: Number of nested structures

        Returns:
            Non-negative objective value
        """
        if raw_data.shape != geometry.shape:
            raise ConfigurationError(
                f"Input data shape {raw_data.shape} does not match grid {geometry.shape}"
            )
        self.evaluations.increment()
        if self.objective_type is ObjectiveType.SURFACE_DISTANCE:
            return self._surface_distance(geometry, raw_data, vector, m)
        return self._fourier_integral(geometry, raw_data, vector, m)

    __call__ = evaluate

    def _surface_distance(self, geometry, raw_data, vector, m) -> float:
        experimental = self.experimental_map(raw_data).to_numpy()
        weights = self.weight_map(geometry, raw_data).to_numpy()
        model = generate_model_surface(geometry, vector, m).to_numpy()
        diff = model - experimental
        return float(np.sum(weights * diff * diff))

    def _fourier_integral(self, geometry, raw_data, vector, m) -> float:
        phases = self.phase_map(raw_data)
        model = generate_model_surface(geometry, vector, m)
        reconstructed = self.transform.reconstruct_from_surface(model, phases).to_numpy()
        diff = reconstructed - raw_data.to_numpy()
        return float(np.sum(diff * diff))

    # Numeric derivatives

    def partial_derivative(
        self,
        geometry: GridGeometry,
        raw_data: SpectralSurface,
        vector: np.ndarray,
        m: int,
        index: int,
        epsilon: float
    ) -> float:
        """Central-difference derivative along one parameter."""
        from_right = np.array(vector, dtype=np.float64)
        from_right[index] += epsilon
        from_left = np.array(vector, dtype=np.float64)
        from_left[index] -= epsilon
        return (
            self.evaluate(geometry, raw_data, from_right, m) -
            self.evaluate(geometry, raw_data, from_left, m)
        ) / (2.0 * epsilon)

    def numeric_gradient(
        self,
        geometry: GridGeometry,
        raw_data: SpectralSurface,
        vector: np.ndarray,
        m: int,
        epsilon: float,
        indices: Optional[Iterable[int]] = None,
        out: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """
        Central-difference gradient.

        Args:
            indices: Parameter indices to differentiate (all if None)
            out: Array receiving the partial derivatives; only the requested
                indices are written, so callers can give disjoint index sets
                to concurrent workers sharing one output array.

        Returns:
            The output array
        """
        if out is None:
            out = np.zeros(len(vector), dtype=np.float64)
        if indices is None:
            indices = range(len(vector))
        for index in indices:
            out[index] = self.partial_derivative(geometry, raw_data, vector, m, index, epsilon)
        return out
