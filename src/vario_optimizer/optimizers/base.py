"""
Shared optimizer plumbing: the bound problem every strategy works on and
the result every strategy returns.
"""

from dataclasses import dataclass
from typing import List, Optional
import numpy as np

from ..core.geometry import GridGeometry
from ..core.surface import SpectralSurface
from ..domain import ParameterDomain
from ..objective import ObjectiveFunctionEvaluator
from ..reporting import ObjectiveTrace, ProgressCounter


@dataclass
class OptimizationProblem:
    """
    An objective bound to one input and one parameter box.

    Attributes:
        evaluator: Objective function evaluator (shared by all workers)
        geometry: Grid geometry of the input
        raw_data: Input data
        m: Number of nested structures
        domain: Parameter domain of the session
        lower_bounds, upper_bounds: Bound vectors (length 4*m)
    """
    evaluator: ObjectiveFunctionEvaluator
    geometry: GridGeometry
    raw_data: SpectralSurface
    m: int
    domain: ParameterDomain
    lower_bounds: np.ndarray
    upper_bounds: np.ndarray

    @property
    def n_parameters(self) -> int:
        return len(self.lower_bounds)

    def objective(self, vector: np.ndarray) -> float:
        return self.evaluator.evaluate(self.geometry, self.raw_data, vector, self.m)

    def clamp(self, vector: np.ndarray) -> np.ndarray:
        return np.clip(vector, self.lower_bounds, self.upper_bounds)


@dataclass
class OptimizerResult:
    """Result of one optimizer run."""
    x_best: np.ndarray
    f_best: float
    trace: List[float]
    iterations: int
    converged: bool = False
    reason: str = "max_steps"


class Optimizer:
    """
    Base class for the four strategies.

    Subclasses implement optimize(). Each run owns its random generator,
    seeded once, so a run is reproducible from its seed.
    """

    name = "optimizer"

    def __init__(
        self,
        problem: OptimizationProblem,
        seed: int = 0,
        trace: Optional[ObjectiveTrace] = None,
        progress: Optional[ProgressCounter] = None
    ):
        self.problem = problem
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.trace = trace if trace is not None else ObjectiveTrace()
        self.progress = progress if progress is not None else ProgressCounter()

    def optimize(self, *args, **kwargs) -> OptimizerResult:
        raise NotImplementedError
