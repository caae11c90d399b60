"""
Automatic Variogram Fitting

Entry points of the engine. A fitting session binds one input variable
(grid geometry + dense data) to an objective evaluator whose derived
quantities (experimental map, weights, phase map) are computed once and
reused by every optimizer run of the session.

Module-level functions (objective_function, process_*) create a one-off
session; keep an AutomaticVariogramFitting instance around to share the
cached quantities between runs.
"""

from typing import Callable, Optional, Sequence, Tuple, Union
import numpy as np

from .config import (
    AnnealingConfig,
    FittingConfig,
    GeneticConfig,
    LineSearchConfig,
    SwarmConfig,
)
from .core.geometry import GridGeometry
from .core.surface import SpectralSurface
from .domain import DomainInitialization, ParameterDomain
from .errors import ConfigurationError
from .objective import ObjectiveFunctionEvaluator, ObjectiveType
from .optimizers import (
    AnnealedGradientDescent,
    GeneticAlgorithm,
    OptimizationProblem,
    Optimizer,
    OptimizerResult,
    ParticleSwarm,
    RestartedLineSearch,
)
from .reporting import (
    FittingResult,
    ResultSink,
    ResultSurfaces,
    build_result_surfaces,
    format_model,
)
from .structures import VariogramStructure, check_structure_count, flatten_structures
from .transform import TransformService
from .utils.logging import get_logger, log_performance


logger = get_logger(__name__)

DataLike = Union[SpectralSurface, np.ndarray]


def _as_surface(geometry: GridGeometry, raw_data: DataLike) -> SpectralSurface:
    surface = raw_data if isinstance(raw_data, SpectralSurface) else SpectralSurface(raw_data)
    if surface.shape != geometry.shape:
        raise ConfigurationError(
            f"Input data shape {surface.shape} does not match grid {geometry.shape}"
        )
    return surface


class AutomaticVariogramFitting:
    """
    A fitting session for one input variable.

    Args:
        geometry: Grid geometry of the input
        raw_data: Dense input data shaped like the grid (2-D arrays allowed)
        objective_type: Objective strategy used by every run of the session
        result_sink: Optional receiver of results and result surfaces
    """

    def __init__(
        self,
        geometry: GridGeometry,
        raw_data: DataLike,
        objective_type: ObjectiveType = ObjectiveType.FOURIER_INTEGRAL,
        result_sink: Optional[ResultSink] = None
    ):
        self.geometry = geometry
        self.raw_data = _as_surface(geometry, raw_data)
        self.transform = TransformService()
        self.evaluator = ObjectiveFunctionEvaluator(objective_type, self.transform)
        self.result_sink = result_sink

    @property
    def objective_type(self) -> ObjectiveType:
        return self.evaluator.objective_type

    # Derived quantities

    def compute_varmap(self) -> SpectralSurface:
        """Experimental covariance map of the input (cached)."""
        return self.evaluator.experimental_map(self.raw_data)

    def input_phase_map(self) -> SpectralSurface:
        """FFT phase map of the input (cached)."""
        return self.evaluator.phase_map(self.raw_data)

    def objective_function(self, vector: Sequence[float], m: int) -> float:
        vector = np.asarray(vector, dtype=np.float64)
        return self.evaluator.evaluate(self.geometry, self.raw_data, vector, m)

    def evaluate_model(self, structures: Sequence[VariogramStructure]) -> float:
        """Objective function value of a list of structures."""
        return self.objective_function(flatten_structures(structures), len(structures))

    def initialize(self, m: int) -> DomainInitialization:
        """Domain, bound vectors and centred start vector for m structures."""
        return ParameterDomain.initialize(self.geometry, self.compute_varmap(), m)

    def result_surfaces(self, structures: Sequence[VariogramStructure]) -> ResultSurfaces:
        return build_result_surfaces(
            self.geometry,
            self.raw_data,
            structures,
            self.input_phase_map(),
            self.compute_varmap(),
            self.transform,
        )

    # Runs

    def _problem(self, m: int) -> Tuple[OptimizationProblem, DomainInitialization]:
        # Warm the caches before any worker starts.
        self.input_phase_map()
        init = self.initialize(m)
        problem = OptimizationProblem(
            evaluator=self.evaluator,
            geometry=self.geometry,
            raw_data=self.raw_data,
            m=m,
            domain=init.domain,
            lower_bounds=init.lower_bounds,
            upper_bounds=init.upper_bounds,
        )
        return problem, init

    def _finish(
        self,
        optimizer: Optimizer,
        outcome: OptimizerResult,
        m: int,
        seed: int,
        evaluations_before: int
    ) -> FittingResult:
        result = FittingResult.from_vector(
            outcome.x_best,
            m,
            outcome.f_best,
            outcome.trace,
            algorithm=optimizer.name,
            seed=seed,
            evaluations=self.evaluator.evaluations.value - evaluations_before,
        )
        logger.info(
            f"{optimizer.name} fitted {m} structure(s), objective {result.objective_value}:\n"
            f"{format_model(result.structures)}"
        )
        if self.result_sink is not None:
            self.result_sink.receive(result, self.result_surfaces(result.structures))
        return result

    @log_performance()
    def process_annealed_gradient_descent(
        self,
        m: int,
        seed: int = 0,
        config: Optional[AnnealingConfig] = None,
        descent_callback: Optional[Callable[[int, np.ndarray], None]] = None
    ) -> FittingResult:
        """Fit with simulated annealing followed by gradient descent."""
        config = config or AnnealingConfig()
        config.validate(m)
        problem, init = self._problem(m)
        before = self.evaluator.evaluations.value
        optimizer = AnnealedGradientDescent(
            problem, config, seed=seed, descent_callback=descent_callback
        )
        outcome = optimizer.optimize(init.vw)
        return self._finish(optimizer, outcome, m, seed, before)

    @log_performance()
    def process_restarted_line_search(
        self,
        m: int,
        seed: int = 0,
        config: Optional[LineSearchConfig] = None
    ) -> FittingResult:
        """Fit with the line search with restarts."""
        config = config or LineSearchConfig()
        config.validate(m)
        problem, _ = self._problem(m)
        before = self.evaluator.evaluations.value
        optimizer = RestartedLineSearch(problem, config, seed=seed)
        outcome = optimizer.optimize()
        return self._finish(optimizer, outcome, m, seed, before)

    @log_performance()
    def process_particle_swarm(
        self,
        m: int,
        seed: int = 0,
        config: Optional[SwarmConfig] = None
    ) -> FittingResult:
        """Fit with particle swarm optimization."""
        config = config or SwarmConfig()
        config.validate(m)
        problem, _ = self._problem(m)
        before = self.evaluator.evaluations.value
        optimizer = ParticleSwarm(problem, config, seed=seed)
        outcome = optimizer.optimize()
        return self._finish(optimizer, outcome, m, seed, before)

    @log_performance()
    def process_genetic_algorithm(
        self,
        m: int,
        seed: int = 0,
        config: Optional[GeneticConfig] = None
    ) -> FittingResult:
        """Fit with the genetic algorithm."""
        config = config or GeneticConfig()
        config.validate(m)
        problem, _ = self._problem(m)
        before = self.evaluator.evaluations.value
        optimizer = GeneticAlgorithm(problem, config, seed=seed)
        outcome = optimizer.optimize()
        return self._finish(optimizer, outcome, m, seed, before)

    def process(self, fitting_config: FittingConfig) -> FittingResult:
        """Run the strategy named by a FittingConfig."""
        if fitting_config.objective_type is not self.objective_type:
            raise ConfigurationError(
                f"Session uses {self.objective_type.value}, "
                f"configuration asks for {fitting_config.objective_type.value}"
            )
        runners = {
            "annealed_gradient_descent": self.process_annealed_gradient_descent,
            "restarted_line_search": self.process_restarted_line_search,
            "particle_swarm": self.process_particle_swarm,
            "genetic": self.process_genetic_algorithm,
        }
        runner = runners[fitting_config.algorithm]
        return runner(fitting_config.m, seed=fitting_config.seed, config=fitting_config.params)


def objective_function(
    geometry: GridGeometry,
    raw_data: DataLike,
    parameters: Sequence[float],
    m: int,
    objective_type: ObjectiveType = ObjectiveType.FOURIER_INTEGRAL
) -> float:
    """Objective function value of a parameter vector for one input."""
    check_structure_count(m)
    session = AutomaticVariogramFitting(geometry, raw_data, objective_type)
    return session.objective_function(parameters, m)


def process_annealed_gradient_descent(
    geometry: GridGeometry,
    raw_data: DataLike,
    m: int,
    seed: int = 0,
    config: Optional[AnnealingConfig] = None,
    objective_type: ObjectiveType = ObjectiveType.FOURIER_INTEGRAL,
    result_sink: Optional[ResultSink] = None
) -> FittingResult:
    session = AutomaticVariogramFitting(geometry, raw_data, objective_type, result_sink)
    return session.process_annealed_gradient_descent(m, seed, config)


def process_restarted_line_search(
    geometry: GridGeometry,
    raw_data: DataLike,
    m: int,
    seed: int = 0,
    config: Optional[LineSearchConfig] = None,
    objective_type: ObjectiveType = ObjectiveType.FOURIER_INTEGRAL,
    result_sink: Optional[ResultSink] = None
) -> FittingResult:
    session = AutomaticVariogramFitting(geometry, raw_data, objective_type, result_sink)
    return session.process_restarted_line_search(m, seed, config)


def process_particle_swarm(
    geometry: GridGeometry,
    raw_data: DataLike,
    m: int,
    seed: int = 0,
    config: Optional[SwarmConfig] = None,
    objective_type: ObjectiveType = ObjectiveType.FOURIER_INTEGRAL,
    result_sink: Optional[ResultSink] = None
) -> FittingResult:
    session = AutomaticVariogramFitting(geometry, raw_data, objective_type, result_sink)
    return session.process_particle_swarm(m, seed, config)


def process_genetic_algorithm(
    geometry: GridGeometry,
    raw_data: DataLike,
    m: int,
    seed: int = 0,
    config: Optional[GeneticConfig] = None,
    objective_type: ObjectiveType = ObjectiveType.FOURIER_INTEGRAL,
    result_sink: Optional[ResultSink] = None
) -> FittingResult:
    session = AutomaticVariogramFitting(geometry, raw_data, objective_type, result_sink)
    return session.process_genetic_algorithm(m, seed, config)
