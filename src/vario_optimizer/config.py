"""
Optimizer Configuration

One dataclass per optimization strategy, plus FittingConfig which binds a
strategy to a structure count, a seed and an objective type. Every config
validates itself before any data is touched; violations raise
ConfigurationError and no partial result is produced.

Configurations can be built from plain dictionaries or loaded from a JSON
file of the form:

    {
        "algorithm": "genetic",
        "m": 2,
        "seed": 1,
        "objective_type": "fourier_integral",
        "params": {"population_size": 40, "selection_size": 20}
    }
"""

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import ConfigurationError
from .objective import ObjectiveType
from .structures import NUMBER_OF_PARAMETERS, check_structure_count


def _require_positive(name: str, value) -> None:
    if value is None or value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")


def _from_dict(cls, data: Dict[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(
            f"Unknown {cls.__name__} parameters: {', '.join(sorted(unknown))}"
        )
    return cls(**data)


@dataclass
class AnnealingConfig:
    """Simulated annealing followed by gradient descent."""
    n_threads: Optional[int] = None

    # Simulated annealing
    initial_temperature: float = 1000.0
    final_temperature: float = 0.1
    max_annealing_steps: int = 1000
    search_factor: float = 0.2

    # Gradient descent
    max_descent_steps: int = 20
    epsilon: float = 1e-6
    initial_alpha: float = 1.0
    max_alpha_reductions: int = 10
    convergence_criterion: float = 1e-5

    def validate(self, m: int) -> None:
        check_structure_count(m)
        if self.final_temperature < 0:
            raise ConfigurationError("final_temperature must not be negative")
        if self.initial_temperature <= self.final_temperature:
            raise ConfigurationError(
                "initial_temperature must be greater than final_temperature"
            )
        _require_positive("max_annealing_steps", self.max_annealing_steps)
        _require_positive("search_factor", self.search_factor)
        _require_positive("max_descent_steps", self.max_descent_steps)
        _require_positive("epsilon", self.epsilon)
        _require_positive("initial_alpha", self.initial_alpha)
        _require_positive("max_alpha_reductions", self.max_alpha_reductions)
        if self.convergence_criterion < 0:
            raise ConfigurationError("convergence_criterion must not be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnnealingConfig':
        return _from_dict(cls, data)


@dataclass
class LineSearchConfig:
    """Line search with restarts."""
    n_threads: Optional[int] = None
    max_steps: int = 20
    epsilon: float = 1e-6
    n_starting_points: int = 10
    n_restarts: int = 5

    def validate(self, m: int) -> None:
        check_structure_count(m)
        _require_positive("max_steps", self.max_steps)
        _require_positive("epsilon", self.epsilon)
        _require_positive("n_starting_points", self.n_starting_points)
        _require_positive("n_restarts", self.n_restarts)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineSearchConfig':
        return _from_dict(cls, data)


@dataclass
class SwarmConfig:
    """Particle swarm optimization."""
    n_threads: Optional[int] = None
    max_steps: int = 50
    n_particles: int = 20
    inertia_weight: float = 0.7
    acceleration_constant_1: float = 1.5
    acceleration_constant_2: float = 1.5

    def validate(self, m: int) -> None:
        check_structure_count(m)
        _require_positive("max_steps", self.max_steps)
        _require_positive("n_particles", self.n_particles)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SwarmConfig':
        return _from_dict(cls, data)


@dataclass
class GeneticConfig:
    """Genetic algorithm."""
    n_threads: Optional[int] = None
    max_generations: int = 50
    population_size: int = 40
    selection_size: int = 20
    crossover_probability: float = 0.7
    crossover_point: Optional[int] = None  # None: half the number of genes
    mutation_rate: float = 1.0

    def resolved_crossover_point(self, m: int) -> int:
        if self.crossover_point is None:
            return (m * NUMBER_OF_PARAMETERS) // 2
        return self.crossover_point

    def validate(self, m: int) -> None:
        check_structure_count(m)
        _require_positive("max_generations", self.max_generations)
        _require_positive("population_size", self.population_size)
        _require_positive("selection_size", self.selection_size)
        if self.selection_size >= self.population_size:
            raise ConfigurationError(
                "Selection pool size must be less than population size."
            )
        if self.population_size % 2 or self.selection_size % 2:
            raise ConfigurationError("Population and selection sizes must be even numbers.")
        point = self.resolved_crossover_point(m)
        if not 0 <= point < m * NUMBER_OF_PARAMETERS:
            raise ConfigurationError(
                "Point of crossover must be less than the number of parameters."
            )
        if not 0.0 <= self.crossover_probability <= 1.0:
            raise ConfigurationError("crossover_probability must be in [0, 1]")
        if self.mutation_rate < 0:
            raise ConfigurationError("mutation_rate must not be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GeneticConfig':
        return _from_dict(cls, data)


ALGORITHM_CONFIGS = {
    "annealed_gradient_descent": AnnealingConfig,
    "restarted_line_search": LineSearchConfig,
    "particle_swarm": SwarmConfig,
    "genetic": GeneticConfig,
}

AlgorithmConfig = Union[AnnealingConfig, LineSearchConfig, SwarmConfig, GeneticConfig]


@dataclass
class FittingConfig:
    """A complete fitting request: strategy, structure count, seed and objective."""
    algorithm: str
    m: int = 1
    seed: int = 0
    objective_type: ObjectiveType = ObjectiveType.FOURIER_INTEGRAL
    params: AlgorithmConfig = None

    def __post_init__(self):
        if self.algorithm not in ALGORITHM_CONFIGS:
            raise ConfigurationError(
                f"Unknown algorithm '{self.algorithm}'. "
                f"Choose one of: {', '.join(sorted(ALGORITHM_CONFIGS))}"
            )
        try:
            self.objective_type = ObjectiveType(self.objective_type)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        config_cls = ALGORITHM_CONFIGS[self.algorithm]
        if self.params is None:
            self.params = config_cls()
        elif isinstance(self.params, dict):
            self.params = config_cls.from_dict(self.params)
        elif not isinstance(self.params, config_cls):
            raise ConfigurationError(
                f"params for '{self.algorithm}' must be a {config_cls.__name__}"
            )

    def validate(self) -> None:
        self.params.validate(self.m)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FittingConfig':
        data = dict(data)
        if "algorithm" not in data:
            raise ConfigurationError("Fitting configuration needs an 'algorithm' entry")
        return _from_dict(cls, data)


def load_config(path: Union[str, Path]) -> FittingConfig:
    """
    Load a FittingConfig from a JSON file.

    Raises:
        ConfigurationError: If the file is not valid JSON or has bad entries
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    config = FittingConfig.from_dict(data)
    config.validate()
    return config
