"""
Vario Optimizer - Automatic Fitting of Nested Variogram Models

Fits a sum of anisotropic spherical structures to the spatial correlation
of a gridded variable. Each fit returns:
- The fitted structures (range, range ratio, azimuth, contribution)
- The objective value trace of the run
- A receipt hash fingerprinting the run

Key Features:
- Two objective strategies: surface distance to the experimental
  covariance map, and Fourier-Integral reconstruction of the input
- Four optimizers over the same bounded parameter box: annealed gradient
  descent, restarted line search, particle swarm, genetic algorithm
- Fork-join worker threads with a single serialization point for FFTs
- Derived input quantities computed once per session and shared
"""

from .errors import (
    VariogramFittingError,
    ConfigurationError,
)
from .core import (
    GridGeometry,
    SpectralSurface,
    canonical_dumps,
    canonical_hash,
)
from .structures import (
    NUMBER_OF_PARAMETERS,
    VariogramStructure,
    decode_structures,
    flatten_structures,
    generate_model_surface,
)
from .domain import (
    ParameterDomain,
    DomainInitialization,
)
from .transform import TransformService
from .objective import (
    ObjectiveType,
    ObjectiveFunctionEvaluator,
)
from .config import (
    AnnealingConfig,
    LineSearchConfig,
    SwarmConfig,
    GeneticConfig,
    FittingConfig,
    load_config,
)
from .reporting import (
    FittingResult,
    ObjectiveTrace,
    ProgressCounter,
    ResultSink,
    ResultSurfaces,
    build_result_surfaces,
    format_model,
)
from .optimizers import (
    AnnealedGradientDescent,
    RestartedLineSearch,
    ParticleSwarm,
    GeneticAlgorithm,
)
from .fitting import (
    AutomaticVariogramFitting,
    objective_function,
    process_annealed_gradient_descent,
    process_restarted_line_search,
    process_particle_swarm,
    process_genetic_algorithm,
)
from .utils import configure_logging, get_logger

__version__ = "0.1.0"

__all__ = [
    # Errors
    'VariogramFittingError',
    'ConfigurationError',
    # Core
    'GridGeometry',
    'SpectralSurface',
    'canonical_dumps',
    'canonical_hash',
    # Model
    'NUMBER_OF_PARAMETERS',
    'VariogramStructure',
    'decode_structures',
    'flatten_structures',
    'generate_model_surface',
    'ParameterDomain',
    'DomainInitialization',
    # Objective
    'TransformService',
    'ObjectiveType',
    'ObjectiveFunctionEvaluator',
    # Configuration
    'AnnealingConfig',
    'LineSearchConfig',
    'SwarmConfig',
    'GeneticConfig',
    'FittingConfig',
    'load_config',
    # Results
    'FittingResult',
    'ObjectiveTrace',
    'ProgressCounter',
    'ResultSink',
    'ResultSurfaces',
    'build_result_surfaces',
    'format_model',
    # Optimizers
    'AnnealedGradientDescent',
    'RestartedLineSearch',
    'ParticleSwarm',
    'GeneticAlgorithm',
    # Entry points
    'AutomaticVariogramFitting',
    'objective_function',
    'process_annealed_gradient_descent',
    'process_restarted_line_search',
    'process_particle_swarm',
    'process_genetic_algorithm',
    # Logging
    'configure_logging',
    'get_logger',
]
