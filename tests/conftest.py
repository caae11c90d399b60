"""
Shared fixtures: a small synthetic grid whose data follows one known
spherical structure exactly.
"""

import numpy as np
import pytest

from vario_optimizer import (
    GridGeometry,
    ObjectiveFunctionEvaluator,
    ObjectiveType,
    ParameterDomain,
    SpectralSurface,
    TransformService,
    VariogramStructure,
    flatten_structures,
    generate_model_surface,
)
from vario_optimizer.optimizers import OptimizationProblem


TRUE_STRUCTURE = VariogramStructure(range=10.0, range_ratio=0.5, azimuth=0.0, contribution=1.0)


def synthesize_field(geometry, structures, seed=0):
    """Field whose amplitude spectrum is that of the model, with random phases."""
    transform = TransformService()
    rng = np.random.default_rng(seed)
    noise = SpectralSurface(rng.standard_normal(geometry.shape))
    phases = transform.phase_map(noise)
    model = generate_model_surface(geometry, flatten_structures(structures), len(structures))
    return transform.reconstruct_from_surface(model, phases)


@pytest.fixture
def geometry():
    return GridGeometry(ni=32, nj=32)


@pytest.fixture
def raw_data(geometry):
    return synthesize_field(geometry, [TRUE_STRUCTURE])


@pytest.fixture
def true_vector():
    return TRUE_STRUCTURE.to_array()


@pytest.fixture
def make_problem(geometry, raw_data):
    """Factory for an OptimizationProblem over the synthetic grid."""

    def factory(m=1, objective_type=ObjectiveType.FOURIER_INTEGRAL):
        evaluator = ObjectiveFunctionEvaluator(objective_type)
        varmap = evaluator.experimental_map(raw_data)
        init = ParameterDomain.initialize(geometry, varmap, m)
        problem = OptimizationProblem(
            evaluator=evaluator,
            geometry=geometry,
            raw_data=raw_data,
            m=m,
            domain=init.domain,
            lower_bounds=init.lower_bounds,
            upper_bounds=init.upper_bounds,
        )
        return problem, init

    return factory
