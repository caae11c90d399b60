"""
Optimizers Module - Four interchangeable strategies

All strategies minimize the same objective over the same bounded
parameter box:
- AnnealedGradientDescent: simulated annealing, then gradient descent
- RestartedLineSearch: parallel line search with a shrinking box
- ParticleSwarm: particle swarm with bouncing bounds
- GeneticAlgorithm: tournament selection, single-point crossover
"""

from .base import OptimizationProblem, Optimizer, OptimizerResult
from .annealing import AnnealedGradientDescent
from .line_search import RestartedLineSearch, step_factor
from .swarm import ParticleSwarm, bounce
from .genetic import GeneticAlgorithm, Individual

__all__ = [
    'OptimizationProblem',
    'Optimizer',
    'OptimizerResult',
    'AnnealedGradientDescent',
    'RestartedLineSearch',
    'step_factor',
    'ParticleSwarm',
    'bounce',
    'GeneticAlgorithm',
    'Individual',
]
