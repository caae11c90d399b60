"""
Genetic Algorithm

Individuals are parameter vectors (one gene per parameter); lower
objective value means fitter. Every generation:

1. refill the population with random individuals up to its target size
2. evaluate fitness in parallel over ranges of individuals
3. sort ascending by fitness and drop the excess worst individuals
4. select by binary tournament
5. pair the selected individuals at random; crossover at a fixed gene
   with a given probability (children join their parents in the next
   generation), otherwise the parents pass through
6. mutate every individual entering the next generation
"""

from dataclasses import dataclass
from typing import List, Tuple
import numpy as np

from ..config import GeneticConfig
from ..domain import random_vector
from ..parallel import WorkerPool, generate_sub_ranges, resolve_thread_count
from ..utils.logging import get_logger
from .base import OptimizationProblem, Optimizer, OptimizerResult


logger = get_logger(__name__)


@dataclass
class Individual:
    """A candidate solution and its fitness (objective value)."""
    parameters: np.ndarray
    f_value: float = float('inf')

    def copy(self) -> 'Individual':
        return Individual(self.parameters.copy(), self.f_value)

    def cross_over(self, other: 'Individual', point: int) -> Tuple['Individual', 'Individual']:
        """Single-point crossover: genes before `point` stay, the rest swap."""
        child1 = np.concatenate([self.parameters[:point], other.parameters[point:]])
        child2 = np.concatenate([other.parameters[:point], self.parameters[point:]])
        return Individual(child1), Individual(child2)

    def mutate(
        self,
        rng: np.random.Generator,
        mutation_rate: float,
        lower_bounds: np.ndarray,
        upper_bounds: np.ndarray
    ):
        """Redraw each gene within its bounds with probability mutation_rate / n_genes."""
        n_genes = len(self.parameters)
        probability = mutation_rate / n_genes
        for i in range(n_genes):
            if rng.random() < probability:
                self.parameters[i] = rng.uniform(lower_bounds[i], upper_bounds[i])
                self.f_value = float('inf')


class GeneticAlgorithm(Optimizer):
    """Generational GA with binary tournament selection and single-point crossover."""

    name = "genetic"

    def __init__(
        self,
        problem: OptimizationProblem,
        config: GeneticConfig = None,
        seed: int = 0,
        trace=None,
        progress=None
    ):
        super().__init__(problem, seed, trace, progress)
        self.config = config or GeneticConfig()
        self.config.validate(problem.m)
        self.crossover_point = self.config.resolved_crossover_point(problem.m)

    def _random_individual(self) -> Individual:
        return Individual(random_vector(
            self.rng, self.problem.lower_bounds, self.problem.upper_bounds
        ))

    def _evaluate(self, population: List[Individual], pool: WorkerPool):
        ranges = generate_sub_ranges(0, len(population) - 1, pool.n_threads)

        def evaluate_range(first, last):
            for i in range(first, last + 1):
                individual = population[i]
                individual.f_value = self.problem.objective(individual.parameters)

        pool.fork_join([
            (lambda first=first, last=last: evaluate_range(first, last))
            for first, last in ranges
        ])

    def _draw_two(self, size: int) -> Tuple[int, int]:
        first = int(self.rng.integers(size))
        second = first
        while second == first:
            second = int(self.rng.integers(size))
        return first, second

    def _tournament(self, population: List[Individual]) -> Individual:
        a, b = self._draw_two(len(population))
        winner = population[a] if population[a].f_value <= population[b].f_value else population[b]
        return winner.copy()

    def _next_generation(self, selection: List[Individual]) -> List[Individual]:
        cfg = self.config
        lower = self.problem.lower_bounds
        upper = self.problem.upper_bounds
        next_gen = []
        while selection:
            i1, i2 = self._draw_two(len(selection))
            parent1 = selection[i1]
            parent2 = selection[i2]
            for index in sorted((i1, i2), reverse=True):
                del selection[index]

            offspring = [parent1, parent2]
            if self.rng.random() < cfg.crossover_probability:
                child1, child2 = parent1.cross_over(parent2, self.crossover_point)
                offspring = [child1, child2, parent1, parent2]

            for individual in offspring:
                individual.mutate(self.rng, cfg.mutation_rate, lower, upper)
            next_gen.extend(offspring)
        return next_gen

    def optimize(self) -> OptimizerResult:
        cfg = self.config
        n_threads = resolve_thread_count(cfg.n_threads, cfg.population_size)
        population: List[Individual] = []

        with WorkerPool(n_threads) as pool:
            for generation in range(cfg.max_generations):
                while len(population) < cfg.population_size:
                    population.append(self._random_individual())

                self._evaluate(population, pool)
                population.sort(key=lambda individual: individual.f_value)
                self.trace.append(population[0].f_value)
                del population[cfg.population_size:]

                selection = [self._tournament(population) for _ in range(cfg.selection_size)]
                population = self._next_generation(selection)
                self.progress.increment()

            self._evaluate(population, pool)

        population.sort(key=lambda individual: individual.f_value)
        best = population[0]
        logger.info(f"Genetic algorithm finished: best objective {best.f_value}")
        return OptimizerResult(
            x_best=best.parameters.copy(),
            f_best=best.f_value,
            trace=self.trace.values(),
            iterations=cfg.max_generations,
            converged=False,
            reason="max_generations",
        )
