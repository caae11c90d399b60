"""
Line Search with Restarts

The modified line search of Grosan and Abraham (2009), "A Novel Global
Optimization Technique for High Dimensional Functions".

A set of starting points is drawn inside the search box. At step k
(first step is 1) every point moves along a random direction:

    x' = clamp(x + p * delta * alpha(k)),   alpha(k) = 2 + 3 / 2^(k^2 + 1)

with p uniform in [-1, 1] per parameter and delta the domain width of the
parameter kind. A move is kept only if it improves the point. After each
restart the sign of the derivative at the best solution pulls one side of
the search box onto the best solution, shrinking the box around the
suspected optimum.

The whole random walk of a restart is drawn before the workers start, so
the walk does not depend on the number of threads or their scheduling.
"""

import math
import threading
import numpy as np

from ..config import LineSearchConfig
from ..domain import random_vector
from ..parallel import WorkerPool, generate_sub_ranges, resolve_thread_count
from ..utils.logging import get_logger
from .base import OptimizationProblem, Optimizer, OptimizerResult


logger = get_logger(__name__)


def step_factor(k: int) -> float:
    """alpha(k) of the line search, k starting at 1."""
    return 2.0 + math.ldexp(3.0, -(k * k + 1))


class RestartedLineSearch(Optimizer):
    """Parallel line search over a set of points, restarted in a shrinking box."""

    name = "restarted_line_search"

    def __init__(
        self,
        problem: OptimizationProblem,
        config: LineSearchConfig = None,
        seed: int = 0,
        trace=None,
        progress=None
    ):
        super().__init__(problem, seed, trace, progress)
        self.config = config or LineSearchConfig()
        self.config.validate(problem.m)
        self._best_lock = threading.Lock()
        self._best_x = None
        self._best_f = float('inf')
        self.lower_bounds = problem.lower_bounds.copy()
        self.upper_bounds = problem.upper_bounds.copy()

    def _offer(self, x: np.ndarray, f: float):
        """Compare-and-update of the global best."""
        with self._best_lock:
            if f < self._best_f:
                self._best_f = f
                self._best_x = x.copy()

    def _move_points(self, first, last, k, points, values, rand_sequence, deltas):
        alpha = step_factor(k)
        for i in range(first, last + 1):
            p = -1.0 + rand_sequence[k - 1, i] * 2.0
            candidate = np.clip(
                points[i] + p * deltas * alpha,
                self.lower_bounds,
                self.upper_bounds
            )
            f_candidate = self.problem.objective(candidate)
            if f_candidate < values[i]:
                points[i] = candidate
                values[i] = f_candidate
                self._offer(candidate, f_candidate)
            self.progress.increment()

    def _evaluate_points(self, first, last, points, values):
        for i in range(first, last + 1):
            values[i] = self.problem.objective(points[i])
            self._offer(points[i], values[i])

    def _shrink_bounds(self):
        """Pull one side of the box onto the best solution, per parameter."""
        problem = self.problem
        for i in range(problem.n_parameters):
            derivative = problem.evaluator.partial_derivative(
                problem.geometry, problem.raw_data, self._best_x, problem.m,
                i, self.config.epsilon
            )
            if derivative > 0:
                self.upper_bounds[i] = self._best_x[i]
            elif derivative < 0:
                self.lower_bounds[i] = self._best_x[i]

    def optimize(self) -> OptimizerResult:
        cfg = self.config
        problem = self.problem
        n_params = problem.n_parameters
        n_points = cfg.n_starting_points
        deltas = problem.domain.deltas(problem.m)

        n_threads = resolve_thread_count(cfg.n_threads, n_points)
        ranges = generate_sub_ranges(0, n_points - 1, n_threads)

        with WorkerPool(len(ranges)) as pool:
            for restart in range(cfg.n_restarts):
                points = np.array([
                    random_vector(self.rng, self.lower_bounds, self.upper_bounds)
                    for _ in range(n_points)
                ])
                values = np.full(n_points, np.inf)
                # Indexed [step - 1, point, parameter].
                rand_sequence = self.rng.random((cfg.max_steps, n_points, n_params))

                pool.fork_join([
                    (lambda first=first, last=last:
                        self._evaluate_points(first, last, points, values))
                    for first, last in ranges
                ])

                for k in range(1, cfg.max_steps + 1):
                    pool.fork_join([
                        (lambda first=first, last=last, k=k:
                            self._move_points(first, last, k, points, values,
                                              rand_sequence, deltas))
                        for first, last in ranges
                    ])
                    self.trace.append(self._best_f)

                self._shrink_bounds()
                logger.info(
                    f"Line search restart {restart + 1}/{cfg.n_restarts}: "
                    f"best objective {self._best_f}"
                )

        return OptimizerResult(
            x_best=self._best_x.copy(),
            f_best=self._best_f,
            trace=self.trace.values(),
            iterations=cfg.n_restarts * cfg.max_steps,
            converged=False,
            reason="max_steps",
        )
