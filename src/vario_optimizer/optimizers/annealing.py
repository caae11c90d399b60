"""
Simulated Annealing + Gradient Descent

Phase 1 (global search): simulated annealing from the centre of the
domain. The temperature follows a log-decay curve; a steeper curve comes
from a higher initial temperature:

    T(k) = T0 * exp(-k / 1000 * 1.5 * log10(T0))

A neighbour is drawn uniformly around the current state, each parameter
within +/- search_factor * (max - min) and resampled until inside the
domain. Lower energy is always accepted; higher energy is accepted with
probability (T - T_final) / (T0 - T_final). The lowest energy state ever
evaluated is the phase output.

Phase 2 (local refinement): gradient descent with a central-difference
gradient computed in parallel and a halving (backtracking) step size.
"""

import math
from typing import Callable, Optional, Tuple
import numpy as np

from ..config import AnnealingConfig
from ..parallel import WorkerPool, resolve_thread_count, round_robin_bins
from ..utils.logging import get_logger
from .base import OptimizationProblem, Optimizer, OptimizerResult


logger = get_logger(__name__)


class AnnealedGradientDescent(Optimizer):
    """
    Simulated annealing to get near a global minimum, then gradient descent.
    """

    name = "annealed_gradient_descent"

    def __init__(
        self,
        problem: OptimizationProblem,
        config: AnnealingConfig = None,
        seed: int = 0,
        trace=None,
        progress=None,
        descent_callback: Optional[Callable[[int, np.ndarray], None]] = None
    ):
        super().__init__(problem, seed, trace, progress)
        self.config = config or AnnealingConfig()
        self.config.validate(problem.m)
        self.descent_callback = descent_callback
        self._deltas = problem.upper_bounds - problem.lower_bounds

    def temperature(self, step: int) -> float:
        """Temperature of the annealing schedule at a step (0 = first)."""
        t0 = self.config.initial_temperature
        return t0 * math.exp(-step / 1000.0 * (1.5 * math.log10(t0)))

    def acceptance_probability(self, e_current: float, e_new: float, t: float) -> float:
        """Probability of moving to a state of energy e_new."""
        if e_new < e_current:
            return 1.0
        t0 = self.config.initial_temperature
        t_final = self.config.final_temperature
        return (t - t_final) / (t0 - t_final)

    def _neighbor(self, current: np.ndarray) -> np.ndarray:
        lower = self.problem.lower_bounds
        upper = self.problem.upper_bounds
        reach = self.config.search_factor * self._deltas
        neighbor = np.empty_like(current)
        for i in range(len(current)):
            lo = current[i] - reach[i]
            hi = current[i] + reach[i]
            while True:
                value = self.rng.uniform(lo, hi)
                if lower[i] <= value <= upper[i]:
                    break
            neighbor[i] = value
        return neighbor

    def anneal(self, start: np.ndarray) -> Tuple[np.ndarray, float]:
        """
        Phase 1: simulated annealing.

        Always runs the full step budget. A start outside the domain is
        clamped onto it first, since neighbours are only drawn near the
        current state.

        Returns:
            (vector, energy) of the lowest energy state found
        """
        cfg = self.config
        current = self.problem.clamp(np.array(start, dtype=np.float64))
        e_current = self.problem.objective(current)

        lowest = current.copy()
        e_lowest = e_current
        cooled = False

        for k in range(cfg.max_annealing_steps):
            t = self.temperature(k)
            if t < cfg.final_temperature and not cooled:
                # No early exit: the schedule keeps running on a cold system.
                logger.debug(f"Annealing temperature fell below T_final at step {k}.")
                cooled = True

            candidate = self._neighbor(current)
            e_new = self.problem.objective(candidate)

            if e_new < e_lowest:
                e_lowest = e_new
                lowest = candidate.copy()

            self.trace.append(e_current)

            if self.acceptance_probability(e_current, e_new, t) >= self.rng.random():
                current = candidate
                e_current = e_new

            self.progress.increment()

        logger.info("SA completed by number of steps.")
        logger.info(f"Using the state of lowest energy found ({e_lowest})")
        return lowest, e_lowest

    def gradient(self, vector: np.ndarray, pool: WorkerPool) -> np.ndarray:
        """Central-difference gradient, parameter indices split round-robin among workers."""
        problem = self.problem
        gradient = np.zeros(problem.n_parameters, dtype=np.float64)
        bins = round_robin_bins(problem.n_parameters, pool.n_threads)

        def make_task(indices):
            def task():
                problem.evaluator.numeric_gradient(
                    problem.geometry, problem.raw_data, vector, problem.m,
                    self.config.epsilon, indices=indices, out=gradient
                )
            return task

        pool.fork_join([make_task(indices) for indices in bins if indices])
        return gradient

    def descend(self, start: np.ndarray, pool: WorkerPool) -> Tuple[np.ndarray, float, int, bool]:
        """
        Phase 2: gradient descent with backtracking.

        Returns:
            (vector, objective value, iterations, converged)
        """
        cfg = self.config
        vw = self.problem.clamp(np.array(start, dtype=np.float64))
        current_f = self.problem.objective(vw)
        converged = False
        step = 0

        for step in range(1, cfg.max_descent_steps + 1):
            gradient = self.gradient(vw, pool)

            next_f = current_f
            alpha = cfg.initial_alpha
            improved = False
            for _ in range(cfg.max_alpha_reductions):
                candidate = self.problem.clamp(vw - gradient * alpha)
                candidate_f = self.problem.objective(candidate)
                if candidate_f < current_f:
                    vw = candidate
                    next_f = candidate_f
                    improved = True
                    break
                alpha /= 2.0
            if not improved:
                logger.warning("Reached maximum alpha reduction steps.")

            self.trace.append(current_f)
            self.progress.increment()
            if self.descent_callback is not None:
                self.descent_callback(step, vw.copy())

            if next_f == 0.0:
                current_f = next_f
                converged = True
                break
            ratio = current_f / next_f
            current_f = next_f
            if ratio < 1.0 + cfg.convergence_criterion:
                converged = True
                break
            logger.debug(f"F(k)/F(k+1) ratio: {ratio}")

        return vw, current_f, step, converged

    def optimize(self, start: np.ndarray) -> OptimizerResult:
        """
        Run both phases from a start vector.

        Args:
            start: Initial parameter vector (usually the domain centre)
        """
        n_threads = resolve_thread_count(self.config.n_threads, self.problem.n_parameters)
        annealed, _ = self.anneal(start)
        with WorkerPool(n_threads) as pool:
            x_best, f_best, iterations, converged = self.descend(annealed, pool)
        return OptimizerResult(
            x_best=x_best,
            f_best=f_best,
            trace=self.trace.values(),
            iterations=self.config.max_annealing_steps + iterations,
            converged=converged,
            reason="convergence" if converged else "max_steps",
        )
