"""
Particle Swarm Optimization

Each particle is a parameter vector with a velocity. Per step and
particle, one pair of random numbers (r1, r2) scales the pull towards the
particle's own best position and towards the swarm's best position:

    v' = w * v + c1 * r1 * (pbest - p) + c2 * r2 * (gbest - p)
    p' = p + v'

Positions that leave the domain bounce back off the boundary by the
overshoot. A particle only moves if the new position improves it.
"""

import threading
import numpy as np

from ..config import SwarmConfig
from ..domain import random_vector
from ..parallel import WorkerPool, generate_sub_ranges, resolve_thread_count
from ..utils.logging import get_logger
from .base import OptimizationProblem, Optimizer, OptimizerResult


logger = get_logger(__name__)


def bounce(x: np.ndarray, lower: np.ndarray, upper: np.ndarray) -> np.ndarray:
    """
    Reflect positions back into [lower, upper].

    An overshoot past a bound is mirrored inside by the same amount; overshoots
    longer than the box width keep folding until the position is inside.
    """
    width = upper - lower
    period = 2.0 * width
    safe_period = np.where(period > 0.0, period, 1.0)
    y = np.mod(x - lower, safe_period)
    y = np.where(y > width, period - y, y)
    return np.where(width > 0.0, lower + y, lower)


class ParticleSwarm(Optimizer):
    """Particle swarm with per-particle random pulls and bouncing bounds."""

    name = "particle_swarm"

    def __init__(
        self,
        problem: OptimizationProblem,
        config: SwarmConfig = None,
        seed: int = 0,
        trace=None,
        progress=None
    ):
        super().__init__(problem, seed, trace, progress)
        self.config = config or SwarmConfig()
        self.config.validate(problem.m)
        self._gbest_lock = threading.Lock()
        self._gbest_x = None
        self._gbest_f = float('inf')

    def _offer_global(self, x: np.ndarray, f: float):
        with self._gbest_lock:
            if f < self._gbest_f:
                self._gbest_f = f
                self._gbest_x = x.copy()

    def _evaluate_particles(self, first, last, positions, values):
        for i in range(first, last + 1):
            values[i] = self.problem.objective(positions[i])

    def _move_particles(self, first, last, random_pairs, gbest,
                        positions, velocities, values, pbests, f_pbests):
        cfg = self.config
        lower = self.problem.lower_bounds
        upper = self.problem.upper_bounds
        for i in range(first, last + 1):
            r1, r2 = random_pairs[i]
            p = positions[i]
            candidate_velocity = (
                cfg.inertia_weight * velocities[i] +
                cfg.acceleration_constant_1 * r1 * (pbests[i] - p) +
                cfg.acceleration_constant_2 * r2 * (gbest - p)
            )
            candidate = bounce(p + candidate_velocity, lower, upper)

            f_candidate = self.problem.objective(candidate)

            if f_candidate < values[i]:
                positions[i] = candidate
                velocities[i] = candidate_velocity
                values[i] = f_candidate

            if f_candidate < f_pbests[i]:
                f_pbests[i] = f_candidate
                pbests[i] = candidate

            self._offer_global(candidate, f_candidate)
            self.progress.increment()

    def optimize(self) -> OptimizerResult:
        cfg = self.config
        problem = self.problem
        n = cfg.n_particles

        positions = np.array([
            random_vector(self.rng, problem.lower_bounds, problem.upper_bounds)
            for _ in range(n)
        ])
        velocities = np.zeros_like(positions)
        pbests = positions.copy()
        values = np.full(n, np.inf)

        n_threads = resolve_thread_count(cfg.n_threads, n)
        ranges = generate_sub_ranges(0, n - 1, n_threads)

        with WorkerPool(len(ranges)) as pool:
            pool.fork_join([
                (lambda first=first, last=last:
                    self._evaluate_particles(first, last, positions, values))
                for first, last in ranges
            ])
            f_pbests = values.copy()
            i_best = int(np.argmin(values))
            self._gbest_x = positions[i_best].copy()
            self._gbest_f = float(values[i_best])

            for step in range(cfg.max_steps):
                # One (r1, r2) pair per particle, drawn before the workers start.
                random_pairs = self.rng.random((n, 2))
                gbest = self._gbest_x.copy()
                pool.fork_join([
                    (lambda first=first, last=last:
                        self._move_particles(first, last, random_pairs, gbest,
                                             positions, velocities, values,
                                             pbests, f_pbests))
                    for first, last in ranges
                ])
                self.trace.append(self._gbest_f)

        logger.info(f"Particle swarm finished: best objective {self._gbest_f}")
        return OptimizerResult(
            x_best=self._gbest_x.copy(),
            f_best=self._gbest_f,
            trace=self.trace.values(),
            iterations=cfg.max_steps,
            converged=False,
            reason="max_steps",
        )
