"""
Tests for Particle Swarm Optimization
"""

import numpy as np
import pytest

from vario_optimizer import ObjectiveType, SwarmConfig
from vario_optimizer.optimizers import ParticleSwarm, bounce


class TestBounce:
    """Test reflection off the domain boundary."""

    def test_inside_unchanged(self):
        """Test that inside positions are left alone."""
        x = np.array([0.5, 2.0])
        np.testing.assert_array_equal(bounce(x, np.zeros(2), np.array([1.0, 3.0])), x)

    def test_reflects_overshoot(self):
        """Test mirroring past the upper and lower bounds."""
        lower = np.array([0.0, 0.0])
        upper = np.array([1.0, 1.0])
        np.testing.assert_allclose(bounce(np.array([1.25, -0.25]), lower, upper), [0.75, 0.25])

    def test_long_overshoot_folds_inside(self):
        """Test overshoots longer than the box width."""
        lower = np.array([0.0, 0.0, 0.0])
        upper = np.array([1.0, 1.0, 1.0])
        result = bounce(np.array([2.5, -3.25, 7.0]), lower, upper)
        np.testing.assert_allclose(result, [0.5, 0.75, 1.0])
        assert np.all(result >= lower)
        assert np.all(result <= upper)

    def test_zero_width(self):
        """Test a degenerate box."""
        assert bounce(np.array([4.0]), np.array([2.0]), np.array([2.0]))[0] == 2.0


class TestParticleSwarm:
    """Test the optimizer."""

    @pytest.mark.parametrize("objective_type", [
        ObjectiveType.SURFACE_DISTANCE, ObjectiveType.FOURIER_INTEGRAL
    ])
    def test_global_best_never_regresses(self, make_problem, objective_type):
        """Test that the per-iteration global best is non-increasing."""
        problem, _ = make_problem(objective_type=objective_type)
        cfg = SwarmConfig(n_threads=3, n_particles=8, max_steps=10)
        result = ParticleSwarm(problem, cfg, seed=12).optimize()
        assert len(result.trace) == 10
        assert all(a >= b for a, b in zip(result.trace, result.trace[1:]))
        assert result.f_best == result.trace[-1]

    def test_result_inside_domain(self, make_problem):
        """Test that the best particle lies inside the domain."""
        problem, _ = make_problem(m=2)
        cfg = SwarmConfig(n_threads=2, n_particles=6, max_steps=6)
        result = ParticleSwarm(problem, cfg, seed=13).optimize()
        assert problem.domain.contains(result.x_best)
        assert result.f_best == problem.objective(result.x_best)

    def test_independent_of_threads(self, make_problem):
        """Test that the swarm does not depend on the worker count."""
        results = []
        for n_threads in (1, 4):
            problem, _ = make_problem()
            cfg = SwarmConfig(n_threads=n_threads, n_particles=8, max_steps=5)
            results.append(ParticleSwarm(problem, cfg, seed=14).optimize())
        np.testing.assert_array_equal(results[0].x_best, results[1].x_best)
        assert results[0].trace == results[1].trace

    def test_progress_counts_moves(self, make_problem):
        """Test one progress tick per particle per step."""
        problem, _ = make_problem()
        opt = ParticleSwarm(problem, SwarmConfig(n_particles=5, max_steps=4), seed=15)
        opt.optimize()
        assert opt.progress.value == 20
