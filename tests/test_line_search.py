"""
Tests for the Line Search with Restarts
"""

import numpy as np
import pytest

from vario_optimizer import LineSearchConfig
from vario_optimizer.optimizers import RestartedLineSearch, step_factor


class TestStepFactor:
    """Test alpha(k)."""

    def test_values(self):
        """Test the first steps of the sequence."""
        assert step_factor(1) == 2.75
        assert step_factor(2) == 2.0 + 3.0 / 32.0
        assert step_factor(3) == 2.0 + 3.0 / 1024.0

    def test_tends_to_two(self):
        """Test the limit of the sequence."""
        assert step_factor(10) == pytest.approx(2.0)
        assert all(step_factor(k) > step_factor(k + 1) for k in range(1, 6))


class TestRestartedLineSearch:
    """Test the optimizer."""

    def test_single_point_independent_of_threads(self, make_problem):
        """Test that one point, one restart gives the same result on 1 or 4 threads."""
        results = []
        for n_threads in (1, 4):
            problem, _ = make_problem()
            cfg = LineSearchConfig(n_threads=n_threads, n_restarts=1,
                                   n_starting_points=1, max_steps=8)
            results.append(RestartedLineSearch(problem, cfg, seed=21).optimize())
        np.testing.assert_array_equal(results[0].x_best, results[1].x_best)
        assert results[0].f_best == results[1].f_best
        assert results[0].trace == results[1].trace

    def test_many_points_independent_of_threads(self, make_problem):
        """Test that pre-drawn walks make the point set thread-count independent."""
        results = []
        for n_threads in (1, 3):
            problem, _ = make_problem()
            cfg = LineSearchConfig(n_threads=n_threads, n_restarts=2,
                                   n_starting_points=6, max_steps=4)
            results.append(RestartedLineSearch(problem, cfg, seed=8).optimize())
        np.testing.assert_array_equal(results[0].x_best, results[1].x_best)
        assert results[0].trace == results[1].trace

    def test_trace_non_increasing(self, make_problem):
        """Test that the best value never regresses across steps and restarts."""
        problem, _ = make_problem()
        cfg = LineSearchConfig(n_threads=2, n_restarts=3, n_starting_points=4, max_steps=5)
        result = RestartedLineSearch(problem, cfg, seed=1).optimize()
        assert len(result.trace) == 15
        assert all(a >= b for a, b in zip(result.trace, result.trace[1:]))
        assert result.f_best == result.trace[-1]

    def test_result_inside_domain(self, make_problem):
        """Test that the best solution lies inside the unshrunk domain."""
        problem, _ = make_problem(m=2)
        cfg = LineSearchConfig(n_threads=2, n_restarts=2, n_starting_points=4, max_steps=4)
        result = RestartedLineSearch(problem, cfg, seed=2).optimize()
        assert problem.domain.contains(result.x_best)
        assert result.f_best == problem.objective(result.x_best)

    def test_problem_bounds_untouched(self, make_problem):
        """Test that shrinking works on copies of the bounds."""
        problem, init = make_problem()
        lower = problem.lower_bounds.copy()
        upper = problem.upper_bounds.copy()
        opt = RestartedLineSearch(problem, LineSearchConfig(n_restarts=2, max_steps=3), seed=3)
        opt.optimize()
        np.testing.assert_array_equal(problem.lower_bounds, lower)
        np.testing.assert_array_equal(problem.upper_bounds, upper)
        assert np.all(opt.lower_bounds >= lower)
        assert np.all(opt.upper_bounds <= upper)

    def test_shrunk_box_holds_best(self, make_problem):
        """Test that the shrunk box still contains the best solution."""
        problem, _ = make_problem()
        opt = RestartedLineSearch(problem, LineSearchConfig(n_restarts=1, max_steps=3), seed=4)
        result = opt.optimize()
        assert np.all(opt.lower_bounds <= result.x_best)
        assert np.all(opt.upper_bounds >= result.x_best)
