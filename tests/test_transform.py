"""
Tests for the Frequency-Domain Transform Service
"""

import threading
import numpy as np
import pytest

from vario_optimizer import (
    GridGeometry,
    ObjectiveFunctionEvaluator,
    ObjectiveType,
    SpectralSurface,
    TransformService,
    generate_model_surface,
)


class RecordingLock:
    """A mutex that records how many threads ever held it at once."""

    def __init__(self):
        self._lock = threading.Lock()
        self._count_lock = threading.Lock()
        self.acquisitions = 0
        self.active = 0
        self.max_active = 0

    def __enter__(self):
        self._lock.acquire()
        with self._count_lock:
            self.acquisitions += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        return self

    def __exit__(self, exc_type, exc, tb):
        with self._count_lock:
            self.active -= 1
        self._lock.release()


class TestTransformLock:
    """Test the single serialization point for FFT calls."""

    def test_services_share_process_lock(self):
        """Test that independent services use the same lock."""
        assert TransformService().lock is TransformService().lock

    def test_every_call_takes_the_lock(self):
        """Test that forward and backward both go through the lock."""
        lock = RecordingLock()
        service = TransformService(lock=lock)
        data = SpectralSurface(np.random.default_rng(0).random((8, 8)))
        service.autocovariance_map(data)
        service.reconstruct_from_surface(data, service.phase_map(data))
        assert service.transform_calls == 5
        assert lock.acquisitions == 5

    def test_one_transform_in_flight(self):
        """Test that concurrent evaluations never overlap inside the transform."""
        lock = RecordingLock()
        transform = TransformService(lock=lock)
        evaluator = ObjectiveFunctionEvaluator(ObjectiveType.FOURIER_INTEGRAL, transform)
        g = GridGeometry(16, 16)
        data = SpectralSurface(np.random.default_rng(1).standard_normal((16, 16)))
        vector = np.array([5.0, 0.5, 0.2, 1.0])

        def work():
            for _ in range(20):
                evaluator.evaluate(g, data, vector, 1)

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert lock.max_active == 1
        assert lock.acquisitions == transform.transform_calls
        # One phase map, then two transforms per evaluation
        assert transform.transform_calls == 1 + 4 * 20 * 2


class TestSpectralRecipes:
    """Test phase map, varmap and Fourier-Integral reconstruction."""

    def test_phase_map_shape_and_range(self):
        """Test that phases are angles of the input's spectrum."""
        data = SpectralSurface(np.random.default_rng(2).random((8, 6)))
        phases = TransformService().phase_map(data)
        assert phases.shape == (8, 6, 1)
        assert phases.max() <= np.pi
        assert phases.min() >= -np.pi

    def test_varmap_centre_is_variance(self):
        """Test that the zero-lag cell holds the variance of the data."""
        g = GridGeometry(10, 8)
        values = np.random.default_rng(4).standard_normal(g.shape) + 3.0
        varmap = TransformService().autocovariance_map(SpectralSurface(values))
        assert varmap.shape == g.shape
        assert varmap[g.center_index] == pytest.approx(np.var(values))
        assert varmap.max() == pytest.approx(varmap[g.center_index])

    def test_varmap_of_constant(self):
        """Test that a constant field has no covariance at any lag."""
        varmap = TransformService().autocovariance_map(SpectralSurface.filled(6, 6, 1, 2.0))
        np.testing.assert_allclose(varmap.to_numpy(), 0.0, atol=1e-12)

    def test_varmap_ignores_offset(self):
        """Test that adding a constant to the data leaves the varmap unchanged."""
        g = GridGeometry(12, 12)
        service = TransformService()
        values = np.random.default_rng(7).standard_normal(g.shape)
        plain = service.autocovariance_map(SpectralSurface(values))
        shifted = service.autocovariance_map(SpectralSurface(values + 10.0))
        np.testing.assert_allclose(shifted.to_numpy(), plain.to_numpy(), atol=1e-9)

    def test_reconstruction_recovers_field(self):
        """Test that a field's own varmap and phases give back its fluctuations."""
        g = GridGeometry(16, 16)
        service = TransformService()
        values = np.random.default_rng(5).standard_normal(g.shape)
        data = SpectralSurface(values)
        rebuilt = service.reconstruct_from_surface(
            service.autocovariance_map(data), service.phase_map(data)
        )
        np.testing.assert_allclose(rebuilt.to_numpy(), values - values.mean(), atol=1e-6)

    def test_reconstruction_is_real_and_shaped(self):
        """Test output shape of a model reconstruction."""
        g = GridGeometry(12, 10)
        service = TransformService()
        model = generate_model_surface(g, [4.0, 0.5, 0.3, 1.0], 1)
        phases = service.phase_map(SpectralSurface(np.random.default_rng(6).random(g.shape)))
        result = service.reconstruct_from_surface(model, phases)
        assert result.shape == g.shape
        assert np.all(np.isfinite(result.to_numpy()))

    def test_reconstruction_shape_mismatch(self):
        """Test that mismatched surfaces are rejected."""
        service = TransformService()
        with pytest.raises(ValueError):
            service.reconstruct_from_surface(
                SpectralSurface.filled(4, 4), SpectralSurface.filled(4, 5)
            )
