"""
Tests for SpectralSurface and GridGeometry
"""

import numpy as np
import pytest

from vario_optimizer.core import GridGeometry, SpectralSurface, canonical_dumps, canonical_hash


class TestSpectralSurface:
    """Test the dense grid container."""

    def test_2d_input_promoted(self):
        """Test that 2-D arrays get a unit third dimension."""
        surface = SpectralSurface(np.ones((4, 6)))
        assert surface.shape == (4, 6, 1)
        assert surface.ni == 4
        assert surface.nj == 6
        assert surface.nk == 1
        assert surface.size == 24

    def test_rejects_1d(self):
        """Test that 1-D input is rejected."""
        with pytest.raises(ValueError):
            SpectralSurface(np.ones(5))

    def test_filled(self):
        """Test constant-filled construction."""
        surface = SpectralSurface.filled(3, 2, 1, 2.5)
        assert surface.shape == (3, 2, 1)
        assert surface.max() == 2.5
        assert surface.min() == 2.5
        assert surface.sum() == 15.0

    def test_arithmetic(self):
        """Test elementwise arithmetic with surfaces and scalars."""
        a = SpectralSurface.filled(2, 2, 1, 3.0)
        b = SpectralSurface.filled(2, 2, 1, 1.0)
        assert (a + b) == SpectralSurface.filled(2, 2, 1, 4.0)
        assert (a - b) == SpectralSurface.filled(2, 2, 1, 2.0)
        assert (a * 2) == SpectralSurface.filled(2, 2, 1, 6.0)
        assert (2 * a) == SpectralSurface.filled(2, 2, 1, 6.0)
        assert (a / 3) == b
        assert (6 / a) == SpectralSurface.filled(2, 2, 1, 2.0)
        assert (1 - a) == SpectralSurface.filled(2, 2, 1, -2.0)

    def test_ndarray_on_left(self):
        """Test that numpy arrays defer to the surface's reflected operators."""
        a = SpectralSurface.filled(2, 2, 1, 1.0)
        result = np.ones((2, 2, 1)) + a
        assert isinstance(result, SpectralSurface)
        assert result == SpectralSurface.filled(2, 2, 1, 2.0)

    def test_in_place_add(self):
        """Test that += modifies the surface itself."""
        a = SpectralSurface.filled(2, 2, 1, 1.0)
        same = a
        a += np.full((2, 2, 1), 2.0)
        assert same is a
        assert a.max() == 3.0

    def test_shape_mismatch(self):
        """Test that mixing shapes raises."""
        with pytest.raises(ValueError):
            SpectralSurface.filled(2, 2) + SpectralSurface.filled(3, 2)

    def test_shift_roundtrip(self):
        """Test that unshift undoes shift on odd and even grids."""
        for shape in [(4, 6, 1), (5, 7, 1)]:
            data = np.arange(np.prod(shape), dtype=float).reshape(shape)
            surface = SpectralSurface(data)
            assert surface.shift_by_half().unshift_by_half() == surface

    def test_shift_moves_centre_to_corner(self):
        """Test that the centre cell lands on (0, 0, 0)."""
        surface = SpectralSurface.filled(6, 4, 1, 0.0)
        surface[3, 2, 0] = 1.0
        shifted = surface.shift_by_half()
        assert shifted[0, 0, 0] == 1.0
        assert shifted.sum() == 1.0

    def test_copy_is_independent(self):
        """Test that copies do not share data."""
        a = SpectralSurface.filled(2, 2)
        b = a.copy()
        b[0, 0, 0] = 5.0
        assert a[0, 0, 0] == 0.0


class TestGridGeometry:
    """Test grid geometry."""

    def test_defaults(self):
        """Test a default 2-D grid."""
        g = GridGeometry(10, 8)
        assert g.shape == (10, 8, 1)
        assert g.cell_count == 80
        assert g.center_index == (5, 4, 0)

    def test_invalid(self):
        """Test rejection of bad dimensions and cell sizes."""
        with pytest.raises(ValueError):
            GridGeometry(0, 8)
        with pytest.raises(ValueError):
            GridGeometry(4, 4, cell_size_i=0.0)

    def test_diagonal(self):
        """Test bounding box diagonal."""
        g = GridGeometry(3, 4, cell_size_i=2.0)
        assert g.diagonal_length == pytest.approx(np.sqrt(36.0 + 16.0 + 1.0))

    def test_lag_offsets_zero_at_centre(self):
        """Test that lag offsets vanish at the centre cell."""
        g = GridGeometry(6, 5, cell_size_i=2.0)
        dx, dy, dz = g.lag_offsets()
        assert dx.shape == g.shape
        ci, cj, ck = g.center_index
        assert dx[ci, cj, ck] == 0.0
        assert dy[ci, cj, ck] == 0.0
        assert dx[ci + 1, cj, ck] == 2.0
        assert dy[ci, cj + 1, ck] == 1.0

    def test_distances(self):
        """Test distances to the centre."""
        g = GridGeometry(5, 5)
        d = g.distances_to_center()
        assert d[2, 2, 0] == 0.0
        assert d[0, 2, 0] == 2.0
        assert d[0, 0, 0] == pytest.approx(np.sqrt(8.0))

    def test_cell_location(self):
        """Test location of cell centres."""
        g = GridGeometry(4, 4, cell_size_i=2.0, origin_x=10.0)
        assert g.cell_location(1, 2, 0) == (12.0, 2.0, 0.0)
        assert g.center == (14.0, 2.0, 0.0)


class TestCanonicalJson:
    """Test canonical serialization."""

    def test_sorted_and_compact(self):
        """Test key order and separators."""
        assert canonical_dumps({"b": 1, "a": 2}) == '{"a":2,"b":1}'

    def test_numpy_values(self):
        """Test that numpy arrays and scalars serialize."""
        assert canonical_dumps({"x": np.array([1.0, 2.0]), "y": np.float64(0.5)}) == \
            '{"x":[1.0,2.0],"y":0.5}'

    def test_hash_stable(self):
        """Test that equal objects hash equally."""
        assert canonical_hash({"a": 1, "b": [1, 2]}) == canonical_hash({"b": [1, 2], "a": 1})
        assert len(canonical_hash({})) == 64
