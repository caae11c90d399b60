"""
Spectral Surface

A dense rectangular (nI, nJ, nK) array of float64 values with elementwise
arithmetic. Every grid-shaped quantity in the engine (raw data, varmaps,
weights, phase maps, model surfaces) is carried as a SpectralSurface.

Index order is (i, j, k): i runs along X, j along Y and k along Z.
Two-dimensional inputs are promoted to nK = 1.
"""

from typing import Tuple, Union
import numpy as np


Operand = Union['SpectralSurface', float, int, np.ndarray]


class SpectralSurface:
    """
    A dense 3-D array with elementwise arithmetic.

    Arithmetic with another surface requires identical shapes; arithmetic
    with a scalar is broadcast. All operations return new surfaces.
    """

    __slots__ = ('_data',)

    # Make numpy defer to the reflected operators below.
    __array_ufunc__ = None

    def __init__(self, data: np.ndarray):
        data = np.asarray(data, dtype=np.float64)
        if data.ndim == 2:
            data = data[:, :, np.newaxis]
        if data.ndim != 3:
            raise ValueError(
                f"SpectralSurface requires a 2-D or 3-D array, got {data.ndim}-D"
            )
        self._data = data

    @classmethod
    def filled(cls, ni: int, nj: int, nk: int = 1, value: float = 0.0) -> 'SpectralSurface':
        """Create a surface of the given dimensions filled with one value."""
        return cls(np.full((ni, nj, nk), value, dtype=np.float64))

    @classmethod
    def zeros_like(cls, other: 'SpectralSurface') -> 'SpectralSurface':
        return cls(np.zeros_like(other._data))

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self._data.shape

    @property
    def ni(self) -> int:
        return self._data.shape[0]

    @property
    def nj(self) -> int:
        return self._data.shape[1]

    @property
    def nk(self) -> int:
        return self._data.shape[2]

    @property
    def size(self) -> int:
        return self._data.size

    def to_numpy(self) -> np.ndarray:
        """Return the underlying array (not a copy)."""
        return self._data

    def copy(self) -> 'SpectralSurface':
        return SpectralSurface(self._data.copy())

    def __getitem__(self, index):
        return self._data[index]

    def __setitem__(self, index, value):
        self._data[index] = value

    def __len__(self) -> int:
        return self._data.size

    def __repr__(self) -> str:
        return f"SpectralSurface(shape={self.shape})"

    # Reductions

    def max(self) -> float:
        return float(np.max(self._data))

    def min(self) -> float:
        return float(np.min(self._data))

    def sum(self) -> float:
        return float(np.sum(self._data))

    def sqrt(self) -> 'SpectralSurface':
        return SpectralSurface(np.sqrt(self._data))

    # Origin conventions

    def shift_by_half(self) -> 'SpectralSurface':
        """Move the value at the centre cell to the grid corner (0, 0, 0)."""
        return SpectralSurface(np.fft.ifftshift(self._data))

    def unshift_by_half(self) -> 'SpectralSurface':
        """Move the value at the grid corner (0, 0, 0) to the centre cell."""
        return SpectralSurface(np.fft.fftshift(self._data))

    # Arithmetic

    def _operand(self, other: Operand):
        if isinstance(other, SpectralSurface):
            if other.shape != self.shape:
                raise ValueError(
                    f"Surface shapes differ: {self.shape} vs {other.shape}"
                )
            return other._data
        return other

    def __neg__(self) -> 'SpectralSurface':
        return SpectralSurface(-self._data)

    def __add__(self, other: Operand) -> 'SpectralSurface':
        return SpectralSurface(self._data + self._operand(other))

    def __radd__(self, other: Operand) -> 'SpectralSurface':
        return SpectralSurface(self._operand(other) + self._data)

    def __sub__(self, other: Operand) -> 'SpectralSurface':
        return SpectralSurface(self._data - self._operand(other))

    def __rsub__(self, other: Operand) -> 'SpectralSurface':
        return SpectralSurface(self._operand(other) - self._data)

    def __mul__(self, other: Operand) -> 'SpectralSurface':
        return SpectralSurface(self._data * self._operand(other))

    def __rmul__(self, other: Operand) -> 'SpectralSurface':
        return SpectralSurface(self._operand(other) * self._data)

    def __truediv__(self, other: Operand) -> 'SpectralSurface':
        return SpectralSurface(self._data / self._operand(other))

    def __rtruediv__(self, other: Operand) -> 'SpectralSurface':
        return SpectralSurface(self._operand(other) / self._data)

    def __iadd__(self, other: Operand) -> 'SpectralSurface':
        self._data += self._operand(other)
        return self

    def __eq__(self, other) -> bool:
        if not isinstance(other, SpectralSurface):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None
