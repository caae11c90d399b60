"""
Frequency-Domain Transform Service

Wraps the FFT primitive behind a single process-wide serialization point.
The transform engine is treated as non-reentrant: at most one forward or
inverse transform is in flight at any time, whatever the number of
optimizer worker threads. The lock is held only for the transform call
itself, never for the arithmetic around it.

Conventions:
- Correlation maps are centred (h = 0 at the centre cell).
- The inverse transform is unnormalised and followed by an explicit
  rescale by the cell count.
"""

import threading
import numpy as np
from scipy import fft as sp_fft

from .core.surface import SpectralSurface


# One lock for the whole process: every TransformService shares it.
_TRANSFORM_LOCK = threading.Lock()


class TransformService:
    """
    Serialized access to forward/inverse FFTs plus the spectral recipes
    built on them (phase map, autocovariance map, Fourier-Integral
    reconstruction).
    """

    def __init__(self, lock: threading.Lock = None):
        self._lock = lock if lock is not None else _TRANSFORM_LOCK
        self.transform_calls = 0

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    def forward(self, data: np.ndarray) -> np.ndarray:
        """Forward n-dimensional FFT of a real array."""
        with self._lock:
            self.transform_calls += 1
            return sp_fft.fftn(data)

    def backward(self, spectrum: np.ndarray) -> np.ndarray:
        """Unnormalised inverse n-dimensional FFT (no 1/N factor)."""
        with self._lock:
            self.transform_calls += 1
            return sp_fft.ifftn(spectrum, norm="forward")

    def phase_map(self, raw_data: SpectralSurface) -> SpectralSurface:
        """
        Phase component of the input's frequency-domain decomposition.

        Args:
            raw_data: Input data surface

        Returns:
            Surface of phase angles in radians
        """
        spectrum = self.forward(raw_data.to_numpy())
        return SpectralSurface(np.angle(spectrum))

    def autocovariance_map(self, raw_data: SpectralSurface) -> SpectralSurface:
        """
        Experimental covariance map (varmap) through the power spectrum.

        The data mean is removed first, so the map holds covariances and not
        second moments. The autocovariance is the inverse transform of
        |FFT(x - mean)|^2, divided by the cell count once for the unnormalised
        inverse and once for the lag averaging, then centred so that h = 0
        sits on the centre cell.
        """
        n_cells = float(raw_data.size)
        values = raw_data.to_numpy()
        spectrum = self.forward(values - values.mean())
        power = np.abs(spectrum) ** 2
        covariance = self.backward(power).real / n_cells / n_cells
        return SpectralSurface(covariance).unshift_by_half()

    def reconstruct_from_surface(
        self,
        covariance_surface: SpectralSurface,
        phase_map: SpectralSurface
    ) -> SpectralSurface:
        """
        Fourier-Integral reconstruction of a data-domain field.

        The covariance surface is de-centred (h = 0 moved to the grid corner)
        and its amplitude spectrum, square-rooted, is combined with the
        supplied phase map before the inverse transform.

        Args:
            covariance_surface: Centred covariance surface
            phase_map: Phase map of the reference data (same shape)

        Returns:
            Reconstructed field, same shape as the inputs
        """
        if covariance_surface.shape != phase_map.shape:
            raise ValueError(
                f"Covariance surface {covariance_surface.shape} and phase map "
                f"{phase_map.shape} must have the same shape"
            )
        n_cells = float(covariance_surface.size)

        # The scaling by n_cells mirrors the division after the inverse transform.
        decentred = covariance_surface.shift_by_half() * n_cells

        spectrum = self.forward(decentred.to_numpy())
        spectral_density = np.abs(spectrum)
        amplitudes = np.sqrt(spectral_density)

        synthesized = amplitudes * np.exp(1j * phase_map.to_numpy())

        result = self.backward(synthesized).real
        return SpectralSurface(result / n_cells)
