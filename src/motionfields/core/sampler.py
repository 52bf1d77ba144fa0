"""
Band sampling of byte-scaled frequency data.

Turns a snapshot of analyser bins (0-255 per bin) into one normalized
amplitude per named band by plain averaging.
"""

from typing import Optional, Sequence

import numpy as np

from motionfields.core.bands import DEFAULT_BANDS, Band


class SpectrumSampler:
    """
    Averages frequency bins into band amplitudes.

    The bin layout follows a real FFT of ``2 * buffer_length`` samples:
    bin ``i`` covers ``i * nyquist / buffer_length`` Hz.
    """

    def __init__(
        self,
        bands: Sequence[Band] = DEFAULT_BANDS,
        sample_rate: int = 44100,
        buffer_length: int = 1024,
    ):
        """
        Initialize the sampler.

        Args:
            bands: Bands to sample, in render order.
            sample_rate: Sample rate of the analysed signal.
            buffer_length: Number of frequency bins per snapshot.
        """
        self.bands = tuple(bands)
        self.sample_rate = sample_rate
        self.buffer_length = buffer_length

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2

    def frequency_to_bin(self, frequency: float) -> int:
        """Bin index containing ``frequency`` (Hz)."""
        if self.buffer_length <= 0 or self.sample_rate <= 0:
            return 0
        bin_width = self.nyquist / self.buffer_length
        return int(np.floor(frequency / bin_width))

    def average_amplitude(
        self,
        bins: np.ndarray,
        min_hz: float,
        max_hz: float,
    ) -> float:
        """
        Mean bin energy over ``[min_hz, max_hz)``, normalized to [0, 1].

        Ranges narrower than one bin report 0.
        """
        min_bin = max(0, self.frequency_to_bin(min_hz))
        max_bin = min(self.frequency_to_bin(max_hz), len(bins), self.buffer_length)

        if min_bin >= max_bin:
            return 0.0

        window = np.asarray(bins[min_bin:max_bin], dtype=np.float64)
        window = np.nan_to_num(window, nan=0.0)
        return float(np.clip(window.mean() / 255.0, 0.0, 1.0))

    def silence(self) -> dict[str, float]:
        return {band.name: 0.0 for band in self.bands}

    def sample(self, bins: Optional[np.ndarray]) -> dict[str, float]:
        """
        Amplitude per band for one bin snapshot.

        Args:
            bins: Byte-scaled bin energies, or None when nothing is connected.

        Returns:
            Dict of band name -> amplitude in [0, 1].
        """
        if bins is None or len(bins) == 0:
            return self.silence()

        return {
            band.name: self.average_amplitude(bins, band.min_hz, band.max_hz)
            for band in self.bands
        }
