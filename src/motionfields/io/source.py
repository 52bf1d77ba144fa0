"""
Audio source that behaves like a browser analyser node.

Loads a file with librosa, precomputes a Blackman-windowed STFT and
serves byte-scaled (0-255) magnitude snapshots at the current playback
position, with the same dB mapping and time smoothing an analyser node
applies. The visual engine only ever calls ``analyze()``.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import librosa
import numpy as np

from motionfields.core.bands import DEFAULT_BANDS, Band
from motionfields.core.sampler import SpectrumSampler

logger = logging.getLogger(__name__)


class AnalyserSource:
    """
    Byte-spectrum provider for one decoded audio signal.

    The source starts suspended: ``analyze()`` returns None until
    ``resume()`` is called, the same way an audio context has to be
    resumed after a user gesture.
    """

    def __init__(
        self,
        y: np.ndarray,
        sample_rate: int,
        fft_size: int = 2048,
        hop_length: int = 512,
        smoothing: float = 0.8,
        min_db: float = -100.0,
        max_db: float = -30.0,
        bands: Sequence[Band] = DEFAULT_BANDS,
    ):
        """
        Initialize the source.

        Args:
            y: Mono audio time series.
            sample_rate: Sample rate of ``y``.
            fft_size: FFT window size; ``fft_size // 2`` bins are exposed.
            hop_length: STFT hop in samples.
            smoothing: Time smoothing constant between successive reads (0-1).
            min_db: Level mapped to byte 0.
            max_db: Level mapped to byte 255.
            bands: Bands reported by ``analyze()``.
        """
        self.sample_rate = int(sample_rate)
        self.fft_size = fft_size
        self.hop_length = hop_length
        self.smoothing = float(np.clip(smoothing, 0.0, 1.0))
        self.min_db = min_db
        self.max_db = max_db
        self.buffer_length = fft_size // 2
        self.duration = len(y) / self.sample_rate if self.sample_rate else 0.0

        stft = librosa.stft(
            np.asarray(y, dtype=np.float32),
            n_fft=fft_size,
            hop_length=hop_length,
            window="blackman",
            center=True,
        )
        # Drop the Nyquist bin to match an analyser's frequencyBinCount
        self._magnitudes = (np.abs(stft[: self.buffer_length]) / fft_size).astype(np.float32)
        self._smoothed = np.zeros(self.buffer_length, dtype=np.float32)

        self.sampler = SpectrumSampler(bands, self.sample_rate, self.buffer_length)
        self.position = 0.0
        self.ready = False

    @classmethod
    def from_file(
        cls,
        audio_path: Union[str, Path],
        sr: Optional[int] = None,
        **kwargs,
    ) -> "AnalyserSource":
        """
        Load and analyse an audio file.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        audio_path = Path(audio_path)
        if not audio_path.exists():
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        y, sample_rate = librosa.load(audio_path, sr=sr, mono=True)
        logger.info(
            "Loaded %s: %.1fs at %dHz", audio_path.name, len(y) / sample_rate, sample_rate
        )
        return cls(y, sample_rate, **kwargs)

    @property
    def n_frames(self) -> int:
        return self._magnitudes.shape[1]

    def resume(self):
        """Mark the source as playing; ``analyze()`` starts reporting."""
        if not self.ready:
            logger.debug("Analyser source resumed")
        self.ready = True

    def suspend(self):
        self.ready = False

    def seek(self, seconds: float):
        self.position = float(np.clip(seconds, 0.0, self.duration))

    def reset(self):
        """Rewind and forget the smoothing history."""
        self.position = 0.0
        self._smoothed.fill(0.0)

    def _frame_index(self, seconds: float) -> int:
        frame = int(librosa.time_to_frames(seconds, sr=self.sample_rate, hop_length=self.hop_length))
        return int(np.clip(frame, 0, max(self.n_frames - 1, 0)))

    def _to_bytes(self, magnitude: np.ndarray) -> np.ndarray:
        db = 20.0 * np.log10(np.maximum(magnitude, 1e-12))
        scaled = 255.0 / (self.max_db - self.min_db) * (db - self.min_db)
        return np.clip(np.floor(scaled), 0, 255).astype(np.uint8)

    def bins_at(self, seconds: float) -> np.ndarray:
        """Unsmoothed byte spectrum at ``seconds``."""
        if self.n_frames == 0:
            return np.zeros(self.buffer_length, dtype=np.uint8)
        return self._to_bytes(self._magnitudes[:, self._frame_index(seconds)])

    def read_bins(self) -> np.ndarray:
        """Smoothed byte spectrum at the current position (advances the smoothing)."""
        if self.n_frames == 0:
            return np.zeros(self.buffer_length, dtype=np.uint8)
        current = self._magnitudes[:, self._frame_index(self.position)]
        self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * current
        return self._to_bytes(self._smoothed)

    def analyze(self) -> Optional[dict[str, float]]:
        """Band amplitudes at the current position, or None while suspended."""
        if not self.ready:
            return None
        return self.sampler.sample(self.read_bins())
