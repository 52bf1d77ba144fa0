"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from motionfields.engine import FieldVisualizer
from motionfields.render.field import FieldConfig
from motionfields.scheduler import ManualScheduler

# Default sample rate for test audio
TEST_SR = 22050


class StaticSource:
    """Analyser stand-in that reports fixed band amplitudes."""

    def __init__(self, values=None, ready=True):
        self.values = dict(values or {})
        self.ready = ready
        self.calls = 0

    def analyze(self):
        self.calls += 1
        if not self.ready:
            return None
        return dict(self.values)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def pure_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a pure 440Hz sine wave (A4 note).

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 2.0
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    y = 0.5 * np.sin(2 * np.pi * 440.0 * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def temp_audio_file(tmp_path, pure_sine):
    """Create a temporary audio file for testing file I/O."""
    import soundfile as sf

    y, sr = pure_sine
    audio_path = tmp_path / "test_audio.wav"
    sf.write(audio_path, y, sr)
    return audio_path


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def static_source():
    return StaticSource()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def small_config() -> FieldConfig:
    """Small radii so test canvases render quickly."""
    return FieldConfig(min_radius=10.0, max_radius=80.0)


@pytest.fixture
def engine(small_config, static_source, clock):
    """400x300 engine with a manual scheduler and a fixed clock."""
    return FieldVisualizer(
        width=400,
        height=300,
        config=small_config,
        seed=7,
        source=static_source,
        scheduler=ManualScheduler(),
        clock=clock,
    )
