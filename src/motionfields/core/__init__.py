"""Core signal and motion modules."""

from motionfields.core.bands import DEFAULT_BANDS, Band
from motionfields.core.controls import ColorState, ControlState
from motionfields.core.drift import DriftEngine, DriftState, MotionMode
from motionfields.core.sampler import SpectrumSampler
from motionfields.core.shaper import apply_compression, apply_emphasis
from motionfields.core.smoother import TemporalSmoother

__all__ = [
    "DEFAULT_BANDS",
    "Band",
    "ColorState",
    "ControlState",
    "DriftEngine",
    "DriftState",
    "MotionMode",
    "SpectrumSampler",
    "TemporalSmoother",
    "apply_compression",
    "apply_emphasis",
]
