"""Audio-reactive emphasis field visualizer."""

from motionfields.core.bands import DEFAULT_BANDS, Band
from motionfields.core.controls import ColorState, ControlState
from motionfields.engine import FieldVisualizer
from motionfields.io.presets import PresetExporter, load_preset
from motionfields.io.source import AnalyserSource
from motionfields.render.field import FieldConfig, FieldRenderer
from motionfields.scheduler import ManualScheduler

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_BANDS",
    "Band",
    "ColorState",
    "ControlState",
    "FieldVisualizer",
    "PresetExporter",
    "load_preset",
    "AnalyserSource",
    "FieldConfig",
    "FieldRenderer",
    "ManualScheduler",
]
