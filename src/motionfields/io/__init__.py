"""Host-side collaborators: audio sources and preset files."""

from motionfields.io.presets import PresetExporter, load_preset
from motionfields.io.source import AnalyserSource

__all__ = ["AnalyserSource", "PresetExporter", "load_preset"]
