"""
Per-band gain and dynamic-range shaping.

Chain order is fixed: emphasis is applied to raw amplitudes, the result
is smoothed over time, and compression acts on the smoothed value so it
never fights the attack/decay curve.
"""

from typing import Mapping, Sequence

from motionfields.core.bands import DEFAULT_BANDS, Band
from motionfields.core.controls import ControlState, clamp_percent, clamp_unit


def apply_emphasis(amplitude: float, emphasis: float) -> float:
    """
    Scale an amplitude by its emphasis control.

    0 mutes, 50 is neutral, 100 doubles. Result stays in [0, 1].
    """
    multiplier = clamp_percent(emphasis) / 50.0
    return clamp_unit(clamp_unit(amplitude) * multiplier)


def apply_compression(amplitude: float, compression: float) -> float:
    """
    Soft-knee pull toward the midpoint.

    0 is a no-op; 100 moves the value 80% of the way to 0.5.
    """
    amplitude = clamp_unit(amplitude)
    factor = clamp_percent(compression) / 100.0
    return amplitude + (0.5 - amplitude) * factor * 0.8


def emphasize_bands(
    raw: Mapping[str, float],
    controls: ControlState,
    bands: Sequence[Band] = DEFAULT_BANDS,
) -> dict[str, float]:
    """Apply each band's group emphasis. Missing bands count as silent."""
    return {
        band.name: apply_emphasis(raw.get(band.name, 0.0), controls.emphasis(band.group))
        for band in bands
    }


def compress_bands(values: Mapping[str, float], compression: float) -> dict[str, float]:
    return {name: apply_compression(v, compression) for name, v in values.items()}
