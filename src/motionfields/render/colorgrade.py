"""
Color conversions, background-adaptive correction and blend modes.

Hue is expressed in degrees (0-360); saturation and lightness on a
0-100 scale, matching what a color picker shows.
"""

import colorsys
import math
from typing import Optional

import numpy as np

from motionfields.core.controls import normalize_hex


LIGHT_BACKGROUND_THRESHOLD = 50.0


def _round_channel(value: float) -> int:
    # Round half up; Python's round() is banker's rounding
    return int(math.floor(value * 255.0 + 0.5))


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """``#rrggbb`` -> (r, g, b) in 0-255. Malformed input is black."""
    value = normalize_hex(hex_color)
    return (int(value[1:3], 16), int(value[3:5], 16), int(value[5:7], 16))


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return "#" + "".join(f"{max(0, min(255, int(c))):02x}" for c in (r, g, b))


def rgb_to_hsl(r: int, g: int, b: int) -> tuple[float, float, float]:
    """(r, g, b) in 0-255 -> (h 0-360, s 0-100, l 0-100)."""
    h, l, s = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    return (h * 360.0, s * 100.0, l * 100.0)


def hsl_to_rgb(h: float, s: float, l: float) -> tuple[int, int, int]:
    """(h 0-360, s 0-100, l 0-100) -> (r, g, b) in 0-255."""
    hue = (h % 360.0) / 360.0
    sat = max(0.0, min(100.0, s)) / 100.0
    light = max(0.0, min(100.0, l)) / 100.0
    r, g, b = colorsys.hls_to_rgb(hue, light, sat)
    return (_round_channel(r), _round_channel(g), _round_channel(b))


def hsl_to_hex(h: float, s: float, l: float) -> str:
    return rgb_to_hex(*hsl_to_rgb(h, s, l))


def background_lightness(hex_color: str) -> float:
    """HSL lightness (0-100) of a hex color."""
    return rgb_to_hsl(*hex_to_rgb(hex_color))[2]


def is_light_background(hex_color: str) -> bool:
    return background_lightness(hex_color) > LIGHT_BACKGROUND_THRESHOLD


def boost_color_for_light_bg(
    hex_color: str,
    saturation_multiplier: float = 3.0,
    darken: bool = True,
    darken_factor: float = 0.7,
    max_lightness: float = 60.0,
) -> tuple[int, int, int]:
    """
    Saturate and darken a tint so it stays visible on a pale surface.

    Saturation is multiplied (capped at 100); lightness becomes
    ``min(max_lightness, l * darken_factor)``.
    """
    h, s, l = rgb_to_hsl(*hex_to_rgb(hex_color))
    s = min(100.0, s * saturation_multiplier)
    if darken:
        l = min(max_lightness, l * darken_factor)
    return hsl_to_rgb(h, s, l)


def corrected_color(hex_color: str, light_background: bool, **boost) -> tuple[int, int, int]:
    """Draw color for a tint; unchanged on dark backgrounds."""
    if light_background:
        return boost_color_for_light_bg(hex_color, **boost)
    return hex_to_rgb(hex_color)


def generate_harmonious_colors(rng: Optional[np.random.Generator] = None) -> dict[str, str]:
    """
    Build a background and three tints around a random base hue.

    The background sits opposite the base hue, dark and muted; the tints
    are spread at 0, +60 and +270 degrees.
    """
    rng = rng if rng is not None else np.random.default_rng()
    base_hue = float(rng.uniform(0.0, 360.0))

    return {
        "background": hsl_to_hex((base_hue + 180) % 360, 30, 15),
        "lowEmphasis": hsl_to_hex(base_hue, 80, 50),
        "midEmphasis": hsl_to_hex((base_hue + 60) % 360, 85, 60),
        "highEmphasis": hsl_to_hex((base_hue + 270) % 360, 75, 65),
    }


def screen(base: np.ndarray, blend: np.ndarray) -> np.ndarray:
    """Screen blend: 1 - (1-a)(1-b)."""
    return 1.0 - (1.0 - base) * (1.0 - blend)


def multiply(base: np.ndarray, blend: np.ndarray) -> np.ndarray:
    return base * blend


def soft_light(base: np.ndarray, blend: np.ndarray) -> np.ndarray:
    """
    W3C soft-light blend. Never darkens or lightens past the base by
    more than the blend's distance from mid-grey.
    """
    d = np.where(
        base <= 0.25,
        ((16.0 * base - 12.0) * base + 4.0) * base,
        np.sqrt(np.clip(base, 0.0, None)),
    )
    dark = base - (1.0 - 2.0 * blend) * base * (1.0 - base)
    light = base + (2.0 * blend - 1.0) * (d - base)
    return np.where(blend <= 0.5, dark, light)


BLEND_MODES = {
    "screen": screen,
    "multiply": multiply,
    "soft-light": soft_light,
}


def composite(
    base: np.ndarray,
    color: np.ndarray,
    alpha: np.ndarray,
    mode: str = "screen",
) -> np.ndarray:
    """
    Blend ``color`` over an opaque ``base`` with per-pixel ``alpha``.

    Args:
        base: (H, W, 3) float array in [0, 1].
        color: (3,) or (H, W, 3) float array in [0, 1].
        alpha: (H, W) coverage in [0, 1].
        mode: One of BLEND_MODES.

    Returns:
        (H, W, 3) float array in [0, 1].
    """
    blended = BLEND_MODES[mode](base, color)
    return base + alpha[..., np.newaxis] * (blended - base)
