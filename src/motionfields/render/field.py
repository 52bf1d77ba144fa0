"""
Layered radial-gradient field renderer.

Maps per-band amplitude, position and tint to soft gradient blobs and
composites them over the background. Blend mode, opacity range and
radius ceiling all adapt to whether the background is light or dark.
"""

from dataclasses import dataclass, replace
from typing import Mapping, Optional, Sequence

import numpy as np

from motionfields.core.bands import DEFAULT_BANDS, Band
from motionfields.core.controls import ColorState, ControlState, clamp, clamp_unit
from motionfields.render.colorgrade import (
    composite,
    corrected_color,
    hex_to_rgb,
    is_light_background,
)
from motionfields.render.grain import tile_texture


# (position, relative opacity) along the radius
DARK_GRADIENT = ((0.0, 1.0), (0.5, 0.5), (1.0, 0.0))
LIGHT_GRADIENT = ((0.0, 1.0), (0.3, 0.8), (0.6, 0.4), (1.0, 0.0))


@dataclass
class FieldConfig:
    """Configuration for the field renderer."""

    width: int = 1920
    height: int = 1080

    # Geometry / opacity ranges (dark background)
    min_radius: float = 50.0
    max_radius: float = 500.0
    min_opacity: float = 0.03
    max_opacity: float = 0.7
    gamma: float = 0.6  # < 1 exaggerates low-mid amplitudes
    overlap_boost: float = 0.3

    # Light background adjustments
    light_radius_boost: float = 1.5
    light_min_opacity: float = 0.15
    light_max_opacity: float = 1.0
    light_saturation_boost: float = 3.0
    light_darken: float = 0.7
    light_max_lightness: float = 60.0

    # Grain
    grain_max_opacity: float = 0.5
    grain_tint_opacity: float = 0.08
    grain_shift: float = 40.0  # px of texture travel at full amplitude


@dataclass
class BandSprite:
    """Everything needed to draw one band this frame."""

    name: str
    x: float
    y: float
    radius: float
    opacity: float
    color: tuple[int, int, int]
    amplitude: float = 0.0


def field_scale_multiplier(field_scale: float) -> float:
    """Piecewise linear: 0 -> 0.3x, 50 -> 1x, 100 -> 2x."""
    field_scale = clamp(field_scale, 0.0, 100.0)
    if field_scale <= 50.0:
        return 0.3 + (field_scale / 50.0) * 0.7
    return 1.0 + ((field_scale - 50.0) / 50.0) * 1.0


class FieldRenderer:
    """
    Paints band sprites into an RGB frame.

    Holds a scratch grain layer that is cleared and refilled every frame
    and only exists to composite the grain pass in one go.
    """

    def __init__(self, config: Optional[FieldConfig] = None, grain_texture: Optional[np.ndarray] = None):
        self.cfg = replace(config) if config is not None else FieldConfig()
        self.grain_texture = grain_texture
        self._allocate()

    def _allocate(self):
        h, w = self.cfg.height, self.cfg.width
        self._grain_layer = np.zeros((h, w), dtype=np.float32)
        self._grain_coverage = np.zeros((h, w), dtype=np.float32)

    def resize(self, width: int, height: int):
        self.cfg.width = max(1, int(width))
        self.cfg.height = max(1, int(height))
        self._allocate()

    def blend_mode(self, colors: ColorState) -> str:
        return "multiply" if is_light_background(colors.background) else "screen"

    def ranges(self, light: bool, field_scale: float) -> tuple[float, float, float, float]:
        """(min_radius, max_radius, min_opacity, max_opacity) for this frame."""
        cfg = self.cfg
        scale = field_scale_multiplier(field_scale)
        max_radius = cfg.max_radius * (cfg.light_radius_boost if light else 1.0)
        return (
            cfg.min_radius * scale,
            max_radius * scale,
            cfg.light_min_opacity if light else cfg.min_opacity,
            cfg.light_max_opacity if light else cfg.max_opacity,
        )

    def layout(
        self,
        amplitudes: Mapping[str, float],
        positions: Mapping[str, tuple[float, float]],
        controls: ControlState,
        colors: ColorState,
        bands: Sequence[Band] = DEFAULT_BANDS,
    ) -> list[BandSprite]:
        """
        Compute radius, opacity, position and draw color for every band.

        Args:
            amplitudes: Final display amplitudes in [0, 1].
            positions: Render position (anchor + drift) per band, pixels.
            controls: Current control state (field scale, overlap).
            colors: Current colors; the background picks the mode.
            bands: Bands in draw order.
        """
        cfg = self.cfg
        light = is_light_background(colors.background)
        min_r, max_r, min_o, max_o = self.ranges(light, controls.field_scale)
        boost = controls.overlap / 100.0 * cfg.overlap_boost

        sprites = []
        for band in bands:
            amplitude = clamp_unit(amplitudes.get(band.name, 0.0))
            curve = amplitude ** cfg.gamma
            radius = min_r + (max_r - min_r) * curve
            opacity = min(max_o, min_o + (max_o - min_o) * curve + boost)

            color = corrected_color(
                colors.tint_for(band.color_key),
                light,
                saturation_multiplier=cfg.light_saturation_boost,
                darken_factor=cfg.light_darken,
                max_lightness=cfg.light_max_lightness,
            )
            x, y = positions.get(band.name, (cfg.width / 2, cfg.height / 2))
            sprites.append(BandSprite(
                name=band.name,
                x=float(x),
                y=float(y),
                radius=radius,
                opacity=opacity,
                color=color,
                amplitude=amplitude,
            ))
        return sprites

    def render(
        self,
        sprites: Sequence[BandSprite],
        colors: ColorState,
        grain: float = 0.0,
    ) -> np.ndarray:
        """
        Render one frame.

        Args:
            sprites: Output of ``layout``.
            colors: Current colors (background).
            grain: Grain intensity 0-100; ignored without a texture.

        Returns:
            (H, W, 3) uint8 RGB array.
        """
        cfg = self.cfg
        light = is_light_background(colors.background)
        mode = self.blend_mode(colors)
        stops = LIGHT_GRADIENT if light else DARK_GRADIENT

        bg = np.array(hex_to_rgb(colors.background), dtype=np.float32) / 255.0
        canvas = np.empty((cfg.height, cfg.width, 3), dtype=np.float32)
        canvas[:] = bg

        grain_on = grain > 0 and self.grain_texture is not None
        if grain_on:
            self._grain_layer.fill(0.0)
            self._grain_coverage.fill(0.0)

        for sprite in sprites:
            opacity = sprite.opacity
            if light:
                # solid center keeps the tint legible on pale surfaces
                opacity = max(opacity, 1.0)
            self._draw_sprite(canvas, sprite, opacity, stops, mode, grain if grain_on else 0.0)

        if grain_on:
            opacity = clamp(grain, 0.0, 100.0) / 100.0 * cfg.grain_max_opacity
            alpha = self._grain_coverage * opacity
            canvas = composite(canvas, self._grain_layer[..., np.newaxis], alpha, mode="soft-light")

        return (np.clip(canvas, 0.0, 1.0) * 255 + 0.5).astype(np.uint8)

    def _bounds(self, sprite: BandSprite) -> Optional[tuple[int, int, int, int]]:
        h, w = self.cfg.height, self.cfg.width
        top = max(0, int(np.floor(sprite.y - sprite.radius)))
        bottom = min(h, int(np.ceil(sprite.y + sprite.radius)) + 1)
        left = max(0, int(np.floor(sprite.x - sprite.radius)))
        right = min(w, int(np.ceil(sprite.x + sprite.radius)) + 1)
        if top >= bottom or left >= right:
            return None
        return top, bottom, left, right

    def _draw_sprite(
        self,
        canvas: np.ndarray,
        sprite: BandSprite,
        opacity: float,
        stops: tuple[tuple[float, float], ...],
        mode: str,
        grain: float,
    ):
        if sprite.radius <= 0 or opacity <= 0:
            return
        bounds = self._bounds(sprite)
        if bounds is None:
            return
        top, bottom, left, right = bounds

        # Distance from center, sampled at pixel centers, in radius units
        ys = np.arange(top, bottom, dtype=np.float32) + 0.5 - sprite.y
        xs = np.arange(left, right, dtype=np.float32) + 0.5 - sprite.x
        dist = np.sqrt(xs[np.newaxis, :] ** 2 + ys[:, np.newaxis] ** 2) / sprite.radius

        positions, weights = zip(*stops)
        alpha = np.interp(dist, positions, weights).astype(np.float32) * opacity
        inside = dist < 1.0
        alpha[~inside] = 0.0

        color = np.array(sprite.color, dtype=np.float32) / 255.0
        region = canvas[top:bottom, left:right]
        canvas[top:bottom, left:right] = composite(region, color, alpha, mode=mode)

        if grain > 0:
            self._draw_grain(canvas, sprite, color, inside, (top, bottom, left, right), grain)

    def _draw_grain(
        self,
        canvas: np.ndarray,
        sprite: BandSprite,
        color: np.ndarray,
        inside: np.ndarray,
        bounds: tuple[int, int, int, int],
        grain: float,
    ):
        cfg = self.cfg
        top, bottom, left, right = bounds
        shift = int(sprite.amplitude * cfg.grain_shift)
        tile = tile_texture(self.grain_texture, top, left, bottom - top, right - left, shift)

        layer = self._grain_layer[top:bottom, left:right]
        coverage = self._grain_coverage[top:bottom, left:right]
        layer[inside] = tile[inside]
        coverage[inside] = 1.0

        # Faint tint so grain picks up the band color
        tint = inside.astype(np.float32) * (grain / 100.0 * cfg.grain_tint_opacity)
        region = canvas[top:bottom, left:right]
        canvas[top:bottom, left:right] = region + tint[..., np.newaxis] * (color - region)
