"""
The audio-reactive field engine.

Owns every piece of per-instance state (smoothing, drift, anchors,
controls, colors) and runs the frame pipeline:

    source.analyze() -> emphasis -> smoothing -> compression
    drift.step()      -> anchor + offset
    renderer          -> RGB frame

Hosts talk to it only through plain setter calls, which take effect on
the next tick.
"""

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional, Sequence, Union

import numpy as np

from motionfields.core.bands import DEFAULT_BANDS, EMPHASIS_GROUPS, Band, bands_in_group
from motionfields.core.controls import ColorState, ControlState, clamp, clamp_unit
from motionfields.core.drift import DriftEngine
from motionfields.core.shaper import compress_bands, emphasize_bands
from motionfields.core.smoother import MAX_DELTA_TIME, TemporalSmoother
from motionfields.render.colorgrade import generate_harmonious_colors
from motionfields.render.field import BandSprite, FieldConfig, FieldRenderer
from motionfields.scheduler import FrameScheduler, ManualScheduler

logger = logging.getLogger(__name__)

Point = tuple[float, float]

SPAWN_PADDING = 150.0
ANCHOR_PADDING = 100.0
RENDER_PADDING = 50.0


class FieldVisualizer:
    """
    Audio-reactive emphasis field.

    Multiple instances are fully independent; pass ``seed`` for
    reproducible anchor placement and drift.
    """

    def __init__(
        self,
        width: int = 1280,
        height: int = 720,
        bands: Sequence[Band] = DEFAULT_BANDS,
        config: Optional[FieldConfig] = None,
        seed: Optional[int] = None,
        source: Any = None,
        scheduler: Optional[FrameScheduler] = None,
        clock: Callable[[], float] = time.perf_counter,
        grain_texture: Optional[np.ndarray] = None,
        on_frame: Optional[Callable[[np.ndarray], None]] = None,
    ):
        """
        Initialize the engine.

        Args:
            width: Canvas width in pixels.
            height: Canvas height in pixels.
            bands: Bands to visualize, in draw order.
            config: Renderer configuration. It is copied and the copy
                takes this engine's size.
            seed: Seed for anchor placement and drift randomness.
            source: Object with ``analyze() -> dict | None``.
            scheduler: Frame scheduler used by ``start()``.
            clock: Monotonic clock in seconds.
            grain_texture: Optional (H, W) grain tile in [0, 1].
            on_frame: Called with every rendered frame.
        """
        self.bands = tuple(bands)
        self.band_names = [band.name for band in self.bands]
        self.rng = np.random.default_rng(seed)

        cfg = replace(config) if config is not None else FieldConfig()
        cfg.width, cfg.height = max(1, int(width)), max(1, int(height))
        self.renderer = FieldRenderer(cfg, grain_texture=grain_texture)

        self.controls = ControlState()
        self.colors = ColorState()
        self.smoother = TemporalSmoother(self.band_names)
        self.drift = DriftEngine(self.band_names, rng=self.rng)

        self.source = source
        self.scheduler = scheduler or ManualScheduler()
        self.clock = clock
        self.on_frame = on_frame

        self.anchors: dict[str, Point] = {}
        self.amplitudes = {name: 0.0 for name in self.band_names}
        self.sprites: list[BandSprite] = []
        self.frame: Optional[np.ndarray] = None
        self.time = 0.0

        self.is_running = False
        self._frame_handle: Optional[int] = None
        self._last_time = self.clock()

        self.generate_random_positions()

    # ------------------------------------------------------------------
    # Viewport

    @property
    def width(self) -> int:
        return self.renderer.cfg.width

    @property
    def height(self) -> int:
        return self.renderer.cfg.height

    def resize(self, width: int, height: int):
        """Adopt new canvas dimensions and pull anchors back inside."""
        self.renderer.resize(width, height)
        self.anchors = {name: self._clamp_point(p, ANCHOR_PADDING) for name, p in self.anchors.items()}
        logger.debug("Resized to %dx%d", self.width, self.height)

    def _clamp_point(self, point: Point, padding: float) -> Point:
        x, y = point
        return (
            self._clamp_axis(x, self.width, padding),
            self._clamp_axis(y, self.height, padding),
        )

    @staticmethod
    def _clamp_axis(value: float, size: int, padding: float) -> float:
        if size <= 2 * padding:
            return size / 2
        return clamp(value, padding, size - padding)

    # ------------------------------------------------------------------
    # Control surface

    def set_control_params(self, params: Mapping[str, float]):
        self.controls.update(params)

    def set_control_colors(self, colors: Mapping[str, str]):
        """Merge emphasis tints (``lowEmphasis``, ``midEmphasis``, ``highEmphasis``)."""
        self.colors.update({k: v for k, v in colors.items() if k != "background"})

    def set_colors(self, colors: Mapping[str, str]):
        self.colors.update(colors)

    def set_color(self, key: str, hex_color: str):
        self.colors.update({key: hex_color})

    def generate_harmonious_colors(self) -> dict[str, str]:
        colors = generate_harmonious_colors(self.rng)
        self.colors.update(colors)
        logger.debug("Generated colors %s", colors)
        return colors

    def connect_source(self, source: Any):
        self.source = source

    def set_grain_texture(self, texture: Optional[np.ndarray]):
        self.renderer.grain_texture = texture

    # ------------------------------------------------------------------
    # Position surface

    def generate_random_positions(self, padding: float = SPAWN_PADDING):
        """Scatter anchors over the canvas and give each band a fresh heading."""
        self.drift.reset()
        for name in self.band_names:
            x = padding + self.rng.random() * (self.width - padding * 2)
            y = padding + self.rng.random() * (self.height - padding * 2)
            self.anchors[name] = self._clamp_point((float(x), float(y)), ANCHOR_PADDING)
            self.drift.kick(name)

    def _to_pixels(self, point: Sequence[float], space: str) -> Point:
        x, y = float(point[0]), float(point[1])
        if space == "normalized":
            return (clamp(x, 0.0, 100.0) / 100.0 * self.width, clamp(y, 0.0, 100.0) / 100.0 * self.height)
        if space != "pixels":
            raise ValueError(f"Unknown coordinate space: {space}")
        return (x, y)

    def set_anchor_positions(
        self,
        positions: Union[Mapping[str, Sequence[float]], Sequence[Sequence[float]]],
        space: str = "pixels",
    ):
        """
        Replace anchors for some or all bands.

        Args:
            positions: Band name -> (x, y), or a list in band order.
            space: "pixels" or "normalized" (0-100 on both axes).
        """
        if not isinstance(positions, Mapping):
            positions = dict(zip(self.band_names, positions))

        for name, point in positions.items():
            if name not in self.anchors:
                continue
            self.anchors[name] = self._clamp_point(self._to_pixels(point, space), ANCHOR_PADDING)
            # drifted position restarts at the new anchor
            state = self.drift.states[name]
            state.x = state.y = 0.0

    def get_anchor_positions(self, space: str = "pixels") -> dict[str, Point]:
        if space == "normalized":
            return {
                name: (x / self.width * 100.0, y / self.height * 100.0)
                for name, (x, y) in self.anchors.items()
            }
        return dict(self.anchors)

    def set_emphasis_positions(self, positions: Mapping[str, Sequence[float]]):
        """Place every band of an emphasis group at one normalized (0-100) point."""
        per_band = {}
        for group, point in positions.items():
            if group not in EMPHASIS_GROUPS:
                continue
            for band in bands_in_group(group, self.bands):
                per_band[band.name] = point
        self.set_anchor_positions(per_band, space="normalized")

    def render_positions(self) -> dict[str, Point]:
        """Anchor plus drift offset, kept on screen."""
        positions = {}
        for name in self.band_names:
            ax, ay = self.anchors[name]
            ox, oy = self.drift.offset(name)
            positions[name] = self._clamp_point((ax + ox, ay + oy), RENDER_PADDING)
        return positions

    # ------------------------------------------------------------------
    # Presets

    def apply_preset(self, preset: Mapping[str, Any]):
        """Apply a preset dict (see ``motionfields.io.presets``)."""
        if "controls" in preset:
            self.set_control_params(preset["controls"])
        if "colors" in preset:
            self.set_colors(preset["colors"])
        anchors = preset.get("anchors")
        if anchors:
            self.set_anchor_positions(anchors.get("positions", {}), space=anchors.get("space", "pixels"))

    # ------------------------------------------------------------------
    # Frame pipeline

    def _read_amplitudes(self) -> dict[str, float]:
        silence = {name: 0.0 for name in self.band_names}
        source = self.source
        if source is None or not getattr(source, "ready", True):
            return silence

        raw = source.analyze()
        if not raw:
            return silence

        # clamp_unit maps NaN and junk values to 0
        return {name: clamp_unit(raw.get(name, 0.0)) for name in self.band_names}

    def _elapsed(self) -> float:
        now = self.clock()
        dt = now - self._last_time
        self._last_time = now
        return dt

    def tick(self, dt: Optional[float] = None) -> np.ndarray:
        """
        Advance one frame and render it.

        Args:
            dt: Seconds since the previous frame; read from the clock if None.
                Clamped to [0, 0.1].

        Returns:
            (H, W, 3) uint8 RGB frame.
        """
        if dt is None:
            dt = self._elapsed()
        dt = clamp(dt, 0.0, MAX_DELTA_TIME)

        raw = self._read_amplitudes()
        emphasized = emphasize_bands(raw, self.controls, self.bands)
        smoothed = self.smoother.update(emphasized, self.controls, dt)
        self.amplitudes = compress_bands(smoothed, self.controls.compression)

        self.drift.step(self.controls, dt)

        self.sprites = self.renderer.layout(
            self.amplitudes,
            self.render_positions(),
            self.controls,
            self.colors,
            self.bands,
        )
        self.frame = self.renderer.render(self.sprites, self.colors, grain=self.controls.grain)
        self.time += dt

        if self.on_frame is not None:
            self.on_frame(self.frame)
        return self.frame

    def reset(self):
        """Forget smoothing and drift history."""
        self.smoother.reset()
        self.drift.reset()
        self.amplitudes = {name: 0.0 for name in self.band_names}
        self.time = 0.0

    # ------------------------------------------------------------------
    # Lifecycle

    def _request(self):
        self._frame_handle = self.scheduler.request_frame(self._on_animation_frame)

    def _on_animation_frame(self):
        self._frame_handle = None
        if not self.is_running:
            return
        self.tick()
        if self.is_running:
            self._request()

    def start(self):
        """Begin the tick loop. No-op when already running."""
        if self.is_running:
            return
        self.is_running = True
        self._last_time = self.clock()
        self._request()
        logger.info("Visualizer started")

    def stop(self):
        """Halt the tick loop. No-op when already stopped."""
        if not self.is_running and self._frame_handle is None:
            return
        self.is_running = False
        if self._frame_handle is not None:
            self.scheduler.cancel_frame(self._frame_handle)
            self._frame_handle = None
        logger.info("Visualizer stopped")

    def render_static(self) -> np.ndarray:
        """Paint exactly one frame without starting the loop."""
        return self.tick()
