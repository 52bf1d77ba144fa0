"""
Offline video rendering.

Steps the engine at a fixed frame rate against an analyser source that
is seeked to each frame's timestamp, and pipes the frames into ffmpeg.
"""

import sys
import time
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional

import numpy as np

from motionfields.engine import FieldVisualizer
from motionfields.io.source import AnalyserSource
from motionfields.render.encoder import encode_video


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  frame {current}/{total}", flush=True)


def iter_frames(
    engine: FieldVisualizer,
    source: AnalyserSource,
    n_frames: int,
    fps: int,
) -> Iterator[np.ndarray]:
    """
    Yield ``n_frames`` frames with a fixed ``1 / fps`` time step.

    The source is resumed and positioned at each frame time before the
    engine ticks, so output is independent of wall-clock speed.
    """
    dt = 1.0 / fps
    source.resume()
    for i in range(n_frames):
        source.seek(i * dt)
        yield engine.tick(dt)


def render_video(
    audio_path: Path,
    output_path: Path,
    width: int = 1280,
    height: int = 720,
    fps: int = 60,
    seed: Optional[int] = None,
    controls: Optional[Mapping[str, float]] = None,
    colors: Optional[Mapping[str, str]] = None,
    preset: Optional[Mapping[str, Any]] = None,
    grain_texture: Optional[np.ndarray] = None,
    engine_factory: Optional[Callable[..., FieldVisualizer]] = None,
    max_duration: Optional[float] = None,
    quality: str = "medium",
) -> Path:
    """
    Render an emphasis-field video for an audio file.

    Args:
        audio_path: Input audio file.
        output_path: Output MP4 path.
        width: Video width in pixels.
        height: Video height in pixels.
        fps: Frames per second.
        seed: Seed for anchor placement and drift.
        controls: Control overrides applied after ``preset``.
        colors: Color overrides applied after ``preset``.
        preset: Preset dict as produced by ``PresetExporter``.
        grain_texture: Optional grain tile.
        engine_factory: Builds the engine from size and source keyword
            arguments; overrides ``seed`` and ``grain_texture``.
        max_duration: Limit output to N seconds.
        quality: Encoding quality ("high", "medium", "fast").

    Returns:
        Path to the written video.
    """
    audio_path = Path(audio_path)
    output_path = Path(output_path)

    print(f"Analyzing audio: {audio_path}")
    t0 = time.time()
    source = AnalyserSource.from_file(audio_path)
    print(f"  Duration: {source.duration:.1f}s")
    print(f"  Analysis took {time.time() - t0:.1f}s")

    duration = source.duration
    if max_duration is not None and max_duration < duration:
        duration = max_duration
        print(f"  Limiting to {max_duration}s")
    total_frames = max(1, int(duration * fps))

    if engine_factory is not None:
        engine = engine_factory(width=width, height=height, source=source)
    else:
        engine = FieldVisualizer(
            width=width,
            height=height,
            seed=seed,
            source=source,
            grain_texture=grain_texture,
        )
    if preset:
        engine.apply_preset(preset)
    if controls:
        engine.set_control_params(controls)
    if colors:
        engine.set_colors(colors)

    print(f"\nRendering {total_frames} frames at {width}x{height} @ {fps}fps")
    t1 = time.time()
    encode_video(
        iter_frames(engine, source, total_frames, fps),
        output_path,
        width=width,
        height=height,
        fps=fps,
        audio_path=audio_path,
        quality=quality,
        duration=duration,
        total_frames=total_frames,
        progress_callback=_progress_bar,
    )
    elapsed = time.time() - t1

    file_size_mb = output_path.stat().st_size / 1024 / 1024
    print(f"\nDone! {file_size_mb:.1f} MB")
    print(f"  Render+encode took {elapsed:.1f}s ({total_frames / max(elapsed, 0.01):.1f} fps)")
    print(f"  Output: {output_path}")
    return output_path
