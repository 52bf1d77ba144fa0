"""
CLI entry point for the emphasis field visualizer.

Usage:
    motionfields <audio_file> [options]             # live window
    motionfields <audio_file> -o out.mp4 [options]  # offline render
    python -m motionfields <audio_file> [options]
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from motionfields.core.controls import ControlState
from motionfields.engine import FieldVisualizer
from motionfields.io.presets import PresetExporter, load_preset
from motionfields.render.grain import generate_grain_texture, load_grain_texture
from motionfields.render_video import render_video

# (flag, preset key, help)
_CONTROL_FLAGS = [
    ("--attack", "attack", "Rise smoothing 0-100"),
    ("--decay", "decay", "Fall smoothing 0-100"),
    ("--inertia", "inertia", "Extra smoothing both ways 0-100"),
    ("--drift", "drift", "Wander radius 0-100"),
    ("--field-scale", "fieldScale", "Gradient size 0-100"),
    ("--overlap", "overlap", "Blob overlap boost 0-100"),
    ("--anchor", "anchor", "Pull back toward anchors 0-100"),
    ("--grain", "grain", "Film grain strength 0-100"),
    ("--low-emphasis", "lowEmphasis", "Bass and lower-mid gain 0-100"),
    ("--mid-emphasis", "midEmphasis", "Mid gain 0-100"),
    ("--high-emphasis", "highEmphasis", "Upper-mid and treble gain 0-100"),
    ("--compression", "compression", "Squash amplitudes toward 0.5, 0-100"),
]

_COLOR_FLAGS = [
    ("--background", "background", "Background color (#rrggbb)"),
    ("--low-color", "lowEmphasis", "Low emphasis color (#rrggbb)"),
    ("--mid-color", "midEmphasis", "Mid emphasis color (#rrggbb)"),
    ("--high-color", "highEmphasis", "High emphasis color (#rrggbb)"),
]


def _dest(flag: str) -> str:
    return flag.lstrip("-").replace("-", "_")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="motionfields",
        description="Audio-reactive emphasis field visualizer",
    )

    parser.add_argument(
        "audio",
        type=Path,
        help="Input audio file (wav, mp3, flac)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Render to this MP4 instead of opening a live window",
    )

    # Canvas
    parser.add_argument("--width", type=int, default=1280, help="Canvas width (default: 1280)")
    parser.add_argument("--height", type=int, default=720, help="Canvas height (default: 720)")
    parser.add_argument("-f", "--fps", type=int, default=60, help="Frames per second (default: 60)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for positions and drift")

    # Controls
    controls = parser.add_argument_group("controls")
    defaults = ControlState().to_dict()
    for flag, key, help_text in _CONTROL_FLAGS:
        controls.add_argument(
            flag, type=float, default=None,
            help=f"{help_text} (default: {defaults[key]:g})",
        )

    # Colors
    colors = parser.add_argument_group("colors")
    for flag, _, help_text in _COLOR_FLAGS:
        colors.add_argument(flag, type=str, default=None, help=help_text)
    colors.add_argument(
        "--harmonious", action="store_true",
        help="Start from a generated harmonious palette",
    )

    # Presets
    parser.add_argument("--preset", type=Path, default=None, help="Load a preset JSON file")
    parser.add_argument(
        "--save-preset", type=Path, default=None,
        help="Write the resolved settings to a preset JSON file",
    )

    # Grain
    parser.add_argument(
        "--grain-texture", type=Path, default=None,
        help="Grayscale image tiled as grain (default: procedural)",
    )

    # Offline only
    parser.add_argument(
        "--max-duration", type=float, default=None,
        help="Limit output to N seconds",
    )
    parser.add_argument(
        "-q", "--quality", type=str, default="medium",
        choices=["high", "medium", "fast"],
        help="Encoding quality (default: medium)",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def collect_overrides(args: argparse.Namespace) -> tuple[dict, dict]:
    """Control and color values given on the command line."""
    controls = {}
    for flag, key, _ in _CONTROL_FLAGS:
        value = getattr(args, _dest(flag))
        if value is not None:
            controls[key] = value

    colors = {}
    for flag, key, _ in _COLOR_FLAGS:
        value = getattr(args, _dest(flag))
        if value is not None:
            colors[key] = value
    return controls, colors


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.fps < 1:
        parser.error("--fps must be at least 1")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        sys.exit(1)

    preset = None
    if args.preset is not None:
        try:
            preset = load_preset(args.preset)
        except (FileNotFoundError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    rng = np.random.default_rng(args.seed)
    if args.grain_texture is not None:
        try:
            grain_texture = load_grain_texture(args.grain_texture)
        except (FileNotFoundError, OSError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        grain_texture = generate_grain_texture(rng=rng)

    controls, colors = collect_overrides(args)

    def engine_factory(**kwargs) -> FieldVisualizer:
        engine = FieldVisualizer(seed=args.seed, grain_texture=grain_texture, **kwargs)
        configure_engine(engine, preset, controls, colors, harmonious=args.harmonious)
        if args.save_preset is not None:
            save_preset(engine, args.save_preset)
        return engine

    if args.output is None:
        from motionfields.live import run_live

        run_live(args.audio, width=args.width, height=args.height, fps=args.fps, engine_factory=engine_factory)
        return

    try:
        render_video(
            audio_path=args.audio,
            output_path=args.output,
            width=args.width,
            height=args.height,
            fps=args.fps,
            engine_factory=engine_factory,
            max_duration=args.max_duration,
            quality=args.quality,
        )
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def configure_engine(engine, preset=None, controls=None, colors=None, harmonious=False):
    """Apply settings in order: generated palette, preset, then explicit overrides."""
    if harmonious:
        engine.generate_harmonious_colors()
    if preset:
        engine.apply_preset(preset)
    if controls:
        engine.set_control_params(controls)
    if colors:
        engine.set_colors(colors)


def save_preset(engine, path: Path) -> Path:
    exporter = PresetExporter()
    preset = exporter.build_preset(
        engine.controls,
        engine.colors,
        engine.get_anchor_positions("normalized"),
        anchor_space="normalized",
    )
    return exporter.export(preset, path)


if __name__ == "__main__":
    main()
