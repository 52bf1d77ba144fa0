"""
Preset serialization.

A preset is a JSON document with three optional sections:

    {
      "metadata": {"version": "1.0", "schema_version": "1.0"},
      "controls": {"attack": 0, "fieldScale": 40, ...},
      "colors": {"background": "#1a1a2e", "lowEmphasis": "#e94560", ...},
      "anchors": {"space": "normalized", "positions": {"bass": [30, 40], ...}}
    }

Unknown keys are ignored when applied; values are clamped then.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from motionfields.core.controls import ColorState, ControlState

logger = logging.getLogger(__name__)

SECTIONS = ("controls", "colors", "anchors")
ANCHOR_SPACES = ("pixels", "normalized")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class PresetMetadata:
    """Metadata header for a preset file."""

    version: str = "1.0"
    schema_version: str = "1.0"


class PresetExporter:
    """Builds and writes preset documents."""

    def __init__(self, precision: int = 2):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
        """
        self.precision = precision

    def _round(self, value: float) -> float:
        return round(float(value), self.precision)

    def build_preset(
        self,
        controls: Optional[ControlState] = None,
        colors: Optional[ColorState] = None,
        anchors: Optional[Mapping[str, tuple[float, float]]] = None,
        anchor_space: str = "pixels",
    ) -> dict[str, Any]:
        """
        Build a preset dict from engine state. Omitted parts are left out.
        """
        meta = PresetMetadata()
        preset: dict[str, Any] = {
            "metadata": {"version": meta.version, "schema_version": meta.schema_version},
        }
        if controls is not None:
            preset["controls"] = {k: self._round(v) for k, v in controls.to_dict().items()}
        if colors is not None:
            preset["colors"] = colors.to_dict()
        if anchors is not None:
            preset["anchors"] = {
                "space": anchor_space,
                "positions": {
                    name: [self._round(x), self._round(y)] for name, (x, y) in anchors.items()
                },
            }
        return preset

    def to_json(self, preset: dict[str, Any], indent: Optional[int] = 2) -> str:
        return json.dumps(preset, indent=indent)

    def export(self, preset: dict[str, Any], output_path: Union[str, Path]) -> Path:
        """Write a preset to disk, creating parent directories."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            f.write(self.to_json(preset))
        logger.info("Preset written to %s", output_path)
        return output_path


def validate_preset(data: Any) -> dict[str, Any]:
    """
    Check the overall shape of a preset document.

    Raises:
        ValueError: If the document or one of its sections is not an object.
    """
    if not isinstance(data, dict):
        raise ValueError("Preset must be a JSON object")

    for section in SECTIONS:
        if section in data and not isinstance(data[section], dict):
            raise ValueError(f"Preset section '{section}' must be an object")

    anchors = data.get("anchors")
    if anchors is not None:
        space = anchors.get("space", "pixels")
        if space not in ANCHOR_SPACES:
            raise ValueError(f"Preset anchors.space must be one of {ANCHOR_SPACES}, got {space!r}")
        positions = anchors.get("positions", {})
        if not isinstance(positions, dict):
            raise ValueError("Preset anchors.positions must be an object")
        for name, pos in positions.items():
            if not isinstance(pos, (list, tuple)) or len(pos) != 2:
                raise ValueError(f"Anchor position for '{name}' must be [x, y]")
            if not all(_is_number(v) for v in pos):
                raise ValueError(f"Anchor position for '{name}' must hold numbers")

    return data


def load_preset(path: Union[str, Path]) -> dict[str, Any]:
    """
    Read and validate a preset file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the JSON is malformed or has the wrong shape.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Preset not found: {path}")

    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Preset {path} is not valid JSON: {e}") from e

    logger.info("Loaded preset %s", path)
    return validate_preset(data)
