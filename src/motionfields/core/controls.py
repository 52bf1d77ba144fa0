"""
User-tunable control and color state.

Hosts push partial maps (camelCase keys, as a slider panel would send
them) and every value is clamped on the way in, so the per-frame code
never has to validate anything.
"""

import math
import re
from dataclasses import dataclass, field, fields
from typing import Any, Mapping


# camelCase host keys -> dataclass fields
_CONTROL_ALIASES = {
    "fieldScale": "field_scale",
    "lowEmphasis": "low_emphasis",
    "midEmphasis": "mid_emphasis",
    "highEmphasis": "high_emphasis",
}

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


def clamp(value: float, low: float, high: float) -> float:
    """Clamp to [low, high]; NaN and non-numeric values map to ``low``."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return low
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def clamp_unit(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def clamp_percent(value: float) -> float:
    return clamp(value, 0.0, 100.0)


@dataclass
class ControlState:
    """The twelve control parameters, each in [0, 100]."""

    # Motion
    attack: float = 0.0
    decay: float = 0.0
    inertia: float = 0.0
    drift: float = 50.0
    # Form
    field_scale: float = 0.0
    overlap: float = 50.0
    anchor: float = 50.0
    grain: float = 0.0
    # Energy
    low_emphasis: float = 50.0
    mid_emphasis: float = 50.0
    high_emphasis: float = 50.0
    compression: float = 0.0

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, clamp_percent(getattr(self, f.name)))

    @staticmethod
    def field_name(key: str) -> str:
        return _CONTROL_ALIASES.get(key, key)

    def update(self, params: Mapping[str, Any]) -> None:
        """Merge a partial map; unspecified keys keep their value."""
        known = {f.name for f in fields(self)}
        for key, value in params.items():
            name = self.field_name(key)
            if name in known:
                setattr(self, name, clamp_percent(value))

    def emphasis(self, group: str) -> float:
        return getattr(self, f"{group}_emphasis")

    def to_dict(self) -> dict[str, float]:
        """Export with the host's camelCase keys."""
        reverse = {v: k for k, v in _CONTROL_ALIASES.items()}
        return {reverse.get(f.name, f.name): getattr(self, f.name) for f in fields(self)}


def normalize_hex(value: str) -> str:
    """Lower-case ``#rrggbb``; anything malformed becomes black."""
    match = _HEX_RE.match(str(value).strip())
    if not match:
        return "#000000"
    return "#" + match.group(1).lower()


@dataclass
class ColorState:
    """Background color plus one tint per emphasis group."""

    background: str = "#1a1a2e"
    tints: dict[str, str] = field(
        default_factory=lambda: {
            "lowEmphasis": "#e94560",
            "midEmphasis": "#feca57",
            "highEmphasis": "#ff9ff3",
        }
    )

    def __post_init__(self):
        self.background = normalize_hex(self.background)
        self.tints = {k: normalize_hex(v) for k, v in self.tints.items()}

    def update(self, colors: Mapping[str, str]) -> None:
        """Merge a partial map. ``background`` sets the background color."""
        for key, value in colors.items():
            if key == "background":
                self.background = normalize_hex(value)
            elif key in self.tints:
                self.tints[key] = normalize_hex(value)

    def tint_for(self, color_key: str) -> str:
        return self.tints.get(color_key, "#000000")

    def to_dict(self) -> dict[str, str]:
        return {"background": self.background, **self.tints}
