"""
Frequency band definitions.

Each band is one emphasis blob on screen. Bands belong to an emphasis
group ("low", "mid", "high") which selects the gain control and the
tint color that apply to them.
"""

from dataclasses import dataclass


EMPHASIS_GROUPS = ("low", "mid", "high")


@dataclass(frozen=True)
class Band:
    """A named frequency range driving one visual element."""

    name: str
    min_hz: float
    max_hz: float
    group: str  # "low", "mid" or "high"

    @property
    def emphasis_key(self) -> str:
        """ControlState field holding this band's gain."""
        return f"{self.group}_emphasis"

    @property
    def color_key(self) -> str:
        """ColorState key holding this band's tint."""
        return f"{self.group}Emphasis"


DEFAULT_BANDS: tuple[Band, ...] = (
    Band("bass", 20.0, 150.0, "low"),
    Band("lowerMid", 150.0, 500.0, "low"),
    Band("mid", 500.0, 1000.0, "mid"),
    Band("upperMid", 1000.0, 4000.0, "high"),
    Band("treble", 4000.0, 20000.0, "high"),
)


def bands_in_group(group: str, bands: tuple[Band, ...] = DEFAULT_BANDS) -> list[Band]:
    return [band for band in bands if band.group == group]
