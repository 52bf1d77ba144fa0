"""
Attack/decay/inertia smoothing of band amplitudes.

Frame-rate independent exponential follower. A rate of 1.0 corresponds
to one 60 fps frame time constant; rising and falling values use
different rates so blobs can bloom fast and fade slowly (or the
reverse).
"""

import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from motionfields.core.controls import ControlState, clamp, clamp_unit


MAX_DELTA_TIME = 0.1


@dataclass
class EnvelopeRates:
    """Per-direction follow rates derived from the motion controls."""

    attack_rate: float = 1.0  # 0.05 .. 1.0
    decay_rate: float = 1.0  # 0.02 .. 1.0
    inertia: float = 0.0  # 0 .. 1

    @classmethod
    def from_controls(cls, controls: ControlState) -> "EnvelopeRates":
        return cls(
            attack_rate=1.0 - (controls.attack / 100.0) * 0.95,
            decay_rate=1.0 - (controls.decay / 100.0) * 0.98,
            inertia=controls.inertia / 100.0,
        )

    def effective_rate(self, rising: bool) -> float:
        base = self.attack_rate if rising else self.decay_rate
        return base * (1.0 - self.inertia * 0.9)


def smoothing_factor(rate: float, dt: float) -> float:
    """
    Fraction of the remaining distance covered in ``dt`` seconds.

    A rate of 1 is a zero-length envelope and jumps straight to the target.
    Rates just below 1 still cover only about 63% per 60 fps frame, so the
    step between them and 1 is intentional.
    """
    dt = clamp(dt, 0.0, MAX_DELTA_TIME)
    if dt <= 0.0:
        return 0.0
    if rate >= 1.0:
        return 1.0
    return 1.0 - math.exp(-rate * dt * 60.0)


class TemporalSmoother:
    """Holds the smoothed amplitude for each band across frames."""

    def __init__(self, band_names: Iterable[str]):
        self.band_names = list(band_names)
        self._values = {name: 0.0 for name in self.band_names}

    @property
    def values(self) -> dict[str, float]:
        return dict(self._values)

    def reset(self):
        for name in self.band_names:
            self._values[name] = 0.0

    def step_value(self, current: float, target: float, rates: EnvelopeRates, dt: float) -> float:
        rising = target > current
        factor = smoothing_factor(rates.effective_rate(rising), dt)
        return clamp_unit(current + (target - current) * factor)

    def update(
        self,
        targets: Mapping[str, float],
        controls: ControlState,
        dt: float,
    ) -> dict[str, float]:
        """
        Move every band toward its target.

        Args:
            targets: Emphasized amplitudes; missing bands target 0.
            controls: Current control state (attack, decay, inertia).
            dt: Seconds since the previous frame, clamped to 0.1.

        Returns:
            Copy of the smoothed values.
        """
        rates = EnvelopeRates.from_controls(controls)
        for name in self.band_names:
            target = clamp_unit(targets.get(name, 0.0))
            self._values[name] = self.step_value(self._values[name], target, rates, dt)
        return self.values
