"""
Bounded stochastic drift for band positions.

Each band wanders around its anchor with a damped Brownian velocity.
Two boundaries keep it near home: a soft spring that starts pulling at
70% of the roaming radius, and a hard wall at the radius itself where
the outward velocity bounces back inelastically.

Per band motion is a three-state machine:

- ROAMING: drift > 0, free wandering inside the boundary.
- RETURNING: drift == 0, offset decays geometrically toward the anchor.
- ANCHORED: drift == 0 and the offset has snapped to exactly zero.
"""

import enum
import math
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from motionfields.core.controls import ControlState, clamp


MAX_DRIFT_RADIUS = 200.0  # px at drift=100
MAX_DRIFT_SPEED = 50.0  # px/s at drift=100
ANCHOR_RADIUS_REDUCTION = 0.9  # anchor=100 keeps 10% of the radius
IMPULSE = 240.0  # px/s^2 at drift=100
FRICTION = 0.98  # velocity kept per 60 fps frame
SOFT_BOUNDARY = 0.7
SPRING = 6.0  # 1/s^2
RESTITUTION = 0.5
RETURN_DAMPING = 0.85  # offset kept per 60 fps frame while returning
SNAP_EPSILON = 0.05  # px
MAX_DELTA_TIME = 0.1


class MotionMode(enum.Enum):
    ROAMING = "roaming"
    RETURNING = "returning"
    ANCHORED = "anchored"


@dataclass
class DriftState:
    """Offset from the anchor and current velocity, in pixels."""

    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    mode: MotionMode = MotionMode.ANCHORED

    @property
    def distance(self) -> float:
        return math.hypot(self.x, self.y)

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)


@dataclass
class DriftLimits:
    """Roaming limits derived from the drift and anchor controls."""

    drift_amount: float
    max_radius: float
    effective_radius: float
    max_speed: float

    @classmethod
    def from_controls(cls, controls: ControlState) -> "DriftLimits":
        drift_amount = controls.drift / 100.0
        anchor_stability = controls.anchor / 100.0
        max_radius = MAX_DRIFT_RADIUS * drift_amount
        return cls(
            drift_amount=drift_amount,
            max_radius=max_radius,
            effective_radius=max_radius * (1.0 - anchor_stability * ANCHOR_RADIUS_REDUCTION),
            max_speed=MAX_DRIFT_SPEED * drift_amount,
        )


class DriftEngine:
    """
    Evolves one DriftState per band.

    Randomness comes from an injected numpy Generator so runs can be
    reproduced exactly with a seed.
    """

    def __init__(
        self,
        band_names: Iterable[str],
        rng: Optional[np.random.Generator] = None,
    ):
        self.band_names = list(band_names)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.states = {name: DriftState() for name in self.band_names}

    def reset(self):
        for name in self.band_names:
            self.states[name] = DriftState()

    def kick(self, name: str):
        """Give a band a random initial heading (up to 1 px/s per axis)."""
        state = self.states[name]
        vx, vy = self.rng.uniform(-1.0, 1.0, size=2)
        state.vx = float(vx)
        state.vy = float(vy)

    def offset(self, name: str) -> tuple[float, float]:
        state = self.states[name]
        return (state.x, state.y)

    def offsets(self) -> dict[str, tuple[float, float]]:
        return {name: self.offset(name) for name in self.band_names}

    def step(self, controls: ControlState, dt: float) -> dict[str, tuple[float, float]]:
        """
        Advance every band by ``dt`` seconds.

        Returns:
            Dict of band name -> (x, y) offset from its anchor.
        """
        dt = clamp(dt, 0.0, MAX_DELTA_TIME)
        limits = DriftLimits.from_controls(controls)

        for name in self.band_names:
            state = self.states[name]
            if limits.drift_amount <= 0.0 or limits.effective_radius <= 0.0:
                self._return_to_anchor(state, dt)
            else:
                self._roam(state, limits, dt)

        return self.offsets()

    def _return_to_anchor(self, state: DriftState, dt: float):
        if state.mode is MotionMode.ANCHORED and state.x == 0.0 and state.y == 0.0:
            return

        state.mode = MotionMode.RETURNING
        damping = RETURN_DAMPING ** (dt * 60.0)
        state.x *= damping
        state.y *= damping
        state.vx *= damping
        state.vy *= damping

        if state.distance < SNAP_EPSILON:
            state.x = state.y = 0.0
            state.vx = state.vy = 0.0
            state.mode = MotionMode.ANCHORED

    def _roam(self, state: DriftState, limits: DriftLimits, dt: float):
        state.mode = MotionMode.ROAMING

        # Brownian impulse, then friction
        ax, ay = self.rng.uniform(-1.0, 1.0, size=2)
        impulse = IMPULSE * limits.drift_amount * dt
        state.vx += float(ax) * impulse
        state.vy += float(ay) * impulse
        friction = FRICTION ** (dt * 60.0)
        state.vx *= friction
        state.vy *= friction

        speed = state.speed
        if speed > limits.max_speed and speed > 0.0:
            scale = limits.max_speed / speed
            state.vx *= scale
            state.vy *= scale

        state.x += state.vx * dt
        state.y += state.vy * dt

        radius = limits.effective_radius
        distance = state.distance
        if distance <= 0.0:
            return

        nx, ny = state.x / distance, state.y / distance

        soft_limit = radius * SOFT_BOUNDARY
        if distance > soft_limit:
            pull = SPRING * (distance - soft_limit) * dt
            state.vx -= nx * pull
            state.vy -= ny * pull

        if distance > radius:
            state.x = nx * radius
            state.y = ny * radius
            outward = state.vx * nx + state.vy * ny
            if outward > 0.0:
                state.vx -= (1.0 + RESTITUTION) * outward * nx
                state.vy -= (1.0 + RESTITUTION) * outward * ny
