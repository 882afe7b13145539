"""
Wobble Engine
=============

Models the tower as a damped angular pendulum.

The ``instability`` scalar is authoritative and is recomputed on every
landing from the stack geometry:

    instability = stack_height * height_factor + imbalance * imbalance_factor

The tilt ``angle`` and ``angular_velocity`` are an overlay driven by landing
impulses and integrated each tick. They feed the topple check and renderers;
they never feed back into ``instability``.

All integration is expressed in reference frames of ``physics.frame_ms``
(16 ms), so ``tick(state, 16)`` performs exactly one frame step.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from duck_tower.stack_core.config_loader import GameConfig, get_config
from duck_tower.stack_core.duck import Duck

logger = logging.getLogger(__name__)

# Rounding applied to stability percentages so that float noise such as
# 1 - 0.7 == 0.30000000000000004 cannot move a value across a threshold.
STABILITY_DECIMALS = 6


class StabilityStatus(Enum):
    STABLE = "stable"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class WobbleState:
    """Immutable snapshot of the tower's tilt."""
    angle: float = 0.0                    # Radians, positive tilts right
    angular_velocity: float = 0.0         # Radians per frame
    instability: float = 0.0              # Unitless, >= 0, unclamped
    center_of_mass_offset: float = 0.0    # Pixels from the base center

    @property
    def clamped_instability(self) -> float:
        """Instability limited to [0, 1] for force terms and display."""
        return max(0.0, min(1.0, self.instability))


def calculate_imbalance(xs: Sequence[float], normalization: float = 100.0) -> float:
    """
    Mean horizontal offset between adjacent ducks, normalized.

    Args:
        xs: Duck center x values from the base upwards.
        normalization: Pixels that count as an imbalance of 1.

    Returns:
        0.0 for fewer than two ducks.
    """
    if len(xs) < 2:
        return 0.0
    total = sum(abs(xs[i] - xs[i - 1]) for i in range(1, len(xs)))
    return total / (len(xs) - 1) / normalization


def center_of_mass_offset(ducks: Iterable[Duck], center_x: float) -> float:
    """
    Horizontal offset of the stack's center of mass from ``center_x``.

    Mass is taken as proportional to the square of the width.
    """
    total_mass = 0.0
    weighted_x = 0.0
    for duck in ducks:
        mass = duck.w * duck.w
        total_mass += mass
        weighted_x += duck.x * mass
    if total_mass == 0:
        return 0.0
    return weighted_x / total_mass - center_x


class WobbleEngine:
    """
    Pure transition functions over WobbleState.

    The engine holds only configuration; every operation takes a state and
    returns a new one.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize the wobble engine.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._cfg = config.wobble
        self._frame_ms = config.physics.frame_ms
        self._max_angle = config.wobble.max_angle

    @property
    def max_angle(self) -> float:
        """Tilt limit in radians."""
        return self._max_angle

    @property
    def topple_angle(self) -> float:
        """Tilt beyond which the tower has fallen."""
        return self._max_angle * self._cfg.topple_ratio

    # -------------------------------------------------------------------------
    # Stability model
    # -------------------------------------------------------------------------

    def instability_for(self, stack_height: int, imbalance: float) -> float:
        """Instability of a stack of ``stack_height`` ducks with ``imbalance``."""
        return stack_height * self._cfg.height_factor + imbalance * self._cfg.imbalance_factor

    def size_stability(self, merge_level: int) -> float:
        """Impulse scale of a base duck; larger bases resist tipping."""
        return 1.0 / (1.0 + merge_level * self._cfg.size_stability_factor)

    def stability_from_instability(self, instability: float) -> float:
        """Stability percentage in [0, 100] for a raw instability value."""
        stability = max(0.0, min(1.0, 1.0 - instability)) * 100.0
        return round(stability, STABILITY_DECIMALS)

    def stability_of(self, state: WobbleState) -> float:
        """Stability percentage in [0, 100]."""
        return self.stability_from_instability(state.instability)

    def status_for(self, stability: float) -> StabilityStatus:
        """Classify a stability percentage. Thresholds are exclusive."""
        if stability < self._cfg.critical_stability:
            return StabilityStatus.CRITICAL
        if stability < self._cfg.warning_stability:
            return StabilityStatus.WARNING
        return StabilityStatus.STABLE

    def status(self, state: WobbleState) -> StabilityStatus:
        return self.status_for(self.stability_of(state))

    def is_toppled(self, state: WobbleState) -> bool:
        """True once the tilt passes the topple angle."""
        return abs(state.angle) > self.topple_angle

    def is_critically_unstable(self, state: WobbleState) -> bool:
        return (
            abs(state.angle) > self._max_angle * self._cfg.critical_angle_ratio
            or abs(state.angular_velocity) > self._cfg.critical_angular_velocity
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def reset(self, stack_height: int = 1) -> WobbleState:
        """Upright state for a fresh stack of ``stack_height`` ducks."""
        return WobbleState(instability=self.instability_for(stack_height, 0.0))

    def on_landing(
        self,
        state: WobbleState,
        stack_height: int,
        imbalance: float,
        merge_level: int,
        direction: float = 1.0,
        multiplier: float = 1.0,
        com_offset: Optional[float] = None
    ) -> WobbleState:
        """
        Apply a landing.

        Args:
            state: Current wobble state.
            stack_height: Ducks in the stack after the landing.
            imbalance: Normalized offset of the landed duck.
            merge_level: Merge level of the base duck.
            direction: Sign gives the side the impulse pushes towards.
                Zero means a centered landing and no impulse.
            multiplier: Level wobble multiplier.
            com_offset: New center-of-mass offset; kept if None.

        Returns:
            New WobbleState with recomputed instability and the impulse added.
        """
        instability = self.instability_for(stack_height, imbalance)
        sign = 0.0 if direction == 0 else math.copysign(1.0, direction)
        impulse = (
            sign
            * min(1.0, instability)
            * self.size_stability(merge_level)
            * multiplier
            * self._cfg.impulse_gain
        )

        new_state = WobbleState(
            angle=state.angle,
            angular_velocity=state.angular_velocity + impulse,
            instability=instability,
            center_of_mass_offset=(
                state.center_of_mass_offset if com_offset is None else com_offset
            )
        )
        logger.debug(
            "landing: height=%d imbalance=%.3f instability=%.3f impulse=%.5f",
            stack_height, imbalance, instability, impulse
        )
        return new_state

    def tick(self, state: WobbleState, dt_ms: float) -> WobbleState:
        """
        Integrate the pendulum for ``dt_ms`` milliseconds.

        Acceleration per frame is the restoring spring (weakened by
        instability) plus the pull of an off-center mass (strengthened by
        instability). The mass offset is measured in units of
        ``imbalance_normalization`` pixels, the same scale as landing
        imbalance. Velocity is damped per frame and the angle is clamped to
        the tilt limit.

        While instability stays below 1 the spring wins and the tower settles
        at a finite lean; once it saturates only damping opposes the mass.
        """
        if dt_ms <= 0:
            return state

        frames = dt_ms / self._frame_ms
        cfg = self._cfg
        unstable = state.clamped_instability

        restoring = -state.angle * cfg.restoring * (1.0 - unstable)
        offset = state.center_of_mass_offset / cfg.imbalance_normalization
        mass_force = offset * cfg.mass_force * unstable
        acceleration = restoring + mass_force

        angular_velocity = (state.angular_velocity + acceleration * frames) * (cfg.damping ** frames)
        angle = state.angle + angular_velocity * frames
        angle = max(-self._max_angle, min(self._max_angle, angle))

        return replace(state, angle=angle, angular_velocity=angular_velocity)

    def with_center_of_mass(self, state: WobbleState, offset: float) -> WobbleState:
        return replace(state, center_of_mass_offset=offset)

    def offset_at_height(self, state: WobbleState, y: float, base_y: float) -> Tuple[float, float]:
        """
        Horizontal displacement of a point at ``y`` on a tower pivoting at ``base_y``.

        Returns:
            (dx, rotation) for renderers.
        """
        relative_height = base_y - y
        return math.sin(state.angle) * relative_height, state.angle
