"""
Collision Resolver
==================

Decides where and whether a falling duck lands on top of the stack.

A landing is detected by a swept test on the landing line: the duck's center
must cross the line between the previous and the current frame. This keeps
fast falls from tunnelling through the top duck.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from duck_tower.stack_core.config_loader import GameConfig, get_config
from duck_tower.stack_core.duck import Duck


class LandingOutcome(Enum):
    """Classification of a frame's landing test."""
    NONE = "none"          # Line not crossed this frame
    PERFECT = "perfect"
    HIT = "hit"
    MISS = "miss"


@dataclass(frozen=True)
class LandingResult:
    """Result of resolving one frame of fall against the stack top."""
    outcome: LandingOutcome
    x: float = 0.0
    y: float = 0.0
    offset: float = 0.0    # falling.x - top.x

    @property
    def landed(self) -> bool:
        return self.outcome in (LandingOutcome.PERFECT, LandingOutcome.HIT)

    @property
    def is_perfect(self) -> bool:
        return self.outcome is LandingOutcome.PERFECT

    @property
    def is_miss(self) -> bool:
        return self.outcome is LandingOutcome.MISS

    @staticmethod
    def none() -> "LandingResult":
        return LandingResult(LandingOutcome.NONE)


def collision_zone(width: float, hit_tolerance: float = 0.65) -> float:
    """Half-width of the landing window over a duck of ``width``."""
    return width * hit_tolerance


def landing_target_y(top: Duck, landing_overlap: float = 0.85) -> float:
    """Y at which a duck landing on ``top`` comes to rest."""
    return top.landing_line(landing_overlap)


class LandingResolver:
    """
    Resolves falling ducks against the current top of the stack.

    - PERFECT: |dx| <= perfect_tolerance, x snaps onto the top duck
    - HIT:     |dx| <= top.w * hit_tolerance, x is kept
    - MISS:    anything wider
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize the resolver.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._perfect_tolerance = config.duck.perfect_tolerance
        self._hit_tolerance = config.duck.hit_tolerance
        self._landing_overlap = config.duck.landing_overlap
        self._fallback_distance = config.physics.fallback_distance
        self._ground_y = config.viewport.ground_y

    @property
    def perfect_tolerance(self) -> float:
        return self._perfect_tolerance

    def zone(self, top: Duck) -> float:
        """Landing half-width over ``top``; scales with its current width."""
        return collision_zone(top.w, self._hit_tolerance)

    def target_y(self, top: Duck) -> float:
        return landing_target_y(top, self._landing_overlap)

    def crossed(self, falling: Duck, top: Duck) -> bool:
        """True if the landing line was crossed during the last fall step."""
        target = self.target_y(top)
        return falling.prev_y < target <= falling.y

    def resolve(self, falling: Duck, top: Duck) -> LandingResult:
        """
        Classify the latest fall step of ``falling`` against ``top``.

        Args:
            falling: Duck that has just advanced by one fall step.
            top: Current top of the stack.

        Returns:
            LandingResult. The outcome is NONE while the line has not been
            crossed; otherwise x/y give the resting position (y is the line).
        """
        if not self.crossed(falling, top):
            return LandingResult.none()

        target = self.target_y(top)
        offset = falling.x - top.x
        distance = abs(offset)

        if distance <= self._perfect_tolerance:
            return LandingResult(LandingOutcome.PERFECT, top.x, target, offset)
        if distance <= self.zone(top):
            return LandingResult(LandingOutcome.HIT, falling.x, target, offset)
        return LandingResult(LandingOutcome.MISS, falling.x, falling.y, offset)

    def fell_through(self, falling: Duck, camera_y: float) -> bool:
        """True if a falling duck has dropped far below the visible ground."""
        return falling.y > self._ground_y + camera_y + self._fallback_distance
