"""
Duck Model
==========

Runtime representation of falling and stacked ducks, plus the short-lived
particles spawned by perfect landings and merges.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from duck_tower.stack_core.config_loader import GameConfig, get_config
from duck_tower.stack_core.rng import SeededRandom


class DuckPhase(Enum):
    """Lifecycle phase of a duck. Exactly one applies at a time."""
    HOVERING = "hovering"
    FALLING = "falling"
    STATIC = "static"
    DRAGGED = "dragged"


@dataclass
class Duck:
    """
    A placed or falling duck in design-space pixels.

    ``x``/``y`` are the center. ``phase`` replaces independent flags so a duck
    can never be, say, falling and static at once; the boolean views are
    derived from it.
    """
    x: float
    y: float
    w: float
    h: float
    phase: DuckPhase = DuckPhase.HOVERING
    prev_y: Optional[float] = None     # Defaults to y
    spawn_x: float = 0.0
    oscillation_phase: float = 0.0
    oscillation_speed: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    merge_level: int = 0
    primary_color: str = "#FDD835"
    secondary_color: str = "#FFE082"
    velocity: float = 0.0          # Fall speed, pixels per frame

    def __post_init__(self):
        if self.prev_y is None:
            self.prev_y = self.y

    @property
    def is_static(self) -> bool:
        return self.phase is DuckPhase.STATIC

    @property
    def is_falling(self) -> bool:
        return self.phase is DuckPhase.FALLING

    @property
    def is_being_dragged(self) -> bool:
        return self.phase is DuckPhase.DRAGGED

    @property
    def is_hovering(self) -> bool:
        return self.phase is DuckPhase.HOVERING

    @property
    def is_controllable(self) -> bool:
        """True while the player can still move or drop this duck."""
        return self.phase in (DuckPhase.HOVERING, DuckPhase.DRAGGED)

    @property
    def bottom(self) -> float:
        return self.y + self.h / 2

    def drop(self) -> bool:
        """
        Start free fall.

        Returns:
            True if the duck was hovering or dragged and is now falling.
        """
        if not self.is_controllable:
            return False
        self.phase = DuckPhase.FALLING
        self.prev_y = self.y
        return True

    def start_drag(self) -> bool:
        """Enter the dragged phase from hover. Returns True on change."""
        if self.phase is DuckPhase.HOVERING:
            self.phase = DuckPhase.DRAGGED
            return True
        return self.phase is DuckPhase.DRAGGED

    def fall(self, frames: float) -> None:
        """Advance free fall by ``frames`` reference frames."""
        self.prev_y = self.y
        self.y += self.velocity * frames

    def land(self, x: float, y: float, squish_factor: float = 0.2) -> None:
        """Settle on the stack at (x, y) and play the squish."""
        self.x = x
        self.y = y
        self.prev_y = y
        self.phase = DuckPhase.STATIC
        self.squish(squish_factor)

    def squish(self, factor: float = 0.2) -> None:
        """Flatten for the landing animation."""
        self.scale_y = 1 - factor
        self.scale_x = 1 + factor

    def recover_squish(self, frames: float, recovery: float = 0.15) -> None:
        """Ease the squish back towards 1."""
        keep = (1 - recovery) ** frames
        self.scale_x = 1 + (self.scale_x - 1) * keep
        self.scale_y = 1 + (self.scale_y - 1) * keep

    def landing_line(self, overlap: float = 0.85) -> float:
        """Y a duck landing on this one is placed at."""
        return self.y - self.h * overlap

    def oscillate(self, frames: float, design_width: float, speed: float, score: int = 0) -> None:
        """Sway horizontally around the center of the playfield while hovering."""
        if self.phase is not DuckPhase.HOVERING:
            return
        self.oscillation_phase += speed * 16 * frames
        span = (design_width - self.w) / 2
        # Past 10 points the sway speed itself wobbles
        chaos = math.sin(self.oscillation_phase * 0.3) * 0.5 if score > 10 else 1.0
        self.x = design_width / 2 + math.sin(self.oscillation_phase * self.oscillation_speed * 0.05 * chaos) * span

    def resize(self, w: float, h: float, ground_y: Optional[float] = None) -> None:
        """Change size; when ``ground_y`` is given, keep the bottom edge on it."""
        self.w = w
        self.h = h
        if ground_y is not None:
            self.y = ground_y - h / 2
            self.prev_y = self.y


def make_base_duck(
    design_width: float,
    config: Optional[GameConfig] = None,
    primary_color: Optional[str] = None,
    secondary_color: Optional[str] = None
) -> Duck:
    """Create the ground duck, centered and resting on the ground line."""
    if config is None:
        config = get_config()

    duck_cfg = config.duck
    return Duck(
        x=design_width / 2,
        y=config.viewport.ground_y - duck_cfg.base_height / 2,
        w=duck_cfg.base_width,
        h=duck_cfg.base_height,
        phase=DuckPhase.STATIC,
        spawn_x=design_width / 2,
        primary_color=primary_color or duck_cfg.default_primary_color,
        secondary_color=secondary_color or duck_cfg.default_secondary_color
    )


def make_hovering_duck(
    x: float,
    y: float,
    score: int = 0,
    config: Optional[GameConfig] = None,
    primary_color: Optional[str] = None,
    secondary_color: Optional[str] = None,
    oscillation_phase: float = 0.0
) -> Duck:
    """
    Create a duck waiting at the top of the view.

    Oscillation speed grows with the score, capped at 4.5.
    """
    if config is None:
        config = get_config()

    duck_cfg = config.duck
    return Duck(
        x=x,
        y=y,
        w=duck_cfg.base_width,
        h=duck_cfg.base_height,
        phase=DuckPhase.HOVERING,
        spawn_x=x,
        oscillation_phase=oscillation_phase,
        oscillation_speed=1.5 + min(3.0, score * 0.15),
        primary_color=primary_color or duck_cfg.default_primary_color,
        secondary_color=secondary_color or duck_cfg.default_secondary_color,
        velocity=config.physics.gravity
    )


@dataclass
class Particle:
    """A short-lived visual spark."""
    x: float
    y: float
    vx: float
    vy: float
    size: float
    color: str
    life: float = 1.0

    @property
    def alive(self) -> bool:
        return self.life > 0

    def update(self, frames: float, decay: float = 0.03) -> None:
        self.x += self.vx * frames
        self.y += self.vy * frames
        self.life -= decay * frames


def spawn_particles(
    rng: SeededRandom,
    x: float,
    y: float,
    count: int,
    config: Optional[GameConfig] = None
) -> List[Particle]:
    """Create a burst of ``count`` particles at (x, y)."""
    if config is None:
        config = get_config()

    p_cfg = config.particles
    particles = []
    for _ in range(count):
        particles.append(Particle(
            x=x,
            y=y,
            vx=rng.next_float(-p_cfg.max_speed, p_cfg.max_speed),
            vy=rng.next_float(-p_cfg.max_speed, p_cfg.max_speed),
            size=rng.next_float(p_cfg.min_size, p_cfg.max_size),
            color="#FFFFFF" if rng.next() > 0.5 else config.duck.default_primary_color
        ))
    return particles
