"""
Game Rules
==========

Viewport fitting, camera tracking, spawn/placement bounds and game-over
results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from duck_tower.stack_core.config_loader import GameConfig, get_config
from duck_tower.stack_core.events import GameOverReason


@dataclass
class TerminationResult:
    """Result of termination check."""
    terminated: bool
    truncated: bool
    reason: Optional[GameOverReason]

    @staticmethod
    def none() -> "TerminationResult":
        return TerminationResult(False, False, None)

    @staticmethod
    def game_over(reason: GameOverReason) -> "TerminationResult":
        return TerminationResult(True, False, reason)

    @staticmethod
    def truncation() -> "TerminationResult":
        return TerminationResult(False, True, None)


@dataclass(frozen=True)
class Viewport:
    """Mapping from a device screen onto the design space."""
    design_width: float
    design_height: float
    scale: float
    offset_x: float

    @staticmethod
    def fit(
        screen_width: float,
        screen_height: Optional[float] = None,
        config: Optional[GameConfig] = None
    ) -> "Viewport":
        """
        Fit the design space to a screen.

        The design width follows the screen width clamped to the configured
        range; the scale keeps the whole design area visible.

        Args:
            screen_width: Screen width in device pixels.
            screen_height: Screen height in device pixels. When None or 0 the
                scale is set by width alone.
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        vp = config.viewport
        design_width = vp.clamp_width(screen_width)
        scale = screen_width / design_width
        if screen_height:
            scale = min(scale, screen_height / vp.design_height)
        offset_x = (screen_width - design_width * scale) / 2
        return Viewport(design_width, vp.design_height, scale, offset_x)

    def to_design(self, screen_x: float) -> float:
        """Convert a screen x coordinate into design space."""
        return (screen_x - self.offset_x) / self.scale


class Camera:
    """
    Vertical camera that follows the top of the stack.

    ``y`` is 0 at rest and becomes negative as the tower grows. It eases
    towards the target by ``camera_smoothing`` per frame.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._anchor = config.viewport.camera_anchor * config.viewport.design_height
        self._smoothing = config.viewport.camera_smoothing
        self._frame_ms = config.physics.frame_ms
        self.y: float = 0.0

    def target_for(self, landing_line: float) -> float:
        """Camera offset that keeps ``landing_line`` at the anchor height."""
        return min(0.0, landing_line - self._anchor)

    def update(self, landing_line: float, dt_ms: float) -> float:
        frames = dt_ms / self._frame_ms
        keep = (1.0 - self._smoothing) ** frames
        target = self.target_for(landing_line)
        self.y = target + (self.y - target) * keep
        return self.y

    def reset(self) -> None:
        self.y = 0.0


class SpawnRules:
    """
    Spawn position and horizontal placement bounds.

    Maps normalized action [-1, 1] to a design-space x coordinate, keeping
    the whole duck inside the playfield.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize spawn rules.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._spawn_margin = config.viewport.spawn_margin
        self._clearance = config.duck.spawn_clearance
        self._base_width = config.duck.base_width

    def spawn_x_range(self, design_width: float) -> Tuple[float, float]:
        """Range random spawns are drawn from."""
        return (self._base_width, design_width - self._base_width)

    def clamp_x(self, x: float, width: float, design_width: float) -> float:
        """Clamp a duck center so the duck stays fully on screen."""
        half = width / 2
        return max(half, min(design_width - half, x))

    def spawn_y(self, camera_y: float, landing_line: float, height: float) -> float:
        """
        Hover height for a new duck.

        Normally just below the top of the view; pushed up when the landing
        line is too close so the duck always starts above it.
        """
        return min(camera_y + self._spawn_margin, landing_line - height * self._clearance)

    def action_to_x(self, action: float, width: float, design_width: float) -> float:
        """
        Convert normalized action [-1, 1] to a design-space x.

        Args:
            action: Normalized X position in [-1, 1].
            width: Width of the duck being placed.
            design_width: Current design width.
        """
        action = max(-1.0, min(1.0, action))
        min_x, max_x = width / 2, design_width - width / 2
        t = (action + 1.0) / 2.0
        return min_x + t * (max_x - min_x)

    def x_to_action(self, x: float, width: float, design_width: float) -> float:
        """Inverse of action_to_x."""
        min_x, max_x = width / 2, design_width - width / 2
        t = (x - min_x) / (max_x - min_x)
        action = t * 2.0 - 1.0
        return max(-1.0, min(1.0, action))
