"""
State Snapshot
==============

Immutable view of a running game for renderers, tests and agents, plus a
packer into fixed-size numpy arrays for Gymnasium observations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np

from duck_tower.stack_core.duck import Duck, DuckPhase
from duck_tower.stack_core.events import GameMode, GameOverReason
from duck_tower.stack_core.wobble import StabilityStatus, WobbleState

# Integer codes used in observations
MODE_CODES: Dict[GameMode, int] = {
    GameMode.MENU: 0,
    GameMode.PLAYING: 1,
    GameMode.LEVELUP: 2,
    GameMode.GAMEOVER: 3,
}

PHASE_CODES: Dict[Optional[DuckPhase], int] = {
    None: 0,
    DuckPhase.HOVERING: 1,
    DuckPhase.DRAGGED: 2,
    DuckPhase.FALLING: 3,
    DuckPhase.STATIC: 4,
}


@dataclass(frozen=True)
class DuckView:
    """Read-only copy of a duck."""
    x: float
    y: float
    w: float
    h: float
    phase: DuckPhase
    merge_level: int
    scale_x: float
    scale_y: float
    primary_color: str
    secondary_color: str

    @staticmethod
    def of(duck: Duck) -> "DuckView":
        return DuckView(
            x=duck.x,
            y=duck.y,
            w=duck.w,
            h=duck.h,
            phase=duck.phase,
            merge_level=duck.merge_level,
            scale_x=duck.scale_x,
            scale_y=duck.scale_y,
            primary_color=duck.primary_color,
            secondary_color=duck.secondary_color
        )


@dataclass(frozen=True)
class GameSnapshot:
    """
    Complete game state at the end of a tick.

    Collections are tuples; nothing here aliases the live game state.
    """
    # Core state
    mode: GameMode
    seed: str
    level: int
    level_name: str
    score: int
    high_score: int
    drops: int
    elapsed_ms: float

    # Geometry
    design_width: float
    design_height: float
    scale: float
    offset_x: float
    camera_y: float
    landing_line: float

    # Stack
    stack: Tuple[DuckView, ...]
    current: Optional[DuckView]
    merge_counter: int
    merges_needed: int
    level_up_width: float

    # Wobble
    wobble: WobbleState
    stability: float
    stability_status: StabilityStatus

    # Timers
    auto_drop_ms: float
    auto_drop_elapsed_ms: float

    particle_count: int = 0
    game_over_reason: Optional[GameOverReason] = None
    level_colors: Tuple[str, str] = field(default=("", ""))

    @property
    def base(self) -> DuckView:
        return self.stack[0]

    @property
    def top(self) -> DuckView:
        return self.stack[-1]

    @property
    def merge_level(self) -> int:
        return self.stack[0].merge_level

    @property
    def base_width(self) -> float:
        return self.stack[0].w

    @property
    def is_playing(self) -> bool:
        return self.mode is GameMode.PLAYING

    def to_obs_dict(self, max_ducks: int) -> Dict[str, np.ndarray]:
        """
        Convert to a Gymnasium observation dictionary.

        Stack arrays hold the topmost ``max_ducks`` ducks, base side first,
        padded with zeros and masked.
        """
        ducks = self.stack[-max_ducks:]
        n = len(ducks)

        duck_x = np.zeros(max_ducks, dtype=np.float32)
        duck_y = np.zeros(max_ducks, dtype=np.float32)
        duck_w = np.zeros(max_ducks, dtype=np.float32)
        duck_h = np.zeros(max_ducks, dtype=np.float32)
        duck_mask = np.zeros(max_ducks, dtype=bool)
        if n:
            duck_x[:n] = [d.x for d in ducks]
            duck_y[:n] = [d.y for d in ducks]
            duck_w[:n] = [d.w for d in ducks]
            duck_h[:n] = [d.h for d in ducks]
            duck_mask[:n] = True

        current = self.current
        current_phase = PHASE_CODES[current.phase if current is not None else None]

        return {
            # Core state
            "mode": np.array(MODE_CODES[self.mode], dtype=np.int32),
            "score": np.array(self.score, dtype=np.int64),
            "level": np.array(self.level, dtype=np.int32),
            "drops": np.array(self.drops, dtype=np.int32),

            # Geometry
            "design_width": np.array(self.design_width, dtype=np.float32),
            "camera_y": np.array(self.camera_y, dtype=np.float32),
            "landing_line": np.array(self.landing_line, dtype=np.float32),

            # Current duck
            "current_x": np.array(current.x if current else 0.0, dtype=np.float32),
            "current_y": np.array(current.y if current else 0.0, dtype=np.float32),
            "current_phase": np.array(current_phase, dtype=np.int32),

            # Progress
            "merge_counter": np.array(self.merge_counter, dtype=np.int32),
            "merge_level": np.array(self.merge_level, dtype=np.int32),
            "merges_needed": np.array(self.merges_needed, dtype=np.int32),
            "base_width": np.array(self.base_width, dtype=np.float32),
            "level_up_width": np.array(self.level_up_width, dtype=np.float32),

            # Wobble
            "wobble_angle": np.array(self.wobble.angle, dtype=np.float32),
            "wobble_angular_velocity": np.array(self.wobble.angular_velocity, dtype=np.float32),
            "instability": np.array(self.wobble.instability, dtype=np.float32),
            "center_of_mass_offset": np.array(self.wobble.center_of_mass_offset, dtype=np.float32),
            "stability": np.array(self.stability, dtype=np.float32),

            # Timers
            "auto_drop_remaining": np.array(
                max(0.0, self.auto_drop_ms - self.auto_drop_elapsed_ms), dtype=np.float32
            ),

            # Stack arrays
            "duck_x": duck_x,
            "duck_y": duck_y,
            "duck_w": duck_w,
            "duck_h": duck_h,
            "duck_mask": duck_mask,
        }
