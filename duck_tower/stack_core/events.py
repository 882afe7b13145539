"""
Game Events
===========

Discrete notifications emitted by TowerGame.tick() for renderers, audio and
agents. Events are immutable and carry only plain values.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class GameMode(Enum):
    MENU = "menu"
    PLAYING = "playing"
    LEVELUP = "levelup"
    GAMEOVER = "gameover"


class GameOverReason(Enum):
    """Cause code for a game over."""
    MISSED = "missed"      # Landed outside the hit zone
    TOPPLED = "toppled"    # Tilt passed the topple angle
    FELL = "fell"          # Dropped far below the ground without resolving


@dataclass(frozen=True)
class Landed:
    perfect: bool
    score: int
    x: float
    y: float


@dataclass(frozen=True)
class Merged:
    merge_level: int
    base_width: float


@dataclass(frozen=True)
class LeveledUp:
    level: int
    name: str


@dataclass(frozen=True)
class GameOver:
    reason: GameOverReason
    score: int


@dataclass(frozen=True)
class ScoreChanged:
    score: int
    high_score: int


@dataclass(frozen=True)
class ParticlesSpawned:
    x: float
    y: float
    count: int


@dataclass(frozen=True)
class ModeChanged:
    previous: GameMode
    mode: GameMode


GameEvent = Union[Landed, Merged, LeveledUp, GameOver, ScoreChanged, ParticlesSpawned, ModeChanged]


class InputType(Enum):
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    DRAG_TO = "drag_to"
    DROP = "drop"
    RESIZE = "resize"


@dataclass(frozen=True)
class InputEvent:
    """
    Player input, queued by TowerGame.submit() and applied at the start of
    the next tick.

    ``x`` is the design-space target for DRAG_TO and the new viewport width
    for RESIZE; ``y`` is the optional viewport height for RESIZE.
    """
    type: InputType
    x: float = 0.0
    y: float = 0.0
    timestamp: float = 0.0

    @staticmethod
    def move_left(timestamp: float = 0.0) -> "InputEvent":
        return InputEvent(InputType.MOVE_LEFT, timestamp=timestamp)

    @staticmethod
    def move_right(timestamp: float = 0.0) -> "InputEvent":
        return InputEvent(InputType.MOVE_RIGHT, timestamp=timestamp)

    @staticmethod
    def drag_to(x: float, timestamp: float = 0.0) -> "InputEvent":
        return InputEvent(InputType.DRAG_TO, x=x, timestamp=timestamp)

    @staticmethod
    def drop(timestamp: float = 0.0) -> "InputEvent":
        return InputEvent(InputType.DROP, timestamp=timestamp)

    @staticmethod
    def resize(width: float, height: float = 0.0, timestamp: float = 0.0) -> "InputEvent":
        return InputEvent(InputType.RESIZE, x=width, y=height, timestamp=timestamp)

    def to_dict(self) -> dict:
        return {"type": self.type.value, "x": self.x, "y": self.y, "timestamp": self.timestamp}

    @staticmethod
    def from_dict(data: dict) -> "InputEvent":
        return InputEvent(
            InputType(data["type"]),
            x=float(data.get("x", 0.0)),
            y=float(data.get("y", 0.0)),
            timestamp=float(data.get("timestamp", 0.0))
        )
