"""
Scoring System
==============

Tracks score, high score and landing statistics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from duck_tower.stack_core.config_loader import GameConfig, get_config


@dataclass
class ScoreEvent:
    """Record of a scoring event."""
    points: int
    perfect: bool
    streak: int
    new_high_score: bool = False

    def __repr__(self) -> str:
        if self.perfect:
            return f"ScoreEvent(perfect={self.points}, streak={self.streak})"
        return f"ScoreEvent(landing={self.points})"


class ScoreTracker:
    """
    Tracks game score.

    Every successful landing is worth one point. Perfect landings build a
    streak that is reported but does not change the points awarded.
    """

    POINTS_PER_LANDING = 1

    def __init__(self, config: Optional[GameConfig] = None, high_score: int = 0):
        """
        Initialize score tracker.

        Args:
            config: Game configuration. Uses default if None.
            high_score: Persisted high score to start from.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._score: int = 0
        self._high_score: int = max(0, int(high_score))
        self._landings: int = 0
        self._perfect_count: int = 0
        self._streak: int = 0
        self._best_streak: int = 0

    @property
    def score(self) -> int:
        """Current total score."""
        return self._score

    @property
    def high_score(self) -> int:
        return self._high_score

    @property
    def landings(self) -> int:
        """Successful landings this game."""
        return self._landings

    @property
    def perfect_count(self) -> int:
        return self._perfect_count

    @property
    def streak(self) -> int:
        """Consecutive perfect landings."""
        return self._streak

    @property
    def best_streak(self) -> int:
        return self._best_streak

    def apply_landing(self, perfect: bool) -> ScoreEvent:
        """
        Apply score for a landing and return the event.

        Args:
            perfect: True if the landing snapped onto the top duck.

        Returns:
            ScoreEvent describing the points awarded.
        """
        self._landings += 1
        if perfect:
            self._perfect_count += 1
            self._streak += 1
            self._best_streak = max(self._best_streak, self._streak)
        else:
            self._streak = 0

        points = self.POINTS_PER_LANDING
        self._score += points

        new_high = self._score > self._high_score
        if new_high:
            self._high_score = self._score

        return ScoreEvent(points=points, perfect=perfect, streak=self._streak, new_high_score=new_high)

    def reset(self) -> None:
        """Reset score to zero. The high score is kept."""
        self._score = 0
        self._landings = 0
        self._perfect_count = 0
        self._streak = 0
        self._best_streak = 0
