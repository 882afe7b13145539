"""
High Score Store
================

Persists the single best score, either to a JSON file or in memory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class HighScoreStore:
    """
    Reads and writes the high score.

    With no path the score lives only in memory. A missing or unreadable
    file reads as 0; it is rewritten on the next improvement.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self._path = Path(path) if path is not None else None
        self._value: int = 0

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def load(self) -> int:
        """Read the stored high score."""
        if self._path is None:
            return self._value

        try:
            with open(self._path, "r") as f:
                data = json.load(f)
            value = int(data.get("high_score", 0))
        except FileNotFoundError:
            value = 0
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("ignoring unreadable high score file %s: %s", self._path, e)
            value = 0

        self._value = max(0, value)
        return self._value

    def save(self, score: int) -> bool:
        """
        Store ``score`` if it beats the stored value.

        Returns:
            True if the stored value changed.
        """
        current = self.load()
        if score <= current:
            return False

        self._value = int(score)
        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w") as f:
                json.dump({"high_score": self._value}, f)
        logger.info("new high score: %d", self._value)
        return True
