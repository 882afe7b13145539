"""
Merge Engine
============

Counts landings and collapses the top of the stack into a bigger base duck.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

from duck_tower.stack_core.config_loader import GameConfig, get_config
from duck_tower.stack_core.duck import Duck
from duck_tower.stack_core.levels import DifficultyCurve

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Result of a merge attempt."""
    merged: bool
    stack: List[Duck]
    counter: int
    removed: Tuple[Duck, ...] = field(default_factory=tuple)
    base: Optional[Duck] = None


class MergeEngine:
    """
    Landing counter and base-duck growth.

    Every landing adds one to the counter. Once the counter reaches the
    threshold and the stack holds the base plus at least ``threshold``
    ducks, the topmost ``threshold`` ducks are removed and the base grows
    by one merge level.

    Growth per merge is chosen so that exactly ``merges_needed(level)``
    merges take the base from its configured width to the level-up width,
    whatever the design width.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize merge engine.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._curve = DifficultyCurve(config)
        self._threshold = config.merge.threshold
        self._base_width = config.duck.base_width
        self._base_height = config.duck.base_height
        self._ground_y = config.viewport.ground_y

    @property
    def threshold(self) -> int:
        """Landings needed per merge."""
        return self._threshold

    def on_landing(self, counter: int) -> int:
        return counter + 1

    def growth_rate(self, design_width: float, level: int) -> float:
        """Per-merge width growth rate for ``level`` at ``design_width``."""
        target = self._curve.level_up_width(design_width)
        merges = self._curve.merges_needed(level)
        return (target / self._base_width) ** (1.0 / merges) - 1.0

    def base_size(self, merge_level: int, design_width: float, level: int) -> Tuple[float, float]:
        """(width, height) of a base duck at ``merge_level``."""
        factor = (1.0 + self.growth_rate(design_width, level)) ** merge_level
        return self._base_width * factor, self._base_height * factor

    def can_merge(self, counter: int, stack: Sequence[Duck]) -> bool:
        return counter >= self._threshold and len(stack) >= self._threshold + 1

    def try_merge(
        self,
        counter: int,
        stack: Sequence[Duck],
        design_width: float,
        level: int
    ) -> MergeResult:
        """
        Merge the top of the stack into the base if the trigger is met.

        Args:
            counter: Landings since the last merge.
            stack: Ducks from the base (index 0) upwards. Not modified.
            design_width: Current design width.
            level: Current level index.

        Returns:
            MergeResult. ``stack`` is always a new list; on a merge its base is
            a grown copy of the old base.
        """
        if not self.can_merge(counter, stack):
            return MergeResult(merged=False, stack=list(stack), counter=counter)

        old_base = stack[0]
        merge_level = old_base.merge_level + 1
        width, height = self.base_size(merge_level, design_width, level)
        base = replace(old_base, merge_level=merge_level)
        base.resize(width, height, ground_y=self._ground_y)

        keep = len(stack) - self._threshold
        removed = tuple(stack[keep:])
        new_stack = [base] + list(stack[1:keep])

        logger.info(
            "merge: level=%d merge_level=%d base=%.1fx%.1f removed=%d",
            level, merge_level, width, height, len(removed)
        )
        return MergeResult(
            merged=True,
            stack=new_stack,
            counter=0,
            removed=removed,
            base=base
        )
