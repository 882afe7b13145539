"""
Levels
======

Difficulty formulas and the per-seed table of level configurations.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

from duck_tower.stack_core.config_loader import GameConfig, get_config
from duck_tower.stack_core.rng import SeededRandom

# Relative slack for the level-up comparison. The growth rate is derived with
# a fractional power, so the width after exactly merges_needed merges can land
# a few ulps below the threshold.
LEVEL_UP_REL_TOLERANCE = 1e-9


@dataclass(frozen=True)
class LevelConfig:
    """Immutable visual and difficulty settings for one level."""
    index: int
    name: str
    primary_color: str
    secondary_color: str
    spawn_interval_ms: float
    wobble_multiplier: float


class DifficultyCurve:
    """
    Pure formulas mapping a level index to difficulty parameters.

    - spawn_interval_ms(L) = max(800, 2000 - ln(L + 1) * 150)
    - auto_drop_ms(L)      = max(1500, 5000 - L * 200)
    - wobble_multiplier(L) = 1.0 + L * 0.1
    - merges_needed(L)     = 5 + floor(log2(L + 2) * 1.5)
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._levels = config.levels

    def spawn_interval_ms(self, level: int) -> float:
        """Delay between a landing and the next spawn."""
        lv = self._levels
        return max(
            lv.spawn_interval_min_ms,
            lv.spawn_interval_base_ms - math.log(level + 1) * lv.spawn_interval_log_factor
        )

    def auto_drop_ms(self, level: int) -> float:
        """Time a hovering duck waits before it drops on its own."""
        lv = self._levels
        return max(lv.auto_drop_min_ms, lv.auto_drop_base_ms - level * lv.auto_drop_step_ms)

    def wobble_multiplier(self, level: int) -> float:
        """Scale applied to landing impulses."""
        return 1.0 + level * self._levels.wobble_multiplier_step

    def merges_needed(self, level: int) -> int:
        """Merges that take the base duck from base size to the level-up width."""
        lv = self._levels
        return lv.base_merges + math.floor(math.log2(level + 2) * lv.difficulty_scale)

    def level_up_width(self, design_width: float) -> float:
        """Base duck width that ends the level."""
        return design_width * self._levels.level_up_ratio

    def should_level_up(self, base_width: float, design_width: float) -> bool:
        """True once the base duck has reached the level-up width."""
        threshold = self.level_up_width(design_width)
        return base_width >= threshold * (1.0 - LEVEL_UP_REL_TOLERANCE)


class LevelTable:
    """
    Ordered cache of LevelConfig entries generated from a seed.

    Configs are generated strictly in index order from a dedicated
    SeededRandom, so entry i depends only on the seed.
    """

    def __init__(self, seed: str, config: Optional[GameConfig] = None):
        """
        Initialize the table and pre-generate the first levels.

        Args:
            seed: Seed phrase shared with the rest of the game.
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._curve = DifficultyCurve(config)
        self._rng = SeededRandom(seed)
        self._levels: List[LevelConfig] = []
        self._ensure(config.levels.pregenerated_levels - 1)

    @property
    def seed(self) -> str:
        return self._rng.seed

    def _generate(self, index: int) -> LevelConfig:
        name = self._rng.generate_level_name()
        primary, secondary = self._rng.generate_color_pair()
        return LevelConfig(
            index=index,
            name=name,
            primary_color=primary,
            secondary_color=secondary,
            spawn_interval_ms=self._curve.spawn_interval_ms(index),
            wobble_multiplier=self._curve.wobble_multiplier(index)
        )

    def _ensure(self, index: int) -> None:
        while len(self._levels) <= index:
            self._levels.append(self._generate(len(self._levels)))

    def __getitem__(self, index: int) -> LevelConfig:
        if index < 0:
            raise IndexError(f"Level index must be >= 0, got {index}")
        self._ensure(index)
        return self._levels[index]

    def __len__(self) -> int:
        """Number of levels generated so far."""
        return len(self._levels)

    def __iter__(self):
        return iter(tuple(self._levels))

    def names(self) -> List[str]:
        """Names of all generated levels."""
        return [level.name for level in self._levels]
