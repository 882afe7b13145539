"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the Duck Tower game.
One step places the hovering duck, drops it and simulates until the landing
resolves. Reward is the number of points gained during the step.
"""

from __future__ import annotations

import random
from typing import Any, Dict, Optional, Tuple, Union

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from duck_tower.stack_core.config_loader import GameConfig, load_config
from duck_tower.stack_core.events import GameMode
from duck_tower.stack_core.game import TowerGame
from duck_tower.stack_core.highscore import HighScoreStore
from duck_tower.stack_core.rng import generate_seed_phrase
from duck_tower.stack_core.rules import SpawnRules
from duck_tower.stack_core.state_snapshot import GameSnapshot

# Safety cap on simulation ticks per step
MAX_TICKS_PER_STEP = 5000


class TowerEnv(gym.Env):
    """
    Duck Tower stacking game as a Gymnasium environment.

    Action Space:
        Box(low=-1.0, high=1.0, shape=(), dtype=float32)
        Drop x position from the left edge (-1) to the right edge (+1).

    Observation Space:
        Dict of scalars and fixed-size stack arrays (see GameSnapshot.to_obs_dict).

    Reward:
        Points gained during the step.

    Info:
        Contains score, delta_score, level, drops, terminated_reason, etc.
    """

    metadata = {
        "render_modes": [],
        "render_fps": 60,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        viewport_width: float = 412,
        debug: bool = False,
    ):
        """
        Initialize Duck Tower environment.

        Args:
            config_path: Path to game_config.yaml. Uses default if None.
            viewport_width: Screen width the design width is derived from.
            debug: If True, enables verbose debug output for agent development.
        """
        super().__init__()

        self._config = load_config(config_path)
        self._viewport_width = viewport_width
        self._debug = debug
        self._spawn = SpawnRules(self._config)
        self._max_ducks = self._config.observation.max_ducks
        self._max_drops = self._config.observation.max_drops

        self._game = self._new_game(None)
        self._steps = 0

        self.action_space = spaces.Box(
            low=-1.0,
            high=1.0,
            shape=(),
            dtype=np.float32
        )
        self.observation_space = self._build_observation_space()

        if self._debug:
            print(f"[DEBUG] TowerEnv initialized")
            print(f"[DEBUG]   Design width: {self._game.design_width:.0f}")
            print(f"[DEBUG]   Merge threshold: {self._config.merge.threshold}")
            print(f"[DEBUG]   Max drops: {self._max_drops}")

    def _new_game(self, seed: Optional[str]) -> TowerGame:
        return TowerGame(
            config=self._config,
            seed=seed,
            high_score_store=HighScoreStore(),
            viewport_width=self._viewport_width
        )

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        n = self._max_ducks
        vp = self._config.viewport
        width = float(vp.design_width_max)

        def scalar(low, high, dtype=np.float32):
            return spaces.Box(low=low, high=high, shape=(), dtype=dtype)

        obs_dict = {
            # Core state
            "mode": scalar(0, 3, np.int32),
            "score": scalar(0, np.iinfo(np.int64).max, np.int64),
            "level": scalar(0, np.iinfo(np.int32).max, np.int32),
            "drops": scalar(0, np.iinfo(np.int32).max, np.int32),

            # Geometry
            "design_width": scalar(vp.design_width_min, vp.design_width_max),
            "camera_y": scalar(-np.inf, 0),
            "landing_line": scalar(-np.inf, np.inf),

            # Current duck
            "current_x": scalar(0, width),
            "current_y": scalar(-np.inf, np.inf),
            "current_phase": scalar(0, 4, np.int32),

            # Progress
            "merge_counter": scalar(0, self._config.merge.threshold, np.int32),
            "merge_level": scalar(0, np.iinfo(np.int32).max, np.int32),
            "merges_needed": scalar(0, np.iinfo(np.int32).max, np.int32),
            "base_width": scalar(0, width),
            "level_up_width": scalar(0, width),

            # Wobble
            "wobble_angle": scalar(-np.pi, np.pi),
            "wobble_angular_velocity": scalar(-np.inf, np.inf),
            "instability": scalar(0, np.inf),
            "center_of_mass_offset": scalar(-np.inf, np.inf),
            "stability": scalar(0, 100),

            # Timers
            "auto_drop_remaining": scalar(0, self._config.levels.auto_drop_base_ms),

            # Stack arrays
            "duck_x": spaces.Box(low=-np.inf, high=np.inf, shape=(n,), dtype=np.float32),
            "duck_y": spaces.Box(low=-np.inf, high=np.inf, shape=(n,), dtype=np.float32),
            "duck_w": spaces.Box(low=0, high=width, shape=(n,), dtype=np.float32),
            "duck_h": spaces.Box(low=0, high=np.inf, shape=(n,), dtype=np.float32),
            "duck_mask": spaces.MultiBinary(n),
        }
        return spaces.Dict(obs_dict)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment.

        Args:
            seed: Integer seed; mapped to a seed phrase.
            options: ``{"seed_phrase": str}`` to play a specific phrase.

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        phrase = None
        if options and options.get("seed_phrase"):
            phrase = str(options["seed_phrase"])
        elif seed is not None:
            phrase = generate_seed_phrase(random.Random(seed))

        self._game = self._new_game(phrase)
        self._game.start()
        self._steps = 0

        obs = self._snapshot_to_obs(self._game.snapshot())
        info = self._get_info()
        info["delta_score"] = 0
        return obs, info

    def step(
        self,
        action: Union[float, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one step.

        Args:
            action: Drop x position in [-1, 1].

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
        """
        if isinstance(action, np.ndarray):
            action = float(action.item() if action.ndim == 0 else action[0])
        action = float(action)

        game = self._game
        score_before = game.score
        leveled_up = False
        ticks = 0

        if game.mode is GameMode.PLAYING:
            # Wait out the spawn interval
            while not game.current_is_controllable and game.mode is GameMode.PLAYING \
                    and ticks < MAX_TICKS_PER_STEP:
                game.tick()
                ticks += 1

            if game.current_is_controllable:
                x = self._spawn.action_to_x(action, self._config.duck.base_width, game.design_width)
                game.drag_to(x)
                game.drop()
                game.tick()
                ticks += 1
                while game.has_current and game.mode is GameMode.PLAYING \
                        and ticks < MAX_TICKS_PER_STEP:
                    game.tick()
                    ticks += 1

            if game.mode is GameMode.LEVELUP:
                leveled_up = True
                game.continue_level()

        self._steps += 1
        delta_score = game.score - score_before
        terminated = game.mode is GameMode.GAMEOVER
        truncated = not terminated and self._steps >= self._max_drops

        obs = self._snapshot_to_obs(game.snapshot())
        reward = float(delta_score)

        info = self._get_info()
        info["delta_score"] = delta_score
        info["ticks"] = ticks
        info["leveled_up"] = leveled_up

        if self._debug:
            print(f"[DEBUG] Step: action={action:.3f}, delta_score={delta_score}, "
                  f"stack={int(obs['duck_mask'].sum())}, stability={float(obs['stability']):.1f}")
            if terminated:
                print(f"[DEBUG] TERMINATED: {info.get('terminated_reason', 'unknown')}")

        return obs, reward, terminated, truncated, info

    def _get_info(self) -> Dict[str, Any]:
        info = self._game.get_info()
        info["seed"] = self._game.seed
        info["steps"] = self._steps
        return info

    def _snapshot_to_obs(self, snapshot: GameSnapshot) -> Dict[str, np.ndarray]:
        """Convert snapshot to observation dict."""
        return snapshot.to_obs_dict(self._max_ducks)

    def render(self) -> None:
        """No built-in rendering; consume snapshots instead."""
        return None

    def close(self) -> None:
        """Clean up resources."""
        self._game = None

    @property
    def game(self) -> TowerGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config
