"""
Tests for Gymnasium environment API.
"""

from pathlib import Path

import numpy as np
import pytest
import yaml

from duck_tower.stack_core import config_loader
from duck_tower.stack_core.config_loader import load_config
from duck_tower.stack_core.env_gym import TowerEnv
from duck_tower.stack_core.events import GameMode


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def env():
    env = TowerEnv()
    yield env
    env.close()


class TestTowerEnv:
    """Test single environment API."""

    def test_reset_returns_obs_and_info(self, env):
        """Reset should return (observation, info) tuple."""
        result = env.reset(seed=42)

        assert isinstance(result, tuple)
        assert len(result) == 2

        obs, info = result
        assert isinstance(obs, dict)
        assert isinstance(info, dict)
        assert info["delta_score"] == 0
        assert env.game.mode is GameMode.PLAYING

    def test_observation_structure(self, env):
        """Observation should have expected keys and shapes."""
        obs, _ = env.reset(seed=42)

        for key in ("mode", "score", "level", "current_x", "wobble_angle",
                    "stability", "merge_counter", "base_width"):
            assert key in obs

        max_ducks = env.config.observation.max_ducks
        assert obs["duck_x"].shape == (max_ducks,)
        assert obs["duck_w"].shape == (max_ducks,)
        assert obs["duck_mask"].shape == (max_ducks,)
        assert obs["duck_mask"].sum() == 1

    def test_observation_in_space(self, env):
        obs, _ = env.reset(seed=7)
        assert env.observation_space.contains(obs)
        obs, *_ = env.step(0.0)
        assert env.observation_space.contains(obs)

    def test_step_returns_five_values(self, env):
        """Step should return (obs, reward, terminated, truncated, info)."""
        env.reset(seed=42)

        result = env.step(0.0)

        assert isinstance(result, tuple)
        assert len(result) == 5

        obs, reward, terminated, truncated, info = result
        assert isinstance(obs, dict)
        assert isinstance(reward, float)
        assert isinstance(terminated, bool)
        assert isinstance(truncated, bool)
        assert isinstance(info, dict)

    def test_centered_drop_scores(self, env):
        """Action 0 drops on the center of the base for a perfect landing."""
        env.reset(seed=42)
        obs, reward, terminated, truncated, info = env.step(np.array(0.0, dtype=np.float32))

        assert reward == 1.0
        assert not terminated
        assert info["score"] == 1
        assert info["delta_score"] == 1
        assert info["perfect_landings"] == 1
        assert obs["duck_mask"].sum() == 2

    def test_edge_drop_misses(self, env):
        env.reset(seed=42)
        _, reward, terminated, _, info = env.step(-1.0)

        assert terminated
        assert reward == 0.0
        assert info["terminated_reason"] == "missed"

    def test_seed_phrase_option(self, env):
        _, info = env.reset(options={"seed_phrase": "Cosmic Golden Tower"})
        assert info["seed"] == "cosmic-golden-tower"

    def test_integer_seed_is_reproducible(self, env):
        _, first = env.reset(seed=123)
        _, second = env.reset(seed=123)
        assert first["seed"] == second["seed"]

    def test_deterministic_episodes(self):
        """Same seed and actions give identical observations."""
        def run():
            env = TowerEnv()
            obs, _ = env.reset(seed=5)
            trace = []
            for action in (0.0, 0.01, -0.01, 0.0):
                obs, reward, terminated, truncated, info = env.step(action)
                trace.append((reward, info["score"], obs["wobble_angle"].item(), obs["current_x"].item()))
                if terminated:
                    break
            env.close()
            return trace

        assert run() == run()

    def test_level_up_auto_continues(self, env):
        env.reset(seed=1)
        leveled = False
        for _ in range(30):
            _, _, terminated, _, info = env.step(0.0)
            assert not terminated
            leveled = leveled or info["leveled_up"]
        assert leveled
        assert info["level"] == 1
        assert env.game.mode is GameMode.PLAYING

    def test_truncation_at_drop_cap(self, tmp_path):
        default_path = Path(config_loader.__file__).resolve().parent.parent / "game_config.yaml"
        with open(default_path) as f:
            raw = yaml.safe_load(f)
        raw["observation"]["max_drops"] = 2
        path = tmp_path / "game_config.yaml"
        with open(path, "w") as f:
            yaml.safe_dump(raw, f)

        env = TowerEnv(config_path=str(path))
        env.reset(seed=3)
        _, _, _, truncated, _ = env.step(0.0)
        assert not truncated
        _, _, terminated, truncated, _ = env.step(0.0)
        assert truncated
        assert not terminated
