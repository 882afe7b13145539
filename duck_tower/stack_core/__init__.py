"""
Stack Core - The deterministic Duck Tower simulation.

This module provides the frame-stepped game orchestrator, the Gymnasium
environment wrapper and all supporting systems (landing resolution, wobble,
merging, level progression, scoring, RNG).

Main exports:
- TowerGame: Game simulation with mode state machine and input queue
- TowerEnv: Gymnasium environment for single-agent training
- GameSnapshot: Immutable per-tick view of the game
- GameConfig: Configuration loaded from game_config.yaml
"""

from duck_tower.stack_core.config_loader import GameConfig, get_config, load_config
from duck_tower.stack_core.rng import SeededRandom, sanitize_seed
from duck_tower.stack_core.levels import DifficultyCurve, LevelConfig, LevelTable
from duck_tower.stack_core.duck import Duck, DuckPhase
from duck_tower.stack_core.collision import LandingOutcome, LandingResolver, LandingResult
from duck_tower.stack_core.wobble import StabilityStatus, WobbleEngine, WobbleState
from duck_tower.stack_core.merge_engine import MergeEngine, MergeResult
from duck_tower.stack_core.events import GameMode, GameOverReason, InputEvent, InputType
from duck_tower.stack_core.highscore import HighScoreStore
from duck_tower.stack_core.state_snapshot import GameSnapshot
from duck_tower.stack_core.game import TickResult, TowerGame
from duck_tower.stack_core.env_gym import TowerEnv
from duck_tower.stack_core.replay_recorder import (
    InputJournal,
    ReplayRecorder,
    record_episode,
    replay,
    generate_replay_filename,
)

__all__ = [
    "GameConfig",
    "get_config",
    "load_config",
    "SeededRandom",
    "sanitize_seed",
    "DifficultyCurve",
    "LevelConfig",
    "LevelTable",
    "Duck",
    "DuckPhase",
    "LandingOutcome",
    "LandingResolver",
    "LandingResult",
    "StabilityStatus",
    "WobbleEngine",
    "WobbleState",
    "MergeEngine",
    "MergeResult",
    "GameMode",
    "GameOverReason",
    "InputEvent",
    "InputType",
    "HighScoreStore",
    "GameSnapshot",
    "TickResult",
    "TowerGame",
    "TowerEnv",
    "InputJournal",
    "ReplayRecorder",
    "record_episode",
    "replay",
    "generate_replay_filename",
]
