"""
Replay Recorder
===============

Records everything fed into a TowerGame so the game can be rebuilt exactly.

Every TowerGame keeps an InputJournal: the commands it accepted, the inputs
it queued and the length of every tick, all keyed by tick index. Because the
simulation is deterministic for a seed phrase, replaying the journal into a
fresh game with the same seed and config reproduces the final state bit for
bit.

Usage:
    from duck_tower.stack_core import TowerGame, ReplayRecorder, replay

    game = TowerGame(seed="cosmic-golden-tower")
    recorder = ReplayRecorder(game, agent_name="me")
    game.start()
    ...                          # drive the game
    path = recorder.save()

    result = replay(path)
    assert result["matches"]

For Gymnasium agents, ``record_episode(env, agent_fn)`` runs one TowerEnv
episode and returns the journal of the env's game.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

from duck_tower.stack_core.config_loader import GameConfig, load_config
from duck_tower.stack_core.events import InputEvent

if TYPE_CHECKING:
    from duck_tower.stack_core.env_gym import TowerEnv
    from duck_tower.stack_core.game import TowerGame
    from duck_tower.stack_core.state_snapshot import GameSnapshot

REPLAY_VERSION = 1


def generate_replay_filename(
    agent_name: str = "replay",
    seed: Optional[str] = None,
    directory: Optional[Union[str, Path]] = None
) -> Path:
    """
    Generate a timestamped replay filename.

    Format: {agent_name}_{YYYYMMDD_HHMMSS}_{seed}.json
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    parts = [agent_name, timestamp] + ([seed] if seed else [])
    filename = "_".join(parts) + ".json"
    return Path(directory) / filename if directory else Path(filename)


def compute_config_hash(config: Optional[GameConfig] = None) -> str:
    """Hash of every gameplay-relevant parameter, for replay validation."""
    if config is None:
        config = load_config()
    hash_data = {
        "viewport": asdict(config.viewport),
        "duck": asdict(config.duck),
        "physics": asdict(config.physics),
        "wobble": asdict(config.wobble),
        "merge": asdict(config.merge),
        "levels": asdict(config.levels),
    }
    return hashlib.md5(json.dumps(hash_data, sort_keys=True).encode()).hexdigest()[:8]


def summarize(snapshot: "GameSnapshot") -> Dict[str, Any]:
    """
    JSON-safe fingerprint of a game state.

    Covers the outcome (mode, score, reason) as well as the exact geometry
    of the stack and the wobble, so two games only match if they played out
    identically.
    """
    return {
        "mode": snapshot.mode.value,
        "score": snapshot.score,
        "level": snapshot.level,
        "drops": snapshot.drops,
        "elapsed_ms": snapshot.elapsed_ms,
        "game_over_reason": (
            snapshot.game_over_reason.value if snapshot.game_over_reason else None
        ),
        "merge_counter": snapshot.merge_counter,
        "stack": [[d.x, d.y, d.w, d.h, d.merge_level] for d in snapshot.stack],
        "wobble": [
            snapshot.wobble.angle,
            snapshot.wobble.angular_velocity,
            snapshot.wobble.instability,
        ],
    }


# -----------------------------------------------------------------------------
# Journal
# -----------------------------------------------------------------------------

@dataclass
class InputJournal:
    """
    Everything a TowerGame was fed, keyed by tick index.

    ``entries`` holds accepted commands (``{"tick", "command", ...}``) and
    queued inputs (``{"tick", "input"}``) in submission order. An entry with
    tick ``n`` was made before the game's ``n``-th tick. ``frames`` stores
    tick lengths run-length encoded as ``[dt_ms, count]`` pairs.
    """
    seed: str
    viewport_width: float
    viewport_height: Optional[float] = None
    high_score: int = 0
    entries: List[Dict[str, Any]] = field(default_factory=list)
    frames: List[List[float]] = field(default_factory=list)
    ticks: int = 0

    def record_command(self, name: str, **kwargs) -> None:
        self.entries.append({"tick": self.ticks, "command": name, **kwargs})

    def record_input(self, event: InputEvent) -> None:
        self.entries.append({"tick": self.ticks, "input": event.to_dict()})

    def record_tick(self, dt_ms: float) -> None:
        if self.frames and self.frames[-1][0] == dt_ms:
            self.frames[-1][1] += 1
        else:
            self.frames.append([dt_ms, 1])
        self.ticks += 1

    def replay_into(self, game: "TowerGame") -> None:
        """Feed the journal into a fresh game built from the same seed."""
        index = 0
        tick = 0
        for dt_ms, count in self.frames:
            for _ in range(int(count)):
                index = self._apply_entries(game, index, tick)
                game.tick(dt_ms)
                tick += 1
        # Commands issued after the last tick
        self._apply_entries(game, index, tick)

    def _apply_entries(self, game: "TowerGame", index: int, tick: int) -> int:
        while index < len(self.entries) and self.entries[index]["tick"] == tick:
            entry = self.entries[index]
            if "input" in entry:
                game.submit(InputEvent.from_dict(entry["input"]))
            elif entry["command"] == "start":
                game.start(entry.get("seed"))
            elif entry["command"] == "continue":
                game.continue_level()
            elif entry["command"] == "restart":
                game.restart()
            else:
                raise ValueError(f"Unknown journal command: {entry['command']!r}")
            index += 1
        return index

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "viewport_width": self.viewport_width,
            "viewport_height": self.viewport_height,
            "high_score": self.high_score,
            "entries": [dict(e) for e in self.entries],
            "frames": [list(f) for f in self.frames],
            "ticks": self.ticks,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "InputJournal":
        return InputJournal(
            seed=data["seed"],
            viewport_width=float(data.get("viewport_width", 412)),
            viewport_height=data.get("viewport_height"),
            high_score=int(data.get("high_score", 0)),
            entries=list(data.get("entries", [])),
            frames=[list(f) for f in data.get("frames", [])],
            ticks=int(data.get("ticks", 0))
        )


# -----------------------------------------------------------------------------
# Recording
# -----------------------------------------------------------------------------

class ReplayRecorder:
    """
    Turns a game's journal into a saved replay.

    The recorder can be attached at any point of the game's life; the
    journal always covers everything since the game was constructed.
    """

    def __init__(
        self,
        game: "TowerGame",
        agent_name: str = "unknown",
        metadata: Optional[Dict[str, Any]] = None
    ):
        self._game = game
        self.agent_name = agent_name
        self.metadata: Dict[str, Any] = dict(metadata or {})
        self._config_hash = compute_config_hash(game.config)

    @property
    def game(self) -> "TowerGame":
        return self._game

    def get_replay_data(self) -> Dict[str, Any]:
        """Journal plus metadata and the fingerprint of the current state."""
        final = summarize(self._game.snapshot())
        data = self._game.journal.to_dict()
        data.update(self.metadata)
        data.update({
            "version": REPLAY_VERSION,
            "agent": self.agent_name,
            "config_hash": self._config_hash,
            "final": final,
            "final_score": final["score"],
        })
        return data

    def save(
        self,
        path: Optional[Union[str, Path]] = None,
        overwrite: bool = True,
        directory: Optional[Union[str, Path]] = None
    ) -> Path:
        """
        Save the replay as JSON.

        Args:
            path: Target file. A timestamped name is generated if None.
            overwrite: If False, refuse to replace an existing file.
            directory: Directory for the generated name.

        Raises:
            FileExistsError: If the file exists and ``overwrite`` is False.
        """
        path = Path(path) if path is not None else generate_replay_filename(
            self.agent_name, self._game.journal.seed, directory
        )
        if path.exists() and not overwrite:
            raise FileExistsError(f"Replay file already exists: {path}")

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.get_replay_data(), f, indent=2)
        return path


def load_replay(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a replay saved by ReplayRecorder.save()."""
    with open(path, "r") as f:
        return json.load(f)


def replay(
    data: Union[Dict[str, Any], str, Path],
    config: Optional[GameConfig] = None
) -> Dict[str, Any]:
    """
    Rebuild a recorded game from its journal.

    Args:
        data: Replay dictionary or path to a replay file.
        config: Config to replay under. The default config if None.

    Returns:
        ``{"snapshot", "final", "final_score", "matches", "mismatched"}`` where
        ``matches`` tells whether the rebuilt state equals the recorded one
        and ``mismatched`` lists the fingerprint keys that differ.

    Raises:
        ValueError: If the replay was recorded with a different config.
    """
    from duck_tower.stack_core.game import TowerGame
    from duck_tower.stack_core.highscore import HighScoreStore

    if not isinstance(data, dict):
        data = load_replay(data)
    if config is None:
        config = load_config()

    expected_hash = data.get("config_hash")
    actual_hash = compute_config_hash(config)
    if expected_hash and expected_hash != actual_hash:
        raise ValueError(
            f"Replay config hash {expected_hash} does not match current config {actual_hash}"
        )

    journal = InputJournal.from_dict(data)
    store = HighScoreStore()
    store.save(journal.high_score)
    game = TowerGame(
        config=config,
        seed=journal.seed,
        high_score_store=store,
        viewport_width=journal.viewport_width,
        viewport_height=journal.viewport_height
    )
    journal.replay_into(game)

    snapshot = game.snapshot()
    final = summarize(snapshot)
    recorded = data.get("final", {})
    mismatched = sorted(k for k in final if recorded.get(k) != final[k])

    return {
        "snapshot": snapshot,
        "final": final,
        "final_score": snapshot.score,
        "matches": not mismatched,
        "mismatched": mismatched,
    }


def record_episode(
    env: "TowerEnv",
    agent_fn: Callable[[Dict[str, Any]], Any],
    seed: Optional[int] = None,
    save_path: Optional[str] = None,
    agent_name: str = "unknown",
    seed_phrase: Optional[str] = None
) -> Dict[str, Any]:
    """
    Run one TowerEnv episode and return the replay of its game.

    Args:
        env: The environment.
        agent_fn: Maps an observation to an action.
        seed: Integer seed for the episode.
        save_path: If provided, save the replay there.
        agent_name: Name stored in the replay.
        seed_phrase: Seed phrase; takes precedence over ``seed``.
    """
    options = {"seed_phrase": seed_phrase} if seed_phrase else None
    obs, info = env.reset(seed=seed, options=options)

    steps = 0
    total_reward = 0.0
    done = False
    while not done:
        obs, reward, terminated, truncated, info = env.step(agent_fn(obs))
        steps += 1
        total_reward += float(reward)
        done = terminated or truncated

    recorder = ReplayRecorder(env.game, agent_name=agent_name, metadata={
        "steps": steps,
        "total_reward": total_reward,
        "termination_reason": info.get("terminated_reason") or "truncated",
    })
    if save_path:
        recorder.save(save_path)
    return recorder.get_replay_data()
