"""
Tests for the input journal, recording and replaying games.
"""

import json

import pytest

from duck_tower.stack_core.config_loader import load_config
from duck_tower.stack_core.env_gym import TowerEnv
from duck_tower.stack_core.events import GameMode, InputType
from duck_tower.stack_core.game import TowerGame
from duck_tower.stack_core.highscore import HighScoreStore
from duck_tower.stack_core.replay_recorder import (
    InputJournal,
    ReplayRecorder,
    generate_replay_filename,
    load_replay,
    record_episode,
    replay,
)


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def game(config):
    return TowerGame(config=config, seed="record-me-now")


def drop_at(game, x, max_ticks=2000):
    for _ in range(max_ticks):
        if game.current_is_controllable or game.mode is not GameMode.PLAYING:
            break
        game.tick()
    game.drag_to(x)
    game.drop()
    for _ in range(max_ticks):
        game.tick()
        if not game.has_current or game.mode is not GameMode.PLAYING:
            break


def scripted_agent(actions):
    queue = list(actions)

    def act(obs):
        return queue.pop(0) if queue else -1.0

    return act


class TestInputJournal:
    """Test what a game writes to its journal."""

    def test_commands_inputs_and_ticks(self, game):
        game.start()
        game.move_left()
        game.tick()
        game.tick()
        game.tick(10.0)

        journal = game.journal
        assert journal.seed == "record-me-now"
        assert journal.entries[0] == {"tick": 0, "command": "start", "seed": None}
        assert journal.entries[1]["tick"] == 0
        assert journal.entries[1]["input"]["type"] == InputType.MOVE_LEFT.value
        assert journal.frames == [[16.0, 2], [10.0, 1]]
        assert journal.ticks == 3

    def test_rejected_commands_not_recorded(self, game):
        assert not game.continue_level()
        assert not game.restart()
        assert game.journal.entries == []

    def test_start_records_resolved_seed(self, game):
        game.start("Brand New Seed")
        assert game.journal.entries[0]["seed"] == "brand-new-seed"

    def test_round_trip(self, game):
        game.start()
        game.drag_to(150.0)
        game.tick()
        journal = InputJournal.from_dict(json.loads(json.dumps(game.journal.to_dict())))
        assert journal == game.journal

    def test_high_score_at_construction(self, config):
        store = HighScoreStore()
        store.save(7)
        game = TowerGame(config=config, seed="x", high_score_store=store)
        assert game.journal.high_score == 7


class TestReplay:
    """Test that recordings rebuild the same game."""

    def test_replay_matches_recording(self, game):
        recorder = ReplayRecorder(game, agent_name="tester")
        game.start()
        for x in (206.0, 210.0, 220.0):
            drop_at(game, x)
        data = recorder.get_replay_data()

        assert data["agent"] == "tester"
        assert data["final_score"] == game.score == 3

        result = replay(data)
        assert result["matches"]
        assert result["mismatched"] == []
        assert result["snapshot"].stack == game.snapshot().stack
        assert result["snapshot"].wobble == game.wobble

    def test_replay_across_restart(self, game):
        recorder = ReplayRecorder(game)
        game.start()
        drop_at(game, 206.0)
        drop_at(game, 0.0)
        assert game.mode is GameMode.GAMEOVER
        game.restart()
        drop_at(game, 215.0)

        result = replay(recorder.get_replay_data())
        assert result["matches"]
        assert result["final_score"] == 1

    def test_replay_with_uneven_ticks(self, game):
        recorder = ReplayRecorder(game)
        game.start()
        for dt in (10.0, 33.0, 16.0, 7.5) * 50:
            game.tick(dt)
        game.drag_to(200.0)
        game.drop()
        for _ in range(100):
            game.tick(21.0)

        assert replay(recorder.get_replay_data())["matches"]

    def test_altered_input_is_detected(self, game):
        """Replays compare the whole stack, not just the score."""
        recorder = ReplayRecorder(game)
        game.start()
        drop_at(game, 216.0)
        data = json.loads(json.dumps(recorder.get_replay_data()))

        for entry in data["entries"]:
            if entry.get("input", {}).get("type") == InputType.DRAG_TO.value:
                entry["input"]["x"] = 220.0

        result = replay(data)
        assert result["final_score"] == data["final_score"]
        assert not result["matches"]
        assert "stack" in result["mismatched"]

    def test_config_mismatch(self, game):
        game.start()
        data = ReplayRecorder(game).get_replay_data()
        data["config_hash"] = "deadbeef"
        with pytest.raises(ValueError):
            replay(data)


class TestSaving:
    """Test replay files."""

    def test_save_and_load(self, game, tmp_path):
        recorder = ReplayRecorder(game)
        game.start()
        drop_at(game, 206.0)
        path = recorder.save(tmp_path / "episode.json")

        with open(path) as f:
            assert json.load(f) == json.loads(json.dumps(recorder.get_replay_data()))
        assert replay(load_replay(path))["matches"]

    def test_save_refuses_overwrite(self, game, tmp_path):
        recorder = ReplayRecorder(game)
        path = recorder.save(tmp_path / "episode.json")
        with pytest.raises(FileExistsError):
            recorder.save(path, overwrite=False)

    def test_generated_filename(self, tmp_path):
        path = generate_replay_filename("agent", seed="a-b-c", directory=tmp_path)
        assert path.parent == tmp_path
        assert path.name.startswith("agent_")
        assert path.name.endswith("_a-b-c.json")


class TestRecordEpisode:
    """Test recording TowerEnv episodes."""

    def test_env_episode_replays(self, tmp_path):
        path = tmp_path / "run.json"
        data = record_episode(
            TowerEnv(),
            scripted_agent([0.0, 0.02, -0.02, 0.0, 0.05]),
            save_path=str(path),
            agent_name="scripted",
            seed_phrase="same-every-time"
        )
        assert data["seed"] == "same-every-time"
        assert data["steps"] == 6
        assert data["termination_reason"] == "missed"

        result = replay(path)
        assert result["matches"]
        assert result["final_score"] == data["final_score"] == 5
