"""
Tests for scoring and high score persistence.
"""

import json

import pytest

from duck_tower.stack_core.config_loader import load_config
from duck_tower.stack_core.highscore import HighScoreStore
from duck_tower.stack_core.scoring import ScoreTracker


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def scorer(config):
    return ScoreTracker(config)


class TestScoreTracker:
    """Test score bookkeeping."""

    def test_one_point_per_landing(self, scorer):
        scorer.apply_landing(perfect=False)
        scorer.apply_landing(perfect=True)
        assert scorer.score == 2
        assert scorer.landings == 2
        assert scorer.perfect_count == 1

    def test_streaks(self, scorer):
        for perfect in (True, True, True, False, True):
            event = scorer.apply_landing(perfect)
        assert event.streak == 1
        assert scorer.best_streak == 3

    def test_high_score(self, config):
        scorer = ScoreTracker(config, high_score=2)
        assert not scorer.apply_landing(False).new_high_score
        assert not scorer.apply_landing(False).new_high_score
        assert scorer.apply_landing(False).new_high_score
        assert scorer.high_score == 3

    def test_reset_keeps_high_score(self, scorer):
        scorer.apply_landing(True)
        scorer.reset()
        assert scorer.score == 0
        assert scorer.streak == 0
        assert scorer.high_score == 1


class TestHighScoreStore:
    """Test high score persistence."""

    def test_in_memory(self):
        store = HighScoreStore()
        assert store.load() == 0
        assert store.save(5)
        assert not store.save(3)
        assert store.load() == 5

    def test_missing_file_reads_zero(self, tmp_path):
        assert HighScoreStore(tmp_path / "missing.json").load() == 0

    def test_corrupt_file_reads_zero(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        store = HighScoreStore(path)
        assert store.load() == 0
        assert store.save(4)
        assert json.loads(path.read_text()) == {"high_score": 4}

    def test_only_improvements_written(self, tmp_path):
        path = tmp_path / "hs.json"
        store = HighScoreStore(path)
        store.save(10)
        assert not store.save(7)
        assert json.loads(path.read_text()) == {"high_score": 10}
