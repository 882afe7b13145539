"""
Tests for difficulty formulas and the level table.
"""

import math

import pytest

from duck_tower.stack_core.config_loader import load_config
from duck_tower.stack_core.game import TowerGame
from duck_tower.stack_core.levels import DifficultyCurve, LevelTable


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def curve(config):
    return DifficultyCurve(config)


class TestDifficultyCurve:
    """Test level formulas."""

    @pytest.mark.parametrize("level,expected", [
        (0, 5000),
        (1, 4800),
        (17, 1600),
        (18, 1500),
        (100, 1500),
    ])
    def test_auto_drop_clamp(self, curve, level, expected):
        """Auto-drop shrinks by 200 ms per level down to 1500 ms."""
        assert curve.auto_drop_ms(level) == expected

    def test_spawn_interval(self, curve):
        """Spawn interval falls logarithmically to an 800 ms floor."""
        assert curve.spawn_interval_ms(0) == 2000
        assert curve.spawn_interval_ms(1) == pytest.approx(2000 - math.log(2) * 150)
        assert curve.spawn_interval_ms(10_000) == 800
        for level in range(50):
            assert curve.spawn_interval_ms(level + 1) <= curve.spawn_interval_ms(level)

    def test_wobble_multiplier(self, curve):
        assert curve.wobble_multiplier(0) == 1.0
        assert curve.wobble_multiplier(5) == pytest.approx(1.5)

    @pytest.mark.parametrize("level,expected", [
        (0, 6),
        (1, 7),
        (2, 8),
        (6, 9),
    ])
    def test_merges_needed(self, curve, level, expected):
        assert curve.merges_needed(level) == expected

    def test_level_up_threshold(self, curve):
        """Level-up fires at 80% of the design width."""
        assert curve.level_up_width(412) == pytest.approx(329.6)
        assert curve.should_level_up(329.6, 412)
        assert curve.should_level_up(329.6 - 1e-12, 412)
        assert not curve.should_level_up(329.0, 412)


class TestLevelTable:
    """Test deterministic level generation."""

    def test_pregenerated(self, config):
        table = LevelTable("pregen", config)
        assert len(table) == config.levels.pregenerated_levels

    def test_same_seed_same_levels(self, config):
        """Two tables with the same seed produce identical configs."""
        a = LevelTable("test-001", config)
        b = LevelTable("test-001", config)
        assert [a[i] for i in range(5)] == [b[i] for i in range(5)]

    def test_two_games_share_levels(self, config):
        """Two games created with the same seed see the same first five levels."""
        a = TowerGame(config=config, seed="test-001")
        b = TowerGame(config=config, seed="test-001")
        for i in range(5):
            assert a.levels[i] == b.levels[i]

    def test_different_seed_different_levels(self, config):
        a = LevelTable("first-seed", config)
        b = LevelTable("second-seed", config)
        assert [a[i] for i in range(5)] != [b[i] for i in range(5)]

    def test_lazy_extension_matches_sequential(self, config):
        """Jumping ahead yields the same configs as walking level by level."""
        jumped = LevelTable("lazy", config)
        walked = LevelTable("lazy", config)
        far = jumped[25]
        for i in range(26):
            walked[i]
        assert far == walked[25]
        assert jumped.names() == walked.names()

    def test_level_fields(self, config):
        curve = DifficultyCurve(config)
        table = LevelTable("fields", config)
        level = table[3]
        assert level.index == 3
        assert level.spawn_interval_ms == curve.spawn_interval_ms(3)
        assert level.wobble_multiplier == curve.wobble_multiplier(3)
        assert level.primary_color.startswith("hsl(")

    def test_negative_index(self, config):
        with pytest.raises(IndexError):
            LevelTable("neg", config)[-1]
