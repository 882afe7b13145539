"""
Tests for landing resolution.
"""

import pytest

from duck_tower.stack_core.collision import (
    LandingOutcome,
    LandingResolver,
    collision_zone,
    landing_target_y,
)
from duck_tower.stack_core.config_loader import load_config
from duck_tower.stack_core.duck import Duck, DuckPhase


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def resolver(config):
    return LandingResolver(config)


@pytest.fixture
def top():
    return Duck(x=200.0, y=500.0, w=60.0, h=52.0, phase=DuckPhase.STATIC)


def falling_duck(x, prev_y, y):
    return Duck(x=x, y=y, w=60.0, h=52.0, phase=DuckPhase.FALLING, prev_y=prev_y)


class TestCollisionZone:
    """Test hit zone geometry."""

    @pytest.mark.parametrize("width", [1.0, 60.0, 123.4, 640.0])
    def test_zone_scales_with_width(self, width):
        """The zone is 65% of the width and doubles with it."""
        assert collision_zone(width) == pytest.approx(width * 0.65)
        assert collision_zone(2 * width) == pytest.approx(2 * collision_zone(width))

    def test_resolver_zone_uses_top_width(self, resolver, top):
        assert resolver.zone(top) == pytest.approx(39.0)

    def test_landing_line(self, top):
        assert landing_target_y(top) == pytest.approx(500.0 - 52.0 * 0.85)


class TestLandingResolver:
    """Test swept landing classification."""

    def test_perfect_snaps_to_top(self, resolver, top):
        """Offsets within 8 px snap onto the top duck."""
        target = resolver.target_y(top)
        for dx in (-8.0, -3.5, 0.0, 5.0, 8.0):
            result = resolver.resolve(falling_duck(top.x + dx, target - 10, target + 5), top)
            assert result.outcome is LandingOutcome.PERFECT
            assert result.x == top.x
            assert result.y == target

    def test_hit_keeps_x(self, resolver, top):
        """Offsets past 8 px but inside the zone land where they are."""
        target = resolver.target_y(top)
        for dx in (8.5, -20.0, 38.9):
            result = resolver.resolve(falling_duck(top.x + dx, target - 10, target + 5), top)
            assert result.outcome is LandingOutcome.HIT
            assert result.x == top.x + dx
            assert result.offset == pytest.approx(dx)

    def test_miss_outside_zone(self, resolver, top):
        target = resolver.target_y(top)
        result = resolver.resolve(falling_duck(top.x + 40.0, target - 10, target + 5), top)
        assert result.outcome is LandingOutcome.MISS
        assert not result.landed

    def test_crossing_exactly_on_line(self, resolver, top):
        """Reaching the line exactly counts as a crossing."""
        target = resolver.target_y(top)
        result = resolver.resolve(falling_duck(top.x, target - 20, target), top)
        assert result.landed

    def test_no_crossing_above_line(self, resolver, top):
        target = resolver.target_y(top)
        result = resolver.resolve(falling_duck(top.x, target - 40, target - 20), top)
        assert result.outcome is LandingOutcome.NONE

    def test_never_collides_from_below(self, resolver, top):
        """A duck already at or below the line never lands."""
        target = resolver.target_y(top)
        assert resolver.resolve(falling_duck(top.x, target, target + 20), top).outcome is LandingOutcome.NONE
        assert resolver.resolve(falling_duck(top.x, target + 5, target + 25), top).outcome is LandingOutcome.NONE

    def test_fast_fall_does_not_tunnel(self, resolver, top):
        """A single large step across the line is still caught."""
        target = resolver.target_y(top)
        result = resolver.resolve(falling_duck(top.x + 2.0, target - 500, target + 500), top)
        assert result.is_perfect

    def test_wider_top_widens_zone(self, resolver):
        """A grown base accepts offsets a normal duck would miss."""
        big = Duck(x=200.0, y=600.0, w=120.0, h=104.0, phase=DuckPhase.STATIC)
        target = resolver.target_y(big)
        result = resolver.resolve(falling_duck(270.0, target - 10, target + 10), big)
        assert result.outcome is LandingOutcome.HIT

    def test_fell_through(self, resolver, config):
        ground = config.viewport.ground_y
        deep = falling_duck(100.0, ground + 390, ground + 410)
        assert resolver.fell_through(deep, camera_y=0.0)
        assert not resolver.fell_through(deep, camera_y=50.0)


class TestDuckPrevY:
    """Test the swept-collision starting point."""

    def test_prev_y_defaults_to_y(self):
        assert Duck(x=0.0, y=120.0, w=60.0, h=52.0).prev_y == 120.0

    def test_prev_y_zero_is_kept(self):
        duck = falling_duck(200.0, 0.0, 20.0)
        assert duck.prev_y == 0.0

    def test_crossing_from_screen_top(self, resolver):
        """A duck that was at y=0 last frame still lands on a line just below it."""
        top = Duck(x=200.0, y=54.2, w=60.0, h=52.0, phase=DuckPhase.STATIC)
        assert 0.0 < resolver.target_y(top) <= 20.0
        result = resolver.resolve(falling_duck(200.0, 0.0, 20.0), top)
        assert result.is_perfect
