"""
Tests for the seeded random source and seed helpers.
"""

import base64
import re

import pytest

from duck_tower.stack_core.rng import (
    ADJECTIVES,
    NOUNS,
    SeededRandom,
    generate_shareable_code,
    hsl_to_hex,
    parse_seed,
    parse_shareable_code,
    sanitize_seed,
)


HSL_PATTERN = re.compile(r"^hsl\((\d+), (\d+)%, (\d+)%\)$")


class TestSeededRandom:
    """Test deterministic draws."""

    def test_same_seed_same_sequence(self):
        """Two generators with the same seed draw identical values."""
        a = SeededRandom("cosmic-golden-tower")
        b = SeededRandom("cosmic-golden-tower")
        assert [a.next() for _ in range(50)] == [b.next() for _ in range(50)]

    def test_different_seeds_differ(self):
        """Different seeds give different sequences."""
        a = SeededRandom("alpha")
        b = SeededRandom("beta")
        assert [a.next() for _ in range(10)] != [b.next() for _ in range(10)]

    def test_missing_seed_generates_phrase(self):
        """A None seed is replaced by an adjective-adjective-noun phrase."""
        rng = SeededRandom()
        parts = rng.seed.split("-")
        assert len(parts) == 3
        assert parts[2] in [n.lower() for n in NOUNS]

    def test_next_int_range(self):
        """next_int stays in [low, high)."""
        rng = SeededRandom("range")
        values = [rng.next_int(3, 7) for _ in range(500)]
        assert min(values) >= 3
        assert max(values) <= 6
        assert set(values) == {3, 4, 5, 6}

    def test_next_float_range(self):
        rng = SeededRandom("floats")
        for _ in range(200):
            value = rng.next_float(-5.0, 5.0)
            assert -5.0 <= value < 5.0

    def test_choose_empty_raises(self):
        """Choosing from an empty sequence is a fatal range error."""
        rng = SeededRandom("empty")
        with pytest.raises(IndexError):
            rng.choose([])

    def test_shuffle_is_permutation(self):
        """shuffle returns a reordered copy and leaves the input alone."""
        rng = SeededRandom("shuffle")
        items = list(range(20))
        result = rng.shuffle(items)
        assert sorted(result) == items
        assert items == list(range(20))

    def test_reset_restarts_sequence(self):
        rng = SeededRandom("again")
        first = [rng.next() for _ in range(5)]
        rng.reset("again")
        assert [rng.next() for _ in range(5)] == first


class TestGenerators:
    """Test level name and color generation."""

    def test_level_name_shape(self):
        """Level names are two distinct adjectives and a noun."""
        rng = SeededRandom("names")
        for _ in range(100):
            first, second, noun = rng.generate_level_name().split(" ")
            assert first in ADJECTIVES
            assert second in ADJECTIVES
            assert first != second
            assert noun in NOUNS

    def test_color_pair_ranges(self):
        """Secondary color shares the hue and is paler."""
        rng = SeededRandom("colors")
        for _ in range(100):
            primary, secondary = rng.generate_color_pair()
            h1, s1, l1 = map(int, HSL_PATTERN.match(primary).groups())
            h2, s2, l2 = map(int, HSL_PATTERN.match(secondary).groups())
            assert 0 <= h1 < 360
            assert 60 <= s1 < 90
            assert 50 <= l1 < 70
            assert h2 == h1
            assert s2 == max(20, s1 - 30)
            assert l2 == min(90, l1 + 20)

    def test_hsl_to_hex(self):
        assert hsl_to_hex(0, 100, 50) == "#ff0000"
        assert hsl_to_hex(120, 100, 50) == "#00ff00"
        assert hsl_to_hex(0, 0, 100) == "#ffffff"

    def test_hex_color_format(self):
        rng = SeededRandom("hex")
        assert re.match(r"^#[0-9a-f]{6}$", rng.generate_hex_color())


class TestSeedHelpers:
    """Test seed sanitizing, parsing and share codes."""

    def test_sanitize_strips_and_dashes(self):
        assert sanitize_seed("  Hello World!! ") == "hello-world"

    def test_sanitize_truncates(self):
        assert len(sanitize_seed("a" * 150)) == 100

    def test_sanitize_never_raises(self):
        """Garbage input is cleaned, not rejected."""
        assert sanitize_seed("%%%$$$") == ""
        assert sanitize_seed("Duck\tTower\n42") == "duck-tower-42"

    def test_parse_seed(self):
        parsed = parse_seed("cosmic-golden-tower")
        assert parsed["is_valid"] is True
        assert parsed["adjective1"] == "cosmic"
        assert parsed["noun"] == "tower"
        assert parse_seed("just-two")["is_valid"] is False

    def test_shareable_code_round_trip(self):
        code = generate_shareable_code("cosmic-golden-tower", 3, 42)
        assert parse_shareable_code(code) == {
            "seed": "cosmic-golden-tower",
            "level": 3,
            "score": 42,
        }

    def test_malformed_share_codes(self):
        """Malformed share codes decode to None."""
        assert parse_shareable_code("!!!") is None
        assert parse_shareable_code("abc") is None
        two_parts = base64.b64encode(b"seed:1").decode("ascii")
        assert parse_shareable_code(two_parts) is None
        not_numbers = base64.b64encode(b"seed:x:1").decode("ascii")
        assert parse_shareable_code(not_numbers) is None
