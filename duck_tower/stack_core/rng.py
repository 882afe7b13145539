"""
RNG - Seeded Random Source
==========================

Provides deterministic randomness for reproducible gameplay: level names,
level colors and spawn positions all derive from a seed phrase.
"""

from __future__ import annotations

import base64
import binascii
import math
import random
import re
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

# Word pools for seed phrases and level names
ADJECTIVES: Tuple[str, ...] = (
    "Cosmic", "Electric", "Mystic", "Radiant", "Twilight", "Crystal",
    "Frozen", "Blazing", "Shadow", "Golden", "Silver", "Neon", "Quantum",
    "Stellar", "Oceanic", "Desert", "Forest", "Mountain", "Celestial",
    "Ancient", "Modern", "Prismatic", "Luminous", "Ethereal", "Volcanic",
    "Glacial", "Thunder", "Harmonic", "Plasma", "Nebula", "Aurora", "Sonic",
    "Cyber", "Pixel", "Vector", "Digital", "Analog", "Retro", "Future",
    "Hyper",
)

NOUNS: Tuple[str, ...] = (
    "Psyduck", "Tower", "Dimension", "Realm", "Paradise", "Palace",
    "Sanctuary", "Citadel", "Fortress", "Haven", "Domain", "Kingdom",
    "Empire", "Nexus", "Portal", "Gateway", "Horizon", "Oasis", "Valley",
    "Peak", "Cascade", "Vortex", "Matrix", "Core", "Zone", "Sector", "Arena",
    "Stadium", "Garden", "Labyrinth", "Maze", "Chamber", "Vault", "Archive",
    "Library", "Temple", "Shrine", "Monument", "Spire", "Pinnacle",
)

DEFAULT_SEED_MAX_LENGTH = 100


def generate_seed_phrase(source: Optional[random.Random] = None) -> str:
    """
    Generate a random adjective-adjective-noun seed phrase.

    Args:
        source: Generator to draw from. A fresh unseeded one if None.

    Returns:
        Lower-case phrase such as "cosmic-golden-tower".
    """
    source = source or random.Random()
    words = [
        source.choice(ADJECTIVES),
        source.choice(ADJECTIVES),
        source.choice(NOUNS),
    ]
    return "-".join(words).lower()


class SeededRandom:
    """
    Deterministic random source keyed by a seed phrase.

    Two instances created with the same seed produce the same sequence of
    draws. String seeds are hashed by ``random.Random`` itself, so sequences
    are stable across interpreter runs.
    """

    def __init__(self, seed: Optional[str] = None):
        """
        Initialize the generator.

        Args:
            seed: Seed phrase. A random phrase is generated if None or empty.
        """
        self.seed: str = seed or generate_seed_phrase()
        self._rng = random.Random(self.seed)

    def next(self) -> float:
        """Next float in [0, 1)."""
        return self._rng.random()

    def next_int(self, low: int, high: int) -> int:
        """Random integer in [low, high)."""
        return math.floor(self.next() * (high - low)) + low

    def next_float(self, low: float, high: float) -> float:
        """Random float in [low, high)."""
        return self.next() * (high - low) + low

    def choose(self, items: Sequence[T]) -> T:
        """
        Choose a random element.

        Raises:
            IndexError: If ``items`` is empty. An empty candidate set means a
                corrupted word or level table and is not recoverable.
        """
        if len(items) == 0:
            raise IndexError("choose() called with an empty sequence")
        return items[self.next_int(0, len(items))]

    def shuffle(self, items: Sequence[T]) -> List[T]:
        """Return a shuffled copy using Fisher-Yates."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.next_int(0, i + 1)
            result[i], result[j] = result[j], result[i]
        return result

    def reset(self, seed: Optional[str] = None) -> None:
        """
        Restart the sequence.

        Args:
            seed: New seed phrase. A random phrase is generated if None.
        """
        self.seed = seed or generate_seed_phrase()
        self._rng = random.Random(self.seed)

    def generate_level_name(self) -> str:
        """Level name of the form "Adjective Adjective Noun" (two distinct adjectives)."""
        first = self.choose(ADJECTIVES)
        second = self.choose([a for a in ADJECTIVES if a != first])
        noun = self.choose(NOUNS)
        return f"{first} {second} {noun}"

    def generate_color(self, saturation: int = 70, lightness: int = 60) -> str:
        """Random-hue HSL color string."""
        hue = self.next_int(0, 360)
        return f"hsl({hue}, {saturation}%, {lightness}%)"

    def generate_color_pair(self) -> Tuple[str, str]:
        """
        Generate a primary color and a paler secondary color of the same hue.

        Returns:
            (primary, secondary) HSL strings.
        """
        hue = self.next_int(0, 360)
        saturation = self.next_int(60, 90)
        lightness = self.next_int(50, 70)
        primary = f"hsl({hue}, {saturation}%, {lightness}%)"
        secondary = f"hsl({hue}, {max(20, saturation - 30)}%, {min(90, lightness + 20)}%)"
        return primary, secondary

    def generate_hex_color(self) -> str:
        """Random saturated color as a hex string."""
        hue = self.next_int(0, 360)
        saturation = self.next_int(60, 90)
        lightness = self.next_int(50, 70)
        return hsl_to_hex(hue, saturation, lightness)


def hsl_to_hex(h: float, s: float, l: float) -> str:
    """
    Convert HSL (degrees, percent, percent) to a "#rrggbb" string.

    Args:
        h: Hue in degrees.
        s: Saturation in percent.
        l: Lightness in percent.
    """
    l /= 100
    a = s * min(l, 1 - l) / 100

    def channel(n: int) -> str:
        k = (n + h / 30) % 12
        color = l - a * max(min(k - 3, 9 - k, 1), -1)
        return f"{int(round(255 * color)):02x}"

    return f"#{channel(0)}{channel(8)}{channel(4)}"


def sanitize_seed(text: str, max_length: int = DEFAULT_SEED_MAX_LENGTH) -> str:
    """
    Normalize free-form seed input.

    Lower-cases, trims, drops everything outside ``[a-z0-9-]`` and whitespace,
    turns whitespace runs into single dashes and truncates. Never raises.
    """
    cleaned = str(text).lower().strip()
    cleaned = re.sub(r"[^a-z0-9\-\s]", "", cleaned)
    cleaned = re.sub(r"\s+", "-", cleaned)
    return cleaned[:max_length]


def parse_seed(seed: str) -> Dict[str, object]:
    """
    Split an adjective-adjective-noun seed into its words.

    Returns:
        ``{"is_valid": True, "adjective1": ..., "adjective2": ..., "noun": ...}``
        for three-part seeds, ``{"is_valid": False}`` otherwise.
    """
    parts = seed.split("-")
    if len(parts) == 3:
        return {
            "is_valid": True,
            "adjective1": parts[0],
            "adjective2": parts[1],
            "noun": parts[2],
        }
    return {"is_valid": False}


def generate_shareable_code(seed: str, level: int, score: int) -> str:
    """Encode a seed, level and score into a base64 share code."""
    return base64.b64encode(f"{seed}:{level}:{score}".encode("utf-8")).decode("ascii")


def parse_shareable_code(code: str) -> Optional[Dict[str, object]]:
    """
    Decode a share code produced by ``generate_shareable_code``.

    Returns:
        ``{"seed": str, "level": int, "score": int}`` or None if the code is
        malformed in any way.
    """
    try:
        decoded = base64.b64decode(code.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        return None

    parts = decoded.split(":")
    if len(parts) != 3:
        return None

    seed, level_text, score_text = parts
    try:
        level = int(level_text, 10)
        score = int(score_text, 10)
    except ValueError:
        return None

    return {"seed": seed, "level": level, "score": score}
