"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml


@dataclass(frozen=True)
class ViewportConfig:
    """Design-space geometry and camera settings."""
    design_width_min: int
    design_width_max: int
    design_height: float
    ground_y: float            # Bottom edge of the base duck
    camera_anchor: float       # Fraction of design height kept above the landing line
    camera_smoothing: float    # Per-frame easing factor in (0, 1]
    spawn_margin: float        # Hover height below the top of the view

    def clamp_width(self, viewport_width: float) -> float:
        """Clamp a viewport width into the design width range."""
        return float(max(self.design_width_min, min(self.design_width_max, viewport_width)))


@dataclass(frozen=True)
class DuckConfig:
    """Duck geometry and landing tolerances."""
    base_width: float
    base_height: float
    perfect_tolerance: float   # Absolute pixels
    hit_tolerance: float       # Fraction of top duck width
    landing_overlap: float
    squish_factor: float
    squish_recovery: float
    arrow_step: float
    spawn_clearance: float
    hover_oscillation: bool
    oscillation_speed: float
    default_primary_color: str
    default_secondary_color: str

    @property
    def aspect_ratio(self) -> float:
        """Height / width of an unmerged duck."""
        return self.base_height / self.base_width


@dataclass(frozen=True)
class PhysicsConfig:
    """Frame timing and fall kinematics."""
    frame_ms: float
    gravity: float
    fallback_distance: float


@dataclass(frozen=True)
class WobbleConfig:
    """Pendulum and stability parameters."""
    max_angle_degrees: float
    damping: float
    restoring: float
    height_factor: float
    imbalance_factor: float
    size_stability_factor: float
    impulse_gain: float
    mass_force: float
    imbalance_normalization: float
    topple_ratio: float
    critical_angle_ratio: float
    critical_angular_velocity: float
    warning_stability: float
    critical_stability: float

    @property
    def max_angle(self) -> float:
        """Maximum tilt in radians."""
        return math.radians(self.max_angle_degrees)


@dataclass(frozen=True)
class MergeConfig:
    """Merge trigger parameters."""
    threshold: int
    particle_count: int


@dataclass(frozen=True)
class LevelsConfig:
    """Level progression formulas."""
    level_up_ratio: float
    base_merges: int
    difficulty_scale: float
    spawn_interval_base_ms: float
    spawn_interval_min_ms: float
    spawn_interval_log_factor: float
    auto_drop_base_ms: float
    auto_drop_step_ms: float
    auto_drop_min_ms: float
    wobble_multiplier_step: float
    pregenerated_levels: int


@dataclass(frozen=True)
class ParticlesConfig:
    """Visual particle bursts."""
    perfect_count: int
    life_decay: float
    max_speed: float
    min_size: float
    max_size: float


@dataclass(frozen=True)
class SeedConfig:
    """Seed input limits."""
    max_length: int


@dataclass(frozen=True)
class ObservationConfig:
    """Agent observation parameters."""
    max_ducks: int
    max_drops: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    viewport: ViewportConfig
    duck: DuckConfig
    physics: PhysicsConfig
    wobble: WobbleConfig
    merge: MergeConfig
    levels: LevelsConfig
    particles: ParticlesConfig
    seed: SeedConfig
    observation: ObservationConfig

    @property
    def level_up_threshold_ratio(self) -> float:
        """Base duck width / design width that triggers a level-up."""
        return self.levels.level_up_ratio


def _require_positive(section: str, **values: float) -> None:
    for name, value in values.items():
        if value <= 0:
            raise ValueError(f"{section}.{name} must be positive, got {value}")


def _require_fraction(section: str, **values: float) -> None:
    for name, value in values.items():
        if not 0 < value <= 1:
            raise ValueError(f"{section}.{name} must be in (0, 1], got {value}")


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    vp = config.viewport
    if vp.design_width_min > vp.design_width_max:
        raise ValueError(
            f"viewport.design_width_min ({vp.design_width_min}) exceeds "
            f"design_width_max ({vp.design_width_max})"
        )
    _require_positive("viewport", design_width_min=vp.design_width_min, design_height=vp.design_height)
    _require_fraction("viewport", camera_anchor=vp.camera_anchor, camera_smoothing=vp.camera_smoothing)

    duck = config.duck
    _require_positive("duck", base_width=duck.base_width, base_height=duck.base_height)
    _require_fraction("duck", hit_tolerance=duck.hit_tolerance, landing_overlap=duck.landing_overlap)
    if duck.perfect_tolerance < 0:
        raise ValueError(f"duck.perfect_tolerance must be >= 0, got {duck.perfect_tolerance}")
    if duck.base_width * 2 > vp.design_width_min:
        raise ValueError("duck.base_width is too wide for the minimum design width")

    _require_positive("physics", frame_ms=config.physics.frame_ms, gravity=config.physics.gravity)

    wobble = config.wobble
    _require_fraction("wobble", damping=wobble.damping, topple_ratio=wobble.topple_ratio)
    if wobble.critical_stability >= wobble.warning_stability:
        raise ValueError(
            f"wobble.critical_stability ({wobble.critical_stability}) must be below "
            f"warning_stability ({wobble.warning_stability})"
        )

    if config.merge.threshold < 1:
        raise ValueError(f"merge.threshold must be >= 1, got {config.merge.threshold}")

    levels = config.levels
    _require_fraction("levels", level_up_ratio=levels.level_up_ratio)
    if levels.level_up_ratio * vp.design_width_min <= duck.base_width:
        raise ValueError("levels.level_up_ratio leaves no room for base duck growth")
    if levels.pregenerated_levels < 1:
        raise ValueError("levels.pregenerated_levels must be >= 1")

    if config.observation.max_ducks < config.merge.threshold + 1:
        raise ValueError(
            f"observation.max_ducks ({config.observation.max_ducks}) must hold a full "
            f"pre-merge stack ({config.merge.threshold + 1})"
        )


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    vp_data = raw["viewport"]
    viewport = ViewportConfig(
        design_width_min=int(vp_data["design_width_min"]),
        design_width_max=int(vp_data["design_width_max"]),
        design_height=float(vp_data["design_height"]),
        ground_y=float(vp_data["ground_y"]),
        camera_anchor=float(vp_data.get("camera_anchor", 0.45)),
        camera_smoothing=float(vp_data.get("camera_smoothing", 0.1)),
        spawn_margin=float(vp_data.get("spawn_margin", 120))
    )

    duck_data = raw["duck"]
    duck = DuckConfig(
        base_width=float(duck_data["base_width"]),
        base_height=float(duck_data["base_height"]),
        perfect_tolerance=float(duck_data["perfect_tolerance"]),
        hit_tolerance=float(duck_data["hit_tolerance"]),
        landing_overlap=float(duck_data.get("landing_overlap", 0.85)),
        squish_factor=float(duck_data.get("squish_factor", 0.2)),
        squish_recovery=float(duck_data.get("squish_recovery", 0.15)),
        arrow_step=float(duck_data.get("arrow_step", 15)),
        spawn_clearance=float(duck_data.get("spawn_clearance", 2.0)),
        hover_oscillation=bool(duck_data.get("hover_oscillation", False)),
        oscillation_speed=float(duck_data.get("oscillation_speed", 0.003)),
        default_primary_color=str(duck_data.get("default_primary_color", "#FDD835")),
        default_secondary_color=str(duck_data.get("default_secondary_color", "#FFE082"))
    )

    physics_data = raw["physics"]
    physics = PhysicsConfig(
        frame_ms=float(physics_data.get("frame_ms", 16.0)),
        gravity=float(physics_data["gravity"]),
        fallback_distance=float(physics_data.get("fallback_distance", 400))
    )

    wobble_data = raw["wobble"]
    wobble = WobbleConfig(
        max_angle_degrees=float(wobble_data["max_angle_degrees"]),
        damping=float(wobble_data["damping"]),
        restoring=float(wobble_data["restoring"]),
        height_factor=float(wobble_data["height_factor"]),
        imbalance_factor=float(wobble_data["imbalance_factor"]),
        size_stability_factor=float(wobble_data["size_stability_factor"]),
        impulse_gain=float(wobble_data.get("impulse_gain", 0.01)),
        mass_force=float(wobble_data.get("mass_force", 0.003)),
        imbalance_normalization=float(wobble_data.get("imbalance_normalization", 100)),
        topple_ratio=float(wobble_data.get("topple_ratio", 0.95)),
        critical_angle_ratio=float(wobble_data.get("critical_angle_ratio", 0.9)),
        critical_angular_velocity=float(wobble_data.get("critical_angular_velocity", 0.3)),
        warning_stability=float(wobble_data.get("warning_stability", 60)),
        critical_stability=float(wobble_data.get("critical_stability", 30))
    )

    merge_data = raw["merge"]
    merge = MergeConfig(
        threshold=int(merge_data["threshold"]),
        particle_count=int(merge_data.get("particle_count", 10))
    )

    levels_data = raw["levels"]
    levels = LevelsConfig(
        level_up_ratio=float(levels_data["level_up_ratio"]),
        base_merges=int(levels_data["base_merges"]),
        difficulty_scale=float(levels_data["difficulty_scale"]),
        spawn_interval_base_ms=float(levels_data["spawn_interval_base_ms"]),
        spawn_interval_min_ms=float(levels_data["spawn_interval_min_ms"]),
        spawn_interval_log_factor=float(levels_data["spawn_interval_log_factor"]),
        auto_drop_base_ms=float(levels_data["auto_drop_base_ms"]),
        auto_drop_step_ms=float(levels_data["auto_drop_step_ms"]),
        auto_drop_min_ms=float(levels_data["auto_drop_min_ms"]),
        wobble_multiplier_step=float(levels_data["wobble_multiplier_step"]),
        pregenerated_levels=int(levels_data.get("pregenerated_levels", 10))
    )

    particles_data = raw.get("particles", {})
    particles = ParticlesConfig(
        perfect_count=int(particles_data.get("perfect_count", 15)),
        life_decay=float(particles_data.get("life_decay", 0.03)),
        max_speed=float(particles_data.get("max_speed", 5.0)),
        min_size=float(particles_data.get("min_size", 2.0)),
        max_size=float(particles_data.get("max_size", 7.0))
    )

    seed_data = raw.get("seed", {})
    seed = SeedConfig(
        max_length=int(seed_data.get("max_length", 100))
    )

    obs_data = raw.get("observation", {})
    observation = ObservationConfig(
        max_ducks=int(obs_data.get("max_ducks", 16)),
        max_drops=int(obs_data.get("max_drops", 500))
    )

    config = GameConfig(
        viewport=viewport,
        duck=duck,
        physics=physics,
        wobble=wobble,
        merge=merge,
        levels=levels,
        particles=particles,
        seed=seed,
        observation=observation
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
