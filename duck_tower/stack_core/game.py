"""
Core Game
=========

Main game orchestrator combining landing resolution, wobble, merging, level
progression and scoring into a frame-stepped simulation.

The game owns a single GameState. Inputs are queued and applied at the start
of the next tick; every tick returns an immutable snapshot plus the events it
produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from duck_tower.stack_core.collision import LandingResolver, LandingResult
from duck_tower.stack_core.config_loader import GameConfig, get_config
from duck_tower.stack_core.duck import (
    Duck, Particle, make_base_duck, make_hovering_duck, spawn_particles
)
from duck_tower.stack_core.events import (
    GameEvent, GameMode, GameOver, GameOverReason, InputEvent, InputType,
    Landed, LeveledUp, Merged, ModeChanged, ParticlesSpawned, ScoreChanged
)
from duck_tower.stack_core.highscore import HighScoreStore
from duck_tower.stack_core.levels import DifficultyCurve, LevelConfig, LevelTable
from duck_tower.stack_core.merge_engine import MergeEngine
from duck_tower.stack_core.replay_recorder import InputJournal
from duck_tower.stack_core.rng import SeededRandom, generate_seed_phrase, sanitize_seed
from duck_tower.stack_core.rules import Camera, SpawnRules, TerminationResult, Viewport
from duck_tower.stack_core.scoring import ScoreTracker
from duck_tower.stack_core.state_snapshot import DuckView, GameSnapshot
from duck_tower.stack_core.wobble import (
    WobbleEngine, WobbleState, center_of_mass_offset
)

logger = logging.getLogger(__name__)


@dataclass
class GameState:
    """Mutable state of one game, owned by TowerGame."""
    mode: GameMode
    seed: str
    level: int
    stack: List[Duck]
    current: Optional[Duck] = None
    merge_counter: int = 0
    wobble: WobbleState = field(default_factory=WobbleState)
    particles: List[Particle] = field(default_factory=list)
    drops: int = 0
    elapsed_ms: float = 0.0
    auto_drop_elapsed_ms: float = 0.0
    spawn_elapsed_ms: Optional[float] = None    # None when no spawn is pending
    game_over_reason: Optional[GameOverReason] = None


@dataclass
class TickResult:
    """Result of a single tick."""
    snapshot: GameSnapshot
    events: List[GameEvent]

    def of_type(self, event_type: type) -> List[GameEvent]:
        return [e for e in self.events if isinstance(e, event_type)]


class TowerGame:
    """
    Main game simulation class.

    Orchestrates:
    - Mode state machine (MENU, PLAYING, LEVELUP, GAMEOVER)
    - Spawning, hover controls and free fall
    - Landing resolution
    - Wobble and topple detection
    - Merging and level progression
    - Scoring, high score and particles

    Gameplay timers advance only in PLAYING mode.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[str] = None,
        high_score_store: Optional[HighScoreStore] = None,
        viewport_width: float = 412,
        viewport_height: Optional[float] = None
    ):
        """
        Initialize game in MENU mode.

        Args:
            config: Game configuration. Uses default if None.
            seed: Seed phrase; sanitized. A random phrase is used if None or
                if nothing survives sanitizing.
            high_score_store: Persistence for the high score. In memory if None.
            viewport_width: Screen width in device pixels.
            viewport_height: Screen height in device pixels, optional.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._store = high_score_store if high_score_store is not None else HighScoreStore()

        # Subsystems
        self._curve = DifficultyCurve(config)
        self._resolver = LandingResolver(config)
        self._wobble = WobbleEngine(config)
        self._merger = MergeEngine(config)
        self._spawn = SpawnRules(config)
        self._camera = Camera(config)
        self._scorer = ScoreTracker(config, high_score=self._store.load())
        self._viewport = Viewport.fit(viewport_width, viewport_height, config)

        self._pending: List[InputEvent] = []
        self._outbox: List[GameEvent] = []

        self._setup(self._resolve_seed(seed))
        self._state.mode = GameMode.MENU
        self._journal = InputJournal(
            seed=self._state.seed,
            viewport_width=viewport_width,
            viewport_height=viewport_height,
            high_score=self._scorer.high_score
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def mode(self) -> GameMode:
        return self._state.mode

    @property
    def seed(self) -> str:
        return self._state.seed

    @property
    def level(self) -> int:
        return self._state.level

    @property
    def level_config(self) -> LevelConfig:
        """Config of the current level."""
        return self._levels[self._state.level]

    @property
    def levels(self) -> LevelTable:
        return self._levels

    @property
    def score(self) -> int:
        """Current score."""
        return self._scorer.score

    @property
    def high_score(self) -> int:
        return self._scorer.high_score

    @property
    def scorer(self) -> ScoreTracker:
        return self._scorer

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def design_width(self) -> float:
        return self._viewport.design_width

    @property
    def camera_y(self) -> float:
        return self._camera.y

    @property
    def merge_counter(self) -> int:
        return self._state.merge_counter

    @property
    def wobble(self) -> WobbleState:
        return self._state.wobble

    @property
    def wobble_engine(self) -> WobbleEngine:
        return self._wobble

    @property
    def drops(self) -> int:
        """Number of ducks landed this game."""
        return self._state.drops

    @property
    def game_over_reason(self) -> Optional[GameOverReason]:
        return self._state.game_over_reason

    @property
    def has_current(self) -> bool:
        """True if a duck is hovering, dragged or falling."""
        return self._state.current is not None

    @property
    def current_is_controllable(self) -> bool:
        current = self._state.current
        return current is not None and current.is_controllable

    @property
    def pending_inputs(self) -> int:
        return len(self._pending)

    @property
    def journal(self) -> InputJournal:
        """Every accepted command, input and tick since construction."""
        return self._journal

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def _resolve_seed(self, seed: Optional[str]) -> str:
        if seed:
            cleaned = sanitize_seed(seed, self._config.seed.max_length)
            if cleaned:
                return cleaned
        return generate_seed_phrase()

    def _setup(self, seed: str) -> None:
        """Build fresh per-game state for ``seed``. The mode is left to the caller."""
        self._levels = LevelTable(seed, self._config)
        self._spawn_rng = SeededRandom(f"{seed}/spawn")
        self._particle_rng = SeededRandom(f"{seed}/particles")
        self._scorer.reset()
        self._camera.reset()

        base = self._new_base_duck(0)
        self._state = GameState(
            mode=GameMode.MENU,
            seed=seed,
            level=0,
            stack=[base],
            wobble=self._wobble.reset(1)
        )

    def _new_base_duck(self, level: int) -> Duck:
        level_config = self._levels[level]
        return make_base_duck(
            self.design_width,
            self._config,
            primary_color=level_config.primary_color,
            secondary_color=level_config.secondary_color
        )

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def _set_mode(self, mode: GameMode) -> None:
        previous = self._state.mode
        if previous is mode:
            return
        self._state.mode = mode
        # Pending timers never carry across a mode change
        self._state.auto_drop_elapsed_ms = 0.0
        self._state.spawn_elapsed_ms = None
        self._outbox.append(ModeChanged(previous, mode))
        logger.info("mode %s -> %s (seed=%s level=%d)", previous.value, mode.value,
                    self._state.seed, self._state.level)

    def start(self, seed: Optional[str] = None) -> bool:
        """
        Leave the menu and start playing.

        Args:
            seed: Optional new seed phrase; keeps the current seed if None.

        Returns:
            True if the game started, False if not in MENU mode.
        """
        if self._state.mode is not GameMode.MENU:
            return False
        if seed is not None:
            self._setup(self._resolve_seed(seed))
        # The resolved phrase, so a generated one replays identically
        self._journal.record_command("start", seed=self._state.seed if seed is not None else None)
        self._set_mode(GameMode.PLAYING)
        self._spawn_duck()
        return True

    def continue_level(self) -> bool:
        """Resume play after a level-up. Returns False unless in LEVELUP mode."""
        if self._state.mode is not GameMode.LEVELUP:
            return False
        self._journal.record_command("continue")
        self._set_mode(GameMode.PLAYING)
        self._spawn_duck()
        return True

    def restart(self) -> bool:
        """
        Start over with the same seed after a game over.

        Everything except the high score is reset.

        Returns:
            True if restarted, False unless in GAMEOVER mode.
        """
        if self._state.mode is not GameMode.GAMEOVER:
            return False
        self._journal.record_command("restart")
        self._store.save(self._scorer.high_score)
        self._setup(self._state.seed)
        self._state.mode = GameMode.GAMEOVER
        self._set_mode(GameMode.PLAYING)
        self._spawn_duck()
        return True

    def submit(self, event: InputEvent) -> None:
        """Queue an input for the next tick."""
        self._journal.record_input(event)
        self._pending.append(event)

    def move_left(self) -> None:
        self.submit(InputEvent.move_left(self._state.elapsed_ms))

    def move_right(self) -> None:
        self.submit(InputEvent.move_right(self._state.elapsed_ms))

    def drag_to(self, x: float) -> None:
        self.submit(InputEvent.drag_to(x, self._state.elapsed_ms))

    def drop(self) -> None:
        self.submit(InputEvent.drop(self._state.elapsed_ms))

    def resize(self, width: float, height: float = 0.0) -> None:
        self.submit(InputEvent.resize(width, height, self._state.elapsed_ms))

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    def tick(self, dt_ms: Optional[float] = None) -> TickResult:
        """
        Advance the simulation.

        Args:
            dt_ms: Elapsed time. Defaults to one reference frame.

        Returns:
            TickResult with the post-tick snapshot and emitted events.
        """
        if dt_ms is None:
            dt_ms = self._config.physics.frame_ms
        self._journal.record_tick(dt_ms)

        events: List[GameEvent] = self._outbox
        self._outbox = []
        inputs = self._pending
        self._pending = []

        for event in inputs:
            if event.type is InputType.RESIZE:
                self._apply_resize(event.x, event.y)
            elif self._state.mode is GameMode.PLAYING:
                self._apply_input(event, events)

        if self._state.mode is GameMode.PLAYING and dt_ms > 0:
            self._advance(dt_ms, events)

        events.extend(self._outbox)
        self._outbox = []
        return TickResult(self.snapshot(), events)

    def _advance(self, dt_ms: float, events: List[GameEvent]) -> None:
        state = self._state
        frames = dt_ms / self._config.physics.frame_ms
        state.elapsed_ms += dt_ms

        self._update_effects(frames)

        if state.current is None:
            if state.spawn_elapsed_ms is not None:
                state.spawn_elapsed_ms += dt_ms
                if state.spawn_elapsed_ms >= self.level_config.spawn_interval_ms:
                    self._spawn_duck()
        elif state.current.is_controllable:
            if self._config.duck.hover_oscillation:
                state.current.oscillate(frames, self.design_width,
                                        self._config.duck.oscillation_speed, self._scorer.score)
            state.auto_drop_elapsed_ms += dt_ms
            if state.auto_drop_elapsed_ms >= self._curve.auto_drop_ms(state.level):
                logger.debug("auto-drop after %.0f ms", state.auto_drop_elapsed_ms)
                self._drop_current()

        current = state.current
        if current is not None and current.is_falling:
            current.fall(frames)
            self._resolve_fall(current, events)

        if state.mode is not GameMode.PLAYING:
            return

        state.wobble = self._wobble.tick(state.wobble, dt_ms)
        if self._wobble.is_toppled(state.wobble):
            self._game_over(TerminationResult.game_over(GameOverReason.TOPPLED), events)
            return

        self._camera.update(self._landing_line(), dt_ms)

    def _update_effects(self, frames: float) -> None:
        recovery = self._config.duck.squish_recovery
        for duck in self._state.stack:
            duck.recover_squish(frames, recovery)

        decay = self._config.particles.life_decay
        for particle in self._state.particles:
            particle.update(frames, decay)
        self._state.particles = [p for p in self._state.particles if p.alive]

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def _apply_input(self, event: InputEvent, events: List[GameEvent]) -> None:
        current = self._state.current
        if current is None or not current.is_controllable:
            return

        if event.type is InputType.MOVE_LEFT:
            self._place_current(current.x - self._config.duck.arrow_step)
        elif event.type is InputType.MOVE_RIGHT:
            self._place_current(current.x + self._config.duck.arrow_step)
        elif event.type is InputType.DRAG_TO:
            current.start_drag()
            self._place_current(event.x)
        elif event.type is InputType.DROP:
            self._drop_current()

    def _place_current(self, x: float) -> None:
        current = self._state.current
        current.x = self._spawn.clamp_x(x, current.w, self.design_width)

    def _drop_current(self) -> None:
        current = self._state.current
        if current is not None and current.drop():
            self._state.auto_drop_elapsed_ms = 0.0

    def _apply_resize(self, width: float, height: float) -> None:
        old_width = self.design_width
        self._viewport = Viewport.fit(width, height or None, self._config)
        new_width = self.design_width
        if new_width == old_width:
            return

        # Keep the tower centered and the base on its growth curve
        shift = (new_width - old_width) / 2
        for duck in self._state.stack:
            duck.x += shift
            duck.spawn_x += shift
        if self._state.current is not None:
            self._state.current.x += shift
            self._place_current(self._state.current.x)

        base = self._state.stack[0]
        if base.merge_level > 0:
            width_, height_ = self._merger.base_size(base.merge_level, new_width, self._state.level)
            base.resize(width_, height_, ground_y=self._config.viewport.ground_y)
        logger.debug("resize: design width %.0f -> %.0f", old_width, new_width)

    # -------------------------------------------------------------------------
    # Spawning and landing
    # -------------------------------------------------------------------------

    def _landing_line(self) -> float:
        return self._resolver.target_y(self._state.stack[-1])

    def _spawn_duck(self) -> None:
        state = self._state
        min_x, max_x = self._spawn.spawn_x_range(self.design_width)
        x = self._spawn_rng.next_float(min_x, max_x)

        line = self._landing_line()
        y = self._spawn.spawn_y(self._camera.target_for(line), line, self._config.duck.base_height)

        level_config = self.level_config
        state.current = make_hovering_duck(
            x, y,
            score=self._scorer.score,
            config=self._config,
            primary_color=level_config.primary_color,
            secondary_color=level_config.secondary_color,
            oscillation_phase=self._spawn_rng.next() * 100
        )
        state.auto_drop_elapsed_ms = 0.0
        state.spawn_elapsed_ms = None

    def _resolve_fall(self, falling: Duck, events: List[GameEvent]) -> None:
        result = self._resolver.resolve(falling, self._state.stack[-1])

        if result.landed:
            self._land(falling, result, events)
        elif result.is_miss:
            logger.debug("miss: offset=%.1f zone=%.1f", result.offset,
                         self._resolver.zone(self._state.stack[-1]))
            self._state.current = None
            self._game_over(TerminationResult.game_over(GameOverReason.MISSED), events)
        elif self._resolver.fell_through(falling, self._camera.y):
            self._state.current = None
            self._game_over(TerminationResult.game_over(GameOverReason.FELL), events)

    def _land(self, duck: Duck, result: LandingResult, events: List[GameEvent]) -> None:
        state = self._state
        base = state.stack[0]
        com_x_before = center_of_mass_offset(state.stack, 0.0)

        duck.land(result.x, result.y, self._config.duck.squish_factor)
        state.stack.append(duck)
        state.current = None
        state.drops += 1

        score_event = self._scorer.apply_landing(result.is_perfect)
        if score_event.new_high_score:
            self._store.save(self._scorer.score)
        events.append(Landed(result.is_perfect, self._scorer.score, duck.x, duck.y))
        events.append(ScoreChanged(self._scorer.score, self._scorer.high_score))

        if result.is_perfect:
            self._emit_particles(duck.x, duck.y, self._config.particles.perfect_count, events)

        # Wobble from the landed duck's offset against the mass it landed on
        dx = duck.x - com_x_before
        imbalance = abs(dx) / self._config.wobble.imbalance_normalization
        state.wobble = self._wobble.on_landing(
            state.wobble,
            stack_height=len(state.stack),
            imbalance=imbalance,
            merge_level=base.merge_level,
            direction=dx,
            multiplier=self.level_config.wobble_multiplier,
            com_offset=center_of_mass_offset(state.stack, base.x)
        )

        state.merge_counter = self._merger.on_landing(state.merge_counter)
        merge = self._merger.try_merge(state.merge_counter, state.stack,
                                       self.design_width, state.level)
        state.merge_counter = merge.counter
        if merge.merged:
            state.stack = merge.stack
            # A merge collapses the stack to the base, so the tilt starts over
            state.wobble = self._wobble.reset(len(state.stack))
            events.append(Merged(merge.base.merge_level, merge.base.w))
            self._emit_particles(merge.base.x, merge.base.y, self._config.merge.particle_count, events)

            if self._curve.should_level_up(merge.base.w, self.design_width):
                self._level_up(events)
                return

        state.spawn_elapsed_ms = 0.0

    def _emit_particles(self, x: float, y: float, count: int, events: List[GameEvent]) -> None:
        self._state.particles.extend(
            spawn_particles(self._particle_rng, x, y, count, self._config)
        )
        events.append(ParticlesSpawned(x, y, count))

    def _level_up(self, events: List[GameEvent]) -> None:
        state = self._state
        state.level += 1
        state.stack = [self._new_base_duck(state.level)]
        state.merge_counter = 0
        state.wobble = self._wobble.reset(1)
        self._camera.reset()

        name = self.level_config.name
        logger.info("level up: level=%d name=%s score=%d", state.level, name, self._scorer.score)
        self._set_mode(GameMode.LEVELUP)
        events.append(LeveledUp(state.level, name))

    def _game_over(self, result: TerminationResult, events: List[GameEvent]) -> None:
        state = self._state
        state.game_over_reason = result.reason
        self._store.save(self._scorer.score)
        logger.info("game over: reason=%s score=%d level=%d",
                    result.reason.value, self._scorer.score, state.level)
        self._set_mode(GameMode.GAMEOVER)
        events.append(GameOver(result.reason, self._scorer.score))

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        """Immutable copy of the current state."""
        state = self._state
        level_config = self.level_config
        stability = self._wobble.stability_of(state.wobble)
        return GameSnapshot(
            mode=state.mode,
            seed=state.seed,
            level=state.level,
            level_name=level_config.name,
            score=self._scorer.score,
            high_score=self._scorer.high_score,
            drops=state.drops,
            elapsed_ms=state.elapsed_ms,
            design_width=self._viewport.design_width,
            design_height=self._viewport.design_height,
            scale=self._viewport.scale,
            offset_x=self._viewport.offset_x,
            camera_y=self._camera.y,
            landing_line=self._landing_line(),
            stack=tuple(DuckView.of(d) for d in state.stack),
            current=DuckView.of(state.current) if state.current is not None else None,
            merge_counter=state.merge_counter,
            merges_needed=self._curve.merges_needed(state.level),
            level_up_width=self._curve.level_up_width(self.design_width),
            wobble=state.wobble,
            stability=stability,
            stability_status=self._wobble.status_for(stability),
            auto_drop_ms=self._curve.auto_drop_ms(state.level),
            auto_drop_elapsed_ms=state.auto_drop_elapsed_ms,
            particle_count=len(state.particles),
            game_over_reason=state.game_over_reason,
            level_colors=(level_config.primary_color, level_config.secondary_color)
        )

    def get_info(self) -> dict:
        """Get additional info dict for Gymnasium."""
        return {
            "score": self._scorer.score,
            "high_score": self._scorer.high_score,
            "level": self._state.level,
            "drops": self._state.drops,
            "merge_counter": self._state.merge_counter,
            "merge_level": self._state.stack[0].merge_level,
            "perfect_landings": self._scorer.perfect_count,
            "stability": self._wobble.stability_of(self._state.wobble),
            "terminated_reason": (
                self._state.game_over_reason.value if self._state.game_over_reason else ""
            ),
        }
