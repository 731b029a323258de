"""
Game Session
============

Top-level state machine combining physics, merging, scoring, the danger
monitor and spawning.

The host drives a session with two callbacks that never overlap:
``step`` once per physics tick and ``sample_danger`` once per display
refresh (``update`` does both). The only other entry points are
``drop``, ``toggle_pause`` and ``reset``.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from fruit_drop.core.clock import GameClock, Scheduler
from fruit_drop.core.config_loader import GameConfig, get_config
from fruit_drop.core.danger_zone import DangerZoneMonitor
from fruit_drop.core.level_table import LevelTable, get_level_table
from fruit_drop.core.merge_system import MergeResult, MergeSystem
from fruit_drop.core.physics_world import FruitBody, PhysicsWorld
from fruit_drop.core.rng import LevelPicker
from fruit_drop.core.rules import SpawnRules
from fruit_drop.core.scoring import ScoreTracker

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "game_over"


class Session:
    """
    Main game session.

    Owns every piece of mutable game state: score, pause and game-over flags,
    the queued level, danger monitor state, the pending-merge set and the
    world generation. A new session starts in PLAYING.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        time_source: Optional[Callable[[], float]] = None
    ):
        """
        Initialize a session.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for the level picker.
            time_source: Seconds source for the game clock (tests inject one).
        """
        if config is None:
            config = get_config()

        self._config = config
        self._seed = seed

        self._table = get_level_table(config)
        self._clock = GameClock(time_source)
        self._scheduler = Scheduler(self._clock)
        self._physics = PhysicsWorld(config, self._clock)
        self._scorer = ScoreTracker(config)
        self._merger = MergeSystem(
            session=self,
            physics=self._physics,
            scorer=self._scorer,
            scheduler=self._scheduler,
            config=config,
        )
        self._danger = DangerZoneMonitor(config)
        self._picker = LevelPicker(config, seed)
        self._spawn = SpawnRules(config)

        self._state = SessionState.PLAYING
        self._generation = 0
        self._next_level = self._picker.pick()
        self._pointer_x = self._spawn.center_x

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state is SessionState.PLAYING

    @property
    def paused(self) -> bool:
        return self._state is SessionState.PAUSED

    @property
    def game_over(self) -> bool:
        return self._state is SessionState.GAME_OVER

    @property
    def running(self) -> bool:
        """True while physics stepping is enabled."""
        return self._state is SessionState.PLAYING

    @property
    def score(self) -> int:
        return self._scorer.score

    @property
    def next_level(self) -> int:
        """Level of the fruit that the next drop will release."""
        return self._next_level

    @property
    def generation(self) -> int:
        """World generation; incremented on every reset and teardown."""
        return self._generation

    @property
    def pointer_x(self) -> float:
        return self._pointer_x

    @pointer_x.setter
    def pointer_x(self, x: float) -> None:
        self._pointer_x = float(x)

    @property
    def pending_merge_ids(self) -> Set[int]:
        return self._merger.pending_ids

    @property
    def physics(self) -> PhysicsWorld:
        return self._physics

    @property
    def table(self) -> LevelTable:
        return self._table

    @property
    def clock(self) -> GameClock:
        return self._clock

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def merger(self) -> MergeSystem:
        return self._merger

    @property
    def danger(self) -> DangerZoneMonitor:
        return self._danger

    @property
    def spawn_rules(self) -> SpawnRules:
        return self._spawn

    # ------------------------------------------------------------------
    # Host callbacks
    # ------------------------------------------------------------------

    def step(self, dt: Optional[float] = None) -> List[MergeResult]:
        """
        Physics tick: advance pymunk, resolve the collision batch and run
        deferred merge completions that are due.

        Returns:
            Merges completed during this tick.
        """
        if not self.is_playing:
            return []

        self._physics.step(dt)
        self._merger.resolve_merges()
        self._scheduler.run_due()
        return self._merger.take_completed()

    def sample_danger(self) -> bool:
        """
        Display-refresh tick: sample the danger monitor.

        Returns:
            True if the session is over after this sample.
        """
        if not self.is_playing:
            return self.game_over

        if self._danger.sample(self._physics.fruits.values(), self._clock.now()):
            self.trigger_game_over()
        return self.game_over

    def update(self, dt: Optional[float] = None) -> List[MergeResult]:
        """One frame: ``step`` followed by ``sample_danger``."""
        merges = self.step(dt)
        self.sample_danger()
        return merges

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def drop(self, x: Optional[float] = None) -> Optional[FruitBody]:
        """
        Drop the queued fruit at the pointer position.

        Args:
            x: Requested X. Uses the last pointer position if None.

        Returns:
            The spawned fruit, or None when not playing.
        """
        if not self.is_playing:
            return None

        if x is not None:
            self._pointer_x = float(x)

        level = self._next_level
        drop_x = self._spawn.drop_position(self._pointer_x, level)
        fruit = self._physics.spawn_fruit(level, drop_x, self._spawn.preview_y)
        self._next_level = self._picker.pick()
        return fruit

    def toggle_pause(self) -> bool:
        """
        Switch between PLAYING and PAUSED.

        The game clock stops while paused, so in-flight merges and the
        danger dwell timer resume where they left off.

        Returns:
            True if the session is paused afterwards.
        """
        if self._state is SessionState.PLAYING:
            self._state = SessionState.PAUSED
            self._clock.pause()
            logger.info("Game paused")
        elif self._state is SessionState.PAUSED:
            self._state = SessionState.PLAYING
            self._clock.resume()
            logger.info("Game resumed")
        return self.paused

    def trigger_game_over(self) -> None:
        """End the session. Repeated calls have no further effect."""
        if self._state is not SessionState.PLAYING:
            return

        # Merges already committed still count toward the final score
        self._scheduler.run_all()
        self._state = SessionState.GAME_OVER
        self._clock.pause()
        logger.info("Game over, final score %d", self._scorer.score)

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Start a fresh game.

        Clears the world (fruits and walls) and danger state, cancels in-flight
        merges, bumps the generation so a stale completion becomes a no-op,
        zeroes the score and recreates the walls.

        Args:
            seed: New seed for the level picker. Keeps the current stream if None.
        """
        self._physics.clear()
        self._merger.clear()
        self._danger.reset()
        self._scorer.reset()
        self._generation += 1

        if seed is not None:
            self._seed = seed
        self._picker.reset(seed)

        self._clock.resume()
        self._state = SessionState.PLAYING
        self._physics.create_walls()
        self._next_level = self._picker.pick()

        logger.info("Game reset (generation %d)", self._generation)

    def teardown(self) -> None:
        """
        Release the world and pending tasks.

        The session stays in READY until ``reset`` is called.
        """
        self._scheduler.clear()
        self._physics.clear()
        self._merger.clear()
        self._danger.reset()
        self._generation += 1
        self._state = SessionState.READY
        logger.info("Session torn down")

    # ------------------------------------------------------------------
    # Read access for renderers
    # ------------------------------------------------------------------

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with fruit positions and visuals, bin geometry and UI state.
        """
        fruits_data = []
        for fruit in self._physics.fruits.values():
            x, y = fruit.position
            fruits_data.append({
                "uid": fruit.uid,
                "level": fruit.level_id,
                "x": x,
                "y": y,
                "radius": fruit.radius,
                "color": fruit.level_info.color,
                "label": fruit.level_info.label,
            })

        board = self._config.board
        next_level = self._table[self._next_level]
        return {
            "canvas_width": board.canvas_width,
            "canvas_height": board.canvas_height,
            "bin_left": board.bin_left,
            "bin_right": board.bin_right,
            "bin_floor": board.bin_floor,
            "wall_thickness": board.wall_thickness,
            "danger_line_y": board.danger_line_y,
            # (x, y, width, height) of each wall's bounding box
            "walls": [
                (s.bb.left, s.bb.bottom, s.bb.right - s.bb.left, s.bb.top - s.bb.bottom)
                for w in self._physics.walls
                for s in w.shapes
            ],
            "fruits": fruits_data,
            "preview": {
                "level": next_level.id,
                "x": self._spawn.drop_position(self._pointer_x, next_level.id),
                "y": self._spawn.preview_y,
                "radius": next_level.radius,
                "color": next_level.color,
                "label": next_level.label,
            },
            "score": self._scorer.score,
            "state": self._state.value,
        }

    def get_info(self) -> Dict[str, Any]:
        """Summary of the session for logging and tools."""
        return {
            "score": self._scorer.score,
            "merges": self._scorer.merges,
            "fruit_count": self._physics.fruit_count,
            "state": self._state.value,
            "generation": self._generation,
            "pending_merges": self._merger.in_flight_count,
            "danger_elapsed": self._danger.elapsed(self._clock.now()),
        }
