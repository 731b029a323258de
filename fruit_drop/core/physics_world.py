"""
Physics World
=============

Manages the pymunk Space, static walls, and fruit body creation/removal.

Fruits carry their game tags directly on the pymunk Body (``fruit_uid``,
``level``, ``is_merging``, ``created_at``). Walls carry none, so any body can
be classified by tag presence alone.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import pymunk

from fruit_drop.core.clock import GameClock
from fruit_drop.core.config_loader import GameConfig, get_config
from fruit_drop.core.level_table import Level, LevelTable, get_level_table


# Collision types for pymunk
COLLISION_TYPE_FRUIT = 1
COLLISION_TYPE_WALL = 2


def is_fruit_body(body: pymunk.Body) -> bool:
    """True if the body carries a level tag."""
    return getattr(body, "level", None) is not None


@dataclass
class FruitBody:
    """
    Represents a fruit instance in the physics world.

    Wraps a pymunk Body and its circle shape. The mutable game tags live on
    the body; this wrapper only exposes them.
    """
    uid: int
    level_info: Level
    body: pymunk.Body
    shape: pymunk.Circle

    @property
    def level_id(self) -> int:
        return self.body.level

    @property
    def radius(self) -> float:
        return self.shape.radius

    @property
    def is_merging(self) -> bool:
        return self.body.is_merging

    @is_merging.setter
    def is_merging(self, value: bool) -> None:
        self.body.is_merging = value

    @property
    def created_at(self) -> float:
        return self.body.created_at

    @property
    def position(self) -> Tuple[float, float]:
        return self.body.position.x, self.body.position.y

    @property
    def top_y(self) -> float:
        """Topmost Y of this fruit (y grows downward)."""
        return self.body.position.y - self.shape.radius


class PhysicsWorld:
    """
    Manages the pymunk physics simulation.

    Handles:
    - Space creation and configuration
    - Static floor and side walls
    - Fruit body creation and removal
    - Physics stepping
    - Collision callback registration
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        clock: Optional[GameClock] = None
    ):
        """
        Initialize physics world.

        Args:
            config: Game configuration. Uses default if None.
            clock: Clock used to stamp ``created_at``. A fresh one if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._table: LevelTable = get_level_table(config)
        self._clock = clock if clock is not None else GameClock()

        self._space = pymunk.Space()
        self._space.gravity = config.physics.gravity

        self._fruits: Dict[int, FruitBody] = {}
        self._next_uid = 0

        self._walls: List[pymunk.Body] = []
        self.create_walls()

    def create_walls(self) -> List[pymunk.Body]:
        """
        Create the floor and the two side walls as static boxes.

        The side walls run from the danger line down to the floor.
        """
        if self._walls:
            raise ValueError("Walls already exist; clear the world first")

        board = self._config.board
        t = board.wall_thickness
        wall_height = board.bin_floor - board.danger_line_y + t
        wall_center_y = (board.danger_line_y + board.bin_floor) / 2

        specs = [
            # (center, size)
            (((board.bin_left + board.bin_right) / 2, board.bin_floor + t / 2),
             (board.bin_width, t)),
            ((board.bin_left - t / 2, wall_center_y), (t, wall_height)),
            ((board.bin_right + t / 2, wall_center_y), (t, wall_height)),
        ]

        for center, size in specs:
            body = pymunk.Body(body_type=pymunk.Body.STATIC)
            body.position = center
            shape = pymunk.Poly.create_box(body, size)
            shape.friction = self._config.physics.friction
            shape.elasticity = self._config.physics.elasticity
            shape.collision_type = COLLISION_TYPE_WALL
            self._space.add(body, shape)
            self._walls.append(body)

        return list(self._walls)

    @property
    def space(self) -> pymunk.Space:
        """The pymunk Space instance."""
        return self._space

    @property
    def table(self) -> LevelTable:
        return self._table

    @property
    def fruits(self) -> Dict[int, FruitBody]:
        """Dictionary of all fruit bodies by UID."""
        return self._fruits

    @property
    def fruit_count(self) -> int:
        return len(self._fruits)

    @property
    def walls(self) -> List[pymunk.Body]:
        return list(self._walls)

    @property
    def wall_count(self) -> int:
        return len(self._walls)

    def bodies(self) -> List[pymunk.Body]:
        """All bodies in the world, walls first."""
        return self._walls + [f.body for f in self._fruits.values()]

    def set_collision_handler(
        self,
        handler: Callable[[pymunk.Arbiter, pymunk.Space, Any], None]
    ) -> None:
        """
        Set the collision-begin handler for every pair of shapes.

        Args:
            handler: Collision callback function (arbiter, space, data).
        """
        # pymunk 7.x uses on_collision() instead of add_collision_handler()
        self._space.on_collision(begin=handler)

    def spawn_fruit(self, level_id: int, x: float, y: float) -> FruitBody:
        """
        Insert a new fruit of the given level.

        The level is not range-checked beyond the table lookup; callers keep
        ``0 <= level_id < len(table)``.

        Returns:
            The created FruitBody.
        """
        level = self._table[level_id]
        physics = self._config.physics

        mass = physics.density * math.pi * level.radius ** 2
        moment = pymunk.moment_for_circle(mass, 0, level.radius)

        body = pymunk.Body(mass, moment)
        body.position = (x, y)

        shape = pymunk.Circle(body, level.radius)
        shape.friction = physics.friction
        shape.elasticity = physics.elasticity
        shape.collision_type = COLLISION_TYPE_FRUIT

        uid = self._next_uid
        self._next_uid += 1

        body.fruit_uid = uid
        body.level = level_id
        body.is_merging = False
        body.created_at = self._clock.now()

        fruit = FruitBody(uid=uid, level_info=level, body=body, shape=shape)
        self._space.add(body, shape)
        self._fruits[uid] = fruit
        return fruit

    def remove_fruit(self, uid: int) -> FruitBody:
        """
        Remove a fruit from the world.

        Raises:
            ValueError: If the fruit is not in the world (already removed).
        """
        fruit = self._fruits.pop(uid, None)
        if fruit is None:
            raise ValueError(f"Fruit {uid} is not in the world")
        self._space.remove(fruit.body, fruit.shape)
        return fruit

    def get_fruit(self, uid: int) -> Optional[FruitBody]:
        return self._fruits.get(uid)

    def get_fruit_by_body(self, body: pymunk.Body) -> Optional[FruitBody]:
        """Get a live fruit by its pymunk Body, or None for walls."""
        uid = getattr(body, "fruit_uid", None)
        if uid is not None:
            return self._fruits.get(uid)
        return None

    def step(self, dt: Optional[float] = None) -> None:
        """
        Advance physics simulation by one timestep.

        Args:
            dt: Timestep duration. Uses config default if None.
        """
        if dt is None:
            dt = self._config.physics.dt

        substeps = self._config.physics.substeps
        for _ in range(substeps):
            self._space.step(dt / substeps)

    def clear(self) -> None:
        """Remove every fruit and wall from the world."""
        for uid in list(self._fruits.keys()):
            self.remove_fruit(uid)
        for wall in self._walls:
            self._space.remove(wall, *wall.shapes)
        self._walls = []

    def get_fruits_above_line(self, y: float) -> List[FruitBody]:
        """Fruits whose top edge is at or above ``y``."""
        return [f for f in self._fruits.values() if f.top_y <= y]
