"""
Merge System
============

Turns same-level fruit collisions into a higher-level fruit and points.

The pymunk collision callback only records body pairs. After each physics
step the session hands the batch to ``resolve_merges``, which commits merges
in report order. A committed merge removes both sources right away and
schedules the replacement a short time later, so the larger fruit never
overlaps a source that is still in the world.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Set, Tuple, TYPE_CHECKING

import pymunk

from fruit_drop.core.clock import ScheduledTask, Scheduler
from fruit_drop.core.config_loader import GameConfig, get_config
from fruit_drop.core.level_table import get_level_table
from fruit_drop.core.physics_world import FruitBody, is_fruit_body
from fruit_drop.core.scoring import ScoreTracker, ScoreEvent

if TYPE_CHECKING:
    from fruit_drop.core.physics_world import PhysicsWorld
    from fruit_drop.core.session import Session

logger = logging.getLogger(__name__)


@dataclass
class PendingMerge:
    """A committed merge waiting for its replacement fruit."""
    uid_a: int
    uid_b: int
    level: int
    position: Tuple[float, float]
    generation: int
    task: Optional[ScheduledTask] = field(default=None, repr=False)

    @property
    def uids(self) -> Tuple[int, int]:
        return (self.uid_a, self.uid_b)


@dataclass
class MergeResult:
    """Result of a completed merge."""
    removed_uids: Tuple[int, int]
    created_uid: int
    new_level: int
    position: Tuple[float, float]
    score_event: ScoreEvent


class MergeSystem:
    """
    Manages collision-based fruit merging.

    A fruit id sits in the pending set from commit until its replacement has
    been inserted; while there it cannot be claimed by another merge.
    """

    def __init__(
        self,
        session: "Session",
        physics: "PhysicsWorld",
        scorer: ScoreTracker,
        scheduler: Scheduler,
        config: Optional[GameConfig] = None
    ):
        """
        Initialize merge system.

        Args:
            session: Owning session, consulted for play state and generation.
            physics: The physics world instance.
            scorer: Score tracker instance.
            scheduler: Scheduler that runs deferred completions.
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._session = session
        self._physics = physics
        self._scorer = scorer
        self._scheduler = scheduler
        self._table = get_level_table(config)
        self._delay = config.merge.delay

        # Collision pairs reported during the current step
        self._queue: List[Tuple[pymunk.Body, pymunk.Body]] = []

        self._pending_ids: Set[int] = set()
        self._in_flight: List[PendingMerge] = []
        self._completed: List[MergeResult] = []

        physics.set_collision_handler(self._on_collision)

    def _on_collision(
        self,
        arbiter: pymunk.Arbiter,
        space: pymunk.Space,
        data: Any
    ) -> None:
        """Pymunk 7.x collision-begin callback: record the pair for this step."""
        shape_a, shape_b = arbiter.shapes
        self._queue.append((shape_a.body, shape_b.body))

    def take_pairs(self) -> List[Tuple[pymunk.Body, pymunk.Body]]:
        """Return and clear the pairs reported since the last call."""
        pairs = self._queue
        self._queue = []
        return pairs

    def resolve_merges(
        self,
        pairs: Optional[List[Tuple[pymunk.Body, pymunk.Body]]] = None
    ) -> List[PendingMerge]:
        """
        Process one step's batch of collision pairs.

        Args:
            pairs: Body pairs in report order. Defaults to the recorded batch.

        Returns:
            Merges committed by this batch.
        """
        if pairs is None:
            pairs = self.take_pairs()

        if not self._session.is_playing:
            return []

        committed: List[PendingMerge] = []
        for body_a, body_b in pairs:
            # Walls carry no level tag
            if not (is_fruit_body(body_a) and is_fruit_body(body_b)):
                continue
            if body_a.level != body_b.level:
                continue

            fruit_a = self._physics.get_fruit_by_body(body_a)
            fruit_b = self._physics.get_fruit_by_body(body_b)
            if fruit_a is None or fruit_b is None:
                continue

            if not self.can_merge(fruit_a, fruit_b):
                continue

            committed.append(self._commit(fruit_a, fruit_b))

        return committed

    def can_merge(self, fruit_a: FruitBody, fruit_b: FruitBody) -> bool:
        """True if the two fruits may be claimed by a new merge."""
        if fruit_a.uid == fruit_b.uid:
            return False
        if fruit_a.is_merging or fruit_b.is_merging:
            return False
        if fruit_a.uid in self._pending_ids or fruit_b.uid in self._pending_ids:
            return False
        if fruit_a.level_id != fruit_b.level_id:
            return False
        return not self._table.is_terminal(fruit_a.level_id)

    def _commit(self, fruit_a: FruitBody, fruit_b: FruitBody) -> PendingMerge:
        """
        Lock both fruits, remove them, and schedule the replacement.

        Raises:
            ValueError: If the fruits do not share a mergeable level.
        """
        level = fruit_a.level_id
        if fruit_b.level_id != level:
            raise ValueError(
                f"Cannot merge level {level} with level {fruit_b.level_id}"
            )
        if self._table.is_terminal(level):
            raise ValueError(f"Level {level} is terminal and cannot merge")

        fruit_a.is_merging = True
        fruit_b.is_merging = True
        self._pending_ids.add(fruit_a.uid)
        self._pending_ids.add(fruit_b.uid)

        pos_a = fruit_a.position
        pos_b = fruit_b.position
        merge_point = ((pos_a[0] + pos_b[0]) / 2, (pos_a[1] + pos_b[1]) / 2)

        self._physics.remove_fruit(fruit_a.uid)
        self._physics.remove_fruit(fruit_b.uid)

        pending = PendingMerge(
            uid_a=fruit_a.uid,
            uid_b=fruit_b.uid,
            level=level,
            position=merge_point,
            generation=self._session.generation,
        )
        pending.task = self._scheduler.call_later(
            self._delay,
            lambda: self._complete(pending),
            name=f"merge {fruit_a.uid}+{fruit_b.uid}",
        )
        self._in_flight.append(pending)

        logger.debug(
            "Merge committed: %d + %d (level %d) at (%.1f, %.1f)",
            fruit_a.uid, fruit_b.uid, level, merge_point[0], merge_point[1]
        )
        return pending

    def _complete(self, pending: PendingMerge) -> Optional[MergeResult]:
        """Insert the replacement fruit and award points."""
        if pending.generation != self._session.generation:
            logger.debug("Dropping stale merge completion %s", pending.uids)
            return None

        new_level = pending.level + 1
        x, y = pending.position
        new_fruit = self._physics.spawn_fruit(new_level, x, y)
        score_event = self._scorer.apply_merge(pending.level)

        self._pending_ids.discard(pending.uid_a)
        self._pending_ids.discard(pending.uid_b)
        if pending in self._in_flight:
            self._in_flight.remove(pending)

        result = MergeResult(
            removed_uids=pending.uids,
            created_uid=new_fruit.uid,
            new_level=new_level,
            position=pending.position,
            score_event=score_event,
        )
        self._completed.append(result)
        return result

    def take_completed(self) -> List[MergeResult]:
        """Return and clear merges completed since the last call."""
        completed = self._completed
        self._completed = []
        return completed

    def clear(self) -> None:
        """Cancel in-flight completions and forget recorded pairs and pending ids."""
        for pending in self._in_flight:
            if pending.task is not None:
                pending.task.cancel()
        self._queue.clear()
        self._pending_ids.clear()
        self._in_flight.clear()
        self._completed.clear()

    @property
    def pending_ids(self) -> Set[int]:
        """Copy of the ids locked into in-flight merges."""
        return set(self._pending_ids)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)
