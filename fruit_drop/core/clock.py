"""
Game Clock and Scheduler
========================

A session clock that stops while the game is paused, and a single-threaded
scheduler for callbacks that must run some time after a physics step
(deferred merge completion).

Nothing here uses threads: due tasks are run from the host loop through
``Scheduler.run_due``.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class GameClock:
    """
    Monotonic clock that excludes time spent paused.

    Args:
        time_source: Callable returning seconds. Defaults to time.monotonic.
            Tests inject a fake source to advance time deterministically.
    """

    def __init__(self, time_source: Optional[Callable[[], float]] = None):
        self._time_source = time_source or time.monotonic
        self._offset = self._time_source()
        self._paused_at: Optional[float] = None

    def now(self) -> float:
        """Seconds of unpaused time since the clock was created."""
        if self._paused_at is not None:
            return self._paused_at - self._offset
        return self._time_source() - self._offset

    @property
    def paused(self) -> bool:
        return self._paused_at is not None

    def pause(self) -> None:
        if self._paused_at is None:
            self._paused_at = self._time_source()

    def resume(self) -> None:
        if self._paused_at is not None:
            self._offset += self._time_source() - self._paused_at
            self._paused_at = None


@dataclass(order=True)
class ScheduledTask:
    """A callback due at a given game-clock time."""
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    name: str = field(default="", compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """
    Min-heap of tasks keyed by due time.

    Tasks due at the same time run in the order they were scheduled.
    """

    def __init__(self, clock: GameClock):
        self._clock = clock
        self._heap: List[ScheduledTask] = []
        self._seq = itertools.count()

    def call_later(
        self,
        delay: float,
        callback: Callable[[], None],
        name: str = ""
    ) -> ScheduledTask:
        """
        Schedule ``callback`` to run ``delay`` seconds of game time from now.

        Returns:
            The task handle, which can be cancelled.
        """
        task = ScheduledTask(
            due=self._clock.now() + delay,
            seq=next(self._seq),
            callback=callback,
            name=name,
        )
        heapq.heappush(self._heap, task)
        return task

    def run_due(self) -> int:
        """
        Run every task whose due time has passed.

        Tasks scheduled by a running callback are picked up in the same call
        if they are already due.

        Returns:
            Number of callbacks executed.
        """
        now = self._clock.now()
        ran = 0
        while self._heap and self._heap[0].due <= now:
            task = heapq.heappop(self._heap)
            if task.cancelled:
                continue
            logger.debug("Running scheduled task %s", task.name or task.seq)
            task.callback()
            ran += 1
        return ran

    def run_all(self) -> int:
        """Run every pending task now, in due order, regardless of the clock."""
        ran = 0
        while self._heap:
            task = heapq.heappop(self._heap)
            if task.cancelled:
                continue
            task.callback()
            ran += 1
        return ran

    def clear(self) -> None:
        """Drop all pending tasks without running them."""
        self._heap.clear()

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._heap if not task.cancelled)
