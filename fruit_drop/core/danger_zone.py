"""
Danger Zone Monitor
===================

Debounced detector for fruits stuck at the top of the bin.

A fruit violates the danger line when its top edge is at or above the line
and it is not part of an in-flight merge. Game over fires only after the
*same* set of violating fruits has persisted for longer than the dwell time;
any change in membership restarts the clock.
"""

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, Optional

from fruit_drop.core.config_loader import GameConfig, get_config
from fruit_drop.core.physics_world import FruitBody

logger = logging.getLogger(__name__)


class DangerZoneMonitor:
    """
    Tracks dwell time of the violating fruit set.

    Call ``sample`` once per display frame while the game is being played.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._line_y = config.board.danger_line_y
        self._dwell_time = config.danger.dwell_time

        self._current_set: FrozenSet[int] = frozenset()
        self._dwell_start: Optional[float] = None

    @property
    def line_y(self) -> float:
        return self._line_y

    @property
    def dwell_time(self) -> float:
        return self._dwell_time

    @property
    def current_set(self) -> FrozenSet[int]:
        """Ids of the fruits currently remembered as violating."""
        return self._current_set

    @property
    def dwell_start(self) -> Optional[float]:
        return self._dwell_start

    def violates(self, fruit: FruitBody) -> bool:
        """True if the fruit is above the danger line and not merging."""
        return not fruit.is_merging and fruit.top_y <= self._line_y

    def violating_ids(self, fruits: Iterable[FruitBody]) -> FrozenSet[int]:
        return frozenset(f.uid for f in fruits if self.violates(f))

    def elapsed(self, now: float) -> float:
        """Seconds the current set has been violating, 0 if none."""
        if self._dwell_start is None:
            return 0.0
        return now - self._dwell_start

    def sample(self, fruits: Iterable[FruitBody], now: float) -> bool:
        """
        Update dwell state from the current fruits.

        Args:
            fruits: Fruits currently in the world.
            now: Current game-clock time in seconds.

        Returns:
            True if the violation has lasted long enough to end the game.
        """
        violating = self.violating_ids(fruits)

        if not violating:
            self._current_set = frozenset()
            self._dwell_start = None
            return False

        if violating != self._current_set:
            self._current_set = violating
            self._dwell_start = now
            return False

        if self._dwell_start is None:
            self._dwell_start = now
            return False

        if now - self._dwell_start > self._dwell_time:
            logger.debug(
                "Fruits %s above the danger line for %.2fs",
                sorted(violating), now - self._dwell_start
            )
            return True
        return False

    def reset(self) -> None:
        """Forget any remembered set and dwell timer."""
        self._current_set = frozenset()
        self._dwell_start = None
