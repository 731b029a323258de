"""
RNG - Spawn Level Picker
========================

Draws the next droppable level uniformly from the lowest tiers so early
drops are always small, mergeable pieces.
"""

from __future__ import annotations

import random
from typing import List, Optional

from fruit_drop.core.config_loader import GameConfig, get_config
from fruit_drop.core.level_table import get_level_table


class LevelPicker:
    """
    Uniform picker over the spawnable levels.

    Seeded pickers produce reproducible sequences.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize the picker.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility. Random if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._count = get_level_table(config).spawnable_count
        self._rng = random.Random(seed)

    @property
    def spawnable_count(self) -> int:
        return self._count

    def pick(self) -> int:
        """Draw a level in ``[0, spawnable_count)``."""
        return self._rng.randrange(self._count)

    def sample(self, count: int) -> List[int]:
        """Draw ``count`` levels (useful for previews and tests)."""
        return [self.pick() for _ in range(count)]

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Reseed the picker.

        Args:
            seed: New random seed. Keeps the current stream if None.
        """
        if seed is not None:
            self._rng = random.Random(seed)
