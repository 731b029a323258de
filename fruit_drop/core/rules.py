"""
Game Rules
==========

Handles drop positioning inside the bin.
"""

from __future__ import annotations

from typing import Optional, Tuple

from fruit_drop.core.config_loader import GameConfig, get_config
from fruit_drop.core.level_table import get_level_table


class SpawnRules:
    """
    Handles drop position calculation.

    Clamps the requested pointer X so a dropped fruit never starts inside a
    wall.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize spawn rules.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._table = get_level_table(config)

        self._bin_left = config.board.bin_left
        self._bin_right = config.board.bin_right
        self._preview_y = config.board.preview_y

    def get_drop_x_range(self, level_id: int) -> Tuple[float, float]:
        """
        Get valid drop X range for a level.

        Returns:
            (min_x, max_x) tuple.
        """
        radius = self._table.radius(level_id)
        return (self._bin_left + radius, self._bin_right - radius)

    def drop_position(self, requested_x: float, level_id: int) -> float:
        """
        Clamp a requested X into the drop range of the given level.

        Args:
            requested_x: Pointer X coordinate.
            level_id: Level of the fruit about to drop.

        Returns:
            World X coordinate.
        """
        min_x, max_x = self.get_drop_x_range(level_id)
        return max(min_x, min(max_x, requested_x))

    @property
    def preview_y(self) -> float:
        """Y coordinate for dropping."""
        return self._preview_y

    @property
    def center_x(self) -> float:
        return (self._bin_left + self._bin_right) / 2
