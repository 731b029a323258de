"""
Level Table
===========

Provides convenient access to the fruit level ladder loaded from config.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from fruit_drop.core.config_loader import GameConfig, LevelConfig, get_config


@dataclass(frozen=True)
class Level:
    """
    Runtime representation of a fruit level.

    Wraps LevelConfig and knows whether it is the last (terminal) tier.
    """
    config: LevelConfig
    is_terminal: bool = False

    @property
    def id(self) -> int:
        return self.config.id

    @property
    def radius(self) -> float:
        return self.config.radius

    @property
    def label(self) -> str:
        return self.config.label

    @property
    def color(self) -> Tuple[int, int, int]:
        return self.config.color

    @property
    def merge_score(self) -> int:
        """Points awarded when a fruit of this level is produced by a merge."""
        return 2 ** self.id

    def __repr__(self) -> str:
        return f"Level({self.id}: r={self.radius:g})"


class LevelTable:
    """
    Ordered, immutable collection of all fruit levels.

    Index 0 is the smallest fruit; the last index is terminal and never merges.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize table from game config.

        Args:
            config: GameConfig instance. If None, loads from default location.
        """
        if config is None:
            config = get_config()

        self._config = config
        last = len(config.levels) - 1
        self._levels: Tuple[Level, ...] = tuple(
            Level(level_config, is_terminal=(i == last))
            for i, level_config in enumerate(config.levels)
        )
        self._spawnable_count = min(config.rng.spawnable_count, len(self._levels))

    def __len__(self) -> int:
        return len(self._levels)

    def __getitem__(self, level_id: int) -> Level:
        """Get level by index."""
        if 0 <= level_id < len(self._levels):
            return self._levels[level_id]
        raise IndexError(f"Level {level_id} out of range [0, {len(self._levels)})")

    def __iter__(self):
        return iter(self._levels)

    @property
    def levels(self) -> Tuple[Level, ...]:
        return self._levels

    @property
    def terminal_level(self) -> int:
        """Index of the terminal (non-mergeable) level."""
        return len(self._levels) - 1

    @property
    def spawnable_count(self) -> int:
        """Number of low levels that can be dropped directly."""
        return self._spawnable_count

    def radius(self, level_id: int) -> float:
        return self[level_id].radius

    def is_terminal(self, level_id: int) -> bool:
        """True if fruits of this level cannot merge."""
        return level_id == self.terminal_level

    def get_next(self, level_id: int) -> Optional[Level]:
        """
        Get the level produced by merging two fruits of the given level.

        Returns:
            Next level, or None if the given level is terminal.
        """
        if self.is_terminal(level_id):
            return None
        return self._levels[level_id + 1]

    def is_spawnable(self, level_id: int) -> bool:
        return 0 <= level_id < self._spawnable_count


# Module-level singleton
_cached_table: Optional[LevelTable] = None


def get_level_table(config: Optional[GameConfig] = None) -> LevelTable:
    """
    Get the level table singleton.

    Args:
        config: Optional config to use. If None, uses cached or default config.
    """
    global _cached_table
    if _cached_table is None or config is not None:
        _cached_table = LevelTable(config)
    return _cached_table
