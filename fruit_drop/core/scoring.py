"""
Scoring System
==============

Applies merge scores: producing a fruit of level L is worth 2^L points.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fruit_drop.core.config_loader import GameConfig, get_config
from fruit_drop.core.level_table import get_level_table


@dataclass
class ScoreEvent:
    """Record of a scoring event."""
    points: int
    new_level: int

    def __repr__(self) -> str:
        return f"ScoreEvent(merge_to_{self.new_level}={self.points})"


class ScoreTracker:
    """
    Tracks the session score.

    The score only grows during play; ``reset`` is the only way back to zero.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._table = get_level_table(config)
        self._score: int = 0
        self._merges: int = 0

    @property
    def score(self) -> int:
        """Current total score."""
        return self._score

    @property
    def merges(self) -> int:
        """Total number of merges completed."""
        return self._merges

    def get_merge_score(self, merged_from_level: int) -> int:
        """
        Points for merging two fruits of ``merged_from_level``.

        Raises:
            ValueError: If the level is terminal and cannot merge.
        """
        next_level = self._table.get_next(merged_from_level)
        if next_level is None:
            raise ValueError(f"Level {merged_from_level} is terminal and cannot merge")
        return next_level.merge_score

    def apply_merge(self, merged_from_level: int) -> ScoreEvent:
        """
        Apply score for a completed merge and return the event.

        Args:
            merged_from_level: Level of the two fruits that were consumed.
        """
        points = self.get_merge_score(merged_from_level)
        self._score += points
        self._merges += 1
        return ScoreEvent(points=points, new_level=merged_from_level + 1)

    def reset(self) -> None:
        """Reset score to zero."""
        self._score = 0
        self._merges = 0
