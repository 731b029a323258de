"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Optional

import yaml


@dataclass(frozen=True)
class BoardConfig:
    """Bin geometry, danger line and preview height."""
    canvas_width: int
    canvas_height: int
    bin_left: float              # Inner X of the left wall
    bin_right: float             # Inner X of the right wall
    bin_floor: float             # Inner Y of the floor
    wall_thickness: float
    danger_line_y: float         # Y coordinate of the danger line
    preview_y: float             # Y coordinate where fruits are dropped

    @property
    def bin_width(self) -> float:
        return self.bin_right - self.bin_left


@dataclass(frozen=True)
class PhysicsConfig:
    """Physics simulation parameters."""
    gravity_x: float
    gravity_y: float
    dt: float
    substeps: int
    elasticity: float
    friction: float
    density: float

    @property
    def gravity(self) -> Tuple[float, float]:
        return (self.gravity_x, self.gravity_y)


@dataclass(frozen=True)
class LevelConfig:
    """Configuration for a single fruit level."""
    id: int
    radius: float
    label: str
    color: Tuple[int, int, int]


@dataclass(frozen=True)
class MergeConfig:
    """Merge behavior parameters."""
    delay: float                 # Seconds before the merged fruit appears


@dataclass(frozen=True)
class DangerConfig:
    """Danger line parameters."""
    dwell_time: float            # Seconds before game over triggers


@dataclass(frozen=True)
class RngConfig:
    """Spawn level parameters."""
    spawnable_count: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    board: BoardConfig
    physics: PhysicsConfig
    levels: Tuple[LevelConfig, ...]
    merge: MergeConfig
    danger: DangerConfig
    rng: RngConfig

    @property
    def num_levels(self) -> int:
        """Total number of levels in the table."""
        return len(self.levels)

    def get_level(self, level_id: int) -> LevelConfig:
        """Get level config by ID."""
        if 0 <= level_id < len(self.levels):
            return self.levels[level_id]
        raise ValueError(f"Invalid level ID: {level_id}")


def _parse_color(color_data: List) -> Tuple[int, int, int]:
    """Parse RGB color from YAML."""
    if len(color_data) != 3:
        raise ValueError(f"Color must have 3 values [R, G, B], got {color_data}")
    return (int(color_data[0]), int(color_data[1]), int(color_data[2]))


def _parse_level(level_data: dict) -> LevelConfig:
    """Parse a single level configuration from YAML."""
    return LevelConfig(
        id=int(level_data["id"]),
        radius=float(level_data["radius"]),
        label=str(level_data.get("label", level_data["id"])),
        color=_parse_color(level_data["color"]),
    )


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    if not config.levels:
        raise ValueError("At least one level must be defined")

    for i, level in enumerate(config.levels):
        if level.id != i:
            raise ValueError(f"Level ID mismatch: expected {i}, got {level.id}")
        if level.radius <= 0:
            raise ValueError(f"Level {i} radius must be positive, got {level.radius}")

    largest = max(level.radius for level in config.levels)
    if config.board.bin_width < 2 * largest:
        raise ValueError(
            f"Bin width ({config.board.bin_width}) is narrower than the largest "
            f"level diameter ({2 * largest})"
        )

    if not 1 <= config.rng.spawnable_count <= len(config.levels):
        raise ValueError(
            f"spawnable_count ({config.rng.spawnable_count}) must be in "
            f"[1, {len(config.levels)}]"
        )

    if config.physics.substeps < 1:
        raise ValueError(f"substeps must be at least 1, got {config.physics.substeps}")

    if config.merge.delay < 0:
        raise ValueError(f"merge delay must be non-negative, got {config.merge.delay}")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to game_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    board_data = raw["board"]
    board = BoardConfig(
        canvas_width=int(board_data["canvas_width"]),
        canvas_height=int(board_data["canvas_height"]),
        bin_left=float(board_data["bin_left"]),
        bin_right=float(board_data["bin_right"]),
        bin_floor=float(board_data["bin_floor"]),
        wall_thickness=float(board_data.get("wall_thickness", 20)),
        danger_line_y=float(board_data["danger_line_y"]),
        preview_y=float(board_data["preview_y"]),
    )

    physics_data = raw["physics"]
    physics = PhysicsConfig(
        gravity_x=float(physics_data.get("gravity_x", 0.0)),
        gravity_y=float(physics_data["gravity_y"]),
        dt=float(physics_data["dt"]),
        substeps=int(physics_data.get("substeps", 1)),
        elasticity=float(physics_data.get("elasticity", 0.4)),
        friction=float(physics_data.get("friction", 0.3)),
        density=float(physics_data.get("density", 0.001)),
    )

    levels = tuple(_parse_level(level) for level in raw["levels"])

    merge_data = raw.get("merge", {})
    merge = MergeConfig(
        delay=float(merge_data.get("delay", 0.05))
    )

    danger_data = raw.get("danger", {})
    danger = DangerConfig(
        dwell_time=float(danger_data.get("dwell_time", 1.0))
    )

    rng_data = raw.get("rng", {})
    rng = RngConfig(
        spawnable_count=min(int(rng_data.get("spawnable_count", 4)), len(levels))
    )

    config = GameConfig(
        board=board,
        physics=physics,
        levels=levels,
        merge=merge,
        danger=danger,
        rng=rng,
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
