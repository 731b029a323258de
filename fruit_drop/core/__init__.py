"""
Fruit Drop Core - gameplay state machine on top of pymunk.

Main exports:
- Session: Game session (drop, toggle_pause, reset, per-frame callbacks)
- GameConfig: Configuration loaded from game_config.yaml
- LevelTable: The fruit level ladder
- MergeSystem: Collision-driven merge controller
- DangerZoneMonitor: Danger line dwell-time detector
"""

from fruit_drop.core.config_loader import GameConfig, load_config
from fruit_drop.core.level_table import Level, LevelTable
from fruit_drop.core.clock import GameClock, Scheduler
from fruit_drop.core.physics_world import FruitBody, PhysicsWorld
from fruit_drop.core.merge_system import MergeSystem, MergeResult
from fruit_drop.core.danger_zone import DangerZoneMonitor
from fruit_drop.core.session import Session, SessionState

__all__ = [
    "GameConfig",
    "load_config",
    "Level",
    "LevelTable",
    "GameClock",
    "Scheduler",
    "FruitBody",
    "PhysicsWorld",
    "MergeSystem",
    "MergeResult",
    "DangerZoneMonitor",
    "Session",
    "SessionState",
]
