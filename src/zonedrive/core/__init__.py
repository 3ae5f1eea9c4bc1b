"""
Core module - Frame loop and orchestration.

This module contains:
- Scheduler: Priority-ordered per-frame callbacks
- Game: Builds components and wires them into the frame loop
"""

from zonedrive.core.scheduler import Scheduler, SchedulerConfig, TickHandle, FrameClock
from zonedrive.core.game import Game, GameConfig

__all__ = [
    "Scheduler",
    "SchedulerConfig",
    "TickHandle",
    "FrameClock",
    "Game",
    "GameConfig",
]
