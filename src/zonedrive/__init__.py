"""
ZoneDrive - Real-time vehicle simulation with content trigger zones.

This package provides the update pipeline of a single-player driving world:
- An ordered, priority-keyed frame scheduler with a capped frame delta
- A rigid body physics world behind a narrow adapter interface
- A vehicle controller turning keyboard/touch intent into chassis forces
- A zone registry raising enter/exit notifications as the vehicle moves
"""

__version__ = "0.1.0"

from zonedrive.core.game import Game, GameConfig
from zonedrive.core.scheduler import Scheduler
from zonedrive.physics.world import PhysicsWorld
from zonedrive.world.vehicle import Vehicle
from zonedrive.world.zones import ZoneRegistry

__all__ = [
    "Game",
    "GameConfig",
    "Scheduler",
    "PhysicsWorld",
    "Vehicle",
    "ZoneRegistry",
    "__version__",
]
