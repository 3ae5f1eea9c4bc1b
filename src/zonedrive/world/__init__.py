"""
World module - Things that exist in the simulated world.

This module contains:
- Vehicle: The drivable car and its control state machine
- Zones: Content trigger regions and their registry
- Environment: Ground and static colliders
- Scene: Visual transform nodes
"""

from zonedrive.world.vehicle import Vehicle, VehicleConfig, VehicleState, DriveMode
from zonedrive.world.zones import Zone, ZoneConfig, ZoneContent, ZoneRegistry, ZoneTransition, TransitionKind
from zonedrive.world.environment import DEFAULT_RAMPS, Environment, EnvironmentConfig, Obstacle
from zonedrive.world.scene import Scene, VisualNode

__all__ = [
    "Vehicle",
    "VehicleConfig",
    "VehicleState",
    "DriveMode",
    "Zone",
    "ZoneConfig",
    "ZoneContent",
    "ZoneRegistry",
    "ZoneTransition",
    "TransitionKind",
    "Environment",
    "EnvironmentConfig",
    "Obstacle",
    "DEFAULT_RAMPS",
    "Scene",
    "VisualNode",
]
