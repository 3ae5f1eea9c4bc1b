"""
Physics module - Rigid body world behind a narrow adapter.

This module contains:
- PhysicsWorld: Owns the world, bodies and the body-to-visual table
- Bodies: Cuboid shapes and opaque body handles
- Math3d: Vector and quaternion helpers
"""

from zonedrive.physics.world import PhysicsWorld, PhysicsConfig
from zonedrive.physics.bodies import BodyHandle, BodyKind, Cuboid

__all__ = [
    "PhysicsWorld",
    "PhysicsConfig",
    "BodyHandle",
    "BodyKind",
    "Cuboid",
]
