"""
Environment - Static collision geometry of the world.

Builds the ground slab, the perimeter barriers and the fixed ramps.
Decorative props are left to the front-end.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from zonedrive.physics.bodies import BodyHandle, Cuboid
from zonedrive.physics.world import PhysicsWorld

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Obstacle:
    """Axis-aligned static box: centre and full size (width, height, depth)."""
    position: Tuple[float, float, float]
    size: Tuple[float, float, float]


# Ramp blocks. Colliders stay axis-aligned; the visual tilt and yaw are
# front-end only.
DEFAULT_RAMPS = (
    Obstacle((15.0, 0.25, -10.0), (3.0, 0.5, 4.0)),
    Obstacle((-15.0, 0.25, 10.0), (3.0, 0.5, 4.0)),
    Obstacle((20.0, 0.25, 20.0), (3.0, 0.5, 4.0)),
)


@dataclass
class EnvironmentConfig:
    """Static world layout."""
    ground_size: float = 200.0
    barrier_distance: float = 100.0
    barrier_length: float = 100.0
    barrier_height: float = 2.0
    barrier_thickness: float = 1.0
    obstacles: List[Obstacle] = field(default_factory=lambda: list(DEFAULT_RAMPS))

    def barriers(self) -> List[Obstacle]:
        """North, south, east and west barriers."""
        d = self.barrier_distance
        h = self.barrier_height
        along_x = (self.barrier_length, h, self.barrier_thickness)
        along_z = (self.barrier_thickness, h, self.barrier_length)
        return [
            Obstacle((0.0, h / 2, -d), along_x),
            Obstacle((0.0, h / 2, d), along_x),
            Obstacle((d, h / 2, 0.0), along_z),
            Obstacle((-d, h / 2, 0.0), along_z),
        ]


class Environment:
    """Static bodies making up the drivable world."""

    def __init__(self, physics: PhysicsWorld, config: EnvironmentConfig | None = None):
        self.config = config or EnvironmentConfig()
        self.ground: BodyHandle = physics.create_ground(self.config.ground_size)
        self.static_bodies: List[BodyHandle] = [
            physics.create_static_body(Cuboid.from_size(*obstacle.size), obstacle.position)
            for obstacle in self.config.barriers() + list(self.config.obstacles)
        ]
        logger.info(
            "Environment: ground %.0fm with %d static colliders",
            self.config.ground_size, len(self.static_bodies),
        )
