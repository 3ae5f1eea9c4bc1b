"""
Physics world - Rigid body simulation behind a narrow adapter interface.

Provides:
- Asynchronous world initialization
- Static, dynamic and vehicle chassis body creation
- Per-step force and torque application
- Fixed-timestep integration with contact resolution against static geometry
- Body-to-visual transform synchronization

The world owns every body. Callers hold ``BodyHandle``s and go through the
methods here for anything that reads or writes physics state.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import numpy as np

from zonedrive.errors import InvalidHandle, NotInitialized
from zonedrive.physics.bodies import BodyHandle, BodyKind, Cuboid, RigidBody
from zonedrive.physics.math3d import integrate_orientation, normalize, quat_normalize, vec3

logger = logging.getLogger(__name__)

_world_ids = itertools.count(1)


@dataclass
class PhysicsConfig:
    """Physics simulation configuration."""
    # Internal fixed step, independent of the frame delta
    fixed_timestep: float = 1.0 / 60.0

    # Gravity (m/s^2)
    gravity: tuple = (0.0, -9.81, 0.0)

    # Static geometry
    ground_friction: float = 0.8
    ground_thickness: float = 0.2
    static_friction: float = 0.8

    # Generic dynamic boxes
    dynamic_friction: float = 0.5
    dynamic_restitution: float = 0.2

    # Vehicle chassis. Wheels are visual only; the chassis collider
    # carries a rolling-resistance friction coefficient.
    chassis_mass: float = 3.0
    chassis_linear_damping: float = 0.5
    chassis_angular_damping: float = 0.5
    chassis_friction: float = 0.02
    chassis_restitution: float = 0.1

    # Contacts slower than this (m/s) do not bounce
    bounce_threshold: float = 1.0

    def __post_init__(self):
        if self.fixed_timestep <= 0:
            raise ValueError("fixed_timestep must be positive")


class PhysicsWorld:
    """Rigid body world for the vehicle simulation.

    Integrates dynamic bodies with semi-implicit Euler at a fixed internal
    timestep, resolves their contacts against static axis-aligned boxes and
    copies resulting transforms to attached visuals.

    Usage:
        physics = PhysicsWorld()
        await physics.initialize()
        physics.create_ground(200)
        chassis = physics.create_vehicle_chassis((0, 2, 0), dimensions)
        physics.apply_force(chassis, (0, 0, -3))
        physics.step()
    """

    def __init__(self, config: PhysicsConfig | None = None):
        """Initialize the adapter. The world itself is built by ``initialize``.

        Args:
            config: Physics configuration. Uses defaults if None.
        """
        self.config = config or PhysicsConfig()
        self._id = next(_world_ids)
        self._initialized = False
        self._gravity = np.zeros(3)

        # Body arena, indexed by BodyHandle.index
        self._bodies: List[RigidBody] = []

        self._time: float = 0.0
        self._steps: int = 0

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def time(self) -> float:
        """Simulated physics time in seconds."""
        return self._time

    @property
    def step_count(self) -> int:
        return self._steps

    @property
    def body_count(self) -> int:
        return len(self._bodies)

    @property
    def gravity(self) -> np.ndarray:
        return self._gravity.copy()

    async def initialize(self) -> None:
        """Create the physics world.

        Must be awaited before any body is created. Calling it again once
        initialized does nothing.
        """
        if self._initialized:
            return
        # Yield once so callers always treat this as a real await point
        await asyncio.sleep(0)
        self._gravity = vec3(self.config.gravity)
        self._initialized = True
        logger.info("Physics: world %d initialized (gravity=%s)", self._id, self._gravity.tolist())

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitialized("Physics world used before initialize() completed")

    def _resolve(self, handle: BodyHandle) -> RigidBody:
        self._require_initialized()
        if not isinstance(handle, BodyHandle) or handle.world_id != self._id:
            raise InvalidHandle(f"{handle!r} does not belong to physics world {self._id}")
        if not 0 <= handle.index < len(self._bodies):
            raise InvalidHandle(f"{handle!r} is not a registered body")
        return self._bodies[handle.index]

    def _resolve_dynamic(self, handle: BodyHandle) -> RigidBody:
        body = self._resolve(handle)
        if not body.is_dynamic:
            raise InvalidHandle(f"{handle!r} is a static body")
        return body

    def _add_body(self, body: RigidBody) -> BodyHandle:
        self._bodies.append(body)
        handle = BodyHandle(self._id, len(self._bodies) - 1)
        logger.debug(
            "Physics: created %s body %d at %s",
            body.kind.value, handle.index, body.position.tolist(),
        )
        return handle

    # ------------------------------------------------------------------
    # Body creation
    # ------------------------------------------------------------------

    def create_ground(self, size: float = 200.0) -> BodyHandle:
        """Create the static ground slab.

        The slab is centred on the origin with its top face at half the
        configured thickness above y = 0.

        Args:
            size: Edge length of the square ground in meters

        Returns:
            Handle of the ground body
        """
        self._require_initialized()
        shape = Cuboid(size / 2, self.config.ground_thickness / 2, size / 2)
        return self._add_body(RigidBody(
            kind=BodyKind.STATIC,
            shape=shape,
            friction=self.config.ground_friction,
        ))

    def create_static_body(self, shape: Cuboid, position=(0.0, 0.0, 0.0)) -> BodyHandle:
        """Create a fixed, axis-aligned box collider.

        Args:
            shape: Collider shape
            position: Centre of the box

        Returns:
            Handle of the static body
        """
        self._require_initialized()
        return self._add_body(RigidBody(
            kind=BodyKind.STATIC,
            shape=shape,
            position=vec3(position),
            friction=self.config.static_friction,
        ))

    def create_dynamic_body(
        self,
        shape: Cuboid,
        mass: float,
        position=(0.0, 0.0, 0.0),
        visual: Optional[Any] = None,
    ) -> BodyHandle:
        """Create a dynamic box.

        Args:
            shape: Collider shape
            mass: Mass in kg (must be positive)
            position: Initial centre position
            visual: Optional visual handle synced after every step

        Returns:
            Handle of the dynamic body
        """
        self._require_initialized()
        return self._add_body(RigidBody(
            kind=BodyKind.DYNAMIC,
            shape=shape,
            mass=mass,
            position=vec3(position),
            friction=self.config.dynamic_friction,
            restitution=self.config.dynamic_restitution,
            visual=visual,
        ))

    def create_vehicle_chassis(
        self,
        position,
        dimensions: Dict[str, float],
        visual: Optional[Any] = None,
    ) -> BodyHandle:
        """Create the vehicle chassis body.

        Args:
            position: Initial centre position
            dimensions: Mapping with ``width``, ``height`` and ``length`` (m)
            visual: Optional visual handle synced after every step

        Returns:
            Handle of the chassis body
        """
        self._require_initialized()
        shape = Cuboid.from_size(dimensions["width"], dimensions["height"], dimensions["length"])
        return self._add_body(RigidBody(
            kind=BodyKind.DYNAMIC,
            shape=shape,
            mass=self.config.chassis_mass,
            position=vec3(position),
            linear_damping=self.config.chassis_linear_damping,
            angular_damping=self.config.chassis_angular_damping,
            friction=self.config.chassis_friction,
            restitution=self.config.chassis_restitution,
            visual=visual,
        ))

    def attach_visual(self, handle: BodyHandle, visual: Optional[Any]) -> None:
        """Attach (or with None, detach) the visual synced from this body."""
        self._resolve(handle).visual = visual

    def get_visual(self, handle: BodyHandle) -> Optional[Any]:
        return self._resolve(handle).visual

    # ------------------------------------------------------------------
    # Forces and state access
    # ------------------------------------------------------------------

    def apply_force(self, handle: BodyHandle, force) -> None:
        """Add a force (N) at the centre of mass for the next step only."""
        self._resolve_dynamic(handle).force += vec3(force)

    def apply_torque(self, handle: BodyHandle, torque) -> None:
        """Add a world-frame torque (Nm) for the next step only."""
        self._resolve_dynamic(handle).torque += vec3(torque)

    def get_velocity(self, handle: BodyHandle) -> np.ndarray:
        return self._resolve(handle).linear_velocity.copy()

    def set_velocity(self, handle: BodyHandle, velocity) -> None:
        self._resolve_dynamic(handle).linear_velocity = vec3(velocity)

    def get_angular_velocity(self, handle: BodyHandle) -> np.ndarray:
        return self._resolve(handle).angular_velocity.copy()

    def set_angular_velocity(self, handle: BodyHandle, angular_velocity) -> None:
        self._resolve_dynamic(handle).angular_velocity = vec3(angular_velocity)

    def get_translation(self, handle: BodyHandle) -> np.ndarray:
        return self._resolve(handle).position.copy()

    def set_translation(self, handle: BodyHandle, position) -> None:
        """Teleport a dynamic body. Velocity is left untouched."""
        self._resolve_dynamic(handle).position = vec3(position)

    def get_rotation(self, handle: BodyHandle) -> np.ndarray:
        """Orientation quaternion (x, y, z, w)."""
        return self._resolve(handle).rotation.copy()

    def set_rotation(self, handle: BodyHandle, rotation) -> None:
        q = np.asarray(rotation, dtype=float)
        if q.shape != (4,):
            raise ValueError(f"Expected a quaternion, got shape {q.shape}")
        self._resolve_dynamic(handle).rotation = quat_normalize(q)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self) -> None:
        """Advance the world by one fixed timestep and sync visuals."""
        self._require_initialized()
        dt = self.config.fixed_timestep

        dynamic = [body for body in self._bodies if body.is_dynamic]
        static = [body for body in self._bodies if not body.is_dynamic]

        for body in dynamic:
            self._integrate(body, dt)

        for body in dynamic:
            for obstacle in static:
                self._resolve_contact(body, obstacle)

        for body in dynamic:
            body.clear_accumulators()
            if body.visual is not None:
                body.visual.set_transform(body.position.copy(), body.rotation.copy())

        self._time += dt
        self._steps += 1

    def _integrate(self, body: RigidBody, dt: float) -> None:
        """Semi-implicit Euler step of one dynamic body."""
        acceleration = body.force * body.inverse_mass + self._gravity
        body.linear_velocity = body.linear_velocity + acceleration * dt
        body.linear_velocity /= 1.0 + dt * body.linear_damping

        angular_accel = body.angular_acceleration(body.torque)
        body.angular_velocity = body.angular_velocity + angular_accel * dt
        body.angular_velocity /= 1.0 + dt * body.angular_damping

        body.position = body.position + body.linear_velocity * dt
        body.rotation = integrate_orientation(body.rotation, body.angular_velocity, dt)

    def _resolve_contact(self, body: RigidBody, obstacle: RigidBody) -> None:
        """Push a dynamic box out of a static box and apply the contact impulse."""
        body_min, body_max = body.world_aabb()
        half = obstacle.shape.half_extents
        obstacle_min = obstacle.position - half
        obstacle_max = obstacle.position + half

        overlap = np.minimum(body_max, obstacle_max) - np.maximum(body_min, obstacle_min)
        if np.any(overlap <= 0.0):
            return

        axis = int(np.argmin(overlap))
        normal = np.zeros(3)
        normal[axis] = 1.0 if body.position[axis] >= obstacle.position[axis] else -1.0
        body.position = body.position + normal * overlap[axis]

        normal_speed = float(np.dot(body.linear_velocity, normal))
        if normal_speed >= 0.0:
            return

        restitution = 0.5 * (body.restitution + obstacle.restitution)
        if -normal_speed < self.config.bounce_threshold:
            restitution = 0.0
        normal_change = -(1.0 + restitution) * normal_speed
        velocity = body.linear_velocity + normal_change * normal

        # Coulomb friction, bounded by the normal velocity change
        tangential = velocity - np.dot(velocity, normal) * normal
        tangential_speed = float(np.linalg.norm(tangential))
        if tangential_speed > 0.0:
            mu = body.friction * obstacle.friction
            reduction = min(tangential_speed, mu * normal_change)
            velocity = velocity - normalize(tangential) * reduction

        body.linear_velocity = velocity

    def get_state(self) -> dict:
        """Summary of the world for logging and debugging."""
        return {
            "world_id": self._id,
            "initialized": self._initialized,
            "time": self._time,
            "steps": self._steps,
            "bodies": self.body_count,
            "dynamic_bodies": sum(1 for body in self._bodies if body.is_dynamic),
        }
