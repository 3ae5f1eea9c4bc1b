"""
Vehicle - Drivable car on a physics chassis.

Converts per-frame driving intent into speed and steering state, applies the
resulting force and yaw torque to the chassis before the physics step and
syncs visuals from the chassis after it.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
import numpy as np

from zonedrive.physics.bodies import BodyHandle
from zonedrive.physics.math3d import planar_direction, yaw_of
from zonedrive.physics.world import PhysicsWorld
from zonedrive.systems.inputs import InputSnapshot
from zonedrive.world.scene import Scene, VisualNode

logger = logging.getLogger(__name__)


@dataclass
class VehicleConfig:
    """Vehicle tuning, chosen for gentle, controllable movement.

    Speeds here are internal drive units; the chassis force is
    ``speed * force_scale``.
    """
    # Speed caps
    max_speed: float = 1.0
    max_speed_boost: float = 2.0
    max_reverse_speed: float = 0.5

    # Rates (units/s)
    acceleration: float = 0.8
    boost_multiplier: float = 1.5
    reverse_acceleration_factor: float = 0.7
    stop_rate: float = 10.0               # Pressing the opposite direction
    natural_deceleration: float = 8.0     # No directional input

    # Steering
    max_steering: float = 0.5             # rad
    steering_smoothing: float = 0.2       # Per-frame low-pass factor

    # Force application
    force_scale: float = 3.0
    torque_scale: float = 4.0
    steering_deadzone: float = 0.1        # Minimum |speed| for yaw torque
    steering_speed_cap: float = 3.0

    # Coasting
    stop_threshold: float = 0.02
    coast_velocity_factor: float = 0.5
    coast_yaw_damping: float = 0.85
    coast_steering_threshold: float = 0.1

    # Visuals
    wheel_spin_factor: float = 5.0

    # Fall-through recovery
    ground_level: float = 0.0
    recovery_height: float = 2.0
    recovery_velocity_factor: float = 0.5

    # Body
    spawn_position: tuple = (0.0, 2.0, 0.0)
    width: float = 1.3
    height: float = 0.4
    length: float = 2.0
    forward_axis: tuple = (0.0, 0.0, -1.0)

    def __post_init__(self):
        if self.max_speed_boost < self.max_speed:
            raise ValueError("max_speed_boost must not be below max_speed")
        if self.max_reverse_speed < 0 or self.max_steering < 0:
            raise ValueError("max_reverse_speed and max_steering must be non-negative")
        if not 0.0 < self.steering_smoothing <= 1.0:
            raise ValueError("steering_smoothing must be within (0, 1]")

    @property
    def dimensions(self) -> Dict[str, float]:
        return {"width": self.width, "height": self.height, "length": self.length}


class DriveMode(Enum):
    """Per-frame control branch, resolved in this precedence order."""
    BRAKE = "brake"
    FORWARD = "forward"
    BACKWARD = "backward"
    COAST = "coast"


@dataclass
class VehicleState:
    """Control state persisted across frames."""
    speed: float = 0.0          # Signed, forward positive
    steering: float = 0.0       # Signed wheel angle (rad), positive left
    mode: DriveMode = DriveMode.COAST
    wheel_spin: float = 0.0     # Accumulated wheel rotation (rad)
    recoveries: int = 0         # Fall-through recoveries so far


# Local wheel offsets: front left, front right, rear left, rear right.
# The front of the car faces -Z.
WHEEL_OFFSETS = (
    (-0.6, -0.2, -0.7),
    (0.6, -0.2, -0.7),
    (-0.6, -0.2, 0.7),
    (0.6, -0.2, 0.7),
)


class Vehicle:
    """Drivable vehicle controller.

    Collaborators are injected: the physics world owning the chassis body and
    an input source exposing a per-frame ``snapshot``.

    Usage:
        vehicle = Vehicle(physics, inputs)
        scheduler.register(PRIORITY_VEHICLE_PRE_PHYSICS, vehicle.pre_physics_update)
        scheduler.register(PRIORITY_VEHICLE_POST_PHYSICS, vehicle.post_physics_update)
    """

    def __init__(
        self,
        physics: PhysicsWorld,
        inputs: Any,
        config: VehicleConfig | None = None,
        scene: Optional[Scene] = None,
    ):
        """Create the chassis body and visuals.

        Args:
            physics: Initialized physics world
            inputs: Object with a ``snapshot`` property of type InputSnapshot
            config: Vehicle configuration. Uses defaults if None.
            scene: Scene to add the vehicle visual to
        """
        self.config = config or VehicleConfig()
        self.physics = physics
        self.inputs = inputs
        self.state = VehicleState()

        self.mesh = VisualNode("vehicle", self.config.spawn_position)
        self.wheels: List[VisualNode] = [
            self.mesh.add(VisualNode(f"wheel_{i}", offset))
            for i, offset in enumerate(WHEEL_OFFSETS)
        ]
        if scene is not None:
            scene.add(self.mesh)

        self.body: BodyHandle = physics.create_vehicle_chassis(
            self.config.spawn_position,
            self.config.dimensions,
            visual=self.mesh,
        )
        self._forward_axis = np.asarray(self.config.forward_axis, dtype=float)

    @property
    def speed(self) -> float:
        """Absolute drive speed."""
        return abs(self.state.speed)

    @property
    def signed_speed(self) -> float:
        return self.state.speed

    @property
    def steering(self) -> float:
        return self.state.steering

    @property
    def mode(self) -> DriveMode:
        return self.state.mode

    @property
    def position(self) -> np.ndarray:
        """Position of the vehicle visual as of the last post-physics sync."""
        return self.mesh.position.copy()

    @property
    def heading(self) -> float:
        """Yaw in radians, 0 facing -Z, positive turning left."""
        return yaw_of(self.mesh.quaternion)

    def forward_cap(self, boost: bool) -> float:
        return self.config.max_speed_boost if boost else self.config.max_speed

    def resolve_speed(self, intent: InputSnapshot, delta: float) -> float:
        """Apply one frame of the drive state machine to ``state.speed``.

        Brake intent is handled by the caller; this covers the forward,
        backward and coast branches and the final clamp.

        Args:
            intent: Driving intent for this frame
            delta: Frame delta in seconds

        Returns:
            The new signed speed
        """
        cfg = self.config
        speed = self.state.speed
        acceleration = cfg.acceleration * (cfg.boost_multiplier if intent.boost else 1.0)

        if intent.forward > 0:
            self.state.mode = DriveMode.FORWARD
            if speed < 0:
                speed = min(speed + cfg.stop_rate * delta, 0.0)
            else:
                speed += acceleration * delta
        elif intent.forward < 0:
            self.state.mode = DriveMode.BACKWARD
            if speed > 0:
                speed = max(speed - cfg.stop_rate * delta, 0.0)
            else:
                speed -= acceleration * cfg.reverse_acceleration_factor * delta
        else:
            self.state.mode = DriveMode.COAST
            if speed > 0:
                speed = max(speed - cfg.natural_deceleration * delta, 0.0)
            elif speed < 0:
                speed = min(speed + cfg.natural_deceleration * delta, 0.0)

        speed = float(np.clip(speed, -cfg.max_reverse_speed, self.forward_cap(intent.boost)))
        self.state.speed = speed
        return speed

    def resolve_steering(self, intent: InputSnapshot) -> float:
        """Low-pass the steering angle toward the intent's target angle."""
        target = intent.steering * self.config.max_steering
        self.state.steering += (target - self.state.steering) * self.config.steering_smoothing
        return self.state.steering

    def _hard_stop(self) -> None:
        self.state.speed = 0.0
        velocity = self.physics.get_velocity(self.body)
        self.physics.set_velocity(self.body, (0.0, velocity[1], 0.0))
        self.physics.set_angular_velocity(self.body, (0.0, 0.0, 0.0))

    def pre_physics_update(self, delta: float, elapsed: float) -> None:
        """Turn this frame's intent into chassis force and torque."""
        intent: InputSnapshot = self.inputs.snapshot

        if intent.brake:
            self.state.mode = DriveMode.BRAKE
            self._hard_stop()
            return

        self.resolve_speed(intent, delta)
        self.resolve_steering(intent)
        speed = self.state.speed
        cfg = self.config

        rotation = self.physics.get_rotation(self.body)
        forward = planar_direction(rotation, self._forward_axis)
        self.physics.apply_force(self.body, forward * speed * cfg.force_scale)

        if abs(speed) > cfg.steering_deadzone:
            # Reversing inverts the steering direction, as with a real car
            steering_effect = self.state.steering * np.sign(speed)
            yaw = steering_effect * min(abs(speed), cfg.steering_speed_cap) * cfg.torque_scale
            self.physics.apply_torque(self.body, (0.0, yaw, 0.0))

        if intent.forward != 0:
            return

        if abs(speed) < cfg.stop_threshold:
            self._hard_stop()
            return

        velocity = self.physics.get_velocity(self.body)
        self.physics.set_velocity(self.body, (
            velocity[0] * cfg.coast_velocity_factor,
            velocity[1],
            velocity[2] * cfg.coast_velocity_factor,
        ))
        if abs(intent.steering) < cfg.coast_steering_threshold:
            angular = self.physics.get_angular_velocity(self.body)
            self.physics.set_angular_velocity(self.body, (0.0, angular[1] * cfg.coast_yaw_damping, 0.0))

    def post_physics_update(self, delta: float, elapsed: float) -> None:
        """Sync visuals from the stepped chassis and recover from falls."""
        cfg = self.config
        position = self.physics.get_translation(self.body)

        if position[1] < cfg.ground_level:
            velocity = self.physics.get_velocity(self.body)
            position = np.array([position[0], cfg.recovery_height, position[2]])
            self.physics.set_translation(self.body, position)
            self.physics.set_velocity(self.body, (
                velocity[0] * cfg.recovery_velocity_factor,
                0.0,
                velocity[2] * cfg.recovery_velocity_factor,
            ))
            self.state.recoveries += 1
            logger.warning("Vehicle: fell below ground, recovered to %s", position.tolist())

        self.mesh.set_transform(position, self.physics.get_rotation(self.body))

        spin = self.state.speed * delta * cfg.wheel_spin_factor
        self.state.wheel_spin += spin
        for i, wheel in enumerate(self.wheels):
            wheel.rotation[0] += spin
            if i < 2:
                wheel.rotation[1] = self.state.steering

    def reset(self, position=None) -> None:
        """Put the vehicle back at rest at ``position`` (spawn point if None)."""
        position = self.config.spawn_position if position is None else position
        self.state = VehicleState()
        self.physics.set_translation(self.body, position)
        self.physics.set_rotation(self.body, (0.0, 0.0, 0.0, 1.0))
        self.physics.set_velocity(self.body, (0.0, 0.0, 0.0))
        self.physics.set_angular_velocity(self.body, (0.0, 0.0, 0.0))
        self.mesh.set_transform(self.physics.get_translation(self.body), self.physics.get_rotation(self.body))
        for wheel in self.wheels:
            wheel.rotation[:] = 0.0

    def get_telemetry(self) -> Dict[str, Any]:
        """Current control and body state."""
        velocity = self.physics.get_velocity(self.body)
        return {
            "mode": self.state.mode.value,
            "speed": self.state.speed,
            "steering": self.state.steering,
            "position": self.position.tolist(),
            "heading_rad": self.heading,
            "velocity": velocity.tolist(),
            "ground_speed_mps": float(np.hypot(velocity[0], velocity[2])),
            "recoveries": self.state.recoveries,
        }
