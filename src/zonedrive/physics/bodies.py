"""
Rigid bodies - Shapes, handles and per-body state owned by the physics world.

Defines:
- Cuboid collider shape
- BodyHandle, the opaque arena reference handed to callers
- RigidBody, the internal per-body record
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
import numpy as np

from zonedrive.physics.math3d import IDENTITY_QUATERNION, quat_conjugate, quat_rotate


class BodyKind(Enum):
    """Rigid body behaviour."""
    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class Cuboid:
    """Box collider given by its half extents (m)."""
    half_x: float
    half_y: float
    half_z: float

    def __post_init__(self):
        if min(self.half_x, self.half_y, self.half_z) <= 0:
            raise ValueError("Cuboid half extents must be positive")

    @classmethod
    def from_size(cls, width: float, height: float, depth: float) -> "Cuboid":
        """Build from full width (x), height (y) and depth (z)."""
        return cls(width / 2, height / 2, depth / 2)

    @property
    def half_extents(self) -> np.ndarray:
        return np.array([self.half_x, self.half_y, self.half_z])

    @property
    def volume(self) -> float:
        return 8.0 * self.half_x * self.half_y * self.half_z

    def inertia(self, mass: float) -> np.ndarray:
        """Principal moments of inertia of a solid box (kg*m^2)."""
        wx, wy, wz = 2 * self.half_x, 2 * self.half_y, 2 * self.half_z
        return mass / 12.0 * np.array([
            wy**2 + wz**2,
            wx**2 + wz**2,
            wx**2 + wy**2,
        ])


@dataclass(frozen=True)
class BodyHandle:
    """Opaque reference to a body: the owning world and an arena slot."""
    world_id: int
    index: int


@dataclass
class RigidBody:
    """Internal rigid body record.

    Only the physics world reads or writes these fields.
    """
    kind: BodyKind
    shape: Cuboid
    mass: float = 0.0
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: IDENTITY_QUATERNION.copy())
    linear_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    linear_damping: float = 0.0
    angular_damping: float = 0.0
    friction: float = 0.5
    restitution: float = 0.0
    visual: Optional[Any] = None

    # Accumulators, cleared after every step
    force: np.ndarray = field(default_factory=lambda: np.zeros(3))
    torque: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        if self.kind is BodyKind.DYNAMIC and self.mass <= 0:
            raise ValueError("Dynamic bodies need a positive mass")
        self._local_inertia = (
            self.shape.inertia(self.mass) if self.mass > 0 else np.zeros(3)
        )

    @property
    def is_dynamic(self) -> bool:
        return self.kind is BodyKind.DYNAMIC

    @property
    def inverse_mass(self) -> float:
        return 1.0 / self.mass if self.is_dynamic else 0.0

    def angular_acceleration(self, torque: np.ndarray) -> np.ndarray:
        """World-frame angular acceleration produced by a world-frame torque."""
        if not self.is_dynamic:
            return np.zeros(3)
        local_torque = quat_rotate(quat_conjugate(self.rotation), torque)
        local_accel = local_torque / self._local_inertia
        return quat_rotate(self.rotation, local_accel)

    def world_aabb(self) -> tuple[np.ndarray, np.ndarray]:
        """Axis-aligned bounds (min, max) of the rotated box."""
        half = self.shape.half_extents
        axes = np.array([
            quat_rotate(self.rotation, np.array([1.0, 0.0, 0.0])),
            quat_rotate(self.rotation, np.array([0.0, 1.0, 0.0])),
            quat_rotate(self.rotation, np.array([0.0, 0.0, 1.0])),
        ])
        extent = np.abs(axes).T @ half
        return self.position - extent, self.position + extent

    def clear_accumulators(self) -> None:
        self.force[:] = 0.0
        self.torque[:] = 0.0
