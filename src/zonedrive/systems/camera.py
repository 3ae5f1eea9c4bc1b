"""
Camera - Third-person follow camera state.

Tracks a target from behind and above, easing toward the desired pose each
frame. Only the pose is computed here; projection belongs to the renderer.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np

from zonedrive.physics.math3d import UP, quat_from_axis_angle, quat_rotate


@dataclass
class CameraConfig:
    """Follow camera configuration."""
    offset: tuple = (0.0, 8.0, 12.0)          # Behind and above, target frame
    look_at_offset: tuple = (0.0, 0.0, 0.0)
    lerp_factor: float = 0.05                 # Per-frame easing
    initial_position: tuple = (0.0, 10.0, 15.0)
    fov_deg: float = 60.0


class FollowCamera:
    """Smoothed third-person camera following a target.

    The target needs ``position`` and ``heading`` (yaw in radians).
    """

    def __init__(self, target: Any, config: CameraConfig | None = None):
        self.config = config or CameraConfig()
        self.target = target
        self.position = np.asarray(self.config.initial_position, dtype=float).copy()
        self.look_at = np.zeros(3)
        self._offset = np.asarray(self.config.offset, dtype=float)
        self._look_at_offset = np.asarray(self.config.look_at_offset, dtype=float)

    def desired_pose(self) -> tuple[np.ndarray, np.ndarray]:
        """Camera position and look-at point with no easing applied."""
        yaw = quat_from_axis_angle(UP, self.target.heading)
        origin = np.asarray(self.target.position, dtype=float)
        return (
            origin + quat_rotate(yaw, self._offset),
            origin + quat_rotate(yaw, self._look_at_offset),
        )

    def update(self, delta: float, elapsed: float) -> None:
        target_position, target_look_at = self.desired_pose()
        t = self.config.lerp_factor
        self.position += (target_position - self.position) * t
        self.look_at += (target_look_at - self.look_at) * t
