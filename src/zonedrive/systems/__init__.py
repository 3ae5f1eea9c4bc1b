"""
Systems module - Per-frame services around the vehicle.

This module contains:
- Inputs: Keyboard/touch intent sampling
- Camera: Third-person follow camera
"""

from zonedrive.systems.inputs import InputSource, InputSnapshot, ScriptedInput
from zonedrive.systems.camera import FollowCamera, CameraConfig

__all__ = [
    "InputSource",
    "InputSnapshot",
    "ScriptedInput",
    "FollowCamera",
    "CameraConfig",
]
