"""
Inputs - Keyboard and touch intent, sampled once per frame.

Provides:
- InputSnapshot: the normalized per-frame driving intent
- InputSource: keyboard edge state combined with a touch joystick
- ScriptedInput: fixed or programmatically changed intent for headless runs
"""

from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple
import numpy as np

FORWARD_KEYS = ("KeyW", "ArrowUp")
BACKWARD_KEYS = ("KeyS", "ArrowDown")
LEFT_KEYS = ("KeyA", "ArrowLeft")
RIGHT_KEYS = ("KeyD", "ArrowRight")
BOOST_KEYS = ("ShiftLeft", "ShiftRight")
BRAKE_KEYS = ("Space",)


@dataclass(frozen=True)
class InputSnapshot:
    """Driving intent for one frame."""
    forward: int = 0           # -1 backward, 0 none, 1 forward
    steering: float = 0.0      # -1.0 (right) to 1.0 (left)
    boost: bool = False
    brake: bool = False

    def __post_init__(self):
        if self.forward not in (-1, 0, 1):
            raise ValueError(f"forward must be -1, 0 or 1, got {self.forward}")
        if not -1.0 <= self.steering <= 1.0:
            raise ValueError(f"steering must be within [-1, 1], got {self.steering}")


NEUTRAL = InputSnapshot()


@dataclass
class KeyboardState:
    forward: bool = False
    backward: bool = False
    left: bool = False
    right: bool = False
    boost: bool = False
    brake: bool = False


@dataclass
class TouchState:
    active: bool = False
    joystick_x: float = 0.0
    joystick_y: float = 0.0
    boost: bool = False


class InputSource:
    """Keyboard and touch input handling.

    Key codes follow the DOM ``KeyboardEvent.code`` names. Pressing forward
    releases backward and vice versa. While a touch is active the joystick
    overrides forward, steering and boost; brake always comes from the
    keyboard.
    """

    def __init__(self, touch_deadzone: float = 0.15):
        """Initialize input source.

        Args:
            touch_deadzone: Joystick travel below which no forward intent
                is reported
        """
        self.touch_deadzone = touch_deadzone
        self.keys = KeyboardState()
        self.touch = TouchState()
        self._snapshot = NEUTRAL

    @property
    def snapshot(self) -> InputSnapshot:
        """Intent latched by the most recent ``update``."""
        return self._snapshot

    def key_down(self, code: str) -> None:
        if code in FORWARD_KEYS:
            self.keys.forward = True
            self.keys.backward = False
        elif code in BACKWARD_KEYS:
            self.keys.backward = True
            self.keys.forward = False
        elif code in LEFT_KEYS:
            self.keys.left = True
        elif code in RIGHT_KEYS:
            self.keys.right = True
        elif code in BOOST_KEYS:
            self.keys.boost = True
        elif code in BRAKE_KEYS:
            self.keys.brake = True

    def key_up(self, code: str) -> None:
        if code in FORWARD_KEYS:
            self.keys.forward = False
        elif code in BACKWARD_KEYS:
            self.keys.backward = False
        elif code in LEFT_KEYS:
            self.keys.left = False
        elif code in RIGHT_KEYS:
            self.keys.right = False
        elif code in BOOST_KEYS:
            self.keys.boost = False
        elif code in BRAKE_KEYS:
            self.keys.brake = False

    def touch_start(self, touches: Sequence[Tuple[float, float]], viewport: Tuple[float, float]) -> None:
        self.touch.active = True
        self._update_touch(touches, viewport)

    def touch_move(self, touches: Sequence[Tuple[float, float]], viewport: Tuple[float, float]) -> None:
        if self.touch.active:
            self._update_touch(touches, viewport)

    def touch_end(self) -> None:
        self.touch = TouchState()

    def _update_touch(self, touches: Sequence[Tuple[float, float]], viewport: Tuple[float, float]) -> None:
        """Map the first touch to a joystick around the viewport centre.

        Args:
            touches: Client (x, y) coordinates of the current touches
            viewport: Viewport (width, height) in the same units
        """
        if len(touches) == 0:
            return

        width, height = viewport
        if width <= 0 or height <= 0:
            # Minimized or not yet laid out
            return
        x, y = touches[0]
        # A quarter of the viewport is full joystick travel
        self.touch.joystick_x = float(np.clip((x - width / 2) / (width / 4), -1.0, 1.0))
        self.touch.joystick_y = float(np.clip((y - height / 2) / (height / 4), -1.0, 1.0))
        self.touch.boost = len(touches) >= 2

    def get_input(self) -> InputSnapshot:
        """Combine keyboard and touch into a single snapshot."""
        forward = 0
        if self.keys.forward:
            forward = 1
        if self.keys.backward:
            forward = -1

        steering = 0.0
        if self.keys.left:
            steering += 1.0
        if self.keys.right:
            steering -= 1.0
        boost = self.keys.boost

        if self.touch.active:
            stick_forward = -self.touch.joystick_y
            forward = int(np.sign(stick_forward)) if abs(stick_forward) > self.touch_deadzone else 0
            steering = -self.touch.joystick_x
            boost = self.touch.boost

        return InputSnapshot(forward=forward, steering=steering, boost=boost, brake=self.keys.brake)

    def update(self, delta: float, elapsed: float) -> None:
        """Latch this frame's snapshot."""
        self._snapshot = self.get_input()

    def reset(self) -> None:
        self.keys = KeyboardState()
        self.touch = TouchState()
        self._snapshot = NEUTRAL


class ScriptedInput:
    """Intent set directly by code: autopilots, replays and headless runs.

    Exposes the same ``update``/``snapshot``/``get_input`` surface as
    ``InputSource``.
    """

    def __init__(self, intent: Optional[InputSnapshot] = None):
        self.intent = intent or NEUTRAL
        self._snapshot = self.intent

    @property
    def snapshot(self) -> InputSnapshot:
        return self._snapshot

    def set(self, **changes) -> None:
        """Change individual intent fields, e.g. ``set(brake=True)``."""
        self.intent = replace(self.intent, **changes)

    def get_input(self) -> InputSnapshot:
        return self.intent

    def update(self, delta: float, elapsed: float) -> None:
        self._snapshot = self.intent
