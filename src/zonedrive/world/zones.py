"""
Zones - Circular trigger regions that surface content when entered.

Provides:
- Zone: fixed geometry and content plus the registry-owned active flag
- ZoneRegistry: per-frame membership test with edge-triggered transitions
- DEFAULT_ZONES: the world's content zones
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional
import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoneContent:
    """Payload shown while the vehicle is inside a zone."""
    title: str
    body: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "body": self.body}


@dataclass(frozen=True)
class ZoneConfig:
    """Placement and content of a zone."""
    id: str
    x: float
    z: float
    title: str
    content: ZoneContent
    radius: float = 8.0
    color: int = 0x4FACFE

    def __post_init__(self):
        if self.radius <= 0:
            raise ValueError(f"Zone {self.id!r} radius must be positive")


class Zone:
    """A circular trigger region on the ground plane.

    Geometry and content never change. ``is_active`` is written only by the
    owning ZoneRegistry.
    """

    def __init__(self, config: ZoneConfig):
        self.config = config
        self._center = np.array([config.x, config.z], dtype=float)
        self._active = False

    @property
    def id(self) -> str:
        return self.config.id

    @property
    def center(self) -> np.ndarray:
        """Centre (x, z) on the ground plane."""
        return self._center.copy()

    @property
    def radius(self) -> float:
        return self.config.radius

    @property
    def title(self) -> str:
        return self.config.title

    @property
    def content(self) -> ZoneContent:
        return self.config.content

    @property
    def color(self) -> int:
        return self.config.color

    @property
    def is_active(self) -> bool:
        return self._active

    def distance_to(self, position) -> float:
        """Planar distance from a 3D (x, y, z) position to the centre."""
        x, z = float(position[0]), float(position[2])
        return float(np.hypot(x - self._center[0], z - self._center[1]))

    def contains(self, position) -> bool:
        """Strictly inside: a point exactly on the rim is outside."""
        return self.distance_to(position) < self.radius

    def __repr__(self) -> str:
        return f"Zone({self.id!r}, center={self._center.tolist()}, radius={self.radius})"


class TransitionKind(Enum):
    ENTER = "enter"
    EXIT = "exit"


@dataclass(frozen=True)
class ZoneTransition:
    """Change of the active zone."""
    kind: TransitionKind
    zone: Zone

    @property
    def content(self) -> ZoneContent:
        return self.zone.content


ZoneListener = Callable[[ZoneTransition], None]


class ZoneRegistry:
    """Owns all zones and tracks which one contains the vehicle.

    When several zones contain the vehicle the nearest centre wins, with the
    lowest zone id breaking exact ties. A change of the chosen zone emits an
    EXIT for the previous zone, then an ENTER for the new one, after every
    zone's active flag has been updated.
    """

    def __init__(
        self,
        zones: Iterable[ZoneConfig] | None = None,
        target: Optional[Any] = None,
    ):
        """Initialize registry.

        Args:
            zones: Zone placements. Uses DEFAULT_ZONES if None.
            target: Tracked object with a ``position`` (x, y, z), read by
                ``on_tick``
        """
        configs = list(DEFAULT_ZONES if zones is None else zones)
        ids = [config.id for config in configs]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate zone ids in {ids}")

        self._zones: List[Zone] = [Zone(config) for config in configs]
        self._by_id: Dict[str, Zone] = {zone.id: zone for zone in self._zones}
        self._active: Optional[Zone] = None
        self._listeners: List[ZoneListener] = []
        self.target = target

    @property
    def zones(self) -> List[Zone]:
        return list(self._zones)

    @property
    def active_zone(self) -> Optional[Zone]:
        return self._active

    @property
    def active_content(self) -> Optional[ZoneContent]:
        return self._active.content if self._active is not None else None

    def get_zone(self, zone_id: str) -> Optional[Zone]:
        return self._by_id.get(zone_id)

    def add_listener(self, listener: ZoneListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ZoneListener) -> bool:
        if listener not in self._listeners:
            return False
        self._listeners.remove(listener)
        return True

    def update(self, vehicle_position) -> List[ZoneTransition]:
        """Test the vehicle position against every zone.

        Args:
            vehicle_position: (x, y, z) position; y is ignored

        Returns:
            Transitions emitted this call, in emission order
        """
        inside: List[tuple] = []
        for zone in self._zones:
            distance = zone.distance_to(vehicle_position)
            zone._active = distance < zone.radius
            if zone._active:
                inside.append((distance, zone.id, zone))

        chosen = min(inside, key=lambda entry: (entry[0], entry[1]))[2] if inside else None
        if chosen is self._active:
            return []

        transitions = []
        previous = self._active
        self._active = chosen
        if previous is not None:
            transitions.append(ZoneTransition(TransitionKind.EXIT, previous))
            logger.info("Zones: exited %s", previous.id)
        if chosen is not None:
            transitions.append(ZoneTransition(TransitionKind.ENTER, chosen))
            logger.info("Zones: entered %s", chosen.id)

        for transition in transitions:
            for listener in list(self._listeners):
                listener(transition)
        return transitions

    def on_tick(self, delta: float, elapsed: float) -> None:
        """Frame callback: update against the tracked target's position."""
        if self.target is None:
            return
        self.update(self.target.position)

    def get_state(self) -> Dict[str, Any]:
        return {
            "active_zone": self._active.id if self._active else None,
            "zones": {zone.id: zone.is_active for zone in self._zones},
        }


DEFAULT_ZONES = (
    ZoneConfig(
        id="about",
        x=0.0,
        z=-20.0,
        radius=10.0,
        title="ABOUT",
        color=0x4FACFE,
        content=ZoneContent(
            title="About Me",
            body=(
                "<p>Welcome to my interactive portfolio!</p>"
                "<p>I'm a developer passionate about creating unique web experiences.</p>"
                "<p>Drive around to explore my work and learn more about what I do.</p>"
            ),
        ),
    ),
    ZoneConfig(
        id="projects",
        x=30.0,
        z=0.0,
        radius=10.0,
        title="PROJECTS",
        color=0x00F2FE,
        content=ZoneContent(
            title="My Projects",
            body=(
                "<ul>"
                "<li><strong>Project 1</strong> - Description here</li>"
                "<li><strong>Project 2</strong> - Description here</li>"
                "<li><strong>Project 3</strong> - Description here</li>"
                "</ul>"
            ),
        ),
    ),
    ZoneConfig(
        id="skills",
        x=-30.0,
        z=0.0,
        radius=10.0,
        title="SKILLS",
        color=0xA855F7,
        content=ZoneContent(
            title="Skills & Tech",
            body=(
                "<ul>"
                "<li>JavaScript / TypeScript</li>"
                "<li>React / Vue / Three.js</li>"
                "<li>Node.js / Python</li>"
                "<li>WebGL / Shaders</li>"
                "</ul>"
            ),
        ),
    ),
    ZoneConfig(
        id="contact",
        x=0.0,
        z=30.0,
        radius=10.0,
        title="CONTACT",
        color=0xF472B6,
        content=ZoneContent(
            title="Get In Touch",
            body=(
                "<p>I'd love to hear from you!</p>"
                '<p><a href="mailto:your@email.com">your@email.com</a></p>'
                '<p><a href="https://github.com/yourusername" target="_blank">GitHub</a></p>'
                '<p><a href="https://linkedin.com/in/yourusername" target="_blank">LinkedIn</a></p>'
            ),
        ),
    ),
)
