"""
HUD - Headless state of the on-screen overlays.

Holds what a front-end would draw: the loading overlay, the zone content
panel, the speedometer reading and the minimap markers.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from zonedrive.world.zones import TransitionKind, ZoneContent, ZoneRegistry, ZoneTransition

logger = logging.getLogger(__name__)


@dataclass
class MinimapMarker:
    x: float
    z: float
    radius: float = 0.0
    label: str = ""
    active: bool = False


@dataclass
class HudState:
    loading_visible: bool = True
    loading_progress: int = 0
    panel_visible: bool = False
    panel: Optional[ZoneContent] = None
    speed_display: int = 0
    minimap: List[MinimapMarker] = field(default_factory=list)


class Hud:
    """Overlay state driven by zone transitions and per-frame vehicle reads."""

    def __init__(
        self,
        vehicle: Any,
        zones: ZoneRegistry,
        speed_display_scale: float = 60.0,
    ):
        self.vehicle = vehicle
        self.zones = zones
        self.speed_display_scale = speed_display_scale
        self.state = HudState()
        zones.add_listener(self.on_zone_transition)

    def set_loading_progress(self, percent: int) -> None:
        self.state.loading_progress = max(0, min(100, int(percent)))

    def hide_loading(self) -> None:
        self.state.loading_visible = False
        logger.debug("HUD: loading overlay hidden")

    def show_zone_panel(self, content: ZoneContent) -> None:
        self.state.panel = content
        self.state.panel_visible = True

    def hide_zone_panel(self) -> None:
        self.state.panel_visible = False

    def on_zone_transition(self, transition: ZoneTransition) -> None:
        if transition.kind is TransitionKind.ENTER:
            self.show_zone_panel(transition.content)
        else:
            self.hide_zone_panel()

    def update(self, delta: float, elapsed: float) -> None:
        self.state.speed_display = round(self.vehicle.speed * self.speed_display_scale)

        position = self.vehicle.position
        markers = [
            MinimapMarker(
                x=float(zone.center[0]),
                z=float(zone.center[1]),
                radius=zone.radius,
                label=zone.id.upper(),
                active=zone.is_active,
            )
            for zone in self.zones.zones
        ]
        markers.append(MinimapMarker(x=float(position[0]), z=float(position[2]), label="YOU"))
        self.state.minimap = markers

    def get_state(self) -> Dict[str, Any]:
        return {
            "loading_visible": self.state.loading_visible,
            "loading_progress": self.state.loading_progress,
            "panel_visible": self.state.panel_visible,
            "panel": self.state.panel.to_dict() if self.state.panel else None,
            "speed": self.state.speed_display,
        }
