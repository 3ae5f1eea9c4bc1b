"""
UI module - Overlay state for the front-end.
"""

from zonedrive.ui.hud import Hud, HudState

__all__ = ["Hud", "HudState"]
