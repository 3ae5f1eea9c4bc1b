"""
Game - Builds the components and wires them into the frame loop.

Provides:
- Asynchronous start-up with progress reporting
- Explicit dependency injection between components
- Frame priority wiring: input, vehicle, physics, zones, camera, HUD, render
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from zonedrive.core.scheduler import (
    PRIORITY_CAMERA,
    PRIORITY_INPUT,
    PRIORITY_PHYSICS,
    PRIORITY_RENDER,
    PRIORITY_UI,
    PRIORITY_VEHICLE_POST_PHYSICS,
    PRIORITY_VEHICLE_PRE_PHYSICS,
    PRIORITY_ZONES,
    Scheduler,
    SchedulerConfig,
)
from zonedrive.physics.world import PhysicsConfig, PhysicsWorld
from zonedrive.systems.camera import CameraConfig, FollowCamera
from zonedrive.systems.inputs import InputSource
from zonedrive.ui.hud import Hud
from zonedrive.world.environment import Environment, EnvironmentConfig
from zonedrive.world.scene import Scene
from zonedrive.world.vehicle import Vehicle, VehicleConfig
from zonedrive.world.zones import ZoneConfig, ZoneRegistry

logger = logging.getLogger(__name__)

Renderer = Callable[[Scene, FollowCamera], None]


@dataclass
class GameConfig:
    """Complete game configuration. None members use component defaults."""
    scheduler: SchedulerConfig | None = None
    physics: PhysicsConfig | None = None
    vehicle: VehicleConfig | None = None
    camera: CameraConfig | None = None
    environment: EnvironmentConfig | None = None
    zones: tuple[ZoneConfig, ...] | None = None

    # Frames to wait after start-up before hiding the loading overlay
    loading_hide_frames: int = 30

    def __post_init__(self):
        if self.loading_hide_frames < 1:
            raise ValueError("loading_hide_frames must be at least 1")


class Game:
    """Main orchestrator.

    Owns one instance of every component and hands each one only the
    collaborators it needs.

    Usage:
        game = Game()
        await game.initialize()
        game.start()
        await game.scheduler.join()
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        inputs: Optional[Any] = None,
        renderer: Optional[Renderer] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        """Create the game shell. Components are built by ``initialize``.

        Args:
            config: Game configuration. Uses defaults if None.
            inputs: Input source exposing ``update`` and ``snapshot``.
                A keyboard/touch InputSource is created if None.
            renderer: Called last every frame with the scene and camera
            scheduler: Frame scheduler. Created from config if None.
        """
        self.config = config or GameConfig()
        self.scheduler = scheduler or Scheduler(self.config.scheduler)
        self.inputs = inputs if inputs is not None else InputSource()
        self.renderer = renderer
        self.scene = Scene()

        # Built by initialize()
        self.physics: Optional[PhysicsWorld] = None
        self.environment: Optional[Environment] = None
        self.vehicle: Optional[Vehicle] = None
        self.zones: Optional[ZoneRegistry] = None
        self.camera: Optional[FollowCamera] = None
        self.hud: Optional[Hud] = None

        self.loading_progress: int = 0
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def _progress(self, percent: int, stage: str) -> None:
        self.loading_progress = percent
        if self.hud is not None:
            self.hud.set_loading_progress(percent)
        logger.info("Game: %s (%d%%)", stage, percent)

    async def initialize(self) -> None:
        """Build every component and register the frame callbacks.

        A failure while building is logged once and re-raised. Frame
        callbacks are registered only once every component exists, so a
        failed attempt leaves nothing behind in the scheduler.
        """
        if self._ready:
            return

        self._progress(10, "initializing")
        try:
            await self._build()
        except Exception:
            logger.exception("Game: initialization failed")
            raise

        self.scheduler.wait_frames(self.config.loading_hide_frames, self.hud.hide_loading)
        self._register_ticks()

        self._ready = True
        self._progress(100, "ready")

    async def _build(self) -> None:
        # A failed earlier attempt may have left visuals behind
        self.scene.nodes.clear()
        self.physics = PhysicsWorld(self.config.physics)
        await self.physics.initialize()
        self._progress(40, "physics ready")

        self.environment = Environment(self.physics, self.config.environment)
        self._progress(60, "environment built")

        self.vehicle = Vehicle(self.physics, self.inputs, self.config.vehicle, scene=self.scene)
        self._progress(75, "vehicle spawned")

        self.zones = ZoneRegistry(self.config.zones, target=self.vehicle)
        self.camera = FollowCamera(self.vehicle, self.config.camera)
        self.hud = Hud(self.vehicle, self.zones)
        self._progress(90, "zones and overlays ready")

    def _register_ticks(self) -> None:
        """Register component callbacks. Order matters: lower runs first."""
        s = self.scheduler
        s.register(PRIORITY_INPUT, self.inputs.update)
        s.register(PRIORITY_VEHICLE_PRE_PHYSICS, self.vehicle.pre_physics_update)
        s.register(PRIORITY_PHYSICS, self._step_physics)
        s.register(PRIORITY_VEHICLE_POST_PHYSICS, self.vehicle.post_physics_update)
        s.register(PRIORITY_ZONES, self.zones.on_tick)
        s.register(PRIORITY_CAMERA, self.camera.update)
        s.register(PRIORITY_UI, self.hud.update)
        s.register(PRIORITY_RENDER, self._render)

    def _step_physics(self, delta: float, elapsed: float) -> None:
        self.physics.step()

    def _render(self, delta: float, elapsed: float) -> None:
        if self.renderer is not None:
            self.renderer(self.scene, self.camera)

    def _require_ready(self) -> None:
        if not self._ready:
            raise RuntimeError("Game not initialized. Await initialize() first.")

    def start(self) -> None:
        """Start the frame loop."""
        self._require_ready()
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def advance(self, frames: int) -> int:
        """Run ``frames`` frames as fast as possible at the nominal frame delta.

        Returns:
            Number of frames run
        """
        self._require_ready()
        return self.scheduler.run(max_frames=frames, real_time=False)

    def get_state(self) -> Dict[str, Any]:
        """Snapshot for the camera/UI layer and for logging."""
        self._require_ready()
        content = self.zones.active_content
        return {
            "frame": self.scheduler.frame,
            "elapsed": self.scheduler.elapsed,
            "vehicle": self.vehicle.get_telemetry(),
            "zones": self.zones.get_state(),
            "active_content": content.to_dict() if content else None,
            "hud": self.hud.get_state(),
            "physics": self.physics.get_state(),
        }
