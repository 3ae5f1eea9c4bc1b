"""
Scheduler - Frame loop with a priority-ordered callback table.

Provides:
- Priority-keyed callback registration and removal
- Capped frame delta and simulated time accumulation
- Frame pumping inside an asyncio event loop, or synchronously in real time
- Deferred one-shot actions after a number of frames
"""

import asyncio
import bisect
import itertools
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[float, float], None]

# Standard frame priorities. Lower runs first.
PRIORITY_INPUT = 0
PRIORITY_VEHICLE_PRE_PHYSICS = 1
PRIORITY_PHYSICS = 10
PRIORITY_VEHICLE_POST_PHYSICS = 20
PRIORITY_ZONES = 25
PRIORITY_CAMERA = 30
PRIORITY_UI = 50
PRIORITY_RENDER = 100
PRIORITY_DEFERRED = 999


@dataclass
class SchedulerConfig:
    """Scheduler configuration."""
    max_delta: float = 0.1            # Cap on a single frame delta (s)
    min_delta: float = 1e-6           # Floor keeping every delta positive
    target_fps: float = 60.0          # Frame rate of the pump loops

    def __post_init__(self):
        if not 0 < self.min_delta <= self.max_delta:
            raise ValueError("Need 0 < min_delta <= max_delta")
        if self.target_fps <= 0:
            raise ValueError("target_fps must be positive")

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.target_fps


@dataclass
class FrameClock:
    """Frame timing, mutated once per frame by the scheduler."""
    last_timestamp: float = 0.0
    elapsed: float = 0.0
    last_delta: float = 0.0
    frame: int = 0


@dataclass(eq=False)
class TickHandle:
    """Registration returned by ``Scheduler.register``.

    Handles compare by identity, so registering the same callable twice
    yields two independent registrations.
    """
    id: int
    priority: int
    callback: TickCallback
    active: bool = True


class Scheduler:
    """Ordered per-frame callback scheduler.

    Each frame computes a capped delta, advances simulated time and invokes
    every registered callback in ascending priority order with
    ``(delta, elapsed)``. Callbacks sharing a priority must not depend on each
    other's order.

    Exceptions raised by callbacks are not caught: they propagate out of
    ``tick`` and halt the pump loop.

    Usage:
        scheduler = Scheduler()
        scheduler.register(PRIORITY_PHYSICS, physics_step)
        scheduler.start()          # inside a running event loop
        await scheduler.join()
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        time_source: Callable[[], float] = time.perf_counter,
    ):
        """Initialize scheduler.

        Args:
            config: Scheduler configuration. Uses defaults if None.
            time_source: Monotonic clock in seconds
        """
        self.config = config or SchedulerConfig()
        self.clock = FrameClock()
        self._time_source = time_source

        # priority -> handles (dict used as an ordered set)
        self._table: Dict[int, Dict[TickHandle, None]] = {}
        self._priorities: List[int] = []
        self._ids = itertools.count()

        self._running: bool = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def elapsed(self) -> float:
        """Simulated time in seconds."""
        return self.clock.elapsed

    @property
    def delta(self) -> float:
        """Delta of the most recent frame."""
        return self.clock.last_delta

    @property
    def frame(self) -> int:
        return self.clock.frame

    @property
    def callback_count(self) -> int:
        return sum(len(handles) for handles in self._table.values())

    @property
    def priorities(self) -> List[int]:
        """Registered priorities in dispatch order."""
        return list(self._priorities)

    def register(self, priority: int, callback: TickCallback) -> TickHandle:
        """Register a per-frame callback.

        Args:
            priority: Dispatch priority, lower runs earlier
            callback: Function taking ``(delta, elapsed)``

        Returns:
            Handle for ``unregister``
        """
        priority = int(priority)
        handle = TickHandle(next(self._ids), priority, callback)
        if priority not in self._table:
            self._table[priority] = {}
            bisect.insort(self._priorities, priority)
        self._table[priority][handle] = None
        return handle

    def unregister(self, handle: TickHandle) -> None:
        """Remove a registration. Does nothing if it was already removed."""
        if not handle.active:
            return
        handle.active = False
        handles = self._table.get(handle.priority)
        if handles is None:
            return
        handles.pop(handle, None)
        if not handles:
            del self._table[handle.priority]
            index = bisect.bisect_left(self._priorities, handle.priority)
            del self._priorities[index]

    def wait_frames(self, frames: int, callback: Callable[[], None]) -> TickHandle:
        """Run ``callback`` once after ``frames`` frames, without blocking.

        Args:
            frames: Number of frames to wait (at least 1)
            callback: Function called with no arguments

        Returns:
            Handle of the internal counter registration; unregistering it
            cancels the pending callback.
        """
        if frames < 1:
            raise ValueError("frames must be at least 1")

        count = 0
        handle: Optional[TickHandle] = None

        def countdown(delta: float, elapsed: float) -> None:
            nonlocal count
            count += 1
            if count >= frames:
                self.unregister(handle)
                callback()

        handle = self.register(PRIORITY_DEFERRED, countdown)
        return handle

    def tick(self, now: float | None = None) -> bool:
        """Run one frame.

        Args:
            now: Frame timestamp in seconds. Reads the time source if None.

        Returns:
            True if a frame ran, False if the scheduler is stopped
        """
        if not self._running:
            return False

        if now is None:
            now = self._time_source()

        delta = now - self.clock.last_timestamp
        delta = min(max(delta, self.config.min_delta), self.config.max_delta)
        self.clock.last_timestamp = now
        self.clock.last_delta = delta
        self.clock.elapsed += delta
        self.clock.frame += 1

        elapsed = self.clock.elapsed
        snapshot = [list(self._table[priority]) for priority in self._priorities]
        for handles in snapshot:
            for handle in handles:
                # Removed earlier in this frame
                if handle.active:
                    handle.callback(delta, elapsed)
        return True

    def _begin(self) -> None:
        """Mark the scheduler running without spawning a pump."""
        if self._running:
            return
        self._running = True
        self.clock.last_timestamp = self._time_source()
        logger.info("Scheduler: started")

    def start(self) -> None:
        """Start pumping frames.

        Inside a running event loop this spawns the pump task; otherwise
        frames are pumped by ``tick`` or ``run``. At most one pump task
        exists at a time.
        """
        self._begin()
        if self._task is not None and not self._task.done():
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._task = loop.create_task(self._pump())

    def stop(self) -> None:
        """Stop pumping frames. A frame already in progress completes."""
        if not self._running:
            return
        self._running = False
        if self._task is not None and not self._task.done():
            # The pump only awaits between frames, so this never interrupts one
            self._task.cancel()
        self._task = None
        logger.info("Scheduler: stopped after %d frames", self.clock.frame)

    async def join(self) -> None:
        """Wait for the pump task to finish, re-raising a callback failure."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _pump(self) -> None:
        interval = self.config.frame_interval
        try:
            while self._running:
                self.tick()
                await asyncio.sleep(interval)
        except Exception:
            logger.exception("Scheduler: frame %d failed, halting loop", self.clock.frame)
            self._running = False
            self._task = None
            raise

    def run(self, max_frames: int | None = None, real_time: bool = True) -> int:
        """Pump frames synchronously until stopped or ``max_frames`` ran.

        Never spawns the async pump, even inside a running event loop.

        Args:
            max_frames: Frame limit, unlimited if None
            real_time: Sleep to hold the target frame rate. When False each
                frame advances by exactly one frame interval of simulated
                time and runs as fast as possible.

        Returns:
            Number of frames run
        """
        if self._task is not None and not self._task.done():
            raise RuntimeError("run() called while the async pump is active")
        self._begin()
        interval = self.config.frame_interval
        frames = 0
        try:
            while self._running and (max_frames is None or frames < max_frames):
                if real_time:
                    frame_start = self._time_source()
                    self.tick(frame_start)
                    remaining = interval - (self._time_source() - frame_start)
                    if remaining > 0:
                        time.sleep(remaining)
                else:
                    self.tick(self.clock.last_timestamp + interval)
                frames += 1
        except Exception:
            logger.exception("Scheduler: frame %d failed, halting loop", self.clock.frame)
            self._running = False
            raise
        return frames
