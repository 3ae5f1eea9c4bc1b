"""Tests for the frame scheduler."""

import asyncio
import pytest

from zonedrive.core.scheduler import (
    PRIORITY_DEFERRED,
    Scheduler,
    SchedulerConfig,
)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _started(clock: FakeClock | None = None) -> Scheduler:
    scheduler = Scheduler(time_source=clock or FakeClock())
    scheduler.start()
    return scheduler


class TestFrameTiming:
    """Test delta computation and time accumulation."""

    def test_delta_is_capped(self):
        """A long stall is absorbed by the delta cap."""
        clock = FakeClock()
        scheduler = _started(clock)
        deltas = []
        scheduler.register(0, lambda delta, elapsed: deltas.append(delta))

        clock.now = 5.0
        scheduler.tick()

        assert deltas == [pytest.approx(0.1)]
        assert scheduler.elapsed == pytest.approx(0.1)

    def test_delta_always_positive(self):
        """Repeated timestamps still produce a positive delta."""
        scheduler = _started()
        deltas = []
        scheduler.register(0, lambda delta, elapsed: deltas.append(delta))

        for _ in range(3):
            scheduler.tick(0.0)

        assert all(0 < d <= 0.1 for d in deltas)

    def test_elapsed_accumulates(self):
        """Elapsed time is the sum of frame deltas and is passed along."""
        scheduler = _started()
        seen = []
        scheduler.register(0, lambda delta, elapsed: seen.append((delta, elapsed)))

        scheduler.tick(0.02)
        scheduler.tick(0.05)

        assert seen[0] == (pytest.approx(0.02), pytest.approx(0.02))
        assert seen[1] == (pytest.approx(0.03), pytest.approx(0.05))
        assert scheduler.frame == 2

    def test_tick_when_stopped(self):
        """No frame runs while stopped."""
        scheduler = Scheduler(time_source=FakeClock())
        calls = []
        scheduler.register(0, lambda delta, elapsed: calls.append(delta))

        assert not scheduler.tick(1.0)
        assert calls == []


class TestPriorityDispatch:
    """Test callback ordering and registration changes."""

    def test_ascending_priority_order(self):
        """Callbacks run in non-decreasing priority order."""
        scheduler = _started()
        order = []
        for priority in (50, 0, 100, 10, 0, 25):
            scheduler.register(priority, lambda d, e, p=priority: order.append(p))

        scheduler.tick(0.016)

        assert order == sorted(order)
        assert len(order) == 6
        assert scheduler.priorities == [0, 10, 25, 50, 100]

    def test_unregister_is_idempotent(self):
        """Removing twice is a no-op the second time."""
        scheduler = _started()
        handle = scheduler.register(5, lambda d, e: None)

        scheduler.unregister(handle)
        scheduler.unregister(handle)

        assert scheduler.callback_count == 0
        assert scheduler.priorities == []

    def test_unregister_during_frame_skips_later_callback(self):
        """A callback removed earlier in the frame is not invoked."""
        scheduler = _started()
        calls = []
        later = scheduler.register(5, lambda d, e: calls.append("later"))
        scheduler.register(0, lambda d, e: scheduler.unregister(later))

        scheduler.tick(0.016)
        scheduler.tick(0.032)

        assert calls == []

    def test_self_unregister_runs_exactly_once(self):
        """A callback that removes itself runs once, with no duplicates."""
        scheduler = _started()
        calls = []
        handle = None

        def once(delta, elapsed):
            calls.append(elapsed)
            scheduler.unregister(handle)

        handle = scheduler.register(0, once)
        scheduler.register(0, lambda d, e: calls.append("peer"))

        scheduler.tick(0.016)
        scheduler.tick(0.032)

        assert calls.count("peer") == 2
        assert len([c for c in calls if c != "peer"]) == 1

    def test_register_during_frame_starts_next_frame(self):
        """Callbacks added mid-frame first run on the following frame."""
        scheduler = _started()
        calls = []

        def adder(delta, elapsed):
            if scheduler.frame == 1:
                scheduler.register(10, lambda d, e: calls.append(scheduler.frame))

        scheduler.register(0, adder)
        scheduler.tick(0.016)
        assert calls == []

        scheduler.tick(0.032)
        assert calls == [2]

    def test_same_callable_registered_twice(self):
        """Each registration is independent."""
        scheduler = _started()
        calls = []

        def callback(delta, elapsed):
            calls.append(delta)

        first = scheduler.register(0, callback)
        scheduler.register(3, callback)
        scheduler.unregister(first)
        scheduler.tick(0.016)

        assert len(calls) == 1


class TestWaitFrames:
    """Test deferred one-shot callbacks."""

    def test_fires_once_after_three_frames(self):
        """wait_frames(3) fires on the third frame and then stops ticking."""
        scheduler = _started()
        fired = []
        scheduler.wait_frames(3, lambda: fired.append(scheduler.frame))

        for i in range(1, 7):
            scheduler.tick(i * 0.016)

        assert fired == [3]
        assert scheduler.callback_count == 0

    def test_runs_after_everything_else(self):
        """The countdown runs at the deferred priority, after other callbacks."""
        scheduler = _started()
        order = []
        scheduler.register(100, lambda d, e: order.append("render"))
        handle = scheduler.wait_frames(1, lambda: order.append("deferred"))
        scheduler.tick(0.016)

        assert handle.priority == PRIORITY_DEFERRED
        assert order == ["render", "deferred"]

    def test_rejects_non_positive_frame_count(self):
        """At least one frame must be waited."""
        scheduler = _started()
        with pytest.raises(ValueError):
            scheduler.wait_frames(0, lambda: None)

    def test_cancel_pending(self):
        """Unregistering the returned handle cancels the callback."""
        scheduler = _started()
        fired = []
        handle = scheduler.wait_frames(2, lambda: fired.append(True))
        scheduler.tick(0.016)
        scheduler.unregister(handle)
        scheduler.tick(0.032)
        scheduler.tick(0.048)

        assert fired == []


class TestFailures:
    """Test that callback errors halt the loop."""

    def test_exception_propagates_from_tick(self):
        """Errors are not swallowed."""
        scheduler = _started()

        def boom(delta, elapsed):
            raise RuntimeError("boom")

        scheduler.register(0, boom)
        with pytest.raises(RuntimeError):
            scheduler.tick(0.016)

    def test_exception_halts_pump(self):
        """A failing frame stops the async pump and surfaces on join."""
        async def scenario():
            scheduler = Scheduler(SchedulerConfig(target_fps=1000))

            def boom(delta, elapsed):
                raise RuntimeError("boom")

            scheduler.register(0, boom)
            scheduler.start()
            with pytest.raises(RuntimeError):
                await scheduler.join()
            return scheduler

        scheduler = asyncio.run(scenario())
        assert not scheduler.is_running


class TestStartStop:
    """Test frame pumping lifecycle."""

    def test_start_twice_spawns_one_loop(self):
        """start() while running is a no-op."""
        async def scenario():
            scheduler = Scheduler(SchedulerConfig(target_fps=1000))
            scheduler.register(0, lambda d, e: None)
            scheduler.start()
            task = scheduler._task
            scheduler.start()
            same = scheduler._task is task
            await asyncio.sleep(0.02)
            scheduler.stop()
            await asyncio.gather(task, return_exceptions=True)
            return same, scheduler.frame

        same, frames = asyncio.run(scenario())
        assert same
        assert frames > 0

    def test_stop_twice_same_as_once(self):
        """Stopping is idempotent and no frames run afterwards."""
        async def scenario():
            scheduler = Scheduler(SchedulerConfig(target_fps=1000))
            scheduler.start()
            task = scheduler._task
            await asyncio.sleep(0.01)
            scheduler.stop()
            scheduler.stop()
            await asyncio.gather(task, return_exceptions=True)
            frames = scheduler.frame
            await asyncio.sleep(0.01)
            return frames, scheduler.frame, task.done()

        before, after, done = asyncio.run(scenario())
        assert before == after
        assert done

    def test_restart_after_stop(self):
        """A stopped scheduler can be started again."""
        scheduler = _started()
        scheduler.stop()
        assert not scheduler.is_running

        scheduler.start()
        assert scheduler.is_running
        assert scheduler.tick(1.0)

    def test_run_without_event_loop(self):
        """run() pumps frames synchronously at the nominal interval."""
        scheduler = Scheduler(SchedulerConfig(target_fps=50))
        ran = scheduler.run(max_frames=5, real_time=False)

        assert ran == 5
        assert scheduler.frame == 5
        assert scheduler.elapsed == pytest.approx(5 * 0.02)

    def test_run_inside_event_loop_spawns_no_pump(self):
        """Synchronous frames from a coroutine leave nothing ticking behind."""
        async def scenario():
            scheduler = Scheduler(SchedulerConfig(target_fps=1000))
            ran = scheduler.run(max_frames=5, real_time=False)
            await asyncio.sleep(0.05)
            return ran, scheduler.frame, scheduler._task

        ran, frames, task = asyncio.run(scenario())
        assert ran == 5
        assert frames == 5
        assert task is None

    def test_run_rejected_while_pump_active(self):
        """Two frame loops never drive the same scheduler."""
        async def scenario():
            scheduler = Scheduler(SchedulerConfig(target_fps=1000))
            scheduler.start()
            try:
                with pytest.raises(RuntimeError):
                    scheduler.run(max_frames=1, real_time=False)
            finally:
                scheduler.stop()

        asyncio.run(scenario())

    def test_start_after_run_spawns_pump(self):
        """start() still hands over to the pump after synchronous frames."""
        async def scenario():
            scheduler = Scheduler(SchedulerConfig(target_fps=1000))
            scheduler.run(max_frames=2, real_time=False)
            scheduler.start()
            task = scheduler._task
            await asyncio.sleep(0.02)
            scheduler.stop()
            await asyncio.gather(task, return_exceptions=True)
            return task, scheduler.frame

        task, frames = asyncio.run(scenario())
        assert task is not None
        assert frames > 2
