"""
ZoneDrive headless runner.

Drives the vehicle with a scripted intent through the full frame pipeline and
reports zone transitions.

Usage:
    python -m zonedrive                          # 10 s forward from the origin
    python -m zonedrive --seconds 20 --steer 0.3
    python -m zonedrive --brake-after 8 --real-time
    python -m zonedrive --log-level DEBUG --log-file run.log
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from zonedrive.core.game import Game, GameConfig
from zonedrive.core.scheduler import SchedulerConfig
from zonedrive.systems.inputs import InputSnapshot, ScriptedInput
from zonedrive.world.zones import ZoneTransition

logger = logging.getLogger("zonedrive")

DRIVE_MODES = {"forward": 1, "backward": -1, "idle": 0}


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """Configure root logging to stdout and, optionally, a file."""
    log_format = "%(asctime)s [%(levelname)s] %(message)s"
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level),
        format=log_format,
        handlers=handlers,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="zonedrive",
        description="Run the ZoneDrive simulation headless with a scripted driver",
    )
    parser.add_argument("--seconds", type=float, default=10.0, help="Simulated seconds to run")
    parser.add_argument("--drive", choices=sorted(DRIVE_MODES), default="forward", help="Directional intent")
    parser.add_argument("--steer", type=float, default=0.0, help="Steering intent, -1 (right) to 1 (left)")
    parser.add_argument("--boost", action="store_true", help="Hold boost")
    parser.add_argument("--brake-after", type=float, default=None, help="Hold brake from this simulated time on")
    parser.add_argument("--real-time", action="store_true", help="Pace frames to the wall clock")
    parser.add_argument("--fps", type=float, default=60.0, help="Target frame rate")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    """Run the simulation described by ``args``. Returns an exit code."""
    if not -1.0 <= args.steer <= 1.0:
        logger.error("--steer must be within [-1, 1]")
        return 2

    driver = ScriptedInput(InputSnapshot(
        forward=DRIVE_MODES[args.drive],
        steering=args.steer,
        boost=args.boost,
    ))
    game = Game(GameConfig(scheduler=SchedulerConfig(target_fps=args.fps)), inputs=driver)

    try:
        asyncio.run(game.initialize())
    except Exception:
        # Already logged by Game.initialize
        return 1

    transitions: List[ZoneTransition] = []
    game.zones.add_listener(transitions.append)

    frames = int(round(args.seconds * args.fps))
    for _ in range(frames):
        if args.brake_after is not None and game.scheduler.elapsed >= args.brake_after:
            driver.set(brake=True)
        game.scheduler.run(max_frames=1, real_time=args.real_time)
    game.stop()

    state = game.get_state()
    vehicle = state["vehicle"]
    print("=" * 60)
    print(f"Frames:        {state['frame']}")
    print(f"Elapsed:       {state['elapsed']:.2f} s")
    print(f"Position:      ({vehicle['position'][0]:.2f}, {vehicle['position'][1]:.2f}, {vehicle['position'][2]:.2f})")
    print(f"Speed:         {vehicle['speed']:.3f} ({vehicle['mode']})")
    print(f"Active zone:   {state['zones']['active_zone'] or '-'}")
    for transition in transitions:
        print(f"  {transition.kind.value:<5} {transition.zone.id}")
    print("=" * 60)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_file)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
