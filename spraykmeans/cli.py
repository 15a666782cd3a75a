"""
Spray K-Means CLI - headless runs of the live k-means simulation.

Usage:
    spraykmeans run 50 --k 4 --seed 7 --spray 200,150 --spray 600,450
    spraykmeans play --ticks 20 --speed 90
    spraykmeans palette
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Callable, Optional

from spraykmeans.config import CLUSTER_COLORS, UNASSIGNED_COLOR, create_run_dir
from spraykmeans.clustering import MalformedPointError
from spraykmeans.core.logger import EventLogger
from spraykmeans.simulation import (
    ClusterEngine,
    ConfigError,
    SimulationConfig,
    SimulationRunner,
    load_config,
)


def parse_spray(value: str) -> tuple[float, float]:
    """Parse an 'X,Y' spray origin."""
    try:
        x, y = (float(part) for part in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected X,Y, got {value!r}")
    return x, y


def build_config(args) -> SimulationConfig:
    """Config file (if any) with command-line overrides on top."""
    config = load_config(args.config) if args.config else SimulationConfig()

    overrides = {}
    if args.k is not None:
        overrides['k'] = args.k
    if args.density is not None:
        overrides['spray_density'] = args.density
    if args.radius is not None:
        overrides['spray_radius'] = args.radius
    if getattr(args, 'speed', None) is not None:
        overrides['animation_speed'] = args.speed

    data = config.to_dict()
    data.update(overrides)
    return SimulationConfig.from_dict(data)


def open_logger(args) -> Optional[EventLogger]:
    if args.log_dir is None:
        return None
    # Bare --log-dir: timestamped directory under runs/
    log_dir = Path(args.log_dir) if args.log_dir else create_run_dir()
    return EventLogger(log_dir)


def print_summary(runner: SimulationRunner, as_json: bool = False) -> None:
    snapshot = runner.engine.snapshot()
    if as_json:
        print(json.dumps(snapshot.to_dict()))
        return

    print("-" * 40)
    print(f"Iteration: {snapshot.iteration}")
    print(f"Clusters: {snapshot.k}")
    print(f"Points: {len(snapshot.points)} ({snapshot.unassigned_count()} unassigned)")
    if runner.metrics_history:
        final = runner.metrics_history[-1]
        print(f"Inertia: {final.inertia:.1f}")
    sizes = snapshot.cluster_sizes()
    for idx, centroid in enumerate(snapshot.centroids):
        print(f"  [{idx}] ({centroid.x:7.2f}, {centroid.y:7.2f})  members={sizes[idx]}")


def _prepare(args, config: SimulationConfig, logger: Optional[EventLogger]) -> SimulationRunner:
    engine = ClusterEngine(
        config=config,
        seed=args.seed,
        logger=logger,
        strict=True if args.strict else None,
    )
    if logger:
        logger.log_run_start(engine.config.to_dict(), seed=args.seed)

    runner = SimulationRunner(engine, verbose=not args.quiet)
    runner.spray_mode = True
    return runner


def _spray(runner: SimulationRunner, args) -> None:
    for x, y in args.spray or []:
        added = runner.pointer_down(x, y)
        if not args.quiet:
            print(f"Sprayed {added} points at ({x:.1f}, {y:.1f})")


def _execute(args, action: Callable[[SimulationRunner], None]) -> int:
    """Spray, run the action, and always close out the event log."""
    config = build_config(args)
    logger = open_logger(args)
    try:
        runner = _prepare(args, config, logger)
        try:
            _spray(runner, args)
            action(runner)
        finally:
            if logger:
                logger.log_run_end(runner.engine.iteration, len(runner.engine.points))
    finally:
        if logger:
            logger.close()

    print_summary(runner, args.json)
    return 0


def cmd_run(args):
    """Run a fixed number of iterations."""
    def action(runner):
        if not args.quiet:
            print(f"Running {args.iterations} iterations (k={runner.config.k})...")
        runner.run(args.iterations)

    return _execute(args, action)


def cmd_play(args):
    """Run the timed loop at the configured speed."""
    def action(runner):
        if not args.quiet:
            print(f"Playing {args.ticks} ticks at speed {runner.config.animation_speed} "
                  f"({runner.delay_ms:.0f}ms/tick)...")
        runner.play(max_ticks=args.ticks)

    return _execute(args, action)


def cmd_palette(args):
    """Show the cluster color palette."""
    for idx, color in enumerate(CLUSTER_COLORS):
        print(f"  [{idx}] {color}")
    print(f"  [-1] {UNASSIGNED_COLOR} (unassigned)")
    return 0


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--k", type=int, help="Number of clusters (2-9)")
    parser.add_argument("--density", type=int, help="Spray density (10-200)")
    parser.add_argument("--radius", type=int, help="Spray radius percentage (10-100)")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--spray", type=parse_spray, action="append",
                        metavar="X,Y", help="Spray a burst before running (repeatable)")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--log-dir", nargs="?", const="", metavar="DIR",
                        help="Write JSONL events to DIR (default: runs/<timestamp>)")
    parser.add_argument("--strict", action="store_true",
                        help="Fail on malformed points instead of skipping them")
    parser.add_argument("--quiet", action="store_true", help="Only print the summary")
    parser.add_argument("--json", action="store_true",
                        help="Print the final snapshot as JSON instead of the summary")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spraykmeans",
        description="Live Lloyd's k-means with point spraying",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_run = subparsers.add_parser("run", help="Run N iterations")
    p_run.add_argument("iterations", type=int, help="Number of iterations")
    _add_common(p_run)
    p_run.set_defaults(func=cmd_run)

    p_play = subparsers.add_parser("play", help="Run the timed loop")
    p_play.add_argument("--ticks", type=int, default=20, help="Number of ticks")
    p_play.add_argument("--speed", type=int, help="Animation speed (1-100)")
    _add_common(p_play)
    p_play.set_defaults(func=cmd_play)

    p_palette = subparsers.add_parser("palette", help="Show cluster colors")
    p_palette.set_defaults(func=cmd_palette)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        return args.func(args)
    except (FileNotFoundError, ConfigError, MalformedPointError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
