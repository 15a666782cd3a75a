"""
Headless driving loop for the cluster engine.

Plays the role of the UI collaborator: holds the running flag, maps slider
changes to engine config, routes pointer events to spray injection, and
ticks the engine at a speed-dependent cadence.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, asdict, replace
from typing import Callable, Optional

from spraykmeans.config import MAX_TICK_DELAY_MS, MIN_TICK_DELAY_MS
from spraykmeans.clustering import (
    EngineSnapshot,
    centroid_shift,
    compute_inertia,
)

from .config import SimulationConfig
from .engine import ClusterEngine


def tick_delay_ms(speed: float) -> float:
    """Convert speed (1..100) to inter-tick delay: higher speed = lower delay."""
    return max(MIN_TICK_DELAY_MS, MAX_TICK_DELAY_MS * (1 - speed / 100))


@dataclass
class StepMetrics:
    """Metrics for a single iteration."""

    iteration: int
    num_points: int
    cluster_sizes: list[int]
    orphan_count: int
    unassigned_count: int
    inertia: float
    centroid_shift: Optional[float]

    def to_dict(self) -> dict:
        return asdict(self)


def compute_metrics(
    snapshot: EngineSnapshot,
    previous: Optional[EngineSnapshot] = None,
) -> StepMetrics:
    """
    Compute field metrics for a snapshot.

    Args:
        snapshot: State after the step
        previous: State before the step (for centroid shift)

    Returns:
        StepMetrics
    """
    sizes = snapshot.cluster_sizes()
    shift = None
    if previous is not None:
        shift = centroid_shift(previous.centroids, snapshot.centroids)

    return StepMetrics(
        iteration=snapshot.iteration,
        num_points=len(snapshot.points),
        cluster_sizes=sizes,
        orphan_count=sum(1 for size in sizes if size == 0),
        unassigned_count=snapshot.unassigned_count(),
        inertia=compute_inertia(snapshot.points, snapshot.centroids),
        centroid_shift=shift,
    )


class SimulationRunner:
    """
    Runs simulation ticks against a ClusterEngine.

    Supports single-tick, fixed-count and timed (play) modes.
    """

    def __init__(
        self,
        engine: ClusterEngine,
        verbose: bool = False,
        on_tick: Optional[Callable[[EngineSnapshot, StepMetrics], None]] = None,
    ):
        """
        Initialize runner.

        Args:
            engine: Engine to drive
            verbose: Print progress
            on_tick: Called after each step with the new snapshot and its
                metrics (a renderer hook)
        """
        self.engine = engine
        self.verbose = verbose
        self.on_tick = on_tick

        self.running = False
        self.spray_mode = False

        # Tracking
        self.metrics_history: list[StepMetrics] = []

    # -------------------------------------------------------------------------
    # Controls
    # -------------------------------------------------------------------------

    @property
    def config(self) -> SimulationConfig:
        return self.engine.config

    @property
    def delay_ms(self) -> float:
        return tick_delay_ms(self.config.animation_speed)

    def start(self) -> None:
        self.running = True

    def pause(self) -> None:
        self.running = False

    def toggle(self) -> bool:
        """Flip the running flag (Start/Pause button). Returns the new state."""
        self.running = not self.running
        return self.running

    def reset(self) -> EngineSnapshot:
        """Stop the loop and regenerate the field."""
        self.running = False
        self.metrics_history.clear()
        return self.engine.reset()

    def set_k(self, k: int) -> bool:
        """Change cluster count. Returns True if the field was rebuilt."""
        rebuilt = self.engine.configure(replace(self.config, k=k))
        if rebuilt:
            self.metrics_history.clear()
        return rebuilt

    def set_speed(self, speed: int) -> None:
        self.engine.configure(replace(self.config, animation_speed=speed))

    def set_spray_density(self, density: int) -> None:
        self.engine.configure(replace(self.config, spray_density=density))

    def set_spray_radius(self, radius: int) -> None:
        self.engine.configure(replace(self.config, spray_radius=radius))

    # -------------------------------------------------------------------------
    # Pointer events
    # -------------------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> int:
        """Click on the canvas: spray if spray mode is on."""
        if not self.spray_mode:
            return 0
        return self.engine.inject_spray((x, y))

    def pointer_move(self, x: float, y: float, pressed: bool) -> int:
        """Drag on the canvas: keep spraying while the button is held."""
        if not pressed:
            return 0
        return self.pointer_down(x, y)

    # -------------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------------

    def step(self) -> Optional[StepMetrics]:
        """
        Execute a single iteration regardless of the running flag.

        Returns:
            Metrics for this iteration, or None if the engine had nothing
            to step (no points or no centroids)
        """
        previous = self.engine.snapshot()
        snapshot = self.engine.step()
        if snapshot.iteration == previous.iteration:
            return None

        metrics = compute_metrics(snapshot, previous)
        self.metrics_history.append(metrics)

        if self.engine.logger:
            self.engine.logger.log_step(metrics.to_dict())

        if self.verbose:
            shift = f"{metrics.centroid_shift:.3f}" if metrics.centroid_shift is not None else "-"
            print(f"[Iteration {metrics.iteration}] points={metrics.num_points}, "
                  f"sizes={metrics.cluster_sizes}, inertia={metrics.inertia:.1f}, "
                  f"shift={shift}")

        if self.on_tick:
            self.on_tick(snapshot, metrics)

        return metrics

    def tick(self) -> Optional[StepMetrics]:
        """Step once if running, otherwise do nothing."""
        if not self.running:
            return None
        return self.step()

    def run(self, iterations: int) -> list[StepMetrics]:
        """
        Run a fixed number of iterations back to back.

        Stops early if the engine has nothing to step.

        Args:
            iterations: Number of iterations to run

        Returns:
            List of metrics for each iteration that ran
        """
        history = []
        for _ in range(iterations):
            metrics = self.step()
            if metrics is None:
                break
            history.append(metrics)
        return history

    def play(
        self,
        max_ticks: Optional[int] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> list[StepMetrics]:
        """
        Tick while running, sleeping the speed-dependent delay before each tick.

        The delay is re-read every tick, so speed changes apply live.
        Stops when paused (e.g. from on_tick), after max_ticks, or when the
        engine has nothing to step, and leaves the runner paused.

        Args:
            max_ticks: Upper bound on ticks (None = until paused)
            sleep: Sleep function taking seconds (default: time.sleep)

        Returns:
            Metrics for the ticks that ran
        """
        sleep = sleep or time.sleep
        self.running = True
        history = []

        while self.running and (max_ticks is None or len(history) < max_ticks):
            sleep(self.delay_ms / 1000)
            metrics = self.tick()
            if metrics is None:
                break
            history.append(metrics)

        self.running = False

        if self.verbose:
            print(f"Played {len(history)} ticks (iteration {self.engine.iteration})")

        return history
