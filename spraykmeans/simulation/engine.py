"""
Cluster engine: owns point/centroid state for a live simulation.

Wraps the pure clustering functions with the state a UI needs to drive:
current config, point field, centroids, iteration counter and the last
spray origin. A renderer pulls `snapshot()` after each operation; the
engine never pushes and has no clock of its own.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Optional

import numpy as np

from spraykmeans.config import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    SMOOTHING_FACTOR,
    strict_from_env,
)
from spraykmeans.clustering import (
    Centroid,
    EngineSnapshot,
    MalformedPointError,
    Point,
    SprayOrigin,
    UNASSIGNED,
    clustering_step,
    generate_points,
    initialize_centroids,
    spray_points,
    spray_radius_pixels,
)
from spraykmeans.core.logger import EventLogger

from .config import SimulationConfig


def _as_xy(origin) -> tuple[float, float]:
    """Accept an (x, y) pair or anything with x/y attributes."""
    if hasattr(origin, "x") and hasattr(origin, "y"):
        return float(origin.x), float(origin.y)
    x, y = origin
    return float(x), float(y)


class ClusterEngine:
    """
    Live k-means state with explicit, synchronous operations.

    One operation runs at a time. `step()` computes the new labels and
    centroids from a single consistent pair of lists and publishes both
    together, so a spray never lands half-way through a step.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        logger: Optional[EventLogger] = None,
        strict: Optional[bool] = None,
        width: float = CANVAS_WIDTH,
        height: float = CANVAS_HEIGHT,
        alpha: float = SMOOTHING_FACTOR,
    ):
        """
        Initialize engine and generate the first field.

        Args:
            config: Initial configuration (clamped on entry)
            rng: Random generator; takes precedence over seed
            seed: Seed for a fresh generator when rng is not given
            logger: Optional JSONL event logger
            strict: Raise on malformed points instead of skipping them
                (default: SPRAYKMEANS_STRICT environment variable)
            width: Canvas width for generation
            height: Canvas height for generation
            alpha: Centroid smoothing factor
        """
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.logger = logger
        self.strict = strict_from_env(strict)
        self.width = width
        self.height = height
        self.alpha = alpha

        self.config = self._apply_clamp(config or SimulationConfig())

        # State
        self._points: list[Point] = []
        self._centroids: list[Centroid] = []
        self.iteration = 0
        self.last_spray: Optional[SprayOrigin] = None

        self.reset()

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def points(self) -> tuple[Point, ...]:
        return tuple(self._points)

    @property
    def centroids(self) -> tuple[Centroid, ...]:
        return tuple(self._centroids)

    def snapshot(self) -> EngineSnapshot:
        """Get read-only view of current state for rendering."""
        return EngineSnapshot(
            points=tuple(self._points),
            centroids=tuple(self._centroids),
            iteration=self.iteration,
            last_spray=self.last_spray,
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def configure(self, config: SimulationConfig) -> bool:
        """
        Apply new slider values.

        Density, radius and speed take effect on the next spray/tick.
        A change of k rebuilds points and centroids from scratch.

        Returns:
            True if the change triggered a reinitialization
        """
        requested_k = config.k
        config = self._apply_clamp(config)
        reinitialize = requested_k != self.config.k and config.k != self.config.k
        if not reinitialize:
            # Seeded state may hold a centroid count outside the slider range
            config = replace(config, k=self.config.k)
        self.config = config

        if self.logger:
            self.logger.log_configure(config.to_dict(), reinitialized=reinitialize)

        if reinitialize:
            self.reset()
        return reinitialize

    def reset(self) -> EngineSnapshot:
        """Regenerate the point field and centroids; zero the iteration count."""
        self._points = generate_points(
            self.config.spray_density, self.rng, self.width, self.height
        )
        self._centroids = initialize_centroids(
            self.config.k, self.rng, self.width, self.height
        )
        self.iteration = 0
        self.last_spray = None

        if self.logger:
            self.logger.log_reset(len(self._points), len(self._centroids))

        return self.snapshot()

    def step(self) -> EngineSnapshot:
        """
        Run one assign + update cycle.

        No-op (iteration unchanged) while there are no points or no
        centroids. Otherwise the iteration counter always advances, even
        when nothing moves.
        """
        if not self._points or not self._centroids:
            return self.snapshot()

        result = clustering_step(
            self._points, self._centroids, alpha=self.alpha, strict=self.strict
        )

        # Publish both lists together
        self._points, self._centroids = result.points, result.centroids
        self.iteration += 1

        if result.skipped and self.logger:
            self.logger.log_warning(
                f"Skipped {result.skipped} malformed point(s)", iteration=self.iteration
            )

        return self.snapshot()

    def inject_spray(self, origin, config: Optional[SimulationConfig] = None) -> int:
        """
        Append a spray burst around origin.

        Args:
            origin: (x, y) pair or object with x/y attributes
            config: Config to take density/radius from (default: current)

        Returns:
            Number of points added
        """
        config = self._apply_clamp(config) if config is not None else self.config
        x, y = _as_xy(origin)

        if not (math.isfinite(x) and math.isfinite(y)):
            if self.strict:
                raise MalformedPointError(f"Spray origin is not finite: ({x}, {y})")
            if self.logger:
                self.logger.log_warning(
                    f"Ignored spray at non-finite origin ({x}, {y})", iteration=self.iteration
                )
            return 0

        radius = spray_radius_pixels(config.spray_radius)
        before = len(self._points)
        self._points = spray_points(
            self._points, SprayOrigin(x, y, radius), config.spray_density, radius, self.rng
        )
        added = len(self._points) - before
        self.last_spray = SprayOrigin(x, y, radius)

        if self.logger:
            self.logger.log_spray(self.iteration, (x, y), radius, added, len(self._points))

        return added

    def seed_state(
        self,
        points: list[Point],
        centroids: list[Centroid],
        iteration: int = 0,
    ) -> EngineSnapshot:
        """
        Replace state with explicit points and centroids.

        Labels that don't index a centroid are reset to unassigned. The
        configured k follows the number of centroids given.
        """
        k = len(centroids)
        self._centroids = [Centroid(c.x, c.y) for c in centroids]
        self._points = [
            p if p.cluster == UNASSIGNED or 0 <= p.cluster < k else p.with_cluster(UNASSIGNED)
            for p in points
        ]
        self.iteration = iteration
        self.last_spray = None
        if k:
            self.config = replace(self.config, k=k)
        return self.snapshot()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _apply_clamp(self, config: SimulationConfig) -> SimulationConfig:
        """Clamp config into range, logging every value that moved."""
        clamped, changes = config.clamped()
        if self.logger:
            for change in changes:
                self.logger.log_clamp(**change)
        return clamped
