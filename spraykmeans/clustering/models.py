"""
Data models for the k-means simulation.

Points and centroids are immutable value objects; every operation that
"changes" them builds new instances, so a snapshot handed to a renderer can
never be mutated under it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional


# Label carried by points no assignment step has touched yet
UNASSIGNED = -1


@dataclass(frozen=True)
class Point:
    """A labeled 2D sample in canvas space."""

    x: float
    y: float
    cluster: int = UNASSIGNED    # centroid index or UNASSIGNED

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def with_cluster(self, cluster: int) -> Point:
        return Point(self.x, self.y, cluster)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "cluster": self.cluster}


@dataclass(frozen=True)
class Centroid:
    """Representative position of one cluster."""

    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class SprayOrigin:
    """Where the last spray burst was centered, and how wide it was."""

    x: float
    y: float
    radius: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "radius": self.radius}


@dataclass(frozen=True)
class EngineSnapshot:
    """Read-only view of engine state for rendering."""

    points: tuple[Point, ...] = ()
    centroids: tuple[Centroid, ...] = ()
    iteration: int = 0
    last_spray: Optional[SprayOrigin] = None

    @property
    def k(self) -> int:
        return len(self.centroids)

    def cluster_sizes(self) -> list[int]:
        """Member count per centroid index."""
        sizes = [0] * len(self.centroids)
        for p in self.points:
            if 0 <= p.cluster < len(sizes):
                sizes[p.cluster] += 1
        return sizes

    def unassigned_count(self) -> int:
        return sum(1 for p in self.points if p.cluster == UNASSIGNED)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "iteration": self.iteration,
            "points": [p.to_dict() for p in self.points],
            "centroids": [c.to_dict() for c in self.centroids],
            "last_spray": self.last_spray.to_dict() if self.last_spray else None,
        }


@dataclass
class StepResult:
    """Output of one clustering step, before it is published."""

    points: list[Point] = field(default_factory=list)
    centroids: list[Centroid] = field(default_factory=list)
    skipped: int = 0             # malformed points left unassigned
