"""
Clustering algorithms for the spray k-means simulation.

Core functions for one Lloyd iteration (assign + smoothed update) and for
populating the point field: uniform generation and radial spray bursts.
All functions are pure: they return new point/centroid lists and never
mutate their inputs.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from spraykmeans.config import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    SMOOTHING_FACTOR,
    SPRAY_DIVISOR,
    SPRAY_RADIUS_SCALE,
)

from .models import (
    Centroid,
    Point,
    StepResult,
    UNASSIGNED,
)


class MalformedPointError(ValueError):
    """Raised in strict mode when a point has non-finite coordinates."""
    pass


def euclidean_distance(a, b) -> float:
    """Compute Euclidean distance between two objects with x/y attributes."""
    return math.hypot(a.x - b.x, a.y - b.y)


def _coords(items: Sequence) -> np.ndarray:
    """Stack x/y attributes into an (n, 2) float array."""
    if not items:
        return np.empty((0, 2), dtype=np.float64)
    return np.array([(item.x, item.y) for item in items], dtype=np.float64)


def _finite_mask(coords: np.ndarray, strict: bool) -> np.ndarray:
    """Row mask of well-formed points; raises on the first bad one if strict."""
    mask = np.isfinite(coords).all(axis=1)
    if strict and not mask.all():
        bad = int(np.argmin(mask))
        raise MalformedPointError(
            f"Point {bad} has non-finite coordinates: {tuple(coords[bad])}"
        )
    return mask


# -------------------------------------------------------------------------
# Point field
# -------------------------------------------------------------------------

def generate_points(
    count: int,
    rng: np.random.Generator,
    width: float = CANVAS_WIDTH,
    height: float = CANVAS_HEIGHT,
) -> list[Point]:
    """
    Generate a uniform random point field.

    Args:
        count: Number of points
        rng: Random generator (seed it for reproducible fields)
        width: Canvas width, x is drawn from [0, width)
        height: Canvas height, y is drawn from [0, height)

    Returns:
        List of unassigned points
    """
    xs = rng.random(count) * width
    ys = rng.random(count) * height
    return [Point(float(x), float(y), UNASSIGNED) for x, y in zip(xs, ys)]


def initialize_centroids(
    k: int,
    rng: np.random.Generator,
    width: float = CANVAS_WIDTH,
    height: float = CANVAS_HEIGHT,
) -> list[Centroid]:
    """Place k centroids uniformly at random over the canvas."""
    xs = rng.random(k) * width
    ys = rng.random(k) * height
    return [Centroid(float(x), float(y)) for x, y in zip(xs, ys)]


def spray_radius_pixels(spray_radius: float) -> float:
    """Convert the spray radius percentage to canvas pixels."""
    return (spray_radius / 100) * SPRAY_RADIUS_SCALE


def spray_count(density: int) -> int:
    """Number of points one spray burst adds."""
    return max(0, int(density) // SPRAY_DIVISOR)


def spray_points(
    points: Sequence[Point],
    origin,
    density: int,
    radius_pixels: float,
    rng: np.random.Generator,
) -> list[Point]:
    """
    Append a radial burst of points around origin.

    Radius is uniform in [0, radius_pixels), not uniform in area, so bursts
    are denser at the center.

    Args:
        points: Existing point field (left untouched)
        origin: Anything with x/y attributes
        density: Spray density; density // 10 points are added
        radius_pixels: Maximum distance from origin
        rng: Random generator

    Returns:
        New list: existing points followed by the sprayed ones
    """
    n = spray_count(density)
    angles = rng.random(n) * 2 * np.pi
    radii = rng.random(n) * radius_pixels

    sprayed = [
        Point(
            float(origin.x + np.cos(theta) * r),
            float(origin.y + np.sin(theta) * r),
            UNASSIGNED,
        )
        for theta, r in zip(angles, radii)
    ]
    return list(points) + sprayed


# -------------------------------------------------------------------------
# Lloyd iteration
# -------------------------------------------------------------------------

def assign_clusters(
    points: Sequence[Point],
    centroids: Sequence[Centroid],
    strict: bool = False,
) -> list[Point]:
    """
    Label each point with the index of its nearest centroid.

    Ties go to the lowest index. Points with non-finite coordinates are left
    unassigned (or raise MalformedPointError when strict).
    """
    if not points or not centroids:
        return list(points)

    coords = _coords(points)
    mask = _finite_mask(coords, strict)
    centers = _coords(centroids)

    # (n, k) distance matrix
    diffs = coords[:, np.newaxis, :] - centers[np.newaxis, :, :]
    distances = np.sqrt(np.sum(diffs ** 2, axis=2))

    # argmin returns the first minimum, which is the lowest-index tie-break
    labels = np.argmin(np.where(mask[:, np.newaxis], distances, np.inf), axis=1)

    return [
        point.with_cluster(int(label)) if ok else point.with_cluster(UNASSIGNED)
        for point, label, ok in zip(points, labels, mask)
    ]


def update_centroids(
    points: Sequence[Point],
    centroids: Sequence[Centroid],
    alpha: float = SMOOTHING_FACTOR,
    strict: bool = False,
) -> list[Centroid]:
    """
    Move each centroid a fraction alpha toward the mean of its members.

    Every centroid is computed from the positions passed in, so the result
    does not depend on update order. A centroid with no members is copied
    unchanged.
    """
    if not centroids:
        return []

    coords = _coords(points)
    mask = _finite_mask(coords, strict)
    labels = np.array([p.cluster for p in points], dtype=np.int64)

    new_centroids = []
    for idx, current in enumerate(centroids):
        members = coords[mask & (labels == idx)]
        if len(members) == 0:
            new_centroids.append(Centroid(current.x, current.y))
            continue

        target_x, target_y = members.mean(axis=0)
        new_centroids.append(Centroid(
            float(current.x + (target_x - current.x) * alpha),
            float(current.y + (target_y - current.y) * alpha),
        ))

    return new_centroids


def clustering_step(
    points: Sequence[Point],
    centroids: Sequence[Centroid],
    alpha: float = SMOOTHING_FACTOR,
    strict: bool = False,
) -> StepResult:
    """
    Run one assign + smoothed update iteration.

    Returns:
        StepResult with relabeled points, moved centroids and the number of
        malformed points that were skipped
    """
    if not points or not centroids:
        return StepResult(points=list(points), centroids=list(centroids))

    labeled = assign_clusters(points, centroids, strict=strict)
    moved = update_centroids(labeled, centroids, alpha=alpha, strict=strict)
    skipped = sum(1 for p in labeled if not p.is_finite)

    return StepResult(points=labeled, centroids=moved, skipped=skipped)


# -------------------------------------------------------------------------
# Metrics
# -------------------------------------------------------------------------

def compute_inertia(points: Sequence[Point], centroids: Sequence[Centroid]) -> float:
    """Sum of squared distances from assigned points to their centroid."""
    total = 0.0
    for p in points:
        if 0 <= p.cluster < len(centroids) and p.is_finite:
            c = centroids[p.cluster]
            total += (p.x - c.x) ** 2 + (p.y - c.y) ** 2
    return total


def centroid_shift(
    before: Sequence[Centroid],
    after: Sequence[Centroid],
) -> Optional[float]:
    """Mean distance moved per centroid, or None if the lists don't line up."""
    if not before or len(before) != len(after):
        return None
    return float(np.mean([euclidean_distance(a, b) for a, b in zip(before, after)]))
