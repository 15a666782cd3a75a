"""
Lloyd's k-means on a 2D point field.

Pure functions for assignment, smoothed centroid relaxation and spray
injection, plus the value types they operate on.
"""

from .models import (
    Point,
    Centroid,
    SprayOrigin,
    EngineSnapshot,
    StepResult,
    UNASSIGNED,
)
from .algorithm import (
    MalformedPointError,
    euclidean_distance,
    generate_points,
    initialize_centroids,
    spray_radius_pixels,
    spray_count,
    spray_points,
    assign_clusters,
    update_centroids,
    clustering_step,
    compute_inertia,
    centroid_shift,
)

__all__ = [
    # Models
    "Point",
    "Centroid",
    "SprayOrigin",
    "EngineSnapshot",
    "StepResult",
    "UNASSIGNED",
    # Algorithm
    "MalformedPointError",
    "euclidean_distance",
    "generate_points",
    "initialize_centroids",
    "spray_radius_pixels",
    "spray_count",
    "spray_points",
    "assign_clusters",
    "update_centroids",
    "clustering_step",
    "compute_inertia",
    "centroid_shift",
]
