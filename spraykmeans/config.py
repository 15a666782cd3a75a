"""
Configuration constants for the spray k-means simulation.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Optional


# Directory structure
PROJECT_ROOT = Path(__file__).parent.parent
RUNS_DIR = PROJECT_ROOT / "runs"


def create_run_dir(name: Optional[str] = None) -> Path:
    """
    Create a run directory for event logs.

    Args:
        name: Optional run name (default: timestamp)

    Returns:
        Path to run directory
    """
    if name is None:
        name = datetime.now().strftime("%Y-%m-%d-%H%M%S")

    run_dir = RUNS_DIR / name
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


# Canvas domain (points and centroids are generated here, never clamped to it)
CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600


# Clustering parameters
SMOOTHING_FACTOR = 0.1  # Smaller value = smoother centroid transition
SPRAY_DIVISOR = 10  # Points per burst = density // SPRAY_DIVISOR
SPRAY_RADIUS_SCALE = 100  # Pixels at 100% spray radius


# Driving loop
MIN_TICK_DELAY_MS = 10
MAX_TICK_DELAY_MS = 1000


# Parameter ranges (inclusive)
K_RANGE = (2, 9)
SPRAY_DENSITY_RANGE = (10, 200)
SPRAY_RADIUS_RANGE = (10, 100)
ANIMATION_SPEED_RANGE = (1, 100)


# Renderer palette: one color per supported K, plus unassigned
CLUSTER_COLORS = (
    "#FF6B6B", "#4ECDC4", "#45B7D1",
    "#96CEB4", "#FFEEAD", "#D4A5A5",
    "#9B59B6", "#3498DB", "#F1C40F",
)
UNASSIGNED_COLOR = "#FFFFFF"


def color_for(cluster: int) -> str:
    """Map a cluster index to its palette color (unassigned -> neutral)."""
    if 0 <= cluster < len(CLUSTER_COLORS):
        return CLUSTER_COLORS[cluster]
    return UNASSIGNED_COLOR


# Strict mode: malformed points raise instead of being skipped
STRICT_ENV_VAR = "SPRAYKMEANS_STRICT"


def strict_from_env(explicit: Optional[bool] = None) -> bool:
    """Resolve strict mode from an explicit flag or the environment."""
    if explicit is not None:
        return explicit
    value = os.environ.get(STRICT_ENV_VAR, "")
    return value.strip().lower() in ("1", "true", "yes", "on")
