"""
Configuration for a spray k-means simulation.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, asdict, fields, replace
from pathlib import Path
from typing import Union

import yaml

from spraykmeans.config import (
    ANIMATION_SPEED_RANGE,
    K_RANGE,
    SPRAY_DENSITY_RANGE,
    SPRAY_RADIUS_RANGE,
)

__all__ = [
    "SimulationConfig",
    "ConfigError",
    "PARAMETER_RANGES",
    "load_config",
    "clamp",
]


PARAMETER_RANGES = {
    "k": K_RANGE,
    "spray_density": SPRAY_DENSITY_RANGE,
    "spray_radius": SPRAY_RADIUS_RANGE,
    "animation_speed": ANIMATION_SPEED_RANGE,
}


class ConfigError(ValueError):
    """Raised when a config file or value can't be interpreted."""
    pass


def clamp(value: int, low: int, high: int) -> int:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


@dataclass
class SimulationConfig:
    """Slider values driving a simulation."""

    k: int = 3                    # Number of clusters (2..9)
    spray_density: int = 100      # Initial field size; density // 10 per burst (10..200)
    spray_radius: int = 50        # Spray radius percentage (10..100)
    animation_speed: int = 50     # Higher is faster (1..100)

    def clamped(self) -> tuple[SimulationConfig, list[dict]]:
        """
        Return a copy with every parameter inside its range.

        Returns:
            (clamped config, list of {field, requested, applied} for each
            value that had to move)
        """
        changes = []
        values = {}
        for name, (low, high) in PARAMETER_RANGES.items():
            requested = getattr(self, name)
            if (isinstance(requested, bool) or not isinstance(requested, numbers.Real)
                    or not math.isfinite(requested)):
                raise ConfigError(f"{name} must be a finite number, got {requested!r}")
            applied = clamp(int(requested), low, high)
            if applied != requested:
                changes.append({"field": name, "requested": requested, "applied": applied})
            values[name] = applied
        return replace(self, **values), changes

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> SimulationConfig:
        """Create from dict, filtering out unknown keys."""
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)


def load_config(path: Union[str, Path], base: SimulationConfig = None) -> SimulationConfig:
    """
    Load a YAML config file, merging it over defaults.

    The file may hold the parameters at top level or under a
    ``simulation:`` key.

    Args:
        path: YAML file
        base: Config to merge over (default: SimulationConfig())

    Returns:
        Merged config (not yet clamped)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigError: If the file isn't a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    if "simulation" in data:
        data = data["simulation"] or {}
        if not isinstance(data, dict):
            raise ConfigError(f"'simulation' section must be a mapping: {path}")

    merged = (base or SimulationConfig()).to_dict()
    merged.update({k: v for k, v in data.items() if k in merged})
    return SimulationConfig.from_dict(merged)
