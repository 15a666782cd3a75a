"""
Structured logging for spray k-means runs.

Single JSONL file with typed events for streaming and analysis.

Event types:
- run_start: Config, seed
- configure: Config applied to the engine
- clamp: Out-of-range parameter pulled back to its bound
- reset: Field regenerated (point/centroid counts)
- spray: Burst injected (origin, radius, points added)
- step: Per-iteration metrics
- warning: Malformed points skipped, other recoverable conditions
- run_end: Summary stats
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import numpy as np


def _to_native(obj):
    """Convert numpy types to native Python types for JSON serialization."""
    if isinstance(obj, dict):
        return {k: _to_native(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_to_native(v) for v in obj]
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj


class EventLogger:
    """Appends simulation events to <run dir>/simulation.jsonl."""

    LOG_FILENAME = "simulation.jsonl"

    def __init__(self, output_dir: Path):
        """
        Open the event log for a simulation run.

        Args:
            output_dir: Run directory (created if missing). Runs that share
                a directory share one log; events are appended.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.output_dir / self.LOG_FILENAME
        self.file_handle = open(self.log_file, 'a')

    @property
    def closed(self) -> bool:
        return self.file_handle is None

    def _write_event(self, event_type: str, data: dict[str, Any]) -> None:
        """Append one event line and flush it so readers can tail the log."""
        event = {"type": event_type, "timestamp": datetime.now().isoformat()}
        event.update(_to_native(data))
        self.file_handle.write(json.dumps(event) + '\n')
        self.file_handle.flush()

    def log_run_start(self, config: dict[str, Any], seed: Optional[int] = None) -> None:
        """
        Log run initialization.

        Args:
            config: Simulation configuration
            seed: Random seed (None if unseeded)
        """
        self._write_event("run_start", {"config": config, "seed": seed})

    def log_configure(self, config: dict[str, Any], reinitialized: bool) -> None:
        self._write_event("configure", {
            "config": config,
            "reinitialized": reinitialized,
        })

    def log_clamp(self, field: str, requested: Any, applied: Any) -> None:
        """
        Log a configuration value that was out of range.

        Args:
            field: Parameter name
            requested: Value the caller asked for
            applied: Bound actually used
        """
        self._write_event("clamp", {
            "field": field,
            "requested": requested,
            "applied": applied,
        })

    def log_reset(self, num_points: int, num_centroids: int) -> None:
        self._write_event("reset", {
            "num_points": num_points,
            "num_centroids": num_centroids,
        })

    def log_spray(
        self,
        iteration: int,
        origin: tuple[float, float],
        radius: float,
        points_added: int,
        num_points: int,
    ) -> None:
        """
        Log a spray burst.

        Args:
            iteration: Iteration at which the burst landed
            origin: Burst center (x, y)
            radius: Burst radius in pixels
            points_added: Points appended by this burst
            num_points: Field size after the burst
        """
        self._write_event("spray", {
            "iteration": iteration,
            "origin": list(origin),
            "radius": radius,
            "points_added": points_added,
            "num_points": num_points,
        })

    def log_step(self, metrics: dict[str, Any]) -> None:
        """Log metrics for one completed iteration."""
        self._write_event("step", metrics)

    def log_warning(self, message: str, iteration: Optional[int] = None) -> None:
        """
        Log a recoverable problem.

        Args:
            message: Warning description
            iteration: Iteration where it occurred (if applicable)
        """
        data = {"message": message}
        if iteration is not None:
            data["iteration"] = iteration

        self._write_event("warning", data)

    def log_run_end(self, total_iterations: int, final_num_points: int) -> None:
        self._write_event("run_end", {
            "total_iterations": total_iterations,
            "final_num_points": final_num_points,
        })

    def close(self) -> None:
        if self.file_handle is not None:
            self.file_handle.close()
            self.file_handle = None

    def __enter__(self) -> "EventLogger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
