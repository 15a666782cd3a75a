"""
Simulation layer: config, stateful engine and the headless driving loop.
"""

from .config import SimulationConfig, ConfigError, load_config
from .engine import ClusterEngine
from .runner import SimulationRunner, StepMetrics, tick_delay_ms

__all__ = [
    "SimulationConfig",
    "ConfigError",
    "load_config",
    "ClusterEngine",
    "SimulationRunner",
    "StepMetrics",
    "tick_delay_ms",
]
