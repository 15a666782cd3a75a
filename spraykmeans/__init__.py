"""
Spray K-Means - live Lloyd's k-means with point spraying.
"""

from .simulation import ClusterEngine, SimulationConfig, SimulationRunner

__version__ = "0.1.0"

__all__ = ["ClusterEngine", "SimulationConfig", "SimulationRunner"]
