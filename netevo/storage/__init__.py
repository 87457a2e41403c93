"""
Storage module for NetEvo.

Provides persistence for:
- Systems (GML)
- Simulation trajectories (JSON, optionally gzipped)
"""

from .gml import load_gml, save_gml
from .json_storage import NumpyEncoder, load_trajectory, save_trajectory

__all__ = [
    "load_gml",
    "save_gml",
    "NumpyEncoder",
    "load_trajectory",
    "save_trajectory",
]
