"""
JSON storage for simulation trajectories.
"""

from __future__ import annotations
import gzip
import json
import logging
from pathlib import Path
from typing import Any, Union

import numpy as np

from ..simulate.observers import SimulationResult


logger = logging.getLogger(__name__)


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that tags numpy arrays with their dtype and shape."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return {
                '__numpy__': True,
                'dtype': str(obj.dtype),
                'shape': obj.shape,
                'data': obj.tolist(),
            }
        return super().default(obj)


def numpy_decoder(dct):
    """JSON decoder hook restoring numpy arrays."""
    if '__numpy__' in dct:
        return np.array(dct['data'], dtype=dct['dtype']).reshape(dct['shape'])
    return dct


def _open(path: Path, mode: str):
    if path.suffix == '.gz':
        return gzip.open(path, mode + 't', encoding='utf-8')
    return open(path, mode, encoding='utf-8')


def save_trajectory(
    result: SimulationResult,
    filepath: Union[str, Path],
    compress: bool = False,
) -> Path:
    """
    Save a recorded trajectory.

    Args:
        result: Trajectory to save
        filepath: Target file; ``.gz`` is appended when compressing
        compress: Use gzip compression

    Returns:
        Path to saved file
    """
    path = Path(filepath)
    if compress and path.suffix != '.gz':
        path = path.with_name(path.name + '.gz')
    path.parent.mkdir(parents=True, exist_ok=True)

    data: Any = {
        'times': [float(t) for t in result.times],
        'states': result.as_array(),
    }
    with _open(path, 'w') as f:
        json.dump(data, f, cls=NumpyEncoder)

    logger.info(f"Saved trajectory with {len(result)} states to {path}")
    return path


def load_trajectory(filepath: Union[str, Path]) -> SimulationResult:
    """Load a trajectory written by :func:`save_trajectory`."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"No trajectory file found at {path}")

    with _open(path, 'r') as f:
        data = json.load(f, object_hook=numpy_decoder)

    states = np.asarray(data['states'], dtype=float)
    return SimulationResult(
        states=[row.copy() for row in states] if states.ndim == 2 else [],
        times=list(data['times']),
    )
