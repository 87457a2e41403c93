"""
Reference performance measures. Lower is better.
"""

from __future__ import annotations
from typing import Optional

import numpy as np

from ..core.system import MatrixType
from ..evolve.annealing import BAD_PERFORMANCE
from ..evolve.base import Performance, PerformanceType


class EigenratioPerformance(Performance):
    """
    Synchronisability of the topology: |λ_N| / |λ_2| of the Laplacian.

    Eigenvalues are sorted by decreasing real part, so λ_2 is the first
    after the zero mode. Disconnected or trivial graphs (λ_2 = 0) score
    BAD_PERFORMANCE.
    """

    performance_type = PerformanceType.TOPOLOGY_ONLY

    def performance(self, system, result=None):
        values = system.eigenvalues(MatrixType.LAPLACIAN)
        if values.size < 2:
            return BAD_PERFORMANCE
        real = np.sort(values.real)[::-1]
        l2 = abs(real[1])
        ln = abs(real[-1])
        if np.isclose(l2, 0.0):
            return BAD_PERFORMANCE
        return float(ln / l2)


class SynchronisationPerformance(Performance):
    """
    Lack of synchrony at the final simulated time.

    Percentage of ordered node pairs whose state blocks are at least
    ``delta`` apart (Euclidean). A NaN state scores 1.0.
    """

    performance_type = PerformanceType.DYNAMICS_ONLY

    def __init__(self, delta: float = 0.01):
        self.delta = delta

    def performance(self, system, result=None):
        if result is None or not result.states:
            return BAD_PERFORMANCE
        final = result.final_state
        width = system.node_states()
        nodes = system.nodes()
        n = len(nodes)
        if n < 2 or width == 0:
            return 0.0

        if not system.valid_state_ids():
            system.refresh_state_ids()
        blocks = np.array([final[system.state_id(v):system.state_id(v) + width] for v in nodes])
        if np.isnan(blocks).any():
            return 1.0

        diff = blocks[:, None, :] - blocks[None, :, :]
        dist = np.sqrt((diff ** 2).sum(axis=2))
        apart = (dist >= self.delta) & ~np.eye(n, dtype=bool)
        return float(100.0 * apart.sum() / (n * (n - 1)))
