"""
Reference initial state providers.
"""

from __future__ import annotations
from typing import List

import numpy as np

from ..evolve.base import EvoInitialStates


class RandomInitialStates(EvoInitialStates):
    """
    ``count`` uniform random states in [0, scale), drawn from the system's RNG.
    """

    def __init__(self, scale: float = 10.0, count: int = 1):
        self.scale = scale
        self.count = count

    def initial_states(self, system) -> List[np.ndarray]:
        n = system.total_states()
        return [system.rng.random(n) * self.scale for _ in range(self.count)]
