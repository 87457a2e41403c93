"""
Interfaces of the evolutionary process.

An evolution engine combines:
- a Mutate strategy changing a System in place
- a Performance measure scoring a System (lower is better)
- an EvoInitialStates provider, when the measure needs simulated dynamics
- an EvoObserver receiving the accepted lineage as it progresses
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
import logging
from typing import TYPE_CHECKING, List, Optional, Tuple

import numpy as np

if TYPE_CHECKING:
    from ..core.changelog import ChangeLog
    from ..core.system import System
    from ..simulate.observers import SimulationResult


logger = logging.getLogger(__name__)


class PerformanceType(Enum):
    """Whether a performance measure needs a simulated trajectory."""
    TOPOLOGY_ONLY = 0
    DYNAMICS_ONLY = 1
    TOPOLOGY_AND_DYNAMICS = 2

    @property
    def needs_dynamics(self) -> bool:
        return self is not PerformanceType.TOPOLOGY_ONLY


class Mutate(ABC):
    """Changes a System in place, notifying the change log before each change."""

    @abstractmethod
    def mutate(self, system: "System", changelog: "ChangeLog") -> None:
        pass


class Performance(ABC):
    """
    Scalar fitness of a System. The engine always minimises.

    Subclasses set ``performance_type``. Dynamics-dependent measures receive
    the recorded trajectory of one simulation run; topology-only measures
    receive ``None``.
    """

    performance_type: PerformanceType = PerformanceType.TOPOLOGY_ONLY

    def get_type(self) -> PerformanceType:
        return self.performance_type

    @abstractmethod
    def performance(
        self, system: "System", result: Optional["SimulationResult"] = None
    ) -> float:
        pass


class EvoObserver:
    """Called with the current system, its performance and the iteration."""

    def __call__(self, system: "System", perf: float, t: int) -> None:
        pass


class LoggingEvoObserver(EvoObserver):
    """Logs progress and keeps the (iteration, performance) history."""

    def __init__(self, level: int = logging.INFO):
        self.level = level
        self.history: List[Tuple[int, float]] = []

    def __call__(self, system, perf, t):
        self.history.append((t, perf))
        logger.log(self.level, f"At step {t}, performance = {perf}")


class EvoInitialStates:
    """
    Provides the initial conditions used to evaluate dynamics-dependent
    performance. One simulation is run per state; the default is none.
    """

    def initial_states(self, system: "System") -> List[np.ndarray]:
        return []
