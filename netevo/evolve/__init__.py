"""
Evolution of System topologies.

Components:
- Mutate / Performance / EvoInitialStates / EvoObserver interfaces
- RewireMutate and RandomMutate strategies
- EvolveSA: simulated annealing engine
"""

from .annealing import BAD_PERFORMANCE, EvolveSA, EvolveSAResult
from .base import (
    EvoInitialStates,
    EvoObserver,
    LoggingEvoObserver,
    Mutate,
    Performance,
    PerformanceType,
)
from .mutations import RandomMutate, RewireMutate

__all__ = [
    "BAD_PERFORMANCE",
    "EvolveSA",
    "EvolveSAResult",
    "EvoInitialStates",
    "EvoObserver",
    "LoggingEvoObserver",
    "Mutate",
    "Performance",
    "PerformanceType",
    "RandomMutate",
    "RewireMutate",
]
