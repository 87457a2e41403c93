"""
Library of reference dynamics, performance measures and initial states.
"""

from .dynamics import (
    AdaptiveCouplingLaw,
    KuramotoNodeMap,
    LorenzOscillator,
    RosslerOscillator,
)
from .initial_states import RandomInitialStates
from .performances import EigenratioPerformance, SynchronisationPerformance

__all__ = [
    "AdaptiveCouplingLaw",
    "KuramotoNodeMap",
    "LorenzOscillator",
    "RosslerOscillator",
    "RandomInitialStates",
    "EigenratioPerformance",
    "SynchronisationPerformance",
]
