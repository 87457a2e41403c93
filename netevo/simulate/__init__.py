"""
Simulation of System dynamics.

Components:
- SimulateMap: discrete-time iterated maps
- SimulateOdeFixed / SimulateOdeConst / SimulateOdeAdaptive: ODE integration
- Observers receiving the produced states
"""

from .integrators import AdaptiveStepper, FixedStepper, rk4_step
from .observers import (
    ObserverPassThrough,
    RecordingObserver,
    SimObserver,
    SimulationResult,
    StreamObserver,
)
from .simulators import (
    Simulate,
    SimulateMap,
    SimulateOdeAdaptive,
    SimulateOdeConst,
    SimulateOdeFixed,
)

__all__ = [
    "AdaptiveStepper",
    "FixedStepper",
    "rk4_step",
    "ObserverPassThrough",
    "RecordingObserver",
    "SimObserver",
    "SimulationResult",
    "StreamObserver",
    "Simulate",
    "SimulateMap",
    "SimulateOdeAdaptive",
    "SimulateOdeConst",
    "SimulateOdeFixed",
]
