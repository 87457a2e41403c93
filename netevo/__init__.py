"""
NetEvo

Evolution of dynamical complex networks: networks whose nodes and arcs carry
pluggable dynamics are simulated and their topologies evolved by simulated
annealing against a performance measure.

Main components:
- core: System, dynamics registry, state mapping, change logs
- simulate: Discrete maps and ODE integration with observers
- evolve: Mutations, performance measures, simulated annealing
- library: Reference dynamics, measures and initial states
- storage: GML and JSON persistence
"""

__version__ = "2.0.0"
__author__ = "NetEvo Team"

from .core import System, NodeDynamic, ArcDynamic, ChangeLog
from .simulate import SimulateMap, SimulateOdeFixed, SimulateOdeConst, SimulateOdeAdaptive
from .evolve import EvolveSA, Mutate, Performance, EvoInitialStates, EvoObserver
from .config import EvolveSAParams

__all__ = [
    "System",
    "NodeDynamic",
    "ArcDynamic",
    "ChangeLog",
    "SimulateMap",
    "SimulateOdeFixed",
    "SimulateOdeConst",
    "SimulateOdeAdaptive",
    "EvolveSA",
    "Mutate",
    "Performance",
    "EvoInitialStates",
    "EvoObserver",
    "EvolveSAParams",
]
