"""
Core module for NetEvo.

Contains:
- System: directed network with per-entity dynamics and a flat state layout
- StateMapper: node/arc offsets into the state vector
- NodeDynamic / ArcDynamic: pluggable dynamics and the registry holding them
- NodeData / ArcData: per-entity records
- ChangeLog: notification sinks for structural and state changes
"""

from .entity import Arc, ArcData, Edge, Node, NodeData, Position
from .dynamics import (
    ArcDynamic, DynamicsRegistry, NodeDynamic, NullArcDynamic, NullNodeDynamic,
    NULL_ARC_DYNAMIC, NULL_NODE_DYNAMIC,
)
from .state_mapper import StateMapper
from .system import MatrixType, System
from .changelog import ChangeLog, ChangeLogSet, ChangeLogToStream, StepType

__all__ = [
    "Arc",
    "ArcData",
    "Edge",
    "Node",
    "NodeData",
    "Position",
    # Dynamics
    "NodeDynamic",
    "ArcDynamic",
    "NullNodeDynamic",
    "NullArcDynamic",
    "DynamicsRegistry",
    "NULL_NODE_DYNAMIC",
    "NULL_ARC_DYNAMIC",
    # System
    "StateMapper",
    "System",
    "MatrixType",
    # Change logging
    "ChangeLog",
    "ChangeLogSet",
    "ChangeLogToStream",
    "StepType",
]
