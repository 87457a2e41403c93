"""
Per-entity records for nodes and arcs.

Every node and arc of a System carries one record holding its identity key,
display name, spatial hint, free-form properties, the assigned dynamic and the
dynamic's parameter vector.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, NamedTuple, Tuple, Union

if TYPE_CHECKING:
    from .dynamics import NodeDynamic, ArcDynamic


# A node handle is its identity key.
Node = int


class Arc(NamedTuple):
    """Handle for a directed arc: endpoints plus the arc's identity key."""
    source: Node
    target: Node
    key: int


# An undirected edge is a pair of opposing arcs.
Edge = Tuple[Arc, Arc]

Entity = Union[Node, Arc]


@dataclass
class Position:
    """3D position used only for layout/visualisation."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_tuple(self):
        return (self.x, self.y, self.z)


@dataclass
class EntityData:
    """Fields shared by node and arc records."""
    key: int
    dynamic: "NodeDynamic | ArcDynamic"
    name: str = ""
    properties: List[float] = field(default_factory=list)
    params: List[float] = field(default_factory=list)


@dataclass
class NodeData(EntityData):
    """Record attached to every node."""
    position: Position = field(default_factory=Position)

    def copy(self) -> "NodeData":
        # Dynamics are shared, everything else is duplicated
        return NodeData(
            key=self.key,
            dynamic=self.dynamic,
            name=self.name,
            properties=list(self.properties),
            params=list(self.params),
            position=Position(*self.position.as_tuple()),
        )


@dataclass
class ArcData(EntityData):
    """Record attached to every arc."""
    weight: float = 1.0

    def copy(self) -> "ArcData":
        return ArcData(
            key=self.key,
            dynamic=self.dynamic,
            name=self.name,
            properties=list(self.properties),
            params=list(self.params),
            weight=self.weight,
        )
