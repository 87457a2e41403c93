"""
Pluggable node and arc dynamics.

A dynamic defines how many state variables an entity owns, how its parameter
vector is initialised, and the update (derivative or map) for its slice of the
flat state vector. Dynamics are registered once per System and shared by
reference between every entity (and every copy of the System) that uses them.

Example:
    class Decay(NodeDynamic):
        name = "Decay"
        state_count = 1

        def set_default_parameters(self, node, system):
            system.node_data(node).params.append(0.5)

        def derivative(self, node, system, x, dx, t):
            i = system.state_id(node)
            dx[i] = -system.node_data(node).params[0] * x[i]
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Iterator

import numpy as np

from ..errors import UnknownDynamic

if TYPE_CHECKING:
    from .entity import Node, Arc
    from .system import System


NULL_NODE_DYNAMIC = "NoNodeDynamic"
NULL_ARC_DYNAMIC = "NoArcDynamic"


class NodeDynamic(ABC):
    """
    Interface for node dynamics.

    Subclasses set the class attributes ``name`` (unique within a registry)
    and ``state_count`` (number of state variables per node).
    """

    name: str = ""
    state_count: int = 0

    def set_default_parameters(self, node: "Node", system: "System") -> None:
        """Populate ``system.node_data(node).params`` for a new node."""

    @abstractmethod
    def derivative(
        self,
        node: "Node",
        system: "System",
        x: np.ndarray,
        dx: np.ndarray,
        t: float,
    ) -> None:
        """
        Write this node's update into ``dx``.

        Args:
            node: Node being updated
            system: Owning system (use ``system.state_id`` for offsets)
            x: Current full state vector
            dx: Output vector (derivative for ODEs, next state for maps)
            t: Current time
        """
        pass


class ArcDynamic(ABC):
    """Interface for arc dynamics; mirrors :class:`NodeDynamic`."""

    name: str = ""
    state_count: int = 0

    def set_default_parameters(self, arc: "Arc", system: "System") -> None:
        """Populate ``system.arc_data(arc).params`` for a new arc."""

    @abstractmethod
    def derivative(
        self,
        arc: "Arc",
        system: "System",
        x: np.ndarray,
        dx: np.ndarray,
        t: float,
    ) -> None:
        """Write this arc's update into ``dx``."""
        pass


class NullNodeDynamic(NodeDynamic):
    """Default node dynamic: no states, no parameters, no update."""

    name = NULL_NODE_DYNAMIC
    state_count = 0

    def derivative(self, node, system, x, dx, t):
        pass


class NullArcDynamic(ArcDynamic):
    """Default arc dynamic: no states, no parameters, no update."""

    name = NULL_ARC_DYNAMIC
    state_count = 0

    def derivative(self, arc, system, x, dx, t):
        pass


class DynamicsRegistry:
    """
    Name → dynamic lookup for one System.

    Always holds the null node and arc dynamics. Tracks the state widths
    (maximum ``state_count`` of any dynamic ever registered); widths are
    never lowered.
    """

    def __init__(self):
        self._node: Dict[str, NodeDynamic] = {}
        self._arc: Dict[str, ArcDynamic] = {}
        self.node_state_width = 0
        self.arc_state_width = 0
        self.add_node_dynamic(NullNodeDynamic())
        self.add_arc_dynamic(NullArcDynamic())

    def add_node_dynamic(self, dynamic: NodeDynamic) -> None:
        """Register a node dynamic. An existing name is left untouched."""
        self._node.setdefault(dynamic.name, dynamic)
        self.node_state_width = max(self.node_state_width, int(dynamic.state_count))

    def add_arc_dynamic(self, dynamic: ArcDynamic) -> None:
        """Register an arc dynamic. An existing name is left untouched."""
        self._arc.setdefault(dynamic.name, dynamic)
        self.arc_state_width = max(self.arc_state_width, int(dynamic.state_count))

    def node_dynamic(self, name: str) -> NodeDynamic:
        try:
            return self._node[name]
        except KeyError:
            raise UnknownDynamic(name, "node") from None

    def arc_dynamic(self, name: str) -> ArcDynamic:
        try:
            return self._arc[name]
        except KeyError:
            raise UnknownDynamic(name, "arc") from None

    def has_node_dynamic(self, name: str) -> bool:
        return name in self._node

    def has_arc_dynamic(self, name: str) -> bool:
        return name in self._arc

    def node_dynamics(self) -> Iterator[NodeDynamic]:
        return iter(self._node.values())

    def arc_dynamics(self) -> Iterator[ArcDynamic]:
        return iter(self._arc.values())

