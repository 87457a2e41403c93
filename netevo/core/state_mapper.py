"""
Mapping of nodes and arcs onto one flat state vector.

Layout of a state vector for a system with N nodes and A arcs:

    [ node_0 | node_1 | ... | node_{N-1} | arc_0 | ... | arc_{A-1} ]

Each node block is ``node_width`` wide and each arc block ``arc_width`` wide,
both equal to the largest state count of any registered dynamic. Indices
follow the graph's current iteration order and are rebuilt on demand after
structural edits; they are not stable across edits or copies.
"""

from __future__ import annotations
from typing import Dict, Iterable

from .entity import Arc, Node
from ..errors import StaleStateIDs


class StateMapper:
    """
    Cached node→index and arc→index enumeration tables.

    Each table has its own validity flag. Adding or erasing an entity
    invalidates the table of that kind; :meth:`refresh` rebuilds only the
    invalid tables.
    """

    def __init__(self):
        self._node_index: Dict[Node, int] = {}
        self._arc_index: Dict[Arc, int] = {}
        self.nodes_valid = True
        self.arcs_valid = True

    @property
    def valid(self) -> bool:
        return self.nodes_valid and self.arcs_valid

    def invalidate_nodes(self) -> None:
        self.nodes_valid = False

    def invalidate_arcs(self) -> None:
        self.arcs_valid = False

    def invalidate(self) -> None:
        self.nodes_valid = False
        self.arcs_valid = False

    def refresh(self, nodes: Iterable[Node], arcs: Iterable[Arc]) -> None:
        """
        Re-enumerate invalid tables by walking entities in iteration order.

        Args:
            nodes: Current nodes in iteration order
            arcs: Current arcs in iteration order
        """
        if not self.nodes_valid:
            self._node_index = {v: i for i, v in enumerate(nodes)}
            self.nodes_valid = True
        if not self.arcs_valid:
            self._arc_index = {e: i for i, e in enumerate(arcs)}
            self.arcs_valid = True

    def node_index(self, node: Node) -> int:
        if not self.nodes_valid:
            raise StaleStateIDs("Node state IDs are out of date; call refresh_state_ids()")
        return self._node_index[node]

    def arc_index(self, arc: Arc) -> int:
        if not self.arcs_valid:
            raise StaleStateIDs("Arc state IDs are out of date; call refresh_state_ids()")
        return self._arc_index[arc]

    def node_offset(self, node: Node, node_width: int) -> int:
        """Start of a node's block in the state vector."""
        return node_width * self.node_index(node)

    def arc_offset(self, arc: Arc, node_width: int, node_count: int, arc_width: int) -> int:
        """Start of an arc's block (after every node block)."""
        return node_width * node_count + arc_width * self.arc_index(arc)
