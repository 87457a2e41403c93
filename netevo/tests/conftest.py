"""
Shared fixtures.
"""

import pytest

from netevo.core import NodeDynamic, System
from netevo.library import AdaptiveCouplingLaw, KuramotoNodeMap


class Decay(NodeDynamic):
    """dx/dt = -x, one state per node."""

    name = "Decay"
    state_count = 1

    def derivative(self, node, system, x, dx, t):
        i = system.state_id(node)
        dx[i] = -x[i]


@pytest.fixture
def empty_system():
    return System(seed=1)


@pytest.fixture
def kuramoto_ring():
    """Undirected Kuramoto ring of 6 nodes, 1 neighbour each side."""
    system = System(seed=1)
    system.add_node_dynamic(KuramotoNodeMap())
    system.ring_graph(6, 1, undirected=True, node_dynamic="KuramotoNodeMap")
    return system


@pytest.fixture
def adaptive_system():
    """Kuramoto nodes with adaptive coupling arcs (node width 1, arc width 1)."""
    system = System(seed=2)
    system.add_node_dynamic(KuramotoNodeMap())
    system.add_arc_dynamic(AdaptiveCouplingLaw())
    system.ring_graph(
        4, 1, undirected=True,
        node_dynamic="KuramotoNodeMap", arc_dynamic="AdaptiveCouplingLaw",
    )
    return system


@pytest.fixture
def decay_system():
    """Three uncoupled decaying nodes."""
    system = System(seed=3)
    system.add_node_dynamic(Decay())
    for _ in range(3):
        system.add_node("Decay")
    system.refresh_state_ids()
    return system
