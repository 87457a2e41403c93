"""
Mutation strategies.

Mutations operate on undirected edges (pairs of opposite arcs) and always
work on snapshots of the node and arc lists, never on live iterators.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Optional

import numpy as np

from ..core.dynamics import NULL_ARC_DYNAMIC
from ..core.entity import Arc, Node
from .base import Mutate

if TYPE_CHECKING:
    from ..core.changelog import ChangeLog
    from ..core.system import System


logger = logging.getLogger(__name__)

MAX_REWIRES = 10


def erase_edge(system: "System", arc: Arc, changelog: "ChangeLog") -> None:
    """Erase an arc together with its reverse partner, if any."""
    partner = system.find_arc(arc.target, arc.source)
    if partner is not None and partner != arc:
        changelog.erase_arc(system, partner)
        system.erase_arc(partner)
    changelog.erase_arc(system, arc)
    system.erase_arc(arc)


def has_free_pair(system: "System") -> bool:
    """True if some ordered pair of distinct nodes has no arc between them."""
    n = system.count_nodes()
    connected = {(u, v) for u, v in system.graph.edges() if u != v}
    return len(connected) < n * (n - 1)


def add_random_edge(
    system: "System",
    rng: np.random.Generator,
    changelog: "ChangeLog",
    dynamic: str = NULL_ARC_DYNAMIC,
) -> bool:
    """
    Connect a uniformly chosen unconnected pair of distinct nodes.

    Returns:
        False if every pair is already connected
    """
    if not has_free_pair(system):
        return False
    nodes = system.nodes()
    while True:
        u = nodes[rng.integers(len(nodes))]
        v = u
        while v == u:
            v = nodes[rng.integers(len(nodes))]
        if system.find_arc(u, v) is None:
            changelog.add_arc(system, v, u)
            changelog.add_arc(system, u, v)
            system.add_edge(u, v, dynamic)
            return True


def rewire_edge(
    system: "System",
    rng: np.random.Generator,
    changelog: "ChangeLog",
    dynamic: Optional[str] = None,
) -> bool:
    """
    Move one random undirected edge to a random unconnected node pair.

    The new edge gets the removed arc's dynamic unless ``dynamic`` is given.
    """
    arcs = system.arcs()
    if not arcs or system.count_nodes() < 2:
        return False
    arc = arcs[rng.integers(len(arcs))]
    if dynamic is None:
        dynamic = system.arc_data(arc).dynamic.name
    erase_edge(system, arc, changelog)
    return add_random_edge(system, rng, changelog, dynamic)


class RewireMutate(Mutate):
    """
    Rewires between 1 and 10 undirected edges, the count drawn from an
    exponential distribution with unit mean.
    """

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def seed(self, seed: Optional[int]) -> None:
        self.rng = np.random.default_rng(seed)

    def rewire_count(self) -> int:
        n = int(self.rng.exponential(1.0))
        return min(max(n, 1), MAX_REWIRES)

    def mutate(self, system, changelog):
        for _ in range(self.rewire_count()):
            if not rewire_edge(system, self.rng, changelog):
                logger.debug("No edge could be rewired")
                break


class RandomMutate(Mutate):
    """
    Probability-driven mutation.

    Each of ``mutate_trials`` rounds fires every hook independently with its
    probability. Hooks can be overridden; the defaults act on undirected
    edges and give new entities the ``node_dynamic`` / ``arc_dynamic``.

    Example:
        mut = RandomMutate(seed=3, rewire=0.5, upd_edge=0.2, mutate_trials=2)
        mut.mutate(sys, ChangeLog())
    """

    HOOKS = ("new_node", "del_node", "new_edge", "del_edge",
             "upd_node", "upd_edge", "rewire", "duplicate")

    def __init__(
        self,
        seed: Optional[int] = None,
        mutate_trials: int = 1,
        node_dynamic: Optional[str] = None,
        arc_dynamic: Optional[str] = None,
        param_sigma: float = 0.1,
        **probabilities: float,
    ):
        unknown = set(probabilities) - set(self.HOOKS)
        if unknown:
            raise TypeError(f"Unknown mutation hooks: {sorted(unknown)}")
        self.rng = np.random.default_rng(seed)
        self.mutate_trials = mutate_trials
        self.node_dynamic = node_dynamic
        self.arc_dynamic = arc_dynamic
        self.param_sigma = param_sigma
        self.probabilities = {name: float(probabilities.get(name, 0.0)) for name in self.HOOKS}

    def seed(self, seed: Optional[int]) -> None:
        self.rng = np.random.default_rng(seed)

    def set_probability(self, hook: str, prob: float) -> None:
        if hook not in self.probabilities:
            raise KeyError(hook)
        self.probabilities[hook] = prob

    def mutate(self, system, changelog):
        for _ in range(self.mutate_trials):
            for name in self.HOOKS:
                if self.rng.random() < self.probabilities[name]:
                    getattr(self, name)(system, changelog)

    # ----- default hooks -----

    def _random_node(self, system) -> Optional[Node]:
        if system.count_nodes() == 0:
            return None
        return system.get_node(int(self.rng.integers(system.count_nodes())))

    def _random_arc(self, system) -> Optional[Arc]:
        if system.count_arcs() == 0:
            return None
        return system.get_arc(int(self.rng.integers(system.count_arcs())))

    def new_node(self, system, changelog):
        """Add a node attached by one undirected edge to a random node."""
        anchor = self._random_node(system)
        if anchor is None:
            return
        dyn = self.node_dynamic or system.node_data(anchor).dynamic.name
        v = system.add_node(dyn)
        changelog.add_node(system, v)
        changelog.add_arc(system, anchor, v)
        changelog.add_arc(system, v, anchor)
        system.add_edge(v, anchor, self.arc_dynamic or NULL_ARC_DYNAMIC)

    def del_node(self, system, changelog):
        """Remove a random node (never the last one) and its arcs."""
        if system.count_nodes() < 2:
            return
        v = self._random_node(system)
        for arc in dict.fromkeys(system.in_arcs(v) + system.out_arcs(v)):
            changelog.erase_arc(system, arc)
        changelog.erase_node(system, v)
        system.erase_node(v)

    def new_edge(self, system, changelog):
        if system.count_nodes() < 2:
            return
        add_random_edge(system, self.rng, changelog, self.arc_dynamic or NULL_ARC_DYNAMIC)

    def del_edge(self, system, changelog):
        arc = self._random_arc(system)
        if arc is not None:
            erase_edge(system, arc, changelog)

    def upd_node(self, system, changelog):
        """Perturb the parameters of a random node multiplicatively."""
        v = self._random_node(system)
        if v is None:
            return
        changelog.update_node(system, v)
        data = system.node_data(v)
        data.params = [p * (1.0 + self.param_sigma * self.rng.standard_normal())
                       for p in data.params]

    def upd_edge(self, system, changelog):
        """Perturb the weight of a random undirected edge (both arcs)."""
        arc = self._random_arc(system)
        if arc is None:
            return
        weight = system.arc_data(arc).weight * (1.0 + self.param_sigma * self.rng.standard_normal())
        partner = system.find_arc(arc.target, arc.source)
        for e in {arc, partner} - {None}:
            changelog.update_arc(system, e)
            system.arc_data(e).weight = weight

    def rewire(self, system, changelog):
        rewire_edge(system, self.rng, changelog, self.arc_dynamic)

    def duplicate(self, system, changelog):
        """Copy a random node, its parameters and its undirected neighbourhood."""
        original = self._random_node(system)
        if original is None:
            return
        data = system.node_data(original)
        v = system.add_node(data.dynamic.name, data.name)
        changelog.add_node(system, v)
        new_data = system.node_data(v)
        new_data.params = list(data.params)
        new_data.properties = list(data.properties)
        neighbours = {}
        for arc in system.out_arcs(original):
            if arc.target != original:
                neighbours.setdefault(arc.target, system.arc_data(arc).dynamic.name)
        for w, arc_dyn in neighbours.items():
            changelog.add_arc(system, w, v)
            changelog.add_arc(system, v, w)
            system.add_edge(v, w, arc_dyn)
