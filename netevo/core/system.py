"""
System: a directed network whose nodes and arcs carry pluggable dynamics.

The System owns:
- the topology (a networkx MultiDiGraph, parallel arcs and self-loops allowed)
- one NodeData / ArcData record per entity
- the dynamics registry (always seeded with the null dynamics)
- the state mapper giving every entity an offset into a flat state vector
- a private random number generator

Calling the System as ``system(x, dx, t)`` evaluates every node's and every
arc's dynamic, which is the function simulators integrate or iterate.

Example:
    sys = System(seed=1)
    sys.add_node_dynamic(KuramotoNodeMap())
    sys.ring_graph(10, 2, undirected=True, node_dynamic="KuramotoNodeMap")
    x0 = sys.rng.random(sys.total_states())
"""

from __future__ import annotations
from enum import Enum
from itertools import islice
import logging
from typing import Dict, List, Optional, Tuple

import networkx as nx
import numpy as np
from scipy import linalg

from .dynamics import (
    ArcDynamic, DynamicsRegistry, NodeDynamic,
    NULL_ARC_DYNAMIC, NULL_NODE_DYNAMIC,
)
from .entity import Arc, ArcData, Edge, Entity, Node, NodeData
from .state_mapper import StateMapper


logger = logging.getLogger(__name__)


class MatrixType(Enum):
    """Matrix built over the node enumeration for spectral analysis."""
    LAPLACIAN = 0
    ADJACENCY = 1


class System:
    """
    Network of dynamical nodes and arcs mapped onto a flat state vector.

    Nodes are identified by their integer keys and arcs by ``Arc`` handles.
    Keys are allocated from one counter, grow monotonically and are never
    reused within a System; copies keep them.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Create an empty System.

        Args:
            seed: Seed for the System's random number generator
        """
        self.graph = nx.MultiDiGraph()
        self.dynamics = DynamicsRegistry()
        self.mapper = StateMapper()
        self._next_key = 0
        self._rng = np.random.default_rng(seed)

    # ----- dynamics library -----

    def add_node_dynamic(self, dynamic: NodeDynamic) -> None:
        self.dynamics.add_node_dynamic(dynamic)

    def add_arc_dynamic(self, dynamic: ArcDynamic) -> None:
        self.dynamics.add_arc_dynamic(dynamic)

    def node_states(self) -> int:
        """State variables reserved per node."""
        return self.dynamics.node_state_width

    def arc_states(self) -> int:
        """State variables reserved per arc."""
        return self.dynamics.arc_state_width

    # ----- randomness -----

    def seed(self, seed: Optional[int]) -> None:
        """Re-seed the System's random number generator."""
        self._rng = np.random.default_rng(seed)

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    def rnd(self) -> float:
        """Uniform draw in [0, 1)."""
        return float(self._rng.random())

    # ----- keys -----

    def next_key(self) -> int:
        return self._next_key

    def reserve_keys(self, below: int) -> None:
        """Make sure keys lower than ``below`` are never allocated automatically."""
        self._next_key = max(self._next_key, below)

    def _allocate_key(self, key: Optional[int] = None) -> int:
        if key is None:
            key = self._next_key
        elif key in self._keys_in_use():
            raise KeyError(f"Key {key} is already in use")
        self._next_key = max(self._next_key, key + 1)
        return key

    def _keys_in_use(self) -> set:
        keys = set(self.graph.nodes)
        keys.update(k for _, _, k in self.graph.edges(keys=True))
        return keys

    # ----- structure -----

    def add_node(
        self,
        dynamic: str = NULL_NODE_DYNAMIC,
        name: str = "",
        key: Optional[int] = None,
    ) -> Node:
        """
        Add a node using a registered node dynamic.

        Args:
            dynamic: Name of a registered node dynamic
            name: Display name
            key: Explicit identity key (used when restoring saved systems);
                allocated from the key counter when None

        Raises:
            UnknownDynamic: ``dynamic`` is not registered
            KeyError: ``key`` is already in use
        """
        dyn = self.dynamics.node_dynamic(dynamic)
        v = self._allocate_key(key)
        self.graph.add_node(v, data=NodeData(key=v, dynamic=dyn, name=name))
        dyn.set_default_parameters(v, self)
        self.mapper.invalidate_nodes()
        return v

    def add_arc(
        self,
        u: Node,
        v: Node,
        dynamic: str = NULL_ARC_DYNAMIC,
        name: str = "",
        key: Optional[int] = None,
    ) -> Arc:
        """
        Add an arc u -> v using a registered arc dynamic.

        ``key`` behaves as in :meth:`add_node`.

        Raises:
            UnknownDynamic: ``dynamic`` is not registered
            KeyError: either endpoint is not a node of this System
        """
        dyn = self.dynamics.arc_dynamic(dynamic)
        for n in (u, v):
            if n not in self.graph:
                raise KeyError(f"Node {n} is not part of this system")
        key = self._allocate_key(key)
        self.graph.add_edge(u, v, key=key, data=ArcData(key=key, dynamic=dyn, name=name))
        e = Arc(u, v, key)
        dyn.set_default_parameters(e, self)
        self.mapper.invalidate_arcs()
        return e

    def add_edge(
        self,
        u: Node,
        v: Node,
        dynamic: str = NULL_ARC_DYNAMIC,
        name: str = "",
    ) -> Edge:
        """Add arcs v -> u and u -> v with the same dynamic and name."""
        a1 = self.add_arc(v, u, dynamic, name)
        a2 = self.add_arc(u, v, dynamic, name)
        return (a1, a2)

    def erase_node(self, v: Node) -> None:
        """Remove a node together with all of its incident arcs."""
        if self.graph.degree(v) > 0:
            self.mapper.invalidate_arcs()
        self.graph.remove_node(v)
        self.mapper.invalidate_nodes()

    def erase_arc(self, e: Arc) -> None:
        """
        Remove a single arc.

        The reverse arc of an undirected edge is not touched.
        """
        self.graph.remove_edge(e.source, e.target, key=e.key)
        self.mapper.invalidate_arcs()

    def erase(self, entity: Entity) -> None:
        if isinstance(entity, Arc):
            self.erase_arc(entity)
        else:
            self.erase_node(entity)

    def clear(self) -> None:
        """Remove every node and arc. Keys already handed out stay retired."""
        self.graph.clear()
        self.mapper.invalidate()

    def reset_keys(self) -> None:
        """Restart key allocation at 0. Only valid on an empty System."""
        if self.graph.number_of_nodes():
            raise ValueError("Keys can only be reset on an empty System")
        self._next_key = 0

    # ----- access -----

    def node_data(self, v: Node) -> NodeData:
        return self.graph.nodes[v]["data"]

    def arc_data(self, e: Arc) -> ArcData:
        return self.graph[e.source][e.target][e.key]["data"]

    def has_node(self, v: Node) -> bool:
        return v in self.graph

    def has_arc(self, e: Arc) -> bool:
        return self.graph.has_edge(e.source, e.target, key=e.key)

    def nodes(self) -> List[Node]:
        """Snapshot of all nodes in iteration order."""
        return list(self.graph.nodes)

    def arcs(self) -> List[Arc]:
        """Snapshot of all arcs in iteration order."""
        return [Arc(u, v, k) for u, v, k in self.graph.edges(keys=True)]

    def in_arcs(self, v: Node) -> List[Arc]:
        return [Arc(u, w, k) for u, w, k in self.graph.in_edges(v, keys=True)]

    def out_arcs(self, v: Node) -> List[Arc]:
        return [Arc(u, w, k) for u, w, k in self.graph.out_edges(v, keys=True)]

    @staticmethod
    def source(e: Arc) -> Node:
        return e.source

    @staticmethod
    def target(e: Arc) -> Node:
        return e.target

    def find_arc(self, u: Node, v: Node) -> Optional[Arc]:
        """First arc u -> v, or None."""
        if not self.graph.has_edge(u, v):
            return None
        k = next(iter(self.graph[u][v]))
        return Arc(u, v, k)

    def count_nodes(self) -> int:
        return self.graph.number_of_nodes()

    def count_arcs(self) -> int:
        return self.graph.number_of_edges()

    def get_node(self, index: int) -> Node:
        """Node at position ``index`` of the iteration order."""
        return next(islice(self.graph.nodes, index, None))

    def get_arc(self, index: int) -> Arc:
        """Arc at position ``index`` of the iteration order."""
        u, v, k = next(islice(self.graph.edges(keys=True), index, None))
        return Arc(u, v, k)

    # ----- state mapping -----

    def total_states(self) -> int:
        """Length of any state vector for the current topology."""
        return (self.node_states() * self.count_nodes()
                + self.arc_states() * self.count_arcs())

    def valid_state_ids(self) -> bool:
        return self.mapper.valid

    def refresh_state_ids(self) -> None:
        """Rebuild the invalid enumeration tables; O(|V| + |E|)."""
        self.mapper.refresh(self.graph.nodes, self.arcs() if not self.mapper.arcs_valid else ())

    def state_id(self, entity: Entity) -> int:
        """
        Offset of an entity's block in the state vector.

        Raises:
            StaleStateIDs: the mapping for that entity kind is out of date
        """
        if isinstance(entity, Arc):
            return self.mapper.arc_offset(
                entity, self.node_states(), self.count_nodes(), self.arc_states()
            )
        return self.mapper.node_offset(entity, self.node_states())

    def __call__(self, x: np.ndarray, dx: np.ndarray, t: float) -> None:
        """
        Aggregate update: every node's then every arc's dynamic writes into ``dx``.

        Requires valid state IDs. Nothing but ``dx`` is modified.
        """
        if self.node_states() > 0:
            for v, data in self.graph.nodes(data="data"):
                data.dynamic.derivative(v, self, x, dx, t)
        if self.arc_states() > 0:
            for u, v, k, data in self.graph.edges(keys=True, data="data"):
                data.dynamic.derivative(Arc(u, v, k), self, x, dx, t)

    aggregate_update = __call__

    # ----- copying -----

    def copy(self) -> "System":
        """
        Deep copy of topology and entity data.

        The copy shares the dynamics registry, keeps keys and the key
        counter, gets its own RNG spawned from this one and starts with invalid
        state IDs.
        """
        other = System.__new__(System)
        other.graph = nx.MultiDiGraph()
        for v, data in self.graph.nodes(data="data"):
            other.graph.add_node(v, data=data.copy())
        for u, v, k, data in self.graph.edges(keys=True, data="data"):
            other.graph.add_edge(u, v, key=k, data=data.copy())
        other.dynamics = self.dynamics
        other.mapper = StateMapper()
        other.mapper.invalidate()
        other._next_key = self._next_key
        other._rng = self._rng.spawn(1)[0]
        return other

    def copy_digraph(
        self,
        graph: nx.Graph,
        node_dynamic: str = NULL_NODE_DYNAMIC,
        arc_dynamic: str = NULL_ARC_DYNAMIC,
    ) -> Dict[object, Node]:
        """
        Replace this System's structure with that of a networkx graph.

        Every node and arc gets the given default dynamic and its default
        parameters. Undirected input graphs produce symmetric arc pairs.

        Returns:
            Cross-reference map from ``graph``'s nodes to the new nodes
        """
        self.dynamics.node_dynamic(node_dynamic)
        self.dynamics.arc_dynamic(arc_dynamic)
        self.clear()

        ref = {n: self.add_node(node_dynamic) for n in graph.nodes}
        for u, v in graph.edges():
            if graph.is_directed() or u == v:
                self.add_arc(ref[u], ref[v], arc_dynamic)
            else:
                self.add_edge(ref[u], ref[v], arc_dynamic)
        return ref

    # ----- generators -----

    def random_graph(
        self,
        edge_probability: float,
        node_count: int,
        self_loops: bool = False,
        undirected: bool = False,
        node_dynamic: str = NULL_NODE_DYNAMIC,
        arc_dynamic: str = NULL_ARC_DYNAMIC,
    ) -> None:
        """
        Replace the System with a random (Erdős–Rényi style) topology.

        Every ordered node pair draws once; an arc (or, if ``undirected``, a
        symmetric pair when none exists yet) is added when the draw is below
        ``edge_probability``.
        """
        self.dynamics.node_dynamic(node_dynamic)
        self.dynamics.arc_dynamic(arc_dynamic)
        self.clear()

        nodes = [self.add_node(node_dynamic) for _ in range(node_count)]
        for n1 in nodes:
            for n2 in nodes:
                if n1 == n2 and not self_loops:
                    continue
                if self._rng.random() < edge_probability:
                    if not undirected:
                        self.add_arc(n1, n2, arc_dynamic)
                    elif self.find_arc(n1, n2) is None:
                        if n1 == n2:
                            self.add_arc(n1, n2, arc_dynamic)
                        else:
                            self.add_edge(n1, n2, arc_dynamic)

        logger.debug(f"Random graph: {node_count} nodes, {self.count_arcs()} arcs")
        self.refresh_state_ids()

    def ring_graph(
        self,
        node_count: int,
        neighbours: int,
        undirected: bool = True,
        node_dynamic: str = NULL_NODE_DYNAMIC,
        arc_dynamic: str = NULL_ARC_DYNAMIC,
    ) -> None:
        """
        Replace the System with a ring lattice.

        Node i is connected to nodes i+1 ... i+neighbours (wrapping). Pairs
        that are already connected and self-pairs are skipped, so rings with
        ``neighbours >= node_count / 2`` contain no duplicate arcs.
        """
        self.dynamics.node_dynamic(node_dynamic)
        self.dynamics.arc_dynamic(arc_dynamic)
        self.clear()

        nodes = [self.add_node(node_dynamic) for _ in range(node_count)]
        for i, v in enumerate(nodes):
            for j in range(i + 1, i + neighbours + 1):
                w = nodes[j % node_count]
                if w == v or self.find_arc(v, w) is not None:
                    continue
                if undirected:
                    self.add_edge(v, w, arc_dynamic)
                else:
                    self.add_arc(v, w, arc_dynamic)

        logger.debug(f"Ring graph: {node_count} nodes, {self.count_arcs()} arcs")
        self.refresh_state_ids()

    def make_undirected(self) -> None:
        """Add a reverse arc (copying its data) for every arc lacking one."""
        for e in self.arcs():
            if self.find_arc(e.target, e.source) is not None:
                continue
            data = self.arc_data(e)
            rev = self.add_arc(e.target, e.source, data.dynamic.name, data.name)
            rev_data = self.arc_data(rev)
            rev_data.weight = data.weight
            rev_data.properties = list(data.properties)
            rev_data.params = list(data.params)

    # ----- analysis -----

    def weakly_connected_components(self) -> int:
        """Number of connected components ignoring arc direction."""
        return nx.number_weakly_connected_components(self.graph)

    def matrix(self, kind: MatrixType = MatrixType.LAPLACIAN) -> np.ndarray:
        """
        Dense matrix over the current node order.

        Adjacency: A[i, j] = 1 if an arc i -> j exists.
        Laplacian: the adjacency off-diagonal with -out_degree(i) on the diagonal.
        """
        index = {v: i for i, v in enumerate(self.graph.nodes)}
        n = len(index)
        A = np.zeros((n, n))
        for u, v in self.graph.edges():
            A[index[u], index[v]] = 1.0
        if kind == MatrixType.LAPLACIAN:
            for v, i in index.items():
                A[i, i] = -float(self.graph.out_degree(v))
        return A

    def eigenvalues(self, kind: MatrixType = MatrixType.LAPLACIAN) -> np.ndarray:
        """Complex eigenvalues of the Laplacian or adjacency matrix."""
        A = self.matrix(kind)
        if A.size == 0:
            return np.zeros(0, dtype=complex)
        return linalg.eigvals(A)

    def eigensystem(
        self, kind: MatrixType = MatrixType.LAPLACIAN
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Complex eigenvalues and right eigenvectors (as columns)."""
        A = self.matrix(kind)
        if A.size == 0:
            return np.zeros(0, dtype=complex), np.zeros((0, 0), dtype=complex)
        values, vectors = linalg.eig(A)
        return values, vectors.astype(complex)

    def summary(self) -> str:
        return (f"System(nodes={self.count_nodes()}, arcs={self.count_arcs()}, "
                f"node_states={self.node_states()}, arc_states={self.arc_states()})")

    def __repr__(self) -> str:
        return self.summary()
