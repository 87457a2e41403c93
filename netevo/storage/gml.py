"""
GML persistence of Systems.

Saved files keep the identity keys of nodes and arcs, display names,
positions, properties, weights, dynamic names and parameter vectors. File
node ids are positions in the node order at save time.

Example:
    save_gml(sys, "net.gml")
    other = System()
    other.add_node_dynamic(KuramotoNodeMap())
    load_gml(other, "net.gml")
"""

from __future__ import annotations
from datetime import datetime
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional, Union

import networkx as nx

from ..core.dynamics import NULL_ARC_DYNAMIC, NULL_NODE_DYNAMIC
from ..core.entity import Position
from ..errors import InvalidFile

if TYPE_CHECKING:
    from ..core.system import System


logger = logging.getLogger(__name__)

CREATOR = "NetEvo"


def _escape(text: str) -> str:
    out = []
    for ch in text:
        if ch == "&":
            out.append("&amp;")
        elif ch == '"':
            out.append("&quot;")
        elif ord(ch) > 127:
            out.append(f"&#{ord(ch)};")
        else:
            out.append(ch)
    return "".join(out)


def _real(value: float) -> str:
    """Float literal the GML tokenizer reads back as a real."""
    value = float(value)
    if value != value:
        return "NAN"
    if value in (float("inf"), float("-inf")):
        return "INF" if value > 0 else "-INF"
    text = repr(value)
    if "." not in text:
        mantissa, _, exponent = text.partition("e")
        text = mantissa + ".0" + ("e" + exponent if exponent else "")
    return text


def _join(values: Iterable[float]) -> str:
    return ",".join(repr(float(v)) for v in values)


def _split(text, what: str) -> List[float]:
    try:
        return [float(s) for s in str(text).split(",") if s.strip()]
    except ValueError as e:
        raise InvalidFile(f"Malformed {what}: {text!r}") from e


def save_gml(system: "System", path: Union[str, Path]) -> Path:
    """
    Write a System to a GML file.

    Raises:
        InvalidFile: the file cannot be written
    """
    path = Path(path)
    from .. import __version__

    ids = {v: i for i, v in enumerate(system.nodes())}
    lines = [
        f'Creator "{CREATOR} {__version__} on {datetime.now().strftime("%c")}"',
        "graph [",
        " directed 1",
        " multigraph 1",
    ]
    for v, i in ids.items():
        data = system.node_data(v)
        pos = data.position
        lines += [
            " node [",
            f"  id {i}",
            f"  key {data.key}",
            f'  label "{_escape(data.name)}"',
            f"  graphics [ x {_real(pos.x)} y {_real(pos.y)} z {_real(pos.z)} ]",
            f'  properties "{_join(data.properties)}"',
            f'  dynName "{_escape(data.dynamic.name)}"',
            f'  dynParams "{_join(data.params)}"',
            " ]",
        ]
    for e in system.arcs():
        data = system.arc_data(e)
        lines += [
            " edge [",
            f"  source {ids[e.source]}",
            f"  target {ids[e.target]}",
            f"  key {data.key}",
            f'  label "{_escape(data.name)}"',
            f"  weight {_real(data.weight)}",
            f'  properties "{_join(data.properties)}"',
            f'  dynName "{_escape(data.dynamic.name)}"',
            f'  dynParams "{_join(data.params)}"',
            " ]",
        ]
    lines.append("]")

    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")
    except OSError as e:
        raise InvalidFile(f"Cannot write {path}: {e}") from e

    logger.info(f"Saved {system.count_nodes()} nodes and {system.count_arcs()} arcs to {path}")
    return path


def _int_key(value) -> Optional[int]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return None


def _real_attr(value, what: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidFile(f"Malformed {what}: {value!r}") from e


def _position(attrs) -> Position:
    graphics = attrs.get("graphics", {})
    if not isinstance(graphics, dict):
        return Position()
    return Position(*(_real_attr(graphics.get(c, 0.0), "graphics") for c in "xyz"))


def _entity(attrs, null_dynamic: str) -> dict:
    """Every value of a node or edge block, parsed before the target is touched."""
    entity = {
        "dynamic": str(attrs.get("dynName", null_dynamic)),
        "name": str(attrs.get("label", "")),
        "key": _int_key(attrs.get("key")),
    }
    if "properties" in attrs:
        entity["properties"] = _split(attrs["properties"], "properties")
    if "dynParams" in attrs:
        entity["params"] = _split(attrs["dynParams"], "dynParams")
    return entity


def load_gml(system: "System", path: Union[str, Path]) -> None:
    """
    Replace the contents of ``system`` with a GML file.

    Every dynamic named in the file must already be registered in
    ``system``; entities without a ``dynName`` get the null dynamic. The
    whole file is validated first, so a failed load leaves ``system`` as it
    was.

    Raises:
        FileNotFoundError: ``path`` does not exist
        InvalidFile: the file cannot be read or is not valid GML
        UnknownDynamic: a named dynamic is not registered
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidFile(f"Cannot read {path}: {e}") from e

    try:
        graph = nx.parse_gml(lines, label="id")
    except (nx.NetworkXError, ValueError) as e:
        raise InvalidFile(f"Cannot parse {path}: {e}") from e

    if graph.is_multigraph():
        edges = [(u, v, k, d) for u, v, k, d in graph.edges(keys=True, data=True)]
    else:
        edges = [(u, v, d.get("key"), d) for u, v, d in graph.edges(data=True)]

    nodes = []
    for n, attrs in graph.nodes(data=True):
        entity = _entity(attrs, NULL_NODE_DYNAMIC)
        system.dynamics.node_dynamic(entity["dynamic"])
        entity["position"] = _position(attrs)
        nodes.append((n, entity))
    arcs = []
    for u, v, k, attrs in edges:
        entity = _entity(attrs, NULL_ARC_DYNAMIC)
        system.dynamics.arc_dynamic(entity["dynamic"])
        entity["key"] = _int_key(k)
        if "weight" in attrs:
            entity["weight"] = _real_attr(attrs["weight"], "weight")
        arcs.append((u, v, entity))

    explicit = [e["key"] for _, e in nodes if e["key"] is not None]
    if len(explicit) != len(set(explicit)):
        raise InvalidFile(f"Duplicate node keys in {path}")

    system.clear()
    all_keys = explicit + [e["key"] for _, _, e in arcs if e["key"] is not None]
    if all_keys:
        system.reserve_keys(max(all_keys) + 1)

    ref = {}
    for n, entity in nodes:
        v = system.add_node(entity["dynamic"], entity["name"], key=entity["key"])
        ref[n] = v
        data = system.node_data(v)
        data.position = entity["position"]
        if "properties" in entity:
            data.properties = entity["properties"]
        if "params" in entity:
            data.params = entity["params"]

    used = set(system.nodes())
    directed = graph.is_directed()
    for u, v, entity in arcs:
        key = entity["key"]
        if directed or u == v:
            if key in used:
                logger.debug(f"Edge key {key} already used; allocating a fresh one")
                key = None
            created = [system.add_arc(ref[u], ref[v], entity["dynamic"], entity["name"], key=key)]
        else:
            created = list(system.add_edge(ref[u], ref[v], entity["dynamic"], entity["name"]))
        for e in created:
            used.add(e.key)
            data = system.arc_data(e)
            if "weight" in entity:
                data.weight = entity["weight"]
            if "properties" in entity:
                data.properties = list(entity["properties"])
            if "params" in entity:
                data.params = list(entity["params"])

    system.refresh_state_ids()
    logger.info(f"Loaded {system.count_nodes()} nodes and {system.count_arcs()} arcs from {path}")
