"""
Change logging for Systems.

A ChangeLog receives notifications about structural edits, parameter updates
and new simulated states. Notifications are made *before* the corresponding
change is applied and are framed by ``commit()`` / ``rollback()`` so a batch
(e.g. one evolutionary trial) can be flushed or discarded atomically.
"""

from __future__ import annotations
from enum import Enum
from io import StringIO
from typing import TYPE_CHECKING, List, TextIO

import numpy as np

if TYPE_CHECKING:
    from .entity import Arc, Node
    from .system import System


class StepType(Enum):
    """Kinds of step that terminate a batch of changes."""
    INIT = 0
    SIMULATION = 1
    EVOLUTION = 2


class ChangeLog:
    """Change log that ignores every notification."""

    def add_node(self, system: "System", node: "Node") -> None:
        pass

    def add_arc(self, system: "System", source: "Node", target: "Node") -> None:
        pass

    def erase_node(self, system: "System", node: "Node") -> None:
        pass

    def erase_arc(self, system: "System", arc: "Arc") -> None:
        pass

    def update_node(self, system: "System", node: "Node") -> None:
        pass

    def update_arc(self, system: "System", arc: "Arc") -> None:
        pass

    def new_state(self, system: "System", state: np.ndarray) -> None:
        pass

    def end_step(self, step_type: StepType) -> None:
        pass

    def rollback(self) -> None:
        pass

    def commit(self) -> None:
        pass


class ChangeLogSet(ChangeLog):
    """Forwards every notification to each of a list of change logs."""

    def __init__(self, *logs: ChangeLog):
        self._logs: List[ChangeLog] = list(logs)

    def add_change_log(self, log: ChangeLog) -> None:
        self._logs.append(log)

    def __len__(self) -> int:
        return len(self._logs)

    def add_node(self, system, node):
        for log in self._logs:
            log.add_node(system, node)

    def add_arc(self, system, source, target):
        for log in self._logs:
            log.add_arc(system, source, target)

    def erase_node(self, system, node):
        for log in self._logs:
            log.erase_node(system, node)

    def erase_arc(self, system, arc):
        for log in self._logs:
            log.erase_arc(system, arc)

    def update_node(self, system, node):
        for log in self._logs:
            log.update_node(system, node)

    def update_arc(self, system, arc):
        for log in self._logs:
            log.update_arc(system, arc)

    def new_state(self, system, state):
        for log in self._logs:
            log.new_state(system, state)

    def end_step(self, step_type):
        for log in self._logs:
            log.end_step(step_type)

    def rollback(self):
        for log in self._logs:
            log.rollback()

    def commit(self):
        for log in self._logs:
            log.commit()


_STEP_MARKERS = {
    StepType.INIT: "---",
    StepType.SIMULATION: "-",
    StepType.EVOLUTION: "--",
}


class ChangeLogToStream(ChangeLog):
    """
    Writes a compact textual log to a stream.

    Records are buffered until :meth:`commit`; :meth:`rollback` drops them.
    Entities are identified by their stable keys, arcs by the keys of their
    endpoints:

        N+,3          node 3 added
        E+,3,5        arc 3->5 added
        NS,3,0.1,0.2  state of node 3
        -             end of a simulation step
    """

    def __init__(self, out: TextIO):
        self._out = out
        self._buffer = StringIO()

    def _arc_keys(self, system, arc) -> str:
        return f"{system.node_data(arc.source).key},{system.node_data(arc.target).key}"

    def add_node(self, system, node):
        self._buffer.write(f"N+,{system.node_data(node).key}\n")

    def add_arc(self, system, source, target):
        self._buffer.write(
            f"E+,{system.node_data(source).key},{system.node_data(target).key}\n"
        )

    def erase_node(self, system, node):
        self._buffer.write(f"N-,{system.node_data(node).key}\n")

    def erase_arc(self, system, arc):
        self._buffer.write(f"E-,{self._arc_keys(system, arc)}\n")

    def update_node(self, system, node):
        self._buffer.write(f"NU,{system.node_data(node).key}\n")

    def update_arc(self, system, arc):
        self._buffer.write(f"EU,{self._arc_keys(system, arc)}\n")

    def new_state(self, system, state):
        if not system.valid_state_ids():
            system.refresh_state_ids()
        width = system.node_states()
        if width > 0:
            for v in system.nodes():
                i = system.state_id(v)
                values = ",".join(repr(float(s)) for s in state[i:i + width])
                self._buffer.write(f"NS,{system.node_data(v).key},{values}\n")
        width = system.arc_states()
        if width > 0:
            for e in system.arcs():
                i = system.state_id(e)
                values = ",".join(repr(float(s)) for s in state[i:i + width])
                self._buffer.write(f"ES,{self._arc_keys(system, e)},{values}\n")

    def end_step(self, step_type):
        self._buffer.write(_STEP_MARKERS[step_type] + "\n")

    def rollback(self):
        self._buffer = StringIO()

    def commit(self):
        self._out.write(self._buffer.getvalue())
        self.rollback()
