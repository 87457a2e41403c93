"""
Tests for change logs.
"""

import io

import numpy as np

from netevo.core import ChangeLog, ChangeLogSet, ChangeLogToStream, StepType, System
from netevo.library import KuramotoNodeMap


class RecordingLog(ChangeLog):
    """Change log remembering the names of the hooks called."""

    def __init__(self):
        self.calls = []

    def add_node(self, system, node):
        self.calls.append("add_node")

    def end_step(self, step_type):
        self.calls.append(step_type)

    def commit(self):
        self.calls.append("commit")


class TestChangeLogToStream:
    """Tests for the textual change log."""

    def test_records_buffered_until_commit(self):
        """Test nothing is written before commit."""
        system = System()
        v = system.add_node()
        out = io.StringIO()
        log = ChangeLogToStream(out)
        log.add_node(system, v)
        assert out.getvalue() == ""
        log.commit()
        assert out.getvalue() == f"N+,{v}\n"

    def test_rollback_discards(self):
        """Test rollback drops the buffer."""
        system = System()
        v = system.add_node()
        out = io.StringIO()
        log = ChangeLogToStream(out)
        log.erase_node(system, v)
        log.rollback()
        log.commit()
        assert out.getvalue() == ""

    def test_arc_records(self):
        """Test arc records use endpoint keys."""
        system = System()
        u, v = system.add_node(), system.add_node()
        e = system.add_arc(u, v)
        out = io.StringIO()
        log = ChangeLogToStream(out)
        log.add_arc(system, u, v)
        log.update_arc(system, e)
        log.erase_arc(system, e)
        log.update_node(system, u)
        log.commit()
        assert out.getvalue().splitlines() == ["E+,0,1", "EU,0,1", "E-,0,1", "NU,0"]

    def test_step_markers(self):
        """Test each step type has its terminator."""
        out = io.StringIO()
        log = ChangeLogToStream(out)
        log.end_step(StepType.INIT)
        log.end_step(StepType.SIMULATION)
        log.end_step(StepType.EVOLUTION)
        log.commit()
        assert out.getvalue().splitlines() == ["---", "-", "--"]

    def test_state_records(self):
        """Test node states are written per node key."""
        system = System()
        system.add_node_dynamic(KuramotoNodeMap())
        system.ring_graph(2, 1, node_dynamic="KuramotoNodeMap")
        out = io.StringIO()
        log = ChangeLogToStream(out)
        log.new_state(system, np.array([0.5, 1.5]))
        log.commit()
        assert out.getvalue().splitlines() == ["NS,0,0.5", "NS,1,1.5"]


class TestChangeLogSet:
    """Tests for fanning out notifications."""

    def test_fan_out(self):
        """Test every member log receives every call."""
        a, b = RecordingLog(), RecordingLog()
        logs = ChangeLogSet(a)
        logs.add_change_log(b)
        assert len(logs) == 2

        system = System()
        logs.add_node(system, system.add_node())
        logs.end_step(StepType.EVOLUTION)
        logs.commit()
        logs.rollback()
        assert a.calls == b.calls == ["add_node", StepType.EVOLUTION, "commit"]

    def test_null_log(self):
        """Test the base change log accepts everything silently."""
        log = ChangeLog()
        system = System()
        v = system.add_node()
        log.add_node(system, v)
        log.new_state(system, np.zeros(0))
        log.end_step(StepType.INIT)
        log.rollback()
        log.commit()
