"""
Error types raised by NetEvo.

Structural rejections during evolution (e.g. a trial that disconnects the
network) are not errors and never raise.
"""

from __future__ import annotations


class NetEvoError(Exception):
    """Base class for all NetEvo errors."""


class UnknownDynamic(NetEvoError, KeyError):
    """A dynamic name was not found in the system's registry."""

    def __init__(self, name: str, kind: str = "node"):
        self.name = name
        self.kind = kind
        super().__init__(f"Unknown {kind} dynamic: {name!r}")

    def __str__(self) -> str:
        return self.args[0]


class StateSizeMismatch(NetEvoError, ValueError):
    """A state vector does not have ``System.total_states()`` entries."""

    def __init__(self, expected: int, got: int):
        self.expected = expected
        self.got = got
        super().__init__(
            f"Incorrect number of states for initial conditions: "
            f"expected {expected}, got {got}"
        )


class InvalidFile(NetEvoError, OSError):
    """A network file could not be opened or failed to parse."""


class StaleStateIDs(NetEvoError, RuntimeError):
    """State offsets were requested while the state mapping is out of date."""


class DegenerateTemperatureWarning(RuntimeWarning):
    """Annealing met a non-positive temperature; the trial was rejected."""
