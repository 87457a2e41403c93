"""
Observers receiving the states produced by a simulation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, TextIO

import numpy as np

from ..core.changelog import ChangeLog, StepType

if TYPE_CHECKING:
    from ..core.system import System


@dataclass
class SimulationResult:
    """Trajectory of a simulation: one state per observed time."""
    states: List[np.ndarray] = field(default_factory=list)
    times: List[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.states)

    @property
    def final_state(self) -> Optional[np.ndarray]:
        return self.states[-1] if self.states else None

    def as_array(self) -> np.ndarray:
        """States stacked as a (time, state) array."""
        if not self.states:
            return np.zeros((0, 0))
        return np.vstack(self.states)


class SimObserver:
    """Observer that ignores every state."""

    def __call__(self, x: np.ndarray, t: float) -> None:
        pass


class RecordingObserver(SimObserver):
    """
    Keeps a copy of every observed state and time.

    Example:
        obs = RecordingObserver()
        SimulateMap().simulate(sys, 10, x0, obs)
        trajectory = obs.result.as_array()
    """

    def __init__(self):
        self.states: List[np.ndarray] = []
        self.times: List[float] = []

    def __call__(self, x, t):
        self.states.append(np.array(x, dtype=float, copy=True))
        self.times.append(float(t))

    @property
    def result(self) -> SimulationResult:
        return SimulationResult(states=self.states, times=self.times)

    def clear(self) -> None:
        self.states = []
        self.times = []


class StreamObserver(SimObserver):
    """Writes ``t = <t>, state = (x0, x1, ...)`` lines to a text stream."""

    def __init__(self, out: TextIO):
        self.out = out

    def __call__(self, x, t):
        values = ", ".join(f"{float(s):g}" for s in x)
        self.out.write(f"t = {t:g}, state = ({values})\n")


class ObserverPassThrough:
    """
    Adapter called by the steppers after every accepted step.

    Logs the state as a simulation step (committing it immediately) and then
    forwards it to the user observer.
    """

    def __init__(self, system: "System", observer: SimObserver, changelog: ChangeLog):
        self.system = system
        self.observer = observer
        self.changelog = changelog

    def __call__(self, x: np.ndarray, t: float) -> None:
        self.changelog.new_state(self.system, x)
        self.changelog.end_step(StepType.SIMULATION)
        self.changelog.commit()
        self.observer(x, t)
