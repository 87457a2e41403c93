"""
Simulation strategies.

Each simulator runs a System from an initial state vector up to a horizon
``t_max`` and reports every produced state to an observer (and to a change
log, as a committed simulation step). The System itself is the update
function: ``system(x, dx, t)``.

Example:
    obs = RecordingObserver()
    sim = SimulateOdeFixed(FixedStepper.RK4, step_size=0.01)
    final = sim.simulate(sys, 10.0, x0, obs)
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import logging
from typing import TYPE_CHECKING, Callable, Optional, Tuple

import numpy as np

from ..core.changelog import ChangeLog
from ..errors import StateSizeMismatch
from .integrators import (
    AdaptiveStepper, FixedStepper,
    integrate_adaptive, integrate_const, integrate_fixed,
)
from .observers import ObserverPassThrough, SimObserver

if TYPE_CHECKING:
    from ..core.system import System


logger = logging.getLogger(__name__)


class Simulate(ABC):
    """Interface shared by all simulators."""

    @abstractmethod
    def simulate(
        self,
        system: "System",
        t_max: float,
        initial: np.ndarray,
        observer: Optional[SimObserver] = None,
        changelog: Optional[ChangeLog] = None,
    ) -> np.ndarray:
        """
        Simulate ``system`` from ``initial`` up to ``t_max``.

        Args:
            system: System to simulate
            t_max: Simulation horizon
            initial: Initial state vector of length ``system.total_states()``;
                it is never modified
            observer: Receives ``(state, t)`` for t = 0 and every step
            changelog: Receives every state as a committed simulation step

        Returns:
            Final state

        Raises:
            StateSizeMismatch: ``initial`` has the wrong length
        """
        pass

    def _prepare(
        self,
        system: "System",
        initial: np.ndarray,
        observer: Optional[SimObserver],
        changelog: Optional[ChangeLog],
    ) -> Tuple[np.ndarray, ObserverPassThrough]:
        x = np.array(initial, dtype=float, copy=True).ravel()
        expected = system.total_states()
        if x.size != expected:
            logger.error(
                f"Incorrect number of states for initial conditions "
                f"({type(self).__name__}: expected {expected}, got {x.size})"
            )
            raise StateSizeMismatch(expected, x.size)
        if not system.valid_state_ids():
            system.refresh_state_ids()
        passthrough = ObserverPassThrough(
            system,
            observer if observer is not None else SimObserver(),
            changelog if changelog is not None else ChangeLog(),
        )
        return x, passthrough

    @staticmethod
    def _rhs(system: "System") -> Callable[[np.ndarray, float], np.ndarray]:
        def rhs(x, t):
            dx = np.zeros_like(x)
            system(x, dx, t)
            return dx
        return rhs


class SimulateMap(Simulate):
    """
    Iterated map: x(t+1) = f(x(t), t) for integer t up to floor(t_max).

    Dynamics write the next state into ``dx``.
    """

    def simulate(self, system, t_max, initial, observer=None, changelog=None):
        x, passthrough = self._prepare(system, initial, observer, changelog)
        buffers = [x, x.copy()]
        passthrough(buffers[0], 0.0)

        steps = int(np.floor(t_max))
        for t in range(1, steps + 1):
            old, new = buffers[(t - 1) % 2], buffers[t % 2]
            system(old, new, float(t))
            passthrough(new, float(t))
        return buffers[max(steps, 0) % 2].copy()


class SimulateOdeFixed(Simulate):
    """ODE integration with a fixed step size."""

    def __init__(self, stepper: FixedStepper = FixedStepper.RK4, step_size: float = 0.01):
        self.stepper = stepper
        self.step_size = step_size

    def simulate(self, system, t_max, initial, observer=None, changelog=None):
        x, passthrough = self._prepare(system, initial, observer, changelog)
        if x.size == 0:
            passthrough(x, 0.0)
            return x
        return integrate_fixed(
            self._rhs(system), x, t_max, self.step_size, self.stepper, passthrough
        )


class SimulateOdeConst(Simulate):
    """Error-controlled ODE integration observed at a constant output interval."""

    def __init__(
        self,
        stepper: AdaptiveStepper = AdaptiveStepper.DOPRI5,
        eps_abs: float = 1e-6,
        eps_rel: float = 1e-6,
        output_step: float = 0.1,
    ):
        self.stepper = stepper
        self.eps_abs = eps_abs
        self.eps_rel = eps_rel
        self.output_step = output_step

    def simulate(self, system, t_max, initial, observer=None, changelog=None):
        x, passthrough = self._prepare(system, initial, observer, changelog)
        if x.size == 0:
            passthrough(x, 0.0)
            return x
        return integrate_const(
            self._rhs(system), x, t_max, self.output_step, self.stepper,
            self.eps_abs, self.eps_rel, passthrough,
        )


class SimulateOdeAdaptive(Simulate):
    """Error-controlled ODE integration observed after every accepted step."""

    def __init__(
        self,
        stepper: AdaptiveStepper = AdaptiveStepper.DOPRI5,
        eps_abs: float = 1e-6,
        eps_rel: float = 1e-6,
        initial_step: Optional[float] = 0.01,
    ):
        self.stepper = stepper
        self.eps_abs = eps_abs
        self.eps_rel = eps_rel
        self.initial_step = initial_step

    def simulate(self, system, t_max, initial, observer=None, changelog=None):
        x, passthrough = self._prepare(system, initial, observer, changelog)
        if x.size == 0:
            passthrough(x, 0.0)
            return x
        return integrate_adaptive(
            self._rhs(system), x, t_max, self.initial_step, self.stepper,
            self.eps_abs, self.eps_rel, passthrough,
        )
