"""
Simulated annealing evolution of System topologies.

The engine keeps one accepted lineage. Every trial clones the current
system, mutates the clone and scores it; the clone either replaces the
current system or is discarded.

Example:
    engine = EvolveSA(quick_params(), EigenratioPerformance(), RewireMutate(seed=1))
    best = engine.evolve(sys)
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import List, Optional, Tuple
import warnings

import numpy as np

from ..config import EvolveSAParams
from ..core.changelog import ChangeLog, StepType
from ..core.system import System
from ..errors import DegenerateTemperatureWarning, StateSizeMismatch
from ..simulate.observers import RecordingObserver
from ..simulate.simulators import Simulate
from .base import EvoInitialStates, EvoObserver, Mutate, Performance


logger = logging.getLogger(__name__)

# Score of systems whose dynamics could not be evaluated
BAD_PERFORMANCE = 1e11

# Temperature of the bootstrap trials
BOOTSTRAP_TEMPERATURE = 1e12


@dataclass
class EvolveSAResult:
    """Outcome of one trial."""
    q1: float = 0.0                 # Performance of the current system
    q2: Optional[float] = None      # Performance of the trial (None = not scored)
    dq: float = 0.0
    accepted: bool = False


class EvolveSA:
    """
    Simulated annealing over topologies.

    Args:
        params: Search parameters (temperature schedule, trial counts, seed)
        performance: Measure to minimise
        mutate: Mutation strategy producing trials
    """

    def __init__(self, params: EvolveSAParams, performance: Performance, mutate: Mutate):
        self.params = params
        self.measure = performance
        self.mutator = mutate
        self.rng = np.random.default_rng(params.seed)
        self.results: List[EvolveSAResult] = []

    def rnd(self) -> float:
        return float(self.rng.random())

    def evolve(
        self,
        system: System,
        simulator: Optional[Simulate] = None,
        initial_states: Optional[EvoInitialStates] = None,
        observer: Optional[EvoObserver] = None,
        changelog: Optional[ChangeLog] = None,
    ) -> System:
        """
        Evolve a copy of ``system``; the input is left untouched.

        Args:
            system: Starting system
            simulator: Required when the performance measure needs dynamics
            initial_states: Initial conditions for dynamics-dependent measures
            observer: Called with (system, performance, iteration) for the
                initial system and after every annealing trial
            changelog: Receives the changes of accepted trials

        Returns:
            The best system of the accepted lineage, or the final current
            system when ``params.return_best`` is false
        """
        if self.measure.get_type().needs_dynamics and simulator is None:
            raise ValueError("A simulator is required for dynamics-dependent performance")
        initial_states = initial_states or EvoInitialStates()
        observer = observer or EvoObserver()
        changelog = changelog or ChangeLog()
        params = self.params
        self.results = []

        current = system.copy()
        iteration = 0
        result = EvolveSAResult(q1=self.performance(current, simulator, initial_states))
        initial_perf = result.q1
        observer(current, result.q1, iteration)
        logger.info(f"Initial performance: {initial_perf}")

        # Bootstrap: chained, unobserved trials estimating the performance range
        min_q, max_q = initial_perf, initial_perf
        trial_sys = current
        for i in range(params.initial_trials):
            trial_sys, result = self.trial(
                BOOTSTRAP_TEMPERATURE, trial_sys, simulator, initial_states,
                result.q1, ChangeLog(),
            )
            if result.q2 is not None:
                min_q = min(min_q, result.q2)
                max_q = max(max_q, result.q2)
        result = EvolveSAResult(q1=initial_perf)

        temp = params.initial_temperature(min_q, max_q)
        logger.info(f"Performance range [{min_q}, {max_q}], initial temperature {temp}")

        best, best_q = current, result.q1
        if temp <= 0.0:
            logger.warning(f"Initial temperature {temp} is not positive; skipping annealing")
        else:
            no_change = 0
            while (no_change <= params.accept_runs_no_change
                   and temp > params.min_temp
                   and iteration <= params.max_iterations):
                accepts = 0
                for i in range(params.main_trials):
                    iteration += 1
                    if iteration > params.max_iterations:
                        break

                    trial_sys, trial = self.trial(
                        temp, current, simulator, initial_states, result.q1, changelog
                    )
                    self.results.append(trial)
                    if trial.accepted:
                        changelog.end_step(StepType.EVOLUTION)
                        changelog.commit()
                        current = trial_sys
                        result = EvolveSAResult(q1=trial.q2, q2=trial.q1, dq=trial.dq, accepted=True)
                        accepts += 1
                        if result.q1 < best_q:
                            best, best_q = current, result.q1
                    else:
                        changelog.rollback()
                        result = EvolveSAResult(q1=result.q1, q2=trial.q2, dq=trial.dq)

                    observer(current, result.q1, iteration)
                    if accepts >= params.accept_trials:
                        break

                no_change = no_change + 1 if accepts == 0 else 0
                q2 = result.q2 if result.q2 is not None else result.q1
                temp = params.new_temperature(temp, result.q1, q2)
                logger.debug(f"Iteration {iteration}: {accepts} accepted, temperature {temp}")

        logger.info(f"Evolution finished after {iteration} iterations, performance {result.q1}")
        if params.return_best:
            return best
        return current

    def trial(
        self,
        temp: float,
        system: System,
        simulator: Optional[Simulate],
        initial_states: EvoInitialStates,
        q1: float,
        changelog: ChangeLog,
    ) -> Tuple[System, EvolveSAResult]:
        """
        Mutate a copy of ``system`` and decide whether to accept it.

        Args:
            temp: Current temperature
            system: System the trial starts from (not modified)
            q1: Performance of ``system``

        Returns:
            The trial system and the trial outcome
        """
        result = EvolveSAResult(q1=q1)
        new_sys = system.copy()
        self.mutator.mutate(new_sys, changelog)

        if self.params.ensure_weakly_connected and new_sys.weakly_connected_components() != 1:
            logger.debug("Trial rejected: not weakly connected")
            return new_sys, result

        result.q2 = self.performance(new_sys, simulator, initial_states)
        result.dq = result.q1 - result.q2
        if result.dq > 0.0:
            result.accepted = True
        elif temp > 0.0:
            result.accepted = self.rnd() < self.params.accept_prob(result.dq, temp)
        else:
            logger.warning(f"Trial rejected at non-positive temperature {temp}")
            warnings.warn(
                f"Temperature {temp} is not positive; trial rejected",
                DegenerateTemperatureWarning,
                stacklevel=2,
            )
        return new_sys, result

    def performance(
        self,
        system: System,
        simulator: Optional[Simulate] = None,
        initial_states: Optional[EvoInitialStates] = None,
    ) -> float:
        """
        Score a system, simulating it first when the measure needs dynamics.

        Dynamics-dependent scores are the mean over one run per initial
        state; runs with a mismatched state size are skipped. With no
        successful run the score is BAD_PERFORMANCE.
        """
        if not self.measure.get_type().needs_dynamics:
            return float(self.measure.performance(system, None))

        states = initial_states.initial_states(system) if initial_states else []
        if not states:
            logger.warning("No initial states for dynamics-dependent performance")
            return BAD_PERFORMANCE

        total, runs = 0.0, 0
        for x0 in states:
            obs = RecordingObserver()
            try:
                simulator.simulate(system, self.params.sim_t_max, x0, obs, ChangeLog())
            except StateSizeMismatch as e:
                logger.warning(f"Skipping run: {e}")
                continue
            total += self.measure.performance(system, obs.result)
            runs += 1
        if runs == 0:
            return BAD_PERFORMANCE
        return total / runs
