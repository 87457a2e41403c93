"""
Configuration module for NetEvo.

Contains the tunable parameters of the simulated annealing evolution engine.
"""

from dataclasses import dataclass, fields
from typing import List, Optional
import json
import math
from pathlib import Path


# Loss charged to a trial that scores exactly as well as the current system
TIE_DQ = 1e-9


@dataclass
class EvolveSAParams:
    """
    Parameters of simulated annealing topology evolution.

    The temperature schedule and acceptance rule are ordinary methods so they
    can be overridden in a subclass.

    Example:
        params = EvolveSAParams(initial_trials=20, main_trials=10, seed=7)
        params.save("anneal.json")
    """
    # Bootstrapping
    initial_trials: int = 100           # Trials used to estimate the performance range

    # Annealing
    main_trials: int = 50               # Trials per temperature level
    accept_trials: int = 10             # Accepted trials that end a level early
    accept_runs_no_change: int = 10     # Levels without acceptance before stopping
    min_temp: float = 0.01
    max_iterations: int = 100000

    # Trials
    ensure_weakly_connected: bool = True
    sim_t_max: float = 100.0            # Horizon of dynamics-dependent evaluations

    seed: Optional[int] = None          # None = random seed
    return_best: bool = True            # Return best accepted system, not the last

    def initial_temperature(self, min_q: float, max_q: float) -> float:
        return 4.0 * max_q

    def new_temperature(self, temp: float, q1: float, q2: float) -> float:
        return temp * 0.9

    def accept_prob(self, dq: float, temp: float) -> float:
        """
        Probability of accepting a trial with ``dq = Q1 - Q2``.

        Improvements (dq > 0) give 1. Ties count as a loss of ``TIE_DQ`` so
        that plateaus also freeze out as the temperature drops. A
        non-positive temperature gives 0.
        """
        if dq > 0:
            return 1.0
        if temp <= 0:
            return 0.0
        return math.exp(min(dq, -TIE_DQ) / temp)

    def save(self, path: str | Path) -> None:
        """Save parameters to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self._to_dict()
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    @classmethod
    def load(cls, path: str | Path) -> "EvolveSAParams":
        """Load parameters from JSON file."""
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls._from_dict(data)

    def _to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def _from_dict(cls, data: dict) -> "EvolveSAParams":
        """Reconstruct from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def validate(self) -> List[str]:
        """Validate parameters, return list of warnings/errors."""
        issues = []

        if self.initial_trials < 1:
            issues.append("initial_trials must be at least 1")
        if self.main_trials < 1:
            issues.append("main_trials must be at least 1")
        if self.accept_trials < 1:
            issues.append("accept_trials must be at least 1")
        if self.accept_trials > self.main_trials:
            issues.append("accept_trials > main_trials: levels never end early")
        if self.accept_runs_no_change < 0:
            issues.append("accept_runs_no_change must be non-negative")
        if self.min_temp < 0:
            issues.append("min_temp must be non-negative")
        if self.max_iterations < 0:
            issues.append("max_iterations must be non-negative")
        if self.sim_t_max < 0:
            issues.append("sim_t_max must be non-negative")

        return issues


# Preset configurations
def quick_params() -> EvolveSAParams:
    """Small search for tests and interactive exploration."""
    return EvolveSAParams(
        initial_trials=10,
        main_trials=10,
        accept_trials=3,
        accept_runs_no_change=3,
        max_iterations=500,
        sim_t_max=10.0,
        seed=42,
    )


def standard_params() -> EvolveSAParams:
    """Defaults with a fixed seed."""
    return EvolveSAParams(seed=42)
