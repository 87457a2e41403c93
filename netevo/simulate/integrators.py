"""
Numerical stepping routines used by the ODE simulators.

All routines take a right-hand side ``f(x, t) -> dx`` and call
``observe(x, t)`` for the initial state and after every accepted step.
Fixed-step schemes (RK4, Adams-Bashforth-Moulton) are implemented here;
error-controlled schemes delegate to ``scipy.integrate``.
"""

from __future__ import annotations
from enum import Enum
import logging
from typing import Callable, Optional

import numpy as np
from scipy import integrate


logger = logging.getLogger(__name__)

RHS = Callable[[np.ndarray, float], np.ndarray]
StepObserver = Callable[[np.ndarray, float], None]


class FixedStepper(Enum):
    """Fixed step schemes for SimulateOdeFixed."""
    RK4 = "rk4"
    ADAMS_BASHFORTH_MOULTON = "abm"


class AdaptiveStepper(Enum):
    """Error-controlled schemes for SimulateOdeConst and SimulateOdeAdaptive."""
    RK23 = "rk23"
    DOPRI5 = "dopri5"
    DOPRI5_DENSE = "dopri5_dense"
    DOP853 = "dop853"

    @property
    def method(self) -> str:
        """Name of the scipy.integrate method."""
        return _SCIPY_METHODS[self]

    @property
    def dense(self) -> bool:
        return self is AdaptiveStepper.DOPRI5_DENSE


_SCIPY_METHODS = {
    AdaptiveStepper.RK23: "RK23",
    AdaptiveStepper.DOPRI5: "RK45",
    AdaptiveStepper.DOPRI5_DENSE: "RK45",
    AdaptiveStepper.DOP853: "DOP853",
}

_SCIPY_SOLVERS = {
    "RK23": integrate.RK23,
    "RK45": integrate.RK45,
    "DOP853": integrate.DOP853,
}


def rk4_step(f: RHS, x: np.ndarray, t: float, dt: float) -> np.ndarray:
    """Single classical Runge-Kutta step."""
    k1 = f(x, t)
    k2 = f(x + 0.5 * dt * k1, t + 0.5 * dt)
    k3 = f(x + 0.5 * dt * k2, t + 0.5 * dt)
    k4 = f(x + dt * k3, t + dt)
    return x + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


def _step_count(t_max: float, dt: float) -> int:
    # Tolerate round-off so t_max = n * dt yields n steps
    if dt <= 0:
        raise ValueError(f"Step size must be positive, got {dt}")
    return max(0, int(np.floor(t_max / dt + 1e-9)))


def integrate_fixed(
    f: RHS,
    x0: np.ndarray,
    t_max: float,
    dt: float,
    stepper: FixedStepper,
    observe: StepObserver,
) -> np.ndarray:
    """
    Advance from t = 0 in steps of ``dt`` while t <= t_max.

    Returns:
        State at the last step
    """
    n_steps = _step_count(t_max, dt)
    x = np.array(x0, dtype=float, copy=True)
    observe(x, 0.0)

    if stepper is FixedStepper.RK4:
        for i in range(1, n_steps + 1):
            x = rk4_step(f, x, (i - 1) * dt, dt)
            observe(x, i * dt)
        return x

    # 4-step Adams-Bashforth predictor with Adams-Moulton corrector,
    # bootstrapped with RK4 until enough history exists
    history = [f(x, 0.0)]
    for i in range(1, n_steps + 1):
        t = (i - 1) * dt
        if len(history) < 4:
            x = rk4_step(f, x, t, dt)
        else:
            f0, f1, f2, f3 = history[-1], history[-2], history[-3], history[-4]
            pred = x + (dt / 24.0) * (55 * f0 - 59 * f1 + 37 * f2 - 9 * f3)
            fp = f(pred, t + dt)
            x = x + (dt / 24.0) * (9 * fp + 19 * f0 - 5 * f1 + f2)
        history.append(f(x, i * dt))
        if len(history) > 4:
            history.pop(0)
        observe(x, i * dt)
    return x


def integrate_const(
    f: RHS,
    x0: np.ndarray,
    t_max: float,
    output_step: float,
    stepper: AdaptiveStepper,
    eps_abs: float,
    eps_rel: float,
    observe: StepObserver,
) -> np.ndarray:
    """
    Error-controlled integration observed at fixed output times.

    Internal step sizes are chosen by scipy; states are reported at
    0, output_step, 2*output_step, ... <= t_max.
    """
    n_out = _step_count(t_max, output_step)
    x = np.array(x0, dtype=float, copy=True)
    if n_out == 0:
        observe(x, 0.0)
        return x

    times = output_step * np.arange(n_out + 1)
    sol = integrate.solve_ivp(
        lambda t, y: f(y, t),
        (0.0, float(times[-1])),
        x,
        method=stepper.method,
        t_eval=None if stepper.dense else times,
        dense_output=stepper.dense,
        rtol=eps_rel,
        atol=eps_abs,
    )

    if sol.success and stepper.dense:
        out_t, out_y = times, sol.sol(times)
    else:
        out_t, out_y = sol.t, sol.y
    if not sol.success:
        logger.error(f"Integration stopped early at t={sol.t[-1] if len(sol.t) else 0.0}: {sol.message}")
        if stepper.dense:
            # Only the initial point is known to lie on the output grid
            out_t, out_y = times[:1], x.reshape(-1, 1)

    for i, t in enumerate(out_t):
        x = np.array(out_y[:, i], dtype=float)
        observe(x, float(t))
    return x


def integrate_adaptive(
    f: RHS,
    x0: np.ndarray,
    t_max: float,
    initial_step: Optional[float],
    stepper: AdaptiveStepper,
    eps_abs: float,
    eps_rel: float,
    observe: StepObserver,
) -> np.ndarray:
    """Error-controlled integration observed after every accepted step."""
    x = np.array(x0, dtype=float, copy=True)
    observe(x, 0.0)
    if t_max <= 0:
        return x

    first_step = None if initial_step is None else min(initial_step, t_max)
    solver = _SCIPY_SOLVERS[stepper.method](
        lambda t, y: f(y, t),
        0.0,
        x,
        t_max,
        first_step=first_step,
        rtol=eps_rel,
        atol=eps_abs,
    )
    while solver.status == "running":
        message = solver.step()
        if solver.status == "failed":
            logger.error(f"Integration stopped early at t={solver.t}: {message}")
            break
        x = np.array(solver.y, dtype=float, copy=True)
        observe(x, float(solver.t))
    return x
