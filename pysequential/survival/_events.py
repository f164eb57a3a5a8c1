"""
Expected events and enrollment under piecewise-exponential models.

For one arm with piecewise-constant event hazard lambda_i and dropout
hazard eta_i on [s_i, s_{i+1}), the probability that a subject enrolled at
time 0 has had an event by follow-up time t is

    F(t) = C_i + q_i S_i (1 - exp(-h_i (t - s_i)))      s_i <= t < s_{i+1}

with h_i = lambda_i + eta_i, q_i = lambda_i / h_i, S_i = P(no event or
dropout by s_i) and C_i = F(s_i). Its integral G(x) = int_0^x F has a
closed form on each period. With accrual rate gamma_j on [c_{j-1}, c_j),
the expected number of events by calendar time T is

    E(T) = sum_j gamma_j [G(T - c_{j-1}) - G(T - min(c_j, T))]

for every period with c_{j-1} < T (Lachin & Foulkes 1986).
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.optimize import brentq

from pysequential.core.compute.tolerances import (
    MAX_BRACKET_EXPANSIONS,
    MAX_ROOT_ITERATIONS,
)
from pysequential.core.exceptions import InfeasibleDesign, NonConvergent
from pysequential.survival.design import AccrualProfile, ArmHazard


def _period_state(arm: ArmHazard) -> tuple[NDArray, NDArray, NDArray, NDArray]:
    """C_i, S_i, h_i and q_i at the start of each hazard period."""
    h = arm.event + arm.dropout
    with np.errstate(divide='ignore', invalid='ignore'):
        q = np.where(h > 0, arm.event / h, 0.0)
    lengths = np.diff(arm.starts)

    n = len(h)
    C = np.zeros(n, dtype=np.float64)
    S0 = np.ones(n, dtype=np.float64)
    for i in range(1, n):
        decay = math.exp(-h[i - 1] * lengths[i - 1])
        S0[i] = S0[i - 1] * decay
        C[i] = C[i - 1] + q[i - 1] * S0[i - 1] * (1.0 - decay)
    return C, S0, h, q


def event_cdf(arm: ArmHazard, t: ArrayLike) -> NDArray:
    """P(event by follow-up time t) with dropout as a competing risk."""
    t = np.maximum(np.asarray(t, dtype=np.float64), 0.0)
    C, S0, h, q = _period_state(arm)
    i = np.searchsorted(arm.starts, t, side='right') - 1
    return C[i] + q[i] * S0[i] * (1.0 - np.exp(-h[i] * (t - arm.starts[i])))


def cdf_integral(arm: ArmHazard, x: ArrayLike) -> NDArray:
    """G(x) = integral of the event CDF over [0, x]."""
    x = np.maximum(np.asarray(x, dtype=np.float64), 0.0)
    C, S0, h, q = _period_state(arm)
    ends = np.append(arm.starts[1:], np.inf)

    total = np.zeros_like(x)
    for i in range(len(h)):
        length = np.clip(x - arm.starts[i], 0.0, ends[i] - arm.starts[i])
        if h[i] > 0:
            total += (C[i] + q[i] * S0[i]) * length - q[i] * S0[i] * (-np.expm1(-h[i] * length)) / h[i]
        else:
            total += C[i] * length
    return total


def ultimate_fraction(arm: ArmHazard) -> float:
    """F(inf): probability that an enrolled subject ever has an event."""
    C, S0, h, q = _period_state(arm)
    return float(C[-1] + q[-1] * S0[-1]) if h[-1] > 0 else float(C[-1])


def enrollment(accrual: AccrualProfile, T: ArrayLike) -> NDArray:
    """Expected number enrolled by calendar time T."""
    T = np.asarray(T, dtype=np.float64)
    exposure = np.clip(T[..., None] - accrual.starts, 0.0, accrual.durations)
    return np.sum(accrual.rates * exposure, axis=-1)


def arm_events(arm: ArmHazard, accrual: AccrualProfile, T: ArrayLike) -> NDArray:
    """Expected events by calendar time T when ``accrual`` enrolls to this arm."""
    T = np.asarray(T, dtype=np.float64)
    starts = accrual.starts
    ends = np.minimum(accrual.ends, T[..., None])
    active = T[..., None] > starts
    upper = cdf_integral(arm, np.where(active, T[..., None] - starts, 0.0))
    lower = cdf_integral(arm, np.where(active, T[..., None] - ends, 0.0))
    return np.sum(accrual.rates * (upper - lower), axis=-1)


def time_for_events(events_at, target: float, asymptote: float, tol: float) -> float:
    """Calendar time at which expected events reach ``target``.

    Parameters
    ----------
    events_at : callable
        Expected events as a function of calendar time; non-decreasing.
    target : float
        Event count to reach.
    asymptote : float
        Limit of ``events_at`` as time grows.
    tol : float
        Absolute tolerance on time.

    Raises
    ------
    InfeasibleDesign
        If ``target`` is not below the asymptotic number of events.
    NonConvergent
        If no bracket is found or the root search fails.
    """
    if not 0.0 < target < asymptote:
        raise InfeasibleDesign(
            f"target of {target:.4g} events is not attainable; "
            f"expected events approach {asymptote:.4g}",
            parameter="events",
            value=target,
        )

    def f(t: float) -> float:
        return float(events_at(t)) - target

    hi = 1.0
    expansions = 0
    while f(hi) < 0.0:
        hi *= 2.0
        expansions += 1
        if expansions > MAX_BRACKET_EXPANSIONS:
            raise NonConvergent(
                f"time for {target:.4g} events: no bracket found",
                iterations=expansions,
                reason="bracket",
                bracket=(0.0, hi),
            )

    root, info = brentq(
        f, 0.0, hi, xtol=tol, maxiter=MAX_ROOT_ITERATIONS,
        full_output=True, disp=False,
    )
    if not info.converged:
        raise NonConvergent(
            f"time for {target:.4g} events: root search did not converge ({info.flag})",
            iterations=info.iterations,
            reason="max_iterations",
            bracket=(0.0, hi),
        )
    return float(root)
