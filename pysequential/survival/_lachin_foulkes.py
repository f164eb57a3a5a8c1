"""
Lachin-Foulkes sample size for the logrank test.

With expected events per unit accrual rate d_C, d_E under the alternative
and d_C0, d_E0 under H0 (control hazard averaged so the pooled hazard is
unchanged), the variance of the log hazard ratio estimate is approximately
1/d_C + 1/d_E. Events scale linearly in the accrual rate, so the rate
multiplier that gives power 1 - beta is

    m = ((z_a sqrt(1/d_C0 + 1/d_E0) + z_b sqrt(1/d_C + 1/d_E)) / |log(hr/hr0)|)^2
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy.optimize import brentq
from scipy.stats import norm

from pysequential.core.compute.tolerances import (
    MAX_BRACKET_EXPANSIONS,
    MAX_ROOT_ITERATIONS,
)
from pysequential.core.exceptions import InfeasibleDesign, NonConvergent
from pysequential.survival._events import arm_events, enrollment
from pysequential.survival.design import AccrualProfile, HazardProfile


@dataclass(frozen=True)
class ArmExpectations:
    """Expected events per arm at the study end for a given accrual."""

    events_c: float
    events_e: float
    events_c0: float
    events_e0: float
    enrolled: float

    @property
    def variance(self) -> float:
        """Variance factor of log(HR) under the alternative."""
        return 1.0 / self.events_c + 1.0 / self.events_e

    @property
    def variance_null(self) -> float:
        return 1.0 / self.events_c0 + 1.0 / self.events_e0

    def scaled(self, m: float) -> ArmExpectations:
        return ArmExpectations(
            events_c=self.events_c * m,
            events_e=self.events_e * m,
            events_c0=self.events_c0 * m,
            events_e0=self.events_e0 * m,
            enrolled=self.enrolled * m,
        )


def expectations(hazards: HazardProfile, accrual: AccrualProfile, T: float) -> ArmExpectations:
    """Expected events by arm under both hypotheses at calendar time T."""
    ctrl, expt = hazards.arms("alternative")
    ctrl0, expt0 = hazards.arms("null")
    fc, fe = hazards.control_fraction, hazards.experimental_fraction
    return ArmExpectations(
        events_c=fc * float(arm_events(ctrl, accrual, T)),
        events_e=fe * float(arm_events(expt, accrual, T)),
        events_c0=fc * float(arm_events(ctrl0, accrual, T)),
        events_e0=fe * float(arm_events(expt0, accrual, T)),
        enrolled=float(enrollment(accrual, T)),
    )


def rate_multiplier(exp: ArmExpectations, log_effect: float, z_alpha: float, z_beta: float) -> float:
    """Accrual rate multiplier giving the target power."""
    if min(exp.events_c, exp.events_e, exp.events_c0, exp.events_e0) <= 0:
        raise InfeasibleDesign(
            "no events are expected by the end of the study",
            parameter="T",
        )
    m = ((z_alpha * math.sqrt(exp.variance_null) + z_beta * math.sqrt(exp.variance)) / log_effect) ** 2
    if not math.isfinite(m) or m <= 0:
        raise InfeasibleDesign(
            f"rate multiplier is not finite and positive ({m})",
            parameter="gamma",
            value=m,
        )
    return m


def power(exp: ArmExpectations, log_effect: float, z_alpha: float) -> float:
    """Power of the logrank test at the expected event counts."""
    return float(norm.cdf(
        (log_effect - z_alpha * math.sqrt(exp.variance_null)) / math.sqrt(exp.variance)
    ))


def solve_accrual_duration(
    hazards: HazardProfile,
    accrual: AccrualProfile,
    minfup: float,
    z_alpha: float,
    z_beta: float,
    target: float,
    max_accrual: float | None,
    tol: float,
) -> float:
    """Accrual duration at which absolute rates give the required information.

    Solves rate_multiplier(A) = target, where the accrual pattern is fitted
    to A and the study ends at A + minfup. ``target`` is 1 for a fixed
    design and 1 / inflation for a group sequential one.

    Raises
    ------
    InfeasibleDesign
        If the required information is not reached within ``max_accrual``
        (or at all, when there is no cap).
    """
    log_effect = hazards.log_effect

    def f(a: float) -> float:
        exp = expectations(hazards, accrual.fit(a), a + minfup)
        return rate_multiplier(exp, log_effect, z_alpha, z_beta) - target

    first = int(np.argmax(accrual.rates > 0))
    lo = float(accrual.starts[first]) + accrual.total_duration * 1e-6
    hi = max_accrual if max_accrual is not None else max(accrual.total_duration, 1.0)

    if max_accrual is not None:
        if f(hi) > 0.0:
            raise InfeasibleDesign(
                f"target power is not reached within max_accrual={max_accrual}",
                parameter="max_accrual",
                value=max_accrual,
            )
    else:
        # No cap: expand geometrically.
        expansions = 0
        while f(hi) > 0.0:
            hi *= 2.0
            expansions += 1
            if expansions > MAX_BRACKET_EXPANSIONS:
                raise InfeasibleDesign(
                    f"target power is not reached with accrual up to {hi:.4g}",
                    parameter="gamma",
                    value=accrual.rates.tolist(),
                )

    if f(lo) <= 0.0:
        return lo

    root, info = brentq(
        f, lo, hi, xtol=tol, maxiter=MAX_ROOT_ITERATIONS,
        full_output=True, disp=False,
    )
    if not info.converged:
        raise NonConvergent(
            f"accrual duration: root search did not converge ({info.flag})",
            iterations=info.iterations,
            reason="max_iterations",
            bracket=(lo, hi),
        )
    return float(root)
