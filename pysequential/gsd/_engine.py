"""
Design computation: spending, information, bounds, operating characteristics.

solve_design() is the single entry point used by gs_design() and by
GSSolution.update(); it returns a Result[GSParams] without wrapping it,
so the solution module can call it without an import cycle.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

from pysequential.core.compute.timing import Timer
from pysequential.core.result import Result
from pysequential.gsd._bounds import derive_bounds
from pysequential.gsd._common import GSParams, ProbabilityParams
from pysequential.gsd._information import solve_max_information
from pysequential.gsd._recursion import crossing_probabilities
from pysequential.gsd.design import GSDesign


def expected_sample_size(n_i: NDArray, upper_prob: NDArray, lower_prob: NDArray) -> float:
    """E[N] when the trial stops at the first crossing, else at the final analysis."""
    stop = upper_prob[:-1] + lower_prob[:-1]
    return float(np.sum(n_i[:-1] * stop) + n_i[-1] * (1.0 - np.sum(stop)))


def probabilities(
    theta: NDArray,
    n_i: NDArray,
    lower: NDArray,
    upper: NDArray,
    r: int,
) -> ProbabilityParams:
    """Crossing probabilities and expected sample size for each drift."""
    K, m = len(n_i), len(theta)
    upper_prob = np.empty((K, m), dtype=np.float64)
    lower_prob = np.empty((K, m), dtype=np.float64)
    en = np.empty(m, dtype=np.float64)
    for j, th in enumerate(theta):
        up, lo = crossing_probabilities(th, n_i, lower, upper, r)
        upper_prob[:, j] = up
        lower_prob[:, j] = lo
        en[j] = expected_sample_size(n_i, up, lo)
    return ProbabilityParams(
        theta=theta, n_i=n_i, lower=lower, upper=upper,
        upper_prob=upper_prob, lower_prob=lower_prob, en=en,
    )


def _spending(design: GSDesign) -> tuple[NDArray, NDArray]:
    upper_spend = design.upper_sf.increments(design.spending_time)
    if design.lower_sf is not None:
        lower_spend = design.lower_sf.increments(design.spending_time)
    elif design.test_type == 2:
        lower_spend = upper_spend.copy()
    else:
        lower_spend = np.zeros(design.k, dtype=np.float64)
    return upper_spend, lower_spend


def solve_design(design: GSDesign) -> Result[GSParams]:
    """Derive bounds and sample size for a validated design."""
    timer = Timer()
    timer.start()

    theta = design.theta
    upper_spend, lower_spend = _spending(design)

    def bounds_at(info: NDArray):
        return derive_bounds(
            design.test_type, info, upper_spend, lower_spend,
            theta, design.r, design.tol,
        )

    scale = None
    if design.solve_sample_size:
        def power_at(s: float) -> float:
            info = s * design.timing
            b = bounds_at(info)
            up, _ = crossing_probabilities(theta, info, b.lower, b.upper, design.r)
            return float(np.sum(up))

        with timer.section('information'):
            scale = solve_max_information(power_at, 1.0 - design.beta, design.tol)
        info = scale * design.timing
    else:
        info = design.n_i / design.n_fix

    with timer.section('bounds'):
        bounds = bounds_at(info)

    with timer.section('probabilities'):
        up0, lo0 = crossing_probabilities(0.0, info, bounds.lower, bounds.upper, design.r)
        up1, lo1 = crossing_probabilities(theta, info, bounds.lower, bounds.upper, design.r)
        no_lower = np.full(design.k, -math.inf)
        up0_ignored, _ = crossing_probabilities(0.0, info, no_lower, bounds.upper, design.r)

    n_i = info * design.n_fix
    params = GSParams(
        design=design,
        timing=design.timing,
        spending_fractions=design.spending_time,
        info=info,
        n_i=n_i,
        upper=bounds.upper,
        lower=bounds.lower,
        upper_spend=upper_spend,
        lower_spend=lower_spend,
        upper_prob_null=up0,
        lower_prob_null=lo0,
        upper_prob_alt=up1,
        lower_prob_alt=lo1,
        power=float(np.sum(up1)),
        alpha_binding=float(np.sum(up0)),
        alpha_nonbinding=float(np.sum(up0_ignored)),
        en_null=expected_sample_size(n_i, up0, lo0),
        en_alt=expected_sample_size(n_i, up1, lo1),
        clamped=bounds.clamped,
    )

    warnings_list = [
        f"lower bound at analysis {k} exceeded the upper bound and was set equal to it"
        for k in bounds.clamped
    ]

    timer.stop()

    info_dict = {
        "method": "Group sequential design",
        "test_type": design.test_type,
        "test_type_label": design.test_type_label,
        "upper_spending": design.upper_sf.describe(),
        "lower_spending": design.lower_sf.describe() if design.lower_sf else None,
        "solved": design.solve_sample_size,
        "r": design.r,
        "tol": design.tol,
    }
    if scale is not None:
        info_dict["inflation_factor"] = scale

    return Result(
        params=params,
        info=info_dict,
        timing=timer.result(),
        backend_name="cpu_gs_recursion",
        warnings=tuple(warnings_list),
    )
