"""
Maximum information for a target power.

A group sequential design needs more information than the fixed design it
replaces. With information measured in units of the fixed design, the
required maximum information is the inflation factor R, found by solving

    power(R) = 1 - beta

where power(R) re-derives the bounds at info = R * timing (bounds of test
types 3 and 4 depend on R through the beta-spending lower bound) and sums
the upper crossing probabilities under the alternative.
"""

from __future__ import annotations

from typing import Callable

from scipy.optimize import brentq

from pysequential.core.compute.tolerances import (
    MAX_BRACKET_EXPANSIONS,
    MAX_ROOT_ITERATIONS,
)
from pysequential.core.exceptions import NonConvergent


def solve_max_information(
    power_at: Callable[[float], float],
    target: float,
    tol: float,
) -> float:
    """Smallest scale whose power reaches ``target``.

    Binding lower bounds can make the upper spending unattainable at large
    scales (``solve_upper`` raises with ``reason='unspendable'``). Such a
    scale lies above a scale already evaluated, and its lower bounds stop
    more paths under the alternative as well, so it is counted as having
    power above the target. The root is re-checked without this
    substitution.

    Parameters
    ----------
    power_at : callable
        Power as a function of maximum information; increasing.
    target : float
        Target power, 1 - beta.
    tol : float
        Absolute tolerance on the scale.

    Raises
    ------
    NonConvergent
        If no bracket is found within the expansion cap, Brent's method
        fails, or power jumps past the target where the spending becomes
        unattainable.
    """
    substituted = []

    def f(scale: float) -> float:
        return power_at(scale) - target

    def f_above(scale: float) -> float:
        try:
            return f(scale)
        except NonConvergent as e:
            if e.reason != "unspendable":
                raise
            substituted.append(scale)
            return 1.0 - target

    lo, hi = 0.5, 2.0
    expansions = 0
    while f(lo) >= 0.0:
        lo /= 2.0
        expansions += 1
        if expansions > MAX_BRACKET_EXPANSIONS:
            raise NonConvergent(
                "maximum information: power exceeds target at every lower bracket",
                iterations=expansions,
                reason="bracket",
                bracket=(lo, hi),
            )
    while f_above(hi) <= 0.0:
        lo = hi
        hi *= 2.0
        expansions += 1
        if expansions > MAX_BRACKET_EXPANSIONS:
            raise NonConvergent(
                f"maximum information: power stays below target {target:.4g} "
                f"up to scale {lo:.4g}",
                iterations=expansions,
                reason="bracket",
                bracket=(lo, hi),
            )

    root, info = brentq(
        f_above, lo, hi, xtol=tol, maxiter=MAX_ROOT_ITERATIONS,
        full_output=True, disp=False,
    )
    if not info.converged:
        raise NonConvergent(
            f"maximum information: root search did not converge ({info.flag})",
            iterations=info.iterations,
            reason="max_iterations",
            bracket=(lo, hi),
        )
    if substituted:
        gap = f(root)
        if abs(gap) > 1e-3 + 10.0 * tol:
            raise NonConvergent(
                f"maximum information: power {gap + target:.4g} at scale {root:.4g} "
                f"is below target {target:.4g} and the upper spending is "
                f"unattainable beyond it",
                iterations=info.iterations,
                reason="unspendable",
                bracket=(root, min(substituted)),
            )
    return float(root)
