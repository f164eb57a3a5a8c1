"""
Boundary derivation by error spending.

At analysis k the upper bound c_k solves

    P_0(continue through 1..k-1, Z_k >= c_k) = A_k - A_{k-1}

and the lower bound a_k solves the analogous equation for its own spending
(under the alternative for beta-spending, under H0 for astar-spending).
Both probabilities are monotone in the bound, so each solve is a bracketed
Brent root search against the ContinuationDensity of the previous
analyses.

Whether the lower bound restricts the continuation region used for the
upper-bound solve depends on the test type: binding bounds (types 2, 3, 5)
do, non-binding bounds (types 4, 6) do not.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import brentq
from scipy.stats import norm

from pysequential.core.compute.tolerances import (
    BOUND_CAP,
    MAX_BRACKET_EXPANSIONS,
    MAX_ROOT_ITERATIONS,
)
from pysequential.core.exceptions import NonConvergent
from pysequential.gsd._recursion import ContinuationDensity


@dataclass(frozen=True)
class Bounds:
    """Derived Z-scale bounds.

    ``clamped`` lists (1-based) interim analyses where the lower bound
    solved above the upper bound and was set equal to it.
    """
    upper: NDArray
    lower: NDArray
    clamped: tuple[int, ...]


def _brent(f, lo: float, hi: float, tol: float, what: str) -> float:
    root, info = brentq(
        f, lo, hi, xtol=tol, maxiter=MAX_ROOT_ITERATIONS,
        full_output=True, disp=False,
    )
    if not info.converged:
        raise NonConvergent(
            f"{what}: root search did not converge ({info.flag})",
            iterations=info.iterations,
            reason="max_iterations",
            bracket=(lo, hi),
        )
    return float(root)


def _unspendable(density: ContinuationDensity, target: float, iterations: int, lo: float):
    return NonConvergent(
        f"upper bound: spending increment {target:.3g} exceeds the "
        f"probability of reaching the analysis ({density.mass:.3g})",
        iterations=iterations,
        reason="unspendable",
        bracket=(lo, BOUND_CAP),
    )


def solve_upper(density: ContinuationDensity, info_k: float, target: float, tol: float) -> float:
    """Upper bound whose crossing probability equals ``target``.

    Raises
    ------
    NonConvergent
        With ``reason='unspendable'`` when binding lower bounds have
        already stopped so many paths that ``target`` cannot be reached.
    """
    if target <= 0.0:
        return BOUND_CAP
    if density.info is None:
        # Closed form at the first analysis.
        return float(min(norm.isf(target) + density.theta * math.sqrt(info_k), BOUND_CAP))
    if target >= density.mass:
        raise _unspendable(density, target, 0, -BOUND_CAP)

    def f(b: float) -> float:
        return density.exit_upper(info_k, b) - target

    if f(BOUND_CAP) >= 0.0:
        return BOUND_CAP

    lo = 0.0
    expansions = 0
    while f(lo) <= 0.0:
        lo -= 1.0
        expansions += 1
        if lo < -BOUND_CAP or expansions > MAX_BRACKET_EXPANSIONS:
            raise _unspendable(density, target, expansions, lo)
    return _brent(f, lo, BOUND_CAP, tol, "upper bound")


def solve_lower(density: ContinuationDensity, info_k: float, target: float, tol: float) -> float:
    """Lower bound whose crossing probability equals ``target``.

    Returns BOUND_CAP when the target exceeds the attainable probability;
    the caller clamps it to the upper bound.
    """
    if target <= 0.0:
        return -BOUND_CAP
    if density.info is None:
        return float(
            np.clip(norm.ppf(target) + density.theta * math.sqrt(info_k), -BOUND_CAP, BOUND_CAP)
        )

    def g(a: float) -> float:
        return density.exit_lower(info_k, a) - target

    if g(-BOUND_CAP) >= 0.0:
        return -BOUND_CAP
    if g(BOUND_CAP) <= 0.0:
        return BOUND_CAP
    return _brent(g, -BOUND_CAP, BOUND_CAP, tol, "lower bound")


def derive_bounds(
    test_type: int,
    info: NDArray,
    upper_spend: NDArray,
    lower_spend: NDArray,
    theta: float,
    r: int,
    tol: float,
) -> Bounds:
    """Derive bounds analysis by analysis.

    Parameters
    ----------
    test_type : int
        1-6.
    info : NDArray
        (K,) information levels (fixed-design information = 1).
    upper_spend, lower_spend : NDArray
        (K,) incremental spending for each bound family.
    theta : float
        Standardized drift under the alternative; used for the
        beta-spending lower bound of test types 3 and 4.
    r, tol : int, float
        Grid resolution and root tolerance.

    Returns
    -------
    Bounds
    """
    K = len(info)
    upper = np.empty(K, dtype=np.float64)
    lower = np.empty(K, dtype=np.float64)
    clamped: list[int] = []

    binding = test_type in (2, 3, 5)
    has_lower_solve = test_type >= 3
    null_density = ContinuationDensity(0.0, r)
    lower_density = ContinuationDensity(theta if test_type in (3, 4) else 0.0, r)

    for k in range(K):
        b = solve_upper(null_density, info[k], upper_spend[k], tol)

        if test_type == 1:
            a = -math.inf
        elif test_type == 2:
            a = -b
        elif k == K - 1 and test_type in (3, 4):
            a = b
        else:
            a = solve_lower(lower_density, info[k], lower_spend[k], tol)
            if a > b:
                if k < K - 1:
                    clamped.append(k + 1)
                a = b

        upper[k] = b
        lower[k] = a

        if k < K - 1:
            null_density = null_density.advance(info[k], a if binding else -math.inf, b)
            if has_lower_solve:
                lower_density = lower_density.advance(info[k], a, b)

    return Bounds(upper=upper, lower=lower, clamped=tuple(clamped))
