"""
Public API for interim inference against a derived design.

    conditional_power(design, analysis, z, theta) → float
    conditional_crossing(design, analysis, z, theta) → ConditionalCrossing
    predictive_probability(design, analysis, z, grid, weights) → float
    normal_grid(r, mu, sigma, bounds) → NormalGrid
    b_values(design, z) → NDArray
    project_b_value(design, analysis, z) → BProjection
    bound_conditional_power(design, theta) → dict

``design`` is a GSSolution or GSSurvSolution. Analyses are numbered from
1. Drifts are per sqrt unit of sample size (or events): Z_k has mean
theta * sqrt(n_k), so theta = design.delta under the alternative.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.stats import norm

from pysequential.core.compute.tolerances import STANDARD
from pysequential.core.exceptions import InvalidParameter
from pysequential.core.validation import (
    check_array,
    check_consistent_length,
    check_finite,
    check_positive,
    check_scalar_in_range,
)
from pysequential.gsd._grid import simpson_grid
from pysequential.gsd._recursion import crossing_probabilities
from pysequential.gsd.solution import GSSolution
from pysequential.interim._common import BProjection, ConditionalCrossing, NormalGrid
from pysequential.survival.solution import GSSurvSolution

Theta = str | float


def _as_gs(design) -> GSSolution:
    if isinstance(design, GSSurvSolution):
        return design.gs
    if isinstance(design, GSSolution):
        return design
    raise InvalidParameter(
        f"design must be a GSSolution or GSSurvSolution, got {type(design).__name__}",
        parameter="design",
    )


def _check_analysis(gs: GSSolution, analysis: int) -> int:
    if isinstance(analysis, bool) or not isinstance(analysis, (int, np.integer)) \
            or not 1 <= analysis <= gs.k:
        raise InvalidParameter(
            f"analysis must be an integer in [1, {gs.k}], got {analysis!r}",
            parameter="analysis",
            value=analysis,
        )
    return int(analysis)


def _check_z(z: float) -> float:
    return check_scalar_in_range(z, "z", -math.inf, math.inf)


def _resolve_theta(gs: GSSolution, analysis: int, z: float, theta: Theta) -> float:
    if isinstance(theta, str):
        if theta == "null":
            return 0.0
        if theta == "alternative":
            return gs.delta
        if theta == "trend":
            return z / math.sqrt(gs.n_i[analysis - 1])
        raise InvalidParameter(
            f"theta must be 'null', 'alternative', 'trend' or a number, got {theta!r}",
            parameter="theta",
            value=theta,
        )
    return check_scalar_in_range(theta, "theta", -math.inf, math.inf)


def _final_cp(n_i: NDArray, b_final: float, analysis: int, z: float, theta: float) -> float:
    K = len(n_i)
    if analysis == K:
        return 1.0 if z >= b_final else 0.0
    n_k, n_K = n_i[analysis - 1], n_i[-1]
    remaining = n_K - n_k
    shift = b_final * math.sqrt(n_K) - z * math.sqrt(n_k) - theta * remaining
    return float(norm.sf(shift / math.sqrt(remaining)))


def conditional_power(design, analysis: int, z: float, theta: Theta = "alternative") -> float:
    """Probability that the final statistic exceeds the final upper bound.

    Only the final analysis is considered and interim bounds are ignored,
    so this is a one-dimensional normal calculation on the remaining
    increment. At the final analysis the outcome is already known:
    1.0 if ``z`` is on or above the bound, else 0.0.

    Parameters
    ----------
    design : GSSolution or GSSurvSolution
    analysis : int
        1-based analysis at which ``z`` was observed.
    z : float
        Observed Z statistic.
    theta : {'null', 'alternative', 'trend'} or float
        Drift for the remainder of the trial. 'trend' uses the observed
        estimate z / sqrt(n_k).

    Returns
    -------
    float
    """
    gs = _as_gs(design)
    analysis = _check_analysis(gs, analysis)
    z = _check_z(z)
    th = _resolve_theta(gs, analysis, z, theta)
    return _final_cp(gs.n_i, float(gs.upper[-1]), analysis, z, th)


def conditional_crossing(
    design,
    analysis: int,
    z: float,
    theta: Theta = "alternative",
) -> ConditionalCrossing:
    """Probabilities of crossing each remaining bound given ``z``.

    The bounds of analyses after ``analysis`` are re-expressed for the
    increment process S_j - S_k, which is again Brownian motion with the
    same drift, and passed through the recursive integration.

    Raises
    ------
    InvalidParameter
        At the final analysis, where no bounds remain.
    """
    gs = _as_gs(design)
    analysis = _check_analysis(gs, analysis)
    if analysis == gs.k:
        raise InvalidParameter(
            "no analyses remain after the final analysis",
            parameter="analysis",
            value=analysis,
        )
    z = _check_z(z)
    th = _resolve_theta(gs, analysis, z, theta)

    n_k = gs.n_i[analysis - 1]
    n_rest = gs.n_i[analysis:]
    info = n_rest - n_k
    root = np.sqrt(info)
    shift = z * math.sqrt(n_k)
    with np.errstate(invalid='ignore'):
        upper = (gs.upper[analysis:] * np.sqrt(n_rest) - shift) / root
        lower = (gs.lower[analysis:] * np.sqrt(n_rest) - shift) / root

    up, lo = crossing_probabilities(th, info, lower, upper, gs.design.r)
    return ConditionalCrossing(
        analysis=analysis, z=z, theta=th, upper_prob=up, lower_prob=lo,
    )


def normal_grid(
    r: int = STANDARD.r,
    mu: float = 0.0,
    sigma: float = 1.0,
    bounds: tuple[float, float] = (-math.inf, math.inf),
) -> NormalGrid:
    """Quadrature grid for a N(mu, sigma^2) prior.

    Uses the same node placement as the boundary recursion, with
    Simpson weights multiplied by the normal density, so the weights sum
    to the probability of ``bounds`` (about 1 when unbounded).

    Parameters
    ----------
    r : int
        Grid resolution.
    mu, sigma : float
        Prior mean and standard deviation.
    bounds : (float, float)
        Truncation interval on the natural scale.
    """
    if isinstance(r, bool) or not isinstance(r, (int, np.integer)) or not 1 <= r <= 80:
        raise InvalidParameter(f"r must be an integer in [1, 80], got {r!r}", parameter="r", value=r)
    mu = check_scalar_in_range(mu, "mu", -math.inf, math.inf)
    sigma = check_scalar_in_range(sigma, "sigma", 0.0, math.inf)
    lo, hi = bounds
    if not lo < hi:
        raise InvalidParameter(
            f"bounds must satisfy lower < upper, got {bounds}",
            parameter="bounds",
            value=bounds,
        )

    x, w = simpson_grid(int(r), 0.0, (lo - mu) / sigma, (hi - mu) / sigma)
    return NormalGrid(z=mu + sigma * x, w=w * norm.pdf(x))


def predictive_probability(
    design,
    analysis: int,
    z: float,
    grid: ArrayLike,
    weights: ArrayLike,
    *,
    posterior: bool = False,
) -> float:
    """Conditional power averaged over a discrete distribution of drifts.

    Parameters
    ----------
    design : GSSolution or GSSurvSolution
    analysis : int
        1-based analysis at which ``z`` was observed.
    z : float
        Observed Z statistic.
    grid : array-like
        Drift values (same scale as ``design.delta``).
    weights : array-like
        Non-negative prior weights; renormalized to sum to 1.
    posterior : bool
        If True, weights are first multiplied by the likelihood of ``z``
        at each drift, giving the posterior predictive probability.

    Returns
    -------
    float
        In [0, 1], between the smallest and largest conditional power
        over the grid.

    Raises
    ------
    InvalidParameter
        If weights are negative, have a zero sum, or do not match the grid.
    """
    gs = _as_gs(design)
    analysis = _check_analysis(gs, analysis)
    z = _check_z(z)

    th = check_array(grid, "grid")
    check_finite(th, "grid")
    w = check_array(weights, "weights")
    check_finite(w, "weights")
    check_positive(w, "weights", strict=False)
    check_consistent_length(th, w, names=("grid", "weights"))

    if posterior:
        w = w * norm.pdf(z - th * math.sqrt(gs.n_i[analysis - 1]))
    total = float(np.sum(w))
    if not total > 0:
        raise InvalidParameter(
            "weights must have a positive sum"
            + (" after weighting by the interim likelihood" if posterior else ""),
            parameter="weights",
            value=w.tolist(),
        )
    w = w / total

    b_final = float(gs.upper[-1])
    cp = np.array([_final_cp(gs.n_i, b_final, analysis, z, t) for t in th])
    return float(np.clip(np.sum(w * cp), 0.0, 1.0))


def b_values(design, z: ArrayLike) -> NDArray:
    """B_k = Z_k sqrt(t_k) for the observed statistics of analyses 1..m."""
    gs = _as_gs(design)
    z_arr = check_array(z, "z")
    check_finite(z_arr, "z")
    if len(z_arr) > gs.k:
        raise InvalidParameter(
            f"at most {gs.k} statistics expected, got {len(z_arr)}",
            parameter="z",
            value=z_arr.tolist(),
        )
    return z_arr * np.sqrt(gs.timing[:len(z_arr)])


def project_b_value(design, analysis: int, z: float) -> BProjection:
    """Straight-line projection of the B-value to the final analysis.

    The line runs from the origin through (n_k, B_k), the maximum
    likelihood path under constant drift.
    """
    gs = _as_gs(design)
    analysis = _check_analysis(gs, analysis)
    z = _check_z(z)
    n_k = float(gs.n_i[analysis - 1])
    n_final = float(gs.n_i[-1])
    b = z * math.sqrt(gs.timing[analysis - 1])
    slope = b / n_k
    return BProjection(
        analysis=analysis, n=n_k, n_final=n_final, b=b, slope=slope,
        projected=slope * n_final,
    )


def bound_conditional_power(design, theta: Theta = "trend") -> dict[str, NDArray]:
    """Conditional power with the interim statistic exactly on each bound.

    Returns ``{'upper': cp, 'lower': cp}`` over interim analyses
    1..K-1. Entries for an absent lower bound are NaN.
    """
    gs = _as_gs(design)
    K = gs.k
    b_final = float(gs.upper[-1])
    out = {}
    for name, bounds in (("upper", gs.upper), ("lower", gs.lower)):
        cp = np.full(K - 1, np.nan)
        for k in range(1, K):
            zk = float(bounds[k - 1])
            if not math.isfinite(zk):
                continue
            th = _resolve_theta(gs, k, zk, theta)
            cp[k - 1] = _final_cp(gs.n_i, b_final, k, zk, th)
        out[name] = cp
    return out
