"""
Public API for group sequential designs.

    gs_design(k, test_type, alpha, beta, ...) → GSSolution
    gs_probability(theta, n_i, lower, upper) → ProbabilityParams

Each function validates inputs, builds the configuration, runs the
recursion engine, and wraps the Result.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike

from pysequential.core.compute.timing import Timer
from pysequential.core.compute.tolerances import STANDARD
from pysequential.core.exceptions import InvalidParameter
from pysequential.core.result import Result
from pysequential.core.validation import (
    check_array,
    check_consistent_length,
    check_finite,
    check_positive,
    check_strictly_increasing,
)
from pysequential.gsd._common import ProbabilityParams
from pysequential.gsd._engine import probabilities, solve_design
from pysequential.gsd.design import GSDesign
from pysequential.gsd.solution import GSSolution
from pysequential.spending import SpendingFunction


def gs_design(
    k: int = 3,
    test_type: int = 4,
    alpha: float = 0.025,
    beta: float = 0.1,
    astar: float = 0.0,
    *,
    timing: ArrayLike | None = None,
    sfu: str | SpendingFunction = "hsd",
    sfupar: Any = None,
    sfl: str | SpendingFunction = "hsd",
    sflpar: Any = None,
    spending_time: ArrayLike | None = None,
    delta: float = 0.0,
    delta0: float = 0.0,
    delta1: float = 1.0,
    n_fix: float = 1.0,
    n_i: ArrayLike | None = None,
    max_n_plan: float | None = None,
    r: int = STANDARD.r,
    tol: float = STANDARD.tol,
) -> GSSolution:
    """Derive a group sequential design by error spending.

    With ``n_i=None`` the maximum sample size is solved so that power is
    1 - beta; otherwise bounds are derived for the given sample sizes and
    power is reported.

    Parameters
    ----------
    k : int
        Number of analyses.
    test_type : int
        1-6; see ``pysequential.gsd.TEST_TYPES``.
    alpha : float
        One-sided Type I error.
    beta : float
        Type II error.
    astar : float
        Lower bound error under H0 for test types 5 and 6 (0 means 1 - alpha).
    timing : array-like or None
        Information fractions; None for equal spacing.
    sfu, sfl : str or SpendingFunction
        Upper and lower spending functions.
    sfupar, sflpar
        Spending function parameters.
    spending_time : array-like or None
        Fractions at which spending is evaluated, if not ``timing``.
    delta : float
        Standardized effect size. If 0, derived from ``n_fix``.
    delta0, delta1 : float
        Effect under H0 and H1 on the natural scale.
    n_fix : float
        Fixed design sample size. Sample sizes scale from it.
    n_i : array-like or None
        Sample sizes at each analysis (update mode).
    max_n_plan : float or None
        Planned final sample size for update mode.
    r : int
        Grid resolution.
    tol : float
        Root-finding tolerance.

    Returns
    -------
    GSSolution

    Raises
    ------
    InvalidParameter
        On invalid configuration.
    NonConvergent
        If a bound or the maximum information cannot be solved.

    Examples
    --------
    >>> x = gs_design(k=3, test_type=1, sfu="ldof")
    >>> x.upper.round(2)
    array([3.71, 2.51, 1.99])
    """
    design = GSDesign.for_design(
        k=k,
        test_type=test_type,
        alpha=alpha,
        beta=beta,
        astar=astar,
        timing=timing,
        sfu=sfu,
        sfupar=sfupar,
        sfl=sfl,
        sflpar=sflpar,
        spending_time=spending_time,
        delta=delta,
        delta0=delta0,
        delta1=delta1,
        n_fix=n_fix,
        n_i=n_i,
        max_n_plan=max_n_plan,
        r=r,
        tol=tol,
    )
    return GSSolution(solve_design(design))


def gs_probability(
    theta: ArrayLike,
    n_i: ArrayLike,
    lower: ArrayLike,
    upper: ArrayLike,
    *,
    r: int = STANDARD.r,
) -> Result[ProbabilityParams]:
    """Boundary crossing probabilities for given bounds.

    Parameters
    ----------
    theta : array-like
        Standardized drifts; Z_k has mean theta * sqrt(n_k).
    n_i : array-like
        (K,) strictly increasing sample sizes.
    lower, upper : array-like
        (K,) Z-scale bounds with lower <= upper. Use -inf / inf for
        absent bounds.
    r : int
        Grid resolution.

    Returns
    -------
    Result[ProbabilityParams]
    """
    th = check_array(theta, "theta")
    check_finite(th, "theta")

    n = check_array(n_i, "n_i")
    check_finite(n, "n_i")
    check_positive(n, "n_i")
    check_strictly_increasing(n, "n_i")

    a = check_array(lower, "lower")
    b = check_array(upper, "upper")
    check_consistent_length(n, a, b, names=("n_i", "lower", "upper"))
    if np.any(np.isnan(a)) or np.any(np.isnan(b)):
        raise InvalidParameter("bounds contain NaN", parameter="lower/upper")
    if np.any(a > b):
        raise InvalidParameter(
            f"lower bounds must not exceed upper bounds, got lower={a.tolist()} "
            f"upper={b.tolist()}",
            parameter="lower",
            value=a.tolist(),
        )
    if isinstance(r, bool) or not isinstance(r, (int, np.integer)) or not 1 <= r <= 80:
        raise InvalidParameter(f"r must be an integer in [1, 80], got {r!r}", parameter="r", value=r)

    timer = Timer()
    timer.start()
    with timer.section('recursion'):
        params = probabilities(th, n, a, b, int(r))
    timer.stop()

    return Result(
        params=params,
        info={
            "method": "Boundary crossing probabilities",
            "r": int(r),
            "k": len(n),
            "unbounded_upper": bool(np.all(np.isinf(b))),
            "has_lower": bool(np.any(np.isfinite(a))),
        },
        timing=timer.result(),
        backend_name="cpu_gs_recursion",
    )
