"""
GSDesign: immutable configuration for a group sequential design.

Every recognized option is an explicit field with a documented default.
Validates inputs at construction time; all downstream code trusts clean
configuration.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.stats import norm

from pysequential.core.compute.tolerances import STANDARD
from pysequential.core.exceptions import InvalidParameter
from pysequential.core.validation import (
    check_array,
    check_finite,
    check_positive,
    check_scalar_in_range,
    check_strictly_increasing,
)
from pysequential.spending import SpendingFunction, spending_function


TEST_TYPES: dict[int, str] = {
    1: "one-sided",
    2: "two-sided symmetric",
    3: "two-sided asymmetric, beta-spending, binding lower bound",
    4: "two-sided asymmetric, beta-spending, non-binding lower bound",
    5: "two-sided asymmetric, lower bound spending under H0, binding lower bound",
    6: "two-sided asymmetric, lower bound spending under H0, non-binding lower bound",
}

# Test types whose lower bound stops the trial in the upper-bound calculation.
BINDING_TYPES = frozenset({2, 3, 5})

# Documented spending defaults when the family is 'hsd' and no parameter is given.
DEFAULT_HSD_UPPER = -4.0
DEFAULT_HSD_LOWER = -2.0


@dataclass(frozen=True)
class AnalysisSchedule:
    """Timing of the analyses of a trial.

    ``kind == 'information'``: fractions of final planned information,
    strictly increasing in (0, 1] with the last equal to 1.

    ``kind == 'calendar'``: calendar times since study start, strictly
    increasing and positive; the last is the final analysis.
    """

    kind: Literal["information", "calendar"]
    values: NDArray

    @classmethod
    def information(cls, timing: ArrayLike | None, k: int) -> AnalysisSchedule:
        """Normalize information fractions for k analyses.

        ``timing`` may be None (equally spaced), length k - 1 (interim
        fractions; the final 1 is appended) or length k (last must be 1).
        """
        if timing is None:
            return cls("information", np.arange(1, k + 1, dtype=np.float64) / k)

        t = check_array(timing, "timing")
        check_finite(t, "timing")
        if len(t) == k - 1:
            t = np.append(t, 1.0)
        elif len(t) != k:
            raise InvalidParameter(
                f"timing must have length k - 1 = {k - 1} or k = {k}, got {len(t)}",
                parameter="timing",
                value=t.tolist(),
            )
        if t[-1] != 1.0:
            raise InvalidParameter(
                f"final timing value must be 1, got {t[-1]}",
                parameter="timing",
                value=t.tolist(),
            )
        if np.any(t[:-1] <= 0.0) or np.any(t[:-1] >= 1.0):
            raise InvalidParameter(
                f"interim timing values must be in (0, 1), got {t[:-1].tolist()}",
                parameter="timing",
                value=t.tolist(),
            )
        check_strictly_increasing(t, "timing")
        return cls("information", t)

    @classmethod
    def calendar(cls, times: ArrayLike) -> AnalysisSchedule:
        """Calendar analysis times, final analysis last."""
        t = check_array(times, "analysis_times")
        check_finite(t, "analysis_times")
        check_positive(t, "analysis_times")
        check_strictly_increasing(t, "analysis_times")
        return cls("calendar", t)

    @property
    def k(self) -> int:
        return len(self.values)


def _resolve_sf(
    sf: str | SpendingFunction,
    param: Any,
    total_error: float,
    hsd_default: float,
    name: str,
) -> SpendingFunction:
    if isinstance(sf, SpendingFunction):
        if param is not None:
            raise InvalidParameter(
                f"{name}par must be None when {name} is a SpendingFunction",
                parameter=f"{name}par",
                value=param,
            )
        return sf.with_total_error(total_error)
    if not isinstance(sf, str):
        raise InvalidParameter(
            f"{name} must be a family name or SpendingFunction, got {type(sf).__name__}",
            parameter=name,
            value=sf,
        )
    if sf == "hsd" and param is None:
        param = hsd_default
    return spending_function(sf, total_error, param)


@dataclass(frozen=True)
class GSDesign:
    """Immutable group sequential design configuration.

    Do not construct directly; use ``GSDesign.for_design``.

    Attributes
    ----------
    k : int
        Number of analyses including the final.
    test_type : int
        1-6, see ``TEST_TYPES``.
    alpha, beta : float
        One-sided Type I error and Type II error.
    astar : float
        Lower-bound error budget under H0 (test types 5 and 6).
    timing : NDArray
        Information fractions. In update mode these are n_i / max_n_plan
        and the final value may differ from 1.
    spending_time : NDArray
        Fractions at which the spending functions are evaluated.
    upper_sf, lower_sf : SpendingFunction
        Upper bound spending (total alpha) and lower bound spending
        (total beta for types 3-4, astar for types 5-6, None otherwise).
    delta : float
        Standardized effect per sqrt unit of n; Z_k has mean
        theta * sqrt(n_k) with theta = delta under the alternative.
    delta0, delta1 : float
        Natural-scale effect under H0 and H1 for bound translation.
    n_fix : float
        Sample size (or events) of the equivalent fixed design.
    n_i : NDArray or None
        Fixed sample sizes per analysis (update mode); None to solve.
    max_n_plan : float or None
        Planned final sample size used for timing in update mode.
    r : int
        Grid resolution.
    tol : float
        Root-finding tolerance.
    """

    k: int
    test_type: int
    alpha: float
    beta: float
    astar: float
    timing: NDArray
    spending_time: NDArray
    upper_sf: SpendingFunction
    lower_sf: SpendingFunction | None
    delta: float
    delta0: float
    delta1: float
    n_fix: float
    n_i: NDArray | None
    max_n_plan: float | None
    r: int
    tol: float

    @classmethod
    def for_design(
        cls,
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
    ) -> GSDesign:
        """Create and validate a design configuration.

        Parameters
        ----------
        k : int
            Number of analyses (>= 1).
        test_type : int
            1 one-sided; 2 symmetric two-sided; 3/4 asymmetric with
            beta-spending lower bound, binding/non-binding; 5/6 asymmetric
            with lower bound spending astar under H0, binding/non-binding.
        alpha : float
            One-sided Type I error.
        beta : float
            Type II error; power is 1 - beta.
        astar : float
            Total lower-bound spending under H0 for test types 5-6.
            0 means 1 - alpha.
        timing : array-like or None
            Information fractions (length k - 1 or k). None: equal spacing.
        sfu, sfl : str or SpendingFunction
            Upper and lower spending families. Default 'hsd'.
        sfupar, sflpar : float, sequence or None
            Family parameters. For 'hsd' None means -4 (upper) and
            -2 (lower).
        spending_time : array-like or None
            Fractions at which to evaluate spending (length k, increasing,
            in (0, 1]); None uses ``timing``.
        delta : float
            Standardized effect size. 0 derives it from ``n_fix``.
        delta0, delta1 : float
            Natural-scale effect under H0 and H1.
        n_fix : float
            Fixed-design sample size (ignored when delta > 0).
        n_i : array-like or None
            Fixed sample sizes per analysis; power is then computed
            rather than sample size solved.
        max_n_plan : float or None
            Planned final sample size; timing = n_i / max_n_plan.
            None uses n_i[-1].
        r : int
            Grid resolution, 1 to 80.
        tol : float
            Root-finding tolerance, in (0, 0.1).

        Returns
        -------
        GSDesign

        Raises
        ------
        InvalidParameter
            If any input is invalid.
        """
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k < 1:
            raise InvalidParameter(f"k must be a positive integer, got {k!r}", parameter="k", value=k)
        k = int(k)
        if isinstance(test_type, bool) or not isinstance(test_type, (int, np.integer)) \
                or test_type not in TEST_TYPES:
            raise InvalidParameter(
                f"test_type must be one of {sorted(TEST_TYPES)}, got {test_type!r}",
                parameter="test_type",
                value=test_type,
            )
        test_type = int(test_type)

        alpha_max = 0.5 if test_type == 2 else 1.0
        alpha = check_scalar_in_range(alpha, "alpha", 0.0, alpha_max)
        beta = check_scalar_in_range(beta, "beta", 0.0, 1.0 - alpha)

        if test_type in (5, 6):
            astar = check_scalar_in_range(
                astar, "astar", 0.0, 1.0 - alpha, low_inclusive=True, high_inclusive=True,
            )
            if astar == 0.0:
                astar = 1.0 - alpha
        else:
            astar = 0.0

        if isinstance(r, bool) or not isinstance(r, (int, np.integer)) or not 1 <= r <= 80:
            raise InvalidParameter(f"r must be an integer in [1, 80], got {r!r}", parameter="r", value=r)
        tol = check_scalar_in_range(tol, "tol", 0.0, 0.1)

        # Information and timing
        n_arr = None
        if n_i is not None:
            n_arr = check_array(n_i, "n_i")
            check_finite(n_arr, "n_i")
            check_positive(n_arr, "n_i")
            check_strictly_increasing(n_arr, "n_i")
            if len(n_arr) != k:
                raise InvalidParameter(
                    f"n_i must have length k = {k}, got {len(n_arr)}",
                    parameter="n_i",
                    value=n_arr.tolist(),
                )
            if max_n_plan is None:
                max_n_plan = float(n_arr[-1])
            max_n_plan = check_scalar_in_range(max_n_plan, "max_n_plan", 0.0, math.inf)
            t = n_arr / max_n_plan
            if np.any(t[:-1] >= 1.0):
                raise InvalidParameter(
                    f"interim n_i must be below max_n_plan = {max_n_plan}, "
                    f"got {n_arr[:-1].tolist()}",
                    parameter="n_i",
                    value=n_arr.tolist(),
                )
            schedule = AnalysisSchedule("information", t)
        else:
            if max_n_plan is not None:
                raise InvalidParameter(
                    "max_n_plan requires n_i", parameter="max_n_plan", value=max_n_plan,
                )
            schedule = AnalysisSchedule.information(timing, k)

        if spending_time is None:
            s_time = np.minimum(schedule.values, 1.0)
            s_time[-1] = 1.0
        else:
            s_time = check_array(spending_time, "spending_time")
            check_finite(s_time, "spending_time")
            if len(s_time) != k:
                raise InvalidParameter(
                    f"spending_time must have length k = {k}, got {len(s_time)}",
                    parameter="spending_time",
                    value=s_time.tolist(),
                )
            if np.any(s_time <= 0.0) or np.any(s_time > 1.0):
                raise InvalidParameter(
                    f"spending_time must be in (0, 1], got {s_time.tolist()}",
                    parameter="spending_time",
                    value=s_time.tolist(),
                )
            check_strictly_increasing(s_time, "spending_time")
            if s_time[-1] != 1.0:
                raise InvalidParameter(
                    f"final spending_time must be 1, got {s_time[-1]}",
                    parameter="spending_time",
                    value=s_time.tolist(),
                )

        # Spending functions
        upper_sf = _resolve_sf(sfu, sfupar, alpha, DEFAULT_HSD_UPPER, "sfu")
        if test_type in (3, 4):
            lower_sf = _resolve_sf(sfl, sflpar, beta, DEFAULT_HSD_LOWER, "sfl")
        elif test_type in (5, 6):
            lower_sf = _resolve_sf(sfl, sflpar, astar, DEFAULT_HSD_LOWER, "sfl")
        else:
            lower_sf = None

        # Effect size
        theta_std = float(norm.isf(alpha) + norm.isf(beta))
        delta = check_scalar_in_range(delta, "delta", 0.0, math.inf, low_inclusive=True)
        if delta > 0.0:
            n_fix = (theta_std / delta) ** 2
        else:
            n_fix = check_scalar_in_range(n_fix, "n_fix", 0.0, math.inf)
            delta = theta_std / math.sqrt(n_fix)
        delta0 = check_scalar_in_range(delta0, "delta0", -math.inf, math.inf)
        delta1 = check_scalar_in_range(delta1, "delta1", -math.inf, math.inf)
        if delta0 == delta1:
            raise InvalidParameter(
                f"delta0 and delta1 must differ, both are {delta0}",
                parameter="delta1",
                value=delta1,
            )

        return cls(
            k=k,
            test_type=int(test_type),
            alpha=alpha,
            beta=beta,
            astar=astar,
            timing=schedule.values,
            spending_time=s_time,
            upper_sf=upper_sf,
            lower_sf=lower_sf,
            delta=delta,
            delta0=delta0,
            delta1=delta1,
            n_fix=float(n_fix),
            n_i=n_arr,
            max_n_plan=None if max_n_plan is None else float(max_n_plan),
            r=int(r),
            tol=tol,
        )

    def with_information(self, n_i: ArrayLike, max_n_plan: float) -> GSDesign:
        """Same error rates, spending and test type with fixed n_i."""
        return GSDesign.for_design(
            k=len(np.atleast_1d(n_i)),
            test_type=self.test_type,
            alpha=self.alpha,
            beta=self.beta,
            astar=self.astar if self.test_type in (5, 6) else 0.0,
            sfu=self.upper_sf,
            sfl=self.lower_sf if self.lower_sf is not None else "hsd",
            delta0=self.delta0,
            delta1=self.delta1,
            n_fix=self.n_fix,
            n_i=n_i,
            max_n_plan=max_n_plan,
            r=self.r,
            tol=self.tol,
        )

    @property
    def theta(self) -> float:
        """Standardized drift under H1 on the fixed-design information scale."""
        return float(norm.isf(self.alpha) + norm.isf(self.beta))

    @property
    def binding(self) -> bool:
        return self.test_type in BINDING_TYPES

    @property
    def test_type_label(self) -> str:
        return TEST_TYPES[self.test_type]

    @property
    def solve_sample_size(self) -> bool:
        """True if n_i is to be solved rather than fixed."""
        return self.n_i is None
