"""
Survival trial assumptions: immutable, validated at construction.

AccrualProfile and HazardProfile describe enrollment and the event
process; SurvivalDesign bundles them with the study timing and error
rates for the sample size solvers. Downstream code trusts clean inputs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.stats import norm

from pysequential.core.exceptions import InvalidParameter
from pysequential.core.validation import (
    check_array,
    check_finite,
    check_positive,
    check_scalar_in_range,
)


def _profile_array(values: ArrayLike, name: str, *, strict: bool) -> NDArray:
    arr = check_array(values, name)
    check_finite(arr, name)
    check_positive(arr, name, strict=strict)
    return arr


@dataclass(frozen=True)
class AccrualProfile:
    """Piecewise-constant enrollment.

    ``rates[j]`` subjects per unit time are enrolled during period j of
    length ``durations[j]``. Periods follow each other from time 0.
    """

    durations: NDArray
    rates: NDArray

    @classmethod
    def for_accrual(cls, gamma: ArrayLike, R: ArrayLike) -> AccrualProfile:
        """Validate rates ``gamma`` and period durations ``R``.

        A scalar in either argument is broadcast to the length of the other.
        """
        rates = _profile_array(gamma, "gamma", strict=False)
        durations = _profile_array(R, "R", strict=True)
        if len(rates) == 1 and len(durations) > 1:
            rates = np.full(len(durations), rates[0])
        elif len(durations) == 1 and len(rates) > 1:
            durations = np.full(len(rates), durations[0])
        if len(rates) != len(durations):
            raise InvalidParameter(
                f"gamma and R must have the same length, got {len(rates)} and {len(durations)}",
                parameter="R",
                value=durations.tolist(),
            )
        if not np.any(rates > 0):
            raise InvalidParameter(
                "at least one accrual rate must be positive",
                parameter="gamma",
                value=rates.tolist(),
            )
        return cls(durations=durations, rates=rates)

    @property
    def total_duration(self) -> float:
        return float(np.sum(self.durations))

    @property
    def ends(self) -> NDArray:
        """Calendar time at which each period ends."""
        return np.cumsum(self.durations)

    @property
    def starts(self) -> NDArray:
        return self.ends - self.durations

    @property
    def total_enrollment(self) -> float:
        return float(np.sum(self.rates * self.durations))

    def fit(self, accrual_duration: float) -> AccrualProfile:
        """Stretch or truncate the pattern to end at ``accrual_duration``.

        Periods starting at or after the new end are dropped; the last
        remaining period is extended or shortened to end exactly there.
        """
        if not accrual_duration > 0:
            raise InvalidParameter(
                f"accrual duration must be positive, got {accrual_duration}",
                parameter="accrual_duration",
                value=accrual_duration,
            )
        keep = self.starts < accrual_duration
        durations = self.durations[keep].copy()
        rates = self.rates[keep].copy()
        durations[-1] = accrual_duration - float(np.sum(durations[:-1]))
        return AccrualProfile(durations=durations, rates=rates)

    def scaled(self, multiplier: float) -> AccrualProfile:
        return replace(self, rates=self.rates * multiplier)


@dataclass(frozen=True)
class ArmHazard:
    """Piecewise-constant event and dropout hazards of one arm.

    Period j covers [starts[j], starts[j + 1]); the last period is
    open-ended.
    """

    starts: NDArray
    event: NDArray
    dropout: NDArray


@dataclass(frozen=True)
class HazardProfile:
    """Control hazards, dropout and the effect under H0 and H1.

    Attributes
    ----------
    lambda_c : NDArray
        Control event hazard per period.
    S : NDArray
        Durations of all but the last hazard period.
    eta_c, eta_e : NDArray
        Dropout hazards per period for control and experimental arms.
    hr, hr0 : float
        Hazard ratio (experimental / control) under H1 and H0.
    ratio : float
        Randomization ratio, experimental : control.
    """

    lambda_c: NDArray
    S: NDArray
    eta_c: NDArray
    eta_e: NDArray
    hr: float
    hr0: float
    ratio: float

    @classmethod
    def for_hazards(
        cls,
        lambda_c: ArrayLike,
        *,
        S: ArrayLike | None = None,
        eta: ArrayLike = 0.0,
        eta_e: ArrayLike | None = None,
        hr: float = 0.6,
        hr0: float = 1.0,
        ratio: float = 1.0,
    ) -> HazardProfile:
        lam = _profile_array(lambda_c, "lambda_c", strict=False)
        n_periods = len(lam)
        if S is None:
            s_arr = np.empty(0, dtype=np.float64)
        else:
            s_arr = _profile_array(S, "S", strict=True)
        if len(s_arr) != n_periods - 1:
            raise InvalidParameter(
                f"S must have length len(lambda_c) - 1 = {n_periods - 1}, got {len(s_arr)}",
                parameter="S",
                value=s_arr.tolist(),
            )

        def _dropout(values: ArrayLike, name: str) -> NDArray:
            arr = _profile_array(values, name, strict=False)
            if len(arr) == 1:
                return np.full(n_periods, arr[0])
            if len(arr) != n_periods:
                raise InvalidParameter(
                    f"{name} must be a scalar or have one value per hazard period "
                    f"({n_periods}), got {len(arr)}",
                    parameter=name,
                    value=arr.tolist(),
                )
            return arr

        eta_c = _dropout(eta, "eta")
        eta_e_arr = eta_c.copy() if eta_e is None else _dropout(eta_e, "eta_e")

        hr = check_scalar_in_range(hr, "hr", 0.0, math.inf)
        hr0 = check_scalar_in_range(hr0, "hr0", 0.0, math.inf)
        if not hr < hr0:
            raise InvalidParameter(
                f"hr must be below hr0, got hr={hr} and hr0={hr0}",
                parameter="hr",
                value=hr,
            )
        ratio = check_scalar_in_range(ratio, "ratio", 0.0, math.inf)

        return cls(
            lambda_c=lam, S=s_arr, eta_c=eta_c, eta_e=eta_e_arr,
            hr=hr, hr0=hr0, ratio=ratio,
        )

    @property
    def starts(self) -> NDArray:
        return np.concatenate([[0.0], np.cumsum(self.S)])

    @property
    def lambda_c_null(self) -> NDArray:
        """Control hazard under H0.

        Chosen so that the randomization-weighted average hazard matches
        the alternative: lambda_c0 (1 + hr0 ratio) = lambda_c (1 + hr ratio).
        """
        return self.lambda_c * (1.0 + self.hr * self.ratio) / (1.0 + self.hr0 * self.ratio)

    @property
    def control_fraction(self) -> float:
        return 1.0 / (1.0 + self.ratio)

    @property
    def experimental_fraction(self) -> float:
        return self.ratio / (1.0 + self.ratio)

    def arms(self, hypothesis: Literal["alternative", "null"]) -> tuple[ArmHazard, ArmHazard]:
        """Control and experimental arm hazards under a hypothesis."""
        if hypothesis == "alternative":
            lam_c, ratio = self.lambda_c, self.hr
        else:
            lam_c, ratio = self.lambda_c_null, self.hr0
        starts = self.starts
        return (
            ArmHazard(starts=starts, event=lam_c, dropout=self.eta_c),
            ArmHazard(starts=starts, event=lam_c * ratio, dropout=self.eta_e),
        )

    @property
    def log_effect(self) -> float:
        """|log(hr / hr0)|."""
        return abs(math.log(self.hr / self.hr0))


@dataclass(frozen=True)
class SurvivalDesign:
    """Fixed-design survival trial configuration.

    Do not construct directly; use ``SurvivalDesign.for_survival``.

    ``solve_for == 'rate'``: study duration T and minimum follow-up are
    fixed, accrual rates are relative and scaled. ``solve_for ==
    'duration'``: accrual rates are absolute; the accrual duration (and
    hence T = accrual + minfup) is solved, bounded by ``max_accrual``.
    """

    accrual: AccrualProfile
    hazards: HazardProfile
    T: float | None
    minfup: float
    alpha: float
    beta: float
    sided: int
    solve_for: Literal["rate", "duration"]
    max_accrual: float | None

    @classmethod
    def for_survival(
        cls,
        lambda_c: ArrayLike,
        *,
        hr: float = 0.6,
        hr0: float = 1.0,
        eta: ArrayLike = 0.0,
        eta_e: ArrayLike | None = None,
        gamma: ArrayLike = 1.0,
        R: ArrayLike = 12.0,
        S: ArrayLike | None = None,
        T: float | None = None,
        minfup: float = 6.0,
        ratio: float = 1.0,
        alpha: float = 0.025,
        beta: float = 0.1,
        sided: int = 1,
        solve_for: Literal["rate", "duration"] = "rate",
        max_accrual: float | None = None,
    ) -> SurvivalDesign:
        """Create and validate survival trial assumptions.

        Raises
        ------
        InvalidParameter
            If any input is invalid.
        """
        hazards = HazardProfile.for_hazards(
            lambda_c, S=S, eta=eta, eta_e=eta_e, hr=hr, hr0=hr0, ratio=ratio,
        )
        accrual = AccrualProfile.for_accrual(gamma, R)

        if sided not in (1, 2):
            raise InvalidParameter(f"sided must be 1 or 2, got {sided!r}", parameter="sided", value=sided)
        alpha = check_scalar_in_range(alpha, "alpha", 0.0, 1.0 / sided)
        beta = check_scalar_in_range(beta, "beta", 0.0, 1.0 - alpha / sided)
        minfup = check_scalar_in_range(minfup, "minfup", 0.0, math.inf, low_inclusive=True)

        if solve_for == "rate":
            if T is None:
                raise InvalidParameter("T is required when solving for the accrual rate", parameter="T")
            T = check_scalar_in_range(T, "T", minfup, math.inf)
            if max_accrual is not None:
                raise InvalidParameter(
                    "max_accrual applies only when solving for the accrual duration",
                    parameter="max_accrual",
                    value=max_accrual,
                )
        elif solve_for == "duration":
            if T is not None:
                raise InvalidParameter(
                    "T is solved when solving for the accrual duration; leave it unset",
                    parameter="T",
                    value=T,
                )
            if max_accrual is not None:
                max_accrual = check_scalar_in_range(max_accrual, "max_accrual", 0.0, math.inf)
        else:
            raise InvalidParameter(
                f"solve_for must be 'rate' or 'duration', got {solve_for!r}",
                parameter="solve_for",
                value=solve_for,
            )

        return cls(
            accrual=accrual,
            hazards=hazards,
            T=T,
            minfup=minfup,
            alpha=alpha,
            beta=beta,
            sided=sided,
            solve_for=solve_for,
            max_accrual=max_accrual,
        )

    @property
    def z_alpha(self) -> float:
        return float(norm.isf(self.alpha / self.sided))

    @property
    def z_beta(self) -> float:
        return float(norm.isf(self.beta))
