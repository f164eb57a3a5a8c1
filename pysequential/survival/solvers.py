"""
Public API for survival trial designs.

    expected_events(T, lambda_c, ...) → EventsSolution
    time_for_events(events, lambda_c, ...) → float
    n_surv(lambda_c, hr, ...) → NSurvSolution
    gs_surv(k, test_type, ..., lambda_c, hr, ...) → GSSurvSolution
    n_events(hr, alpha, beta, ...) → float
    hr_to_z(hr, events, ...) / z_to_hr(z, events, ...)

Each function validates inputs into a design, runs the event model and
solvers, and wraps the Result in a Solution.
"""

from __future__ import annotations

import math
from typing import Any, Literal

import numpy as np
from numpy.typing import ArrayLike

from pysequential.core.compute.timing import Timer
from pysequential.core.compute.tolerances import STANDARD
from pysequential.core.exceptions import InvalidParameter
from pysequential.core.result import Result
from pysequential.core.validation import (
    check_array,
    check_finite,
    check_positive,
    check_scalar_in_range,
)
from pysequential.gsd._engine import solve_design
from pysequential.gsd.design import AnalysisSchedule, GSDesign
from pysequential.spending import SpendingFunction
from pysequential.survival import _events, _lachin_foulkes as lf
from pysequential.survival._common import EventsParams, GSSurvParams, NSurvParams
from pysequential.survival._hazard_ratio import hr_to_z, n_events, z_to_hr
from pysequential.survival.design import (
    AccrualProfile,
    HazardProfile,
    SurvivalDesign,
)
from pysequential.survival.solution import EventsSolution, GSSurvSolution, NSurvSolution

__all__ = [
    "expected_events",
    "time_for_events",
    "n_surv",
    "gs_surv",
    "n_events",
    "hr_to_z",
    "z_to_hr",
]

DEFAULT_LAMBDA_C = math.log(2) / 6


def expected_events(
    T: ArrayLike,
    lambda_c: ArrayLike = DEFAULT_LAMBDA_C,
    *,
    eta: ArrayLike = 0.0,
    gamma: ArrayLike = 1.0,
    R: ArrayLike = 12.0,
    S: ArrayLike | None = None,
) -> EventsSolution:
    """Expected events and enrollment in a single arm.

    Parameters
    ----------
    T : array-like
        Calendar times since study start.
    lambda_c : array-like
        Event hazard per period.
    eta : array-like
        Dropout hazard, scalar or one per hazard period.
    gamma : array-like
        Absolute accrual rates.
    R : array-like
        Accrual period durations.
    S : array-like or None
        Durations of all but the last hazard period.

    Returns
    -------
    EventsSolution
    """
    times = check_array(T, "T")
    check_finite(times, "T")
    check_positive(times, "T", strict=False)

    arm, _ = HazardProfile.for_hazards(lambda_c, S=S, eta=eta).arms("alternative")
    accrual = AccrualProfile.for_accrual(gamma, R)

    timer = Timer()
    timer.start()
    with timer.section('events'):
        events = _events.arm_events(arm, accrual, times)
        enrolled = _events.enrollment(accrual, times)
    timer.stop()

    return EventsSolution(Result(
        params=EventsParams(
            T=times,
            events=np.atleast_1d(events),
            enrolled=np.atleast_1d(enrolled),
            ultimate_fraction=_events.ultimate_fraction(arm),
            total_enrollment=accrual.total_enrollment,
        ),
        info={"method": "Piecewise exponential expected events"},
        timing=timer.result(),
        backend_name="cpu_closed_form",
    ))


def _trial_events(hazards: HazardProfile, accrual: AccrualProfile):
    """Expected total events under H1 as a function of calendar time.

    Returns the function and its asymptote.
    """
    ctrl, expt = hazards.arms("alternative")
    fc, fe = hazards.control_fraction, hazards.experimental_fraction

    def events_at(t):
        return (fc * _events.arm_events(ctrl, accrual, t)
                + fe * _events.arm_events(expt, accrual, t))

    asymptote = accrual.total_enrollment * (
        fc * _events.ultimate_fraction(ctrl) + fe * _events.ultimate_fraction(expt)
    )
    return events_at, asymptote


def time_for_events(
    events: float,
    lambda_c: ArrayLike = DEFAULT_LAMBDA_C,
    *,
    hr: float = 0.6,
    hr0: float = 1.0,
    eta: ArrayLike = 0.0,
    eta_e: ArrayLike | None = None,
    gamma: ArrayLike = 1.0,
    R: ArrayLike = 12.0,
    S: ArrayLike | None = None,
    ratio: float = 1.0,
    tol: float = STANDARD.tol,
) -> float:
    """Calendar time at which a two-arm trial expects ``events`` events.

    ``gamma`` are absolute total accrual rates, split between arms by
    ``ratio``; the experimental arm has hazard ``hr * lambda_c``.

    Raises
    ------
    InfeasibleDesign
        If the trial never expects that many events.
    """
    hazards = HazardProfile.for_hazards(
        lambda_c, S=S, eta=eta, eta_e=eta_e, hr=hr, hr0=hr0, ratio=ratio,
    )
    accrual = AccrualProfile.for_accrual(gamma, R)
    target = check_scalar_in_range(events, "events", 0.0, math.inf)
    events_at, asymptote = _trial_events(hazards, accrual)
    return _events.time_for_events(events_at, target, asymptote, tol)


def _fixed_design(design: SurvivalDesign, tol: float) -> NSurvParams:
    h = design.hazards
    if design.solve_for == "rate":
        T = design.T
        accrual_duration = T - design.minfup
        relative = design.accrual.fit(accrual_duration)
        exp = lf.expectations(h, relative, T)
        m = lf.rate_multiplier(exp, h.log_effect, design.z_alpha, design.z_beta)
        accrual = relative.scaled(m)
    else:
        accrual_duration = lf.solve_accrual_duration(
            h, design.accrual, design.minfup, design.z_alpha, design.z_beta,
            1.0, design.max_accrual, tol,
        )
        T = accrual_duration + design.minfup
        accrual = design.accrual.fit(accrual_duration)
        m = 1.0

    scaled = lf.expectations(h, accrual, T)
    return NSurvParams(
        design=design,
        accrual=accrual,
        T=float(T),
        accrual_duration=float(accrual_duration),
        minfup=design.minfup,
        n=accrual.total_enrollment,
        events=scaled.events_c + scaled.events_e,
        events_c=scaled.events_c,
        events_e=scaled.events_e,
        events_null=scaled.events_c0 + scaled.events_e0,
        rate_multiplier=float(m),
        power=lf.power(scaled, h.log_effect, design.z_alpha),
    )


def n_surv(
    lambda_c: ArrayLike = DEFAULT_LAMBDA_C,
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
    tol: float = STANDARD.tol,
) -> NSurvSolution:
    """Fixed-design sample size for a time-to-event comparison.

    Uses the Lachin-Foulkes method: expected events under H0 (averaged
    control hazard) and H1 drive the variances of the logrank statistic.

    Parameters
    ----------
    lambda_c : array-like
        Control event hazard per period.
    hr, hr0 : float
        Hazard ratio under H1 and H0, hr < hr0.
    eta, eta_e : array-like
        Dropout hazards for control and experimental arm; ``eta_e``
        defaults to ``eta``.
    gamma : array-like
        Accrual rates: relative when ``solve_for='rate'``, absolute when
        ``solve_for='duration'``.
    R : array-like
        Accrual period durations. The last period is stretched or
        truncated to fit the accrual window.
    S : array-like or None
        Durations of all but the last hazard period.
    T : float or None
        Study duration; required with ``solve_for='rate'`` and
        rejected with ``solve_for='duration'``, where it is solved.
    minfup : float
        Minimum follow-up; accrual ends at T - minfup.
    ratio : float
        Randomization ratio, experimental : control.
    alpha, beta : float
        Type I error (per side) and Type II error.
    sided : int
        1 or 2.
    solve_for : {'rate', 'duration'}
        Scale the accrual rates, or solve the accrual duration.
    max_accrual : float or None
        Cap on the accrual duration when solving for it.
    tol : float
        Root-finding tolerance.

    Returns
    -------
    NSurvSolution

    Raises
    ------
    InvalidParameter
        On invalid assumptions.
    InfeasibleDesign
        If no finite positive solution exists, e.g. the target power is
        not reached within ``max_accrual``.
    """
    design = SurvivalDesign.for_survival(
        lambda_c, hr=hr, hr0=hr0, eta=eta, eta_e=eta_e, gamma=gamma, R=R, S=S,
        T=T, minfup=minfup, ratio=ratio, alpha=alpha, beta=beta, sided=sided,
        solve_for=solve_for, max_accrual=max_accrual,
    )
    tol = check_scalar_in_range(tol, "tol", 0.0, 0.1)

    timer = Timer()
    timer.start()
    with timer.section('lachin_foulkes'):
        params = _fixed_design(design, tol)
    timer.stop()

    return NSurvSolution(Result(
        params=params,
        info={"method": "Lachin-Foulkes", "solve_for": solve_for},
        timing=timer.result(),
        backend_name="cpu_closed_form",
    ))


def gs_surv(
    k: int = 3,
    test_type: int = 4,
    alpha: float = 0.025,
    beta: float = 0.1,
    astar: float = 0.0,
    *,
    timing: ArrayLike | None = None,
    analysis_times: ArrayLike | None = None,
    sfu: str | SpendingFunction = "hsd",
    sfupar: Any = None,
    sfl: str | SpendingFunction = "hsd",
    sflpar: Any = None,
    lambda_c: ArrayLike = DEFAULT_LAMBDA_C,
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
    solve_for: Literal["rate", "duration"] = "rate",
    max_accrual: float | None = None,
    r: int = STANDARD.r,
    tol: float = STANDARD.tol,
) -> GSSurvSolution:
    """Group sequential design for a time-to-event endpoint.

    The fixed design events from ``n_surv`` are inflated by the group
    sequential information factor. Accrual rates are then scaled
    (``solve_for='rate'``) or the accrual duration is extended
    (``solve_for='duration'``) so that the expected events at the end of
    the study match the maximum events.

    Analyses are scheduled either by information fraction (``timing``;
    calendar times are then derived from the event model) or by calendar
    time (``analysis_times``; information fractions are then derived).
    Calendar scheduling requires ``solve_for='rate'``, where T is fixed.

    Remaining parameters are those of ``gs_design`` and ``n_surv``.

    Returns
    -------
    GSSurvSolution
    """
    design = SurvivalDesign.for_survival(
        lambda_c, hr=hr, hr0=hr0, eta=eta, eta_e=eta_e, gamma=gamma, R=R, S=S,
        T=T, minfup=minfup, ratio=ratio, alpha=alpha, beta=beta, sided=1,
        solve_for=solve_for, max_accrual=max_accrual,
    )
    h = design.hazards

    timer = Timer()
    timer.start()

    with timer.section('lachin_foulkes'):
        fixed = _fixed_design(design, tol)

    if analysis_times is not None:
        if timing is not None:
            raise InvalidParameter(
                "give either timing or analysis_times, not both",
                parameter="analysis_times",
            )
        if solve_for != "rate":
            raise InvalidParameter(
                "calendar analysis times require solve_for='rate'",
                parameter="analysis_times",
            )
        times = AnalysisSchedule.calendar(analysis_times).values
        if len(times) == k - 1:
            times = np.append(times, fixed.T)
        if len(times) != k or times[-1] != fixed.T:
            raise InvalidParameter(
                f"analysis_times must give the {k - 1} interim times, or all {k} "
                f"ending at T = {fixed.T}",
                parameter="analysis_times",
                value=times.tolist(),
            )
        events_at, _ = _trial_events(h, fixed.accrual)
        expected = np.atleast_1d(events_at(times))
        timing = expected / expected[-1]

    gs_kwargs = dict(
        k=k, test_type=test_type, alpha=alpha, beta=beta, astar=astar,
        timing=timing, sfu=sfu, sfupar=sfupar, sfl=sfl, sflpar=sflpar,
        delta0=math.log(h.hr0), delta1=math.log(h.hr),
        n_fix=fixed.events, r=r, tol=tol,
    )
    with timer.section('bounds'):
        gs_result = solve_design(GSDesign.for_design(**gs_kwargs))
    inflation = float(gs_result.params.info[-1])

    if solve_for == "rate":
        T_gs = fixed.T
        accrual_duration = fixed.accrual_duration
        m = fixed.rate_multiplier * inflation
        accrual = fixed.accrual.scaled(inflation)
    else:
        with timer.section('accrual_duration'):
            accrual_duration = lf.solve_accrual_duration(
                h, design.accrual, design.minfup, design.z_alpha, design.z_beta,
                1.0 / inflation, design.max_accrual, tol,
            )
        T_gs = accrual_duration + design.minfup
        accrual = design.accrual.fit(accrual_duration)
        m = 1.0
        events_at, _ = _trial_events(h, accrual)
        # Events per unit of fixed-design information at the solved duration.
        gs_kwargs["n_fix"] = float(events_at(T_gs)) / inflation
        with timer.section('bounds'):
            gs_result = solve_design(GSDesign.for_design(**gs_kwargs))

    events_at, asymptote = _trial_events(h, accrual)
    n_i = gs_result.params.n_i
    with timer.section('calendar'):
        if analysis_times is not None:
            times_out = times
        else:
            times_out = np.array(
                [_events.time_for_events(events_at, float(d), asymptote, tol) for d in n_i[:-1]]
                + [T_gs]
            )

    ctrl, expt = h.arms("alternative")
    events_c = h.control_fraction * np.atleast_1d(_events.arm_events(ctrl, accrual, times_out))
    events_e = h.experimental_fraction * np.atleast_1d(_events.arm_events(expt, accrual, times_out))
    enrolled = np.atleast_1d(_events.enrollment(accrual, times_out))

    timer.stop()

    params = GSSurvParams(
        gs=gs_result.params,
        fixed=fixed,
        hazards=h,
        accrual=accrual,
        T=float(T_gs),
        accrual_duration=float(accrual_duration),
        minfup=design.minfup,
        analysis_times=times_out,
        events=n_i,
        events_c=events_c,
        events_e=events_e,
        enrolled=enrolled,
        rate_multiplier=float(m),
    )
    info = dict(gs_result.info)
    info.update({
        "method": "Group sequential survival design",
        "solve_for": solve_for,
        "schedule": "calendar" if analysis_times is not None else "information",
        "fixed_events": fixed.events,
    })
    return GSSurvSolution(Result(
        params=params,
        info=info,
        timing=timer.result(),
        backend_name="cpu_gs_recursion",
        warnings=gs_result.warnings,
    ))
