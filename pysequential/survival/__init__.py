"""
Survival trial design.

Public API:
    expected_events(T, lambda_c, ...) -> EventsSolution
    time_for_events(events, lambda_c, ...) -> float
    n_surv(lambda_c, hr, ...) -> NSurvSolution
    gs_surv(k, test_type, ...) -> GSSurvSolution
    n_events(hr, alpha, beta, ...) -> float
    hr_to_z(hr, events, ...), z_to_hr(z, events, ...)
"""

from pysequential.survival.design import AccrualProfile, HazardProfile, SurvivalDesign
from pysequential.survival.solution import EventsSolution, GSSurvSolution, NSurvSolution
from pysequential.survival.solvers import (
    expected_events,
    gs_surv,
    hr_to_z,
    n_events,
    n_surv,
    time_for_events,
    z_to_hr,
)

__all__ = [
    "AccrualProfile",
    "HazardProfile",
    "SurvivalDesign",
    "EventsSolution",
    "NSurvSolution",
    "GSSurvSolution",
    "expected_events",
    "time_for_events",
    "n_surv",
    "gs_surv",
    "n_events",
    "hr_to_z",
    "z_to_hr",
]
