"""
Tests for fixed and group sequential survival sample sizes.
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pysequential.core.exceptions import InfeasibleDesign, InvalidParameter
from pysequential.interim import conditional_power
from pysequential.survival import (
    AccrualProfile,
    GSSurvSolution,
    expected_events,
    gs_surv,
    n_events,
    n_surv,
)


SCENARIO = dict(
    lambda_c=math.log(2) / 12,
    hr=0.75,
    gamma=[1.0, 1.5, 2.5, 4.0],
    R=[1.0, 2.0, 3.0, 4.0],
    T=36.0,
    minfup=12.0,
)

ABSOLUTE_RATES = dict(
    lambda_c=math.log(2) / 12,
    hr=0.75,
    gamma=[10.0, 15.0, 25.0, 40.0],
    R=[1.0, 2.0, 3.0, 4.0],
    minfup=12.0,
    solve_for="duration",
)


@pytest.fixture(scope="module")
def fixed():
    return n_surv(**SCENARIO)


@pytest.fixture(scope="module")
def grouped():
    return gs_surv(k=3, test_type=4, **SCENARIO)


def _model_events(sol, times):
    """Expected events at calendar times from the solution's accrual."""
    lam = SCENARIO["lambda_c"]
    half = sol.rates / 2.0
    control = expected_events(times, lam, gamma=half, R=sol.durations).events
    experimental = expected_events(times, lam * sol.hr, gamma=half, R=sol.durations).events
    return control + experimental


# ═══════════════════════════════════════════════════════════════════════
# Accrual profile
# ═══════════════════════════════════════════════════════════════════════


class TestAccrualProfile:

    def test_fit_extends_last_period(self):
        a = AccrualProfile.for_accrual([1, 1.5, 2.5, 4], [1, 2, 3, 4]).fit(24.0)
        assert_allclose(a.durations, [1, 2, 3, 18])

    def test_fit_truncates(self):
        a = AccrualProfile.for_accrual([1, 1.5, 2.5, 4], [1, 2, 3, 4]).fit(2.0)
        assert_allclose(a.durations, [1, 1])
        assert_allclose(a.rates, [1, 1.5])

    def test_broadcast(self):
        a = AccrualProfile.for_accrual(5.0, [2.0, 3.0])
        assert_allclose(a.rates, [5.0, 5.0])
        assert a.total_enrollment == 25.0

    def test_length_mismatch(self):
        with pytest.raises(InvalidParameter):
            AccrualProfile.for_accrual([1, 2, 3], [1, 2])


# ═══════════════════════════════════════════════════════════════════════
# Fixed design
# ═══════════════════════════════════════════════════════════════════════


class TestNSurv:

    def test_events_near_schoenfeld(self, fixed):
        assert_allclose(fixed.events, n_events(hr=0.75), rtol=0.03)

    def test_power(self, fixed):
        assert_allclose(fixed.power, 0.9, atol=1e-8)

    def test_accrual_fitted(self, fixed):
        assert_allclose(fixed.durations, [1, 2, 3, 18])
        assert_allclose(fixed.rates, np.array([1.0, 1.5, 2.5, 4.0]) * fixed.rate_multiplier)
        assert_allclose(fixed.accrual_duration, 24.0)
        assert_allclose(fixed.n, np.sum(fixed.rates * fixed.durations))

    def test_events_by_arm(self, fixed):
        assert fixed.events_c > fixed.events_e
        assert_allclose(fixed.events_c + fixed.events_e, fixed.events)
        assert_allclose(_model_events(fixed, 36.0)[0], fixed.events, rtol=1e-10)

    def test_duration_mode(self):
        sol = n_surv(**ABSOLUTE_RATES)
        assert sol.rate_multiplier == 1.0
        assert_allclose(sol.T, sol.accrual_duration + 12.0)
        assert_allclose(sol.power, 0.9, atol=1e-5)
        check = n_surv(**{**SCENARIO, "gamma": ABSOLUTE_RATES["gamma"], "T": sol.T})
        assert_allclose(check.rate_multiplier, 1.0, rtol=1e-4)

    def test_max_accrual_too_short(self):
        with pytest.raises(InfeasibleDesign):
            n_surv(**ABSOLUTE_RATES, max_accrual=5.0)

    def test_max_accrual_sufficient(self):
        sol = n_surv(**ABSOLUTE_RATES, max_accrual=60.0)
        assert sol.accrual_duration < 60.0

    def test_dropout_increases_sample_size(self, fixed):
        dropped = n_surv(**{**SCENARIO, "eta": 0.01})
        assert dropped.n > fixed.n

    def test_hr_not_below_hr0(self):
        with pytest.raises(InvalidParameter):
            n_surv(**{**SCENARIO, "hr": 1.2})

    def test_T_not_after_minfup(self):
        with pytest.raises(InvalidParameter):
            n_surv(**{**SCENARIO, "T": 12.0})

    def test_T_required_in_rate_mode(self):
        params = {key: v for key, v in SCENARIO.items() if key != "T"}
        with pytest.raises(InvalidParameter) as exc_info:
            n_surv(**params)
        assert exc_info.value.parameter == "T"

    def test_T_rejected_in_duration_mode(self):
        with pytest.raises(InvalidParameter) as exc_info:
            n_surv(**ABSOLUTE_RATES, T=40.0)
        assert exc_info.value.parameter == "T"
        with pytest.raises(InvalidParameter):
            gs_surv(k=3, **ABSOLUTE_RATES, T=40.0)

    def test_max_accrual_in_rate_mode(self):
        with pytest.raises(InvalidParameter):
            n_surv(**SCENARIO, max_accrual=30.0)

    def test_to_dict(self, fixed):
        d = fixed.to_dict()
        assert d["events"] == pytest.approx(fixed.events)


# ═══════════════════════════════════════════════════════════════════════
# Group sequential design
# ═══════════════════════════════════════════════════════════════════════


class TestGSSurv:

    def test_type(self, grouped):
        assert isinstance(grouped, GSSurvSolution)

    def test_events_inflated(self, grouped, fixed):
        assert np.all(np.diff(grouped.events) > 0)
        assert_allclose(grouped.max_events, fixed.events * grouped.gs.inflation_factor, rtol=1e-10)
        assert_allclose(grouped.n, fixed.n * grouped.gs.inflation_factor, rtol=1e-10)

    def test_calendar_times(self, grouped):
        assert np.all(np.diff(grouped.analysis_times) > 0)
        assert grouped.analysis_times[-1] == 36.0

    def test_events_match_model(self, grouped):
        assert_allclose(grouped.events_c + grouped.events_e, grouped.events, rtol=1e-5)
        assert_allclose(_model_events(grouped, grouped.analysis_times), grouped.events, rtol=1e-5)

    def test_enrollment(self, grouped):
        assert_allclose(grouped.enrolled[-1], grouped.n, rtol=1e-10)
        assert np.all(np.diff(grouped.enrolled) >= 0)

    def test_power(self, grouped):
        assert_allclose(grouped.power, 0.9, atol=1e-4)

    def test_binding_futility(self, grouped, fixed):
        sol = gs_surv(k=3, test_type=3, **SCENARIO)
        assert_allclose(sol.power, 0.9, atol=1e-4)
        assert sol.max_events < grouped.max_events
        assert_allclose(sol.max_events, fixed.events * sol.gs.inflation_factor, rtol=1e-10)

    def test_hazard_ratio_bounds(self, grouped):
        assert np.all(grouped.hr_upper < 1.0)
        assert grouped.hr_upper[0] < grouped.hr_upper[-1]
        assert_allclose(grouped.hr_lower[-1], grouped.hr_upper[-1])

    def test_calendar_schedule(self):
        sol = gs_surv(k=3, analysis_times=[12.0, 24.0], **SCENARIO)
        assert_allclose(sol.analysis_times, [12.0, 24.0, 36.0])
        assert sol.timing[-1] == 1.0
        assert_allclose(sol.events_c + sol.events_e, sol.events, rtol=1e-8)

    def test_calendar_and_timing_conflict(self):
        with pytest.raises(InvalidParameter):
            gs_surv(k=3, timing=[0.3, 0.6], analysis_times=[12.0, 24.0], **SCENARIO)

    def test_calendar_requires_rate_mode(self):
        with pytest.raises(InvalidParameter):
            gs_surv(k=3, analysis_times=[12.0, 24.0], **ABSOLUTE_RATES)

    def test_duration_mode(self):
        fixed = n_surv(**ABSOLUTE_RATES)
        sol = gs_surv(k=3, **ABSOLUTE_RATES)
        assert sol.accrual_duration > fixed.accrual_duration
        assert sol.rate_multiplier == 1.0
        assert_allclose(sol.events_c[-1] + sol.events_e[-1], sol.max_events, rtol=1e-6)
        assert_allclose(sol.power, 0.9, atol=1e-4)

    def test_update_planned(self, grouped):
        again = grouped.update(grouped.events)
        assert_allclose(again.upper, grouped.upper, atol=1e-6)
        assert_allclose(again.analysis_times, grouped.analysis_times)

    def test_update_fewer_events(self, grouped):
        observed = 0.9 * grouped.events[0]
        updated = grouped.update([observed])
        assert_allclose(updated.events[0], observed)
        assert updated.upper[0] > grouped.upper[0]
        assert_allclose(updated.events_c + updated.events_e, updated.events)

    def test_interim_functions_accept_survival_design(self, grouped):
        cp = conditional_power(grouped, 1, 1.0)
        assert 0.0 <= cp <= 1.0

    def test_summary(self, grouped):
        assert "maximum events" in grouped.summary()
