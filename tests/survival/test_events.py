"""
Tests for the piecewise-exponential event model.
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pysequential.core.exceptions import InfeasibleDesign, InvalidParameter
from pysequential.survival import expected_events, time_for_events


def _uniform_accrual_events(T, lam, gamma, R):
    """Closed form for constant hazard, no dropout, one accrual period."""
    if T <= R:
        return gamma * (T - (1.0 - math.exp(-lam * T)) / lam)
    return gamma * (R - (math.exp(-lam * (T - R)) - math.exp(-lam * T)) / lam)


class TestExpectedEvents:

    @pytest.mark.parametrize("T", [3.0, 12.0, 20.0, 48.0])
    def test_closed_form(self, T):
        sol = expected_events(T, 0.1, gamma=10.0, R=12.0)
        assert_allclose(sol.events[0], _uniform_accrual_events(T, 0.1, 10.0, 12.0), rtol=1e-10)

    def test_enrollment(self):
        sol = expected_events([6.0, 12.0, 24.0], 0.1, gamma=[5.0, 10.0], R=[4.0, 8.0])
        assert_allclose(sol.enrolled, [5 * 4 + 10 * 2, 100.0, 100.0])

    def test_zero_time(self):
        assert expected_events(0.0, 0.1).events[0] == 0.0

    def test_monotone(self):
        T = np.linspace(0.0, 60.0, 241)
        events = expected_events(T, [0.05, 0.1], S=[6.0], eta=0.01, gamma=[2.0, 8.0], R=[3.0, 9.0]).events
        assert np.all(np.diff(events) >= 0.0)

    def test_converges_to_asymptote(self):
        sol = expected_events(1000.0, 0.1, eta=0.02, gamma=10.0, R=12.0)
        assert_allclose(sol.asymptote, 120.0 * 0.1 / 0.12, rtol=1e-12)
        assert_allclose(sol.events[0], sol.asymptote, rtol=1e-8)

    def test_equal_periods_match_single(self):
        T = [2.0, 5.0, 7.5, 30.0]
        split = expected_events(T, [0.1, 0.1], S=[5.0], gamma=4.0, R=10.0).events
        single = expected_events(T, 0.1, gamma=4.0, R=10.0).events
        assert_allclose(split, single, rtol=1e-12)

    def test_dropout_reduces_events(self):
        base = expected_events(24.0, 0.1, gamma=10.0, R=12.0).events[0]
        dropped = expected_events(24.0, 0.1, eta=0.05, gamma=10.0, R=12.0).events[0]
        assert dropped < base

    def test_zero_hazard_after_cure(self):
        sol = expected_events(500.0, [0.2, 0.0], S=[2.0], gamma=1.0, R=1.0)
        assert_allclose(sol.ultimate_fraction, 1.0 - math.exp(-0.4), rtol=1e-12)

    def test_negative_time(self):
        with pytest.raises(InvalidParameter):
            expected_events(-1.0, 0.1)

    def test_wrong_S_length(self):
        with pytest.raises(InvalidParameter):
            expected_events(10.0, [0.1, 0.2], S=[1.0, 2.0])

    def test_no_positive_rate(self):
        with pytest.raises(InvalidParameter):
            expected_events(10.0, 0.1, gamma=0.0)


class TestTimeForEvents:

    def test_inverts_event_model(self):
        T = time_for_events(100.0, 0.1, hr=0.7, gamma=20.0, R=12.0)
        control = expected_events(T, 0.1, gamma=10.0, R=12.0).events[0]
        experimental = expected_events(T, 0.07, gamma=10.0, R=12.0).events[0]
        assert_allclose(control + experimental, 100.0, atol=1e-3)

    def test_unattainable(self):
        with pytest.raises(InfeasibleDesign):
            time_for_events(1000.0, 0.1, hr=0.7, gamma=20.0, R=12.0)

    def test_non_positive_target(self):
        with pytest.raises(InvalidParameter):
            time_for_events(0.0, 0.1)
