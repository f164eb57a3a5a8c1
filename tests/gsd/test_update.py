"""
Tests for re-deriving bounds at observed sample sizes.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy.stats import norm

from pysequential.core.exceptions import InconsistentSchedule
from pysequential.gsd import gs_design


class TestUpdate:

    def test_planned_counts_reproduce_design(self, asymmetric_design):
        x = asymmetric_design
        y = x.update(x.n_i)
        assert_allclose(y.upper, x.upper, atol=1e-6)
        assert_allclose(y.lower[:-1], x.lower[:-1], atol=1e-6)
        assert_allclose(y.n_i, x.n_i, rtol=1e-12)

    def test_partial_update_first_bound(self, ldof_one_sided):
        x = ldof_one_sided
        observed = 0.8 * x.n_i[0]
        y = x.update([observed])
        t = observed / x.max_n
        assert_allclose(y.spending_fractions[0], t, rtol=1e-12)
        assert_allclose(y.upper[0], norm.isf(x.design.upper_sf.spend(t)), rtol=1e-10)
        assert_allclose(y.n_i[1:], x.n_i[1:], rtol=1e-12)

    def test_full_alpha_spent_at_final(self, ldof_one_sided):
        x = ldof_one_sided
        y = x.update([x.n_i[0], x.n_i[1], 0.9 * x.n_i[2]])
        assert_allclose(np.sum(y.upper_spend), 0.025, rtol=1e-12)
        assert_allclose(y.spending_fractions[-1], 1.0)

    def test_overrun_at_final(self, ldof_one_sided):
        x = ldof_one_sided
        y = x.update([x.n_i[0], x.n_i[1], 1.1 * x.n_i[2]])
        assert y.timing[-1] > 1.0
        assert_allclose(y.spending_fractions[-1], 1.0)

    def test_original_unchanged(self, ldof_one_sided):
        x = ldof_one_sided
        before = x.upper.copy()
        x.update([0.5 * x.n_i[0]])
        assert_allclose(x.upper, before, rtol=0)

    def test_power_reported_not_solved(self, asymmetric_design):
        x = asymmetric_design
        y = x.update([0.7 * x.n_i[0], 0.9 * x.n_i[1]])
        assert not y.design.solve_sample_size
        assert 0.0 < y.power < 1.0

    def test_update_chains(self, asymmetric_design):
        x = asymmetric_design
        y = x.update([0.9 * x.n_i[0]])
        z = y.update([0.9 * x.n_i[0], 1.05 * x.n_i[1]])
        assert_allclose(z.n_i[0], 0.9 * x.n_i[0])
        assert_allclose(z.upper[0], y.upper[0], rtol=1e-12)


class TestUpdateErrors:

    def test_decreasing(self, asymmetric_design):
        x = asymmetric_design
        with pytest.raises(InconsistentSchedule):
            x.update([x.n_i[0], 0.9 * x.n_i[0]])

    def test_out_of_order_with_plan(self, asymmetric_design):
        x = asymmetric_design
        with pytest.raises(InconsistentSchedule):
            x.update([1.5 * x.n_i[1]])

    def test_too_many(self, asymmetric_design):
        x = asymmetric_design
        with pytest.raises(InconsistentSchedule) as exc_info:
            x.update(np.append(x.n_i, 2 * x.n_i[-1]))
        assert exc_info.value.planned == pytest.approx(list(x.n_i))

    def test_empty(self, asymmetric_design):
        with pytest.raises(InconsistentSchedule):
            asymmetric_design.update([])

    @pytest.mark.parametrize("bad", [0.0, -1.0, np.nan])
    def test_non_positive(self, asymmetric_design, bad):
        with pytest.raises(InconsistentSchedule):
            asymmetric_design.update([bad])

    def test_interim_reaching_final(self, asymmetric_design):
        x = asymmetric_design
        with pytest.raises(InconsistentSchedule):
            x.update([x.n_i[0], x.max_n])

    def test_k_equal_interim_at_plan(self):
        x = gs_design(k=2, test_type=1)
        with pytest.raises(InconsistentSchedule):
            x.update([x.max_n])
