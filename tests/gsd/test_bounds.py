"""
Tests for group sequential bound derivation.

Validates:
    - Published one-sided bounds (O'Brien-Fleming and HSD(-4) spending)
    - Crossing probabilities reproduce the spending increments
    - Power of a solved design equals 1 - beta
    - Monte Carlo Type I error of the derived bounds
    - Structure of each test type
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy.stats import norm

from pysequential.core.compute.tolerances import FINE
from pysequential.gsd import gs_design, gs_probability
from pysequential.gsd.solution import GSSolution


# ═══════════════════════════════════════════════════════════════════════
# Published values
# ═══════════════════════════════════════════════════════════════════════


class TestPublishedBounds:

    def test_ldof_one_sided(self, ldof_one_sided):
        assert_allclose(ldof_one_sided.upper, [3.7103, 2.5114, 1.9930], atol=2e-3)

    def test_ldof_first_bound_closed_form(self, ldof_one_sided):
        sf = ldof_one_sided.design.upper_sf
        assert_allclose(ldof_one_sided.upper[0], norm.isf(sf.spend(1.0 / 3.0)), rtol=1e-10)

    def test_hsd_upper(self, asymmetric_design):
        assert_allclose(asymmetric_design.upper, [3.0107, 2.5465, 1.9992], atol=2e-3)

    def test_fine_tier_agrees(self, ldof_one_sided):
        fine = gs_design(k=3, test_type=1, sfu="ldof", r=FINE.r, tol=FINE.tol)
        assert_allclose(fine.upper, ldof_one_sided.upper, atol=1e-4)

    def test_one_sided_has_no_lower(self, ldof_one_sided):
        assert np.all(np.isneginf(ldof_one_sided.lower))


# ═══════════════════════════════════════════════════════════════════════
# Spending and operating characteristics
# ═══════════════════════════════════════════════════════════════════════


class TestSpendingReproduced:

    def test_upper_spend_sums_to_alpha(self, asymmetric_design):
        assert_allclose(np.sum(asymmetric_design.upper_spend), 0.025, rtol=1e-12)

    def test_lower_spend_sums_to_beta(self, asymmetric_design):
        assert_allclose(np.sum(asymmetric_design.lower_spend), 0.1, rtol=1e-12)

    def test_one_sided_null_crossings_match_spend(self, ldof_one_sided):
        assert_allclose(
            ldof_one_sided.upper_prob_null, ldof_one_sided.upper_spend, atol=1e-5,
        )

    def test_nonbinding_alpha(self, asymmetric_design):
        assert_allclose(asymmetric_design.alpha_nonbinding, 0.025, atol=1e-5)
        assert asymmetric_design.alpha_binding < asymmetric_design.alpha_nonbinding

    def test_binding_alpha(self):
        x = gs_design(test_type=3)
        assert_allclose(x.alpha_binding, 0.025, atol=1e-5)

    def test_binding_beta_spending_solves_max_information(self):
        x = gs_design(test_type=3)
        assert_allclose(x.power, 0.9, atol=1e-4)
        assert 1.0 < x.inflation_factor < 1.2
        assert_allclose(np.sum(x.lower_prob_alt), 0.1, atol=1e-4)
        nonbinding = gs_design(test_type=4)
        assert x.inflation_factor < nonbinding.inflation_factor

    def test_power_equals_target(self, asymmetric_design):
        assert_allclose(asymmetric_design.power, 0.9, atol=1e-4)

    def test_beta_spending_under_alternative(self, asymmetric_design):
        x = asymmetric_design
        assert_allclose(x.lower_prob_alt[:-1], x.lower_spend[:-1], atol=1e-5)
        assert_allclose(np.sum(x.lower_prob_alt), 0.1, atol=1e-4)

    def test_inflation_factor(self, asymmetric_design):
        assert 1.0 < asymmetric_design.inflation_factor < 1.2
        assert_allclose(asymmetric_design.max_n, asymmetric_design.inflation_factor)

    def test_expected_sample_size(self, asymmetric_design):
        x = asymmetric_design
        assert x.n_i[0] < x.en_alt < x.max_n
        assert x.n_i[0] < x.en_null < x.max_n

    def test_nominal_p_first_look(self, ldof_one_sided):
        assert_allclose(
            ldof_one_sided.nominal_p_upper[0], ldof_one_sided.upper_spend[0], rtol=1e-8,
        )

    def test_gs_probability_matches_design(self, ldof_one_sided):
        x = ldof_one_sided
        result = gs_probability([0.0, x.delta], x.n_i, x.lower, x.upper)
        assert_allclose(result.params.upper_prob[:, 0], x.upper_spend, atol=1e-5)
        assert_allclose(result.params.upper_prob[:, 1], x.upper_prob_alt, atol=1e-10)

    def test_operating_characteristics(self, asymmetric_design):
        oc = asymmetric_design.operating_characteristics([0.0, asymmetric_design.delta])
        assert oc["upper_prob"].shape == (3, 2)
        assert_allclose(np.sum(oc["upper_prob"][:, 1]), asymmetric_design.power, atol=1e-10)
        assert_allclose(oc["en"][0], asymmetric_design.en_null, rtol=1e-10)


class TestMonteCarlo:

    def test_type_one_error(self, ldof_one_sided, rng):
        x = ldof_one_sided
        n_sim = 200_000
        d_n = np.diff(np.concatenate(([0.0], x.n_i)))
        increments = rng.standard_normal((n_sim, x.k)) * np.sqrt(d_n)
        z = np.cumsum(increments, axis=1) / np.sqrt(x.n_i)
        rejected = np.any(z >= x.upper, axis=1)
        se = math.sqrt(0.025 * 0.975 / n_sim)
        assert abs(np.mean(rejected) - 0.025) < 4.0 * se


# ═══════════════════════════════════════════════════════════════════════
# Test types
# ═══════════════════════════════════════════════════════════════════════


class TestTestTypes:

    def test_symmetric(self):
        x = gs_design(test_type=2)
        assert_allclose(x.lower, -x.upper)
        assert_allclose(np.sum(x.upper_prob_null), 0.025, atol=1e-5)
        assert_allclose(np.sum(x.lower_prob_null), 0.025, atol=1e-5)

    @pytest.mark.parametrize("test_type", [3, 4])
    def test_final_bounds_meet(self, test_type):
        x = gs_design(test_type=test_type)
        assert x.lower[-1] == x.upper[-1]
        assert np.all(x.lower[:-1] < x.upper[:-1])

    @pytest.mark.parametrize("test_type", [5, 6])
    def test_null_lower_spending(self, test_type):
        x = gs_design(test_type=test_type)
        assert_allclose(x.design.lower_sf.total_error, 0.975)
        assert_allclose(x.lower_prob_null[0], x.lower_spend[0], atol=1e-8)
        assert np.all(x.lower <= x.upper)

    def test_astar(self):
        x = gs_design(test_type=6, astar=0.2)
        assert_allclose(np.sum(x.lower_spend), 0.2, rtol=1e-12)

    def test_nonbinding_upper_independent_of_lower(self):
        a = gs_design(test_type=4, sflpar=-2)
        b = gs_design(test_type=4, sflpar=-6)
        assert_allclose(a.upper, b.upper, atol=1e-6)

    def test_binding_futility_monotone(self):
        n = [0.4, 0.8, 1.2]
        aggressive = gs_design(test_type=3, sflpar=-2, n_i=n)
        conservative = gs_design(test_type=3, sflpar=-6, n_i=n)
        assert conservative.lower[0] < aggressive.lower[0]
        assert_allclose(conservative.upper[0], aggressive.upper[0], rtol=1e-12)
        assert conservative.upper[1] >= aggressive.upper[1] - 1e-6

    def test_single_analysis_is_fixed_design(self):
        x = gs_design(k=1, test_type=1)
        assert_allclose(x.upper[0], norm.isf(0.025), rtol=1e-10)
        assert_allclose(x.inflation_factor, 1.0, atol=1e-5)


class TestScenarios:

    def test_unequal_timing(self):
        x = gs_design(
            k=3, test_type=4, alpha=0.025, beta=0.15,
            timing=[0.25, 0.75], sfu="ldof", sfl="hsd", sflpar=-7,
        )
        assert isinstance(x, GSSolution)
        assert len(x.n_i) == 3
        assert np.all(np.diff(x.n_i) > 0)
        assert np.all(np.diff(x.upper) < 0)
        assert_allclose(x.timing, [0.25, 0.75, 1.0])
        assert_allclose(x.power, 0.85, atol=1e-4)

    def test_effect_scale(self):
        x = gs_design(delta=0.3, delta1=0.3)
        assert_allclose(x.n_fix, ((norm.isf(0.025) + norm.isf(0.1)) / 0.3) ** 2)
        assert_allclose(x.effect_upper, x.upper / np.sqrt(x.n_i), rtol=1e-10)

    def test_custom_spending_time(self):
        x = gs_design(k=3, test_type=1, sfu="ldof", spending_time=[0.5, 0.8, 1.0])
        sf = x.design.upper_sf
        assert_allclose(x.upper[0], norm.isf(sf.spend(0.5)), rtol=1e-10)

    def test_clamped_lower_bound(self):
        x = gs_design(test_type=4, n_i=[4.0, 5.0, 6.0])
        assert 1 in x.clamped
        assert x.lower[0] == x.upper[0]
        assert any("analysis 1" in w for w in x.warnings)

    def test_result_envelope(self, asymmetric_design):
        x = asymmetric_design
        assert x.backend_name == "cpu_gs_recursion"
        assert x.info_dict["test_type"] == 4
        assert "inflation_factor" in x.info_dict
        assert x.timing_info is not None

    def test_to_dict_is_json_ready(self, ldof_one_sided):
        d = ldof_one_sided.to_dict()
        assert d["lower"] == [None, None, None]
        assert all(isinstance(v, float) for v in d["upper"])

    def test_summary(self, asymmetric_design):
        text = asymmetric_design.summary()
        assert "Hwang-Shih-DeCani" in text
