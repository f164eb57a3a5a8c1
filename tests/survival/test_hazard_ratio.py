"""
Tests for hazard ratio / Z conversions and the Schoenfeld event count.
"""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy.stats import norm

from pysequential.core.exceptions import InvalidParameter
from pysequential.survival import hr_to_z, n_events, z_to_hr


class TestConversions:

    def test_known_value(self):
        assert_allclose(z_to_hr(1.96, 100), math.exp(-1.96 / 5.0), rtol=1e-12)

    @pytest.mark.parametrize("ratio", [1.0, 2.0, 0.5])
    def test_inverse(self, ratio):
        z = hr_to_z([0.6, 0.8, 1.1], 300, ratio=ratio)
        assert_allclose(z_to_hr(z, 300, ratio=ratio), [0.6, 0.8, 1.1], rtol=1e-12)

    def test_sign(self):
        assert hr_to_z(0.8, 200) > 0
        assert z_to_hr(2.0, 200) < 1.0

    def test_hr0(self):
        assert_allclose(z_to_hr(0.0, 150, hr0=1.2), 1.2)

    def test_vectorized_events(self):
        out = z_to_hr([2.0, 2.0], [100, 400])
        assert out[0] < out[1] < 1.0

    def test_bad_events(self):
        with pytest.raises(InvalidParameter):
            z_to_hr(1.0, 0)

    def test_bad_hr(self):
        with pytest.raises(InvalidParameter):
            hr_to_z(-0.5, 100)


class TestEventCount:

    def test_schoenfeld(self):
        expected = 4.0 * (norm.isf(0.025) + norm.isf(0.1)) ** 2 / math.log(0.75) ** 2
        assert_allclose(n_events(hr=0.75), expected, rtol=1e-12)
        assert round(n_events(hr=0.75)) == 508

    def test_two_sided(self):
        assert_allclose(n_events(hr=0.75, alpha=0.05, sided=2), n_events(hr=0.75))

    def test_unequal_allocation_needs_more(self):
        assert n_events(hr=0.75, ratio=2.0) > n_events(hr=0.75)

    def test_hr_equal_hr0(self):
        with pytest.raises(InvalidParameter):
            n_events(hr=1.0)

    def test_bad_sided(self):
        with pytest.raises(InvalidParameter):
            n_events(sided=3)
