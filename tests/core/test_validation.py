"""
Tests for input validation utilities.
"""

import math

import numpy as np
import pytest

from pysequential.core.exceptions import DimensionError, InvalidParameter, ValidationError
from pysequential.core.compute.tolerances import FINE, STANDARD
from pysequential.core.validation import (
    check_array,
    check_consistent_length,
    check_finite,
    check_positive,
    check_scalar_in_range,
    check_strictly_increasing,
)


# ═══════════════════════════════════════════════════════════════════════
# check_array
# ═══════════════════════════════════════════════════════════════════════


class TestCheckArray:

    def test_list_to_float_array(self):
        result = check_array([1, 2, 3], "timing")
        assert np.issubdtype(result.dtype, np.floating)
        np.testing.assert_array_equal(result, [1.0, 2.0, 3.0])

    def test_scalar_becomes_length_one(self):
        result = check_array(0.5, "timing")
        assert result.shape == (1,)

    def test_rejects_strings(self):
        with pytest.raises(InvalidParameter):
            check_array(["a", "b"], "timing")

    def test_rejects_empty(self):
        with pytest.raises(InvalidParameter):
            check_array([], "timing")

    def test_rejects_2d(self):
        with pytest.raises(DimensionError):
            check_array(np.ones((2, 2)), "timing")


class TestElementChecks:

    def test_check_finite_rejects_nan(self):
        with pytest.raises(InvalidParameter, match="1 NaN"):
            check_finite(np.array([1.0, np.nan]), "n_i")

    def test_check_positive_strict(self):
        with pytest.raises(InvalidParameter):
            check_positive(np.array([0.0, 1.0]), "R")
        check_positive(np.array([0.0, 1.0]), "gamma", strict=False)

    def test_strictly_increasing(self):
        check_strictly_increasing(np.array([0.1, 0.5, 1.0]), "timing")
        with pytest.raises(InvalidParameter) as exc_info:
            check_strictly_increasing(np.array([0.5, 0.5, 1.0]), "timing")
        assert exc_info.value.parameter == "timing"

    def test_consistent_length(self):
        with pytest.raises(DimensionError):
            check_consistent_length(np.ones(2), np.ones(3), names=("grid", "weights"))

    def test_dimension_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            check_consistent_length(np.ones(2), np.ones(3), names=("a", "b"))


class TestScalarInRange:

    def test_returns_float(self):
        assert check_scalar_in_range(1, "alpha", 0.0, 2.0) == 1.0

    def test_open_interval(self):
        with pytest.raises(InvalidParameter, match="alpha"):
            check_scalar_in_range(0.0, "alpha", 0.0, 1.0)

    def test_inclusive_bound(self):
        assert check_scalar_in_range(0.0, "astar", 0.0, 1.0, low_inclusive=True) == 0.0

    def test_rejects_nan(self):
        with pytest.raises(InvalidParameter):
            check_scalar_in_range(math.nan, "beta", 0.0, 1.0)

    def test_rejects_non_number(self):
        with pytest.raises(InvalidParameter):
            check_scalar_in_range("abc", "beta", 0.0, 1.0)


class TestTiers:

    def test_standard_defaults(self):
        assert STANDARD.r == 18
        assert STANDARD.tol == 1e-6

    def test_fine_is_stricter(self):
        assert FINE.r > STANDARD.r
        assert FINE.tol < STANDARD.tol
