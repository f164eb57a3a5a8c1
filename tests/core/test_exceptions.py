"""
Tests for PySequential exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PySequentialError)
    - Diagnostic attributes on InvalidParameter, InconsistentSchedule,
      InfeasibleDesign, NonConvergent
    - Default attribute values (None for optional attributes)
"""

import pytest

from pysequential.core.exceptions import (
    DimensionError,
    InconsistentSchedule,
    InfeasibleDesign,
    InvalidParameter,
    NonConvergent,
    NumericalError,
    PySequentialError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PySequentialError."""

    def test_validation_error_is_base(self):
        with pytest.raises(PySequentialError):
            raise ValidationError("bad input")

    def test_invalid_parameter_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise InvalidParameter("bad alpha", parameter="alpha", value=2.0)

    def test_dimension_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise DimensionError("wrong length")

    def test_inconsistent_schedule_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise InconsistentSchedule("decreasing counts")

    def test_infeasible_design_is_numerical_error(self):
        with pytest.raises(NumericalError):
            raise InfeasibleDesign("no solution")

    def test_non_convergent_is_base(self):
        with pytest.raises(PySequentialError):
            raise NonConvergent("no root", iterations=10)

    def test_non_convergent_is_not_numerical_error(self):
        err = NonConvergent("no root", iterations=10)
        assert not isinstance(err, NumericalError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestAttributes:

    def test_invalid_parameter_attributes(self):
        err = InvalidParameter("alpha out of range", parameter="alpha", value=1.5)
        assert err.parameter == "alpha"
        assert err.value == 1.5
        assert str(err) == "alpha out of range"

    def test_invalid_parameter_defaults(self):
        err = InvalidParameter("bad")
        assert err.parameter is None
        assert err.value is None

    def test_inconsistent_schedule_attributes(self):
        err = InconsistentSchedule("bad counts", observed=[10.0, 5.0], planned=[10.0, 20.0])
        assert err.observed == [10.0, 5.0]
        assert err.planned == [10.0, 20.0]

    def test_infeasible_design_attributes(self):
        err = InfeasibleDesign("no accrual", parameter="max_accrual", value=12.0)
        assert err.parameter == "max_accrual"
        assert err.value == 12.0

    def test_non_convergent_attributes(self):
        err = NonConvergent("no root", iterations=60, reason="bracket", bracket=(-20.0, 20.0))
        assert err.iterations == 60
        assert err.reason == "bracket"
        assert err.bracket == (-20.0, 20.0)

    def test_non_convergent_defaults(self):
        err = NonConvergent("no root", iterations=3)
        assert err.reason is None
        assert err.bracket is None
