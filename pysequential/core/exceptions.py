"""
Exception hierarchy for PySequential.

All exceptions inherit from PySequentialError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""

from typing import Any


class PySequentialError(Exception):
    """Base exception for all PySequential errors."""
    pass


class ValidationError(PySequentialError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class InvalidParameter(ValidationError):
    """
    A parameter is malformed, missing, or out of range.

    Raised for spending-function parameters, fractions and times outside
    their domain, non-increasing analysis timing, and non-positive
    durations or rates.

    Attributes:
        parameter: Name of the offending parameter
        value: The value that was rejected
    """

    def __init__(
        self,
        message: str,
        parameter: str | None = None,
        value: Any = None,
    ):
        super().__init__(message)
        self.parameter = parameter
        self.value = value


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when paired inputs (e.g. accrual durations and rates) have
    mismatched lengths.
    """
    pass


class InconsistentSchedule(ValidationError):
    """
    Observed analysis counts are inconsistent with the design.

    Raised by update() when observed event counts decrease, are too many,
    or reach the planned final count before the final analysis.

    Attributes:
        observed: The observed counts passed in
        planned: The planned counts of the design being updated
    """

    def __init__(
        self,
        message: str,
        observed: list[float] | None = None,
        planned: list[float] | None = None,
    ):
        super().__init__(message)
        self.observed = observed
        self.planned = planned


class NumericalError(PySequentialError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class InfeasibleDesign(NumericalError):
    """
    A sample size or duration solve has no finite positive solution.

    Attributes:
        parameter: The quantity being solved for ('rate', 'duration', ...)
        value: The last value reached, if any
    """

    def __init__(
        self,
        message: str,
        parameter: str | None = None,
        value: float | None = None,
    ):
        super().__init__(message)
        self.parameter = parameter
        self.value = value


class NonConvergent(PySequentialError):
    """
    Root finding or bracketing failed within its iteration bounds.

    Raised during boundary derivation and information solving. Usually a
    sign of degenerate spending or timing (e.g. two equal fractions).

    Attributes:
        iterations: Number of iterations or bracket expansions completed
        reason: Why convergence failed (e.g. 'bracket', 'max_iterations')
        bracket: Last bracket tried, if any
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        reason: str | None = None,
        bracket: tuple[float, float] | None = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        self.reason = reason
        self.bracket = bracket
