"""
Core infrastructure for PySequential.

This module provides shared abstractions and utilities used by all
domain-specific submodules (spending, gsd, survival, interim).

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing and quadrature tolerance tiers
"""

from pysequential.core.result import Result
from pysequential.core.exceptions import (
    PySequentialError,
    ValidationError,
    InvalidParameter,
    DimensionError,
    InconsistentSchedule,
    NumericalError,
    InfeasibleDesign,
    NonConvergent,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "PySequentialError",
    "ValidationError",
    "InvalidParameter",
    "DimensionError",
    "InconsistentSchedule",
    "NumericalError",
    "InfeasibleDesign",
    "NonConvergent",
]
