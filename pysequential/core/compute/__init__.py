"""
Shared compute infrastructure for PySequential.

Submodules:
    timing: Execution timing utilities
    tolerances: Quadrature tiers and iteration caps for the boundary engine
"""

from pysequential.core.compute.timing import Timer
from pysequential.core.compute.tolerances import (
    QuadratureTier,
    STANDARD,
    FINE,
)

__all__ = [
    # Timing
    "Timer",
    # Tolerances
    "QuadratureTier",
    "STANDARD",
    "FINE",
]
