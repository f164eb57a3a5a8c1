"""
Group sequential designs.

Public API:
    gs_design(...) -> GSSolution
    gs_probability(theta, n_i, lower, upper) -> Result[ProbabilityParams]
"""

from pysequential.gsd.design import TEST_TYPES, AnalysisSchedule, GSDesign
from pysequential.gsd.solution import GSSolution
from pysequential.gsd.solvers import gs_design, gs_probability

__all__ = [
    "TEST_TYPES",
    "AnalysisSchedule",
    "GSDesign",
    "GSSolution",
    "gs_design",
    "gs_probability",
]
