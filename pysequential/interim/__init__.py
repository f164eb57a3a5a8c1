"""
Interim inference: conditional power, predictive power and B-values.

Public API:
    conditional_power(design, analysis, z, theta) -> float
    conditional_crossing(design, analysis, z, theta) -> ConditionalCrossing
    predictive_probability(design, analysis, z, grid, weights) -> float
    normal_grid(r, mu, sigma, bounds) -> NormalGrid
    b_values(design, z) -> NDArray
    project_b_value(design, analysis, z) -> BProjection
    bound_conditional_power(design, theta) -> dict
"""

from pysequential.interim._common import BProjection, ConditionalCrossing, NormalGrid
from pysequential.interim.solvers import (
    b_values,
    bound_conditional_power,
    conditional_crossing,
    conditional_power,
    normal_grid,
    predictive_probability,
    project_b_value,
)

__all__ = [
    "BProjection",
    "ConditionalCrossing",
    "NormalGrid",
    "b_values",
    "bound_conditional_power",
    "conditional_crossing",
    "conditional_power",
    "normal_grid",
    "predictive_probability",
    "project_b_value",
]
