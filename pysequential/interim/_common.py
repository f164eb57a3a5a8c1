"""
Payloads for interim inference.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class NormalGrid:
    """Quadrature nodes and weights for a normal distribution.

    ``sum(w * f(z))`` approximates E[f(X)] for X ~ N(mu, sigma^2),
    restricted to the requested bounds.
    """

    z: NDArray
    w: NDArray

    @property
    def mass(self) -> float:
        """Probability covered by the grid."""
        return float(np.sum(self.w))

    def __len__(self) -> int:
        return len(self.z)


@dataclass(frozen=True)
class ConditionalCrossing:
    """Crossing probabilities of the remaining analyses given an interim Z."""

    analysis: int                # 1-based analysis the probabilities condition on
    z: float
    theta: float                 # drift per sqrt unit of n
    upper_prob: NDArray          # (K - analysis,)
    lower_prob: NDArray          # (K - analysis,)

    @property
    def total_upper(self) -> float:
        return float(np.sum(self.upper_prob))

    @property
    def total_lower(self) -> float:
        return float(np.sum(self.lower_prob))


@dataclass(frozen=True)
class BProjection:
    """Linear projection of the B-value path to the final analysis."""

    analysis: int
    n: float                     # planned count at the analysis
    n_final: float
    b: float                     # B_k = Z_k sqrt(t_k)
    slope: float                 # B_k / n_k
    projected: float             # B at n_final
