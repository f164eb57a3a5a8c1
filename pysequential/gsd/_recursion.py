"""
Recursive numerical integration of the sequential test statistic.

Under the canonical joint distribution, the score statistics
S_k = Z_k * sqrt(I_k) form a Brownian motion with drift theta observed at
information levels I_1 < ... < I_K:

    S_k - S_{k-1} ~ N(theta * (I_k - I_{k-1}), I_k - I_{k-1}),  independent.

The sub-density of Z_k on the continuation region (trial not yet stopped)
is therefore obtained from that of Z_{k-1} by a one-dimensional
convolution. ContinuationDensity holds that sub-density, already multiplied
by Simpson weights, on the grid of the most recent analysis. It is advanced
one analysis at a time, so a K-analysis probability never needs a
K-dimensional integral.

Algorithm (Jennison & Turnbull 2000, sec. 19.2):
    h_1(z)  = w(z) phi(z - theta sqrt(I_1))
    h_k(z)  = w(z) sum_j h_{k-1}(z_j) * sqrt(I_k)/sqrt(dI)
                  * phi((z sqrt(I_k) - z_j sqrt(I_{k-1}) - theta dI) / sqrt(dI))
    P(cross upper at k) = sum_j h_{k-1}(z_j)
                  * (1 - Phi((b_k sqrt(I_k) - z_j sqrt(I_{k-1}) - theta dI) / sqrt(dI)))
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from scipy.stats import norm

from pysequential.core.exceptions import InvalidParameter
from pysequential.gsd._grid import simpson_grid


class ContinuationDensity:
    """Weighted sub-density of Z on the continuation region.

    Instances are never mutated; ``advance`` returns a new density, so a
    bound solver can evaluate trial bounds against the same state.

    Parameters
    ----------
    theta : float
        Drift per unit of sqrt(information).
    r : int
        Grid resolution.
    """

    __slots__ = ('theta', 'r', '_z', '_h', '_info')

    def __init__(
        self,
        theta: float,
        r: int,
        _z: NDArray | None = None,
        _h: NDArray | None = None,
        _info: float | None = None,
    ) -> None:
        self.theta = float(theta)
        self.r = int(r)
        self._z = _z
        self._h = _h
        self._info = _info

    @property
    def info(self) -> float | None:
        """Information at the most recent analysis, or None before the first."""
        return self._info

    @property
    def mass(self) -> float:
        """Probability of still being in the trial after the last analysis."""
        if self._h is None:
            return 1.0
        return float(np.sum(self._h))

    def _increment(self, info_k: float) -> tuple[NDArray, float]:
        """Conditional mean of S_k given each node, and sd of the increment."""
        d_info = info_k - self._info
        if d_info <= 0:
            raise InvalidParameter(
                f"information must increase between analyses, "
                f"got {self._info} then {info_k}",
                parameter="info",
                value=info_k,
            )
        mean = self._z * math.sqrt(self._info) + self.theta * d_info
        return mean, math.sqrt(d_info)

    def exit_upper(self, info_k: float, bound: float) -> float:
        """P(continue to analysis k and Z_k >= bound)."""
        root = math.sqrt(info_k)
        if self._info is None:
            return float(norm.sf(bound - self.theta * root))
        mean, sd = self._increment(info_k)
        return float(np.sum(self._h * norm.sf((bound * root - mean) / sd)))

    def exit_lower(self, info_k: float, bound: float) -> float:
        """P(continue to analysis k and Z_k <= bound)."""
        root = math.sqrt(info_k)
        if self._info is None:
            return float(norm.cdf(bound - self.theta * root))
        mean, sd = self._increment(info_k)
        return float(np.sum(self._h * norm.cdf((bound * root - mean) / sd)))

    def advance(self, info_k: float, lower: float, upper: float) -> ContinuationDensity:
        """Density at analysis k restricted to lower < Z_k < upper."""
        root = math.sqrt(info_k)
        mu = self.theta * root
        z_new, w = simpson_grid(self.r, mu, lower, upper)

        if self._info is None:
            dens = norm.pdf(z_new - mu)
        else:
            mean, sd = self._increment(info_k)
            kernel = norm.pdf((z_new[:, None] * root - mean[None, :]) / sd)
            dens = (kernel @ self._h) * root / sd

        return ContinuationDensity(
            self.theta, self.r, _z=z_new, _h=w * dens, _info=float(info_k),
        )


def crossing_probabilities(
    theta: float,
    info: NDArray,
    lower: NDArray,
    upper: NDArray,
    r: int,
) -> tuple[NDArray, NDArray]:
    """Probabilities of first crossing each bound at each analysis.

    Parameters
    ----------
    theta : float
        Drift per sqrt(information).
    info : NDArray
        (K,) strictly increasing information levels.
    lower, upper : NDArray
        (K,) Z-scale bounds; -inf / +inf for absent bounds.
    r : int
        Grid resolution.

    Returns
    -------
    upper_prob, lower_prob : NDArray
        (K,) probabilities of stopping at analysis k by crossing the upper
        or lower bound, having continued through analyses 1..k-1.
    """
    K = len(info)
    upper_prob = np.zeros(K, dtype=np.float64)
    lower_prob = np.zeros(K, dtype=np.float64)

    density = ContinuationDensity(theta, r)
    for k in range(K):
        upper_prob[k] = density.exit_upper(info[k], upper[k])
        lower_prob[k] = density.exit_lower(info[k], lower[k])
        if k < K - 1:
            density = density.advance(info[k], lower[k], upper[k])
    return upper_prob, lower_prob
