"""
Integration grids for group sequential crossing probabilities.

Implements the grid of Jennison & Turnbull (2000, ch. 19): 6r-1 points
centred on the drift mu, dense within mu +/- 3 and spreading
logarithmically out to mu +/- (3 + 4 log r). The grid is truncated to the
continuation interval (a, b), with a and b themselves added as nodes, and
midpoints are inserted so Simpson's rule applies.

References:
    Jennison, C. and Turnbull, B.W. (2000). Group Sequential Methods with
        Applications to Clinical Trials. Chapman & Hall/CRC, ch. 19.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def grid_points(r: int, mu: float, a: float, b: float) -> NDArray:
    """Jennison-Turnbull grid points truncated to [a, b].

    Parameters
    ----------
    r : int
        Grid resolution; the untruncated grid has 6r - 1 points.
    mu : float
        Centre of the grid (drift of the statistic on the Z scale).
    a, b : float
        Continuation interval. Either may be infinite.

    Returns
    -------
    NDArray
        Increasing points with a and b (when finite and inside the grid
        span) as endpoints. Empty if the interval misses the grid span.
    """
    i = np.arange(1, 6 * r, dtype=np.float64)
    x = np.empty_like(i)

    left = i < r
    x[left] = mu - 3.0 - 4.0 * np.log(r / i[left])
    middle = (i >= r) & (i <= 5 * r)
    x[middle] = mu - 3.0 + 3.0 * (i[middle] - r) / (2.0 * r)
    right = i > 5 * r
    x[right] = mu + 3.0 + 4.0 * np.log(r / (6.0 * r - i[right]))

    lo = max(a, x[0])
    hi = min(b, x[-1])
    if hi <= lo:
        return np.empty(0, dtype=np.float64)

    inner = x[(x > lo) & (x < hi)]
    return np.concatenate(([lo], inner, [hi]))


def simpson_grid(r: int, mu: float, a: float, b: float) -> tuple[NDArray, NDArray]:
    """Nodes and Simpson weights on the truncated grid.

    Midpoints are inserted between consecutive grid points, giving
    2m - 1 nodes for m grid points.

    Returns
    -------
    z : NDArray
        Integration nodes.
    w : NDArray
        Simpson weights; ``sum(w * f(z))`` approximates the integral of f
        over the truncated interval.
    """
    x = grid_points(r, mu, a, b)
    m = len(x)
    if m == 0:
        empty = np.empty(0, dtype=np.float64)
        return empty, empty

    n = 2 * m - 1
    z = np.empty(n, dtype=np.float64)
    z[0::2] = x
    z[1::2] = 0.5 * (x[:-1] + x[1:])

    w = np.empty(n, dtype=np.float64)
    w[0] = (z[2] - z[0]) / 6.0
    w[-1] = (z[-1] - z[-3]) / 6.0
    # Odd nodes are midpoints: 4h/6 where 2h is the panel width.
    w[1::2] = 4.0 * (z[2::2] - z[:-2:2]) / 6.0
    # Interior even nodes belong to two adjacent panels.
    if n > 3:
        w[2:-1:2] = (z[4::2] - z[:-4:2]) / 6.0
    return z, w
