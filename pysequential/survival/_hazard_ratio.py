"""
Event-count approximations on the hazard ratio scale (Schoenfeld 1981).

With d events and randomization ratio r (experimental : control), the
logrank statistic is approximately normal with mean
-log(hr / hr0) sqrt(r d) / (1 + r) and unit variance.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.stats import norm

from pysequential.core.exceptions import InvalidParameter
from pysequential.core.validation import check_scalar_in_range


def _information_factor(events: ArrayLike, ratio: float) -> NDArray:
    d = np.asarray(events, dtype=np.float64)
    if np.any(d <= 0) or np.any(~np.isfinite(d)):
        raise InvalidParameter(
            "events must be finite and positive",
            parameter="events",
            value=np.atleast_1d(d).tolist(),
        )
    return np.sqrt(ratio / (1.0 + ratio) ** 2 * d)


def z_to_hr(z: ArrayLike, events: ArrayLike, ratio: float = 1.0, hr0: float = 1.0) -> NDArray:
    """Approximate observed hazard ratio for a logrank Z with ``events`` events.

    Positive Z favours the experimental arm (hr below hr0).
    """
    ratio = check_scalar_in_range(ratio, "ratio", 0.0, math.inf)
    hr0 = check_scalar_in_range(hr0, "hr0", 0.0, math.inf)
    z = np.asarray(z, dtype=np.float64)
    return hr0 * np.exp(-z / _information_factor(events, ratio))


def hr_to_z(hr: ArrayLike, events: ArrayLike, ratio: float = 1.0, hr0: float = 1.0) -> NDArray:
    """Logrank Z corresponding to an observed hazard ratio."""
    ratio = check_scalar_in_range(ratio, "ratio", 0.0, math.inf)
    hr0 = check_scalar_in_range(hr0, "hr0", 0.0, math.inf)
    hr = np.asarray(hr, dtype=np.float64)
    if np.any(hr <= 0):
        raise InvalidParameter(
            "hr must be positive", parameter="hr", value=np.atleast_1d(hr).tolist(),
        )
    return -np.log(hr / hr0) * _information_factor(events, ratio)


def n_events(
    hr: float = 0.6,
    alpha: float = 0.025,
    beta: float = 0.1,
    ratio: float = 1.0,
    hr0: float = 1.0,
    sided: int = 1,
) -> float:
    """Events required by a fixed design.

    d = (z_a + z_b)^2 (1 + r)^2 / (r log^2(hr / hr0))

    Examples
    --------
    >>> round(n_events(hr=0.75, alpha=0.025, beta=0.1))
    508
    """
    if sided not in (1, 2):
        raise InvalidParameter(f"sided must be 1 or 2, got {sided!r}", parameter="sided", value=sided)
    hr = check_scalar_in_range(hr, "hr", 0.0, math.inf)
    hr0 = check_scalar_in_range(hr0, "hr0", 0.0, math.inf)
    if hr == hr0:
        raise InvalidParameter(f"hr must differ from hr0, both are {hr}", parameter="hr", value=hr)
    alpha = check_scalar_in_range(alpha, "alpha", 0.0, 1.0 / sided)
    beta = check_scalar_in_range(beta, "beta", 0.0, 1.0 - alpha / sided)
    ratio = check_scalar_in_range(ratio, "ratio", 0.0, math.inf)

    z = norm.isf(alpha / sided) + norm.isf(beta)
    return float(z ** 2 * (1.0 + ratio) ** 2 / (ratio * math.log(hr / hr0) ** 2))
