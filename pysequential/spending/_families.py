"""
Spending function families.

Each family is a vectorized kernel ``kernel(total_error, t, param) -> NDArray``
giving cumulative error spent at fractions ``t`` in [0, 1], plus a
validator that normalizes the user's parameter into a tuple of floats.

Kernels assume validated inputs: ``t`` already checked to lie in [0, 1]
and ``param`` already normalized.

References:
    Lan, K.K.G. and DeMets, D.L. (1983). Discrete sequential boundaries for
        clinical trials. Biometrika 70(3), 659-663.
    Hwang, I.K., Shih, W.J. and DeCani, J.S. (1990). Group sequential
        designs using a family of type I error probability spending
        functions. Statistics in Medicine 9, 1439-1445.
    Kim, K. and DeMets, D.L. (1987). Design and analysis of group
        sequential tests based on the type I error spending rate function.
        Biometrika 74, 149-154.
    Anderson, K.M. and Clark, J.B. (2010). Fitting spending functions.
        Statistics in Medicine 29, 321-327.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray
from scipy.stats import norm

from pysequential.core.exceptions import InvalidParameter


Kernel = Callable[[float, NDArray, tuple[float, ...] | None], NDArray]
Validator = Callable[[Any], tuple[float, ...] | None]


@dataclass(frozen=True)
class SpendingFamily:
    """Registry entry: kernel, parameter validator and display label."""
    name: str
    label: str
    kernel: Kernel
    validate: Validator


# ---------------------------------------------------------------------------
# Parameter validators
# ---------------------------------------------------------------------------

def _as_floats(family: str, param: Any) -> tuple[float, ...]:
    try:
        values = np.asarray(param)
    except (ValueError, TypeError) as e:
        raise InvalidParameter(
            f"{family} spending parameter must be numeric, got {param!r}",
            parameter="param",
            value=param,
        ) from e
    if values.dtype == object or not np.issubdtype(values.dtype, np.number):
        raise InvalidParameter(
            f"{family} spending parameter must be numeric, got {param!r}",
            parameter="param",
            value=param,
        )
    values = np.atleast_1d(values.astype(np.float64)).ravel()
    if values.size == 0 or not np.all(np.isfinite(values)):
        raise InvalidParameter(
            f"{family} spending parameter must be finite, got {param!r}",
            parameter="param",
            value=param,
        )
    return tuple(float(v) for v in values)


def _scalar(family: str, param: Any) -> float:
    values = _as_floats(family, param)
    if len(values) != 1:
        raise InvalidParameter(
            f"{family} spending takes a single parameter, got {param!r}",
            parameter="param",
            value=param,
        )
    return values[0]


def _required(family: str, param: Any) -> None:
    if param is None:
        raise InvalidParameter(
            f"{family} spending function requires a parameter",
            parameter="param",
            value=None,
        )


def _validate_ldof(param: Any) -> tuple[float, ...] | None:
    if param is None:
        return None
    rho = _scalar("ldof", param)
    if rho <= 0:
        raise InvalidParameter(
            f"ldof rho must be > 0, got {rho}", parameter="param", value=param
        )
    return (rho,)


def _validate_none(param: Any) -> tuple[float, ...] | None:
    if param is not None:
        raise InvalidParameter(
            f"ldpocock spending takes no parameter, got {param!r}",
            parameter="param",
            value=param,
        )
    return None


def _validate_hsd(param: Any) -> tuple[float, ...]:
    _required("hsd", param)
    gamma = _scalar("hsd", param)
    if not -40.0 <= gamma <= 40.0:
        raise InvalidParameter(
            f"hsd gamma must be in [-40, 40], got {gamma}",
            parameter="param",
            value=param,
        )
    return (gamma,)


def _validate_power(param: Any) -> tuple[float, ...]:
    _required("power", param)
    rho = _scalar("power", param)
    if rho <= 0:
        raise InvalidParameter(
            f"power rho must be > 0, got {rho}", parameter="param", value=param
        )
    return (rho,)


def _validate_exponential(param: Any) -> tuple[float, ...]:
    _required("exponential", param)
    nu = _scalar("exponential", param)
    if not 0.0 < nu <= 10.0:
        raise InvalidParameter(
            f"exponential nu must be in (0, 10], got {nu}",
            parameter="param",
            value=param,
        )
    return (nu,)


def _validate_linear(param: Any) -> tuple[float, ...]:
    _required("linear", param)
    values = _as_floats("linear", param)
    if len(values) < 2 or len(values) % 2 != 0:
        raise InvalidParameter(
            "linear spending parameter must be (t_1..t_m, p_1..p_m) "
            f"with m >= 1, got {len(values)} values",
            parameter="param",
            value=param,
        )
    m = len(values) // 2
    t = np.array(values[:m])
    p = np.array(values[m:])
    if np.any(t <= 0) or np.any(t >= 1) or np.any(np.diff(t) <= 0):
        raise InvalidParameter(
            f"linear knots must be strictly increasing in (0, 1), got {t.tolist()}",
            parameter="param",
            value=param,
        )
    if np.any(p < 0) or np.any(p > 1) or np.any(np.diff(p) < 0):
        raise InvalidParameter(
            f"linear proportions must be non-decreasing in [0, 1], got {p.tolist()}",
            parameter="param",
            value=param,
        )
    return values


# ---------------------------------------------------------------------------
# Kernels
# ---------------------------------------------------------------------------

def _ldof(alpha: float, t: NDArray, param: tuple[float, ...] | None) -> NDArray:
    """2(1 - Phi(z_{alpha/2} / t^(rho/2)))."""
    rho = param[0] if param else 1.0
    z = norm.isf(alpha / 2.0)
    out = np.zeros_like(t)
    pos = t > 0
    out[pos] = 2.0 * norm.sf(z / t[pos] ** (rho / 2.0))
    return out


def _ldpocock(alpha: float, t: NDArray, param: tuple[float, ...] | None) -> NDArray:
    return alpha * np.log1p((math.e - 1.0) * t)


def _hsd(alpha: float, t: NDArray, param: tuple[float, ...] | None) -> NDArray:
    gamma = param[0]
    if gamma == 0.0:
        return alpha * t
    return alpha * np.expm1(-gamma * t) / math.expm1(-gamma)


def _power(alpha: float, t: NDArray, param: tuple[float, ...] | None) -> NDArray:
    return alpha * t ** param[0]


def _exponential(alpha: float, t: NDArray, param: tuple[float, ...] | None) -> NDArray:
    nu = param[0]
    out = np.zeros_like(t)
    pos = t > 0
    out[pos] = alpha ** (t[pos] ** (-nu))
    return out


def _linear(alpha: float, t: NDArray, param: tuple[float, ...] | None) -> NDArray:
    m = len(param) // 2
    knots = np.concatenate(([0.0], param[:m], [1.0]))
    props = np.concatenate(([0.0], param[m:], [1.0]))
    return alpha * np.interp(t, knots, props)


FAMILIES: dict[str, SpendingFamily] = {
    f.name: f
    for f in (
        SpendingFamily("ldof", "Lan-DeMets O'Brien-Fleming", _ldof, _validate_ldof),
        SpendingFamily("ldpocock", "Lan-DeMets Pocock", _ldpocock, _validate_none),
        SpendingFamily("hsd", "Hwang-Shih-DeCani", _hsd, _validate_hsd),
        SpendingFamily("power", "Kim-DeMets (power)", _power, _validate_power),
        SpendingFamily("exponential", "Exponential", _exponential, _validate_exponential),
        SpendingFamily("linear", "Piecewise linear", _linear, _validate_linear),
    )
}
