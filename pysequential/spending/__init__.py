"""
Error spending functions.

Public API:
    spending_function(family, total_error, param) -> SpendingFunction
    sf_ldof, sf_ldpocock, sf_hsd, sf_power, sf_exponential, sf_linear

Example:
    >>> sf = sf_hsd(0.025, -4)
    >>> sf.spend(1.0)
    0.025
"""

from __future__ import annotations

from typing import Any

from pysequential.spending._common import SpendingFunction
from pysequential.spending._families import FAMILIES

SPENDING_FAMILIES = tuple(FAMILIES)


def spending_function(family: str, total_error: float, param: Any = None) -> SpendingFunction:
    """Build a validated spending function.

    Parameters
    ----------
    family : str
        'ldof', 'ldpocock', 'hsd', 'power', 'exponential' or 'linear'.
    total_error : float
        Error to spend by t = 1, in (0, 1).
    param : float, sequence or None
        Family parameter. Required for 'hsd', 'power', 'exponential' and
        'linear'; optional for 'ldof'; not accepted by 'ldpocock'.

    Returns
    -------
    SpendingFunction

    Raises
    ------
    InvalidParameter
        If the family is unknown or the parameter is missing or invalid.
    """
    return SpendingFunction.create(family, total_error, param)


def sf_ldof(total_error: float, rho: float | None = None) -> SpendingFunction:
    """Lan-DeMets O'Brien-Fleming approximation."""
    return SpendingFunction.create("ldof", total_error, rho)


def sf_ldpocock(total_error: float) -> SpendingFunction:
    """Lan-DeMets Pocock approximation."""
    return SpendingFunction.create("ldpocock", total_error, None)


def sf_hsd(total_error: float, gamma: float) -> SpendingFunction:
    """Hwang-Shih-DeCani family; more negative gamma spends less early."""
    return SpendingFunction.create("hsd", total_error, gamma)


def sf_power(total_error: float, rho: float) -> SpendingFunction:
    """Kim-DeMets power family, total_error * t**rho."""
    return SpendingFunction.create("power", total_error, rho)


def sf_exponential(total_error: float, nu: float) -> SpendingFunction:
    """Anderson-Clark exponential family, total_error ** (t ** -nu)."""
    return SpendingFunction.create("exponential", total_error, nu)


def sf_linear(total_error: float, knots, proportions) -> SpendingFunction:
    """Piecewise-linear spending through (knots, proportions of total_error)."""
    return SpendingFunction.create("linear", total_error, list(knots) + list(proportions))


__all__ = [
    "SpendingFunction",
    "SPENDING_FAMILIES",
    "spending_function",
    "sf_ldof",
    "sf_ldpocock",
    "sf_hsd",
    "sf_power",
    "sf_exponential",
    "sf_linear",
]
