"""
SpendingFunction: immutable error-spending function.

A spending function maps a fraction of information (or calendar) time in
[0, 1] to the cumulative error spent, from 0 at t=0 to total_error at t=1.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pysequential.core.exceptions import InvalidParameter
from pysequential.core.validation import check_array, check_scalar_in_range
from pysequential.spending._families import FAMILIES


@dataclass(frozen=True)
class SpendingFunction:
    """Immutable spending function.

    Do not construct directly; use ``spending_function()`` or one of the
    ``sf_*`` shortcuts, which validate the parameter.

    Attributes
    ----------
    family : str
        One of 'ldof', 'ldpocock', 'hsd', 'power', 'exponential', 'linear'.
    total_error : float
        Error spent at t = 1.
    param : tuple of float or None
        Normalized family parameter.
    """

    family: str
    total_error: float
    param: tuple[float, ...] | None

    @classmethod
    def create(cls, family: str, total_error: float, param: Any = None) -> SpendingFunction:
        """Validate family, total error and parameter."""
        if family not in FAMILIES:
            raise InvalidParameter(
                f"spending family must be one of {sorted(FAMILIES)}, got {family!r}",
                parameter="family",
                value=family,
            )
        total = check_scalar_in_range(total_error, "total_error", 0.0, 1.0)
        normalized = FAMILIES[family].validate(param)
        return cls(family=family, total_error=total, param=normalized)

    def spend_array(self, fractions: ArrayLike) -> NDArray:
        """Cumulative error spent at each fraction."""
        t = check_array(fractions, "fraction")
        if np.any(np.isnan(t)) or np.any(t < 0.0) or np.any(t > 1.0):
            raise InvalidParameter(
                f"fraction must be in [0, 1], got {t.tolist()}",
                parameter="fraction",
                value=t.tolist(),
            )
        out = FAMILIES[self.family].kernel(self.total_error, t, self.param)
        # Pin the endpoints exactly; kernels are exact only up to rounding.
        out = np.where(t == 0.0, 0.0, out)
        out = np.where(t == 1.0, self.total_error, out)
        return np.clip(out, 0.0, self.total_error)

    def spend(self, fraction: float) -> float:
        """Cumulative error spent at a single fraction."""
        return float(self.spend_array(fraction)[0])

    def increments(self, fractions: ArrayLike) -> NDArray:
        """Per-analysis error increments for increasing fractions."""
        cumulative = self.spend_array(fractions)
        return np.diff(np.concatenate(([0.0], cumulative)))

    def with_total_error(self, total_error: float) -> SpendingFunction:
        """Same family and parameter with a different error budget."""
        total = check_scalar_in_range(total_error, "total_error", 0.0, 1.0)
        return replace(self, total_error=total)

    @property
    def label(self) -> str:
        return FAMILIES[self.family].label

    def describe(self) -> str:
        """Short description, e.g. 'Hwang-Shih-DeCani (param=-4)'."""
        if self.param is None:
            return self.label
        shown = ", ".join(f"{p:g}" for p in self.param)
        return f"{self.label} (param={shown})"

    def __repr__(self) -> str:
        return (
            f"SpendingFunction(family={self.family!r}, "
            f"total_error={self.total_error:g}, param={self.param})"
        )
