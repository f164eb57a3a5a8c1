"""
Solution wrapper for group sequential designs.

GSSolution wraps a Result[GSParams] and exposes read-only accessors with an
R-style summary(). update() re-derives the design for observed counts and
returns a new solution.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.stats import norm

from pysequential.core.exceptions import InconsistentSchedule
from pysequential.core.result import Result
from pysequential.core.serialization import float_list
from pysequential.gsd._common import GSParams
from pysequential.gsd._engine import probabilities, solve_design
from pysequential.gsd.design import GSDesign


class GSSolution:
    """Group sequential design.

    Bounds are on the Z scale (larger Z favours the experimental arm).
    Analyses are numbered from 1 in messages and summaries, arrays are
    0-based.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[GSParams]) -> None:
        self._result = _result

    # -- Configuration --

    @property
    def params(self) -> GSParams:
        return self._result.params

    @property
    def design(self) -> GSDesign:
        return self._result.params.design

    @property
    def k(self) -> int:
        return self.design.k

    @property
    def test_type(self) -> int:
        return self.design.test_type

    @property
    def alpha(self) -> float:
        return self.design.alpha

    @property
    def beta(self) -> float:
        return self.design.beta

    @property
    def delta(self) -> float:
        """Standardized effect per sqrt unit of n under the alternative."""
        return self.design.delta

    @property
    def n_fix(self) -> float:
        return self.design.n_fix

    # -- Schedule --

    @property
    def timing(self) -> NDArray:
        """Information fractions."""
        return self._result.params.timing

    @property
    def spending_fractions(self) -> NDArray:
        return self._result.params.spending_fractions

    @property
    def info(self) -> NDArray:
        """Information relative to the fixed design."""
        return self._result.params.info

    @property
    def n_i(self) -> NDArray:
        """Sample size (or events) at each analysis."""
        return self._result.params.n_i

    @property
    def max_n(self) -> float:
        return float(self.n_i[-1])

    @property
    def inflation_factor(self) -> float:
        """Maximum sample size relative to the fixed design."""
        return float(self.info[-1])

    # -- Bounds --

    @property
    def upper(self) -> NDArray:
        return self._result.params.upper

    @property
    def lower(self) -> NDArray:
        """Lower bounds; -inf when the test type has none."""
        return self._result.params.lower

    @property
    def clamped(self) -> tuple[int, ...]:
        return self._result.params.clamped

    @property
    def nominal_p_upper(self) -> NDArray:
        """One-sided nominal p-value at each upper bound."""
        return norm.sf(self.upper)

    @property
    def nominal_p_lower(self) -> NDArray:
        return norm.sf(self.lower)

    def _effect(self, z: NDArray) -> NDArray:
        d = self.design
        scale = d.theta * np.sqrt(self.info)
        return d.delta0 + (d.delta1 - d.delta0) * z / scale

    @property
    def effect_upper(self) -> NDArray:
        """Upper bounds on the natural effect scale."""
        return self._effect(self.upper)

    @property
    def effect_lower(self) -> NDArray:
        return self._effect(self.lower)

    # -- Spending --

    @property
    def upper_spend(self) -> NDArray:
        return self._result.params.upper_spend

    @property
    def lower_spend(self) -> NDArray:
        return self._result.params.lower_spend

    @property
    def cumulative_upper_spend(self) -> NDArray:
        return np.cumsum(self.upper_spend)

    @property
    def cumulative_lower_spend(self) -> NDArray:
        return np.cumsum(self.lower_spend)

    # -- Operating characteristics --

    @property
    def upper_prob_null(self) -> NDArray:
        return self._result.params.upper_prob_null

    @property
    def lower_prob_null(self) -> NDArray:
        return self._result.params.lower_prob_null

    @property
    def upper_prob_alt(self) -> NDArray:
        return self._result.params.upper_prob_alt

    @property
    def lower_prob_alt(self) -> NDArray:
        return self._result.params.lower_prob_alt

    @property
    def power(self) -> float:
        return self._result.params.power

    @property
    def alpha_binding(self) -> float:
        """Type I error when the lower bound always stops the trial."""
        return self._result.params.alpha_binding

    @property
    def alpha_nonbinding(self) -> float:
        """Type I error when the lower bound is ignored."""
        return self._result.params.alpha_nonbinding

    @property
    def en_null(self) -> float:
        return self._result.params.en_null

    @property
    def en_alt(self) -> float:
        return self._result.params.en_alt

    def operating_characteristics(self, theta: ArrayLike) -> dict[str, NDArray]:
        """Crossing probabilities and expected n at standardized drifts.

        ``theta`` is on the scale of ``delta``: the mean of Z_k is
        theta * sqrt(n_k).
        """
        th = np.atleast_1d(np.asarray(theta, dtype=np.float64))
        p = probabilities(th, self.n_i, self.lower, self.upper, self.design.r)
        return {
            "theta": p.theta,
            "upper_prob": p.upper_prob,
            "lower_prob": p.lower_prob,
            "en": p.en,
        }

    # -- Result envelope --

    @property
    def info_dict(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing_info(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # -- Re-derivation --

    def update(self, observed_n: ArrayLike) -> GSSolution:
        """Re-derive bounds for observed counts at analyses 1..m.

        Analyses after m keep their planned counts. Spending fractions
        become n / planned final n; the final analysis spends the remaining
        error in full.

        Raises
        ------
        InconsistentSchedule
            If the counts are empty, too many, non-positive, not increasing,
            out of order with the remaining plan, or an interim count
            reaches the planned final count.
        """
        planned = self.n_i
        if self.design.max_n_plan is not None:
            max_n_plan = self.design.max_n_plan
        else:
            max_n_plan = float(planned[-1])

        obs = np.atleast_1d(np.asarray(observed_n, dtype=np.float64))
        if obs.ndim != 1:
            raise InconsistentSchedule(
                f"observed counts must be 1-dimensional, got shape {obs.shape}",
                observed=obs.tolist(), planned=planned.tolist(),
            )
        m = len(obs)
        if m == 0 or m > self.k:
            raise InconsistentSchedule(
                f"expected 1 to {self.k} observed counts, got {m}",
                observed=obs.tolist(), planned=planned.tolist(),
            )
        if not np.all(np.isfinite(obs)) or np.any(obs <= 0):
            raise InconsistentSchedule(
                f"observed counts must be finite and positive, got {obs.tolist()}",
                observed=obs.tolist(), planned=planned.tolist(),
            )

        n_new = np.concatenate([obs, planned[m:]])
        if np.any(np.diff(n_new) <= 0):
            raise InconsistentSchedule(
                f"counts must be strictly increasing, got {n_new.tolist()}",
                observed=obs.tolist(), planned=planned.tolist(),
            )
        if np.any(n_new[:-1] >= max_n_plan):
            raise InconsistentSchedule(
                f"interim counts must be below the planned final count "
                f"{max_n_plan:g}, got {n_new[:-1].tolist()}",
                observed=obs.tolist(), planned=planned.tolist(),
            )

        new_design = self.design.with_information(n_new, max_n_plan)
        return GSSolution(solve_design(new_design))

    # -- Output --

    def to_dict(self) -> dict[str, Any]:
        """Value serialization with JSON-compatible primitives."""
        d = self.design
        return {
            "k": d.k,
            "test_type": d.test_type,
            "alpha": d.alpha,
            "beta": d.beta,
            "astar": d.astar,
            "upper_spending": d.upper_sf.describe(),
            "lower_spending": d.lower_sf.describe() if d.lower_sf else None,
            "delta": d.delta,
            "delta0": d.delta0,
            "delta1": d.delta1,
            "n_fix": d.n_fix,
            "timing": float_list(self.timing),
            "spending_fractions": float_list(self.spending_fractions),
            "n_i": float_list(self.n_i),
            "upper": float_list(self.upper),
            "lower": float_list(self.lower),
            "upper_spend": float_list(self.upper_spend),
            "lower_spend": float_list(self.lower_spend),
            "upper_prob_null": float_list(self.upper_prob_null),
            "lower_prob_null": float_list(self.lower_prob_null),
            "upper_prob_alt": float_list(self.upper_prob_alt),
            "lower_prob_alt": float_list(self.lower_prob_alt),
            "power": self.power,
            "alpha_binding": self.alpha_binding,
            "alpha_nonbinding": self.alpha_nonbinding,
            "en_null": self.en_null,
            "en_alt": self.en_alt,
            "warnings": list(self.warnings),
        }

    def summary(self) -> str:
        """R-style boundary table."""
        d = self.design
        lines = [
            "Group sequential design",
            "=" * 60,
            f"Test type {d.test_type}: {d.test_type_label}",
            f"alpha = {d.alpha:.4g} (one-sided), power = {self.power:.4f}",
            f"Upper spending: {d.upper_sf.describe()}",
        ]
        if d.lower_sf is not None:
            lines.append(f"Lower spending: {d.lower_sf.describe()}")
        lines.append(
            f"Fixed design n = {d.n_fix:.2f}, maximum n = {self.max_n:.2f} "
            f"(inflation {self.inflation_factor:.4f})"
        )
        lines.append("")
        lines.append(
            f"  {'k':>3s}  {'timing':>7s}  {'n':>9s}  {'lower Z':>8s}  "
            f"{'upper Z':>8s}  {'nom. p':>8s}  {'alpha sp':>9s}  {'P(H1) up':>9s}"
        )
        for i in range(self.k):
            lo = self.lower[i]
            lo_str = f"{lo:8.4f}" if math.isfinite(lo) else f"{'-':>8s}"
            lines.append(
                f"  {i + 1:3d}  {self.timing[i]:7.3f}  {self.n_i[i]:9.2f}  {lo_str}  "
                f"{self.upper[i]:8.4f}  {self.nominal_p_upper[i]:8.5f}  "
                f"{self.upper_spend[i]:9.6f}  {self.upper_prob_alt[i]:9.6f}"
            )
        lines.append("")
        lines.append(
            f"Type I error: {self.alpha_binding:.6f} (binding), "
            f"{self.alpha_nonbinding:.6f} (non-binding)"
        )
        lines.append(f"Expected n: {self.en_null:.2f} (H0), {self.en_alt:.2f} (H1)")
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"GSSolution(k={self.k}, test_type={self.test_type}, "
            f"max_n={self.max_n:.4g}, power={self.power:.4f})"
        )
