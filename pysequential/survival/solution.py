"""
Solution wrappers for survival design results.

Each Solution wraps a Result[Params] and exposes read-only properties
with R-style summary() methods and to_dict() value serialization.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pysequential.core.result import Result
from pysequential.core.serialization import float_list
from pysequential.gsd.solution import GSSolution
from pysequential.survival._common import EventsParams, GSSurvParams, NSurvParams
from pysequential.survival._hazard_ratio import z_to_hr


class EventsSolution:
    """Expected events and enrollment for one arm."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[EventsParams]) -> None:
        self._result = _result

    @property
    def T(self) -> NDArray:
        return self._result.params.T

    @property
    def events(self) -> NDArray:
        return self._result.params.events

    @property
    def enrolled(self) -> NDArray:
        return self._result.params.enrolled

    @property
    def ultimate_fraction(self) -> float:
        """Probability that an enrolled subject ever has an event."""
        return self._result.params.ultimate_fraction

    @property
    def asymptote(self) -> float:
        """Limit of expected events as follow-up grows."""
        p = self._result.params
        return p.total_enrollment * p.ultimate_fraction

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    def to_dict(self) -> dict[str, Any]:
        return {
            "T": float_list(self.T),
            "events": float_list(self.events),
            "enrolled": float_list(self.enrolled),
            "ultimate_fraction": self.ultimate_fraction,
            "asymptote": self.asymptote,
        }

    def summary(self) -> str:
        lines = ["Expected events", ""]
        lines.append(f"  {'T':>10s}  {'enrolled':>10s}  {'events':>10s}")
        for t, n, d in zip(self.T, self.enrolled, self.events):
            lines.append(f"  {t:10.4g}  {n:10.2f}  {d:10.2f}")
        lines.append("")
        lines.append(f"  asymptotic events = {self.asymptote:.2f}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"EventsSolution(T={self.T.tolist()}, events={np.round(self.events, 3).tolist()})"


class NSurvSolution:
    """Fixed-design survival sample size."""

    __slots__ = ('_result',)

    def __init__(self, _result: Result[NSurvParams]) -> None:
        self._result = _result

    @property
    def n(self) -> float:
        """Total sample size."""
        return self._result.params.n

    @property
    def events(self) -> float:
        """Total expected events under the alternative."""
        return self._result.params.events

    @property
    def events_c(self) -> float:
        return self._result.params.events_c

    @property
    def events_e(self) -> float:
        return self._result.params.events_e

    @property
    def events_null(self) -> float:
        return self._result.params.events_null

    @property
    def T(self) -> float:
        return self._result.params.T

    @property
    def accrual_duration(self) -> float:
        return self._result.params.accrual_duration

    @property
    def minfup(self) -> float:
        return self._result.params.minfup

    @property
    def rates(self) -> NDArray:
        """Absolute accrual rates."""
        return self._result.params.accrual.rates

    @property
    def durations(self) -> NDArray:
        """Accrual period durations fitted to the accrual window."""
        return self._result.params.accrual.durations

    @property
    def rate_multiplier(self) -> float:
        return self._result.params.rate_multiplier

    @property
    def power(self) -> float:
        return self._result.params.power

    @property
    def hr(self) -> float:
        return self._result.params.design.hazards.hr

    @property
    def hr0(self) -> float:
        return self._result.params.design.hazards.hr0

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def to_dict(self) -> dict[str, Any]:
        p = self._result.params
        d = p.design
        return {
            "n": self.n,
            "events": self.events,
            "events_c": self.events_c,
            "events_e": self.events_e,
            "events_null": self.events_null,
            "T": self.T,
            "accrual_duration": self.accrual_duration,
            "minfup": self.minfup,
            "rates": float_list(self.rates),
            "durations": float_list(self.durations),
            "rate_multiplier": self.rate_multiplier,
            "power": self.power,
            "alpha": d.alpha,
            "beta": d.beta,
            "sided": d.sided,
            "hr": d.hazards.hr,
            "hr0": d.hazards.hr0,
            "ratio": d.hazards.ratio,
            "lambda_c": float_list(d.hazards.lambda_c),
            "solve_for": d.solve_for,
        }

    def summary(self) -> str:
        d = self._result.params.design
        lines = [
            "Fixed design survival sample size (Lachin-Foulkes)",
            "=" * 60,
            f"hr = {d.hazards.hr:.4g} (H0: {d.hazards.hr0:.4g}), ratio = {d.hazards.ratio:g}",
            f"alpha = {d.alpha:.4g} ({d.sided}-sided), power = {self.power:.4f}",
            f"Sample size: {self.n:.2f}",
            f"Events: {self.events:.2f} (control {self.events_c:.2f}, "
            f"experimental {self.events_e:.2f})",
            f"Study duration: {self.T:.3f}, accrual {self.accrual_duration:.3f}, "
            f"minimum follow-up {self.minfup:.3f}",
            "",
            f"  {'duration':>10s}  {'rate':>10s}",
        ]
        for dur, rate in zip(self.durations, self.rates):
            lines.append(f"  {dur:10.4g}  {rate:10.4f}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"NSurvSolution(n={self.n:.2f}, events={self.events:.2f}, T={self.T:.3f})"


class GSSurvSolution:
    """Group sequential survival design.

    Wraps the bounds derived on the event scale together with the
    enrollment, hazard and calendar assumptions that produce the events.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[GSSurvParams]) -> None:
        self._result = _result

    @property
    def gs(self) -> GSSolution:
        """The underlying group sequential design on the event scale."""
        return GSSolution(self._result.with_params(self._result.params.gs))

    @property
    def fixed(self) -> NSurvSolution:
        """Fixed design the event count is inflated from."""
        return NSurvSolution(Result(
            params=self._result.params.fixed,
            info={},
            timing=None,
            backend_name=self._result.backend_name,
        ))

    # -- Bounds --

    @property
    def k(self) -> int:
        return self._result.params.gs.design.k

    @property
    def upper(self) -> NDArray:
        return self._result.params.gs.upper

    @property
    def lower(self) -> NDArray:
        return self._result.params.gs.lower

    @property
    def hr_upper(self) -> NDArray:
        """Approximate hazard ratio at each upper bound."""
        h = self._result.params.hazards
        return z_to_hr(self.upper, self.events, h.ratio, h.hr0)

    @property
    def hr_lower(self) -> NDArray:
        h = self._result.params.hazards
        return z_to_hr(self.lower, self.events, h.ratio, h.hr0)

    @property
    def power(self) -> float:
        return self._result.params.gs.power

    # -- Schedule and sample size --

    @property
    def timing(self) -> NDArray:
        return self._result.params.gs.timing

    @property
    def events(self) -> NDArray:
        """Events at each analysis."""
        return self._result.params.events

    @property
    def events_c(self) -> NDArray:
        return self._result.params.events_c

    @property
    def events_e(self) -> NDArray:
        return self._result.params.events_e

    @property
    def max_events(self) -> float:
        return float(self.events[-1])

    @property
    def analysis_times(self) -> NDArray:
        """Planned calendar time of each analysis."""
        return self._result.params.analysis_times

    @property
    def enrolled(self) -> NDArray:
        """Expected enrollment at each analysis."""
        return self._result.params.enrolled

    @property
    def n(self) -> float:
        """Total sample size."""
        return float(self._result.params.accrual.total_enrollment)

    @property
    def T(self) -> float:
        return self._result.params.T

    @property
    def accrual_duration(self) -> float:
        return self._result.params.accrual_duration

    @property
    def minfup(self) -> float:
        return self._result.params.minfup

    @property
    def rates(self) -> NDArray:
        return self._result.params.accrual.rates

    @property
    def durations(self) -> NDArray:
        return self._result.params.accrual.durations

    @property
    def rate_multiplier(self) -> float:
        return self._result.params.rate_multiplier

    @property
    def hr(self) -> float:
        return self._result.params.hazards.hr

    @property
    def hr0(self) -> float:
        return self._result.params.hazards.hr0

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing_info(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # -- Re-derivation --

    def update(self, observed_events: ArrayLike) -> GSSurvSolution:
        """Re-derive bounds for observed event counts.

        Calendar times, enrollment and accrual stay as planned; only the
        event counts and the bounds change. See ``GSSolution.update``.
        """
        new_gs = self.gs.update(observed_events)
        p = self._result.params
        events = new_gs.n_i
        share_c = p.events_c / p.events
        new_params = GSSurvParams(
            gs=new_gs.params,
            fixed=p.fixed,
            hazards=p.hazards,
            accrual=p.accrual,
            T=p.T,
            accrual_duration=p.accrual_duration,
            minfup=p.minfup,
            analysis_times=p.analysis_times,
            events=events,
            events_c=events * share_c,
            events_e=events * (1.0 - share_c),
            enrolled=p.enrolled,
            rate_multiplier=p.rate_multiplier,
        )
        info = dict(self._result.info)
        info["updated"] = True
        return GSSurvSolution(Result(
            params=new_params,
            info=info,
            timing=new_gs.timing_info,
            backend_name=self._result.backend_name,
            warnings=new_gs.warnings,
        ))

    # -- Output --

    def to_dict(self) -> dict[str, Any]:
        out = self.gs.to_dict()
        h = self._result.params.hazards
        out.update({
            "events": float_list(self.events),
            "events_c": float_list(self.events_c),
            "events_e": float_list(self.events_e),
            "analysis_times": float_list(self.analysis_times),
            "enrolled": float_list(self.enrolled),
            "hr_upper": float_list(self.hr_upper),
            "hr_lower": float_list(self.hr_lower),
            "n": self.n,
            "T": self.T,
            "accrual_duration": self.accrual_duration,
            "minfup": self.minfup,
            "rates": float_list(self.rates),
            "durations": float_list(self.durations),
            "rate_multiplier": self.rate_multiplier,
            "hr": h.hr,
            "hr0": h.hr0,
            "ratio": h.ratio,
            "lambda_c": float_list(h.lambda_c),
        })
        return out

    def summary(self) -> str:
        gs = self.gs
        lines = [
            "Group sequential survival design",
            "=" * 60,
            f"hr = {self.hr:.4g} (H0: {self.hr0:.4g}), power = {self.power:.4f}",
            f"Test type {gs.test_type}: {gs.design.test_type_label}",
            f"Sample size: {self.n:.2f}, maximum events: {self.max_events:.2f}",
            f"Study duration: {self.T:.3f}, accrual {self.accrual_duration:.3f}, "
            f"minimum follow-up {self.minfup:.3f}",
            "",
            f"  {'k':>3s}  {'time':>7s}  {'N':>9s}  {'events':>9s}  "
            f"{'lower Z':>8s}  {'upper Z':>8s}  {'HR up':>7s}  {'HR low':>7s}",
        ]
        hr_up, hr_lo = self.hr_upper, self.hr_lower
        for i in range(self.k):
            lo = self.lower[i]
            lo_z = f"{lo:8.4f}" if np.isfinite(lo) else f"{'-':>8s}"
            lo_hr = f"{hr_lo[i]:7.4f}" if np.isfinite(hr_lo[i]) else f"{'-':>7s}"
            lines.append(
                f"  {i + 1:3d}  {self.analysis_times[i]:7.2f}  {self.enrolled[i]:9.2f}  "
                f"{self.events[i]:9.2f}  {lo_z}  {self.upper[i]:8.4f}  "
                f"{hr_up[i]:7.4f}  {lo_hr}"
            )
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"GSSurvSolution(k={self.k}, n={self.n:.2f}, "
            f"max_events={self.max_events:.2f}, T={self.T:.3f})"
        )
