"""
Parameter payloads for survival design results.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray

from pysequential.gsd._common import GSParams
from pysequential.survival.design import AccrualProfile, HazardProfile, SurvivalDesign


@dataclass(frozen=True)
class EventsParams:
    """Expected events and enrollment for one arm."""

    T: NDArray                   # (m,) calendar times
    events: NDArray              # (m,) expected events by T
    enrolled: NDArray            # (m,) expected enrollment by T
    ultimate_fraction: float     # P(event ever) for an enrolled subject
    total_enrollment: float      # enrollment when accrual is complete


@dataclass(frozen=True)
class NSurvParams:
    """Fixed-design survival sample size (Lachin-Foulkes)."""

    design: SurvivalDesign       # assumptions that produced this
    accrual: AccrualProfile      # absolute rates fitted to the accrual window
    T: float                     # study duration
    accrual_duration: float
    minfup: float
    n: float                     # total sample size
    events: float                # total expected events under H1
    events_c: float
    events_e: float
    events_null: float           # total expected events under H0
    rate_multiplier: float       # applied to the relative rates
    power: float


@dataclass(frozen=True)
class GSSurvParams:
    """Group sequential survival design."""

    gs: GSParams                 # bounds and operating characteristics on events
    fixed: NSurvParams           # fixed design the information is scaled from
    hazards: HazardProfile
    accrual: AccrualProfile      # absolute rates of the group sequential design
    T: float
    accrual_duration: float
    minfup: float
    analysis_times: NDArray      # (K,) planned calendar times
    events: NDArray              # (K,) expected events under H1
    events_c: NDArray            # (K,)
    events_e: NDArray            # (K,)
    enrolled: NDArray            # (K,) expected enrollment
    rate_multiplier: float
