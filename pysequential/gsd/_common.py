"""
Parameter payloads for group sequential results.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray

from pysequential.gsd.design import GSDesign


@dataclass(frozen=True)
class GSParams:
    """Derived group sequential design."""

    design: GSDesign                 # validated configuration that produced this
    timing: NDArray                  # (K,) information fractions n_i / max_n_plan
    spending_fractions: NDArray      # (K,) fractions used for spending
    info: NDArray                    # (K,) information relative to the fixed design
    n_i: NDArray                     # (K,) sample size or events per analysis
    upper: NDArray                   # (K,) upper Z bounds
    lower: NDArray                   # (K,) lower Z bounds (-inf if none)
    upper_spend: NDArray             # (K,) incremental upper spending targets
    lower_spend: NDArray             # (K,) incremental lower spending targets
    upper_prob_null: NDArray         # (K,) P(cross upper at k | H0)
    lower_prob_null: NDArray         # (K,) P(cross lower at k | H0)
    upper_prob_alt: NDArray          # (K,) P(cross upper at k | H1)
    lower_prob_alt: NDArray          # (K,) P(cross lower at k | H1)
    power: float                     # sum of upper_prob_alt
    alpha_binding: float             # Type I error if the lower bound is obeyed
    alpha_nonbinding: float          # Type I error if the lower bound is ignored
    en_null: float                   # expected sample size under H0
    en_alt: float                    # expected sample size under H1
    clamped: tuple[int, ...]         # interim analyses with lower set to upper


@dataclass(frozen=True)
class ProbabilityParams:
    """Boundary crossing probabilities over a set of drifts."""

    theta: NDArray                   # (m,) drift per sqrt unit of n
    n_i: NDArray                     # (K,) sample sizes
    lower: NDArray                   # (K,) lower Z bounds
    upper: NDArray                   # (K,) upper Z bounds
    upper_prob: NDArray              # (K, m)
    lower_prob: NDArray              # (K, m)
    en: NDArray                      # (m,) expected sample size
