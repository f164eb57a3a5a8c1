"""
Quadrature tiers for boundary-crossing integrals.

The boundary engine integrates the sequential test-statistic density on a
Jennison-Turnbull grid of 6r-1 points per analysis (Simpson's rule on
2(6r-1)-1 nodes) and solves each bound by bracketed root finding.
Accuracy is controlled by two numbers:

- r: grid resolution. r=18 gives integration error well below 1e-6 on
  crossing probabilities for designs with up to ~10 analyses.
- tol: absolute tolerance on the Z-scale bound and on the information
  root. Crossing probabilities then match their spending targets within
  roughly 10 * tol.

Solvers default to STANDARD; pass FINE.r and FINE.tol for a finer grid.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class QuadratureTier:
    """Grid resolution and root tolerance for the boundary engine."""
    r: int
    tol: float
    name: str
    description: str


STANDARD = QuadratureTier(
    r=18,
    tol=1e-6,
    name='standard',
    description='Default grid; spending reproduced within 1e-5',
)

FINE = QuadratureTier(
    r=36,
    tol=1e-9,
    name='fine',
    description='Doubled grid for validation runs and many-look designs',
)

# Hard cap on bound magnitude on the Z scale. A bound this large carries
# no crossing probability in double precision.
BOUND_CAP = 20.0

# Iteration caps for bracket expansion and Brent's method.
MAX_BRACKET_EXPANSIONS = 60
MAX_ROOT_ITERATIONS = 200
