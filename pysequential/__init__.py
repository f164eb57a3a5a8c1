"""
PySequential: group sequential clinical trial design.

Error spending boundaries, sample size and event counts for
time-to-event trials, and interim inference against a derived design.

Submodules:
    spending: Error spending functions
    gsd: Group sequential boundaries and operating characteristics
    survival: Event model, Lachin-Foulkes sample size, survival designs
    interim: Conditional power, predictive power, B-values
"""

__version__ = "0.1.0"

from pysequential import spending
from pysequential import gsd
from pysequential import survival
from pysequential import interim

__all__ = [
    "__version__",
    "spending",
    "gsd",
    "survival",
    "interim",
]
