"""
Conversion of result arrays to JSON-compatible primitives.
"""

from typing import Any

import numpy as np
from numpy.typing import ArrayLike


def float_list(values: ArrayLike) -> list[Any]:
    """List of Python floats; non-finite entries (absent bounds) become None."""
    return [float(x) if np.isfinite(x) else None for x in np.atleast_1d(np.asarray(values, dtype=np.float64))]
