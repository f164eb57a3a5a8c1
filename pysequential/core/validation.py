"""
Input validation utilities for PySequential.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pysequential.core.exceptions import InvalidParameter, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a 1D float64 array.

    Scalars become length-1 arrays. Rejects object and non-numeric dtypes,
    multi-dimensional input, and empty input.

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        1D numpy.ndarray of float64

    Raises:
        InvalidParameter: If input cannot be converted to a numeric array
        DimensionError: If input is not 1D
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise InvalidParameter(
            f"{name}: cannot convert to array: {e}", parameter=name, value=array
        ) from e

    if result.dtype == object or not np.issubdtype(result.dtype, np.number):
        raise InvalidParameter(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data",
            parameter=name,
            value=array,
        )

    result = np.atleast_1d(result.astype(np.float64))
    if result.ndim != 1:
        raise DimensionError(
            f"{name}: expected 1D array, got {result.ndim}D with shape {result.shape}"
        )
    if result.size == 0:
        raise InvalidParameter(f"{name}: must not be empty", parameter=name, value=array)
    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        InvalidParameter: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise InvalidParameter(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)",
            parameter=name,
            value=array.tolist(),
        )


def check_positive(array: NDArray[np.floating[Any]], name: str, *, strict: bool = True) -> None:
    """
    Verify all elements are positive (or non-negative if strict=False).

    Raises:
        InvalidParameter: If any element violates the bound
    """
    bad = array <= 0 if strict else array < 0
    if np.any(bad):
        kind = "positive" if strict else "non-negative"
        raise InvalidParameter(
            f"{name}: all values must be {kind}, got {array.tolist()}",
            parameter=name,
            value=array.tolist(),
        )


def check_strictly_increasing(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify a sequence is strictly increasing.

    Raises:
        InvalidParameter: If any consecutive pair is not increasing
    """
    if array.size > 1 and np.any(np.diff(array) <= 0):
        raise InvalidParameter(
            f"{name}: must be strictly increasing, got {array.tolist()}",
            parameter=name,
            value=array.tolist(),
        )


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length.

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_scalar_in_range(
    value: float,
    name: str,
    low: float,
    high: float,
    *,
    low_inclusive: bool = False,
    high_inclusive: bool = False,
) -> float:
    """
    Verify a scalar is finite and inside an interval.

    Returns:
        The value as float

    Raises:
        InvalidParameter: If value is not a finite number inside the interval
    """
    try:
        v = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidParameter(
            f"{name}: expected a number, got {value!r}", parameter=name, value=value
        ) from e

    above = v >= low if low_inclusive else v > low
    below = v <= high if high_inclusive else v < high
    if not (math.isfinite(v) and above and below):
        lb = "[" if low_inclusive else "("
        rb = "]" if high_inclusive else ")"
        raise InvalidParameter(
            f"{name} must be in {lb}{low}, {high}{rb}, got {value}",
            parameter=name,
            value=value,
        )
    return v
