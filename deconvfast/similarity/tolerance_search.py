"""Relative (ppm) tolerance checks and recursive search over sorted m/z arrays."""

from typing import Optional

import numpy as np
from numba import njit


@njit
def within_tolerance(mz1: float, mz2: float, tol_ppm: float) -> bool:
    """True if |mz1 - mz2| relative to the larger value is below tol_ppm.

    Examples
    --------
    >>> within_tolerance(1000.0, 1000.004, 5.0)
    True
    >>> within_tolerance(1000.0, 1000.006, 5.0)
    False
    """
    reference = max(mz1, mz2)
    if reference <= 0.0:
        return False
    return abs(mz1 - mz2) / reference * 1e6 < tol_ppm


@njit
def _search_within_tolerance(array, value, tol_ppm, lo, hi):
    # Half-open window [lo, hi); returns an index or -1
    if hi - lo == 1 and not within_tolerance(array[lo], value, tol_ppm):
        return -1

    mid = lo + (hi - lo) // 2
    if within_tolerance(array[mid], value, tol_ppm):
        return mid

    if value > array[mid]:
        return _search_within_tolerance(array, value, tol_ppm, mid, hi)
    return _search_within_tolerance(array, value, tol_ppm, lo, mid)


def _within_tolerance_index(array: np.ndarray, value: float, tol_ppm: float) -> int:
    array = np.ascontiguousarray(array, dtype=np.float64)
    if len(array) == 0:
        return -1
    return _search_within_tolerance(array, float(value), float(tol_ppm), 0, len(array))


def double_within_tolerance_bool(array: np.ndarray, value: float, tol_ppm: float) -> bool:
    """Whether any element of array lies within tol_ppm of value.

    The window is halved on each step, so array must be sorted ascending.
    Unsorted input gives unspecified results.
    """
    return _within_tolerance_index(array, value, tol_ppm) >= 0


def double_within_tolerance_value(array: np.ndarray, value: float, tol_ppm: float) -> Optional[float]:
    """An element of array within tol_ppm of value, or None.

    Same ascending-order precondition as ``double_within_tolerance_bool``.

    Examples
    --------
    >>> double_within_tolerance_value(np.array([1.0, 2.0, 3.0]), 2.000001, 1.0)
    2.0
    >>> double_within_tolerance_value(np.array([1.0, 2.0, 3.0]), 2.5, 1.0) is None
    True
    """
    idx = _within_tolerance_index(array, value, tol_ppm)
    if idx < 0:
        return None
    return float(array[idx])
