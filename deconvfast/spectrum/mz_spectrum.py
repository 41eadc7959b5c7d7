"""Immutable m/z-sorted spectra with binary-search peak lookups.

Core lookups used by deconvolution and envelope matching:
1. Closest peak by absolute m/z difference (O(log n))
2. All peaks within a PPM window of a target (O(log n + k))

Both kernels are Numba-compiled and operate on plain sorted arrays, so
they can be called from other compiled code as well as through
``MzSpectrum``.
"""

from typing import List

import numba
import numpy as np

from ..exceptions import InvalidInputError
from .peaks import IndexedPeak, MzRange


# =============================================================================
# Binary Search Kernels
# =============================================================================

@numba.jit(nopython=True, cache=True)
def ppm_difference(observed_mz: float, target_mz: float) -> float:
    """Signed deviation of observed from target in parts per million."""
    return (observed_mz - target_mz) / target_mz * 1e6


@numba.jit(nopython=True, cache=True)
def closest_peak_index(mz_array: np.ndarray, target_mz: float) -> int:
    """Find the index of the peak closest to target_mz.

    Parameters
    ----------
    mz_array : np.ndarray
        Sorted m/z array
        CRITICAL: Must be sorted ascending! No validation for speed.
    target_mz : float
        m/z to look up

    Returns
    -------
    index : int
        Index of the nearest peak by absolute m/z difference. When two
        peaks are equally close the lower index wins. Returns -1 for an
        empty array.

    Examples
    --------
    >>> mz = np.array([100.0, 200.0, 300.0])
    >>> closest_peak_index(mz, 249.0)
    1
    >>> closest_peak_index(mz, 250.0)  # tie -> lower index
    1
    """
    n = len(mz_array)
    if n == 0:
        return -1

    # First index with mz >= target
    left, right = 0, n
    while left < right:
        mid = (left + right) // 2
        if mz_array[mid] < target_mz:
            left = mid + 1
        else:
            right = mid

    if left == 0:
        return 0
    if left == n:
        return n - 1

    below = target_mz - mz_array[left - 1]
    above = mz_array[left] - target_mz
    if above < below:
        return left
    return left - 1


@numba.jit(nopython=True, cache=True)
def peak_range_within_tolerance(
    mz_array: np.ndarray,
    target_mz: float,
    tol_ppm: float,
):
    """Index range [start, end) of peaks within tol_ppm of target_mz.

    The window is target_mz +/- target_mz * tol_ppm / 1e6, bounds included.
    Returns (start, start) when nothing matches.
    """
    n = len(mz_array)
    if n == 0:
        return 0, 0

    mz_tol = target_mz * tol_ppm / 1e6
    low_mz = target_mz - mz_tol
    high_mz = target_mz + mz_tol

    # Lower bound
    left, right = 0, n
    while left < right:
        mid = (left + right) // 2
        if mz_array[mid] < low_mz:
            left = mid + 1
        else:
            right = mid
    start_idx = left

    # Upper bound
    left, right = start_idx, n
    while left < right:
        mid = (left + right) // 2
        if mz_array[mid] <= high_mz:
            left = mid + 1
        else:
            right = mid

    return start_idx, left


@numba.jit(nopython=True, cache=True)
def peak_indices_within_tolerance(
    mz_array: np.ndarray,
    target_mz: float,
    tol_ppm: float,
) -> np.ndarray:
    """All indices whose m/z lies within tol_ppm of target_mz.

    Returns an empty int64 array when no peak matches.
    """
    start_idx, end_idx = peak_range_within_tolerance(mz_array, target_mz, tol_ppm)
    return np.arange(start_idx, end_idx)


# =============================================================================
# Spectrum Container
# =============================================================================

def _read_only(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view


class MzSpectrum:
    """Centroided spectrum: parallel m/z and intensity arrays sorted by m/z.

    The arrays are copied on construction (unless ``copy=False``) and only
    exposed as read-only views, so a spectrum can be shared between
    threads.

    Examples
    --------
    >>> spectrum = MzSpectrum([500.0, 500.5, 501.0], [100.0, 80.0, 30.0])
    >>> spectrum.get_closest_peak_index(500.4)
    1
    """

    def __init__(self, mz, intensity, copy: bool = True):
        if copy:
            mz = np.array(mz, dtype=np.float64)
            intensity = np.array(intensity, dtype=np.float64)
        else:
            mz = np.asarray(mz, dtype=np.float64)
            intensity = np.asarray(intensity, dtype=np.float64)

        if mz.ndim != 1 or intensity.ndim != 1:
            raise InvalidInputError("m/z and intensity must be one-dimensional")
        if len(mz) != len(intensity):
            raise InvalidInputError(
                f"m/z and intensity lengths differ: {len(mz)} vs {len(intensity)}"
            )
        if not (np.all(np.isfinite(mz)) and np.all(np.isfinite(intensity))):
            raise InvalidInputError("Spectrum contains non-finite values")
        if len(mz) > 1 and np.any(np.diff(mz) < 0):
            raise InvalidInputError("Spectrum m/z values must be sorted ascending")

        self._mz = _read_only(mz)
        self._intensity = _read_only(intensity)

    @property
    def x_array(self) -> np.ndarray:
        return self._mz

    @property
    def y_array(self) -> np.ndarray:
        return self._intensity

    @property
    def size(self) -> int:
        return len(self._mz)

    def __len__(self):
        return self.size

    @property
    def first_x(self):
        return float(self._mz[0]) if self.size else None

    @property
    def last_x(self):
        return float(self._mz[-1]) if self.size else None

    @property
    def sum_of_all_y(self) -> float:
        return float(np.sum(self._intensity))

    @property
    def range(self):
        """Full m/z range of the spectrum, or None when empty."""
        if self.size == 0:
            return None
        return MzRange(self.first_x, self.last_x)

    def get_closest_peak_index(self, target_mz: float) -> int:
        """Index of the nearest peak (ties toward the lower index)."""
        if self.size == 0:
            raise InvalidInputError("Cannot look up peaks in an empty spectrum")
        return int(closest_peak_index(self._mz, target_mz))

    def get_peak_indices_within_tolerance(self, target_mz: float, tol_ppm: float) -> np.ndarray:
        """Indices of all peaks within tol_ppm of target_mz (possibly none)."""
        return peak_indices_within_tolerance(self._mz, target_mz, tol_ppm)

    def index_range(self, mz_range: MzRange):
        """Half-open index range [first, last) of peaks inside mz_range.

        Located through nearest-peak lookups on both bounds; the nearest
        peaks are then pulled inside the closed interval, so an interval
        that holds no peak gives first == last.
        """
        if self.size == 0:
            return 0, 0
        first = self.get_closest_peak_index(mz_range.minimum)
        if self._mz[first] < mz_range.minimum:
            first += 1
        last = self.get_closest_peak_index(mz_range.maximum)
        if self._mz[last] > mz_range.maximum:
            last -= 1
        if last < first:
            return first, first
        return first, last + 1

    def extract(self, mz_range: MzRange) -> 'MzSpectrum':
        """Sub-spectrum with the peaks inside mz_range."""
        first, last = self.index_range(mz_range)
        return MzSpectrum(self._mz[first:last], self._intensity[first:last])

    def to_indexed_peaks(self, scan_index: int, retention_time: float) -> List[IndexedPeak]:
        """Tag every peak with its scan index and retention time."""
        return [
            IndexedPeak(float(mz), float(intensity), scan_index, retention_time)
            for mz, intensity in zip(self._mz, self._intensity)
        ]

    def __repr__(self):
        return f"MzSpectrum(n_peaks={self.size}, range={self.first_x}-{self.last_x})"
