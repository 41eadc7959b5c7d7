"""Spectral similarity between an experimental and a theoretical spectrum.

Pipeline (all done once, at construction):

1. Filter: drop peaks below the m/z floor and peaks with negative
   intensity. An empty or zero-total intensity array is rejected before
   filtering.
2. Normalize each spectrum independently with the chosen scheme.
3. Pair peaks greedily, highest intensity first: each theoretical peak (in
   descending intensity) takes the first remaining experimental peak (in
   descending intensity) within the ppm tolerance. The closest peak in m/z
   is not preferred over a more intense one.
4. Score with the Pearson correlation of the paired intensities.

When the spectra cannot be compared (a side is empty after filtering or
no peak pairs up) the pairs are the sentinel ``((-1.0, -1.0),)`` and the
score is None. A None score means "not applicable", which is different
from a low or negative correlation.
"""

import logging
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np
from numba import njit

from ..constants import DEFAULT_MZ_FLOOR, DEFAULT_SIMILARITY_TOLERANCE
from ..exceptions import EmptySpectrumError, InvalidInputError
from ..spectrum import MzSpectrum
from .tolerance_search import (
    double_within_tolerance_bool,
    double_within_tolerance_value,
    within_tolerance,
)

logger = logging.getLogger(__name__)

UNDEFINED_INTENSITY_PAIRS = ((-1.0, -1.0),)


class SpectrumNormalizationScheme(Enum):
    """How intensities are scaled before pairing."""
    SQUARE_ROOT_SPECTRUM_SUM = "square_root_spectrum_sum"
    SPECTRUM_SUM = "spectrum_sum"
    MOST_ABUNDANT_PEAK = "most_abundant_peak"
    UNNORMALIZED = "unnormalized"


# =============================================================================
# Filtering and Normalization
# =============================================================================


def filter_out_ions_below_mz(
    x_array: np.ndarray,
    y_array: np.ndarray,
    filter_out_below_mz: float = 0.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """Keep peaks with m/z >= filter_out_below_mz and intensity >= 0.

    Raises
    ------
    EmptySpectrumError
        If y_array is empty or sums to zero (checked before filtering)
    InvalidInputError
        If the arrays differ in length
    """
    x_array = np.asarray(x_array, dtype=np.float64)
    y_array = np.asarray(y_array, dtype=np.float64)

    if len(y_array) == 0:
        raise EmptySpectrumError("Empty intensity array in spectrum")
    if np.sum(y_array) == 0:
        raise EmptySpectrumError("Spectrum has no intensity")
    if len(x_array) != len(y_array):
        raise InvalidInputError(
            f"x and y lengths differ: {len(x_array)} vs {len(y_array)}"
        )

    keep = (x_array >= filter_out_below_mz) & (y_array >= 0)
    return x_array[keep], y_array[keep]


def normalize_most_abundant_peak(spectrum: np.ndarray) -> np.ndarray:
    """Divide by the maximum; all-zero input is returned as zeros."""
    spectrum = np.asarray(spectrum, dtype=np.float64)
    max_intensity = np.max(spectrum)
    if max_intensity == 0:
        return np.zeros_like(spectrum)
    return spectrum / max_intensity


def normalize_spectrum_sum(spectrum: np.ndarray) -> np.ndarray:
    """Divide by the total; all-zero input is returned as zeros."""
    spectrum = np.asarray(spectrum, dtype=np.float64)
    total = np.sum(spectrum)
    if total == 0:
        return np.zeros_like(spectrum)
    return spectrum / total


def normalize_square_root_spectrum_sum(spectrum: np.ndarray) -> np.ndarray:
    """Square roots divided by their sum (intensities must be >= 0)."""
    roots = np.sqrt(np.asarray(spectrum, dtype=np.float64))
    total = np.sum(roots)
    if total == 0:
        return np.zeros_like(roots)
    return roots / total


def normalize(spectrum: np.ndarray, scheme: SpectrumNormalizationScheme) -> Optional[np.ndarray]:
    """Apply scheme to an intensity array; None for an empty array.

    Examples
    --------
    >>> normalize(np.array([1.0, 3.0]), SpectrumNormalizationScheme.SPECTRUM_SUM)
    array([0.25, 0.75])
    """
    if len(spectrum) == 0:
        return None

    if scheme == SpectrumNormalizationScheme.MOST_ABUNDANT_PEAK:
        return normalize_most_abundant_peak(spectrum)
    elif scheme == SpectrumNormalizationScheme.SPECTRUM_SUM:
        return normalize_spectrum_sum(spectrum)
    elif scheme == SpectrumNormalizationScheme.SQUARE_ROOT_SPECTRUM_SUM:
        return normalize_square_root_spectrum_sum(spectrum)
    elif scheme == SpectrumNormalizationScheme.UNNORMALIZED:
        return np.array(spectrum, dtype=np.float64)
    else:
        raise InvalidInputError(f"Unknown normalization scheme: {scheme}")


# =============================================================================
# Pairing and Correlation Kernels
# =============================================================================


@njit
def pair_intensities(
    exp_x: np.ndarray,
    exp_y: np.ndarray,
    exp_order: np.ndarray,
    theo_x: np.ndarray,
    theo_y: np.ndarray,
    theo_order: np.ndarray,
    tol_ppm: float,
    all_peaks: bool,
):
    """Greedy highest-intensity-first peak pairing.

    Parameters
    ----------
    exp_order, theo_order : np.ndarray (int64)
        Peak indices in descending intensity (stable on ties)

    Returns
    -------
    paired_exp : np.ndarray
        Experimental intensity per pair (0 where unmatched)
    paired_theo : np.ndarray
        Theoretical intensity per pair (0 for leftover experimental peaks)
    n_matched : int
        Number of theoretical peaks that found an experimental partner
    """
    n_exp = len(exp_order)
    n_theo = len(theo_order)
    used = np.zeros(n_exp, dtype=np.bool_)

    paired_exp = np.zeros(n_theo + n_exp, dtype=np.float64)
    paired_theo = np.zeros(n_theo + n_exp, dtype=np.float64)
    n_pairs = 0
    n_matched = 0

    for t in theo_order:
        for e in exp_order:
            if used[e]:
                continue
            if within_tolerance(exp_x[e], theo_x[t], tol_ppm):
                used[e] = True
                paired_exp[n_pairs] = exp_y[e]
                n_matched += 1
                break
        paired_theo[n_pairs] = theo_y[t]
        n_pairs += 1

    if all_peaks:
        for e in exp_order:
            if not used[e]:
                paired_exp[n_pairs] = exp_y[e]
                n_pairs += 1

    return paired_exp[:n_pairs], paired_theo[:n_pairs], n_matched


@njit
def pearson_correlation(x: np.ndarray, y: np.ndarray) -> float:
    """Pearson correlation coefficient, NaN if undefined.

    Undefined means fewer than two values or zero variance on either side.
    """
    if len(x) < 2 or len(x) != len(y):
        return np.nan

    mean_x = np.mean(x)
    mean_y = np.mean(y)

    numerator = np.sum((x - mean_x) * (y - mean_y))
    denominator = np.sqrt(np.sum((x - mean_x) ** 2) * np.sum((y - mean_y) ** 2))

    if denominator == 0.0:
        return np.nan

    corr = numerator / denominator

    # Clamp to [-1, 1] (numerical precision)
    return max(-1.0, min(1.0, corr))


def _descending_order(y_array: np.ndarray) -> np.ndarray:
    return np.argsort(-y_array, kind='stable').astype(np.int64)


def _freeze(array: Optional[np.ndarray]) -> Optional[np.ndarray]:
    if array is None:
        return None
    array.flags.writeable = False
    return array


# =============================================================================
# CrossCorrelation
# =============================================================================


class CrossCorrelation:
    """Similarity of an experimental and a theoretical spectrum.

    All state is computed in the constructor and exposed read-only.

    Parameters
    ----------
    experimental_x, experimental_y : array-like
        Experimental peaks
    theoretical_x, theoretical_y : array-like
        Theoretical (library or predicted) peaks
    scheme : SpectrumNormalizationScheme
        Intensity normalization applied to both spectra
    tolerance_ppm : float
        Pairing tolerance
    all_peaks : bool
        Also pair leftover experimental peaks with theoretical intensity 0
    filter_out_below_mz : float
        Peaks below this m/z are ignored (default 300)

    Raises
    ------
    EmptySpectrumError
        If either intensity array is empty or sums to zero

    Examples
    --------
    >>> xcorr = CrossCorrelation(
    ...     [400.0, 500.0, 600.0], [10.0, 50.0, 30.0],
    ...     [400.0, 500.0, 600.0], [12.0, 48.0, 33.0],
    ...     SpectrumNormalizationScheme.MOST_ABUNDANT_PEAK, 5.0, False,
    ... )
    >>> xcorr.score() > 0.99
    True
    """

    def __init__(
        self,
        experimental_x,
        experimental_y,
        theoretical_x,
        theoretical_y,
        scheme: SpectrumNormalizationScheme,
        tolerance_ppm: float = DEFAULT_SIMILARITY_TOLERANCE,
        all_peaks: bool = False,
        filter_out_below_mz: float = DEFAULT_MZ_FLOOR,
    ):
        if not isinstance(scheme, SpectrumNormalizationScheme):
            raise InvalidInputError(f"Unknown normalization scheme: {scheme}")
        if not tolerance_ppm > 0:
            raise InvalidInputError(f"tolerance_ppm must be > 0, got {tolerance_ppm}")

        exp_x, exp_y = filter_out_ions_below_mz(experimental_x, experimental_y, filter_out_below_mz)
        theo_x, theo_y = filter_out_ions_below_mz(theoretical_x, theoretical_y, filter_out_below_mz)

        self._scheme = scheme
        self._tolerance_ppm = float(tolerance_ppm)
        self._all_peaks = bool(all_peaks)
        self._filter_out_below_mz = float(filter_out_below_mz)

        self._experimental_x = _freeze(exp_x)
        self._experimental_y = _freeze(normalize(exp_y, scheme))
        self._theoretical_x = _freeze(theo_x)
        self._theoretical_y = _freeze(normalize(theo_y, scheme))

        self._intensity_pairs = self._pair(np.sum(exp_y) > 0 and np.sum(theo_y) > 0)

    @classmethod
    def from_spectra(
        cls,
        experimental: MzSpectrum,
        theoretical: MzSpectrum,
        scheme: SpectrumNormalizationScheme,
        tolerance_ppm: float = DEFAULT_SIMILARITY_TOLERANCE,
        all_peaks: bool = False,
        filter_out_below_mz: float = DEFAULT_MZ_FLOOR,
    ) -> 'CrossCorrelation':
        """Compare two MzSpectrum objects."""
        return cls(
            experimental.x_array, experimental.y_array,
            theoretical.x_array, theoretical.y_array,
            scheme, tolerance_ppm, all_peaks, filter_out_below_mz,
        )

    @classmethod
    def from_spectrum_and_arrays(
        cls,
        experimental: MzSpectrum,
        theoretical_x,
        theoretical_y,
        scheme: SpectrumNormalizationScheme,
        tolerance_ppm: float = DEFAULT_SIMILARITY_TOLERANCE,
        all_peaks: bool = False,
        filter_out_below_mz: float = DEFAULT_MZ_FLOOR,
    ) -> 'CrossCorrelation':
        """Compare an experimental MzSpectrum with raw theoretical arrays."""
        return cls(
            experimental.x_array, experimental.y_array,
            theoretical_x, theoretical_y,
            scheme, tolerance_ppm, all_peaks, filter_out_below_mz,
        )

    def _pair(self, has_intensity: bool) -> Tuple[Tuple[float, float], ...]:
        if self._experimental_y is None or self._theoretical_y is None:
            logger.debug("No peaks left above the m/z floor; similarity undefined")
            return UNDEFINED_INTENSITY_PAIRS
        if not has_intensity:
            logger.debug("No intensity left above the m/z floor; similarity undefined")
            return UNDEFINED_INTENSITY_PAIRS

        paired_exp, paired_theo, n_matched = pair_intensities(
            self._experimental_x,
            self._experimental_y,
            _descending_order(self._experimental_y),
            self._theoretical_x,
            self._theoretical_y,
            _descending_order(self._theoretical_y),
            self._tolerance_ppm,
            self._all_peaks,
        )
        if n_matched == 0:
            logger.debug("No peak pairs within tolerance; similarity undefined")
            return UNDEFINED_INTENSITY_PAIRS

        return tuple(zip(paired_exp.tolist(), paired_theo.tolist()))

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def experimental_x_array(self) -> np.ndarray:
        return self._experimental_x

    @property
    def experimental_y_array(self) -> Optional[np.ndarray]:
        """Normalized experimental intensities, None if nothing passed the filter."""
        return self._experimental_y

    @property
    def theoretical_x_array(self) -> np.ndarray:
        return self._theoretical_x

    @property
    def theoretical_y_array(self) -> Optional[np.ndarray]:
        """Normalized theoretical intensities, None if nothing passed the filter."""
        return self._theoretical_y

    @property
    def normalization_scheme(self) -> SpectrumNormalizationScheme:
        return self._scheme

    @property
    def tolerance_ppm(self) -> float:
        return self._tolerance_ppm

    @property
    def all_peaks(self) -> bool:
        return self._all_peaks

    @property
    def filter_out_below_mz(self) -> float:
        return self._filter_out_below_mz

    @property
    def intensity_pairs(self) -> Tuple[Tuple[float, float], ...]:
        """(experimental, theoretical) intensity pairs, or the undefined sentinel."""
        return self._intensity_pairs

    @property
    def is_defined(self) -> bool:
        return self._intensity_pairs != UNDEFINED_INTENSITY_PAIRS

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    @staticmethod
    def xcorr(values1: Sequence[float], values2: Sequence[float]) -> Optional[float]:
        """Pearson correlation of two equal-length sequences.

        Returns None when the lengths differ or the correlation is
        undefined (fewer than two values, zero variance).
        """
        values1 = np.asarray(values1, dtype=np.float64)
        values2 = np.asarray(values2, dtype=np.float64)
        if len(values1) != len(values2):
            return None

        corr = pearson_correlation(values1, values2)
        if np.isnan(corr):
            return None
        return float(corr)

    def score(self) -> Optional[float]:
        """Pearson correlation of the intensity pairs, None if undefined."""
        if not self.is_defined:
            return None
        experimental = [pair[0] for pair in self._intensity_pairs]
        theoretical = [pair[1] for pair in self._intensity_pairs]
        return self.xcorr(experimental, theoretical)

    # Tolerance helpers bound to this instance's ppm tolerance

    def double_within_tolerance_bool(self, array: np.ndarray, value: float) -> bool:
        return double_within_tolerance_bool(array, value, self._tolerance_ppm)

    def double_within_tolerance_value(self, array: np.ndarray, value: float) -> Optional[float]:
        return double_within_tolerance_value(array, value, self._tolerance_ppm)

    def __repr__(self):
        return (
            f"CrossCorrelation(scheme={self._scheme.value}, "
            f"tolerance_ppm={self._tolerance_ppm}, pairs={len(self._intensity_pairs)})"
        )
