"""Spectral similarity (cross-correlation) and ppm tolerance search.

This module provides:
- CrossCorrelation: filter, normalize, pair and correlate two spectra
- Normalization schemes (most abundant peak, sum, square-root sum, none)
- within_tolerance and recursive tolerance search over sorted arrays
"""

from .tolerance_search import (
    double_within_tolerance_bool,
    double_within_tolerance_value,
    within_tolerance,
)

from .cross_correlation import (
    UNDEFINED_INTENSITY_PAIRS,
    CrossCorrelation,
    SpectrumNormalizationScheme,
    filter_out_ions_below_mz,
    normalize,
    normalize_most_abundant_peak,
    normalize_spectrum_sum,
    normalize_square_root_spectrum_sum,
    pair_intensities,
    pearson_correlation,
)

__all__ = [
    # Tolerance search
    'within_tolerance',
    'double_within_tolerance_bool',
    'double_within_tolerance_value',

    # Cross-correlation
    'CrossCorrelation',
    'SpectrumNormalizationScheme',
    'UNDEFINED_INTENSITY_PAIRS',
    'filter_out_ions_below_mz',
    'normalize',
    'normalize_most_abundant_peak',
    'normalize_spectrum_sum',
    'normalize_square_root_spectrum_sum',
    'pair_intensities',
    'pearson_correlation',
]
