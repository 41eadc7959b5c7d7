"""Peak and spectrum containers with tolerance-based lookups.

This module provides:
- IndexedPeak: scan-tagged peak with tolerance-based identity
- MzRange: closed m/z interval
- MzSpectrum: immutable m/z-sorted spectrum
- Numba binary-search kernels for nearest-peak and PPM-window queries
"""

from .peaks import (
    IndexedPeak,
    MzRange,
)

from .mz_spectrum import (
    MzSpectrum,
    closest_peak_index,
    peak_indices_within_tolerance,
    peak_range_within_tolerance,
    ppm_difference,
)

__all__ = [
    # Peaks
    'IndexedPeak',
    'MzRange',

    # Spectrum
    'MzSpectrum',
    'closest_peak_index',
    'peak_indices_within_tolerance',
    'peak_range_within_tolerance',
    'ppm_difference',
]
