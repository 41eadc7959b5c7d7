"""Tests for peak records, m/z ranges and the spectrum container.

Tests:
- IndexedPeak tolerance-based identity and hashing
- MzRange validation
- Binary search kernels (nearest peak, PPM windows)
- MzSpectrum validation, immutability and range restriction
"""

import numpy as np
import pytest

from deconvfast.exceptions import InvalidInputError
from deconvfast.spectrum import (
    IndexedPeak,
    MzRange,
    MzSpectrum,
    closest_peak_index,
    peak_indices_within_tolerance,
    peak_range_within_tolerance,
    ppm_difference,
)


# =============================================================================
# IndexedPeak
# =============================================================================


class TestIndexedPeak:
    """Test tolerance-based peak identity."""

    def test_equal_within_tolerance(self):
        """Same scan and m/z within 1e-9 are the same peak."""
        a = IndexedPeak(500.0, 100.0, 3, 12.5)
        b = IndexedPeak(500.0 + 1e-10, 100.0, 3, 12.5)

        assert a == b

    def test_intensity_not_part_of_identity(self):
        """Changing intensity alone never changes equality or hash."""
        a = IndexedPeak(500.0, 100.0, 3, 12.5)
        b = IndexedPeak(500.0, 9999.0, 3, 14.0)

        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_different_scan_not_equal(self):
        """Different scan index means a different peak."""
        a = IndexedPeak(500.0, 100.0, 3, 12.5)
        b = IndexedPeak(500.0, 100.0, 4, 12.5)

        assert a != b

    def test_mz_outside_tolerance_not_equal(self):
        """An m/z difference of 1e-6 is a different peak."""
        a = IndexedPeak(500.0, 100.0, 3, 12.5)
        b = IndexedPeak(500.000001, 100.0, 3, 12.5)

        assert a != b

    def test_not_equal_to_other_types(self):
        """Comparison with a non-peak is never equal."""
        assert IndexedPeak(500.0, 100.0, 3, 12.5) != (500.0, 3)

    def test_string_form(self):
        """String form is 'mz (3 decimals); scan'."""
        assert str(IndexedPeak(500.12345, 1.0, 7, 0.0)) == "500.123; 7"

    def test_mass_axis_alias(self):
        """m is the position on the mass axis."""
        assert IndexedPeak(421.5, 1.0, 0, 0.0).m == 421.5

    def test_negative_scan_index_rejected(self):
        """Scan indices are non-negative."""
        with pytest.raises(InvalidInputError):
            IndexedPeak(500.0, 1.0, -1, 0.0)


class TestMzRange:
    """Test closed m/z intervals."""

    def test_contains_bounds(self):
        """Both bounds belong to the range."""
        mz_range = MzRange(400.0, 500.0)

        assert mz_range.contains(400.0)
        assert mz_range.contains(500.0)
        assert not mz_range.contains(500.0001)
        assert mz_range.width == pytest.approx(100.0)

    def test_inverted_range_rejected(self):
        """Minimum above maximum is invalid."""
        with pytest.raises(InvalidInputError):
            MzRange(500.0, 400.0)


# =============================================================================
# Binary Search Kernels
# =============================================================================


class TestClosestPeakIndex:
    """Test nearest-peak binary search."""

    def test_nearest(self):
        mz = np.array([100.0, 200.0, 300.0])

        assert closest_peak_index(mz, 249.0) == 1
        assert closest_peak_index(mz, 251.0) == 2

    def test_tie_goes_to_lower_index(self):
        mz = np.array([100.0, 200.0, 300.0])

        assert closest_peak_index(mz, 250.0) == 1

    def test_outside_array(self):
        """Targets beyond the ends clamp to the first or last peak."""
        mz = np.array([100.0, 200.0, 300.0])

        assert closest_peak_index(mz, 10.0) == 0
        assert closest_peak_index(mz, 1000.0) == 2

    def test_empty(self):
        assert closest_peak_index(np.array([], dtype=np.float64), 100.0) == -1


class TestPpmWindow:
    """Test PPM window lookups."""

    def test_ppm_difference(self):
        assert ppm_difference(500.005, 500.0) == pytest.approx(10.0)
        assert ppm_difference(499.995, 500.0) == pytest.approx(-10.0)

    def test_range_within_tolerance(self):
        """All peaks inside the window are returned as [start, end)."""
        mz = np.array([499.990, 499.998, 500.000, 500.003, 500.020])

        start, end = peak_range_within_tolerance(mz, 500.0, 10.0)

        assert (start, end) == (1, 4)

    def test_no_match(self):
        mz = np.array([100.0, 200.0, 300.0])

        indices = peak_indices_within_tolerance(mz, 250.0, 10.0)

        assert len(indices) == 0

    def test_empty_array(self):
        start, end = peak_range_within_tolerance(np.array([], dtype=np.float64), 500.0, 10.0)

        assert start == end


# =============================================================================
# MzSpectrum
# =============================================================================


class TestMzSpectrum:
    """Test spectrum construction and lookups."""

    def test_basic_properties(self, simple_spectrum):
        assert simple_spectrum.size == 5
        assert len(simple_spectrum) == 5
        assert simple_spectrum.first_x == 400.0
        assert simple_spectrum.last_x == 800.0
        assert simple_spectrum.sum_of_all_y == pytest.approx(115.0)
        assert simple_spectrum.range == MzRange(400.0, 800.0)

    def test_arrays_read_only(self, simple_spectrum):
        """Exposed arrays cannot be written."""
        with pytest.raises(ValueError):
            simple_spectrum.x_array[0] = 1.0
        with pytest.raises(ValueError):
            simple_spectrum.y_array[0] = 1.0

    def test_input_copied(self):
        """Mutating the source array does not change the spectrum."""
        mz = np.array([100.0, 200.0])
        spectrum = MzSpectrum(mz, [1.0, 2.0])

        mz[0] = 150.0

        assert spectrum.x_array[0] == 100.0

    def test_length_mismatch_rejected(self):
        with pytest.raises(InvalidInputError):
            MzSpectrum([100.0, 200.0], [1.0])

    def test_unsorted_rejected(self):
        with pytest.raises(InvalidInputError):
            MzSpectrum([200.0, 100.0], [1.0, 2.0])

    def test_non_finite_rejected(self):
        with pytest.raises(InvalidInputError):
            MzSpectrum([100.0, np.nan], [1.0, 2.0])

    def test_empty_spectrum(self):
        """An empty spectrum is valid but has no range or nearest peak."""
        spectrum = MzSpectrum([], [])

        assert spectrum.size == 0
        assert spectrum.range is None
        with pytest.raises(InvalidInputError):
            spectrum.get_closest_peak_index(500.0)

    def test_closest_peak(self, simple_spectrum):
        assert simple_spectrum.get_closest_peak_index(540.0) == 1
        assert simple_spectrum.get_closest_peak_index(560.0) == 2

    def test_peaks_within_tolerance(self, simple_spectrum):
        indices = simple_spectrum.get_peak_indices_within_tolerance(600.003, 10.0)

        assert list(indices) == [2]


class TestIndexRange:
    """Test restriction of a spectrum to an m/z range."""

    def test_inclusive_bounds(self, simple_spectrum):
        """Peaks exactly on the bounds are included."""
        assert simple_spectrum.index_range(MzRange(500.0, 700.0)) == (1, 4)

    def test_bounds_between_peaks(self, simple_spectrum):
        assert simple_spectrum.index_range(MzRange(450.0, 650.0)) == (1, 3)
        assert simple_spectrum.index_range(MzRange(480.0, 520.0)) == (1, 2)

    def test_range_without_peaks(self, simple_spectrum):
        """An interval holding no peak gives an empty range."""
        first, last = simple_spectrum.index_range(MzRange(510.0, 520.0))

        assert first == last

    def test_range_outside_spectrum(self, simple_spectrum):
        first, last = simple_spectrum.index_range(MzRange(100.0, 200.0))
        assert first == last

        first, last = simple_spectrum.index_range(MzRange(900.0, 1000.0))
        assert first == last

    def test_extract(self, simple_spectrum):
        sub = simple_spectrum.extract(MzRange(450.0, 650.0))

        np.testing.assert_array_equal(sub.x_array, [500.0, 600.0])
        np.testing.assert_array_equal(sub.y_array, [50.0, 30.0])

    def test_to_indexed_peaks(self, simple_spectrum):
        peaks = simple_spectrum.to_indexed_peaks(scan_index=2, retention_time=10.0)

        assert len(peaks) == 5
        assert peaks[1] == IndexedPeak(500.0, 0.0, 2, 0.0)
        assert peaks[1].intensity == 50.0
