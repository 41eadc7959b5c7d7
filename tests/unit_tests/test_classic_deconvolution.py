"""Tests for averagine deconvolution and the deconvolution entry points.

Tests:
- Envelope fitting kernels (isotope series matching, ratio filtering)
- Charge and monoisotopic mass assignment on synthetic envelopes
- Polarity handling
- Parameter validation and instrument presets
- Algorithm selection by parameter class
- Empty regions and empty spectra
"""

import numpy as np
import pytest

from deconvfast.constants import PROTON_MASS
from deconvfast.deconvolution import (
    ClassicDeconvolutionAlgorithm,
    ClassicDeconvolutionParameters,
    DeconvolutionParameters,
    Deconvoluter,
    InstrumentType,
    IsoDecAlgorithm,
    IsoDecDeconvolutionParameters,
    IsotopicEnvelope,
    Polarity,
    create_algorithm,
    deconvolute,
    match_isotope_series,
    score_isotope_fit,
)
from deconvfast.exceptions import (
    ConfigurationMismatchError,
    EmptySpectrumError,
    InvalidInputError,
)
from deconvfast.spectrum import MzRange, MzSpectrum


def _spectrum(*peak_sets):
    mz = np.concatenate([p[0] for p in peak_sets])
    intensity = np.concatenate([p[1] for p in peak_sets])
    order = np.argsort(mz)
    return MzSpectrum(mz[order], intensity[order])


# =============================================================================
# Kernels
# =============================================================================


class TestMatchIsotopeSeries:
    """Test isotope position lookups."""

    def test_skips_claimed_and_missing(self):
        mz = np.array([500.0, 500.5, 501.0, 502.0])
        intensity = np.array([10.0, 8.0, 4.0, 1.0])
        claimed = np.array([False, False, True, False])

        indices, observed = match_isotope_series(mz, intensity, claimed, 500.0, 0.5, 4, 10.0)

        np.testing.assert_array_equal(indices, [0, 1, -1, -1])
        np.testing.assert_array_equal(observed, [10.0, 8.0, 0.0, 0.0])

    def test_most_intense_within_tolerance(self):
        """Of two peaks within tolerance the more intense one is used."""
        mz = np.array([500.0, 500.5, 500.5005, 501.0])
        intensity = np.array([10.0, 8.0, 9.0, 4.0])
        claimed = np.zeros(4, dtype=np.bool_)

        indices, observed = match_isotope_series(mz, intensity, claimed, 500.0, 0.5, 3, 10.0)

        assert indices[1] == 2
        assert observed[1] == 9.0


class TestScoreIsotopeFit:
    """Test intensity ratio filtering and cosine scoring."""

    def test_perfect_fit(self):
        theoretical = np.array([1.0, 0.8, 0.4])
        indices = np.array([0, 1, 2], dtype=np.int64)
        observed = theoretical * 1000.0

        cosine, n_matched = score_isotope_fit(indices, observed, theoretical, 0, 3.0)

        assert cosine == pytest.approx(1.0)
        assert n_matched == 3

    def test_outlier_dropped(self):
        """An isotope 12x above its prediction is treated as missing."""
        theoretical = np.array([1.0, 0.8, 0.4])
        indices = np.array([0, 1, 2], dtype=np.int64)
        observed = np.array([100.0, 80.0, 500.0])

        cosine, n_matched = score_isotope_fit(indices, observed, theoretical, 0, 3.0)

        assert n_matched == 2
        assert indices[2] == -1
        assert observed[2] == 0.0
        assert 0.0 < cosine < 1.0

    def test_missing_isotopes_not_counted(self):
        theoretical = np.array([1.0, 0.8, 0.4])
        indices = np.array([0, -1, -1], dtype=np.int64)
        observed = np.array([100.0, 0.0, 0.0])

        _, n_matched = score_isotope_fit(indices, observed, theoretical, 0, 3.0)

        assert n_matched == 1


# =============================================================================
# Classic Deconvolution
# =============================================================================


class TestClassicDeconvolution:
    """Test charge and mass assignment on synthetic spectra."""

    def test_doubly_charged_envelope(self, make_envelope_peaks):
        """A z=2 averagine envelope of 1500 Da is recovered."""
        spectrum = _spectrum(make_envelope_peaks(1500.0, 2))
        params = ClassicDeconvolutionParameters(min_assumed_charge=1, max_assumed_charge=5)

        envelopes = ClassicDeconvolutionAlgorithm(params).deconvolute(spectrum, spectrum.range)

        assert len(envelopes) == 1
        envelope = envelopes[0]
        assert envelope.charge == 2
        assert envelope.monoisotopic_mass == pytest.approx(1500.0, abs=1e-6)
        assert envelope.peak_count == 6
        assert envelope.score == pytest.approx(1.0, abs=1e-9)
        assert envelope.id == 0

    def test_two_envelopes(self, make_envelope_peaks):
        """Separate envelopes get their own charge and sequential ids."""
        spectrum = _spectrum(
            make_envelope_peaks(1500.0, 2),
            make_envelope_peaks(2500.0, 3),
        )
        params = ClassicDeconvolutionParameters(min_assumed_charge=1, max_assumed_charge=4)

        envelopes = ClassicDeconvolutionAlgorithm(params).deconvolute(spectrum, spectrum.range)

        assert len(envelopes) == 2
        assert [e.id for e in envelopes] == [0, 1]
        by_charge = {e.charge: e for e in envelopes}
        assert set(by_charge) == {2, 3}
        assert by_charge[2].monoisotopic_mass == pytest.approx(1500.0, abs=1e-6)
        assert by_charge[3].monoisotopic_mass == pytest.approx(2500.0, abs=1e-6)

    def test_negative_polarity(self, make_envelope_peaks):
        """Negative mode reports negative charges and proton-loss masses."""
        spectrum = _spectrum(make_envelope_peaks(1500.0, -2))
        params = ClassicDeconvolutionParameters(
            min_assumed_charge=1, max_assumed_charge=5, polarity=Polarity.NEGATIVE
        )

        envelopes = ClassicDeconvolutionAlgorithm(params).deconvolute(spectrum, spectrum.range)

        assert len(envelopes) == 1
        assert envelopes[0].charge == -2
        assert envelopes[0].polarity == Polarity.NEGATIVE
        assert envelopes[0].monoisotopic_mass == pytest.approx(1500.0, abs=1e-6)

    def test_isolated_peak_ignored(self, make_envelope_peaks):
        """A lone noise peak does not form an envelope."""
        mz, intensity = make_envelope_peaks(1500.0, 2)
        noise = (np.array([900.0]), np.array([5e4]))
        spectrum = _spectrum((mz, intensity), noise)
        params = ClassicDeconvolutionParameters(min_assumed_charge=1, max_assumed_charge=5)

        envelopes = ClassicDeconvolutionAlgorithm(params).deconvolute(spectrum, spectrum.range)

        assert len(envelopes) == 1
        assert all(peak[0] != 900.0 for peak in envelopes[0].peaks)

    def test_range_restricts_peaks(self, make_envelope_peaks):
        """Only peaks inside the requested range are considered."""
        spectrum = _spectrum(
            make_envelope_peaks(1500.0, 2),
            make_envelope_peaks(2500.0, 3),
        )
        params = ClassicDeconvolutionParameters(min_assumed_charge=1, max_assumed_charge=4)

        envelopes = ClassicDeconvolutionAlgorithm(params).deconvolute(
            spectrum, MzRange(700.0, 800.0)
        )

        assert len(envelopes) == 1
        assert envelopes[0].charge == 2

    def test_empty_region_returns_empty(self, make_envelope_peaks):
        """A range without peaks gives no envelopes and no error."""
        spectrum = _spectrum(make_envelope_peaks(1500.0, 2))
        params = ClassicDeconvolutionParameters()

        envelopes = ClassicDeconvolutionAlgorithm(params).deconvolute(
            spectrum, MzRange(1200.0, 1300.0)
        )

        assert envelopes == []


class TestEnvelope:
    """Test derived envelope properties."""

    def test_derived_properties(self):
        envelope = IsotopicEnvelope(
            id=0,
            peaks=((751.0, 100.0), (751.5, 120.0), (752.0, 40.0)),
            monoisotopic_mass=1500.0,
            charge=2,
            total_intensity=260.0,
            score=0.98,
        )

        assert envelope.peak_count == 3
        assert envelope.most_abundant_mz == 751.5
        assert envelope.monoisotopic_mz == pytest.approx((1500.0 + 2 * PROTON_MASS) / 2)
        assert envelope.polarity == Polarity.POSITIVE

    def test_negative_monoisotopic_mz(self):
        envelope = IsotopicEnvelope(0, (), 1500.0, -3, 0.0, 0.0)

        assert envelope.most_abundant_mz is None
        assert envelope.monoisotopic_mz == pytest.approx((1500.0 - 3 * PROTON_MASS) / 3)


# =============================================================================
# Parameters
# =============================================================================


class TestParameters:
    """Test parameter validation and presets."""

    def test_defaults(self):
        params = ClassicDeconvolutionParameters()

        assert params.min_assumed_charge == 1
        assert params.max_assumed_charge == 12
        assert params.charge_sign == 1

    def test_inverted_charge_range(self):
        with pytest.raises(InvalidInputError):
            ClassicDeconvolutionParameters(min_assumed_charge=5, max_assumed_charge=2)

    def test_zero_charge(self):
        with pytest.raises(InvalidInputError):
            ClassicDeconvolutionParameters(min_assumed_charge=0)

    def test_non_positive_tolerance(self):
        with pytest.raises(InvalidInputError):
            ClassicDeconvolutionParameters(tolerance_ppm=0.0)

    def test_ratio_limit_below_one(self):
        with pytest.raises(InvalidInputError):
            ClassicDeconvolutionParameters(intensity_ratio_limit=0.5)

    def test_unknown_polarity(self):
        with pytest.raises(InvalidInputError):
            ClassicDeconvolutionParameters(polarity=1)

    def test_instrument_presets(self):
        orbitrap = ClassicDeconvolutionParameters.for_instrument(InstrumentType.ORBITRAP)
        mr_tof = ClassicDeconvolutionParameters.for_instrument(InstrumentType.MR_TOF)

        assert orbitrap.tolerance_ppm == 10.0
        assert mr_tof.tolerance_ppm == 3.0
        assert IsoDecDeconvolutionParameters.for_instrument(
            InstrumentType.MR_TOF
        ).match_tolerance == 2.0


# =============================================================================
# Entry Points
# =============================================================================


class TestAlgorithmSelection:
    """Test that the parameter class selects the algorithm."""

    def test_classic_selected(self):
        algorithm = create_algorithm(ClassicDeconvolutionParameters())

        assert isinstance(algorithm, ClassicDeconvolutionAlgorithm)

    def test_isodec_selected(self):
        """Selecting IsoDec does not load the native library yet."""
        algorithm = create_algorithm(IsoDecDeconvolutionParameters())

        assert isinstance(algorithm, IsoDecAlgorithm)

    def test_base_parameters_rejected(self):
        with pytest.raises(ConfigurationMismatchError):
            create_algorithm(DeconvolutionParameters())

    def test_mismatched_parameters_fail_at_construction(self):
        with pytest.raises(ConfigurationMismatchError):
            ClassicDeconvolutionAlgorithm(IsoDecDeconvolutionParameters())
        with pytest.raises(ConfigurationMismatchError):
            IsoDecAlgorithm(ClassicDeconvolutionParameters())


class TestDeconvoluter:
    """Test the validated entry points."""

    def test_default_range_is_whole_spectrum(self, make_envelope_peaks):
        spectrum = _spectrum(make_envelope_peaks(1500.0, 2))
        params = ClassicDeconvolutionParameters(min_assumed_charge=1, max_assumed_charge=5)

        envelopes = Deconvoluter.deconvolute(spectrum, params)

        assert len(envelopes) == 1

    def test_empty_spectrum_rejected(self):
        with pytest.raises(EmptySpectrumError):
            Deconvoluter.deconvolute(MzSpectrum([], []), ClassicDeconvolutionParameters())

    def test_convenience_function(self, make_envelope_peaks):
        spectrum = _spectrum(make_envelope_peaks(1500.0, 2))

        envelopes = deconvolute(spectrum, MzRange(700.0, 800.0), 1, 5, 10.0, 3.0)

        assert len(envelopes) == 1
        assert envelopes[0].charge == 2

    def test_convenience_empty_region(self, make_envelope_peaks):
        spectrum = _spectrum(make_envelope_peaks(1500.0, 2))

        assert deconvolute(spectrum, MzRange(300.0, 400.0), 1, 5, 10.0, 3.0) == []
