"""Pytest configuration for DeconvFast tests.

This module provides common fixtures and configuration for all tests:
peptide sequences for the averagine models and synthetic centroided
spectra with known isotope envelopes.
"""

import numpy as np
import pytest


@pytest.fixture
def simple_peptide():
    """Simple peptide for basic tests."""
    return "PEPTIDE"


@pytest.fixture
def tryptic_peptides():
    """Collection of typical tryptic peptides."""
    return [
        "PEPTIDE",
        "ACDEK",
        "TESTPEPTIDER",
        "YGGFMTSEK",
        "LGEHNIDVLEGNEQFINAAK",
    ]


@pytest.fixture
def proton_mass():
    """Proton mass constant."""
    from deconvfast.constants import PROTON_MASS
    return PROTON_MASS


@pytest.fixture
def simple_spectrum():
    """Five well separated peaks between 400 and 800 m/z."""
    from deconvfast.spectrum import MzSpectrum
    return MzSpectrum(
        [400.0, 500.0, 600.0, 700.0, 800.0],
        [10.0, 50.0, 30.0, 20.0, 5.0],
    )


@pytest.fixture
def make_envelope_peaks():
    """Factory for averagine isotope peaks of a neutral mass at a charge.

    Returns (mz, intensity) arrays; negative charges give negative-mode
    ions (proton loss).
    """
    from deconvfast.averagine import predict_isotope_distribution
    from deconvfast.constants import ISOTOPE_MASS_DIFFERENCE, PROTON_MASS

    def _make(mass, charge, n_peaks=6, scale=1e6):
        z = abs(charge)
        sign = 1 if charge > 0 else -1
        distribution = predict_isotope_distribution(mass, n_peaks=n_peaks)
        mono_mz = (mass + sign * z * PROTON_MASS) / z
        mz = mono_mz + np.arange(n_peaks) * ISOTOPE_MASS_DIFFERENCE / z
        return mz, distribution * scale

    return _make


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
