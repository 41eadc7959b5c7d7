"""DeconvFast - Isotopic envelope deconvolution and spectral similarity.

This library provides Numba-optimized building blocks for mass spectrometry
data: tolerance-based peak lookups, averagine isotope models, charge-state
deconvolution (pure Python averagine fitting or the native IsoDec routine)
and Pearson cross-correlation between experimental and theoretical spectra.
"""

__version__ = "0.1.0"

# Import main submodules for convenient access
from deconvfast import spectrum
from deconvfast import averagine
from deconvfast import deconvolution
from deconvfast import similarity
from deconvfast import exceptions

__all__ = [
    "spectrum",
    "averagine",
    "deconvolution",
    "similarity",
    "exceptions",
]
