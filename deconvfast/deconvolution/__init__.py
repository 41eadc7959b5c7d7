"""Isotopic envelope deconvolution.

This module provides:
- IsotopicEnvelope results with polarity-signed charges
- Parameter objects that select their algorithm (classic averagine or IsoDec)
- ClassicDeconvolutionAlgorithm: averagine envelope fitting in Numba
- IsoDecAlgorithm: native clustering routine behind a ctypes boundary
- Deconvoluter / deconvolute: validated entry points
"""

from .envelope import (
    IsotopicEnvelope,
    Polarity,
)

from .parameters import (
    ClassicDeconvolutionParameters,
    DeconvolutionParameters,
    InstrumentType,
    IsoDecDeconvolutionParameters,
)

from .base import DeconvolutionAlgorithm

from .classic import (
    ClassicDeconvolutionAlgorithm,
    match_isotope_series,
    score_isotope_fit,
)

from .native_layout import (
    MATCHED_PEAK_DTYPE,
    MAX_ISOTOPE_PEAKS,
    MAX_MONOISOTOPIC_CANDIDATES,
    IsoSettings,
    matched_peak_buffer,
)

from .isodec import (
    IsoDecAlgorithm,
    NativeClusteringRoutine,
)

from .deconvoluter import (
    Deconvoluter,
    create_algorithm,
    deconvolute,
)

__all__ = [
    # Results
    'IsotopicEnvelope',
    'Polarity',

    # Parameters
    'ClassicDeconvolutionParameters',
    'DeconvolutionParameters',
    'InstrumentType',
    'IsoDecDeconvolutionParameters',

    # Algorithms
    'DeconvolutionAlgorithm',
    'ClassicDeconvolutionAlgorithm',
    'match_isotope_series',
    'score_isotope_fit',
    'IsoDecAlgorithm',
    'NativeClusteringRoutine',

    # Native boundary
    'MATCHED_PEAK_DTYPE',
    'MAX_ISOTOPE_PEAKS',
    'MAX_MONOISOTOPIC_CANDIDATES',
    'IsoSettings',
    'matched_peak_buffer',

    # Entry points
    'Deconvoluter',
    'create_algorithm',
    'deconvolute',
]
