"""Entry points: pick the algorithm for a parameter object and run it."""

import logging
from typing import List, Optional

from ..exceptions import ConfigurationMismatchError, EmptySpectrumError
from ..spectrum import MzRange, MzSpectrum
from .base import DeconvolutionAlgorithm
from .classic import ClassicDeconvolutionAlgorithm
from .envelope import IsotopicEnvelope, Polarity
from .isodec import IsoDecAlgorithm
from .parameters import (
    ClassicDeconvolutionParameters,
    DeconvolutionParameters,
    IsoDecDeconvolutionParameters,
)

logger = logging.getLogger(__name__)

# Parameter class -> algorithm class (closed set)
ALGORITHMS = {
    ClassicDeconvolutionParameters: ClassicDeconvolutionAlgorithm,
    IsoDecDeconvolutionParameters: IsoDecAlgorithm,
}


def create_algorithm(parameters: DeconvolutionParameters, **kwargs) -> DeconvolutionAlgorithm:
    """Instantiate the algorithm bound to the parameter object's class.

    Extra keyword arguments go to the algorithm constructor (e.g.
    ``routine=`` for IsoDec).

    Raises
    ------
    ConfigurationMismatchError
        If no algorithm accepts this parameter class.
    """
    algorithm_class = ALGORITHMS.get(type(parameters))
    if algorithm_class is None:
        raise ConfigurationMismatchError(
            f"No deconvolution algorithm for {type(parameters).__name__}"
        )
    return algorithm_class(parameters, **kwargs)


class Deconvoluter:
    """Validates inputs and dispatches to the selected algorithm."""

    @staticmethod
    def deconvolute(
        spectrum: MzSpectrum,
        parameters: DeconvolutionParameters,
        mz_range: Optional[MzRange] = None,
        **kwargs,
    ) -> List[IsotopicEnvelope]:
        """Deconvolute spectrum (or the part inside mz_range).

        Raises
        ------
        EmptySpectrumError
            If the spectrum has no peaks
        ConfigurationMismatchError
            If no algorithm accepts the parameter class
        """
        if spectrum.size == 0:
            raise EmptySpectrumError("Cannot deconvolute an empty spectrum")

        algorithm = create_algorithm(parameters, **kwargs)
        if mz_range is None:
            mz_range = spectrum.range

        envelopes = algorithm.deconvolute(spectrum, mz_range)
        logger.debug(
            f"{type(algorithm).__name__}: {len(envelopes)} envelopes in "
            f"{mz_range.minimum:.4f}-{mz_range.maximum:.4f}"
        )
        return envelopes


def deconvolute(
    spectrum: MzSpectrum,
    mz_range: MzRange,
    min_assumed_charge: int,
    max_assumed_charge: int,
    tolerance_ppm: float,
    intensity_ratio_limit: float,
    polarity: Polarity = Polarity.POSITIVE,
) -> List[IsotopicEnvelope]:
    """Averagine deconvolution of a spectrum region (convenience wrapper).

    Parameters
    ----------
    spectrum : MzSpectrum
        Non-empty centroided spectrum
    mz_range : MzRange
        Region to deconvolute; a region without peaks gives []
    min_assumed_charge, max_assumed_charge : int
        Charge magnitudes to consider (min <= max)
    tolerance_ppm : float
        Isotope matching tolerance (> 0)
    intensity_ratio_limit : float
        Allowed factor between observed and predicted isotope intensity

    Examples
    --------
    >>> envelopes = deconvolute(spectrum, MzRange(400, 1200), 1, 5, 10.0, 3.0)
    >>> [(e.charge, round(e.monoisotopic_mass, 3)) for e in envelopes]
    """
    parameters = ClassicDeconvolutionParameters(
        min_assumed_charge=min_assumed_charge,
        max_assumed_charge=max_assumed_charge,
        tolerance_ppm=tolerance_ppm,
        polarity=polarity,
        intensity_ratio_limit=intensity_ratio_limit,
    )
    return Deconvoluter.deconvolute(spectrum, parameters, mz_range)
