"""Common interface of the deconvolution algorithms."""

from abc import ABC, abstractmethod
from typing import List, Tuple

import numpy as np

from ..exceptions import ConfigurationMismatchError
from ..spectrum import MzRange, MzSpectrum
from .envelope import IsotopicEnvelope
from .parameters import DeconvolutionParameters


class DeconvolutionAlgorithm(ABC):
    """Turns a spectrum region into isotopic envelopes.

    Subclasses declare the parameter class they accept in
    ``parameters_type``; binding any other parameter object fails at
    construction.
    """

    parameters_type = DeconvolutionParameters

    def __init__(self, parameters: DeconvolutionParameters):
        if not isinstance(parameters, self.parameters_type):
            raise ConfigurationMismatchError(
                f"{type(self).__name__} requires {self.parameters_type.__name__}, "
                f"got {type(parameters).__name__}"
            )
        self.parameters = parameters

    @abstractmethod
    def deconvolute(self, spectrum: MzSpectrum, mz_range: MzRange) -> List[IsotopicEnvelope]:
        """Deconvolute the peaks of spectrum inside mz_range.

        An empty region yields an empty list.
        """

    @staticmethod
    def slice_region(spectrum: MzSpectrum, mz_range: MzRange) -> Tuple[np.ndarray, np.ndarray]:
        """m/z and intensity arrays of the peaks inside mz_range (read-only views)."""
        first, last = spectrum.index_range(mz_range)
        return spectrum.x_array[first:last], spectrum.y_array[first:last]

    def charge_range(self) -> range:
        return range(self.parameters.min_assumed_charge, self.parameters.max_assumed_charge + 1)
