"""Parameter objects for the deconvolution algorithms.

Each algorithm is bound to exactly one parameter class; the class of the
parameter object selects the algorithm (see ``create_algorithm``).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple

from ..constants import DEFAULT_DECONVOLUTION_TOLERANCE, ISOTOPE_MASS_DIFFERENCE, PROTON_MASS
from ..exceptions import InvalidInputError
from .envelope import Polarity
from .native_layout import MAX_ISOTOPE_PEAKS, RECORD_LAYOUT_VERSION, IsoSettings


class InstrumentType(Enum):
    """Instrument types with different mass accuracy characteristics."""
    ORBITRAP = "orbitrap"  # ~240K resolution, 2-5 ppm
    MR_TOF = "mr_tof"      # >1M resolution, <1 ppm
    ASTRAL = "astral"      # Orbitrap-based, similar to Orbitrap


@dataclass
class DeconvolutionParameters:
    """Settings shared by every deconvolution algorithm.

    Charges are given as magnitudes (>= 1); the polarity decides the sign
    of the charges reported on the envelopes.
    """

    min_assumed_charge: int = 1
    max_assumed_charge: int = 12
    tolerance_ppm: float = DEFAULT_DECONVOLUTION_TOLERANCE
    polarity: Polarity = Polarity.POSITIVE

    def __post_init__(self):
        if self.min_assumed_charge < 1 or self.max_assumed_charge < 1:
            raise InvalidInputError(
                f"Charge range must be >= 1, got "
                f"{self.min_assumed_charge}..{self.max_assumed_charge}"
            )
        if self.min_assumed_charge > self.max_assumed_charge:
            raise InvalidInputError(
                f"min_assumed_charge {self.min_assumed_charge} exceeds "
                f"max_assumed_charge {self.max_assumed_charge}"
            )
        if not self.tolerance_ppm > 0:
            raise InvalidInputError(f"tolerance_ppm must be > 0, got {self.tolerance_ppm}")
        if not isinstance(self.polarity, Polarity):
            raise InvalidInputError(f"Unknown polarity: {self.polarity}")

    @property
    def charge_sign(self) -> int:
        return self.polarity.value


@dataclass
class ClassicDeconvolutionParameters(DeconvolutionParameters):
    """Parameters for averagine envelope fitting.

    ``intensity_ratio_limit`` bounds how far an observed isotope may deviate
    from its predicted intensity (observed / predicted must lie within
    [1/limit, limit]) before the isotope is treated as missing.
    """

    intensity_ratio_limit: float = 3.0
    averagine: Optional[Mapping[str, float]] = None  # None -> Senko averagine
    n_isotope_peaks: int = 6
    min_isotope_peaks: int = 2
    max_monoisotopic_shift: int = 1

    def __post_init__(self):
        super().__post_init__()
        if not self.intensity_ratio_limit >= 1.0:
            raise InvalidInputError(
                f"intensity_ratio_limit must be >= 1, got {self.intensity_ratio_limit}"
            )
        if self.n_isotope_peaks < 1:
            raise InvalidInputError(f"n_isotope_peaks must be >= 1, got {self.n_isotope_peaks}")
        if not 1 <= self.min_isotope_peaks <= self.n_isotope_peaks:
            raise InvalidInputError(
                f"min_isotope_peaks must be in 1..{self.n_isotope_peaks}, "
                f"got {self.min_isotope_peaks}"
            )
        if self.max_monoisotopic_shift < 0:
            raise InvalidInputError("max_monoisotopic_shift must be >= 0")

    @classmethod
    def for_instrument(cls, instrument: InstrumentType) -> 'ClassicDeconvolutionParameters':
        """Create parameters optimized for specific instrument type.

        Args:
            instrument: Instrument type enum

        Returns:
            ClassicDeconvolutionParameters with instrument-specific defaults
        """
        if instrument == InstrumentType.MR_TOF:
            return cls(tolerance_ppm=3.0, intensity_ratio_limit=3.0)
        elif instrument in (InstrumentType.ORBITRAP, InstrumentType.ASTRAL):
            return cls(tolerance_ppm=10.0, intensity_ratio_limit=3.0)
        else:
            raise ValueError(f"Unknown instrument type: {instrument}")


@dataclass
class IsoDecDeconvolutionParameters(DeconvolutionParameters):
    """Parameters for the native IsoDec clustering routine.

    Most fields are passed straight through to the routine's settings
    struct; see ``to_iso_settings``.
    """

    max_assumed_charge: int = 50
    report_multiple_monoisotopic_masses: bool = True
    phase_res: int = 8
    verbose: bool = False
    peak_window: int = 80
    peak_threshold: float = 0.0001
    min_peaks: int = 3
    css_threshold: float = 0.7
    match_tolerance: float = 5.0
    max_shift: int = 3
    mz_window: Tuple[float, float] = (-1.05, 2.05)
    plus_one_int_window: Tuple[float, float] = (0.1, 0.6)
    knockdown_rounds: int = 5
    min_score_diff: float = 0.1
    min_area_covered: float = 0.20
    isotope_length: int = MAX_ISOTOPE_PEAKS
    data_threshold: float = 0.05
    isotope_threshold: float = 0.01
    minus_one_as_zero: bool = True
    zscore_threshold: float = 0.95

    def __post_init__(self):
        super().__post_init__()
        if not 1 <= self.isotope_length <= MAX_ISOTOPE_PEAKS:
            raise InvalidInputError(
                f"isotope_length must be in 1..{MAX_ISOTOPE_PEAKS}, got {self.isotope_length}"
            )
        if not 0.0 <= self.css_threshold <= 1.0:
            raise InvalidInputError(f"css_threshold must be in [0, 1], got {self.css_threshold}")

    @classmethod
    def for_instrument(cls, instrument: InstrumentType) -> 'IsoDecDeconvolutionParameters':
        """Create parameters optimized for specific instrument type.

        Args:
            instrument: Instrument type enum

        Returns:
            IsoDecDeconvolutionParameters with instrument-specific defaults
        """
        if instrument == InstrumentType.MR_TOF:
            return cls(match_tolerance=2.0, phase_res=8)
        elif instrument in (InstrumentType.ORBITRAP, InstrumentType.ASTRAL):
            return cls(match_tolerance=5.0, phase_res=8)
        else:
            raise ValueError(f"Unknown instrument type: {instrument}")

    def to_iso_settings(self) -> IsoSettings:
        """Pack the parameters into the native settings struct."""
        settings = IsoSettings()
        settings.layout_version = RECORD_LAYOUT_VERSION
        settings.phaseres = self.phase_res
        settings.verbose = int(self.verbose)
        settings.peakwindow = self.peak_window
        settings.peakthresh = self.peak_threshold
        settings.minpeaks = self.min_peaks
        settings.css_thresh = self.css_threshold
        settings.matchtol = self.match_tolerance
        settings.maxshift = self.max_shift
        settings.mzwindow[0], settings.mzwindow[1] = self.mz_window
        settings.plusoneintwindow[0], settings.plusoneintwindow[1] = self.plus_one_int_window
        settings.knockdown_rounds = self.knockdown_rounds
        settings.min_score_diff = self.min_score_diff
        settings.minareacovered = self.min_area_covered
        settings.isolength = self.isotope_length
        settings.mass_diff_c = ISOTOPE_MASS_DIFFERENCE
        settings.adductmass = PROTON_MASS * self.charge_sign
        settings.minusoneaszero = int(self.minus_one_as_zero)
        settings.isotopethreshold = self.isotope_threshold
        settings.datathreshold = self.data_threshold
        settings.zscore_threshold = self.zscore_threshold
        settings.min_charge = self.min_assumed_charge
        settings.max_charge = self.max_assumed_charge
        return settings
