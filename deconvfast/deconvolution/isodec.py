"""Deconvolution through the native IsoDec clustering routine.

The heavy lifting (peak clustering, charge assignment, monoisotopic mass
candidates) happens in a shared library. This module owns the contract
around it:

1. Slice the requested m/z region; intensities cross the boundary as
   float32, so precision below ~1e-7 relative is lost on the way in.
2. Call the routine with a scoped output buffer (one record per input peak).
3. Map every reported isotope position back onto the full-precision
   spectrum (most intense peak within 5 ppm). Positions without a peak
   are kept with zero intensity so the envelope shape stays complete.
4. Apply the polarity sign and emit one envelope per monoisotopic mass
   (several when multiple candidates are reported), ids in routine order.

A non-positive cluster count means "nothing found" and gives an empty
result. Exceptions raised inside the call are not caught or retried.
"""

import ctypes
import logging
import os
import platform
from pathlib import Path
from typing import List, Optional

import numpy as np

from ..constants import ENVELOPE_MATCH_TOLERANCE_PPM
from ..exceptions import ExternalRoutineFailure
from ..spectrum import MzRange, MzSpectrum
from .base import DeconvolutionAlgorithm
from .envelope import IsotopicEnvelope
from .native_layout import (
    MAX_ISOTOPE_PEAKS,
    MAX_MONOISOTOPIC_CANDIDATES,
    IsoSettings,
    matched_peak_buffer,
)
from .parameters import IsoDecDeconvolutionParameters

logger = logging.getLogger(__name__)

LIBRARY_PATH_ENV = "DECONVFAST_ISODEC_LIB"

if platform.system() == "Windows":
    _LIBRARY_CANDIDATES = ["isodeclib.dll"]
elif platform.system() == "Darwin":
    _LIBRARY_CANDIDATES = ["isodeclib.dylib"]
else:
    _LIBRARY_CANDIDATES = ["isodeclib.so"]


# =============================================================================
# Native Routine
# =============================================================================


class NativeClusteringRoutine:
    """ctypes binding of ``process_spectrum`` from the IsoDec library.

    The library is located lazily on first use: the path in
    ``$DECONVFAST_ISODEC_LIB`` if set, else the platform library name in
    the explicit ``library_path`` directory or next to this module.

    C signature::

        int process_spectrum(const double *mz, const float *intensity, int n,
                             const char *fname, void *matched_peaks,
                             IsoSettings settings);
    """

    def __init__(self, library_path: Optional[str] = None):
        self.library_path = library_path
        self._lib = None

    def _locate(self) -> Path:
        override = os.environ.get(LIBRARY_PATH_ENV)
        if override:
            return Path(override)

        search_dir = Path(self.library_path) if self.library_path else Path(__file__).parent
        if search_dir.is_file():
            return search_dir
        for candidate in _LIBRARY_CANDIDATES:
            path = search_dir / candidate
            if path.exists():
                return path

        raise ExternalRoutineFailure(
            f"IsoDec native library not found: looked for {_LIBRARY_CANDIDATES} in "
            f"{search_dir} (set {LIBRARY_PATH_ENV} to the library path)"
        )

    def load(self):
        if self._lib is not None:
            return self._lib

        path = self._locate()
        try:
            lib = ctypes.CDLL(str(path))
        except OSError as e:
            raise ExternalRoutineFailure(f"Failed to load {path}: {e}") from e

        lib.process_spectrum.argtypes = [
            ctypes.POINTER(ctypes.c_double),
            ctypes.POINTER(ctypes.c_float),
            ctypes.c_int,
            ctypes.c_char_p,
            ctypes.c_void_p,
            IsoSettings,
        ]
        lib.process_spectrum.restype = ctypes.c_int

        logger.info(f"✓ Loaded IsoDec library: {path}")
        self._lib = lib
        return lib

    def __call__(
        self,
        mz: np.ndarray,
        intensity: np.ndarray,
        settings: IsoSettings,
        buffer: np.ndarray,
    ) -> int:
        """Run the routine; returns the number of records written to buffer."""
        lib = self.load()
        mz = np.ascontiguousarray(mz, dtype=np.float64)
        intensity = np.ascontiguousarray(intensity, dtype=np.float32)
        return int(lib.process_spectrum(
            mz.ctypes.data_as(ctypes.POINTER(ctypes.c_double)),
            intensity.ctypes.data_as(ctypes.POINTER(ctypes.c_float)),
            ctypes.c_int(len(intensity)),
            None,
            buffer.ctypes.data_as(ctypes.c_void_p),
            settings,
        ))


# =============================================================================
# Algorithm
# =============================================================================


class IsoDecAlgorithm(DeconvolutionAlgorithm):
    """Deconvolution delegated to the native IsoDec routine.

    Parameters
    ----------
    parameters : IsoDecDeconvolutionParameters
    routine : callable, optional
        ``routine(mz, intensity, settings, buffer) -> int`` writing
        MATCHED_PEAK_DTYPE records into buffer. Defaults to the
        NativeClusteringRoutine.
    """

    parameters_type = IsoDecDeconvolutionParameters

    def __init__(self, parameters: IsoDecDeconvolutionParameters, routine=None):
        super().__init__(parameters)
        self.routine = routine if routine is not None else NativeClusteringRoutine()

    def deconvolute(self, spectrum: MzSpectrum, mz_range: MzRange) -> List[IsotopicEnvelope]:
        mz, intensity = self.slice_region(spectrum, mz_range)
        if len(mz) == 0:
            return []

        mz = np.ascontiguousarray(mz, dtype=np.float64)
        intensity = np.ascontiguousarray(intensity, dtype=np.float32)
        settings = self.parameters.to_iso_settings()

        with matched_peak_buffer(len(intensity)) as buffer:
            count = self.routine(mz, intensity, settings, buffer)
            if count <= 0:
                if count < 0:
                    logger.warning(f"IsoDec routine returned {count}; treating as no clusters")
                return []
            records = buffer[:min(count, len(buffer))].copy()

        logger.debug(f"IsoDec reported {len(records)} clusters from {len(mz)} peaks")
        return self.convert_to_envelopes(records, spectrum)

    def convert_to_envelopes(self, records: np.ndarray, spectrum: MzSpectrum) -> List[IsotopicEnvelope]:
        """Turn MATCHED_PEAK_DTYPE records into envelopes on the full spectrum."""
        envelopes = []
        sign = self.parameters.charge_sign

        for record in records:
            peaks = self._match_isotope_peaks(record, spectrum)
            charge = sign * int(record['charge'])

            if self.parameters.report_multiple_monoisotopic_masses:
                masses = [
                    float(m) for m in record['monoisotopic_candidates'][:MAX_MONOISOTOPIC_CANDIDATES]
                    if m > 0
                ]
            else:
                masses = [float(record['monoisotopic_mass'])]

            for mass in masses:
                envelopes.append(IsotopicEnvelope(
                    id=len(envelopes),
                    peaks=peaks,
                    monoisotopic_mass=mass,
                    charge=charge,
                    total_intensity=float(record['peak_intensity']),
                    score=float(record['score']),
                ))

        return envelopes

    @staticmethod
    def _match_isotope_peaks(record, spectrum: MzSpectrum):
        n_isotopes = min(max(int(record['real_isotope_length']), 0), MAX_ISOTOPE_PEAKS)
        x = spectrum.x_array
        y = spectrum.y_array

        peaks = []
        for expected_mz in record['isotope_mz'][:n_isotopes]:
            expected_mz = float(expected_mz)
            best_intensity = 0.0
            best_idx = -1
            for idx in spectrum.get_peak_indices_within_tolerance(
                expected_mz, ENVELOPE_MATCH_TOLERANCE_PPM
            ):
                if y[idx] > best_intensity:
                    best_intensity = y[idx]
                    best_idx = idx

            if best_idx >= 0:
                peaks.append((float(x[best_idx]), float(y[best_idx])))
            else:
                peaks.append((expected_mz, 0.0))

        return tuple(peaks)
