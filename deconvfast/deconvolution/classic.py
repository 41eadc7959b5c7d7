"""Averagine envelope fitting (pure Python/Numba deconvolution).

Greedy seed-and-extend deconvolution that needs no native library:

1. Peaks are visited in descending intensity; each unclaimed peak seeds
   a search.
2. For every charge in range, the seed's neutral mass gives an averagine
   isotope distribution. The seed is tried at the distribution's apex and
   at up to ``max_monoisotopic_shift`` isotope positions on either side,
   which fixes the monoisotopic m/z.
3. Each expected isotope is looked up within the tolerance (most intense
   unclaimed peak). Isotopes whose observed / predicted intensity falls
   outside [1/limit, limit] are treated as missing.
4. Hypotheses are ranked by cosine similarity x matched isotope count, so
   a charge that explains more of the cluster wins over its harmonics.
5. The best hypothesis with at least ``min_isotope_peaks`` isotopes becomes
   an envelope and its peaks are claimed.
"""

import logging
from typing import Dict, List

import numpy as np
from numba import njit

from ..averagine import predict_isotope_distribution
from ..constants import ISOTOPE_MASS_DIFFERENCE, PROTON_MASS
from ..spectrum import MzRange, MzSpectrum, peak_range_within_tolerance
from .base import DeconvolutionAlgorithm
from .envelope import IsotopicEnvelope
from .parameters import ClassicDeconvolutionParameters

logger = logging.getLogger(__name__)


# =============================================================================
# Envelope Fitting Kernels
# =============================================================================


@njit
def match_isotope_series(
    mz_array: np.ndarray,
    intensity_array: np.ndarray,
    claimed: np.ndarray,
    monoisotopic_mz: float,
    spacing: float,
    n_peaks: int,
    tol_ppm: float,
):
    """Find the most intense unclaimed peak at each isotope position.

    Returns
    -------
    indices : np.ndarray (int64)
        Spectrum index per isotope, -1 if none within tolerance
    observed : np.ndarray (float64)
        Observed intensity per isotope, 0.0 if none
    """
    indices = np.full(n_peaks, -1, dtype=np.int64)
    observed = np.zeros(n_peaks, dtype=np.float64)

    for i in range(n_peaks):
        target_mz = monoisotopic_mz + i * spacing
        start_idx, end_idx = peak_range_within_tolerance(mz_array, target_mz, tol_ppm)

        best_intensity = 0.0
        for idx in range(start_idx, end_idx):
            if claimed[idx]:
                continue
            if intensity_array[idx] > best_intensity:
                best_intensity = intensity_array[idx]
                indices[i] = idx
        observed[i] = best_intensity

    return indices, observed


@njit
def score_isotope_fit(
    indices: np.ndarray,
    observed: np.ndarray,
    theoretical: np.ndarray,
    seed_position: int,
    intensity_ratio_limit: float,
):
    """Drop isotopes with implausible intensity, then score the fit.

    The theoretical distribution is scaled to the seed isotope; other
    isotopes must satisfy 1/limit <= observed / expected <= limit. Dropped
    isotopes are set to index -1 and intensity 0 in place.

    Returns
    -------
    cosine : float
        Cosine similarity between observed and theoretical intensities
    n_matched : int
        Number of isotopes kept
    """
    n_peaks = len(observed)
    if theoretical[seed_position] <= 0.0:
        return 0.0, 0
    scale = observed[seed_position] / theoretical[seed_position]

    n_matched = 0
    for i in range(n_peaks):
        if indices[i] < 0:
            continue
        if i != seed_position:
            expected = theoretical[i] * scale
            if expected <= 0.0:
                indices[i] = -1
                observed[i] = 0.0
                continue
            ratio = observed[i] / expected
            if ratio > intensity_ratio_limit or ratio < 1.0 / intensity_ratio_limit:
                indices[i] = -1
                observed[i] = 0.0
                continue
        n_matched += 1

    dot = 0.0
    norm_observed = 0.0
    norm_theoretical = 0.0
    for i in range(n_peaks):
        dot += observed[i] * theoretical[i]
        norm_observed += observed[i] * observed[i]
        norm_theoretical += theoretical[i] * theoretical[i]

    if norm_observed == 0.0 or norm_theoretical == 0.0:
        return 0.0, n_matched

    return dot / np.sqrt(norm_observed * norm_theoretical), n_matched


# =============================================================================
# Algorithm
# =============================================================================


class _Fit:
    __slots__ = ('charge', 'monoisotopic_mz', 'indices', 'observed', 'cosine', 'n_matched')

    def __init__(self, charge, monoisotopic_mz, indices, observed, cosine, n_matched):
        self.charge = charge
        self.monoisotopic_mz = monoisotopic_mz
        self.indices = indices
        self.observed = observed
        self.cosine = cosine
        self.n_matched = n_matched

    @property
    def rank(self) -> float:
        return self.cosine * self.n_matched


class ClassicDeconvolutionAlgorithm(DeconvolutionAlgorithm):
    """Averagine-based deconvolution.

    Examples
    --------
    >>> params = ClassicDeconvolutionParameters(min_assumed_charge=1, max_assumed_charge=4)
    >>> algorithm = ClassicDeconvolutionAlgorithm(params)
    >>> envelopes = algorithm.deconvolute(spectrum, MzRange(400.0, 1600.0))
    """

    parameters_type = ClassicDeconvolutionParameters

    def deconvolute(self, spectrum: MzSpectrum, mz_range: MzRange) -> List[IsotopicEnvelope]:
        mz, intensity = self.slice_region(spectrum, mz_range)
        if len(mz) == 0:
            return []

        mz = np.ascontiguousarray(mz, dtype=np.float64)
        intensity = np.ascontiguousarray(intensity, dtype=np.float64)
        claimed = np.zeros(len(mz), dtype=np.bool_)
        distributions = {}

        envelopes = []
        for seed_idx in np.argsort(-intensity, kind='stable'):
            if claimed[seed_idx] or intensity[seed_idx] <= 0:
                continue

            fit = self._best_fit(mz, intensity, claimed, int(seed_idx), distributions)
            if fit is None:
                continue

            matched = fit.indices[fit.indices >= 0]
            claimed[matched] = True
            envelopes.append(self._to_envelope(len(envelopes), fit, mz, intensity))

        logger.debug(f"Classic deconvolution: {len(envelopes)} envelopes from {len(mz)} peaks")
        return envelopes

    def _distribution(self, neutral_mass: float, cache: Dict[int, np.ndarray]) -> np.ndarray:
        key = int(round(neutral_mass))
        distribution = cache.get(key)
        if distribution is None:
            distribution = predict_isotope_distribution(
                float(max(key, 1)), self.parameters.averagine, self.parameters.n_isotope_peaks
            )
            cache[key] = distribution
        return distribution

    def _best_fit(self, mz, intensity, claimed, seed_idx, cache):
        params = self.parameters
        sign = params.charge_sign
        n_peaks = params.n_isotope_peaks
        seed_mz = mz[seed_idx]

        best = None
        for charge in self.charge_range():
            seed_mass = charge * (seed_mz - sign * PROTON_MASS)
            if seed_mass <= 0:
                continue

            spacing = ISOTOPE_MASS_DIFFERENCE / charge
            theoretical = self._distribution(seed_mass, cache)
            apex = int(np.argmax(theoretical))

            first = max(0, apex - params.max_monoisotopic_shift)
            last = min(n_peaks, apex + params.max_monoisotopic_shift + 1)
            for position in range(first, last):
                monoisotopic_mz = seed_mz - position * spacing
                indices, observed = match_isotope_series(
                    mz, intensity, claimed, monoisotopic_mz, spacing, n_peaks, params.tolerance_ppm
                )
                if indices[position] != seed_idx:
                    continue

                cosine, n_matched = score_isotope_fit(
                    indices, observed, theoretical, position, params.intensity_ratio_limit
                )
                if n_matched < params.min_isotope_peaks:
                    continue

                fit = _Fit(charge, monoisotopic_mz, indices, observed, cosine, n_matched)
                if best is None or fit.rank > best.rank:
                    best = fit

        return best

    def _to_envelope(self, envelope_id, fit, mz, intensity) -> IsotopicEnvelope:
        sign = self.parameters.charge_sign
        peaks = tuple(
            (float(mz[idx]), float(intensity[idx])) for idx in fit.indices if idx >= 0
        )
        return IsotopicEnvelope(
            id=envelope_id,
            peaks=peaks,
            monoisotopic_mass=fit.charge * (fit.monoisotopic_mz - sign * PROTON_MASS),
            charge=sign * fit.charge,
            total_intensity=float(np.sum(fit.observed)),
            score=float(fit.cosine),
        )
