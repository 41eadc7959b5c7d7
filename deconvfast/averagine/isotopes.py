"""Isotope distribution prediction from averagine compositions.

Given a monoisotopic mass and the composition of one average residue, the
averagine composition is scaled to the mass, rounded to whole atoms, and
the isotope distribution is computed exactly by convolving the per-element
isotope abundance polynomials (binned by nominal mass shift).

Unlike a Poisson approximation on carbon alone, this accounts for H, N, O
and S isotopes and stays accurate for large proteoforms.

Examples
--------
>>> dist = predict_isotope_distribution(1500.0, n_peaks=5)
>>> int(np.argmax(dist))
0
"""

from typing import Mapping, Optional

import numpy as np
from numba import njit

from ..constants import ELEMENT_SHIFT_ABUNDANCES, ISOTOPE_ELEMENTS, STANDARD_AVERAGINE
from ..exceptions import InvalidInputError
from .composition import formula_mass


# =============================================================================
# Polynomial Kernels
# =============================================================================


@njit
def _convolve_truncated(a: np.ndarray, b: np.ndarray, n_peaks: int) -> np.ndarray:
    """Convolve two abundance vectors, keeping the first n_peaks bins."""
    result = np.zeros(n_peaks, dtype=np.float64)
    for i in range(min(len(a), n_peaks)):
        if a[i] == 0.0:
            continue
        for j in range(min(len(b), n_peaks - i)):
            result[i + j] += a[i] * b[j]
    return result


@njit
def _element_distribution(abundances: np.ndarray, n_atoms: int, n_peaks: int) -> np.ndarray:
    """Isotope distribution of n_atoms atoms of one element.

    Exponentiation by squaring of the element's abundance polynomial.
    """
    result = np.zeros(n_peaks, dtype=np.float64)
    result[0] = 1.0

    base = np.zeros(n_peaks, dtype=np.float64)
    for k in range(min(len(abundances), n_peaks)):
        base[k] = abundances[k]

    remaining = n_atoms
    while remaining > 0:
        if remaining & 1:
            result = _convolve_truncated(result, base, n_peaks)
        base = _convolve_truncated(base, base, n_peaks)
        remaining >>= 1

    return result


@njit
def isotope_distribution_from_counts(
    atom_counts: np.ndarray,
    shift_abundances: np.ndarray,
    n_peaks: int,
) -> np.ndarray:
    """Isotope distribution for whole-atom element counts.

    Parameters
    ----------
    atom_counts : np.ndarray (int64)
        Atom count per element, in ISOTOPE_ELEMENTS order
    shift_abundances : np.ndarray (float64, 2D)
        ELEMENT_SHIFT_ABUNDANCES
    n_peaks : int
        Number of isotope peaks (M, M+1, ...)

    Returns
    -------
    distribution : np.ndarray (float64)
        Relative abundances normalised so the most abundant peak is 1.0
    """
    distribution = np.zeros(n_peaks, dtype=np.float64)
    distribution[0] = 1.0

    for e in range(len(atom_counts)):
        if atom_counts[e] <= 0:
            continue
        element = _element_distribution(shift_abundances[e], atom_counts[e], n_peaks)
        distribution = _convolve_truncated(distribution, element, n_peaks)

    max_abundance = np.max(distribution)
    if max_abundance > 0:
        distribution = distribution / max_abundance

    return distribution


# =============================================================================
# Averagine Scaling
# =============================================================================


def averagine_residue_mass(composition: Optional[Mapping[str, float]] = None) -> float:
    """Monoisotopic mass of one averagine residue (Senko: ~111.05 Da)."""
    if composition is None:
        composition = STANDARD_AVERAGINE
    return formula_mass(composition)


def averagine_atom_counts(
    monoisotopic_mass: float,
    composition: Optional[Mapping[str, float]] = None,
) -> np.ndarray:
    """Whole-atom element counts of an averagine molecule of the given mass.

    Returns an int64 array in ISOTOPE_ELEMENTS order.
    """
    if composition is None:
        composition = STANDARD_AVERAGINE

    unknown = set(composition) - set(ISOTOPE_ELEMENTS)
    if unknown:
        raise InvalidInputError(f"No isotope data for elements {sorted(unknown)}")

    residue_mass = formula_mass(composition)
    if residue_mass <= 0:
        raise InvalidInputError("Averagine composition has no mass")

    n_residues = monoisotopic_mass / residue_mass
    return np.array(
        [int(round(composition.get(e, 0.0) * n_residues)) for e in ISOTOPE_ELEMENTS],
        dtype=np.int64,
    )


def predict_isotope_distribution(
    monoisotopic_mass: float,
    composition: Optional[Mapping[str, float]] = None,
    n_peaks: int = 5,
) -> np.ndarray:
    """Predict the isotope envelope of a molecule of unknown exact formula.

    Parameters
    ----------
    monoisotopic_mass : float
        Neutral monoisotopic mass in Da
    composition : Mapping[str, float], optional
        Composition of one average residue, e.g.
        ``SequenceSpecificAveragine.one_residue_averagine``. Defaults to
        the Senko averagine.
    n_peaks : int
        Number of isotope peaks to return (M to M+n_peaks-1)

    Returns
    -------
    np.ndarray (float64)
        Relative intensities normalised so the most abundant peak is 1.0

    Raises
    ------
    InvalidInputError
        If the mass is not positive or n_peaks < 1
    """
    if monoisotopic_mass <= 0:
        raise InvalidInputError(f"Mass must be positive, got {monoisotopic_mass}")
    if n_peaks < 1:
        raise InvalidInputError(f"n_peaks must be >= 1, got {n_peaks}")

    counts = averagine_atom_counts(monoisotopic_mass, composition)
    return isotope_distribution_from_counts(counts, ELEMENT_SHIFT_ABUNDANCES, n_peaks)
