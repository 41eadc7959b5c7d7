"""Elemental compositions of peptides.

Compositions are plain dictionaries mapping element symbol to atom count,
e.g. ``{'C': 34, 'H': 53, 'N': 7, 'O': 15}`` for PEPTIDE.
"""

from typing import Dict, Mapping

from ..constants import ELEMENT_MONOISOTOPIC_MASSES, RESIDUE_COMPOSITIONS, WATER_COMPOSITION
from ..exceptions import InvalidInputError


def add_composition(total: Dict[str, float], other: Mapping[str, float]) -> Dict[str, float]:
    """Add the atoms of other into total (in place) and return total."""
    for element, count in other.items():
        total[element] = total.get(element, 0) + count
    return total


def peptide_composition(sequence: str) -> Dict[str, int]:
    """Elemental composition of an unmodified peptide.

    Sum of the residue compositions plus one water for the termini. An
    empty sequence is just water.

    Raises
    ------
    InvalidInputError
        If the sequence contains a residue code without a known composition
        (including the non-standard codes X, B and U).

    Examples
    --------
    >>> format_formula(peptide_composition("PEPTIDE"))
    'C34H53N7O15'
    """
    composition = dict(WATER_COMPOSITION)
    for position, residue in enumerate(sequence):
        residue_composition = RESIDUE_COMPOSITIONS.get(residue)
        if residue_composition is None:
            raise InvalidInputError(
                f"Unknown residue '{residue}' at position {position} in {sequence}"
            )
        add_composition(composition, residue_composition)
    return composition


def formula_mass(composition: Mapping[str, float]) -> float:
    """Monoisotopic mass of a (possibly fractional) composition in Da."""
    mass = 0.0
    for element, count in composition.items():
        if element not in ELEMENT_MONOISOTOPIC_MASSES:
            raise InvalidInputError(f"No isotope data for element '{element}'")
        mass += ELEMENT_MONOISOTOPIC_MASSES[element] * count
    return mass


def total_atom_count(composition: Mapping[str, float]) -> float:
    return sum(composition.values())


def format_formula(composition: Mapping[str, float]) -> str:
    """Hill-order formula string: C first, then H, then the rest A-Z.

    Counts of one are written without a number, zero counts are dropped,
    and fractional counts are written with up to four decimals.
    """
    elements = [e for e, count in composition.items() if count != 0]
    if 'C' in elements:
        head = [e for e in ('C', 'H') if e in elements]
    else:
        head = []
    ordered = head + sorted(e for e in elements if e not in head)

    parts = []
    for element in ordered:
        count = composition[element]
        if count == 1:
            parts.append(element)
        elif float(count).is_integer():
            parts.append(f"{element}{int(count)}")
        else:
            parts.append(f"{element}{count:.4f}".rstrip('0'))
    return ''.join(parts)
