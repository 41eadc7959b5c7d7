"""Averagine models and isotope distribution prediction.

This module provides:
- Elemental compositions of peptides from residue sequences
- Global and sequence-specific averagine models over a sequence population
- Exact isotope distribution prediction for averagine molecules of any mass
"""

from .composition import (
    add_composition,
    format_formula,
    formula_mass,
    peptide_composition,
    total_atom_count,
)

from .averagine import (
    Averagine,
    SequenceSpecificAveragine,
    contains_non_standard_residue,
    strip_non_standard_residues,
)

from .isotopes import (
    averagine_atom_counts,
    averagine_residue_mass,
    isotope_distribution_from_counts,
    predict_isotope_distribution,
)

__all__ = [
    # Compositions
    'add_composition',
    'format_formula',
    'formula_mass',
    'peptide_composition',
    'total_atom_count',

    # Averagine models
    'Averagine',
    'SequenceSpecificAveragine',
    'contains_non_standard_residue',
    'strip_non_standard_residues',

    # Isotope distributions
    'averagine_atom_counts',
    'averagine_residue_mass',
    'isotope_distribution_from_counts',
    'predict_isotope_distribution',
]
