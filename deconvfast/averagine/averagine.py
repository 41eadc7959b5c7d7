"""Averagine models built from a population of protein or peptide sequences.

Two models are provided:

- ``Averagine``: the summed elemental formula of every usable sequence
  (not normalised by length).
- ``SequenceSpecificAveragine``: the average composition of one residue in
  the sequence population, i.e. the summed formula divided by the total
  residue count.

The two models treat the non-standard residue codes (X, B, U) differently:
``Averagine`` skips any sequence that contains one, while
``SequenceSpecificAveragine`` removes the codes and keeps the rest of the
sequence. Both behaviours are kept as-is; see DESIGN.md.

Examples
--------
>>> model = SequenceSpecificAveragine(["PEPTIDE", "ACDEK"])
>>> model.one_residue_averagine['C']
4.583333333333333
"""

import logging
from types import MappingProxyType
from typing import Iterable

from ..constants import NON_STANDARD_RESIDUES
from ..exceptions import InvalidInputError
from .composition import add_composition, peptide_composition

logger = logging.getLogger(__name__)


def contains_non_standard_residue(sequence: str) -> bool:
    return any(residue in NON_STANDARD_RESIDUES for residue in sequence)


def strip_non_standard_residues(sequence: str) -> str:
    return ''.join(residue for residue in sequence if residue not in NON_STANDARD_RESIDUES)


class Averagine:
    """Summed elemental formula of a sequence population.

    Parameters
    ----------
    sequences : iterable of str
        Residue-letter sequences. Sequences containing X, B or U are
        skipped entirely, as are empty sequences.

    Attributes
    ----------
    global_chemical_formula : Mapping[str, int]
        Element -> total atom count over all used sequences (read-only)
    n_sequences_used, n_sequences_skipped : int
    """

    def __init__(self, sequences: Iterable[str]):
        formula = {}
        n_used = 0
        n_skipped = 0

        for sequence in sequences:
            if not sequence or contains_non_standard_residue(sequence):
                n_skipped += 1
                continue
            add_composition(formula, peptide_composition(sequence))
            n_used += 1

        self.global_chemical_formula = MappingProxyType(formula)
        self.n_sequences_used = n_used
        self.n_sequences_skipped = n_skipped

        logger.debug(
            f"Averagine from {n_used:,} sequences ({n_skipped:,} skipped)"
        )


class SequenceSpecificAveragine:
    """Average elemental composition of one residue in a sequence population.

    Non-standard residue codes (X, B, U) are removed from each sequence
    before counting; the remaining residues and the sequence's termini
    contribute to the summed formula. The average is the summed element
    count divided by the total number of residues kept.

    Raises
    ------
    InvalidInputError
        If no residue is left after removing the non-standard codes, since
        the average would be a division by zero.

    Attributes
    ----------
    global_chemical_formula : Mapping[str, int]
        Element -> summed atom count (read-only)
    total_sequence_length : int
        Number of residues kept over all sequences
    one_residue_averagine : Mapping[str, float]
        Element -> average atom count per residue (read-only)
    """

    def __init__(self, sequences: Iterable[str]):
        formula = {}
        total_length = 0

        for sequence in sequences:
            cleaned = strip_non_standard_residues(sequence)
            if not cleaned:
                continue
            total_length += len(cleaned)
            add_composition(formula, peptide_composition(cleaned))

        if total_length == 0:
            raise InvalidInputError(
                "No valid residues in the input sequences; cannot compute averagine"
            )

        self.global_chemical_formula = MappingProxyType(formula)
        self.total_sequence_length = total_length
        self.one_residue_averagine = MappingProxyType({
            element: count / total_length for element, count in formula.items()
        })

        logger.info(f"✓ Sequence-specific averagine from {total_length:,} residues")
