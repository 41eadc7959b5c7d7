"""Physical constants, element isotopes and residue compositions.

This module provides the physical constants, elemental isotope tables and
amino acid residue compositions used throughout DeconvFast. All values are
sourced from NIST or established proteomics standards.

Element isotope abundances are also provided as a dense array indexed by
nominal mass shift, for use from Numba JIT-compiled code.

Key Features
------------
- Correct PROTON_MASS (1.007276466622 Da, not hydrogen atom mass!)
- Elemental compositions for the 20 standard residues (plus pyrrolysine)
- Non-standard residue codes excluded from averagine models (X, B, U)
- Senko averagine residue composition
- Default tolerance settings for deconvolution and spectral similarity

Sources
-------
- NIST physical constants: https://physics.nist.gov/cgi-bin/cuu/Value
- NIST isotopic compositions: https://physics.nist.gov/Comp
- Senko et al., JASMS 1995, 6, 229-233 (averagine)
"""

import numpy as np

# =============================================================================
# Fundamental Physical Constants (NIST values)
# =============================================================================

# Proton mass (NOT hydrogen atom mass!)
# Source: NIST 2018 CODATA
PROTON_MASS = 1.007276466622  # Da

# Electron mass
# Source: NIST 2018 CODATA
ELECTRON_MASS = 0.000548579909  # Da

# Water mass (H2O)
# Calculated: 2*1.007825 + 15.994915 = 18.010564684
H2O_MASS = 18.010564684  # Da

# Mass difference between C12 and C13
# Used for isotope envelope spacing (m/z spacing = value / charge)
ISOTOPE_MASS_DIFFERENCE = 1.003355  # Da

# =============================================================================
# Element Isotopes
# =============================================================================

# (mass, natural abundance) per stable isotope, lightest first
ELEMENT_ISOTOPES = {
    'C': [(12.0, 0.9893), (13.0033548378, 0.0107)],
    'H': [(1.00782503207, 0.999885), (2.0141017778, 0.000115)],
    'N': [(14.0030740048, 0.99636), (15.0001088982, 0.00364)],
    'O': [(15.99491461956, 0.99757), (16.99913170, 0.00038), (17.9991610, 0.00205)],
    'S': [(31.97207100, 0.9499), (32.97145876, 0.0075), (33.96786690, 0.0425),
          (35.96708076, 0.0001)],
}

ELEMENT_MONOISOTOPIC_MASSES = {
    element: isotopes[0][0] for element, isotopes in ELEMENT_ISOTOPES.items()
}

# Element order for array-based (Numba) isotope calculations
ISOTOPE_ELEMENTS = ('C', 'H', 'N', 'O', 'S')

# Abundance by nominal mass shift: ELEMENT_SHIFT_ABUNDANCES[e, k] is the
# abundance of the isotope of ISOTOPE_ELEMENTS[e] that is k Da heavier than
# the lightest one
ELEMENT_SHIFT_ABUNDANCES = np.zeros((len(ISOTOPE_ELEMENTS), 5), dtype=np.float64)
for _e, _element in enumerate(ISOTOPE_ELEMENTS):
    _lightest = ELEMENT_ISOTOPES[_element][0][0]
    for _mass, _abundance in ELEMENT_ISOTOPES[_element]:
        ELEMENT_SHIFT_ABUNDANCES[_e, int(round(_mass - _lightest))] = _abundance

# =============================================================================
# Residue Elemental Compositions
# =============================================================================

# Residue compositions (peptide bond form, no termini)
RESIDUE_COMPOSITIONS = {
    'A': {'C': 3, 'H': 5, 'N': 1, 'O': 1},    # Alanine
    'R': {'C': 6, 'H': 12, 'N': 4, 'O': 1},   # Arginine
    'N': {'C': 4, 'H': 6, 'N': 2, 'O': 2},    # Asparagine
    'D': {'C': 4, 'H': 5, 'N': 1, 'O': 3},    # Aspartic acid
    'C': {'C': 3, 'H': 5, 'N': 1, 'O': 1, 'S': 1},  # Cysteine (unmodified)
    'E': {'C': 5, 'H': 7, 'N': 1, 'O': 3},    # Glutamic acid
    'Q': {'C': 5, 'H': 8, 'N': 2, 'O': 2},    # Glutamine
    'G': {'C': 2, 'H': 3, 'N': 1, 'O': 1},    # Glycine
    'H': {'C': 6, 'H': 7, 'N': 3, 'O': 1},    # Histidine
    'I': {'C': 6, 'H': 11, 'N': 1, 'O': 1},   # Isoleucine
    'L': {'C': 6, 'H': 11, 'N': 1, 'O': 1},   # Leucine
    'K': {'C': 6, 'H': 12, 'N': 2, 'O': 1},   # Lysine
    'M': {'C': 5, 'H': 9, 'N': 1, 'O': 1, 'S': 1},  # Methionine
    'F': {'C': 9, 'H': 9, 'N': 1, 'O': 1},    # Phenylalanine
    'P': {'C': 5, 'H': 7, 'N': 1, 'O': 1},    # Proline
    'S': {'C': 3, 'H': 5, 'N': 1, 'O': 2},    # Serine
    'T': {'C': 4, 'H': 7, 'N': 1, 'O': 2},    # Threonine
    'W': {'C': 11, 'H': 10, 'N': 2, 'O': 1},  # Tryptophan
    'Y': {'C': 9, 'H': 9, 'N': 1, 'O': 2},    # Tyrosine
    'V': {'C': 5, 'H': 9, 'N': 1, 'O': 1},    # Valine
    'O': {'C': 12, 'H': 19, 'N': 3, 'O': 2},  # Pyrrolysine
}

# Added once per peptide (N-terminal H + C-terminal OH)
WATER_COMPOSITION = {'H': 2, 'O': 1}

# Residue codes that do not map to a single composition
# X = any, B = Asp/Asn, U = selenocysteine (no Se isotopes tabulated)
NON_STANDARD_RESIDUES = frozenset('XBU')

# Senko averagine: average composition of one residue
STANDARD_AVERAGINE = {
    'C': 4.9384,
    'H': 7.7583,
    'N': 1.3577,
    'O': 1.4773,
    'S': 0.0417,
}

# =============================================================================
# Default Tolerance Settings
# =============================================================================

# Default deconvolution tolerance in PPM
DEFAULT_DECONVOLUTION_TOLERANCE = 10.0  # ppm

# Tolerance for matching reported isotope positions back to the spectrum
ENVELOPE_MATCH_TOLERANCE_PPM = 5.0  # ppm

# Default spectral similarity tolerance in PPM
DEFAULT_SIMILARITY_TOLERANCE = 10.0  # ppm

# Peaks below this m/z are ignored for spectral similarity
DEFAULT_MZ_FLOOR = 300.0

# Two peaks in the same scan closer than this are the same peak
PEAK_IDENTITY_MZ_TOLERANCE = 1e-9


def validate_constants():
    """Validate that constants are physically reasonable.

    Raises AssertionError if any constant is out of expected range.
    This is a sanity check to catch copy-paste errors or typos.
    """
    assert 1.0072 < PROTON_MASS < 1.0073, f"PROTON_MASS is wrong: {PROTON_MASS}"
    assert 18.00 < H2O_MASS < 18.02, f"H2O_MASS is wrong: {H2O_MASS}"

    H_ATOM_MASS = PROTON_MASS + ELECTRON_MASS
    assert abs(H_ATOM_MASS - ELEMENT_MONOISOTOPIC_MASSES['H']) < 0.000001, \
        f"H atom mass inconsistent: {H_ATOM_MASS}"

    for element, isotopes in ELEMENT_ISOTOPES.items():
        total = sum(abundance for _, abundance in isotopes)
        assert abs(total - 1.0) < 1e-3, f"Abundances of {element} sum to {total}"

    for residue, composition in RESIDUE_COMPOSITIONS.items():
        assert set(composition) <= set(ISOTOPE_ELEMENTS), \
            f"Residue {residue} uses an element without isotope data"
