"""Deconvolution result records."""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from ..constants import PROTON_MASS


class Polarity(Enum):
    """Ion polarity; the value is the sign applied to reported charges."""
    POSITIVE = 1
    NEGATIVE = -1


@dataclass(frozen=True)
class IsotopicEnvelope:
    """One deconvolved isotope cluster.

    ``charge`` carries the polarity: positive for positive-mode ions,
    negative for negative-mode ions. ``peaks`` are (m/z, intensity) pairs
    in isotope order; isotopes without observed signal have intensity 0.
    """

    id: int
    peaks: Tuple[Tuple[float, float], ...]
    monoisotopic_mass: float
    charge: int
    total_intensity: float
    score: float

    @property
    def peak_count(self) -> int:
        return len(self.peaks)

    @property
    def polarity(self) -> Polarity:
        return Polarity.NEGATIVE if self.charge < 0 else Polarity.POSITIVE

    @property
    def most_abundant_mz(self) -> float:
        """m/z of the most intense peak (first one on ties), None if empty."""
        if not self.peaks:
            return None
        return max(self.peaks, key=lambda peak: peak[1])[0]

    @property
    def monoisotopic_mz(self) -> float:
        """m/z of the monoisotopic ion, with the polarity's charge carrier."""
        z = abs(self.charge)
        return (self.monoisotopic_mass + self.charge * PROTON_MASS) / z
