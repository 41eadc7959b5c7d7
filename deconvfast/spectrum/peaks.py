"""Indexed peak records and m/z ranges."""

from dataclasses import dataclass

from ..constants import PEAK_IDENTITY_MZ_TOLERANCE
from ..exceptions import InvalidInputError


@dataclass(frozen=True, eq=False)
class IndexedPeak:
    """A centroided peak tagged with the scan it was observed in.

    Two peaks are the same peak when they come from the same scan and their
    m/z values differ by less than 1e-9. Intensity and retention time are
    not part of the identity.
    """

    mz: float
    intensity: float
    scan_index: int
    retention_time: float

    def __post_init__(self):
        if self.scan_index < 0:
            raise InvalidInputError(f"scan_index must be >= 0, got {self.scan_index}")

    @property
    def m(self) -> float:
        """Position on the mass axis (m/z for spectral peaks)."""
        return self.mz

    def __eq__(self, other):
        if not isinstance(other, IndexedPeak):
            return NotImplemented
        if self is other:
            return True
        return (other.scan_index == self.scan_index
                and abs(other.mz - self.mz) < PEAK_IDENTITY_MZ_TOLERANCE)

    def __hash__(self):
        # m/z equality is tolerance based, so only the scan index can be hashed
        return hash(self.scan_index)

    def __str__(self):
        return f"{self.mz:.3f}; {self.scan_index}"


@dataclass(frozen=True)
class MzRange:
    """Closed m/z interval [minimum, maximum]."""

    minimum: float
    maximum: float

    def __post_init__(self):
        if self.minimum > self.maximum:
            raise InvalidInputError(
                f"MzRange minimum {self.minimum} exceeds maximum {self.maximum}"
            )

    @property
    def width(self) -> float:
        return self.maximum - self.minimum

    def contains(self, mz: float) -> bool:
        return self.minimum <= mz <= self.maximum
