"""Binary layout shared with the native IsoDec clustering routine.

The routine writes one fixed-size record per detected cluster into a
caller-owned buffer. The record is described field by field below (offset,
width, little-endian, no padding), and the settings are passed by value
as a C struct. Any change to either layout must bump
RECORD_LAYOUT_VERSION; the version is sent to the routine in the settings
so it can refuse a mismatched caller.

Record layout (340 bytes)
-------------------------
offset  width  type        field
0       4      int32       charge
4       4      int32       real_isotope_length
8       256    float32[64] isotope_mz
264     64     float32[16] monoisotopic_candidates
328     4      float32     monoisotopic_mass
332     4      float32     peak_intensity
336     4      float32     score
"""

import ctypes
from contextlib import contextmanager

import numpy as np

RECORD_LAYOUT_VERSION = 1

MAX_ISOTOPE_PEAKS = 64
MAX_MONOISOTOPIC_CANDIDATES = 16

MATCHED_PEAK_DTYPE = np.dtype({
    'names': [
        'charge',
        'real_isotope_length',
        'isotope_mz',
        'monoisotopic_candidates',
        'monoisotopic_mass',
        'peak_intensity',
        'score',
    ],
    'formats': [
        '<i4',
        '<i4',
        ('<f4', (MAX_ISOTOPE_PEAKS,)),
        ('<f4', (MAX_MONOISOTOPIC_CANDIDATES,)),
        '<f4',
        '<f4',
        '<f4',
    ],
    'offsets': [0, 4, 8, 264, 328, 332, 336],
    'itemsize': 340,
})


class IsoSettings(ctypes.Structure):
    """Settings struct passed by value to the native routine."""

    _fields_ = [
        ('layout_version', ctypes.c_int),
        ('phaseres', ctypes.c_int),
        ('verbose', ctypes.c_int),
        ('peakwindow', ctypes.c_int),
        ('peakthresh', ctypes.c_float),
        ('minpeaks', ctypes.c_int),
        ('css_thresh', ctypes.c_float),
        ('matchtol', ctypes.c_float),
        ('maxshift', ctypes.c_int),
        ('mzwindow', ctypes.c_float * 2),
        ('plusoneintwindow', ctypes.c_float * 2),
        ('knockdown_rounds', ctypes.c_int),
        ('min_score_diff', ctypes.c_float),
        ('minareacovered', ctypes.c_float),
        ('isolength', ctypes.c_int),
        ('mass_diff_c', ctypes.c_double),
        ('adductmass', ctypes.c_float),
        ('minusoneaszero', ctypes.c_int),
        ('isotopethreshold', ctypes.c_float),
        ('datathreshold', ctypes.c_float),
        ('zscore_threshold', ctypes.c_float),
        ('min_charge', ctypes.c_int),
        ('max_charge', ctypes.c_int),
    ]


@contextmanager
def matched_peak_buffer(n_records: int):
    """Zeroed output buffer for the native routine, scoped to one call.

    The buffer holds one record per input peak, the most clusters the
    routine can report. It is released when the block exits, including
    on exceptions; callers must copy out what they keep.

    Examples
    --------
    >>> with matched_peak_buffer(len(mz)) as buffer:
    ...     count = routine(mz, intensity, settings, buffer)
    ...     records = buffer[:count].copy()
    """
    buffer = np.zeros(max(n_records, 0), dtype=MATCHED_PEAK_DTYPE)
    try:
        yield buffer
    finally:
        del buffer
