"""Exception types raised by DeconvFast.

Every exception derives from ``DeconvFastError`` and from the builtin that
best describes it, so callers can catch either.
"""


class DeconvFastError(Exception):
    """Base class for all DeconvFast errors."""


class InvalidInputError(DeconvFastError, ValueError):
    """Input arrays, sequences or parameters cannot be processed."""


class EmptySpectrumError(InvalidInputError):
    """Spectrum has no peaks or no intensity."""


class ConfigurationMismatchError(DeconvFastError, TypeError):
    """Parameter object does not belong to the selected algorithm."""


class ExternalRoutineFailure(DeconvFastError, RuntimeError):
    """Native clustering library could not be located or loaded."""
