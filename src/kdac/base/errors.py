"""
Error taxonomy for the KDAC engine.

Fatal conditions are exceptions; non-fatal ones are warnings. Each exception
also derives from the matching builtin (ValueError, ArithmeticError,
RuntimeError) so callers can catch either.
"""


class KDACError(Exception):
    """Base class for all KDAC errors."""


class ConfigurationError(KDACError, ValueError):
    """Invalid configuration: q > c, non-positive sizes, bad kernel parameters."""


class InputError(KDACError, ValueError):
    """Empty, malformed or dimensionally inconsistent input data."""


class NumericalError(KDACError, ArithmeticError):
    """A numerical failure that cannot be handled locally (e.g. degree <= 0)."""


class PreconditionError(KDACError, RuntimeError):
    """An operation was called before the engine reached the required state."""


class ConvergenceWarning(UserWarning):
    """The iteration budget was exhausted before the tolerance was met."""
