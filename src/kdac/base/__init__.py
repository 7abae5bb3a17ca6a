"""Base classes, interfaces and errors for the KDAC engine."""

from .interfaces import (
    SpectralDecomposer,
    PartitionStrategy,
    ConvergenceCriterion
)

from .data_structures import (
    KDACState,
    RoundState
)

from .errors import (
    KDACError,
    ConfigurationError,
    InputError,
    NumericalError,
    PreconditionError,
    ConvergenceWarning
)

__all__ = [
    # Interfaces
    'SpectralDecomposer',
    'PartitionStrategy',
    'ConvergenceCriterion',

    # Data structures
    'KDACState',
    'RoundState',

    # Errors
    'KDACError',
    'ConfigurationError',
    'InputError',
    'NumericalError',
    'PreconditionError',
    'ConvergenceWarning'
]
