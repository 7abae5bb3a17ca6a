"""
KDAC: Kernel Dimension Alternative Clustering.

Finds a clustering of the data and then, on request, alternative clusterings
that are dissimilar from every clustering found before. Each view is a
spectral clustering of the data projected onto a learned subspace W; the
dissimilarity to earlier views is measured with HSIC.

Example usage:
    >>> import torch
    >>> from kdac import KDAC
    >>>
    >>> X = torch.randn(200, 4, dtype=torch.float64)
    >>>
    >>> # First clustering view
    >>> model = KDAC(n_clusters=2, q=1, kernel='gaussian', kernel_param=1.0)
    >>> first = model.fit(X).predict()
    >>>
    >>> # Alternative view, dissimilar from the first
    >>> second = model.fit().predict()
"""

__version__ = '0.1.0'

# Import main algorithms
from .algorithms.kdac import KDAC
from .algorithms.kmeans import KMeans

from .kernels import (
    KernelType,
    GaussianKernel,
    PolynomialKernel,
    LinearKernel,
    make_kernel,
    generate_kernel_matrix
)

# Import visualization
from .visualization import (
    plot_clusters_2d,
    plot_alternative_views
)

# Convenience imports
from .base import (
    KDACState,
    RoundState,
    KDACError,
    ConfigurationError,
    InputError,
    NumericalError,
    PreconditionError,
    ConvergenceWarning
)

__all__ = [
    # Algorithms
    'KDAC',
    'KMeans',

    # Kernels
    'KernelType',
    'GaussianKernel',
    'PolynomialKernel',
    'LinearKernel',
    'make_kernel',
    'generate_kernel_matrix',

    # Visualization
    'plot_clusters_2d',
    'plot_alternative_views',

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
