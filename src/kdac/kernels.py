"""
Kernel functions for KDAC.

Each kernel is a small immutable value carrying exactly the parameter that
applies to it, so a kernel/parameter mismatch cannot be constructed:

- GaussianKernel(bandwidth):  exp(-||x - y||^2 / (2 bandwidth^2))
- PolynomialKernel(order):    (x . y + 1)^order
- LinearKernel(offset):       x . y + offset

Besides the kernel matrix, every kernel provides the weighted gradient

    sum_ij Gamma_ij dK_ij(XW) / dW

in closed form, which is what the projection update of KDAC needs.
"""

from typing import Union, Optional, ClassVar
from dataclasses import dataclass
from enum import Enum
import math
import numbers
import torch
from torch import Tensor

from .base.errors import ConfigurationError
from .utils.linalg import sym


class KernelType(Enum):
    """Enumerated kernel selector."""
    GAUSSIAN = 'gaussian'
    POLYNOMIAL = 'polynomial'
    LINEAR = 'linear'


def squared_distances(X: Tensor) -> Tensor:
    """Pairwise squared Euclidean distances between the rows of X.

    Uses ||x - y||^2 = ||x||^2 + ||y||^2 - 2<x, y>, clamped at zero.
    """
    sq_norms = (X ** 2).sum(dim=1, keepdim=True)
    distances = sq_norms + sq_norms.t() - 2 * (X @ X.t())
    distances = torch.clamp(distances, min=0.0)
    distances.fill_diagonal_(0.0)
    return distances


@dataclass(frozen=True)
class GaussianKernel:
    """Gaussian (RBF) kernel with bandwidth sigma."""
    bandwidth: float = 1.0

    kind: ClassVar[KernelType] = KernelType.GAUSSIAN

    def __post_init__(self):
        if isinstance(self.bandwidth, bool) or not isinstance(self.bandwidth, numbers.Real):
            raise ConfigurationError(f"Gaussian bandwidth must be a number, got {self.bandwidth!r}")
        if not math.isfinite(self.bandwidth) or self.bandwidth <= 0:
            raise ConfigurationError(f"Gaussian bandwidth must be positive, got {self.bandwidth}")
        object.__setattr__(self, 'bandwidth', float(self.bandwidth))

    @property
    def param(self) -> float:
        return self.bandwidth

    def matrix(self, X: Tensor) -> Tensor:
        """(n, n) kernel matrix over the rows of X."""
        K = torch.exp(-squared_distances(X) / (2.0 * self.bandwidth ** 2))
        return sym(K)

    def weighted_gradient(self, X: Tensor, W: Tensor, weights: Tensor,
                          k_matrix: Optional[Tensor] = None) -> Tensor:
        """sum_ij weights_ij dK_ij/dW for K = K(XW).

        dK_ij/dW = -(K_ij / sigma^2) (x_i - x_j)(x_i - x_j)^T W, and for a
        symmetric Phi, sum_ij Phi_ij (x_i - x_j)(x_i - x_j)^T equals
        2 X^T (diag(Phi 1) - Phi) X.

        Args:
            X: (n, d) data
            W: (d, q) projection
            weights: (n, n) symmetric weight matrix Gamma
            k_matrix: K(XW) if already available

        Returns:
            (d, q) gradient
        """
        if k_matrix is None:
            k_matrix = self.matrix(X @ W)
        phi = sym(weights) * k_matrix
        laplacian = torch.diag(phi.sum(dim=1)) - phi
        return -(2.0 / self.bandwidth ** 2) * (X.t() @ (laplacian @ (X @ W)))


@dataclass(frozen=True)
class PolynomialKernel:
    """Polynomial kernel (x . y + 1)^order."""
    order: int = 2

    kind: ClassVar[KernelType] = KernelType.POLYNOMIAL

    def __post_init__(self):
        order = self.order
        if isinstance(order, bool) or not isinstance(order, numbers.Real):
            raise ConfigurationError(f"Polynomial order must be a number, got {order!r}")
        if not math.isfinite(order) or order != int(order) or order < 1:
            raise ConfigurationError(f"Polynomial order must be a positive integer, got {order}")
        object.__setattr__(self, 'order', int(order))

    @property
    def param(self) -> int:
        return self.order

    def matrix(self, X: Tensor) -> Tensor:
        """(n, n) kernel matrix over the rows of X."""
        return sym((X @ X.t() + 1.0) ** self.order)

    def weighted_gradient(self, X: Tensor, W: Tensor, weights: Tensor,
                          k_matrix: Optional[Tensor] = None) -> Tensor:
        """sum_ij weights_ij dK_ij/dW for K = K(XW).

        dK_ij/dW = p (x_i^T W W^T x_j + 1)^(p-1) (x_i x_j^T + x_j x_i^T) W.
        """
        XW = X @ W
        psi = sym(weights) * self.order * (XW @ XW.t() + 1.0) ** (self.order - 1)
        return 2.0 * (X.t() @ (psi @ XW))


@dataclass(frozen=True)
class LinearKernel:
    """Linear kernel x . y + offset."""
    offset: float = 0.0

    kind: ClassVar[KernelType] = KernelType.LINEAR

    def __post_init__(self):
        if isinstance(self.offset, bool) or not isinstance(self.offset, numbers.Real):
            raise ConfigurationError(f"Linear offset must be a number, got {self.offset!r}")
        if not math.isfinite(self.offset):
            raise ConfigurationError(f"Linear offset must be finite, got {self.offset}")
        object.__setattr__(self, 'offset', float(self.offset))

    @property
    def param(self) -> float:
        return self.offset

    def matrix(self, X: Tensor) -> Tensor:
        """(n, n) kernel matrix over the rows of X."""
        return sym(X @ X.t() + self.offset)

    def weighted_gradient(self, X: Tensor, W: Tensor, weights: Tensor,
                          k_matrix: Optional[Tensor] = None) -> Tensor:
        """sum_ij weights_ij dK_ij/dW = 2 X^T Gamma X W for K = K(XW)."""
        return 2.0 * (X.t() @ (sym(weights) @ (X @ W)))


Kernel = Union[GaussianKernel, PolynomialKernel, LinearKernel]

_KERNEL_CLASSES = {
    KernelType.GAUSSIAN: GaussianKernel,
    KernelType.POLYNOMIAL: PolynomialKernel,
    KernelType.LINEAR: LinearKernel,
}


def make_kernel(kernel_type: Union[Kernel, KernelType, str] = KernelType.GAUSSIAN,
                param: Optional[float] = None) -> Kernel:
    """Build a kernel from a selector and its scalar parameter.

    Args:
        kernel_type: A kernel instance (returned as-is), a KernelType member,
            or its string value ('gaussian', 'polynomial', 'linear')
        param: Bandwidth for Gaussian, order for Polynomial, offset for
            Linear. None uses the kernel's default.

    Returns:
        Kernel instance

    Raises:
        ConfigurationError: Unknown kernel type or invalid parameter
    """
    if isinstance(kernel_type, (GaussianKernel, PolynomialKernel, LinearKernel)):
        if param is not None and param != kernel_type.param:
            raise ConfigurationError(
                f"Got kernel instance {kernel_type!r} together with param={param}")
        return kernel_type

    if isinstance(kernel_type, str):
        try:
            kernel_type = KernelType(kernel_type.lower())
        except ValueError:
            valid = [k.value for k in KernelType]
            raise ConfigurationError(
                f"Unknown kernel type '{kernel_type}', expected one of {valid}") from None

    if not isinstance(kernel_type, KernelType):
        raise ConfigurationError(
            f"kernel_type must be KernelType, str or a kernel, got {type(kernel_type)}")

    cls = _KERNEL_CLASSES[kernel_type]
    return cls() if param is None else cls(param)


def generate_kernel_matrix(X: Tensor, kernel: Kernel) -> Tensor:
    """Symmetric (n, n) kernel matrix over the rows of X."""
    return kernel.matrix(X)
