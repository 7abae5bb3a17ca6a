"""
Spectral decomposition backends.

Two interchangeable implementations of ``SpectralDecomposer``: one on the host
and one on a CUDA device. The CUDA backend never returns a result it could not
compute correctly; on any device-side failure it falls back to the host.
"""

from typing import Optional, Tuple, Union
import torch
from torch import Tensor
import warnings

from ..base.interfaces import SpectralDecomposer
from ..base.errors import ConfigurationError
from .linalg import safe_eigh, fix_signs
from .device import cuda_available, clear_cache


def _leading_eigenpairs(matrix: Tensor, n_components: int) -> Tuple[Tensor, Tensor]:
    """Top ``n_components`` eigenpairs of a symmetric matrix, largest first."""
    n = matrix.shape[0]
    if not 1 <= n_components <= n:
        raise ValueError(f"n_components must be in [1, {n}], got {n_components}")

    eigvals, eigvecs = safe_eigh(matrix)
    # eigh returns ascending order
    idx = torch.argsort(eigvals, descending=True)[:n_components]
    values = eigvals[idx]
    vectors = fix_signs(eigvecs[:, idx])
    return vectors, values


class CPUEigenSolver(SpectralDecomposer):
    """Eigendecomposition on the host with ``torch.linalg.eigh``."""

    @property
    def device(self) -> torch.device:
        return torch.device('cpu')

    def decompose(self, matrix: Tensor, n_components: int) -> Tuple[Tensor, Tensor]:
        source = matrix.device
        vectors, values = _leading_eigenpairs(matrix.to('cpu'), n_components)
        return vectors.to(source), values.to(source)

    def __repr__(self) -> str:
        return "CPUEigenSolver()"


class CUDAEigenSolver(SpectralDecomposer):
    """Eigendecomposition on a CUDA device with host fallback.

    Any device failure (out of memory, launch failure) or a non-finite result
    emits a ``RuntimeWarning`` and the same call is served by the host solver.
    """

    def __init__(self, device: Optional[Union[str, torch.device]] = None,
                 fallback: Optional[SpectralDecomposer] = None):
        """
        Args:
            device: CUDA device (default 'cuda')
            fallback: Solver used when the device fails (default CPUEigenSolver)
        """
        self._device = torch.device(device) if device is not None else torch.device('cuda')
        if self._device.type != 'cuda':
            raise ConfigurationError(f"CUDAEigenSolver needs a cuda device, got {self._device}")
        self.fallback = fallback if fallback is not None else CPUEigenSolver()
        self.n_fallbacks = 0

    @property
    def device(self) -> torch.device:
        return self._device

    def _decompose_on_device(self, matrix: Tensor, n_components: int) -> Tuple[Tensor, Tensor]:
        vectors, values = _leading_eigenpairs(matrix.to(self._device), n_components)
        if not (torch.isfinite(vectors).all() and torch.isfinite(values).all()):
            raise RuntimeError("decomposition returned non-finite values")
        return vectors, values

    def decompose(self, matrix: Tensor, n_components: int) -> Tuple[Tensor, Tensor]:
        source = matrix.device
        try:
            vectors, values = self._decompose_on_device(matrix, n_components)
            return vectors.to(source), values.to(source)
        except RuntimeError as e:
            # torch.cuda.OutOfMemoryError and LinAlgError are RuntimeErrors
            self.n_fallbacks += 1
            clear_cache(self._device)
            warnings.warn(f"GPU decomposition failed on {self._device}: {e}. "
                          f"Falling back to {self.fallback!r}.", RuntimeWarning)
            return self.fallback.decompose(matrix, n_components)

    def __repr__(self) -> str:
        return f"CUDAEigenSolver(device='{self._device}')"


def make_decomposer(backend: Union[str, SpectralDecomposer] = 'cpu') -> SpectralDecomposer:
    """Select a spectral decomposition backend.

    Args:
        backend:
            - 'cpu': host eigensolver
            - 'gpu' / 'cuda' / 'cuda:X': CUDA eigensolver (CPU with a warning
              if CUDA is unavailable)
            - 'auto': CUDA when available, else CPU
            - a SpectralDecomposer instance: used as-is

    Returns:
        SpectralDecomposer
    """
    if isinstance(backend, SpectralDecomposer):
        return backend

    if not isinstance(backend, str):
        raise ConfigurationError(
            f"backend must be str or SpectralDecomposer, got {type(backend)}")

    if backend == 'cpu':
        return CPUEigenSolver()
    elif backend == 'auto':
        return CUDAEigenSolver() if cuda_available() else CPUEigenSolver()
    elif backend == 'gpu' or backend.startswith('cuda'):
        if not cuda_available():
            warnings.warn("CUDA not available, falling back to CPU")
            return CPUEigenSolver()
        device = 'cuda' if backend == 'gpu' else backend
        return CUDAEigenSolver(device)
    else:
        raise ConfigurationError(f"Unknown decomposition backend: {backend}")
