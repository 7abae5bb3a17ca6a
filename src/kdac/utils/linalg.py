"""
Linear algebra utilities for the KDAC engine.

Degree normalisation, row normalisation, the centering matrix and the
Stiefel-manifold helpers used by the projection update.
"""

from typing import Tuple, Optional
import torch
from torch import Tensor
import warnings

from ..base.errors import NumericalError


def sym(matrix: Tensor) -> Tensor:
    """Symmetric part (A + A^T) / 2 of a square matrix."""
    return 0.5 * (matrix + matrix.transpose(-1, -2))


def centering_matrix(n: int, dtype: torch.dtype = torch.float64,
                     device: Optional[torch.device] = None) -> Tensor:
    """Centering matrix H = I - (1/n) 11^T.

    Args:
        n: Number of samples (n >= 1)
        dtype: Data type
        device: Target device

    Returns:
        (n, n) symmetric idempotent matrix
    """
    eye = torch.eye(n, dtype=dtype, device=device)
    return eye - torch.full((n, n), 1.0 / n, dtype=dtype, device=device)


def generate_degree_matrix(kernel_matrix: Tensor) -> Tuple[Tensor, Tensor]:
    """Degree matrix D and D^(-1/2) of a kernel (affinity) matrix.

    D_ii is the i-th row sum of K. A degree that is zero, negative or not
    finite has no inverse square root and is reported instead of being
    propagated as NaN/Inf.

    Args:
        kernel_matrix: (n, n) symmetric kernel matrix

    Returns:
        D: (n, n) diagonal degree matrix
        D_inv_sqrt: (n, n) diagonal matrix with entries 1 / sqrt(D_ii)

    Raises:
        NumericalError: If any degree is <= 0 or non-finite
    """
    degrees = kernel_matrix.sum(dim=1)

    bad = ~torch.isfinite(degrees) | (degrees <= 0)
    if bad.any():
        idx = torch.nonzero(bad).flatten()[:5].tolist()
        raise NumericalError(
            f"Degree matrix has {int(bad.sum())} non-positive or non-finite "
            f"entries (first rows: {idx}); cannot form D^(-1/2)"
        )

    d_matrix = torch.diag(degrees)
    d_inv_sqrt = torch.diag(torch.rsqrt(degrees))
    return d_matrix, d_inv_sqrt


def row_normalize(matrix: Tensor, p: float = 2, dim: int = 1) -> Tensor:
    """Scale each slice along ``dim`` to unit p-norm.

    Slices with zero norm are left as zeros instead of dividing by zero.

    Args:
        matrix: Input matrix
        p: Norm order
        dim: 1 normalises rows, 0 normalises columns

    Returns:
        Normalised copy of ``matrix``
    """
    norms = torch.linalg.vector_norm(matrix, ord=p, dim=dim, keepdim=True)
    safe = torch.where(norms > 0, norms, torch.ones_like(norms))
    return torch.where(norms > 0, matrix / safe, torch.zeros_like(matrix))


def retract_to_stiefel(matrix: Tensor) -> Tensor:
    """QR retraction onto matrices with orthonormal columns.

    The sign of each column is fixed so that diag(R) > 0, which makes the
    retraction a smooth, deterministic map.

    Args:
        matrix: (d, q) matrix with d >= q

    Returns:
        (d, q) matrix Q with Q^T Q = I
    """
    if matrix.shape[1] == 0:
        return matrix

    Q, R = torch.linalg.qr(matrix)
    signs = torch.sign(torch.diagonal(R))
    signs = torch.where(signs == 0, torch.ones_like(signs), signs)
    return Q * signs.unsqueeze(0)


def identity_columns(d: int, q: int, dtype: torch.dtype = torch.float64,
                     device: Optional[torch.device] = None) -> Tensor:
    """Left ``q`` columns of the d x d identity (the full identity when q == d)."""
    return torch.eye(d, dtype=dtype, device=device)[:, :q].clone()


def safe_eigh(matrix: Tensor, tol: float = 1e-8) -> Tuple[Tensor, Tensor]:
    """Eigendecomposition of a symmetric matrix with numerical safeguards.

    Args:
        matrix: Symmetric matrix
        tol: Tolerance for the symmetry check

    Returns:
        eigenvalues (ascending), eigenvectors
    """
    matrix_sym = sym(matrix)

    if torch.max(torch.abs(matrix - matrix_sym)) > tol:
        warnings.warn("Input matrix is not symmetric; symmetrizing.")

    try:
        return torch.linalg.eigh(matrix_sym)
    except RuntimeError as e:
        if matrix_sym.dtype == torch.float64:
            raise
        warnings.warn(f"Eigendecomposition failed: {e}. Retrying in double precision.")
        eigvals, eigvecs = torch.linalg.eigh(matrix_sym.double())
        return eigvals.to(matrix.dtype), eigvecs.to(matrix.dtype)


def fix_signs(vectors: Tensor) -> Tensor:
    """Flip columns so that the entry of largest magnitude is positive.

    Eigenvectors are only defined up to sign; fixing it makes repeated
    decompositions of the same matrix return identical vectors.
    """
    if vectors.numel() == 0:
        return vectors
    idx = torch.argmax(torch.abs(vectors), dim=0)
    signs = torch.sign(vectors[idx, torch.arange(vectors.shape[1], device=vectors.device)])
    signs = torch.where(signs == 0, torch.ones_like(signs), signs)
    return vectors * signs.unsqueeze(0)


def subspace_distance(A: Tensor, B: Tensor) -> float:
    """Distance between the column spaces of two orthonormal matrices.

    Equals ||A A^T - B B^T||_F / sqrt(2), which is invariant to column signs
    and rotations within the subspace.

    Args:
        A: (n, c) orthonormal columns
        B: (n, c) orthonormal columns

    Returns:
        Non-negative float, 0 when the subspaces coincide
    """
    overlap = torch.linalg.matrix_norm(A.transpose(0, 1) @ B, ord='fro') ** 2
    gap = float(A.shape[1]) - overlap.item()
    return max(gap, 0.0) ** 0.5
