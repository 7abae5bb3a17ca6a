"""
Core data structures for the KDAC engine.

``KDACState`` groups every matrix the alternating optimisation owns. A fresh
state is built for each fit and only becomes visible on the engine once the
fit succeeds, so a failed fit never leaves half-updated matrices behind.
"""

from typing import Optional, Dict, Any
import torch
from torch import Tensor
from dataclasses import dataclass, field


@dataclass
class KDACState:
    """Matrices carried across the rounds of one KDAC fit.

    Names follow the paper: lower-case scalars, and ``<name>_matrix`` for the
    upper-case matrices (matrix U in the paper is ``u_matrix``).
    """

    x_matrix: Tensor            # (n, d) input data X
    w_matrix: Tensor            # (d, q) projection W, orthonormal columns
    h_matrix: Tensor            # (n, n) centering matrix H = I - 11^T / n
    y_matrix: Tensor            # (n, c0 + c1 + ...) one-hot prior clusterings

    # Recomputed by every EMBED phase
    k_matrix: Optional[Tensor] = None           # (n, n) kernel K(XW)
    d_matrix: Optional[Tensor] = None           # (n, n) degree D
    d_inv_sqrt: Optional[Tensor] = None         # (n, n) D^(-1/2)
    l_matrix: Optional[Tensor] = None           # (n, n) D^(-1/2) K D^(-1/2)
    u_matrix: Optional[Tensor] = None           # (n, c) leading eigenvectors of L
    u_normalized: Optional[Tensor] = None       # (n, c) row-normalised U
    eigenvalues: Optional[Tensor] = None        # (c,) eigenvalues matching U

    u_converged: bool = False
    w_converged: bool = False
    n_embed: int = 0            # completed EMBED phases
    n_prior: int = 0            # number of prior clusterings stacked in Y

    @property
    def n_samples(self) -> int:
        return self.x_matrix.shape[0]

    @property
    def n_features(self) -> int:
        return self.x_matrix.shape[1]

    @property
    def device(self) -> torch.device:
        return self.x_matrix.device

    def invalidate_embedding(self) -> None:
        """Drop U and everything derived from W; called whenever W changes."""
        self.k_matrix = None
        self.d_matrix = None
        self.d_inv_sqrt = None
        self.l_matrix = None
        self.u_matrix = None
        self.u_normalized = None
        self.eigenvalues = None


@dataclass
class RoundState:
    """Summary of one round (EMBED + PROJECT) of the alternating loop."""
    iteration: int
    objective_value: float
    u_change: Optional[float] = None    # subspace change of U vs previous round
    w_change: Optional[float] = None    # Frobenius change of W in PROJECT
    w_iterations: int = 0               # gradient steps taken in PROJECT
    u_converged: bool = False
    w_converged: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)
