"""
Core interfaces for the KDAC engine and its collaborators.

The engine depends only on the input/output contracts defined here, never on
backend-specific state, so CPU and GPU implementations are interchangeable.
"""

from abc import ABC, abstractmethod
from typing import Tuple, Dict, Any
import torch
from torch import Tensor


class SpectralDecomposer(ABC):
    """Produces the dominant eigenvectors of a symmetric matrix."""

    @abstractmethod
    def decompose(self, matrix: Tensor, n_components: int) -> Tuple[Tensor, Tensor]:
        """Compute the leading eigenpairs of a symmetric matrix.

        Args:
            matrix: (n, n) symmetric matrix
            n_components: Number of leading components to return

        Returns:
            vectors: (n, n_components) orthonormal eigenvectors, columns ordered
                by decreasing eigenvalue, on the same device as ``matrix``
            values: (n_components,) eigenvalues in decreasing order
        """
        pass

    @property
    @abstractmethod
    def device(self) -> torch.device:
        """Device on which the decomposition runs."""
        pass


class PartitionStrategy(ABC):
    """Partition-based clustering of embedding rows (k-means or equivalent)."""

    @abstractmethod
    def partition(self, rows: Tensor, n_clusters: int) -> Tensor:
        """Assign each row to one of ``n_clusters`` groups.

        Args:
            rows: (n, c) tensor of points
            n_clusters: Number of groups

        Returns:
            (n,) int64 tensor of labels in [0, n_clusters)
        """
        pass


class ConvergenceCriterion(ABC):
    """Abstract base class for convergence checking."""

    def __init__(self):
        self.history = []

    @abstractmethod
    def check(self, current_state: Dict[str, Any]) -> bool:
        """Check if the monitored quantity has converged.

        Args:
            current_state: Dictionary containing current algorithm state

        Returns:
            True if converged, False otherwise
        """
        pass

    def reset(self):
        """Reset convergence history."""
        self.history = []
