"""
K-means partition of embedding rows.

Lloyd iterations from k-means++ seeds, restarted ``n_init`` times, keeping
the run with the lowest inertia. Used by KDAC to turn the normalised spectral
embedding into cluster labels.
"""

from typing import Optional, Union
import torch
from torch import Tensor
import warnings

from ..base.interfaces import PartitionStrategy
from ..base.errors import InputError
from ..initialization.kmeans_plusplus import kmeans_plusplus
from ..utils.convergence import ChangeInAssignments
from ..utils.validation import check_positive_int, check_random_state


class KMeans(PartitionStrategy):
    """K-means clustering.

    Parameters
    ----------
    n_clusters : int, optional
        Number of clusters; may also be passed to ``partition``
    n_init : int, default=10
        Number of k-means++ restarts
    max_iter : int, default=100
        Maximum Lloyd iterations per restart
    tol : float, default=1e-4
        Fraction of points changing cluster below which a run has converged
    random_state : int or torch.Generator, optional
        Seed for reproducibility

    Attributes
    ----------
    cluster_centers_ : Tensor of shape (n_clusters, n_features)
    labels_ : Tensor of shape (n_samples,)
    inertia_ : float
        Sum of squared distances to the nearest center
    n_iter_ : int
        Lloyd iterations of the best run
    """

    def __init__(self,
                 n_clusters: Optional[int] = None,
                 n_init: int = 10,
                 max_iter: int = 100,
                 tol: float = 1e-4,
                 random_state: Optional[Union[int, torch.Generator]] = None):
        self.n_clusters = n_clusters
        self.n_init = check_positive_int(n_init, 'n_init')
        self.max_iter = check_positive_int(max_iter, 'max_iter')
        self.tol = tol
        self.random_state = random_state

        self.cluster_centers_ = None
        self.labels_ = None
        self.inertia_ = None
        self.n_iter_ = 0

    def _single_run(self, X: Tensor, n_clusters: int,
                    generator: Optional[torch.Generator]):
        centers = kmeans_plusplus(X, n_clusters, generator=generator)
        criterion = ChangeInAssignments(min_change_fraction=self.tol)
        converged = False

        for iteration in range(self.max_iter):
            # Assignment step
            distances = torch.cdist(X, centers) ** 2
            labels = torch.argmin(distances, dim=1)

            if criterion.check({'iteration': iteration, 'assignments': labels}):
                converged = True
                break

            # Update step
            for k in range(n_clusters):
                mask = labels == k
                if mask.any():
                    centers[k] = X[mask].mean(dim=0)
                else:
                    # Empty cluster: reseed at the point farthest from its center
                    farthest = torch.argmax(distances.min(dim=1).values)
                    centers[k] = X[farthest]
                    distances[farthest] = 0.0

        distances = torch.cdist(X, centers) ** 2
        labels = torch.argmin(distances, dim=1)
        inertia = distances.gather(1, labels.unsqueeze(1)).sum().item()
        return labels, centers, inertia, iteration + 1, converged

    def fit(self, X: Tensor, y: Optional[Tensor] = None) -> 'KMeans':
        """Fit k-means on the rows of X.

        Parameters
        ----------
        X : Tensor of shape (n_samples, n_features)
        y : Ignored

        Returns
        -------
        self : KMeans
        """
        if self.n_clusters is None:
            raise InputError("n_clusters must be set before fitting")
        n_clusters = check_positive_int(self.n_clusters, 'n_clusters')

        X = torch.as_tensor(X)
        if not X.is_floating_point():
            X = X.double()
        if X.dim() != 2 or X.shape[0] == 0:
            raise InputError(f"Expected a non-empty 2D tensor, got shape {tuple(X.shape)}")
        if n_clusters > X.shape[0]:
            raise InputError(f"Cannot create {n_clusters} clusters from {X.shape[0]} points")

        generator = check_random_state(self.random_state)

        best = None
        all_converged = True
        for _ in range(self.n_init):
            result = self._single_run(X, n_clusters, generator)
            all_converged = all_converged and result[4]
            if best is None or result[2] < best[2]:
                best = result

        if not all_converged:
            warnings.warn(f"K-means did not converge within {self.max_iter} iterations")

        self.labels_, self.cluster_centers_, self.inertia_, self.n_iter_, _ = best
        return self

    def fit_predict(self, X: Tensor, y: Optional[Tensor] = None) -> Tensor:
        """Fit and return labels."""
        return self.fit(X).labels_

    def partition(self, rows: Tensor, n_clusters: int) -> Tensor:
        """Assign each row to one of ``n_clusters`` groups."""
        self.n_clusters = n_clusters
        return self.fit(rows).labels_

    def predict(self, X: Tensor) -> Tensor:
        """Nearest fitted center for each row of X."""
        if self.cluster_centers_ is None:
            raise RuntimeError("Model must be fitted before calling predict")
        X = torch.as_tensor(X, dtype=self.cluster_centers_.dtype,
                            device=self.cluster_centers_.device)
        return torch.argmin(torch.cdist(X, self.cluster_centers_), dim=1)
