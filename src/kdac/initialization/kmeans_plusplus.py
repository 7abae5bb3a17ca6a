"""
K-means++ seeding.

Selects initial cluster centers far apart from each other, which speeds up
and stabilises the k-means partition of the spectral embedding.
"""

from typing import Optional
import math
import torch
from torch import Tensor

from ..base.errors import InputError


def kmeans_plusplus(points: Tensor, n_clusters: int,
                    generator: Optional[torch.Generator] = None,
                    n_local_trials: Optional[int] = None) -> Tensor:
    """Choose initial centers with greedy k-means++.

    Algorithm:
    1. Choose first center uniformly at random
    2. For each remaining center:
       - Compute distance from each point to nearest existing center
       - Sample candidates with probability proportional to squared distance
       - Keep the candidate that most reduces the total squared distance

    Args:
        points: (n, d) data points
        n_clusters: Number of clusters
        generator: Random generator (CPU) for reproducibility
        n_local_trials: Candidates per center; None uses 2 + log(k) as in sklearn

    Returns:
        (n_clusters, d) tensor of initial centers
    """
    n_points, dimension = points.shape

    if n_clusters > n_points:
        raise InputError(f"Cannot create {n_clusters} clusters from {n_points} points")

    if n_local_trials is None:
        n_local_trials = 2 + int(math.log(n_clusters))

    centers = torch.empty(n_clusters, dimension, dtype=points.dtype, device=points.device)

    first_idx = torch.randint(n_points, (1,), generator=generator).item()
    centers[0] = points[first_idx]

    distances = torch.sum((points - centers[0].unsqueeze(0)) ** 2, dim=1)

    for c in range(1, n_clusters):
        total = distances.sum()
        if total <= 0:
            # Every point coincides with a chosen center; any choice is as good
            candidates_idx = torch.randint(n_points, (n_local_trials,), generator=generator)
        else:
            probabilities = (distances / total).cpu()
            candidates_idx = torch.multinomial(probabilities, n_local_trials,
                                               replacement=True, generator=generator)

        # (trials, n) distances from every point to every candidate
        candidates = points[candidates_idx.to(points.device)]
        candidate_distances = torch.cdist(candidates, points) ** 2
        new_distances = torch.minimum(distances.unsqueeze(0), candidate_distances)
        potentials = new_distances.sum(dim=1)

        best = torch.argmin(potentials).item()
        centers[c] = candidates[best]
        distances = new_distances[best]

    return centers
