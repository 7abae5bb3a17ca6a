# tests/test_kmeans.py
"""
K-means partition and k-means++ seeding

Covers:
- KMeans recovers well separated blobs and is reproducible with random_state
- partition(): the PartitionStrategy contract used by KDAC.predict
- input errors (too few points, unset n_clusters)
- kmeans_plusplus: centers are data points, duplicates handled
"""

from __future__ import annotations

import numpy as np
import pytest
import torch

from kdac.algorithms import KMeans
from kdac.base.errors import InputError
from kdac.base.interfaces import PartitionStrategy
from kdac.initialization import kmeans_plusplus

from data_gen import make_two_blobs
from utils import perm_invariant_accuracy


def test_kmeans_fits_simple_blobs():
    X, y = make_two_blobs(n_per=100, separation=3.0, noise=0.3, seed=0)

    km = KMeans(n_clusters=2, random_state=0)
    km.fit(torch.from_numpy(X))

    assert len(km.labels_) == X.shape[0]
    assert km.cluster_centers_.shape == (2, 2)
    assert km.inertia_ > 0
    assert perm_invariant_accuracy(km.labels_, y) == 1.0


def test_kmeans_is_reproducible_with_random_state():
    X, _ = make_two_blobs(n_per=40, separation=1.0, noise=1.0, seed=1)
    X = torch.from_numpy(X)
    a = KMeans(n_clusters=3, random_state=11).fit_predict(X)
    b = KMeans(n_clusters=3, random_state=11).fit_predict(X)
    assert torch.equal(a, b)


def test_partition_contract():
    rows = torch.tensor([[1.0, 0.0], [0.99, 0.05], [0.0, 1.0], [0.05, 0.99]],
                        dtype=torch.float64)
    km = KMeans(n_init=3, random_state=0)
    assert isinstance(km, PartitionStrategy)

    labels = km.partition(rows, 2)
    assert labels.dtype == torch.int64
    assert labels.shape == (4,)
    assert labels[0] == labels[1]
    assert labels[2] == labels[3]
    assert labels[0] != labels[2]


def test_predict_assigns_to_nearest_center():
    X = torch.tensor([[0.0], [0.1], [10.0], [10.1]], dtype=torch.float64)
    km = KMeans(n_clusters=2, random_state=0).fit(X)
    new = km.predict(torch.tensor([[0.05], [9.9]], dtype=torch.float64))
    assert new[0] == km.labels_[0]
    assert new[1] == km.labels_[2]


def test_kmeans_input_errors():
    with pytest.raises(InputError):
        KMeans().fit(torch.zeros(3, 2))
    with pytest.raises(InputError):
        KMeans(n_clusters=5).fit(torch.zeros(3, 2))
    with pytest.raises(InputError):
        KMeans(n_clusters=1).fit(torch.zeros(0, 2))


def test_kmeans_handles_identical_points():
    X = torch.ones(6, 2, dtype=torch.float64)
    km = KMeans(n_clusters=2, random_state=0).fit(X)
    assert km.labels_.shape == (6,)
    assert km.inertia_ == pytest.approx(0.0)


def test_kmeans_plusplus_centers_are_distinct_data_points():
    X = torch.tensor([[0.0, 0.0], [0.0, 0.1], [5.0, 5.0], [5.1, 5.0], [-5.0, 5.0]],
                     dtype=torch.float64)
    gen = torch.Generator().manual_seed(0)
    centers = kmeans_plusplus(X, 3, generator=gen)

    assert centers.shape == (3, 2)
    for c in centers:
        assert torch.isclose(X, c.unsqueeze(0)).all(dim=1).any()
    # Greedy seeding picks one point from each well separated group
    groups = {int(np.argmin([abs(c[0].item()), abs(c[0].item() - 5.0), abs(c[0].item() + 5.0)]))
              for c in centers}
    assert groups == {0, 1, 2}


def test_kmeans_plusplus_too_many_clusters():
    with pytest.raises(InputError):
        kmeans_plusplus(torch.zeros(2, 2), 3)
