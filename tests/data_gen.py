# tests/data_gen.py
"""
Tiny synthetic-data generators reused across the KDAC test suite.

Every generator returns float64 numpy data together with the label vectors
of the clusterings that are planted in it, so tests can check which view a
fit recovered.

    >>> X, by_x, by_y = make_grid_blobs(n_per=30, seed=0)
    >>> X.shape, by_x.shape
    ((120, 2), (120,))
"""

from __future__ import annotations

from typing import Tuple, Optional
import numpy as np

NDArray = np.ndarray


def make_two_pairs(gap: float = 10.0) -> Tuple[NDArray, NDArray]:
    """
    Four points forming two tight pairs on the x axis.

    Points 0,1 sit near the origin and points 2,3 near x = gap; the second
    coordinate is a small wiggle that carries no structure.

    Returns
    -------
    X : (4, 2) ndarray, float64
    y : (4,) ndarray, int64
        Ground-truth labels [0, 0, 1, 1].
    """
    X = np.array([
        [0.0, 0.0],
        [0.1, 0.05],
        [gap, 0.0],
        [gap + 0.1, 0.05],
    ], dtype=np.float64)
    y = np.array([0, 0, 1, 1], dtype=np.int64)
    return X, y


def make_grid_blobs(
    n_per: int = 40,
    spacing: float = 3.0,
    noise: float = 0.3,
    extra_dims: int = 0,
    seed: Optional[int] = None,
) -> Tuple[NDArray, NDArray, NDArray]:
    """
    Four isotropic blobs centred on the corners of a square.

    Blob centres are (+-spacing, +-spacing) in the first two coordinates, so the
    data holds two equally good 2-way clusterings: by the sign of x and by the
    sign of y. Optional extra coordinates are pure noise.

    Parameters
    ----------
    n_per : int, default=40
        Points per blob (total 4 * n_per).
    spacing : float, default=3.0
        Half the distance between neighbouring blob centres.
    noise : float, default=0.3
        Standard deviation of the isotropic Gaussian noise.
    extra_dims : int, default=0
        Number of structureless noise coordinates appended.
    seed : int or None
        RNG seed.

    Returns
    -------
    X : (4*n_per, 2 + extra_dims) ndarray, float64
    by_x : (4*n_per,) ndarray, int64
        Labels splitting left/right.
    by_y : (4*n_per,) ndarray, int64
        Labels splitting bottom/top.
    """
    rng = np.random.default_rng(seed)
    centers = np.array([[-1, -1], [-1, 1], [1, -1], [1, 1]], dtype=np.float64) * spacing

    blocks = []
    by_x = []
    by_y = []
    for cx, cy in centers:
        pts = rng.normal(scale=noise, size=(n_per, 2 + extra_dims))
        pts[:, 0] += cx
        pts[:, 1] += cy
        blocks.append(pts)
        by_x.extend([int(cx > 0)] * n_per)
        by_y.extend([int(cy > 0)] * n_per)

    X = np.vstack(blocks).astype(np.float64)
    return X, np.asarray(by_x, dtype=np.int64), np.asarray(by_y, dtype=np.int64)


def make_two_blobs(
    n_per: int = 50,
    separation: float = 6.0,
    noise: float = 0.5,
    dim: int = 2,
    seed: Optional[int] = None,
) -> Tuple[NDArray, NDArray]:
    """
    Two isotropic Gaussian blobs separated along the first coordinate.

    Returns
    -------
    X : (2*n_per, dim) ndarray, float64
    y : (2*n_per,) ndarray, int64
    """
    rng = np.random.default_rng(seed)
    a = rng.normal(scale=noise, size=(n_per, dim))
    b = rng.normal(scale=noise, size=(n_per, dim))
    b[:, 0] += separation
    X = np.vstack([a, b]).astype(np.float64)
    y = np.array([0] * n_per + [1] * n_per, dtype=np.int64)
    return X, y
