"""Clustering algorithm implementations."""

from .kmeans import KMeans
from .kdac import KDAC

__all__ = [
    'KMeans',
    'KDAC'
]
