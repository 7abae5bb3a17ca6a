"""Initialization strategies for the partition step."""

from .kmeans_plusplus import kmeans_plusplus

__all__ = ['kmeans_plusplus']
