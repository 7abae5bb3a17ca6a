"""
Cluster visualization utilities.

Scatter plots of clustering results in 2D, and side-by-side plots of the
alternative clustering views that KDAC finds on the same data.
"""

from typing import Optional, Union, Tuple, List, Sequence
from torch import Tensor
import matplotlib.pyplot as plt
import numpy as np


def _to_numpy(values: Union[Tensor, np.ndarray, list]) -> np.ndarray:
    if isinstance(values, Tensor):
        return values.detach().cpu().numpy()
    return np.asarray(values)


def plot_clusters_2d(X: Union[Tensor, np.ndarray],
                    labels: Union[Tensor, np.ndarray],
                    ax: Optional[plt.Axes] = None,
                    dims: Tuple[int, int] = (0, 1),
                    colors: Optional[List[str]] = None,
                    markers: Optional[List[str]] = None,
                    alpha: float = 0.7,
                    point_size: int = 50,
                    show_legend: bool = True,
                    title: Optional[str] = None) -> plt.Axes:
    """Plot 2D clustering results.

    Args:
        X: (n, d) data points; columns ``dims`` are plotted
        labels: (n,) cluster labels
        ax: Matplotlib axes (created if None)
        dims: The two feature columns to plot
        colors: List of colors for clusters
        markers: List of markers for clusters
        alpha: Point transparency
        point_size: Size of data points
        show_legend: Whether to show legend
        title: Plot title

    Returns:
        Matplotlib axes
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))

    # Convert to numpy for matplotlib
    X_np = _to_numpy(X)
    labels_np = _to_numpy(labels)

    if X_np.ndim != 2 or X_np.shape[1] <= max(dims):
        raise ValueError(f"Cannot plot columns {dims} of data with shape {X_np.shape}")
    if len(labels_np) != len(X_np):
        raise ValueError(f"Got {len(labels_np)} labels for {len(X_np)} points")

    unique_labels = np.unique(labels_np)
    n_clusters = len(unique_labels)

    if colors is None:
        cmap = plt.get_cmap('tab10' if n_clusters <= 10 else 'tab20')
        colors = [cmap(i % cmap.N) for i in range(n_clusters)]

    if markers is None:
        markers = ['o'] * n_clusters

    first, second = dims
    for i, label in enumerate(unique_labels):
        mask = labels_np == label
        ax.scatter(X_np[mask, first], X_np[mask, second],
                  c=[colors[i % len(colors)]],
                  marker=markers[i % len(markers)],
                  s=point_size,
                  alpha=alpha,
                  edgecolors='black',
                  linewidth=0.5,
                  label=f'Cluster {label}')

    ax.set_xlabel(f'Feature {first + 1}')
    ax.set_ylabel(f'Feature {second + 1}')

    if title:
        ax.set_title(title)

    if show_legend:
        ax.legend()

    return ax


def plot_alternative_views(X: Union[Tensor, np.ndarray],
                           views: Sequence[Union[Tensor, np.ndarray]],
                           titles: Optional[Sequence[str]] = None,
                           dims: Tuple[int, int] = (0, 1),
                           figsize: Optional[Tuple[float, float]] = None,
                           **kwargs):
    """Plot several clusterings of the same data next to each other.

    Args:
        X: (n, d) data points
        views: Label vectors, one per clustering view, in discovery order
        titles: Subplot titles; defaults to 'View 1', 'View 2', ...
        dims: The two feature columns to plot
        figsize: Figure size; defaults to 5 inches per view
        **kwargs: Passed on to ``plot_clusters_2d``

    Returns:
        (figure, list of axes)
    """
    n_views = len(views)
    if n_views == 0:
        raise ValueError("Need at least one clustering view to plot")
    if titles is None:
        titles = [f'View {i + 1}' for i in range(n_views)]
    if len(titles) != n_views:
        raise ValueError(f"Got {len(titles)} titles for {n_views} views")

    fig, axes = plt.subplots(1, n_views, figsize=figsize or (5 * n_views, 4.5),
                             squeeze=False)
    axes = list(axes[0])

    for ax, labels, title in zip(axes, views, titles):
        plot_clusters_2d(X, labels, ax=ax, dims=dims, title=title, **kwargs)

    fig.tight_layout()
    return fig, axes
