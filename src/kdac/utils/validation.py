"""
Input validation utilities.

Converts user input to tensors and rejects data the engine cannot fit, so
that errors surface before any engine state is touched.
"""

from typing import Optional, Union, List
import numbers
import torch
from torch import Tensor
import numpy as np

from ..base.errors import ConfigurationError, InputError


def validate_data(X: Union[Tensor, np.ndarray, list],
                 dtype: torch.dtype = torch.float64,
                 device: Optional[torch.device] = None,
                 ensure_finite: bool = True,
                 ensure_min_samples: int = 1,
                 ensure_min_features: int = 1) -> Tensor:
    """Validate and convert input data to a 2D tensor.

    The result is always a fresh copy, so later in-place operations never
    reach the caller's array.

    Args:
        X: Input data (tensor, numpy array, or list)
        dtype: Target data type
        device: Target device
        ensure_finite: Whether to check for inf/nan
        ensure_min_samples: Minimum number of samples required
        ensure_min_features: Minimum number of features required

    Returns:
        Validated (n, d) tensor

    Raises:
        InputError: If validation fails
    """
    if isinstance(X, Tensor):
        X = X.detach().to(dtype=dtype, device=device).clone()
    elif isinstance(X, np.ndarray):
        X = torch.from_numpy(np.array(X, dtype=np.float64)).to(dtype=dtype, device=device)
    elif isinstance(X, list):
        try:
            X = torch.tensor(X, dtype=dtype, device=device)
        except (TypeError, ValueError) as e:
            raise InputError(f"Cannot convert list input to a matrix: {e}") from e
    else:
        raise InputError(f"Cannot convert {type(X)} to tensor")

    if X.dim() != 2:
        raise InputError(f"Expected 2D array of shape (n_samples, n_features), got {X.dim()}D")

    n_samples, n_features = X.shape

    if n_samples < ensure_min_samples:
        raise InputError(f"Found {n_samples} samples, but need at least "
                         f"{ensure_min_samples}")

    if n_features < ensure_min_features:
        raise InputError(f"Found {n_features} features, but need at least "
                         f"{ensure_min_features}")

    if ensure_finite:
        if torch.isnan(X).any():
            raise InputError("Input contains NaN values")
        if torch.isinf(X).any():
            raise InputError("Input contains infinite values")

    return X


def validate_labels(labels: Union[Tensor, np.ndarray, list],
                   n_samples: Optional[int] = None) -> Tensor:
    """Validate a clustering label vector and relabel it to 0..k-1.

    Args:
        labels: Cluster labels (any hashable-free integer coding)
        n_samples: Expected number of samples

    Returns:
        (n,) int64 tensor of consecutive labels

    Raises:
        InputError: If validation fails
    """
    if isinstance(labels, Tensor):
        labels = labels.detach().cpu()
    elif isinstance(labels, (np.ndarray, list)):
        labels = torch.as_tensor(np.asarray(labels))
    else:
        raise InputError(f"Cannot convert {type(labels)} to label tensor")

    if labels.dim() != 1:
        raise InputError(f"Labels must be 1D, got {labels.dim()}D")

    if labels.is_floating_point():
        if not torch.equal(labels, labels.round()):
            raise InputError("Labels must be integers")
    labels = labels.long()

    if n_samples is not None and len(labels) != n_samples:
        raise InputError(f"Expected {n_samples} labels, got {len(labels)}")

    # Map arbitrary integer codes onto 0..k-1
    _, consecutive = torch.unique(labels, return_inverse=True)
    return consecutive


def check_positive_int(value, name: str) -> int:
    """Validate a strictly positive integer configuration value.

    Raises:
        ConfigurationError: If ``value`` is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigurationError(f"{name} must be int, got {type(value).__name__}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return int(value)


def check_random_state(random_state: Optional[Union[int, torch.Generator]]) -> Optional[torch.Generator]:
    """Create generator from random state.

    Args:
        random_state: Seed or generator

    Returns:
        Generator or None
    """
    if random_state is None:
        return None
    elif isinstance(random_state, torch.Generator):
        return random_state
    elif isinstance(random_state, numbers.Integral):
        generator = torch.Generator()
        generator.manual_seed(int(random_state))
        return generator
    else:
        raise TypeError(f"random_state must be int or Generator, got {type(random_state)}")


def one_hot_labels(labels: Tensor, dtype: torch.dtype = torch.float64,
                   device: Optional[torch.device] = None) -> Tensor:
    """One-hot (n, k) indicator matrix for consecutive labels 0..k-1."""
    n_groups = int(labels.max().item()) + 1 if labels.numel() > 0 else 0
    indicator = torch.zeros(len(labels), n_groups, dtype=dtype, device=device)
    indicator[torch.arange(len(labels), device=device), labels.to(device)] = 1.0
    return indicator


def _ndim(x) -> int:
    return x.dim() if isinstance(x, Tensor) else np.ndim(x)


def split_prior_labels(priors: Union[Tensor, np.ndarray, List]) -> List:
    """Split prior clusterings into a list of label vectors.

    A 1D vector is a single clustering; a 2D array holds one clustering per
    row; a list may hold either labels or label vectors.
    """
    if isinstance(priors, (Tensor, np.ndarray)):
        return [priors] if _ndim(priors) == 1 else list(priors)
    if isinstance(priors, (list, tuple)):
        if priors and _ndim(priors[0]) == 0:
            return [priors]
        return list(priors)
    raise InputError("Prior labels must be a 1D label vector or a list of them")


def stack_prior_labels(priors: Union[Tensor, np.ndarray, List], n_samples: int,
                       dtype: torch.dtype = torch.float64,
                       device: Optional[torch.device] = None) -> Tensor:
    """Build the label matrix Y from one or more prior clusterings.

    Args:
        priors: A single (n,) label vector, or a list of them
        n_samples: Number of samples n
        dtype: Data type of Y
        device: Target device

    Returns:
        (n, c0 + c1 + ...) one-hot matrix
    """
    priors = split_prior_labels(priors)
    blocks = [one_hot_labels(validate_labels(p, n_samples), dtype, device) for p in priors]
    if not blocks:
        return torch.zeros(n_samples, 0, dtype=dtype, device=device)
    return torch.cat(blocks, dim=1)
