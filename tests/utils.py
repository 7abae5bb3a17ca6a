# tests/utils.py
"""
Small, reusable helpers used across the KDAC test suite.

Functions:
- labels_equal_up_to_perm(y1, y2): True if y2 is a relabelling of y1.
- perm_invariant_accuracy(y_pred, y_true): best accuracy over label swaps for 2-way splits.
- assert_orthonormal_columns(M, atol): columns of M are orthonormal.
- time_block(label, meta=None): context manager that prints wall-clock time with optional metadata.
- print_timing(label, seconds, **meta): convenience printer for timings (used by time_block).
"""

from __future__ import annotations

import json
import itertools
import time
from contextlib import contextmanager
from typing import Any, Dict, Union

import numpy as np
import torch

ArrayLike = Union[np.ndarray, torch.Tensor]


def _to_numpy_1d(x: ArrayLike) -> np.ndarray:
    """Convert a vector (1D) to numpy array without altering shape semantics."""
    if isinstance(x, torch.Tensor):
        x = x.detach().cpu().numpy()
    x = np.asarray(x)
    if x.ndim != 1:
        raise ValueError(f"Expected 1D vector, got shape {x.shape}")
    return x


def labels_equal_up_to_perm(y1: ArrayLike, y2: ArrayLike) -> bool:
    """Return True if some relabelling of y2 equals y1 exactly."""
    a = _to_numpy_1d(y1)
    b = _to_numpy_1d(y2)
    if a.shape != b.shape:
        return False
    k = int(max(a.max(), b.max())) + 1 if a.size else 0
    for perm in itertools.permutations(range(k)):
        if np.array_equal(a, np.asarray(perm)[b]):
            return True
    return False


def perm_invariant_accuracy(y_pred: ArrayLike, y_true: ArrayLike) -> float:
    """
    Best accuracy over label swaps for 2-way splits.

    Returns
    -------
    float in [0, 1]
    """
    pred = _to_numpy_1d(y_pred)
    true = _to_numpy_1d(y_true)
    if pred.shape != true.shape:
        raise ValueError(f"Shape mismatch: {pred.shape} vs {true.shape}")
    n = max(1, pred.size)
    acc_a = np.sum(pred == true) / n
    acc_b = np.sum(pred == 1 - true) / n
    return float(max(acc_a, acc_b))


def assert_orthonormal_columns(M: torch.Tensor, atol: float = 1e-8) -> None:
    gram = M.t() @ M
    eye = torch.eye(M.shape[1], dtype=M.dtype, device=M.device)
    assert torch.allclose(gram, eye, atol=atol), f"M^T M deviates from I:\n{gram}"


@contextmanager
def time_block(label: str, meta: Dict[str, Any] | None = None):
    """
    Context manager to time a block and print a single-line summary.

    Example
    -------
    >>> with time_block("fit", {"n": 200, "d": 2, "c": 2, "q": 1}):
    ...     model.fit(X)

    Output
    ------
    [timing] fit {"n":200,"d":2,"c":2,"q":1} 0.123s
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt = time.perf_counter() - t0
        print_timing(label, dt, **(meta or {}))


def print_timing(label: str, seconds: float, **meta: Any) -> None:
    """
    Print timing in a compact, machine-readable single line.

    Example:
    [timing] fit {"n":200,"d":2,"c":2,"q":1} 0.123s
    """
    meta_str = ""
    if meta:
        meta_str = " " + json.dumps(meta, separators=(",", ":"), default=str)
    print(f"[timing] {label}{meta_str} {seconds:.3f}s")
