"""
Convergence criteria for the KDAC loops.

- Change in the embedding subspace (EMBED phase of the outer loop)
- Change in a parameter matrix such as W (PROJECT phase)
- Change in an objective value (inner gradient loop)
- Change in hard assignments (k-means used by predict)

Each criterion compares the monitored value with the one seen at the
previous ``check`` and converges after ``patience`` consecutive stable checks.
"""

from typing import Dict, Any, Optional, List
import torch
from torch import Tensor

from ..base.interfaces import ConvergenceCriterion
from .linalg import subspace_distance


class _StabilityCriterion(ConvergenceCriterion):
    """Shared bookkeeping: previous value, stable-check counter, history.

    Subclasses set ``key`` (the state entry to monitor) and implement
    ``_measure`` returning the history record and whether it is stable.
    """

    key: str = ''

    def __init__(self, patience: int = 1):
        super().__init__()
        self.patience = patience
        self._previous = None
        self._stable_count = 0
        self.last_change: Optional[float] = None

    def _measure(self, previous, current) -> tuple:
        raise NotImplementedError

    @staticmethod
    def _store(value):
        return value.clone() if isinstance(value, Tensor) else value

    def check(self, current_state: Dict[str, Any]) -> bool:
        current = current_state[self.key]

        if self._previous is None:
            self._previous = self._store(current)
            return False

        record, stable = self._measure(self._previous, current)
        self.history.append({
            'iteration': current_state.get('iteration', len(self.history)),
            **record
        })

        self._stable_count = self._stable_count + 1 if stable else 0
        self._previous = self._store(current)
        return self._stable_count >= self.patience

    def reset(self):
        super().reset()
        self._previous = None
        self._stable_count = 0
        self.last_change = None


class ChangeInAssignments(_StabilityCriterion):
    """Convergence based on fraction of points that change clusters."""

    key = 'assignments'

    def __init__(self, min_change_fraction: float = 1e-4,
                 patience: int = 1):
        """
        Args:
            min_change_fraction: Fraction of changed points below which the
                labelling counts as stable (no change always counts)
            patience: Number of stable checks before declaring convergence
        """
        super().__init__(patience)
        self.min_change_fraction = min_change_fraction

    def _measure(self, previous: Tensor, current: Tensor):
        n_changed = (current != previous).sum().item()
        fraction = n_changed / len(current)
        self.last_change = fraction
        stable = n_changed == 0 or fraction < self.min_change_fraction
        return {'n_changed': n_changed, 'change_fraction': fraction}, stable


class ChangeInObjective(_StabilityCriterion):
    """Convergence based on relative change in objective function."""

    key = 'objective'

    def __init__(self, rel_tol: float = 1e-4, abs_tol: float = 1e-8,
                 patience: int = 1):
        """
        Args:
            rel_tol: Relative tolerance for objective change
            abs_tol: Absolute tolerance for objective change
            patience: Number of stable checks before declaring convergence
        """
        super().__init__(patience)
        self.rel_tol = rel_tol
        self.abs_tol = abs_tol

    def _measure(self, previous: float, current: float):
        abs_change = abs(current - previous)
        rel_change = abs_change / abs(previous) if abs(previous) > 1e-10 else abs_change
        self.last_change = rel_change
        record = {'objective': current, 'abs_change': abs_change, 'rel_change': rel_change}
        return record, abs_change < self.abs_tol or rel_change < self.rel_tol


class ParameterChange(_StabilityCriterion):
    """Convergence based on the Frobenius change of a parameter matrix."""

    def __init__(self, tol: float = 1e-6, patience: int = 1,
                 parameter: str = 'w_matrix', relative: bool = False):
        """
        Args:
            tol: Tolerance for parameter change
            patience: Number of stable checks before declaring convergence
            parameter: Key of the tensor to monitor in the state dictionary
            relative: Divide the change by the previous norm
        """
        super().__init__(patience)
        self.tol = tol
        self.key = parameter
        self.relative = relative

    @property
    def parameter(self) -> str:
        return self.key

    def _measure(self, previous: Tensor, current: Tensor):
        diff_norm = torch.norm(current - previous, p='fro')
        if self.relative:
            prev_norm = torch.norm(previous, p='fro')
            change = (diff_norm / prev_norm).item() if prev_norm > 1e-10 else diff_norm.item()
        else:
            change = diff_norm.item()
        self.last_change = change
        return {'parameter_change': change}, change < self.tol


class SubspaceChange(_StabilityCriterion):
    """Convergence based on the change of the subspace spanned by U.

    Eigenvectors are defined up to sign (and rotation within repeated
    eigenvalues), so the change is measured between column spaces rather
    than entrywise.
    """

    def __init__(self, tol: float = 1e-4, patience: int = 1,
                 parameter: str = 'u_matrix'):
        """
        Args:
            tol: Tolerance on the subspace distance
            patience: Number of stable checks before declaring convergence
            parameter: Key of the orthonormal matrix in the state dictionary
        """
        super().__init__(patience)
        self.tol = tol
        self.key = parameter

    @property
    def parameter(self) -> str:
        return self.key

    def _measure(self, previous: Tensor, current: Tensor):
        change = subspace_distance(previous, current)
        self.last_change = change
        return {'subspace_change': change}, change < self.tol


class CombinedCriterion(ConvergenceCriterion):
    """Combine multiple convergence criteria with AND/OR logic.

    Every member is checked on each call so that all of them keep tracking
    their previous value.
    """

    def __init__(self, criteria: List[ConvergenceCriterion],
                 mode: str = 'any'):
        """
        Args:
            criteria: List of convergence criteria
            mode: 'any' (OR) or 'all' (AND)
        """
        super().__init__()
        if mode not in ('any', 'all'):
            raise ValueError(f"Mode must be 'any' or 'all', got {mode}")
        self.criteria = criteria
        self.mode = mode

    def check(self, current_state: Dict[str, Any]) -> bool:
        results = [criterion.check(current_state) for criterion in self.criteria]
        converged = all(results) if self.mode == 'all' else any(results)

        self.history.append({
            'iteration': current_state.get('iteration', len(self.history)),
            'individual_results': results,
            'converged': converged
        })
        return converged

    def reset(self):
        """Reset all sub-criteria."""
        super().reset()
        for criterion in self.criteria:
            criterion.reset()
