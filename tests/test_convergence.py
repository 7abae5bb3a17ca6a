# tests/test_convergence.py
"""
Convergence criteria behavior

Covers:
- ChangeInObjective: patience + relative tolerance handling
- ChangeInAssignments: fraction-changed threshold + patience
- ParameterChange (W): absolute and relative Frobenius change
- SubspaceChange (U): invariance to column signs and rotations
- CombinedCriterion: 'all' needs every member, 'any' needs one

All tests run on CPU; these are pure logic checks (no heavy tensors).
"""

from __future__ import annotations

import math

import pytest
import torch

from kdac.utils.convergence import (
    ChangeInObjective,
    ChangeInAssignments,
    ParameterChange,
    SubspaceChange,
    CombinedCriterion,
)


def test_change_in_objective_patience_and_thresholds(seed_all):
    """
    Two consecutive *small* relative changes (< rel_tol) trigger convergence
    when patience=2.
    """
    crit = ChangeInObjective(rel_tol=1e-3, abs_tol=1e-12, patience=2)

    # Start at 100.0 (initializes prev => returns False)
    assert crit.check({"iteration": 0, "objective": 100.0}) is False

    # Small relative change #1: 100.0 -> 99.95  (rel=0.0005 < 1e-3)
    assert crit.check({"iteration": 1, "objective": 99.95}) is False

    # Small relative change #2
    assert crit.check({"iteration": 2, "objective": 99.90005}) is True


def test_change_in_objective_large_change_resets_patience(seed_all):
    crit = ChangeInObjective(rel_tol=1e-3, abs_tol=1e-12, patience=2)
    crit.check({"objective": 10.0})
    assert crit.check({"objective": 10.0}) is False   # stable_count = 1
    assert crit.check({"objective": 20.0}) is False   # reset
    assert crit.check({"objective": 20.0}) is False   # stable_count = 1
    assert crit.check({"objective": 20.0}) is True


def test_change_in_assignments_fraction(seed_all):
    """
    min_change_fraction is the threshold *below which* the labelling is stable.
    With patience=2, two consecutive steps with 10% changes (< 20%) converge.
    """
    crit = ChangeInAssignments(min_change_fraction=0.2, patience=2)

    a0 = torch.zeros(10, dtype=torch.long)
    a1 = a0.clone()
    a1[0] = 1  # 1/10 changed = 0.1
    a2 = a1.clone()
    a2[1] = 1  # again 1/10 changed relative to previous

    assert crit.check({"iteration": 0, "assignments": a0}) is False
    assert crit.check({"iteration": 1, "assignments": a1}) is False  # stable_count = 1
    assert crit.check({"iteration": 2, "assignments": a2}) is True   # stable_count = 2


def test_change_in_assignments_unchanged_labels_converge_with_zero_threshold():
    crit = ChangeInAssignments(min_change_fraction=0.0)
    labels = torch.tensor([0, 1, 1, 0])
    assert crit.check({"assignments": labels}) is False
    assert crit.check({"assignments": labels.clone()}) is True


def test_parameter_change_absolute_frobenius():
    crit = ParameterChange(tol=1e-3, parameter="w_matrix")
    W0 = torch.eye(3, 2, dtype=torch.float64)
    W1 = W0 + 1e-4

    assert crit.check({"w_matrix": W0}) is False
    assert crit.last_change is None
    assert crit.check({"w_matrix": W1}) is True
    assert crit.last_change == pytest.approx(1e-4 * math.sqrt(6), rel=1e-9)


def test_parameter_change_relative_with_patience():
    crit = ParameterChange(tol=1e-3, patience=2, parameter="w_matrix", relative=True)
    W0 = torch.ones(2, 3, dtype=torch.float64) * 100.0
    W1 = W0 * (1.0 + 1e-4)
    W2 = W0 * (1.0 + 2e-4)

    assert crit.check({"iteration": 0, "w_matrix": W0}) is False
    assert crit.check({"iteration": 1, "w_matrix": W1}) is False  # stable_count = 1
    assert crit.check({"iteration": 2, "w_matrix": W2}) is True


def test_parameter_change_reset_forgets_previous():
    crit = ParameterChange(tol=1e-3)
    W = torch.eye(2, dtype=torch.float64)
    crit.check({"w_matrix": W})
    crit.reset()
    assert crit.check({"w_matrix": W}) is False
    assert crit.history == []


def test_subspace_change_ignores_signs_and_rotations():
    crit = SubspaceChange(tol=1e-6, parameter="u_matrix")
    Q, _ = torch.linalg.qr(torch.randn(6, 2, dtype=torch.float64))
    theta = 0.7
    rotation = torch.tensor([[math.cos(theta), -math.sin(theta)],
                             [math.sin(theta), math.cos(theta)]], dtype=torch.float64)

    assert crit.check({"u_matrix": Q}) is False
    assert crit.check({"u_matrix": -Q}) is True
    assert crit.check({"u_matrix": Q @ rotation}) is True
    assert crit.last_change == pytest.approx(0.0, abs=1e-6)


def test_subspace_change_detects_a_different_subspace():
    crit = SubspaceChange(tol=1e-4)
    A = torch.eye(4, 2, dtype=torch.float64)
    B = torch.eye(4, dtype=torch.float64)[:, 2:]

    crit.check({"u_matrix": A})
    assert crit.check({"u_matrix": B}) is False
    # Orthogonal 2D subspaces are at the maximal distance sqrt(2)
    assert crit.last_change == pytest.approx(math.sqrt(2.0))


def test_combined_criterion_all_and_any():
    W = torch.eye(3, 1, dtype=torch.float64)
    U = torch.eye(5, 2, dtype=torch.float64)
    U_moved = torch.eye(5, dtype=torch.float64)[:, 1:3]

    both = CombinedCriterion([SubspaceChange(tol=1e-4), ParameterChange(tol=1e-4)], mode="all")
    either = CombinedCriterion([SubspaceChange(tol=1e-4), ParameterChange(tol=1e-4)], mode="any")

    for crit in (both, either):
        assert crit.check({"u_matrix": U, "w_matrix": W}) is False

    # W is stable but U moved
    assert both.check({"u_matrix": U_moved, "w_matrix": W}) is False
    assert either.check({"u_matrix": U_moved, "w_matrix": W}) is True
    assert both.history[-1]["individual_results"] == [False, True]


def test_combined_criterion_rejects_unknown_mode():
    with pytest.raises(ValueError):
        CombinedCriterion([ParameterChange()], mode="majority")
