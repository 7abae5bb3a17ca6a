# tests/integration/test_kdac_alternative.py
"""
Alternative clustering on a 2x2 grid of blobs

The grid holds two equally good 2-way clusterings: left/right and
bottom/top. KDAC starting from W = e1 finds left/right first; an
alternative fit (fit() or fit(X, y=prior)) must then find bottom/top,
i.e. a clustering that is dissimilar from the prior.
"""

from __future__ import annotations

import warnings

import pytest
import torch

from kdac import KDAC, ConvergenceWarning
from kdac.utils.metrics import adjusted_rand_score, normalized_mutual_info_score, hsic

from data_gen import make_grid_blobs
from utils import perm_invariant_accuracy, time_block


@pytest.fixture(scope="module")
def grid():
    return make_grid_blobs(n_per=40, spacing=3.0, noise=0.3, seed=0)


def _model(**kwargs):
    params = dict(n_clusters=2, q=1, kernel='gaussian', kernel_param=1.0,
                  lambda_=1.0, random_state=0)
    params.update(kwargs)
    return KDAC(**params)


def test_first_view_splits_left_right(grid):
    X, by_x, by_y = grid
    model = _model()
    with time_block("kdac.fit", {"n": X.shape[0], "d": X.shape[1], "c": 2, "q": 1}):
        labels = model.fit(X).predict()

    assert perm_invariant_accuracy(labels, by_x) == 1.0
    assert model.converged_


def test_alternative_fit_finds_the_other_split(grid):
    X, by_x, by_y = grid
    model = _model()
    first = model.fit(X).predict()
    second = model.fit().predict()

    assert perm_invariant_accuracy(second, by_y) >= 0.99
    assert abs(adjusted_rand_score(first, second)) < 0.1
    assert normalized_mutual_info_score(first, second) < 0.1

    # The prior clustering is stacked into Y
    assert model.y_matrix_.shape == (X.shape[0], 2)
    assert model.state_.n_prior == 1


def test_prior_labels_give_the_same_alternative(grid):
    X, by_x, by_y = grid
    labels = _model().fit(X, y=by_x).predict()

    assert perm_invariant_accuracy(labels, by_y) >= 0.99
    assert abs(adjusted_rand_score(torch.from_numpy(by_x), labels)) < 0.1


def test_alternative_view_has_lower_dependence_on_prior(grid):
    X, by_x, by_y = grid
    model = _model()
    model.fit(X)
    K_first = model.k_matrix_

    model.fit()
    Y = model.y_matrix_
    prior_kernel = Y @ Y.t()

    assert hsic(model.k_matrix_, prior_kernel).item() < 0.1 * hsic(K_first, prior_kernel).item()


def test_alternative_projection_is_orthonormal_and_moves_away(grid):
    X, _, _ = grid
    model = _model()
    model.fit(X)
    W_first = model.w_matrix_
    model.fit()
    W_second = model.w_matrix_

    assert torch.allclose(W_second.t() @ W_second, torch.eye(1, dtype=torch.float64))
    # The two projection directions are close to orthogonal
    assert abs((W_first.t() @ W_second).item()) < 0.1


@pytest.mark.slow
def test_repeated_alternatives_accumulate_priors(grid):
    X, _, _ = grid
    model = _model()
    model.fit(X)
    model.fit()
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        model.fit()

    assert model.state_.n_prior == 2
    assert model.y_matrix_.shape == (X.shape[0], 4)
    assert model.predict().shape == (X.shape[0],)

    # A fresh fit(X) starts over without priors
    model.fit(X)
    assert model.state_.n_prior == 0
    assert model.y_matrix_.shape == (X.shape[0], 0)


def test_alternative_fit_is_deterministic(grid):
    X, _, _ = grid
    runs = []
    for _ in range(2):
        model = _model()
        model.fit(X)
        runs.append(model.fit().predict())
    assert torch.equal(runs[0], runs[1])


def test_failed_alternative_fit_keeps_previous_view(grid, monkeypatch):
    X, by_x, _ = grid
    model = _model()
    first = model.fit(X).predict()
    state_before = model.state_

    def broken(*args, **kwargs):
        raise RuntimeError("decomposition unavailable")

    profiler_before = model.profiler_
    kmeans_calls = profiler_before.kmeans.count

    monkeypatch.setattr(model.decomposer, "decompose", broken)
    with pytest.raises(RuntimeError):
        model.fit()

    assert model.state_ is state_before
    assert torch.equal(model.labels_, first)
    assert model.profiler_ is profiler_before
    assert model.profiler_.kmeans.count == kmeans_calls
    assert torch.equal(model.predict(), first)


def test_failed_alternative_fit_before_predict_leaves_labels_unset(grid, monkeypatch):
    X, _, _ = grid
    model = _model()
    model.fit(X)
    profiler_before = model.profiler_

    def broken(*args, **kwargs):
        raise RuntimeError("decomposition unavailable")

    monkeypatch.setattr(model.decomposer, "decompose", broken)
    with pytest.raises(RuntimeError):
        model.fit()

    assert model.labels_ is None
    assert model.profiler_ is profiler_before
    assert model.profiler_.kmeans.count == 0


@pytest.mark.slow
def test_noise_dimensions_do_not_hide_the_alternative():
    X, by_x, by_y = make_grid_blobs(n_per=30, spacing=3.0, noise=0.3, extra_dims=2, seed=1)
    model = _model()
    with warnings.catch_warnings():
        warnings.simplefilter("error", ConvergenceWarning)
        first = model.fit(X).predict()
    assert model.converged_
    # W stays on the separating axis instead of drifting into the noise
    assert abs(model.w_matrix_[0, 0].item()) > 0.99

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        second = model.fit().predict()

    assert perm_invariant_accuracy(first, by_x) == 1.0
    assert perm_invariant_accuracy(second, by_y) >= 0.95
