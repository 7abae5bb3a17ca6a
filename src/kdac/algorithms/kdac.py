"""
Kernel Dimension Alternative Clustering (KDAC).

Niu, Dy and Jordan, "Iterative Discovery of Multiple Alternative Clustering
Views", IEEE TPAMI. Given zero or more prior clusterings Y, KDAC solves

    max_{U, W}  Tr(U^T D^(-1/2) K(XW) D^(-1/2) U) - lambda * HSIC(XW, Y)
    s.t.        U^T U = I,  W^T W = I

by alternating two phases until both U and W stop moving:

    EMBED    -- fix W: U = leading c eigenvectors of L = D^(-1/2) K D^(-1/2)
    PROJECT  -- fix U: gradient ascent on W over the Stiefel manifold, with
                K and D recomputed from XW at every trial step

The final clustering is k-means on the row-normalised U.
"""

from typing import Optional, Dict, Any, List, Union
import torch
from torch import Tensor
import time
import warnings

from ..base.interfaces import SpectralDecomposer, PartitionStrategy
from ..base.data_structures import KDACState, RoundState
from ..base.errors import (
    ConfigurationError, InputError, NumericalError, PreconditionError,
    ConvergenceWarning
)
from ..kernels import Kernel, KernelType, make_kernel, generate_kernel_matrix
from ..utils.linalg import (
    sym, centering_matrix, generate_degree_matrix, row_normalize,
    retract_to_stiefel, identity_columns, fix_signs
)
from ..utils.decomposition import make_decomposer
from ..utils.convergence import (
    ChangeInObjective, ParameterChange, SubspaceChange, CombinedCriterion
)
from ..utils.validation import (
    validate_data, check_positive_int, split_prior_labels, stack_prior_labels,
    one_hot_labels
)
from ..utils.device import parse_device
from ..utils.metrics import hsic
from ..utils.profiler import KDACProfiler
from .kmeans import KMeans


class KDAC:
    """Kernel Dimension Alternative Clustering.

    Parameters
    ----------
    n_clusters : int, default=2
        Number of clusters c
    q : int, default=2
        Reduced dimension of the projection W; must not exceed c
    kernel : Kernel, KernelType or str, default=GaussianKernel(1.0)
        Kernel on the projected data
    kernel_param : float, optional
        Scalar parameter when ``kernel`` is a type: bandwidth (Gaussian),
        order (Polynomial) or offset (Linear)
    lambda_ : float, default=1.0
        Weight of the dissimilarity (HSIC) term against prior clusterings
    max_iter : int, default=50
        Maximum rounds of the alternating loop
    tol : float, default=1e-4
        Round-to-round change of U (subspace distance) and W (Frobenius)
        below which the loop has converged
    w_max_iter : int, default=20
        Maximum gradient steps per PROJECT phase
    w_tol : float, default=1e-6
        Tolerance of the gradient loop (tangent norm, step, relative objective)
    step_size : float, default=1.0
        Initial step length along the normalised ascent direction
    backend : str or SpectralDecomposer, default='cpu'
        Spectral decomposition backend: 'cpu', 'gpu', 'auto' or an instance
    device : str or torch.device, optional
        Device holding the engine's matrices (CPU by default)
    dtype : torch.dtype, default=torch.float64
        Floating point type of the engine's matrices
    n_init : int, default=10
        k-means restarts used by ``predict``
    partitioner : PartitionStrategy, optional
        Replaces the k-means partition used by ``predict``
    random_state : int, optional
        Seed for the partition step
    verbose : int, default=0
        Verbosity level (0=silent, 1=progress, 2=detailed)

    Attributes
    ----------
    history_ : list of RoundState
    n_iter_ : int
        Rounds run by the last fit
    converged_ : bool
    objective_ : float
        Objective value at the final U and W
    labels_ : Tensor of shape (n_samples,)
        Result of the last ``predict``
    profiler_ : KDACProfiler
    """

    _max_backtracks = 20
    _armijo = 1e-4

    def __init__(self,
                 n_clusters: int = 2,
                 q: int = 2,
                 kernel: Union[Kernel, KernelType, str, None] = None,
                 kernel_param: Optional[float] = None,
                 lambda_: float = 1.0,
                 max_iter: int = 50,
                 tol: float = 1e-4,
                 w_max_iter: int = 20,
                 w_tol: float = 1e-6,
                 step_size: float = 1.0,
                 backend: Union[str, SpectralDecomposer] = 'cpu',
                 device: Optional[Union[str, torch.device]] = None,
                 dtype: torch.dtype = torch.float64,
                 n_init: int = 10,
                 partitioner: Optional[PartitionStrategy] = None,
                 random_state: Optional[int] = None,
                 verbose: int = 0):
        self._n_clusters = 2
        self._q = 2
        self._kernel: Kernel = make_kernel(KernelType.GAUSSIAN, 1.0)
        self.configure(n_clusters, q,
                       kernel if kernel is not None else KernelType.GAUSSIAN,
                       kernel_param)

        self.lambda_ = self._check_param('lambda_', lambda_)
        self.max_iter = self._check_param('max_iter', max_iter)
        self.tol = self._check_param('tol', tol)
        self.w_max_iter = self._check_param('w_max_iter', w_max_iter)
        self.w_tol = self._check_param('w_tol', w_tol)
        self.step_size = self._check_param('step_size', step_size)
        self.backend = backend
        self.decomposer = make_decomposer(backend)
        self.device = self._check_param('device', device)
        self.dtype = dtype
        self.n_init = self._check_param('n_init', n_init)
        self.partitioner = partitioner
        self.random_state = random_state
        self.verbose = verbose

        # Fitted state, committed only by a successful fit
        self.state_: Optional[KDACState] = None
        self.history_: List[RoundState] = []
        self.n_iter_ = 0
        self.converged_ = False
        self.objective_: Optional[float] = None
        self.labels_: Optional[Tensor] = None
        self.profiler_ = KDACProfiler()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @staticmethod
    def _check_param(key: str, value):
        """Validated value of a scalar constructor parameter."""
        if key in ('max_iter', 'w_max_iter', 'n_init'):
            return check_positive_int(value, key)
        if key == 'lambda_':
            if value < 0:
                raise ConfigurationError(f"lambda_ must be non-negative, got {value}")
            return float(value)
        if key == 'step_size':
            if value <= 0:
                raise ConfigurationError(f"step_size must be positive, got {value}")
            return float(value)
        if key in ('tol', 'w_tol'):
            if value < 0:
                raise ConfigurationError(f"{key} must be non-negative, got {value}")
            return value
        if key == 'device':
            return parse_device(value)
        return value

    @staticmethod
    def _check_cq(n_clusters: int, q: int) -> None:
        if q > n_clusters:
            raise ConfigurationError(
                f"Reduced dimension q ({q}) cannot exceed cluster number c ({n_clusters})")

    @property
    def n_clusters(self) -> int:
        return self._n_clusters

    @n_clusters.setter
    def n_clusters(self, value: int) -> None:
        self.set_c(value)

    @property
    def q(self) -> int:
        return self._q

    @q.setter
    def q(self, value: int) -> None:
        self.set_q(value)

    @property
    def kernel(self) -> Kernel:
        return self._kernel

    @kernel.setter
    def kernel(self, value: Union[Kernel, KernelType, str]) -> None:
        self.set_kernel(value)

    def set_c(self, n_clusters: int) -> 'KDAC':
        """Set the number of clusters c; q <= c is checked immediately."""
        n_clusters = check_positive_int(n_clusters, 'n_clusters')
        self._check_cq(n_clusters, self._q)
        self._n_clusters = n_clusters
        return self

    def set_q(self, q: int) -> 'KDAC':
        """Set the reduced dimension q; q <= c is checked immediately."""
        q = check_positive_int(q, 'q')
        self._check_cq(self._n_clusters, q)
        self._q = q
        return self

    def set_kernel(self, kernel_type: Union[Kernel, KernelType, str],
                   kernel_param: Optional[float] = None) -> 'KDAC':
        """Set the kernel and its scalar parameter."""
        self._kernel = make_kernel(kernel_type, kernel_param)
        return self

    def configure(self, n_clusters: int, q: int,
                  kernel_type: Union[Kernel, KernelType, str, None] = None,
                  kernel_param: Optional[float] = None) -> 'KDAC':
        """Set c, q and the kernel together.

        Nothing is changed unless the whole configuration is valid.
        """
        n_clusters = check_positive_int(n_clusters, 'n_clusters')
        q = check_positive_int(q, 'q')
        self._check_cq(n_clusters, q)
        if kernel_type is None:
            kernel = self._kernel if kernel_param is None else make_kernel(self._kernel.kind, kernel_param)
        else:
            kernel = make_kernel(kernel_type, kernel_param)

        self._n_clusters = n_clusters
        self._q = q
        self._kernel = kernel
        return self

    def get_params(self, deep: bool = True) -> Dict[str, Any]:
        """Get parameters (sklearn compatibility)."""
        return {
            'n_clusters': self._n_clusters,
            'q': self._q,
            'kernel': self._kernel,
            'lambda_': self.lambda_,
            'max_iter': self.max_iter,
            'tol': self.tol,
            'w_max_iter': self.w_max_iter,
            'w_tol': self.w_tol,
            'step_size': self.step_size,
            'backend': self.backend,
            'device': self.device,
            'dtype': self.dtype,
            'n_init': self.n_init,
            'partitioner': self.partitioner,
            'random_state': self.random_state,
            'verbose': self.verbose
        }

    def set_params(self, **params) -> 'KDAC':
        """Set parameters (sklearn compatibility).

        Every value is validated before any of them is applied.
        """
        valid = self.get_params()
        for key in params:
            if key not in valid and key != 'kernel_param':
                raise ConfigurationError(f"Invalid parameter {key!r} for KDAC")

        config_keys = {'n_clusters', 'q', 'kernel', 'kernel_param'}
        checked = {key: self._check_param(key, value)
                   for key, value in params.items() if key not in config_keys}
        decomposer = make_decomposer(checked['backend']) if 'backend' in checked else None

        if config_keys & params.keys():
            self.configure(params.get('n_clusters', self._n_clusters),
                           params.get('q', self._q),
                           params.get('kernel'),
                           params.get('kernel_param'))

        if decomposer is not None:
            self.decomposer = decomposer
        for key, value in checked.items():
            setattr(self, key, value)
        return self

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------
    def fit(self, X: Optional[Tensor] = None, y=None) -> 'KDAC':
        """Fit KDAC.

        ``fit(X)`` finds the first clustering of X. ``fit(X, y)`` finds a
        clustering of X that differs from the prior clustering(s) ``y`` (a
        label vector or a list of them). ``fit()`` with no arguments finds an
        alternative to every clustering found so far on the same data: the
        current result of ``predict()`` is added to the priors first.

        Parameters
        ----------
        X : Tensor of shape (n_samples, n_features), optional
            Training data; omit to request an alternative clustering
        y : label vector or list of label vectors, optional
            Prior clusterings to stay dissimilar from

        Returns
        -------
        self : KDAC
        """
        if X is None:
            if y is not None:
                raise InputError("Prior labels need input data: call fit(X, y)")
            return self._fit_alternative()
        return self._fit_new(X, y)

    def fit_predict(self, X: Optional[Tensor] = None, y=None) -> Tensor:
        """Fit and return cluster labels."""
        self.fit(X, y)
        return self.predict()

    def _fit_new(self, X, y) -> 'KDAC':
        profiler = KDACProfiler()
        with profiler.fit.measure():
            with profiler.init.measure():
                X = validate_data(X, dtype=self.dtype, device=self.device,
                                  ensure_min_samples=1)
                n_samples = X.shape[0]
                if n_samples < self._n_clusters:
                    raise InputError(f"Found {n_samples} samples, but need at least "
                                     f"n_clusters={self._n_clusters}")
                if y is None:
                    y_matrix = torch.zeros(n_samples, 0, dtype=self.dtype, device=self.device)
                    n_prior = 0
                else:
                    priors = split_prior_labels(y)
                    y_matrix = stack_prior_labels(priors, n_samples, dtype=self.dtype,
                                                  device=self.device)
                    n_prior = len(priors)
                state = self._init(X, y_matrix, n_prior)
            history, converged = self._run(state, profiler)

        self._commit(state, history, converged, profiler)
        return self

    def _fit_alternative(self) -> 'KDAC':
        if self.state_ is None:
            raise PreconditionError("fit(X) must be called before fit() can "
                                    "search for an alternative clustering")
        previous = self.state_
        if previous.n_samples < self._n_clusters:
            raise InputError(f"Found {previous.n_samples} samples, but need at least "
                             f"n_clusters={self._n_clusters}")

        profiler = KDACProfiler()
        with profiler.fit.measure():
            with profiler.init.measure():
                # The clustering last returned by predict() becomes a prior
                if self.labels_ is not None:
                    labels = self.labels_
                else:
                    labels = self._partition(previous.u_normalized, profiler)
                y_matrix = torch.cat([
                    previous.y_matrix,
                    one_hot_labels(labels, dtype=previous.y_matrix.dtype,
                                   device=previous.device)
                ], dim=1)
                state = self._init(previous.x_matrix, y_matrix, previous.n_prior + 1)
            history, converged = self._run(state, profiler)

        self._commit(state, history, converged, profiler)
        return self

    def _init(self, X: Tensor, y_matrix: Tensor, n_prior: int) -> KDACState:
        """Build a fresh engine state for one fit."""
        n_samples, n_features = X.shape
        q = self._q
        if q > n_features:
            warnings.warn(f"Reduced dimension q={q} exceeds n_features={n_features}; "
                          f"using q={n_features}")
            q = n_features

        h_matrix = centering_matrix(n_samples, dtype=X.dtype, device=X.device)

        if y_matrix.shape[1] == 0:
            w_matrix = identity_columns(n_features, q, dtype=X.dtype, device=X.device)
        else:
            w_matrix = self._least_dependent_projection(X, h_matrix, y_matrix, q)

        return KDACState(
            x_matrix=X,
            w_matrix=w_matrix,
            h_matrix=h_matrix,
            y_matrix=y_matrix,
            n_prior=n_prior
        )

    @staticmethod
    def _least_dependent_projection(X: Tensor, h_matrix: Tensor,
                                    y_matrix: Tensor, q: int) -> Tensor:
        """Starting W for an alternative fit.

        The linear-kernel dependence Tr(W^T X^T H Y Y^T H X W) on the prior
        clusterings vanishes on the orthogonal complement of the columns of
        X^T H Y. W takes the q principal directions of the data inside that
        complement. When the complement has fewer than q dimensions, W takes
        the q eigenvectors of X^T H Y Y^T H X with the smallest eigenvalues.
        """
        n_features = X.shape[1]
        centered = h_matrix @ X
        cross = centered.t() @ y_matrix

        vectors, singular, _ = torch.linalg.svd(cross, full_matrices=False)
        if singular.numel() == 0 or singular.max() <= 0:
            rank = 0
        else:
            rank = int((singular > singular.max() * 1e-8).sum())

        if n_features - rank < q:
            eigvals, eigvecs = torch.linalg.eigh(sym(cross @ cross.t()))
            return retract_to_stiefel(fix_signs(eigvecs[:, :q]))

        dependent = vectors[:, :rank]
        complement = torch.eye(n_features, dtype=X.dtype, device=X.device) \
            - dependent @ dependent.t()
        covariance = sym(complement @ (centered.t() @ centered) @ complement)
        eigvals, eigvecs = torch.linalg.eigh(covariance)
        # eigh returns ascending order
        leading = eigvecs[:, torch.argsort(eigvals, descending=True)[:q]]
        return retract_to_stiefel(fix_signs(leading))

    def _run(self, state: KDACState, profiler: KDACProfiler):
        """Alternate EMBED and PROJECT until both stop changing."""
        u_criterion = SubspaceChange(tol=self.tol, parameter='u_matrix')
        w_criterion = ParameterChange(tol=self.tol, parameter='w_matrix')
        criterion = CombinedCriterion([u_criterion, w_criterion], mode='all')

        history: List[RoundState] = []
        converged = False
        start_time = time.time()

        if self.verbose:
            print(f"Fitting KDAC: n={state.n_samples}, d={state.n_features}, "
                  f"c={self._n_clusters}, q={state.w_matrix.shape[1]}, "
                  f"kernel={self._kernel}, priors={state.n_prior}")

        for iteration in range(self.max_iter):
            iter_start_time = time.time()

            # EMBED
            self._optimize_u(state, profiler)
            converged = criterion.check({
                'iteration': iteration,
                'u_matrix': state.u_matrix,
                'w_matrix': state.w_matrix
            })
            if iteration > 0:
                state.u_converged, state.w_converged = criterion.history[-1]['individual_results']
            objective = self._objective(state)

            round_state = RoundState(
                iteration=iteration,
                objective_value=objective,
                u_change=u_criterion.last_change,
                u_converged=state.u_converged,
                w_converged=state.w_converged
            )

            # PROJECT
            if not converged:
                w_before = state.w_matrix
                round_state.w_iterations = self._optimize_w(state, profiler)
                round_state.w_change = torch.norm(state.w_matrix - w_before, p='fro').item()

            history.append(round_state)

            iter_time = time.time() - iter_start_time
            if self.verbose >= 2 or (self.verbose >= 1 and iteration % 10 == 0):
                u_change = '-' if round_state.u_change is None else f"{round_state.u_change:.2e}"
                print(f"Round {iteration:3d}: objective = {objective:.6f} ↑ "
                      f"(dU = {u_change}, W steps = {round_state.w_iterations}) "
                      f"({iter_time:.3f}s)")

            if converged:
                if self.verbose:
                    print(f"Converged at round {iteration}")
                break

        if not converged:
            # The last phase was PROJECT; bring U back in line with W
            self._optimize_u(state, profiler)
            warnings.warn(f"KDAC did not converge after {self.max_iter} rounds; "
                          f"the embedding is still usable", ConvergenceWarning)

        if self.verbose:
            print(f"Total fitting time: {time.time() - start_time:.3f}s")
            if self.verbose >= 2:
                print(profiler.report())

        return history, converged

    def _commit(self, state: KDACState, history: List[RoundState],
                converged: bool, profiler: KDACProfiler) -> None:
        self.state_ = state
        self.history_ = history
        self.n_iter_ = len(history)
        self.converged_ = converged
        self.objective_ = self._objective(state)
        self.labels_ = None
        self.profiler_ = profiler

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def _optimize_u(self, state: KDACState, profiler: KDACProfiler) -> None:
        """EMBED: kernel, degree normalisation and leading eigenvectors for the current W."""
        with profiler.u.measure():
            # Project X onto the subspace W (n x d to n x q)
            projected = state.x_matrix @ state.w_matrix
            k_matrix = generate_kernel_matrix(projected, self._kernel)
            d_matrix, d_inv_sqrt = generate_degree_matrix(k_matrix)

            d_inv = torch.diagonal(d_inv_sqrt)
            l_matrix = sym(d_inv.unsqueeze(1) * k_matrix * d_inv.unsqueeze(0))

            u_matrix, eigenvalues = self.decomposer.decompose(l_matrix, self._n_clusters)

            state.k_matrix = k_matrix
            state.d_matrix = d_matrix
            state.d_inv_sqrt = d_inv_sqrt
            state.l_matrix = l_matrix
            state.u_matrix = u_matrix
            state.eigenvalues = eigenvalues
            state.u_normalized = row_normalize(u_matrix, p=2, dim=1)
            state.n_embed += 1

    def _has_priors(self, state: KDACState) -> bool:
        return state.y_matrix.shape[1] > 0 and self.lambda_ > 0

    def _projected_objective(self, state: KDACState, W: Tensor):
        """Objective at projection W with U fixed and D recomputed from K(XW).

        Tr(U^T D^(-1/2) K D^(-1/2) U) - lambda * HSIC(K, Y Y^T).

        Returns:
            value: Objective as a float
            k_matrix: K(XW)
            d_inv: Diagonal of D^(-1/2)

        Raises:
            NumericalError: If K(XW) has a non-positive degree
        """
        k_matrix = generate_kernel_matrix(state.x_matrix @ W, self._kernel)
        _, d_inv_sqrt = generate_degree_matrix(k_matrix)
        d_inv = torch.diagonal(d_inv_sqrt)

        scaled_u = d_inv.unsqueeze(1) * state.u_matrix
        value = torch.sum(scaled_u * (k_matrix @ scaled_u))
        if self._has_priors(state):
            value = value - self.lambda_ * hsic(k_matrix, state.y_matrix @ state.y_matrix.t())
        return value.item(), k_matrix, d_inv

    def _gamma(self, state: KDACState, k_matrix: Tensor, d_inv: Tensor) -> Tensor:
        """Derivative of the objective with respect to the entries of K.

        With a = D^(-1/2) U (rows a_i) and degrees d_i = sum_j K_ij,

            Gamma_ij = a_i . a_j - (s_i + s_j) / 2 - lambda / (n-1)^2 (HY)(HY)^T_ij
            s_i      = a_i . (K a)_i / d_i

        The s terms carry the dependence of D on K. Since dK/dW is symmetric,
        sum_ij Gamma_ij dK_ij/dW is the gradient of the objective in W.
        """
        scaled_u = d_inv.unsqueeze(1) * state.u_matrix
        gamma = scaled_u @ scaled_u.t()

        degree_terms = d_inv ** 2 * torch.sum(scaled_u * (k_matrix @ scaled_u), dim=1)
        gamma = gamma - 0.5 * (degree_terms.unsqueeze(1) + degree_terms.unsqueeze(0))

        if self._has_priors(state):
            centered_y = state.h_matrix @ state.y_matrix
            scale = self.lambda_ / max(state.n_samples - 1, 1) ** 2
            gamma = gamma - scale * (centered_y @ centered_y.t())

        return sym(gamma)

    def _objective(self, state: KDACState) -> float:
        """Tr(U^T L U) - lambda * HSIC(K, Y Y^T) at the current state."""
        value = torch.trace(state.u_matrix.t() @ state.l_matrix @ state.u_matrix)
        if self._has_priors(state):
            value = value - self.lambda_ * hsic(state.k_matrix,
                                                state.y_matrix @ state.y_matrix.t())
        return value.item()

    def _optimize_w(self, state: KDACState, profiler: KDACProfiler) -> int:
        """PROJECT: gradient ascent on W over the Stiefel manifold.

        U is held at its value from the last EMBED phase; K and D follow W.
        Every accepted step raises the objective, so together with EMBED
        (which maximises over U) a round never lowers it.

        Returns:
            Number of accepted gradient steps
        """
        with profiler.w.measure():
            X = state.x_matrix
            W = state.w_matrix

            with profiler.update_g_of_w.measure():
                start, k_matrix, d_inv = self._projected_objective(state, W)
            current = start
            criterion = ChangeInObjective(rel_tol=self.w_tol, abs_tol=1e-12)
            criterion.check({'iteration': 0, 'objective': current})

            n_steps = 0
            for step in range(self.w_max_iter):
                with profiler.gen_phi.measure():
                    gamma = self._gamma(state, k_matrix, d_inv)
                with profiler.gen_grad.measure():
                    gradient = self._kernel.weighted_gradient(X, W, gamma, k_matrix=k_matrix)

                # Riemannian gradient: project onto the tangent space at W
                tangent = gradient - W @ sym(W.t() @ gradient)
                tangent_norm = torch.norm(tangent, p='fro').item()
                if tangent_norm < self.w_tol:
                    break

                direction = tangent / tangent_norm
                step_length = self.step_size
                trial = None
                for _ in range(self._max_backtracks):
                    candidate = retract_to_stiefel(W + step_length * direction)
                    with profiler.update_g_of_w.measure():
                        try:
                            trial = self._projected_objective(state, candidate)
                        except NumericalError:
                            # Degenerate degrees at this candidate; shorten the step
                            trial = None
                    # Armijo condition; the slope along direction is tangent_norm
                    if trial is not None and \
                            trial[0] >= current + self._armijo * step_length * tangent_norm:
                        break
                    trial = None
                    step_length *= 0.5

                if trial is None:
                    break

                moved = torch.norm(candidate - W, p='fro').item()
                W = candidate
                current, k_matrix, d_inv = trial
                n_steps += 1

                if criterion.check({'iteration': step + 1, 'objective': current}) \
                        or moved < self.w_tol:
                    break

            if n_steps > 0 and current >= start:
                state.w_matrix = W
                state.invalidate_embedding()
            else:
                n_steps = 0

        return n_steps

    # ------------------------------------------------------------------
    # Prediction and accessors
    # ------------------------------------------------------------------
    def predict(self) -> Tensor:
        """Cluster labels from k-means on the rows of the normalised embedding.

        Returns
        -------
        labels : Tensor of shape (n_samples,)
            int64 labels in [0, n_clusters)
        """
        if self.state_ is None or self.state_.u_normalized is None:
            raise PreconditionError("Model must be fitted before calling predict")

        self.labels_ = self._partition(self.state_.u_normalized, self.profiler_)
        return self.labels_.clone()

    def _partition(self, u_normalized: Tensor, profiler: KDACProfiler) -> Tensor:
        partitioner = self.partitioner
        if partitioner is None:
            partitioner = KMeans(n_init=self.n_init, random_state=self.random_state)

        with profiler.kmeans.measure():
            labels = partitioner.partition(u_normalized, u_normalized.shape[1])
        return labels.long()

    def _snapshot(self, name: str) -> Tensor:
        if self.state_ is None:
            raise PreconditionError("Model must be fitted first")
        return getattr(self.state_, name).clone()

    @property
    def fitted_(self) -> bool:
        return self.state_ is not None

    @property
    def u_matrix_(self) -> Tensor:
        """Embedding U (n, c)."""
        return self._snapshot('u_matrix')

    @property
    def u_normalized_(self) -> Tensor:
        """Row-normalised embedding (n, c)."""
        return self._snapshot('u_normalized')

    @property
    def k_matrix_(self) -> Tensor:
        """Kernel matrix K (n, n)."""
        return self._snapshot('k_matrix')

    @property
    def d_matrix_(self) -> Tensor:
        """Degree matrix D (n, n)."""
        return self._snapshot('d_matrix')

    @property
    def d_inv_sqrt_(self) -> Tensor:
        """D^(-1/2) (n, n)."""
        return self._snapshot('d_inv_sqrt')

    @property
    def l_matrix_(self) -> Tensor:
        """Normalised affinity L = D^(-1/2) K D^(-1/2) (n, n)."""
        return self._snapshot('l_matrix')

    @property
    def w_matrix_(self) -> Tensor:
        """Projection W (d, q)."""
        return self._snapshot('w_matrix')

    @property
    def h_matrix_(self) -> Tensor:
        """Centering matrix H (n, n)."""
        return self._snapshot('h_matrix')

    @property
    def y_matrix_(self) -> Tensor:
        """One-hot prior clusterings Y (n, c0 + c1 + ...)."""
        return self._snapshot('y_matrix')

    @property
    def eigenvalues_(self) -> Tensor:
        """Eigenvalues of L matching the columns of U."""
        return self._snapshot('eigenvalues')

    def __repr__(self) -> str:
        return (f"KDAC(n_clusters={self._n_clusters}, q={self._q}, "
                f"kernel={self._kernel!r}, lambda_={self.lambda_})")
