"""Utility functions for the KDAC engine."""

from .linalg import (
    sym,
    centering_matrix,
    generate_degree_matrix,
    row_normalize,
    retract_to_stiefel,
    identity_columns,
    safe_eigh,
    fix_signs,
    subspace_distance
)

from .decomposition import (
    CPUEigenSolver,
    CUDAEigenSolver,
    make_decomposer
)

from .convergence import (
    ChangeInAssignments,
    ChangeInObjective,
    ParameterChange,
    SubspaceChange,
    CombinedCriterion
)

from .metrics import (
    contingency_matrix,
    adjusted_rand_score,
    normalized_mutual_info_score,
    hsic
)

from .validation import (
    validate_data,
    validate_labels,
    check_positive_int,
    check_random_state,
    one_hot_labels,
    split_prior_labels,
    stack_prior_labels
)

from .device import (
    cuda_available,
    get_default_device,
    parse_device,
    clear_cache
)

from .profiler import Timer, KDACProfiler

__all__ = [
    # Linear algebra
    'sym',
    'centering_matrix',
    'generate_degree_matrix',
    'row_normalize',
    'retract_to_stiefel',
    'identity_columns',
    'safe_eigh',
    'fix_signs',
    'subspace_distance',

    # Spectral decomposition
    'CPUEigenSolver',
    'CUDAEigenSolver',
    'make_decomposer',

    # Convergence criteria
    'ChangeInAssignments',
    'ChangeInObjective',
    'ParameterChange',
    'SubspaceChange',
    'CombinedCriterion',

    # Metrics
    'contingency_matrix',
    'adjusted_rand_score',
    'normalized_mutual_info_score',
    'hsic',

    # Validation
    'validate_data',
    'validate_labels',
    'check_positive_int',
    'check_random_state',
    'one_hot_labels',
    'split_prior_labels',
    'stack_prior_labels',

    # Device management
    'cuda_available',
    'get_default_device',
    'parse_device',
    'clear_cache',

    # Profiling
    'Timer',
    'KDACProfiler'
]
