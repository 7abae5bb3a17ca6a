"""
Clustering comparison metrics.

External metrics compare two labelings (an alternative clustering against a
prior one, or against ground truth). ``hsic`` measures the dependence between
two kernel matrices and is the dissimilarity term of the KDAC objective.
"""

import torch
from torch import Tensor


def contingency_matrix(labels_true: Tensor, labels_pred: Tensor) -> Tensor:
    """Build contingency matrix for comparing clusterings.

    Args:
        labels_true: (n,) true labels
        labels_pred: (n,) predicted labels

    Returns:
        Contingency matrix C where C[i,j] is the number of samples
        with true label i and predicted label j
    """
    labels_true = torch.as_tensor(labels_true).long().cpu()
    labels_pred = torch.as_tensor(labels_pred).long().cpu()

    n_true = labels_true.max().item() + 1
    n_pred = labels_pred.max().item() + 1

    flat = labels_true * n_pred + labels_pred
    counts = torch.bincount(flat, minlength=n_true * n_pred)
    return counts.reshape(n_true, n_pred)


def adjusted_rand_score(labels_true: Tensor, labels_pred: Tensor) -> float:
    """Compute Adjusted Rand Index.

    ARI is 1.0 for perfect match, 0.0 for random labeling.

    Args:
        labels_true: (n,) ground truth labels
        labels_pred: (n,) predicted labels

    Returns:
        ARI score in [-1, 1]
    """
    contingency = contingency_matrix(labels_true, labels_pred).double()

    row_sum = contingency.sum(dim=1)
    col_sum = contingency.sum(dim=0)
    n = contingency.sum()

    sum_comb = torch.sum(contingency * (contingency - 1)) / 2
    sum_comb_r = torch.sum(row_sum * (row_sum - 1)) / 2
    sum_comb_c = torch.sum(col_sum * (col_sum - 1)) / 2

    expected_index = sum_comb_r * sum_comb_c / (n * (n - 1) / 2)
    max_index = (sum_comb_r + sum_comb_c) / 2

    if max_index - expected_index == 0:
        return 1.0

    ari = (sum_comb - expected_index) / (max_index - expected_index)
    return ari.item()


def normalized_mutual_info_score(labels_true: Tensor, labels_pred: Tensor,
                                 average_method: str = 'arithmetic') -> float:
    """Compute Normalized Mutual Information.

    NMI is 1.0 for perfect match, 0.0 for independent labelings.

    Args:
        labels_true: (n,) ground truth labels
        labels_pred: (n,) predicted labels
        average_method: How to average ('arithmetic', 'geometric', 'max', 'min')

    Returns:
        NMI score in [0, 1]
    """
    contingency = contingency_matrix(labels_true, labels_pred).double()

    row_sum = contingency.sum(dim=1)
    col_sum = contingency.sum(dim=0)
    n = contingency.sum()

    def entropy(counts):
        p = counts / counts.sum()
        p = p[p > 0]
        return -torch.sum(p * torch.log(p))

    h_true = entropy(row_sum)
    h_pred = entropy(col_sum)

    nz = contingency > 0
    outer = row_sum.unsqueeze(1) * col_sum.unsqueeze(0)
    mi = torch.sum((contingency[nz] / n) * torch.log(contingency[nz] * n / outer[nz]))

    if average_method == 'arithmetic':
        denominator = (h_true + h_pred) / 2
    elif average_method == 'geometric':
        denominator = torch.sqrt(h_true * h_pred)
    elif average_method == 'max':
        denominator = torch.max(h_true, h_pred)
    elif average_method == 'min':
        denominator = torch.min(h_true, h_pred)
    else:
        raise ValueError(f"Unknown average method: {average_method}")

    if denominator == 0:
        return 1.0 if mi == 0 else 0.0

    return max((mi / denominator).item(), 0.0)


def hsic(k_matrix: Tensor, l_matrix: Tensor) -> Tensor:
    """Empirical Hilbert-Schmidt independence criterion.

    HSIC(K, L) = Tr(K H L H) / (n - 1)^2 with H the centering matrix.

    Args:
        k_matrix: (n, n) kernel matrix of the first variable
        l_matrix: (n, n) kernel matrix of the second variable

    Returns:
        Scalar tensor, >= 0 for PSD inputs
    """
    n = k_matrix.shape[0]
    # H L H without forming H: double-center L
    l_centered = l_matrix - l_matrix.mean(dim=0, keepdim=True)
    l_centered = l_centered - l_centered.mean(dim=1, keepdim=True)
    return torch.sum(k_matrix * l_centered) / max(n - 1, 1) ** 2
