"""Per-entity confusion matrices over a threshold sweep.

A confusion matrix is stored as a row ``(TN, FP, FN, TP)``. An entry counts as a
positive prediction at threshold ``tau`` when ``score > tau``; since thresholds
are non-negative only entries with a positive score can ever be predicted, so
the sweep only needs to visit the nonzero scores of a (sparse) vector.
"""

from typing import Optional

import numpy as np
import scipy.sparse as ssp

from pfpeval.config import validate_tau
from pfpeval.errors import InputValidationError

TN, FP, FN, TP = 0, 1, 2, 3


def _suffix_sums(x: np.ndarray) -> np.ndarray:
    """s[i] = x[i:].sum(), with a trailing 0 so that s[len(x)] means nothing selected."""
    return np.concatenate([np.cumsum(x[::-1])[::-1], np.zeros(1, dtype=x.dtype)])


def sweep(values: np.ndarray, hits: np.ndarray, value_weights: np.ndarray,
          pos_total, total, tau: np.ndarray) -> np.ndarray:
    """Confusion matrices for one entity from its positive-score entries.

    Args:
        values: positive scores of the entity.
        hits: boolean, whether each of those entries is a true label.
        value_weights: weight of each of those entries.
        pos_total: total weight of true labels of the entity.
        total: total weight of all entries of the entity.
        tau: thresholds.

    Returns:
        (k, 4) array of (TN, FP, FN, TP).
    """
    order = np.argsort(values, kind='stable')
    v = values[order]
    w = value_weights[order]
    hit = hits[order]

    cut = np.searchsorted(v, tau, side='right')
    tp = _suffix_sums(w * hit)[cut]
    fp = _suffix_sums(w * ~hit)[cut]
    fn = pos_total - tp
    tn = total - pos_total - fp

    cm = np.stack([tn, fp, fn, tp], axis=1)
    if np.issubdtype(cm.dtype, np.floating):
        # cumulative sums of weights leave tiny negative residues
        cm = np.clip(cm, 0.0, None)
    return cm


def _vector(x, name: str):
    """Return (length, nonzero indices, nonzero values) of a dense or sparse vector."""
    if ssp.issparse(x):
        if min(x.shape) != 1:
            raise InputValidationError(f"{name} must be a vector, got shape {x.shape}")
        coo = ssp.coo_matrix(x)
        idx = coo.col if coo.shape[0] == 1 else coo.row
        n = max(coo.shape)
        vals = coo.data
        keep = vals != 0
        return n, idx[keep].astype(int), vals[keep].astype(float)

    arr = np.asarray(x, dtype=float)
    if arr.ndim == 2 and min(arr.shape) == 1:
        arr = arr.ravel()
    if arr.ndim != 1:
        raise InputValidationError(f"{name} must be a vector, got shape {arr.shape}")
    idx = np.flatnonzero(arr)
    return arr.size, idx, arr[idx]


def confmat(scores, truth, tau, weights: Optional[np.ndarray] = None) -> np.ndarray:
    """Confusion matrices of one score vector against one binary truth vector.

    Args:
        scores: predicted scores (dense array or sparse 1 x n / n x 1).
        truth: binary ground truth, same length as ``scores``.
        tau: thresholds in [0, 1].
        weights: optional per-entry weights; counts become weight sums.

    Returns:
        (k, 4) array of (TN, FP, FN, TP), one row per threshold. Integer counts
        when unweighted.
    """
    tau = validate_tau(tau)
    n, s_idx, s_val = _vector(scores, 'scores')
    n_truth, t_idx, _ = _vector(truth, 'truth')
    if n != n_truth:
        raise InputValidationError(f"scores and truth differ in length ({n} vs {n_truth})")

    if weights is None:
        w_pos = np.ones(s_idx.size, dtype=np.int64)
        pos_total, total = t_idx.size, n
    else:
        weights = np.asarray(weights, dtype=float).ravel()
        if weights.size != n:
            raise InputValidationError(f"weights must have length {n}, got {weights.size}")
        w_pos = weights[s_idx]
        pos_total, total = weights[t_idx].sum(), weights.sum()

    hits = np.isin(s_idx, t_idx)
    return sweep(s_val, hits, w_pos, pos_total, total, tau)
