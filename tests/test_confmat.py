import numpy as np
import pytest
import scipy.sparse as ssp

from pfpeval.confmat import FN, FP, TN, TP, confmat
from pfpeval.errors import InputValidationError

TAU = np.array([0.0, 0.5, 1.0])


def test_example_column():
    cm = confmat([0.8, 0.2, 0.0], [1, 0, 1], TAU)
    np.testing.assert_array_equal(cm, [[0, 1, 1, 1], [1, 0, 1, 1], [1, 0, 2, 0]])
    assert np.issubdtype(cm.dtype, np.integer)


def test_sparse_column_matches_dense():
    scores = np.array([0.0, 0.3, 0.9, 0.0, 0.5])
    truth = np.array([1, 0, 1, 0, 1])
    tau = np.linspace(0, 1, 11)
    dense = confmat(scores, truth, tau)
    sparse = confmat(ssp.csc_matrix(scores.reshape(-1, 1)), ssp.csr_matrix(truth.reshape(1, -1)), tau)
    np.testing.assert_array_equal(dense, sparse)


def test_counts_sum_to_length_and_are_monotone():
    rng = np.random.default_rng(0)
    scores = np.round(rng.random(50), 2) * (rng.random(50) > 0.3)
    truth = rng.random(50) > 0.5
    tau = np.linspace(0, 1, 101)
    cm = confmat(scores, truth, tau)

    assert np.all(cm.sum(axis=1) == 50)
    assert np.all(cm >= 0)
    assert np.all(np.diff(cm[:, TP]) <= 0)
    assert np.all(np.diff(cm[:, FP]) <= 0)
    assert np.all(np.diff(cm[:, TN]) >= 0)
    assert np.all(np.diff(cm[:, FN]) >= 0)


def test_score_equal_to_threshold_is_negative():
    cm = confmat([0.5, 0.0], [1, 1], [0.0, 0.5])
    # zero scores are never predicted, ties with tau are not predicted
    np.testing.assert_array_equal(cm[:, TP], [1, 0])
    np.testing.assert_array_equal(cm[:, FN], [1, 2])


def test_empty_vector():
    cm = confmat(np.zeros(0), np.zeros(0), TAU)
    np.testing.assert_array_equal(cm, np.zeros((3, 4)))


def test_constant_scores():
    cm = confmat([0.4, 0.4, 0.4], [1, 0, 0], TAU)
    np.testing.assert_array_equal(cm[0], [0, 2, 0, 1])
    np.testing.assert_array_equal(cm[1], [2, 0, 1, 0])


def test_weighted_counts():
    weights = np.array([2.0, 0.5, 1.0])
    cm = confmat([0.8, 0.2, 0.0], [1, 0, 1], TAU, weights=weights)
    np.testing.assert_allclose(cm[0], [0.0, 0.5, 1.0, 2.0])
    np.testing.assert_allclose(cm[2], [0.5, 0.0, 3.0, 0.0])
    np.testing.assert_allclose(cm.sum(axis=1), weights.sum())


def test_length_mismatch():
    with pytest.raises(InputValidationError):
        confmat([0.1, 0.2], [1], TAU)


def test_weight_length_mismatch():
    with pytest.raises(InputValidationError):
        confmat([0.1, 0.2], [1, 0], TAU, weights=[1.0])


@pytest.mark.parametrize("tau", [[-0.1, 0.5], [0.5, 1.5], []])
def test_invalid_thresholds(tau):
    with pytest.raises(InputValidationError):
        confmat([0.1], [1], tau)
