import numpy as np
import pytest

from pfpeval.averaging import cm_average
from pfpeval.cmstruct import seq_cm, term_cm
from pfpeval.config import EvalConfig
from pfpeval.errors import InputCountError, InputValidationError
from pfpeval.evaluate import convert_cm, seq_metric, term_auc, term_metric
from pfpeval.extremum import CurveOptimum

TAU = [0.0, 0.5, 1.0]


def test_seq_pr_curve(go_example):
    target, pred, truth = go_example
    pr = seq_metric(target, pred, truth, 'pr', tau=TAU)
    np.testing.assert_allclose(pr, [[7 / 12, 0.5], [0.5, 0.25], [np.nan, 0.0]])


def test_seq_fmax(go_example):
    target, pred, truth = go_example
    best = seq_metric(target, pred, truth, 'fmax', tau=TAU)
    assert isinstance(best, CurveOptimum)
    assert best.value == pytest.approx(7 / 13)
    assert best.tau == 0.0
    assert best.point == pytest.approx((7 / 12, 0.5))


def test_seq_fmax_partial(go_example):
    target, pred, truth = go_example
    best = seq_metric(target, pred, truth, 'fmax', tau=TAU, eval_mode='partial')
    assert best.value == pytest.approx(14 / 19)


def test_seq_explicit_qualify_follows_target(go_example):
    target, pred, truth = go_example
    qualify = np.array([True, False, False, False, True])
    pr = seq_metric(target + ['P5'], pred, truth, 'pr', tau=TAU,
                    eval_mode='partial', qualify=qualify)
    np.testing.assert_allclose(pr[0], [2 / 3, 1.0])


def test_seq_qualify_length(go_example):
    target, pred, truth = go_example
    with pytest.raises(InputValidationError):
        seq_metric(target, pred, truth, 'pr', qualify=np.array([True]))


def test_seq_smin_with_explicit_weights(go_example):
    target, pred, truth = go_example
    config = EvalConfig(tau=TAU, weight=np.array([0.0, 1.0, 2.0, 4.0]))
    best = seq_metric(target, pred, truth, 'smin', config=config)
    assert best.value == pytest.approx(np.sqrt(2.5))
    assert best.tau == 0.5
    assert best.point == pytest.approx((1.5, 0.5))


def test_weighted_metrics_default_to_eia(go_example):
    target, pred, truth = go_example
    wpr = seq_metric(target, pred, truth, 'wpr', tau=TAU)
    expected = cm_average(seq_cm(target, pred, truth, tau=TAU, weight='eia'), 'wpr')
    np.testing.assert_allclose(wpr, expected)


def test_seq_unknown_metric(go_example):
    target, pred, truth = go_example
    with pytest.raises(InputValidationError):
        seq_metric(target, pred, truth, 'auc')


def test_unknown_option(go_example):
    target, pred, truth = go_example
    with pytest.raises(InputValidationError):
        seq_metric(target, pred, truth, 'pr', threshold=0.5)


def test_missing_structure(go_example):
    target, pred, _ = go_example
    with pytest.raises(InputCountError):
        seq_metric(target, pred, None, 'pr')


def test_term_fmax(example):
    target, pred, truth = example
    best = term_metric(target, pred, truth, 'fmax', tau=TAU)
    assert best.value == pytest.approx(1.5 / 1.75)
    assert best.tau == 0.5


def test_term_metric_rejects_semantic_distance(example):
    target, pred, truth = example
    with pytest.raises(InputValidationError):
        term_metric(target, pred, truth, 'smin')


def test_convert_cm(example):
    target, pred, truth = example
    cm = term_cm(target, pred, truth, tau=TAU, date='2015-10-21')
    converted = convert_cm(cm, 'pr')
    assert converted.metric.shape == (2, 3, 2)
    assert converted.date == '2015-10-21'
    np.testing.assert_allclose(converted.metric[0, 1], [1.0, 0.5])

    frame = converted.to_frame()
    assert list(frame.columns) == ['entity', 'tau', 'precision', 'recall']
    assert len(frame) == 6
    assert frame['entity'].tolist()[:3] == ['T1', 'T1', 'T1']


def test_term_auc(example):
    target, pred, truth = example
    cm = term_cm(target, pred, truth, tau=np.linspace(0, 1, 101))
    aucs = term_auc(cm)
    assert aucs['T1'] == pytest.approx(0.5)
    assert aucs['T2'] == pytest.approx(1.0)


def test_term_auc_needs_term_centric(go_example):
    target, pred, truth = go_example
    with pytest.raises(InputValidationError):
        term_auc(seq_cm(target, pred, truth, tau=TAU))
