import numpy as np
import pytest

from pfpeval.errors import IncompatibleMetricError, InputValidationError
from pfpeval.metrics import (Accuracy, FMeasure, PrecisionRecall, RemainingUncertainty,
                             SemanticDistance, SensitivitySpecificity, f_beta, parse_metric)

# (TN, FP, FN, TP)
CM = np.array([
    [5.0, 1.0, 1.0, 3.0],
    [8.0, 0.0, 2.0, 0.0],
])


def test_precision_recall():
    values = PrecisionRecall().compute(CM)
    np.testing.assert_allclose(values[0], [0.75, 0.75])
    assert np.isnan(values[1, 0])
    assert values[1, 1] == 0.0


def test_f_measure_boundaries():
    assert f_beta(1.0, 1.0, 1.0) == 1.0
    assert np.isnan(f_beta(0.0, 0.0, 1.0))
    assert f_beta(0.0, 0.5, 1.0) == 0.0


def test_f_beta_weights_recall():
    f2 = FMeasure(beta=2.0).compute(np.array([[0.0, 3.0, 1.0, 1.0]]))
    # precision 0.25, recall 0.5
    np.testing.assert_allclose(f2[0, 0], 5 * 0.25 * 0.5 / (4 * 0.25 + 0.5))


def test_remaining_uncertainty_and_semantic_distance():
    cm = np.array([[0.0, 3.0, 4.0, 5.0]])
    np.testing.assert_allclose(RemainingUncertainty().compute(cm), [[4.0, 3.0]])
    np.testing.assert_allclose(RemainingUncertainty(normalized=True).compute(cm), [[4 / 12, 3 / 12]])
    np.testing.assert_allclose(SemanticDistance().compute(cm), [[5.0]])
    np.testing.assert_allclose(SemanticDistance(order=1.0).compute(cm), [[7.0]])


def test_sensitivity_specificity_and_accuracy():
    np.testing.assert_allclose(SensitivitySpecificity().compute(CM[:1]), [[0.75, 1 / 6]])
    np.testing.assert_allclose(Accuracy().compute(CM), [[0.8], [0.8]])


def test_semantic_metrics_are_sequence_only():
    for tag in ('rm', 'nrm', 'sd', 'nsd'):
        with pytest.raises(IncompatibleMetricError):
            parse_metric(tag).check_centric('term')
        parse_metric(tag).check_centric('sequence')
    parse_metric('pr').check_centric('term')


def test_parse_metric():
    assert parse_metric('wf', beta=0.5) == FMeasure(beta=0.5, weighted=True)
    assert parse_metric('nsd', order=3.0) == SemanticDistance(normalized=True, order=3.0)
    assert parse_metric('wpr').name == 'wpr'
    metric = Accuracy()
    assert parse_metric(metric) is metric


def test_parse_metric_rejects_unknown_and_bad_parameters():
    with pytest.raises(InputValidationError):
        parse_metric('auc')
    with pytest.raises(InputValidationError):
        parse_metric('f', beta=0)
    with pytest.raises(InputValidationError):
        parse_metric('sd', order=-1.0)
