import numpy as np
import pytest

from pfpeval.config import AvgMode, EvalConfig, EvalMode, default_tau, validate_tau
from pfpeval.errors import InputValidationError


def test_defaults():
    config = EvalConfig()
    assert config.tau.shape == (101,)
    assert config.tau[30] == 0.3
    assert config.eval_mode == EvalMode.FULL
    assert config.avg_mode == AvgMode.MACRO
    assert config.toi == 'noroot'
    assert config.weight == 'equal'


def test_mode_aliases():
    assert EvalConfig(eval_mode='2').eval_mode == EvalMode.PARTIAL
    assert EvalConfig(avg_mode='MICRO').avg_mode == AvgMode.MICRO


def test_all_problems_reported_together():
    with pytest.raises(InputValidationError) as excinfo:
        EvalConfig(tau=[0.5, 2.0], eval_mode='x', beta=0, toi='some')
    message = str(excinfo.value)
    assert 'tau' in message
    assert 'evaluation mode' in message
    assert 'beta' in message
    assert 'toi' in message


def test_weight_vector_must_be_non_negative():
    with pytest.raises(InputValidationError):
        EvalConfig(weight=[1.0, -1.0])


def test_from_yaml(tmp_path):
    path = tmp_path / 'eval.yaml'
    path.write_text("eval_mode: partial\navg_mode: micro\ntau:\n  step: 0.25\nbeta: 0.5\n")
    config = EvalConfig.from_yaml(path)
    assert config.eval_mode == EvalMode.PARTIAL
    assert config.avg_mode == AvgMode.MICRO
    np.testing.assert_allclose(config.tau, [0.0, 0.25, 0.5, 0.75, 1.0])
    assert config.beta == 0.5


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(InputValidationError):
        EvalConfig.from_dict({'metric': 'pr'})


def test_replace_revalidates():
    config = EvalConfig()
    assert config.replace(order=1.0).order == 1.0
    with pytest.raises(InputValidationError):
        config.replace(order=-1.0)


def test_default_tau_step():
    np.testing.assert_allclose(default_tau(0.5), [0.0, 0.5, 1.0])


@pytest.mark.parametrize("step", [0, -0.1, 1.5, 0.3, 0.03])
def test_default_tau_rejects_bad_step(step):
    with pytest.raises(InputValidationError):
        default_tau(step)


def test_from_dict_rejects_zero_step():
    with pytest.raises(InputValidationError):
        EvalConfig.from_dict({'tau': {'step': 0}})


def test_descending_thresholds_rejected():
    with pytest.raises(InputValidationError):
        validate_tau([0.5, 0.4, 0.3])
    with pytest.raises(InputValidationError):
        EvalConfig(tau=[1.0, 0.0])
