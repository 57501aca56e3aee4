"""Averaging of confusion matrix structures into per-threshold metrics."""

import logging
import warnings
from typing import Optional, Union

import numpy as np

from pfpeval.cmstruct import ConfusionMatrices
from pfpeval.config import AvgMode, EvalMode
from pfpeval.errors import InputValidationError
from pfpeval.metrics import Metric, parse_metric

logger = logging.getLogger(__name__)


def select_entities(cm: ConfusionMatrices, eval_mode, qualify: Optional[np.ndarray] = None) -> np.ndarray:
    """(entities, k, 4) confusion matrices taking part in the average."""
    eval_mode = EvalMode.parse(eval_mode)
    if qualify is None:
        qualify = cm.qualified
    else:
        qualify = np.asarray(qualify)
        if qualify.dtype != bool or qualify.shape != (len(cm),):
            raise InputValidationError(
                f"qualify must be a boolean vector of length {len(cm)}, got shape {qualify.shape}"
            )
    if eval_mode == EvalMode.PARTIAL:
        return cm.cm[qualify]
    return cm.cm


def nanmean(values: np.ndarray, axis: int = 0) -> np.ndarray:
    """Mean ignoring non-finite values; all-NaN (or empty) slices give NaN."""
    values = np.where(np.isfinite(values), values, np.nan)
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', category=RuntimeWarning)
        return np.nanmean(values, axis=axis)


def cm_average(cm: ConfusionMatrices, metric: Union[str, Metric],
               eval_mode: Union[str, EvalMode] = EvalMode.FULL,
               avg_mode: Union[str, AvgMode] = AvgMode.MACRO,
               qualify: Optional[np.ndarray] = None,
               beta: float = 1.0, order: float = 2.0) -> np.ndarray:
    """Average a metric over the entities of ``cm``.

    Args:
        cm: confusion matrix structure from ``term_cm`` or ``seq_cm``.
        metric: metric tag ('pr', 'wpr', 'rm', 'nrm', 'f', 'wf', 'sd', 'nsd',
            'ss', 'acc') or a Metric instance.
        eval_mode: 'full' uses every entity, 'partial' only qualified ones.
        avg_mode: 'macro' averages the per-entity metric skipping undefined
            values; 'micro' computes the metric of the averaged counts.
        qualify: boolean mask over entities, default ``cm.npp > 0``.
        beta: F-measure beta, used when ``metric`` is a tag.
        order: semantic distance order, used when ``metric`` is a tag.

    Returns:
        (k, d) array, one row per threshold and one column per metric component.
    """
    metric = parse_metric(metric, beta=beta, order=order)
    metric.check_centric(cm.centric)
    avg_mode = AvgMode.parse(avg_mode)
    cms = select_entities(cm, eval_mode, qualify)
    logger.debug(f"Averaging '{metric.name}' ({avg_mode.value}) over {cms.shape[0]} of {len(cm)} entities")

    if avg_mode == AvgMode.MACRO:
        if cms.shape[0] == 0:
            return np.full((len(cm.tau), len(metric.columns)), np.nan)
        return nanmean(metric.compute(cms), axis=0)

    if cms.shape[0] == 0:
        mean_cm = np.full((len(cm.tau), 4), np.nan)
    else:
        mean_cm = cms.astype(float).mean(axis=0)
    return metric.compute(mean_cm)
