"""Evaluation entry points: confusion matrices -> averaged curves or best points."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.metrics import auc

from pfpeval.averaging import cm_average
from pfpeval.cmstruct import ConfusionMatrices, seq_cm, term_cm
from pfpeval.config import EvalConfig, EvalMode
from pfpeval.errors import InputCountError, InputValidationError
from pfpeval.extremum import CurveOptimum, fmax_curve, smin_curve
from pfpeval.metrics import SensitivitySpecificity, parse_metric
from pfpeval.structures import Annotation, Prediction

logger = logging.getLogger(__name__)

# entry-point metric -> averaged metric
SEQ_METRICS = {
    'pr': 'pr',
    'wpr': 'wpr',
    'rm': 'rm',
    'nrm': 'nrm',
    'fmax': 'pr',
    'wfmax': 'wpr',
    'smin': 'rm',
    'nsmin': 'nrm',
}
TERM_METRICS = {
    'pr': 'pr',
    'f': 'f',
    'ss': 'ss',
    'acc': 'acc',
    'fmax': 'pr',
}
WEIGHTED_SEQ_METRICS = ('wpr', 'wfmax', 'rm', 'nrm', 'smin', 'nsmin')


@dataclass(frozen=True, eq=False)
class MetricStruct:
    """Per-entity metric values, ``metric[i, j]`` for entity i at threshold j."""

    centric: str
    metric_name: str
    columns: tuple
    entities: List[str]
    tau: np.ndarray
    metric: np.ndarray
    date: Optional[str] = None

    def to_frame(self) -> pd.DataFrame:
        """Long format: one row per (entity, tau)."""
        m, k, d = self.metric.shape
        frame = pd.DataFrame(self.metric.reshape(m * k, d), columns=list(self.columns))
        frame.insert(0, 'tau', np.tile(self.tau, m))
        frame.insert(0, 'entity', np.repeat(np.asarray(self.entities, dtype=object), k))
        return frame


def _config(config: Optional[EvalConfig], options: dict) -> EvalConfig:
    if config is None:
        return EvalConfig.from_dict(options)
    if not isinstance(config, EvalConfig):
        raise InputValidationError(f"config must be an EvalConfig, got {type(config).__name__}")
    return config.replace(**options) if options else config


def _required(**inputs):
    missing = [name for name, value in inputs.items() if value is None]
    if missing:
        raise InputCountError(f"Missing required input(s): {', '.join(missing)}")


def seq_metric(target: Sequence[str], pred: Prediction, truth: Annotation, metric: str,
               config: Optional[EvalConfig] = None, date: Optional[str] = None,
               progress: bool = False, **options) -> Union[np.ndarray, CurveOptimum]:
    """Sequence-centric averaged metric.

    Args:
        target: benchmark objects.
        pred: prediction structure.
        truth: reference annotation structure.
        metric: 'pr', 'wpr', 'rm', 'nrm' for (k, 2) curves, or 'fmax', 'wfmax',
            'smin', 'nsmin' for the best point of the corresponding curve.
        config: evaluation options; keyword ``options`` override its fields.

    Returns:
        (k, 2) curve array or a CurveOptimum.
    """
    _required(target=target, pred=pred, truth=truth, metric=metric)
    if metric not in SEQ_METRICS:
        raise InputValidationError(f"Unknown sequence-centric metric {metric!r}, expected one of {tuple(SEQ_METRICS)}")
    config = _config(config, options)

    weight = config.weight
    if metric in WEIGHTED_SEQ_METRICS and isinstance(weight, str) and weight == 'equal':
        weight = 'eia'

    if config.qualify is not None and config.qualify.shape != (len(target),):
        raise InputValidationError(
            f"qualify must have the same length as target ({len(target)}), got {config.qualify.shape[0]}"
        )

    cm = seq_cm(target, pred, truth, tau=config.tau, toi=config.toi, weight=weight,
                date=date, progress=progress)

    qualify = None
    if config.qualify is not None:
        # seq_cm drops unannotated targets, keep the mask aligned with the kept objects
        position = {obj: i for i, obj in enumerate(target)}
        qualify = config.qualify[[position[obj] for obj in cm.entities]]

    curve = cm_average(cm, SEQ_METRICS[metric], eval_mode=config.eval_mode,
                       avg_mode=config.avg_mode, qualify=qualify,
                       beta=config.beta, order=config.order)

    if metric in ('fmax', 'wfmax'):
        best = fmax_curve(curve, cm.tau, beta=config.beta)
        logger.info(f"{metric}: {best.value:.4f} at tau={best.tau:.2f}")
        return best
    if metric in ('smin', 'nsmin'):
        best = smin_curve(curve, cm.tau, order=config.order)
        logger.info(f"{metric}: {best.value:.4f} at tau={best.tau:.2f}")
        return best
    return curve


def term_metric(target: Sequence[str], pred: Prediction, truth: Annotation, metric: str,
                config: Optional[EvalConfig] = None, date: Optional[str] = None,
                progress: bool = False, **options) -> Union[np.ndarray, CurveOptimum]:
    """Term-centric averaged metric.

    ``config.eval_mode`` chooses the object population when the confusion
    matrices are built; averaging runs over all annotated terms unless
    ``config.qualify`` masks them. ``config.weight`` does not apply here.

    Returns:
        (k, d) curve array, or a CurveOptimum for 'fmax'.
    """
    _required(target=target, pred=pred, truth=truth, metric=metric)
    if metric not in TERM_METRICS:
        raise InputValidationError(f"Unknown term-centric metric {metric!r}, expected one of {tuple(TERM_METRICS)}")
    config = _config(config, options)
    if not (isinstance(config.weight, str) and config.weight == 'equal'):
        logger.warning("Term-centric evaluation counts objects, term weights are ignored")

    cm = term_cm(target, pred, truth, eval_mode=config.eval_mode, tau=config.tau,
                 date=date, progress=progress)

    eval_mode = EvalMode.FULL
    if config.qualify is not None:
        eval_mode = EvalMode.PARTIAL
    curve = cm_average(cm, TERM_METRICS[metric], eval_mode=eval_mode,
                       avg_mode=config.avg_mode, qualify=config.qualify,
                       beta=config.beta, order=config.order)

    if metric == 'fmax':
        best = fmax_curve(curve, cm.tau, beta=config.beta)
        logger.info(f"term-centric fmax: {best.value:.4f} at tau={best.tau:.2f}")
        return best
    return curve


def convert_cm(cm: ConfusionMatrices, metric, beta: float = 1.0, order: float = 2.0) -> MetricStruct:
    """Per-entity metric for every threshold, without averaging."""
    _required(cm=cm, metric=metric)
    metric = parse_metric(metric, beta=beta, order=order)
    metric.check_centric(cm.centric)
    return MetricStruct(
        centric=cm.centric,
        metric_name=metric.name,
        columns=metric.columns,
        entities=list(cm.entities),
        tau=np.array(cm.tau),
        metric=metric.compute(cm.cm),
        date=cm.date,
    )


def term_auc(cm: ConfusionMatrices) -> pd.Series:
    """Area under the ROC curve of every term of a term-centric structure.

    The ROC points of the threshold sweep are closed with (0, 0) and (1, 1).
    Terms annotated for every object have no negatives and get NaN.
    """
    if cm.centric != 'term':
        raise InputValidationError("term_auc needs a term-centric confusion matrix structure")
    points = SensitivitySpecificity().compute(cm.cm)
    values = np.full(len(cm), np.nan)
    for i in range(len(cm)):
        tpr, fpr = points[i, :, 0], points[i, :, 1]
        if not (np.all(np.isfinite(tpr)) and np.all(np.isfinite(fpr))):
            continue
        x = np.concatenate([[0.0], fpr, [1.0]])
        y = np.concatenate([[0.0], tpr, [1.0]])
        order = np.lexsort((y, x))
        values[i] = auc(x[order], y[order])
    return pd.Series(values, index=list(cm.entities), name='auc')
