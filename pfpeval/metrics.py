"""Metrics computed from (TN, FP, FN, TP) confusion matrices.

Every metric maps an array of shape (..., 4) to an array of shape (..., d), one
column per component listed in ``columns``. Undefined values (0 / 0) come out
as NaN and are left for the caller to skip.
"""

import logging
import numbers
from dataclasses import dataclass
from typing import ClassVar, Tuple

import numpy as np

from pfpeval.confmat import FN, FP, TN, TP
from pfpeval.errors import IncompatibleMetricError, InputValidationError

logger = logging.getLogger(__name__)


def _split(cm):
    cm = np.asarray(cm, dtype=float)
    if cm.shape[-1] != 4:
        raise InputValidationError(f"confusion matrices must have 4 columns, got shape {cm.shape}")
    return cm[..., TN], cm[..., FP], cm[..., FN], cm[..., TP]


def _divide(a, b):
    with np.errstate(divide='ignore', invalid='ignore'):
        return np.true_divide(a, b)


def _check_positive(name, value):
    if not isinstance(value, numbers.Real) or isinstance(value, bool) or not value > 0:
        raise InputValidationError(f"{name} must be a positive real number, got {value!r}")


def precision_recall(cm) -> Tuple[np.ndarray, np.ndarray]:
    _, fp, fn, tp = _split(cm)
    return _divide(tp, tp + fp), _divide(tp, tp + fn)


def f_beta(precision, recall, beta: float = 1.0) -> np.ndarray:
    """Weighted harmonic mean of precision and recall; NaN when both are 0."""
    b2 = beta * beta
    return _divide((1 + b2) * precision * recall, b2 * precision + recall)


def semantic_distance(ru, mi, order: float = 2.0) -> np.ndarray:
    return np.power(np.power(ru, order) + np.power(mi, order), 1.0 / order)


class Metric:
    """Base class of the metric family."""

    tag: ClassVar[str] = ''
    columns: ClassVar[Tuple[str, ...]] = ()
    sequence_only: ClassVar[bool] = False

    @property
    def name(self) -> str:
        return self.tag

    @property
    def needs_weights(self) -> bool:
        return False

    def check_centric(self, centric: str):
        if self.sequence_only and centric != 'sequence':
            raise IncompatibleMetricError(
                f"'{self.name}' is only available in sequence-centric evaluation"
            )
        if self.needs_weights and centric == 'term':
            logger.warning(f"Term-centric confusion matrices are unweighted, '{self.name}' uses equal weights")

    def compute(self, cm) -> np.ndarray:
        raise NotImplementedError


@dataclass(frozen=True)
class PrecisionRecall(Metric):
    weighted: bool = False

    columns: ClassVar[Tuple[str, ...]] = ('precision', 'recall')

    @property
    def name(self):
        return 'wpr' if self.weighted else 'pr'

    @property
    def needs_weights(self):
        return self.weighted

    def compute(self, cm):
        return np.stack(precision_recall(cm), axis=-1)


@dataclass(frozen=True)
class FMeasure(Metric):
    beta: float = 1.0
    weighted: bool = False

    columns: ClassVar[Tuple[str, ...]] = ('f',)

    def __post_init__(self):
        _check_positive('beta', self.beta)

    @property
    def name(self):
        return 'wf' if self.weighted else 'f'

    @property
    def needs_weights(self):
        return self.weighted

    def compute(self, cm):
        pr, rc = precision_recall(cm)
        return f_beta(pr, rc, self.beta)[..., np.newaxis]


@dataclass(frozen=True)
class RemainingUncertainty(Metric):
    """Remaining uncertainty (FN) and misinformation (FP) of weighted counts.

    Normalized values are divided by the weight of the union of true and
    predicted terms, TP + FP + FN.
    """

    normalized: bool = False

    columns: ClassVar[Tuple[str, ...]] = ('ru', 'mi')
    sequence_only: ClassVar[bool] = True

    @property
    def name(self):
        return 'nrm' if self.normalized else 'rm'

    @property
    def needs_weights(self):
        return True

    def components(self, cm):
        _, fp, fn, tp = _split(cm)
        if self.normalized:
            union = tp + fp + fn
            return _divide(fn, union), _divide(fp, union)
        return fn, fp

    def compute(self, cm):
        return np.stack(self.components(cm), axis=-1)


@dataclass(frozen=True)
class SemanticDistance(RemainingUncertainty):
    order: float = 2.0

    columns: ClassVar[Tuple[str, ...]] = ('s',)

    def __post_init__(self):
        _check_positive('order', self.order)

    @property
    def name(self):
        return 'nsd' if self.normalized else 'sd'

    def compute(self, cm):
        ru, mi = self.components(cm)
        return semantic_distance(ru, mi, self.order)[..., np.newaxis]


@dataclass(frozen=True)
class SensitivitySpecificity(Metric):
    """Points on the ROC curve: sensitivity and 1 - specificity."""

    tag: ClassVar[str] = 'ss'
    columns: ClassVar[Tuple[str, ...]] = ('sensitivity', '1-specificity')

    def compute(self, cm):
        tn, fp, fn, tp = _split(cm)
        return np.stack([_divide(tp, tp + fn), _divide(fp, fp + tn)], axis=-1)


@dataclass(frozen=True)
class Accuracy(Metric):
    tag: ClassVar[str] = 'acc'
    columns: ClassVar[Tuple[str, ...]] = ('accuracy',)

    def compute(self, cm):
        tn, fp, fn, tp = _split(cm)
        return _divide(tp + tn, tn + fp + fn + tp)[..., np.newaxis]


METRIC_TAGS = ('pr', 'wpr', 'rm', 'nrm', 'f', 'wf', 'sd', 'nsd', 'ss', 'acc')


def parse_metric(metric, beta: float = 1.0, order: float = 2.0) -> Metric:
    """Metric instance from a tag such as 'pr', 'wf' or 'nsd'; instances pass through."""
    if isinstance(metric, Metric):
        return metric
    builders = {
        'pr': lambda: PrecisionRecall(),
        'wpr': lambda: PrecisionRecall(weighted=True),
        'rm': lambda: RemainingUncertainty(),
        'nrm': lambda: RemainingUncertainty(normalized=True),
        'f': lambda: FMeasure(beta=beta),
        'wf': lambda: FMeasure(beta=beta, weighted=True),
        'sd': lambda: SemanticDistance(order=order),
        'nsd': lambda: SemanticDistance(normalized=True, order=order),
        'ss': lambda: SensitivitySpecificity(),
        'acc': lambda: Accuracy(),
    }
    if not isinstance(metric, str) or metric not in builders:
        raise InputValidationError(f"Unknown metric {metric!r}, expected one of {METRIC_TAGS}")
    return builders[metric]()
