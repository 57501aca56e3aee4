"""Best points of metric curves over thresholds."""

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from pfpeval.config import validate_tau
from pfpeval.errors import ShapeMismatchError
from pfpeval.metrics import f_beta, semantic_distance


class Extremum(NamedTuple):
    value: float
    tau: float


@dataclass(frozen=True)
class CurveOptimum:
    """Optimal point of an averaged curve.

    ``point`` holds the averaged components at that threshold, e.g. (precision,
    recall) for Fmax or (ru, mi) for Smin. ``index`` is -1 when the whole curve
    is undefined.
    """

    value: float
    tau: float
    index: int
    point: tuple


def _curve(values, tau):
    values = np.asarray(values, dtype=float)
    if values.ndim == 2 and values.shape[1] == 1:
        values = values[:, 0]
    tau = validate_tau(np.asarray(tau, dtype=float).ravel())
    if values.ndim != 1 or values.shape[0] != tau.shape[0]:
        raise ShapeMismatchError(
            f"curve of shape {values.shape} does not match {tau.shape[0]} thresholds"
        )
    return values, tau


def _best_index(values: np.ndarray, maximize: bool) -> int:
    finite = np.isfinite(values)
    if not finite.any():
        return -1
    masked = np.where(finite, values, -np.inf if maximize else np.inf)
    # argmax/argmin return the first occurrence, i.e. the lowest threshold on ties
    return int(np.argmax(masked) if maximize else np.argmin(masked))


def argmax_curve(values, tau) -> Extremum:
    """Maximum of a curve and the threshold reaching it, ignoring NaN."""
    values, tau = _curve(values, tau)
    i = _best_index(values, maximize=True)
    if i < 0:
        return Extremum(np.nan, np.nan)
    return Extremum(float(values[i]), float(tau[i]))


def argmin_curve(values, tau) -> Extremum:
    """Minimum of a curve and the threshold reaching it, ignoring NaN."""
    values, tau = _curve(values, tau)
    i = _best_index(values, maximize=False)
    if i < 0:
        return Extremum(np.nan, np.nan)
    return Extremum(float(values[i]), float(tau[i]))


def _pairs(curve, tau, what):
    curve = np.asarray(curve, dtype=float)
    if curve.ndim != 2 or curve.shape[1] != 2:
        raise ShapeMismatchError(f"{what} curve must have shape (k, 2), got {curve.shape}")
    if curve.shape[0] != np.asarray(tau).ravel().shape[0]:
        raise ShapeMismatchError(
            f"{what} curve has {curve.shape[0]} points for {np.asarray(tau).size} thresholds"
        )
    return curve


def _optimum(values, curve, tau, maximize) -> CurveOptimum:
    values, tau = _curve(values, tau)
    i = _best_index(values, maximize)
    if i < 0:
        return CurveOptimum(np.nan, np.nan, -1, (np.nan, np.nan))
    return CurveOptimum(float(values[i]), float(tau[i]), i, tuple(float(x) for x in curve[i]))


def fmax_curve(pr_curve, tau, beta: float = 1.0) -> CurveOptimum:
    """Fmax from an averaged precision-recall curve."""
    curve = _pairs(pr_curve, tau, 'precision-recall')
    f = f_beta(curve[:, 0], curve[:, 1], beta)
    return _optimum(f, curve, tau, maximize=True)


def smin_curve(rm_curve, tau, order: float = 2.0) -> CurveOptimum:
    """Smin from an averaged RU-MI curve."""
    curve = _pairs(rm_curve, tau, 'RU-MI')
    s = semantic_distance(curve[:, 0], curve[:, 1], order)
    return _optimum(s, curve, tau, maximize=False)
