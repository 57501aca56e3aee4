"""Threshold-swept confusion-matrix evaluation of protein function predictions."""

from pfpeval.averaging import cm_average
from pfpeval.cmstruct import ConfusionMatrices, seq_cm, term_cm
from pfpeval.config import AvgMode, EvalConfig, EvalMode, default_tau
from pfpeval.confmat import confmat
from pfpeval.evaluate import MetricStruct, convert_cm, seq_metric, term_auc, term_metric
from pfpeval.extremum import CurveOptimum, Extremum, argmax_curve, argmin_curve, fmax_curve, smin_curve
from pfpeval.metrics import parse_metric
from pfpeval.projection import project
from pfpeval.structures import Annotation, Ontology, Prediction

__version__ = '0.1.0'
