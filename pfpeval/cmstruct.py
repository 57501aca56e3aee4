"""Term-centric and sequence-centric confusion matrix structures."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np
import scipy.sparse as ssp
from tqdm import tqdm

from pfpeval.config import EvalMode, default_tau, validate_tau
from pfpeval.confmat import sweep
from pfpeval.errors import InputCountError, InputValidationError
from pfpeval.projection import project
from pfpeval.structures import Annotation, Prediction, check_ontology

logger = logging.getLogger(__name__)

CENTRICS = ('term', 'sequence')


@dataclass(frozen=True, eq=False)
class ConfusionMatrices:
    """Confusion matrices indexed by (entity, threshold).

    ``cm[i, j]`` is the (TN, FP, FN, TP) row of entity ``entities[i]`` at
    threshold ``tau[j]``. Entities are terms for term-centric results and
    objects for sequence-centric ones. ``npp[i]`` counts the positive (> 0)
    predictions of entity ``i``.
    """

    centric: str
    entities: List[str]
    objects: List[str]
    terms: List[str]
    tau: np.ndarray
    cm: np.ndarray
    npp: np.ndarray
    date: Optional[str] = None

    def __post_init__(self):
        if self.centric not in CENTRICS:
            raise InputValidationError(f"centric must be one of {CENTRICS}, got {self.centric!r}")
        for name in ('tau', 'cm', 'npp'):
            arr = np.array(getattr(self, name))
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)
        m, k = len(self.entities), len(self.tau)
        if self.cm.shape != (m, k, 4):
            raise InputValidationError(f"cm must have shape {(m, k, 4)}, got {self.cm.shape}")
        if self.npp.shape != (m,):
            raise InputValidationError(f"npp must have shape {(m,)}, got {self.npp.shape}")

    def __len__(self):
        return len(self.entities)

    @property
    def qualified(self) -> np.ndarray:
        """Default qualification mask: entities with at least one positive prediction."""
        return self.npp > 0


def _check_inputs(target, pred, truth):
    if target is None or pred is None or truth is None:
        raise InputCountError("target, pred and truth are all required")
    if isinstance(target, str) or len(target) == 0:
        raise InputValidationError("target must be a non-empty list of object IDs")
    if not isinstance(pred, Prediction):
        raise InputValidationError(f"pred must be a Prediction, got {type(pred).__name__}")
    if not isinstance(truth, Annotation):
        raise InputValidationError(f"truth must be an Annotation, got {type(truth).__name__}")
    check_ontology(pred, truth)


def _build(n_entities: int, k: int, entity_cm, progress: bool, desc: str, weighted: bool) -> np.ndarray:
    """Fill a pre-sized (entities, k, 4) array one entity at a time."""
    cm = np.zeros((n_entities, k, 4), dtype=float if weighted else np.int64)
    for i in tqdm(range(n_entities), desc=desc, disable=not progress):
        cm[i] = entity_cm(i)
    return cm


def term_cm(target: Sequence[str], pred: Prediction, truth: Annotation,
            eval_mode: Union[str, EvalMode] = EvalMode.FULL, tau=None,
            date: Optional[str] = None, progress: bool = False) -> ConfusionMatrices:
    """Term-centric confusion matrices.

    Args:
        target: objects to evaluate on. Objects without predictions score 0 for
            every term; objects without annotations are negative for every term.
        pred: prediction structure.
        truth: reference annotation structure.
        eval_mode: 'full' averages over all of ``target``; 'partial' first
            restricts ``target`` to objects with at least one positive prediction.
        tau: thresholds, default 0.00:0.01:1.00.
        date: optional provenance stamp stored on the result.

    Returns:
        ConfusionMatrices over the terms annotated at least once in ``target``.
    """
    _check_inputs(target, pred, truth)
    eval_mode = EvalMode.parse(eval_mode)
    tau = default_tau() if tau is None else validate_tau(tau)

    target = list(target)
    if eval_mode == EvalMode.PARTIAL:
        npp_seq = pred.positive_counts(axis=1)
        predicted = {obj for obj, n in zip(pred.objects, npp_seq) if n > 0}
        target = [obj for obj in target if obj in predicted]
        logger.info(f"Partial evaluation: {len(target)} predicted object(s) in target")

    pred = project(pred, target)
    truth = project(truth, target)

    pos_anno = truth.matrix.getnnz(axis=0) > 0
    terms = [t for t, keep in zip(pred.ontology.terms, pos_anno) if keep]
    P = ssp.csc_matrix(pred.matrix)[:, pos_anno]
    T = ssp.csc_matrix(truth.matrix)[:, pos_anno]
    P.sort_indices()
    T.sort_indices()
    n = len(target)
    logger.debug(f"Term-centric: {len(terms)} annotated term(s) over {n} object(s)")

    def entity_cm(j):
        s_idx = P.indices[P.indptr[j]:P.indptr[j + 1]]
        s_val = P.data[P.indptr[j]:P.indptr[j + 1]]
        t_idx = T.indices[T.indptr[j]:T.indptr[j + 1]]
        keep = s_val > 0
        s_idx, s_val = s_idx[keep], s_val[keep]
        w = np.ones(s_idx.size, dtype=np.int64)
        return sweep(s_val, np.isin(s_idx, t_idx), w, t_idx.size, n, tau)

    cm = _build(len(terms), tau.size, entity_cm, progress, "Term-centric CM", weighted=False)
    npp = np.asarray((P > 0).sum(axis=0)).ravel().astype(np.int64)

    return ConfusionMatrices(
        centric='term',
        entities=terms,
        objects=list(pred.objects),
        terms=terms,
        tau=tau,
        cm=cm,
        npp=npp,
        date=date,
    )


def resolve_toi(toi, ontology) -> np.ndarray:
    """Boolean mask over ontology terms from 'all', 'noroot' or an explicit mask."""
    m = len(ontology)
    if isinstance(toi, str):
        if toi == 'all':
            return np.ones(m, dtype=bool)
        if toi == 'noroot':
            mask = np.ones(m, dtype=bool)
            mask[ontology.roots] = False
            return mask
        raise InputValidationError(f"Unknown terms-of-interest token {toi!r}")
    mask = np.asarray(toi)
    if mask.dtype != bool or mask.shape != (m,):
        raise InputValidationError(f"toi mask must be a boolean vector of length {m}")
    return mask


def resolve_weight(weight, truth: Annotation, progress: bool = False) -> Optional[np.ndarray]:
    """Per-term weights from 'equal' (None, unit counts), 'eia' or an explicit vector."""
    m = len(truth.ontology)
    if isinstance(weight, str):
        if weight == 'equal':
            return None
        if weight == 'eia':
            return truth.ontology.eia(truth.matrix, progress=progress)
        raise InputValidationError(f"Unknown weight token {weight!r}")
    w = np.asarray(weight, dtype=float)
    if w.shape != (m,) or not np.all(np.isfinite(w)) or np.any(w < 0):
        raise InputValidationError(f"weight must be a finite non-negative vector of length {m}")
    return w


def seq_cm(target: Sequence[str], pred: Prediction, truth: Annotation, tau=None,
           toi='noroot', weight='equal', date: Optional[str] = None,
           progress: bool = False) -> ConfusionMatrices:
    """Sequence-centric confusion matrices.

    Args:
        target: objects to evaluate on. Objects without predictions score 0 for
            every term; objects absent from ``truth`` are dropped.
        pred: prediction structure.
        truth: reference annotation structure.
        tau: thresholds, default 0.00:0.01:1.00.
        toi: terms of interest, 'all', 'noroot' or a boolean mask over terms.
        weight: 'equal', 'eia' (information accretion estimated from ``truth``)
            or a weight vector over terms.
        date: optional provenance stamp stored on the result.

    Returns:
        ConfusionMatrices with one entity per evaluated object.
    """
    _check_inputs(target, pred, truth)
    tau = default_tau() if tau is None else validate_tau(tau)
    toi_mask = resolve_toi(toi, truth.ontology)
    w_all = resolve_weight(weight, truth, progress=progress)

    target = list(target)
    if len(set(target)) != len(target):
        raise InputValidationError("target object list contains duplicates")
    annotated = set(truth.objects)
    kept = [obj for obj in target if obj in annotated]
    if len(kept) < len(target):
        logger.warning(f"Dropped {len(target) - len(kept)} target object(s) without annotation")
    target = kept

    pred = project(pred, target)
    truth = project(truth, target)

    P = pred.matrix[:, toi_mask].tocsr()
    T = truth.matrix[:, toi_mask].tocsr()
    P.sort_indices()
    T.sort_indices()
    terms = [t for t, keep in zip(pred.ontology.terms, toi_mask) if keep]
    w = None if w_all is None else w_all[toi_mask]
    total = len(terms) if w is None else w.sum()

    def entity_cm(i):
        s_idx = P.indices[P.indptr[i]:P.indptr[i + 1]]
        s_val = P.data[P.indptr[i]:P.indptr[i + 1]]
        t_idx = T.indices[T.indptr[i]:T.indptr[i + 1]]
        keep = s_val > 0
        s_idx, s_val = s_idx[keep], s_val[keep]
        if w is None:
            s_w, pos_total = np.ones(s_idx.size, dtype=np.int64), t_idx.size
        else:
            s_w, pos_total = w[s_idx], w[t_idx].sum()
        return sweep(s_val, np.isin(s_idx, t_idx), s_w, pos_total, total, tau)

    cm = _build(len(target), tau.size, entity_cm, progress, "Sequence-centric CM", weighted=w is not None)
    npp = np.asarray((P > 0).sum(axis=1)).ravel().astype(np.int64)

    return ConfusionMatrices(
        centric='sequence',
        entities=list(target),
        objects=list(target),
        terms=terms,
        tau=tau,
        cm=cm,
        npp=npp,
        date=date,
    )
