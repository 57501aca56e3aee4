"""Ontology, annotation and prediction structures.

Object x term matrices are held as ``scipy.sparse.csr_matrix``; rows follow
``objects`` and columns follow ``ontology.terms``.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
import scipy.sparse as ssp
from tqdm import tqdm

from pfpeval.errors import InputValidationError, OntologyMismatchError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Ontology:
    """Ordered term vocabulary with an optional child -> parent adjacency.

    ``parents[i, j] != 0`` means term ``j`` is a direct parent of term ``i``.
    """

    terms: List[str]
    parents: Optional[ssp.csr_matrix] = None
    name: str = ''
    index: Dict[str, int] = field(init=False, repr=False)

    def __post_init__(self):
        self.terms = list(self.terms)
        self.index = {term: i for i, term in enumerate(self.terms)}
        if len(self.index) != len(self.terms):
            raise InputValidationError("Ontology term IDs must be unique")

        m = len(self.terms)
        if self.parents is None:
            self.parents = ssp.csr_matrix((m, m), dtype=np.int8)
        else:
            self.parents = ssp.csr_matrix(self.parents)
            if self.parents.shape != (m, m):
                raise InputValidationError(
                    f"parents matrix must be {m} x {m}, got {self.parents.shape}"
                )

    @classmethod
    def from_edges(cls, terms: Iterable[str], edges: Iterable[Tuple[str, str]], name: str = '') -> 'Ontology':
        """Build from (child, parent) pairs; pairs naming unknown terms are skipped."""
        terms = list(terms)
        index = {term: i for i, term in enumerate(terms)}
        rows, cols, skipped = [], [], 0
        for child, parent in edges:
            if child in index and parent in index:
                rows.append(index[child])
                cols.append(index[parent])
            else:
                skipped += 1
        if skipped:
            logger.warning(f"Skipped {skipped} edge(s) referring to terms outside the ontology")
        m = len(terms)
        parents = ssp.csr_matrix(
            (np.ones(len(rows), dtype=np.int8), (np.array(rows, dtype=int), np.array(cols, dtype=int))),
            shape=(m, m),
        )
        parents.data[:] = 1
        return cls(terms, parents, name)

    def __len__(self):
        return len(self.terms)

    def same_as(self, other: 'Ontology') -> bool:
        return len(self.terms) == len(other.terms) and self.terms == other.terms

    @property
    def roots(self) -> np.ndarray:
        """Indices of terms with no parents and at least one child."""
        n_parents = self.parents.getnnz(axis=1)
        n_children = self.parents.getnnz(axis=0)
        return np.flatnonzero((n_parents == 0) & (n_children > 0))

    def eia(self, annotation: ssp.spmatrix, progress: bool = False) -> np.ndarray:
        """Estimate information accretion per term from a propagated annotation matrix.

        ia(t) = -log2 P(t | all parents of t), where the conditional probability is
        estimated over annotated objects. Terms never observed get 0.
        """
        anno = ssp.csc_matrix(annotation, dtype=bool).astype(np.int32)
        if anno.shape[1] != len(self.terms):
            raise InputValidationError("annotation columns must match the ontology terms")

        annotated = np.asarray(anno.sum(axis=1)).ravel() > 0
        ia = np.zeros(len(self.terms))
        for i in tqdm(range(len(self.terms)), desc="Estimating IA", disable=not progress):
            pa = self.parents.indices[self.parents.indptr[i]:self.parents.indptr[i + 1]]
            if pa.size == 0:
                support = annotated
            else:
                support = np.asarray(anno[:, pa].sum(axis=1)).ravel() == pa.size
            with_term = support & (anno[:, i].toarray().ravel() > 0)
            s, n = support.sum(), with_term.sum()
            if s > 0 and n > 0:
                ia[i] = -np.log2(n / s)
        # -log2(1) gives -0.0
        return np.abs(ia)


def check_ontology(a: 'TermMatrix', b: 'TermMatrix'):
    if not a.ontology.same_as(b.ontology):
        raise OntologyMismatchError("Ontology mismatch: structures use different term lists")


@dataclass(eq=False)
class TermMatrix:
    """Objects x terms sparse matrix bound to an ontology."""

    objects: List[str]
    ontology: Ontology
    matrix: ssp.csr_matrix

    kind = 'matrix'

    def __post_init__(self):
        self.objects = list(self.objects)
        if len(set(self.objects)) != len(self.objects):
            raise InputValidationError(f"{self.kind} object IDs must be unique")
        self.matrix = ssp.csr_matrix(self.matrix, dtype=float, copy=True)
        expected = (len(self.objects), len(self.ontology))
        if self.matrix.shape != expected:
            raise InputValidationError(
                f"{self.kind} matrix must be {expected[0]} x {expected[1]}, got {self.matrix.shape}"
            )
        self.matrix.eliminate_zeros()

    def __len__(self):
        return len(self.objects)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, ontology: Ontology,
                   object_col: str = 'object', term_col: str = 'term',
                   value_col: Optional[str] = None, objects: Optional[List[str]] = None):
        """Build from long-format rows; duplicate (object, term) pairs keep the max value."""
        known = df[term_col].isin(set(ontology.index))
        if not known.all():
            logger.warning(f"Dropped {int((~known).sum())} row(s) with terms outside the ontology")
        df = df[known]
        if value_col is None:
            df = df.assign(_value=1.0)
            value_col = '_value'
        df = df.groupby([object_col, term_col], sort=False)[value_col].max().reset_index()

        if objects is None:
            objects = list(pd.unique(df[object_col]))
        obj_index = {obj: i for i, obj in enumerate(objects)}
        df = df[df[object_col].isin(set(obj_index))]

        rows = df[object_col].map(obj_index).to_numpy(dtype=int)
        cols = df[term_col].map(ontology.index).to_numpy(dtype=int)
        matrix = ssp.csr_matrix(
            (df[value_col].to_numpy(dtype=float), (rows, cols)),
            shape=(len(objects), len(ontology)),
        )
        return cls(objects, ontology, matrix)


class Annotation(TermMatrix):
    """Binary ground-truth annotations."""

    kind = 'annotation'

    def __post_init__(self):
        super().__post_init__()
        self.matrix.data[:] = 1.0


class Prediction(TermMatrix):
    """Predicted scores, assumed normalized to [0, 1]."""

    kind = 'prediction'

    def __post_init__(self):
        super().__post_init__()
        data = self.matrix.data
        if data.size and (not np.all(np.isfinite(data)) or data.min() < 0.0 or data.max() > 1.0):
            raise InputValidationError("prediction scores must lie within [0, 1]")

    def positive_counts(self, axis: int = 1) -> np.ndarray:
        """Number of positive (> 0) scores per object (axis=1) or per term (axis=0)."""
        return np.asarray((self.matrix > 0).sum(axis=axis)).ravel()
