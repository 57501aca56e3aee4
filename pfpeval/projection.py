"""Projection of annotation/prediction structures onto a target object list."""

import dataclasses
from typing import Sequence

import numpy as np
import scipy.sparse as ssp

from pfpeval.errors import InputValidationError
from pfpeval.structures import TermMatrix


def selection_matrix(source: Sequence[str], target: Sequence[str]) -> ssp.csr_matrix:
    """len(target) x len(source) 0/1 matrix picking source rows in target order.

    Target entries missing from ``source`` get an empty row.
    """
    src_index = {obj: i for i, obj in enumerate(source)}
    rows, cols = [], []
    for i, obj in enumerate(target):
        j = src_index.get(obj)
        if j is not None:
            rows.append(i)
            cols.append(j)
    return ssp.csr_matrix(
        (np.ones(len(rows)), (np.array(rows, dtype=int), np.array(cols, dtype=int))),
        shape=(len(target), len(source)),
    )


def project(structure: TermMatrix, target: Sequence[str], axis: str = 'object') -> TermMatrix:
    """Reindex ``structure`` onto ``target`` objects.

    Rows for objects in both are copied, rows for objects only in ``target`` are
    zero and objects only in ``structure`` are dropped. The result has the same
    type as ``structure``.
    """
    if axis != 'object':
        raise InputValidationError(f"Unsupported projection axis {axis!r}, only 'object' is supported")
    target = list(target)
    if len(set(target)) != len(target):
        raise InputValidationError("target object list contains duplicates")

    if target == structure.objects:
        return dataclasses.replace(structure, objects=target)

    sel = selection_matrix(structure.objects, target)
    return dataclasses.replace(structure, objects=target, matrix=(sel @ structure.matrix).tocsr())
