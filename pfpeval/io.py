"""Readers for CAFA-style plain-text inputs."""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from pfpeval.structures import Annotation, Ontology, Prediction

logger = logging.getLogger(__name__)


def read_item_list(file_name) -> List[str]:
    """One item per line; blank lines are ignored."""
    items = []
    with open(file_name) as f:
        for line in f:
            line = line.strip()
            if line:
                items.append(line)
    return items


def read_term_list(file_name) -> List[str]:
    return read_item_list(file_name)


def read_ia(filename) -> Dict[str, float]:
    """Information accretion file, ``term<TAB>value`` per line."""
    ia_dict = dict()
    with open(filename, 'r') as f:
        for line in f:
            line = line.strip().split()
            if not line:
                continue
            if len(line) != 2:
                raise ValueError('IA file format error')
            ia_dict[line[0]] = float(line[1])
    return ia_dict


def weights_from_ia(ontology: Ontology, ia_dict: Dict[str, float]) -> np.ndarray:
    """Weight vector in ontology order; terms missing from ``ia_dict`` weigh 0."""
    missing = sum(1 for term in ontology.terms if term not in ia_dict)
    if missing:
        logger.warning(f"{missing} term(s) have no IA value, using 0")
    return np.array([ia_dict.get(term, 0.0) for term in ontology.terms], dtype=float)


def load_ontology(terms_file, edges_file=None, name: str = '') -> Ontology:
    """Ontology from a term list and an optional ``child<TAB>parent`` edge file."""
    terms = read_term_list(terms_file)
    if edges_file is None:
        return Ontology(terms, name=name)
    edges = pd.read_csv(edges_file, sep='\t', header=None, names=['child', 'parent'],
                        usecols=[0, 1], dtype=str)
    return Ontology.from_edges(terms, zip(edges['child'], edges['parent']), name=name)


def _read_pairs(file_name, with_score: bool) -> pd.DataFrame:
    names = ['object', 'term', 'score'] if with_score else ['object', 'term']
    df = pd.read_csv(file_name, sep='\t', header=None, names=names,
                     usecols=list(range(len(names))), comment='#',
                     dtype={'object': str, 'term': str})
    logger.info(f"Loaded {len(df)} rows from {Path(file_name).name}")
    return df


def load_annotation(file_name, ontology: Ontology, objects: Optional[List[str]] = None) -> Annotation:
    """Annotation structure from ``object<TAB>term`` lines."""
    return Annotation.from_frame(_read_pairs(file_name, with_score=False), ontology, objects=objects)


def load_prediction(file_name, ontology: Ontology, objects: Optional[List[str]] = None) -> Prediction:
    """Prediction structure from ``object<TAB>term<TAB>score`` lines."""
    return Prediction.from_frame(_read_pairs(file_name, with_score=True), ontology,
                                 value_col='score', objects=objects)
