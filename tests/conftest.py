import numpy as np
import pytest
import scipy.sparse as ssp

from pfpeval.structures import Annotation, Ontology, Prediction


@pytest.fixture
def flat_ontology():
    return Ontology(['T1', 'T2'])


@pytest.fixture
def example(flat_ontology):
    """Three targets, T1 true for A and C, C missing from the predictions."""
    truth = Annotation(['A', 'B', 'C'], flat_ontology,
                       ssp.csr_matrix(np.array([[1, 0], [0, 1], [1, 0]])))
    pred = Prediction(['A', 'B'], flat_ontology,
                      ssp.csr_matrix(np.array([[0.8, 0.0], [0.2, 0.6]])))
    return ['A', 'B', 'C'], pred, truth


@pytest.fixture
def go_ontology():
    """root -> a, b; a -> c."""
    return Ontology.from_edges(
        ['root', 'a', 'b', 'c'],
        [('a', 'root'), ('b', 'root'), ('c', 'a')],
    )


@pytest.fixture
def go_example(go_ontology):
    # propagated annotations
    truth = Annotation(
        ['P1', 'P2', 'P3', 'P4'], go_ontology,
        ssp.csr_matrix(np.array([
            [1, 1, 0, 1],
            [1, 1, 0, 0],
            [1, 0, 1, 0],
            [1, 1, 1, 0],
        ])),
    )
    pred = Prediction(
        ['P1', 'P2', 'P3', 'P5'], go_ontology,
        ssp.csr_matrix(np.array([
            [1.0, 0.9, 0.1, 0.7],
            [1.0, 0.4, 0.6, 0.0],
            [0.0, 0.0, 0.0, 0.0],
            [1.0, 0.5, 0.5, 0.5],
        ])),
    )
    return ['P1', 'P2', 'P3', 'P4'], pred, truth
