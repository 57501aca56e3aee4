"""Exceptions raised by the evaluation engine."""


class EvaluationError(Exception):
    """Base class for all evaluation failures."""


class InputCountError(EvaluationError, TypeError):
    """A required input was not supplied."""


class InputValidationError(EvaluationError, ValueError):
    """An input has the wrong type, shape or range."""


class OntologyMismatchError(EvaluationError, ValueError):
    """Two structures refer to different term universes."""


class IncompatibleMetricError(EvaluationError, ValueError):
    """The metric is not defined for the given evaluation axis."""


class ShapeMismatchError(EvaluationError, ValueError):
    """A curve and its threshold array differ in length."""
