"""Configuration management for threshold-swept evaluation."""

import numbers
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import numpy as np
import yaml

from pfpeval.errors import InputValidationError


class EvalMode(str, Enum):
    """Which population is averaged over."""

    FULL = 'full'
    PARTIAL = 'partial'

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        aliases = {'1': cls.FULL, '2': cls.PARTIAL}
        key = str(value).lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise InputValidationError(
                f"Unknown evaluation mode {value!r}, expected 'full' or 'partial'"
            ) from None


class AvgMode(str, Enum):
    """macro: average per-entity metrics; micro: metric of averaged counts."""

    MACRO = 'macro'
    MICRO = 'micro'

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InputValidationError(
                f"Unknown averaging mode {value!r}, expected 'macro' or 'micro'"
            ) from None


TOI_TOKENS = ('all', 'noroot')
WEIGHT_TOKENS = ('equal', 'eia')


def default_tau(step: float = 0.01) -> np.ndarray:
    """Thresholds 0, step, 2 * step, ..., 1 (inclusive); ``step`` must divide 1."""
    if not isinstance(step, numbers.Real) or isinstance(step, bool) or not 0.0 < step <= 1.0:
        raise InputValidationError(f"tau step must lie within (0, 1], got {step!r}")
    n = int(round(1.0 / step))
    if not np.isclose(n * step, 1.0):
        raise InputValidationError(f"tau step {step} does not divide [0, 1] into equal intervals")
    return np.round(np.linspace(0.0, 1.0, n + 1), 10)


def validate_tau(tau) -> np.ndarray:
    """Return ``tau`` as a 1-D float array, or raise if it is not a threshold vector."""
    tau = np.asarray(tau, dtype=float)
    if tau.ndim == 0:
        tau = tau.reshape(1)
    if tau.ndim != 1 or tau.size == 0:
        raise InputValidationError("tau must be a non-empty 1-D array of thresholds")
    if not np.all(np.isfinite(tau)) or tau.min() < 0.0 or tau.max() > 1.0:
        raise InputValidationError("tau values must lie within [0, 1]")
    if np.any(np.diff(tau) < 0):
        raise InputValidationError("tau must be in ascending order")
    return tau


@dataclass
class EvalConfig:
    """Options shared by the evaluation entry points.

    All fields are checked together in ``__post_init__``; every problem found is
    reported in a single ``InputValidationError``.
    """

    tau: np.ndarray = field(default_factory=default_tau)
    eval_mode: EvalMode = EvalMode.FULL
    avg_mode: AvgMode = AvgMode.MACRO

    # Sequence-centric only
    toi: Union[str, np.ndarray] = 'noroot'
    weight: Union[str, np.ndarray] = 'equal'

    beta: float = 1.0
    order: float = 2.0
    qualify: Optional[np.ndarray] = None

    def __post_init__(self):
        problems = []

        try:
            self.tau = validate_tau(self.tau)
        except InputValidationError as e:
            problems.append(str(e))

        for name, parser in (('eval_mode', EvalMode.parse), ('avg_mode', AvgMode.parse)):
            try:
                setattr(self, name, parser(getattr(self, name)))
            except InputValidationError as e:
                problems.append(str(e))

        if isinstance(self.toi, str):
            if self.toi not in TOI_TOKENS:
                problems.append(f"toi must be one of {TOI_TOKENS} or a boolean mask, got {self.toi!r}")
        else:
            self.toi = np.asarray(self.toi)
            if self.toi.ndim != 1 or self.toi.dtype != bool:
                problems.append("toi mask must be a 1-D boolean array")

        if isinstance(self.weight, str):
            if self.weight not in WEIGHT_TOKENS:
                problems.append(f"weight must be one of {WEIGHT_TOKENS} or a vector, got {self.weight!r}")
        else:
            self.weight = np.asarray(self.weight, dtype=float)
            if self.weight.ndim != 1 or not np.all(np.isfinite(self.weight)) or np.any(self.weight < 0):
                problems.append("weight vector must be 1-D, finite and non-negative")

        for name in ('beta', 'order'):
            value = getattr(self, name)
            if not isinstance(value, numbers.Real) or isinstance(value, bool) or not value > 0:
                problems.append(f"{name} must be a positive real number, got {value!r}")

        if self.qualify is not None:
            self.qualify = np.asarray(self.qualify)
            if self.qualify.ndim != 1 or self.qualify.dtype != bool:
                problems.append("qualify must be a 1-D boolean array")

        if problems:
            raise InputValidationError("; ".join(problems))

    @classmethod
    def from_dict(cls, options: dict) -> 'EvalConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise InputValidationError(f"Unknown option(s): {', '.join(unknown)}")
        options = dict(options)
        # YAML has no step syntax, allow `tau: {step: 0.05}`
        if isinstance(options.get('tau'), dict):
            options['tau'] = default_tau(float(options['tau'].get('step', 0.01)))
        return cls(**options)

    @classmethod
    def from_yaml(cls, path) -> 'EvalConfig':
        with open(Path(path), 'r') as f:
            options = yaml.safe_load(f) or {}
        if not isinstance(options, dict):
            raise InputValidationError(f"{path} must contain a mapping of options")
        return cls.from_dict(options)

    def replace(self, **changes) -> 'EvalConfig':
        """Copy with some fields changed, re-validated."""
        unknown = sorted(set(changes) - {f.name for f in fields(self)})
        if unknown:
            raise InputValidationError(f"Unknown option(s): {', '.join(unknown)}")
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(changes)
        return EvalConfig(**current)
