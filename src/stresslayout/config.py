# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""
Solver options for stress majorization.

Usage:
    from stresslayout.config import MajorizationOptions, load_options

    options = MajorizationOptions(epsilon=1e-4, max_iterations=500)

    # Or from a YAML/JSON file
    options = load_options('layout.yaml')

    # camelCase keys are accepted as well
    options = MajorizationOptions.from_dict({'maxIterations': 0})
"""

import json
import math
import numbers
from dataclasses import dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
import logging

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_EPSILON = 1e-6
DEFAULT_MAX_ITERATIONS = 10000


def _load_yaml():
    """Lazy import yaml to avoid dependency at import time."""
    try:
        import yaml
        return yaml
    except ImportError:
        logger.warning("PyYAML not installed. Install with: pip install pyyaml")
        return None


class Termination(Enum):
    """When the majorization loop stops."""
    THRESHOLD = "threshold"     # stop once the measure is <= epsilon
    SUCCESSIVE = "successive"   # stop once successive measures differ by <= epsilon


class Measure(Enum):
    """How per-node displacements are reduced into one trace entry."""
    MEAN = "mean"
    SUM = "sum"


_ALIASES = {
    'maxIterations': 'max_iterations',
    'logInterval': 'log_interval',
}


def _coerce_enum(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = ', '.join(m.value for m in enum_cls)
        raise ValueError(
            f"Invalid {enum_cls.__name__.lower()} '{value}'. Choose from: {choices}"
        ) from None


@dataclass
class MajorizationOptions:
    """
    Configuration for the generic engine and the flat kernel.

    ``termination`` and ``measure`` left as None are filled in by the entry
    point: threshold/mean for stress_majorization, successive/sum for the
    flat kernels.

    ``ignore`` takes the signature of the entry point it is passed to:
    ``(i, j, xi, yi, xj, yj, vi, vj)`` for stress_majorization and
    ``(i, j, xi, yi, xj, yj)`` for the flat kernels, so an options object
    carrying an ignore predicate is tied to one of them.
    """
    epsilon: float = DEFAULT_EPSILON
    max_iterations: int = DEFAULT_MAX_ITERATIONS  # <= 0 means unlimited
    ignore: Optional[Callable[..., bool]] = None
    termination: Union[Termination, str, None] = None
    measure: Union[Measure, str, None] = None
    dtype: Any = 'float64'
    log_interval: int = 100

    def __post_init__(self):
        self.validate()

    @property
    def limited(self) -> bool:
        return self.max_iterations > 0

    def validate(self) -> 'MajorizationOptions':
        """Check values and normalize enum fields. Raises on bad input."""
        if isinstance(self.epsilon, bool) or not isinstance(self.epsilon, numbers.Real):
            raise ValueError(f"epsilon must be a number, got {self.epsilon!r}")
        self.epsilon = float(self.epsilon)
        if math.isnan(self.epsilon) or self.epsilon < 0:
            raise ValueError(f"epsilon must be >= 0, got {self.epsilon}")
        if (isinstance(self.max_iterations, bool)
                or not isinstance(self.max_iterations, numbers.Integral)):
            raise ValueError(
                f"max_iterations must be an integer, got {self.max_iterations!r}"
            )
        self.max_iterations = int(self.max_iterations)
        if (isinstance(self.log_interval, bool)
                or not isinstance(self.log_interval, numbers.Integral)
                or self.log_interval <= 0):
            raise ValueError(f"log_interval must be positive, got {self.log_interval!r}")
        self.log_interval = int(self.log_interval)
        if self.ignore is not None and not callable(self.ignore):
            raise TypeError("ignore must be callable")
        if self.termination is not None:
            self.termination = _coerce_enum(Termination, self.termination)
        if self.measure is not None:
            self.measure = _coerce_enum(Measure, self.measure)
        try:
            np.dtype(self.dtype)
        except TypeError:
            raise ValueError(f"Unsupported dtype {self.dtype!r}") from None
        return self

    def merged(self, **overrides) -> 'MajorizationOptions':
        """Copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def with_defaults(self, **defaults) -> 'MajorizationOptions':
        """Copy with unset (None) fields taken from ``defaults``."""
        changes = {k: v for k, v in defaults.items() if getattr(self, k) is None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view (the ignore callable is left out)."""
        return {
            'epsilon': self.epsilon,
            'max_iterations': self.max_iterations,
            'termination': self.termination.value if self.termination else None,
            'measure': self.measure.value if self.measure else None,
            'dtype': np.dtype(self.dtype).name,
            'log_interval': self.log_interval,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any], **defaults) -> 'MajorizationOptions':
        """Create from a plain dict, accepting camelCase keys."""
        known = {f.name for f in fields(cls)}
        values = dict(defaults)
        for key, value in (d or {}).items():
            name = _ALIASES.get(key, key)
            if name not in known:
                logger.warning(f"Ignoring unknown option '{key}'")
                continue
            values[name] = value
        return cls(**values)


def resolve_options(options: Union[MajorizationOptions, Dict[str, Any], None],
                    defaults: Dict[str, Any],
                    **overrides) -> MajorizationOptions:
    """
    Combine an options object or dict with per-call keyword overrides.

    Keyword values win over ``options``; ``defaults`` fill in whatever
    neither provides.
    """
    if isinstance(options, MajorizationOptions):
        base = options
    else:
        base = MajorizationOptions.from_dict(options or {})
    return base.merged(**overrides).with_defaults(**defaults)


def load_options(path: Union[str, Path], **defaults) -> MajorizationOptions:
    """
    Load solver options from a YAML or JSON file.

    A top-level ``majorization`` section is used when present.
    """
    path = Path(path)
    text = path.read_text()
    if path.suffix.lower() in ('.yaml', '.yml'):
        yaml = _load_yaml()
        if yaml is None:
            raise ValueError(f"Cannot read {path}: PyYAML is not installed")
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")
    data = data.get('majorization', data)
    logger.debug(f"Loaded options from {path}: {data}")
    return MajorizationOptions.from_dict(data, **defaults)
