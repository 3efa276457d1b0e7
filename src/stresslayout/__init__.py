# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# 2D stress majorization layout.

"""
Stress majorization for 2D layouts.

Positions a set of nodes so that pairwise distances follow caller-supplied
weight and stress functions.

The io module provides JSON Lines I/O so layouts can be run in pipes.
"""

from . import point
from . import layout
from . import io
from .config import MajorizationOptions, Measure, Termination, load_options
from .distance import euclidean, squared, distance_factory
from .weight import weight_factory, WeightPresets
from .layout import (
    stress_majorization,
    flat_stress_majorization,
    numpy_stress_majorization,
)

__version__ = "0.1.0"

__all__ = [
    'point',
    'layout',
    'io',
    'MajorizationOptions',
    'Measure',
    'Termination',
    'load_options',
    'euclidean',
    'squared',
    'distance_factory',
    'weight_factory',
    'WeightPresets',
    'stress_majorization',
    'flat_stress_majorization',
    'numpy_stress_majorization',
]
