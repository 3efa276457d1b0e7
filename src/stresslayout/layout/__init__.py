# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Stress majorization layout algorithms.

"""
Layout solvers.

Provides:
- Generic stress majorization over node collections
- Flat-array kernel over packed coordinate buffers
- NumPy-vectorized kernel for array-valued callbacks
- Accessor pairs for common node shapes
"""

from .majorization import stress_majorization, has_undefined_positions
from .flat import (
    flat_stress_majorization,
    numpy_stress_majorization,
    ignore_same_index,
)
from .adapters import point_accessors, key_accessors, attr_accessors

__all__ = [
    'stress_majorization',
    'has_undefined_positions',
    'flat_stress_majorization',
    'numpy_stress_majorization',
    'ignore_same_index',
    'point_accessors',
    'key_accessors',
    'attr_accessors',
]
