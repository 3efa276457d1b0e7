# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Weight presets derived from a distance function.

"""
Named weight functions built on top of a pair distance.

    distance = distance_factory(euclidean, lambda n: n.x, lambda n: n.y)
    weight = weight_factory(distance).one

    weight(a, b)  # 1

Available presets:
- one: constant 1
- distance: d(i, j)
- distance_inverse_pow: d(i, j) ** -1
- distance_inverse2_pow: d(i, j) ** -2
- exponential_inverse_distance: exp(-d(i, j))
"""

from dataclasses import dataclass, fields
from typing import Any, Callable, Dict
import math

PairFn = Callable[[Any, Any], float]


@dataclass(frozen=True)
class WeightPresets:
    """Weight functions sharing one distance."""
    one: PairFn
    distance: PairFn
    distance_inverse_pow: PairFn
    distance_inverse2_pow: PairFn
    exponential_inverse_distance: PairFn

    @classmethod
    def names(cls):
        return [f.name for f in fields(cls)]

    def get(self, name: str) -> PairFn:
        """Look up a preset by name (dashes are accepted for underscores)."""
        key = name.replace('-', '_')
        if key not in self.names():
            raise KeyError(
                f"Unknown weight preset '{name}'. "
                f"Available: {', '.join(self.names())}"
            )
        return getattr(self, key)

    def as_dict(self) -> Dict[str, PairFn]:
        return {name: getattr(self, name) for name in self.names()}


def weight_factory(distance: PairFn) -> WeightPresets:
    """
    Create the default weight presets for a distance function.

    Args:
        distance: How the distance between two nodes is computed.

    Returns:
        WeightPresets with one pair function per preset.
    """
    return WeightPresets(
        one=lambda i, j: 1,
        distance=distance,
        distance_inverse_pow=lambda i, j: distance(i, j) ** -1,
        distance_inverse2_pow=lambda i, j: distance(i, j) ** -2,
        exponential_inverse_distance=lambda i, j: math.exp(-distance(i, j)),
    )
