# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Accessor pairs for common node representations.

"""
``(to_point, from_point)`` pairs for the node shapes the engine is used with.

    to_point, from_point = key_accessors('x', 'y')
    stress_majorization(nodes, weight, stress,
                        to_point=to_point, from_point=from_point)
"""

import copy
import dataclasses
from typing import Any, Callable, Mapping, Tuple

from ..point import Point

ToPoint = Callable[[Any], Point]
FromPoint = Callable[[Point, Any], Any]


def point_accessors() -> Tuple[ToPoint, FromPoint]:
    """Nodes are ``(x, y)`` pairs; results come back as tuples."""
    def to_point(node) -> Point:
        x, y = node
        return (x, y)

    def from_point(point: Point, node) -> Point:
        return point

    return to_point, from_point


def key_accessors(x: str = 'x', y: str = 'y') -> Tuple[ToPoint, FromPoint]:
    """Nodes are mappings; coordinates are merged over a copy of the node."""
    def to_point(node: Mapping) -> Point:
        return (node[x], node[y])

    def from_point(point: Point, node: Mapping) -> dict:
        return {**node, x: point[0], y: point[1]}

    return to_point, from_point


def attr_accessors(x: str = 'x', y: str = 'y') -> Tuple[ToPoint, FromPoint]:
    """
    Nodes are objects with coordinate attributes.

    Dataclasses are rebuilt with ``dataclasses.replace``; other objects are
    shallow-copied before the attributes are set.
    """
    def to_point(node) -> Point:
        return (getattr(node, x), getattr(node, y))

    def from_point(point: Point, node):
        if dataclasses.is_dataclass(node) and not isinstance(node, type):
            return dataclasses.replace(node, **{x: point[0], y: point[1]})
        updated = copy.copy(node)
        setattr(updated, x, point[0])
        setattr(updated, y, point[1])
        return updated

    return to_point, from_point
