# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Distance helpers for building weight and stress functions.

"""
Basic distance calculations between points.

Usage:
    from stresslayout.distance import euclidean, distance_factory

    euclidean((0, 0), (3, 4))  # 5.0

    # Distance between arbitrary nodes through accessors
    distance = distance_factory(euclidean, lambda n: n['x'], lambda n: n['y'])
    distance({'x': 0, 'y': 0}, {'x': 0, 'y': 2})  # 2.0
"""

from typing import Any, Callable

from .point import Point, length, sub

PairFn = Callable[[Any, Any], float]
KeyFn = Callable[[Any], float]


def euclidean(i: Point, j: Point) -> float:
    """Euclidean distance between two points."""
    return length(sub(i, j))


def squared(i: Point, j: Point) -> float:
    """Squared Euclidean distance between two points."""
    return length(sub(i, j)) ** 2


def distance_factory(distance: Callable[[Point, Point], float],
                     x: KeyFn, y: KeyFn) -> PairFn:
    """
    Adapt a point distance to a pair function over nodes.

    Args:
        distance: Point distance, e.g. ``euclidean``.
        x: Accessor returning the x coordinate of a node.
        y: Accessor returning the y coordinate of a node.
    """
    def pair_distance(i: Any, j: Any) -> float:
        return distance((x(i), y(i)), (x(j), y(j)))

    return pair_distance
