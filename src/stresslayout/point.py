# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# 2D point arithmetic.

"""
Operations over points represented as ``(x, y)`` tuples.
"""

from typing import Tuple
import math

Point = Tuple[float, float]


def add(i: Point, j: Point) -> Point:
    """i + j"""
    return (i[0] + j[0], i[1] + j[1])


def sub(i: Point, j: Point) -> Point:
    """i - j"""
    return (i[0] - j[0], i[1] - j[1])


def mult(a: float, i: Point) -> Point:
    """a * i"""
    return (i[0] * a, i[1] * a)


def div(i: Point, a: float) -> Point:
    """i / a"""
    return (i[0] / a, i[1] / a)


def length(i: Point) -> float:
    """Euclidean length of i."""
    return math.hypot(i[0], i[1])
