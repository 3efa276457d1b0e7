# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Stress majorization over arbitrary node collections.

"""
Generic stress majorization.

Works on a list/tuple of nodes or a mapping of key -> node. Positions are
read with ``to_point`` and written back with ``from_point``; the numeric
work is done by the flat kernel on a packed buffer.

Example:

    nodes = [{'x': 0, 'y': 1}, {'x': 0, 'y': 2}, {'x': 1, 'y': 2}]
    result, trace = stress_majorization(
        nodes,
        weight=lambda xi, yi, xj, yj, vi, vj: 1,
        stress=lambda xi, yi, xj, yj, vi, vj: 20 / math.hypot(xi - xj, yi - yj),
        to_point=lambda n: (n['x'], n['y']),
        from_point=lambda p, n: {**n, 'x': p[0], 'y': p[1]},
    )

Defaults:
- to_point / from_point: nodes are ``(x, y)`` pairs
- ignore: ``(i, j, xi, yi, xj, yj, vi, vj) -> i == j``
- epsilon: 1e-6, compared with the mean displacement of each iteration
- max_iterations: 10000 (<= 0 for unlimited)
"""

from dataclasses import replace
from typing import (
    Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union
)
import logging

import numpy as np

from ..config import MajorizationOptions, Measure, Termination, resolve_options
from ..point import Point
from .flat import solve_flat

logger = logging.getLogger(__name__)

T = TypeVar('T')

# (xi, yi, xj, yj, vi, vj) -> float
NodePairFn = Callable[[float, float, float, float, Any, Any], float]
# (i, j, xi, yi, xj, yj, vi, vj) -> bool
NodeIgnoreFn = Callable[[int, int, float, float, float, float, Any, Any], bool]

ENGINE_DEFAULTS = {
    'termination': Termination.THRESHOLD,
    'measure': Measure.MEAN,
}


def _identity_point(node) -> Point:
    return node


def _replace_point(point: Point, node) -> Point:
    return point


def _index_table(data) -> Tuple[List[Any], List[Any]]:
    """Keys in collection order and the node stored under each."""
    if isinstance(data, Mapping):
        keys = list(data.keys())
        return keys, [data[k] for k in keys]
    if isinstance(data, np.ndarray):
        if data.ndim != 2:
            raise TypeError(f"Expected an (n, 2) array of points, got shape {data.shape}")
        return list(range(len(data))), list(data)
    if isinstance(data, (str, bytes)) or not isinstance(data, Sequence):
        raise TypeError(
            f"Expected a sequence or mapping of nodes, got {type(data).__name__}"
        )
    return list(range(len(data))), list(data)


def _rebuild(data, keys: List[Any], values: List[Any]):
    """Collection of the same shape as ``data`` holding ``values``."""
    if isinstance(data, Mapping):
        pairs = list(zip(keys, values))
        if type(data) is dict:
            return dict(pairs)
        try:
            return type(data)(pairs)
        except TypeError:
            return dict(pairs)
    if isinstance(data, np.ndarray):
        if not values:
            return data.copy()
        return np.asarray(values)
    if isinstance(data, tuple):
        return tuple(values)
    return list(values)


def has_undefined_positions(points) -> bool:
    """True if any coordinate in a buffer or point list is NaN."""
    return bool(np.isnan(np.asarray(points, dtype=float)).any())


def stress_majorization(
    data: Union[Sequence[T], Mapping[Any, T]],
    weight: NodePairFn,
    stress: NodePairFn,
    *,
    to_point: Callable[[T], Point] = _identity_point,
    from_point: Callable[[Point, T], T] = _replace_point,
    ignore: Optional[NodeIgnoreFn] = None,
    epsilon: Optional[float] = None,
    max_iterations: Optional[int] = None,
    termination: Union[Termination, str, None] = None,
    measure: Union[Measure, str, None] = None,
    dtype: Any = None,
    options: Union[MajorizationOptions, Dict[str, Any], None] = None,
) -> Tuple[Any, List[float]]:
    """
    Solve a node configuration using stress majorization.

    Args:
        data: Sequence of nodes, (n, 2) array of points, or mapping of
              key -> node. Not modified.
        weight: ``(xi, yi, xj, yj, vi, vj) -> float`` where vi, vj are nodes.
        stress: ``(xi, yi, xj, yj, vi, vj) -> float``.
        to_point: Extracts ``(x, y)`` from a node.
        from_point: Builds the updated node from ``(x, y)`` and the original.
        ignore: ``(i, j, xi, yi, xj, yj, vi, vj) -> bool``; pair skipped when
                true (default: ``i == j``).
        epsilon: Stop once the convergence measure is <= epsilon.
        max_iterations: Iteration cap, <= 0 for unlimited.
        termination, measure, dtype: See MajorizationOptions.
        options: MajorizationOptions or dict; keyword arguments win.

    Returns:
        (result, trace): collection with the same keys in the same order,
        and one convergence measure per iteration performed.
    """
    keys, nodes = _index_table(data)
    n = len(nodes)

    opts = resolve_options(
        options, ENGINE_DEFAULTS,
        epsilon=epsilon, max_iterations=max_iterations,
        termination=termination, measure=measure, dtype=dtype,
    )
    node_ignore = ignore or opts.ignore

    def kernel_weight(xi, yi, xj, yj, i, j):
        return weight(xi, yi, xj, yj, nodes[i], nodes[j])

    def kernel_stress(xi, yi, xj, yj, i, j):
        return stress(xi, yi, xj, yj, nodes[i], nodes[j])

    if node_ignore is None:
        kernel_ignore = None
    else:
        def kernel_ignore(i, j, xi, yi, xj, yj):
            return node_ignore(i, j, xi, yi, xj, yj, nodes[i], nodes[j])

    # The kernel sees index-typed callbacks only
    opts = replace(opts, ignore=kernel_ignore)

    points = np.zeros(2 * n, dtype=opts.dtype)
    for i, node in enumerate(nodes):
        x, y = to_point(node)
        points[2 * i] = x
        points[2 * i + 1] = y

    logger.debug(f"Laying out {n} nodes ({opts.termination.value}, {opts.measure.value})")
    run = solve_flat(points, kernel_weight, kernel_stress, opts)

    coords = run.points.tolist()
    updated = [
        from_point((coords[2 * i], coords[2 * i + 1]), node)
        for i, node in enumerate(nodes)
    ]
    return _rebuild(data, keys, updated), run.performed_trace()
