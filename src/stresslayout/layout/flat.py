# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Stress majorization over a packed coordinate buffer.

"""
Flat-array stress majorization.

Points are stored in a single dimension buffer ``[x0, y0, x1, y1, ...]``.
Each iteration builds a fresh buffer from the previous one (Jacobi update):

    p_i' = sum_j w_ij * (p_j + s_ij * (p_i - p_j)) / sum_j w_ij

over every ``j`` the ignore predicate does not exclude.

Two implementations share the loop:
- flat_stress_majorization: scalar callbacks, called once per ordered pair
- numpy_stress_majorization: vectorized callbacks over N x N arrays

Example:

    points, trace = flat_stress_majorization(
        [0, 1, 0, 2, 1, 2],
        weight=lambda xi, yi, xj, yj, i, j: 1,
        stress=lambda xi, yi, xj, yj, i, j: 20 / math.hypot(xi - xj, yi - yj),
        max_iterations=0,   # <= 0 means unlimited
    )
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
import logging

import numpy as np

from ..config import MajorizationOptions, Measure, Termination, resolve_options

logger = logging.getLogger(__name__)

# (xi, yi, xj, yj, i, j) -> float
PairFn = Callable[[float, float, float, float, int, int], float]
# (i, j, xi, yi, xj, yj) -> bool
IgnoreFn = Callable[[int, int, float, float, float, float], bool]

FLAT_DEFAULTS = {
    'termination': Termination.SUCCESSIVE,
    'measure': Measure.SUM,
}


def ignore_same_index(i, j, *_):
    """Default ignore predicate: no self-interaction."""
    return i == j


@dataclass
class MajorizationRun:
    """Outcome of one solve over a flat buffer."""
    points: np.ndarray
    trace: Union[np.ndarray, List[float]]
    iterations: int
    converged: bool

    @property
    def undefined_count(self) -> int:
        """Nodes whose position is NaN (zero weight sum)."""
        return int(np.isnan(self.points.reshape(-1, 2)).any(axis=1).sum())

    def trimmed_trace(self) -> List[float]:
        """
        Trace as returned by the flat kernel.

        Bounded runs record into a zero-initialized buffer, which is cut at
        the first zero slot.
        """
        if isinstance(self.trace, list):
            return list(self.trace)
        zeros = np.flatnonzero(self.trace == 0)
        if zeros.size == 0:
            return self.trace.tolist()
        return self.trace[:zeros[0]].tolist()

    def performed_trace(self) -> List[float]:
        """Trace cut to exactly the iterations that ran."""
        return [float(v) for v in self.trace[:self.iterations]]


def as_buffer(points: Any, dtype: Any = np.float64) -> np.ndarray:
    """Copy points into a fresh flat buffer of even length."""
    buffer = np.array(points, dtype=dtype).reshape(-1)
    if buffer.size % 2:
        raise ValueError(
            f"Flat point buffer needs an even number of values, got {buffer.size}"
        )
    return buffer


def _keeps_changing(trace, iteration: int, current: float,
                    options: MajorizationOptions) -> bool:
    if options.termination is Termination.THRESHOLD:
        return current > options.epsilon
    # SUCCESSIVE: always take a second step, then compare with the previous entry
    return iteration == 1 or abs(float(trace[iteration - 2]) - current) > options.epsilon


def _iterate(points: np.ndarray,
             step: Callable[[np.ndarray], np.ndarray],
             options: MajorizationOptions) -> MajorizationRun:
    """Run ``step`` until the termination rule or the iteration cap stops it."""
    n = points.size // 2
    if n == 0:
        logger.debug("No points to lay out")
        return MajorizationRun(points, [], 0, True)

    limited = options.limited
    # bounded traces are recorded at buffer precision
    trace = np.zeros(options.max_iterations, dtype=points.dtype) if limited else []
    iteration = 0
    converged = False

    while True:
        new_points = step(points)

        # differences of stored values, taken in double precision
        old = points.astype(np.float64)
        new = new_points.astype(np.float64)
        with np.errstate(invalid='ignore'):
            displacement = np.hypot(new[0::2] - old[0::2], new[1::2] - old[1::2])
        current = 0.0
        for d in displacement.tolist():
            current += d
        if options.measure is Measure.MEAN:
            current /= n

        points = new_points
        if limited:
            trace[iteration] = current
        else:
            trace.append(current)
        iteration += 1

        if iteration % options.log_interval == 0:
            logger.debug(f"Iteration {iteration}: {options.measure.value} displacement {current:.6g}")

        if not _keeps_changing(trace, iteration, current, options):
            # NaN fails every comparison and stops the loop, but is not convergence
            converged = not np.isnan(current)
            break
        if iteration == options.max_iterations:
            break

    run = MajorizationRun(points, trace, iteration, converged)
    if converged:
        logger.info(f"Converged after {iteration} iterations ({current:.6g})")
    elif np.isnan(current):
        logger.warning(f"Stopped after {iteration} iterations on an undefined measure")
    else:
        logger.warning(
            f"Stopped at max_iterations={options.max_iterations} "
            f"before converging ({current:.6g})"
        )
    undefined = run.undefined_count
    if undefined:
        logger.warning(
            f"{undefined} of {n} nodes have undefined positions "
            "(zero weight sum; check ignore/weight functions)"
        )
    return run


def _scalar_step(weight: PairFn, stress: PairFn, ignore: IgnoreFn):
    def step(points: np.ndarray) -> np.ndarray:
        n = points.size // 2
        coords = points.tolist()
        new_points = np.zeros_like(points)
        weight_sums = np.zeros(n, dtype=np.float64)
        # narrower buffers round every partial sum, as a typed array would
        store = float if points.dtype == np.float64 else points.dtype.type

        for i in range(n):
            xi = coords[2 * i]
            yi = coords[2 * i + 1]
            sum_x = sum_y = sum_w = 0.0

            for j in range(n):
                xj = coords[2 * j]
                yj = coords[2 * j + 1]

                if ignore(i, j, xi, yi, xj, yj):
                    continue

                s_ij = stress(xi, yi, xj, yj, i, j)
                w_ij = weight(xi, yi, xj, yj, i, j)

                # sum += w_ij * (j + s_ij * (i - j))
                sum_w += w_ij
                sum_x = store(float(sum_x) + w_ij * (xj + s_ij * (xi - xj)))
                sum_y = store(float(sum_y) + w_ij * (yj + s_ij * (yi - yj)))

            new_points[2 * i] = sum_x
            new_points[2 * i + 1] = sum_y
            weight_sums[i] = sum_w

        # 0 / 0 gives NaN for nodes with nothing to sum
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            quotient = new_points.astype(np.float64) / np.repeat(weight_sums, 2)
            return quotient.astype(points.dtype)

    return step


def _vectorized_step(weight, stress, ignore, n: int):
    idx = np.arange(n)
    i_idx = idx[:, np.newaxis]
    j_idx = idx[np.newaxis, :]

    def step(points: np.ndarray) -> np.ndarray:
        x = points[0::2]
        y = points[1::2]
        xi, yi = x[:, np.newaxis], y[:, np.newaxis]  # (n, 1)
        xj, yj = x[np.newaxis, :], y[np.newaxis, :]  # (1, n)

        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            keep = ~np.broadcast_to(
                np.asarray(ignore(i_idx, j_idx, xi, yi, xj, yj), dtype=bool), (n, n)
            )
            s = np.broadcast_to(stress(xi, yi, xj, yj, i_idx, j_idx), (n, n))
            w = np.broadcast_to(weight(xi, yi, xj, yj, i_idx, j_idx), (n, n))

            # Ignored pairs may hold inf/NaN (e.g. self distance), mask the terms
            w = np.where(keep, w, 0.0)
            terms_x = np.where(keep, w * (xj + s * (xi - xj)), 0.0)
            terms_y = np.where(keep, w * (yj + s * (yi - yj)), 0.0)

            weight_sums = w.sum(axis=1)
            new_points = np.empty_like(points)
            new_points[0::2] = terms_x.sum(axis=1) / weight_sums
            new_points[1::2] = terms_y.sum(axis=1) / weight_sums
        return new_points

    return step


def _check_callables(weight, stress):
    if not callable(weight):
        raise TypeError("weight must be callable")
    if not callable(stress):
        raise TypeError("stress must be callable")


def solve_flat(points: Any, weight: PairFn, stress: PairFn,
               options: MajorizationOptions, vectorized: bool = False) -> MajorizationRun:
    """Solve with fully resolved options and return the raw run."""
    _check_callables(weight, stress)
    options = options.with_defaults(**FLAT_DEFAULTS)
    buffer = as_buffer(points, options.dtype)
    ignore = options.ignore or ignore_same_index
    if vectorized:
        step = _vectorized_step(weight, stress, ignore, buffer.size // 2)
    else:
        step = _scalar_step(weight, stress, ignore)
    return _iterate(buffer, step, options)


def flat_stress_majorization(
    points: Union[Sequence[float], np.ndarray],
    weight: PairFn,
    stress: PairFn,
    ignore: Optional[IgnoreFn] = None,
    epsilon: Optional[float] = None,
    max_iterations: Optional[int] = None,
    *,
    termination: Union[Termination, str, None] = None,
    measure: Union[Measure, str, None] = None,
    dtype: Any = None,
    options: Union[MajorizationOptions, Dict[str, Any], None] = None,
) -> Tuple[np.ndarray, List[float]]:
    """
    Solve a configuration given as a flat coordinate buffer.

    Args:
        points: ``[x0, y0, x1, y1, ...]`` (copied, never modified).
        weight: ``(xi, yi, xj, yj, i, j) -> float``, importance of the pair.
        stress: ``(xi, yi, xj, yj, i, j) -> float``, contraction factor along
                the line between the two points.
        ignore: ``(i, j, xi, yi, xj, yj) -> bool``, skip the pair when true
                (default: ``i == j``).
        epsilon: Convergence threshold (default: 1e-6).
        max_iterations: Iteration cap, <= 0 for unlimited (default: 10000).
        termination: Stopping rule (default: successive-difference).
        measure: Trace reduction (default: summed displacement).
        dtype: Buffer dtype (default: float64).
        options: MajorizationOptions or dict; keyword arguments win.

    Returns:
        (points, trace): the final buffer and one convergence measure per
        iteration. Bounded runs cut the trace at the first zero entry.
    """
    opts = resolve_options(
        options, FLAT_DEFAULTS,
        ignore=ignore, epsilon=epsilon, max_iterations=max_iterations,
        termination=termination, measure=measure, dtype=dtype,
    )
    run = solve_flat(points, weight, stress, opts)
    return run.points, run.trimmed_trace()


def numpy_stress_majorization(
    points: Union[Sequence[float], np.ndarray],
    weight: Callable[..., Any],
    stress: Callable[..., Any],
    ignore: Optional[Callable[..., Any]] = None,
    epsilon: Optional[float] = None,
    max_iterations: Optional[int] = None,
    *,
    termination: Union[Termination, str, None] = None,
    measure: Union[Measure, str, None] = None,
    dtype: Any = None,
    options: Union[MajorizationOptions, Dict[str, Any], None] = None,
) -> Tuple[np.ndarray, List[float]]:
    """
    NumPy-accelerated variant of flat_stress_majorization.

    Callbacks take the same arguments, broadcast instead of scalar:
    ``xi, yi, i`` have shape (n, 1) and ``xj, yj, j`` shape (1, n). They
    return arrays broadcastable to (n, n); ignore returns a boolean mask.

        weight = lambda xi, yi, xj, yj, i, j: 1.0
        stress = lambda xi, yi, xj, yj, i, j: 20 / np.hypot(xi - xj, yi - yj)

    Results agree with the scalar kernel up to summation order.
    """
    opts = resolve_options(
        options, FLAT_DEFAULTS,
        ignore=ignore, epsilon=epsilon, max_iterations=max_iterations,
        termination=termination, measure=measure, dtype=dtype,
    )
    run = solve_flat(points, weight, stress, opts, vectorized=True)
    return run.points, run.trimmed_trace()
