# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)

"""
Tests for the flat-array stress majorization kernel.
"""

import sys
import os
import math
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

import numpy as np

from stresslayout.config import MajorizationOptions
from stresslayout.layout.flat import (
    as_buffer,
    flat_stress_majorization,
    numpy_stress_majorization,
)

TRIANGLE = [0, 1, 0, 2, 1, 2]
EXPECTED = [
    (-2.655, -9.487),
    (-7.832, 9.832),
    (11.487, 4.655),
]

# Summed displacement per iteration of a single-precision run
FLOAT32_TRACE = [
    48.16012954711914, 23.66357421875, 11.973434448242188, 5.980644702911377,
    2.9898386001586914, 1.4948339462280273, 0.7474081516265869,
    0.37370389699935913, 0.18685282766819, 0.09342575073242188,
    0.04671180993318558, 0.02335711382329464, 0.011679597198963165,
    0.0058394307270646095, 0.002920650877058506, 0.001460325438529253,
    0.0007289046188816428, 0.0003642835945356637, 0.0001830631517805159,
    0.00009193278674501926, 0.00004478662594920024, 0.000020974401195417158,
    0.000009084813427762128, 0.0000034811796467693057, 0.0000019073486328125,
    9.5367431640625e-7,
]


def unit_weight(xi, yi, xj, yj, i, j):
    return 1


def inverse_distance_stress(xi, yi, xj, yj, i, j):
    return 20 / math.hypot(xi - xj, yi - yj)


def manhattan_stress(xi, yi, xj, yj, i, j):
    return 20 - abs(xi - xj) - abs(yi - yj)


def zero_stress(xi, yi, xj, yj, i, j):
    return 0


class TestFlatKernelScenario(unittest.TestCase):
    """Three points pushed apart to pairwise distance 20."""

    def setUp(self):
        self.points, self.trace = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress, max_iterations=0
        )

    def test_final_positions(self):
        for k, (x, y) in enumerate(EXPECTED):
            self.assertAlmostEqual(self.points[2 * k], x, places=3)
            self.assertAlmostEqual(self.points[2 * k + 1], y, places=3)

    def test_trace_records_summed_displacement(self):
        """First entry is the sum of the three first-step displacements."""
        self.assertAlmostEqual(self.trace[0], 48.160, places=3)

    def test_trace_decreases_to_epsilon(self):
        self.assertGreater(len(self.trace), 20)
        self.assertLess(len(self.trace), 35)
        for prev, curr in zip(self.trace, self.trace[1:]):
            self.assertLessEqual(curr, prev)
        self.assertLessEqual(abs(self.trace[-2] - self.trace[-1]), 1e-6)
        self.assertLess(self.trace[-1], 1e-5)

    def test_pairwise_distances(self):
        p = self.points.reshape(-1, 2)
        for a, b in ((0, 1), (0, 2), (1, 2)):
            self.assertAlmostEqual(np.linalg.norm(p[a] - p[b]), 20.0, places=3)

    def test_input_untouched(self):
        data = np.array(TRIANGLE, dtype=float)
        flat_stress_majorization(data, unit_weight, inverse_distance_stress)
        np.testing.assert_array_equal(data, TRIANGLE)


class TestFlatKernelTermination(unittest.TestCase):
    """Tests for the successive-difference stopping rule and trace trimming."""

    def test_single_iteration_cutoff(self):
        points, trace = flat_stress_majorization(
            TRIANGLE, unit_weight, manhattan_stress, max_iterations=1
        )
        np.testing.assert_allclose(points, [-8.5, -16.5, -9, 11, 18.5, 10.5])
        self.assertEqual(len(trace), 1)
        self.assertAlmostEqual(trace[0], 51.638, places=3)

    def test_always_takes_second_step(self):
        """A fixed point still runs two iterations when unbounded."""
        points, trace = flat_stress_majorization(
            [0, 0, 2, 0], unit_weight,
            lambda xi, yi, xj, yj, i, j: 2 / math.hypot(xi - xj, yi - yj),
            max_iterations=0,
        )
        self.assertEqual(trace, [0.0, 0.0])
        np.testing.assert_array_equal(points, [0, 0, 2, 0])

    def test_bounded_trace_cut_at_first_zero(self):
        """Bounded runs drop entries from the first exact zero on."""
        _, trace = flat_stress_majorization(
            [0, 0, 2, 0], unit_weight,
            lambda xi, yi, xj, yj, i, j: 2 / math.hypot(xi - xj, yi - yj),
            max_iterations=10,
        )
        self.assertEqual(trace, [])

    def test_max_iterations_caps_trace(self):
        _, trace = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress, max_iterations=5
        )
        self.assertEqual(len(trace), 5)

    def test_threshold_rule_selectable(self):
        _, trace = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress,
            epsilon=1.0, max_iterations=0, termination='threshold',
        )
        self.assertLessEqual(trace[-1], 1.0)
        self.assertTrue(all(v > 1.0 for v in trace[:-1]))

    def test_mean_measure_selectable(self):
        _, summed = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress, max_iterations=3
        )
        _, mean = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress, max_iterations=3,
            measure='mean',
        )
        np.testing.assert_allclose(np.array(summed) / 3, mean)

    def test_options_dict(self):
        _, trace = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress,
            options={'maxIterations': 2},
        )
        self.assertEqual(len(trace), 2)


class TestFlatKernelUpdateRule(unittest.TestCase):
    """Tests for single update steps."""

    def test_zero_stress_gives_weighted_centroid(self):
        points, _ = flat_stress_majorization(
            TRIANGLE, unit_weight, zero_stress, max_iterations=1
        )
        np.testing.assert_allclose(points, [0.5, 2, 0.5, 1.5, 0, 1.5])

    def test_weighted_centroid(self):
        """Weights bias the centroid towards heavier neighbours."""
        points, _ = flat_stress_majorization(
            [0, 0, 4, 0, 0, 4],
            lambda xi, yi, xj, yj, i, j: 3 if j == 1 else 1,
            zero_stress, max_iterations=1,
        )
        # node 0: (3 * (4, 0) + 1 * (0, 4)) / 4
        self.assertAlmostEqual(points[0], 3.0)
        self.assertAlmostEqual(points[1], 1.0)

    def test_ignored_pairs_contribute_nothing(self):
        huge = lambda xi, yi, xj, yj, i, j: 1e9 if 2 in (i, j) else 1
        ignore = lambda i, j, *coords: i == j or j == 2
        points, _ = flat_stress_majorization(
            TRIANGLE, huge, zero_stress, ignore=ignore, max_iterations=1
        )
        np.testing.assert_allclose(points[:4], [0, 2, 0, 1])
        np.testing.assert_allclose(points[4:], [0, 1.5])

    def test_pairs_are_not_symmetrized(self):
        """(i, j) and (j, i) are evaluated separately."""
        calls = []

        def weight(xi, yi, xj, yj, i, j):
            calls.append((i, j))
            return 1

        flat_stress_majorization(TRIANGLE, weight, zero_stress, max_iterations=1)
        self.assertEqual(sorted(calls),
                         [(0, 1), (0, 2), (1, 0), (1, 2), (2, 0), (2, 1)])

    def test_deterministic(self):
        a, ta = flat_stress_majorization(TRIANGLE, unit_weight, inverse_distance_stress)
        b, tb = flat_stress_majorization(TRIANGLE, unit_weight, inverse_distance_stress)
        np.testing.assert_array_equal(a, b)
        self.assertEqual(ta, tb)


class TestFlatKernelEdgeCases(unittest.TestCase):
    """Tests for empty input, undefined positions and bad arguments."""

    def test_empty(self):
        points, trace = flat_stress_majorization([], unit_weight, zero_stress)
        self.assertEqual(points.size, 0)
        self.assertEqual(trace, [])

    def test_single_node_is_undefined(self):
        with self.assertLogs('stresslayout.layout.flat', level='WARNING') as logs:
            points, trace = flat_stress_majorization(
                [1, 2], unit_weight, zero_stress, max_iterations=5
            )
        self.assertTrue(np.isnan(points).all())
        self.assertEqual(len(trace), 2)
        self.assertTrue(all(math.isnan(v) for v in trace))
        self.assertTrue(any('undefined' in line for line in logs.output))

    def test_odd_length_rejected(self):
        with self.assertRaises(ValueError):
            as_buffer([0, 1, 2])

    def test_two_dimensional_input_is_packed(self):
        np.testing.assert_array_equal(as_buffer([[0, 1], [2, 3]]), [0, 1, 2, 3])

    def test_non_callable(self):
        with self.assertRaises(TypeError):
            flat_stress_majorization(TRIANGLE, 1, zero_stress)

    def test_options_object(self):
        options = MajorizationOptions(max_iterations=1, measure='sum')
        _, trace = flat_stress_majorization(
            TRIANGLE, unit_weight, manhattan_stress, options=options
        )
        self.assertAlmostEqual(trace[0], 51.638, places=3)


class TestFloat32Buffer(unittest.TestCase):
    """Single-precision buffers round after every accumulated term."""

    def setUp(self):
        self.points, self.trace = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress, dtype='float32'
        )

    def test_trace_matches_single_precision_run(self):
        self.assertEqual(len(self.trace), len(FLOAT32_TRACE))
        np.testing.assert_allclose(self.trace, FLOAT32_TRACE, rtol=1e-3, atol=1e-6)
        self.assertAlmostEqual(self.trace[0], 48.16012954711914, places=5)
        self.assertLessEqual(self.trace[-1], 1e-6)

    def test_final_positions(self):
        self.assertEqual(self.points.dtype, np.float32)
        self.assertAlmostEqual(float(self.points[0]), -2.6552522, places=4)
        self.assertAlmostEqual(float(self.points[1]), -9.486884, places=4)

    def test_unbounded_run_terminates(self):
        _, trace = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress,
            dtype='float32', max_iterations=0,
        )
        self.assertEqual(len(trace), len(FLOAT32_TRACE))


class TestFlatKernelOptionsObject(unittest.TestCase):
    """An options object keeps the kernel's own stopping rule and measure."""

    def test_object_matches_keywords(self):
        _, by_keyword = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress, epsilon=1e-3
        )
        _, by_object = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress,
            options=MajorizationOptions(epsilon=1e-3),
        )
        self.assertEqual(by_object, by_keyword)
        self.assertAlmostEqual(by_object[0], 48.160, places=3)

    def test_numpy_scalar_options(self):
        _, trace = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress,
            options=MajorizationOptions(max_iterations=np.int64(3), epsilon=np.float32(1e-3)),
        )
        self.assertEqual(len(trace), 3)


class TestNumpyKernel(unittest.TestCase):
    """Tests for the vectorized kernel."""

    @staticmethod
    def weight(xi, yi, xj, yj, i, j):
        return 1.0

    @staticmethod
    def stress(xi, yi, xj, yj, i, j):
        return 20 / np.hypot(xi - xj, yi - yj)

    def test_matches_scalar_kernel(self):
        scalar, scalar_trace = flat_stress_majorization(
            TRIANGLE, unit_weight, inverse_distance_stress, max_iterations=10
        )
        vector, vector_trace = numpy_stress_majorization(
            TRIANGLE, self.weight, self.stress, max_iterations=10
        )
        np.testing.assert_allclose(vector, scalar, atol=1e-9)
        np.testing.assert_allclose(vector_trace, scalar_trace, atol=1e-9)

    def test_converges(self):
        points, _ = numpy_stress_majorization(
            TRIANGLE, self.weight, self.stress, max_iterations=0
        )
        for k, (x, y) in enumerate(EXPECTED):
            self.assertAlmostEqual(points[2 * k], x, places=3)
            self.assertAlmostEqual(points[2 * k + 1], y, places=3)

    def test_mask_ignore(self):
        ignore = lambda i, j, xi, yi, xj, yj: (i == j) | (j == 2)
        points, _ = numpy_stress_majorization(
            TRIANGLE, self.weight, lambda *a: 0.0, ignore=ignore, max_iterations=1
        )
        np.testing.assert_allclose(points, [0, 2, 0, 1, 0, 1.5])

    def test_larger_random_layout(self):
        rng = np.random.default_rng(7)
        start = rng.uniform(0, 10, size=40)
        scalar, _ = flat_stress_majorization(
            start, unit_weight, inverse_distance_stress, max_iterations=3
        )
        vector, _ = numpy_stress_majorization(
            start, self.weight, self.stress, max_iterations=3
        )
        np.testing.assert_allclose(vector, scalar, rtol=1e-9, atol=1e-9)


if __name__ == '__main__':
    unittest.main()
