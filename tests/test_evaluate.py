"""Tests for evaluation metrics and timing utilities."""

import math
import sys
import time
import unittest
from pathlib import Path

import numpy as np

# Add parent directory to path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from linviz import eigen, evaluate, geometry
from linviz.presets import rotation_matrix
from linviz.primitives import EigenStatus, Eigenpair, Eigenvalue, IntersectionResult, Line, Plane


class TestEigenChecks(unittest.TestCase):

    def test_eigen_residual(self):
        m = np.diag([1.0, 2.0, 3.0])
        good = Eigenpair(Eigenvalue.real(2.0), [0.0, 1.0, 0.0])
        bad = Eigenpair(Eigenvalue.real(2.0), [1.0, 0.0, 0.0])
        missing = Eigenpair(Eigenvalue.real(2.0), None, EigenStatus.DEFECTIVE)

        self.assertEqual(evaluate.eigen_residual(m, good), 0.0)
        self.assertAlmostEqual(evaluate.eigen_residual(m, bad), 1.0)
        self.assertTrue(math.isnan(evaluate.eigen_residual(m, missing)))

    def test_reference_eigenvalues_sorted(self):
        values = evaluate.reference_eigenvalues(np.diag([1.0, 3.0, 2.0]))
        np.testing.assert_allclose(values.real, [3, 2, 1])

    def test_closed_form_matches_reference(self):
        for m in (
            np.array([[2.0, 1.0], [1.0, 2.0]]),
            rotation_matrix(math.pi / 3),
            rotation_matrix(math.pi / 4, 3),
            np.array([[3.0, 1.0, 1.0], [1.0, 3.0, 1.0], [1.0, 1.0, 3.0]]),
        ):
            with self.subTest(matrix=m.tolist()):
                error = evaluate.max_eigenvalue_error(m, eigen.eigenvalues(m))
                self.assertLess(error, 1e-9)

    def test_eigenvalue_count_mismatch(self):
        with self.assertRaises(ValueError):
            evaluate.max_eigenvalue_error(np.eye(3), [Eigenvalue.real(1.0)])


class TestIntersectionChecks(unittest.TestCase):

    def test_point_residuals(self):
        plane = Plane(0, 0, 2, 4)
        line = Line([0, 0, 0], [1, 0, 0])

        self.assertAlmostEqual(evaluate.point_on_plane_residual([5, 5, 2], plane), 0.0)
        self.assertAlmostEqual(evaluate.point_on_plane_residual([0, 0, 5], plane), 3.0)
        self.assertAlmostEqual(evaluate.point_on_line_residual([7, 0, 0], line), 0.0)
        self.assertAlmostEqual(evaluate.point_on_line_residual([7, 3, 4], line), 5.0)

    def test_intersection_residual(self):
        line = Line([0, 0, 3], [0, 0, 1])
        plane = Plane(1, 1, 1, 1)

        result = geometry.intersect_line_plane(line, plane)

        self.assertLess(evaluate.intersection_residual(result, line, plane), 1e-12)
        self.assertTrue(math.isnan(evaluate.intersection_residual(IntersectionResult.none("skew"), line, line)))


class TestTimer(unittest.TestCase):

    def test_context_manager(self):
        with evaluate.Timer("sleep") as timer:
            time.sleep(0.01)
        self.assertGreaterEqual(timer.elapsed, 0.005)

        # Stopped timers do not keep running
        elapsed = timer.elapsed
        time.sleep(0.01)
        self.assertEqual(timer.elapsed, elapsed)

    def test_unstarted_timer(self):
        timer = evaluate.Timer("idle")
        self.assertEqual(timer.elapsed, 0.0)
        with self.assertLogs("linviz.evaluate", level="WARNING"):
            self.assertEqual(timer.stop(), 0.0)

    def test_timeit_decorator(self):
        timer = evaluate.Timer("square")
        square = timer.timeit(lambda x: x * x)
        self.assertEqual(square(4), 16)
        self.assertIsNotNone(timer.end_time)


class TestKernelMetrics(unittest.TestCase):

    def test_add_decomposition(self):
        metrics = evaluate.KernelMetrics()
        m = np.array([[2.0, 1.0, 0.0], [0.0, 2.0, 0.0], [0.0, 0.0, 5.0]])

        checks = metrics.add_decomposition(m, eigen.eigendecompose(m))

        self.assertLess(checks["max_residual"], 1e-9)
        self.assertLess(checks["eigenvalue_error"], 1e-9)

        result = metrics.to_dict()
        self.assertEqual(result["n_matrices"], 1)
        self.assertEqual(result["eigenpairs"]["resolved"], 2)
        self.assertEqual(result["eigenpairs"]["defective"], 1)
        self.assertEqual(result["subspaces"]["line"], 2)

    def test_add_intersections_and_summary(self):
        metrics = evaluate.KernelMetrics()
        objects = [Line([0, 0, 0], [0, 0, 1]), Plane(0, 0, 1, 2), Plane(1, 0, 1, 0)]

        metrics.add_intersections(objects, geometry.intersect_all(objects))
        metrics.update("runtime_s", 0.5)
        metrics.update_stage_timing("intersections", 0.25)

        self.assertEqual(metrics.metrics["n_objects"], 3)
        self.assertEqual(metrics.metrics["n_intersections"], 3)
        self.assertLess(metrics.metrics["max_intersection_residual"], 1e-12)

        summary = metrics.summary()
        self.assertIn("Objects: 3, intersections: 3", summary)
        self.assertIn("intersections: 0.250s", summary)
        self.assertIn("Total runtime: 0.500s", summary)


if __name__ == "__main__":
    unittest.main()
