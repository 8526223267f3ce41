"""Tests for the polynomial module.

Closed-form quadratic and cubic roots, including repeated roots, complex
pairs and the clamped trigonometric branch.
"""

import math
import sys
import unittest
from pathlib import Path

import numpy as np
import pytest

# Add parent directory to path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from linviz import polynomial
from linviz.presets import rotation_matrix


def real_parts(roots):
    return sorted(r.real_part for r in roots)


class TestQuadratic(unittest.TestCase):
    """Test the 2x2 characteristic polynomial."""

    def test_distinct_real_roots(self):
        """Symmetric matrix has roots 3 and 1, larger first."""
        roots = polynomial.solve_quadratic(np.array([[2.0, 1.0], [1.0, 2.0]]))

        self.assertEqual([r.real_part for r in roots], [3.0, 1.0])
        self.assertFalse(any(r.is_complex for r in roots))

    def test_rotation_gives_conjugate_pair(self):
        """Rotation by 45 degrees has eigenvalues cos45 +/- i sin45."""
        roots = polynomial.solve_quadratic(rotation_matrix(math.pi / 4))

        self.assertTrue(all(r.is_complex for r in roots))
        for r in roots:
            self.assertAlmostEqual(r.real_part, math.cos(math.pi / 4), delta=1e-12)
        self.assertAlmostEqual(roots[0].imag_part, math.sin(math.pi / 4), delta=1e-12)
        self.assertAlmostEqual(roots[1].imag_part, -math.sin(math.pi / 4), delta=1e-12)

    def test_repeated_root(self):
        """Shear has the double root 1."""
        roots = polynomial.solve_quadratic(np.array([[1.0, 0.5], [0.0, 1.0]]))

        self.assertEqual(real_parts(roots), [1.0, 1.0])
        self.assertFalse(any(r.is_complex for r in roots))

    def test_tiny_negative_discriminant_is_real(self):
        """A discriminant of about -4e-14 is rounding noise, not a complex pair."""
        roots = polynomial.solve_quadratic(np.array([[1.0, 1e-7], [-1e-7, 1.0]]))

        self.assertFalse(any(r.is_complex for r in roots))
        for r in roots:
            self.assertAlmostEqual(r.real_part, 1.0, delta=1e-12)

    def test_trace_and_determinant(self):
        trace, det = polynomial.trace_and_determinant([[1, 2], [3, 4]])
        self.assertEqual(trace, 5.0)
        self.assertEqual(det, -2.0)


class TestCubic(unittest.TestCase):
    """Test the depressed-cubic solver."""

    def test_three_distinct_roots(self):
        """(t - 1)(t - 2)(t - 3)."""
        roots = polynomial.solve_cubic(1, -6, 11, -6)

        np.testing.assert_allclose(real_parts(roots), [1, 2, 3], atol=1e-12)
        self.assertFalse(any(r.is_complex for r in roots))

    def test_triple_root(self):
        """(t - 1)^3 gives 1 three times."""
        roots = polynomial.solve_cubic(1, -3, 3, -1)

        self.assertEqual(len(roots), 3)
        for r in roots:
            self.assertEqual(r.real_part, pytest.approx(1.0))
            self.assertFalse(r.is_complex)

    def test_one_real_root_and_complex_pair(self):
        """t^3 - 1 has root 1 and -1/2 +/- i sqrt(3)/2."""
        roots = polynomial.solve_cubic(1, 0, 0, -1)

        self.assertFalse(roots[0].is_complex)
        self.assertAlmostEqual(roots[0].real_part, 1.0, delta=1e-12)

        for r in roots[1:]:
            self.assertTrue(r.is_complex)
            self.assertAlmostEqual(r.real_part, -0.5, delta=1e-12)
        self.assertAlmostEqual(roots[1].imag_part, math.sqrt(3) / 2, delta=1e-12)
        self.assertAlmostEqual(roots[2].imag_part, -math.sqrt(3) / 2, delta=1e-12)

    def test_small_positive_p_is_not_a_triple_root(self):
        """t^3 + 1e-4 t has roots 0 and +/- 0.01i."""
        roots = polynomial.solve_cubic(1, 0, 1e-4, 0)

        self.assertFalse(roots[0].is_complex)
        self.assertAlmostEqual(roots[0].real_part, 0.0, delta=1e-12)
        for r in roots[1:]:
            self.assertTrue(r.is_complex)
            self.assertAlmostEqual(r.real_part, 0.0, delta=1e-12)
        self.assertAlmostEqual(roots[1].imag_part, 0.01, delta=1e-12)
        self.assertAlmostEqual(roots[2].imag_part, -0.01, delta=1e-12)

    def test_small_rotation(self):
        """Rotating the xy plane by a small angle still gives a complex pair."""
        m = np.array([[0.0, -0.01, 0.0], [0.01, 0.0, 0.0], [0.0, 0.0, 0.0]])
        roots = polynomial.characteristic_roots(m)

        real = [r for r in roots if not r.is_complex]
        pair = [r for r in roots if r.is_complex]

        self.assertEqual(len(real), 1)
        self.assertAlmostEqual(real[0].real_part, 0.0, delta=1e-12)
        self.assertEqual(len(pair), 2)
        for r in pair:
            self.assertAlmostEqual(abs(r.imag_part), 0.01, delta=1e-12)

    def test_triple_root_with_shift(self):
        """(t - 5)^3 stays a triple root."""
        roots = polynomial.solve_cubic(1, -15, 75, -125)

        self.assertFalse(any(r.is_complex for r in roots))
        for r in roots:
            self.assertAlmostEqual(r.real_part, 5.0, delta=1e-9)

    def test_leading_coefficient_scaled(self):
        """2(t - 1)(t - 2)(t - 3) has the same roots."""
        roots = polynomial.solve_cubic(2, -12, 22, -12)
        np.testing.assert_allclose(real_parts(roots), [1, 2, 3], atol=1e-12)

    def test_not_a_cubic(self):
        with self.assertRaises(ValueError):
            polynomial.solve_cubic(0, 1, 2, 3)

    def test_characteristic_coefficients(self):
        """Trace, negated minor sum and determinant."""
        m = np.array([[3.0, 1.0, 1.0], [1.0, 3.0, 1.0], [1.0, 1.0, 3.0]])
        c2, c1, c0 = polynomial.characteristic_coefficients(m)

        self.assertEqual(c2, 9.0)
        self.assertEqual(c1, -24.0)
        self.assertAlmostEqual(c0, np.linalg.det(m), delta=1e-12)

    def test_characteristic_roots_of_repeated_plane_matrix(self):
        """[[3,1,1],[1,3,1],[1,1,3]] has eigenvalues 5, 2, 2."""
        m = np.array([[3.0, 1.0, 1.0], [1.0, 3.0, 1.0], [1.0, 1.0, 3.0]])
        roots = polynomial.characteristic_roots(m)

        np.testing.assert_allclose(real_parts(roots), [2, 2, 5], atol=1e-9)

    def test_rotation_about_z(self):
        """3D rotation keeps eigenvalue 1 and has a unit-modulus complex pair."""
        theta = math.pi / 4
        roots = polynomial.characteristic_roots(rotation_matrix(theta, 3))

        real = [r for r in roots if not r.is_complex]
        pair = [r for r in roots if r.is_complex]

        self.assertEqual(len(real), 1)
        self.assertAlmostEqual(real[0].real_part, 1.0, delta=1e-9)
        self.assertEqual(len(pair), 2)
        for r in pair:
            self.assertAlmostEqual(r.real_part, math.cos(theta), delta=1e-9)
            self.assertAlmostEqual(abs(r.imag_part), math.sin(theta), delta=1e-9)


class TestCubicRobustness(unittest.TestCase):
    """Symmetric matrices always have real eigenvalues; the solver must agree."""

    def setUp(self):
        self.rng = np.random.default_rng(20240611)

    def test_random_symmetric_matrices_have_finite_real_roots(self):
        """No NaN and no spurious complex pair for random symmetric matrices."""
        for _ in range(500):
            a = self.rng.uniform(-2, 2, size=(3, 3))
            m = (a + a.T) / 2

            roots = polynomial.characteristic_roots(m)

            self.assertEqual(len(roots), 3)
            for r in roots:
                self.assertTrue(math.isfinite(r.real_part), f"NaN root for\n{m}")
                self.assertFalse(r.is_complex, f"Complex root for symmetric\n{m}")

            np.testing.assert_allclose(
                real_parts(roots), np.sort(np.linalg.eigvalsh(m)), atol=1e-6
            )

    def test_rotated_repeated_roots(self):
        """Q diag(1, 1, 4) Q^T pushes the acos argument to the edge of [-1, 1]."""
        for _ in range(200):
            q, _ = np.linalg.qr(self.rng.normal(size=(3, 3)))
            m = q @ np.diag([1.0, 1.0, 4.0]) @ q.T

            roots = polynomial.characteristic_roots(m)

            for r in roots:
                self.assertTrue(math.isfinite(r.real_part))
                self.assertFalse(r.is_complex)
            np.testing.assert_allclose(real_parts(roots), [1, 1, 4], atol=1e-6)

    def test_scaled_rotated_repeated_roots(self):
        """The real/complex split must not depend on the size of the entries."""
        for k in (0.01, 1.0, 3.0, 7.5, 40.0, 1000.0):
            for _ in range(100):
                q, _ = np.linalg.qr(self.rng.normal(size=(3, 3)))
                m = q @ np.diag([2.0, 2.0, 5.0]) @ q.T * k

                roots = polynomial.characteristic_roots(m)

                for r in roots:
                    self.assertFalse(r.is_complex, f"Complex root for k={k}\n{m}")
                np.testing.assert_allclose(
                    real_parts(roots), np.array([2, 2, 5]) * k, rtol=0, atol=1e-6 * k
                )

    def test_equal_off_diagonal_matrices(self):
        """[[a, b, b], [b, a, b], [b, b, a]] has roots a + 2b and a - b twice."""
        for a in np.arange(-5.0, 5.01, 0.7):
            for b in np.arange(0.1, 5.01, 0.4):
                m = np.full((3, 3), b) + np.eye(3) * (a - b)

                roots = polynomial.characteristic_roots(m)

                self.assertFalse(any(r.is_complex for r in roots), f"a={a}, b={b}")
                np.testing.assert_allclose(
                    real_parts(roots), sorted([a + 2 * b, a - b, a - b]), atol=1e-6
                )

    def test_large_symmetric_2x2_near_repeated_root(self):
        """trace^2 - 4 det loses its last digits for large entries."""
        a, b = 12345.678, 1e-4
        roots = polynomial.solve_quadratic(np.array([[a, b], [b, a]]))

        self.assertFalse(any(r.is_complex for r in roots))
        for r in roots:
            self.assertAlmostEqual(r.real_part, a, delta=1e-3)


if __name__ == "__main__":
    unittest.main()
