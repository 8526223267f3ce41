"""Closed-form characteristic polynomial roots.

Quadratic roots for 2x2 matrices and depressed-cubic roots (trigonometric
method or Cardano's formula) for 3x3 matrices. Roots are returned in solver
order, tagged real or complex, with repeated roots kept; grouping them is
left to the subspace classifier.
"""

from __future__ import annotations

import logging
import math
from typing import List, Tuple

import numpy as np

from linviz.config import DEFAULT_TOLERANCES, Tolerances
from linviz.primitives import Eigenvalue, as_matrix

logger = logging.getLogger(__name__)


def trace_and_determinant(matrix: np.ndarray) -> Tuple[float, float]:
    """Trace and determinant of a 2x2 matrix [[a, b], [c, d]]."""
    (a, b), (c, d) = as_matrix(matrix, sizes=(2,))
    return a + d, a * d - b * c


def characteristic_coefficients(matrix: np.ndarray) -> Tuple[float, float, float]:
    """Coefficients of -l^3 + c2*l^2 + c1*l + c0 for a 3x3 matrix.

    Args:
        matrix: 3x3 matrix

    Returns:
        Tuple (c2, c1, c0): the trace, the negated sum of the principal
        2x2 minors, and the determinant
    """
    m = as_matrix(matrix, sizes=(3,))
    (a11, a12, a13), (a21, a22, a23), (a31, a32, a33) = m

    c2 = a11 + a22 + a33
    c1 = -(a11 * a22 + a11 * a33 + a22 * a33 - a12 * a21 - a13 * a31 - a23 * a32)
    c0 = (a11 * a22 * a33 + a12 * a23 * a31 + a13 * a21 * a32
          - a13 * a22 * a31 - a12 * a21 * a33 - a11 * a23 * a32)

    return c2, c1, c0


def solve_quadratic(matrix: np.ndarray, tolerances: Tolerances = DEFAULT_TOLERANCES) -> List[Eigenvalue]:
    """Eigenvalues of a 2x2 matrix from l^2 - trace*l + det = 0.

    A discriminant below -root_eps * (trace^2 + 4|det|) gives a
    complex-conjugate pair. Anything above is treated as real, with a
    slightly negative discriminant clamped to zero (a repeated root).

    Args:
        matrix: 2x2 matrix
        tolerances: Numeric tolerances

    Returns:
        Two eigenvalues, larger real root first
    """
    trace, det = trace_and_determinant(matrix)
    discriminant = trace * trace - 4 * det

    logger.debug(f"Quadratic: trace={trace:.6g}, det={det:.6g}, discriminant={discriminant:.6g}")

    if discriminant < -tolerances.root_eps * (trace * trace + 4 * abs(det)):
        return list(Eigenvalue.conjugate_pair(trace / 2, math.sqrt(-discriminant) / 2))

    sqrt_disc = math.sqrt(max(0.0, discriminant))
    return [Eigenvalue.real((trace + sqrt_disc) / 2), Eigenvalue.real((trace - sqrt_disc) / 2)]


def solve_cubic(
    a: float,
    b: float,
    c: float,
    d: float,
    tolerances: Tolerances = DEFAULT_TOLERANCES
) -> List[Eigenvalue]:
    """Solve a*t^3 + b*t^2 + c*t + d = 0 in closed form.

    The cubic is normalized and depressed to x^3 + p*x + q = 0 with
    t = x - b/3. With discriminant D = -(4p^3 + 27q^2):

    - p and q both within eps of zero: triple root cbrt(-q) - b/3
    - p < 0 and D >= -eps * scale: three real roots by the trigonometric
      method
    - otherwise: one real root and a conjugate pair by Cardano's formula

    D grows with the sixth power of the roots, so its sign test is taken
    relative to scale = 4|p|^3 + 27q^2. The triple-root test is
    relative to the matching power of b/3. The acos argument of the
    trigonometric method is clamped to [-1, 1]; rounding pushes it just
    outside that range for near-repeated roots.

    Args:
        a, b, c, d: Polynomial coefficients, a != 0
        tolerances: Numeric tolerances

    Returns:
        Three eigenvalues (real roots first for the Cardano case)
    """
    if a == 0:
        raise ValueError("Leading coefficient of a cubic must be non-zero")

    b, c, d = b / a, c / a, d / a
    shift = b / 3

    # Depressed cubic x^3 + p x + q
    p = c - b * b / 3
    q = 2 * b * b * b / 27 - b * c / 3 + d
    discriminant = -(4 * p * p * p + 27 * q * q)
    scale = 4 * abs(p) ** 3 + 27 * q * q
    eps = tolerances.root_eps

    logger.debug(f"Cubic: p={p:.6g}, q={q:.6g}, discriminant={discriminant:.6g}")

    if abs(p) < eps * max(1.0, shift * shift) and abs(q) < eps * max(1.0, abs(shift) ** 3):
        root = float(np.cbrt(-q)) - shift
        return [Eigenvalue.real(root) for _ in range(3)]

    if p < 0 and discriminant >= -eps * scale:
        m = math.sqrt(-p / 3)
        arg = float(np.clip(-q / (2 * m * m * m), -1.0, 1.0))
        theta = math.acos(arg) / 3
        return [
            Eigenvalue.real(2 * m * math.cos(theta - 2 * math.pi * k / 3) - shift)
            for k in range(3)
        ]

    # D <= 0 here up to rounding
    sqrt_term = math.sqrt(max(0.0, -discriminant) / 108)
    A = float(np.cbrt(-q / 2 + sqrt_term))
    B = float(np.cbrt(-q / 2 - sqrt_term))

    real_root = A + B - shift
    pair = Eigenvalue.conjugate_pair(-(A + B) / 2 - shift, abs(A - B) * math.sqrt(3) / 2)

    return [Eigenvalue.real(real_root), *pair]


def solve_characteristic_cubic(matrix: np.ndarray, tolerances: Tolerances = DEFAULT_TOLERANCES) -> List[Eigenvalue]:
    """Eigenvalues of a 3x3 matrix."""
    c2, c1, c0 = characteristic_coefficients(matrix)
    # -l^3 + c2 l^2 + c1 l + c0 = 0  <=>  l^3 - c2 l^2 - c1 l - c0 = 0
    return solve_cubic(1.0, -c2, -c1, -c0, tolerances)


def characteristic_roots(matrix: np.ndarray, tolerances: Tolerances = DEFAULT_TOLERANCES) -> List[Eigenvalue]:
    """Dispatch to the quadratic or cubic solver by matrix size."""
    m = as_matrix(matrix)
    if m.shape == (2, 2):
        return solve_quadratic(m, tolerances)
    return solve_characteristic_cubic(m, tolerances)
