"""Eigenvectors of 2x2 and 3x3 matrices.

For each real eigenvalue l an eigenvector is a unit vector in the nullspace
of M = A - l*I. In 3D the nullspace is found by an ordered list of
strategies, tried until one produces a verified candidate:

1. all rows of M are zero: every direction works (3D eigenspace)
2. all non-zero rows are parallel: any vector perpendicular to the common
   row normal works (2D eigenspace)
3. cross products of row pairs (1D eigenspace, the generic case)
4. fix one coordinate to 1 and solve the remaining 2x2 system

Candidates are verified by substitution, ||M v|| < residual_tol, and must
not repeat a direction already found for the same eigenvalue.
"""

from __future__ import annotations

import logging
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from linviz.config import DEFAULT_TOLERANCES, Tolerances
from linviz.polynomial import characteristic_roots
from linviz.primitives import (
    Decomposition,
    EigenStatus,
    Eigenpair,
    Eigenvalue,
    as_matrix,
)
from linviz.subspace import classify, is_identity_like

logger = logging.getLogger(__name__)

ROW_PAIRS = ((0, 1), (0, 2), (1, 2))
E_X = np.array([1.0, 0.0, 0.0])
E_Y = np.array([0.0, 1.0, 0.0])


def _unit(v: np.ndarray) -> Optional[np.ndarray]:
    norm = np.linalg.norm(v)
    if norm == 0 or not np.isfinite(norm):
        return None
    return v / norm


def _perpendicular(normal: np.ndarray) -> np.ndarray:
    """Unit vector perpendicular to a unit normal."""
    axis = E_X if abs(normal[0]) < 0.9 else E_Y
    return _unit(np.cross(axis, normal))


class NullspaceProblem(NamedTuple):
    """A shifted matrix M = A - l*I and the directions to avoid."""

    shifted: np.ndarray
    already_found: Tuple[np.ndarray, ...]
    tolerances: Tolerances

    @property
    def row_norms_sq(self) -> np.ndarray:
        return np.einsum("ij,ij->i", self.shifted, self.shifted)

    def residual(self, v: np.ndarray) -> float:
        return float(np.linalg.norm(self.shifted @ v))

    def is_new_direction(self, v: np.ndarray) -> bool:
        return all(abs(float(np.dot(v, u))) <= self.tolerances.duplicate_cos for u in self.already_found)

    def accept(self, v: Optional[np.ndarray]) -> Optional[np.ndarray]:
        """Return the candidate if it is a verified, new eigenvector."""
        if v is None or not np.all(np.isfinite(v)):
            return None
        if self.residual(v) >= self.tolerances.residual_tol:
            return None
        if not self.is_new_direction(v):
            return None
        return v


Strategy = Callable[[NullspaceProblem], Optional[np.ndarray]]


def zero_rows(problem: NullspaceProblem) -> Optional[np.ndarray]:
    """Whole space is the eigenspace: return a basis vector orthogonal to those found."""
    if np.any(problem.row_norms_sq >= problem.tolerances.structural_eps):
        return None

    found = problem.already_found
    if len(found) == 0:
        v = E_X.copy()
    elif len(found) == 1:
        v = _perpendicular(found[0])
    elif len(found) == 2:
        v = _unit(np.cross(found[0], found[1]))
    else:
        return None

    return problem.accept(v)


def parallel_rows(problem: NullspaceProblem) -> Optional[np.ndarray]:
    """Plane of eigenvectors: every non-zero row shares one normal."""
    eps = problem.tolerances.structural_eps
    nonzero = [row for row, norm_sq in zip(problem.shifted, problem.row_norms_sq) if norm_sq >= eps]
    if not nonzero:
        return None

    normal = _unit(nonzero[0])
    for row in nonzero[1:]:
        sin = np.cross(_unit(row), normal)
        if np.dot(sin, sin) >= eps:
            return None

    found = problem.already_found
    if len(found) == 0:
        v = _perpendicular(normal)
    elif len(found) == 1:
        v = np.cross(normal, found[0])
        v = _perpendicular(normal) if np.dot(v, v) < eps else _unit(v)
    else:
        # A plane holds at most two independent eigenvectors
        return None

    return problem.accept(v)


def row_cross_products(problem: NullspaceProblem) -> Optional[np.ndarray]:
    """Line of eigenvectors: the cross product of two independent rows spans it."""
    eps = problem.tolerances.structural_eps
    rows, norms_sq = problem.shifted, problem.row_norms_sq

    for i, j in ROW_PAIRS:
        if norms_sq[i] < eps or norms_sq[j] < eps:
            continue
        v = np.cross(rows[i], rows[j])
        if np.dot(v, v) <= eps:
            continue
        candidate = problem.accept(_unit(v))
        if candidate is not None:
            return candidate

    return None


def fixed_coordinate(problem: NullspaceProblem) -> Optional[np.ndarray]:
    """Set x, y or z to 1 and solve two rows of M v = 0 for the other two."""
    eps = problem.tolerances.structural_eps
    m = problem.shifted

    for fixed in range(3):
        free = [k for k in range(3) if k != fixed]
        for i, j in ROW_PAIRS:
            sub = m[np.ix_([i, j], free)]
            if abs(np.linalg.det(sub)) <= eps:
                continue
            v = np.zeros(3)
            v[fixed] = 1.0
            v[free] = np.linalg.solve(sub, -m[[i, j], fixed])
            candidate = problem.accept(_unit(v))
            if candidate is not None:
                return candidate

    return None


STRATEGIES_3D: Tuple[Strategy, ...] = (zero_rows, parallel_rows, row_cross_products, fixed_coordinate)


def first_success(strategies: Sequence[Strategy], problem: NullspaceProblem) -> Optional[np.ndarray]:
    """Run strategies in order and return the first non-None result."""
    for strategy in strategies:
        v = strategy(problem)
        if v is not None:
            logger.debug(f"Eigenvector {np.round(v, 4)} from strategy '{strategy.__name__}'")
            return v
    return None


def eigenvector_3d(
    matrix: np.ndarray,
    eigenvalue: float,
    already_found: Sequence[np.ndarray] = (),
    tolerances: Tolerances = DEFAULT_TOLERANCES,
    strategies: Sequence[Strategy] = STRATEGIES_3D
) -> Optional[np.ndarray]:
    """Find a unit eigenvector of a 3x3 matrix.

    Args:
        matrix: 3x3 matrix
        eigenvalue: Real eigenvalue
        already_found: Eigenvectors already found for this eigenvalue; the
            result is independent of all of them
        tolerances: Numeric tolerances
        strategies: Nullspace strategies, tried in order

    Returns:
        Unit eigenvector, or None if no candidate passed verification
    """
    m = as_matrix(matrix, sizes=(3,))
    problem = NullspaceProblem(
        shifted=m - eigenvalue * np.eye(3),
        already_found=tuple(np.asarray(u, dtype=float) for u in already_found),
        tolerances=tolerances,
    )
    return first_success(strategies, problem)


def eigenvector_2d(
    matrix: np.ndarray,
    eigenvalue: float,
    already_found: Sequence[np.ndarray] = (),
    tolerances: Tolerances = DEFAULT_TOLERANCES
) -> Optional[np.ndarray]:
    """Find a unit eigenvector of a 2x2 matrix [[a, b], [c, d]].

    (a - l) x + b y = 0 gives (b, -(a - l)); c x + (d - l) y = 0 gives
    (-(d - l), c). With b and c both zero the matrix is diagonal and a
    coordinate axis is the answer. A second, independent vector for the
    same eigenvalue exists only when A - l*I vanishes.

    Args:
        matrix: 2x2 matrix
        eigenvalue: Real eigenvalue
        already_found: Eigenvectors already found for this eigenvalue
        tolerances: Numeric tolerances

    Returns:
        Unit eigenvector, or None
    """
    m = as_matrix(matrix, sizes=(2,))
    eps = tolerances.structural_eps
    problem = NullspaceProblem(
        shifted=m - eigenvalue * np.eye(2),
        already_found=tuple(np.asarray(u, dtype=float) for u in already_found),
        tolerances=tolerances,
    )
    (a_l, b), (c, d_l) = problem.shifted

    if problem.already_found:
        if np.all(np.abs(problem.shifted) < eps):
            u = problem.already_found[0]
            return problem.accept(np.array([-u[1], u[0]]))
        return None

    candidates = []
    if abs(b) > eps:
        candidates.append(np.array([b, -a_l]))
    if abs(c) > eps:
        candidates.append(np.array([-d_l, c]))
    if abs(a_l) > eps:
        candidates.append(np.array([0.0, 1.0]))
    else:
        candidates.append(np.array([1.0, 0.0]))

    for v in candidates:
        candidate = problem.accept(_unit(v))
        if candidate is not None:
            return candidate

    return None


def eigenvalues(matrix: np.ndarray, tolerances: Tolerances = DEFAULT_TOLERANCES) -> List[Eigenvalue]:
    """Characteristic roots of a 2x2 or 3x3 matrix, in solver order."""
    return characteristic_roots(matrix, tolerances)


def eigendecompose(matrix: np.ndarray, tolerances: Tolerances = DEFAULT_TOLERANCES) -> Decomposition:
    """Eigenpairs and invariant subspaces of a 2x2 or 3x3 matrix.

    Every root of the characteristic polynomial yields one eigenpair:

    - complex roots carry no vector (status COMPLEX)
    - scalar matrices carry no vectors (status WHOLE_SPACE); listing basis
      vectors would single out arbitrary directions
    - a real root gets a vector independent of those already found for the
      same eigenvalue; if none exists the pair is DEFECTIVE when the
      eigenvalue already has a vector, UNRESOLVED otherwise

    Args:
        matrix: 2x2 or 3x3 matrix (row-major, anything np.asarray accepts)
        tolerances: Numeric tolerances

    Returns:
        Decomposition(eigenpairs, subspaces)
    """
    m = as_matrix(matrix)
    roots = characteristic_roots(m, tolerances)

    if is_identity_like(m, tolerances.identity_tol):
        pairs = [Eigenpair(root, None, EigenStatus.WHOLE_SPACE) for root in roots]
        return Decomposition(pairs, classify(m, pairs, tolerances))

    solve = eigenvector_2d if m.shape == (2, 2) else eigenvector_3d
    found: List[Tuple[float, List[np.ndarray]]] = []
    pairs = []

    for root in roots:
        if root.is_complex:
            pairs.append(Eigenpair(root, None, EigenStatus.COMPLEX))
            continue

        value = root.real_part
        group = next((vectors for key, vectors in found
                      if abs(value - key) < tolerances.eigenvalue_group_tol), None)
        if group is None:
            group = []
            found.append((value, group))

        v = solve(m, value, group, tolerances)
        if v is not None:
            group.append(v)
            pairs.append(Eigenpair(root, v))
        elif group:
            logger.debug(f"Eigenvalue {value:.6g} has no further independent eigenvector")
            pairs.append(Eigenpair(root, None, EigenStatus.DEFECTIVE))
        else:
            logger.warning(f"Could not verify an eigenvector for eigenvalue {value:.6g}")
            pairs.append(Eigenpair(root, None, EigenStatus.UNRESOLVED))

    subspaces = classify(m, pairs, tolerances)

    logger.debug(
        f"Eigendecomposition of {m.shape[0]}x{m.shape[1]} matrix: "
        f"{[round(r.real_part, 6) for r in roots]}, "
        f"{sum(p.status is EigenStatus.RESOLVED for p in pairs)} eigenvectors, "
        f"{len(subspaces)} invariant subspaces"
    )
    return Decomposition(pairs, subspaces)
