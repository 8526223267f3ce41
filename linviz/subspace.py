"""Invariant subspace classification.

Eigenpairs are grouped by (near-)equal eigenvalue. A lone eigenvector spans
an invariant line, two independent eigenvectors sharing an eigenvalue span
an invariant plane, and a scalar matrix leaves every direction invariant.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np

from linviz.config import DEFAULT_TOLERANCES, Tolerances
from linviz.primitives import EigenStatus, Eigenpair, InvariantSubspace, as_matrix, as_vec3

logger = logging.getLogger(__name__)


def is_identity_like(matrix: np.ndarray, tol: float = DEFAULT_TOLERANCES.identity_tol) -> bool:
    """Check whether a matrix is a scalar multiple of the identity.

    Args:
        matrix: 2x2 or 3x3 matrix
        tol: Allowed deviation of off-diagonal entries from zero and of
            diagonal entries from each other

    Returns:
        True if every direction is an eigenvector
    """
    m = as_matrix(matrix)
    diagonal = np.diag(m)
    off_diagonal = m - np.diag(diagonal)

    return bool(np.all(np.abs(off_diagonal) < tol) and diagonal.max() - diagonal.min() < tol)


def group_eigenpairs(
    eigenpairs: Sequence[Eigenpair],
    tol: float = DEFAULT_TOLERANCES.eigenvalue_group_tol
) -> List[Tuple[float, List[np.ndarray]]]:
    """Group resolved eigenvectors by eigenvalue.

    Repeated roots are almost never bit-identical, so eigenvalues within
    ``tol`` of a group's first eigenvalue join that group.

    Args:
        eigenpairs: Eigenpairs in solver order
        tol: Eigenvalue equality tolerance

    Returns:
        List of (eigenvalue, vectors) in order of first appearance
    """
    groups: List[Tuple[float, List[np.ndarray]]] = []

    for pair in eigenpairs:
        if pair.status is not EigenStatus.RESOLVED:
            continue
        for value, vectors in groups:
            if abs(pair.value - value) < tol:
                vectors.append(pair.vector)
                break
        else:
            groups.append((pair.value, [pair.vector]))

    return groups


def _cross_norm_sq(v1: np.ndarray, v2: np.ndarray) -> float:
    c = np.cross(as_vec3(v1), as_vec3(v2))
    return float(np.dot(c, c))


def classify(
    matrix: np.ndarray,
    eigenpairs: Sequence[Eigenpair],
    tolerances: Tolerances = DEFAULT_TOLERANCES
) -> List[InvariantSubspace]:
    """Derive invariant lines, planes or the whole space from eigenpairs.

    Args:
        matrix: The 2x2 or 3x3 matrix the eigenpairs belong to
        eigenpairs: Eigenpairs of the matrix
        tolerances: Numeric tolerances

    Returns:
        Invariant subspaces, one per eigenvalue group
    """
    m = as_matrix(matrix)

    if is_identity_like(m, tolerances.identity_tol):
        scale = float(np.mean(np.diag(m)))
        logger.debug(f"Scalar matrix ({scale:.6g} * I): whole space is invariant")
        return [InvariantSubspace.whole_space(scale)]

    subspaces = []
    for value, vectors in group_eigenpairs(eigenpairs, tolerances.eigenvalue_group_tol):
        if len(vectors) == 1:
            subspaces.append(InvariantSubspace.line(vectors[0], value))
        elif len(vectors) == 2:
            v1, v2 = vectors
            if _cross_norm_sq(v1, v2) <= tolerances.plane_independence:
                subspaces.append(InvariantSubspace.line(v1, value))
            elif m.shape == (2, 2):
                # Two independent directions in R^2 span all of it
                subspaces.append(InvariantSubspace.whole_space(value))
            else:
                subspaces.append(InvariantSubspace.plane(v1, v2, value))
        else:
            subspaces.append(InvariantSubspace.whole_space(value))

    logger.debug(f"Invariant subspaces: {[s.kind.value for s in subspaces]}")
    return subspaces
