"""Geometric functions for lines and planes.

This module implements the closed-form intersection algorithms used by the
visualizer: line-plane, plane-plane and line-line intersections, plus a
pairwise pass over a whole collection of primitives.

None of these functions raise for degenerate geometry. Parallel, coincident
and skew configurations all come back as an IntersectionResult of kind NONE.
"""

from __future__ import annotations

import itertools
import logging
from typing import List, NamedTuple, Sequence, Union

import numpy as np

from linviz.config import DEFAULT_TOLERANCES, Tolerances
from linviz.primitives import IntersectionResult, Line, Plane, as_vec3

logger = logging.getLogger(__name__)

Primitive = Union[Line, Plane]


def normalize(v: np.ndarray) -> np.ndarray:
    """Scale a vector to unit length.

    Args:
        v: Non-zero vector with 2 or 3 components

    Returns:
        Unit vector of the same shape
    """
    v = np.asarray(v, dtype=float)
    norm = np.linalg.norm(v)
    if norm == 0:
        raise ValueError("Cannot normalize a zero vector")
    return v / norm


def cross(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Cross product, lifting 2D vectors into the z = 0 plane."""
    return np.cross(as_vec3(u), as_vec3(v))


def intersect_line_plane(
    line: Line,
    plane: Plane,
    tolerances: Tolerances = DEFAULT_TOLERANCES
) -> IntersectionResult:
    """Intersect the line p + t*d with the plane n.x = delta.

    A line parallel to the plane gives no result, whether it lies in the
    plane or not.

    Args:
        line: Line
        plane: Plane
        tolerances: Numeric tolerances

    Returns:
        POINT result, or NONE if the line is parallel to the plane
    """
    n = plane.normal
    denom = np.dot(n, line.direction)

    if abs(denom) < tolerances.line_plane_parallel:
        logger.debug(f"Line parallel to plane: n.d={denom:.3g}")
        return IntersectionResult.none("parallel")

    t = (plane.d - np.dot(n, line.point)) / denom
    return IntersectionResult.at_point(line.point_at(t))


def intersect_plane_plane(
    plane1: Plane,
    plane2: Plane,
    tolerances: Tolerances = DEFAULT_TOLERANCES
) -> IntersectionResult:
    """Intersect two planes.

    The intersection line runs along n1 x n2. One point on it is found by
    setting the coordinate with the largest |direction| component to zero
    and solving the remaining 2x2 system with Cramer's rule; that choice
    gives the largest determinant.

    Args:
        plane1: First plane
        plane2: Second plane
        tolerances: Numeric tolerances

    Returns:
        LINE result with a unit direction, or NONE for parallel or
        coincident planes
    """
    n1 = plane1.normal
    n2 = plane2.normal
    direction = np.cross(n1, n2)

    if np.linalg.norm(direction) < tolerances.plane_parallel:
        logger.debug("Planes are parallel or coincident")
        return IntersectionResult.none("parallel")

    # Zero out the best-conditioned axis
    axis = int(np.argmax(np.abs(direction)))
    i, j = [k for k in range(3) if k != axis]

    # n1[i] x_i + n1[j] x_j = d1
    # n2[i] x_i + n2[j] x_j = d2
    det = n1[i] * n2[j] - n1[j] * n2[i]
    point = np.zeros(3)
    point[i] = (plane1.d * n2[j] - n1[j] * plane2.d) / det
    point[j] = (n1[i] * plane2.d - plane1.d * n2[i]) / det

    return IntersectionResult.along_line(point, normalize(direction))


def intersect_line_line(
    line1: Line,
    line2: Line,
    tolerances: Tolerances = DEFAULT_TOLERANCES
) -> IntersectionResult:
    """Intersect two lines in 3-space.

    Args:
        line1: First line
        line2: Second line
        tolerances: Numeric tolerances

    Returns:
        POINT result, NONE("parallel") for parallel or coincident lines, or
        NONE("skew") for lines that are not coplanar
    """
    d1 = normalize(line1.direction)
    d2 = normalize(line2.direction)
    c = np.cross(d1, d2)
    c_norm_sq = np.dot(c, c)

    if c_norm_sq < tolerances.line_parallel:
        logger.debug("Lines are parallel or coincident")
        return IntersectionResult.none("parallel")

    w = line2.point - line1.point

    # Coplanarity: the offset between the lines must lie in span(d1, d2)
    if abs(np.dot(w, c)) > tolerances.coplanar_tol:
        logger.debug(f"Lines are skew: (p2-p1).(d1 x d2)={np.dot(w, c):.3g}")
        return IntersectionResult.none("skew")

    s = np.dot(np.cross(w, d2), c) / c_norm_sq
    return IntersectionResult.at_point(line1.point + s * d1)


def intersect(
    first: Primitive,
    second: Primitive,
    tolerances: Tolerances = DEFAULT_TOLERANCES
) -> IntersectionResult:
    """Intersect any two lines or planes."""
    if isinstance(first, Line) and isinstance(second, Line):
        return intersect_line_line(first, second, tolerances)
    if isinstance(first, Line) and isinstance(second, Plane):
        return intersect_line_plane(first, second, tolerances)
    if isinstance(first, Plane) and isinstance(second, Line):
        return intersect_line_plane(second, first, tolerances)
    if isinstance(first, Plane) and isinstance(second, Plane):
        return intersect_plane_plane(first, second, tolerances)

    raise TypeError(
        f"Cannot intersect {type(first).__name__} with {type(second).__name__}; "
        f"expected Line or Plane"
    )


class PairIntersection(NamedTuple):
    """Intersection between objects[first] and objects[second]."""

    first: int
    second: int
    result: IntersectionResult

    def to_dict(self) -> dict:
        return {"first": self.first, "second": self.second, **self.result.to_dict()}


def intersect_all(
    objects: Sequence[Primitive],
    tolerances: Tolerances = DEFAULT_TOLERANCES
) -> List[PairIntersection]:
    """Intersect every pair of primitives in a collection.

    Args:
        objects: Lines and planes
        tolerances: Numeric tolerances

    Returns:
        One entry per pair (i < j) that intersects, in pair order
    """
    if len(objects) < 2:
        logger.debug(f"Nothing to intersect: {len(objects)} object(s)")
        return []

    intersections = []
    for i, j in itertools.combinations(range(len(objects)), 2):
        result = intersect(objects[i], objects[j], tolerances)
        if not result.is_none:
            intersections.append(PairIntersection(i, j, result))

    n_pairs = len(objects) * (len(objects) - 1) // 2
    logger.debug(f"Found {len(intersections)}/{n_pairs} intersecting pairs")
    return intersections
