"""Numeric kernel for an interactive linear algebra visualizer.

Computes eigenvalues, eigenvectors and invariant subspaces of 2x2 and 3x3
matrices, and intersections between lines and planes, for a front end that
draws them.
"""

from __future__ import annotations

from linviz.display import normalize_for_display
from linviz.eigen import eigendecompose
from linviz.geometry import intersect_all, intersect_line_line, intersect_line_plane, intersect_plane_plane
from linviz.primitives import IntersectionResult, InvariantSubspace, Line, Plane

__version__ = "0.1.0"

__all__ = [
    "eigendecompose",
    "intersect_line_plane",
    "intersect_plane_plane",
    "intersect_line_line",
    "intersect_all",
    "normalize_for_display",
    "Line",
    "Plane",
    "IntersectionResult",
    "InvariantSubspace",
]
