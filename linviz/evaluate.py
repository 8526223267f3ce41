"""Evaluation metrics for kernel results.

This module checks closed-form results after the fact: eigen residuals,
agreement with a reference eigen-solver, how well intersection points sit on
their primitives, plus timing utilities and a metrics container for batch
runs.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
from scipy import linalg

from linviz.primitives import (
    Decomposition,
    EigenStatus,
    Eigenpair,
    Eigenvalue,
    IntersectionResult,
    Line,
    Plane,
    as_matrix,
    as_vec3,
)

logger = logging.getLogger(__name__)


def eigen_residual(matrix: np.ndarray, eigenpair: Eigenpair) -> float:
    """Calculate ||A v - lambda v|| for an eigenpair.

    Args:
        matrix: 2x2 or 3x3 matrix
        eigenpair: Eigenpair of the matrix

    Returns:
        Residual norm, or nan if the pair carries no vector
    """
    if eigenpair.vector is None:
        return float("nan")

    m = as_matrix(matrix)
    v = eigenpair.vector
    return float(np.linalg.norm(m @ v - eigenpair.value * v))


def _sort_roots(values: np.ndarray) -> np.ndarray:
    # Conjugate pairs can differ in the last bits of their real parts
    order = np.lexsort((-values.imag, -np.round(values.real, 6)))
    return values[order]


def reference_eigenvalues(matrix: np.ndarray) -> np.ndarray:
    """Eigenvalues from LAPACK, sorted by real part then imaginary part, descending.

    Args:
        matrix: 2x2 or 3x3 matrix

    Returns:
        Complex array of eigenvalues
    """
    return _sort_roots(linalg.eigvals(as_matrix(matrix)))


def max_eigenvalue_error(matrix: np.ndarray, eigenvalues: Sequence[Eigenvalue]) -> float:
    """Largest distance between closed-form roots and the reference roots.

    Args:
        matrix: 2x2 or 3x3 matrix
        eigenvalues: Closed-form eigenvalues of the matrix

    Returns:
        Maximum absolute difference after sorting both sets the same way
    """
    reference = reference_eigenvalues(matrix)
    if len(eigenvalues) != len(reference):
        raise ValueError(f"Expected {len(reference)} eigenvalues, got {len(eigenvalues)}")

    ours = _sort_roots(np.array([ev.to_complex() for ev in eigenvalues]))

    return float(np.max(np.abs(ours - reference)))


def point_on_plane_residual(point: np.ndarray, plane: Plane) -> float:
    """Distance from a point to a plane."""
    p = as_vec3(point, "point")
    return float(abs(np.dot(plane.unit_normal, p - plane.point_nearest_origin())))


def point_on_line_residual(point: np.ndarray, line: Line) -> float:
    """Distance from a point to a line."""
    p = as_vec3(point, "point")
    d = line.direction / np.linalg.norm(line.direction)
    offset = p - line.point
    return float(np.linalg.norm(offset - np.dot(offset, d) * d))


def intersection_residual(result: IntersectionResult, first, second) -> float:
    """Worst distance from an intersection point to the two primitives.

    Args:
        result: POINT or LINE intersection of first and second
        first: Line or Plane
        second: Line or Plane

    Returns:
        Largest point-to-primitive distance, or nan for a NONE result
    """
    if result.is_none:
        return float("nan")

    residuals = []
    for primitive in (first, second):
        if isinstance(primitive, Plane):
            residuals.append(point_on_plane_residual(result.point, primitive))
        else:
            residuals.append(point_on_line_residual(result.point, primitive))

    return max(residuals)


class Timer:
    """Utility class for timing operations with context manager support."""

    def __init__(self, name: str = "Timer", logger: Optional[logging.Logger] = None):
        """Initialize timer.

        Args:
            name: Timer name for logging
            logger: Logger to use (if None, uses module logger)
        """
        self.name = name
        self.logger = logger or logging.getLogger(__name__)
        self.start_time = None
        self.end_time = None

    def start(self) -> None:
        self.start_time = time.perf_counter()
        self.end_time = None

    def stop(self) -> float:
        """Stop the timer and return elapsed time in seconds."""
        if self.start_time is None:
            self.logger.warning(f"{self.name}: Timer stopped without being started")
            return 0.0

        self.end_time = time.perf_counter()
        elapsed = self.end_time - self.start_time
        self.logger.debug(f"{self.name}: {elapsed * 1000:.3f}ms")
        return elapsed

    def __enter__(self) -> "Timer":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def timeit(self, func: Callable) -> Callable:
        """Decorator to time every call of a function."""
        def wrapper(*args, **kwargs):
            with self:
                return func(*args, **kwargs)

        return wrapper

    @property
    def elapsed(self) -> float:
        """Elapsed time in seconds; runs on while the timer has not been stopped."""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time is not None else time.perf_counter()
        return end - self.start_time


class KernelMetrics:
    """Class for accumulating and reporting metrics over a batch of kernel calls."""

    def __init__(self):
        """Initialize metrics container."""
        self.metrics = {
            "n_matrices": 0,
            "eigenpairs": {status.value: 0 for status in EigenStatus},
            "subspaces": {"line": 0, "plane": 0, "whole_space": 0},
            "max_eigen_residual": 0.0,
            "max_eigenvalue_error": 0.0,
            "n_objects": 0,
            "n_intersections": 0,
            "max_intersection_residual": 0.0,
            "runtime_s": 0.0,
            "stage_timings": {},
        }

    def add_decomposition(self, matrix: np.ndarray, decomposition: Decomposition) -> Dict[str, float]:
        """Record one eigendecomposition and check it against the reference solver.

        Args:
            matrix: The decomposed matrix
            decomposition: Result of eigendecompose

        Returns:
            Dictionary with this matrix's max residual and eigenvalue error
        """
        self.metrics["n_matrices"] += 1

        for pair in decomposition.eigenpairs:
            self.metrics["eigenpairs"][pair.status.value] += 1
        for subspace in decomposition.subspaces:
            self.metrics["subspaces"][subspace.kind.value] += 1

        residuals = [eigen_residual(matrix, pair) for pair in decomposition.eigenpairs
                     if pair.vector is not None]
        max_residual = max(residuals, default=0.0)
        error = max_eigenvalue_error(matrix, decomposition.eigenvalues)

        self.metrics["max_eigen_residual"] = max(self.metrics["max_eigen_residual"], max_residual)
        self.metrics["max_eigenvalue_error"] = max(self.metrics["max_eigenvalue_error"], error)

        return {"max_residual": max_residual, "eigenvalue_error": error}

    def add_intersections(self, objects: Sequence, intersections: List) -> None:
        """Record the result of an intersect_all pass.

        Args:
            objects: The primitives that were intersected
            intersections: PairIntersection entries returned for them
        """
        self.metrics["n_objects"] += len(objects)
        self.metrics["n_intersections"] += len(intersections)

        for entry in intersections:
            residual = intersection_residual(entry.result, objects[entry.first], objects[entry.second])
            self.metrics["max_intersection_residual"] = max(self.metrics["max_intersection_residual"], residual)

    def update(self, metric_name: str, value) -> None:
        self.metrics[metric_name] = value

    def update_stage_timing(self, stage_name: str, time_s: float) -> None:
        self.metrics["stage_timings"][stage_name] = time_s

    def to_dict(self) -> Dict:
        """Convert metrics to dictionary."""
        return {
            **self.metrics,
            "eigenpairs": dict(self.metrics["eigenpairs"]),
            "subspaces": dict(self.metrics["subspaces"]),
            "stage_timings": dict(self.metrics["stage_timings"]),
        }

    def summary(self) -> str:
        """Generate a human-readable summary of metrics."""
        pairs = self.metrics["eigenpairs"]
        subspaces = self.metrics["subspaces"]
        lines = [
            "Kernel Metrics:",
            f"  Matrices: {self.metrics['n_matrices']}",
            "  Eigenpairs: " + ", ".join(f"{k}={v}" for k, v in pairs.items() if v),
            "  Subspaces: " + ", ".join(f"{k}={v}" for k, v in subspaces.items() if v),
            f"  Max eigen residual: {self.metrics['max_eigen_residual']:.3e}",
            f"  Max eigenvalue error vs reference: {self.metrics['max_eigenvalue_error']:.3e}",
            f"  Objects: {self.metrics['n_objects']}, intersections: {self.metrics['n_intersections']}",
        ]

        if self.metrics["n_intersections"]:
            lines.append(f"  Max intersection residual: {self.metrics['max_intersection_residual']:.3e}")

        lines.append(f"  Total runtime: {self.metrics['runtime_s']:.3f}s")

        if self.metrics["stage_timings"]:
            lines.append("  Stage timings:")
            for stage, time_s in self.metrics["stage_timings"].items():
                lines.append(f"    {stage}: {time_s:.3f}s")

        return "\n".join(lines)
