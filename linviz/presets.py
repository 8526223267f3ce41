"""Preset transformation matrices and applying a matrix to vectors."""

from __future__ import annotations

import logging
import math

import numpy as np

from linviz.primitives import as_matrix

logger = logging.getLogger(__name__)

PRESETS = ("identity", "rotation", "scale", "shear", "reflection")


def rotation_matrix(theta: float, dimension: int = 2) -> np.ndarray:
    """Counter-clockwise rotation by theta radians (about the z axis in 3D)."""
    c, s = math.cos(theta), math.sin(theta)
    if dimension == 2:
        return np.array([[c, -s], [s, c]])
    if dimension == 3:
        return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])
    raise ValueError(f"Dimension must be 2 or 3, got {dimension}")


def preset_matrix(name: str, dimension: int = 2) -> np.ndarray:
    """Build one of the preset matrices offered in the matrix panel.

    Args:
        name: One of PRESETS
        dimension: 2 or 3

    Returns:
        dimension x dimension matrix
    """
    if dimension not in (2, 3):
        raise ValueError(f"Dimension must be 2 or 3, got {dimension}")

    if name == "identity":
        return np.eye(dimension)
    if name == "rotation":
        return rotation_matrix(math.pi / 4, dimension)
    if name == "scale":
        return 2.0 * np.eye(dimension)
    if name == "shear":
        m = np.eye(dimension)
        m[0, 1] = 0.5
        return m
    if name == "reflection":
        m = np.eye(dimension)
        m[0, 0] = -1.0
        return m

    raise ValueError(f"Unknown preset '{name}', expected one of {PRESETS}")


def apply_matrix(matrix: np.ndarray, vectors: np.ndarray) -> np.ndarray:
    """Transform vectors by a matrix.

    Args:
        matrix: 2x2 or 3x3 matrix
        vectors: A single vector or an Nxdim array of row vectors

    Returns:
        Transformed vectors, same shape as the input
    """
    m = as_matrix(matrix)
    v = np.asarray(vectors, dtype=float)
    if v.shape[-1] != m.shape[0]:
        raise ValueError(f"Expected vectors with {m.shape[0]} components, got shape {v.shape}")

    return v @ m.T
