"""Human-readable forms of kernel results.

Eigenvectors come out of the solver as unit floats; users would rather see
(1, 1, 0) than (0.707, 0.707, 0). This module turns directions into small
integer tuples and formats lines, planes and eigenvalues as labels.
"""

from __future__ import annotations

import logging
import math
from functools import reduce
from typing import Tuple

import numpy as np

from linviz.config import DEFAULT_TOLERANCES, Tolerances
from linviz.primitives import Eigenvalue, Line, Plane

logger = logging.getLogger(__name__)


def normalize_for_display(vector: np.ndarray, tolerances: Tolerances = DEFAULT_TOLERANCES) -> Tuple[int, ...]:
    """Turn a direction into the smallest integer direction it represents.

    Components smaller than display_zero_tol times the largest |component|
    are solver noise and become 0. The rest are divided by the smallest
    remaining |component|. The first multiplier m in [1, max_multiplier]
    that makes every ratio*m an integer (within integer_tol) is used; if
    none does, the ratios are rounded. The result is divided by the GCD of
    its entries. Signs are kept.

    Args:
        vector: Direction with 2 or 3 components
        tolerances: Numeric tolerances

    Returns:
        Tuple of ints, same length as the input
    """
    v = np.asarray(vector, dtype=float).reshape(-1)
    magnitudes = np.abs(v)
    peak = magnitudes.max() if v.size else 0.0

    if peak == 0:
        return tuple(0 for _ in v)

    v = np.where(magnitudes > tolerances.display_zero_tol * peak, v, 0.0)
    nonzero = np.abs(v[v != 0])

    ratios = v / nonzero.min()

    for m in range(1, tolerances.max_multiplier + 1):
        scaled = ratios * m
        if np.all(np.abs(scaled - np.round(scaled)) < tolerances.integer_tol):
            break
    else:
        logger.debug(f"No multiplier up to {tolerances.max_multiplier} for {v}; rounding ratios")
        scaled = ratios

    ints = [int(x) for x in np.round(scaled)]
    divisor = reduce(math.gcd, (abs(x) for x in ints))
    if divisor > 1:
        ints = [x // divisor for x in ints]

    return tuple(ints)


def _number(x: float, digits: int = 3) -> str:
    x = round(float(x), digits)
    if x == 0:
        x = 0.0
    return str(int(x)) if x.is_integer() else f"{x:g}"


def format_direction(vector: np.ndarray, tolerances: Tolerances = DEFAULT_TOLERANCES) -> str:
    """Format a direction as '(1, 1, 0)'."""
    return "(" + ", ".join(str(x) for x in normalize_for_display(vector, tolerances)) + ")"


def format_eigenvalue(eigenvalue: Eigenvalue) -> str:
    """Format an eigenvalue as '2' or '0.707 ± 0.707i'."""
    if not eigenvalue.is_complex:
        return _number(eigenvalue.real_part)
    return f"{_number(eigenvalue.real_part)} ± {_number(abs(eigenvalue.imag_part))}i"


def format_line(line: Line) -> str:
    """Parametric label, 'r = (ax, ay, az) + t(bx, by, bz)'."""
    point = ", ".join(_number(x) for x in line.point)
    direction = ", ".join(_number(x) for x in line.direction)
    return f"r = ({point}) + t({direction})"


def format_plane(plane: Plane) -> str:
    """Equation label, 'ax + by + cz = d'."""
    return f"{_number(plane.a)}x + {_number(plane.b)}y + {_number(plane.c)}z = {_number(plane.d)}"
