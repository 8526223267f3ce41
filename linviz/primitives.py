"""Value types shared by the eigen and intersection code.

Everything here is created fresh per kernel call and never mutated
afterwards: eigenvalues, eigenpairs, invariant subspaces, lines, planes and
intersection results.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np


def as_vec3(v, name: str = "vector") -> np.ndarray:
    """Convert a 2- or 3-component sequence to a float 3-vector.

    2D inputs are lifted into the z = 0 plane.
    """
    arr = np.asarray(v, dtype=float).reshape(-1)
    if arr.shape == (2,):
        arr = np.append(arr, 0.0)
    if arr.shape != (3,):
        raise ValueError(f"Expected {name} with 2 or 3 components, got shape {np.shape(v)}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} has non-finite components: {arr}")
    return arr


def as_matrix(matrix, sizes: Tuple[int, ...] = (2, 3)) -> np.ndarray:
    """Return a float copy of a square 2x2 or 3x3 matrix, validating it."""
    arr = np.array(matrix, dtype=float)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] not in sizes:
        expected = " or ".join(f"{n}x{n}" for n in sizes)
        raise ValueError(f"Expected a {expected} matrix, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"Matrix has non-finite entries:\n{arr}")
    return arr


def _vector_to_list(v: Optional[np.ndarray]) -> Optional[List[float]]:
    return None if v is None else [float(x) for x in v]


@dataclass(frozen=True)
class Eigenvalue:
    """A root of the characteristic polynomial."""

    real_part: float
    imag_part: float = 0.0
    is_complex: bool = False

    @classmethod
    def real(cls, value: float) -> "Eigenvalue":
        return cls(float(value), 0.0, False)

    @classmethod
    def conjugate_pair(cls, real_part: float, imag_part: float) -> Tuple["Eigenvalue", "Eigenvalue"]:
        """Return (real + i*imag, real - i*imag)."""
        imag_part = abs(float(imag_part))
        return (
            cls(float(real_part), imag_part, True),
            cls(float(real_part), -imag_part, True),
        )

    def to_complex(self) -> complex:
        return complex(self.real_part, self.imag_part)

    def to_dict(self) -> Dict:
        return {"real": self.real_part, "imag": self.imag_part, "is_complex": self.is_complex}


class EigenStatus(enum.Enum):
    """Why an eigenpair does or does not carry a vector."""

    RESOLVED = "resolved"
    COMPLEX = "complex"
    # Real eigenvalue whose nullspace vector failed verification
    UNRESOLVED = "unresolved"
    # Repeated root without a further independent eigenvector
    DEFECTIVE = "defective"
    # Scalar matrix: every direction is an eigenvector, none is listed
    WHOLE_SPACE = "whole_space"


@dataclass(frozen=True, eq=False)
class Eigenpair:
    """An eigenvalue and, when one was found, a unit eigenvector."""

    eigenvalue: Eigenvalue
    vector: Optional[np.ndarray] = None
    status: EigenStatus = EigenStatus.RESOLVED

    def __post_init__(self):
        if self.status is EigenStatus.RESOLVED:
            if self.vector is None:
                raise ValueError("A resolved eigenpair needs a vector")
            object.__setattr__(self, "vector", np.asarray(self.vector, dtype=float))
        elif self.vector is not None:
            raise ValueError(f"Eigenpair with status '{self.status.value}' cannot carry a vector")

    @property
    def value(self) -> float:
        """Real part of the eigenvalue."""
        return self.eigenvalue.real_part

    def to_dict(self) -> Dict:
        return {
            "eigenvalue": self.eigenvalue.to_dict(),
            "vector": _vector_to_list(self.vector),
            "status": self.status.value,
        }


class SubspaceKind(enum.Enum):
    LINE = "line"
    PLANE = "plane"
    WHOLE_SPACE = "whole_space"


@dataclass(frozen=True, eq=False)
class InvariantSubspace:
    """A line, plane or the whole space mapped into itself by a matrix.

    Build instances with the ``line``, ``plane`` and ``whole_space``
    constructors rather than directly.
    """

    kind: SubspaceKind
    direction: Optional[np.ndarray] = None
    normal: Optional[np.ndarray] = None
    basis: Tuple[np.ndarray, ...] = ()
    eigenvalue: Optional[float] = None

    @classmethod
    def line(cls, direction: np.ndarray, eigenvalue: Optional[float] = None) -> "InvariantSubspace":
        return cls(SubspaceKind.LINE, direction=np.asarray(direction, dtype=float), eigenvalue=eigenvalue)

    @classmethod
    def plane(cls, v1: np.ndarray, v2: np.ndarray, eigenvalue: Optional[float] = None) -> "InvariantSubspace":
        """Plane spanned by two independent eigenvectors sharing an eigenvalue."""
        v1 = np.asarray(v1, dtype=float)
        v2 = np.asarray(v2, dtype=float)
        normal = np.cross(v1, v2)
        norm = np.linalg.norm(normal)
        if norm == 0:
            raise ValueError("Plane subspace needs two linearly independent vectors")
        return cls(SubspaceKind.PLANE, normal=normal / norm, basis=(v1, v2), eigenvalue=eigenvalue)

    @classmethod
    def whole_space(cls, eigenvalue: Optional[float] = None) -> "InvariantSubspace":
        return cls(SubspaceKind.WHOLE_SPACE, eigenvalue=eigenvalue)

    def to_dict(self) -> Dict:
        return {
            "kind": self.kind.value,
            "direction": _vector_to_list(self.direction),
            "normal": _vector_to_list(self.normal),
            "basis": [_vector_to_list(v) for v in self.basis],
            "eigenvalue": self.eigenvalue,
        }


class Decomposition(NamedTuple):
    """Result of eigendecompose: all eigenpairs and the invariant subspaces."""

    eigenpairs: List[Eigenpair]
    subspaces: List[InvariantSubspace]

    @property
    def eigenvalues(self) -> List[Eigenvalue]:
        return [pair.eigenvalue for pair in self.eigenpairs]

    @property
    def eigenvectors(self) -> List[np.ndarray]:
        """Resolved eigenvectors only."""
        return [pair.vector for pair in self.eigenpairs if pair.vector is not None]

    def to_dict(self) -> Dict:
        return {
            "eigenpairs": [pair.to_dict() for pair in self.eigenpairs],
            "subspaces": [subspace.to_dict() for subspace in self.subspaces],
        }


@dataclass(frozen=True, eq=False)
class Line:
    """The set point + t * direction."""

    point: np.ndarray
    direction: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "point", as_vec3(self.point, "line point"))
        object.__setattr__(self, "direction", as_vec3(self.direction, "line direction"))
        if not np.any(self.direction):
            raise ValueError("Line direction must be non-zero")

    def point_at(self, t: float) -> np.ndarray:
        return self.point + t * self.direction

    def to_dict(self) -> Dict:
        return {"type": "line", "point": _vector_to_list(self.point), "direction": _vector_to_list(self.direction)}


@dataclass(frozen=True, eq=False)
class Plane:
    """The set a*x + b*y + c*z = d."""

    a: float
    b: float
    c: float
    d: float

    def __post_init__(self):
        for name in ("a", "b", "c", "d"):
            value = float(getattr(self, name))
            if not np.isfinite(value):
                raise ValueError(f"Plane coefficient {name} is not finite: {value}")
            object.__setattr__(self, name, value)
        if self.a == 0 and self.b == 0 and self.c == 0:
            raise ValueError("Plane normal (a, b, c) must be non-zero")

    @property
    def normal(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c])

    @property
    def unit_normal(self) -> np.ndarray:
        n = self.normal
        return n / np.linalg.norm(n)

    def point_nearest_origin(self) -> np.ndarray:
        """Foot of the perpendicular from the origin onto the plane."""
        n = self.normal
        return n * (self.d / np.dot(n, n))

    def to_dict(self) -> Dict:
        return {"type": "plane", "a": self.a, "b": self.b, "c": self.c, "d": self.d}


class IntersectionKind(enum.Enum):
    POINT = "point"
    LINE = "line"
    NONE = "none"


@dataclass(frozen=True, eq=False)
class IntersectionResult:
    """Point, line (pencil) or no intersection.

    ``reason`` on a NONE result is informational only: "parallel" covers
    both disjoint and coincident/contained configurations.
    """

    kind: IntersectionKind
    point: Optional[np.ndarray] = None
    direction: Optional[np.ndarray] = None
    reason: Optional[str] = None

    @classmethod
    def at_point(cls, point: np.ndarray) -> "IntersectionResult":
        return cls(IntersectionKind.POINT, point=np.asarray(point, dtype=float))

    @classmethod
    def along_line(cls, point: np.ndarray, direction: np.ndarray) -> "IntersectionResult":
        return cls(IntersectionKind.LINE, point=np.asarray(point, dtype=float),
                   direction=np.asarray(direction, dtype=float))

    @classmethod
    def none(cls, reason: str) -> "IntersectionResult":
        return cls(IntersectionKind.NONE, reason=reason)

    @property
    def is_none(self) -> bool:
        return self.kind is IntersectionKind.NONE

    def to_dict(self) -> Dict:
        return {
            "kind": self.kind.value,
            "point": _vector_to_list(self.point),
            "direction": _vector_to_list(self.direction),
            "reason": self.reason,
        }
