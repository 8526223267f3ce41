"""Numeric tolerances and configuration loading.

Every comparison in the kernel goes through a named tolerance. Structural
decisions (is a row zero, are two rows parallel, is a root real) and
verification checks (residual after substitution) live at different
numerical scales, so each gets its own constant.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

# config.yaml section -> Tolerances fields it may set
CONFIG_SECTIONS = {
    "eigen": (
        "structural_eps",
        "root_eps",
        "residual_tol",
        "duplicate_cos",
        "eigenvalue_group_tol",
        "identity_tol",
        "plane_independence",
    ),
    "intersection": (
        "line_plane_parallel",
        "plane_parallel",
        "line_parallel",
        "coplanar_tol",
    ),
    "display": (
        "max_multiplier",
        "integer_tol",
        "display_zero_tol",
    ),
}


@dataclass(frozen=True)
class Tolerances:
    """Named tolerances used by the eigen, intersection and display code."""

    # Squared row magnitudes, sin^2 between rows, cross products of candidates
    structural_eps: float = 1e-8
    # Discriminant and depressed-cubic tests in the root finders
    root_eps: float = 1e-10
    # ||(A - lambda I) v|| accepted for a display eigenvector
    residual_tol: float = 0.01
    # |cos| above which a candidate repeats an already-found direction
    duplicate_cos: float = 0.99
    eigenvalue_group_tol: float = 1e-6
    identity_tol: float = 1e-6
    # ||v1 x v2||^2 above which two eigenvectors span a plane
    plane_independence: float = 0.01

    line_plane_parallel: float = 1e-4
    plane_parallel: float = 1e-4
    line_parallel: float = 1e-4
    coplanar_tol: float = 0.01

    max_multiplier: int = 50
    integer_tol: float = 1e-10
    # Components below this fraction of the largest |component| display as 0
    display_zero_tol: float = 1e-6

    def replace(self, **changes) -> "Tolerances":
        """Return a copy with some tolerances changed."""
        return dataclasses.replace(self, **changes)


DEFAULT_TOLERANCES = Tolerances()


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file (defaults to config.yaml at
            the repository root)

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Expected a mapping at the top of {config_path}, got {type(config).__name__}")

    logger.debug(f"Loaded configuration from {config_path}: sections={sorted(config)}")
    return config


def tolerances_from_config(config: Dict) -> Tolerances:
    """Build tolerances from the eigen/intersection/display config sections.

    Sections that are absent keep their defaults. Keys that do not name a
    tolerance are rejected so that typos in config.yaml do not silently fall
    back to defaults.

    Args:
        config: Configuration dictionary, as returned by load_config

    Returns:
        Tolerances instance
    """
    changes = {}
    for section, fields in CONFIG_SECTIONS.items():
        values = config.get(section) or {}
        unknown = set(values) - set(fields)
        if unknown:
            raise ValueError(f"Unknown keys in '{section}' config section: {sorted(unknown)}")
        changes.update(values)

    # PyYAML reads exponents without a dot (1e-8) as strings
    for key, value in changes.items():
        changes[key] = int(value) if key == "max_multiplier" else float(value)

    return DEFAULT_TOLERANCES.replace(**changes)
