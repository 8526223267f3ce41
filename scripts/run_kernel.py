#!/usr/bin/env python3
"""
Kernel Batch Runner

This script runs the numeric kernel over a YAML scene: every matrix is
eigendecomposed and checked against a reference solver, and every pair of
lines and planes is intersected. Results and metrics are written as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import yaml
from tqdm import tqdm

# Add parent directory to path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from linviz import config, display, eigen, evaluate, geometry, presets
from linviz.primitives import Line, Plane


# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
    handlers=[
        logging.StreamHandler(),
    ],
)
logger = logging.getLogger("kernel")


def load_scene(scene_path: str) -> Dict:
    """Load a scene description from YAML file.

    Args:
        scene_path: Path to scene file

    Returns:
        Scene dictionary with 'matrices' and 'objects' lists
    """
    with open(scene_path, "r") as f:
        scene = yaml.safe_load(f) or {}

    if not isinstance(scene, dict):
        raise ValueError(f"Scene file {scene_path} must contain a mapping")

    scene.setdefault("matrices", [])
    scene.setdefault("objects", [])

    # Presets expand into ordinary matrices
    for entry in scene.get("presets") or []:
        dimension = int(entry.get("dimension", 2))
        name = entry.get("name", f"{entry['preset']}_{dimension}d")
        scene["matrices"].append({
            "name": name,
            "values": presets.preset_matrix(entry["preset"], dimension).tolist(),
        })

    logger.info(f"Loaded scene with {len(scene['matrices'])} matrices and {len(scene['objects'])} objects")
    return scene


def build_objects(entries: List[Dict]) -> Tuple[List[str], List]:
    """Create Line and Plane primitives from scene entries.

    Args:
        entries: Scene object entries

    Returns:
        Tuple of (names, primitives)
    """
    names, objects = [], []

    for i, entry in enumerate(entries):
        kind = entry.get("type")
        if kind == "line":
            obj = Line(entry["point"], entry["direction"])
        elif kind == "plane":
            obj = Plane(entry["a"], entry["b"], entry["c"], entry["d"])
        else:
            raise ValueError(f"Object {i} has unknown type '{kind}', expected 'line' or 'plane'")

        names.append(entry.get("name", f"{kind}{i}"))
        objects.append(obj)

    return names, objects


def describe_decomposition(
    name: str,
    matrix: np.ndarray,
    decomposition,
    checks: Dict[str, float],
    tolerances: config.Tolerances
) -> Dict:
    """Serialize one eigendecomposition with display labels."""
    result = decomposition.to_dict()
    result["name"] = name
    result["matrix"] = np.asarray(matrix, dtype=float).tolist()
    result.update(checks)

    for pair, entry in zip(decomposition.eigenpairs, result["eigenpairs"]):
        entry["label"] = display.format_eigenvalue(pair.eigenvalue)
        if pair.vector is not None:
            entry["display"] = list(display.normalize_for_display(pair.vector, tolerances))

    return result


def save_results(output_path: str, results: Dict) -> None:
    """Save kernel results as JSON.

    Args:
        output_path: Path to output file
        results: Results dictionary
    """
    logger.info(f"Saving results to {output_path}")

    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    with open(output_path, "w") as f:
        json.dump(results, f, indent=2)

    logger.info("Results saved successfully")


def run_kernel(
    scene_path: str,
    output_path: str,
    config_path: Optional[str] = None
) -> Dict:
    """Run the kernel over every matrix and object in a scene.

    Args:
        scene_path: Path to scene YAML file
        output_path: Path to JSON output file
        config_path: Path to configuration file

    Returns:
        Dictionary of kernel metrics
    """
    run_timer = evaluate.Timer("Kernel")
    run_timer.start()

    tolerances = config.tolerances_from_config(config.load_config(config_path))
    metrics = evaluate.KernelMetrics()
    scene = load_scene(scene_path)

    # === Stage 1: Eigendecomposition ===
    decompositions = []
    with evaluate.Timer("Eigendecomposition") as timer:
        for entry in tqdm(scene["matrices"], desc="Decomposing matrices"):
            name = entry.get("name", f"matrix{len(decompositions)}")
            matrix = np.asarray(entry["values"], dtype=float)

            decomposition = eigen.eigendecompose(matrix, tolerances)
            checks = metrics.add_decomposition(matrix, decomposition)
            decompositions.append(describe_decomposition(name, matrix, decomposition, checks, tolerances))

            logger.debug(
                f"{name}: eigenvalues {[display.format_eigenvalue(ev) for ev in decomposition.eigenvalues]}, "
                f"subspaces {[s.kind.value for s in decomposition.subspaces]}"
            )
        metrics.update_stage_timing("eigendecomposition", timer.elapsed)

    # === Stage 2: Intersections ===
    with evaluate.Timer("Intersections") as timer:
        names, objects = build_objects(scene["objects"])
        intersections = geometry.intersect_all(objects, tolerances)
        metrics.add_intersections(objects, intersections)
        metrics.update_stage_timing("intersections", timer.elapsed)

    intersection_entries = []
    for entry in intersections:
        item = entry.to_dict()
        item["first"] = names[entry.first]
        item["second"] = names[entry.second]
        intersection_entries.append(item)

    metrics.update("runtime_s", run_timer.stop())

    results = {
        "decompositions": decompositions,
        "objects": [
            {"name": name, "label": _object_label(obj), **obj.to_dict()}
            for name, obj in zip(names, objects)
        ],
        "intersections": intersection_entries,
        "metrics": metrics.to_dict(),
    }
    save_results(output_path, results)

    logger.info("\n" + metrics.summary())
    return metrics.to_dict()


def _object_label(obj) -> str:
    if isinstance(obj, Line):
        return display.format_line(obj)
    return display.format_plane(obj)


def main():
    """Main function to parse arguments and run the kernel."""
    parser = argparse.ArgumentParser(description="Eigen and intersection kernel batch runner")
    parser.add_argument(
        "--scene", "-s", dest="scene_path", required=True,
        help="Path to scene YAML file"
    )
    parser.add_argument(
        "--output", "-o", dest="output_path", default="results/kernel.json",
        help="Path to JSON output file"
    )
    parser.add_argument(
        "--config", "-c", dest="config_path", default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--verbose", "-v", dest="verbose", action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        run_kernel(args.scene_path, args.output_path, args.config_path)
    except Exception as e:
        logger.exception(f"Error running kernel: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
