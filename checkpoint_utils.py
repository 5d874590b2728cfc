"""
Checkpoint utilities for saving and reloading eikonal solutions.

This module provides lightweight, portable helpers that store a computed
time-of-flight field together with the inputs that produced it, so a result
can be inspected, plotted or compared later without re-running the solver.

Design goals:
- Numpy-based, no pickling of runtime objects
- Save the solution, start cells, metric field and cell centroids
- Free-form run metadata as JSON alongside the arrays

Limitations:
- Grid connectivity is not stored; rebuild the grid to solve again
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np

from grid_utils import CellGrid
from metric_utils import as_metric_array


@dataclass
class SolutionMeta:
    n_cells: int
    # Optional run parameters (informational)
    grid_kind: Optional[str] = None
    anisotropy_ratio: Optional[float] = None
    elapsed: Optional[float] = None
    notes: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None

    def to_json(self) -> str:
        return json.dumps(self.__dict__)

    @staticmethod
    def from_json(s: str) -> "SolutionMeta":
        data = json.loads(s)
        return SolutionMeta(**data)


def save_solution(
    path: str,
    grid: CellGrid,
    solution: np.ndarray,
    start_cells,
    metric,
    meta: Optional[SolutionMeta] = None,
) -> None:
    """
    Save a solution and its inputs to a compressed NPZ file.

    Parameters:
    - path: output .npz filepath
    - grid: grid the solution was computed on
    - solution: time of flight per cell (+inf for unreached cells)
    - start_cells: cells where T = 0
    - metric: metric field in any shape accepted by the solver
    - meta: optional metadata about the run
    """
    sol = np.asarray(solution, dtype=float)
    if sol.shape != (grid.number_of_cells,):
        raise ValueError(f"Solution must have shape {(grid.number_of_cells,)}, got {sol.shape}")
    M = as_metric_array(metric, grid.number_of_cells)

    meta_obj = meta or SolutionMeta(n_cells=grid.number_of_cells)

    np.savez_compressed(
        path,
        solution=sol,
        start_cells=np.array(sorted({int(c) for c in start_cells}), dtype=np.int64),
        metric=M,
        centroids=np.asarray(grid.cell_centroids, dtype=float),
        n_cells=np.int64(grid.number_of_cells),
        meta_json=meta_obj.to_json(),
    )


def load_solution(path: str) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, SolutionMeta]:
    """
    Load a saved solution.

    Returns (solution, start_cells, metric, centroids, meta)
    """
    with np.load(path, allow_pickle=False) as data:
        solution = np.array(data["solution"], dtype=float)
        start_cells = np.array(data["start_cells"], dtype=int)
        metric = np.array(data["metric"], dtype=float)
        centroids = np.array(data["centroids"], dtype=float)
        n_cells = int(data["n_cells"]) if "n_cells" in data else solution.size
        meta_json = data["meta_json"].item() if "meta_json" in data else ""

    meta = SolutionMeta.from_json(meta_json) if meta_json else SolutionMeta(n_cells=n_cells)
    return solution, start_cells, metric, centroids, meta
