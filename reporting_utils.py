"""
Reporting utilities to consolidate repeated print statements across the
solver, tests and scripts.

Each helper prints a focused section. Keep arguments simple and flexible.
"""

from typing import Optional
import numpy as np


def banner(title: str) -> None:
    print("\n" + "=" * 80)
    print(title)
    print("=" * 80)


def sub_banner(title: str) -> None:
    print("\n" + "-" * 80)
    print(title)
    print("-" * 80)


def print_grid_info(n_cells: int,
                    n_neighbours_min: int,
                    n_neighbours_max: int,
                    spacing: float,
                    bbox: Optional[np.ndarray] = None) -> None:
    sub_banner("Grid Information")
    print(f"  Cells: {n_cells}")
    print(f"  Neighbours per cell: {n_neighbours_min} - {n_neighbours_max}")
    print(f"  Max neighbour spacing h = {spacing:.6f}")
    if bbox is not None:
        lo, hi = bbox
        print(f"  Bounding box: [{lo[0]:.4f}, {hi[0]:.4f}] x [{lo[1]:.4f}, {hi[1]:.4f}]")


def print_metric_info(ratio_min: float, ratio_max: float, close_radius: float) -> None:
    sub_banner("Metric Information")
    print(f"  Anisotropy ratio: min = {ratio_min:.4f}, max = {ratio_max:.4f}")
    print(f"  Max proximity radius (local spacing * ratio) = {close_radius:.6f}")


def print_solve_start(n_start_cells: int) -> None:
    sub_banner(f"Solving anisotropic eikonal equation from {n_start_cells} start cell(s)...")


def print_performance(elapsed_time: float,
                      n_iterations: int,
                      n_relaxations: int) -> None:
    sub_banner("Computation Performance")
    print(f"  Total solve time: {elapsed_time:.4f} seconds")
    print(f"  Cells accepted in main loop: {n_iterations}")
    print(f"  Successful relaxations: {n_relaxations}")
    if n_iterations > 0:
        print(f"  Time per acceptance: {elapsed_time/n_iterations*1e6:.2f} us")


def print_solution_stats(solution: np.ndarray) -> None:
    sub_banner("Solution Statistics")
    finite = np.isfinite(solution)
    print(f"  Reached cells: {int(finite.sum())} / {solution.size}")
    if finite.any():
        print(f"  T_min = {solution[finite].min():.6f}")
        print(f"  T_max = {solution[finite].max():.6f}")
        print(f"  T_mean = {solution[finite].mean():.6f}")


def print_error_stats(error: np.ndarray, label: str = "reference") -> None:
    sub_banner(f"Error vs {label}")
    error = error[np.isfinite(error)]
    if error.size == 0:
        print("  No comparable cells")
        return
    print(f"  Maximum absolute error: {np.max(np.abs(error)):.8f}")
    print(f"  Mean absolute error: {np.mean(np.abs(error)):.8f}")
    print(f"  RMS error: {np.sqrt(np.mean(error**2)):.8f}")


def print_completion(message: str = "Test completed successfully!") -> None:
    print("\n" + "=" * 80)
    print(message)
    print("=" * 80 + "\n")
