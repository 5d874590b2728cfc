"""
Comparison script: unstructured ordered upwind solver vs structured Fast
Marching on the same isotropic point-source problem, both against the exact
distance field.
"""

import time

import numpy as np
import matplotlib.pyplot as plt

from anisotropic_eikonal import AnisotropicEikonal2D
from fastmarch import fast_marching_travel_time
from grid_utils import cartesian_grid, cells_to_structured
from metric_utils import isotropic_metric
from plotting_utils import plot_arrival_times
from reporting_utils import banner, print_completion, print_error_stats


def run_case(n, slowness=1.0, L=1.0):
    dx = L / n
    jc = ic = n // 2
    grid = cartesian_grid(n, n, L, L)
    source = jc * n + ic

    solver = AnisotropicEikonal2D(grid)
    t0 = time.time()
    T = solver.solve(isotropic_metric(grid.number_of_cells, slowness), [source])
    oum_time = time.time() - t0

    seeds = np.zeros((n, n), dtype=bool)
    seeds[jc, ic] = True
    t0 = time.time()
    T_fmm = fast_marching_travel_time(seeds, dx, slowness=slowness)
    fmm_time = time.time() - t0

    d = grid.cell_centroids - grid.cell_centroids[source]
    T_exact = cells_to_structured(grid, slowness * np.hypot(d[:, 0], d[:, 1]))
    T_oum = cells_to_structured(grid, T)
    return grid, T, source, T_oum, T_fmm, T_exact, oum_time, fmm_time


def compare_isotropic_reference(sizes=(21, 41, 81)):
    banner("ORDERED UPWIND (unstructured) vs FAST MARCHING (structured): POINT SOURCE")

    rows = []
    for n in sizes:
        grid, T, source, T_oum, T_fmm, T_exact, oum_time, fmm_time = run_case(n)
        print(f"\n--- n = {n} ---")
        print_error_stats(T_oum - T_exact, label=f"exact (ordered upwind, n={n})")
        print_error_stats(T_fmm - T_exact, label=f"exact (fast marching, n={n})")
        rows.append((n, np.max(np.abs(T_oum - T_exact)), np.max(np.abs(T_fmm - T_exact)),
                     oum_time, fmm_time))

    print("\n" + "-" * 70)
    print(f"{'n':<8} {'OUM max err':<15} {'FMM max err':<15} {'OUM time (s)':<15} {'FMM time (s)':<15}")
    print("-" * 70)
    for n, e_oum, e_fmm, t_oum, t_fmm in rows:
        print(f"{n:<8} {e_oum:<15.6f} {e_fmm:<15.6f} {t_oum:<15.3f} {t_fmm:<15.3f}")

    fig = plot_arrival_times(grid, T, start_cells=[source], title='Point Source, Ordered Upwind',
                             filename='compare_isotropic_reference.png')
    plt.close(fig)
    print_completion("Comparison completed.")


if __name__ == "__main__":
    compare_isotropic_reference()
