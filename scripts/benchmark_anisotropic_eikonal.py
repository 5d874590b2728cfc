import os, sys, time
import numpy as np

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from anisotropic_eikonal import AnisotropicEikonal2D
from grid_utils import cartesian_grid
from metric_utils import constant_anisotropic_metric


def run_benchmark(sizes=(25, 50, 100), s_perp=3.0, theta=np.pi / 6):
    print(f"Anisotropic eikonal benchmark (ratio {s_perp:.1f}, theta = {np.degrees(theta):.0f} deg)")
    print(f"{'n':<8} {'cells':<10} {'setup (s)':<12} {'solve (s)':<12} {'relaxations':<12} {'us/cell':<10}")
    for n in sizes:
        t0 = time.time()
        grid = cartesian_grid(n, n)
        solver = AnisotropicEikonal2D(grid)
        setup_time = time.time() - t0

        metric = constant_anisotropic_metric(grid.number_of_cells, 1.0, s_perp, theta)
        t1 = time.time()
        solver.solve(metric, [(n // 2) * n + n // 2])
        solve_time = time.time() - t1

        per_cell = solve_time / grid.number_of_cells * 1e6
        print(f"{n:<8} {grid.number_of_cells:<10} {setup_time:<12.3f} {solve_time:<12.3f} "
              f"{solver.n_relaxations:<12} {per_cell:<10.1f}")


if __name__ == '__main__':
    run_benchmark()
