"""
Anisotropic eikonal solver on unstructured 2D grids (Ordered Upwind Method).

Computes, for every cell, the minimal time of flight from a set of start
cells under a per-cell metric tensor M, i.e. the solution of

    sqrt(grad(T)^T M^-1 grad(T)) = 1,   T = 0 in the start cells.

The algorithm follows J.A. Sethian and A. Vladimirsky, "Ordered Upwind
Methods for Static Hamilton-Jacobi Equations", with cells in place of mesh
points:

1. Put all cells in Far, U = inf.
2. Move the start cells to Accepted, U = 0.
3. Move the neighbours of the start cells to Considered and evaluate them.
4. Take the Considered cell r with the smallest value.
5. Move r to Accepted and update the accepted front.
6. Move the Far neighbours of r to Considered.
7. Re-evaluate the Considered neighbours of r, keeping the smaller of the
   old and new values.
8. Repeat from 4 while Considered is not empty.
"""

import numbers
import time

import numpy as np

from eikonal_stencils import is_wedge, line_update, triangle_update
from grid_utils import local_neighbour_spacing, order_counter_clockwise, vertex_neighbours
from indexed_heap import IndexedMinHeap
from metric_utils import anisotropy_ratio, as_metric_array
from reporting_utils import (print_grid_info, print_metric_info, print_performance,
                             print_solution_stats, print_solve_start)

# Cell states
FAR = 0
CONSIDERED = 1
ACCEPTED = 2


class AcceptedFront:
    """
    Accepted cells that still have at least one non-accepted neighbour.

    Only these cells can take part in a stencil; once all neighbours of a cell
    are accepted it leaves the front for good.
    """

    def __init__(self, neighbours):
        self._neighbours = neighbours
        self._cells = set()

    def __contains__(self, cell):
        return cell in self._cells

    def __len__(self):
        return len(self._cells)

    def as_set(self):
        return set(self._cells)

    def clear(self):
        self._cells.clear()

    def add(self, cell):
        self._cells.add(int(cell))

    def prune(self, is_accepted, cells=None):
        """
        Drop front cells whose neighbours are all accepted.

        Parameters:
        -----------
        is_accepted : ndarray of bool
            Acceptance flag per cell
        cells : iterable of int, optional
            Restrict the check to these cells. After accepting r only r and
            its neighbours can leave the front, so passing those is enough.
        """
        if cells is None:
            cells = list(self._cells)
        for cell in cells:
            if cell in self._cells and np.all(is_accepted[self._neighbours[cell]]):
                self._cells.discard(cell)


class AnisotropicEikonal2D:
    """
    Reusable Ordered Upwind solver bound to one 2D grid.

    Neighbour lists, their counter-clockwise ordering and the per-cell
    neighbour spacing are computed once in the constructor. All per-run state (cell states,
    front, considered heap) is reset at the start of every solve call.

    Parameters:
    -----------
    grid : CellGrid
        A 2D grid (grid.dimensions must be 2)
    verbose : bool
        Print grid information now and a summary after every solve
    max_iterations : int, optional
        Upper bound on main-loop acceptances per solve (default: number of
        cells). Exceeding it raises RuntimeError.
    """

    def __init__(self, grid, verbose=False, max_iterations=None):
        if grid.dimensions != 2:
            raise ValueError("Grid for AnisotropicEikonal2D must be 2d.")

        self.grid = grid
        self.n_cells = grid.number_of_cells
        self.centroids = np.asarray(grid.cell_centroids, dtype=float)
        self.cell_neighbours = order_counter_clockwise(self.centroids, vertex_neighbours(grid))
        self.cell_spacing = local_neighbour_spacing(self.centroids, self.cell_neighbours)
        self.h = float(self.cell_spacing.max()) if self.n_cells else 0.0
        self.verbose = verbose
        self.max_iterations = max_iterations

        # Per-run state, sized once and reset in solve()
        self.solution = np.full(self.n_cells, np.inf)
        self.state = np.full(self.n_cells, FAR, dtype=np.int8)
        self.accepted = np.zeros(self.n_cells, dtype=bool)
        self.front = AcceptedFront(self.cell_neighbours)
        self.considered = IndexedMinHeap()
        self.accepted_order = []
        self.n_iterations = 0
        self.n_relaxations = 0
        self._metric = None
        self.close_radius = np.zeros(self.n_cells)

        if verbose:
            counts = [len(nbs) for nbs in self.cell_neighbours] or [0]
            bbox = (self.centroids.min(axis=0), self.centroids.max(axis=0)) if self.n_cells else None
            print_grid_info(self.n_cells, min(counts), max(counts), self.h, bbox)

    def _reset(self):
        self.solution.fill(np.inf)
        self.state.fill(FAR)
        self.accepted.fill(False)
        self.front.clear()
        self.considered.clear()
        self.accepted_order = []
        self.n_iterations = 0
        self.n_relaxations = 0

    def _validate_start_cells(self, start_cells):
        cells = set()
        for c in start_cells:
            if not isinstance(c, numbers.Integral):
                raise ValueError(f"Start cell {c!r} is not an integer cell id")
            if not 0 <= c < self.n_cells:
                raise ValueError(f"Start cell {c} is out of range [0, {self.n_cells})")
            cells.add(int(c))
        return sorted(cells)

    def solve(self, metric, start_cells, observer=None):
        """
        Solve the eikonal equation.

        Parameters:
        -----------
        metric : array_like
            Metric tensor per cell, shape (N, 2, 2) or flat (4N,)
        start_cells : iterable of int
            Cells where T = 0. An empty set gives an all-inf result.
        observer : callable, optional
            observer(solver, cell, value) is called after each main-loop
            acceptance, once the front, the considered set and the
            relaxations for that step are complete.

        Returns:
        --------
        solution : ndarray (N,)
            Time of flight per cell, +inf for cells not reachable from the
            start cells.
        """
        M = as_metric_array(metric, self.n_cells)
        starts = self._validate_start_cells(start_cells)

        # 1. Put all cells in Far. U = inf.
        self._reset()
        self._metric = M
        ratio = anisotropy_ratio(M) if self.n_cells else np.ones(0)
        self.close_radius = self.cell_spacing * ratio

        if self.verbose and self.n_cells:
            print_metric_info(float(ratio.min()), float(ratio.max()), float(self.close_radius.max()))
            print_solve_start(len(starts))
        t0 = time.time()

        if not starts:
            if self.verbose:
                print("  No start cells: every cell stays at +inf")
            return self.solution.copy()

        # 2. Move the start cells to Accepted. U = 0.
        for c in starts:
            self.state[c] = ACCEPTED
            self.accepted[c] = True
            self.solution[c] = 0.0
            self.accepted_order.append(c)
            self.front.add(c)
        self.front.prune(self.accepted)

        # 3. Move cells adjacent to the start cells to Considered.
        for c in starts:
            for nb in self.cell_neighbours[c]:
                if self.state[nb] == FAR:
                    self._push_considered(nb, self.compute_value(nb))

        max_iterations = self.n_cells if self.max_iterations is None else self.max_iterations
        while self.considered:
            if self.n_iterations >= max_iterations:
                raise RuntimeError(
                    f"Ordered upwind loop exceeded {max_iterations} iterations "
                    f"with {len(self.considered)} cells still considered"
                )

            # 4. Find the considered cell with the smallest value: r.
            value, r = self.considered.pop()

            # 5. Move r to Accepted. Update the accepted front.
            self.state[r] = ACCEPTED
            self.accepted[r] = True
            self.solution[r] = value
            self.accepted_order.append(r)
            self.n_iterations += 1
            self.front.add(r)
            self.front.prune(self.accepted, [r, *self.cell_neighbours[r]])

            # 6. Move cells adjacent to r from Far to Considered.
            inserted = set()
            for nb in self.cell_neighbours[r]:
                if self.state[nb] == FAR:
                    self._push_considered(nb, self.compute_value(nb))
                    inserted.add(int(nb))

            # 7. Recompute the considered neighbours of r, keep the smaller value.
            for c in self._close_considered(r):
                if c in inserted:
                    continue
                value_c = self.compute_value(c)
                if value_c < self.considered.key_of(c):
                    self.considered.decrease_key(c, value_c)
                    self.solution[c] = value_c
                    self.n_relaxations += 1

            if observer is not None:
                observer(self, r, value)

        if self.verbose:
            print_performance(time.time() - t0, self.n_iterations, self.n_relaxations)
            print_solution_stats(self.solution)

        return self.solution.copy()

    def _push_considered(self, cell, value):
        self.considered.push(cell, value)
        self.state[cell] = CONSIDERED
        self.solution[cell] = value

    def is_close(self, c1, c2):
        """
        Proximity predicate for relaxing c2 after accepting c1.

        Cells are close when they are neighbours or when their centroids are
        within close_radius[c1] = local spacing of c1 * anisotropy ratio of
        c1. The stencil of a cell reads only its own neighbours, so the
        relaxation pass in solve() visits the Considered neighbours of the
        accepted cell, all of which are close.
        """
        if c2 in self.cell_neighbours[c1]:
            return True
        d = np.linalg.norm(self.centroids[c1] - self.centroids[c2])
        return bool(d <= self.close_radius[c1])

    def _close_considered(self, r):
        return [int(c) for c in self.cell_neighbours[r] if self.state[c] == CONSIDERED]

    def compute_value(self, cell):
        """
        Tentative value of a non-accepted cell from the current accepted front.

        Uses the smallest triangle update over consecutive neighbour pairs
        that are both on the front; falls back to line updates from single
        front neighbours when no triangle gives a value.
        """
        nbs = self.cell_neighbours[cell]
        k = len(nbs)
        val = np.inf
        if k >= 2:
            for ii in range(k):
                n0, n1 = nbs[ii], nbs[(ii + 1) % k]
                if n0 in self.front and n1 in self.front:
                    val = min(val, self.compute_from_tri(cell, n0, n1))
        if val == np.inf:
            # No usable pair of front neighbours, go for single-neighbour updates.
            for nb in nbs:
                if nb in self.front:
                    val = min(val, self.compute_from_line(cell, nb))
        if val == np.inf:
            raise RuntimeError(f"Cell {cell} has no accepted front neighbour to update from")
        return val

    def compute_from_line(self, cell, from_cell):
        return line_update(self.centroids[cell], self.centroids[from_cell],
                           self.solution[from_cell], self._metric[cell])

    def compute_from_tri(self, cell, n0, n1):
        x_c = self.centroids[cell]
        if n0 == n1 or not is_wedge(x_c, self.centroids[n0], self.centroids[n1]):
            return np.inf
        return triangle_update(x_c, self.centroids[n0], self.solution[n0],
                               self.centroids[n1], self.solution[n1], self._metric[cell])
