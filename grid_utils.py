"""
Grid adapter and neighbour preprocessing for the anisotropic eikonal solver.

The solver only needs three things from a grid: the number of cells, the
cell centroids and, per cell, the list of neighbouring cells. This module
provides a small read-only container (CellGrid), the vertex-neighbour
construction used by the stencil, the counter-clockwise ordering of
neighbours about each centroid, and a few builders for cartesian,
triangulated and graph-defined grids.

Neighbourhood definition: two cells are neighbours when they share at least
one node (vertex neighbours), so on a cartesian grid every interior cell has
eight neighbours.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
from scipy import sparse
from scipy.spatial import Delaunay


@dataclass
class CellGrid:
    """
    Minimal unstructured grid description.

    Attributes:
    -----------
    number_of_cells : int
    cell_centroids : ndarray (N, dimensions)
    cell_nodes : list of int arrays
        Node indices of each cell (may be empty when ``neighbours`` is given)
    node_coordinates : ndarray (n_nodes, dimensions)
    dimensions : int
    neighbours : list of int arrays, optional
        Explicit adjacency. Overrides the vertex-neighbour construction.
    structured_index : ndarray (N, 2), optional
        (j, i) position of each cell for grids built from a cartesian layout
    shape : tuple, optional
        (ny, nx) of the originating cartesian layout
    """
    number_of_cells: int
    cell_centroids: np.ndarray
    cell_nodes: List[np.ndarray] = field(default_factory=list)
    node_coordinates: Optional[np.ndarray] = None
    dimensions: int = 2
    neighbours: Optional[List[np.ndarray]] = None
    structured_index: Optional[np.ndarray] = None
    shape: Optional[tuple] = None

    def __post_init__(self):
        self.cell_centroids = np.asarray(self.cell_centroids, dtype=float)
        if self.cell_centroids.shape != (self.number_of_cells, self.dimensions):
            raise ValueError(
                f"cell_centroids must have shape {(self.number_of_cells, self.dimensions)}, "
                f"got {self.cell_centroids.shape}"
            )
        self.cell_nodes = [np.asarray(n, dtype=int) for n in self.cell_nodes]
        if self.cell_nodes and len(self.cell_nodes) != self.number_of_cells:
            raise ValueError("cell_nodes must list the nodes of every cell")
        if self.neighbours is None and not self.cell_nodes and self.number_of_cells > 0:
            raise ValueError("CellGrid needs either cell_nodes or explicit neighbours")


def vertex_neighbours(grid: CellGrid) -> List[np.ndarray]:
    """
    Compute, for each cell, the sorted ids of all cells sharing a node with it.

    Explicit neighbours on the grid take precedence; they are symmetrised and
    checked for range and self loops.

    Returns:
    --------
    neighbours : list of int arrays, one per cell
    """
    n = grid.number_of_cells
    if grid.neighbours is not None:
        return _symmetrise(grid.neighbours, n)
    if n == 0:
        return []

    # Cell-node incidence; C @ C.T is nonzero exactly for cells sharing a node
    rows = np.concatenate([np.full(len(nodes), c, dtype=int) for c, nodes in enumerate(grid.cell_nodes)])
    cols = np.concatenate(grid.cell_nodes).astype(int)
    n_nodes = int(cols.max()) + 1 if cols.size else 0
    incidence = sparse.csr_matrix((np.ones(rows.size), (rows, cols)), shape=(n, n_nodes))
    shared = (incidence @ incidence.T).tocsr()
    shared.setdiag(0)
    shared.eliminate_zeros()

    return [np.sort(shared.indices[shared.indptr[c]:shared.indptr[c + 1]]) for c in range(n)]


def _symmetrise(neighbours: Sequence[Sequence[int]], n: int) -> List[np.ndarray]:
    if len(neighbours) != n:
        raise ValueError(f"Expected neighbour lists for {n} cells, got {len(neighbours)}")
    sets = [set() for _ in range(n)]
    for c, nbs in enumerate(neighbours):
        for nb in nbs:
            nb = int(nb)
            if not 0 <= nb < n:
                raise ValueError(f"Neighbour {nb} of cell {c} is out of range [0, {n})")
            if nb == c:
                raise ValueError(f"Cell {c} lists itself as a neighbour")
            sets[c].add(nb)
            sets[nb].add(c)
    return [np.array(sorted(s), dtype=int) for s in sets]


def order_counter_clockwise(centroids: np.ndarray, neighbours: Sequence[np.ndarray]) -> List[np.ndarray]:
    """
    Sort each neighbour list by angle about the owning cell centroid.

    Consecutive entries (n[i], n[i+1 mod k]) then bound a wedge around the
    cell, which is what the two-point stencil scans.
    """
    centroids = np.asarray(centroids, dtype=float)
    ordered = []
    for c, nbs in enumerate(neighbours):
        nbs = np.asarray(nbs, dtype=int)
        if nbs.size < 2:
            ordered.append(nbs.copy())
            continue
        d = centroids[nbs] - centroids[c]
        angles = np.arctan2(d[:, 1], d[:, 0])
        ordered.append(nbs[np.argsort(angles, kind='stable')])
    return ordered


def local_neighbour_spacing(centroids: np.ndarray, neighbours: Sequence[np.ndarray]) -> np.ndarray:
    """Per cell, the largest centroid distance to one of its neighbours (0 for isolated cells)."""
    centroids = np.asarray(centroids, dtype=float)
    h = np.zeros(len(neighbours))
    for c, nbs in enumerate(neighbours):
        if len(nbs):
            h[c] = np.max(np.linalg.norm(centroids[nbs] - centroids[c], axis=1))
    return h


def neighbour_spacing(centroids: np.ndarray, neighbours: Sequence[np.ndarray]) -> float:
    """Largest centroid distance between a cell and any of its neighbours (0 if none)."""
    h = local_neighbour_spacing(centroids, neighbours)
    return float(h.max()) if h.size else 0.0


def cartesian_grid(nx, ny, Lx=1.0, Ly=1.0, mask=None):
    """
    Build a cartesian grid of nx x ny rectangular cells on [0, Lx] x [0, Ly].

    Parameters:
    -----------
    nx, ny : int
        Number of cells in x and y
    Lx, Ly : float
        Domain size
    mask : ndarray (ny, nx) of bool, optional
        Active cells. Inactive cells are left out entirely; a full column of
        inactive cells splits the grid into disconnected components.

    Returns:
    --------
    grid : CellGrid
        Cells numbered row by row (x fastest) over the active cells only.
    """
    if mask is None:
        mask = np.ones((ny, nx), dtype=bool)
    mask = np.asarray(mask, dtype=bool)
    if mask.shape != (ny, nx):
        raise ValueError(f"mask must have shape {(ny, nx)}, got {mask.shape}")

    dx = Lx / nx
    dy = Ly / ny
    xn = np.linspace(0.0, Lx, nx + 1)
    yn = np.linspace(0.0, Ly, ny + 1)
    XN, YN = np.meshgrid(xn, yn)
    node_coordinates = np.column_stack([XN.ravel(), YN.ravel()])

    jj, ii = np.nonzero(mask)
    centroids = np.column_stack([(ii + 0.5) * dx, (jj + 0.5) * dy])

    def node(j, i):
        return j * (nx + 1) + i

    cell_nodes = [np.array([node(j, i), node(j, i + 1), node(j + 1, i + 1), node(j + 1, i)])
                  for j, i in zip(jj, ii)]

    return CellGrid(number_of_cells=len(jj), cell_centroids=centroids,
                    cell_nodes=cell_nodes, node_coordinates=node_coordinates,
                    structured_index=np.column_stack([jj, ii]), shape=(ny, nx))


def triangulated_grid(points):
    """Delaunay triangulation of a 2D point cloud; each triangle is a cell."""
    points = np.asarray(points, dtype=float)
    tri = Delaunay(points)
    simplices = tri.simplices
    centroids = points[simplices].mean(axis=1)
    return CellGrid(number_of_cells=len(simplices), cell_centroids=centroids,
                    cell_nodes=list(simplices), node_coordinates=points)


def grid_from_adjacency(centroids, neighbours, dimensions=2):
    """Wrap a centroid array and an explicit neighbour graph as a CellGrid."""
    centroids = np.asarray(centroids, dtype=float)
    return CellGrid(number_of_cells=len(centroids), cell_centroids=centroids,
                    dimensions=dimensions, neighbours=[np.asarray(n, dtype=int) for n in neighbours])


def chain_grid(n_cells, spacing=1.0):
    """Cells on a straight line along x, each linked to its predecessor and successor."""
    centroids = np.column_stack([np.arange(n_cells) * spacing, np.zeros(n_cells)])
    neighbours = [[k for k in (c - 1, c + 1) if 0 <= k < n_cells] for c in range(n_cells)]
    return grid_from_adjacency(centroids, neighbours)


def cells_to_structured(grid: CellGrid, values, fill=np.nan):
    """Scatter per-cell values back onto the (ny, nx) layout of a cartesian grid."""
    if grid.structured_index is None or grid.shape is None:
        raise ValueError("Grid was not built from a cartesian layout")
    out = np.full(grid.shape, fill, dtype=float)
    jj, ii = grid.structured_index[:, 0], grid.structured_index[:, 1]
    out[jj, ii] = np.asarray(values, dtype=float)
    return out
