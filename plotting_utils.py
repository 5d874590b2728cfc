"""
Plotting utilities for time-of-flight fields on unstructured 2D grids.
"""

import numpy as np
import matplotlib.pyplot as plt


def _can_triangulate(points):
    if len(points) < 3:
        return False
    centred = points - points.mean(axis=0)
    return np.linalg.matrix_rank(centred) == 2


def plot_arrival_times(grid, solution, start_cells=None, n_levels=20,
                       title='Time of Flight', filename='arrival_times.png'):
    """
    Plot the time-of-flight field at the cell centroids.

    Parameters:
    -----------
    grid : CellGrid
        Grid the solution was computed on
    solution : ndarray (N,)
        Time of flight per cell; non-finite cells are drawn in grey
    start_cells : iterable of int, optional
        Start cells, marked with white stars
    n_levels : int
        Number of iso-time contour lines
    title : str
        Figure title
    filename : str or None
        Output filename; nothing is written when None

    Returns:
    --------
    fig : matplotlib Figure
    """
    centroids = np.asarray(grid.cell_centroids)
    solution = np.asarray(solution, dtype=float)
    finite = np.isfinite(solution)

    fig, ax = plt.subplots(1, 1, figsize=(10, 8))

    if (~finite).any():
        ax.scatter(centroids[~finite, 0], centroids[~finite, 1], c='lightgrey', s=12,
                   marker='s', label='Unreached')
    if finite.any():
        sc = ax.scatter(centroids[finite, 0], centroids[finite, 1], c=solution[finite],
                        cmap='viridis', s=16, marker='s')
        fig.colorbar(sc, ax=ax, label='T')
        pts = centroids[finite]
        if _can_triangulate(pts) and np.ptp(solution[finite]) > 0:
            levels = np.linspace(solution[finite].min(), solution[finite].max(), n_levels)
            ax.tricontour(pts[:, 0], pts[:, 1], solution[finite], levels=levels,
                          colors='black', linewidths=0.6)

    if start_cells is not None:
        sc_idx = np.asarray(sorted(int(c) for c in start_cells), dtype=int)
        if sc_idx.size:
            ax.plot(centroids[sc_idx, 0], centroids[sc_idx, 1], '*', color='white',
                    markeredgecolor='black', markersize=14, label='Start cells')

    ax.set_xlabel('x', fontsize=12)
    ax.set_ylabel('y', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_aspect('equal')
    if ax.get_legend_handles_labels()[0]:
        ax.legend(fontsize=10)

    plt.tight_layout()
    if filename is not None:
        plt.savefig(filename, dpi=150, bbox_inches='tight')
        print(f"Saved: {filename}")
    return fig


def plot_acceptance_order(grid, order, filename='acceptance_order.png'):
    """
    Colour each cell centroid by the step at which the solver accepted it.

    Parameters:
    -----------
    grid : CellGrid
    order : sequence of int
        Cell ids in acceptance order (e.g. solver.accepted_order)
    filename : str or None
        Output filename; nothing is written when None
    """
    centroids = np.asarray(grid.cell_centroids)
    order = np.asarray(order, dtype=int)
    rank = np.full(grid.number_of_cells, np.nan)
    rank[order] = np.arange(order.size)

    fig, ax = plt.subplots(1, 1, figsize=(10, 8))
    reached = np.isfinite(rank)
    ax.scatter(centroids[~reached, 0], centroids[~reached, 1], c='lightgrey', s=12, marker='s')
    sc = ax.scatter(centroids[reached, 0], centroids[reached, 1], c=rank[reached],
                    cmap='plasma', s=16, marker='s')
    fig.colorbar(sc, ax=ax, label='Acceptance step')

    ax.set_xlabel('x', fontsize=12)
    ax.set_ylabel('y', fontsize=12)
    ax.set_title('Acceptance Order', fontsize=14, fontweight='bold')
    ax.set_aspect('equal')

    plt.tight_layout()
    if filename is not None:
        plt.savefig(filename, dpi=150, bbox_inches='tight')
        print(f"Saved: {filename}")
    return fig
