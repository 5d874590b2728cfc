"""
Local update formulas of the Ordered Upwind Method on unstructured 2D cells.

Both updates estimate the arrival time at a cell centroid x_c from values
already accepted at neighbouring centroids, using the metric M of the
receiving cell. The cost of a straight segment d is |d|_M = sqrt(d^T M d).

Line (one-point) update:
    U = U_j + |x_c - x_j|_M

Triangle (two-point) update over the segment x_lam = lam x_j + (1 - lam) x_k:
    U = min_{lam in [0,1]}  lam U_j + (1 - lam) U_k + |x_c - x_lam|_M

With e = x_c - x_k, w = x_k - x_j, A = w.M.w, B = w.M.e, C = e.M.e and
delta = U_j - U_k the objective is convex in lam. Setting its derivative to
zero gives (A lam + B) / sqrt(A lam^2 + 2 B lam + C) = -delta, which has a
solution only when delta^2 < A; with D = A C - B^2 it is

    lam* = (-delta sqrt(D / (A - delta^2)) - B) / A

Otherwise the minimum sits at one of the end points.

References:
- Sethian, J.A. and Vladimirsky, A. (2003). "Ordered upwind methods for static
  Hamilton-Jacobi equations: theory and algorithms." SIAM J. Numer. Anal. 41(1).
"""

import numpy as np

from metric_utils import metric_length


def line_update(x_c, x_j, U_j, M):
    """
    One-point update from a single accepted neighbour.

    Parameters:
    -----------
    x_c : ndarray (2,)
        Centroid of the cell being updated
    x_j : ndarray (2,)
        Centroid of the accepted neighbour
    U_j : float
        Accepted value at x_j
    M : ndarray (2, 2)
        Metric tensor of the cell being updated

    Returns:
    --------
    U : float
    """
    d = np.asarray(x_c, dtype=float) - np.asarray(x_j, dtype=float)
    return float(U_j + metric_length(M, d))


def is_wedge(x_c, x_j, x_k, tol=1e-12):
    """
    True when x_j -> x_k turns counter-clockwise about x_c by less than pi.

    Collinear and reflex pairs do not bound a triangle around the cell.
    """
    a = np.asarray(x_j, dtype=float) - np.asarray(x_c, dtype=float)
    b = np.asarray(x_k, dtype=float) - np.asarray(x_c, dtype=float)
    cross = a[0] * b[1] - a[1] * b[0]
    return bool(cross > tol * np.linalg.norm(a) * np.linalg.norm(b))


def triangle_update(x_c, x_j, U_j, x_k, U_k, M):
    """
    Two-point update from the segment between two accepted neighbours.

    Returns the minimum over the segment of interpolated value plus metric
    distance, raised to max(U_j, U_k) when smaller so that both neighbours
    stay upwind of x_c.

    Parameters:
    -----------
    x_c : ndarray (2,)
        Centroid of the cell being updated
    x_j, x_k : ndarray (2,)
        Centroids of the two accepted neighbours
    U_j, U_k : float
        Accepted values at x_j and x_k
    M : ndarray (2, 2)
        Metric tensor of the cell being updated

    Returns:
    --------
    U : float
    """
    x_c = np.asarray(x_c, dtype=float)
    x_j = np.asarray(x_j, dtype=float)
    x_k = np.asarray(x_k, dtype=float)

    e = x_c - x_k
    w = x_k - x_j
    A = float(w @ M @ w)
    B = float(w @ M @ e)
    C = float(e @ M @ e)
    delta = float(U_j - U_k)

    def cost(lam):
        q = A * lam * lam + 2.0 * B * lam + C
        return U_k + lam * delta + np.sqrt(max(q, 0.0))

    best = min(cost(0.0), cost(1.0))

    D = A * C - B * B
    if A > 0.0 and D > 0.0 and delta * delta < A:
        lam = (-delta * np.sqrt(D / (A - delta * delta)) - B) / A
        if 0.0 < lam < 1.0:
            best = min(best, cost(lam))

    return float(max(best, U_j, U_k))
