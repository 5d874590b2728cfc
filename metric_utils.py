"""
Metric tensor helpers for the anisotropic eikonal solver.

A metric M is a symmetric positive-definite 2x2 tensor per cell. The travel
time along a short straight segment d is sqrt(d^T M d), so M = s^2 I is an
isotropic medium with slowness s (speed 1/s). Anisotropic media are built
from a principal direction and the slowness along and across it.
"""

import numpy as np


def as_metric_array(metric, n_cells, rtol=1e-10):
    """
    Normalise and validate a per-cell metric field.

    Parameters:
    -----------
    metric : array_like
        Either shape (n_cells, 2, 2) or a flat array of 4*n_cells values
        (row-major 2x2 tensor per cell)
    n_cells : int
        Number of cells in the grid
    rtol : float
        Relative tolerance for the symmetry check

    Returns:
    --------
    M : ndarray (n_cells, 2, 2)
        Validated copy of the metric
    """
    M = np.array(metric, dtype=float)
    if M.ndim == 1 and M.size == 4 * n_cells:
        M = M.reshape(n_cells, 2, 2)
    if M.shape != (n_cells, 2, 2):
        raise ValueError(f"Metric must have shape {(n_cells, 2, 2)} or {(4 * n_cells,)}, got {np.shape(metric)}")
    if not np.all(np.isfinite(M)):
        raise ValueError("Metric contains non-finite entries")

    scale = np.abs(M[:, 0, 0]) + np.abs(M[:, 1, 1])
    asym = np.abs(M[:, 0, 1] - M[:, 1, 0])
    bad = np.nonzero(asym > rtol * np.maximum(scale, 1.0))[0]
    if bad.size:
        raise ValueError(f"Metric is not symmetric in cell {bad[0]}")

    det = M[:, 0, 0] * M[:, 1, 1] - M[:, 0, 1] * M[:, 1, 0]
    bad = np.nonzero((M[:, 0, 0] <= 0.0) | (det <= 0.0))[0]
    if bad.size:
        raise ValueError(f"Metric is not positive definite in cell {bad[0]}")
    return M


def anisotropy_ratio(M):
    """Per-cell ratio sqrt(lambda_max / lambda_min) of the metric (1 for isotropic)."""
    w = np.linalg.eigvalsh(np.asarray(M, dtype=float))
    return np.sqrt(w[..., -1] / w[..., 0])


def metric_length(M, d):
    """Metric length sqrt(d^T M d) of a single 2-vector."""
    d = np.asarray(d, dtype=float)
    return float(np.sqrt(max(d @ M @ d, 0.0)))


def isotropic_metric(n_cells, slowness=1.0):
    """M = s^2 I for every cell; slowness may be a scalar or a per-cell array."""
    s = np.broadcast_to(np.asarray(slowness, dtype=float), (n_cells,))
    M = np.zeros((n_cells, 2, 2))
    M[:, 0, 0] = s**2
    M[:, 1, 1] = s**2
    return M


def constant_anisotropic_metric(n_cells, s_para, s_perp, theta=0.0):
    """
    Same anisotropic tensor in every cell.

    Parameters:
    -----------
    n_cells : int
    s_para : float
        Slowness along the principal direction (cos theta, sin theta)
    s_perp : float
        Slowness across it
    theta : float
        Angle of the principal direction in radians
    """
    direction = np.array([np.cos(theta), np.sin(theta)])
    return metric_from_directions(np.tile(direction, (n_cells, 1)), s_para, s_perp)


def metric_from_directions(directions, s_para=1.0, s_perp=1.0):
    """
    Build M = s_para^2 u u^T + s_perp^2 v v^T from per-cell unit directions u.

    Directions are normalised; zero vectors fall back to the x axis.
    """
    u = np.asarray(directions, dtype=float)
    norm = np.linalg.norm(u, axis=1, keepdims=True)
    u = np.where(norm > 0.0, u / np.where(norm > 0.0, norm, 1.0), np.array([1.0, 0.0]))
    v = np.column_stack([-u[:, 1], u[:, 0]])
    s_para = np.asarray(s_para, dtype=float).reshape(-1, 1, 1) if np.ndim(s_para) else float(s_para)
    s_perp = np.asarray(s_perp, dtype=float).reshape(-1, 1, 1) if np.ndim(s_perp) else float(s_perp)
    return s_para**2 * np.einsum('ni,nj->nij', u, u) + s_perp**2 * np.einsum('ni,nj->nij', v, v)
