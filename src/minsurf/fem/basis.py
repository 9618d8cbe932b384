"""Tensor-product Lagrange basis and Gauss-Legendre quadrature on the unit square.

Local node (a, b), a, b = 0..p, sits at (a/p, b/p) and has local index
a + b * (p + 1).
"""

import numpy as np
from numpy.polynomial.legendre import leggauss


def equispaced_nodes(p: int) -> np.ndarray:
    return np.linspace(0.0, 1.0, p + 1)


def lagrange_1d(p: int, x):
    """Equispaced 1D Lagrange polynomials of degree p on [0, 1].

    Parameters
    ----------
    p : int
        Polynomial degree (>= 1).
    x : array_like
        Evaluation points, shape (n,).

    Returns
    -------
    L : np.ndarray
        Basis values, shape (n, p + 1).
    dL : np.ndarray
        First derivatives, shape (n, p + 1).
    """
    x = np.atleast_1d(np.asarray(x, dtype=float))
    t = equispaced_nodes(p)
    n = len(x)
    L = np.ones((n, p + 1))
    dL = np.zeros((n, p + 1))

    for k in range(p + 1):
        for m in range(p + 1):
            if m == k:
                continue
            L[:, k] *= (x - t[m]) / (t[k] - t[m])

        # Product rule over the factors
        for j in range(p + 1):
            if j == k:
                continue
            term = np.full(n, 1.0 / (t[k] - t[j]))
            for m in range(p + 1):
                if m == k or m == j:
                    continue
                term *= (x - t[m]) / (t[k] - t[m])
            dL[:, k] += term

    return L, dL


def tensor_basis(p: int, points: np.ndarray):
    """Values and reference gradients of the (p+1)^2 tensor basis.

    Parameters
    ----------
    p : int
        Polynomial degree.
    points : np.ndarray
        Reference points (n, 2) in [0, 1]^2.

    Returns
    -------
    B : np.ndarray
        (n, (p+1)^2) basis values.
    dB : np.ndarray
        (n, (p+1)^2, 2) derivatives with respect to (xi, eta).
    """
    points = np.asarray(points, dtype=float).reshape(-1, 2)
    Lx, dLx = lagrange_1d(p, points[:, 0])
    Ly, dLy = lagrange_1d(p, points[:, 1])

    # Local index a + b * (p + 1): eta index is the slow axis
    B = np.einsum("nb,na->nba", Ly, Lx).reshape(len(points), -1)
    dxi = np.einsum("nb,na->nba", Ly, dLx).reshape(len(points), -1)
    deta = np.einsum("nb,na->nba", dLy, Lx).reshape(len(points), -1)
    return B, np.stack([dxi, deta], axis=-1)


def lattice_points(p: int) -> np.ndarray:
    """Local nodal points (a/p, b/p) in local index order, shape ((p+1)^2, 2)."""
    t = equispaced_nodes(p)
    eta, xi = np.meshgrid(t, t, indexing="ij")
    return np.column_stack([xi.ravel(), eta.ravel()])


# Lower-left corner of each child in parent coordinates (child winding of SurfaceMesh refinement)
CHILD_OFFSETS = np.array([[0.0, 0.0], [0.5, 0.0], [0.5, 0.5], [0.0, 0.5]])


def child_interpolation(p: int) -> np.ndarray:
    """Matrices evaluating a parent cell's field at its four children's nodes.

    Returns
    -------
    np.ndarray
        (4, nloc, nloc); entry [k, i, j] is parent basis j at node i of child k.
    """
    lattice = lattice_points(p)
    return np.stack([
        tensor_basis(p, offset + 0.5 * lattice)[0] for offset in CHILD_OFFSETS
    ])


def gauss_legendre_square(n: int):
    """Tensor Gauss-Legendre rule with n points per direction on [0, 1]^2.

    Returns
    -------
    points : np.ndarray
        (n^2, 2) quadrature points.
    weights : np.ndarray
        (n^2,) weights summing to 1.
    """
    x, w = leggauss(n)
    x = 0.5 * (x + 1.0)
    w = 0.5 * w
    eta, xi = np.meshgrid(x, x, indexing="ij")
    weights = np.outer(w, w).ravel()
    return np.column_stack([xi.ravel(), eta.ravel()]), weights


def bilinear_map(corners: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Map reference points through the bilinear interpolant of quad corners.

    Parameters
    ----------
    corners : np.ndarray
        (ne, 4, d) corner coordinates in winding order.
    points : np.ndarray
        (n, 2) reference points.

    Returns
    -------
    np.ndarray
        (ne, n, d) mapped points.
    """
    xi, eta = points[:, 0], points[:, 1]
    weights = np.column_stack([
        (1 - xi) * (1 - eta),
        xi * (1 - eta),
        xi * eta,
        (1 - xi) * eta,
    ])
    return np.einsum("nk,ekd->end", weights, corners)
