"""Geometric factors of a curved quadrilateral surface at quadrature points.

For the embedding x(xi, eta) of a reference cell:
- J = dx/d(xi, eta), shape (3, 2)
- G = J^T J, the first fundamental form
- dA = sqrt(det G), the area element

Factors are cached on the mesh (``mesh.geometric_factor_cache``) and dropped
by ``mesh.delete_geometric_factors()`` whenever the nodes move.
"""

import logging
from dataclasses import dataclass

import numpy as np

from ..errors import NumericalInstabilityError, TopologyError
from .basis import gauss_legendre_square, tensor_basis

log = logging.getLogger(__name__)


@dataclass
class GeometricFactors:
    """Per-cell, per-quadrature-point metric data."""

    weights: np.ndarray  # (nq,)
    B: np.ndarray  # (nq, nloc)
    dB: np.ndarray  # (nq, nloc, 2)
    jacobian: np.ndarray  # (ne, nq, 3, 2)
    area: np.ndarray  # (ne, nq)
    metric_inverse: np.ndarray  # (ne, nq, 2, 2)

    @property
    def total_area(self) -> float:
        return float(np.einsum("q,eq->", self.weights, self.area))


def compute_geometric_factors(nodes: np.ndarray, space, n_quad: int = None) -> GeometricFactors:
    """Evaluate Jacobians and metric terms of the node field on ``space``'s cells.

    Parameters
    ----------
    nodes : np.ndarray
        (ndofs, 3) embedded coordinates on the scalar dofs of ``space``.
    space : H1Space
        Space sharing the dof layout of ``nodes``.
    n_quad : int, optional
        Gauss points per direction (default: order + 2).
    """
    if n_quad is None:
        n_quad = space.order + 2
    points, weights = gauss_legendre_square(n_quad)
    B, dB = tensor_basis(space.order, points)

    X = nodes[space.element_dofs]  # (ne, nloc, 3)
    J = np.einsum("qla,elx->eqxa", dB, X)
    G = np.einsum("eqxa,eqxb->eqab", J, J)
    det = G[..., 0, 0] * G[..., 1, 1] - G[..., 0, 1] * G[..., 1, 0]

    if not np.all(np.isfinite(det)):
        raise NumericalInstabilityError("Non-finite metric determinant")
    if np.any(det <= 0.0):
        n_bad = int(np.count_nonzero(np.any(det <= 0.0, axis=1)))
        raise NumericalInstabilityError(f"{n_bad} degenerate cells (zero area element)")

    Ginv = np.empty_like(G)
    Ginv[..., 0, 0] = G[..., 1, 1] / det
    Ginv[..., 1, 1] = G[..., 0, 0] / det
    Ginv[..., 0, 1] = -G[..., 0, 1] / det
    Ginv[..., 1, 0] = -G[..., 1, 0] / det

    return GeometricFactors(
        weights=weights,
        B=B,
        dB=dB,
        jacobian=J,
        area=np.sqrt(det),
        metric_inverse=Ginv,
    )


def geometric_factors(mesh, space, n_quad: int = None) -> GeometricFactors:
    """Cached geometric factors of the mesh's current nodes."""
    key = (space.order, n_quad)
    factors = mesh.geometric_factor_cache.get(key)
    if factors is None:
        if mesh.nodes is None or mesh.nodes.shape[0] != space.ndofs:
            raise TopologyError("Mesh nodes are missing or do not match the space")
        factors = compute_geometric_factors(mesh.nodes, space, n_quad)
        mesh.geometric_factor_cache[key] = factors
        log.debug(f"Computed geometric factors: area={factors.total_area:.6e}")
    return factors
