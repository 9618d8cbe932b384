"""Laplace-Beltrami (diffusion) operator of the current surface geometry.

Element contribution:
    K_e[i, j] = sum_q w_q dA_q (dB_i)^T G^{-1} (dB_j)

Two assembly levels:
- assembled: global CSR matrix P^T K P over true dofs
- partial: per-quadrature-point data only, applied matrix-free
"""

import logging

import numpy as np
import scipy.sparse as sp
from scipy.sparse.linalg import LinearOperator

from .geometry import geometric_factors
from .space import Ordering, from_layout, to_layout

log = logging.getLogger(__name__)


class DiffusionOperator:
    """Diffusion operator on ``space`` (vdim copies on the block diagonal).

    Parameters
    ----------
    space : H1Space
        Trial and test space; its mesh carries the geometry.
    partial : bool
        Use matrix-free application instead of an assembled CSR matrix.
    """

    def __init__(self, space, partial: bool = False):
        self.space = space
        self.partial = partial
        self._D = None
        self._K = None

    @property
    def assembled(self) -> bool:
        return self._D is not None

    def assemble(self):
        """(Re)compute quadrature data from the mesh's current nodes."""
        factors = geometric_factors(self.space.mesh, self.space)
        self._dB = factors.dB
        self._D = np.einsum("q,eq,eqab->eqab", factors.weights, factors.area, factors.metric_inverse)
        self._K = None if self.partial else self._assemble_matrix()

    def _element_matrices(self) -> np.ndarray:
        return np.einsum("qia,eqab,qjb->eij", self._dB, self._D, self._dB)

    def _assemble_matrix(self) -> sp.csr_matrix:
        Ke = self._element_matrices()
        dofs = self.space.element_dofs
        nloc = dofs.shape[1]
        rows = np.repeat(dofs, nloc, axis=1).ravel()
        cols = np.tile(dofs, (1, nloc)).ravel()
        n = self.space.ndofs
        K = sp.csr_matrix((Ke.ravel(), (rows, cols)), shape=(n, n))
        P = self.space.P
        if not self.space.conforming:
            K = P.T @ K @ P
        return sp.csr_matrix(K)

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def scalar_mult(self, x: np.ndarray) -> np.ndarray:
        """Apply the scalar operator to true-dof values of shape (ntrue,) or (ntrue, k)."""
        if self._K is not None:
            return self._K @ x

        space = self.space
        full = space.prolong(x)
        xe = full[space.element_dofs]  # (ne, nloc, ...)
        grads = np.einsum("qla,el...->eqa...", self._dB, xe)
        flux = np.einsum("eqab,eqb...->eqa...", self._D, grads)
        ye = np.einsum("qla,eqa...->el...", self._dB, flux)

        y = np.zeros_like(full, dtype=float)
        np.add.at(y, space.element_dofs, ye)
        return np.asarray(space.P.T @ y)

    def mult(self, x: np.ndarray) -> np.ndarray:
        """Apply the (vector) operator to a true vector in the space's layout."""
        space = self.space
        if space.vdim == 1:
            return self.scalar_mult(x)
        X = from_layout(x, space.vdim, space.ordering)
        return to_layout(self.scalar_mult(X), space.ordering)

    def matrix(self) -> sp.csr_matrix:
        """Assembled operator over all true vdofs."""
        if self._K is None:
            raise RuntimeError("Operator is not assembled (partial assembly or assemble() not called)")
        vdim = self.space.vdim
        if vdim == 1:
            return self._K
        eye = sp.identity(vdim, format="csr")
        if self.space.ordering == Ordering.BY_NODES:
            return sp.kron(eye, self._K, format="csr")
        return sp.kron(self._K, eye, format="csr")

    def as_linear_operator(self) -> LinearOperator:
        n = self.space.true_vsize
        return LinearOperator((n, n), matvec=lambda v: self.mult(np.ravel(v)), dtype=float)

    # ------------------------------------------------------------------
    # Essential boundary conditions
    # ------------------------------------------------------------------

    def form_linear_system(self, ess_vdofs: np.ndarray, x: np.ndarray, b: np.ndarray = None):
        """Eliminate essential dofs from A x = b.

        Parameters
        ----------
        ess_vdofs : np.ndarray
            Essential true vdofs; their values are taken from ``x``.
        x : np.ndarray
            Current true vector (essential values and initial guess).
        b : np.ndarray, optional
            Right-hand side (zero if omitted).

        Returns
        -------
        A : csr_matrix or LinearOperator
            Operator on the free dofs.
        rhs : np.ndarray
            b_f - A_fe x_e.
        x0 : np.ndarray
            Initial guess on the free dofs.
        free : np.ndarray
            Indices of the free dofs.
        """
        n = self.space.true_vsize
        ess = np.unique(np.asarray(ess_vdofs, dtype=np.int64))
        free = np.setdiff1d(np.arange(n), ess)

        x_ess = np.zeros(n)
        x_ess[ess] = x[ess]
        rhs = -self.mult(x_ess)[free]
        if b is not None:
            rhs = rhs + b[free]

        if self.partial:
            def matvec(v):
                z = np.zeros(n)
                z[free] = np.ravel(v)
                return self.mult(z)[free]

            A = LinearOperator((len(free), len(free)), matvec=matvec, dtype=float)
        else:
            A = self.matrix()[free][:, free].tocsr()

        return A, rhs, np.asarray(x, dtype=float)[free].copy(), free
