"""Scipy conjugate-gradient solver with PyAMG preconditioning."""

import logging

import numpy as np
import pyamg
import scipy.sparse as sp
from scipy.sparse.linalg import cg

log = logging.getLogger(__name__)


def cg_solver(
    A,
    b_np: np.ndarray,
    x0: np.ndarray = None,
    M=None,
    tolerance=1e-14,
    atol=1e-28,
    max_iterations=2000,
    use_amg=True,
):
    """Solve the SPD system A x = b with scipy CG.

    Parameters
    ----------
    A : csr_matrix or LinearOperator
        System operator.
    b_np : np.ndarray
        Right-hand side vector.
    x0 : np.ndarray, optional
        Initial guess.
    M : LinearOperator, optional
        Preconditioner. If None and A is sparse, builds an AMG preconditioner.
    tolerance : float, optional
        Relative tolerance (default: 1e-14).
    atol : float, optional
        Absolute tolerance (default: 1e-28).
    max_iterations : int, optional
        Maximum iterations (default: 2000).
    use_amg : bool, optional
        Build the smoothed-aggregation preconditioner for sparse matrices.

    Returns
    -------
    x_np : np.ndarray
        Solution vector.
    M : LinearOperator or None
        Preconditioner for reuse in subsequent solves.
    """
    if b_np.size == 0:
        return np.zeros(0), M

    if M is None and use_amg and sp.issparse(A):
        ml = pyamg.smoothed_aggregation_solver(sp.csr_matrix(A), max_coarse=10)
        M = ml.aspreconditioner()

    x, info = cg(A, b_np, x0=x0, M=M, rtol=tolerance, atol=atol, maxiter=max_iterations)

    if info != 0:
        if info > 0:
            # Not converged to the requested tolerance; the iterate is still usable
            log.warning(f"CG stopped after {info} iterations without reaching rtol={tolerance:g}")
        else:
            raise RuntimeError(f"CG failed (info={info})")

    return x, M
