"""Finite-element building blocks: H1 space, quadrature, diffusion operator, CG."""

from .basis import gauss_legendre_square, lagrange_1d, lattice_points, tensor_basis
from .geometry import GeometricFactors, compute_geometric_factors, geometric_factors
from .linear_solvers import cg_solver
from .operators import DiffusionOperator
from .space import H1Space, Ordering, from_layout, to_layout

__all__ = [
    "gauss_legendre_square",
    "lagrange_1d",
    "lattice_points",
    "tensor_basis",
    "GeometricFactors",
    "compute_geometric_factors",
    "geometric_factors",
    "cg_solver",
    "DiffusionOperator",
    "H1Space",
    "Ordering",
    "from_layout",
    "to_layout",
]
