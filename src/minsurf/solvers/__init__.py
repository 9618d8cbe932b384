"""Picard relaxation solvers."""

from .base import SurfaceSolver, relative_change
from .policies import ByComponentSolver, ByVectorSolver, radial_projection

__all__ = [
    "SurfaceSolver",
    "relative_change",
    "ByComponentSolver",
    "ByVectorSolver",
    "radial_projection",
]
