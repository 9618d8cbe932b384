"""Minimal surface relaxation on curved quadrilateral meshes.

Builds a surface from the catalogue, then relaxes it toward a discrete
minimal surface with a Picard iteration of Laplace-Beltrami solves.
"""

from .datastructures import Metrics, Parameters, SolverState, TimeSeries
from .errors import (
    InvalidConfigurationError,
    InvalidSelectionError,
    MinimalSurfaceError,
    NumericalInstabilityError,
    SeriesConvergenceError,
    TopologyError,
)
from .surfaces import create_surface, make_solver

__all__ = [
    "Metrics",
    "Parameters",
    "SolverState",
    "TimeSeries",
    "InvalidConfigurationError",
    "InvalidSelectionError",
    "MinimalSurfaceError",
    "NumericalInstabilityError",
    "SeriesConvergenceError",
    "TopologyError",
    "create_surface",
    "make_solver",
]
