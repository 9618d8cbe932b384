"""Catalogue of parametrized surfaces and the selection factory."""

from .base import PeriodicSurface, Surface
from .catalogue import Catenoid, Enneper, Helicoid, Hold, QuarterPeach, Scherk, Shell
from .costa import Costa
from .factory import SURFACES, create_surface, get_surface, make_solver
from .spheres import FullPeach, SlottedSphere

__all__ = [
    "Surface",
    "PeriodicSurface",
    "Catenoid",
    "Helicoid",
    "Enneper",
    "Scherk",
    "Hold",
    "QuarterPeach",
    "FullPeach",
    "SlottedSphere",
    "Costa",
    "Shell",
    "SURFACES",
    "create_surface",
    "get_surface",
    "make_solver",
]
