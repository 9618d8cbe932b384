"""Pytest configuration and fixtures for minimal surface tests."""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minsurf.datastructures import Parameters  # noqa: E402
from minsurf.surfaces.base import Surface  # noqa: E402


class Plane(Surface):
    """Flat rectangle [0, sx] x [0, sy] in the z = 0 plane."""

    name = "plane"

    def __init__(self, sx: float = 1.0, sy: float = 1.0):
        self.sx = sx
        self.sy = sy

    def parametrize(self, X):
        X = np.asarray(X, dtype=float)
        return np.column_stack([self.sx * X[:, 0], self.sy * X[:, 1], np.zeros(len(X))])


@pytest.fixture
def make_params():
    """Factory for small, fast builds: order 2, 4x4 grid, no refinement, assembled operator."""

    def _make(**overrides):
        values = {"order": 2, "nx": 4, "ny": 4, "refine": 0, "pa": False}
        values.update(overrides)
        return Parameters(**values)

    return _make


@pytest.fixture
def make_plane():
    """Factory for flat test surfaces."""
    return Plane


@pytest.fixture
def flat_mesh(make_params):
    """Order-2 unit square, 3x3 cells, flat embedding."""
    from minsurf.meshing import build_mesh

    mesh, _ = build_mesh(Plane(), make_params(nx=3, ny=3))
    return mesh


@pytest.fixture
def hanging_mesh():
    """2x1 unit-square grid, order 2, with the left cell split: one hanging edge."""
    from minsurf.meshing import NormalizationAccumulator, SurfaceMesh, parametrize_nodes

    mesh = SurfaceMesh.cartesian(2, 1)
    parametrize_nodes(Plane(), mesh, 2, NormalizationAccumulator())
    mesh.local_refinement(np.array([True, False]))
    return mesh
