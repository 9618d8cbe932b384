"""
Tests for structural mesh validation.

Tests:
- Valid meshes pass
- Dangling references, unused vertices, repeated corners, spurious boundary
  edges, cells glued along two edges and non-finite nodes are rejected
"""

import numpy as np
import pytest

from minsurf.errors import TopologyError
from minsurf.meshing import SurfaceMesh, validate_mesh
from minsurf.surfaces.base import weld_periodic_seam


class TestValidateMesh:
    """Each broken invariant raises TopologyError."""

    @pytest.fixture
    def grid(self):
        return SurfaceMesh.cartesian(3, 3)

    def test_valid(self, grid):
        validate_mesh(grid)

    def test_dangling_cell_reference(self, grid):
        grid.cells[0, 0] = 99
        with pytest.raises(TopologyError, match="Dangling"):
            validate_mesh(grid)

    def test_dangling_boundary_reference(self, grid):
        grid.boundary[0, 1] = -1
        with pytest.raises(TopologyError, match="Dangling"):
            validate_mesh(grid)

    def test_unused_vertex(self, grid):
        grid.vertices = np.vstack([grid.vertices, [[2.0, 2.0]]])
        with pytest.raises(TopologyError, match="not used"):
            validate_mesh(grid)

    def test_repeated_corner(self, grid):
        grid.cells[4, 2] = grid.cells[4, 0]
        with pytest.raises(TopologyError):
            validate_mesh(grid)

    def test_spurious_boundary_edge(self, grid):
        # Edge 5-6 is interior to the 3x3 grid
        grid.boundary = np.vstack([grid.boundary, [[5, 6]]])
        grid.boundary_attributes = np.append(grid.boundary_attributes, 1)
        with pytest.raises(TopologyError, match="Boundary mismatch"):
            validate_mesh(grid)

    def test_missing_boundary_edge(self, grid):
        grid.boundary = grid.boundary[1:]
        grid.boundary_attributes = grid.boundary_attributes[1:]
        with pytest.raises(TopologyError, match="Boundary mismatch"):
            validate_mesh(grid)

    def test_non_finite_nodes(self, grid):
        grid.nodes = np.full((grid.n_vertices, 3), np.nan)
        with pytest.raises(TopologyError, match="Non-finite"):
            validate_mesh(grid)

    def test_empty_mesh(self):
        mesh = SurfaceMesh(np.zeros((0, 2)), np.zeros((0, 4), dtype=int))
        with pytest.raises(TopologyError):
            validate_mesh(mesh)

    def test_cells_sharing_two_edges(self):
        """A two-column grid welded into a band glues both cells along every edge."""
        mesh = weld_periodic_seam(SurfaceMesh.cartesian(2, 1), 2, 1)
        with pytest.raises(TopologyError, match="more than one edge"):
            validate_mesh(mesh)

    def test_welded_band(self):
        validate_mesh(weld_periodic_seam(SurfaceMesh.cartesian(3, 2), 3, 2))
