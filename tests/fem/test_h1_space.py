"""
Tests for the H1 Lagrange space.

Tests:
- Dof counts on structured grids
- Shared dofs see the same reference point from every cell (edge orientation)
- Boundary dofs and vector layouts
- Hanging-node prolongation
"""

import numpy as np
import pytest

from minsurf.errors import InvalidConfigurationError
from minsurf.fem import H1Space, Ordering, from_layout, to_layout
from minsurf.meshing import SurfaceMesh


def assert_consistent_dofs(space):
    """Every cell maps each of its dofs to the same reference point."""
    ref = space.reference_points()
    gathered = space.gather(ref)
    assert np.allclose(gathered[space.element_dofs], ref, atol=1e-14)


class TestDofNumbering:
    """Counts and continuity of the dof map."""

    @pytest.mark.parametrize("p", [1, 2, 3, 4])
    @pytest.mark.parametrize("nx,ny", [(1, 1), (3, 2)])
    def test_ndofs_structured(self, p, nx, ny):
        space = H1Space(SurfaceMesh.cartesian(nx, ny), p)
        assert space.ndofs == (p * nx + 1) * (p * ny + 1)
        assert space.conforming
        assert space.element_dofs.shape == (nx * ny, (p + 1) ** 2)

    @pytest.mark.parametrize("p", [2, 3, 4])
    def test_shared_dofs_consistent(self, p):
        assert_consistent_dofs(H1Space(SurfaceMesh.cartesian(3, 2), p))

    def test_rotated_cells(self):
        """Cells listed from a different starting corner still share edge dofs correctly."""
        mesh = SurfaceMesh.cartesian(3, 2)
        for cell, shift in [(1, 1), (3, 2), (4, 3)]:
            mesh.cells[cell] = np.roll(mesh.cells[cell], shift)
            mesh.cell_coords[cell] = np.roll(mesh.cell_coords[cell], shift, axis=0)
        space = H1Space(mesh, 3)
        assert_consistent_dofs(space)

    def test_distinct_dofs_distinct_points(self):
        space = H1Space(SurfaceMesh.cartesian(2, 3), 3)
        points = space.gather(space.reference_points())
        assert len(np.unique(np.round(points, 12), axis=0)) == space.ndofs

    def test_vertex_dofs_first(self):
        mesh = SurfaceMesh.cartesian(2, 2)
        space = H1Space(mesh, 2)
        points = space.gather(space.reference_points())
        assert np.allclose(points[space.vertex_dofs], mesh.vertices)

    def test_invalid_order(self):
        with pytest.raises(InvalidConfigurationError):
            H1Space(SurfaceMesh.cartesian(2, 2), 0)


class TestBoundaryDofs:
    """Dofs on selected boundary attributes."""

    def test_all_boundary(self):
        space = H1Space(SurfaceMesh.cartesian(2, 2), 2)
        assert len(space.boundary_dofs()) == 16

    def test_single_attribute(self):
        space = H1Space(SurfaceMesh.cartesian(2, 2), 2)
        bottom = space.boundary_dofs([1])
        points = space.gather(space.reference_points())
        assert len(bottom) == 5
        assert np.allclose(points[bottom, 1], 0.0)

    def test_no_boundary(self):
        mesh = SurfaceMesh.cartesian(2, 2)
        mesh.boundary = np.empty((0, 2), dtype=np.int64)
        mesh.boundary_attributes = np.empty(0, dtype=np.int64)
        assert len(H1Space(mesh, 2).boundary_dofs()) == 0


class TestVectorLayout:
    """BY_NODES and BY_VDIM orderings."""

    def test_by_nodes(self):
        values = np.array([[1, 2, 3], [4, 5, 6]])
        assert list(to_layout(values, Ordering.BY_NODES)) == [1, 4, 2, 5, 3, 6]

    def test_by_vdim(self):
        values = np.array([[1, 2, 3], [4, 5, 6]])
        assert list(to_layout(values, Ordering.BY_VDIM)) == [1, 2, 3, 4, 5, 6]

    @pytest.mark.parametrize("ordering", list(Ordering))
    def test_inverse(self, ordering):
        values = np.arange(12.0).reshape(4, 3)
        assert np.array_equal(from_layout(to_layout(values, ordering), 3, ordering), values)

    def test_indivisible_vector(self):
        with pytest.raises(InvalidConfigurationError):
            from_layout(np.arange(7), 3)

    def test_true_vdofs_by_nodes(self):
        space = H1Space(SurfaceMesh.cartesian(1, 1), 1, vdim=3)
        n = space.ntrue
        assert space.true_vsize == 3 * n
        assert list(space.true_vdofs([0, 2])) == [0, 2, n, n + 2, 2 * n, 2 * n + 2]

    def test_true_vdofs_by_vdim(self):
        space = H1Space(SurfaceMesh.cartesian(1, 1), 1, vdim=3, ordering=Ordering.BY_VDIM)
        assert list(space.true_vdofs([1])) == [3, 4, 5]


class TestHangingNodes:
    """Conforming prolongation across a hanging interface (order 2)."""

    def test_slave_count(self, hanging_mesh):
        space = hanging_mesh.nodal_space
        assert not space.conforming
        # midpoint vertex plus one interior dof on each fine edge
        assert space.ndofs - space.ntrue == 3
        assert space.P.shape == (space.ndofs, space.ntrue)

    def test_rows_sum_to_one(self, hanging_mesh):
        P = hanging_mesh.nodal_space.P
        assert np.allclose(np.asarray(P.sum(axis=1)).ravel(), 1.0)

    def test_reproduces_quadratics(self, hanging_mesh):
        """Slaves interpolated from the coarse edge match a quadratic field exactly."""
        space = hanging_mesh.nodal_space
        x, y = hanging_mesh.nodes[:, 0], hanging_mesh.nodes[:, 1]
        f = 1.0 + x - 2.0 * y + 3.0 * y ** 2
        assert np.allclose(space.prolong(space.restrict(f)), f)

    def test_nodes_follow_refinement(self, hanging_mesh):
        """The flat embedding survives refinement: nodes equal reference points."""
        space = hanging_mesh.nodal_space
        points = space.gather(space.reference_points())
        assert np.allclose(hanging_mesh.nodes[:, :2], points)
        assert np.allclose(hanging_mesh.nodes[:, 2], 0.0)
