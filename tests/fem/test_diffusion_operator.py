"""
Tests for the Laplace-Beltrami operator and the CG solver.

Tests:
- Constants are in the kernel; the assembled matrix is symmetric
- Partial assembly agrees with the assembled matrix
- Surface area of flat and curved meshes
- Dirichlet problems reproduce linear fields (conforming and hanging meshes)
- Degenerate geometry is reported
"""

import numpy as np
import pytest

from minsurf.errors import NumericalInstabilityError
from minsurf.fem import DiffusionOperator, H1Space, cg_solver
from minsurf.fem.geometry import compute_geometric_factors, geometric_factors
from minsurf.meshing import build_mesh
from minsurf.surfaces import Catenoid


def solve_dirichlet(operator, values):
    """Solve the homogeneous problem with boundary values taken from ``values``."""
    space = operator.space
    ess = space.dof_to_true[space.boundary_dofs()]
    x = np.zeros(space.ntrue)
    x[ess] = values[ess]
    A, rhs, x0, free = operator.form_linear_system(ess, x)
    y_free, _ = cg_solver(A, rhs, x0=x0, tolerance=1e-12, atol=0.0, use_amg=not operator.partial)
    x[free] = y_free
    return x


def linear_field(mesh):
    space = mesh.nodal_space
    X = space.restrict(mesh.nodes)
    return 1.0 + 2.0 * X[:, 0] - 3.0 * X[:, 1]


class TestOperatorStructure:
    """Kernel, symmetry and matrix-free application."""

    @pytest.mark.parametrize("partial", [False, True])
    def test_constants_in_kernel(self, flat_mesh, partial):
        op = DiffusionOperator(flat_mesh.nodal_space, partial=partial)
        op.assemble()
        assert np.allclose(op.mult(np.ones(flat_mesh.nodal_space.ntrue)), 0.0, atol=1e-12)

    def test_symmetric(self, flat_mesh):
        op = DiffusionOperator(flat_mesh.nodal_space)
        op.assemble()
        K = op.matrix()
        assert abs(K - K.T).max() < 1e-12

    @pytest.mark.parametrize("mesh_fixture", ["flat_mesh", "hanging_mesh"])
    def test_partial_matches_assembled(self, mesh_fixture, request):
        mesh = request.getfixturevalue(mesh_fixture)
        space = mesh.nodal_space
        full = DiffusionOperator(space)
        pa = DiffusionOperator(space, partial=True)
        full.assemble()
        pa.assemble()
        x = np.random.default_rng(1).standard_normal(space.ntrue)
        assert np.allclose(full.mult(x), pa.mult(x), atol=1e-12)

    def test_vector_operator_is_block_diagonal(self, flat_mesh):
        scalar = DiffusionOperator(flat_mesh.nodal_space)
        scalar.assemble()
        space3 = H1Space(flat_mesh, 2, vdim=3)
        vector = DiffusionOperator(space3)
        vector.assemble()

        X = np.random.default_rng(2).standard_normal((space3.ntrue, 3))
        y = vector.mult(X.T.ravel())
        expected = np.concatenate([scalar.mult(X[:, d]) for d in range(3)])
        assert np.allclose(y, expected)
        assert vector.matrix().shape == (space3.true_vsize, space3.true_vsize)

    def test_matrix_requires_assembly(self, flat_mesh):
        op = DiffusionOperator(flat_mesh.nodal_space, partial=True)
        op.assemble()
        with pytest.raises(RuntimeError):
            op.matrix()


class TestSurfaceArea:
    """Area from the geometric factors."""

    def test_unit_square(self, flat_mesh):
        assert geometric_factors(flat_mesh, flat_mesh.nodal_space).total_area == pytest.approx(1.0)

    def test_scaled_rectangle(self, make_params, make_plane):
        mesh, _ = build_mesh(make_plane(2.0, 3.0), make_params(nx=2, ny=3))
        assert geometric_factors(mesh, mesh.nodal_space).total_area == pytest.approx(6.0)

    def test_factors_are_cached(self, flat_mesh):
        space = flat_mesh.nodal_space
        first = geometric_factors(flat_mesh, space)
        assert geometric_factors(flat_mesh, space) is first
        flat_mesh.set_nodes(flat_mesh.nodes * 2.0)
        assert geometric_factors(flat_mesh, space).total_area == pytest.approx(4.0)

    def test_cylinder_area(self, make_params):
        """Catenoid start shape: cylinder of radius 3.2 and height 4 pi / 3."""
        mesh, _ = build_mesh(Catenoid(), make_params(order=3, nx=6, ny=2, refine=1))
        exact = 2.0 * np.pi * 3.2 * 4.0 * np.pi / 3.0
        area = geometric_factors(mesh, mesh.nodal_space).total_area
        assert area == pytest.approx(exact, rel=5e-3)

    def test_degenerate_geometry(self, flat_mesh):
        with pytest.raises(NumericalInstabilityError):
            compute_geometric_factors(np.zeros_like(flat_mesh.nodes), flat_mesh.nodal_space)


class TestDirichletSolve:
    """Linear fields are discretely harmonic on flat meshes."""

    @pytest.mark.parametrize("partial", [False, True])
    def test_flat_patch(self, flat_mesh, partial):
        op = DiffusionOperator(flat_mesh.nodal_space, partial=partial)
        op.assemble()
        f = linear_field(flat_mesh)
        assert np.allclose(solve_dirichlet(op, f), f, atol=1e-8)

    @pytest.mark.parametrize("partial", [False, True])
    def test_hanging_patch(self, hanging_mesh, partial):
        op = DiffusionOperator(hanging_mesh.nodal_space, partial=partial)
        op.assemble()
        f = linear_field(hanging_mesh)
        assert np.allclose(solve_dirichlet(op, f), f, atol=1e-8)

    def test_empty_system(self):
        x, M = cg_solver(None, np.zeros(0))
        assert x.size == 0
        assert M is None
