"""
Tests for the tensor Lagrange basis and quadrature.

Tests:
- Nodal (Kronecker delta) property and partition of unity
- Derivatives against finite differences
- Gauss-Legendre exactness on the unit square
- Child interpolation reproduces the parent polynomial
"""

import numpy as np
import pytest

from minsurf.fem.basis import (
    CHILD_OFFSETS,
    bilinear_map,
    child_interpolation,
    gauss_legendre_square,
    lagrange_1d,
    lattice_points,
    tensor_basis,
)


class TestLagrangeBasis:
    """1D and tensor-product equispaced Lagrange polynomials."""

    @pytest.mark.parametrize("p", [1, 2, 3, 4])
    def test_kronecker_delta(self, p):
        L, _ = lagrange_1d(p, np.linspace(0, 1, p + 1))
        assert np.allclose(L, np.eye(p + 1), atol=1e-12)

    @pytest.mark.parametrize("p", [1, 2, 3])
    def test_partition_of_unity(self, p):
        x = np.linspace(0, 1, 17)
        L, dL = lagrange_1d(p, x)
        assert np.allclose(L.sum(axis=1), 1.0)
        assert np.allclose(dL.sum(axis=1), 0.0, atol=1e-10)

    def test_derivative_finite_difference(self):
        p, h = 3, 1e-6
        x = np.array([0.13, 0.5, 0.91])
        _, dL = lagrange_1d(p, x)
        Lp, _ = lagrange_1d(p, x + h)
        Lm, _ = lagrange_1d(p, x - h)
        assert np.allclose(dL, (Lp - Lm) / (2 * h), atol=1e-7)

    @pytest.mark.parametrize("p", [1, 2, 3])
    def test_tensor_nodal_property(self, p):
        """Basis k is one at lattice point k (index a + b (p+1)) and zero elsewhere."""
        B, dB = tensor_basis(p, lattice_points(p))
        n = (p + 1) ** 2
        assert np.allclose(B, np.eye(n), atol=1e-12)
        assert dB.shape == (n, n, 2)

    def test_lattice_ordering(self):
        pts = lattice_points(2)
        assert np.allclose(pts[1], [0.5, 0.0])
        assert np.allclose(pts[3], [0.0, 0.5])
        assert np.allclose(pts[8], [1.0, 1.0])

    def test_tensor_gradient_of_linear_field(self):
        """Interpolating f = 2 xi - 3 eta gives the exact gradient everywhere."""
        p = 3
        nodal = lattice_points(p) @ np.array([2.0, -3.0])
        points = np.random.default_rng(0).random((10, 2))
        _, dB = tensor_basis(p, points)
        grad = np.einsum("nka,k->na", dB, nodal)
        assert np.allclose(grad, [2.0, -3.0])


class TestQuadrature:
    """Tensor Gauss-Legendre rule on [0, 1]^2."""

    @pytest.mark.parametrize("n", [1, 2, 4])
    def test_weights_sum_to_one(self, n):
        points, weights = gauss_legendre_square(n)
        assert points.shape == (n * n, 2)
        assert weights.sum() == pytest.approx(1.0)

    @pytest.mark.parametrize("n", [2, 3, 5])
    def test_polynomial_exactness(self, n):
        """Exact for x^a y^b with a, b <= 2n - 1."""
        points, weights = gauss_legendre_square(n)
        a = b = 2 * n - 1
        integral = np.sum(weights * points[:, 0] ** a * points[:, 1] ** b)
        assert integral == pytest.approx(1.0 / ((a + 1) * (b + 1)), rel=1e-12)


class TestChildInterpolation:
    """Refinement transfer matrices."""

    @pytest.mark.parametrize("p", [1, 2, 3])
    def test_rows_sum_to_one(self, p):
        T = child_interpolation(p)
        assert T.shape == (4, (p + 1) ** 2, (p + 1) ** 2)
        assert np.allclose(T.sum(axis=2), 1.0)

    def test_reproduces_parent_polynomial(self):
        """A degree-2 field on the parent is carried exactly to the children."""
        p = 2
        lattice = lattice_points(p)

        def f(pts):
            return 1.0 + pts[:, 0] ** 2 - 3 * pts[:, 0] * pts[:, 1] + pts[:, 1]

        T = child_interpolation(p)
        for k, offset in enumerate(CHILD_OFFSETS):
            child_points = offset + 0.5 * lattice
            assert np.allclose(T[k] @ f(lattice), f(child_points))

    def test_bilinear_map_corners(self):
        corners = np.array([[[0, 0], [2, 0], [2, 1], [0, 1]]], dtype=float)
        mapped = bilinear_map(corners, lattice_points(1))
        assert np.allclose(mapped[0], corners[0][[0, 1, 3, 2]])
