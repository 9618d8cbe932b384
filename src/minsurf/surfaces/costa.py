"""Costa minimal surface from the Weierstrass P and zeta functions.

The unit square is folded into its lower-left quarter, mapped through the
Weierstrass representation on the square lattice (w1 = 1/2, w3 = i/2) and
mirrored back. The four corner cells and the cells next to the edge
midpoints are removed (poles of the map). After refinement the nodes are
rescaled by the per-axis maxima seen while parametrizing, with the height
additionally divided by the golden ratio.
"""

import logging

import numpy as np

from ..errors import InvalidConfigurationError, NumericalInstabilityError
from ..meshing.mesh_data import SurfaceMesh
from ..special import weierstrass_p, weierstrass_zeta
from ..special.weierstrass import W1, W3
from .base import Surface

log = logging.getLogger(__name__)

GOLDEN_RATIO = (1.0 + np.sqrt(5.0)) / 2.0


class Costa(Surface):
    code = 8
    name = "costa"

    def validate(self, options):
        super().validate(options)
        if options.nx <= 2 or options.ny <= 2:
            raise InvalidConfigurationError(
                f"Costa surface needs nx > 2 and ny > 2, got {options.nx}x{options.ny}"
            )

    @staticmethod
    def keep_cell(i: int, j: int, nx: int, ny: int) -> bool:
        """False for cells touching a pole of the parametrization."""
        if (i == 0 or i + 1 == nx) and (j == 0 or j + 1 == ny):
            return False
        if (j == 0 or j + 1 == ny) and abs(nx - 2 * i - 1) <= 1:
            return False
        if (i == 0 or i + 1 == nx) and abs(ny - 2 * j - 1) <= 1:
            return False
        return True

    def build_topology(self, options):
        nx, ny = options.nx, options.ny
        grid = SurfaceMesh.cartesian(nx, ny)
        keep = np.array([
            self.keep_cell(i, j, nx, ny) for j in range(ny) for i in range(nx)
        ])
        mesh = SurfaceMesh(grid.vertices, grid.cells[keep])
        mesh.remove_unused_vertices()
        mesh.generate_boundary()
        return mesh

    def parametrize(self, X):
        X = np.asarray(X, dtype=float)
        x_top = X[:, 0] > 0.5
        y_top = X[:, 1] > 0.5
        u = np.where(x_top, 1.0 - X[:, 0], X[:, 0])
        v = np.where(y_top, 1.0 - X[:, 1], X[:, 1])

        w = u + 1j * v
        pw = weierstrass_p(w)
        e1 = weierstrass_p(W1)
        zw = weierstrass_zeta(w)
        dw = weierstrass_zeta(w - W1) - weierstrass_zeta(w - W3)

        p0 = 0.5 * np.real(np.pi * (u + np.pi / (4.0 * e1)) - zw + np.pi / (2.0 * e1) * dw)
        p1 = 0.5 * np.real(
            np.pi * (v + np.pi / (4.0 * e1)) - 1j * zw - np.pi * 1j / (2.0 * e1) * dw
        )
        p2 = np.sqrt(np.pi / 2.0) * np.log(np.abs((pw - e1) / (pw + e1)))

        p0 = np.where(x_top, -p0, p0)
        p1 = np.where(y_top, -p1, p1)
        points = np.column_stack([p0, p1, p2])
        if np.any(np.isnan(points)):
            raise NumericalInstabilityError("Costa parametrization produced NaN")
        return points

    def snap(self, mesh, accumulator):
        maxima = accumulator.maxima
        if not np.all(maxima > 0.0):
            raise NumericalInstabilityError(
                f"Costa normalization needs positive maxima, got {maxima}"
            )
        scale = maxima * np.array([1.0, 1.0, GOLDEN_RATIO])
        log.debug(f"Costa rescale factors: {scale}")
        mesh.set_nodes(mesh.nodes / scale)
