"""Grid-based surfaces: closed-form parametrizations of the unit square.

Reference coordinates (x, y) in [0, 1]^2 are mapped to R^3. Periodic
surfaces (Catenoid, Hold) weld the u = 1 column onto u = 0.
"""

import numpy as np

from ..special import EPS
from .base import PeriodicSurface, Surface, grid_uv


class Catenoid(PeriodicSurface):
    code = 0
    name = "catenoid"

    def parametrize(self, X):
        x, y = grid_uv(X)
        u = 2.0 * np.pi * x
        v = 2.0 * np.pi * (2.0 * y - 1.0) / 3.0
        a = 3.2
        return np.column_stack([a * np.cos(u), a * np.sin(u), v])


class Helicoid(Surface):
    code = 1
    name = "helicoid"

    def parametrize(self, X):
        x, y = grid_uv(X)
        u = 2.0 * np.pi * x
        v = 2.0 * np.pi * (2.0 * y - 1.0) / 3.0
        return np.column_stack([np.cos(u) * np.sinh(v), np.sin(u) * np.sinh(v), u])


class Enneper(Surface):
    code = 2
    name = "enneper"

    def parametrize(self, X):
        x, y = grid_uv(X)
        u = 2.0 * (2.0 * x - 1.0)
        v = 2.0 * (2.0 * y - 1.0)
        return np.column_stack([
            u - u ** 3 / 3.0 + u * v ** 2,
            -v - u ** 2 * v + v ** 3 / 3.0,
            u ** 2 - v ** 2,
        ])


class Scherk(Surface):
    code = 3
    name = "scherk"
    alpha = 0.49  # stays clear of the poles at u, v = +-pi/2

    def parametrize(self, X):
        x, y = grid_uv(X)
        u = self.alpha * np.pi * (2.0 * x - 1.0)
        v = self.alpha * np.pi * (2.0 * y - 1.0)
        return np.column_stack([u, v, np.log(np.cos(u) / np.cos(v))])


class Hold(PeriodicSurface):
    """Catenoid-like band with a wavy radius."""

    code = 4
    name = "hold"

    def parametrize(self, X):
        x, y = grid_uv(X)
        u = 2.0 * np.pi * x
        v = y
        radius = 1.0 + 0.3 * np.sin(3.0 * u + np.pi * v)
        return np.column_stack([np.cos(u) * radius, np.sin(u) * radius, v])


class QuarterPeach(Surface):
    """Quarter of the peach-skin dome, built with bilinear geometry.

    The boundary is split into attribute 1 (the straight y = 0 segment away
    from the origin) and attribute 2 (everything else).
    """

    code = 5
    name = "quarter-peach"
    linear_geometry = True

    def parametrize(self, X):
        X = np.asarray(X, dtype=float)
        x = 2.0 * X[:, 0] - 1.0
        y = X[:, 1]
        r = np.sqrt(x * x + y * y)

        with np.errstate(invalid="ignore", divide="ignore"):
            t = np.arccos(np.where(r > 0.0, x / np.where(r > 0.0, r, 1.0), 0.0))
        t = np.where(y == 0.0, np.where(x > 0.0, 0.0, np.pi), t)
        t = np.where(x == 0.0, 0.5 * np.pi, t)

        on_y_axis = (t > 0.25 * np.pi) & (t < 0.75 * np.pi)
        R = np.where(on_y_axis, np.sqrt(1.0 + x * x), np.sqrt(1.0 + y * y))
        gamma = r / R
        return np.column_stack([gamma * np.cos(t), gamma * np.sin(t), 1.0 - gamma])

    def postprocess_boundary(self, mesh):
        pts = mesh.vertex_positions()[mesh.boundary]  # (nb, 2, 3)
        flat = np.all(np.abs(pts[:, :, 1]) <= EPS, axis=1)
        R = pts[:, :, 0] ** 2 + pts[:, :, 1] ** 2
        away = np.any(R > 0.1, axis=1)
        mesh.boundary_attributes = np.where(flat & away, 1, 2).astype(np.int64)


class Shell(Surface):
    code = 9
    name = "shell"

    def parametrize(self, X):
        x, y = grid_uv(X)
        u = 2.0 * np.pi * x
        v = 21.0 * y - 15.0
        growth = 1.16 ** v
        return np.column_stack([
            growth * np.cos(v) * (1.0 + np.cos(u)),
            -growth * np.sin(v) * (1.0 + np.cos(u)),
            -2.0 * growth * (1.0 + np.sin(u)),
        ])
